import threading
import functools
import logging
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class Debouncer:
    """
    Trailing-edge debounce around a callable.

    Every ``call`` restarts the timer; the wrapped function runs once, with the
    arguments of the latest call, after ``wait`` seconds without new calls.
    Typical use is a search box that should query only once typing pauses.
    """

    def __init__(self, func: Callable, wait: float):
        if wait < 0:
            raise ValueError("wait must be non-negative")
        self.func = func
        self.wait = wait
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._pending = None

    def call(self, *args, **kwargs) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._pending = (args, kwargs)
            self._timer = threading.Timer(self.wait, self._fire)
            self._timer.daemon = True
            self._timer.start()

    __call__ = call

    def _fire(self) -> Any:
        with self._lock:
            pending = self._pending
            self._pending = None
            self._timer = None
        if pending is None:
            return None
        args, kwargs = pending
        return self.func(*args, **kwargs)

    def cancel(self) -> None:
        """Drop the pending call, if any"""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            self._pending = None

    def flush(self) -> Any:
        """Run the pending call immediately; returns its result or None"""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        return self._fire()

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._pending is not None


def debounce(wait: float) -> Callable[[Callable], Debouncer]:
    """
    Decorator form of ``Debouncer``.

    Example:
        @debounce(0.3)
        def search(keyword):
            ...
    """
    def decorator(func: Callable) -> Debouncer:
        debouncer = Debouncer(func, wait)
        functools.update_wrapper(debouncer, func)
        return debouncer
    return decorator
