import time
import logging
import functools
import random
from typing import Callable, Any, Optional

logger = logging.getLogger(__name__)


class RetryError(Exception):
    """Exception raised when all retry attempts have been exhausted."""
    pass


def with_retry(
    max_attempts: int = 3,
    retry_delay: float = 1.0,
    backoff_factor: float = 2.0,
    jitter: bool = True,
    exceptions_to_retry: tuple = (Exception,),
    should_retry: Optional[Callable[[Exception], bool]] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Callable:
    """
    Retry a function a fixed number of times on transient errors.

    Exceptions outside ``exceptions_to_retry`` propagate immediately. Once the
    attempts are used up (or ``should_retry`` declines), a ``RetryError`` is
    raised from the last failure.

    Args:
        max_attempts: Maximum number of attempts, including the first call.
        retry_delay: Initial delay between attempts in seconds.
        backoff_factor: Multiplier applied to the delay after each attempt.
        jitter: Whether to randomize each delay between 50% and 150%.
        exceptions_to_retry: Tuple of exception types to retry on.
        should_retry: Optional predicate deciding whether an exception is retryable.
        sleep: Function used to wait between attempts.

    Example:
        @with_retry(max_attempts=3, exceptions_to_retry=(OperationalError,))
        def ping():
            ...
    """
    max_attempts = max(1, int(max_attempts))

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            last_exception = None

            for attempt in range(1, max_attempts + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions_to_retry as e:
                    last_exception = e

                    if should_retry and not should_retry(e):
                        logger.warning(f"Not retrying {func.__name__} based on exception: {str(e)}")
                        break

                    if attempt >= max_attempts:
                        logger.warning(f"Final attempt {attempt}/{max_attempts} for {func.__name__} failed: {str(e)}")
                        break

                    delay = retry_delay * (backoff_factor ** (attempt - 1))
                    if jitter:
                        delay = delay * (0.5 + random.random())

                    logger.warning(f"Attempt {attempt}/{max_attempts} for {func.__name__} failed: {str(e)}. "
                                   f"Retrying in {delay:.2f} seconds...")
                    sleep(delay)

            logger.error(f"All attempts for {func.__name__} failed.")
            raise RetryError(f"Function {func.__name__} failed after {max_attempts} attempts") from last_exception

        return wrapper
    return decorator
