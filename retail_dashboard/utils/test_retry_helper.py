"""
Tests for the retry decorator
"""

import pytest

from retail_dashboard.utils.retry_helper import RetryError, with_retry


class Flaky:
    def __init__(self, failures, exc=ConnectionError):
        self.failures = failures
        self.exc = exc
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.exc(f"failure {self.calls}")
        return "ok"


def test_succeeds_after_transient_failures():
    delays = []
    flaky = Flaky(failures=2)
    wrapped = with_retry(max_attempts=3, retry_delay=1.0, jitter=False, sleep=delays.append)(flaky)

    assert wrapped() == "ok"
    assert flaky.calls == 3
    assert delays == [1.0, 2.0]


def test_raises_retry_error_after_max_attempts():
    flaky = Flaky(failures=5)
    wrapped = with_retry(max_attempts=3, sleep=lambda _: None)(flaky)

    with pytest.raises(RetryError) as exc_info:
        wrapped()
    assert flaky.calls == 3
    assert isinstance(exc_info.value.__cause__, ConnectionError)


def test_other_exceptions_propagate_immediately():
    flaky = Flaky(failures=1, exc=KeyError)
    wrapped = with_retry(max_attempts=3, exceptions_to_retry=(ConnectionError,), sleep=lambda _: None)(flaky)

    with pytest.raises(KeyError):
        wrapped()
    assert flaky.calls == 1


def test_should_retry_can_stop_early():
    flaky = Flaky(failures=5)
    wrapped = with_retry(max_attempts=4, should_retry=lambda e: False, sleep=lambda _: None)(flaky)

    with pytest.raises(RetryError):
        wrapped()
    assert flaky.calls == 1


def test_jitter_stays_within_half_to_one_and_a_half():
    delays = []
    wrapped = with_retry(max_attempts=2, retry_delay=2.0, jitter=True, sleep=delays.append)(Flaky(failures=1))

    wrapped()
    assert 1.0 <= delays[0] <= 3.0
