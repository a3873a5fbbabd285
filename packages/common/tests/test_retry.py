"""Tests for retry and backoff patterns."""

from unittest.mock import patch

import pytest

from nkv_common.retry import retry_on_exception


class FlakyCounter:
    """Test helper that fails N times before succeeding."""

    def __init__(self, failures_before_success: int):
        self.attempts = 0
        self.failures_before_success = failures_before_success

    def call(self) -> str:
        self.attempts += 1
        if self.attempts <= self.failures_before_success:
            raise ConnectionError(f"Attempt {self.attempts} failed")
        return "success"


class TestRetryOnException:
    """Test retry_on_exception decorator."""

    def test_succeeds_on_first_attempt(self):
        counter = FlakyCounter(failures_before_success=0)

        @retry_on_exception((ConnectionError,), max_attempts=3)
        def stable_function() -> str:
            return counter.call()

        assert stable_function() == "success"
        assert counter.attempts == 1

    def test_succeeds_after_retries(self):
        counter = FlakyCounter(failures_before_success=2)

        @retry_on_exception((ConnectionError,), max_attempts=5, min_wait_seconds=0.01)
        def flaky_function() -> str:
            return counter.call()

        assert flaky_function() == "success"
        assert counter.attempts == 3

    def test_exhausts_retries_and_reraises(self):
        counter = FlakyCounter(failures_before_success=10)

        @retry_on_exception((ConnectionError,), max_attempts=3, min_wait_seconds=0.01)
        def always_fails() -> str:
            return counter.call()

        with pytest.raises(ConnectionError):
            always_fails()

        assert counter.attempts == 3

    def test_does_not_retry_other_exceptions(self):
        attempts = []

        @retry_on_exception((ConnectionError,), max_attempts=3, min_wait_seconds=0.01)
        def raises_value_error() -> None:
            attempts.append(1)
            raise ValueError("not transient")

        with pytest.raises(ValueError):
            raises_value_error()

        assert len(attempts) == 1

    async def test_retries_async_functions(self):
        counter = FlakyCounter(failures_before_success=1)

        @retry_on_exception((ConnectionError,), max_attempts=3, min_wait_seconds=0.01)
        async def flaky_async() -> str:
            return counter.call()

        assert await flaky_async() == "success"
        assert counter.attempts == 2

    def test_logs_each_scheduled_retry(self):
        counter = FlakyCounter(failures_before_success=2)

        @retry_on_exception((ConnectionError,), max_attempts=3, min_wait_seconds=0.01)
        def flaky_function() -> str:
            return counter.call()

        with patch("nkv_common.retry.logger") as logger:
            flaky_function()

        calls = logger.warning.call_args_list
        assert [c.args[0] for c in calls] == ["retry_scheduled", "retry_scheduled"]
        assert [c.kwargs["attempt"] for c in calls] == [1, 2]
        assert calls[0].kwargs["error_type"] == "ConnectionError"
        assert calls[0].kwargs["function"].endswith("flaky_function")
