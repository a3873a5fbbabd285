"""Retry and backoff patterns using tenacity.

Used for calls that cross a network boundary: the embedding endpoint,
the arXiv export API and the LLM backends. Each scheduled retry is
logged as a `retry_scheduled` event carrying the wrapped function name.
"""

from typing import Callable, Type

from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from nkv_common.logging_config import get_logger

logger = get_logger(__name__)


def _log_retry(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "retry_scheduled",
        function=getattr(retry_state.fn, "__qualname__", repr(retry_state.fn)),
        attempt=retry_state.attempt_number,
        wait_seconds=round(retry_state.next_action.sleep, 3) if retry_state.next_action else None,
        error_type=type(error).__name__ if error else None,
        error=str(error) if error else None,
    )


def retry_on_exception(
    exception_types: tuple[Type[Exception], ...],
    max_attempts: int = 3,
    min_wait_seconds: float = 1.0,
    max_wait_seconds: float = 10.0,
) -> Callable:
    """Decorator for retrying calls that raise transient errors.

    Backoff is exponential: wait = min(max_wait, min_wait * 2^(attempt-1)).
    The final failure is re-raised unchanged.

    Args:
        exception_types: Exception types treated as transient
        max_attempts: Total attempts including the first (default: 3)
        min_wait_seconds: First backoff interval (default: 1.0s)
        max_wait_seconds: Backoff ceiling (default: 10.0s)

    Example:
        >>> @retry_on_exception((httpx.TimeoutException,), max_attempts=5)
        ... async def embed(text: str) -> list[float]:
        ...     response = await client.post("/api/embed", json={"input": text})
        ...     return response.json()["embeddings"][0]
    """
    return retry(
        retry=retry_if_exception_type(exception_types),
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(
            multiplier=min_wait_seconds,
            min=min_wait_seconds,
            max=max_wait_seconds,
        ),
        before_sleep=_log_retry,
        reraise=True,
    )
