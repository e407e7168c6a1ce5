"""Retry helpers for talking to the submission endpoint.

Implementation: uses tenacity internally.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple, Type, TypeVar

import tenacity
from tenacity.wait import wait_base

logger = logging.getLogger(__name__)

__all__ = ["RetryConfig", "retry_operation"]

T = TypeVar("T")


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for retry behavior."""

    max_attempts: int = 3
    backoff_seconds: float = 0.5
    exponential: bool = True
    jitter: bool = True
    retry_exceptions: Tuple[Type[BaseException], ...] = (Exception,)

    @classmethod
    def none(cls) -> "RetryConfig":
        """No retry - fail immediately."""
        return cls(max_attempts=1)

    def wait_strategy(self) -> wait_base:
        wait: wait_base
        if self.exponential:
            # multiplier * 2^(attempt-1), never below the base delay
            wait = tenacity.wait_exponential(
                multiplier=self.backoff_seconds, min=self.backoff_seconds
            )
        else:
            wait = tenacity.wait_fixed(self.backoff_seconds)
        if self.jitter and self.backoff_seconds > 0:
            wait = wait + tenacity.wait_random(0, self.backoff_seconds * 0.5)
        return wait


def retry_operation(
    operation: Callable[[], T],
    config: RetryConfig,
    operation_name: str = "operation",
    *,
    sleep: Optional[Callable[[float], Any]] = None,
) -> T:
    """Execute an operation with retry logic.

    Only exceptions listed in ``config.retry_exceptions`` are retried; any
    other exception propagates on the first attempt. After the last attempt
    the original exception is re-raised.

    Args:
        operation: Callable to execute
        config: Retry configuration
        operation_name: Name for logging
        sleep: Override for tenacity's sleep (tests pass a no-op)

    Example:
        response = retry_operation(
            lambda: session.post(url, json=payload, timeout=10),
            RetryConfig(retry_exceptions=(requests.ConnectionError,)),
            "team submission",
        )
    """

    def before_sleep_handler(retry_state: tenacity.RetryCallState) -> None:
        exception = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "%s attempt %d/%d failed: %s. Retrying in %.1fs...",
            operation_name,
            retry_state.attempt_number,
            config.max_attempts,
            exception,
            retry_state.next_action.sleep if retry_state.next_action else 0,
        )

    retry_kwargs: dict[str, Any] = {
        "stop": tenacity.stop_after_attempt(config.max_attempts),
        "wait": config.wait_strategy(),
        "retry": tenacity.retry_if_exception_type(config.retry_exceptions),
        "before_sleep": before_sleep_handler,
        "reraise": True,
    }
    if sleep is not None:
        retry_kwargs["sleep"] = sleep

    retryer = tenacity.Retrying(**retry_kwargs)

    try:
        return retryer(operation)
    except config.retry_exceptions:
        logger.error("%s failed after %d attempts", operation_name, config.max_attempts)
        raise
