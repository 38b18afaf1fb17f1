"""
Retrying executor — bounded retries with exponential backoff.

Wraps a flaky external action. The executor never propagates the
action's error: after the last attempt it returns the caller's
fallback, so an optional install degrades instead of aborting the run.
Callers that need the reason capture it inside their own action.

Delay before retry k (k >= 1):  backoff_base_ms * 2 ** (k - 1)

With ``dry_run`` the action is never invoked and the fallback is
returned immediately.
"""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable
from typing import TypeVar

from pydantic import BaseModel, Field

from devsetup.core.errors import ErrorKind, SetupError, is_retryable
from devsetup.core.observability.recorder import EventRecorder, LoggingRecorder

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_BACKOFF_MS = 300


class RetryOptions(BaseModel):
    """Per-call retry settings."""

    retries: int = Field(default=0, ge=0)
    backoff_base_ms: int = Field(default=DEFAULT_BACKOFF_MS, ge=0)
    dry_run: bool = False
    label: str = ""


def backoff_delay_ms(attempt: int, base_ms: int, max_ms: int | None = None) -> int:
    """Delay before retry ``attempt`` (1-based)."""
    if attempt < 1:
        return 0
    delay = base_ms * (2 ** (attempt - 1))
    if max_ms is not None:
        delay = min(delay, max_ms)
    return delay


def retries_for(kind: ErrorKind, max_retries: int) -> int:
    """Retry budget for an action whose failures classify as ``kind``.

    Non-retryable kinds get zero retries.
    """
    return max_retries if is_retryable(kind) else 0


class RetryingExecutor:
    """Run actions with retries, backoff and a dry-run short-circuit.

    Args:
        sleep: Called with seconds between attempts (default ``time.sleep``).
        recorder: Receives a diagnostic before each retry.
        jitter: Fraction of the delay added as random jitter (0 = none).
        max_delay_ms: Optional cap on a single delay.
    """

    def __init__(
        self,
        sleep: Callable[[float], None] = time.sleep,
        recorder: EventRecorder | None = None,
        jitter: float = 0.0,
        max_delay_ms: int | None = None,
    ):
        self._sleep = sleep
        self._recorder = recorder or LoggingRecorder(__name__)
        self._jitter = jitter
        self._max_delay_ms = max_delay_ms

    def execute(
        self,
        action: Callable[[], T],
        fallback: T,
        options: RetryOptions | None = None,
    ) -> T:
        opts = options or RetryOptions()
        if opts.dry_run:
            logger.debug("Dry run: skipping %s", opts.label or "action")
            return fallback

        total = opts.retries + 1
        attempt = 0
        while True:
            try:
                return action()
            except SetupError as e:
                if not e.retryable:
                    logger.debug("%s failed with non-retryable %s", opts.label or "action", e.code)
                    return fallback
                last_error: Exception = e
            except Exception as e:
                last_error = e

            if attempt >= opts.retries:
                logger.debug(
                    "%s exhausted after %d attempt(s): %s",
                    opts.label or "action",
                    total,
                    last_error,
                )
                return fallback

            attempt += 1
            delay_ms = backoff_delay_ms(attempt, opts.backoff_base_ms, self._max_delay_ms)
            if self._jitter:
                delay_ms += random.uniform(0, delay_ms * self._jitter)
            if opts.label:
                self._recorder.record(
                    "WARNING",
                    f"Retrying {opts.label} (attempt {attempt + 1}/{total})",
                    delay_ms=int(delay_ms),
                    error=str(last_error)[:200],
                )
            self._sleep(delay_ms / 1000)
