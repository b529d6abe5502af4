from __future__ import annotations

import logging
import time
from typing import Callable, TypeVar

from mastery_tutor.core.errors import status_code_of

T = TypeVar("T")

logger = logging.getLogger(__name__)

TEXT_MAX_ATTEMPTS = 3
SPEECH_MAX_ATTEMPTS = 2  # audio favors speed over resilience


def is_retryable(exc: BaseException) -> bool:
    """Rate limits (429) and server errors (>= 500) are transient."""
    code = status_code_of(exc)
    if code is None:
        return False
    return code == 429 or code >= 500


def backoff_delay_s(attempt_index: int, base_s: float = 1.0) -> float:
    return (2 ** attempt_index) * base_s


def with_retry(
    operation: Callable[[], T],
    max_attempts: int = TEXT_MAX_ATTEMPTS,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Call `operation` up to `max_attempts` times in total.

    Transient failures wait 1s, 2s, 4s ... before the next attempt. Terminal
    failures are re-raised immediately. Once attempts are exhausted the last
    error is re-raised unchanged.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be >= 1 (got {max_attempts}).")

    for attempt in range(max_attempts):
        try:
            return operation()
        except Exception as e:
            if not is_retryable(e) or attempt == max_attempts - 1:
                raise
            delay = backoff_delay_s(attempt)
            logger.warning(
                "High load detected (status %s). Retrying in %.0fms... (attempt %d/%d)",
                status_code_of(e),
                delay * 1000.0,
                attempt + 1,
                max_attempts,
            )
            sleep(delay)

    raise AssertionError("unreachable")
