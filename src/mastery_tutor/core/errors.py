from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class TutorError(RuntimeError):
    pass


class ProviderError(TutorError):
    """
    Raised by model/speech providers.
    Carries the HTTP status code when the remote side returned one.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        category: Optional["ErrorCategory"] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.category = category


class AttachmentError(ValueError):
    def __init__(self, message: str, kind: str) -> None:
        super().__init__(message)
        self.kind = kind  # "size" or "type"


class AudioDecodeError(TutorError):
    pass


class DiagramRenderError(TutorError):
    pass


class ErrorCategory(str, Enum):
    RATE_LIMITED = "rate_limited"
    CONTENT_FILTERED = "content_filtered"
    AUTHORIZATION = "authorization"
    CONNECTIVITY = "connectivity"
    UNKNOWN = "unknown"


USER_MESSAGES: dict[ErrorCategory, str] = {
    ErrorCategory.RATE_LIMITED: (
        "The Engine is at maximum capacity after several attempts. "
        "Please pause for 10 seconds and try your inquiry again."
    ),
    ErrorCategory.CONTENT_FILTERED: (
        "This inquiry was filtered for academic safety. Please focus on subject exploration."
    ),
    ErrorCategory.AUTHORIZATION: (
        "Portal authorization failed. Please check your connection or API configuration."
    ),
    ErrorCategory.CONNECTIVITY: (
        "The Mastery Engine encountered a connectivity issue. "
        "Your session is preserved; please retry the last request."
    ),
    ErrorCategory.UNKNOWN: (
        "The Mastery Engine encountered an unexpected problem. "
        "Your session is preserved; please retry the last request."
    ),
}


def status_code_of(exc: BaseException) -> Optional[int]:
    """Read an HTTP-like status code from an exception, if it carries one."""
    code = getattr(exc, "status_code", None)
    if code is None:
        response = getattr(exc, "response", None)
        code = getattr(response, "status_code", None)
    try:
        return int(code) if code is not None else None
    except (TypeError, ValueError):
        return None


def classify_error(exc: BaseException) -> ErrorCategory:
    category = getattr(exc, "category", None)
    if isinstance(category, ErrorCategory):
        return category

    code = status_code_of(exc)
    if code == 429:
        return ErrorCategory.RATE_LIMITED
    if code in (401, 403):
        return ErrorCategory.AUTHORIZATION
    if code is not None and code >= 500:
        return ErrorCategory.CONNECTIVITY

    # Providers without structured errors still mention the cause in the text.
    text = str(exc).lower()
    if "rate limit" in text:
        return ErrorCategory.RATE_LIMITED
    if "safety" in text or "blocked" in text:
        return ErrorCategory.CONTENT_FILTERED
    if "api key" in text:
        return ErrorCategory.AUTHORIZATION
    if isinstance(exc, (ConnectionError, TimeoutError)):
        return ErrorCategory.CONNECTIVITY
    return ErrorCategory.UNKNOWN


@dataclass(frozen=True)
class UserFacingError:
    category: ErrorCategory
    message: str

    @staticmethod
    def from_exception(exc: BaseException) -> "UserFacingError":
        category = classify_error(exc)
        return UserFacingError(category=category, message=USER_MESSAGES[category])
