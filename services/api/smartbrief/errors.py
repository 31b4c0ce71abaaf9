"""Typed pipeline failures and their HTTP status mapping.

Every failure the pipeline can surface is a :class:`PipelineError` carrying a
machine-readable :class:`ErrorKind` and the :class:`Stage` it happened in. The
HTTP layer maps (error class, kind) to a status code, so nothing downstream
needs to inspect message text.
"""

from enum import Enum
from typing import Any


class Stage(str, Enum):
    VALIDATING = "validating"
    NORMALIZING = "normalizing"
    PROMPTING = "prompting"
    CALLING = "calling"
    PARSING = "parsing"
    COMPUTING_METRICS = "computing_metrics"
    DONE = "done"


class ErrorKind(str, Enum):
    # validation
    MISSING_FIELD = "missing_field"
    INVALID_MODE = "invalid_mode"
    INVALID_INPUT_TYPE = "invalid_input_type"
    CONTENT_TOO_LONG = "content_too_long"
    CONTENT_TOO_SHORT = "content_too_short"
    INVALID_REQUEST = "invalid_request"
    # extraction
    INVALID_URL = "invalid_url"
    INVALID_YOUTUBE_URL = "invalid_youtube_url"
    FETCH_FAILED = "fetch_failed"
    TIMEOUT = "timeout"
    INSUFFICIENT_CONTENT = "insufficient_content"
    TRANSCRIPT_UNAVAILABLE = "transcript_unavailable"
    # provider
    NOT_CONFIGURED = "not_configured"
    API_ERROR = "api_error"
    RATE_LIMITED = "rate_limited"
    SAFETY_BLOCKED = "safety_blocked"
    # parse
    EMPTY_RESPONSE = "empty_response"
    # control
    CANCELLED = "cancelled"
    INTERNAL = "internal"


class PipelineError(Exception):
    """Base class for every failure surfaced by the summarization pipeline."""

    default_stage: Stage | None = None
    default_status: int = 500
    status_by_kind: dict[ErrorKind, int] = {}

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        stage: Stage | None = None,
        detail: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.stage = stage or self.default_stage
        self.detail = detail or {}

    @property
    def http_status(self) -> int:
        return self.status_by_kind.get(self.kind, self.default_status)

    def to_payload(self, include_details: bool = False) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.message, "code": self.kind.value}
        if include_details:
            payload["details"] = {
                "stage": self.stage.value if self.stage else None,
                **self.detail,
            }
        return payload

    def __repr__(self) -> str:
        stage = self.stage.value if self.stage else None
        return f"{self.__class__.__name__}(kind={self.kind.value!r}, stage={stage!r}, message={self.message!r})"


class ValidationError(PipelineError):
    default_stage = Stage.VALIDATING
    default_status = 400


class ExtractionError(PipelineError):
    """Bad or unreachable source; always user-correctable."""

    default_stage = Stage.NORMALIZING
    default_status = 400


class ProviderError(PipelineError):
    default_stage = Stage.CALLING
    default_status = 500
    status_by_kind = {
        ErrorKind.NOT_CONFIGURED: 500,
        ErrorKind.TIMEOUT: 408,
        ErrorKind.RATE_LIMITED: 429,
        ErrorKind.API_ERROR: 500,
    }


class ParseError(PipelineError):
    """The provider answered but broke its contract (e.g. empty text)."""

    default_stage = Stage.PARSING
    default_status = 500


class PipelineCancelled(PipelineError):
    # 499: client closed request
    default_status = 499

    def __init__(self, message: str = "Request was cancelled.", *, stage: Stage | None = None) -> None:
        super().__init__(ErrorKind.CANCELLED, message, stage=stage)


class DailyLimitExceeded(PipelineError):
    default_status = 429

    def __init__(self, limit: int) -> None:
        super().__init__(
            ErrorKind.RATE_LIMITED,
            f"Daily limit reached ({limit}/day).",
            detail={"limit": limit},
        )


def internal_error(exc: BaseException, stage: Stage | None = None) -> PipelineError:
    """Wrap an unexpected exception without leaking its text to the client."""
    return PipelineError(
        ErrorKind.INTERNAL,
        "An unexpected error occurred. Please try again.",
        stage=stage,
        detail={"exception": exc.__class__.__name__},
    )
