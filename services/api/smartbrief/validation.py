"""Cheap request checks that run before any network work."""

from smartbrief.errors import ErrorKind, ValidationError
from smartbrief.models import INPUT_TYPES, MODES, SummaryRequest

MAX_UPLOAD_CHARS = 30000
MIN_UPLOAD_CHARS = 100


def validate_request(
    request: SummaryRequest,
    *,
    strict: bool = True,
    max_upload_chars: int = MAX_UPLOAD_CHARS,
    min_upload_chars: int = MIN_UPLOAD_CHARS,
) -> None:
    """Raise :class:`ValidationError` if the request cannot be processed.

    Args:
        request: Incoming request with raw string fields.
        strict: Also reject uploads shorter than ``min_upload_chars``.
        max_upload_chars: Inclusive upper bound for pasted text.
        min_upload_chars: Inclusive lower bound for pasted text in strict mode.
    """
    if not request.content or not request.content.strip() or not request.mode:
        raise ValidationError(ErrorKind.MISSING_FIELD, "Content and mode are required")

    if request.mode not in MODES:
        raise ValidationError(
            ErrorKind.INVALID_MODE,
            f"Invalid summary mode. Choose one of: {', '.join(MODES)}.",
        )

    if request.input_type not in INPUT_TYPES:
        raise ValidationError(
            ErrorKind.INVALID_INPUT_TYPE,
            f"Invalid input type. Choose one of: {', '.join(INPUT_TYPES)}.",
        )

    if request.input_type == "upload":
        length = len(request.content)
        if length > max_upload_chars:
            raise ValidationError(
                ErrorKind.CONTENT_TOO_LONG,
                f"Content exceeds maximum length limit ({max_upload_chars:,} characters)",
                detail={"length": length},
            )
        if strict and length < min_upload_chars:
            raise ValidationError(
                ErrorKind.CONTENT_TOO_SHORT,
                f"Content too short. Please provide at least {min_upload_chars} characters for meaningful summarization.",
                detail={"length": length},
            )
