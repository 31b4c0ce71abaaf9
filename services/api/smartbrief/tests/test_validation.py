import pytest

from smartbrief.errors import ErrorKind, Stage, ValidationError
from smartbrief.models import SummaryRequest
from smartbrief.validation import validate_request


def _req(content="x" * 200, mode="business", input_type="upload"):
    return SummaryRequest(content=content, mode=mode, input_type=input_type)


def _kind(request, **kwargs):
    with pytest.raises(ValidationError) as exc:
        validate_request(request, **kwargs)
    assert exc.value.stage == Stage.VALIDATING
    assert exc.value.http_status == 400
    return exc.value.kind


def test_valid_request_passes():
    validate_request(_req())
    validate_request(_req(content="https://example.com", input_type="url"))


def test_missing_content_or_mode():
    assert _kind(_req(content=None)) == ErrorKind.MISSING_FIELD
    assert _kind(_req(content="   ")) == ErrorKind.MISSING_FIELD
    assert _kind(_req(mode=None)) == ErrorKind.MISSING_FIELD


def test_invalid_mode_and_input_type():
    assert _kind(_req(mode="executive")) == ErrorKind.INVALID_MODE
    assert _kind(_req(mode="genz")) == ErrorKind.INVALID_MODE
    assert _kind(_req(input_type="pdf")) == ErrorKind.INVALID_INPUT_TYPE
    assert _kind(_req(input_type=None)) == ErrorKind.INVALID_INPUT_TYPE


def test_upload_length_boundary():
    validate_request(_req(content="a" * 30000))
    assert _kind(_req(content="a" * 30001)) == ErrorKind.CONTENT_TOO_LONG


def test_length_limits_only_apply_to_uploads():
    validate_request(_req(content="https://example.com/" + "a" * 30001, input_type="url"))


def test_short_upload_depends_on_strict_flag():
    short = _req(content="too short to summarize")
    assert _kind(short) == ErrorKind.CONTENT_TOO_SHORT
    validate_request(short, strict=False)


def test_wire_aliases():
    req = SummaryRequest.model_validate({"content": "abc", "mode": "genZ", "inputType": "youtube"})
    assert req.input_type == "youtube"
