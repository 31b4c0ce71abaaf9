from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Annotated, Literal, Union, get_args

ModeType = Literal["business", "student", "code", "genZ"]
InputType = Literal["url", "youtube", "upload"]
OutputStyle = Literal["structured", "paragraph"]
DeliveryMode = Literal["sync", "stream"]

MODES: tuple[str, ...] = get_args(ModeType)
INPUT_TYPES: tuple[str, ...] = get_args(InputType)
OUTPUT_STYLES: tuple[str, ...] = get_args(OutputStyle)


class CamelModel(BaseModel):
    """Base for wire models: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SummaryRequest(CamelModel):
    # Raw strings on purpose: the validator owns the 400-class errors.
    content: str | None = None
    mode: str | None = None
    input_type: str | None = None


class NormalizedContent(CamelModel):
    text: str
    source_label: str
    title: str | None = None
    author: str | None = None
    url: str | None = None
    truncated: bool = False


class SourceInfo(CamelModel):
    label: str
    title: str | None = None
    author: str | None = None
    url: str | None = None
    truncated: bool = False

    @classmethod
    def from_normalized(cls, normalized: NormalizedContent) -> "SourceInfo":
        return cls(
            label=normalized.source_label,
            title=normalized.title,
            author=normalized.author,
            url=normalized.url,
            truncated=normalized.truncated,
        )


class SummaryContent(CamelModel):
    tldr: str
    key_points: list[str] = Field(default_factory=list)


class SummaryMetrics(CamelModel):
    original_word_count: int
    summary_word_count: int
    reduction_percentage: int


class SummaryResult(CamelModel):
    tldr: str
    key_points: list[str]
    original_word_count: int
    summary_word_count: int
    reduction_percentage: int
    mode: ModeType
    input_type: InputType
    timestamp: str
    processing_time: int
    audience: str
    source_info: SourceInfo
    request_id: str | None = None


class BriefResponse(SummaryResult):
    """Body of a successful synchronous request."""

    success: bool = True
    summary: str

    @classmethod
    def from_result(cls, result: SummaryResult) -> "BriefResponse":
        return cls(success=True, summary=result.tldr, **result.model_dump())


class ModeInfo(CamelModel):
    mode: ModeType
    audience: str


# Stream events: one model per `type` tag.

class StatusEvent(CamelModel):
    type: Literal["status"] = "status"
    message: str


class TldrStartEvent(CamelModel):
    type: Literal["tldr_start"] = "tldr_start"
    message: str = "Generating summary..."


class TldrChunkEvent(CamelModel):
    type: Literal["tldr_chunk"] = "tldr_chunk"
    text: str
    is_complete: bool


class KeyPointsStartEvent(CamelModel):
    type: Literal["keypoints_start"] = "keypoints_start"
    message: str = "Extracting key points..."


class KeyPointChunkEvent(CamelModel):
    type: Literal["keypoint_chunk"] = "keypoint_chunk"
    text: str
    index: int
    is_complete: bool


class CompleteMetadata(CamelModel):
    original_word_count: int
    summary_word_count: int
    reduction_percentage: int
    mode: ModeType
    input_type: InputType
    timestamp: str
    processing_time: int
    audience: str
    source_info: SourceInfo
    request_id: str | None = None


class CompleteEvent(CamelModel):
    type: Literal["complete"] = "complete"
    metadata: CompleteMetadata


class ErrorEvent(CamelModel):
    type: Literal["error"] = "error"
    error: str
    code: str


StreamEvent = Annotated[
    Union[
        StatusEvent,
        TldrStartEvent,
        TldrChunkEvent,
        KeyPointsStartEvent,
        KeyPointChunkEvent,
        CompleteEvent,
        ErrorEvent,
    ],
    Field(discriminator="type"),
]


def sse_frame(event: BaseModel) -> str:
    """Encode one event as a server-sent-events data frame."""
    return f"data: {event.model_dump_json(by_alias=True, exclude_none=True)}\n\n"
