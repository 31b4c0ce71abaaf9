"""End-to-end summarization: validate, normalize, prompt, call, parse, measure.

One :class:`SummaryPipeline` is built per request. :meth:`SummaryPipeline.run`
returns a single :class:`SummaryResult`; :meth:`SummaryPipeline.stream`
yields ordered stream events ending in exactly one ``complete`` or ``error``
event. The model call itself is not streamed: the word-by-word reveal is
produced here once the full answer is parsed.
"""

import asyncio
import logging
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Awaitable, Callable, Iterator, TypeVar, cast

from nanoid import generate

from smartbrief.errors import PipelineCancelled, PipelineError, Stage, internal_error
from smartbrief.extract import ContentNormalizer, HttpContentFetcher
from smartbrief.llm import GeminiClient, SummarizationClient
from smartbrief.metrics import compute_metrics
from smartbrief.models import (
    CompleteEvent,
    CompleteMetadata,
    DeliveryMode,
    ErrorEvent,
    InputType,
    KeyPointChunkEvent,
    KeyPointsStartEvent,
    ModeType,
    NormalizedContent,
    OUTPUT_STYLES,
    OutputStyle,
    SourceInfo,
    StatusEvent,
    StreamEvent,
    SummaryContent,
    SummaryMetrics,
    SummaryRequest,
    SummaryResult,
    TldrChunkEvent,
    TldrStartEvent,
)
from smartbrief.parse import parse_response, summary_text
from smartbrief.prompts import audience_for, build_prompt
from smartbrief.settings import Settings
from smartbrief.validation import MAX_UPLOAD_CHARS, MIN_UPLOAD_CHARS, validate_request
from smartbrief.youtube import build_transcript_provider

logger = logging.getLogger(__name__)

ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
DISCONNECT_POLL_SECONDS = 0.25

DisconnectProbe = Callable[[], Awaitable[bool]]
T = TypeVar("T")


def new_request_id() -> str:
    return generate(alphabet=ALPHABET, size=10)


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class SummaryPipeline:
    """Sequences the summarization stages for a single request."""

    def __init__(
        self,
        normalizer: ContentNormalizer,
        client: SummarizationClient,
        *,
        output_style: OutputStyle = "structured",
        strict_validation: bool = True,
        max_upload_chars: int = MAX_UPLOAD_CHARS,
        min_upload_chars: int = MIN_UPLOAD_CHARS,
        chunk_delay: float = 0.05,
    ) -> None:
        self.normalizer = normalizer
        self.client = client
        self.output_style = output_style
        self.strict_validation = strict_validation
        self.max_upload_chars = max_upload_chars
        self.min_upload_chars = min_upload_chars
        self.chunk_delay = chunk_delay
        self.stage = Stage.VALIDATING
        self.request_id = new_request_id()

    @contextmanager
    def _stage(self, stage: Stage) -> Iterator[None]:
        """Track the current stage and stamp any failure with it."""
        self.stage = stage
        logger.debug("[%s] stage=%s", self.request_id, stage.value)
        try:
            yield
        except PipelineError as e:
            e.stage = stage
            logger.info("[%s] failed at %s: %s (%s)", self.request_id, stage.value, e.kind.value, e.message)
            raise
        except asyncio.CancelledError:
            logger.info("[%s] cancelled during %s", self.request_id, stage.value)
            raise
        except Exception as e:
            logger.exception("[%s] unexpected error during %s", self.request_id, stage.value)
            raise internal_error(e, stage) from e

    async def _until_disconnect(self, coro: Awaitable[T], is_disconnected: DisconnectProbe | None) -> T:
        """Await ``coro``, cancelling it promptly if the caller goes away."""
        if is_disconnected is None:
            return await coro
        task = asyncio.ensure_future(coro)
        try:
            while True:
                done, _ = await asyncio.wait({task}, timeout=DISCONNECT_POLL_SECONDS)
                if done:
                    return task.result()
                if await is_disconnected():
                    raise PipelineCancelled(stage=self.stage)
        finally:
            if not task.done():
                task.cancel()

    async def _check_connected(self, is_disconnected: DisconnectProbe | None) -> None:
        if is_disconnected is not None and await is_disconnected():
            raise PipelineCancelled(stage=self.stage)

    def validate(self, request: SummaryRequest) -> tuple[str, ModeType, InputType]:
        with self._stage(Stage.VALIDATING):
            validate_request(
                request,
                strict=self.strict_validation,
                max_upload_chars=self.max_upload_chars,
                min_upload_chars=self.min_upload_chars,
            )
        return cast(str, request.content), cast(ModeType, request.mode), cast(InputType, request.input_type)

    async def _normalize(
        self, content: str, input_type: InputType, is_disconnected: DisconnectProbe | None
    ) -> NormalizedContent:
        with self._stage(Stage.NORMALIZING):
            return await self._until_disconnect(self.normalizer.normalize(content, input_type), is_disconnected)

    async def _summarize(
        self, normalized: NormalizedContent, mode: ModeType, is_disconnected: DisconnectProbe | None
    ) -> SummaryContent:
        with self._stage(Stage.PROMPTING):
            prompt = build_prompt(normalized.text, mode, self.output_style, normalized.source_label)
        with self._stage(Stage.CALLING):
            raw = await self._until_disconnect(self.client.complete(prompt, self.output_style), is_disconnected)
        with self._stage(Stage.PARSING):
            return parse_response(raw.text, self.output_style)

    def _metrics(self, normalized: NormalizedContent, content: SummaryContent) -> SummaryMetrics:
        with self._stage(Stage.COMPUTING_METRICS):
            return compute_metrics(normalized.text, summary_text(content))

    def _log_success(
        self, delivery: DeliveryMode, mode: str, input_type: str, metrics: SummaryMetrics, processing_time: int
    ) -> None:
        logger.info(
            "[%s] %s summary generated mode=%s input_type=%s original_words=%d summary_words=%d reduction=%d%% time_ms=%d",
            self.request_id,
            delivery,
            mode,
            input_type,
            metrics.original_word_count,
            metrics.summary_word_count,
            metrics.reduction_percentage,
            processing_time,
        )

    async def run(self, request: SummaryRequest, is_disconnected: DisconnectProbe | None = None) -> SummaryResult:
        """Run every stage and return the finished result.

        Raises:
            PipelineError: The first failure, stamped with its stage.
        """
        started = time.perf_counter()
        content, mode, input_type = self.validate(request)
        normalized = await self._normalize(content, input_type, is_disconnected)
        summary = await self._summarize(normalized, mode, is_disconnected)
        metrics = self._metrics(normalized, summary)
        self.stage = Stage.DONE

        processing_time = int((time.perf_counter() - started) * 1000)
        self._log_success("sync", mode, input_type, metrics, processing_time)
        return SummaryResult(
            tldr=summary.tldr,
            key_points=summary.key_points,
            original_word_count=metrics.original_word_count,
            summary_word_count=metrics.summary_word_count,
            reduction_percentage=metrics.reduction_percentage,
            mode=mode,
            input_type=input_type,
            timestamp=utc_timestamp(),
            processing_time=processing_time,
            audience=audience_for(mode),
            source_info=SourceInfo.from_normalized(normalized),
            request_id=self.request_id,
        )

    async def _reveal(self, text: str) -> AsyncIterator[tuple[str, bool]]:
        """Yield cumulative prefixes of ``text``, one word at a time."""
        words = text.split(" ")
        for i in range(len(words)):
            yield " ".join(words[: i + 1]), i == len(words) - 1
            if self.chunk_delay > 0:
                await asyncio.sleep(self.chunk_delay)

    async def stream(
        self, request: SummaryRequest, is_disconnected: DisconnectProbe | None = None
    ) -> AsyncIterator[StreamEvent]:
        """Yield stream events for ``request``.

        Failures end the stream with a single ``error`` event; a caller
        disconnect ends it silently.
        """
        started = time.perf_counter()
        try:
            content, mode, input_type = self.validate(request)
            yield StatusEvent(message="Processing content...")
            normalized = await self._normalize(content, input_type, is_disconnected)

            await self._check_connected(is_disconnected)
            yield StatusEvent(message="Generating summary...")
            summary = await self._summarize(normalized, mode, is_disconnected)
            metrics = self._metrics(normalized, summary)

            await self._check_connected(is_disconnected)
            yield TldrStartEvent()
            async for text, done in self._reveal(summary.tldr):
                yield TldrChunkEvent(text=text, is_complete=done)

            if summary.key_points:
                await self._check_connected(is_disconnected)
                yield KeyPointsStartEvent()
                for index, point in enumerate(summary.key_points):
                    async for text, done in self._reveal(point):
                        yield KeyPointChunkEvent(text=text, index=index, is_complete=done)

            self.stage = Stage.DONE
            processing_time = int((time.perf_counter() - started) * 1000)
            self._log_success("stream", mode, input_type, metrics, processing_time)
            yield CompleteEvent(
                metadata=CompleteMetadata(
                    original_word_count=metrics.original_word_count,
                    summary_word_count=metrics.summary_word_count,
                    reduction_percentage=metrics.reduction_percentage,
                    mode=mode,
                    input_type=input_type,
                    timestamp=utc_timestamp(),
                    processing_time=processing_time,
                    audience=audience_for(mode),
                    source_info=SourceInfo.from_normalized(normalized),
                    request_id=self.request_id,
                )
            )
        except PipelineCancelled:
            logger.info("[%s] client disconnected during %s, stream closed", self.request_id, self.stage.value)
        except PipelineError as e:
            yield ErrorEvent(error=e.message, code=e.kind.value)
        except Exception as e:
            logger.exception("[%s] streaming failed during %s", self.request_id, self.stage.value)
            err = internal_error(e, self.stage)
            yield ErrorEvent(error=err.message, code=err.kind.value)


def build_pipeline(cfg: Settings) -> SummaryPipeline:
    """Wire a pipeline with the real fetcher, transcript provider and Gemini client."""
    normalizer = ContentNormalizer(
        fetcher=HttpContentFetcher(timeout=cfg.fetch_timeout_seconds, max_bytes=cfg.fetch_max_bytes),
        transcripts=build_transcript_provider(cfg.transcript_provider),
        max_chars=cfg.max_normalized_chars,
    )
    client = GeminiClient(
        api_key=cfg.gemini_api_key,
        model=cfg.gemini_model,
        api_base=cfg.gemini_api_base,
        timeout=cfg.gemini_timeout_seconds,
        max_retries=cfg.gemini_max_retries,
        retry_backoff=cfg.gemini_retry_backoff,
    )
    style = cast(OutputStyle, cfg.output_style if cfg.output_style in OUTPUT_STYLES else "structured")
    return SummaryPipeline(
        normalizer,
        client,
        output_style=style,
        strict_validation=cfg.strict_validation,
        max_upload_chars=cfg.max_upload_chars,
        min_upload_chars=cfg.min_upload_chars,
        chunk_delay=cfg.stream_chunk_delay_ms / 1000,
    )
