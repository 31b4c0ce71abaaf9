import asyncio
import logging
from typing import Protocol

from youtube_transcript_api import (
    CouldNotRetrieveTranscript,
    NoTranscriptFound,
    TranscriptsDisabled,
    VideoUnavailable,
    YouTubeTranscriptApi,
)

from smartbrief.errors import ErrorKind, ExtractionError

logger = logging.getLogger(__name__)


class TranscriptProvider(Protocol):
    async def get_transcript(self, video_id: str) -> str:
        """Return the plain-text transcript for ``video_id``."""
        ...


class PlaceholderTranscriptProvider:
    """Stand-in used when no transcript backend is configured."""

    async def get_transcript(self, video_id: str) -> str:
        return (
            f"[Placeholder transcript for YouTube video {video_id}. "
            "No transcript provider is configured, so this text stands in for the real captions.] "
            "This video covers several topics worth understanding. The presenter starts from "
            "foundational concepts and builds toward practical applications, sharing examples, "
            "common problems and recommended next steps for viewers who want to apply the ideas."
        )


class YouTubeTranscriptProvider:
    """Transcripts via ``youtube-transcript-api``.

    Prefers a manual English track, then a generated English one, then any
    available track translated to English when YouTube allows it.
    """

    def __init__(self, languages: tuple[str, ...] = ("en",)) -> None:
        self.languages = list(languages)

    async def get_transcript(self, video_id: str) -> str:
        # The library is synchronous; keep it off the event loop.
        return await asyncio.to_thread(self._fetch, video_id)

    def _fetch(self, video_id: str) -> str:
        try:
            transcript_list = YouTubeTranscriptApi().list(video_id)
            try:
                transcript = transcript_list.find_manually_created_transcript(self.languages)
            except NoTranscriptFound:
                try:
                    transcript = transcript_list.find_generated_transcript(self.languages)
                except NoTranscriptFound:
                    available = list(transcript_list)
                    if not available:
                        raise ExtractionError(
                            ErrorKind.TRANSCRIPT_UNAVAILABLE,
                            "No transcript available for this video.",
                        )
                    transcript = available[0]
                    if transcript.language_code not in self.languages and transcript.is_translatable:
                        transcript = transcript.translate(self.languages[0])

            fetched = transcript.fetch()
            return " ".join(snippet.text for snippet in fetched).strip()
        except (TranscriptsDisabled, NoTranscriptFound):
            raise ExtractionError(ErrorKind.TRANSCRIPT_UNAVAILABLE, "No transcript available for this video.")
        except VideoUnavailable:
            raise ExtractionError(
                ErrorKind.TRANSCRIPT_UNAVAILABLE,
                "Video unavailable (region/age/restriction).",
            )
        except CouldNotRetrieveTranscript as e:
            logger.exception("Transcript fetch failed for video_id=%s err_type=%s", video_id, e.__class__.__name__)
            raise ExtractionError(
                ErrorKind.TRANSCRIPT_UNAVAILABLE,
                "Failed to fetch the video transcript. Try again later or paste the transcript instead.",
                detail={"reason": e.__class__.__name__},
            )


def build_transcript_provider(name: str) -> TranscriptProvider:
    if name == "placeholder":
        return PlaceholderTranscriptProvider()
    if name == "youtube":
        return YouTubeTranscriptProvider()
    raise ValueError(f"Unknown transcript provider: {name!r}")
