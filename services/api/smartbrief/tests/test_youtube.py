import asyncio
from types import SimpleNamespace
from unittest import mock

import pytest
from youtube_transcript_api import NoTranscriptFound, TranscriptsDisabled

from smartbrief.errors import ErrorKind, ExtractionError
from smartbrief.youtube import (
    PlaceholderTranscriptProvider,
    YouTubeTranscriptProvider,
    build_transcript_provider,
)


def _track(texts, language_code="en", translatable=False):
    track = mock.MagicMock()
    track.language_code = language_code
    track.is_translatable = translatable
    track.fetch.return_value = [SimpleNamespace(text=t) for t in texts]
    return track


def _fetch(transcript_list):
    with mock.patch("smartbrief.youtube.YouTubeTranscriptApi") as api:
        api.return_value.list.return_value = transcript_list
        return asyncio.run(YouTubeTranscriptProvider().get_transcript("dQw4w9WgXcQ"))


def test_manual_english_track_first():
    transcript_list = mock.MagicMock()
    transcript_list.find_manually_created_transcript.return_value = _track(["Hello", "world"])
    assert _fetch(transcript_list) == "Hello world"
    transcript_list.find_generated_transcript.assert_not_called()


def test_falls_back_to_translated_track():
    not_found = NoTranscriptFound("dQw4w9WgXcQ", ["en"], mock.MagicMock())
    german = _track([], language_code="de", translatable=True)
    german.translate.return_value = _track(["Translated", "captions"])
    transcript_list = mock.MagicMock()
    transcript_list.find_manually_created_transcript.side_effect = not_found
    transcript_list.find_generated_transcript.side_effect = not_found
    transcript_list.__iter__.return_value = iter([german])

    assert _fetch(transcript_list) == "Translated captions"
    german.translate.assert_called_once_with("en")


def test_disabled_transcripts_are_unavailable():
    with mock.patch("smartbrief.youtube.YouTubeTranscriptApi") as api:
        api.return_value.list.side_effect = TranscriptsDisabled("dQw4w9WgXcQ")
        with pytest.raises(ExtractionError) as exc:
            asyncio.run(YouTubeTranscriptProvider().get_transcript("dQw4w9WgXcQ"))
    assert exc.value.kind == ErrorKind.TRANSCRIPT_UNAVAILABLE
    assert exc.value.http_status == 400


def test_placeholder_is_labelled():
    text = asyncio.run(PlaceholderTranscriptProvider().get_transcript("abc123def45"))
    assert text.startswith("[Placeholder transcript for YouTube video abc123def45.")


def test_build_transcript_provider():
    assert isinstance(build_transcript_provider("placeholder"), PlaceholderTranscriptProvider)
    assert isinstance(build_transcript_provider("youtube"), YouTubeTranscriptProvider)
    with pytest.raises(ValueError):
        build_transcript_provider("vimeo")
