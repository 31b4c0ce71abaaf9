import asyncio

import httpx
import pytest

from fakes import ARTICLE_HTML, FakeFetcher, FakeTranscripts
from smartbrief.errors import ErrorKind, ExtractionError
from smartbrief.extract import (
    TRUNCATION_MARKER,
    ContentNormalizer,
    HttpContentFetcher,
    extract_from_html,
    truncate,
)
from smartbrief.youtube import PlaceholderTranscriptProvider


def normalize(normalizer, content, input_type):
    return asyncio.run(normalizer.normalize(content, input_type))


class TestExtractFromHtml:

    def test_article_container_wins(self):
        page = extract_from_html(ARTICLE_HTML)
        assert "Researchers followed thousands of employees" in page.text
        assert "trackPageView" not in page.text
        assert "Subscribe" not in page.text
        assert "Copyright" not in page.text
        assert page.title == "What a Decade of Remote Work Taught Us"
        assert page.author == "Jane Analyst"

    def test_paragraph_scoring_fallback(self):
        para = "This paragraph carries the actual story with plenty of words. It has more than one sentence too."
        html = f"""<html><body><div><p>Home</p><p>{para}</p><p>Share</p><p>{para} Again.</p></div></body></html>"""
        page = extract_from_html(html)
        assert page.text.startswith("This paragraph carries")
        assert "Share" not in page.text

    def test_body_fallback_and_title_tag(self):
        html = "<html><head><title> Plain page </title></head><body><div>" + "word " * 40 + "</div></body></html>"
        page = extract_from_html(html)
        assert page.title == "Plain page"
        assert page.text.startswith("word word")

    def test_whitespace_is_collapsed(self):
        html = "<article>" + "<p>spaced \n\n\t out   text</p>" * 20 + "</article>"
        assert "  " not in extract_from_html(html).text


def test_truncate_adds_marker():
    text, truncated = truncate("a" * 60, limit=50)
    assert truncated
    assert text == "a" * 50 + TRUNCATION_MARKER
    assert truncate("short", limit=50) == ("short", False)


class TestContentNormalizer:

    def test_url(self):
        fetcher = FakeFetcher()
        result = normalize(ContentNormalizer(fetcher=fetcher), "  https://blog.example.com/post  ", "url")
        assert fetcher.urls == ["https://blog.example.com/post"]
        assert result.source_label == "blog.example.com"
        assert len(result.text) >= 100
        assert not result.truncated

    def test_url_truncation(self):
        html = "<article><p>" + "lorem ipsum " * 1000 + "</p></article>"
        result = normalize(ContentNormalizer(fetcher=FakeFetcher(body=html), max_chars=500), "https://example.com", "url")
        assert result.truncated
        assert result.text.endswith(TRUNCATION_MARKER)
        assert len(result.text) == 500 + len(TRUNCATION_MARKER)

    def test_plain_text_response(self):
        fetcher = FakeFetcher(body="Plain   text body. " * 10, content_type="text/plain")
        result = normalize(ContentNormalizer(fetcher=fetcher), "https://example.com/notes.txt", "url")
        assert result.text.startswith("Plain text body.")

    def test_invalid_url(self):
        with pytest.raises(ExtractionError) as exc:
            normalize(ContentNormalizer(fetcher=FakeFetcher()), "example.com/article", "url")
        assert exc.value.kind == ErrorKind.INVALID_URL

    def test_insufficient_content_mentions_paywall(self):
        fetcher = FakeFetcher(body="<html><body><p>Enable JavaScript</p></body></html>")
        with pytest.raises(ExtractionError) as exc:
            normalize(ContentNormalizer(fetcher=fetcher), "https://example.com", "url")
        assert exc.value.kind == ErrorKind.INSUFFICIENT_CONTENT
        assert "paywall" in exc.value.message
        assert exc.value.http_status == 400

    def test_fetch_errors_propagate(self):
        error = ExtractionError(ErrorKind.FETCH_FAILED, "Failed to fetch content: 404", detail={"status": 404})
        with pytest.raises(ExtractionError) as exc:
            normalize(ContentNormalizer(fetcher=FakeFetcher(error=error)), "https://example.com", "url")
        assert exc.value.detail["status"] == 404

    def test_youtube(self):
        transcripts = FakeTranscripts()
        result = normalize(ContentNormalizer(transcripts=transcripts), "https://youtu.be/abc123", "youtube")
        assert transcripts.video_ids == ["abc123"]
        assert result.source_label == "YouTube Video"
        assert result.text.startswith("In this video")

    def test_youtube_placeholder_is_labelled(self):
        normalizer = ContentNormalizer(transcripts=PlaceholderTranscriptProvider())
        result = normalize(normalizer, "https://www.youtube.com/watch?v=abc123", "youtube")
        assert "Placeholder transcript" in result.text
        assert "abc123" in result.text

    def test_invalid_youtube_url(self):
        transcripts = FakeTranscripts()
        with pytest.raises(ExtractionError) as exc:
            normalize(ContentNormalizer(transcripts=transcripts), "https://notyoutube.com/x", "youtube")
        assert exc.value.kind == ErrorKind.INVALID_YOUTUBE_URL
        assert transcripts.video_ids == []

    def test_upload_passthrough(self):
        result = normalize(ContentNormalizer(), "Line one.\n\n  Line   two is here. " * 5, "upload")
        assert result.source_label == "Direct Input"
        assert "\n" not in result.text

    def test_upload_below_floor(self):
        with pytest.raises(ExtractionError) as exc:
            normalize(ContentNormalizer(), "tiny", "upload")
        assert exc.value.kind == ErrorKind.INSUFFICIENT_CONTENT


class TestHttpContentFetcher:

    def _fetch(self, handler, timeout=10.0):
        fetcher = HttpContentFetcher(timeout=timeout, transport=httpx.MockTransport(handler))
        return asyncio.run(fetcher.fetch("https://example.com/article"))

    def test_sends_browser_headers(self):
        seen = {}

        def handler(request):
            seen.update(request.headers)
            return httpx.Response(200, text=ARTICLE_HTML, headers={"content-type": "text/html"})

        page = self._fetch(handler)
        assert page.body == ARTICLE_HTML
        assert "Mozilla" in seen["user-agent"]
        assert "text/html" in seen["accept"]

    def test_non_2xx_is_fetch_failed(self):
        with pytest.raises(ExtractionError) as exc:
            self._fetch(lambda request: httpx.Response(404))
        assert exc.value.kind == ErrorKind.FETCH_FAILED
        assert exc.value.detail["status"] == 404

    def test_transport_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(ExtractionError) as exc:
            self._fetch(handler)
        assert exc.value.kind == ErrorKind.TIMEOUT

    def test_wall_clock_timeout(self):
        async def handler(request):
            await asyncio.sleep(5)
            return httpx.Response(200, text="late")

        with pytest.raises(ExtractionError) as exc:
            self._fetch(handler, timeout=0.05)
        assert exc.value.kind == ErrorKind.TIMEOUT

    def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(ExtractionError) as exc:
            self._fetch(handler)
        assert exc.value.kind == ErrorKind.FETCH_FAILED

    def test_large_body_is_capped(self):
        def handler(request):
            return httpx.Response(200, content=b"a" * 5000, headers={"content-type": "text/plain; charset=utf-8"})

        fetcher = HttpContentFetcher(transport=httpx.MockTransport(handler), max_bytes=1024)
        page = asyncio.run(fetcher.fetch("https://example.com/huge"))
        assert page.body == "a" * 1024
