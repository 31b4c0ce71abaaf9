"""Turn a raw request payload (URL, YouTube link, pasted text) into clean text."""

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Protocol

import httpx
from bs4 import BeautifulSoup, Tag

from smartbrief.errors import ErrorKind, ExtractionError
from smartbrief.models import InputType, NormalizedContent
from smartbrief.utils import (
    clean_pasted_text,
    collapse_whitespace,
    domain_from_url,
    extract_youtube_video_id,
    is_http_url,
)
from smartbrief.youtube import PlaceholderTranscriptProvider, TranscriptProvider

logger = logging.getLogger(__name__)

FETCH_TIMEOUT_SECONDS = 10.0
MAX_FETCH_BYTES = 2_000_000
MAX_NORMALIZED_CHARS = 50000
MIN_EXTRACTED_CHARS = 100
MIN_CONTENT_CHARS = 50
MIN_CONTAINER_CHARS = 200
TRUNCATION_MARKER = " [content truncated]"

DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}

UNWANTED_SELECTORS = [
    "script", "style", "noscript", "nav", "header", "footer", "aside", "form", "iframe",
    ".advertisement", ".ads", ".social-share", ".comments",
    ".sidebar", ".menu", ".navigation", ".popup", ".modal",
]

CONTENT_SELECTORS = [
    "article",
    '[role="main"]',
    ".post-content",
    ".article-content",
    ".entry-content",
    ".content",
    "main",
    ".post-body",
    ".article-body",
]

TITLE_SELECTORS = ["h1", ".title", ".headline", ".post-title", ".article-title"]
AUTHOR_SELECTORS = [".author", ".byline", '[rel="author"]', ".post-author"]

_LOW_QUALITY = [
    re.compile(r"^(home|about|contact|privacy|terms)", re.I),
    re.compile(r"^(click here|read more|continue reading)", re.I),
    re.compile(r"^(share|tweet|like|follow)", re.I),
]


@dataclass
class FetchedPage:
    url: str
    body: str
    content_type: str = "text/html"
    status_code: int = 200


@dataclass
class ExtractedPage:
    text: str
    title: str | None = None
    author: str | None = None


class ContentFetcher(Protocol):
    async def fetch(self, url: str) -> FetchedPage:
        """Fetch ``url`` once, raising :class:`ExtractionError` on failure."""
        ...


class HttpContentFetcher:
    """Single bounded GET with browser-like headers."""

    def __init__(
        self,
        timeout: float = FETCH_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
        max_bytes: int = MAX_FETCH_BYTES,
    ) -> None:
        self.timeout = timeout
        self.transport = transport
        self.max_bytes = max_bytes

    async def fetch(self, url: str) -> FetchedPage:
        try:
            return await asyncio.wait_for(self._get(url), timeout=self.timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            raise ExtractionError(
                ErrorKind.TIMEOUT,
                "Request timeout. The website took too long to respond.",
                detail={"timeout_seconds": self.timeout},
            )

    async def _get(self, url: str) -> FetchedPage:
        async with httpx.AsyncClient(
            timeout=self.timeout,
            headers=DEFAULT_HEADERS,
            follow_redirects=True,
            transport=self.transport,
        ) as client:
            try:
                async with client.stream("GET", url) as r:
                    if not r.is_success:
                        raise ExtractionError(
                            ErrorKind.FETCH_FAILED,
                            f"Failed to fetch content: {r.status_code}. Please check the URL and try again.",
                            detail={"status": r.status_code},
                        )
                    body = await self._read_capped(r)
            except httpx.TimeoutException:
                raise
            except httpx.RequestError as e:
                logger.warning("Fetch failed for %s: %s", url, e.__class__.__name__)
                raise ExtractionError(
                    ErrorKind.FETCH_FAILED,
                    "Failed to fetch content. Please check the URL and try again.",
                    detail={"reason": e.__class__.__name__},
                )
            return FetchedPage(
                url=str(r.url),
                body=body.decode(r.encoding or "utf-8", errors="replace"),
                content_type=r.headers.get("content-type", "text/html"),
                status_code=r.status_code,
            )

    async def _read_capped(self, r: httpx.Response) -> bytes:
        body = bytearray()
        async for chunk in r.aiter_bytes():
            body.extend(chunk)
            if len(body) >= self.max_bytes:
                logger.info("Stopped reading %s after %d bytes", r.url, self.max_bytes)
                return bytes(body[: self.max_bytes])
        return bytes(body)


def _score_paragraph(text: str) -> int:
    score = 0
    if len(text) > 50:
        score += 1
    if len(text) > 100:
        score += 1
    if len(text) > 200:
        score += 1
    words = len(text.split())
    if words > 10:
        score += 1
    if words > 20:
        score += 1
    if len([s for s in re.split(r"[.!?]+", text) if s.strip()]) > 1:
        score += 1
    if len(text) < 30:
        score -= 2
    if any(p.match(text) for p in _LOW_QUALITY):
        score -= 3
    return max(0, score)


def _best_paragraphs(soup: BeautifulSoup, limit: int = 20) -> str:
    """Readability-style fallback: keep the highest-scoring paragraphs in page order."""
    scored = []
    for position, p in enumerate(soup.find_all("p")):
        text = collapse_whitespace(p.get_text(" "))
        score = _score_paragraph(text)
        if score > 0 and len(text) > 50:
            scored.append((score, position, text))
    top = sorted(scored, key=lambda item: (-item[0], item[1]))[:limit]
    return "\n\n".join(text for _, _, text in sorted(top, key=lambda item: item[1]))


def _first_text(soup: BeautifulSoup, selectors: list[str]) -> str | None:
    for selector in selectors:
        el = soup.select_one(selector)
        if el is not None:
            text = collapse_whitespace(el.get_text(" "))
            if text:
                return text
    return None


def extract_from_html(html: str) -> ExtractedPage:
    """Extract the main readable text, title and author from an HTML document."""
    soup = BeautifulSoup(html, "html.parser")

    # Title may live in <header>, so grab it before the denylist pass.
    title = _first_text(soup, TITLE_SELECTORS)
    if not title and soup.title and soup.title.string:
        title = collapse_whitespace(soup.title.string)
    author = _first_text(soup, AUTHOR_SELECTORS)

    for selector in UNWANTED_SELECTORS:
        for el in soup.select(selector):
            el.decompose()

    text = ""
    for selector in CONTENT_SELECTORS:
        el = soup.select_one(selector)
        if isinstance(el, Tag):
            candidate = collapse_whitespace(el.get_text(" "))
            if len(candidate) > MIN_CONTAINER_CHARS:
                logger.debug("Content container matched selector %s", selector)
                text = candidate
                break

    if not text:
        text = collapse_whitespace(_best_paragraphs(soup))

    if len(text) < MIN_EXTRACTED_CHARS:
        root = soup.body or soup
        text = collapse_whitespace(root.get_text(" "))

    return ExtractedPage(text=text, title=title or None, author=author or None)


def truncate(text: str, limit: int = MAX_NORMALIZED_CHARS) -> tuple[str, bool]:
    if len(text) <= limit:
        return text, False
    return text[:limit] + TRUNCATION_MARKER, True


class ContentNormalizer:
    """Resolve a request payload into :class:`NormalizedContent`.

    Network access goes through the injected :class:`ContentFetcher` and
    :class:`TranscriptProvider`, so tests can run against fakes.
    """

    def __init__(
        self,
        fetcher: ContentFetcher | None = None,
        transcripts: TranscriptProvider | None = None,
        max_chars: int = MAX_NORMALIZED_CHARS,
    ) -> None:
        self.fetcher = fetcher or HttpContentFetcher()
        self.transcripts = transcripts or PlaceholderTranscriptProvider()
        self.max_chars = max_chars

    async def normalize(self, content: str, input_type: InputType) -> NormalizedContent:
        if input_type == "url":
            normalized = await self._from_url(content.strip())
        elif input_type == "youtube":
            normalized = await self._from_youtube(content.strip())
        else:
            normalized = self._from_upload(content)

        if len(normalized.text) < MIN_CONTENT_CHARS:
            raise ExtractionError(
                ErrorKind.INSUFFICIENT_CONTENT,
                f"Not enough content to summarize (need at least {MIN_CONTENT_CHARS} characters).",
                detail={"length": len(normalized.text)},
            )
        return normalized

    async def _from_url(self, url: str) -> NormalizedContent:
        if not is_http_url(url):
            raise ExtractionError(
                ErrorKind.INVALID_URL,
                "Please enter a valid URL (e.g., https://example.com/article)",
            )

        page = await self.fetcher.fetch(url)
        if not page.body:
            raise ExtractionError(ErrorKind.INSUFFICIENT_CONTENT, "No content received from URL.")

        if "html" in page.content_type.lower() or page.body.lstrip().startswith("<"):
            extracted = extract_from_html(page.body)
        else:
            extracted = ExtractedPage(text=collapse_whitespace(page.body))

        if len(extracted.text) < MIN_EXTRACTED_CHARS:
            raise ExtractionError(
                ErrorKind.INSUFFICIENT_CONTENT,
                "Insufficient content extracted. The page may be behind a paywall or require JavaScript.",
                detail={"length": len(extracted.text)},
            )

        text, truncated = truncate(extracted.text, self.max_chars)
        logger.info(
            "Extracted %d chars from %s (truncated=%s)", len(extracted.text), domain_from_url(page.url), truncated
        )
        return NormalizedContent(
            text=text,
            source_label=domain_from_url(page.url),
            title=extracted.title,
            author=extracted.author,
            url=page.url,
            truncated=truncated,
        )

    async def _from_youtube(self, url: str) -> NormalizedContent:
        video_id = extract_youtube_video_id(url) if is_http_url(url) else None
        if not video_id:
            raise ExtractionError(
                ErrorKind.INVALID_YOUTUBE_URL,
                "Invalid YouTube URL format. Please check the URL and try again.",
            )
        transcript = collapse_whitespace(await self.transcripts.get_transcript(video_id))
        text, truncated = truncate(transcript, self.max_chars)
        return NormalizedContent(
            text=text,
            source_label="YouTube Video",
            url=url,
            truncated=truncated,
        )

    def _from_upload(self, content: str) -> NormalizedContent:
        return NormalizedContent(text=clean_pasted_text(content), source_label="Direct Input")
