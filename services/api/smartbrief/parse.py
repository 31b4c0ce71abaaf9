import logging
import re

from smartbrief.errors import ErrorKind, ParseError
from smartbrief.models import OutputStyle, SummaryContent

logger = logging.getLogger(__name__)

MAX_KEY_POINTS = 5
MIN_FALLBACK_POINT_CHARS = 10
TLDR_PLACEHOLDER = "Summary generated successfully."
KEY_POINT_PLACEHOLDER = "Key insights extracted from content."

_TLDR_RE = re.compile(r"\*\*TL;DR:\*\*\s*(.*?)(?=\*\*Key Points:\*\*)", re.DOTALL)
_KEY_POINTS_RE = re.compile(r"\*\*Key Points:\*\*\s*(.*)$", re.DOTALL)
# "• x", "- x", "* x", "1. x", "2) x" at the start of a line
_BULLET_RE = re.compile(r"^\s*(?:•\s*|[-*]\s+|\d+[.)]\s+)(.*)$")
_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_BOLD_LABEL = re.compile(r"\*\*[^*\n]+?:\*\*")


def parse_response(text: str | None, style: OutputStyle = "structured") -> SummaryContent:
    """Split a model answer into TL;DR and key points.

    Never returns an incomplete result: missing markers go through the
    fallback parser and empty pieces get placeholder text. Only a blank
    answer is an error.

    Raises:
        ParseError: ``EMPTY_RESPONSE`` when ``text`` is missing or blank.
    """
    if not text or not text.strip():
        raise ParseError(ErrorKind.EMPTY_RESPONSE, "Empty response from AI service. Please try again.")

    if style == "paragraph":
        return SummaryContent(tldr=text.strip(), key_points=[])

    tldr_match = _TLDR_RE.search(text)
    key_points_match = _KEY_POINTS_RE.search(text)
    if not tldr_match or not key_points_match:
        logger.warning("Structured markers missing from model output, using fallback parser")
        return _fallback(text)

    tldr = tldr_match.group(1).strip()
    key_points = _split_bullets(key_points_match.group(1))[:MAX_KEY_POINTS]
    return SummaryContent(
        tldr=tldr or TLDR_PLACEHOLDER,
        key_points=key_points or [KEY_POINT_PLACEHOLDER],
    )


def _split_bullets(block: str) -> list[str]:
    points: list[str] = []
    for line in block.splitlines():
        if not line.strip():
            continue
        m = _BULLET_RE.match(line)
        if m:
            points.append(m.group(1).strip())
        elif points:
            # wrapped continuation of the previous bullet
            points[-1] = f"{points[-1]} {line.strip()}".strip()
        else:
            points.append(line.strip())
    return [p for p in points if p]


def _fallback(text: str) -> SummaryContent:
    plain = _BOLD_LABEL.sub(" ", text)
    sentences = [s.strip() for s in _SENTENCE_SPLIT.split(plain) if s.strip()]
    tldr = ". ".join(sentences[:2])
    tldr = f"{tldr}." if tldr else ""

    key_points = []
    for line in text.splitlines():
        m = _BULLET_RE.match(line)
        if m:
            point = m.group(1).strip()
            if len(point) > MIN_FALLBACK_POINT_CHARS:
                key_points.append(point)
    key_points = key_points[:MAX_KEY_POINTS]

    return SummaryContent(
        tldr=tldr or TLDR_PLACEHOLDER,
        key_points=key_points or [KEY_POINT_PLACEHOLDER],
    )


def render_structured(content: SummaryContent) -> str:
    """Render parsed content back into the marker format the parser expects."""
    bullets = "\n".join(f"• {point}" for point in content.key_points)
    return f"**TL;DR:** {content.tldr}\n\n**Key Points:**\n{bullets}\n"


def summary_text(content: SummaryContent) -> str:
    """Text used for the summary word count: TL;DR plus every key point."""
    return " ".join([content.tldr, *content.key_points])
