import pytest

from fakes import STRUCTURED_ANSWER
from smartbrief.errors import ErrorKind, ParseError
from smartbrief.parse import (
    KEY_POINT_PLACEHOLDER,
    TLDR_PLACEHOLDER,
    parse_response,
    render_structured,
    summary_text,
)


def test_structured_answer():
    content = parse_response(STRUCTURED_ANSWER)
    assert content.tldr == "Remote work raises output for focused tasks. Teams that document decisions adapt fastest."
    assert content.key_points == [
        "Productivity rose 13% in the studied call centre",
        "Written decision logs cut meeting time",
        "Hybrid schedules keep collaboration benefits",
        "Managers need outcome-based metrics",
        "Pilot changes with one team before rolling out",
    ]


def test_key_points_capped_at_five_and_hyphens_survive():
    text = "**TL;DR:** Short.\n**Key Points:**\n" + "\n".join(f"- point-{i} is well-known" for i in range(8))
    content = parse_response(text)
    assert len(content.key_points) == 5
    assert content.key_points[0] == "point-0 is well-known"


def test_mixed_bullets_and_wrapped_lines():
    text = (
        "**TL;DR:** Summary here.\n\n**Key Points:**\n"
        "* **Cost:** cheaper to run\n"
        "  across all regions\n"
        "- second\n"
        "1. third\n"
    )
    content = parse_response(text)
    assert content.key_points == ["**Cost:** cheaper to run across all regions", "second", "third"]


def test_empty_key_points_block_gets_placeholder():
    content = parse_response("**TL;DR:** Only a tldr.\n**Key Points:**\n\n")
    assert content.tldr == "Only a tldr."
    assert content.key_points == [KEY_POINT_PLACEHOLDER]


def test_empty_tldr_gets_placeholder():
    content = parse_response("**TL;DR:**   **Key Points:**\n• A real point here")
    assert content.tldr == TLDR_PLACEHOLDER


def test_fallback_without_markers():
    text = (
        "Caching speeds up reads! It also adds invalidation work. Choose TTLs carefully.\n"
        "- Cache the expensive queries first\n"
        "- short\n"
        "2. Measure hit rates before tuning\n"
    )
    content = parse_response(text)
    assert content.tldr == "Caching speeds up reads. It also adds invalidation work."
    assert content.key_points == ["Cache the expensive queries first", "Measure hit rates before tuning"]


def test_fallback_without_any_bullets():
    content = parse_response("Just one flowing paragraph with no list at all")
    assert content.tldr == "Just one flowing paragraph with no list at all."
    assert content.key_points == [KEY_POINT_PLACEHOLDER]


def test_fallback_strips_marker_labels():
    content = parse_response("**TL;DR:** Missing key points header. Second sentence. Third.")
    assert content.tldr == "Missing key points header. Second sentence."


@pytest.mark.parametrize("raw", [None, "", "   \n  "])
def test_empty_response(raw):
    with pytest.raises(ParseError) as exc:
        parse_response(raw)
    assert exc.value.kind == ErrorKind.EMPTY_RESPONSE
    assert exc.value.http_status == 500


def test_paragraph_style_is_passthrough():
    text = "  First paragraph.\n\nSecond paragraph with - dashes.\n"
    content = parse_response(text, "paragraph")
    assert content.tldr == "First paragraph.\n\nSecond paragraph with - dashes."
    assert content.key_points == []


@pytest.mark.parametrize(
    "raw",
    [
        STRUCTURED_ANSWER,
        "**TL;DR:** A. B.\n\n**Key Points:**\n* one\n  wrapped\n* 2) numbered inside\n",
        "**TL;DR:**\n**Key Points:**\n",
    ],
)
def test_parse_is_idempotent_through_render(raw):
    first = parse_response(raw)
    assert parse_response(render_structured(first)) == first


def test_summary_text_joins_everything():
    content = parse_response(STRUCTURED_ANSWER)
    text = summary_text(content)
    assert text.startswith(content.tldr)
    assert text.endswith(content.key_points[-1])
