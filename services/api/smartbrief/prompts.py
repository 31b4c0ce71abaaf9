"""Per-mode instruction templates and prompt assembly."""

import logging

from smartbrief.models import ModeType, OutputStyle

logger = logging.getLogger(__name__)

DEFAULT_MODE: ModeType = "business"

AUDIENCES: dict[ModeType, str] = {
    "business": "business professionals",
    "student": "students",
    "code": "developers",
    "genZ": "Gen Z",
}

STRUCTURED_PROMPTS: dict[ModeType, str] = {
    "business": """You are a sharp business analyst writing for business professionals. Analyze the following content and provide a summary in this EXACT format:

**TL;DR:** [2-3 sentence paragraph with key business insights, strategic implications, and actionable takeaways]

**Key Points:**
• [Strategic insight or market opportunity]
• [Actionable recommendation with business impact]
• [Financial/operational implication]
• [Risk assessment or competitive advantage]
• [Implementation priority or next steps]

Focus on: ROI, market positioning, competitive advantages, strategic decisions, and business value. Be direct, data-driven, and executive-ready. No fluff.""",
    "student": """You are a friendly study buddy writing for students. Break down the following content into an easy-to-understand summary in this EXACT format:

**TL;DR:** [2-3 sentences explaining the main concept in simple, clear language that's perfect for studying]

**Key Points:**
• [Main concept explained simply]
• [Important fact or principle to remember]
• [Practical application or example]
• [Connection to broader topic or field]
• [Study tip or memory aid]

Focus on: core concepts, learning objectives, practical examples, and study-friendly explanations. Make it clear, engaging, and easy to retain.""",
    "code": """You are a patient coding mentor writing for developers. Explain the following technical content in this EXACT format:

**TL;DR:** [2-3 sentences explaining what the code/concept does in plain English, focusing on the "why" and "how"]

**Key Points:**
• [What this code/concept actually does]
• [How it works (simplified explanation)]
• [When and why you'd use it]
• [Common gotchas or important details]
• [Best practices or next steps]

Focus on: practical understanding, real-world applications, simplified explanations, and actionable insights. No jargon unless absolutely necessary.""",
    "genZ": """You're the coolest tech friend explaining things to a Gen Z audience without being cringe. Break down this content in this EXACT format:

**TL;DR:** [2-3 sentences that hit different - explain the main vibe in a way that actually makes sense, no cap]

**Key Points:**
• [Main point that actually slaps]
• [Something that's lowkey important to know]
• [Real talk about why this matters]
• [The tea on how to use this info]
• [Final thoughts that are chef's kiss]

Focus on: being real, practical value, current vibes, and making complex stuff actually understandable. Keep it authentic but informative.""",
}

_PARAGRAPH_SHAPE = (
    "Format your response as flowing paragraphs, not bullet points, with no headings or labels. "
    "Write 3-4 substantial paragraphs that can be read in 2-3 minutes."
)

PARAGRAPH_PROMPTS: dict[ModeType, str] = {
    "business": (
        "For the business pros who need deep insights and actionable info fast.\n\n"
        "Generate a detailed summary that provides strategic insights and actionable information for business "
        "professionals. Use formal language, industry-specific terminology, and a clear, direct style. Focus on "
        "implications and recommendations relevant to a business context, and ground the analysis in the specific "
        "data points, metrics, or cases the content provides.\n\n" + _PARAGRAPH_SHAPE
    ),
    "student": (
        "Perfect for students who need complex stuff explained clearly with extra examples.\n\n"
        "Create a comprehensive summary that simplifies complex information in an educational, study-friendly "
        "manner. Use clear, straightforward language with examples or analogies that connect hard ideas to "
        "everyday experience, and walk through processes step by step where that helps understanding.\n\n"
        + _PARAGRAPH_SHAPE
    ),
    "code": (
        "Made for developers who want techy concepts unpacked with code and scenarios.\n\n"
        "Produce a detailed summary that breaks down technical concepts for developers. Be technically accurate, "
        "include short code snippets or examples where they illustrate a point, and explain how things behave in "
        "common use cases and edge cases.\n\n" + _PARAGRAPH_SHAPE
    ),
    "genZ": (
        "A chill, relatable vibe with pop culture refs to hook the younger crowd.\n\n"
        "Generate a detailed summary in a casual, relatable tone for a Gen Z audience. Keep it conversational, "
        "use informal language and the occasional pop culture or trending reference, and keep the actual "
        "information accurate and on point.\n\n" + _PARAGRAPH_SHAPE
    ),
}

TEMPLATES: dict[OutputStyle, dict[ModeType, str]] = {
    "structured": STRUCTURED_PROMPTS,
    "paragraph": PARAGRAPH_PROMPTS,
}

SEPARATOR = "\n\n---\n\n"


def resolve_mode(mode: str) -> ModeType:
    """Return ``mode`` if known, else fall back to ``business``.

    Requests are validated before they get here, so the fallback only
    matters for direct library callers.
    """
    if mode in AUDIENCES:
        return mode  # type: ignore[return-value]
    logger.warning("Unknown summary mode %r, falling back to %r template", mode, DEFAULT_MODE)
    return DEFAULT_MODE


def audience_for(mode: str) -> str:
    return AUDIENCES.get(mode, "general")  # type: ignore[call-overload]


def build_prompt(text: str, mode: str, style: OutputStyle = "structured", source_label: str | None = None) -> str:
    """Assemble the full prompt sent to the model.

    Args:
        text: Normalized content to summarize.
        mode: Audience mode; unknown values use the business template.
        style: ``structured`` for the TL;DR/Key Points markers, ``paragraph`` for prose.
        source_label: Optional provenance line (domain, "YouTube Video", ...).

    Returns:
        Template, optional source line and content joined by separators.
    """
    template = TEMPLATES[style][resolve_mode(mode)]
    parts = [template]
    if source_label:
        parts.append(f"Source: {source_label}")
    parts.append(f"Content to summarize:\n\n{text}")
    return SEPARATOR.join(parts)
