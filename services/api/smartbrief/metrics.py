import math

from smartbrief.models import SummaryMetrics


def count_words(text: str) -> int:
    return len(text.split())


def reduction_percentage(original_words: int, summary_words: int) -> int:
    """Percent of words removed, rounded half up. Negative when the summary is longer."""
    if original_words <= 0:
        return 0
    return int(math.floor(100 * (original_words - summary_words) / original_words + 0.5))


def compute_metrics(original_text: str, summary_text: str) -> SummaryMetrics:
    original = count_words(original_text)
    summary = count_words(summary_text)
    return SummaryMetrics(
        original_word_count=original,
        summary_word_count=summary,
        reduction_percentage=reduction_percentage(original, summary),
    )
