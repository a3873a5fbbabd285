"""Text cleanup and authority weighting for harvested items."""

import html
import re

_TAG_RE = re.compile(r"<[^>]+>")
_WS_RE = re.compile(r"\s+")

# Source-quality weight per content category (0-10)
AUTHORITY_WEIGHTS: dict[str, float] = {
    "paper": 10.0,
    "report": 8.5,
    "news": 7.0,
    "analysis": 5.0,
    "trend": 3.0,
}
DEFAULT_AUTHORITY = 5.0


def clean_content(text: str | None) -> str:
    """Strip HTML tags, unescape entities and collapse whitespace."""
    if not text:
        return ""
    without_tags = _TAG_RE.sub(" ", text)
    return _WS_RE.sub(" ", html.unescape(without_tags)).strip()


def authority_for(content_type: str) -> float:
    """Authority score for a content category (unknown categories get the default)."""
    return AUTHORITY_WEIGHTS.get(content_type.lower(), DEFAULT_AUTHORITY)


def contains_negative_interest(text: str, negative_interests: list[str]) -> bool:
    """Case-insensitive substring check against a user's noise keywords."""
    lowered = text.lower()
    return any(term.strip() and term.strip().lower() in lowered for term in negative_interests)
