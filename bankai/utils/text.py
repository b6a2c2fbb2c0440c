"""Text processing utilities for LLM output: cleanup, dates and fenced JSON."""

import json
import re
from datetime import datetime, timezone
from typing import Any, Optional

from bs4 import BeautifulSoup
from dateutil import parser as dtparser

# ```json ... ``` first, then any fenced block
_JSON_FENCE_RE = re.compile(r"```json\s*([\s\S]*?)\s*```")
_ANY_FENCE_RE = re.compile(r"```\s*([\s\S]*?)\s*```")

# Real HTML/MathML/JATS tags only; bare comparisons such as "x<y and y>z" are text
_MARKUP_TAG_RE = re.compile(
    r"</?(?:a|b|br|div|em|h[1-6]|i|li|ol|p|span|strong|sub|sup|u|ul|math|m[inorst]|mrow|msub|msup|mfrac|(?:mml|jats):[\w-]+)"
    r"(?=[\s/>])[^<>]*>",
    re.IGNORECASE,
)


def clean_title(text: Any) -> str:
    """Strip HTML tags and markdown emphasis, then normalize whitespace.

    Models sometimes wrap titles in ``**bold**`` or ``<i>`` markup when
    they copy them from a search result.

    Args:
        text: Raw title value (non-strings become "")

    Returns:
        Cleaned title string, possibly empty
    """
    if not isinstance(text, str):
        return ""
    text = _MARKUP_TAG_RE.sub(" ", text)
    text = text.replace("**", "").replace("__", "")
    return " ".join(text.split()).strip()


def clean_abstract(text: Any) -> str:
    """Clean abstract text.

    1. Strip MathML blocks and any other markup (only when real tags are present).
    2. Strip leading "Abstract" / "ABSTRACT" prefix (with optional colon/dash).
    3. Normalise whitespace.
    """
    if not isinstance(text, str) or not text.strip():
        return ""

    if _MARKUP_TAG_RE.search(text):
        soup = BeautifulSoup(text, "html.parser")
        for math_tag in soup.find_all(["math", "mml:math"]):
            math_tag.decompose()
        text = soup.get_text(" ")

    text = re.sub(r"^\s*abstract[\s.:;—–-]*", "", text, flags=re.IGNORECASE)
    return " ".join(text.split()).strip()


def parse_date(value: Any, reference: Optional[datetime] = None) -> Optional[datetime]:
    """Parse a loosely formatted date into an aware UTC datetime.

    Missing components fall back to the first of the period, so "2025-06"
    is 2025-06-01 and "2025" is 2025-01-01. A missing year comes from
    *reference* (defaults to the current UTC time). Naive values are taken
    as UTC.

    Returns:
        Parsed datetime, or None when *value* is not a parseable date
    """
    if not isinstance(value, str) or not value.strip():
        return None
    if reference is None:
        reference = datetime.now(timezone.utc)
    try:
        dt = dtparser.parse(value, default=datetime(reference.year, 1, 1))
    except (ValueError, OverflowError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def extract_json_array(text: str) -> Optional[list[Any]]:
    """Extract a JSON array from a model reply.

    Looks for a ```json fenced block, then any fenced block, then falls
    back to the whole reply with stray fences removed.

    Returns:
        The decoded list, or None if no valid JSON array is present
    """
    if not text:
        return None
    match = _JSON_FENCE_RE.search(text) or _ANY_FENCE_RE.search(text)
    payload = match.group(1) if match else text.replace("```", "")
    try:
        data = json.loads(payload.strip())
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, list) else None
