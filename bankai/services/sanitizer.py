"""Normalization of untrusted candidate records into Paper objects.

Model output is loosely typed: authors arrive as lists or comma-joined
strings, classifications drift outside the fixed vocabularies and URLs
are frequently invented or missing.  ``sanitize_papers`` repairs what
can be repaired and silently drops the rest.  It performs no I/O.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Optional
from urllib.parse import quote

from bankai.models.paper import (
    DEFAULT_AI_DOMAIN,
    DEFAULT_BANKING_DOMAIN,
    DEFAULT_METHODOLOGY,
    AIDomain,
    BankingDomain,
    Methodology,
    Paper,
    coerce_enum,
)
from bankai.utils.text import clean_abstract, clean_title, parse_date

UNKNOWN_AUTHOR = "Unknown Author"
PLACEHOLDER_TITLE = "Untitled Research"
DEFAULT_ABSTRACT = "No abstract available."
DEFAULT_SOURCE = "Web"
MIN_TITLE_LENGTH = 5
FUTURE_TOLERANCE = timedelta(hours=24)
SCHOLAR_SEARCH_URL = "https://scholar.google.com/scholar?q={query}"


def _normalize_authors(raw: Any) -> list[str]:
    if isinstance(raw, list):
        authors = [str(a).strip() for a in raw]
    elif isinstance(raw, str):
        authors = [a.strip() for a in raw.split(",")] if "," in raw else [raw.strip()]
    else:
        authors = []
    authors = [a for a in authors if a]
    return authors or [UNKNOWN_AUTHOR]


def _normalize_tags(raw: Any) -> list[str]:
    if not isinstance(raw, list):
        return []
    tags: list[str] = []
    for tag in raw:
        tag = str(tag).strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def _normalize_url(raw: Any, title: str) -> str:
    url = raw.strip() if isinstance(raw, str) else ""
    if url.startswith("http"):
        return url
    return SCHOLAR_SEARCH_URL.format(query=quote(title, safe=""))


def _normalize_citations(raw: Any) -> int:
    # bool is an int subclass; "true" citations are not counts
    if isinstance(raw, int) and not isinstance(raw, bool) and raw >= 0:
        return raw
    return 0


def _sanitize_one(raw: Any, now: datetime) -> Optional[Paper]:
    """Build one Paper from *raw*, or return None if it must be dropped."""
    if not isinstance(raw, dict):
        return None

    # Missing titles are dropped outright rather than given a placeholder
    title = clean_title(raw.get("title"))
    if len(title) < MIN_TITLE_LENGTH or title == PLACEHOLDER_TITLE:
        return None

    publication_date = raw.get("publicationDate")
    if not isinstance(publication_date, str) or not publication_date.strip():
        publication_date = now.date().isoformat()
    published = parse_date(publication_date, reference=now)
    if published is not None and published > now + FUTURE_TOLERANCE:
        return None

    source = raw.get("source")
    return Paper(
        id=uuid.uuid4().hex,
        title=title,
        abstract=clean_abstract(raw.get("abstract")) or DEFAULT_ABSTRACT,
        authors=_normalize_authors(raw.get("authors")),
        publication_date=publication_date.strip(),
        source=source.strip() if isinstance(source, str) and source.strip() else DEFAULT_SOURCE,
        url=_normalize_url(raw.get("url"), title),
        citation_count=_normalize_citations(raw.get("citationCount")),
        banking_domain=coerce_enum(raw.get("bankingDomain"), BankingDomain, DEFAULT_BANKING_DOMAIN),
        ai_domain=coerce_enum(raw.get("aiDomain"), AIDomain, DEFAULT_AI_DOMAIN),
        methodology=coerce_enum(raw.get("methodology"), Methodology, DEFAULT_METHODOLOGY),
        tags=_normalize_tags(raw.get("tags")),
        is_favorite=False,
        collected_at=now.isoformat(),
    )


def sanitize_papers(candidates: Iterable[Any], now: Optional[datetime] = None) -> list[Paper]:
    """Normalize candidate records and drop the ones that fail validation.

    Args:
        candidates: Decoded model output, one mapping per paper
        now: Collection time (defaults to the current UTC time)

    Returns:
        Well-formed papers, in input order
    """
    if now is None:
        now = datetime.now(timezone.utc)
    papers = []
    for raw in candidates:
        paper = _sanitize_one(raw, now)
        if paper is not None:
            papers.append(paper)
    return papers
