"""Corpus statistics and library filtering."""

from collections import Counter
from datetime import date
from typing import Optional

from bankai.models.paper import AIDomain, BankingDomain, Methodology, Paper

ALL = "All"


def domain_counts(papers: list[Paper]) -> list[tuple[str, int]]:
    """Non-zero paper counts per banking domain, in vocabulary order."""
    counts = Counter(p.banking_domain for p in papers)
    return [(d.value, counts[d]) for d in BankingDomain if counts[d] > 0]


def methodology_counts(papers: list[Paper]) -> list[tuple[str, int]]:
    """Non-zero paper counts per methodology, in vocabulary order."""
    counts = Counter(p.methodology for p in papers)
    return [(m.value, counts[m]) for m in Methodology if counts[m] > 0]


def ai_domain_counts(papers: list[Paper]) -> list[tuple[str, int]]:
    """Paper counts per AI domain (zeros included), most frequent first."""
    counts = Counter(p.ai_domain for p in papers)
    rows = [(d.value, counts[d]) for d in AIDomain]
    rows.sort(key=lambda row: row[1], reverse=True)
    return rows


def favorite_count(papers: list[Paper]) -> int:
    return sum(1 for p in papers if p.is_favorite)


def average_citations(papers: list[Paper]) -> int:
    """Mean citation count rounded down; 0 for an empty corpus."""
    if not papers:
        return 0
    return sum(p.citation_count for p in papers) // len(papers)


def collected_this_month(papers: list[Paper], today: Optional[date] = None) -> int:
    """Count papers whose ``collected_at`` falls in the current calendar month."""
    today = today or date.today()
    prefix = f"{today.year:04d}-{today.month:02d}"
    return sum(1 for p in papers if p.collected_at.startswith(prefix))


def filter_papers(
    papers: list[Paper],
    domain: str = ALL,
    search: str = "",
    favorites_only: bool = False,
) -> list[Paper]:
    """Filter papers by domain label and free-text search.

    Args:
        papers: List of papers to filter
        domain: 'All', or a banking/AI domain label to match exactly
        search: Case-insensitive substring of title or abstract
        favorites_only: Keep favorite papers only

    Returns:
        Filtered list of papers
    """
    needle = search.lower()

    def matches(paper: Paper) -> bool:
        if favorites_only and not paper.is_favorite:
            return False
        if needle and needle not in paper.title.lower() and needle not in paper.abstract.lower():
            return False
        if domain != ALL and domain not in (paper.banking_domain.value, paper.ai_domain.value):
            return False
        return True

    return [p for p in papers if matches(p)]
