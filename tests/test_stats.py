from datetime import date

from bankai.models.paper import AIDomain, BankingDomain, Methodology, Paper
from bankai.services import stats_service


def _paper(pid, banking, ai, methodology=Methodology.EMPIRICAL, favorite=False, collected="2025-06-02T10:00:00+00:00", title=None):
    return Paper(
        id=pid,
        title=title or f"Paper {pid}",
        abstract="Fraud signals in card payments",
        authors=["A"],
        publication_date="2025-01-01",
        source="ArXiv",
        url="",
        banking_domain=banking,
        ai_domain=ai,
        methodology=methodology,
        is_favorite=favorite,
        collected_at=collected,
    )


PAPERS = [
    _paper("1", BankingDomain.FRAUD_DETECTION, AIDomain.RAG, favorite=True),
    _paper("2", BankingDomain.FRAUD_DETECTION, AIDomain.RAG, Methodology.SURVEY),
    _paper("3", BankingDomain.AML_COMPLIANCE, AIDomain.RLHF, collected="2025-05-30T10:00:00+00:00", title="KYC agents"),
]


def test_domain_counts_skip_zero_and_keep_order():
    assert stats_service.domain_counts(PAPERS) == [
        ("Fraud Detection", 2),
        ("AML Compliance & Control", 1),
    ]


def test_ai_domain_counts_sorted_descending_with_zeros():
    rows = stats_service.ai_domain_counts(PAPERS)
    assert rows[0] == ("RAG Systems", 2)
    assert rows[1] == ("RLHF", 1)
    assert len(rows) == len(AIDomain)
    assert rows[-1][1] == 0


def test_methodology_counts():
    assert stats_service.methodology_counts(PAPERS) == [("Empirical Study", 2), ("Survey/Review", 1)]


def test_average_citations_rounds_down():
    cited = [
        _paper("a", BankingDomain.FRAUD_DETECTION, AIDomain.RAG),
        _paper("b", BankingDomain.FRAUD_DETECTION, AIDomain.RAG),
    ]
    cited[0].citation_count = 4
    cited[1].citation_count = 1
    assert stats_service.average_citations(cited) == 2
    assert stats_service.average_citations(PAPERS) == 0
    assert stats_service.average_citations([]) == 0


def test_favorites_and_this_month():
    assert stats_service.favorite_count(PAPERS) == 1
    assert stats_service.collected_this_month(PAPERS, today=date(2025, 6, 20)) == 2


def test_filter_papers():
    assert [p.id for p in stats_service.filter_papers(PAPERS, domain="RLHF")] == ["3"]
    assert [p.id for p in stats_service.filter_papers(PAPERS, domain="Fraud Detection")] == ["1", "2"]
    assert [p.id for p in stats_service.filter_papers(PAPERS, search="kyc")] == ["3"]
    assert [p.id for p in stats_service.filter_papers(PAPERS, favorites_only=True)] == ["1"]
    assert len(stats_service.filter_papers(PAPERS)) == 3
