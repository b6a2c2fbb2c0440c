from datetime import datetime, timedelta, timezone

from bankai.models.paper import AIDomain, BankingDomain, Methodology
from bankai.services.sanitizer import (
    DEFAULT_ABSTRACT,
    DEFAULT_SOURCE,
    UNKNOWN_AUTHOR,
    sanitize_papers,
)

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


def _record(**overrides):
    record = {
        "title": "Large Language Models for AML Alert Triage",
        "abstract": "We study LLM triage of AML alerts.",
        "authors": ["A. Author", "B. Author"],
        "publicationDate": "2025-03-01",
        "url": "https://arxiv.org/abs/2503.00001",
        "source": "ArXiv",
        "bankingDomain": "AML Compliance & Control",
        "aiDomain": "RAG Systems",
        "methodology": "Case Study",
    }
    record.update(overrides)
    return record


def test_comma_joined_authors_are_split():
    [paper] = sanitize_papers([_record(authors="A, B")], now=NOW)
    assert paper.authors == ["A", "B"]


def test_missing_authors_become_unknown():
    [paper] = sanitize_papers([_record(authors=None)], now=NOW)
    assert paper.authors == [UNKNOWN_AUTHOR]


def test_out_of_vocabulary_labels_use_designated_defaults():
    [paper] = sanitize_papers(
        [_record(bankingDomain="Retail", aiDomain="Deep Learning", methodology="Essay")], now=NOW
    )
    assert paper.banking_domain is BankingDomain.GENERAL_BANKING
    assert paper.ai_domain is AIDomain.PREDICTIVE_ANALYTICS
    assert paper.methodology is Methodology.THEORETICAL


def test_valid_labels_are_kept():
    [paper] = sanitize_papers([_record()], now=NOW)
    assert paper.banking_domain is BankingDomain.AML_COMPLIANCE
    assert paper.ai_domain is AIDomain.RAG
    assert paper.methodology is Methodology.CASE_STUDY


def test_short_placeholder_and_missing_titles_are_dropped():
    candidates = [
        _record(title="LLMs"),
        _record(title="Untitled Research"),
        _record(title=None),
        _record(title="   "),
        _record(title="**Agentic KYC Pipelines**"),
    ]
    papers = sanitize_papers(candidates, now=NOW)
    assert [p.title for p in papers] == ["Agentic KYC Pipelines"]


def test_future_dates_beyond_one_day_are_dropped():
    tomorrow_noon = (NOW + timedelta(hours=12)).date().isoformat()
    next_week = (NOW + timedelta(days=7)).date().isoformat()
    papers = sanitize_papers(
        [_record(title="Paper due tomorrow", publicationDate=tomorrow_noon),
         _record(title="Paper due next week", publicationDate=next_week)],
        now=NOW,
    )
    assert [p.title for p in papers] == ["Paper due tomorrow"]


def test_missing_fields_get_defaults():
    [paper] = sanitize_papers(
        [{"title": "Predicting Loan Default with Transformers"}], now=NOW
    )
    assert paper.publication_date == "2025-06-15"
    assert paper.abstract == DEFAULT_ABSTRACT
    assert paper.source == DEFAULT_SOURCE
    assert paper.url.startswith("https://scholar.google.com/scholar?q=Predicting%20Loan")
    assert paper.tags == []
    assert paper.is_favorite is False
    assert paper.citation_count == 0
    assert paper.collected_at == NOW.isoformat()


def test_non_http_url_is_replaced_and_ids_are_unique():
    papers = sanitize_papers(
        [_record(title="First fraud paper", url="doi:10.1/abc"), _record(title="Second fraud paper")],
        now=NOW,
    )
    assert papers[0].url.startswith("https://scholar.google.com/")
    assert papers[1].url == "https://arxiv.org/abs/2503.00001"
    assert papers[0].id != papers[1].id


def test_non_mapping_candidates_are_ignored():
    assert sanitize_papers(["not a paper", 42, None], now=NOW) == []


def test_partial_dates_default_to_first_of_period():
    papers = sanitize_papers(
        [_record(title="A current-month banking paper", publicationDate="2025-06"),
         _record(title="A current-year banking paper", publicationDate="2025")],
        now=NOW,
    )
    assert [p.publication_date for p in papers] == ["2025-06", "2025"]


def test_partial_date_of_next_month_is_still_future():
    papers = sanitize_papers([_record(title="Next month banking paper", publicationDate="2025-07")], now=NOW)
    assert papers == []


def test_author_lists_are_trimmed_and_blanks_dropped():
    [paper] = sanitize_papers([_record(authors=["  A ", ""])], now=NOW)
    assert paper.authors == ["A"]


def test_single_author_string_becomes_one_item_list():
    [paper] = sanitize_papers([_record(authors=" Jane Doe ")], now=NOW)
    assert paper.authors == ["Jane Doe"]


def test_tag_lists_pass_through():
    [paper] = sanitize_papers([_record(tags=["aml", " kyc ", "aml"])], now=NOW)
    assert paper.tags == ["aml", "kyc"]


def test_url_with_surrounding_whitespace_is_kept():
    [paper] = sanitize_papers([_record(url="  https://arxiv.org/abs/2501.00002 ")], now=NOW)
    assert paper.url == "https://arxiv.org/abs/2501.00002"


def test_comparisons_in_abstract_survive():
    [paper] = sanitize_papers([_record(abstract="We show latency x<y and y>z for all queues.")], now=NOW)
    assert paper.abstract == "We show latency x<y and y>z for all queues."
