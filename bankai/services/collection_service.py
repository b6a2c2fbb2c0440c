"""LLM-backed paper collection pipeline.

One collection turns a topic into classified papers in at most two
remote calls:

  1) Optional query optimization (never retried; echoes the topic
     on any failure so the quota is kept for the main call).
  2) Web-search-and-classify call, retried on rate limits, whose reply
     must carry a JSON array inside a fenced code block.
  3) If that call fails for a non-quota reason, or its reply holds no
     JSON array, one knowledge-base call asks the model to recall real
     papers from training data instead.

Quota errors are never papered over with fallback or synthetic data.
The pipeline does not persist anything; :class:`CollectionRunner` is
the caller that saves results and drives the status flag.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Awaitable, Callable, Optional

from dateutil.relativedelta import relativedelta

from bankai.database.repository import PaperRepository
from bankai.errors import CollectionError, ConfigurationError, QuotaExceededError
from bankai.models.paper import (
    AIDomain,
    BankingDomain,
    CollectionStatus,
    DateRange,
    Methodology,
    Paper,
    SearchCriteria,
    enum_values,
)
from bankai.services.llm_client import LLMClient
from bankai.services.retry import is_quota_error, retry_operation
from bankai.services.sanitizer import sanitize_papers
from bankai.utils.text import extract_json_array

logger = logging.getLogger(__name__)

SEARCH_RETRIES = 2
SEARCH_BACKOFF = 20.0
FALLBACK_RETRIES = 1
FALLBACK_BACKOFF = 5.0
DEFAULT_FALLBACK_AFTER = "2023-01-01"
NO_PAPERS_MESSAGE = "No papers found matching criteria."

OPTIMIZE_PROMPT = (
    'Refine into boolean search query for Google Scholar. Topic: "{topic}", '
    'Date: "{date_range}". Return ONLY query.'
)

SEARCH_PROMPT = """
Perform an exhaustive Google Search to find ACTUAL research papers: "{query}".

CONSTRAINTS:
1. {sources}
2. {dates}
3. Focus on Banking/Financial Services.

CRITICAL:
- Find 5-10 high quality papers.
- CLASSIFY THEM IMMEDIATELY based on these options (Pick the best fit):
  - bankingDomain: {banking}
  - aiDomain: {ai}
  - methodology: {methodology}

Return VALID JSON ARRAY inside markdown code block.
Fields: title, abstract, authors (array), publicationDate (YYYY-MM-DD), url, source, bankingDomain, aiDomain, methodology.
"""

KNOWLEDGE_BASE_PROMPT = """
You are a Banking AI Research Assistant.
The user wants research papers on: "{query}".

Task: List at least 5-8 REAL, EXISTING research papers from your training data.

Constraints:
1. Published roughly after {after}.
2. Must relate to Banking/Finance.
3. CLASSIFY THEM IMMEDIATELY based on the options below.

Options for 'bankingDomain': {banking}
Options for 'aiDomain': {ai}
Options for 'methodology': {methodology}

Return JSON Array with: title, abstract, authors (array), publicationDate (YYYY-MM-DD), url, source, bankingDomain, aiDomain, methodology.
"""


def _classification_options() -> dict[str, str]:
    return {
        "banking": ", ".join(enum_values(BankingDomain)),
        "ai": ", ".join(enum_values(AIDomain)),
        "methodology": ", ".join(enum_values(Methodology)),
    }


def after_date_for(date_range: DateRange, today: Optional[date] = None) -> Optional[str]:
    """Translate a date horizon into an ISO "published after" date."""
    today = today or date.today()
    offsets = {
        DateRange.PAST_MONTH: relativedelta(months=1),
        DateRange.PAST_YEAR: relativedelta(years=1),
        DateRange.PAST_3_YEARS: relativedelta(years=3),
    }
    offset = offsets.get(date_range)
    return (today - offset).isoformat() if offset else None


class CollectionPipeline:
    """Search, classify and sanitize papers through an injected LLM client."""

    def __init__(
        self,
        client: Optional[LLMClient],
        optimizer: Optional[LLMClient] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        """Initialize the pipeline.

        Args:
            client: Web-search capable client for collection (None if unconfigured)
            optimizer: Client for query refinement (defaults to *client*)
            sleep: Backoff sleep override for the retry wrapper
        """
        self.client = client
        self.optimizer = optimizer or client
        self._retry_kwargs = {"sleep": sleep} if sleep is not None else {}

    async def optimize_query(self, topic: str, date_range: str) -> str:
        """Ask the model for a refined boolean query; echo *topic* on failure."""
        if self.optimizer is None:
            return topic
        prompt = OPTIMIZE_PROMPT.format(topic=topic, date_range=date_range)
        try:
            refined = await self.optimizer.generate(prompt)
        except Exception as e:
            logger.warning("Optimization skipped to conserve quota or due to error: %s", e)
            return topic
        return refined.strip() or topic

    async def collect_papers(
        self,
        query: str,
        sources: Optional[list[str]] = None,
        after_date: Optional[str] = None,
    ) -> list[Paper]:
        """Collect classified papers for *query*.

        Args:
            query: Search topic (optimized or raw)
            sources: Preferred source labels
            after_date: ISO date papers must be published after

        Returns:
            Sanitized papers; empty when nothing usable was found

        Raises:
            ConfigurationError: No client is configured
            QuotaExceededError: The provider quota is exhausted
            CollectionError: Search failed and the fallback failed too
        """
        if self.client is None:
            raise ConfigurationError("API Key not configured.")

        sources = sources or []
        prompt = SEARCH_PROMPT.format(
            query=query,
            sources=(
                f"Sources: {', '.join(sources)}"
                if sources
                else "Sources: Reputable Technical Journals/ArXiv"
            ),
            dates=f"Published strictly AFTER: {after_date}" if after_date else "Recent publications",
            **_classification_options(),
        )

        try:
            text = await retry_operation(
                lambda: self.client.generate(prompt, web_search=True),
                retries=SEARCH_RETRIES,
                initial_delay=SEARCH_BACKOFF,
                **self._retry_kwargs,
            )
            if not text:
                raise CollectionError("Empty response from AI model")
        except Exception as e:
            if is_quota_error(e):
                logger.error("Provider quota exceeded. Stopping collection.")
                raise QuotaExceededError() from e
            logger.warning("Collection error: %s", e)
            return await self._fallback_or_raise(query, after_date, e)

        raw = extract_json_array(text)
        if raw is None:
            logger.warning("JSON parsing failed for the search result")
            return await self._fallback_or_raise(
                query, after_date, CollectionError("Search reply contained no JSON array")
            )
        return sanitize_papers(raw)

    async def _fallback_or_raise(
        self, query: str, after_date: Optional[str], original: Exception
    ) -> list[Paper]:
        try:
            return await self.collect_from_knowledge_base(query, after_date)
        except QuotaExceededError:
            raise
        except Exception as e:
            logger.warning("Knowledge base fallback failed: %s", e)
            raise CollectionError(str(original)) from original

    async def collect_from_knowledge_base(self, query: str, after_date: Optional[str] = None) -> list[Paper]:
        """Recall real papers from model training data (no web search).

        Raises:
            QuotaExceededError: The provider quota is exhausted
            CollectionError: The call failed or its reply was not a JSON array
        """
        logger.info("Attempting knowledge base retrieval (fallback)")
        prompt = KNOWLEDGE_BASE_PROMPT.format(
            query=query,
            after=after_date or DEFAULT_FALLBACK_AFTER,
            **_classification_options(),
        )
        try:
            text = await retry_operation(
                lambda: self.client.generate(prompt, json_output=True),
                retries=FALLBACK_RETRIES,
                initial_delay=FALLBACK_BACKOFF,
                **self._retry_kwargs,
            )
        except Exception as e:
            if is_quota_error(e):
                raise QuotaExceededError() from e
            raise
        if not text:
            return []
        raw = extract_json_array(text)
        if raw is None:
            raise CollectionError("Knowledge base reply contained no JSON array")
        return sanitize_papers(raw)


# ---------------------------------------------------------------------------
# Interactive collection run
# ---------------------------------------------------------------------------

@dataclass
class CollectionReport:
    """Outcome of one interactive collection run."""

    status: CollectionStatus = CollectionStatus.IDLE
    query: str = ""
    found: int = 0
    saved: int = 0
    skipped: int = 0
    error: Optional[str] = None
    logs: list[str] = field(default_factory=list)


ProgressCallback = Callable[[CollectionStatus, str], None]


class CollectionRunner:
    """Caller side of the pipeline: status flag, persistence and tallies."""

    def __init__(
        self,
        pipeline: CollectionPipeline,
        repo: PaperRepository,
        on_progress: Optional[ProgressCallback] = None,
    ):
        self.pipeline = pipeline
        self.repo = repo
        self.on_progress = on_progress

    def _emit(self, report: CollectionReport, message: str, status: Optional[CollectionStatus] = None) -> None:
        if status is not None:
            report.status = status
        report.logs.append(message)
        logger.debug(message)
        if self.on_progress:
            self.on_progress(report.status, message)

    async def run(self, criteria: SearchCriteria, today: Optional[date] = None) -> CollectionReport:
        """Optimize, collect and save papers for *criteria*.

        Collection failures end in ``error`` status with the message in
        the report; they are not raised.
        """
        report = CollectionReport()
        topic = criteria.topic.strip()
        if not topic:
            return report

        self._emit(report, "Initiating collection pipeline...", CollectionStatus.OPTIMIZING)
        query = topic
        if criteria.use_optimization:
            self._emit(report, "Agent: Optimizing search query with LLM...")
            query = await self.pipeline.optimize_query(topic, criteria.date_range.value)
            self._emit(report, f'Agent: Optimized query -> "{query}"')
        report.query = query

        sources = criteria.sources or self.repo.get_sources()
        where = f"{len(sources)} Sources" if sources else "Web"
        self._emit(report, f"Agent: Searching {where} & Classifying...", CollectionStatus.SEARCHING)

        try:
            papers = await self.pipeline.collect_papers(
                query, sources, after_date_for(criteria.date_range, today)
            )
        except (QuotaExceededError, CollectionError, ConfigurationError) as e:
            report.error = str(e)
            self._emit(report, f"CRITICAL ERROR: {e}", CollectionStatus.ERROR)
            return report

        if not papers:
            report.error = NO_PAPERS_MESSAGE
            self._emit(report, f"Agent: {NO_PAPERS_MESSAGE}", CollectionStatus.ERROR)
            return report

        report.found = len(papers)
        self._emit(report, f"Agent: Retrieved and Classified {len(papers)} candidates.", CollectionStatus.SAVING)
        for paper in papers:
            if self.repo.save_paper(paper):
                report.saved += 1
                self._emit(report, f'Saved: "{paper.title}" [{paper.banking_domain.value}]')
            else:
                report.skipped += 1
                self._emit(report, f'Skipped Duplicate: "{paper.title}"')

        if report.saved == 0:
            self._emit(report, "Warning: All papers were duplicates.", CollectionStatus.COMPLETED)
        else:
            self._emit(
                report,
                f"Success! Added {report.saved} new papers to the repository.",
                CollectionStatus.COMPLETED,
            )
        return report
