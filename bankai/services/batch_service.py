"""Daily background collection, gated to one run per 24 hours."""

import asyncio
import logging
import random
import time
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

from dateutil.relativedelta import relativedelta

from bankai.database.repository import PaperRepository
from bankai.models.paper import BankingDomain
from bankai.services.collection_service import CollectionPipeline
from bankai.services.retry import is_quota_error

logger = logging.getLogger(__name__)

ONE_DAY_MS = 24 * 60 * 60 * 1000
START_DELAY = 20.0
DOMAINS_PER_RUN = 1
BATCH_QUERY = "Latest technical research in {domain} using Generative AI and LLMs"


class DailyBatchScheduler:
    """Re-runs the collection pipeline for one random banking domain a day.

    The run never raises: quota errors stop it early and every other
    failure is logged.  The last-run timestamp is committed either way.
    """

    def __init__(
        self,
        pipeline: CollectionPipeline,
        repo: PaperRepository,
        start_delay: float = START_DELAY,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize the scheduler.

        Args:
            pipeline: Collection pipeline to invoke
            repo: Repository for sources, saving and the last-run timestamp
            start_delay: Seconds to wait before the first request, so the
                batch does not compete with interactive use at startup
            rng: Random source for the domain pick
            clock: Returns the current time in epoch seconds
            sleep: Awaitable sleep
        """
        self.pipeline = pipeline
        self.repo = repo
        self.start_delay = start_delay
        self.rng = rng or random.Random()
        self.clock = clock
        self.sleep = sleep

    def is_due(self, now_ms: Optional[int] = None) -> bool:
        """True when the last run is unset or at least 24 hours old."""
        if now_ms is None:
            now_ms = int(self.clock() * 1000)
        last_run = self.repo.get_last_batch_run()
        return last_run == 0 or now_ms - last_run >= ONE_DAY_MS

    def _after_date(self, last_run_ms: int, now_ms: int) -> str:
        if last_run_ms > 0:
            moment = datetime.fromtimestamp(last_run_ms / 1000, tz=timezone.utc)
        else:
            moment = datetime.fromtimestamp(now_ms / 1000, tz=timezone.utc) - relativedelta(months=1)
        return moment.date().isoformat()

    async def run(self) -> int:
        """Run the batch if due.

        Returns:
            Number of newly saved papers (0 when not due)
        """
        now_ms = int(self.clock() * 1000)
        last_run = self.repo.get_last_batch_run()
        if not self.is_due(now_ms):
            return 0

        total_new = 0
        try:
            await self.sleep(self.start_delay)
            logger.info("Starting daily batch job")

            after_date = self._after_date(last_run, now_ms)
            domains = self.rng.sample(list(BankingDomain), DOMAINS_PER_RUN)
            sources = self.repo.get_sources()

            for domain in domains:
                query = BATCH_QUERY.format(domain=domain.value)
                try:
                    papers = await self.pipeline.collect_papers(query, sources, after_date)
                except Exception as e:
                    if is_quota_error(e):
                        logger.warning("Batch job stopped due to quota.")
                        break
                    logger.warning("Batch collection for %s failed: %s", domain.value, e)
                    continue
                for paper in papers:
                    if self.repo.save_paper(paper):
                        total_new += 1
                if papers:
                    break
        except Exception:
            logger.exception("Daily batch job failed")

        try:
            self.repo.set_last_batch_run(now_ms)
        except Exception:
            logger.exception("Could not record the batch run time")

        logger.info("Daily batch job completed. Added %d papers.", total_new)
        return total_new
