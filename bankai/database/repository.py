"""Paper repository over the key-value store."""

import logging
from typing import Optional

from bankai.config import (
    DEFAULT_SOURCES,
    LAST_BATCH_KEY,
    PAPERS_KEY,
    SETTINGS_KEY,
    SOURCES_KEY,
    USER_KEY,
    LLMSettings,
)
from bankai.database.store import KeyValueStore
from bankai.models.paper import Paper, User

logger = logging.getLogger(__name__)


class PaperRepository:
    """Repository for papers, sources, settings and bookkeeping values.

    Every value is one JSON blob under a fixed key.  Writes are plain
    read-modify-write with no concurrency check; the catalogue has a
    single foreground user.
    """

    def __init__(self, store: KeyValueStore):
        """Initialize repository with a key-value store.

        Args:
            store: Backing store (SQLite on disk, or in-memory for tests)
        """
        self.store = store

    # ── Papers ────────────────────────────────────────────────────────

    def get_papers(self) -> list[Paper]:
        """Return all stored papers, newest first.

        A missing or corrupt blob yields an empty list.
        """
        raw = self.store.get_json(PAPERS_KEY, default=[])
        if not isinstance(raw, list):
            logger.error("Stored papers blob is not a list; ignoring it")
            return []
        return [Paper.from_dict(item) for item in raw if isinstance(item, dict)]

    def _write_papers(self, papers: list[Paper]) -> None:
        self.store.set_json(PAPERS_KEY, [p.to_dict() for p in papers])

    def save_paper(self, paper: Paper) -> bool:
        """Insert a paper unless it duplicates a stored one.

        A duplicate shares a case-insensitive title, or an identical
        non-empty URL, with any stored paper.

        Args:
            paper: Sanitized paper to insert

        Returns:
            True if the paper was inserted, False if it already existed
        """
        papers = self.get_papers()
        title = paper.title.lower()
        for existing in papers:
            if existing.title.lower() == title:
                return False
            if existing.url and paper.url and existing.url == paper.url:
                return False
        self._write_papers([paper, *papers])
        return True

    def find_by_id(self, paper_id: str) -> Optional[Paper]:
        """Find a single paper by ID.

        Args:
            paper_id: Paper ID to find

        Returns:
            Paper object if found, None otherwise
        """
        return next((p for p in self.get_papers() if p.id == paper_id), None)

    def toggle_favorite(self, paper_id: str) -> list[Paper]:
        """Flip the favorite flag of *paper_id* and return the updated list."""
        papers = self.get_papers()
        for paper in papers:
            if paper.id == paper_id:
                paper.is_favorite = not paper.is_favorite
        self._write_papers(papers)
        return papers

    def add_tag(self, paper_id: str, tag: str) -> list[Paper]:
        """Append *tag* to *paper_id* unless already present; return the updated list."""
        papers = self.get_papers()
        for paper in papers:
            if paper.id == paper_id and tag not in paper.tags:
                paper.tags.append(tag)
        self._write_papers(papers)
        return papers

    # ── User ──────────────────────────────────────────────────────────

    def get_user(self) -> Optional[User]:
        return User.from_dict(self.store.get_json(USER_KEY))

    def login(self, email: str) -> User:
        """Record *email* as the signed-in user (name = local part)."""
        user = User(email=email, name=email.split("@")[0])
        self.store.set_json(USER_KEY, user.to_dict())
        return user

    def logout(self) -> None:
        self.store.delete(USER_KEY)

    # ── Batch bookkeeping ─────────────────────────────────────────────

    def get_last_batch_run(self) -> int:
        """Return the last batch run as epoch milliseconds (0 if never run)."""
        raw = self.store.get(LAST_BATCH_KEY)
        if not raw:
            return 0
        try:
            return int(raw)
        except ValueError:
            return 0

    def set_last_batch_run(self, timestamp_ms: int) -> None:
        self.store.set(LAST_BATCH_KEY, str(int(timestamp_ms)))

    # ── Sources ───────────────────────────────────────────────────────

    def get_sources(self) -> list[str]:
        sources = self.store.get_json(SOURCES_KEY)
        if not isinstance(sources, list):
            return list(DEFAULT_SOURCES)
        return [str(s) for s in sources]

    def add_source(self, source: str) -> list[str]:
        """Add *source* if missing; return the (possibly unchanged) list."""
        sources = self.get_sources()
        if source in sources:
            return sources
        updated = [*sources, source]
        self.store.set_json(SOURCES_KEY, updated)
        return updated

    def remove_source(self, source: str) -> list[str]:
        updated = [s for s in self.get_sources() if s != source]
        self.store.set_json(SOURCES_KEY, updated)
        return updated

    # ── LLM settings ──────────────────────────────────────────────────

    def get_settings(self) -> LLMSettings:
        """Return stored LLM settings merged over the defaults."""
        return LLMSettings.from_dict(self.store.get_json(SETTINGS_KEY))

    def save_settings(self, settings: LLMSettings) -> None:
        self.store.set_json(SETTINGS_KEY, settings.to_dict())
