"""Command-line interface handlers."""

import argparse
import asyncio
import sys
import time
from typing import Optional

from rich.markup import escape

from bankai.config import PROVIDERS, Settings, save_config
from bankai.console import ConsoleUI, setup_logging
from bankai.database.repository import PaperRepository
from bankai.database.store import SQLiteStore
from bankai.errors import BankAIError
from bankai.models.paper import (
    AIDomain,
    BankingDomain,
    ChatMessage,
    CollectionStatus,
    DateRange,
    Paper,
    SearchCriteria,
    enum_values,
)
from bankai.services import stats_service
from bankai.services.batch_service import DailyBatchScheduler
from bankai.services.chat_service import ChatService
from bankai.services.collection_service import CollectionPipeline, CollectionRunner
from bankai.services.llm_client import build_chat_client, build_gemini_client


class BankAICLI:
    """CLI application for BankAI."""

    def __init__(self, settings: Optional[Settings] = None, repo: Optional[PaperRepository] = None):
        """Initialize CLI with settings.

        Args:
            settings: Application settings (loads from disk if not provided)
            repo: Repository override (defaults to the SQLite store in settings)
        """
        self.settings = settings or Settings.load()
        self.ui = ConsoleUI()
        self.repo = repo or PaperRepository(SQLiteStore(self.settings.db_path))

    def _pipeline(self) -> CollectionPipeline:
        llm_settings = self.repo.get_settings()
        return CollectionPipeline(
            client=build_gemini_client(self.settings),
            optimizer=build_chat_client(self.settings, llm_settings),
        )

    def _resolve(self, id_prefix: str) -> Optional[Paper]:
        """Find the paper whose ID starts with *id_prefix* (must be unique)."""
        matches = [p for p in self.repo.get_papers() if p.id.startswith(id_prefix)]
        if len(matches) == 1:
            return matches[0]
        if not matches:
            self.ui.error(f"No paper with ID {id_prefix}")
        else:
            self.ui.error(f"ID prefix {id_prefix} is ambiguous ({len(matches)} papers)")
        return None

    # ── Collection ────────────────────────────────────────────────────

    def cmd_collect(self, topic: str, date_range: str, optimize: bool = True) -> int:
        """Run the collection pipeline for *topic* and save the results."""
        criteria = SearchCriteria(
            topic=topic,
            sources=self.repo.get_sources(),
            date_range=DateRange(date_range),
            use_optimization=optimize,
        )
        runner = CollectionRunner(self._pipeline(), self.repo, on_progress=self.ui.progress)
        report = asyncio.run(runner.run(criteria))
        if report.status == CollectionStatus.ERROR:
            return 1
        return 0

    def cmd_batch(self, no_delay: bool = False) -> int:
        """Run the daily batch job if it is due."""
        scheduler = DailyBatchScheduler(
            self._pipeline(),
            self.repo,
            start_delay=0.0 if no_delay else self.settings.batch_start_delay,
        )
        if not scheduler.is_due():
            self.ui.info("Daily batch already ran in the last 24 hours.")
            return 0
        new_count = asyncio.run(scheduler.run())
        self.ui.batch_complete(new_count)
        return 0

    # ── Library ───────────────────────────────────────────────────────

    def cmd_list(self, domain: str = "All", search: str = "", favorites: bool = False, limit: int = 50) -> int:
        """List stored papers, optionally filtered."""
        papers = stats_service.filter_papers(self.repo.get_papers(), domain, search, favorites)
        self.ui.display_papers(papers[:limit], title="Favorites" if favorites else "Library")
        return 0

    def cmd_show(self, paper_id: str) -> int:
        paper = self._resolve(paper_id)
        if paper is None:
            return 1
        self.ui.info(f"[bold]{escape(paper.title)}[/bold]")
        self.ui.info(f"{', '.join(paper.authors)} · {paper.publication_date} · {paper.source} · {paper.citation_count} citations")
        self.ui.info(f"{paper.banking_domain.value} / {paper.ai_domain.value} / {paper.methodology.value}")
        self.ui.info(paper.url)
        self.ui.info("")
        self.ui.info(escape(paper.abstract))
        return 0

    def cmd_favorite(self, paper_id: str) -> int:
        """Toggle the favorite flag of a paper."""
        paper = self._resolve(paper_id)
        if paper is None:
            return 1
        self.repo.toggle_favorite(paper.id)
        state = "removed from" if paper.is_favorite else "added to"
        self.ui.success(f'"{paper.title}" {state} favorites')
        return 0

    def cmd_tag(self, paper_id: str, tag: str) -> int:
        """Attach a tag to a paper."""
        paper = self._resolve(paper_id)
        if paper is None:
            return 1
        tag = tag.strip()
        if not tag:
            self.ui.error("Tag must not be empty")
            return 1
        self.repo.add_tag(paper.id, tag)
        self.ui.success(f'Tagged "{paper.title}" with #{tag}')
        return 0

    def cmd_stats(self) -> int:
        """Print dashboard statistics."""
        papers = self.repo.get_papers()
        self.ui.info(
            f"Total papers: [bold]{len(papers)}[/bold]   "
            f"Favorites: [bold]{stats_service.favorite_count(papers)}[/bold]   "
            f"Collected this month: [bold]{stats_service.collected_this_month(papers)}[/bold]   "
            f"Avg citations: [bold]{stats_service.average_citations(papers)}[/bold]"
        )
        self.ui.display_counts("Banking Domain Distribution", stats_service.domain_counts(papers))
        self.ui.display_counts("AI Technology Focus", stats_service.ai_domain_counts(papers))
        self.ui.display_counts("Methodology Breakdown", stats_service.methodology_counts(papers))
        return 0

    # ── Chat ──────────────────────────────────────────────────────────

    def cmd_chat(self, message: Optional[str] = None) -> int:
        """Ask the research assistant; without *message* start a REPL."""
        service = ChatService(build_chat_client(self.settings, self.repo.get_settings()))
        papers = self.repo.get_papers()
        history: list[ChatMessage] = []

        def ask(text: str) -> None:
            reply = asyncio.run(service.query_corpus(history, text, papers))
            history.append(ChatMessage(role="user", text=text, timestamp=time.time()))
            history.append(ChatMessage(role="model", text=reply, timestamp=time.time()))
            self.ui.reply(reply)

        if message:
            ask(message)
            return 0

        self.ui.info("Ask about the repository (empty line or 'exit' to quit).")
        while True:
            try:
                text = input("You: ").strip()
            except EOFError:
                break
            if not text or text.lower() in {"exit", "quit"}:
                break
            ask(text)
        return 0

    # ── Sources / settings / user ─────────────────────────────────────

    def cmd_sources(self, action: str, name: Optional[str] = None) -> int:
        if action in {"add", "remove"} and not (name and name.strip()):
            self.ui.error(f"sources {action} needs a source name")
            return 1
        if action == "add":
            sources = self.repo.add_source(name.strip())
        elif action == "remove":
            sources = self.repo.remove_source(name.strip())
        else:
            sources = self.repo.get_sources()
        self.ui.display_list("Sources", sources)
        return 0

    def cmd_settings(
        self,
        action: str,
        provider: Optional[str] = None,
        groq_key: Optional[str] = None,
        groq_model: Optional[str] = None,
        gemini_model: Optional[str] = None,
    ) -> int:
        llm = self.repo.get_settings()
        if action == "set":
            if provider:
                llm.provider = provider
            if groq_key is not None:
                llm.groq_api_key = groq_key or None
            if groq_model:
                llm.groq_model = groq_model
            self.repo.save_settings(llm)
            if gemini_model:
                self.settings.update(gemini_model=gemini_model)
                save_config(self.settings.metadata_dir / "config.yaml", self.settings)
            self.ui.success("Configuration saved successfully.")

        masked = "set" if llm.groq_api_key else "not set"
        self.ui.display_list(
            "LLM settings",
            [
                f"provider: {llm.provider}",
                f"gemini model: {self.settings.gemini_model} (key {'set' if self.settings.gemini_api_key else 'not set'})",
                f"groq model: {llm.groq_model} (key {masked})",
            ],
        )
        return 0

    def cmd_login(self, email: str) -> int:
        if "@" not in email:
            self.ui.error("Please enter a valid email address")
            return 1
        user = self.repo.login(email)
        self.ui.success(f"Signed in as {user.name}")
        return 0

    def cmd_logout(self) -> int:
        self.repo.logout()
        self.ui.success("Signed out")
        return 0

    def cmd_whoami(self) -> int:
        user = self.repo.get_user()
        self.ui.info(f"{user.name} <{user.email}>" if user else "Not signed in")
        return 0


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI.

    Returns:
        Configured ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog="bankai",
        description="Banking AI research catalogue: LLM search → classify → local store",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    # collect command
    collect_parser = subparsers.add_parser("collect", help="Search, classify and store papers for a topic")
    collect_parser.add_argument("topic", help="Research topic, e.g. 'Generative AI in Fraud Detection'")
    collect_parser.add_argument(
        "--range",
        dest="date_range",
        default=DateRange.PAST_YEAR.value,
        choices=enum_values(DateRange),
        help="Date horizon (default: Past Year)",
    )
    collect_parser.add_argument(
        "--no-optimize",
        action="store_true",
        help="Skip LLM query optimization",
    )

    # batch command
    batch_parser = subparsers.add_parser("batch", help="Run the daily auto-collection if due")
    batch_parser.add_argument("--no-delay", action="store_true", help="Skip the startup delay")

    # list command
    list_parser = subparsers.add_parser("list", help="List stored papers")
    list_parser.add_argument(
        "--filter",
        dest="domain",
        default="All",
        choices=["All", *enum_values(BankingDomain), *enum_values(AIDomain)],
        help="Banking or AI domain to filter by (default: All)",
    )
    list_parser.add_argument("--search", default="", help="Substring of title or abstract")
    list_parser.add_argument("--favorites", action="store_true", help="Only favorite papers")
    list_parser.add_argument("--limit", type=int, default=50, help="Maximum papers to display (default: 50)")

    show_parser = subparsers.add_parser("show", help="Show one paper in full")
    show_parser.add_argument("id", help="Paper ID (or unique prefix)")

    fav_parser = subparsers.add_parser("favorite", help="Toggle a paper's favorite flag")
    fav_parser.add_argument("id", help="Paper ID (or unique prefix)")

    tag_parser = subparsers.add_parser("tag", help="Add a tag to a paper")
    tag_parser.add_argument("id", help="Paper ID (or unique prefix)")
    tag_parser.add_argument("tag", help="Tag text")

    subparsers.add_parser("stats", help="Show corpus statistics")

    chat_parser = subparsers.add_parser("chat", help="Ask the research assistant about the corpus")
    chat_parser.add_argument("message", nargs="?", help="Question (omit for interactive mode)")

    sources_parser = subparsers.add_parser("sources", help="Manage preferred sources")
    sources_parser.add_argument("action", nargs="?", default="list", choices=["list", "add", "remove"])
    sources_parser.add_argument("name", nargs="?", help="Source name for add/remove")

    settings_parser = subparsers.add_parser("settings", help="Show or change LLM provider settings")
    settings_parser.add_argument("action", nargs="?", default="show", choices=["show", "set"])
    settings_parser.add_argument("--provider", choices=list(PROVIDERS))
    settings_parser.add_argument("--groq-key", help="Groq API key (empty string clears it)")
    settings_parser.add_argument("--groq-model", help="Groq model id, e.g. llama3-70b-8192")
    settings_parser.add_argument("--gemini-model", help="Gemini model id")

    login_parser = subparsers.add_parser("login", help="Sign in with an email address")
    login_parser.add_argument("email")
    subparsers.add_parser("logout", help="Sign out")
    subparsers.add_parser("whoami", help="Show the signed-in user")

    return parser


def run_cli(argv: Optional[list[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    settings = Settings.load()
    setup_logging("DEBUG" if args.verbose else (settings.log_level or "WARNING"))
    cli = BankAICLI(settings)

    try:
        return _dispatch(cli, parser, args)
    except BankAIError as e:
        cli.ui.error(str(e))
        return 1
    except KeyboardInterrupt:
        cli.ui.warning("Interrupted")
        return 130


def _dispatch(cli: BankAICLI, parser: argparse.ArgumentParser, args: argparse.Namespace) -> int:
    if args.command == "collect":
        return cli.cmd_collect(args.topic, args.date_range, optimize=not args.no_optimize)
    if args.command == "batch":
        return cli.cmd_batch(no_delay=args.no_delay)
    if args.command == "list":
        return cli.cmd_list(args.domain, args.search, args.favorites, args.limit)
    if args.command == "show":
        return cli.cmd_show(args.id)
    if args.command == "favorite":
        return cli.cmd_favorite(args.id)
    if args.command == "tag":
        return cli.cmd_tag(args.id, args.tag)
    if args.command == "stats":
        return cli.cmd_stats()
    if args.command == "chat":
        return cli.cmd_chat(args.message)
    if args.command == "sources":
        return cli.cmd_sources(args.action, args.name)
    if args.command == "settings":
        return cli.cmd_settings(
            args.action,
            provider=args.provider,
            groq_key=args.groq_key,
            groq_model=args.groq_model,
            gemini_model=args.gemini_model,
        )
    if args.command == "login":
        return cli.cmd_login(args.email)
    if args.command == "logout":
        return cli.cmd_logout()
    if args.command == "whoami":
        return cli.cmd_whoami()
    parser.error(f"Unknown command: {args.command}")
    return 2


def main() -> None:
    sys.exit(run_cli())
