"""Console UI for terminal output using Rich."""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from bankai.models.paper import CollectionStatus, Paper

_STATUS_STYLE = {
    CollectionStatus.OPTIMIZING: "magenta",
    CollectionStatus.SEARCHING: "blue",
    CollectionStatus.SAVING: "cyan",
    CollectionStatus.COMPLETED: "green",
    CollectionStatus.ERROR: "red",
}


def setup_logging(level: str = "WARNING", console: Optional[Console] = None) -> None:
    """Route the ``bankai`` logger through a Rich handler."""
    logger = logging.getLogger("bankai")
    logger.handlers.clear()
    logger.addHandler(RichHandler(console=console or Console(stderr=True), show_path=False))
    logger.setLevel(level.upper())
    logger.propagate = False


class ConsoleUI:
    """Rich-based console UI for paper display and notifications."""

    def __init__(self, console: Optional[Console] = None):
        """Initialize console."""
        self.console = console or Console()

    def info(self, message: str) -> None:
        """Print an info message."""
        self.console.print(message)

    def success(self, message: str) -> None:
        """Print a success message in green."""
        self.console.print(f"[green]{message}[/green]")

    def warning(self, message: str) -> None:
        """Print a warning message in yellow."""
        self.console.print(f"[yellow]Warning:[/yellow] {message}")

    def error(self, message: str) -> None:
        """Print an error message in red."""
        self.console.print(f"[red]Error:[/red] {message}")

    def progress(self, status: CollectionStatus, message: str) -> None:
        """Print one collection log line tagged with the run status."""
        style = _STATUS_STYLE.get(status, "white")
        self.console.print(f"[{style}]{status.value:>10}[/{style}]  {escape(message)}", highlight=False)

    def batch_complete(self, new_count: int) -> None:
        if new_count > 0:
            self.console.print(
                f"[green]Daily Auto-Collection:[/green] Added [bold]{new_count}[/bold] new research papers to your repository."
            )
        else:
            self.console.print("Daily Auto-Collection: nothing new (or not due yet).")

    def display_papers(self, papers: list[Paper], title: str = "Library") -> None:
        """Display papers in a formatted table.

        Args:
            papers: List of papers to display
            title: Table caption
        """
        table = Table(title=f"{title} ({len(papers)})")
        table.add_column("ID", no_wrap=True, min_width=8)
        table.add_column("★", width=1)
        table.add_column("Date", width=10)
        table.add_column("Title", overflow="fold")
        table.add_column("Banking", overflow="fold")
        table.add_column("AI", overflow="fold")
        table.add_column("Cites", justify="right")
        table.add_column("Tags", overflow="fold")

        for paper in papers:
            table.add_row(
                paper.id[:8],
                "★" if paper.is_favorite else "",
                paper.publication_date or "-",
                paper.title,
                paper.banking_domain.value,
                paper.ai_domain.value,
                str(paper.citation_count),
                ", ".join(paper.tags) or "-",
            )

        self.console.print(table)
        if not papers:
            self.console.print("No papers found.")

    def display_counts(self, title: str, rows: list[tuple[str, int]]) -> None:
        table = Table(title=title)
        table.add_column("Category")
        table.add_column("Papers", justify="right")
        for name, count in rows:
            table.add_row(name, str(count))
        self.console.print(table)

    def display_list(self, title: str, items: list[str]) -> None:
        self.console.print(f"[bold]{title}[/bold]")
        for item in items:
            self.console.print(f"  • {item}")

    def reply(self, text: str) -> None:
        """Print an assistant reply."""
        self.console.print(f"[bold cyan]Assistant:[/bold cyan] {escape(text)}")
