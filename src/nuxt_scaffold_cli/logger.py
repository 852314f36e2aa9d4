"""Console logging for the scaffolder.

A ``ScaffoldLogger`` is created once by the CLI and handed to everything that
reports progress. Nothing in the core reaches for a global console.
"""

from rich.console import Console
from rich.markup import escape


class ScaffoldLogger:
    """Thin rich-markup logger with the scaffolder's message kinds."""

    def __init__(self, console: Console | None = None, quiet: bool = False):
        self.console = console or Console()
        self.quiet = quiet

    def _emit(self, line: str, always: bool = False):
        if self.quiet and not always:
            return
        self.console.print(line, highlight=False)

    def info(self, message: str):
        self._emit(f"[blue]ℹ[/blue] {escape(message)}")

    def success(self, message: str):
        self._emit(f"[green]✓[/green] {escape(message)}")

    def warn(self, message: str):
        self._emit(f"[yellow]⚠[/yellow] {escape(message)}", always=True)

    def error(self, message: str):
        self._emit(f"[red]✗[/red] {escape(message)}", always=True)

    def step(self, message: str):
        self._emit(f"[cyan]→[/cyan] {escape(message)}")

    def title(self, message: str):
        self._emit(f"\n[bold magenta]{escape(message)}[/bold magenta]\n")

    def dim(self, message: str):
        self._emit(f"[dim]{escape(message)}[/dim]")

    def command(self, command: str):
        self._emit(f"[bright_black]  $ {escape(command)}[/bright_black]")
