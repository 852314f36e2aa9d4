#!/usr/bin/env python3
"""
Nuxt Scaffold CLI - interactive generator for Nuxt projects

Usage:
    nuxt-scaffold
    nuxt-scaffold --dry-run

Or run without installing:
    uvx --from . nuxt-scaffold --dry-run
"""

from pathlib import Path

import typer
from rich.align import Align
from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.text import Text
from typer.core import TyperCommand

from .logger import ScaffoldLogger
from .orchestrator import ScaffoldOutcome, ScaffoldReport, Scaffolder
from .prompts import print_selection, run_prompts
from .selection import Selection
from .tracker import StepTracker

BANNER = """
███╗   ██╗██╗   ██╗██╗  ██╗████████╗
████╗  ██║██║   ██║╚██╗██╔╝╚══██╔══╝
██╔██╗ ██║██║   ██║ ╚███╔╝    ██║
██║╚██╗██║██║   ██║ ██╔██╗    ██║
██║ ╚████║╚██████╔╝██╔╝ ██╗   ██║
╚═╝  ╚═══╝ ╚═════╝ ╚═╝  ╚═╝   ╚═╝
"""

TAGLINE = "Nuxt Scaffold - batteries-included Nuxt projects with Bun"

console = Console()


class BannerCommand(TyperCommand):
    """Command that shows the banner before its help text."""

    def format_help(self, ctx, formatter):
        show_banner()
        super().format_help(ctx, formatter)


app = typer.Typer(
    name="nuxt-scaffold",
    help="Interactive scaffolder for Nuxt projects",
    add_completion=False,
)


def show_banner():
    """Display the ASCII art banner."""
    banner_lines = BANNER.strip().split('\n')
    colors = ["bright_green", "green", "cyan", "bright_cyan", "white", "bright_white"]

    styled_banner = Text()
    for i, line in enumerate(banner_lines):
        styled_banner.append(line + "\n", style=colors[i % len(colors)])

    console.print(Align.center(styled_banner))
    console.print(Align.center(Text(TAGLINE, style="italic bright_yellow")))
    console.print()


def _next_steps(selection: Selection) -> Panel:
    steps_lines = []
    step_num = 1
    if not selection.here:
        steps_lines.append(f"{step_num}. Go to the project folder: [cyan]cd {selection.project_name}[/cyan]")
        step_num += 1
    steps_lines.append(f"{step_num}. Install dependencies: [cyan]bun install[/cyan]")
    step_num += 1
    if selection.storage:
        steps_lines.append(f"{step_num}. Start the databases: [cyan]bun run db:start[/cyan]")
        step_num += 1
    steps_lines.append(f"{step_num}. Start the dev server: [cyan]bun run dev[/cyan]")
    return Panel("\n".join(steps_lines), title="Next Steps", border_style="cyan", padding=(1, 2))


def print_report(report: ScaffoldReport, selection: Selection):
    outcome = report.outcome
    if outcome is ScaffoldOutcome.CANCELLED:
        console.print("\n[yellow]Scaffolding cancelled. No changes were made.[/yellow]")
        return

    if report.conflict:
        error_panel = Panel(
            f"Directory '[cyan]{selection.project_name}[/cyan]' already exists\n"
            "Please choose a different project name or remove the existing directory.",
            title="[red]Directory Conflict[/red]",
            border_style="red",
            padding=(1, 2),
        )
        console.print()
        console.print(error_panel)
        return

    if outcome is ScaffoldOutcome.FAILED:
        failed = ", ".join(r.name for r in report.failed_stages if r.fatal)
        console.print()
        console.print(Panel(f"Scaffolding stopped at: {failed}", title="Failure", border_style="red"))
        return

    if outcome is ScaffoldOutcome.WARNINGS:
        lines = [f"[yellow]{r.name}[/yellow] [dim]({r.detail})[/dim]" for r in report.failed_stages]
        console.print()
        console.print(Panel(
            "Some steps did not complete; the project was still created.\n\n" + "\n".join(lines),
            title="[yellow]Completed with warnings[/yellow]",
            border_style="yellow",
            padding=(1, 2),
        ))
    else:
        console.print("\n[bold green]Your Nuxt project is ready.[/bold green]")

    console.print()
    console.print(_next_steps(selection))


def scaffold(selection: Selection) -> ScaffoldReport:
    """Run the scaffolder with a live progress tree and print the final tree."""
    tracker = StepTracker("Scaffold Nuxt Project")

    if selection.dry_run:
        # Dry runs are for reading what would happen, so keep the log visible
        log = ScaffoldLogger(console)
        report = Scaffolder(selection, log=log, confirm=typer.confirm, tracker=tracker).run()
        console.print()
        console.print(tracker.render())
        return report

    log = ScaffoldLogger(console, quiet=True)
    with Live(tracker.render(), console=console, refresh_per_second=8, transient=True) as live:
        tracker.attach_refresh(lambda: live.update(tracker.render()))

        def confirm(message: str) -> bool:
            live.stop()
            try:
                return typer.confirm(message, default=False)
            finally:
                live.start()

        report = Scaffolder(selection, log=log, confirm=confirm, tracker=tracker).run()

    console.print(tracker.render())
    return report


@app.command(cls=BannerCommand)
def main_command(
    dry_run: bool = typer.Option(False, "--dry-run", help="Show what would be done without running commands or writing files"),
):
    """
    Scaffold a new Nuxt project interactively.

    Asks for a project name, modules, storage backends, ORM, auth and email
    service, then creates the project with Bun, installs packages, registers
    modules in nuxt.config.ts and writes tooling and CI files.

    Examples:
        nuxt-scaffold
        nuxt-scaffold --dry-run
    """
    show_banner()
    if dry_run:
        console.print("[yellow]Running in dry-run mode - no changes will be made[/yellow]\n")

    try:
        selection = run_prompts(Path.cwd(), dry_run, console=console)
        if selection is None:
            raise typer.Exit(0)

        print_selection(selection, console)
        report = scaffold(selection)
    except typer.Exit:
        raise
    except Exception as e:
        console.print(Panel(f"Scaffolding failed: {e}", title="Failure", border_style="red"))
        raise typer.Exit(1)

    print_report(report, selection)
    raise typer.Exit(report.exit_code)


def main():
    app()


if __name__ == "__main__":
    main()
