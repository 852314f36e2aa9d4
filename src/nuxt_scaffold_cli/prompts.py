"""Interactive prompts that build a ``Selection``.

Single and multi selection use readchar for keypresses and a transient
``rich.live.Live`` panel; free text and yes/no questions go through typer.
"""

from pathlib import Path

import readchar
import typer
from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.table import Table

from .selection import (
    AUTH_OPTIONS,
    AUTH_WITH_EMAIL,
    CURRENT_DIR,
    EMAIL_OPTIONS,
    NONE,
    OPTIONAL_MODULES,
    ORM_OPTIONS,
    RECOMMENDED_MODULES,
    RELATIONAL_STORAGE,
    STORAGE_OPTIONS,
    Selection,
    build_selection,
    validate_project_name,
)

DEFAULT_PROJECT_NAME = "my-nuxt-app"


class PromptCancelled(Exception):
    """Raised when the user aborts a prompt with Esc or Ctrl-C."""


def get_key():
    """Read one keypress and name the keys the prompts care about."""
    key = readchar.readkey()

    if key == readchar.key.UP:
        return 'up'
    if key == readchar.key.DOWN:
        return 'down'
    if key == readchar.key.ENTER:
        return 'enter'
    if key == readchar.key.SPACE:
        return 'space'
    if key == readchar.key.ESC:
        return 'escape'
    if key == readchar.key.CTRL_C:
        raise KeyboardInterrupt

    return key


def _option_line(key: str, options: dict) -> str:
    label, hint = options[key]
    return f"[cyan]{label}[/cyan] [dim]({hint})[/dim]"


def select_with_arrows(
    options: dict,
    prompt_text: str = "Select an option",
    default_key: str | None = None,
    console: Console | None = None,
) -> str:
    """
    Pick one key from ``options`` with the arrow keys.

    Args:
        options: Dict of key -> (label, hint)
        prompt_text: Panel title
        default_key: Option highlighted initially

    Returns:
        Selected option key

    Raises:
        PromptCancelled: on Esc or Ctrl-C
    """
    console = console or Console()
    option_keys = list(options)
    selected_index = option_keys.index(default_key) if default_key in option_keys else 0

    def create_selection_panel():
        table = Table.grid(padding=(0, 2))
        table.add_column(style="cyan", justify="left", width=3)
        table.add_column(style="white", justify="left")

        for i, key in enumerate(option_keys):
            table.add_row("▶" if i == selected_index else " ", _option_line(key, options))

        table.add_row("", "")
        table.add_row("", "[dim]Use ↑/↓ to navigate, Enter to select, Esc to cancel[/dim]")

        return Panel(table, title=f"[bold]{prompt_text}[/bold]", border_style="cyan", padding=(1, 2))

    console.print()
    with Live(create_selection_panel(), console=console, transient=True, auto_refresh=False) as live:
        while True:
            try:
                key = get_key()
            except KeyboardInterrupt:
                raise PromptCancelled(prompt_text) from None
            if key == 'up':
                selected_index = (selected_index - 1) % len(option_keys)
            elif key == 'down':
                selected_index = (selected_index + 1) % len(option_keys)
            elif key == 'enter':
                break
            elif key == 'escape':
                raise PromptCancelled(prompt_text)
            live.update(create_selection_panel(), refresh=True)

    choice = option_keys[selected_index]
    console.print(f"[bold]{prompt_text}[/bold] {options[choice][0]}")
    return choice


def multiselect_with_arrows(
    options: dict,
    prompt_text: str = "Select options",
    initial=(),
    console: Console | None = None,
) -> list[str]:
    """Pick any number of keys; space toggles, ``a`` toggles all, Enter confirms.

    The result keeps the order of ``options``, not the order of toggling.
    """
    console = console or Console()
    option_keys = list(options)
    chosen = {key for key in initial if key in options}
    cursor = 0

    def create_selection_panel():
        table = Table.grid(padding=(0, 2))
        table.add_column(style="cyan", justify="left", width=3)
        table.add_column(style="green", justify="left", width=3)
        table.add_column(style="white", justify="left")

        for i, key in enumerate(option_keys):
            table.add_row(
                "▶" if i == cursor else " ",
                "◉" if key in chosen else "○",
                _option_line(key, options),
            )

        table.add_row("", "", "")
        table.add_row("", "", "[dim]↑/↓ to navigate, Space to toggle, a for all, Enter to confirm[/dim]")

        return Panel(table, title=f"[bold]{prompt_text}[/bold]", border_style="cyan", padding=(1, 2))

    console.print()
    with Live(create_selection_panel(), console=console, transient=True, auto_refresh=False) as live:
        while True:
            try:
                key = get_key()
            except KeyboardInterrupt:
                raise PromptCancelled(prompt_text) from None
            if key == 'up':
                cursor = (cursor - 1) % len(option_keys)
            elif key == 'down':
                cursor = (cursor + 1) % len(option_keys)
            elif key == 'space':
                chosen ^= {option_keys[cursor]}
            elif key == 'a':
                chosen = set() if len(chosen) == len(option_keys) else set(option_keys)
            elif key == 'enter':
                break
            elif key == 'escape':
                raise PromptCancelled(prompt_text)
            live.update(create_selection_panel(), refresh=True)

    result = [key for key in option_keys if key in chosen]
    console.print(f"[bold]{prompt_text}[/bold] {', '.join(result) or 'None'}")
    return result


def ask_project_name(default: str = DEFAULT_PROJECT_NAME) -> str:
    while True:
        try:
            name = typer.prompt(f"Project name (use '{CURRENT_DIR}' for the current directory)", default=default)
        except typer.Abort:
            raise PromptCancelled("project name") from None
        name = name.strip()
        error = validate_project_name(name)
        if not error:
            return name
        typer.secho(error, fg=typer.colors.RED)


def run_prompts(default_path: Path, dry_run: bool, console: Console | None = None) -> Selection | None:
    """Ask every question and return the selection, or None if the user backs out."""
    console = console or Console()
    console.print("[bold magenta]Nuxt Project Scaffolder[/bold magenta]")

    try:
        project_name = ask_project_name()
        modules = multiselect_with_arrows(
            RECOMMENDED_MODULES,
            "Select recommended modules to install:",
            initial=RECOMMENDED_MODULES,
            console=console,
        )
        optional_modules = multiselect_with_arrows(OPTIONAL_MODULES, "Select optional modules:", console=console)
        storage = multiselect_with_arrows(
            STORAGE_OPTIONS,
            "Select storage options for Docker Compose:",
            console=console,
        )

        orm = NONE
        if RELATIONAL_STORAGE in storage:
            orm = select_with_arrows(ORM_OPTIONS, "Select an ORM for PostgreSQL:", "drizzle", console=console)

        auth = select_with_arrows(AUTH_OPTIONS, "Select an authentication provider:", NONE, console=console)
        email_service = NONE
        if auth == AUTH_WITH_EMAIL:
            email_service = select_with_arrows(
                EMAIL_OPTIONS,
                "Select an email service for verification mails:",
                NONE,
                console=console,
            )

        try:
            confirmed = typer.confirm("Ready to scaffold your project?", default=True)
        except typer.Abort:
            raise PromptCancelled("confirm") from None
    except PromptCancelled:
        console.print("[yellow]Operation cancelled.[/yellow]")
        return None

    if not confirmed:
        console.print("[yellow]Operation cancelled.[/yellow]")
        return None

    return build_selection(
        project_name,
        default_path,
        modules=modules,
        optional_modules=optional_modules,
        storage=storage,
        orm=orm,
        auth=auth,
        email_service=email_service,
        dry_run=dry_run,
    )


def print_selection(selection: Selection, console: Console):
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold")
    table.add_column()
    for label, value in selection.summary_rows():
        table.add_row(f"{label}:", value)
    if selection.dry_run:
        table.add_row("", "[yellow](Dry run - no changes will be made)[/yellow]")
    console.print(Panel(table, title="[bold]Configuration[/bold]", border_style="cyan", padding=(1, 2)))
