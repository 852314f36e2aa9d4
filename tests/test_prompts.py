"""Tests for the interactive prompts, driven by scripted keypresses."""

import io
from unittest.mock import patch

import pytest
import typer
from rich.console import Console

from nuxt_scaffold_cli.prompts import (
    PromptCancelled,
    multiselect_with_arrows,
    run_prompts,
    select_with_arrows,
)
from nuxt_scaffold_cli.selection import RECOMMENDED_MODULES

OPTIONS = {
    "one": ("One", "first"),
    "two": ("Two", "second"),
    "three": ("Three", "third"),
}


@pytest.fixture
def console():
    return Console(file=io.StringIO(), width=120)


def keys(*names):
    return patch("nuxt_scaffold_cli.prompts.get_key", side_effect=list(names))


# ---------------------------------------------------------------------------
# select_with_arrows
# ---------------------------------------------------------------------------


class TestSelect:
    def test_enter_picks_default(self, console):
        with keys("enter"):
            assert select_with_arrows(OPTIONS, "Pick", "two", console=console) == "two"

    def test_arrows_wrap_around(self, console):
        with keys("up", "enter"):
            assert select_with_arrows(OPTIONS, "Pick", console=console) == "three"

    def test_escape_cancels(self, console):
        with keys("escape"), pytest.raises(PromptCancelled):
            select_with_arrows(OPTIONS, "Pick", console=console)

    def test_ctrl_c_cancels(self, console):
        with patch("nuxt_scaffold_cli.prompts.get_key", side_effect=KeyboardInterrupt), \
                pytest.raises(PromptCancelled):
            select_with_arrows(OPTIONS, "Pick", console=console)


# ---------------------------------------------------------------------------
# multiselect_with_arrows
# ---------------------------------------------------------------------------


class TestMultiselect:
    def test_result_keeps_option_order(self, console):
        with keys("down", "down", "space", "up", "up", "space", "enter"):
            assert multiselect_with_arrows(OPTIONS, "Pick", console=console) == ["one", "three"]

    def test_initial_can_be_toggled_off(self, console):
        with keys("space", "enter"):
            assert multiselect_with_arrows(OPTIONS, "Pick", initial=["one", "two"], console=console) == ["two"]

    def test_a_toggles_all(self, console):
        with keys("a", "enter"):
            assert multiselect_with_arrows(OPTIONS, "Pick", console=console) == ["one", "two", "three"]
        with keys("a", "enter"):
            assert multiselect_with_arrows(OPTIONS, "Pick", initial=OPTIONS, console=console) == []


# ---------------------------------------------------------------------------
# run_prompts
# ---------------------------------------------------------------------------


class TestRunPrompts:
    def test_full_flow(self, tmp_path, console):
        script = [
            "enter",             # recommended modules, all preselected
            "space", "enter",    # optional: content
            "space", "enter",    # storage: postgres
            "down", "enter",     # ORM: drizzle -> prisma
            "up", "enter",       # auth: none -> better-auth
            "up", "enter",       # email: none -> nodemailer
        ]
        with keys(*script), \
                patch("nuxt_scaffold_cli.prompts.typer.prompt", return_value="shop"), \
                patch("nuxt_scaffold_cli.prompts.typer.confirm", return_value=True):
            selection = run_prompts(tmp_path, dry_run=True, console=console)

        assert selection.project_name == "shop"
        assert selection.project_path == tmp_path.resolve() / "shop"
        assert selection.modules == tuple(RECOMMENDED_MODULES)
        assert selection.optional_modules == ("content",)
        assert selection.storage == ("postgres",)
        assert selection.orm == "prisma"
        assert selection.auth == "better-auth"
        assert selection.email_service == "nodemailer"
        assert selection.dry_run is True

    def test_gated_questions_not_asked(self, tmp_path, console):
        # No postgres and no auth, so only four keypress-driven prompts run
        script = ["enter", "enter", "enter", "enter"]
        with keys(*script) as get_key, \
                patch("nuxt_scaffold_cli.prompts.typer.prompt", return_value="shop"), \
                patch("nuxt_scaffold_cli.prompts.typer.confirm", return_value=True):
            selection = run_prompts(tmp_path, dry_run=False, console=console)

        assert get_key.call_count == 4
        assert selection.orm == "none"
        assert selection.auth == "none"
        assert selection.email_service == "none"

    def test_current_directory(self, tmp_path, console):
        with keys("enter", "enter", "enter", "enter"), \
                patch("nuxt_scaffold_cli.prompts.typer.prompt", return_value="."), \
                patch("nuxt_scaffold_cli.prompts.typer.confirm", return_value=True):
            selection = run_prompts(tmp_path, dry_run=False, console=console)

        assert selection.here is True
        assert selection.project_path == tmp_path.resolve()

    def test_invalid_name_is_asked_again(self, tmp_path, console):
        with keys("enter", "enter", "enter", "enter"), \
                patch("nuxt_scaffold_cli.prompts.typer.prompt", side_effect=["bad name!", "good"]) as prompt, \
                patch("nuxt_scaffold_cli.prompts.typer.secho"), \
                patch("nuxt_scaffold_cli.prompts.typer.confirm", return_value=True):
            selection = run_prompts(tmp_path, dry_run=False, console=console)

        assert prompt.call_count == 2
        assert selection.project_name == "good"

    def test_declined_confirm_returns_none(self, tmp_path, console):
        with keys("enter", "enter", "enter", "enter"), \
                patch("nuxt_scaffold_cli.prompts.typer.prompt", return_value="shop"), \
                patch("nuxt_scaffold_cli.prompts.typer.confirm", return_value=False):
            assert run_prompts(tmp_path, dry_run=False, console=console) is None

    def test_escape_returns_none(self, tmp_path, console):
        with keys("escape"), \
                patch("nuxt_scaffold_cli.prompts.typer.prompt", return_value="shop"):
            assert run_prompts(tmp_path, dry_run=False, console=console) is None

    def test_aborted_name_prompt_returns_none(self, tmp_path, console):
        with patch("nuxt_scaffold_cli.prompts.typer.prompt", side_effect=typer.Abort()):
            assert run_prompts(tmp_path, dry_run=False, console=console) is None
