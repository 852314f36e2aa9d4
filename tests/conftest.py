"""Shared pytest fixtures for the scaffolder test suite."""

import io
import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest
from rich.console import Console

from nuxt_scaffold_cli.logger import ScaffoldLogger
from nuxt_scaffold_cli.selection import build_selection


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

@pytest.fixture
def log_buffer() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def log(log_buffer) -> ScaffoldLogger:
    """Logger writing plain text into ``log_buffer``."""
    console = Console(file=log_buffer, force_terminal=False, color_system=None, width=200)
    return ScaffoldLogger(console)


# ---------------------------------------------------------------------------
# Selections
# ---------------------------------------------------------------------------

@pytest.fixture
def make_selection(tmp_path: Path):
    """Factory building a validated selection rooted in ``tmp_path``."""

    def _make(project_name: str = "app", **choices):
        return build_selection(project_name, tmp_path, **choices)

    return _make


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """An existing project directory with a minimal package.json and config."""
    project = tmp_path / "app"
    project.mkdir()
    (project / "package.json").write_text('{\n  "name": "app",\n  "scripts": {\n    "dev": "nuxt dev"\n  }\n}\n')
    (project / "nuxt.config.ts").write_text(
        "export default defineNuxtConfig({\n"
        "  compatibilityDate: '2025-07-15',\n"
        "  devtools: { enabled: true },\n"
        "})\n"
    )
    return project


# ---------------------------------------------------------------------------
# Subprocess
# ---------------------------------------------------------------------------

def completed(args, stdout: str = "") -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess(args=args, returncode=0, stdout=stdout)


def failed(args, returncode: int = 1, stdout: str = "boom") -> subprocess.CalledProcessError:
    return subprocess.CalledProcessError(returncode, args, output=stdout)


@pytest.fixture
def mock_run():
    """Patch ``subprocess.run`` as seen by the command runner; every call succeeds."""
    with patch("nuxt_scaffold_cli.shell.subprocess.run") as run:
        run.side_effect = lambda args, **kwargs: completed(args)
        yield run


def command_lines(run_mock) -> list[str]:
    """The command lines passed to a patched ``subprocess.run``."""
    return [" ".join(call.args[0]) for call in run_mock.call_args_list]
