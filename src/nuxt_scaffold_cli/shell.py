"""Running external commands (bun, nuxi, prisma, husky).

Failures come back as values: ``run_command`` never raises, so every caller
decides for itself whether a failed command is fatal.
"""

import shlex
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

from .logger import ScaffoldLogger


@dataclass(frozen=True)
class Toolchain:
    """Command-line templates for the package manager and generator CLIs."""

    package_manager: str = "bun"
    add_command: str = "bun add"
    dev_flag: str = "-d"
    install_command: str = "bun install"
    create_command: str = "bun create nuxt@latest"
    runner: str = "bunx"
    module_add_command: str = "bunx nuxi module add"

    def create_project(self, target: str) -> str:
        return f"{self.create_command} {target}"

    def add_packages(self, packages, dev: bool = False) -> str:
        parts = [self.add_command]
        if dev:
            parts.append(self.dev_flag)
        parts.extend(packages)
        return " ".join(parts)

    def module_add(self, name: str) -> str:
        return f"{self.module_add_command} {name}"

    def exec(self, command: str) -> str:
        return f"{self.runner} {command}"


DEFAULT_TOOLCHAIN = Toolchain()


@dataclass(frozen=True)
class CommandResult:
    success: bool
    output: str = ""


@dataclass
class BatchResult:
    results: list[tuple[str, CommandResult]] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return all(result.success for _, result in self.results)

    @property
    def failed(self) -> list[str]:
        return [command for command, result in self.results if not result.success]


def run_command(
    command: str,
    cwd: Path | None = None,
    *,
    dry_run: bool = False,
    log: ScaffoldLogger | None = None,
) -> CommandResult:
    """Run a command line and capture its combined output."""
    if log:
        log.command(command)
    if dry_run:
        return CommandResult(True, "")
    try:
        completed = subprocess.run(
            shlex.split(command),
            cwd=cwd,
            check=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
        )
    except subprocess.CalledProcessError as e:
        output = (e.stdout or "").strip() or f"Exit code {e.returncode}"
        return CommandResult(False, output)
    except (OSError, ValueError) as e:
        # missing executable, bad cwd, or unbalanced quotes in the command line
        return CommandResult(False, str(e))
    return CommandResult(True, (completed.stdout or "").strip())


def run_commands(
    commands,
    cwd: Path | None = None,
    *,
    dry_run: bool = False,
    log: ScaffoldLogger | None = None,
) -> BatchResult:
    """Run every command in order; a failure does not stop the rest."""
    batch = BatchResult()
    for command in commands:
        result = run_command(command, cwd, dry_run=dry_run, log=log)
        if not result.success and log:
            log.error(f"Command failed: {command}")
            if result.output:
                log.dim(result.output.splitlines()[-1])
        batch.results.append((command, result))
    return batch


def install_packages(
    packages,
    *,
    cwd: Path,
    log: ScaffoldLogger,
    dev: bool = False,
    dry_run: bool = False,
    toolchain: Toolchain = DEFAULT_TOOLCHAIN,
) -> bool:
    """Add ``packages`` with the package manager; an empty list is a no-op."""
    packages = list(packages)
    if not packages:
        return True
    result = run_command(toolchain.add_packages(packages, dev=dev), cwd, dry_run=dry_run, log=log)
    if not result.success:
        log.error(f"Failed to install {'dev ' if dev else ''}dependencies: {', '.join(packages)}")
        if result.output:
            log.dim(result.output)
    return result.success
