"""Tests for nuxt_scaffold_cli.shell."""

import subprocess
from unittest.mock import patch

from conftest import command_lines, completed, failed

from nuxt_scaffold_cli.shell import (
    DEFAULT_TOOLCHAIN,
    CommandResult,
    Toolchain,
    install_packages,
    run_command,
    run_commands,
)


# ---------------------------------------------------------------------------
# Toolchain
# ---------------------------------------------------------------------------

class TestToolchain:
    def test_default_commands(self):
        assert DEFAULT_TOOLCHAIN.create_project("app") == "bun create nuxt@latest app"
        assert DEFAULT_TOOLCHAIN.add_packages(["a", "b"]) == "bun add a b"
        assert DEFAULT_TOOLCHAIN.add_packages(["a"], dev=True) == "bun add -d a"
        assert DEFAULT_TOOLCHAIN.module_add("security") == "bunx nuxi module add security"
        assert DEFAULT_TOOLCHAIN.exec("husky init") == "bunx husky init"

    def test_custom_package_manager(self):
        pnpm = Toolchain(add_command="pnpm add", dev_flag="-D", runner="pnpm dlx")
        assert pnpm.add_packages(["vitest"], dev=True) == "pnpm add -D vitest"
        assert pnpm.exec("prisma init") == "pnpm dlx prisma init"


# ---------------------------------------------------------------------------
# run_command
# ---------------------------------------------------------------------------

class TestRunCommand:
    def test_dry_run_never_spawns(self, log, log_buffer):
        with patch("nuxt_scaffold_cli.shell.subprocess.run") as run:
            result = run_command("rm -rf /", dry_run=True, log=log)
        run.assert_not_called()
        assert result == CommandResult(True, "")
        assert "$ rm -rf /" in log_buffer.getvalue()

    def test_success_captures_output(self, tmp_path):
        with patch("nuxt_scaffold_cli.shell.subprocess.run", return_value=completed(["bun"], "ok\n")) as run:
            result = run_command("bun install", tmp_path)
        assert result == CommandResult(True, "ok")
        args, kwargs = run.call_args
        assert args[0] == ["bun", "install"]
        assert kwargs["cwd"] == tmp_path
        assert kwargs["stderr"] == subprocess.STDOUT

    def test_quoted_arguments_are_split_like_a_shell(self):
        with patch("nuxt_scaffold_cli.shell.subprocess.run", return_value=completed([])) as run:
            run_command("git commit -m 'initial commit'")
        assert run.call_args.args[0] == ["git", "commit", "-m", "initial commit"]

    def test_non_zero_exit_is_a_value(self):
        with patch("nuxt_scaffold_cli.shell.subprocess.run", side_effect=failed(["bun"], 2, "no such package")):
            result = run_command("bun add nope")
        assert result == CommandResult(False, "no such package")

    def test_non_zero_exit_without_output(self):
        with patch("nuxt_scaffold_cli.shell.subprocess.run", side_effect=failed(["bun"], 3, "")):
            result = run_command("bun add nope")
        assert result == CommandResult(False, "Exit code 3")

    def test_missing_executable_is_a_value(self):
        with patch("nuxt_scaffold_cli.shell.subprocess.run", side_effect=FileNotFoundError("bun")):
            result = run_command("bun install")
        assert result.success is False
        assert "bun" in result.output

    def test_unbalanced_quotes_are_a_value(self):
        result = run_command("echo 'oops")
        assert result.success is False


# ---------------------------------------------------------------------------
# run_commands
# ---------------------------------------------------------------------------

class TestRunCommands:
    def test_continues_after_failure(self, log):
        def fake_run(args, **kwargs):
            if args[-1] == "b":
                raise failed(args)
            return completed(args)

        with patch("nuxt_scaffold_cli.shell.subprocess.run", side_effect=fake_run) as run:
            batch = run_commands(["echo a", "echo b", "echo c"], log=log)
        assert command_lines(run) == ["echo a", "echo b", "echo c"]
        assert batch.success is False
        assert batch.failed == ["echo b"]

    def test_all_succeed(self, mock_run):
        batch = run_commands(["echo a", "echo b"])
        assert batch.success is True
        assert batch.failed == []

    def test_dry_run_batch(self, log):
        with patch("nuxt_scaffold_cli.shell.subprocess.run") as run:
            batch = run_commands(["echo a", "echo b"], dry_run=True, log=log)
        run.assert_not_called()
        assert batch.success


# ---------------------------------------------------------------------------
# install_packages
# ---------------------------------------------------------------------------

class TestInstallPackages:
    def test_empty_list_is_a_no_op(self, tmp_path, log, mock_run):
        assert install_packages([], cwd=tmp_path, log=log) is True
        mock_run.assert_not_called()

    def test_dev_packages(self, tmp_path, log, mock_run):
        assert install_packages(("vitest", "happy-dom"), cwd=tmp_path, log=log, dev=True)
        assert command_lines(mock_run) == ["bun add -d vitest happy-dom"]

    def test_failure_is_logged(self, tmp_path, log, log_buffer):
        with patch("nuxt_scaffold_cli.shell.subprocess.run", side_effect=failed(["bun"])):
            assert install_packages(["zod"], cwd=tmp_path, log=log) is False
        assert "Failed to install dependencies: zod" in log_buffer.getvalue()
