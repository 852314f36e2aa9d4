"""Filesystem helpers that honour dry-run mode.

Write operations report success as a bool and log what they did (or would
do); read operations return ``None`` when the file is missing or unreadable.
"""

import json
from pathlib import Path
from typing import Callable

from .logger import ScaffoldLogger


def write_file(path: Path, content: str, *, log: ScaffoldLogger, dry_run: bool = False, mode: int | None = None) -> bool:
    if dry_run:
        log.step(f"Would create: {path}")
        return True
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8", newline="") as fh:
            fh.write(content)
        if mode is not None:
            path.chmod(mode)
    except OSError as e:
        log.error(f"Failed to create: {path} ({e})")
        return False
    log.success(f"Created: {path}")
    return True


def read_file(path: Path) -> str | None:
    try:
        # newline="" keeps CRLF documents as they are
        with path.open(encoding="utf-8", newline="") as fh:
            return fh.read()
    except (OSError, UnicodeDecodeError):
        return None


def ensure_dir(path: Path, *, log: ScaffoldLogger, dry_run: bool = False) -> bool:
    if dry_run:
        log.step(f"Would create directory: {path}")
        return True
    if path.is_dir():
        return True
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        log.error(f"Failed to create directory: {path} ({e})")
        return False
    log.success(f"Created directory: {path}")
    return True


def read_json(path: Path) -> dict | None:
    content = read_file(path)
    if not content:
        return None
    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def write_json(path: Path, data: dict, *, log: ScaffoldLogger, dry_run: bool = False) -> bool:
    return write_file(path, json.dumps(data, indent=2) + "\n", log=log, dry_run=dry_run)


def update_package_json(
    project_path: Path,
    updater: Callable[[dict], dict],
    *,
    log: ScaffoldLogger,
    dry_run: bool = False,
) -> bool:
    """Apply ``updater`` to the project's package.json and write it back."""
    pkg_path = project_path / "package.json"
    if dry_run:
        log.step(f"Would update: {pkg_path}")
        return True
    pkg = read_json(pkg_path)
    if pkg is None:
        log.error(f"Could not read {pkg_path}")
        return False
    return write_json(pkg_path, updater(pkg), log=log)


def add_scripts_to_package_json(
    project_path: Path,
    scripts: dict[str, str],
    *,
    log: ScaffoldLogger,
    dry_run: bool = False,
) -> bool:
    def _merge(pkg: dict) -> dict:
        return {**pkg, "scripts": {**pkg.get("scripts", {}), **scripts}}

    if dry_run:
        log.step(f"Would add scripts: {', '.join(scripts)}")
        return True
    return update_package_json(project_path, _merge, log=log)
