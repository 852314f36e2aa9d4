"""Runs the scaffolding stages in order and aggregates their outcomes.

Stages are strictly sequential. A failed fatal stage stops the run and the
remaining stages are recorded as skipped; a failed non-fatal stage is
recorded and the run continues. Nothing is rolled back.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from . import templates
from .config_merge import merge_config_file
from .features import DEFAULT_CATALOG, FeatureCatalog
from .installers import SETUP_UNITS, applicable_units, generate_auxiliary
from .logger import ScaffoldLogger
from .resolver import PackageSet, resolve_packages, resolve_registrations
from .selection import CURRENT_DIR, Selection
from .shell import DEFAULT_TOOLCHAIN, Toolchain, install_packages, run_command
from .tracker import StepTracker


class StageStatus(str, Enum):
    DONE = "done"
    FAILED = "error"
    SKIPPED = "skipped"


class ScaffoldOutcome(str, Enum):
    SUCCESS = "success"
    WARNINGS = "warnings"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class StageRecord:
    name: str
    status: StageStatus
    fatal: bool = False
    detail: str = ""


@dataclass
class ScaffoldReport:
    records: list[StageRecord] = field(default_factory=list)
    cancelled: bool = False
    conflict: bool = False
    packages: PackageSet | None = None

    @property
    def outcome(self) -> ScaffoldOutcome:
        if self.cancelled:
            return ScaffoldOutcome.CANCELLED
        failed = [r for r in self.records if r.status is StageStatus.FAILED]
        if any(r.fatal for r in failed):
            return ScaffoldOutcome.FAILED
        if failed:
            return ScaffoldOutcome.WARNINGS
        return ScaffoldOutcome.SUCCESS

    @property
    def failed_stages(self) -> list[StageRecord]:
        return [r for r in self.records if r.status is StageStatus.FAILED]

    @property
    def exit_code(self) -> int:
        return 1 if self.outcome is ScaffoldOutcome.FAILED else 0


class Scaffolder:
    """Drive one scaffolding run for a ``Selection``.

    ``confirm`` is asked before scaffolding into a non-empty current
    directory; ``tracker`` (optional) mirrors every stage transition.
    """

    def __init__(
        self,
        selection: Selection,
        *,
        log: ScaffoldLogger,
        toolchain: Toolchain = DEFAULT_TOOLCHAIN,
        catalog: FeatureCatalog = DEFAULT_CATALOG,
        confirm: Callable[[str], bool] | None = None,
        tracker: StepTracker | None = None,
        units=SETUP_UNITS,
    ):
        self.selection = selection
        self.log = log
        self.toolchain = toolchain
        self.catalog = catalog
        self.confirm = confirm or (lambda message: False)
        self.tracker = tracker
        self.units = applicable_units(selection, units, catalog)
        self.report = ScaffoldReport()
        self._packages: PackageSet | None = None

    @property
    def project_path(self):
        return self.selection.project_path

    @property
    def dry_run(self) -> bool:
        return self.selection.dry_run

    def stages(self) -> list[tuple[str, str, bool, Callable[[], tuple[bool, str]]]]:
        stages = [
            ("init", "Create Nuxt project", True, self._init),
            ("install-baseline", "Install base dependencies", False, self._install_baseline),
            ("resolve-packages", "Resolve packages", False, self._resolve_packages),
            ("install-packages", "Install packages", True, self._install_packages),
        ]
        for unit in self.units:
            stages.append((f"register:{unit.name}", f"Set up {unit.name}", False, self._unit_runner(unit)))
        stages.extend([
            ("merge-config", "Register modules in nuxt.config.ts", False, self._merge_config),
            ("generate-auxiliary", "Create tests and CI workflows", False, self._generate_auxiliary),
        ])
        return stages

    def run(self) -> ScaffoldReport:
        stages = self.stages()
        if self.tracker:
            for key, label, _, _ in stages:
                self.tracker.add(key, label)
            self.tracker.add("done", "Done")

        aborted = False
        for key, _, fatal, action in stages:
            if aborted:
                self._record(key, StageStatus.SKIPPED, fatal, "skipped")
                continue
            if self.tracker:
                self.tracker.start(key)
            ok, detail = action()
            if self.report.cancelled:
                self._record(key, StageStatus.SKIPPED, fatal, detail)
                aborted = True
                continue
            self._record(key, StageStatus.DONE if ok else StageStatus.FAILED, fatal, detail)
            if not ok and fatal:
                self.log.error(f"Stage '{key}' failed; stopping")
                aborted = True

        if self.tracker:
            if self.report.outcome in (ScaffoldOutcome.FAILED, ScaffoldOutcome.CANCELLED):
                self.tracker.skip("done", self.report.outcome.value)
            else:
                self.tracker.complete("done", self.report.outcome.value)
        return self.report

    def _record(self, key: str, status: StageStatus, fatal: bool, detail: str = ""):
        self.report.records.append(StageRecord(key, status, fatal, detail))
        if not self.tracker:
            return
        if status is StageStatus.DONE:
            self.tracker.complete(key, detail)
        elif status is StageStatus.FAILED:
            self.tracker.error(key, detail)
        else:
            self.tracker.skip(key, detail)

    # -- stages ---------------------------------------------------------------

    def _init(self) -> tuple[bool, str]:
        self.log.title("Creating Nuxt project")
        path = self.project_path
        if self.selection.here:
            if path.exists() and any(path.iterdir()) and not self.dry_run:
                message = f"Current directory '{path.name}' is not empty. Scaffold into it anyway?"
                if not self.confirm(message):
                    self.log.warn("Operation cancelled")
                    self.report.cancelled = True
                    return False, "cancelled"
            target, cwd = CURRENT_DIR, path
        else:
            if path.exists():
                if not self.dry_run:
                    self.log.error(f"Directory '{self.selection.project_name}' already exists")
                    self.report.conflict = True
                    return False, "directory exists"
                self.log.warn(f"Directory '{self.selection.project_name}' already exists")
            target, cwd = self.selection.project_name, path.parent

        result = run_command(self.toolchain.create_project(target), cwd, dry_run=self.dry_run, log=self.log)
        if not result.success:
            self.log.error("Failed to create Nuxt project")
            if result.output:
                self.log.dim(result.output)
            return False, "create failed"
        self.log.success(f"Created {path}")
        return True, str(path)

    def _install_baseline(self) -> tuple[bool, str]:
        result = run_command(self.toolchain.install_command, self.project_path, dry_run=self.dry_run, log=self.log)
        if not result.success:
            self.log.warn("Base dependency install failed; continuing")
        return result.success, "" if result.success else "install failed"

    def _resolve_packages(self) -> tuple[bool, str]:
        self._packages = resolve_packages(self.selection, self.catalog)
        self.report.packages = self._packages
        return True, f"{len(self._packages.dependencies)} deps, {len(self._packages.dev_dependencies)} dev"

    def _install_packages(self) -> tuple[bool, str]:
        self.log.title("Installing packages")
        packages = self._packages or resolve_packages(self.selection, self.catalog)
        if not install_packages(
            packages.dependencies,
            cwd=self.project_path,
            log=self.log,
            dry_run=self.dry_run,
            toolchain=self.toolchain,
        ):
            return False, "dependencies failed"
        if not install_packages(
            packages.dev_dependencies,
            cwd=self.project_path,
            log=self.log,
            dev=True,
            dry_run=self.dry_run,
            toolchain=self.toolchain,
        ):
            return False, "dev dependencies failed"
        return True, ""

    def _unit_runner(self, unit):
        def _run() -> tuple[bool, str]:
            ok = unit.run(self.selection, log=self.log, toolchain=self.toolchain, catalog=self.catalog)
            return ok, "" if ok else "setup incomplete"
        return _run

    def _merge_config(self) -> tuple[bool, str]:
        self.log.title("Updating nuxt.config.ts")
        fragments = resolve_registrations(self.selection, self.catalog).to_fragments()
        ok = merge_config_file(
            self.project_path / "nuxt.config.ts",
            fragments,
            log=self.log,
            dry_run=self.dry_run,
            starter=templates.nuxt_config(),
        )
        return ok, "" if ok else "merge failed"

    def _generate_auxiliary(self) -> tuple[bool, str]:
        ok = generate_auxiliary(self.selection, log=self.log)
        return ok, "" if ok else "incomplete"
