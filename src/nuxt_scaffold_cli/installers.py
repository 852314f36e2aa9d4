"""Per-feature setup run after packages are installed.

Each setup function takes the selection plus injected collaborators and
returns True on success. A False return marks that unit's stage as failed
but never stops the run.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from . import templates
from .features import DEFAULT_CATALOG, FeatureCatalog
from .files import add_scripts_to_package_json, ensure_dir, update_package_json, write_file
from .logger import ScaffoldLogger
from .resolver import resolve_module_add_targets
from .selection import Selection
from .shell import DEFAULT_TOOLCHAIN, Toolchain, run_command, run_commands


def _write_files(project: Path, files, *, log: ScaffoldLogger, dry_run: bool) -> bool:
    # Write everything even if one file fails
    results = [
        write_file(project / relative, content, log=log, dry_run=dry_run, mode=mode)
        for relative, content, mode in files
    ]
    return all(results)


def _ensure_dirs(project: Path, relatives, *, log: ScaffoldLogger, dry_run: bool) -> bool:
    results = [ensure_dir(project / relative, log=log, dry_run=dry_run) for relative in relatives]
    return all(results)


def setup_nuxi_modules(
    selection: Selection,
    *,
    log: ScaffoldLogger,
    toolchain: Toolchain = DEFAULT_TOOLCHAIN,
    catalog: FeatureCatalog = DEFAULT_CATALOG,
) -> bool:
    targets = resolve_module_add_targets(selection, catalog)
    if not targets:
        return True
    log.step(f"Adding modules with nuxi: {', '.join(targets)}")
    batch = run_commands(
        [toolchain.module_add(name) for name in targets],
        selection.project_path,
        dry_run=selection.dry_run,
        log=log,
    )
    if not batch.success:
        log.warn(f"Some nuxi module additions failed: {', '.join(batch.failed)}")
    return batch.success


def setup_nuxt_ui(selection: Selection, *, log: ScaffoldLogger, **_) -> bool:
    log.step("Configuring @nuxt/ui...")
    return _write_files(
        selection.project_path,
        [
            ("app/assets/css/main.css", templates.MAIN_CSS, None),
            ("app/app.vue", templates.APP_VUE, None),
        ],
        log=log,
        dry_run=selection.dry_run,
    )


def setup_eslint(selection: Selection, *, log: ScaffoldLogger, **_) -> bool:
    log.step("Configuring @nuxt/eslint...")
    project, dry_run = selection.project_path, selection.dry_run
    wrote = write_file(project / "eslint.config.mjs", templates.ESLINT_CONFIG, log=log, dry_run=dry_run)
    scripts = add_scripts_to_package_json(
        project,
        {"lint": "eslint .", "lint:fix": "eslint . --fix"},
        log=log,
        dry_run=dry_run,
    )
    return wrote and scripts


def setup_test_utils(selection: Selection, *, log: ScaffoldLogger, **_) -> bool:
    log.step("Configuring @nuxt/test-utils...")
    project, dry_run = selection.project_path, selection.dry_run
    dirs = _ensure_dirs(project, ["tests/unit", "tests/e2e", "tests/nuxt"], log=log, dry_run=dry_run)
    wrote = _write_files(
        project,
        [
            ("vitest.config.ts", templates.VITEST_CONFIG, None),
            ("tests/unit/example.test.ts", templates.EXAMPLE_TEST, None),
        ],
        log=log,
        dry_run=dry_run,
    )
    scripts = add_scripts_to_package_json(
        project,
        {
            "test": "vitest --passWithNoTests",
            "test:unit": "vitest --project unit",
            "test:nuxt": "vitest --project nuxt",
            "test:watch": "vitest --watch",
            "test:related": "vitest related --run",
        },
        log=log,
        dry_run=dry_run,
    )
    return dirs and wrote and scripts


def setup_content(selection: Selection, *, log: ScaffoldLogger, **_) -> bool:
    log.step("Configuring @nuxt/content...")
    return _write_files(
        selection.project_path,
        [
            ("content.config.ts", templates.CONTENT_CONFIG, None),
            ("content/index.md", templates.CONTENT_INDEX, None),
        ],
        log=log,
        dry_run=selection.dry_run,
    )


def setup_storage(selection: Selection, *, log: ScaffoldLogger, **_) -> bool:
    """Docker services, env files and env validation for the chosen backends."""
    log.step(f"Configuring storage: {', '.join(selection.storage)}")
    project, dry_run = selection.project_path, selection.dry_run
    env = templates.env_template(selection)
    wrote = _write_files(
        project,
        [
            ("docker-compose.yml", templates.docker_compose(selection.project_name, selection.storage), None),
            (".env.example", env, None),
            (".env", env, None),
            ("shared/utils/env-schema.ts", templates.env_schema(selection.storage), None),
            ("server/plugins/env-validate.ts", templates.ENV_VALIDATE_PLUGIN, None),
        ],
        log=log,
        dry_run=dry_run,
    )
    scripts = add_scripts_to_package_json(project, templates.DOCKER_SCRIPTS, log=log, dry_run=dry_run)
    return wrote and scripts


def setup_drizzle(selection: Selection, *, log: ScaffoldLogger, **_) -> bool:
    log.step("Configuring Drizzle ORM...")
    project, dry_run = selection.project_path, selection.dry_run
    dirs = _ensure_dirs(project, ["server/database/migrations"], log=log, dry_run=dry_run)
    wrote = _write_files(
        project,
        [
            ("drizzle.config.ts", templates.DRIZZLE_CONFIG, None),
            ("server/database/schema/index.ts", templates.DRIZZLE_SCHEMA_INDEX, None),
            ("server/utils/db.ts", templates.DRIZZLE_DB_UTIL, None),
            ("server/database/seed.ts", templates.DRIZZLE_SEED, None),
        ],
        log=log,
        dry_run=dry_run,
    )
    scripts = add_scripts_to_package_json(project, templates.DRIZZLE_SCRIPTS, log=log, dry_run=dry_run)
    return dirs and wrote and scripts


def setup_prisma(
    selection: Selection,
    *,
    log: ScaffoldLogger,
    toolchain: Toolchain = DEFAULT_TOOLCHAIN,
    **_,
) -> bool:
    log.step("Configuring Prisma...")
    project, dry_run = selection.project_path, selection.dry_run
    init = run_command(toolchain.exec("prisma init"), project, dry_run=dry_run, log=log)
    if not init.success:
        log.warn("prisma init failed; writing schema anyway")
    # Our schema replaces the one prisma init generates
    wrote = _write_files(
        project,
        [
            ("prisma/schema.prisma", templates.PRISMA_SCHEMA, None),
            ("server/utils/db.ts", templates.PRISMA_DB_UTIL, None),
            ("server/database/seed.ts", templates.PRISMA_SEED, None),
        ],
        log=log,
        dry_run=dry_run,
    )
    scripts = add_scripts_to_package_json(project, templates.PRISMA_SCRIPTS, log=log, dry_run=dry_run)
    return init.success and wrote and scripts


def setup_better_auth(selection: Selection, *, log: ScaffoldLogger, **_) -> bool:
    log.step("Configuring Better Auth...")
    has_pinia = selection.has_module("pinia")
    files = [
        ("server/utils/auth.ts", templates.auth_server(selection), None),
        ("app/utils/auth-client.ts", templates.AUTH_CLIENT, None),
        ("server/api/auth/[...all].ts", templates.AUTH_ROUTE_HANDLER, None),
        ("app/middleware/auth-middleware.global.ts", templates.auth_middleware(has_pinia), None),
        ("server/types/h3.ts", templates.H3_TYPES, None),
        ("server/utils/session.ts", templates.SESSION_UTIL, None),
    ]
    if has_pinia:
        files.append(("app/stores/auth-store.ts", templates.AUTH_STORE, None))
        files.append(("app/plugins/auth-plugin.ts", templates.AUTH_PLUGIN, None))
    if selection.effective_email_service == "nodemailer":
        files.append(("server/utils/email.ts", templates.EMAIL_UTIL, None))
    return _write_files(selection.project_path, files, log=log, dry_run=selection.dry_run)


def setup_tooling(
    selection: Selection,
    *,
    log: ScaffoldLogger,
    toolchain: Toolchain = DEFAULT_TOOLCHAIN,
    **_,
) -> bool:
    """Prettier, husky hooks, lint-staged, commitlint and editor settings."""
    log.step("Configuring development tooling...")
    project, dry_run = selection.project_path, selection.dry_run
    ok = _write_files(
        project,
        [
            (".prettierrc", templates.prettier_config(), None),
            (".prettierignore", templates.PRETTIER_IGNORE, None),
        ],
        log=log,
        dry_run=dry_run,
    )
    scripts = dict(templates.FORMAT_SCRIPTS)
    if selection.storage:
        scripts["dev:all"] = templates.DEV_ALL_SCRIPT
    ok = add_scripts_to_package_json(project, scripts, log=log, dry_run=dry_run) and ok

    husky = run_command(toolchain.exec("husky init"), project, dry_run=dry_run, log=log)
    if not husky.success:
        log.warn("husky init failed; writing hooks anyway")
    ok = husky.success and ok

    ok = _write_files(
        project,
        [
            (".husky/pre-commit", templates.HUSKY_PRE_COMMIT, 0o755),
            (".husky/commit-msg", templates.HUSKY_COMMIT_MSG, 0o755),
            ("commitlint.config.js", templates.COMMITLINT_CONFIG, None),
            (".vscode/settings.json", templates.vscode_settings(), None),
            (".vscode/extensions.json", templates.vscode_extensions(), None),
        ],
        log=log,
        dry_run=dry_run,
    ) and ok

    def _add_lint_staged(pkg: dict) -> dict:
        return {**pkg, "lint-staged": dict(templates.LINT_STAGED)}

    return update_package_json(project, _add_lint_staged, log=log, dry_run=dry_run) and ok


def setup_error_handling(selection: Selection, *, log: ScaffoldLogger, **_) -> bool:
    log.step("Adding shared error handling utilities...")
    return _write_files(
        selection.project_path,
        [
            ("shared/utils/error-handling.ts", templates.ERROR_HANDLING, None),
            ("shared/utils/index.ts", templates.shared_utils_index(bool(selection.storage)), None),
        ],
        log=log,
        dry_run=selection.dry_run,
    )


def generate_auxiliary(selection: Selection, *, log: ScaffoldLogger, **_) -> bool:
    """Test directories and GitHub Actions workflows."""
    log.step("Creating test directories and CI workflows...")
    project, dry_run = selection.project_path, selection.dry_run
    has_database = "postgres" in selection.storage
    dirs = _ensure_dirs(
        project,
        ["tests/unit", "tests/e2e", "tests/nuxt", ".github/workflows"],
        log=log,
        dry_run=dry_run,
    )
    production = templates.ci_workflow("Production CI", ["main"], has_database=has_database)
    preview = templates.ci_workflow(
        "Preview CI",
        ["preview", "develop"],
        has_database=has_database,
        database_secret="TEST_DATABASE_URL",
        migrate_label="Run migrations (test database)",
    )
    wrote = _write_files(
        project,
        [
            (".github/workflows/production.yml", production, None),
            (".github/workflows/preview.yml", preview, None),
        ],
        log=log,
        dry_run=dry_run,
    )
    return dirs and wrote


@dataclass(frozen=True)
class SetupUnit:
    """A named setup step and the condition under which it runs."""

    name: str
    applies: Callable[[Selection, FeatureCatalog], bool]
    run: Callable[..., bool]


SETUP_UNITS = (
    SetupUnit("modules", lambda s, c: bool(resolve_module_add_targets(s, c)), setup_nuxi_modules),
    SetupUnit("nuxt-ui", lambda s, c: s.has_module("nuxt-ui"), setup_nuxt_ui),
    SetupUnit("eslint", lambda s, c: s.has_module("eslint"), setup_eslint),
    SetupUnit("test-utils", lambda s, c: s.has_module("test-utils"), setup_test_utils),
    SetupUnit("content", lambda s, c: s.has_module("content"), setup_content),
    SetupUnit("storage", lambda s, c: bool(s.storage), setup_storage),
    SetupUnit("drizzle", lambda s, c: s.effective_orm == "drizzle", setup_drizzle),
    SetupUnit("prisma", lambda s, c: s.effective_orm == "prisma", setup_prisma),
    SetupUnit("better-auth", lambda s, c: s.auth == "better-auth", setup_better_auth),
    SetupUnit("tooling", lambda s, c: True, setup_tooling),
    SetupUnit("error-handling", lambda s, c: True, setup_error_handling),
)


def applicable_units(
    selection: Selection,
    units=SETUP_UNITS,
    catalog: FeatureCatalog = DEFAULT_CATALOG,
) -> list[SetupUnit]:
    return [unit for unit in units if unit.applies(selection, catalog)]
