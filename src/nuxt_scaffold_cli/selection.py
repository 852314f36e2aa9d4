"""User choices for a scaffolding run.

The choice tables map each identifier to a ``(label, hint)`` pair and are the
single source of valid values; the prompts render them and
``build_selection`` validates against them.
"""

import re
from dataclasses import dataclass
from pathlib import Path

CURRENT_DIR = "."
PROJECT_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")

RECOMMENDED_MODULES = {
    "nuxt-ui": ("@nuxt/ui", "Intuitive UI Library powered by Tailwind CSS"),
    "eslint": ("@nuxt/eslint", "ESLint integration with flat config"),
    "test-utils": ("@nuxt/test-utils", "Testing utilities with Vitest"),
    "pinia": ("@pinia/nuxt", "State management + persistedstate"),
    "vueuse": ("@vueuse/nuxt", "Vue Composition Utilities"),
    "motion": ("@vueuse/motion", "Animation directives"),
    "seo": ("@nuxtjs/seo", "Complete SEO solution"),
    "security": ("nuxt-security", "Security based on OWASP Top 10"),
    "mdc": ("@nuxtjs/mdc", "Markdown components"),
}

OPTIONAL_MODULES = {
    "content": ("@nuxt/content", "File-based CMS with Markdown support"),
    "image": ("@nuxt/image", "Image optimization with providers"),
}

STORAGE_OPTIONS = {
    "postgres": ("PostgreSQL", "Relational database"),
    "mongo": ("MongoDB", "Document database"),
    "minio": ("MinIO", "S3-compatible object storage"),
    "redis": ("Redis", "In-memory cache/store"),
    "qdrant": ("Qdrant", "Vector database for AI"),
}

ORM_OPTIONS = {
    "drizzle": ("Drizzle ORM", "TypeScript ORM with Bun native support"),
    "prisma": ("Prisma", "Next-generation Node.js ORM"),
    "none": ("None", "Skip ORM setup"),
}

AUTH_OPTIONS = {
    "better-auth": ("Better Auth", "Framework-agnostic auth with email/password and OAuth"),
    "none": ("None", "Skip authentication setup"),
}

EMAIL_OPTIONS = {
    "nodemailer": ("Nodemailer", "SMTP email delivery for verification mails"),
    "none": ("None", "Skip email service"),
}

RELATIONAL_STORAGE = "postgres"
CACHE_STORAGE = "redis"
AUTH_WITH_EMAIL = "better-auth"
NONE = "none"


class SelectionError(ValueError):
    """Raised when user input cannot form a valid selection."""


@dataclass(frozen=True)
class Selection:
    project_name: str
    project_path: Path
    modules: tuple[str, ...] = ()
    optional_modules: tuple[str, ...] = ()
    storage: tuple[str, ...] = ()
    orm: str = NONE
    auth: str = NONE
    email_service: str = NONE
    dry_run: bool = False
    here: bool = False

    @property
    def effective_orm(self) -> str:
        """ORM choice, or ``none`` when no relational storage is selected."""
        return self.orm if RELATIONAL_STORAGE in self.storage else NONE

    @property
    def effective_email_service(self) -> str:
        """Email service, or ``none`` unless the auth provider sends mail."""
        return self.email_service if self.auth == AUTH_WITH_EMAIL else NONE

    def has_module(self, key: str) -> bool:
        return key in self.modules or key in self.optional_modules

    def summary_rows(self) -> list[tuple[str, str]]:
        def _join(values):
            return ", ".join(values) if values else "None"

        rows = [
            ("Project", self.project_name),
            ("Path", str(self.project_path)),
            ("Modules", _join(self.modules)),
            ("Optional", _join(self.optional_modules)),
            ("Storage", _join(self.storage)),
            ("ORM", self.effective_orm),
            ("Auth", self.auth),
        ]
        if self.auth == AUTH_WITH_EMAIL:
            rows.append(("Email", self.effective_email_service))
        return rows


def validate_project_name(name: str) -> str | None:
    """Return an error message for an invalid project name, else None."""
    if not name:
        return "Project name is required"
    if name == CURRENT_DIR:
        return None
    if not PROJECT_NAME_PATTERN.match(name):
        return "Project name can only contain letters, numbers, hyphens, and underscores"
    return None


def _check_choices(field: str, values, allowed: dict) -> tuple[str, ...]:
    unknown = [v for v in values if v not in allowed]
    if unknown:
        raise SelectionError(
            f"Invalid {field}: {', '.join(unknown)}. Choose from: {', '.join(allowed)}"
        )
    # Keep the first occurrence of each value
    return tuple(dict.fromkeys(values))


def build_selection(
    project_name: str,
    base_dir: Path,
    modules=(),
    optional_modules=(),
    storage=(),
    orm: str = NONE,
    auth: str = NONE,
    email_service: str = NONE,
    dry_run: bool = False,
) -> Selection:
    """Validate raw choices and build an immutable ``Selection``.

    ``project_name`` may be ``"."`` to scaffold into ``base_dir`` itself, in
    which case the directory name becomes the project name.
    """
    error = validate_project_name(project_name)
    if error:
        raise SelectionError(error)

    base_dir = Path(base_dir).resolve()
    here = project_name == CURRENT_DIR
    if here:
        name, path = base_dir.name, base_dir
    else:
        name, path = project_name, base_dir / project_name

    for field, value, allowed in (
        ("ORM", orm, ORM_OPTIONS),
        ("auth provider", auth, AUTH_OPTIONS),
        ("email service", email_service, EMAIL_OPTIONS),
    ):
        if value not in allowed:
            raise SelectionError(f"Invalid {field} '{value}'. Choose from: {', '.join(allowed)}")

    storage = _check_choices("storage", storage, STORAGE_OPTIONS)
    # Gated choices collapse to "none" so an ungated combination never leaves here
    if RELATIONAL_STORAGE not in storage:
        orm = NONE
    if auth != AUTH_WITH_EMAIL:
        email_service = NONE

    return Selection(
        project_name=name,
        project_path=path,
        modules=_check_choices("modules", modules, RECOMMENDED_MODULES),
        optional_modules=_check_choices("optional modules", optional_modules, OPTIONAL_MODULES),
        storage=storage,
        orm=orm,
        auth=auth,
        email_service=email_service,
        dry_run=dry_run,
        here=here,
    )
