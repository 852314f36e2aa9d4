"""Static feature descriptor table.

Every selectable identifier (module, optional module, storage backend, ORM,
auth provider, email service) has exactly one ``FeatureDescriptor`` saying
which packages it pulls in and what it registers in ``nuxt.config.ts``.
``DEFAULT_CATALOG`` is read-only and passed explicitly to the resolvers.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True)
class JsExpression:
    """Raw TypeScript expression emitted verbatim into the config document."""

    source: str


@dataclass(frozen=True)
class StorageDriver:
    """A ``nitro.storage.<name>`` mount registered in the config document."""

    name: str
    options: Mapping[str, object]


@dataclass(frozen=True)
class FeatureDescriptor:
    key: str
    label: str
    dependencies: tuple[str, ...] = ()
    dev_dependencies: tuple[str, ...] = ()
    nuxt_modules: tuple[str, ...] = ()
    module_add: str | None = None
    stylesheet: str | None = None
    security_options: Mapping[str, object] | None = None
    secondary_storage: StorageDriver | None = None


@dataclass(frozen=True)
class FeatureCatalog:
    descriptors: Mapping[str, FeatureDescriptor]
    priority: tuple[str, ...]
    baseline_dev_dependencies: tuple[str, ...] = field(default=())

    def get(self, key: str) -> FeatureDescriptor | None:
        return self.descriptors.get(key)


# Every storage backend gets typed env validation and dotenv for db scripts
_STORAGE_DEPS = ("zod",)
_STORAGE_DEV_DEPS = ("dotenv-cli",)

TOOLING_DEV_DEPENDENCIES = (
    "concurrently",
    "husky",
    "lint-staged",
    "prettier",
    "prettier-plugin-tailwindcss",
    "@commitlint/cli",
    "@commitlint/config-conventional",
)

REDIS_STORAGE_DRIVER = StorageDriver(
    name="redis",
    options=MappingProxyType({
        "driver": "redis",
        "url": JsExpression("process.env.REDIS_URL || 'redis://localhost:6379'"),
    }),
)

_DESCRIPTORS = (
    FeatureDescriptor(
        key="nuxt-ui",
        label="@nuxt/ui",
        dependencies=("@nuxt/ui",),
        nuxt_modules=("@nuxt/ui",),
        stylesheet="~/assets/css/main.css",
    ),
    FeatureDescriptor(
        key="eslint",
        label="@nuxt/eslint",
        nuxt_modules=("@nuxt/eslint",),
        module_add="eslint",
    ),
    FeatureDescriptor(
        key="test-utils",
        label="@nuxt/test-utils",
        dev_dependencies=("@nuxt/test-utils", "vitest", "@vue/test-utils", "happy-dom"),
        nuxt_modules=("@nuxt/test-utils/module",),
    ),
    FeatureDescriptor(
        key="pinia",
        label="@pinia/nuxt",
        dependencies=("pinia-plugin-persistedstate",),
        nuxt_modules=("@pinia/nuxt", "pinia-plugin-persistedstate/nuxt"),
        module_add="pinia",
    ),
    FeatureDescriptor(
        key="vueuse",
        label="@vueuse/nuxt",
        nuxt_modules=("@vueuse/nuxt",),
        module_add="vueuse",
    ),
    FeatureDescriptor(
        key="motion",
        label="@vueuse/motion",
        dependencies=("@vueuse/motion",),
        nuxt_modules=("@vueuse/motion/nuxt",),
    ),
    FeatureDescriptor(
        key="seo",
        label="@nuxtjs/seo",
        nuxt_modules=("@nuxtjs/seo",),
        module_add="@nuxtjs/seo",
    ),
    FeatureDescriptor(
        key="security",
        label="nuxt-security",
        nuxt_modules=("nuxt-security",),
        module_add="security",
        security_options=MappingProxyType({"csrf": True}),
    ),
    FeatureDescriptor(
        key="mdc",
        label="@nuxtjs/mdc",
        dependencies=("@nuxtjs/mdc",),
        nuxt_modules=("@nuxtjs/mdc",),
    ),
    FeatureDescriptor(
        key="content",
        label="@nuxt/content",
        dependencies=("@nuxt/content",),
        nuxt_modules=("@nuxt/content",),
    ),
    FeatureDescriptor(
        key="image",
        label="@nuxt/image",
        nuxt_modules=("@nuxt/image",),
        module_add="image",
    ),
    FeatureDescriptor(
        key="postgres",
        label="PostgreSQL",
        dependencies=_STORAGE_DEPS,
        dev_dependencies=_STORAGE_DEV_DEPS,
    ),
    FeatureDescriptor(
        key="mongo",
        label="MongoDB",
        dependencies=_STORAGE_DEPS,
        dev_dependencies=_STORAGE_DEV_DEPS,
    ),
    FeatureDescriptor(
        key="minio",
        label="MinIO",
        dependencies=_STORAGE_DEPS,
        dev_dependencies=_STORAGE_DEV_DEPS,
    ),
    FeatureDescriptor(
        key="redis",
        label="Redis",
        dependencies=_STORAGE_DEPS,
        dev_dependencies=_STORAGE_DEV_DEPS,
        secondary_storage=REDIS_STORAGE_DRIVER,
    ),
    FeatureDescriptor(
        key="qdrant",
        label="Qdrant",
        dependencies=_STORAGE_DEPS,
        dev_dependencies=_STORAGE_DEV_DEPS,
    ),
    FeatureDescriptor(
        key="drizzle",
        label="Drizzle ORM",
        dependencies=("drizzle-orm", "drizzle-zod"),
        dev_dependencies=("drizzle-kit", "drizzle-seed", "postgres"),
    ),
    FeatureDescriptor(
        key="prisma",
        label="Prisma",
        dependencies=("@prisma/client",),
        dev_dependencies=("prisma",),
    ),
    FeatureDescriptor(
        key="better-auth",
        label="Better Auth",
        dependencies=("better-auth",),
    ),
    FeatureDescriptor(
        key="nodemailer",
        label="Nodemailer",
        dependencies=("nodemailer",),
        dev_dependencies=("@types/nodemailer",),
    ),
)

DEFAULT_CATALOG = FeatureCatalog(
    descriptors=MappingProxyType({d.key: d for d in _DESCRIPTORS}),
    priority=tuple(d.key for d in _DESCRIPTORS),
    baseline_dev_dependencies=TOOLING_DEV_DEPENDENCIES,
)
