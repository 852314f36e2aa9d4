"""Tests for the generated file contents."""

from datetime import date
from pathlib import Path

import yaml

from nuxt_scaffold_cli import templates
from nuxt_scaffold_cli.selection import Selection


def _selection(**choices) -> Selection:
    return Selection("shop", Path("/tmp/shop"), **choices)


class TestNuxtConfig:
    def test_starter_has_compatibility_date(self):
        config = templates.nuxt_config(date(2026, 1, 2))
        assert "compatibilityDate: '2026-01-02'," in config
        assert "devtools: { enabled: true }," in config
        assert "defineNuxtConfig({" in config


class TestDockerCompose:
    def test_only_selected_services(self):
        compose = yaml.safe_load(templates.docker_compose("shop", ("redis", "postgres")))
        assert list(compose["services"]) == ["postgres", "redis"]
        assert compose["services"]["postgres"]["image"] == "postgres:16-alpine"
        assert compose["services"]["postgres"]["container_name"] == "shop-postgres"
        assert compose["services"]["redis"]["restart"] == "unless-stopped"
        assert set(compose["volumes"]) == {"postgres_data", "redis_data"}

    def test_minio_command_and_ports(self):
        compose = yaml.safe_load(templates.docker_compose("shop", ("minio",)))
        minio = compose["services"]["minio"]
        assert minio["command"] == "server /data --console-address :9001"
        assert minio["ports"] == ["9000:9000", "9001:9001"]

    def test_volumes_render_as_bare_keys(self):
        text = templates.docker_compose("shop", ("qdrant",))
        assert "qdrant_data:\n" in text
        assert "null" not in text


class TestEnv:
    def test_sections_follow_selection(self):
        env = templates.env_template(_selection(storage=("redis",), auth="better-auth"))
        assert "NODE_ENV=development" in env
        assert "REDIS_URL=redis://localhost:6379" in env
        assert "BETTER_AUTH_SECRET" in env
        assert "POSTGRES_USER" not in env
        assert "GMAIL_USER" not in env

    def test_email_section_requires_auth(self):
        env = templates.env_template(_selection(auth="better-auth", email_service="nodemailer"))
        assert "GMAIL_USER=" in env
        env = templates.env_template(_selection(email_service="nodemailer"))
        assert "GMAIL_USER" not in env

    def test_schema(self):
        schema = templates.env_schema(("postgres", "qdrant"))
        assert "DATABASE_URL: z.string().url()," in schema
        assert "QDRANT_URL" in schema
        assert "REDIS_URL" not in schema
        assert schema.rstrip().endswith("export type Env = z.infer<typeof envSchema>")


class TestBetterAuth:
    def test_drizzle_adapter(self):
        server = templates.auth_server(_selection(storage=("postgres",), orm="drizzle", auth="better-auth"))
        assert "drizzleAdapter(db, {" in server
        assert "import { db } from './db'" in server
        assert "secondaryStorage" not in server
        assert "strategy: 'jwe'" not in server

    def test_prisma_adapter_with_redis(self):
        server = templates.auth_server(_selection(storage=("postgres", "redis"), orm="prisma", auth="better-auth"))
        assert "prismaAdapter(prisma, {" in server
        assert "useStorage('redis')" in server

    def test_stateless_without_orm_or_redis(self):
        server = templates.auth_server(_selection(auth="better-auth"))
        assert "database:" not in server
        assert "strategy: 'jwe'" in server
        assert "storeStateStrategy: 'cookie'" in server

    def test_email_hooks_only_with_nodemailer(self):
        with_email = templates.auth_server(_selection(auth="better-auth", email_service="nodemailer"))
        without = templates.auth_server(_selection(auth="better-auth"))
        assert "sendVerificationEmail" in with_email
        assert "sendVerificationEmail" not in without

    def test_middleware_uses_store_with_pinia(self):
        assert "useAuthStore()" in templates.auth_middleware(True)
        plain = templates.auth_middleware(False)
        assert "authClient.getSession()" in plain
        assert "useAuthStore" not in plain


class TestTooling:
    def test_prettier_config_is_json(self):
        import json

        config = json.loads(templates.prettier_config())
        assert config["plugins"] == ["prettier-plugin-tailwindcss"]
        assert config["semi"] is False

    def test_vscode_files(self):
        import json

        assert json.loads(templates.vscode_settings())["eslint.useFlatConfig"] is True
        assert "vue.volar" in json.loads(templates.vscode_extensions())["recommendations"]


class TestSharedUtils:
    def test_index_exports(self):
        assert templates.shared_utils_index(False) == "export * from './error-handling'\n"
        assert "export * from './env-schema'" in templates.shared_utils_index(True)


class TestWorkflows:
    def test_production_without_database(self):
        workflow = yaml.safe_load(templates.ci_workflow("Production CI", ["main"], has_database=False))
        assert workflow["name"] == "Production CI"
        assert list(workflow["jobs"]) == ["build"]
        # PyYAML reads the bare "on" key as boolean True
        assert workflow[True]["push"]["branches"] == ["main"]

    def test_preview_with_database(self):
        text = templates.ci_workflow(
            "Preview CI",
            ["preview", "develop"],
            has_database=True,
            database_secret="TEST_DATABASE_URL",
            migrate_label="Run migrations (test database)",
        )
        workflow = yaml.safe_load(text)
        migrate = workflow["jobs"]["migrate"]
        assert migrate["needs"] == "build"
        assert migrate["steps"][-1]["name"] == "Run migrations (test database)"
        assert migrate["steps"][-1]["env"]["DATABASE_URL"] == "${{ secrets.TEST_DATABASE_URL }}"
