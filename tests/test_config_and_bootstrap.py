from __future__ import annotations

import pytest

from apps.api.bootstrap import initialise_database
from apps.api.core.config import Settings
from apps.api.core.logging import exporter_options, init_tracer, parse_otlp_headers
from apps.api.services.access import Role

def test_plain_postgres_dsn_uses_asyncpg():
    settings = Settings(database_url="postgresql://desk:secret@db:5432/desk")

    assert settings.async_database_url == "postgresql+asyncpg://desk:secret@db:5432/desk"

def test_sqlite_dsn_left_alone():
    assert Settings(database_url="sqlite+aiosqlite:///./x.db").async_database_url == "sqlite+aiosqlite:///./x.db"

def test_parse_otlp_headers_skips_malformed_items():
    assert parse_otlp_headers("api-key=abc, broken ,x-team = desk") == {"api-key": "abc", "x-team": "desk"}
    assert parse_otlp_headers(None) == {}

@pytest.mark.asyncio
async def test_initialise_database_seeds_manager_once(tmp_path):
    settings = Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'desk.db'}",
        default_manager_email="Boss@Example.com",
    )

    first = await initialise_database(settings)
    second = await initialise_database(settings)

    assert first.id == second.id
    assert first.role is Role.MANAGER
    assert first.email == "boss@example.com"


def test_exporter_options_from_settings():
    settings = Settings(
        otel_exporter_otlp_endpoint="http://collector:4318/v1/traces",
        otel_exporter_otlp_headers="api-key=abc",
    )

    assert exporter_options(settings) == {
        "endpoint": "http://collector:4318/v1/traces",
        "headers": {"api-key": "abc"},
    }
    assert exporter_options(Settings(otel_exporter_otlp_endpoint=None, otel_exporter_otlp_headers=None)) == {}


def test_tracer_disabled_by_default():
    assert init_tracer(Settings(otel_enabled=False)) is None
