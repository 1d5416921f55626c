"""Tests for the Alembic migration runner."""

import pytest
from sqlalchemy import create_engine, inspect

from podstudio.infrastructure.persistence.migrate import run_migrations, to_sync_url


class TestToSyncUrl:
    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("sqlite+aiosqlite:///./podstudio.db", "sqlite:///./podstudio.db"),
            ("postgresql+asyncpg://u:p@db/podstudio", "postgresql://u:p@db/podstudio"),
            ("postgresql://u:p@db/podstudio", "postgresql://u:p@db/podstudio"),
        ],
    )
    def test_drops_async_driver(self, url: str, expected: str):
        assert to_sync_url(url) == expected


class TestRunMigrations:
    def test_creates_users_table(self, tmp_path):
        db_path = tmp_path / "nested" / "podstudio.db"

        run_migrations(f"sqlite+aiosqlite:///{db_path}")

        engine = create_engine(f"sqlite:///{db_path}")
        try:
            inspector = inspect(engine)
            columns = {c["name"] for c in inspector.get_columns("users")}
            unique = {u["name"] for u in inspector.get_unique_constraints("users")}
        finally:
            engine.dispose()

        assert {"id", "external_id", "email", "persona", "vertical", "profile_completed"} <= columns
        assert unique == {"uq_users_external_id", "uq_users_email"}

    def test_is_idempotent(self, tmp_path):
        url = f"sqlite+aiosqlite:///{tmp_path / 'podstudio.db'}"

        run_migrations(url)
        run_migrations(url)
