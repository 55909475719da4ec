"""
Tests for engine and connection management.

Tests verify that:
1. The application engine is created once and rebuilt after reset
2. Connections are closed when the block raises
3. Transactional blocks run inside conn.begin()
"""

from unittest.mock import MagicMock

import pytest
from sqlalchemy import text

from blogdata.core import db
from blogdata.core.config import Settings


@pytest.fixture
def sqlite_settings(tmp_path, monkeypatch):
    settings = Settings(database_url=f"sqlite:///{tmp_path / 'app.db'}")
    monkeypatch.setattr(db, "settings", settings)
    db.reset_engine()
    yield settings
    db.reset_engine()


@pytest.mark.unit
class TestGetEngine:
    def test_engine_is_cached(self, sqlite_settings):
        assert db.get_engine() is db.get_engine()

    def test_reset_builds_a_new_engine(self, sqlite_settings):
        first = db.get_engine()
        db.reset_engine()

        assert db.get_engine() is not first

    def test_engine_uses_configured_url(self, sqlite_settings):
        assert db.get_engine().url.render_as_string() == sqlite_settings.sync_url

    def test_default_engine_serves_connections(self, sqlite_settings):
        with db.get_connection() as conn:
            assert conn.execute(text("SELECT 1")).scalar() == 1


@pytest.mark.unit
class TestGetConnection:
    def test_connection_closed_on_error(self):
        engine = MagicMock()
        conn = engine.connect.return_value

        with pytest.raises(RuntimeError):
            with db.get_connection(engine):
                raise RuntimeError("boom")

        conn.close.assert_called_once()
        conn.begin.assert_not_called()

    def test_transactional_block_uses_begin(self):
        engine = MagicMock()
        conn = engine.connect.return_value

        with db.get_connection(engine, transactional=True) as borrowed:
            assert borrowed is conn

        conn.begin.assert_called_once()
        conn.close.assert_called_once()

    def test_transaction_rolled_back_and_closed_on_error(self):
        engine = MagicMock()
        conn = engine.connect.return_value
        transaction = conn.begin.return_value

        with pytest.raises(ValueError):
            with db.get_connection(engine, transactional=True):
                raise ValueError("bad row")

        exit_args = transaction.__exit__.call_args.args
        assert exit_args[0] is ValueError
        conn.close.assert_called_once()
