"""
Tests for the hand-written SQL Post services.

Tests verify that:
1. The raw cursor service maps every stored row and releases its connection
2. Connection, pool and driver failures from the raw service surface as StorageError
3. PostService creates, reads, updates and deletes through the statement client
4. A stale version makes PostService.update report zero rows
"""

import datetime
import sqlite3
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from blogdata.core.errors import StorageError
from blogdata.db.models import seed_posts
from blogdata.services.post_service import PostService
from blogdata.services.raw_post_service import RawPostService
from blogdata.sql.client import StatementClient


@pytest.fixture
def service(template) -> PostService:
    return PostService(StatementClient(template))


@pytest.mark.unit
class TestRawPostService:
    def test_find_all_maps_seeded_row(self, engine):
        seed_posts(engine)

        posts = RawPostService(engine).find_all()

        assert len(posts) == 1
        post = posts[0]
        assert (post.id, post.slug, post.time_to_read) == ("1", "hello-world", 5)
        assert post.tags == "Spring Boot, Java"
        assert post.date == datetime.date.today()
        assert post.version is None

    def test_find_all_on_empty_table(self, engine):
        assert RawPostService(engine).find_all() == []

    def test_missing_table_raises_storage_error(self, bare_engine):
        with pytest.raises(StorageError) as exc_info:
            RawPostService(bare_engine).find_all()

        assert exc_info.value.__cause__ is not None
        assert bare_engine.pool.checkedout() == 0

    @pytest.mark.parametrize(
        "failure",
        [
            OperationalError("connect", {}, sqlite3.OperationalError("unable to open database")),
            PoolTimeoutError("QueuePool limit of size 5 overflow 5 reached"),
        ],
        ids=["connect", "pool-timeout"],
    )
    def test_connection_failure_raises_storage_error(self, failure):
        engine = MagicMock()
        engine.dialect.loaded_dbapi.Error = sqlite3.Error
        engine.raw_connection.side_effect = failure

        with pytest.raises(StorageError) as exc_info:
            RawPostService(engine).find_all()

        assert exc_info.value.__cause__ is failure

    def test_connection_closed_when_cursor_fails(self):
        engine = MagicMock()
        engine.dialect.loaded_dbapi.Error = sqlite3.Error
        conn = engine.raw_connection.return_value
        conn.cursor.return_value.execute.side_effect = sqlite3.OperationalError("disk I/O error")

        with pytest.raises(StorageError):
            RawPostService(engine).find_all()

        conn.cursor.return_value.close.assert_called_once()
        conn.close.assert_called_once()


@pytest.mark.unit
class TestPostService:
    def test_create_and_find(self, service, sample_post):
        assert service.create(sample_post) == 1

        found = service.find_by_id(sample_post.id)

        assert found == sample_post.model_copy(update={"version": 0})
        assert service.find_all() == [found]

    def test_find_by_id_missing(self, service):
        assert service.find_by_id("missing") is None

    def test_update_with_current_version(self, service, sample_post):
        service.create(sample_post)
        current = service.find_by_id(sample_post.id)

        affected = service.update(current.model_copy(update={"title": "New"}), sample_post.id)

        assert affected == 1
        stored = service.find_by_id(sample_post.id)
        assert (stored.title, stored.version) == ("New", 1)

    def test_update_with_stale_version_changes_nothing(self, service, sample_post):
        service.create(sample_post)
        current = service.find_by_id(sample_post.id)
        service.update(current, sample_post.id)

        affected = service.update(current.model_copy(update={"title": "Stale"}), sample_post.id)

        assert affected == 0
        assert service.find_by_id(sample_post.id).title == sample_post.title

    def test_update_without_version_is_unconditional(self, service, sample_post):
        service.create(sample_post)

        assert service.update(sample_post.model_copy(update={"slug": "moved"}), sample_post.id) == 1
        assert service.find_by_id(sample_post.id).version == 1

    def test_update_missing_post_reports_zero(self, service, sample_post):
        assert service.update(sample_post, "missing") == 0

    def test_delete(self, service, sample_post):
        service.create(sample_post)

        assert service.delete(sample_post.id) == 1
        assert service.delete(sample_post.id) == 0
        assert service.find_all() == []
