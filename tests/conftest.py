"""
Pytest configuration and shared fixtures.

Provides:
- A file-backed SQLite engine per test with the Post table created
- Statement client, query template and repository bound to that engine
- Post factories
"""

from __future__ import annotations

import datetime
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from blogdata.db.models import create_schema
from blogdata.domain.post import POST_METADATA, Post
from blogdata.repos.post_repo import PostRepository
from blogdata.sql.client import StatementClient
from blogdata.sql.row_mapper import RowMapper
from blogdata.sql.template import QueryTemplate


def make_post(**overrides: Any) -> Post:
    """Build a Post with sensible defaults."""
    values: dict[str, Any] = {
        "id": "1234",
        "title": "Hello, World!",
        "slug": "hello-world",
        "date": datetime.date(2024, 1, 1),
        "time_to_read": 10,
        "tags": "Spring Boot",
        "version": None,
    }
    values.update(overrides)
    return Post(**values)


@pytest.fixture
def bare_engine(tmp_path: Path) -> Generator[Engine]:
    """Engine on an empty database (no tables)."""
    engine = create_engine(f"sqlite:///{tmp_path / 'blog.db'}")
    yield engine
    engine.dispose()


@pytest.fixture
def engine(bare_engine: Engine) -> Engine:
    """Engine on a database with the Post table created."""
    create_schema(bare_engine)
    return bare_engine


@pytest.fixture
def template(engine: Engine) -> QueryTemplate:
    return QueryTemplate(engine)


@pytest.fixture
def post_mapper() -> RowMapper[Post]:
    return RowMapper(POST_METADATA)


@pytest.fixture
def client(template: QueryTemplate, post_mapper: RowMapper[Post]) -> StatementClient:
    return StatementClient(template, row_mapper=post_mapper)


@pytest.fixture
def repository(engine: Engine) -> PostRepository:
    return PostRepository(engine)


@pytest.fixture
def post_factory() -> Callable[..., Post]:
    return make_post


@pytest.fixture
def sample_post() -> Post:
    return make_post()
