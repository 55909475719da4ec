"""
SQLAlchemy 2.x table declaration for the Post table.

The data-access layer never goes through the ORM; this declaration exists so
the schema can be provisioned for local runs and tests.
"""

import datetime

from sqlalchemy import Date, Integer, String, insert
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all table declarations."""


class PostRecord(Base):
    """Post(id, title, slug, date, time_to_read, tags, version)."""

    __tablename__ = "post"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    # Not unique on purpose: lookups by slug must cope with duplicates.
    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    time_to_read: Mapped[int] = mapped_column(Integer, nullable=False)
    tags: Mapped[str | None] = mapped_column(String(255), nullable=True)
    version: Mapped[int | None] = mapped_column(Integer, nullable=True)


def create_schema(engine: Engine, *, drop_existing: bool = False) -> None:
    """Create the Post table, optionally dropping it first."""
    if drop_existing:
        Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)


def seed_posts(engine: Engine) -> None:
    """Insert the sample post shipped with the schema."""
    with engine.begin() as conn:
        conn.execute(
            insert(PostRecord).values(
                id="1",
                title="Hello, World!",
                slug="hello-world",
                date=datetime.date.today(),
                time_to_read=5,
                tags="Spring Boot, Java",
                version=None,
            )
        )
