"""The Post entity and its persistence metadata."""

from datetime import date as Date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from blogdata.domain.metadata import EntityMetadata


class Post(BaseModel):
    """
    One row of the Post table.

    Instances are immutable; repository operations return new copies.
    `version` is None until the post has been inserted.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    slug: str = Field(min_length=1)
    date: Date
    time_to_read: int
    tags: str | None = None
    version: int | None = Field(default=None, ge=0)

    @field_validator("date", mode="before")
    @classmethod
    def validate_date(cls, v: Any) -> Date:
        """Accept dates and ISO 8601 date strings only; numbers are not timestamps here."""
        if isinstance(v, Date):
            return v
        if isinstance(v, str):
            return Date.fromisoformat(v)
        raise ValueError(f"date must be a date or an ISO 8601 string, got {type(v).__name__}")


POST_METADATA: EntityMetadata[Post] = EntityMetadata(
    entity_type=Post,
    table="post",
    id_field="id",
    version_field="version",
)
