"""
Explicit persistence metadata for entity models.

An EntityMetadata names the table, the identity field, the optional version
field and the field-to-column map of one pydantic entity model. Repositories
and row mappers generate SQL and mappings from it; nothing is discovered by
reflection over method names.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T", bound=BaseModel)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _assert_safe_identifier(identifier: str) -> None:
    # Table and column names are spliced into SQL text, never bound.
    if not _IDENTIFIER.match(identifier):
        raise ValueError(f"Unsafe SQL identifier: {identifier!r}")


@dataclass(frozen=True)
class EntityMetadata(Generic[T]):
    """Table, identity and version declaration for one entity model."""

    entity_type: type[T]
    table: str
    id_field: str
    version_field: str | None = None
    column_overrides: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        _assert_safe_identifier(self.table)
        model_fields = self.entity_type.model_fields
        for name in (self.id_field, self.version_field, *self.column_overrides):
            if name is not None and name not in model_fields:
                raise ValueError(f"{self.entity_name} has no field '{name}'")
        for column in self.columns.values():
            _assert_safe_identifier(column)

    @property
    def entity_name(self) -> str:
        return self.entity_type.__name__

    @property
    def columns(self) -> dict[str, str]:
        """Field name to column name, in model field order."""
        return {
            name: self.column_overrides.get(name, name)
            for name in self.entity_type.model_fields
        }

    @property
    def nullable_fields(self) -> frozenset[str]:
        """Fields whose column may hold NULL (fields with a default)."""
        return frozenset(
            name for name, info in self.entity_type.model_fields.items() if not info.is_required()
        )

    def column(self, field_name: str) -> str:
        try:
            return self.columns[field_name]
        except KeyError:
            raise ValueError(f"{self.entity_name} has no field '{field_name}'") from None

    @property
    def id_column(self) -> str:
        return self.column(self.id_field)

    @property
    def version_column(self) -> str | None:
        return self.column(self.version_field) if self.version_field else None
