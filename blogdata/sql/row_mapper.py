"""
Row-to-entity mapping.

A RowMapper turns one result row (a mapping of column name to raw value)
into one entity, using the entity's metadata for the column names and for
which fields may be NULL. Mapping never touches the database.
"""

from collections.abc import Callable, Mapping, Sequence
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from blogdata.core.errors import MappingError
from blogdata.domain.metadata import EntityMetadata

T = TypeVar("T", bound=BaseModel)
V = TypeVar("V")

# Anything that maps one row to one value.
RowMapperFn = Callable[[Mapping[str, Any]], V]


class RowMapper(Generic[T]):
    """Maps result rows onto an entity model declared by EntityMetadata."""

    def __init__(self, metadata: EntityMetadata[T]) -> None:
        self.metadata = metadata
        self._columns = metadata.columns
        self._nullable = metadata.nullable_fields

    def __call__(self, row: Mapping[str, Any]) -> T:
        return self.map_row(row)

    def map_row(self, row: Mapping[str, Any]) -> T:
        """
        Convert one row into an entity.

        Column names match case-insensitively. A nullable column that is NULL
        or absent from the row maps to None.

        Raises:
            MappingError: If a required column is missing or NULL, or a value
                cannot be coerced to the field type
        """
        entity_name = self.metadata.entity_name
        by_column = {str(key).lower(): value for key, value in row.items()}

        values: dict[str, Any] = {}
        for field_name, column in self._columns.items():
            key = column.lower()
            if key not in by_column:
                if field_name in self._nullable:
                    values[field_name] = None
                    continue
                raise MappingError(
                    f"Required column '{column}' missing from {entity_name} row",
                    details={"column": column, "columns": sorted(by_column)},
                )
            value = by_column[key]
            if value is None and field_name not in self._nullable:
                raise MappingError(
                    f"Column '{column}' is NULL but {entity_name}.{field_name} is required",
                    details={"column": column},
                )
            values[field_name] = value

        try:
            return self.metadata.entity_type.model_validate(values)
        except ValidationError as e:
            raise MappingError(
                f"Row cannot be mapped to {entity_name}",
                details={"errors": e.errors(include_url=False, include_context=False)},
            ) from e

    def map_rows(self, rows: Sequence[Mapping[str, Any]]) -> list[T]:
        return [self.map_row(row) for row in rows]


def rows_from_cursor(description: Sequence[Sequence[Any]], rows: Sequence[Sequence[Any]]):
    """Turn DBAPI tuples into column-name mappings using `cursor.description`."""
    names = [column[0] for column in description]
    return [dict(zip(names, row, strict=True)) for row in rows]


def single_column(cast: Callable[[Any], V]) -> RowMapperFn[V]:
    """Row mapper returning the first column of each row, passed through `cast`."""

    def mapper(row: Mapping[str, Any]) -> V:
        try:
            value = next(iter(row.values()))
        except StopIteration:
            raise MappingError("Row has no columns") from None
        try:
            return cast(value)
        except (TypeError, ValueError) as e:
            raise MappingError(
                f"Cannot convert {value!r} with {getattr(cast, '__name__', cast)}",
                details={"value": repr(value)},
            ) from e

    return mapper
