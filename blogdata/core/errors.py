"""
Domain-specific exceptions for the blog data-access layer.

Every failure the core can surface is one of these types so callers can
branch on the kind of error (retry on a conflict, fix a statement on a
binding error, ...). Nothing here is retried or swallowed internally.
"""

from typing import Any


class BlogDataError(Exception):
    """Base exception for all data-access errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class BindingError(BlogDataError):
    """
    Raised when statement parameters cannot be bound.

    Examples:
    - Positional parameter count differs from the number of `?` placeholders
    - A named placeholder has no value, or a value has no placeholder
    - Positional and named parameters mixed in one statement

    Always raised before a connection is acquired.
    """

    pass


class MappingError(BlogDataError):
    """
    Raised when a result row cannot be converted into an entity.

    Examples:
    - Required column missing from the result set
    - NULL in a non-nullable column
    - Value that cannot be coerced (non-numeric minutes, unparseable date)
    """

    pass


class CardinalityError(BlogDataError):
    """
    Raised when a single-result query matches the wrong number of rows.

    Examples:
    - Lookup by slug matching two posts
    - `single()` on an empty result
    """

    def __init__(
        self, message: str, row_count: int, details: dict[str, Any] | None = None
    ):
        super().__init__(message, details={"row_count": row_count, **(details or {})})
        self.row_count = row_count


class ConcurrencyConflict(BlogDataError):
    """
    Raised when a version-guarded update or delete affects no rows.

    Either another writer changed the row since the caller read it, or the
    row no longer exists. `row_exists` and `actual_version` are filled from a
    follow-up read and are informational only.
    """

    def __init__(
        self,
        entity_type: str,
        entity_id: Any,
        expected_version: int,
        actual_version: int | None = None,
        row_exists: bool | None = None,
    ):
        super().__init__(
            f"{entity_type} was modified or removed by another writer. "
            "Reload it and try again.",
            details={
                "entity_type": entity_type,
                "entity_id": str(entity_id),
                "expected_version": expected_version,
                "actual_version": actual_version,
                "row_exists": row_exists,
            },
        )
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        self.row_exists = row_exists


class DuplicateKeyError(BlogDataError):
    """Raised when inserting an entity whose identity is already stored."""

    def __init__(self, entity_type: str, entity_id: Any):
        super().__init__(
            f"{entity_type} '{entity_id}' already exists",
            details={"entity_type": entity_type, "entity_id": str(entity_id)},
        )
        self.entity_type = entity_type
        self.entity_id = entity_id


class StorageError(BlogDataError):
    """
    Raised for any failure reported by the database or its driver.

    Examples:
    - Connection refused or lost
    - Constraint violation
    - Pool or statement timeout

    The original driver exception is chained as `__cause__`.
    """

    pass
