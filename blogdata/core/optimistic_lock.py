"""
Optimistic locking utilities for concurrent modification detection.

Mutations carry the version the caller last read in their WHERE clause
(`COALESCE(version, 0) = :expected_version`). The affected-row count then
tells whether the write was applied: exactly one row means it was, zero
means another writer got there first or the row is gone.

A stored NULL version is treated as 0.
"""

import logging
from collections.abc import Callable
from typing import Any

from blogdata.core.errors import CardinalityError, ConcurrencyConflict

logger = logging.getLogger(__name__)

# SQL predicate guarding a mutation on the version column.
VERSION_GUARD = "COALESCE({column}, 0) = :expected_version"


def current_version(version: int | None) -> int:
    """Return the effective version of a stored row (NULL counts as 0)."""
    return 0 if version is None else version


def next_version(version: int | None) -> int:
    """Return the version a row will carry after one accepted update."""
    return current_version(version) + 1


def check_version_applied(
    affected: int,
    *,
    entity_type: str,
    entity_id: Any,
    expected_version: int,
    lookup_version: Callable[[], tuple[bool, int | None]] | None = None,
) -> None:
    """
    Verify that a version-guarded mutation hit exactly one row.

    Args:
        affected: Row count reported for the guarded statement
        entity_type: Entity name for error reporting
        entity_id: Identity the statement targeted
        expected_version: Version the caller presented
        lookup_version: Optional follow-up read returning (row_exists, version),
            used only to enrich the conflict details

    Raises:
        ConcurrencyConflict: If no row matched id and version
        CardinalityError: If more than one row matched (identity not unique)

    Example:
        affected = client.execute(
            "UPDATE post SET ... WHERE id = :id AND COALESCE(version, 0) = :expected_version",
            {...},
        )
        check_version_applied(
            affected, entity_type="Post", entity_id=post.id, expected_version=post.version
        )
    """
    if affected == 1:
        return

    if affected > 1:
        raise CardinalityError(
            f"Version-guarded statement on {entity_type} '{entity_id}' matched {affected} rows",
            row_count=affected,
            details={"entity_type": entity_type, "entity_id": str(entity_id)},
        )

    row_exists: bool | None = None
    actual_version: int | None = None
    if lookup_version is not None:
        row_exists, actual_version = lookup_version()

    logger.warning(
        f"Version conflict on {entity_type} '{entity_id}': "
        f"expected {expected_version}, found {actual_version} (exists={row_exists})"
    )
    raise ConcurrencyConflict(
        entity_type=entity_type,
        entity_id=entity_id,
        expected_version=expected_version,
        actual_version=actual_version,
        row_exists=row_exists,
    )
