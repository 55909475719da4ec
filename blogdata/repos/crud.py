"""
Generic CRUD repository with optimistic locking.

All SQL is generated from the entity's EntityMetadata and executed through
the StatementClient with named parameters. Every mutation of an existing row
is guarded by the version the caller last read.
"""

import logging
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from blogdata.core.errors import DuplicateKeyError, StorageError
from blogdata.core.optimistic_lock import (
    VERSION_GUARD,
    check_version_applied,
    current_version,
)
from blogdata.domain.metadata import EntityMetadata
from blogdata.repos.derived import DerivedQuery
from blogdata.sql.client import StatementClient
from blogdata.sql.row_mapper import RowMapper, single_column
from blogdata.sql.template import QueryTemplate

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

_UNSET: Any = object()

# Parameter names the generated UPDATE uses besides the entity's own fields.
_RESERVED_PARAMS = frozenset({"expected_version", "next_version", "value"})


class CrudRepository(Generic[T]):
    """
    Base repository: subclasses set `metadata` and, optionally, a table of
    `derived_queries` that `find_derived` executes.

    `save` inserts entities that have no version yet and updates the others.
    """

    metadata: ClassVar[EntityMetadata]
    derived_queries: ClassVar[dict[str, DerivedQuery]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        metadata = cls.__dict__.get("metadata")
        if metadata is None:
            return
        if metadata.version_field is None:
            raise TypeError(f"{cls.__name__}: {metadata.entity_name} declares no version field")
        clashes = _RESERVED_PARAMS & set(metadata.columns)
        if clashes:
            raise TypeError(f"{cls.__name__}: field names {sorted(clashes)} are reserved")
        for name, query in cls.derived_queries.items():
            if query.field not in metadata.columns:
                raise TypeError(
                    f"{cls.__name__}.{name}: {metadata.entity_name} has no field '{query.field}'"
                )

    def __init__(self, engine: Engine | None = None, *, client: StatementClient | None = None):
        self.client = client or StatementClient(QueryTemplate(engine))
        self.mapper: RowMapper[T] = RowMapper(self.metadata)

        meta = self.metadata
        self._table = meta.table
        self._id_column = meta.id_column
        self._version_column = meta.version_column
        self._select_sql = f"SELECT {', '.join(meta.columns.values())} FROM {meta.table}"
        self._by_id = f"{meta.id_column} = :{meta.id_field}"

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def find_all(self) -> list[T]:
        return self.client.sql(self._select_sql).query(self.mapper).list()

    def find_by_id(self, entity_id: Any) -> T | None:
        return (
            self.client.sql(f"{self._select_sql} WHERE {self._by_id}")
            .param(self.metadata.id_field, entity_id)
            .query(self.mapper)
            .optional()
        )

    def exists_by_id(self, entity_id: Any) -> bool:
        found = (
            self.client.sql(f"SELECT COUNT(*) AS n FROM {self._table} WHERE {self._by_id}")
            .param(self.metadata.id_field, entity_id)
            .query(single_column(int))
            .single()
        )
        return found > 0

    def count(self) -> int:
        return self.client.sql(f"SELECT COUNT(*) AS n FROM {self._table}").query(
            single_column(int)
        ).single()

    def find_derived(self, name: str, value: Any = _UNSET) -> T | None | list[T]:
        """
        Run one of the declared derived queries.

        Unique queries return the matching entity or None and raise
        CardinalityError when several rows match; the others return a list.
        """
        try:
            query = self.derived_queries[name]
        except KeyError:
            raise ValueError(f"{type(self).__name__} declares no derived query '{name}'") from None

        column = self.metadata.column(query.field)
        spec = self.client.sql(f"{self._select_sql} WHERE {query.where_clause(column)}")
        if query.takes_value:
            if value is _UNSET:
                raise ValueError(f"Derived query '{name}' needs a value")
            spec.param("value", value)

        mapped = spec.query(self.mapper)
        return mapped.optional() if query.unique else mapped.list()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def save(self, entity: T) -> T:
        """
        Insert the entity if its identity is not stored yet, otherwise update it.

        An entity carrying a version was read from storage and always takes
        the guarded update. Without a version the identity is looked up; a
        stored row is then updated as version 0, which also matches rows
        whose version column is NULL.

        Raises:
            ConcurrencyConflict: If the stored row changed since it was read,
                or a versioned entity's row is gone
        """
        meta = self.metadata
        if getattr(entity, meta.version_field) is not None:
            return self.update(entity)
        if self.exists_by_id(getattr(entity, meta.id_field)):
            return self.update(entity)
        return self.insert(entity)

    def insert(self, entity: T) -> T:
        """
        Insert an entity with version 0.

        Raises:
            DuplicateKeyError: If an entity with the same identity is stored
        """
        meta = self.metadata
        values = entity.model_dump()
        values[meta.version_field] = 0

        columns = ", ".join(meta.columns.values())
        placeholders = ", ".join(f":{name}" for name in meta.columns)
        sql = f"INSERT INTO {self._table} ({columns}) VALUES ({placeholders})"

        entity_id = values[meta.id_field]
        try:
            self.client.execute(sql, values)
        except StorageError as e:
            if isinstance(e.__cause__, IntegrityError) and self.exists_by_id(entity_id):
                logger.warning(f"Duplicate {meta.entity_name} id: {entity_id}")
                raise DuplicateKeyError(meta.entity_name, entity_id) from e
            raise

        logger.info(f"Inserted {meta.entity_name} {entity_id} at version 0")
        return entity.model_copy(update={meta.version_field: 0})

    def update(self, entity: T) -> T:
        """
        Update an entity if its stored version still equals `entity.version`.

        Returns:
            A copy of the entity carrying the incremented version

        Raises:
            ConcurrencyConflict: If the row changed since it was read, or is gone
        """
        meta = self.metadata
        values = entity.model_dump()
        entity_id = values[meta.id_field]
        expected = current_version(values.pop(meta.version_field))

        assignments = [
            f"{column} = :{name}"
            for name, column in meta.columns.items()
            if name not in (meta.id_field, meta.version_field)
        ]
        assignments.append(f"{self._version_column} = :next_version")
        guard = VERSION_GUARD.format(column=self._version_column)
        sql = f"UPDATE {self._table} SET {', '.join(assignments)} WHERE {self._by_id} AND {guard}"

        affected = self.client.execute(
            sql, {**values, "next_version": expected + 1, "expected_version": expected}
        )
        check_version_applied(
            affected,
            entity_type=meta.entity_name,
            entity_id=entity_id,
            expected_version=expected,
            lookup_version=lambda: self._lookup_version(entity_id),
        )

        logger.info(f"Updated {meta.entity_name} {entity_id} to version {expected + 1}")
        return entity.model_copy(update={meta.version_field: expected + 1})

    def delete_by_id(self, entity_id: Any, version: int | None = None) -> int:
        """
        Delete the row with the given identity.

        Without `version` the delete is unconditional and returns the number
        of rows removed (0 when nothing matched). With `version` it only
        removes the row if that version is still current.

        Raises:
            ConcurrencyConflict: If `version` is given and no row was removed
        """
        sql = f"DELETE FROM {self._table} WHERE {self._by_id}"
        params: dict[str, Any] = {self.metadata.id_field: entity_id}
        if version is not None:
            sql += f" AND {VERSION_GUARD.format(column=self._version_column)}"
            params["expected_version"] = version

        affected = self.client.execute(sql, params)
        if version is not None:
            check_version_applied(
                affected,
                entity_type=self.metadata.entity_name,
                entity_id=entity_id,
                expected_version=version,
                lookup_version=lambda: self._lookup_version(entity_id),
            )

        logger.info(f"Deleted {affected} {self.metadata.entity_name} row(s) with id {entity_id}")
        return affected

    def delete(self, entity: T) -> int:
        """Delete an entity, guarded by its version when it has one."""
        meta = self.metadata
        return self.delete_by_id(
            getattr(entity, meta.id_field), getattr(entity, meta.version_field)
        )

    def delete_all(self) -> int:
        affected = self.client.execute(f"DELETE FROM {self._table}")
        logger.info(f"Deleted all {affected} {self.metadata.entity_name} row(s)")
        return affected

    def _lookup_version(self, entity_id: Any) -> tuple[bool, int | None]:
        row = (
            self.client.sql(f"SELECT {self._version_column} FROM {self._table} WHERE {self._by_id}")
            .param(self.metadata.id_field, entity_id)
            .query(lambda row: (True, next(iter(row.values()))))
            .optional()
        )
        return row if row is not None else (False, None)
