"""
Templated statement execution.

QueryTemplate runs one statement per call: bind the parameters, borrow a
connection, execute, map the rows, give the connection back. Driver and
pool failures leave as StorageError with the original exception chained.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any, TypeVar

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from blogdata.core.db import get_connection, get_engine
from blogdata.core.errors import CardinalityError, StorageError
from blogdata.sql.binding import BoundStatement, bind_statement
from blogdata.sql.row_mapper import RowMapperFn

logger = logging.getLogger(__name__)

V = TypeVar("V")

Params = Sequence[Any] | Mapping[str, Any] | None


class QueryTemplate:
    """One-call helpers for parameterized statements."""

    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine

    @property
    def engine(self) -> Engine:
        return self._engine if self._engine is not None else get_engine()

    def query(self, sql: str, params: Params = None, *, mapper: RowMapperFn[V]) -> list[V]:
        """Run a read statement and map every row, in result order."""
        return self.fetch(bind_statement(sql, params), mapper)

    def query_optional(
        self, sql: str, params: Params = None, *, mapper: RowMapperFn[V]
    ) -> V | None:
        """
        Run a read statement expected to match at most one row.

        Raises:
            CardinalityError: If more than one row matched
        """
        return self.fetch_optional(bind_statement(sql, params), mapper)

    def update(self, sql: str, params: Params = None) -> int:
        """Run an insert/update/delete and return the affected-row count."""
        return self.execute_update(bind_statement(sql, params))

    def fetch(
        self, statement: BoundStatement, mapper: RowMapperFn[V], *, limit: int | None = None
    ) -> list[V]:
        """Execute a bound read statement, fetching at most `limit` rows."""
        logger.debug(f"Query: {statement.source}")
        try:
            with get_connection(self.engine) as conn:
                result = conn.execute(statement.clause).mappings()
                rows = result.all() if limit is None else result.fetchmany(limit)
                return [mapper(row) for row in rows]
        except SQLAlchemyError as e:
            raise self._storage_error(statement, e) from e

    def fetch_optional(self, statement: BoundStatement, mapper: RowMapperFn[V]) -> V | None:
        rows = self.fetch(statement, mapper, limit=2)
        if len(rows) > 1:
            raise CardinalityError(
                "Expected at most one row, got several",
                row_count=len(rows),
                details={"sql": statement.source},
            )
        return rows[0] if rows else None

    def execute_update(self, statement: BoundStatement) -> int:
        """Execute a bound mutation in its own transaction."""
        logger.debug(f"Update: {statement.source}")
        try:
            with get_connection(self.engine, transactional=True) as conn:
                affected = conn.execute(statement.clause).rowcount
        except SQLAlchemyError as e:
            raise self._storage_error(statement, e) from e
        logger.debug(f"Update affected {affected} row(s)")
        return affected

    @staticmethod
    def _storage_error(statement: BoundStatement, error: SQLAlchemyError) -> StorageError:
        logger.error(f"Statement failed: {type(error).__name__}: {error}")
        return StorageError(
            f"Database error: {type(error).__name__}",
            details={"sql": statement.source, "error": str(getattr(error, "orig", error))},
        )
