"""
Post reads over a raw DBAPI connection.

No statement helper, no binding layer: borrow the driver connection from the
pool, run the statement on a cursor, turn the tuples into posts by hand.
"""

import logging

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from blogdata.core.db import get_engine
from blogdata.core.errors import StorageError
from blogdata.domain.post import POST_METADATA, Post
from blogdata.sql.row_mapper import RowMapper, rows_from_cursor

logger = logging.getLogger(__name__)


class RawPostService:
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine
        self._mapper = RowMapper(POST_METADATA)

    @property
    def engine(self) -> Engine:
        return self._engine if self._engine is not None else get_engine()

    def find_all(self) -> list[Post]:
        engine = self.engine
        dbapi_error = engine.dialect.loaded_dbapi.Error

        try:
            # Pool checkout failures arrive as SQLAlchemyError, driver failures as DBAPI errors.
            conn = engine.raw_connection()
            try:
                cursor = conn.cursor()
                try:
                    cursor.execute("select * from post")
                    rows = rows_from_cursor(cursor.description, cursor.fetchall())
                finally:
                    cursor.close()
            finally:
                conn.close()
        except (dbapi_error, SQLAlchemyError) as e:
            logger.error(f"Raw query failed: {type(e).__name__}: {e}")
            raise StorageError(
                f"Database error: {type(e).__name__}", details={"error": str(e)}
            ) from e

        posts = [self._mapper.map_row(row) for row in rows]
        logger.info(f"Retrieved {len(posts)} posts over a raw connection")
        return posts
