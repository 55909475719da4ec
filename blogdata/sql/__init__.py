"""
Statement execution layer.

Key Components:
- binding: placeholder parsing and parameter validation
- row_mapper: row-to-entity conversion
- template: one-call execute-and-map helpers
- client: fluent statement builder
"""

from blogdata.sql.binding import bind_statement, parse_statement
from blogdata.sql.client import MappedQuery, StatementClient, StatementSpec
from blogdata.sql.row_mapper import RowMapper, single_column
from blogdata.sql.template import QueryTemplate

__all__ = [
    "MappedQuery",
    "QueryTemplate",
    "RowMapper",
    "StatementClient",
    "StatementSpec",
    "bind_statement",
    "parse_statement",
    "single_column",
]
