"""
Fluent statement client.

Usage:
    client = StatementClient(row_mapper=RowMapper(POST_METADATA))

    posts = client.sql("SELECT * FROM post").query().list()
    post = client.sql("SELECT * FROM post WHERE id = :id").param("id", "1").query().optional()
    count = client.sql("DELETE FROM post WHERE id = ?").param("1").update()

    # Same operations without the builder
    client.query("SELECT * FROM post")
    client.query_one("SELECT * FROM post WHERE slug = ?", ["hello-world"])
    client.execute("DELETE FROM post WHERE id = :id", {"id": "1"})

Parameters are bound either positionally or by name, never both. The mode is
fixed by the first parameter added; adding one of the other kind raises
BindingError straight away.
"""

import builtins
from collections.abc import Mapping, Sequence
from typing import Any, Generic, TypeVar

from blogdata.core.errors import BindingError, CardinalityError
from blogdata.sql.binding import BindingMode, BoundStatement, bind_statement, parse_statement
from blogdata.sql.row_mapper import RowMapperFn
from blogdata.sql.template import Params, QueryTemplate

V = TypeVar("V")

_UNSET: Any = object()


class MappedQuery(Generic[V]):
    """A bound read statement plus the mapper for its rows."""

    def __init__(self, template: QueryTemplate, statement: BoundStatement, mapper: RowMapperFn[V]):
        self._template = template
        self._statement = statement
        self._mapper = mapper

    def list(self) -> builtins.list[V]:
        """All rows, in the order the database returned them."""
        return self._template.fetch(self._statement, self._mapper)

    def optional(self) -> V | None:
        """The only row, or None. More than one row is a CardinalityError."""
        return self._template.fetch_optional(self._statement, self._mapper)

    def single(self) -> V:
        """Exactly one row; zero or several raise CardinalityError."""
        value = self.optional()
        if value is None:
            raise CardinalityError(
                "Expected exactly one row, got none",
                row_count=0,
                details={"sql": self._statement.source},
            )
        return value


class StatementSpec:
    """A SQL template collecting its parameters."""

    def __init__(self, template: QueryTemplate, sql: str, row_mapper: RowMapperFn | None = None):
        self._template = template
        self._parsed = parse_statement(sql)
        self._row_mapper = row_mapper
        self._positional: list[Any] = []
        self._named: dict[str, Any] = {}

    @property
    def mode(self) -> BindingMode | None:
        if self._positional:
            return BindingMode.POSITIONAL
        if self._named:
            return BindingMode.NAMED
        return None

    def param(self, name_or_value: Any, value: Any = _UNSET) -> "StatementSpec":
        """
        Add one parameter.

        `param(value)` appends the next positional value;
        `param(name, value)` sets a named value.
        """
        if value is _UNSET:
            self._require_mode(BindingMode.POSITIONAL)
            self._positional.append(name_or_value)
        else:
            if not isinstance(name_or_value, str):
                raise BindingError(
                    f"Parameter name must be a string, got {type(name_or_value).__name__}"
                )
            self._require_mode(BindingMode.NAMED)
            self._named[name_or_value] = value
        return self

    def params(self, values: Sequence[Any] | Mapping[str, Any]) -> "StatementSpec":
        """Add positional values from a sequence, or named values from a mapping."""
        if isinstance(values, Mapping):
            for name, value in values.items():
                self.param(name, value)
        elif isinstance(values, (str, bytes)):
            raise BindingError("Parameters must be a sequence or a mapping, not a string")
        else:
            for value in values:
                self.param(value)
        return self

    def bind(self) -> BoundStatement:
        """Validate the collected parameters against the placeholders."""
        if self.mode is BindingMode.NAMED:
            return bind_statement(self._parsed, self._named)
        return bind_statement(self._parsed, self._positional)

    def query(self, mapper: RowMapperFn[V] | None = None) -> MappedQuery[V]:
        """Prepare the statement for reading; binding errors surface here."""
        mapper = mapper or self._row_mapper
        if mapper is None:
            raise ValueError("No row mapper given and the client has no default")
        return MappedQuery(self._template, self.bind(), mapper)

    def update(self) -> int:
        """Execute as a mutation and return the affected-row count."""
        return self._template.execute_update(self.bind())

    def _require_mode(self, mode: BindingMode) -> None:
        current = self.mode
        if current is not None and current is not mode:
            raise BindingError(
                f"Cannot add a {mode.value} parameter to a statement already "
                f"bound with {current.value} parameters",
                details={"sql": self._parsed.source},
            )


class StatementClient:
    """Entry point for hand-written SQL with positional or named parameters."""

    def __init__(
        self, template: QueryTemplate | None = None, *, row_mapper: RowMapperFn | None = None
    ) -> None:
        self.template = template or QueryTemplate()
        self.row_mapper = row_mapper

    def sql(self, sql: str) -> StatementSpec:
        return StatementSpec(self.template, sql, self.row_mapper)

    def query(self, sql: str, params: Params = None, *, mapper: RowMapperFn | None = None) -> list:
        return self._spec(sql, params).query(mapper).list()

    def query_one(self, sql: str, params: Params = None, *, mapper: RowMapperFn | None = None):
        return self._spec(sql, params).query(mapper).optional()

    def execute(self, sql: str, params: Params = None) -> int:
        return self._spec(sql, params).update()

    def _spec(self, sql: str, params: Params) -> StatementSpec:
        spec = self.sql(sql)
        if params is not None:
            spec.params(params)
        return spec
