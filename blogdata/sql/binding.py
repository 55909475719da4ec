"""
Placeholder parsing and parameter binding for SQL templates.

Statements are written with either positional `?` placeholders or named
`:name` placeholders, never both. Parsing happens before any connection is
acquired, so every BindingError is raised without touching the database.

The parsed statement is rewritten into a SQLAlchemy `text()` clause whose
values travel as bind parameters; nothing is interpolated into the SQL.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from sqlalchemy import bindparam, text
from sqlalchemy.sql.elements import TextClause

from blogdata.core.errors import BindingError

# Bind names given to `?` placeholders after rewriting.
POSITIONAL_PREFIX = "_p"

_NAME_START = frozenset("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ_")
_NAME_CHARS = _NAME_START | frozenset("0123456789")


class BindingMode(str, Enum):
    """How a statement's parameters are supplied."""

    POSITIONAL = "positional"
    NAMED = "named"


@dataclass(frozen=True)
class ParsedStatement:
    """A SQL template with its placeholders located."""

    source: str
    sql: str
    positional_count: int = 0
    names: tuple[str, ...] = ()

    @property
    def mode(self) -> BindingMode | None:
        if self.positional_count:
            return BindingMode.POSITIONAL
        if self.names:
            return BindingMode.NAMED
        return None


@dataclass(frozen=True)
class BoundStatement:
    """A statement ready to execute: SQL clause plus its bound values."""

    source: str
    clause: TextClause
    parameters: dict[str, Any] = field(default_factory=dict)


def _skip_quoted(sql: str, start: int) -> int:
    """Return the index just past the quoted section opened at `start`."""
    quote = sql[start]
    i = start + 1
    while i < len(sql):
        if sql[i] == quote:
            # A doubled quote is an escaped quote, not the end of the literal.
            if i + 1 < len(sql) and sql[i + 1] == quote:
                i += 2
                continue
            return i + 1
        i += 1
    raise BindingError(
        f"Unterminated {quote} quote in statement", details={"sql": sql, "position": start}
    )


def _skip_comment(sql: str, start: int) -> int:
    if sql.startswith("--", start):
        end = sql.find("\n", start)
        return len(sql) if end == -1 else end
    end = sql.find("*/", start + 2)
    return len(sql) if end == -1 else end + 2


def _placeholder(name: str, sql: str, end: int) -> str:
    # SQLAlchemy does not see a bind name directly followed by a colon, as in `:id::text`.
    if sql.startswith(":", end):
        return f"(:{name})"
    return f":{name}"


def parse_statement(sql: str) -> ParsedStatement:
    """
    Locate the placeholders of a SQL template.

    Placeholders inside string literals, quoted identifiers and comments are
    ignored, as are PostgreSQL `::type` casts and colons glued to a preceding
    word. Colons in skipped sections are escaped so SQLAlchemy leaves them
    alone.

    Raises:
        BindingError: If the statement mixes `?` and `:name` placeholders,
            or a quote is left open
    """
    out: list[str] = []
    names: list[str] = []
    positional = 0
    i = 0
    n = len(sql)

    while i < n:
        ch = sql[i]

        if ch in ("'", '"'):
            end = _skip_quoted(sql, i)
            out.append(sql[i:end].replace(":", "\\:"))
            i = end
            continue

        if sql.startswith("--", i) or sql.startswith("/*", i):
            end = _skip_comment(sql, i)
            out.append(sql[i:end].replace(":", "\\:"))
            i = end
            continue

        if ch == "?":
            out.append(_placeholder(f"{POSITIONAL_PREFIX}{positional}", sql, i + 1))
            positional += 1
            i += 1
            continue

        if ch == ":":
            if sql.startswith("::", i):
                out.append("::")
                i += 2
                continue
            prev = sql[i - 1] if i else ""
            glued = prev.isalnum() or prev in ("_", "\\")
            if not glued and i + 1 < n and sql[i + 1] in _NAME_START:
                j = i + 1
                while j < n and sql[j] in _NAME_CHARS:
                    j += 1
                name = sql[i + 1 : j]
                if name not in names:
                    names.append(name)
                out.append(_placeholder(name, sql, j))
                i = j
                continue

        out.append(ch)
        i += 1

    if positional and names:
        raise BindingError(
            "Statement mixes positional '?' and named ':name' placeholders",
            details={"sql": sql, "named": names, "positional_count": positional},
        )

    return ParsedStatement(
        source=sql, sql="".join(out), positional_count=positional, names=tuple(names)
    )


def bind_statement(
    sql: str | ParsedStatement,
    params: Sequence[Any] | Mapping[str, Any] | None = None,
) -> BoundStatement:
    """
    Bind parameters to a SQL template.

    Args:
        sql: SQL text (or an already parsed statement)
        params: Ordered values for `?` placeholders, or a mapping of values
            for `:name` placeholders. None means no parameters.

    Returns:
        BoundStatement whose clause carries every value as a bind parameter

    Raises:
        BindingError: On mixed modes, count mismatch, missing or unused names
    """
    parsed = sql if isinstance(sql, ParsedStatement) else parse_statement(sql)

    if params is None:
        params = ()
    if isinstance(params, (str, bytes)):
        raise BindingError(
            "Parameters must be a sequence or a mapping, not a string",
            details={"sql": parsed.source},
        )

    if isinstance(params, Mapping):
        values = _bind_named(parsed, params)
    else:
        values = _bind_positional(parsed, list(params))

    clause = text(parsed.sql)
    if values:
        clause = clause.bindparams(*(bindparam(name, value) for name, value in values.items()))
    return BoundStatement(source=parsed.source, clause=clause, parameters=values)


def _bind_positional(parsed: ParsedStatement, params: list[Any]) -> dict[str, Any]:
    if parsed.mode is BindingMode.NAMED and params:
        raise BindingError(
            "Positional parameters supplied for a statement with named placeholders",
            details={"sql": parsed.source, "named": list(parsed.names)},
        )
    if parsed.mode is BindingMode.NAMED:
        raise BindingError(
            f"Statement expects named parameters {list(parsed.names)}, none supplied",
            details={"sql": parsed.source},
        )
    if len(params) != parsed.positional_count:
        raise BindingError(
            f"Statement has {parsed.positional_count} positional placeholder(s) "
            f"but {len(params)} value(s) were supplied",
            details={
                "sql": parsed.source,
                "expected": parsed.positional_count,
                "supplied": len(params),
            },
        )
    return {f"{POSITIONAL_PREFIX}{index}": value for index, value in enumerate(params)}


def _bind_named(parsed: ParsedStatement, params: Mapping[str, Any]) -> dict[str, Any]:
    if parsed.mode is BindingMode.POSITIONAL:
        raise BindingError(
            "Named parameters supplied for a statement with positional placeholders",
            details={"sql": parsed.source, "supplied": sorted(params)},
        )
    missing = [name for name in parsed.names if name not in params]
    if missing:
        raise BindingError(
            f"No value supplied for named parameter(s) {missing}",
            details={"sql": parsed.source, "missing": missing},
        )
    unused = sorted(set(params) - set(parsed.names))
    if unused:
        raise BindingError(
            f"Supplied parameter(s) {unused} do not appear in the statement",
            details={"sql": parsed.source, "unused": unused},
        )
    return {name: params[name] for name in parsed.names}
