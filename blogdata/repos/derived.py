"""
Declarative derived queries.

A repository lists its lookups as a table of `name -> DerivedQuery`; each
entry names one entity field, a comparison operator and whether the lookup
returns at most one entity. The operator table below is the only source of
SQL fragments.
"""

from dataclasses import dataclass

# operator -> (SQL fragment, takes a value)
OPERATORS: dict[str, tuple[str, bool]] = {
    "eq": ("{column} = :value", True),
    "ne": ("{column} <> :value", True),
    "lt": ("{column} < :value", True),
    "le": ("{column} <= :value", True),
    "gt": ("{column} > :value", True),
    "ge": ("{column} >= :value", True),
    "like": ("{column} LIKE :value ESCAPE '\\'", True),
    "is_null": ("{column} IS NULL", False),
}


@dataclass(frozen=True)
class DerivedQuery:
    """`field <operator> value` lookup; `unique` lookups return one entity or None."""

    field: str
    operator: str = "eq"
    unique: bool = True

    def __post_init__(self) -> None:
        if self.operator not in OPERATORS:
            raise ValueError(
                f"Unknown operator '{self.operator}', expected one of {sorted(OPERATORS)}"
            )

    @property
    def takes_value(self) -> bool:
        return OPERATORS[self.operator][1]

    def where_clause(self, column: str) -> str:
        return OPERATORS[self.operator][0].format(column=column)


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so `value` matches literally (pairs with ESCAPE '\\')."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
