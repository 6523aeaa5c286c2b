"""Record source protocol and query conditions.

A record source is anything that can count the records matching a set of
conditions and fetch an ordered page of them by offset and limit.  The
generator checks this capability once, when the source is registered.
"""

from __future__ import annotations

import operator
import re
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Literal, Protocol, runtime_checkable

from sitemill._errors import ConfigurationError
from sitemill._types import Record

type Operator = Literal["=", "!=", ">", ">=", "<", "<="]

_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "=": operator.eq,
    "!=": operator.ne,
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
}

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def check_identifier(name: str) -> str:
    """Validate a column or table name for safe SQL interpolation."""
    if not _IDENTIFIER_RE.match(name):
        msg = f"Invalid column or table name: {name!r}"
        raise ConfigurationError(msg)
    return name


def record_value(record: Record, name: str) -> Any:
    """Read a field from a mapping or an attribute from an object."""
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


@dataclass(frozen=True, slots=True)
class Condition:
    """A single ``field <op> value`` predicate.

    A tuple of conditions is a conjunction.
    """

    field: str
    op: Operator
    value: Any

    def __post_init__(self) -> None:
        if self.op not in _OPERATORS:
            msg = f"Unsupported operator {self.op!r} (expected one of {sorted(_OPERATORS)})"
            raise ConfigurationError(msg)
        check_identifier(self.field)

    def matches(self, record: Record) -> bool:
        """Evaluate against an in-memory record.  Missing fields never match."""
        actual = record_value(record, self.field)
        if actual is None:
            return False
        return _OPERATORS[self.op](actual, self.value)

    def to_sql(self) -> tuple[str, Any]:
        """Render as a parameterised SQL fragment and its parameter."""
        return f'"{self.field}" {self.op} ?', self.value


type Conditions = tuple[Condition, ...]


def as_conditions(
    value: Condition | Sequence[Condition] | Mapping[str, Any] | None,
) -> Conditions:
    """Normalise registration input into a tuple of conditions.

    Accepts a single :class:`Condition`, a sequence of them, or a mapping
    of ``field -> value`` equality tests.
    """
    if value is None:
        return ()
    if isinstance(value, Condition):
        return (value,)
    if isinstance(value, Mapping):
        return tuple(Condition(field, "=", v) for field, v in value.items())
    conditions = tuple(value) if not isinstance(value, str) else (value,)
    for condition in conditions:
        if not isinstance(condition, Condition):
            msg = f"Expected Condition objects, got {condition!r}"
            raise ConfigurationError(msg)
    return conditions


def matches_all(record: Record, conditions: Conditions) -> bool:
    return all(c.matches(record) for c in conditions)


@runtime_checkable
class RecordSource(Protocol):
    """Capability every registered record source must provide."""

    def count(self, conditions: Conditions = ()) -> int:
        """Number of records matching ``conditions``."""
        ...

    def fetch(
        self,
        conditions: Conditions = (),
        *,
        offset: int = 0,
        limit: int | None = None,
    ) -> Iterable[Record]:
        """Records matching ``conditions``, in a stable order."""
        ...
