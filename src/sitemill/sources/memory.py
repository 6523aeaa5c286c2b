"""In-memory record source."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from sitemill._types import Record
from sitemill.sources.base import Conditions, matches_all, record_value


class RecordList:
    """A record source backed by a Python list.

    Records may be mappings or plain objects.  Useful for small, static
    collections and for tests.

    Args:
        records: Initial records.
        name: Source name used for filenames and URL paths.
        order_by: Field to sort by before paginating; *None* keeps
            insertion order.

    """

    __slots__ = ("_order_by", "_records", "name")

    def __init__(
        self,
        records: Iterable[Record] = (),
        *,
        name: str = "records",
        order_by: str | None = "id",
    ) -> None:
        self.name = name
        self._order_by = order_by
        self._records: list[Record] = list(records)

    def append(self, record: Record) -> None:
        self._records.append(record)

    def extend(self, records: Iterable[Record]) -> None:
        self._records.extend(records)

    def __len__(self) -> int:
        return len(self._records)

    def _matching(self, conditions: Conditions) -> list[Record]:
        rows = [r for r in self._records if matches_all(r, conditions)]
        if self._order_by is not None:
            key = self._order_by
            rows.sort(key=lambda r: _sort_key(record_value(r, key)))
        return rows

    def count(self, conditions: Conditions = ()) -> int:
        return len(self._matching(conditions))

    def fetch(
        self,
        conditions: Conditions = (),
        *,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[Record]:
        rows = self._matching(conditions)
        end = None if limit is None else offset + limit
        return rows[offset:end]


def _sort_key(value: Any) -> tuple[bool, Any]:
    # Records without the sort field go last
    return (value is None, value if value is not None else 0)
