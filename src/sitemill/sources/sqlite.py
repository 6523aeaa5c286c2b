"""SQLite table record source."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any

from sitemill.sources.base import Conditions, check_identifier


class SQLiteTable:
    """A record source reading one SQLite table.

    Rows are returned as dicts, ordered by ``order_by`` so that offset
    pagination is stable and identifiers increase across pages.

    Args:
        database: Path to the database file, or an open connection.
        table: Table name.
        name: Source name; defaults to the table name.
        order_by: Column used for ordering.

    """

    __slots__ = ("_connection", "_order_by", "_owns_connection", "_table", "name")

    def __init__(
        self,
        database: str | Path | sqlite3.Connection,
        table: str,
        *,
        name: str | None = None,
        order_by: str = "id",
    ) -> None:
        self._table = check_identifier(table)
        self._order_by = check_identifier(order_by)
        self.name = name or table
        if isinstance(database, sqlite3.Connection):
            self._connection = database
            self._owns_connection = False
        else:
            self._connection = sqlite3.connect(str(database))
            self._owns_connection = True
        self._connection.row_factory = sqlite3.Row

    def _where(self, conditions: Conditions) -> tuple[str, list[Any]]:
        if not conditions:
            return "", []
        fragments: list[str] = []
        params: list[Any] = []
        for condition in conditions:
            sql, param = condition.to_sql()
            fragments.append(sql)
            params.append(param)
        return " WHERE " + " AND ".join(fragments), params

    def count(self, conditions: Conditions = ()) -> int:
        where, params = self._where(conditions)
        row = self._connection.execute(
            f'SELECT COUNT(*) FROM "{self._table}"{where}', params,
        ).fetchone()
        return int(row[0])

    def fetch(
        self,
        conditions: Conditions = (),
        *,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        where, params = self._where(conditions)
        sql = f'SELECT * FROM "{self._table}"{where} ORDER BY "{self._order_by}"'
        # SQLite needs a LIMIT clause for OFFSET; -1 means unbounded
        sql += " LIMIT ? OFFSET ?"
        params.extend([-1 if limit is None else limit, offset])
        cursor = self._connection.execute(sql, params)
        return [dict(row) for row in cursor]

    def close(self) -> None:
        """Close the connection if this source opened it."""
        if self._owns_connection:
            self._connection.close()
