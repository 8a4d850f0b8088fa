from __future__ import annotations

import re
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

"""Cost record stores.

The reconciliation step talks to a store through acquire_lock, release,
find_candidates, update and insert, passing MatchStrategy objects to the
lookup. PostgresCostStore runs them on a psycopg2 cursor inside the caller's
transaction; MemoryCostStore keeps rows in a list for mock mode and tests.
"""

__all__ = [
    "StoreError",
    "MatchKey",
    "MatchStrategy",
    "PostgresCostStore",
    "MemoryCostStore",
    "validate_table_name",
    "like_pattern",
]

_TABLE_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


class StoreError(Exception):
    pass


def validate_table_name(table: str) -> str:
    if not _TABLE_RE.match(table or ""):
        raise StoreError(f"invalid table name: {table!r}")
    return table


@dataclass(frozen=True)
class MatchKey:
    customer: str
    season: str
    style_number: str

    @staticmethod
    def clean(customer: Any, season: Any, style_number: Any) -> MatchKey:
        def _t(v: Any) -> str:
            return "" if v is None else str(v).strip()
        return MatchKey(_t(customer), _t(season), _t(style_number))


def like_pattern(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


@dataclass(frozen=True)
class MatchStrategy:
    """One tier of the insert-vs-update lookup.

    ``clause`` is the SQL WHERE fragment with %s placeholders, ``params``
    builds its parameters and ``matches`` is the same test in Python for the
    in-memory store.
    """
    name: str
    fields: tuple[str, ...]
    clause: str
    params: Callable[[MatchKey], tuple[Any, ...]]
    matches: Callable[[Mapping[str, Any], MatchKey], bool]

    def applicable(self, key: MatchKey) -> bool:
        return all(getattr(key, f) for f in self.fields)


class PostgresCostStore:
    """Store backed by one PostgreSQL table.

    Column names are quoted; the table name is validated, not quoted, so a
    schema-qualified name (``public.databank``) keeps working.
    """

    def __init__(self, cursor: Any, table: str = "databank") -> None:
        self.cursor = cursor
        self.table = validate_table_name(table)

    def _execute(self, sql: str, params: tuple[Any, ...] | list[Any]) -> None:
        try:
            self.cursor.execute(sql, params)
        except Exception as e:
            raise StoreError(str(e).strip() or e.__class__.__name__) from e

    def _rows(self) -> list[dict[str, Any]]:
        rows = self.cursor.fetchall() or []
        if not rows:
            return []
        if isinstance(rows[0], Mapping):
            return [dict(r) for r in rows]
        names = [d[0] for d in (self.cursor.description or [])]
        return [dict(zip(names, r, strict=False)) for r in rows]

    def acquire_lock(self, key: MatchKey) -> None:
        # トランザクション終了で自動解放
        self._execute(
            "SELECT pg_advisory_xact_lock(hashtext(lower(%s) || '|' || lower(%s)))",
            (key.customer, key.season),
        )

    def release(self) -> None:
        pass

    def find_candidates(self, strategy: MatchStrategy, key: MatchKey) -> list[dict[str, Any]]:
        sql = f"SELECT * FROM {self.table} WHERE {strategy.clause} ORDER BY id"
        self._execute(sql, strategy.params(key))
        return self._rows()

    def update(self, record_id: Any, values: Mapping[str, Any]) -> dict[str, Any]:
        cols = list(values)
        assignments = ", ".join(f'"{c}" = %s' for c in cols)
        sql = f"UPDATE {self.table} SET {assignments} WHERE id = %s RETURNING *"
        self._execute(sql, [values[c] for c in cols] + [record_id])
        rows = self._rows()
        if not rows:
            raise StoreError(f"row id={record_id} vanished during update")
        return rows[0]

    def insert(self, values: Mapping[str, Any]) -> dict[str, Any]:
        cols = list(values)
        cols_sql = ",".join(f'"{c}"' for c in cols)
        placeholders = ",".join(["%s"] * len(cols))
        sql = f"INSERT INTO {self.table} ({cols_sql}) VALUES ({placeholders}) RETURNING *"
        self._execute(sql, [values[c] for c in cols])
        rows = self._rows()
        if not rows:
            raise StoreError("insert returned no row")
        return rows[0]


class MemoryCostStore:
    """In-memory store (mock mode, tests).

    The lock is a plain threading.Lock held from acquire_lock until release();
    the reconciler releases it in a finally block.
    """

    def __init__(self, rows: list[dict[str, Any]] | None = None) -> None:
        self.rows: list[dict[str, Any]] = [dict(r) for r in rows or []]
        self._next_id = max((int(r.get("id", 0)) for r in self.rows), default=0) + 1
        self._lock = threading.Lock()

    def acquire_lock(self, key: MatchKey) -> None:
        self._lock.acquire()

    def release(self) -> None:
        if self._lock.locked():
            self._lock.release()

    def find_candidates(self, strategy: MatchStrategy, key: MatchKey) -> list[dict[str, Any]]:
        return [dict(r) for r in self.rows if strategy.matches(r, key)]

    def update(self, record_id: Any, values: Mapping[str, Any]) -> dict[str, Any]:
        for row in self.rows:
            if row.get("id") == record_id:
                row.update(values)
                return dict(row)
        raise StoreError(f"row id={record_id} not found")

    def insert(self, values: Mapping[str, Any]) -> dict[str, Any]:
        row = {"id": self._next_id, **values}
        self._next_id += 1
        self.rows.append(row)
        return dict(row)
