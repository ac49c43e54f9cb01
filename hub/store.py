"""
Generic data-store interface used by every portal.

All reads and writes go through DataStore: row fetch with filter/order/limit,
insert, update-by-filter, delete-by-filter and named remote procedures.
Driver errors are converted into StoreError with a readable message so the
routes can surface them as a notification and keep the previous state.
"""
import logging
import uuid
from typing import Callable, Dict, Iterable, List, Optional

from hub.database import get_db, table_columns, DB_ERRORS, PH

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """A read, write or procedure call against the store failed."""


class DataStore:
    """Row-level access to the hub tables plus registered procedures."""

    def __init__(self, procedures: Optional[Dict[str, Callable]] = None):
        self.procedures = procedures if procedures is not None else {}

    # ── validation ──────────────────────────────────────────────────

    def _check_table(self, table: str) -> List[str]:
        columns = table_columns(table)
        if not columns:
            raise StoreError(f"Unknown table '{table}'")
        return columns

    def _check_columns(self, table: str, names: Iterable[str]) -> None:
        columns = self._check_table(table)
        for name in names:
            if name not in columns:
                raise StoreError(f"Unknown column '{name}' on table '{table}'")

    def _where(self, table: str, filters: Optional[dict]):
        """Build a WHERE clause from an equality filter map."""
        if not filters:
            return "", []
        self._check_columns(table, filters)
        clauses = []
        params = []
        for column, value in filters.items():
            if value is None:
                clauses.append(f"{column} IS NULL")
            elif isinstance(value, (list, tuple, set)):
                values = list(value)
                if not values:
                    # IN () matches nothing
                    clauses.append("1 = 0")
                    continue
                marks = ", ".join([PH] * len(values))
                clauses.append(f"{column} IN ({marks})")
                params.extend(values)
            else:
                clauses.append(f"{column} = {PH}")
                params.append(value)
        return " WHERE " + " AND ".join(clauses), params

    # ── row operations ──────────────────────────────────────────────

    def select(self, table: str, filters: Optional[dict] = None, order_by: Optional[str] = None,
               descending: bool = False, limit: Optional[int] = None,
               columns: Optional[List[str]] = None) -> List[dict]:
        """Fetch rows as plain dicts."""
        self._check_table(table)
        if columns:
            self._check_columns(table, columns)
            select_list = ", ".join(columns)
        else:
            select_list = "*"
        where, params = self._where(table, filters)
        query = f"SELECT {select_list} FROM {table}{where}"
        if order_by:
            self._check_columns(table, [order_by])
            query += f" ORDER BY {order_by} {'DESC' if descending else 'ASC'}"
        if limit is not None:
            query += f" LIMIT {int(limit)}"

        try:
            with get_db() as conn:
                cursor = conn.cursor()
                cursor.execute(query, params)
                return [dict(row) for row in cursor.fetchall()]
        except DB_ERRORS as e:
            logger.error("select from %s failed: %s", table, e)
            raise StoreError(f"Could not load {table}: {e}") from e

    def get(self, table: str, row_id: str) -> Optional[dict]:
        """Fetch a single row by id, or None."""
        rows = self.select(table, {"id": row_id}, limit=1)
        return rows[0] if rows else None

    def insert(self, table: str, rows) -> List[dict]:
        """Insert one row (dict) or many (list of dicts); returns rows with ids."""
        if isinstance(rows, dict):
            rows = [rows]
        inserted = []
        try:
            with get_db() as conn:
                cursor = conn.cursor()
                for row in rows:
                    row = dict(row)
                    row.setdefault("id", str(uuid.uuid4()))
                    self._check_columns(table, row)
                    names = ", ".join(row)
                    marks = ", ".join([PH] * len(row))
                    cursor.execute(
                        f"INSERT INTO {table} ({names}) VALUES ({marks})",
                        list(row.values())
                    )
                    inserted.append(row)
        except DB_ERRORS as e:
            logger.error("insert into %s failed: %s", table, e)
            raise StoreError(f"Could not save to {table}: {e}") from e
        return inserted

    def update(self, table: str, values: dict, filters: dict) -> int:
        """Update rows matching filters; returns the number of rows changed."""
        if not values:
            return 0
        if not filters:
            raise StoreError(f"Refusing to update every row of '{table}'")
        self._check_columns(table, values)
        where, where_params = self._where(table, filters)
        assignments = ", ".join(f"{column} = {PH}" for column in values)
        if "updated_at" in table_columns(table) and "updated_at" not in values:
            assignments += ", updated_at = CURRENT_TIMESTAMP"
        try:
            with get_db() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    f"UPDATE {table} SET {assignments}{where}",
                    list(values.values()) + where_params
                )
                return cursor.rowcount
        except DB_ERRORS as e:
            logger.error("update of %s failed: %s", table, e)
            raise StoreError(f"Could not update {table}: {e}") from e

    def delete(self, table: str, filters: dict) -> int:
        """Delete rows matching filters; returns the number of rows removed."""
        if not filters:
            raise StoreError(f"Refusing to delete every row of '{table}'")
        where, params = self._where(table, filters)
        try:
            with get_db() as conn:
                cursor = conn.cursor()
                cursor.execute(f"DELETE FROM {table}{where}", params)
                return cursor.rowcount
        except DB_ERRORS as e:
            logger.error("delete from %s failed: %s", table, e)
            raise StoreError(f"Could not delete from {table}: {e}") from e

    # ── procedures ──────────────────────────────────────────────────

    def rpc(self, name: str, **params):
        """Invoke a named procedure registered on this store."""
        procedure = self.procedures.get(name)
        if procedure is None:
            raise StoreError(f"Unknown procedure '{name}'")
        try:
            return procedure(self, **params)
        except DB_ERRORS as e:
            logger.error("procedure %s failed: %s", name, e)
            raise StoreError(f"Procedure {name} failed: {e}") from e


def get_store() -> DataStore:
    """Store wired with the server-side procedures."""
    from hub.procedures import PROCEDURES
    return DataStore(PROCEDURES)
