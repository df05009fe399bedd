"""Database utilities for the link catalog.

Provides reusable functions for:
- Schema bootstrap for the resource and provider tables
- Transactional batch insert of validated submissions
- Single-resource fetch, partial update, and soft/hard delete
- Small introspection helpers (table_exists, get_table_count)

All values are bound through ``?`` placeholders.  Column names are only taken
from the field tuples in utils.validation, never from request input.
"""

import logging
import sqlite3
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from typing import Any

from utils.query import PROVIDERS_TABLE, RESOURCES_TABLE
from utils.strings import coerce_number, format_resource_url
from utils.validation import NUMERIC_FIELDS, PROVIDER_FIELDS, RESOURCE_FIELDS

logger = logging.getLogger(__name__)

SCHEMA_SQL = f"""
CREATE TABLE IF NOT EXISTS {RESOURCES_TABLE} (
    resource_id INTEGER PRIMARY KEY AUTOINCREMENT,
    resource TEXT NOT NULL,
    main_category TEXT NOT NULL,
    other_categories TEXT,
    da REAL,
    dr REAL,
    rd REAL,
    tr REAL,
    pa REAL,
    tf REAL,
    cf REAL,
    organic_keywords REAL,
    metrics_update_date TEXT,
    social_media TEXT,
    other_info TEXT,
    deleted_at TEXT
);

CREATE TABLE IF NOT EXISTS {PROVIDERS_TABLE} (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    resource_id INTEGER NOT NULL REFERENCES {RESOURCES_TABLE}(resource_id),
    email TEXT NOT NULL,
    currency TEXT,
    price REAL NOT NULL,
    casino_price REAL,
    cbd_price REAL,
    adult_price REAL,
    payment_method TEXT,
    promotions TEXT,
    usd_price REAL,
    notes TEXT
);

CREATE INDEX IF NOT EXISTS idx_{PROVIDERS_TABLE}_resource_id
    ON {PROVIDERS_TABLE}(resource_id);
CREATE INDEX IF NOT EXISTS idx_{RESOURCES_TABLE}_resource
    ON {RESOURCES_TABLE}(resource);
"""


class ResourceNotFoundError(LookupError):
    """Raised when a resource id does not exist (or is soft-deleted)."""

    def __init__(self, resource_id: int):
        super().__init__(f"Resource {resource_id} not found")
        self.resource_id = resource_id


def init_pragmas(conn: sqlite3.Connection) -> None:
    """Apply the standard pragmas for a shared, writable connection.

    - WAL mode so listings can read while a batch insert commits
    - NORMAL synchronous for speed without data loss
    - busy_timeout so concurrent writers wait instead of failing
    """
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA synchronous=NORMAL")
    conn.execute("PRAGMA busy_timeout=5000")


def create_schema(conn: sqlite3.Connection) -> None:
    """Create the resource and provider tables if they do not exist."""
    conn.executescript(SCHEMA_SQL)
    conn.commit()


def table_exists(conn: sqlite3.Connection, table: str) -> bool:
    """Check if a table exists in the database.

    Args:
        conn: SQLite connection
        table: Table name

    Returns:
        True if table exists, False otherwise
    """
    cursor = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
        (table,)
    )
    return cursor.fetchone() is not None


def get_table_count(conn: sqlite3.Connection, table: str) -> int:
    """Get row count for one of the catalog tables."""
    if table not in (RESOURCES_TABLE, PROVIDERS_TABLE):
        raise ValueError(f"Unknown table: {table}")
    return conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]


def _storage_value(field: str, value: Any) -> Any:
    """Convert a submitted value to what the column stores.

    Blank strings become NULL, numeric fields are coerced to numbers, and
    the resource identifier is normalised to its bare domain form.
    """
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if value == "":
            return None
    if field in NUMERIC_FIELDS:
        return coerce_number(value)
    if field == "resource":
        return format_resource_url(str(value))
    return str(value)


def _row_values(record: Mapping[str, Any], columns: Sequence[str]) -> list[Any]:
    return [_storage_value(col, record.get(col)) for col in columns]


def _rows_to_dicts(cursor: sqlite3.Cursor) -> list[dict[str, Any]]:
    names = [d[0] for d in cursor.description]
    return [dict(zip(names, row)) for row in cursor.fetchall()]


def insert_resources(conn: sqlite3.Connection,
                     records: Sequence[Mapping[str, Any]]) -> list[int]:
    """Insert validated submissions, one resource plus one provider each.

    The whole batch runs in a single transaction: if any insert fails,
    nothing from the batch is kept.

    Args:
        conn: Writable SQLite connection
        records: Submissions that already passed validate_batch()

    Returns:
        The generated resource_id values, in submission order.
    """
    resource_sql = (
        f"INSERT INTO {RESOURCES_TABLE} ({', '.join(RESOURCE_FIELDS)}) "
        f"VALUES ({', '.join('?' * len(RESOURCE_FIELDS))})"
    )
    provider_columns = ("resource_id", *PROVIDER_FIELDS)
    provider_sql = (
        f"INSERT INTO {PROVIDERS_TABLE} ({', '.join(provider_columns)}) "
        f"VALUES ({', '.join('?' * len(provider_columns))})"
    )
    resource_ids: list[int] = []
    with conn:
        for record in records:
            cursor = conn.execute(resource_sql, _row_values(record, RESOURCE_FIELDS))
            resource_id = cursor.lastrowid
            conn.execute(provider_sql, [resource_id, *_row_values(record, PROVIDER_FIELDS)])
            resource_ids.append(resource_id)
    logger.info("inserted %d resources", len(resource_ids))
    return resource_ids


def fetch_resource(conn: sqlite3.Connection, resource_id: int,
                   include_deleted: bool = False) -> dict[str, Any]:
    """Return one resource with its provider rows under ``providers``.

    Raises:
        ResourceNotFoundError: if the id does not exist, or is soft-deleted
            and include_deleted is False.
    """
    sql = f"SELECT * FROM {RESOURCES_TABLE} WHERE resource_id = ?"
    if not include_deleted:
        sql += " AND deleted_at IS NULL"
    rows = _rows_to_dicts(conn.execute(sql, (resource_id,)))
    if not rows:
        raise ResourceNotFoundError(resource_id)
    resource = rows[0]
    resource["providers"] = _rows_to_dicts(conn.execute(
        f"SELECT * FROM {PROVIDERS_TABLE} WHERE resource_id = ? ORDER BY id",
        (resource_id,),
    ))
    return resource


def update_resource(conn: sqlite3.Connection, resource_id: int,
                    fields: Mapping[str, Any]) -> dict[str, Any]:
    """Apply a partial update and return the updated resource.

    Resource fields update the resource row; provider fields update every
    provider row joined to it.  Unknown keys are ignored.

    Raises:
        ResourceNotFoundError: if the resource is missing or soft-deleted.
    """
    fetch_resource(conn, resource_id)
    resource_cols = [f for f in RESOURCE_FIELDS if f in fields]
    provider_cols = [f for f in PROVIDER_FIELDS if f in fields]
    with conn:
        if resource_cols:
            assignments = ", ".join(f"{col} = ?" for col in resource_cols)
            conn.execute(
                f"UPDATE {RESOURCES_TABLE} SET {assignments} WHERE resource_id = ?",
                [*_row_values(fields, resource_cols), resource_id],
            )
        if provider_cols:
            assignments = ", ".join(f"{col} = ?" for col in provider_cols)
            conn.execute(
                f"UPDATE {PROVIDERS_TABLE} SET {assignments} WHERE resource_id = ?",
                [*_row_values(fields, provider_cols), resource_id],
            )
    logger.info("updated resource %d fields=%s", resource_id,
                sorted(resource_cols + provider_cols))
    return fetch_resource(conn, resource_id)


def delete_resource(conn: sqlite3.Connection, resource_id: int,
                    force: bool = False) -> None:
    """Delete a resource.

    By default the resource is soft-deleted: ``deleted_at`` is set and the
    rows stay in place, hidden from listings and lookups.  With force the
    resource and all its provider rows are removed in one transaction.

    Raises:
        ResourceNotFoundError: if the id does not exist (or, when not
            forcing, is already soft-deleted).
    """
    fetch_resource(conn, resource_id, include_deleted=force)
    with conn:
        if force:
            conn.execute(f"DELETE FROM {PROVIDERS_TABLE} WHERE resource_id = ?", (resource_id,))
            conn.execute(f"DELETE FROM {RESOURCES_TABLE} WHERE resource_id = ?", (resource_id,))
        else:
            conn.execute(
                f"UPDATE {RESOURCES_TABLE} SET deleted_at = ? WHERE resource_id = ?",
                (datetime.now(timezone.utc).isoformat(timespec="seconds"), resource_id),
            )
    logger.info("deleted resource %d force=%s", resource_id, force)
