"""Database utilities for the pet-care scheduling engine."""

from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from .errors import LockTimeoutError

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1
DEFAULT_LOCK_TIMEOUT = 5.0


def dict_factory(cursor: sqlite3.Cursor, row: sqlite3.Row) -> dict:
    """Return rows as dictionaries rather than tuples."""

    return {description[0]: row[idx] for idx, description in enumerate(cursor.description)}


def get_connection(path: str | Path, *, lock_timeout: float = DEFAULT_LOCK_TIMEOUT) -> sqlite3.Connection:
    """Return a SQLite connection with sensible defaults.

    The connection runs in autocommit mode; writes are grouped explicitly
    with :func:`write_transaction`.
    """

    conn = sqlite3.connect(path, timeout=lock_timeout, isolation_level=None)
    conn.row_factory = dict_factory
    try:
        with lock_errors():
            conn.execute("PRAGMA foreign_keys = ON")
            conn.execute("PRAGMA journal_mode = WAL")
            conn.execute(f"PRAGMA busy_timeout = {int(lock_timeout * 1000)}")
    except BaseException:
        conn.close()
        raise
    return conn


def _is_lock_error(exc: sqlite3.OperationalError) -> bool:
    message = str(exc).lower()
    return "locked" in message or "busy" in message


@contextmanager
def lock_errors() -> Iterator[None]:
    """Re-raise SQLite "database is locked" failures as :class:`LockTimeoutError`."""

    try:
        yield
    except sqlite3.OperationalError as exc:
        if _is_lock_error(exc):
            raise LockTimeoutError("Timed out waiting for the reservation lock") from exc
        raise


@contextmanager
def write_transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """Run a block under the database write lock.

    ``BEGIN IMMEDIATE`` takes the write lock before anything is read, so the
    state a caller validates is the state it writes over. Any exception rolls
    the whole block back. Waiting longer than the busy timeout raises
    :class:`LockTimeoutError`.
    """

    with lock_errors():
        conn.execute("BEGIN IMMEDIATE")
    try:
        yield conn
    except sqlite3.OperationalError as exc:
        conn.execute("ROLLBACK")
        if _is_lock_error(exc):
            raise LockTimeoutError("Timed out waiting for the reservation lock") from exc
        raise
    except BaseException:
        conn.execute("ROLLBACK")
        raise
    else:
        conn.execute("COMMIT")


def initialize_database(conn: sqlite3.Connection) -> None:
    """Create the database schema if it does not yet exist.

    Safe to call on every start; once the schema and its version are in place
    nothing is written.
    """

    with lock_errors():
        _create_schema(conn)
        if get_metadata(conn, "schema_version") != str(SCHEMA_VERSION):
            set_metadata(conn, "schema_version", SCHEMA_VERSION)
    logger.debug("Schema version %s ready", SCHEMA_VERSION)


def _create_schema(conn: sqlite3.Connection) -> None:
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS metadata (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS tenants (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            max_capacity INTEGER NOT NULL DEFAULT 15,
            closed_days TEXT NOT NULL DEFAULT '[]',
            created_at TEXT DEFAULT CURRENT_TIMESTAMP
        );

        CREATE TABLE IF NOT EXISTS owners (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            tenant_id INTEGER NOT NULL,
            name TEXT NOT NULL,
            phone TEXT,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(tenant_id) REFERENCES tenants(id)
        );

        CREATE TABLE IF NOT EXISTS dogs (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            owner_id INTEGER NOT NULL,
            name TEXT NOT NULL,
            breed TEXT,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(owner_id) REFERENCES owners(id)
        );

        CREATE TABLE IF NOT EXISTS hotel_rooms (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            tenant_id INTEGER NOT NULL,
            room_name TEXT NOT NULL,
            room_size TEXT NOT NULL,
            capacity INTEGER NOT NULL DEFAULT 1 CHECK (capacity >= 1),
            enabled INTEGER NOT NULL DEFAULT 1,
            display_order INTEGER NOT NULL DEFAULT 0,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(tenant_id) REFERENCES tenants(id)
        );

        CREATE TABLE IF NOT EXISTS contracts (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            dog_id INTEGER NOT NULL,
            contract_type TEXT NOT NULL CHECK (contract_type IN ('monthly', 'ticket')),
            course_name TEXT,
            total_sessions INTEGER,
            remaining_sessions INTEGER CHECK (remaining_sessions IS NULL OR remaining_sessions >= 0),
            monthly_sessions INTEGER,
            valid_until TEXT,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(dog_id) REFERENCES dogs(id)
        );

        CREATE TABLE IF NOT EXISTS reservations (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            tenant_id INTEGER NOT NULL,
            dog_id INTEGER NOT NULL,
            category TEXT NOT NULL CHECK (category IN ('daycare', 'grooming', 'hotel')),
            reservation_date TEXT NOT NULL,
            reservation_time TEXT NOT NULL,
            start_at TEXT NOT NULL,
            end_at TEXT,
            room_id INTEGER,
            status TEXT NOT NULL DEFAULT 'scheduled',
            checked_in_at TEXT,
            checked_out_at TEXT,
            cancelled_at TEXT,
            memo TEXT,
            service_details TEXT,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP,
            CHECK (end_at IS NULL OR end_at > start_at),
            CHECK (
                (category = 'hotel' AND room_id IS NOT NULL AND end_at IS NOT NULL)
                OR (category != 'hotel' AND room_id IS NULL)
            ),
            FOREIGN KEY(tenant_id) REFERENCES tenants(id),
            FOREIGN KEY(dog_id) REFERENCES dogs(id),
            FOREIGN KEY(room_id) REFERENCES hotel_rooms(id)
        );

        CREATE INDEX IF NOT EXISTS idx_reservations_room
            ON reservations(tenant_id, room_id, status);
        CREATE INDEX IF NOT EXISTS idx_reservations_date
            ON reservations(tenant_id, reservation_date);
        """
    )


def set_metadata(conn: sqlite3.Connection, key: str, value: int | str | dict | list) -> None:
    if isinstance(value, (dict, list)):
        value = json.dumps(value)
    conn.execute(
        "INSERT INTO metadata(key, value) VALUES (?, ?)\n         ON CONFLICT(key) DO UPDATE SET value = excluded.value",
        (key, str(value)),
    )


def get_metadata(conn: sqlite3.Connection, key: str, default: str | None = None) -> str | None:
    row = conn.execute("SELECT value FROM metadata WHERE key = ?", (key,)).fetchone()
    return row["value"] if row else default
