"""Room availability and daily occupancy queries.

These functions only read. Callers that act on the answer must run them on a
connection that already holds the write lock (see
:func:`petcare.scheduling.database.write_transaction`), otherwise the answer
can be stale by the time the write happens.
"""

from __future__ import annotations

import datetime as dt
import sqlite3
from typing import Any

from .intervals import Interval
from .state_machine import CANCELLED

# A reservation without an explicit end occupies one day from its start.
_EFFECTIVE_END_SQL = "COALESCE(end_at, datetime(start_at, '+1 day'))"


def find_conflict(
    conn: sqlite3.Connection,
    tenant_id: int,
    room_id: int,
    interval: Interval,
    exclude_reservation_id: int | None = None,
) -> int | None:
    """Return the id of a live reservation overlapping ``interval`` in the room."""

    params: list[Any] = [tenant_id, room_id, CANCELLED, interval.start_key(), interval.end_key()]
    exclude = ""
    if exclude_reservation_id is not None:
        exclude = " AND id != ?"
        params.append(exclude_reservation_id)
    row = conn.execute(
        f"""
        SELECT id FROM reservations
        WHERE tenant_id = ?
          AND room_id = ?
          AND status != ?
          AND {_EFFECTIVE_END_SQL} > ?
          AND start_at < ?
          {exclude}
        ORDER BY start_at, id
        LIMIT 1
        """,
        params,
    ).fetchone()
    return row["id"] if row else None


def room_availability(
    conn: sqlite3.Connection,
    tenant_id: int,
    interval: Interval,
    exclude_reservation_id: int | None = None,
) -> list[dict]:
    """Return one row per enabled room saying whether it is free for ``interval``."""

    rooms = conn.execute(
        """
        SELECT id, room_name, room_size, capacity FROM hotel_rooms
        WHERE tenant_id = ? AND enabled = 1
        ORDER BY display_order ASC, id ASC
        """,
        (tenant_id,),
    ).fetchall()
    results = []
    for room in rooms:
        conflict = find_conflict(conn, tenant_id, room["id"], interval, exclude_reservation_id)
        results.append(
            {
                "room_id": room["id"],
                "room_name": room["room_name"],
                "room_size": room["room_size"],
                "capacity": room["capacity"],
                "available": conflict is None,
                "conflicting_reservation_id": conflict,
            }
        )
    return results


def count_active_on_date(conn: sqlite3.Connection, tenant_id: int, date: dt.date) -> int:
    row = conn.execute(
        """
        SELECT COUNT(*) AS total FROM reservations
        WHERE tenant_id = ? AND reservation_date = ? AND status != ?
        """,
        (tenant_id, date.isoformat(), CANCELLED),
    ).fetchone()
    return row["total"] if row else 0


def count_active_by_date(
    conn: sqlite3.Connection, tenant_id: int, start: dt.date, end: dt.date
) -> dict[str, int]:
    """Return ``{date: count}`` of live reservations for ``start <= date < end``."""

    rows = conn.execute(
        """
        SELECT reservation_date, COUNT(*) AS total FROM reservations
        WHERE tenant_id = ?
          AND reservation_date >= ? AND reservation_date < ?
          AND status != ?
        GROUP BY reservation_date
        """,
        (tenant_id, start.isoformat(), end.isoformat(), CANCELLED),
    ).fetchall()
    return {row["reservation_date"]: row["total"] for row in rows}
