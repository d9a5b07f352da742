"""Session ledger access for ticket contracts."""

from __future__ import annotations

import datetime as dt
import logging
import sqlite3

logger = logging.getLogger(__name__)

TICKET = "ticket"
MONTHLY = "monthly"
CONTRACT_TYPES = (MONTHLY, TICKET)


def find_active_ticket(conn: sqlite3.Connection, dog_id: int, today: dt.date) -> dict | None:
    """Return the newest valid ticket contract with sessions left, if any."""

    return conn.execute(
        """
        SELECT * FROM contracts
        WHERE dog_id = ?
          AND contract_type = ?
          AND (valid_until IS NULL OR valid_until >= ?)
          AND remaining_sessions > 0
        ORDER BY created_at DESC, id DESC
        LIMIT 1
        """,
        (dog_id, TICKET, today.isoformat()),
    ).fetchone()


def decrement_one_session(conn: sqlite3.Connection, dog_id: int, today: dt.date) -> bool:
    """Consume one session from the dog's active ticket contract.

    Returns ``False`` without touching anything when the dog has no qualifying
    contract. Must run inside the caller's write transaction; the ledger
    cannot tell on its own whether a visit was already charged.
    """

    contract = find_active_ticket(conn, dog_id, today)
    if contract is None:
        return False
    cur = conn.execute(
        """
        UPDATE contracts
        SET remaining_sessions = remaining_sessions - 1,
            updated_at = CURRENT_TIMESTAMP
        WHERE id = ? AND remaining_sessions > 0
        """,
        (contract["id"],),
    )
    applied = cur.rowcount == 1
    if applied:
        logger.info(
            "Consumed one session from contract %s (dog %s), %s left",
            contract["id"],
            dog_id,
            contract["remaining_sessions"] - 1,
        )
    return applied
