"""Reservation lifecycle: legal status transitions and their side effects."""

from __future__ import annotations

from dataclasses import dataclass, field

from .errors import InvalidTransitionError, ValidationError

SCHEDULED = "scheduled"
CHECKED_IN = "checked_in"
CHECKED_OUT = "checked_out"
CANCELLED = "cancelled"

STATUSES = (SCHEDULED, CHECKED_IN, CHECKED_OUT, CANCELLED)
TERMINAL_STATUSES = frozenset({CHECKED_OUT, CANCELLED})

TRANSITIONS: dict[str, frozenset[str]] = {
    SCHEDULED: frozenset({CHECKED_IN, CHECKED_OUT, CANCELLED}),
    CHECKED_IN: frozenset({CHECKED_OUT, CANCELLED}),
    CHECKED_OUT: frozenset(),
    CANCELLED: frozenset(),
}

# Timestamp column stamped the first time a reservation enters each status.
TIMESTAMP_COLUMNS = {
    CHECKED_IN: "checked_in_at",
    CHECKED_OUT: "checked_out_at",
    CANCELLED: "cancelled_at",
}


@dataclass(frozen=True)
class Transition:
    """The outcome of moving a reservation to a requested status."""

    previous: str
    status: str
    timestamps: dict[str, str] = field(default_factory=dict)
    consume_session: bool = False

    @property
    def changed(self) -> bool:
        return self.previous != self.status


def validate_status(status: str) -> str:
    if status not in STATUSES:
        raise ValidationError(f"Unknown reservation status: {status!r}")
    return status


def can_transition(current: str, requested: str) -> bool:
    return requested == current or requested in TRANSITIONS.get(current, frozenset())


def plan_transition(reservation: dict, requested: str, now: str) -> Transition:
    """Work out what moving ``reservation`` to ``requested`` involves.

    Nothing is written here. Requesting the current status is a no-op. A
    session is consumed only when ``checked_in_at`` has never been stamped,
    which keeps repeated check-ins from charging the ledger twice.
    """

    validate_status(requested)
    current = reservation["status"]
    if requested == current:
        return Transition(previous=current, status=current)
    if not can_transition(current, requested):
        raise InvalidTransitionError(current, requested)

    column = TIMESTAMP_COLUMNS[requested]
    timestamps = {}
    if reservation.get(column) is None:
        timestamps[column] = now
    consume = requested == CHECKED_IN and reservation.get("checked_in_at") is None
    return Transition(
        previous=current,
        status=requested,
        timestamps=timestamps,
        consume_session=consume,
    )
