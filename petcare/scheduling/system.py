"""Core orchestration logic for pet-care reservation scheduling."""

from __future__ import annotations

import copy
import datetime as dt
import json
import logging
from typing import Any, Callable, Iterable, Mapping

from . import availability
from .database import DEFAULT_LOCK_TIMEOUT, get_connection, initialize_database, write_transaction
from .errors import (
    CapacityExceededError,
    ForbiddenError,
    NotFoundError,
    RoomUnavailableError,
    ValidationError,
)
from .events import (
    RESERVATION_CREATED,
    RESERVATION_DELETED,
    RESERVATION_STATUS_CHANGED,
    RESERVATION_UPDATED,
    Event,
    EventBus,
)
from .intervals import Interval, format_instant, format_time, month_bounds, normalize_interval, parse_date
from .ledger import CONTRACT_TYPES, TICKET, decrement_one_session
from .state_machine import CANCELLED, CHECKED_IN, CHECKED_OUT, SCHEDULED, plan_transition, validate_status

logger = logging.getLogger(__name__)

DAYCARE = "daycare"
GROOMING = "grooming"
HOTEL = "hotel"
CATEGORIES = (DAYCARE, GROOMING, HOTEL)

ROOM_SIZES = ("small", "medium", "large")
WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
DEFAULT_CAPACITY = 15

UPDATABLE_FIELDS = frozenset(
    {
        "reservation_date",
        "reservation_time",
        "end_at",
        "category",
        "room_id",
        "status",
        "memo",
        "service_details",
    }
)

_RESERVATION_SELECT = """
    SELECT reservations.*,
           dogs.name AS dog_name,
           owners.name AS owner_name,
           hotel_rooms.room_name AS room_name
    FROM reservations
    JOIN dogs ON dogs.id = reservations.dog_id
    JOIN owners ON owners.id = dogs.owner_id
    LEFT JOIN hotel_rooms ON hotel_rooms.id = reservations.room_id
"""


class SchedulingSystem:
    """High level façade over reservations, rooms and the session ledger.

    Every call takes the tenant explicitly. Writes to reservations and
    contracts only happen inside :func:`write_transaction`, in the order
    lock, re-read, validate, write.
    """

    def __init__(
        self,
        db_path: str = ":memory:",
        *,
        lock_timeout: float = DEFAULT_LOCK_TIMEOUT,
        default_capacity: int = DEFAULT_CAPACITY,
        clock: Callable[[], dt.datetime] | None = None,
        event_publisher: Callable[[Event], None] | None = None,
        initialize: bool = True,
    ) -> None:
        self.conn = get_connection(db_path, lock_timeout=lock_timeout)
        if initialize:
            try:
                initialize_database(self.conn)
            except BaseException:
                self.conn.close()
                raise
        self.default_capacity = default_capacity
        self.clock = clock or dt.datetime.now
        self.events = EventBus()
        self._publish = event_publisher or self.events.publish

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _now(self) -> str:
        return format_instant(self.clock())

    def _today(self) -> dt.date:
        return self.clock().date()

    def _emit(self, event_type: str, tenant_id: int, data: dict) -> None:
        # Runs after commit: a failing publisher must not surface as a failed write.
        event = Event(event_type=event_type, tenant_id=tenant_id, data=copy.deepcopy(data))
        try:
            self._publish(event)
        except Exception:
            logger.exception("Publishing %s for tenant %s failed", event_type, tenant_id)

    @staticmethod
    def _encode_details(details: Any) -> str | None:
        if details is None:
            return None
        try:
            return json.dumps(details)
        except (TypeError, ValueError) as exc:
            raise ValidationError("service_details must be JSON serialisable") from exc

    @staticmethod
    def _decode_reservation(row: dict) -> dict:
        if row.get("service_details") is not None:
            row["service_details"] = json.loads(row["service_details"])
        return row

    @staticmethod
    def _validate_category(category: str) -> str:
        if category not in CATEGORIES:
            raise ValidationError(f"Unknown service category: {category!r}")
        return category

    @staticmethod
    def _validate_room_pairing(category: str, room_id: int | None, interval: Interval) -> None:
        if category == HOTEL:
            if room_id is None:
                raise ValidationError("Hotel reservations require a room")
            if interval.end is None:
                raise ValidationError("Hotel reservations require an end date and time")
        elif room_id is not None:
            raise ValidationError("Only hotel reservations can be assigned a room")

    def _require_bookable_room(self, tenant_id: int, room_id: int) -> dict:
        room = self.conn.execute(
            "SELECT * FROM hotel_rooms WHERE id = ? AND tenant_id = ?", (room_id, tenant_id)
        ).fetchone()
        if not room:
            raise ValidationError("Room not found")
        if not room["enabled"]:
            raise RoomUnavailableError(f"Room {room['room_name']} is disabled")
        return room

    def _check_room_free(
        self, tenant_id: int, room_id: int, interval: Interval, exclude_id: int | None = None
    ) -> None:
        conflict = availability.find_conflict(self.conn, tenant_id, room_id, interval, exclude_id)
        if conflict is not None:
            logger.warning(
                "Room %s for tenant %s is taken by reservation %s", room_id, tenant_id, conflict
            )
            raise RoomUnavailableError(
                "Room is already booked for the requested period",
                conflicting_reservation_id=conflict,
            )

    # ------------------------------------------------------------------
    # Tenants, owners & dogs
    # ------------------------------------------------------------------
    @staticmethod
    def _validate_closed_days(closed_days: Iterable[str]) -> list[str]:
        days = [str(day).lower() for day in closed_days]
        unknown = [day for day in days if day not in WEEKDAYS]
        if unknown:
            raise ValidationError(f"Unknown weekday(s): {', '.join(unknown)}")
        return days

    def create_tenant(
        self,
        *,
        name: str,
        max_capacity: int | None = None,
        closed_days: Iterable[str] | None = None,
    ) -> dict:
        capacity = self.default_capacity if max_capacity is None else max_capacity
        if capacity < 0:
            raise ValidationError("max_capacity cannot be negative")
        days = self._validate_closed_days(closed_days or [])
        cur = self.conn.execute(
            "INSERT INTO tenants(name, max_capacity, closed_days) VALUES (?, ?, ?)",
            (name, capacity, json.dumps(days)),
        )
        return self.get_tenant(cur.lastrowid)

    def get_tenant(self, tenant_id: int) -> dict:
        row = self.conn.execute("SELECT * FROM tenants WHERE id = ?", (tenant_id,)).fetchone()
        if not row:
            raise NotFoundError("Tenant not found")
        row["closed_days"] = json.loads(row["closed_days"])
        return row

    def update_tenant_settings(
        self,
        tenant_id: int,
        *,
        max_capacity: int | None = None,
        closed_days: Iterable[str] | None = None,
    ) -> dict:
        self.get_tenant(tenant_id)
        if max_capacity is not None and max_capacity < 0:
            raise ValidationError("max_capacity cannot be negative")
        days = None if closed_days is None else json.dumps(self._validate_closed_days(closed_days))
        self.conn.execute(
            """
            UPDATE tenants
            SET max_capacity = COALESCE(?, max_capacity),
                closed_days = COALESCE(?, closed_days)
            WHERE id = ?
            """,
            (max_capacity, days, tenant_id),
        )
        return self.get_tenant(tenant_id)

    def register_owner(self, *, tenant_id: int, name: str, phone: str | None = None) -> dict:
        self.get_tenant(tenant_id)
        cur = self.conn.execute(
            "INSERT INTO owners(tenant_id, name, phone) VALUES (?, ?, ?)",
            (tenant_id, name, phone),
        )
        return self.conn.execute("SELECT * FROM owners WHERE id = ?", (cur.lastrowid,)).fetchone()

    def add_dog(self, *, owner_id: int, name: str, breed: str | None = None) -> dict:
        owner = self.conn.execute("SELECT id FROM owners WHERE id = ?", (owner_id,)).fetchone()
        if not owner:
            raise NotFoundError("Owner not found")
        cur = self.conn.execute(
            "INSERT INTO dogs(owner_id, name, breed) VALUES (?, ?, ?)",
            (owner_id, name, breed),
        )
        return self.get_dog(cur.lastrowid)

    def get_dog(self, dog_id: int) -> dict:
        row = self.conn.execute(
            """
            SELECT dogs.*, owners.tenant_id AS tenant_id, owners.name AS owner_name
            FROM dogs
            JOIN owners ON owners.id = dogs.owner_id
            WHERE dogs.id = ?
            """,
            (dog_id,),
        ).fetchone()
        if not row:
            raise NotFoundError("Dog not found")
        return row

    def belongs_to_tenant(self, dog_id: int, tenant_id: int) -> bool:
        row = self.conn.execute(
            """
            SELECT 1 FROM dogs
            JOIN owners ON owners.id = dogs.owner_id
            WHERE dogs.id = ? AND owners.tenant_id = ?
            """,
            (dog_id, tenant_id),
        ).fetchone()
        return row is not None

    # ------------------------------------------------------------------
    # Hotel rooms
    # ------------------------------------------------------------------
    @staticmethod
    def _validate_room_fields(
        room_name: str | None, room_size: str | None, capacity: int | None, display_order: int | None
    ) -> None:
        if room_name is not None and not room_name.strip():
            raise ValidationError("room_name is required")
        if room_size is not None and room_size not in ROOM_SIZES:
            raise ValidationError(f"room_size must be one of {', '.join(ROOM_SIZES)}")
        if capacity is not None and (not isinstance(capacity, int) or capacity < 1):
            raise ValidationError("capacity must be an integer of at least 1")
        if display_order is not None and not isinstance(display_order, int):
            raise ValidationError("display_order must be an integer")

    def create_room(
        self,
        *,
        tenant_id: int,
        room_name: str,
        room_size: str,
        capacity: int = 1,
        enabled: bool = True,
        display_order: int = 0,
    ) -> dict:
        self.get_tenant(tenant_id)
        self._validate_room_fields(room_name, room_size, capacity, display_order)
        cur = self.conn.execute(
            """
            INSERT INTO hotel_rooms(tenant_id, room_name, room_size, capacity, enabled, display_order)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (tenant_id, room_name.strip(), room_size, capacity, int(enabled), display_order),
        )
        return self.get_room(tenant_id, cur.lastrowid)

    def get_room(self, tenant_id: int, room_id: int) -> dict:
        row = self.conn.execute(
            "SELECT * FROM hotel_rooms WHERE id = ? AND tenant_id = ?", (room_id, tenant_id)
        ).fetchone()
        if not row:
            raise NotFoundError("Room not found")
        return row

    def list_rooms(self, tenant_id: int, *, enabled_only: bool = False) -> list[dict]:
        where = " WHERE tenant_id = ?"
        if enabled_only:
            where += " AND enabled = 1"
        return self.conn.execute(
            "SELECT * FROM hotel_rooms" + where + " ORDER BY display_order ASC, id ASC",
            (tenant_id,),
        ).fetchall()

    def update_room(
        self,
        tenant_id: int,
        room_id: int,
        *,
        room_name: str | None = None,
        room_size: str | None = None,
        capacity: int | None = None,
        enabled: bool | None = None,
        display_order: int | None = None,
    ) -> dict:
        self.get_room(tenant_id, room_id)
        self._validate_room_fields(room_name, room_size, capacity, display_order)
        self.conn.execute(
            """
            UPDATE hotel_rooms
            SET room_name = COALESCE(?, room_name),
                room_size = COALESCE(?, room_size),
                capacity = COALESCE(?, capacity),
                enabled = COALESCE(?, enabled),
                display_order = COALESCE(?, display_order),
                updated_at = CURRENT_TIMESTAMP
            WHERE id = ? AND tenant_id = ?
            """,
            (
                room_name.strip() if room_name is not None else None,
                room_size,
                capacity,
                None if enabled is None else int(enabled),
                display_order,
                room_id,
                tenant_id,
            ),
        )
        return self.get_room(tenant_id, room_id)

    def delete_room(self, tenant_id: int, room_id: int) -> None:
        """Delete a room that has never been booked; disable it otherwise.

        Cancelled reservations keep their room reference as history, so they
        block deletion as well.
        """

        with write_transaction(self.conn):
            self.get_room(tenant_id, room_id)
            in_use = self.conn.execute(
                "SELECT id FROM reservations WHERE tenant_id = ? AND room_id = ? LIMIT 1",
                (tenant_id, room_id),
            ).fetchone()
            if in_use:
                raise ValidationError("Room has reservations; disable it instead of deleting it")
            self.conn.execute(
                "DELETE FROM hotel_rooms WHERE id = ? AND tenant_id = ?", (room_id, tenant_id)
            )
        logger.info("Deleted room %s for tenant %s", room_id, tenant_id)

    # ------------------------------------------------------------------
    # Contracts
    # ------------------------------------------------------------------
    def create_contract(
        self,
        *,
        dog_id: int,
        contract_type: str,
        course_name: str | None = None,
        total_sessions: int | None = None,
        remaining_sessions: int | None = None,
        monthly_sessions: int | None = None,
        valid_until: str | None = None,
    ) -> dict:
        self.get_dog(dog_id)
        if contract_type not in CONTRACT_TYPES:
            raise ValidationError(f"Unknown contract type: {contract_type!r}")
        if contract_type == TICKET:
            if total_sessions is None or total_sessions < 1:
                raise ValidationError("Ticket contracts need at least one session")
            if remaining_sessions is None:
                remaining_sessions = total_sessions
            if remaining_sessions < 0:
                raise ValidationError("remaining_sessions cannot be negative")
        else:
            total_sessions = remaining_sessions = None
        if valid_until is not None:
            valid_until = parse_date(valid_until).isoformat()
        cur = self.conn.execute(
            """
            INSERT INTO contracts(
                dog_id, contract_type, course_name, total_sessions,
                remaining_sessions, monthly_sessions, valid_until
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                dog_id,
                contract_type,
                course_name,
                total_sessions,
                remaining_sessions,
                monthly_sessions,
                valid_until,
            ),
        )
        return self.get_contract(cur.lastrowid)

    def get_contract(self, contract_id: int) -> dict:
        row = self.conn.execute("SELECT * FROM contracts WHERE id = ?", (contract_id,)).fetchone()
        if not row:
            raise NotFoundError("Contract not found")
        return row

    def list_contracts(self, *, dog_id: int) -> list[dict]:
        return self.conn.execute(
            "SELECT * FROM contracts WHERE dog_id = ? ORDER BY created_at DESC, id DESC",
            (dog_id,),
        ).fetchall()

    # ------------------------------------------------------------------
    # Reservations: writes
    # ------------------------------------------------------------------
    def _load_reservation(self, tenant_id: int, reservation_id: int) -> dict:
        row = self.conn.execute(
            _RESERVATION_SELECT + " WHERE reservations.id = ? AND reservations.tenant_id = ?",
            (reservation_id, tenant_id),
        ).fetchone()
        if not row:
            raise NotFoundError("Reservation not found")
        return self._decode_reservation(row)

    def _daily_capacity(self, tenant_id: int) -> int:
        row = self.conn.execute(
            "SELECT max_capacity FROM tenants WHERE id = ?", (tenant_id,)
        ).fetchone()
        if not row or row["max_capacity"] is None:
            return self.default_capacity
        return row["max_capacity"]

    def _write_reservation(self, tenant_id: int, reservation_id: int, values: Mapping[str, Any]) -> None:
        columns = ", ".join(f"{column} = ?" for column in values)
        self.conn.execute(
            f"UPDATE reservations SET {columns}, updated_at = CURRENT_TIMESTAMP"
            " WHERE id = ? AND tenant_id = ?",
            (*values.values(), reservation_id, tenant_id),
        )

    def create_reservation(
        self,
        *,
        tenant_id: int,
        dog_id: int,
        category: str,
        reservation_date: str,
        reservation_time: str,
        end_at: str | None = None,
        room_id: int | None = None,
        memo: str | None = None,
        service_details: Any = None,
    ) -> dict:
        self._validate_category(category)
        interval = normalize_interval(reservation_date, reservation_time, end_at)
        self._validate_room_pairing(category, room_id, interval)
        details = self._encode_details(service_details)

        with write_transaction(self.conn):
            if not self.belongs_to_tenant(dog_id, tenant_id):
                logger.warning("Dog %s does not belong to tenant %s", dog_id, tenant_id)
                raise ForbiddenError("Dog does not belong to this tenant")

            capacity = self._daily_capacity(tenant_id)
            booked = availability.count_active_on_date(self.conn, tenant_id, interval.start.date())
            if booked >= capacity:
                logger.warning(
                    "Tenant %s is full on %s (%s/%s)", tenant_id, interval.start.date(), booked, capacity
                )
                raise CapacityExceededError(f"Fully booked on {interval.start.date().isoformat()}")

            if room_id is not None:
                self._require_bookable_room(tenant_id, room_id)
                self._check_room_free(tenant_id, room_id, interval)

            cur = self.conn.execute(
                """
                INSERT INTO reservations(
                    tenant_id, dog_id, category, reservation_date, reservation_time,
                    start_at, end_at, room_id, status, memo, service_details
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    tenant_id,
                    dog_id,
                    category,
                    interval.start.date().isoformat(),
                    format_time(interval.start.time()),
                    interval.start_key(),
                    format_instant(interval.end) if interval.end is not None else None,
                    room_id,
                    SCHEDULED,
                    memo,
                    details,
                ),
            )
            reservation = self._load_reservation(tenant_id, cur.lastrowid)

        logger.info(
            "Created %s reservation %s for dog %s (tenant %s)",
            category,
            reservation["id"],
            dog_id,
            tenant_id,
        )
        self._emit(RESERVATION_CREATED, tenant_id, reservation)
        return reservation

    def update_reservation(
        self,
        *,
        tenant_id: int,
        reservation_id: int,
        changes: Mapping[str, Any],
    ) -> dict:
        """Apply ``changes`` to a reservation as one atomic unit.

        Only keys present in ``changes`` are touched; pass ``room_id=None``
        explicitly to drop a room when moving away from the hotel category.
        Any failure rolls back everything, including a consumed session.
        """

        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unsupported field(s): {', '.join(sorted(unknown))}")
        if "status" in changes:
            validate_status(changes["status"])
        if "category" in changes:
            self._validate_category(changes["category"])
        details = self._encode_details(changes["service_details"]) if "service_details" in changes else None

        with write_transaction(self.conn):
            current = self._load_reservation(tenant_id, reservation_id)

            category = changes.get("category", current["category"])
            room_id = changes["room_id"] if "room_id" in changes else current["room_id"]
            end_value = changes["end_at"] if "end_at" in changes else current["end_at"]
            interval = normalize_interval(
                changes.get("reservation_date", current["reservation_date"]),
                changes.get("reservation_time", current["reservation_time"]),
                end_value,
            )
            self._validate_room_pairing(category, room_id, interval)

            now = self._now()
            transition = plan_transition(current, changes.get("status", current["status"]), now)

            if room_id is not None and room_id != current["room_id"]:
                self._require_bookable_room(tenant_id, room_id)
            if room_id is not None and transition.status != CANCELLED:
                self._check_room_free(tenant_id, room_id, interval, exclude_id=reservation_id)

            proposed = {
                "category": category,
                "reservation_date": interval.start.date().isoformat(),
                "reservation_time": format_time(interval.start.time()),
                "start_at": interval.start_key(),
                "end_at": format_instant(interval.end) if interval.end is not None else None,
                "room_id": room_id,
                "status": transition.status,
                **transition.timestamps,
            }
            if "memo" in changes:
                proposed["memo"] = changes["memo"]
            values = {column: value for column, value in proposed.items() if current.get(column) != value}
            if "service_details" in changes and changes["service_details"] != current["service_details"]:
                values["service_details"] = details

            if transition.consume_session:
                consumed = decrement_one_session(self.conn, current["dog_id"], self._today())
                if not consumed:
                    logger.info("No ticket session to consume for dog %s", current["dog_id"])
            if values:
                self._write_reservation(tenant_id, reservation_id, values)
            reservation = self._load_reservation(tenant_id, reservation_id)

        if values:
            logger.info(
                "Updated reservation %s (tenant %s): %s",
                reservation_id,
                tenant_id,
                ", ".join(sorted(values)),
            )
            self._emit(RESERVATION_UPDATED, tenant_id, reservation)
        if transition.changed:
            self._emit(
                RESERVATION_STATUS_CHANGED,
                tenant_id,
                {"previous": transition.previous, "reservation": reservation},
            )
        return reservation

    def cancel_reservation(self, *, tenant_id: int, reservation_id: int) -> dict:
        return self.update_reservation(
            tenant_id=tenant_id, reservation_id=reservation_id, changes={"status": CANCELLED}
        )

    def check_in(self, *, tenant_id: int, reservation_id: int) -> dict:
        return self.update_reservation(
            tenant_id=tenant_id, reservation_id=reservation_id, changes={"status": CHECKED_IN}
        )

    def check_out(self, *, tenant_id: int, reservation_id: int) -> dict:
        return self.update_reservation(
            tenant_id=tenant_id, reservation_id=reservation_id, changes={"status": CHECKED_OUT}
        )

    def delete_reservation(self, *, tenant_id: int, reservation_id: int) -> dict:
        """Remove a reservation outright, whatever its status."""

        with write_transaction(self.conn):
            self._load_reservation(tenant_id, reservation_id)
            self.conn.execute(
                "DELETE FROM reservations WHERE id = ? AND tenant_id = ?",
                (reservation_id, tenant_id),
            )
        logger.info("Deleted reservation %s (tenant %s)", reservation_id, tenant_id)
        self._emit(RESERVATION_DELETED, tenant_id, {"id": reservation_id})
        return {"deleted": True, "id": reservation_id}

    # ------------------------------------------------------------------
    # Reservations: reads
    # ------------------------------------------------------------------
    def get_reservation(self, *, tenant_id: int, reservation_id: int) -> dict:
        return self._load_reservation(tenant_id, reservation_id)

    def list_reservations(
        self,
        *,
        tenant_id: int,
        date: str | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
        month: str | None = None,
        dog_id: int | None = None,
        status: str | None = None,
    ) -> list[dict]:
        """Return reservations ordered by start; date bounds are inclusive."""

        conditions = ["reservations.tenant_id = ?"]
        params: list[Any] = [tenant_id]
        if date is not None:
            conditions.append("reservations.reservation_date = ?")
            params.append(parse_date(date).isoformat())
        if start_date is not None:
            conditions.append("reservations.reservation_date >= ?")
            params.append(parse_date(start_date).isoformat())
        if end_date is not None:
            conditions.append("reservations.reservation_date <= ?")
            params.append(parse_date(end_date).isoformat())
        if month is not None:
            first, following = month_bounds(month)
            conditions.append("reservations.reservation_date >= ? AND reservations.reservation_date < ?")
            params.extend([first.isoformat(), following.isoformat()])
        if dog_id is not None:
            conditions.append("reservations.dog_id = ?")
            params.append(dog_id)
        if status is not None:
            conditions.append("reservations.status = ?")
            params.append(validate_status(status))
        rows = self.conn.execute(
            _RESERVATION_SELECT
            + " WHERE "
            + " AND ".join(conditions)
            + " ORDER BY reservations.start_at, reservations.id",
            params,
        ).fetchall()
        return [self._decode_reservation(row) for row in rows]

    def room_availability(
        self,
        *,
        tenant_id: int,
        reservation_date: str,
        reservation_time: str,
        end_at: str | None = None,
        exclude_reservation_id: int | None = None,
    ) -> list[dict]:
        """Say, per enabled room, whether it is free for the candidate period.

        This is advisory; ``create_reservation`` re-checks under the lock.
        """

        interval = normalize_interval(reservation_date, reservation_time, end_at)
        return availability.room_availability(self.conn, tenant_id, interval, exclude_reservation_id)

    def monthly_availability(self, *, tenant_id: int, month: str) -> dict:
        tenant = self.get_tenant(tenant_id)
        first, following = month_bounds(month)
        counts = availability.count_active_by_date(self.conn, tenant_id, first, following)
        capacity = tenant["max_capacity"]
        days = []
        current = first
        while current < following:
            key = current.isoformat()
            booked = counts.get(key, 0)
            days.append(
                {
                    "date": key,
                    "booked": booked,
                    "available": max(0, capacity - booked),
                    "capacity": capacity,
                    "is_closed": WEEKDAYS[current.weekday()] in tenant["closed_days"],
                }
            )
            current += dt.timedelta(days=1)
        return {
            "month": first.strftime("%Y-%m"),
            "capacity": capacity,
            "closed_days": tenant["closed_days"],
            "availability": days,
        }

    def close(self) -> None:
        self.conn.close()
