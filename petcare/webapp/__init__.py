"""Flask application exposing the scheduling engine as a JSON API."""

from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Callable

from flask import Flask, g, jsonify, request

from petcare.scheduling.database import get_connection, initialize_database
from petcare.scheduling.errors import RoomUnavailableError, SchedulingError, ValidationError
from petcare.scheduling.system import UPDATABLE_FIELDS, SchedulingSystem

logger = logging.getLogger(__name__)

DEFAULTS = {
    "DATABASE_PATH": "petcare.db",
    "LOCK_TIMEOUT": 5.0,
    "DEFAULT_CAPACITY": 15,
}


def _json_body() -> dict[str, Any]:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


def create_app(
    database_path: str | None = None,
    *,
    now_provider: Callable[[], dt.datetime] | None = None,
    system: SchedulingSystem | None = None,
) -> Flask:
    """Create and configure the Flask application.

    Settings come from ``PETCARE_*`` environment variables over
    :data:`DEFAULTS`; an explicit ``database_path`` wins over both.
    """

    app = Flask(__name__)
    app.config.update(DEFAULTS)
    app.config.from_prefixed_env("PETCARE")
    if database_path is not None:
        app.config["DATABASE_PATH"] = database_path

    if system is None:
        conn = get_connection(app.config["DATABASE_PATH"], lock_timeout=float(app.config["LOCK_TIMEOUT"]))
        try:
            initialize_database(conn)
        finally:
            conn.close()

    # SQLite connections stay on the thread that opened them, so each
    # application context gets its own, closed again on teardown.
    def get_system() -> SchedulingSystem:
        if system is not None:
            return system
        if "scheduling" not in g:
            g.scheduling = SchedulingSystem(
                app.config["DATABASE_PATH"],
                lock_timeout=float(app.config["LOCK_TIMEOUT"]),
                default_capacity=int(app.config["DEFAULT_CAPACITY"]),
                clock=now_provider,
                initialize=False,
            )
        return g.scheduling

    @app.teardown_appcontext
    def close_system(exc: BaseException | None) -> None:
        scheduling = g.pop("scheduling", None)
        if scheduling is not None:
            scheduling.close()

    app.extensions["scheduling"] = get_system

    @app.errorhandler(SchedulingError)
    def handle_scheduling_error(exc: SchedulingError) -> Any:
        payload: dict[str, Any] = {
            "ok": False,
            "error": type(exc).__name__,
            "message": str(exc),
            "retryable": exc.retryable,
        }
        if isinstance(exc, RoomUnavailableError):
            payload["conflicting_reservation_id"] = exc.conflicting_reservation_id
        if exc.status_code >= 500:
            logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.path, exc)
        return jsonify(payload), exc.status_code

    @app.get("/api/tenants/<int:tenant_id>/reservations")
    def list_reservations(tenant_id: int) -> Any:
        reservations = get_system().list_reservations(
            tenant_id=tenant_id,
            date=request.args.get("date") or None,
            start_date=request.args.get("start_date") or None,
            end_date=request.args.get("end_date") or None,
            month=request.args.get("month") or None,
            dog_id=request.args.get("dog_id", type=int),
            status=request.args.get("status") or None,
        )
        return jsonify({"ok": True, "reservations": reservations})

    @app.get("/api/tenants/<int:tenant_id>/reservations/<int:reservation_id>")
    def get_reservation(tenant_id: int, reservation_id: int) -> Any:
        reservation = get_system().get_reservation(tenant_id=tenant_id, reservation_id=reservation_id)
        return jsonify({"ok": True, "reservation": reservation})

    @app.post("/api/tenants/<int:tenant_id>/reservations")
    def create_reservation(tenant_id: int) -> Any:
        payload = _json_body()
        missing = [key for key in ("dog_id", "category", "reservation_date", "reservation_time") if not payload.get(key)]
        if missing:
            raise ValidationError(f"Missing required field(s): {', '.join(missing)}")
        try:
            dog_id = int(payload["dog_id"])
        except (TypeError, ValueError) as exc:
            raise ValidationError("dog_id must be an integer") from exc
        reservation = get_system().create_reservation(
            tenant_id=tenant_id,
            dog_id=dog_id,
            category=payload["category"],
            reservation_date=payload["reservation_date"],
            reservation_time=payload["reservation_time"],
            end_at=payload.get("end_at") or None,
            room_id=payload.get("room_id"),
            memo=payload.get("memo"),
            service_details=payload.get("service_details"),
        )
        return jsonify({"ok": True, "reservation": reservation}), 201

    @app.patch("/api/tenants/<int:tenant_id>/reservations/<int:reservation_id>")
    def update_reservation(tenant_id: int, reservation_id: int) -> Any:
        payload = _json_body()
        changes = {key: value for key, value in payload.items() if key in UPDATABLE_FIELDS}
        if len(changes) != len(payload):
            unknown = sorted(set(payload) - UPDATABLE_FIELDS)
            raise ValidationError(f"Unsupported field(s): {', '.join(unknown)}")
        reservation = get_system().update_reservation(
            tenant_id=tenant_id, reservation_id=reservation_id, changes=changes
        )
        return jsonify({"ok": True, "reservation": reservation})

    @app.post("/api/tenants/<int:tenant_id>/reservations/<int:reservation_id>/cancel")
    def cancel_reservation(tenant_id: int, reservation_id: int) -> Any:
        reservation = get_system().cancel_reservation(tenant_id=tenant_id, reservation_id=reservation_id)
        return jsonify({"ok": True, "reservation": reservation})

    @app.post("/api/tenants/<int:tenant_id>/reservations/<int:reservation_id>/check-in")
    def check_in(tenant_id: int, reservation_id: int) -> Any:
        reservation = get_system().check_in(tenant_id=tenant_id, reservation_id=reservation_id)
        return jsonify({"ok": True, "reservation": reservation})

    @app.post("/api/tenants/<int:tenant_id>/reservations/<int:reservation_id>/check-out")
    def check_out(tenant_id: int, reservation_id: int) -> Any:
        reservation = get_system().check_out(tenant_id=tenant_id, reservation_id=reservation_id)
        return jsonify({"ok": True, "reservation": reservation})

    @app.delete("/api/tenants/<int:tenant_id>/reservations/<int:reservation_id>")
    def delete_reservation(tenant_id: int, reservation_id: int) -> Any:
        result = get_system().delete_reservation(tenant_id=tenant_id, reservation_id=reservation_id)
        return jsonify({"ok": True, **result})

    @app.get("/api/tenants/<int:tenant_id>/rooms")
    def list_rooms(tenant_id: int) -> Any:
        enabled_only = request.args.get("enabled_only", "").lower() in ("1", "true", "yes")
        return jsonify({"ok": True, "rooms": get_system().list_rooms(tenant_id, enabled_only=enabled_only)})

    @app.get("/api/tenants/<int:tenant_id>/rooms/availability")
    def room_availability(tenant_id: int) -> Any:
        reservation_date = request.args.get("reservation_date")
        reservation_time = request.args.get("reservation_time")
        if not reservation_date or not reservation_time:
            raise ValidationError("reservation_date and reservation_time are required")
        rooms = get_system().room_availability(
            tenant_id=tenant_id,
            reservation_date=reservation_date,
            reservation_time=reservation_time,
            end_at=request.args.get("end_at") or None,
            exclude_reservation_id=request.args.get("exclude_id", type=int),
        )
        return jsonify({"ok": True, "rooms": rooms})

    @app.get("/api/tenants/<int:tenant_id>/availability")
    def monthly_availability(tenant_id: int) -> Any:
        month = request.args.get("month")
        if not month:
            raise ValidationError("month is required (e.g. 2026-01)")
        return jsonify({"ok": True, **get_system().monthly_availability(tenant_id=tenant_id, month=month)})

    return app


__all__ = ["create_app"]
