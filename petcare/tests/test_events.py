import unittest

from petcare.scheduling.events import (
    RESERVATION_CREATED,
    RESERVATION_DELETED,
    Event,
    EventBus,
)
from petcare.scheduling.system import SchedulingSystem


class EventBusTestCase(unittest.TestCase):
    def test_subscribe_is_idempotent_and_unsubscribe_stops_delivery(self) -> None:
        bus = EventBus()
        received = []
        bus.subscribe(RESERVATION_CREATED, received.append)
        bus.subscribe(RESERVATION_CREATED, received.append)
        bus.publish(Event(event_type=RESERVATION_CREATED, tenant_id=1, data={"id": 1}))
        self.assertEqual(len(received), 1)

        bus.unsubscribe(RESERVATION_CREATED, received.append)
        bus.publish(Event(event_type=RESERVATION_CREATED, tenant_id=1, data={"id": 2}))
        self.assertEqual(len(received), 1)

    def test_failing_subscriber_does_not_break_booking(self) -> None:
        system = SchedulingSystem()
        self.addCleanup(system.close)
        tenant = system.create_tenant(name="Shibuya Dog Garden")
        owner = system.register_owner(tenant_id=tenant["id"], name="Aiko Tanaka")
        dog = system.add_dog(owner_id=owner["id"], name="Pochi")

        def broken_sync(event: Event) -> None:
            raise ConnectionError("calendar unreachable")

        received = []
        system.events.subscribe(RESERVATION_CREATED, broken_sync)
        system.events.subscribe(RESERVATION_CREATED, received.append)
        system.events.subscribe(RESERVATION_DELETED, received.append)

        with self.assertLogs("petcare.scheduling.events", level="ERROR"):
            reservation = system.create_reservation(
                tenant_id=tenant["id"],
                dog_id=dog["id"],
                category="grooming",
                reservation_date="2026-02-09",
                reservation_time="13:30",
            )

        stored = system.get_reservation(tenant_id=tenant["id"], reservation_id=reservation["id"])
        self.assertEqual(stored["status"], "scheduled")
        self.assertEqual([event.data["id"] for event in received], [reservation["id"]])

        system.delete_reservation(tenant_id=tenant["id"], reservation_id=reservation["id"])
        self.assertEqual(received[-1].event_type, RESERVATION_DELETED)
        self.assertEqual(received[-1].data, {"id": reservation["id"]})


class PublisherFailureTestCase(unittest.TestCase):
    def _system(self, publisher) -> tuple[SchedulingSystem, dict, dict]:
        system = SchedulingSystem(event_publisher=publisher)
        self.addCleanup(system.close)
        tenant = system.create_tenant(name="Shibuya Dog Garden")
        owner = system.register_owner(tenant_id=tenant["id"], name="Aiko Tanaka")
        dog = system.add_dog(owner_id=owner["id"], name="Pochi")
        return system, tenant, dog

    def test_raising_publisher_does_not_fail_committed_booking(self) -> None:
        def calendar_down(event: Event) -> None:
            raise RuntimeError("calendar down")

        system, tenant, dog = self._system(calendar_down)
        with self.assertLogs("petcare.scheduling.system", level="ERROR"):
            reservation = system.create_reservation(
                tenant_id=tenant["id"],
                dog_id=dog["id"],
                category="daycare",
                reservation_date="2026-02-09",
                reservation_time="09:00",
            )
        self.assertEqual(len(system.list_reservations(tenant_id=tenant["id"])), 1)

        with self.assertLogs("petcare.scheduling.system", level="ERROR"):
            checked_in = system.check_in(tenant_id=tenant["id"], reservation_id=reservation["id"])
        self.assertEqual(checked_in["status"], "checked_in")

        with self.assertLogs("petcare.scheduling.system", level="ERROR"):
            system.delete_reservation(tenant_id=tenant["id"], reservation_id=reservation["id"])
        self.assertEqual(system.list_reservations(tenant_id=tenant["id"]), [])

    def test_subscriber_cannot_change_returned_reservation(self) -> None:
        def scribble(event: Event) -> None:
            event.data["memo"] = "changed by subscriber"
            event.data.get("reservation", {})["status"] = "cancelled"

        system, tenant, dog = self._system(scribble)
        reservation = system.create_reservation(
            tenant_id=tenant["id"],
            dog_id=dog["id"],
            category="daycare",
            reservation_date="2026-02-09",
            reservation_time="09:00",
            memo="Likes the ball pit",
        )
        self.assertEqual(reservation["memo"], "Likes the ball pit")

        checked_in = system.check_in(tenant_id=tenant["id"], reservation_id=reservation["id"])
        self.assertEqual(checked_in["status"], "checked_in")
        self.assertEqual(checked_in["memo"], "Likes the ball pit")


if __name__ == "__main__":
    unittest.main()
