from unittest.mock import patch

from django.db import OperationalError
from django.test import TestCase

from fleet.clients.entity_store import EntityStore
from fleet.core.constants import TRIP_ACTIVE, VEHICLE_AVAILABLE
from fleet.exceptions import TransientStoreError, NotFoundError, ValidationError
from fleet.models import Vehicle, Trip
from fleet.services import FleetStateMachine
from fleet.tests.helpers import make_vehicle, make_driver, make_schedule, new_trip, checklist


class EntityStoreTest(TestCase):

    def test_get_unknown_or_malformed_id(self):
        for bad_id in ('00000000-0000-0000-0000-000000000000', 'not-a-uuid', None):
            with self.assertRaises(NotFoundError):
                EntityStore.get_vehicle(bad_id)

    def test_lock_vehicle_unknown(self):
        with EntityStore.unit_of_work():
            with self.assertRaises(NotFoundError):
                EntityStore.lock_vehicle('00000000-0000-0000-0000-000000000000')

    def test_plate_is_normalized(self):
        vehicle = make_vehicle(plate='abc-1d23')
        self.assertEqual(EntityStore.get_vehicle(vehicle.id).plate, 'ABC1D23')

    def test_authenticate(self):
        driver = make_driver(username='Maria Silva', password='s3nha-forte')

        self.assertEqual(EntityStore.authenticate(' MARIA silva ', 's3nha-forte'), driver)
        self.assertIsNone(EntityStore.authenticate('mariasilva', 'errada'))
        self.assertIsNone(EntityStore.authenticate('ninguem', 's3nha-forte'))

    def test_admin_issued_password_is_flagged(self):
        driver = make_driver()
        self.assertFalse(driver.password_changed)
        driver.set_password('nova-senha', issued_by_admin=False)
        self.assertTrue(driver.password_changed)

    def test_phase_collections(self):
        vehicle = make_vehicle(current_km=0)
        driver = make_driver()
        scheduled = make_schedule(vehicle, driver)
        other = make_schedule(make_vehicle(), make_driver())

        self.assertEqual({t.id for t in EntityStore.list_scheduled_trips()}, {scheduled.id, other.id})
        self.assertEqual(EntityStore.list_scheduled_trips(vehicle_id=vehicle.id), [scheduled])

        FleetStateMachine().start_trip(scheduled, checklist(0))
        self.assertEqual([t.id for t in EntityStore.list_active_trips()], [scheduled.id])
        self.assertEqual(EntityStore.list_active_trips(driver_id=driver.id)[0].phase, TRIP_ACTIVE)

        FleetStateMachine().end_trip(scheduled.id, 10)
        self.assertEqual([t.id for t in EntityStore.list_completed_trips()], [scheduled.id])
        self.assertEqual(EntityStore.list_active_trips(), [])

    def test_delete_driver_with_active_trip_is_refused(self):
        vehicle = make_vehicle(current_km=0)
        driver = make_driver()
        FleetStateMachine().start_trip(new_trip(vehicle, driver), checklist(0))

        with self.assertRaises(ValidationError):
            EntityStore.delete_driver(driver.id)

    def test_mark_notification_read_unknown(self):
        with self.assertRaises(NotFoundError):
            EntityStore.mark_notification_read('00000000-0000-0000-0000-000000000000')


class TransientStoreErrorTest(TestCase):
    """Store I/O failures surface as retryable errors and leave no partial writes."""

    def test_read_failure_is_transient(self):
        with patch.object(Vehicle.objects, 'all', side_effect=OperationalError('database is locked')):
            with self.assertRaises(TransientStoreError) as ctx:
                EntityStore.list_vehicles(status=VEHICLE_AVAILABLE)
        self.assertTrue(ctx.exception.retryable)
        self.assertEqual(ctx.exception.status_code, 503)

    def test_failure_mid_transition_rolls_back(self):
        vehicle = make_vehicle(current_km=0)
        driver = make_driver()
        trip = new_trip(vehicle, driver)

        with patch('fleet.services.status_services.EntityStore.upsert_vehicle',
                   side_effect=TransientStoreError(operation='upsert_vehicle')):
            with self.assertRaises(TransientStoreError):
                FleetStateMachine().start_trip(trip, checklist(5))

        vehicle.refresh_from_db()
        self.assertEqual(vehicle.status, VEHICLE_AVAILABLE)
        self.assertEqual(vehicle.current_km, 0)
        self.assertFalse(Trip.objects.exists())
