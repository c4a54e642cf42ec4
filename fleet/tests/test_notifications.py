from decimal import Decimal

from django.test import TestCase, override_settings
from django.utils import timezone

from fleet.core.constants import NOTIFY_MAINTENANCE_KM, NOTIFY_LOW_FUEL, NOTIFY_NEW_FINE
from fleet.models import AppNotification, Fine, MaintenanceRecord
from fleet.services import FleetStateMachine
from fleet.tests.helpers import make_vehicle, make_driver, new_trip, checklist, MONDAY


class NotificationDispatchTest(TestCase):

    def setUp(self):
        self.machine = FleetStateMachine()
        self.driver = make_driver()

    def test_low_fuel_at_departure(self):
        vehicle = make_vehicle(current_km=0)
        self.machine.start_trip(new_trip(vehicle, self.driver), checklist(0, fuel_level=10))

        notification = AppNotification.objects.get(type=NOTIFY_LOW_FUEL)
        self.assertEqual(notification.vehicle_id, vehicle.id)
        self.assertEqual(notification.driver_id, self.driver.id)

    def test_no_low_fuel_alert_at_threshold(self):
        vehicle = make_vehicle(current_km=0)
        self.machine.start_trip(new_trip(vehicle, self.driver), checklist(0, fuel_level=25))
        self.assertFalse(AppNotification.objects.filter(type=NOTIFY_LOW_FUEL).exists())

    def test_maintenance_due_after_interval(self):
        vehicle = make_vehicle(current_km=9900)
        trip = self.machine.start_trip(new_trip(vehicle, self.driver), checklist(9900))
        self.machine.end_trip(trip.id, 10050)

        notification = AppNotification.objects.get(type=NOTIFY_MAINTENANCE_KM)
        self.assertEqual(notification.vehicle_id, vehicle.id)
        self.assertFalse(notification.is_read)

    def test_maintenance_due_is_not_repeated_while_unread(self):
        vehicle = make_vehicle(current_km=12000)
        for start, end in ((12000, 12100), (12100, 12200)):
            trip = self.machine.start_trip(new_trip(vehicle, self.driver), checklist(start))
            self.machine.end_trip(trip.id, end)
        self.assertEqual(AppNotification.objects.filter(type=NOTIFY_MAINTENANCE_KM).count(), 1)

    def test_interval_counts_from_last_service(self):
        vehicle = make_vehicle(current_km=15000)
        MaintenanceRecord.objects.create(
            vehicle=vehicle, date=MONDAY, return_date=timezone.now(),
            service_type='Oil Change', categories=['oil'], km=14000,
        )
        trip = self.machine.start_trip(new_trip(vehicle, self.driver), checklist(15000))
        self.machine.end_trip(trip.id, 15500)
        self.assertFalse(AppNotification.objects.filter(type=NOTIFY_MAINTENANCE_KM).exists())

    @override_settings(FLEET_MAINTENANCE_INTERVAL_KM=100)
    def test_interval_comes_from_settings(self):
        vehicle = make_vehicle(current_km=0)
        trip = self.machine.start_trip(new_trip(vehicle, self.driver), checklist(0))
        self.machine.end_trip(trip.id, 150)
        self.assertTrue(AppNotification.objects.filter(type=NOTIFY_MAINTENANCE_KM).exists())

    def test_new_fine_notifies_driver(self):
        vehicle = make_vehicle()
        self.machine.add_fine(Fine(driver=self.driver, vehicle=vehicle, date=MONDAY,
                                   value=Decimal('88.38'), points=3))

        notification = AppNotification.objects.get(type=NOTIFY_NEW_FINE)
        self.assertEqual(notification.driver_id, self.driver.id)
        self.assertIn(vehicle.plate, notification.message)
