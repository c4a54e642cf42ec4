from django.contrib import admin
from django.contrib.auth.models import User
from django.test import TestCase, RequestFactory

from fleet.core.constants import VEHICLE_AVAILABLE, NOTIFY_LOW_FUEL
from fleet.models import Vehicle, MaintenanceRecord, AppNotification
from fleet.services import FleetStateMachine
from fleet.tests.helpers import make_vehicle, make_driver, new_trip, checklist, maintenance_request, MONDAY


class FleetAdminTest(TestCase):
    """Admin pages must not bypass vehicle and trip transitions."""

    def setUp(self):
        self.superuser = User.objects.create_superuser('admin', 'admin@example.com', 'secret123')
        self.client.force_login(self.superuser)
        self.vehicle = make_vehicle(current_km=5000)

    def test_maintenance_record_cannot_be_added(self):
        response = self.client.post('/admin/fleet/maintenancerecord/add/', {
            'vehicle': str(self.vehicle.id),
            'date': MONDAY.isoformat(),
            'service_type': 'Oil Change',
            'km': 5000,
        })

        self.assertEqual(response.status_code, 403)
        self.assertFalse(MaintenanceRecord.objects.exists())
        self.vehicle.refresh_from_db()
        self.assertEqual(self.vehicle.status, VEHICLE_AVAILABLE)

    def test_open_maintenance_record_cannot_be_deleted(self):
        record = FleetStateMachine().open_maintenance(self.vehicle.id, maintenance_request(5000))

        response = self.client.post(f'/admin/fleet/maintenancerecord/{record.id}/delete/', {'post': 'yes'})

        self.assertEqual(response.status_code, 403)
        self.assertTrue(MaintenanceRecord.objects.filter(pk=record.id).exists())

    def test_active_trip_cannot_be_reassigned(self):
        trip = FleetStateMachine().start_trip(new_trip(self.vehicle, make_driver()), checklist(5000))
        other = make_vehicle()

        response = self.client.post(f'/admin/fleet/trip/{trip.id}/change/', {'vehicle': str(other.id)})

        self.assertEqual(response.status_code, 403)
        trip.refresh_from_db()
        self.assertEqual(trip.vehicle_id, self.vehicle.id)

    def test_odometer_is_read_only_once_vehicle_exists(self):
        request = RequestFactory().get('/admin/')
        request.user = self.superuser
        vehicle_admin = admin.site._registry[Vehicle]

        self.assertIn('current_km', vehicle_admin.get_readonly_fields(request, self.vehicle))
        self.assertNotIn('current_km', vehicle_admin.get_readonly_fields(request))
        form_class = vehicle_admin.get_form(request, self.vehicle)
        self.assertNotIn('current_km', form_class.base_fields)

    def test_notification_only_read_flag_changes(self):
        notification = AppNotification.objects.create(
            type=NOTIFY_LOW_FUEL, title='Low fuel at departure', message='10%', vehicle=self.vehicle,
        )

        response = self.client.post(f'/admin/fleet/appnotification/{notification.id}/change/', {
            'is_read': 'on',
            'title': 'Edited',
            'message': 'Edited',
        })

        self.assertEqual(response.status_code, 302)
        notification.refresh_from_db()
        self.assertTrue(notification.is_read)
        self.assertEqual(notification.title, 'Low fuel at departure')
        self.assertEqual(notification.message, '10%')
