from unittest.mock import patch

from rest_framework import status
from django.test import TestCase
from rest_framework.test import APIClient

from fleet.core.constants import (
    TRIP_ACTIVE, TRIP_COMPLETED, TRIP_CANCELLED, TRIP_SCHEDULED, VEHICLE_IN_USE, VEHICLE_AVAILABLE,
    LOG_IN_TRANSIT_NOTE,
)
from fleet.exceptions import TransientStoreError
from fleet.models import Trip
from fleet.tests.helpers import make_vehicle, make_driver, make_schedule, MONDAY, TUESDAY


def _checklist(km, **extra):
    data = {'km': km, 'fuel_level': 70, 'oil_checked': True, 'water_checked': True, 'tires_checked': True}
    data.update(extra)
    return data


class TripAPITest(TestCase):
    """Test trip lifecycle API endpoints."""

    def setUp(self):
        self.client = APIClient()
        self.vehicle = make_vehicle(plate='TRK5001', current_km=5000)
        self.driver = make_driver()

    def _start(self, km=5000, **extra):
        payload = {
            'driver': str(self.driver.id),
            'vehicle': str(self.vehicle.id),
            'origin': 'Deposito',
            'destination': 'Warehouse A',
            'checklist': _checklist(km),
        }
        payload.update(extra)
        return self.client.post('/api/fleet/trips/', payload, format='json')

    def test_start_trip(self):
        response = self._start(km=5010)

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['phase'], TRIP_ACTIVE)
        self.assertEqual(response.data['start_km'], 5010)
        self.assertEqual(response.data['vehicle_plate'], 'TRK5001')
        self.vehicle.refresh_from_db()
        self.assertEqual(self.vehicle.status, VEHICLE_IN_USE)

    def test_start_trip_with_low_odometer(self):
        response = self._start(km=4000)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['kind'], 'INVALID_ODOMETER_READING')
        self.assertEqual(response.data['error']['detail']['current_km'], 5000)

    def test_start_trip_on_busy_vehicle_is_conflict(self):
        self._start()
        self.driver = make_driver()
        response = self._start()

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error']['kind'], 'VEHICLE_UNAVAILABLE')

    def test_start_scheduled_trip(self):
        schedule = make_schedule(self.vehicle, self.driver)
        response = self.client.post(
            f'/api/fleet/trips/{schedule.id}/start/', {'checklist': _checklist(5000)}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['id'], str(schedule.id))
        self.assertEqual(response.data['phase'], TRIP_ACTIVE)

    def test_end_trip(self):
        trip_id = self._start().data['id']
        payload = {'end_km': 5150, 'fuel_expense': '120.00', 'arrival_note': 'Trip completed successfully'}

        response = self.client.post(f'/api/fleet/trips/{trip_id}/end_trip/', payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['phase'], TRIP_COMPLETED)
        self.assertEqual(response.data['distance'], 150)
        self.vehicle.refresh_from_db()
        self.assertEqual(self.vehicle.current_km, 5150)
        self.assertEqual(self.vehicle.status, VEHICLE_AVAILABLE)

    def test_end_trip_requires_greater_odometer(self):
        trip_id = self._start().data['id']
        response = self.client.post(f'/api/fleet/trips/{trip_id}/end_trip/', {'end_km': 5000}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['kind'], 'INVALID_ODOMETER_READING')

    def test_end_unknown_trip(self):
        response = self.client.post(
            '/api/fleet/trips/00000000-0000-0000-0000-000000000000/end_trip/', {'end_km': 10}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error']['kind'], 'NOT_FOUND')

    def test_cancel_trip(self):
        trip_id = self._start().data['id']

        empty = self.client.post(f'/api/fleet/trips/{trip_id}/cancel/', {'reason': ' '}, format='json')
        self.assertEqual(empty.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(empty.data['error']['kind'], 'MISSING_CANCELLATION_REASON')

        response = self.client.post(
            f'/api/fleet/trips/{trip_id}/cancel/', {'reason': 'Cliente cancelou', 'actor': 'Gestor'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['phase'], TRIP_CANCELLED)
        self.assertEqual(response.data['cancelled_by'], 'Gestor')

        audit = self.client.get(f'/api/fleet/trips/{trip_id}/audit/')
        self.assertEqual([entry['action'] for entry in audit.data], ['CANCELLED'])
        self.assertEqual(audit.data[0]['description'], 'Cliente cancelou')

    def test_notes(self):
        trip_id = self._start(checklist=_checklist(5000, comments='Saida ok')).data['id']

        created = self.client.post(
            f'/api/fleet/trips/{trip_id}/notes/', {'kind': LOG_IN_TRANSIT_NOTE, 'text': 'Parada para almoco'},
            format='json'
        )
        self.assertEqual(created.status_code, status.HTTP_201_CREATED)

        listed = self.client.get(f'/api/fleet/trips/{trip_id}/notes/')
        self.assertEqual([e['text'] for e in listed.data], ['Saida ok', 'Parada para almoco'])

    def test_change_route(self):
        trip_id = self._start().data['id']
        response = self.client.post(
            f'/api/fleet/trips/{trip_id}/change_route/',
            {'destination': 'Warehouse B', 'waypoints': ['Posto 1']},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['destination'], 'Warehouse B')

    def test_filter_by_phase(self):
        make_schedule(self.vehicle, self.driver)
        self._start()
        response = self.client.get('/api/fleet/trips/', {'phase': TRIP_SCHEDULED})
        self.assertEqual(len(response.data), 1)

    def test_store_failure_is_503(self):
        with patch('fleet.services.state_machine.FleetStateMachine.start_trip',
                   side_effect=TransientStoreError(operation='lock_vehicle')):
            response = self._start()
        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertEqual(response.data['error']['kind'], 'TRANSIENT_STORE_ERROR')
        self.assertEqual(response['Retry-After'], '1')


class ScheduleAPITest(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.vehicle = make_vehicle(plate='XYZ9871')
        self.driver = make_driver()

    def _payload(self, **overrides):
        payload = {
            'driver': str(self.driver.id),
            'vehicle': str(self.vehicle.id),
            'scheduled_date': TUESDAY.isoformat(),
            'destination': 'Rua Vergueiro, 200',
            'city': 'São Paulo',
            'state': 'SP',
        }
        payload.update(overrides)
        return payload

    def test_create_schedule(self):
        response = self.client.post('/api/fleet/schedules/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['phase'], TRIP_SCHEDULED)

    def test_double_booking_is_conflict(self):
        self.client.post('/api/fleet/schedules/', self._payload(), format='json')
        response = self.client.post('/api/fleet/schedules/', self._payload(destination='Outro'), format='json')

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error']['kind'], 'RESTRICTION_VIOLATION')
        self.assertEqual(response.data['error']['detail']['restriction'], 'CONFLICT_VEHICLE')

    def test_update_schedule_in_place(self):
        schedule_id = self.client.post('/api/fleet/schedules/', self._payload(), format='json').data['id']
        response = self.client.patch(
            f'/api/fleet/schedules/{schedule_id}/', {'destination': 'Rua Augusta, 10'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['id'], schedule_id)
        self.assertEqual(response.data['destination'], 'Rua Augusta, 10')

    def test_rotation_day_is_rejected(self):
        # Plate ending in 1 on a Monday inside the restricted city
        vehicle = make_vehicle(plate='ROD0001')
        response = self.client.post(
            '/api/fleet/schedules/',
            self._payload(vehicle=str(vehicle.id), scheduled_date=MONDAY.isoformat()),
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error']['detail']['restriction'], 'CIRCULATION_RESTRICTED')

    def test_delete_schedule(self):
        schedule = make_schedule(self.vehicle, self.driver)
        response = self.client.delete(f'/api/fleet/schedules/{schedule.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Trip.objects.filter(pk=schedule.id).exists())

    def test_started_trips_are_not_listed_as_schedules(self):
        schedule = make_schedule(self.vehicle, self.driver)
        Trip.objects.filter(pk=schedule.id).update(phase=TRIP_ACTIVE)
        response = self.client.get('/api/fleet/schedules/')
        self.assertEqual(response.data, [])
