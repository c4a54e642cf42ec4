from rest_framework import status
from django.test import TestCase
from rest_framework.test import APIClient

from fleet.core.constants import NOTIFY_NEW_FINE, VEHICLE_AVAILABLE
from fleet.models import AppNotification
from fleet.tests.helpers import make_vehicle, make_driver


class FineAPITest(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.driver = make_driver(initial_points=2)
        self.vehicle = make_vehicle()

    def _add_fine(self, points=4):
        payload = {
            'driver': str(self.driver.id),
            'vehicle': str(self.vehicle.id),
            'date': '2025-02-14',
            'value': '130.16',
            'points': points,
            'description': 'Excesso de velocidade',
        }
        return self.client.post('/api/fleet/fines/', payload, format='json')

    def test_add_fine_notifies_driver_and_updates_points(self):
        response = self._add_fine(points=4)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(AppNotification.objects.filter(type=NOTIFY_NEW_FINE, driver=self.driver).exists())

        points = self.client.get(f'/api/fleet/drivers/{self.driver.id}/points/')
        self.assertEqual(points.data['total_points'], 6)

    def test_fines_cannot_be_edited(self):
        fine_id = self._add_fine().data['id']
        response = self.client.patch(f'/api/fleet/fines/{fine_id}/', {'points': 0}, format='json')
        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)

    def test_delete_fine(self):
        fine_id = self._add_fine(points=5).data['id']
        response = self.client.delete(f'/api/fleet/fines/{fine_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

        points = self.client.get(f'/api/fleet/drivers/{self.driver.id}/points/')
        self.assertEqual(points.data['total_points'], 2)


class NotificationAndStatsAPITest(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.driver = make_driver()

    def test_mark_read(self):
        self.client.post('/api/fleet/fines/', {
            'driver': str(self.driver.id), 'date': '2025-02-14', 'value': '88.38', 'points': 3,
        }, format='json')
        notification = AppNotification.objects.get()

        unread = self.client.get('/api/fleet/notifications/', {'is_read': 'false'})
        self.assertEqual(len(unread.data), 1)

        response = self.client.post(f'/api/fleet/notifications/{notification.id}/mark_read/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['is_read'])

        unread = self.client.get('/api/fleet/notifications/', {'is_read': 'false'})
        self.assertEqual(unread.data, [])

    def test_mark_unknown_notification(self):
        response = self.client.post('/api/fleet/notifications/00000000-0000-0000-0000-000000000000/mark_read/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_stats(self):
        make_vehicle()
        response = self.client.get('/api/fleet/stats/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['vehicles'][VEHICLE_AVAILABLE], 1)
        self.assertEqual(response.data['vehicles']['total'], 1)
        self.assertEqual(response.data['active_trips'], 0)
        self.assertEqual(response.data['unread_notifications'], 0)
