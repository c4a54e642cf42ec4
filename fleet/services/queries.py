"""
Read-only fleet summaries built from store snapshots.
"""
from collections import defaultdict
from typing import Dict, List

from django.conf import settings

from fleet.clients.entity_store import EntityStore
from fleet.core.constants import VEHICLE_STATUS_CHOICES, DEFAULT_POINTS_ALERT_THRESHOLD


class FleetQueries:

    def __init__(self, store=EntityStore):
        self.store = store

    def driver_total_points(self, driver) -> int:
        """Initial points plus the points of every fine still on record."""
        fines = self.store.list_fines(driver_id=driver.id)
        return driver.initial_points + sum(f.points for f in fines)

    def driver_point_totals(self) -> Dict[str, int]:
        totals = defaultdict(int)
        for fine in self.store.list_fines():
            totals[str(fine.driver_id)] += fine.points
        return {
            str(driver.id): driver.initial_points + totals[str(driver.id)]
            for driver in self.store.list_drivers()
        }

    def drivers_over_point_threshold(self, threshold=None) -> List[dict]:
        if threshold is None:
            threshold = getattr(settings, 'FLEET_POINTS_ALERT_THRESHOLD', DEFAULT_POINTS_ALERT_THRESHOLD)
        totals = self.driver_point_totals()
        return [
            {'driver_id': str(d.id), 'name': d.name, 'points': totals[str(d.id)]}
            for d in self.store.list_drivers()
            if totals[str(d.id)] >= threshold
        ]

    def vehicle_availability_counts(self) -> Dict[str, int]:
        counts = {status: 0 for status, _ in VEHICLE_STATUS_CHOICES}
        vehicles = self.store.list_vehicles()
        for vehicle in vehicles:
            counts[vehicle.status] = counts.get(vehicle.status, 0) + 1
        counts['total'] = len(vehicles)
        return counts

    def open_maintenance_count(self) -> int:
        return sum(1 for record in self.store.list_maintenance() if record.is_open)

    def summary(self) -> dict:
        return {
            'vehicles': self.vehicle_availability_counts(),
            'active_trips': len(self.store.list_active_trips()),
            'scheduled_trips': len(self.store.list_scheduled_trips()),
            'closed_trips': len(self.store.list_completed_trips()),
            'open_maintenance': self.open_maintenance_count(),
            'unread_notifications': len(self.store.list_notifications(unread_only=True)),
            'drivers_over_point_threshold': self.drivers_over_point_threshold(),
        }
