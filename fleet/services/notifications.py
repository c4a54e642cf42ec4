"""
Notifications derived from fleet state transitions.

The dispatcher is called by the state machine and the scheduling service
inside their unit of work, so an alert exists only if the transition that
caused it committed.
"""
import logging

from django.conf import settings

from fleet.clients.entity_store import EntityStore
from fleet.core.constants import (
    NOTIFY_NEW_FINE, NOTIFY_MAINTENANCE_KM, NOTIFY_LOW_FUEL, NOTIFY_SCHEDULE,
    DEFAULT_MAINTENANCE_INTERVAL_KM, DEFAULT_LOW_FUEL_THRESHOLD,
)
from fleet.models import AppNotification

logger = logging.getLogger(__name__)


class NotificationDispatcher:

    def __init__(self, store=EntityStore):
        self.store = store

    def _emit(self, notification_type, title, message, vehicle=None, driver=None):
        notification = AppNotification(
            type=notification_type,
            title=title,
            message=message,
            vehicle=vehicle,
            driver=driver,
        )
        self.store.append_notification(notification)
        logger.info(f"Notification [{notification_type}] emitted: {title}")
        return notification

    def fine_added(self, fine):
        """Tell the driver a fine was registered against them."""
        vehicle_label = fine.vehicle.plate if fine.vehicle_id else 'n/a'
        return self._emit(
            NOTIFY_NEW_FINE,
            title='New fine registered',
            message=(
                f"A fine of {fine.value} ({fine.points} points) dated {fine.date} "
                f"was registered for vehicle {vehicle_label}."
            ),
            vehicle=fine.vehicle if fine.vehicle_id else None,
            driver=fine.driver,
        )

    def trip_ended(self, vehicle):
        """
        Emit a maintenance-due alert once the vehicle has run a full service
        interval since its last released maintenance (or since zero).
        """
        interval = getattr(settings, 'FLEET_MAINTENANCE_INTERVAL_KM', DEFAULT_MAINTENANCE_INTERVAL_KM)
        if not interval:
            return None

        if self.store.has_unread_notification(vehicle.id, NOTIFY_MAINTENANCE_KM):
            return None

        last_service = self.store.last_closed_maintenance_for(vehicle.id)
        baseline = last_service.km if last_service else 0
        driven = vehicle.current_km - baseline
        if driven < interval:
            return None

        return self._emit(
            NOTIFY_MAINTENANCE_KM,
            title='Maintenance due',
            message=(
                f"Vehicle {vehicle.plate} has run {driven} km since its last service "
                f"(interval {interval} km)."
            ),
            vehicle=vehicle,
        )

    def trip_started(self, vehicle, checklist, driver=None):
        threshold = getattr(settings, 'FLEET_LOW_FUEL_THRESHOLD', DEFAULT_LOW_FUEL_THRESHOLD)
        if checklist.fuel_level is None or checklist.fuel_level >= threshold:
            return None
        return self._emit(
            NOTIFY_LOW_FUEL,
            title='Low fuel at departure',
            message=f"Vehicle {vehicle.plate} departed with {checklist.fuel_level}% fuel.",
            vehicle=vehicle,
            driver=driver,
        )

    def schedule_created(self, trip):
        if trip.driver_id is None:
            return None
        return self._emit(
            NOTIFY_SCHEDULE,
            title='New trip scheduled',
            message=f"Trip to {trip.destination} scheduled for {trip.scheduled_date} with vehicle {trip.vehicle.plate}.",
            vehicle=trip.vehicle,
            driver=trip.driver,
        )
