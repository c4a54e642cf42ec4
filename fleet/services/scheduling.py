"""
Creation and editing of scheduled trips.

The restriction check and the write happen under the same vehicle row lock,
so two bookings racing for the same vehicle and date cannot both commit.
"""
import logging
from datetime import date
from typing import Optional

from fleet.clients.entity_store import EntityStore
from fleet.core.constants import TRIP_SCHEDULED
from fleet.exceptions import ValidationError, RestrictionViolation
from fleet.models import Trip
from fleet.services.notifications import NotificationDispatcher
from fleet.services.restriction_engine import CirculationPolicy, check_assignment

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ('driver_id', 'vehicle_id', 'destination', 'scheduled_date')
SCHEDULE_FIELDS = ('origin', 'destination', 'waypoints', 'city', 'state', 'zip_code', 'notes')


def _parse_date(value) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise ValidationError(f"Invalid scheduled date '{value}'.", scheduled_date=str(value))


class SchedulingService:

    def __init__(self, store=EntityStore, notifier: Optional[NotificationDispatcher] = None,
                 policy: Optional[CirculationPolicy] = None):
        self.store = store
        self.notifier = notifier or NotificationDispatcher(store)
        self.policy = policy

    def create_or_update_schedule(self, data: dict, exclude_id=None) -> Trip:
        """
        Book a vehicle and driver for a date.

        ``exclude_id`` names the schedule being edited; it is updated in place
        and never conflicts with itself. Raises ``RestrictionViolation`` when
        the vehicle is in maintenance, already booked that day, or under plate
        rotation for a destination inside the restricted city.
        """
        missing = [name for name in REQUIRED_FIELDS if not str(data.get(name) or '').strip()]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}.", missing=missing)
        scheduled_date = _parse_date(data['scheduled_date'])
        policy = self.policy or CirculationPolicy.from_settings()

        with self.store.unit_of_work():
            vehicle = self.store.lock_vehicle(data['vehicle_id'])
            driver = self.store.get_driver(data['driver_id'])

            if exclude_id is not None:
                trip = self.store.get_trip(exclude_id)
                if trip.phase != TRIP_SCHEDULED:
                    raise ValidationError(
                        f"Trip {trip.id} is {trip.phase} and can no longer be edited as a schedule.",
                        trip_id=str(trip.id), phase=trip.phase,
                    )
            else:
                trip = Trip(phase=TRIP_SCHEDULED)

            snapshot = self.store.list_scheduled_trips()
            restriction = check_assignment(
                vehicle,
                scheduled_date,
                data.get('city') or '',
                data.get('state') or '',
                data['destination'],
                snapshot,
                exclude_trip_id=exclude_id,
                policy=policy,
            )
            if restriction is not None:
                logger.warning(f"Schedule rejected for {vehicle.plate} on {scheduled_date}: {restriction.kind}")
                raise RestrictionViolation(restriction)

            trip.vehicle = vehicle
            trip.driver = driver
            trip.scheduled_date = scheduled_date
            for name in SCHEDULE_FIELDS:
                if name in data and data[name] is not None:
                    setattr(trip, name, data[name])
            self.store.save_trip(trip)

            if exclude_id is None:
                self.notifier.schedule_created(trip)

        action = 'updated' if exclude_id is not None else 'created'
        logger.info(f"Schedule {trip.id} {action}: {vehicle.plate} on {scheduled_date} to {trip.destination}")
        return trip

    def delete_schedule(self, schedule_id):
        with self.store.unit_of_work():
            trip = self.store.get_trip(schedule_id)
            if trip.phase != TRIP_SCHEDULED:
                raise ValidationError(
                    f"Trip {trip.id} is {trip.phase}; only scheduled trips can be deleted.",
                    trip_id=str(trip.id), phase=trip.phase,
                )
            self.store.delete_trip(trip.id)
        logger.info(f"Schedule {schedule_id} deleted")
