"""
Vehicle and trip lifecycle transitions.

Every operation runs as one unit of work holding the vehicle row lock, and
checks all of its preconditions before the first write. A rejected
operation therefore leaves the store exactly as it found it.
"""
import logging
from datetime import datetime
from typing import Iterable, Optional

from django.utils import timezone

from fleet.clients.entity_store import EntityStore
from fleet.core.constants import (
    TRIP_SCHEDULED, TRIP_ACTIVE, TRIP_COMPLETED, TRIP_CANCELLED,
    LOG_DEPARTURE_NOTE, LOG_ARRIVAL_NOTE, TRIP_LOG_KIND_CHOICES,
    MAINTENANCE_CATEGORIES, MAINTENANCE_CATEGORY_CHOICES, TIRE_POSITIONS,
    AUDIT_CANCELLED, AUDIT_ROUTE_CHANGE, AUDIT_KM_CORRECTION, VEHICLE_MAINTENANCE,
)
from fleet.core.types import Checklist, MaintenanceRequest, TripExpenses
from fleet.exceptions import (
    ValidationError, InvalidOdometerReading, IncompleteChecklist,
    MissingCancellationReason, VehicleUnavailable,
)
from fleet.models import Trip, TripLogEntry, MaintenanceRecord, TireChange, AuditLog
from fleet.services.notifications import NotificationDispatcher
from fleet.services.status_services import (
    mark_vehicle_available, mark_vehicle_in_use, mark_vehicle_maintenance,
)

logger = logging.getLogger(__name__)

CATEGORY_LABELS = dict(MAINTENANCE_CATEGORY_CHOICES)
TRIP_LOG_KINDS = {key for key, _ in TRIP_LOG_KIND_CHOICES}


def _actor_identity(actor):
    """Return ``(user_id, user_name)`` for a Driver, a plain name or None."""
    if actor is None:
        return '', 'system'
    if isinstance(actor, str):
        return '', actor
    return str(getattr(actor, 'id', '')), getattr(actor, 'name', '') or getattr(actor, 'username', '')


def _maintenance_service_type(request: MaintenanceRequest) -> str:
    labels = []
    for category in request.categories:
        if category == 'other':
            labels.append(request.service_type.strip())
        else:
            labels.append(CATEGORY_LABELS[category])
    return ', '.join(labels)


class FleetStateMachine:
    """
    The only writer of ``Vehicle.status``, ``Vehicle.current_km`` and
    ``Trip.phase``.
    """

    def __init__(self, store=EntityStore, notifier: Optional[NotificationDispatcher] = None):
        self.store = store
        self.notifier = notifier or NotificationDispatcher(store)

    # --- Trips ---

    def start_trip(self, trip: Trip, checklist: Checklist) -> Trip:
        """
        Put a trip on the road.

        ``trip`` is either a stored SCHEDULED trip, which is consumed and keeps
        its id, or a new unsaved trip for an immediate departure.
        """
        if not (trip.destination or '').strip():
            raise ValidationError("Trip destination is required.")
        if trip.driver_id is None:
            raise ValidationError("Trip driver is required.")

        with self.store.unit_of_work():
            from_schedule = not trip._state.adding
            if from_schedule:
                # The stored schedule names the vehicle to lock, not the caller's copy
                trip = self.store.get_trip(trip.id)
            vehicle = self.store.lock_vehicle(trip.vehicle_id)
            if from_schedule:
                trip = self.store.get_trip(trip.id)
                if trip.phase != TRIP_SCHEDULED:
                    raise ValidationError(
                        f"Trip {trip.id} is {trip.phase} and cannot be started.",
                        trip_id=str(trip.id), phase=trip.phase,
                    )
                if trip.vehicle_id != vehicle.id:
                    raise ValidationError(
                        f"Schedule {trip.id} was moved to another vehicle while starting. Try again.",
                        trip_id=str(trip.id),
                    )

            if not vehicle.is_available:
                logger.warning(f"Start rejected: vehicle {vehicle.plate} is {vehicle.status}")
                raise VehicleUnavailable(
                    f"Vehicle {vehicle.plate} is {vehicle.status} and cannot start a trip.",
                    status=vehicle.status,
                )
            if checklist.km < vehicle.current_km:
                logger.warning(
                    f"Start rejected: checklist km {checklist.km} below odometer {vehicle.current_km} "
                    f"for {vehicle.plate}"
                )
                raise InvalidOdometerReading(
                    f"Checklist odometer {checklist.km} is below the vehicle's current {vehicle.current_km} km.",
                    km=checklist.km, current_km=vehicle.current_km,
                )
            if self.store.list_active_trips(driver_id=trip.driver_id):
                raise ValidationError(
                    "Driver already has an active trip.", driver_id=str(trip.driver_id),
                )

            departure_note = checklist.comments or (trip.notes if from_schedule else '')

            trip.phase = TRIP_ACTIVE
            trip.start_time = checklist.timestamp
            trip.start_km = checklist.km
            self.store.save_trip(trip)
            mark_vehicle_in_use(vehicle, checklist.km, checklist.snapshot())

            if departure_note:
                self.store.append_trip_log(TripLogEntry(
                    trip=trip,
                    kind=LOG_DEPARTURE_NOTE,
                    text=departure_note,
                    author=trip.driver.name if trip.driver_id else '',
                    timestamp=checklist.timestamp,
                ))

            self.notifier.trip_started(vehicle, checklist, driver=trip.driver)

        logger.info(f"Trip {trip.id} started with vehicle {vehicle.plate} at {checklist.km} km")
        return trip

    def end_trip(self, trip_id, end_km, end_time: Optional[datetime] = None,
                 expenses: Optional[TripExpenses] = None, arrival_note: str = '') -> Trip:
        end_km = int(end_km)
        end_time = end_time or timezone.now()
        expenses = expenses or TripExpenses()

        with self.store.unit_of_work():
            trip = self.store.get_trip(trip_id)
            vehicle = self.store.lock_vehicle(trip.vehicle_id)
            trip = self.store.get_trip(trip_id)

            if trip.phase != TRIP_ACTIVE:
                raise ValidationError(
                    f"Trip {trip.id} is {trip.phase} and cannot be ended.",
                    trip_id=str(trip.id), phase=trip.phase,
                )
            if end_km <= trip.start_km:
                logger.warning(f"End rejected for trip {trip.id}: {end_km} km <= start {trip.start_km} km")
                raise InvalidOdometerReading(
                    f"Final odometer {end_km} must be greater than the starting {trip.start_km} km.",
                    end_km=end_km, start_km=trip.start_km,
                )
            if trip.start_time and end_time < trip.start_time:
                raise ValidationError("Trip cannot end before it started.", trip_id=str(trip.id))

            trip.phase = TRIP_COMPLETED
            trip.end_time = end_time
            trip.distance = end_km - trip.start_km
            trip.fuel_expense = expenses.fuel
            trip.other_expense = expenses.other
            trip.expense_notes = expenses.notes
            self.store.save_trip(trip)
            mark_vehicle_available(vehicle, current_km=end_km)

            if arrival_note:
                self.store.append_trip_log(TripLogEntry(
                    trip=trip,
                    kind=LOG_ARRIVAL_NOTE,
                    text=arrival_note,
                    author=trip.driver.name if trip.driver_id else '',
                    timestamp=end_time,
                ))

            self.notifier.trip_ended(vehicle)

        logger.info(f"Trip {trip.id} completed: {trip.distance} km, vehicle {vehicle.plate} released")
        return trip

    def cancel_trip(self, trip_id, reason: str, actor=None) -> Trip:
        """Abort an active trip. The vehicle is released without touching its odometer."""
        if not reason or not reason.strip():
            raise MissingCancellationReason(trip_id=str(trip_id))
        reason = reason.strip()
        user_id, user_name = _actor_identity(actor)

        with self.store.unit_of_work():
            trip = self.store.get_trip(trip_id)
            vehicle = self.store.lock_vehicle(trip.vehicle_id)
            trip = self.store.get_trip(trip_id)

            if trip.phase != TRIP_ACTIVE:
                raise ValidationError(
                    f"Trip {trip.id} is {trip.phase} and cannot be cancelled.",
                    trip_id=str(trip.id), phase=trip.phase,
                )

            trip.phase = TRIP_CANCELLED
            trip.is_cancelled = True
            trip.cancellation_reason = reason
            trip.cancelled_by = user_name
            trip.end_time = timezone.now()
            self.store.save_trip(trip)
            mark_vehicle_available(vehicle)

            self.store.append_audit_log(AuditLog(
                entity_id=str(trip.id),
                user_id=user_id,
                user_name=user_name,
                action=AUDIT_CANCELLED,
                description=reason,
                previous_value=TRIP_ACTIVE,
                new_value=TRIP_CANCELLED,
            ))

        logger.info(f"Trip {trip.id} cancelled by {user_name}: {reason}")
        return trip

    def add_trip_note(self, trip_id, kind: str, text: str, author=None) -> TripLogEntry:
        if kind not in TRIP_LOG_KINDS:
            raise ValidationError(f"Unknown note kind '{kind}'.", kind=kind)
        if not text or not text.strip():
            raise ValidationError("Note text is required.")
        _, author_name = _actor_identity(author)

        with self.store.unit_of_work():
            trip = self.store.get_trip(trip_id)
            if trip.phase != TRIP_ACTIVE:
                raise ValidationError(
                    f"Notes can only be added to active trips (trip is {trip.phase}).",
                    trip_id=str(trip.id), phase=trip.phase,
                )
            entry = self.store.append_trip_log(TripLogEntry(
                trip=trip, kind=kind, text=text.strip(), author=author_name,
            ))
        return entry

    def change_route(self, trip_id, destination: str, waypoints=None, actor=None) -> Trip:
        if not destination or not destination.strip():
            raise ValidationError("Destination is required.")
        waypoints = list(waypoints or [])
        user_id, user_name = _actor_identity(actor)

        with self.store.unit_of_work():
            trip = self.store.get_trip(trip_id)
            self.store.lock_vehicle(trip.vehicle_id)
            trip = self.store.get_trip(trip_id)
            if trip.phase != TRIP_ACTIVE:
                raise ValidationError(
                    f"Route can only be changed on active trips (trip is {trip.phase}).",
                    trip_id=str(trip.id), phase=trip.phase,
                )

            previous = self._route_label(trip.destination, trip.waypoints)
            trip.destination = destination.strip()
            trip.waypoints = waypoints
            self.store.save_trip(trip)

            self.store.append_audit_log(AuditLog(
                entity_id=str(trip.id),
                user_id=user_id,
                user_name=user_name,
                action=AUDIT_ROUTE_CHANGE,
                description=f"Route changed to {trip.destination}",
                previous_value=previous,
                new_value=self._route_label(trip.destination, trip.waypoints),
            ))

        logger.info(f"Trip {trip.id} rerouted to {trip.destination} by {user_name}")
        return trip

    @staticmethod
    def _route_label(destination, waypoints):
        stops = [str(w) for w in (waypoints or [])]
        return ' -> '.join(stops + [destination])

    # --- Maintenance ---

    def open_maintenance(self, vehicle_id, request: MaintenanceRequest) -> MaintenanceRecord:
        """Take an available vehicle out of service."""
        categories = list(dict.fromkeys(request.categories or []))
        if not categories:
            raise ValidationError("Select at least one maintenance category.")
        unknown = [c for c in categories if c not in MAINTENANCE_CATEGORIES]
        if unknown:
            raise ValidationError(f"Unknown maintenance categories: {', '.join(unknown)}.", unknown=unknown)
        if 'other' in categories and not request.service_type.strip():
            raise ValidationError("Describe the service when selecting 'other'.")
        if 'tires' in categories and request.tires is not None:
            if not request.tires.positions:
                raise ValidationError("Select at least one tire position.")
            bad_positions = [p for p in request.tires.positions if p not in TIRE_POSITIONS]
            if bad_positions:
                raise ValidationError(f"Unknown tire positions: {', '.join(bad_positions)}.", positions=bad_positions)
        request.categories = categories
        km = int(request.km)

        with self.store.unit_of_work():
            vehicle = self.store.lock_vehicle(vehicle_id)
            if not vehicle.is_available:
                logger.warning(f"Maintenance rejected: vehicle {vehicle.plate} is {vehicle.status}")
                raise VehicleUnavailable(
                    f"Vehicle {vehicle.plate} is {vehicle.status} and cannot enter maintenance.",
                    status=vehicle.status,
                )
            if self.store.open_maintenance_for(vehicle.id) is not None:
                raise ValidationError(
                    f"Vehicle {vehicle.plate} already has an open maintenance record.",
                    vehicle_id=str(vehicle.id),
                )
            if km < vehicle.current_km:
                raise InvalidOdometerReading(
                    f"Maintenance odometer {km} is below the vehicle's current {vehicle.current_km} km.",
                    km=km, current_km=vehicle.current_km,
                )

            record = self.store.upsert_maintenance(MaintenanceRecord(
                vehicle=vehicle,
                date=request.date,
                service_type=_maintenance_service_type(request),
                categories=categories,
                cost=request.cost,
                km=km,
                notes=request.notes,
            ))
            mark_vehicle_maintenance(vehicle)

            if 'tires' in categories and request.tires is not None:
                self.store.append_tire_change(TireChange(
                    vehicle=vehicle,
                    maintenance_record=record,
                    date=request.date,
                    brand=request.tires.brand,
                    model=request.tires.model,
                    km=km,
                    positions=list(request.tires.positions),
                ))

        logger.info(f"Vehicle {vehicle.plate} entered maintenance: {record.service_type}")
        return record

    def resolve_maintenance(self, vehicle_id, record_id, exit_km, exit_date: Optional[datetime] = None,
                            cost=None, notes: Optional[str] = None,
                            checklist_completion: Iterable[str] = ()) -> MaintenanceRecord:
        """Release a vehicle once every declared category has been signed off."""
        exit_km = int(exit_km)
        exit_date = exit_date or timezone.now()
        completed = set(checklist_completion or ())

        with self.store.unit_of_work():
            vehicle = self.store.lock_vehicle(vehicle_id)
            record = self.store.get_maintenance(record_id)

            if record.vehicle_id != vehicle.id:
                raise ValidationError(
                    "Maintenance record does not belong to this vehicle.",
                    record_id=str(record.id), vehicle_id=str(vehicle.id),
                )
            if not record.is_open:
                raise ValidationError("Maintenance record is already closed.", record_id=str(record.id))
            if vehicle.status != VEHICLE_MAINTENANCE:
                raise VehicleUnavailable(
                    f"Vehicle {vehicle.plate} is {vehicle.status}, not in maintenance.",
                    status=vehicle.status,
                )
            if exit_km < record.km or exit_km < vehicle.current_km:
                raise InvalidOdometerReading(
                    f"Exit odometer {exit_km} is below the entry reading of {record.km} km.",
                    exit_km=exit_km, entry_km=record.km,
                )
            missing = [c for c in record.categories if c not in completed]
            if missing:
                logger.warning(f"Release of {vehicle.plate} blocked, unchecked categories: {missing}")
                raise IncompleteChecklist(
                    f"Unchecked maintenance items: {', '.join(missing)}.", missing=missing,
                )

            record.return_date = exit_date
            if cost is not None:
                record.cost = cost
            if notes:
                record.return_notes = notes
            self.store.upsert_maintenance(record)
            mark_vehicle_available(vehicle, current_km=exit_km)

        logger.info(f"Vehicle {vehicle.plate} released from maintenance at {exit_km} km")
        return record

    # --- Odometer ---

    def correct_odometer(self, vehicle_id, km, reason: str, actor=None):
        """
        Raise a parked vehicle's odometer to a corrected reading.

        Readings never go down, so only upward corrections are accepted.
        """
        if not reason or not reason.strip():
            raise ValidationError("A reason is required to correct the odometer.")
        reason = reason.strip()
        km = int(km)
        user_id, user_name = _actor_identity(actor)

        with self.store.unit_of_work():
            vehicle = self.store.lock_vehicle(vehicle_id)
            if not vehicle.is_available:
                raise VehicleUnavailable(
                    f"Vehicle {vehicle.plate} is {vehicle.status}; correct the odometer when it is parked.",
                    status=vehicle.status,
                )
            if km <= vehicle.current_km:
                raise InvalidOdometerReading(
                    f"Corrected odometer {km} must be greater than the current {vehicle.current_km} km.",
                    km=km, current_km=vehicle.current_km,
                )

            previous = vehicle.current_km
            mark_vehicle_available(vehicle, current_km=km)
            self.store.append_audit_log(AuditLog(
                entity_id=str(vehicle.id),
                user_id=user_id,
                user_name=user_name,
                action=AUDIT_KM_CORRECTION,
                description=reason,
                previous_value=str(previous),
                new_value=str(km),
            ))

        logger.info(f"Odometer of {vehicle.plate} corrected {previous} -> {km} km by {user_name}")
        return vehicle

    # --- Fines ---

    def add_fine(self, fine):
        if fine.value is not None and fine.value < 0:
            raise ValidationError("Fine value cannot be negative.")
        if fine.points is not None and fine.points < 0:
            raise ValidationError("Fine points cannot be negative.")

        with self.store.unit_of_work():
            self.store.get_driver(fine.driver_id)
            self.store.append_fine(fine)
            self.notifier.fine_added(fine)

        logger.info(f"Fine {fine.id} registered for driver {fine.driver_id}: {fine.points} points")
        return fine

    def delete_fine(self, fine_id):
        with self.store.unit_of_work():
            self.store.delete_fine(fine_id)
        logger.info(f"Fine {fine_id} deleted")
