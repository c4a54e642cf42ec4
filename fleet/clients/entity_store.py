"""
Repository interface over the Django ORM.

The fleet services reach persistence only through ``EntityStore``. Every call
translates database I/O failures (including lock and driver timeouts) into
``TransientStoreError`` so callers can tell a system condition from bad input.
"""
import functools
import logging
from contextlib import contextmanager

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction, DatabaseError, IntegrityError

from fleet.core.constants import TRIP_SCHEDULED, TRIP_ACTIVE, TRIP_CLOSED_PHASES
from fleet.exceptions import TransientStoreError, NotFoundError, ValidationError
from fleet.models import (
    Vehicle, Driver, Trip, TripLogEntry, MaintenanceRecord, TireChange,
    Fine, AuditLog, AppNotification,
)
from fleet.utils.text import normalize_username

logger = logging.getLogger(__name__)


def _store_call(func):
    """Report database I/O failures as transient store errors."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except IntegrityError as e:
            logger.warning(f"Store rejected write in {func.__name__}: {e}")
            raise ValidationError(f"Write rejected by the store: {e}")
        except DatabaseError as e:
            logger.error(f"Store failure in {func.__name__}: {e}", exc_info=True)
            raise TransientStoreError(operation=func.__name__) from e
    return wrapper


def _get_or_404(model, pk, label):
    try:
        return model.objects.get(pk=pk)
    except (model.DoesNotExist, DjangoValidationError, ValueError, TypeError):
        # Malformed ids are reported the same way as unknown ones
        raise NotFoundError(f"{label} {pk} not found.", entity=label, id=str(pk))


class EntityStore:
    """Key-addressed persistence for every fleet entity."""

    # --- Units of work ---

    @staticmethod
    @contextmanager
    def unit_of_work():
        """All writes inside the block commit together or not at all."""
        try:
            with transaction.atomic():
                yield
        except IntegrityError as e:
            logger.warning(f"Unit of work rolled back on integrity error: {e}")
            raise ValidationError(f"Write rejected by the store: {e}")
        except DatabaseError as e:
            logger.error(f"Unit of work rolled back: {e}", exc_info=True)
            raise TransientStoreError(operation='unit_of_work') from e

    # --- Vehicles ---

    @staticmethod
    @_store_call
    def list_vehicles(status=None):
        qs = Vehicle.objects.all()
        if status is not None:
            qs = qs.filter(status=status)
        return list(qs)

    @staticmethod
    @_store_call
    def get_vehicle(vehicle_id):
        return _get_or_404(Vehicle, vehicle_id, 'Vehicle')

    @staticmethod
    @_store_call
    def lock_vehicle(vehicle_id):
        """
        Fetch a vehicle holding its row lock until the enclosing unit of work ends.

        Serializes every check-then-act sequence that targets the same vehicle.
        """
        try:
            return Vehicle.objects.select_for_update().get(pk=vehicle_id)
        except (Vehicle.DoesNotExist, DjangoValidationError, ValueError, TypeError):
            raise NotFoundError(f"Vehicle {vehicle_id} not found.", entity='Vehicle', id=str(vehicle_id))

    @staticmethod
    @_store_call
    def upsert_vehicle(vehicle):
        vehicle.save()
        return vehicle

    # --- Drivers ---

    @staticmethod
    @_store_call
    def list_drivers():
        return list(Driver.objects.all())

    @staticmethod
    @_store_call
    def get_driver(driver_id):
        return _get_or_404(Driver, driver_id, 'Driver')

    @staticmethod
    @_store_call
    def upsert_driver(driver):
        driver.save()
        return driver

    @staticmethod
    @_store_call
    def delete_driver(driver_id):
        driver = _get_or_404(Driver, driver_id, 'Driver')
        if Trip.objects.filter(driver=driver, phase=TRIP_ACTIVE).exists():
            raise ValidationError("Driver has an active trip and cannot be removed.", driver_id=str(driver_id))
        driver.delete()

    @staticmethod
    @_store_call
    def authenticate(username, password):
        """Return the matching driver, or None when the credentials do not match."""
        driver = Driver.objects.filter(username=normalize_username(username)).first()
        if driver is None or not driver.check_password(password):
            return None
        return driver

    # --- Trips ---

    @staticmethod
    @_store_call
    def list_active_trips(vehicle_id=None, driver_id=None):
        qs = Trip.objects.filter(phase=TRIP_ACTIVE)
        if vehicle_id is not None:
            qs = qs.filter(vehicle_id=vehicle_id)
        if driver_id is not None:
            qs = qs.filter(driver_id=driver_id)
        return list(qs)

    @staticmethod
    @_store_call
    def list_scheduled_trips(vehicle_id=None):
        qs = Trip.objects.filter(phase=TRIP_SCHEDULED).order_by('scheduled_date', 'created_at')
        if vehicle_id is not None:
            qs = qs.filter(vehicle_id=vehicle_id)
        return list(qs)

    @staticmethod
    @_store_call
    def list_completed_trips():
        return list(Trip.objects.filter(phase__in=TRIP_CLOSED_PHASES).order_by('-end_time'))

    @staticmethod
    @_store_call
    def get_trip(trip_id):
        return _get_or_404(Trip, trip_id, 'Trip')

    @staticmethod
    @_store_call
    def save_trip(trip):
        trip.save()
        return trip

    @staticmethod
    @_store_call
    def delete_trip(trip_id):
        Trip.objects.filter(pk=trip_id).delete()

    @staticmethod
    @_store_call
    def append_trip_log(entry):
        entry.save()
        return entry

    # --- Maintenance ---

    @staticmethod
    @_store_call
    def list_maintenance(vehicle_id=None):
        qs = MaintenanceRecord.objects.all()
        if vehicle_id is not None:
            qs = qs.filter(vehicle_id=vehicle_id)
        return list(qs)

    @staticmethod
    @_store_call
    def get_maintenance(record_id):
        return _get_or_404(MaintenanceRecord, record_id, 'MaintenanceRecord')

    @staticmethod
    @_store_call
    def open_maintenance_for(vehicle_id):
        return MaintenanceRecord.objects.filter(vehicle_id=vehicle_id, return_date__isnull=True).first()

    @staticmethod
    @_store_call
    def last_closed_maintenance_for(vehicle_id):
        return (
            MaintenanceRecord.objects
            .filter(vehicle_id=vehicle_id, return_date__isnull=False)
            .order_by('-return_date')
            .first()
        )

    @staticmethod
    @_store_call
    def upsert_maintenance(record):
        record.save()
        return record

    @staticmethod
    @_store_call
    def append_tire_change(tire_change):
        tire_change.save()
        return tire_change

    # --- Fines ---

    @staticmethod
    @_store_call
    def list_fines(driver_id=None):
        qs = Fine.objects.all()
        if driver_id is not None:
            qs = qs.filter(driver_id=driver_id)
        return list(qs)

    @staticmethod
    @_store_call
    def append_fine(fine):
        fine.save()
        return fine

    @staticmethod
    @_store_call
    def delete_fine(fine_id):
        fine = _get_or_404(Fine, fine_id, 'Fine')
        fine.delete()

    # --- Notifications & audit ---

    @staticmethod
    @_store_call
    def list_notifications(driver_id=None, unread_only=False):
        qs = AppNotification.objects.all()
        if driver_id is not None:
            qs = qs.filter(driver_id=driver_id)
        if unread_only:
            qs = qs.filter(is_read=False)
        return list(qs)

    @staticmethod
    @_store_call
    def append_notification(notification):
        notification.save()
        return notification

    @staticmethod
    @_store_call
    def mark_notification_read(notification_id):
        notification = _get_or_404(AppNotification, notification_id, 'AppNotification')
        if not notification.is_read:
            notification.is_read = True
            notification.save(update_fields=['is_read'])
        return notification

    @staticmethod
    @_store_call
    def append_audit_log(entry):
        entry.save()
        return entry

    @staticmethod
    @_store_call
    def list_audit_logs(entity_id=None):
        qs = AuditLog.objects.all()
        if entity_id is not None:
            qs = qs.filter(entity_id=str(entity_id))
        return list(qs)

    @staticmethod
    @_store_call
    def has_unread_notification(vehicle_id, notification_type):
        return AppNotification.objects.filter(
            vehicle_id=vehicle_id, type=notification_type, is_read=False
        ).exists()
