import logging

from fleet.core.constants import VEHICLE_AVAILABLE, VEHICLE_IN_USE, VEHICLE_MAINTENANCE
from fleet.clients.entity_store import EntityStore
from fleet.models import Vehicle

logger = logging.getLogger(__name__)


def update_vehicle_status(vehicle: Vehicle, new_status: str, current_km=None, last_checklist=None):
    """
    Write a vehicle status change.

    Callers have already validated the transition; this only persists it.
    """
    previous = vehicle.status
    vehicle.status = new_status
    if current_km is not None:
        vehicle.current_km = current_km
    if last_checklist is not None:
        vehicle.last_checklist = last_checklist
    EntityStore.upsert_vehicle(vehicle)
    logger.info(f"Vehicle {vehicle.plate}: {previous} -> {new_status} (km={vehicle.current_km})")
    return vehicle


def mark_vehicle_available(vehicle: Vehicle, current_km=None):
    return update_vehicle_status(vehicle, VEHICLE_AVAILABLE, current_km=current_km)


def mark_vehicle_in_use(vehicle: Vehicle, current_km, last_checklist):
    return update_vehicle_status(vehicle, VEHICLE_IN_USE, current_km=current_km, last_checklist=last_checklist)


def mark_vehicle_maintenance(vehicle: Vehicle):
    return update_vehicle_status(vehicle, VEHICLE_MAINTENANCE)
