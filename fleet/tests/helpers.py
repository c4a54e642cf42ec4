"""Fixture builders shared by the fleet test modules."""
from datetime import date
from itertools import count

from fleet.core.types import Checklist, MaintenanceRequest
from fleet.models import Vehicle, Driver, Trip
from fleet.core.constants import TRIP_SCHEDULED

_seq = count(1)

MONDAY = date(2025, 3, 3)
TUESDAY = date(2025, 3, 4)
SATURDAY = date(2025, 3, 1)


def make_vehicle(plate=None, **kwargs):
    defaults = {'brand': 'Volvo', 'model': 'FH 540', 'year': 2021, 'current_km': 1000}
    defaults.update(kwargs)
    return Vehicle.objects.create(plate=plate or f"TST{next(_seq):04d}", **defaults)


def make_driver(username=None, password='secret123', **kwargs):
    n = next(_seq)
    defaults = {'name': f"Driver {n}", 'license': f"CNH{n:08d}", 'category': 'E'}
    defaults.update(kwargs)
    driver = Driver(username=username or f"driver{n}", **defaults)
    driver.set_password(password)
    driver.save()
    return driver


def make_schedule(vehicle, driver, scheduled_date=MONDAY, destination='Campinas', **kwargs):
    return Trip.objects.create(
        phase=TRIP_SCHEDULED,
        vehicle=vehicle,
        driver=driver,
        scheduled_date=scheduled_date,
        destination=destination,
        **kwargs
    )


def new_trip(vehicle, driver, destination='Santos', **kwargs):
    """Unsaved trip for an immediate departure."""
    return Trip(vehicle=vehicle, driver=driver, destination=destination, **kwargs)


def checklist(km, fuel_level=80, comments='', **kwargs):
    return Checklist(km=km, fuel_level=fuel_level, oil_checked=True, water_checked=True,
                     tires_checked=True, comments=comments, **kwargs)


def maintenance_request(km, categories=('oil',), **kwargs):
    return MaintenanceRequest(date=date(2025, 3, 10), km=km, categories=list(categories), **kwargs)
