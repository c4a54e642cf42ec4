from .core import Vehicle, Driver
from .trips import Trip, TripLogEntry
from .extended_models import MaintenanceRecord, TireChange, Fine, AuditLog, AppNotification
