from .vehicle import VehicleViewSet, DriverViewSet
from .trip import TripViewSet, ScheduleViewSet
from .maintenance import MaintenanceRecordViewSet
from .fine import FineViewSet, AppNotificationViewSet, FleetStatsView
