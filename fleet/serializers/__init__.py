from .vehicle import (
    VehicleSerializer, DriverSerializer, DriverLoginSerializer, DriverPasswordChangeSerializer,
    OdometerCorrectionSerializer,
)
from .trip import (
    TripSerializer, TripLogEntrySerializer, ScheduleSerializer, ChecklistSerializer,
    StartTripSerializer, StartScheduledTripSerializer, EndTripSerializer,
    CancelTripSerializer, TripNoteSerializer, ChangeRouteSerializer,
)
from .maintenance import (
    MaintenanceRecordSerializer, TireChangeSerializer, OpenMaintenanceSerializer,
    ResolveMaintenanceSerializer,
)
from .fine import FineSerializer, AppNotificationSerializer, AuditLogSerializer
