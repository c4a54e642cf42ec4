# --- Vehicle status ---
VEHICLE_AVAILABLE = 'AVAILABLE'
VEHICLE_IN_USE = 'IN_USE'
VEHICLE_MAINTENANCE = 'MAINTENANCE'

VEHICLE_STATUS_CHOICES = [
    (VEHICLE_AVAILABLE, 'Available'),
    (VEHICLE_IN_USE, 'In Use'),
    (VEHICLE_MAINTENANCE, 'Maintenance'),
]

FUEL_TYPE_CHOICES = [
    ('diesel', 'Diesel'),
    ('gasoline', 'Gasoline'),
    ('flex', 'Flex'),
    ('ethanol', 'Ethanol'),
    ('electric', 'Electric'),
    ('cng', 'CNG'),
]

# --- Trip phase ---
TRIP_SCHEDULED = 'SCHEDULED'
TRIP_ACTIVE = 'ACTIVE'
TRIP_COMPLETED = 'COMPLETED'
TRIP_CANCELLED = 'CANCELLED'

TRIP_PHASE_CHOICES = [
    (TRIP_SCHEDULED, 'Scheduled'),
    (TRIP_ACTIVE, 'Active'),
    (TRIP_COMPLETED, 'Completed'),
    (TRIP_CANCELLED, 'Cancelled'),
]

# Phases that live in the "completed" history
TRIP_CLOSED_PHASES = (TRIP_COMPLETED, TRIP_CANCELLED)

# --- Trip log ---
LOG_DEPARTURE_NOTE = 'DEPARTURE_NOTE'
LOG_IN_TRANSIT_NOTE = 'IN_TRANSIT_NOTE'
LOG_ARRIVAL_NOTE = 'ARRIVAL_NOTE'

TRIP_LOG_KIND_CHOICES = [
    (LOG_DEPARTURE_NOTE, 'Departure note'),
    (LOG_IN_TRANSIT_NOTE, 'In-transit note'),
    (LOG_ARRIVAL_NOTE, 'Arrival note'),
]

# --- Maintenance ---
MAINTENANCE_CATEGORY_CHOICES = [
    ('oil', 'Oil Change'),
    ('mechanic', 'General Mechanics'),
    ('electric', 'Electrical'),
    ('wash', 'Washing'),
    ('tires', 'Tire Change'),
    ('other', 'Other'),
]
MAINTENANCE_CATEGORIES = {key for key, _ in MAINTENANCE_CATEGORY_CHOICES}

TIRE_POSITION_CHOICES = [
    ('FL', 'Front Left'),
    ('FR', 'Front Right'),
    ('RL', 'Rear Left'),
    ('RR', 'Rear Right'),
]
TIRE_POSITIONS = {key for key, _ in TIRE_POSITION_CHOICES}

# --- Audit log ---
AUDIT_ROUTE_CHANGE = 'ROUTE_CHANGE'
AUDIT_CANCELLED = 'CANCELLED'
AUDIT_KM_CORRECTION = 'KM_CORRECTION'

AUDIT_ACTION_CHOICES = [
    (AUDIT_ROUTE_CHANGE, 'Route change'),
    (AUDIT_CANCELLED, 'Cancelled'),
    (AUDIT_KM_CORRECTION, 'Odometer correction'),
]

# --- Notifications ---
# No transition emits maintenance_date or occurrence; they remain valid stored types
NOTIFY_MAINTENANCE_KM = 'maintenance_km'
NOTIFY_MAINTENANCE_DATE = 'maintenance_date'
NOTIFY_LOW_FUEL = 'low_fuel'
NOTIFY_NEW_FINE = 'new_fine'
NOTIFY_OCCURRENCE = 'occurrence'
NOTIFY_SCHEDULE = 'schedule'

NOTIFICATION_TYPE_CHOICES = [
    (NOTIFY_MAINTENANCE_KM, 'Maintenance due (odometer)'),
    (NOTIFY_MAINTENANCE_DATE, 'Maintenance due (date)'),
    (NOTIFY_LOW_FUEL, 'Low fuel'),
    (NOTIFY_NEW_FINE, 'New fine'),
    (NOTIFY_OCCURRENCE, 'Occurrence'),
    (NOTIFY_SCHEDULE, 'Schedule'),
]

# --- Restriction kinds ---
RESTRICTION_VEHICLE_IN_MAINTENANCE = 'VEHICLE_IN_MAINTENANCE'
RESTRICTION_CONFLICT_VEHICLE = 'CONFLICT_VEHICLE'
RESTRICTION_CIRCULATION = 'CIRCULATION_RESTRICTED'

# Defaults used when the settings module does not override them
DEFAULT_MAINTENANCE_INTERVAL_KM = 10000
DEFAULT_LOW_FUEL_THRESHOLD = 25
DEFAULT_POINTS_ALERT_THRESHOLD = 20
