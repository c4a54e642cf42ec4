from .state_machine import FleetStateMachine
from .scheduling import SchedulingService
from .notifications import NotificationDispatcher
from .queries import FleetQueries
