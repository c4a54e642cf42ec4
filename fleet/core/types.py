"""
Value objects passed between the fleet services.
"""
from dataclasses import dataclass, field, asdict
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from django.utils import timezone


@dataclass
class Checklist:
    """Driver-attested vehicle condition captured at departure."""
    km: int
    fuel_level: int = 100
    oil_checked: bool = False
    water_checked: bool = False
    tires_checked: bool = False
    comments: str = ''
    driver_id: Optional[str] = None
    timestamp: Optional[datetime] = None

    def __post_init__(self):
        if isinstance(self.km, str):
            self.km = int(self.km)
        if self.timestamp is None:
            self.timestamp = timezone.now()

    def snapshot(self) -> Dict[str, Any]:
        """JSON-safe copy stored on the vehicle as ``last_checklist``."""
        data = asdict(self)
        data['timestamp'] = self.timestamp.isoformat() if self.timestamp else None
        if data['driver_id'] is not None:
            data['driver_id'] = str(data['driver_id'])
        return data


@dataclass
class TripExpenses:
    fuel: Decimal = Decimal('0')
    other: Decimal = Decimal('0')
    notes: str = ''

    @staticmethod
    def from_dict(data: Optional[Dict[str, Any]]) -> 'TripExpenses':
        if not data:
            return TripExpenses()
        return TripExpenses(
            fuel=Decimal(str(data.get('fuel') or 0)),
            other=Decimal(str(data.get('other') or 0)),
            notes=data.get('notes') or '',
        )


@dataclass
class TireDetails:
    brand: str = ''
    model: str = ''
    positions: List[str] = field(default_factory=list)


@dataclass
class MaintenanceRequest:
    """Input for opening a maintenance record."""
    date: date
    km: int
    categories: List[str]
    service_type: str = ''
    cost: Decimal = Decimal('0')
    notes: str = ''
    tires: Optional[TireDetails] = None


@dataclass
class Restriction:
    """A scheduling block returned by the restriction engine."""
    kind: str
    message: str
    conflicting_trip_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
