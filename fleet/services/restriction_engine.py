"""
Scheduling restriction checks.

Pure predicates over a candidate assignment and a snapshot of the current
schedule: maintenance lockout, vehicle double booking and the plate rotation
rule of a restricted city. Nothing here reads from or writes to the store.

The rotation table, city aliases and state-wide qualifiers are data held by
``CirculationPolicy`` and loaded from the ``FLEET_CIRCULATION_POLICY`` setting.
"""
import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, FrozenSet, Iterable, Optional

from django.conf import settings

from fleet.core.constants import (
    VEHICLE_MAINTENANCE,
    RESTRICTION_VEHICLE_IN_MAINTENANCE,
    RESTRICTION_CONFLICT_VEHICLE,
    RESTRICTION_CIRCULATION,
)
from fleet.core.types import Restriction
from fleet.utils.text import normalize_plate, fold_text

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = ['Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday']

DEFAULT_ROTATION = {
    0: frozenset({1, 2}),
    1: frozenset({3, 4}),
    2: frozenset({5, 6}),
    3: frozenset({7, 8}),
    4: frozenset({9, 0}),
}


@dataclass(frozen=True)
class CirculationPolicy:
    """Plate rotation rule scoped to one city."""
    city_aliases: FrozenSet[str] = frozenset()
    state_abbreviations: FrozenSet[str] = frozenset()
    state_names: FrozenSet[str] = frozenset()
    statewide_qualifiers: FrozenSet[str] = frozenset()
    rotation: Dict[int, FrozenSet[int]] = field(default_factory=lambda: dict(DEFAULT_ROTATION))

    @staticmethod
    def from_dict(data: Optional[dict]) -> 'CirculationPolicy':
        data = data or {}

        def folded(values: Iterable[str]) -> FrozenSet[str]:
            return frozenset(v for v in (fold_text(x) for x in values or []) if v)

        rotation = data.get('rotation')
        if rotation:
            # Keys may arrive as strings when the policy is loaded from JSON
            rotation = {int(day): frozenset(int(d) for d in digits) for day, digits in rotation.items()}
        else:
            rotation = dict(DEFAULT_ROTATION)

        return CirculationPolicy(
            city_aliases=folded(data.get('city_aliases')),
            state_abbreviations=folded(data.get('state_abbreviations')),
            state_names=folded(data.get('state_names')),
            statewide_qualifiers=folded(data.get('statewide_qualifiers')),
            rotation=rotation,
        )

    @staticmethod
    def from_settings() -> 'CirculationPolicy':
        return CirculationPolicy.from_dict(getattr(settings, 'FLEET_CIRCULATION_POLICY', None))


def _as_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str):
        return date.fromisoformat(value[:10])
    return value


def _contains_term(text: str, term: str) -> bool:
    return re.search(rf'(?<![a-z0-9]){re.escape(term)}(?![a-z0-9])', text) is not None


# ---------------------------------------------------------------------------
# Plate rotation
# ---------------------------------------------------------------------------

def restricted_digits_for_date(day, policy: Optional[CirculationPolicy] = None) -> FrozenSet[int]:
    """Final plate digits banned on ``day``; empty on weekends."""
    policy = policy or CirculationPolicy.from_settings()
    return policy.rotation.get(_as_date(day).weekday(), frozenset())


def rotation_weekday_for_plate(plate: str, policy: Optional[CirculationPolicy] = None) -> Optional[int]:
    """Weekday index (0 = Monday) on which ``plate`` may not circulate, or None."""
    policy = policy or CirculationPolicy.from_settings()
    normalized = normalize_plate(plate)
    if not normalized or not normalized[-1].isdigit():
        return None
    digit = int(normalized[-1])
    for weekday, digits in sorted(policy.rotation.items()):
        if digit in digits:
            return weekday
    return None


def is_circulation_restricted(plate: str, day, policy: Optional[CirculationPolicy] = None) -> bool:
    """
    True if ``plate`` falls under the rotation rule on ``day``.

    Only the last alphanumeric character of the normalized plate counts; a
    plate ending in a letter is never restricted.
    """
    normalized = normalize_plate(plate)
    if not normalized:
        return False
    last = normalized[-1]
    if not last.isdigit():
        return False
    return int(last) in restricted_digits_for_date(day, policy)


# ---------------------------------------------------------------------------
# Destination resolution
# ---------------------------------------------------------------------------

def resolves_to_restricted_city(city: str, state: str, destination_text: str,
                                policy: Optional[CirculationPolicy] = None) -> bool:
    """
    Decide whether a destination lies inside the restricted city.

    A non-empty ``city`` is authoritative and must equal one of the aliases.
    Otherwise the aliases are searched in ``destination_text``; the match is
    dropped when the text qualifies it as state-wide or interior, when the
    only alias found is a bare state abbreviation, or when ``state`` names a
    different state.
    """
    policy = policy or CirculationPolicy.from_settings()

    city_norm = fold_text(city)
    if city_norm:
        return city_norm in policy.city_aliases

    text = fold_text(destination_text)
    if not text:
        return False

    state_norm = fold_text(state)
    if state_norm and state_norm not in policy.state_abbreviations | policy.state_names:
        return False

    candidates = policy.city_aliases - policy.state_abbreviations
    if not any(_contains_term(text, alias) for alias in candidates):
        return False

    if any(_contains_term(text, qualifier) for qualifier in policy.statewide_qualifiers):
        logger.debug(f"Destination '{destination_text}' qualified as state-wide; rotation not applied.")
        return False

    return True


# ---------------------------------------------------------------------------
# Assignment checks
# ---------------------------------------------------------------------------

def find_vehicle_date_conflict(vehicle_id, day, schedule_snapshot, exclude_trip_id=None):
    """Return another scheduled trip booking the same vehicle on the same date, if any."""
    target_day = _as_date(day)
    vehicle_key = str(vehicle_id)
    exclude_key = str(exclude_trip_id) if exclude_trip_id is not None else None

    for trip in schedule_snapshot:
        if exclude_key is not None and str(trip.id) == exclude_key:
            continue
        if str(trip.vehicle_id) != vehicle_key:
            continue
        if trip.scheduled_date is not None and _as_date(trip.scheduled_date) == target_day:
            return trip
    return None


def check_assignment(vehicle, day, city, state, destination_text, schedule_snapshot,
                     exclude_trip_id=None, policy: Optional[CirculationPolicy] = None) -> Optional[Restriction]:
    """
    First restriction blocking ``vehicle`` on ``day``, or None.

    Precedence: maintenance lockout, then double booking, then the rotation
    rule for destinations inside the restricted city.
    """
    if vehicle.status == VEHICLE_MAINTENANCE:
        return Restriction(
            kind=RESTRICTION_VEHICLE_IN_MAINTENANCE,
            message=f"Vehicle {vehicle.plate} is in maintenance and cannot be scheduled.",
        )

    conflict = find_vehicle_date_conflict(vehicle.id, day, schedule_snapshot, exclude_trip_id)
    if conflict is not None:
        return Restriction(
            kind=RESTRICTION_CONFLICT_VEHICLE,
            message=(
                f"Vehicle {vehicle.plate} is already scheduled on {_as_date(day).isoformat()} "
                f"(destination: {conflict.destination})."
            ),
            conflicting_trip_id=str(conflict.id),
        )

    policy = policy or CirculationPolicy.from_settings()
    if resolves_to_restricted_city(city, state, destination_text, policy) \
            and is_circulation_restricted(vehicle.plate, day, policy):
        weekday = WEEKDAY_NAMES[_as_date(day).weekday()]
        return Restriction(
            kind=RESTRICTION_CIRCULATION,
            message=(
                f"Vehicle {vehicle.plate} is under plate rotation on {weekday} "
                f"({_as_date(day).isoformat()}) for this destination."
            ),
        )

    return None
