"""
Typed failures raised by the fleet core.

Every error carries a machine-checkable ``kind``, a human-readable message
and a ``detail`` dict, so callers can display it without re-deriving context.
``status_code`` is the HTTP status the API layer renders it with.

Validation-type errors are raised before any write. ``TransientStoreError``
marks a system condition (store I/O failure or timeout) rather than bad input.
"""


class FleetError(Exception):
    """Base class for all fleet core failures."""

    kind = 'FLEET_ERROR'
    status_code = 400
    default_message = 'Fleet operation failed.'
    retryable = False

    def __init__(self, message=None, **detail):
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)

    def to_dict(self):
        return {'kind': self.kind, 'message': self.message, 'detail': self.detail}


class ValidationError(FleetError):
    kind = 'VALIDATION'
    default_message = 'Invalid input.'


class InvalidOdometerReading(ValidationError):
    kind = 'INVALID_ODOMETER_READING'
    default_message = 'Odometer reading is not valid for this operation.'


class IncompleteChecklist(ValidationError):
    kind = 'INCOMPLETE_CHECKLIST'
    default_message = 'All maintenance categories must be checked before release.'


class MissingCancellationReason(ValidationError):
    kind = 'MISSING_CANCELLATION_REASON'
    default_message = 'A cancellation reason is required.'


class VehicleUnavailable(FleetError):
    kind = 'VEHICLE_UNAVAILABLE'
    status_code = 409
    default_message = 'Vehicle is not in the required state.'


class RestrictionViolation(FleetError):
    kind = 'RESTRICTION_VIOLATION'
    status_code = 409
    default_message = 'Scheduling blocked by a restriction.'

    def __init__(self, restriction):
        self.restriction = restriction
        super().__init__(
            restriction.message,
            restriction=restriction.kind,
            conflicting_trip_id=restriction.conflicting_trip_id,
        )

    @property
    def restriction_kind(self):
        return self.restriction.kind


class NotFoundError(FleetError):
    kind = 'NOT_FOUND'
    status_code = 404
    default_message = 'Referenced record does not exist.'


class TransientStoreError(FleetError):
    kind = 'TRANSIENT_STORE_ERROR'
    status_code = 503
    default_message = 'The fleet store is temporarily unavailable. Try again.'
    retryable = True
