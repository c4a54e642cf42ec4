import logging

from rest_framework.response import Response
from rest_framework.views import exception_handler

from fleet.exceptions import FleetError

logger = logging.getLogger(__name__)


def fleet_exception_handler(exc, context):
    """Render fleet core errors as ``{"error": {...}}`` with their own status code."""
    if isinstance(exc, FleetError):
        view = context.get('view')
        logger.info(f"{view.__class__.__name__ if view else 'API'} returned {exc.kind}: {exc.message}")
        response = Response({'error': exc.to_dict()}, status=exc.status_code)
        if exc.retryable:
            response['Retry-After'] = '1'
        return response
    return exception_handler(exc, context)
