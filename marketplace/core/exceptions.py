"""
Domain errors and the API boundary that turns them into responses.

Every error leaves the API as ``{"status": "fail", "message": ...}`` (4xx)
or ``{"status": "error", "message": ...}`` (5xx). Unexpected exceptions are
logged with their traceback and reported without internals.
"""
import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger('marketplace.core')


class DomainError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Request could not be processed.'
    default_code = 'error'

    def extra(self):
        """Additional fields merged into the error envelope"""
        return {}


class ValidationError(DomainError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid input.'
    default_code = 'validation_error'


class Forbidden(DomainError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'You do not have permission to perform this action.'
    default_code = 'forbidden'


class NotFound(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Resource not found.'
    default_code = 'not_found'


class InvalidTransition(DomainError):
    """Requested order status is not reachable from the current one"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = 'invalid_transition'

    def __init__(self, current_status, requested_status, available_actions, detail=None):
        self.current_status = current_status
        self.requested_status = requested_status
        self.available_actions = list(available_actions)
        if detail is None:
            detail = f"Invalid status transition from '{current_status}' to '{requested_status}'."
        if self.available_actions:
            detail = f"{detail} Available actions for current status: {', '.join(self.available_actions)}"
        else:
            detail = f"{detail} No further actions are available for '{current_status}' orders."
        super().__init__(detail)

    def extra(self):
        return {
            'currentStatus': self.current_status,
            'requestedStatus': self.requested_status,
            'availableActions': self.available_actions,
        }


class UpstreamUnavailable(DomainError):
    """Device geolocation could not produce a position"""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_code = 'upstream_unavailable'

    PERMISSION_DENIED = 'permission-denied'
    UNAVAILABLE = 'unavailable'
    TIMEOUT = 'timeout'
    UNKNOWN = 'unknown'
    REASONS = (PERMISSION_DENIED, UNAVAILABLE, TIMEOUT, UNKNOWN)

    MESSAGES = {
        PERMISSION_DENIED: 'Location permission denied',
        UNAVAILABLE: 'Location information unavailable',
        TIMEOUT: 'Location request timed out',
        UNKNOWN: 'Unknown location error',
    }

    def __init__(self, reason=UNKNOWN, detail=None):
        if reason not in self.REASONS:
            reason = self.UNKNOWN
        self.reason = reason
        super().__init__(detail or self.MESSAGES[reason])

    def extra(self):
        return {'reason': self.reason}


def _flatten_detail(detail):
    """First readable message out of a DRF error detail structure"""
    if isinstance(detail, dict):
        for field, value in detail.items():
            message = _flatten_detail(value)
            if field in ('non_field_errors', 'detail'):
                return message
            return f"{field}: {message}"
        return 'Invalid input.'
    if isinstance(detail, (list, tuple)):
        return _flatten_detail(detail[0]) if detail else 'Invalid input.'
    return str(detail)


def api_exception_handler(exc, context):
    """REST framework exception handler producing the uniform error envelope"""
    response = exception_handler(exc, context)
    view = context.get('view')
    view_name = view.__class__.__name__ if view else 'unknown'

    if response is None:
        logger.error(f"Unhandled error in {view_name}: {exc}", exc_info=exc)
        return Response(
            {'status': 'error', 'message': 'Internal server error'},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    body = {
        'status': 'fail' if response.status_code < 500 else 'error',
        'message': _flatten_detail(response.data),
    }
    if isinstance(exc, DomainError):
        body.update(exc.extra())
    elif isinstance(response.data, dict) and 'detail' not in response.data:
        body['errors'] = response.data
    elif isinstance(response.data, list):
        body['errors'] = response.data

    if response.status_code >= 500:
        logger.error(f"{view_name} failed: {body['message']}")
    response.data = body
    return response
