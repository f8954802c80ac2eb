"""Utility functions for audit logging"""
import logging

from django.db import DatabaseError

from .exceptions import ValidationError
from .models import AuditLog

logger = logging.getLogger('marketplace.core')


def get_client_ip(request):
    """Extract client IP address from request"""
    if not request or not hasattr(request, 'META'):
        return None
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or None


def create_audit_log(request=None, action=None, model_name=None, object_id=None,
                     changes=None, user=None, object_name=None, object_reference=None):
    """
    Create an audit log entry

    Args:
        request: Django/DRF request (for user and IP) - optional if user is provided
        action: Action type (order_create, order_status_change, location_update, ...)
        model_name: Name of the model being acted upon
        object_id: ID of the object (as string)
        changes: Dictionary of changes made
        user: Optional user override (defaults to request.user if request provided)
        object_name: Human-readable name of the object
        object_reference: Reference identifier (e.g., "pending->accepted")

    A failed write is logged and never fails the operation being audited.
    """
    audit_user = user
    if audit_user is None and request is not None:
        audit_user = getattr(request, 'user', None)

    if not action or not model_name or object_id is None:
        logger.warning(f"Audit log creation skipped: missing required fields (action={action}, model_name={model_name}, object_id={object_id})")
        return None

    try:
        return AuditLog.objects.create(
            user=audit_user if audit_user is not None and audit_user.is_authenticated else None,
            action=action,
            model_name=model_name,
            object_id=str(object_id),
            object_name=object_name,
            object_reference=object_reference,
            changes=changes or {},
            ip_address=get_client_ip(request) if request else None,
        )
    except DatabaseError as e:
        logger.error(f"Failed to create audit log: {str(e)}")
        return None


def get_page_params(request, default_limit=20, max_limit=100):
    """Read ?page= and ?limit= query parameters"""
    try:
        page = int(request.query_params.get('page', 1))
        limit = int(request.query_params.get('limit', default_limit))
    except ValueError:
        raise ValidationError('page and limit must be integers')
    if page < 1 or limit < 1:
        raise ValidationError('page and limit must be positive')
    return page, min(limit, max_limit)
