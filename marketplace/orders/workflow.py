"""
Order lifecycle.

TRANSITIONS is the only place that says which status may follow which.
Every status change, whether through a named action (accept, pack, ...) or
the generic status endpoint, goes through ``apply_transition``: the order row
is re-read under a row lock, the acting user must be the order's supplier,
and the status update plus its note are written in one transaction.
"""
import logging
from decimal import Decimal

from django.db import transaction

from marketplace.core.exceptions import Forbidden, InvalidTransition, NotFound, ValidationError
from marketplace.core.utils import create_audit_log
from .models import Order, OrderNote

logger = logging.getLogger('marketplace.orders')

PENDING = 'pending'
ACCEPTED = 'accepted'
PREPARING = 'preparing'
PACKED = 'packed'
IN_TRANSIT = 'in_transit'
OUT_FOR_DELIVERY = 'out_for_delivery'
DELIVERED = 'delivered'
CANCELLED = 'cancelled'
REJECTED = 'rejected'

STATUSES = (PENDING, ACCEPTED, PREPARING, PACKED, IN_TRANSIT, OUT_FOR_DELIVERY, DELIVERED, CANCELLED, REJECTED)

TRANSITIONS = {
    PENDING: (ACCEPTED, REJECTED),
    ACCEPTED: (PREPARING, CANCELLED),
    PREPARING: (PACKED, CANCELLED),
    PACKED: (IN_TRANSIT, CANCELLED),
    IN_TRANSIT: (OUT_FOR_DELIVERY, CANCELLED),
    OUT_FOR_DELIVERY: (DELIVERED, CANCELLED),
    DELIVERED: (),
    CANCELLED: (),
    REJECTED: (),
}

TERMINAL_STATUSES = frozenset(s for s, targets in TRANSITIONS.items() if not targets)

# Label of the action that moves an order into each status
ACTION_LABELS = {
    ACCEPTED: 'accept',
    REJECTED: 'reject',
    PREPARING: 'start preparing',
    PACKED: 'pack',
    IN_TRANSIT: 'start transit',
    OUT_FOR_DELIVERY: 'out for delivery',
    DELIVERED: 'mark as delivered',
    CANCELLED: 'cancel',
}

DEFAULT_NOTES = {
    ACCEPTED: 'Order accepted by supplier',
    REJECTED: 'Order rejected by supplier',
    PREPARING: 'Order preparation started',
    PACKED: 'Order packed and ready for dispatch',
    IN_TRANSIT: 'Order started in transit',
    OUT_FOR_DELIVERY: 'Order out for delivery',
    DELIVERED: 'Order delivered successfully',
    CANCELLED: 'Order cancelled by supplier',
}

# Named actions: action -> (required current status, target status)
NAMED_ACTIONS = {
    'accept': (PENDING, ACCEPTED),
    'reject': (PENDING, REJECTED),
    'prepare': (ACCEPTED, PREPARING),
    'pack': (PREPARING, PACKED),
    'transit': (PACKED, IN_TRANSIT),
    'delivery': (IN_TRANSIT, OUT_FOR_DELIVERY),
    'delivered': (OUT_FOR_DELIVERY, DELIVERED),
}


def allowed_targets(status):
    return TRANSITIONS.get(status, ())


def can_transition(current, target):
    return target in allowed_targets(current)


def available_actions(status):
    """Human-readable actions the supplier can take from ``status``"""
    return [ACTION_LABELS[target] for target in allowed_targets(status)]


def default_note_for(status):
    return DEFAULT_NOTES.get(status, f"Status updated to {status}")


def _actor_id(actor):
    return getattr(actor, 'pk', actor)


def _order_id(order):
    return getattr(order, 'pk', order)


def apply_transition(order, target_status, actor, note=None, required_status=None, request=None):
    """Move ``order`` to ``target_status`` on behalf of ``actor``.

    ``order`` and ``actor`` may be instances or primary keys. With
    ``required_status`` the current status must match it exactly (named
    actions). Returns the refreshed order.

    Raises NotFound, Forbidden, ValidationError or InvalidTransition.
    """
    actor_id = _actor_id(actor)
    if target_status not in STATUSES:
        raise ValidationError(f"Unknown order status '{target_status}'. Valid statuses: {', '.join(STATUSES)}")

    with transaction.atomic():
        try:
            locked = Order.objects.select_for_update().get(pk=_order_id(order))
        except Order.DoesNotExist:
            raise NotFound('Order not found')

        if locked.supplier_id != actor_id:
            logger.warning(f"User {actor_id} attempted to move order {locked.pk} owned by supplier {locked.supplier_id}")
            raise Forbidden('Only the supplier assigned to this order can change its status')

        current = locked.status
        if required_status is not None and current != required_status:
            logger.warning(f"Order {locked.pk}: '{ACTION_LABELS[target_status]}' refused in status '{current}'")
            raise InvalidTransition(
                current, target_status, available_actions(current),
                detail=(f"Order is in '{current}' status. Can only {ACTION_LABELS[target_status]} "
                        f"orders that are in '{required_status}' status (requested '{target_status}')."),
            )
        if not can_transition(current, target_status):
            logger.warning(f"Order {locked.pk}: invalid transition {current} -> {target_status}")
            raise InvalidTransition(current, target_status, available_actions(current))

        locked.status = target_status
        locked.save(update_fields=['status', 'updated_at'])
        OrderNote.objects.create(
            order=locked,
            message=note or default_note_for(target_status),
            author_id=actor_id,
        )

    create_audit_log(
        request=request,
        user=actor if hasattr(actor, 'is_authenticated') else None,
        action='order_status_change',
        model_name='Order',
        object_id=locked.pk,
        object_name=str(locked),
        object_reference=f"{current}->{target_status}",
        changes={'from': current, 'to': target_status, 'note': note},
    )
    logger.info(f"Order {locked.pk}: {current} -> {target_status} by supplier {actor_id}")
    return locked


def perform_action(order, action, actor, note=None, request=None):
    """Run a named lifecycle action (accept, prepare, pack, ...)"""
    if action == 'reject':
        return reject_order(order, actor, note, request=request)
    try:
        required_status, target_status = NAMED_ACTIONS[action]
    except KeyError:
        raise ValidationError(f"Unknown order action '{action}'")
    return apply_transition(order, target_status, actor, note=note,
                            required_status=required_status, request=request)


def accept_order(order, actor, note=None, request=None):
    return perform_action(order, 'accept', actor, note, request=request)


def reject_order(order, actor, reason, request=None):
    """Reject a pending order; the reason is mandatory and recorded in the note"""
    reason = (reason or '').strip() if isinstance(reason, str) else reason
    if not reason:
        raise ValidationError('Rejection reason is required')
    required_status, target_status = PENDING, REJECTED
    return apply_transition(order, target_status, actor, note=f"Order rejected: {reason}",
                            required_status=required_status, request=request)


def start_preparing(order, actor, note=None, request=None):
    return perform_action(order, 'prepare', actor, note, request=request)


def mark_packed(order, actor, note=None, request=None):
    return perform_action(order, 'pack', actor, note, request=request)


def start_transit(order, actor, note=None, request=None):
    return perform_action(order, 'transit', actor, note, request=request)


def mark_out_for_delivery(order, actor, note=None, request=None):
    return perform_action(order, 'delivery', actor, note, request=request)


def mark_delivered(order, actor, note=None, request=None):
    return perform_action(order, 'delivered', actor, note, request=request)


def create_order(vendor, material, supplier, quantity, vendor_address=None, supplier_address=None, request=None):
    """Place a pending order, snapshotting price_per_unit x quantity as the total"""
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationError('Quantity must be a positive whole number')
    if supplier is None or supplier.role != 'supplier':
        raise NotFound('Supplier not found')
    if material is None:
        raise NotFound('Material not found')
    if material.supplier_id != supplier.pk:
        raise ValidationError('Material is not offered by this supplier')
    if vendor_address is not None and vendor_address.user_id != vendor.pk:
        raise NotFound('Vendor address not found')
    if supplier_address is not None and supplier_address.user_id != supplier.pk:
        raise NotFound('Supplier address not found')

    total_amount = (Decimal(material.price_per_unit) * quantity).quantize(Decimal('0.01'))
    order = Order.objects.create(
        vendor=vendor,
        supplier=supplier,
        material=material,
        vendor_address=vendor_address,
        supplier_address=supplier_address,
        quantity=quantity,
        total_amount=total_amount,
        status=PENDING,
    )
    create_audit_log(
        request=request,
        user=vendor,
        action='order_create',
        model_name='Order',
        object_id=order.pk,
        object_name=material.name,
        changes={'quantity': quantity, 'total_amount': str(total_amount), 'supplier_id': supplier.pk},
    )
    logger.info(f"Vendor {vendor.pk} placed order {order.pk} for {quantity} x '{material.name}' ({total_amount})")
    return order
