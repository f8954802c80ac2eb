"""
Aggregate order statistics for a vendor or supplier dashboard.
"""
from dataclasses import dataclass, field
from decimal import Decimal

from django.utils import timezone

from .workflow import ACCEPTED, DELIVERED, IN_TRANSIT, OUT_FOR_DELIVERY, PACKED, PENDING, PREPARING, STATUSES

# 'confirmed' is a legacy alias of accepted still counted as active
ACTIVE_STATUSES = frozenset({PENDING, ACCEPTED, 'confirmed', PREPARING, PACKED, IN_TRANSIT, OUT_FOR_DELIVERY})
COMPLETED_STATUSES = frozenset({DELIVERED})


@dataclass
class OrderStats:
    total_orders: int = 0
    status_counts: dict = field(default_factory=lambda: dict.fromkeys(STATUSES, 0))
    active_orders: int = 0
    completed_orders: int = 0
    total_amount: Decimal = Decimal('0.00')
    average_order_value: Decimal = Decimal('0.00')
    monthly_orders: int = 0
    monthly_amount: Decimal = Decimal('0.00')

    def count(self, status):
        return self.status_counts.get(status, 0)


def _get(order, name):
    if isinstance(order, dict):
        return order.get(name)
    return getattr(order, name, None)


def compute_order_stats(orders, today=None):
    """Summarise ``orders`` (model instances or dicts).

    ``today`` fixes the calendar month used for the monthly window; it
    defaults to the current local date.
    """
    today = today or timezone.localdate()
    stats = OrderStats()

    for order in orders:
        status = _get(order, 'status')
        amount = Decimal(str(_get(order, 'total_amount') or 0))
        created_at = _get(order, 'created_at')

        stats.total_orders += 1
        stats.total_amount += amount
        if status in stats.status_counts:
            stats.status_counts[status] += 1
        if status in ACTIVE_STATUSES:
            stats.active_orders += 1
        if status in COMPLETED_STATUSES:
            stats.completed_orders += 1

        if created_at is not None:
            if timezone.is_aware(created_at):
                created_at = timezone.localtime(created_at)
            if created_at.year == today.year and created_at.month == today.month:
                stats.monthly_orders += 1
                stats.monthly_amount += amount

    if stats.total_orders:
        stats.average_order_value = (stats.total_amount / stats.total_orders).quantize(Decimal('0.01'))
    return stats
