import django_filters

from .models import Order


class OrderFilter(django_filters.FilterSet):
    """Filters for the vendor and supplier order lists"""

    status = django_filters.ChoiceFilter(choices=Order.STATUS_CHOICES)
    material = django_filters.NumberFilter(field_name='material_id', lookup_expr='exact')
    date_from = django_filters.DateFilter(field_name='created_at', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='created_at', lookup_expr='date__lte')
    min_amount = django_filters.NumberFilter(field_name='total_amount', lookup_expr='gte')
    max_amount = django_filters.NumberFilter(field_name='total_amount', lookup_expr='lte')

    class Meta:
        model = Order
        fields = ['status', 'material', 'date_from', 'date_to', 'min_amount', 'max_amount']
