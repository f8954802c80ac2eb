import django_filters

from .models import Material


class MaterialFilter(django_filters.FilterSet):
    """Catalog filters used by the material list endpoint"""

    search = django_filters.CharFilter(method='filter_search', label='Search')
    supplier = django_filters.NumberFilter(field_name='supplier_id', lookup_expr='exact')
    category = django_filters.ChoiceFilter(choices=Material.CATEGORY_CHOICES)
    status = django_filters.ChoiceFilter(choices=Material.STATUS_CHOICES)
    min_price = django_filters.NumberFilter(field_name='price_per_unit', lookup_expr='gte')
    max_price = django_filters.NumberFilter(field_name='price_per_unit', lookup_expr='lte')
    in_stock = django_filters.BooleanFilter(method='filter_in_stock', label='In Stock')

    class Meta:
        model = Material
        fields = ['search', 'supplier', 'category', 'status', 'min_price', 'max_price', 'in_stock']

    def filter_search(self, queryset, name, value):
        value = (value or '').strip()
        if not value:
            return queryset
        return queryset.filter(name__icontains=value) | queryset.filter(description__icontains=value)

    def filter_in_stock(self, queryset, name, value):
        if value is None:
            return queryset
        if value:
            return queryset.filter(available_quantity__gt=0)
        return queryset.filter(available_quantity=0)
