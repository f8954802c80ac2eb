from django.contrib import admin
from .models import Material


@admin.register(Material)
class MaterialAdmin(admin.ModelAdmin):
    list_display = ['name', 'supplier', 'category', 'get_price', 'unit', 'available_quantity', 'status', 'updated_at']
    list_filter = ['category', 'status', 'unit']
    search_fields = ['name', 'description', 'supplier__username', 'supplier__business_name']
    ordering = ['-updated_at']
    readonly_fields = ['created_at', 'updated_at']

    def get_price(self, obj):
        return f"₹{obj.price_per_unit:.2f}"
    get_price.short_description = 'Price / unit'
