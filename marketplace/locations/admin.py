from django.contrib import admin
from .models import Address


@admin.register(Address)
class AddressAdmin(admin.ModelAdmin):
    list_display = ['user', 'address_line1', 'city', 'state', 'postal_code', 'is_default', 'latitude', 'longitude']
    list_filter = ['is_default', 'state', 'country']
    search_fields = ['user__username', 'address_line1', 'city', 'postal_code']
    ordering = ['user', '-is_default']
    readonly_fields = ['created_at', 'updated_at']
