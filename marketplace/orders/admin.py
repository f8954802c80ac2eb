from django.contrib import admin
from .models import Order, OrderNote


class OrderNoteInline(admin.TabularInline):
    model = OrderNote
    extra = 0
    can_delete = False
    readonly_fields = ['message', 'timestamp', 'author']

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['id', 'vendor', 'supplier', 'material', 'quantity', 'get_total', 'status', 'created_at']
    list_filter = ['status', 'created_at']
    search_fields = ['vendor__username', 'supplier__username', 'material__name']
    ordering = ['-created_at']
    # Status only moves through the workflow, totals are snapshots
    readonly_fields = ['vendor', 'supplier', 'material', 'quantity', 'total_amount', 'status', 'created_at', 'updated_at']
    inlines = [OrderNoteInline]

    def get_total(self, obj):
        return f"₹{obj.total_amount:.2f}"
    get_total.short_description = 'Total'
