from django.db import models
from django.utils import timezone

from marketplace.catalog.models import Material
from marketplace.core.models import User
from marketplace.locations.models import Address


class Order(models.Model):
    """Vendor order for a single supplier material"""
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('accepted', 'Accepted'),
        ('preparing', 'Preparing'),
        ('packed', 'Packed'),
        ('in_transit', 'In Transit'),
        ('out_for_delivery', 'Out for Delivery'),
        ('delivered', 'Delivered'),
        ('cancelled', 'Cancelled'),
        ('rejected', 'Rejected'),
    ]

    vendor = models.ForeignKey(User, on_delete=models.CASCADE, related_name='vendor_orders')
    supplier = models.ForeignKey(User, on_delete=models.CASCADE, related_name='supplier_orders')
    material = models.ForeignKey(Material, on_delete=models.PROTECT, related_name='orders')
    vendor_address = models.ForeignKey(Address, on_delete=models.SET_NULL, null=True, blank=True, related_name='vendor_orders')
    supplier_address = models.ForeignKey(Address, on_delete=models.SET_NULL, null=True, blank=True, related_name='supplier_orders')
    quantity = models.PositiveIntegerField()
    # Price snapshot taken at creation, never recomputed
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    created_at = models.DateTimeField(default=timezone.now, editable=False)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Order-{self.pk} ({self.status})"

    class Meta:
        db_table = 'orders'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['status'], name='idx_order_status'),
            models.Index(fields=['vendor', 'status'], name='idx_order_vendor_status'),
            models.Index(fields=['supplier', 'status'], name='idx_order_supplier_status'),
            models.Index(fields=['-created_at'], name='idx_order_created'),
        ]


class OrderNote(models.Model):
    """Append-only audit note on an order"""
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='notes')
    message = models.TextField()
    timestamp = models.DateTimeField(default=timezone.now, editable=False)
    author = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='order_notes')

    def __str__(self):
        return f"{self.order_id}: {self.message}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError('Order notes are append-only and cannot be edited')
        super().save(*args, **kwargs)

    class Meta:
        db_table = 'order_notes'
        ordering = ['timestamp', 'id']
