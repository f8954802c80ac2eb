from django.contrib.auth.models import AbstractUser
from django.db import models

from marketplace.locations.geo import coordinate_from


class User(AbstractUser):
    """Marketplace account: a vendor buying materials or a supplier selling them"""
    ROLE_VENDOR = 'vendor'
    ROLE_SUPPLIER = 'supplier'
    ROLE_CHOICES = [
        (ROLE_VENDOR, 'Vendor'),
        (ROLE_SUPPLIER, 'Supplier'),
    ]

    PERMISSION_PROMPT = 'prompt'
    PERMISSION_GRANTED = 'granted'
    PERMISSION_DENIED = 'denied'
    PERMISSION_UNSUPPORTED = 'unsupported'
    LOCATION_PERMISSION_CHOICES = [
        (PERMISSION_PROMPT, 'Prompt'),
        (PERMISSION_GRANTED, 'Granted'),
        (PERMISSION_DENIED, 'Denied'),
        (PERMISSION_UNSUPPORTED, 'Unsupported'),
    ]

    role = models.CharField(max_length=20, choices=ROLE_CHOICES)
    phone = models.CharField(max_length=20, blank=True, null=True)

    # Onboarding
    business_name = models.CharField(max_length=200, blank=True)
    business_type = models.CharField(max_length=100, blank=True)
    business_address = models.TextField(blank=True)
    city = models.CharField(max_length=100, blank=True)
    state = models.CharField(max_length=100, blank=True)
    pincode = models.CharField(max_length=20, blank=True)
    onboarding_completed = models.BooleanField(default=False)
    onboarding_date = models.DateTimeField(null=True, blank=True)

    # Profile coordinate, both halves set together or both null
    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)
    location_permission = models.CharField(max_length=20, choices=LOCATION_PERMISSION_CHOICES, default=PERMISSION_PROMPT)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def is_vendor(self):
        return self.role == self.ROLE_VENDOR

    @property
    def is_supplier(self):
        return self.role == self.ROLE_SUPPLIER

    @property
    def display_name(self):
        full_name = self.get_full_name()
        return self.business_name or full_name or self.username

    @property
    def coordinate(self):
        """Profile coordinate, or None when it is missing or only half set"""
        return coordinate_from(self.latitude, self.longitude)

    class Meta:
        db_table = 'users'
        indexes = [
            models.Index(fields=['role'], name='idx_user_role'),
        ]


class AuditLog(models.Model):
    """Audit log for order and location operations"""
    ACTION_CHOICES = [
        ('order_create', 'Order Created'),
        ('order_status_change', 'Order Status Changed'),
        ('material_create', 'Material Created'),
        ('material_update', 'Material Updated'),
        ('location_update', 'Location Updated'),
        ('location_clear', 'Location Cleared'),
    ]

    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    object_name = models.CharField(max_length=255, blank=True, null=True, help_text="Human-readable name of the object (e.g., material name)")
    object_reference = models.CharField(max_length=255, blank=True, null=True, help_text="Reference identifier (e.g., order status pair)")
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='idx_audit_created'),
            models.Index(fields=['action'], name='idx_audit_action'),
            models.Index(fields=['model_name'], name='idx_audit_model'),
            models.Index(fields=['object_reference'], name='idx_audit_reference'),
        ]
