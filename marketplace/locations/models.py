from django.db import models

from marketplace.core.models import User
from .geo import coordinate_from


class Address(models.Model):
    """Delivery / pickup addresses owned by a vendor or supplier"""
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='addresses')
    address_line1 = models.CharField(max_length=255)
    address_line2 = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100)
    state = models.CharField(max_length=100)
    postal_code = models.CharField(max_length=20)
    country = models.CharField(max_length=100, default='India')
    landmark = models.CharField(max_length=255, blank=True)
    is_default = models.BooleanField(default=False)
    # Explicitly nullable: an address without a pin has no coordinate at all
    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.address_line1}, {self.city}"

    @property
    def coordinate(self):
        return coordinate_from(self.latitude, self.longitude)

    class Meta:
        db_table = 'addresses'
        ordering = ['-is_default', '-created_at']
        indexes = [
            models.Index(fields=['user', 'is_default'], name='idx_address_user_default'),
        ]
