from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from marketplace.core.models import User


class Material(models.Model):
    """Raw material offered by a supplier"""
    UNIT_CHOICES = [
        ('kg', 'Kilogram'),
        ('g', 'Gram'),
        ('l', 'Litre (l)'),
        ('ml', 'Millilitre'),
        ('pieces', 'Pieces'),
        ('dozen', 'Dozen'),
        ('pack', 'Pack'),
        ('bundle', 'Bundle'),
        ('box', 'Box'),
        ('bag', 'Bag'),
        ('litre', 'Litre'),
        ('piece', 'Piece'),
    ]
    CATEGORY_CHOICES = [
        ('Vegetables', 'Vegetables'),
        ('Fruits', 'Fruits'),
        ('Dairy', 'Dairy'),
        ('Grains', 'Grains'),
        ('Poultry', 'Poultry'),
        ('Fish', 'Fish'),
        ('Spices', 'Spices'),
        ('Beverages', 'Beverages'),
        ('Snacks', 'Snacks'),
        ('Others', 'Others'),
    ]
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('inactive', 'Inactive'),
        ('out_of_stock', 'Out of Stock'),
    ]

    supplier = models.ForeignKey(User, on_delete=models.CASCADE, related_name='materials')
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    price_per_unit = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0.00'))])
    available_quantity = models.PositiveIntegerField(default=0)
    unit = models.CharField(max_length=20, choices=UNIT_CHOICES, default='kg')
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default='Vegetables')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.unit})"

    class Meta:
        db_table = 'materials'
        ordering = ['-updated_at', '-created_at']
        indexes = [
            models.Index(fields=['supplier', 'status'], name='idx_material_supplier_status'),
            models.Index(fields=['category'], name='idx_material_category'),
        ]
