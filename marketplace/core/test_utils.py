"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from marketplace.catalog.models import Material
from marketplace.locations.models import Address
from marketplace.orders.models import Order
from decimal import Decimal
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', role='vendor',
                    latitude=None, longitude=None, **extra):
        """Create a test user"""
        if not username:
            username = f'{role}_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            role=role,
            latitude=latitude,
            longitude=longitude,
            **extra
        )

    @staticmethod
    def create_vendor(**kwargs):
        return TestDataFactory.create_user(role='vendor', **kwargs)

    @staticmethod
    def create_supplier(**kwargs):
        kwargs.setdefault('business_name', f'Supplier {TestDataFactory.random_string(4)}')
        return TestDataFactory.create_user(role='supplier', **kwargs)

    @staticmethod
    def create_material(supplier=None, name=None, price_per_unit=None, available_quantity=100, unit='kg'):
        """Create a test material"""
        if not supplier:
            supplier = TestDataFactory.create_supplier()
        if not name:
            name = f'Material_{TestDataFactory.random_string(6)}'
        if price_per_unit is None:
            price_per_unit = Decimal('50.00')
        return Material.objects.create(
            supplier=supplier,
            name=name,
            price_per_unit=price_per_unit,
            available_quantity=available_quantity,
            unit=unit
        )

    @staticmethod
    def create_address(user, latitude=None, longitude=None, is_default=False):
        """Create a test address"""
        return Address.objects.create(
            user=user,
            address_line1=f'{random.randint(1, 999)} Market Road',
            city='Mumbai',
            state='Maharashtra',
            postal_code='400001',
            is_default=is_default,
            latitude=latitude,
            longitude=longitude
        )

    @staticmethod
    def create_order(vendor=None, supplier=None, material=None, quantity=10, status='pending',
                     vendor_address=None, created_at=None):
        """Create a test order directly, bypassing the workflow"""
        if not supplier:
            supplier = material.supplier if material else TestDataFactory.create_supplier()
        if not vendor:
            vendor = TestDataFactory.create_vendor()
        if not material:
            material = TestDataFactory.create_material(supplier=supplier)
        extra = {'created_at': created_at} if created_at else {}
        return Order.objects.create(
            vendor=vendor,
            supplier=supplier,
            material=material,
            vendor_address=vendor_address,
            quantity=quantity,
            total_amount=material.price_per_unit * quantity,
            status=status,
            **extra
        )


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
