"""
Test suite for the supplier catalog
"""
from decimal import Decimal

from django.test import TestCase
from rest_framework import status

from marketplace.catalog.models import Material
from marketplace.core.models import AuditLog
from marketplace.core.test_utils import TestDataFactory, AuthenticatedAPIClient


class MaterialAPITests(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.supplier = TestDataFactory.create_supplier()
        self.vendor = TestDataFactory.create_vendor()

    def test_supplier_lists_material(self):
        self.client.authenticate_user(self.supplier)
        response = self.client.post('/api/v1/material/', {
            'name': 'Onions', 'pricePerUnit': '32.50', 'availableQuantity': 200, 'unit': 'kg',
            'category': 'Vegetables',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['supplier']['id'], self.supplier.pk)
        self.assertEqual(Decimal(response.data['pricePerUnit']), Decimal('32.50'))
        self.assertTrue(AuditLog.objects.filter(action='material_create').exists())

    def test_vendor_cannot_list_material(self):
        self.client.authenticate_user(self.vendor)
        response = self.client.post('/api/v1/material/', {'name': 'Onions', 'pricePerUnit': '1.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['status'], 'fail')

    def test_negative_price_rejected(self):
        self.client.authenticate_user(self.supplier)
        response = self.client.post('/api/v1/material/', {'name': 'Onions', 'pricePerUnit': '-1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_filters(self):
        TestDataFactory.create_material(supplier=self.supplier, name='Tomatoes', available_quantity=0)
        TestDataFactory.create_material(supplier=self.supplier, name='Potatoes')
        TestDataFactory.create_material(name='Garlic')

        self.client.authenticate_user(self.vendor)
        response = self.client.get('/api/v1/material/', {'supplier': self.supplier.pk})
        self.assertEqual(response.data['count'], 2)

        response = self.client.get('/api/v1/material/', {'search': 'pota'})
        self.assertEqual([m['name'] for m in response.data['results']], ['Potatoes'])

        response = self.client.get('/api/v1/material/', {'in_stock': 'true', 'supplier': self.supplier.pk})
        self.assertEqual([m['name'] for m in response.data['results']], ['Potatoes'])

    def test_pagination(self):
        for _ in range(3):
            TestDataFactory.create_material(supplier=self.supplier)
        self.client.authenticate_user(self.vendor)
        response = self.client.get('/api/v1/material/', {'limit': 2, 'page': 2})
        self.assertEqual(response.data['total_pages'], 2)
        self.assertEqual(len(response.data['results']), 1)

        response = self.client.get('/api/v1/material/', {'limit': 'lots'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_only_owner_can_modify(self):
        material = TestDataFactory.create_material(supplier=self.supplier)
        self.client.authenticate_user(TestDataFactory.create_supplier())
        response = self.client.patch(f'/api/v1/material/{material.pk}/', {'pricePerUnit': '1.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(self.client.delete(f'/api/v1/material/{material.pk}/').status_code,
                         status.HTTP_403_FORBIDDEN)

    def test_owner_updates_price(self):
        material = TestDataFactory.create_material(supplier=self.supplier, price_per_unit=Decimal('10.00'))
        self.client.authenticate_user(self.supplier)
        response = self.client.patch(f'/api/v1/material/{material.pk}/', {'pricePerUnit': '12.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        material.refresh_from_db()
        self.assertEqual(material.price_per_unit, Decimal('12.00'))
        log = AuditLog.objects.get(action='material_update')
        self.assertEqual(log.changes['old_price_per_unit'], '10.00')

    def test_owner_deletes(self):
        material = TestDataFactory.create_material(supplier=self.supplier)
        self.client.authenticate_user(self.supplier)
        response = self.client.delete(f'/api/v1/material/{material.pk}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Material.objects.filter(pk=material.pk).exists())

    def test_material_with_orders_is_kept(self):
        material = TestDataFactory.create_material(supplier=self.supplier)
        TestDataFactory.create_order(vendor=self.vendor, material=material)
        self.client.authenticate_user(self.supplier)
        response = self.client.delete(f'/api/v1/material/{material.pk}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['status'], 'fail')
        self.assertIn('has orders', response.data['message'])
        self.assertTrue(Material.objects.filter(pk=material.pk).exists())

    def test_missing_material(self):
        self.client.authenticate_user(self.vendor)
        response = self.client.get('/api/v1/material/999999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['status'], 'fail')
