"""
Test suite for the order lifecycle
Tests: transition table, named actions, rejection, creation, statistics and the order API
"""
from datetime import date, datetime, timedelta
from decimal import Decimal

from django.core.cache import cache
from django.test import SimpleTestCase, TestCase
from django.utils import timezone
from rest_framework import status

from marketplace.core.exceptions import Forbidden, InvalidTransition, NotFound, ValidationError
from marketplace.core.models import AuditLog
from marketplace.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from marketplace.orders import workflow
from marketplace.orders.models import Order, OrderNote
from marketplace.orders.stats import compute_order_stats


class TransitionTableTests(SimpleTestCase):
    """Pure checks on the transition table"""

    def test_every_status_has_an_entry(self):
        self.assertEqual(set(workflow.TRANSITIONS), set(workflow.STATUSES))

    def test_terminal_statuses(self):
        self.assertEqual(workflow.TERMINAL_STATUSES, {'delivered', 'cancelled', 'rejected'})

    def test_pending_actions(self):
        self.assertEqual(workflow.available_actions('pending'), ['accept', 'reject'])

    def test_packed_actions(self):
        self.assertEqual(workflow.available_actions('packed'), ['start transit', 'cancel'])

    def test_terminal_statuses_have_no_actions(self):
        for terminal in workflow.TERMINAL_STATUSES:
            self.assertEqual(workflow.available_actions(terminal), [])

    def test_pending_cannot_be_cancelled(self):
        self.assertFalse(workflow.can_transition('pending', 'cancelled'))

    def test_no_status_moves_backwards_to_pending(self):
        for current in workflow.STATUSES:
            self.assertFalse(workflow.can_transition(current, 'pending'))

    def test_invalid_transition_message_names_both_statuses(self):
        exc = InvalidTransition('packed', 'delivered', workflow.available_actions('packed'))
        self.assertIn("'packed'", str(exc.detail))
        self.assertIn("'delivered'", str(exc.detail))
        self.assertIn('start transit', str(exc.detail))


class ApplyTransitionTests(TestCase):
    """apply_transition against every (current, target) pair"""

    def setUp(self):
        self.supplier = TestDataFactory.create_supplier()
        self.other_supplier = TestDataFactory.create_supplier()
        self.vendor = TestDataFactory.create_vendor()
        self.material = TestDataFactory.create_material(supplier=self.supplier)

    def _order(self, current):
        return TestDataFactory.create_order(vendor=self.vendor, material=self.material, status=current)

    def test_transition_matrix(self):
        for current in workflow.STATUSES:
            for target in workflow.STATUSES:
                with self.subTest(current=current, target=target):
                    order = self._order(current)
                    if target in workflow.TRANSITIONS[current]:
                        if target == 'rejected':
                            updated = workflow.reject_order(order, self.supplier, 'Out of stock')
                        else:
                            updated = workflow.apply_transition(order, target, self.supplier)
                        self.assertEqual(updated.status, target)
                        self.assertEqual(Order.objects.get(pk=order.pk).status, target)
                    else:
                        with self.assertRaises(InvalidTransition):
                            workflow.apply_transition(order, target, self.supplier)
                        self.assertEqual(Order.objects.get(pk=order.pk).status, current)

    def test_only_assigned_supplier_may_transition(self):
        order = self._order('pending')
        for actor in (self.other_supplier, self.vendor):
            with self.assertRaises(Forbidden):
                workflow.apply_transition(order, 'accepted', actor)
        self.assertEqual(Order.objects.get(pk=order.pk).status, 'pending')
        self.assertFalse(OrderNote.objects.filter(order=order).exists())

    def test_forbidden_is_checked_before_the_table(self):
        order = self._order('delivered')
        with self.assertRaises(Forbidden):
            workflow.apply_transition(order, 'accepted', self.other_supplier)

    def test_terminal_states_reject_every_attempt(self):
        for terminal in workflow.TERMINAL_STATUSES:
            order = self._order(terminal)
            for target in workflow.STATUSES:
                with self.subTest(terminal=terminal, target=target):
                    with self.assertRaises(InvalidTransition) as ctx:
                        workflow.apply_transition(order, target, self.supplier)
                    self.assertEqual(ctx.exception.available_actions, [])

    def test_unknown_status_is_a_validation_error(self):
        order = self._order('pending')
        with self.assertRaises(ValidationError):
            workflow.apply_transition(order, 'shipped', self.supplier)

    def test_missing_order(self):
        with self.assertRaises(NotFound):
            workflow.apply_transition(999999, 'accepted', self.supplier)

    def test_note_defaults_to_status_message(self):
        order = self._order('accepted')
        workflow.apply_transition(order, 'preparing', self.supplier)
        note = order.notes.get()
        self.assertEqual(note.message, 'Order preparation started')
        self.assertEqual(note.author, self.supplier)
        self.assertIsNotNone(note.timestamp)

    def test_custom_note_is_kept_verbatim(self):
        order = self._order('accepted')
        workflow.apply_transition(order, 'cancelled', self.supplier, note='Vendor asked to cancel')
        self.assertEqual(order.notes.get().message, 'Vendor asked to cancel')

    def test_status_change_is_audited(self):
        order = self._order('pending')
        workflow.apply_transition(order, 'accepted', self.supplier)
        log = AuditLog.objects.get(action='order_status_change', object_id=str(order.pk))
        self.assertEqual(log.object_reference, 'pending->accepted')
        self.assertEqual(log.user, self.supplier)

    def test_status_is_reread_before_validating(self):
        order = self._order('pending')
        Order.objects.filter(pk=order.pk).update(status='rejected')
        # The in-memory instance is stale; the stored status wins
        with self.assertRaises(InvalidTransition) as ctx:
            workflow.apply_transition(order, 'accepted', self.supplier)
        self.assertEqual(ctx.exception.current_status, 'rejected')

    def test_notes_cannot_be_edited(self):
        order = self._order('pending')
        workflow.apply_transition(order, 'accepted', self.supplier)
        note = order.notes.get()
        note.message = 'rewritten'
        with self.assertRaises(ValueError):
            note.save()


class NamedActionTests(TestCase):
    """Lifecycle wrappers and their current-status preconditions"""

    def setUp(self):
        self.supplier = TestDataFactory.create_supplier()
        self.vendor = TestDataFactory.create_vendor()
        self.material = TestDataFactory.create_material(supplier=self.supplier, price_per_unit=Decimal('50.00'))

    def test_created_order_walkthrough(self):
        order = workflow.create_order(self.vendor, self.material, self.supplier, 10)
        self.assertEqual(order.total_amount, Decimal('500.00'))
        self.assertEqual(order.status, 'pending')

        seen = [order.status]
        for step in (workflow.accept_order, workflow.start_preparing, workflow.mark_packed):
            seen.append(step(order, self.supplier).status)
        self.assertEqual(seen, ['pending', 'accepted', 'preparing', 'packed'])

        with self.assertRaises(InvalidTransition) as ctx:
            workflow.mark_out_for_delivery(order, self.supplier)
        self.assertEqual(ctx.exception.available_actions, ['start transit', 'cancel'])
        self.assertIn('start transit', str(ctx.exception.detail))
        self.assertIn("'out_for_delivery'", str(ctx.exception.detail))

    def test_named_action_message_names_requested_status(self):
        order = TestDataFactory.create_order(vendor=self.vendor, material=self.material)
        with self.assertRaises(InvalidTransition) as ctx:
            workflow.start_transit(order, self.supplier)
        message = str(ctx.exception.detail)
        self.assertIn("'pending'", message)
        self.assertIn("'packed'", message)
        self.assertIn("'in_transit'", message)

    def test_full_lifecycle_to_delivered(self):
        order = workflow.create_order(self.vendor, self.material, self.supplier, 2)
        for action in ('accept', 'prepare', 'pack', 'transit', 'delivery', 'delivered'):
            order = workflow.perform_action(order, action, self.supplier)
        self.assertEqual(order.status, 'delivered')
        self.assertEqual(
            list(order.notes.values_list('message', flat=True)),
            ['Order accepted by supplier', 'Order preparation started', 'Order packed and ready for dispatch',
             'Order started in transit', 'Order out for delivery', 'Order delivered successfully'],
        )

    def test_named_action_requires_exact_current_status(self):
        order = TestDataFactory.create_order(vendor=self.vendor, material=self.material, status='pending')
        with self.assertRaises(InvalidTransition) as ctx:
            workflow.mark_packed(order, self.supplier)
        self.assertEqual(ctx.exception.available_actions, ['accept', 'reject'])
        self.assertIn("'preparing'", str(ctx.exception.detail))

    def test_unknown_action(self):
        order = TestDataFactory.create_order(vendor=self.vendor, material=self.material)
        with self.assertRaises(ValidationError):
            workflow.perform_action(order, 'teleport', self.supplier)

    def test_reject_requires_reason(self):
        order = TestDataFactory.create_order(vendor=self.vendor, material=self.material)
        for reason in (None, '', '   '):
            with self.assertRaises(ValidationError):
                workflow.reject_order(order, self.supplier, reason)
        self.assertEqual(Order.objects.get(pk=order.pk).status, 'pending')

    def test_reject_records_reason(self):
        order = TestDataFactory.create_order(vendor=self.vendor, material=self.material)
        order = workflow.reject_order(order, self.supplier, 'Out of stock this week')
        self.assertEqual(order.status, 'rejected')
        self.assertIn('Out of stock this week', order.notes.get().message)

    def test_reject_only_from_pending(self):
        order = TestDataFactory.create_order(vendor=self.vendor, material=self.material, status='accepted')
        with self.assertRaises(InvalidTransition):
            workflow.reject_order(order, self.supplier, 'Too late')


class CreateOrderTests(TestCase):

    def setUp(self):
        self.supplier = TestDataFactory.create_supplier()
        self.vendor = TestDataFactory.create_vendor()
        self.material = TestDataFactory.create_material(supplier=self.supplier, price_per_unit=Decimal('12.50'))

    def test_total_is_snapshot(self):
        order = workflow.create_order(self.vendor, self.material, self.supplier, 4)
        self.material.price_per_unit = Decimal('99.00')
        self.material.save()
        order.refresh_from_db()
        self.assertEqual(order.total_amount, Decimal('50.00'))

    def test_creation_is_audited(self):
        order = workflow.create_order(self.vendor, self.material, self.supplier, 1)
        self.assertTrue(AuditLog.objects.filter(action='order_create', object_id=str(order.pk)).exists())

    def test_quantity_must_be_positive_integer(self):
        for quantity in (0, -3, 1.5, True, '2'):
            with self.assertRaises(ValidationError):
                workflow.create_order(self.vendor, self.material, self.supplier, quantity)

    def test_supplier_must_have_supplier_role(self):
        with self.assertRaises(NotFound):
            workflow.create_order(self.vendor, self.material, self.vendor, 1)

    def test_material_must_belong_to_supplier(self):
        other = TestDataFactory.create_supplier()
        with self.assertRaises(ValidationError):
            workflow.create_order(self.vendor, self.material, other, 1)

    def test_addresses_must_belong_to_parties(self):
        stranger_address = TestDataFactory.create_address(TestDataFactory.create_vendor())
        with self.assertRaises(NotFound):
            workflow.create_order(self.vendor, self.material, self.supplier, 1, vendor_address=stranger_address)


class OrderStatsTests(TestCase):

    def test_empty_list(self):
        stats = compute_order_stats([])
        self.assertEqual(stats.total_orders, 0)
        self.assertEqual(stats.average_order_value, 0)
        self.assertEqual(stats.total_amount, 0)
        self.assertEqual(stats.monthly_orders, 0)

    def test_counts_and_amounts(self):
        today = date(2024, 3, 15)
        this_month = timezone.make_aware(datetime(2024, 3, 2, 10, 0))
        last_month = timezone.make_aware(datetime(2024, 2, 20, 10, 0))
        orders = [
            {'status': 'pending', 'total_amount': Decimal('100.00'), 'created_at': this_month},
            {'status': 'in_transit', 'total_amount': Decimal('50.00'), 'created_at': this_month},
            {'status': 'delivered', 'total_amount': Decimal('30.00'), 'created_at': last_month},
            {'status': 'rejected', 'total_amount': Decimal('20.00'), 'created_at': last_month},
        ]
        stats = compute_order_stats(orders, today=today)
        self.assertEqual(stats.total_orders, 4)
        self.assertEqual(stats.count('pending'), 1)
        self.assertEqual(stats.count('rejected'), 1)
        self.assertEqual(stats.count('packed'), 0)
        self.assertEqual(stats.active_orders, 2)
        self.assertEqual(stats.completed_orders, 1)
        self.assertEqual(stats.total_amount, Decimal('200.00'))
        self.assertEqual(stats.average_order_value, Decimal('50.00'))
        self.assertEqual(stats.monthly_orders, 2)
        self.assertEqual(stats.monthly_amount, Decimal('150.00'))

    def test_same_month_other_year_is_excluded(self):
        created = timezone.make_aware(datetime(2023, 3, 2, 10, 0))
        stats = compute_order_stats([{'status': 'pending', 'total_amount': 10, 'created_at': created}],
                                    today=date(2024, 3, 15))
        self.assertEqual(stats.monthly_orders, 0)


class OrderAPITests(TestCase):
    """Order endpoints"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.supplier = TestDataFactory.create_supplier()
        self.vendor = TestDataFactory.create_vendor()
        self.material = TestDataFactory.create_material(supplier=self.supplier, price_per_unit=Decimal('50.00'))

    def _create(self, **overrides):
        payload = {'materialId': self.material.pk, 'supplierId': self.supplier.pk, 'quantity': 10}
        payload.update(overrides)
        self.client.authenticate_user(self.vendor)
        return self.client.post('/api/v1/order/vendor/', payload, format='json')

    def test_requires_authentication(self):
        response = self.client.get('/api/v1/order/vendor/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['status'], 'fail')

    def test_vendor_creates_order(self):
        response = self._create()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'pending')
        self.assertEqual(Decimal(response.data['totalAmount']), Decimal('500.00'))
        self.assertEqual(response.data['supplier']['id'], self.supplier.pk)
        self.assertEqual(response.data['material']['name'], self.material.name)
        self.assertEqual(response.data['availableActions'], ['accept', 'reject'])

    def test_supplier_cannot_create_order(self):
        self.client.authenticate_user(self.supplier)
        response = self.client.post('/api/v1/order/vendor/', {
            'materialId': self.material.pk, 'supplierId': self.supplier.pk, 'quantity': 1,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_create_with_unknown_material(self):
        response = self._create(materialId=999999)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, {'status': 'fail', 'message': 'Material not found'})

    def test_create_with_bad_quantity(self):
        response = self._create(quantity=0)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['status'], 'fail')
        self.assertIn('quantity', response.data['errors'])

    def test_lists_are_scoped_to_party(self):
        mine = TestDataFactory.create_order(vendor=self.vendor, material=self.material)
        TestDataFactory.create_order(material=self.material)

        self.client.authenticate_user(self.vendor)
        response = self.client.get('/api/v1/order/vendor/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([o['id'] for o in response.data['results']], [mine.pk])

        self.client.authenticate_user(self.supplier)
        response = self.client.get('/api/v1/order/supplier/')
        self.assertEqual(response.data['count'], 2)

    def test_list_status_filter(self):
        TestDataFactory.create_order(vendor=self.vendor, material=self.material, status='pending')
        packed = TestDataFactory.create_order(vendor=self.vendor, material=self.material, status='packed')
        self.client.authenticate_user(self.vendor)
        response = self.client.get('/api/v1/order/vendor/', {'status': 'packed'})
        self.assertEqual([o['id'] for o in response.data['results']], [packed.pk])

    def test_named_actions_walkthrough(self):
        order_id = self._create().data['id']
        self.client.authenticate_user(self.supplier)
        for action, expected in (('accept', 'accepted'), ('prepare', 'preparing'), ('pack', 'packed')):
            response = self.client.post(f'/api/v1/order/supplier/{order_id}/{action}/', {}, format='json')
            self.assertEqual(response.status_code, status.HTTP_200_OK)
            self.assertEqual(response.data['status'], expected)

        response = self.client.post(f'/api/v1/order/supplier/{order_id}/delivery/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['status'], 'fail')
        self.assertEqual(response.data['currentStatus'], 'packed')
        self.assertIn('start transit', response.data['availableActions'])
        self.assertIn('start transit', response.data['message'])
        self.assertIn("'out_for_delivery'", response.data['message'])

    def test_action_note_is_recorded(self):
        order = TestDataFactory.create_order(vendor=self.vendor, material=self.material)
        self.client.authenticate_user(self.supplier)
        response = self.client.post(f'/api/v1/order/supplier/{order.pk}/accept/',
                                    {'note': 'Will ship tomorrow'}, format='json')
        self.assertEqual(response.data['notes'][0]['message'], 'Will ship tomorrow')
        self.assertEqual(response.data['notes'][0]['updatedBy'], self.supplier.pk)

    def test_reject_requires_reason(self):
        order = TestDataFactory.create_order(vendor=self.vendor, material=self.material)
        self.client.authenticate_user(self.supplier)
        response = self.client.post(f'/api/v1/order/supplier/{order.pk}/reject/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post(f'/api/v1/order/supplier/{order.pk}/reject/',
                                    {'reason': 'Out of stock'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'rejected')
        self.assertIn('Out of stock', response.data['notes'][0]['message'])

    def test_other_supplier_is_forbidden(self):
        order = TestDataFactory.create_order(vendor=self.vendor, material=self.material)
        self.client.authenticate_user(TestDataFactory.create_supplier())
        response = self.client.post(f'/api/v1/order/supplier/{order.pk}/accept/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['status'], 'fail')

    def test_vendor_cannot_change_status(self):
        order = TestDataFactory.create_order(vendor=self.vendor, material=self.material)
        self.client.authenticate_user(self.vendor)
        response = self.client.patch(f'/api/v1/order/supplier/{order.pk}/status/',
                                     {'status': 'accepted'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_generic_status_update(self):
        order = TestDataFactory.create_order(vendor=self.vendor, material=self.material, status='preparing')
        self.client.authenticate_user(self.supplier)
        response = self.client.patch(f'/api/v1/order/supplier/{order.pk}/status/',
                                     {'status': 'cancelled', 'note': 'Vendor closed'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'cancelled')
        self.assertEqual(response.data['availableActions'], [])

    def test_generic_status_update_invalid(self):
        order = TestDataFactory.create_order(vendor=self.vendor, material=self.material, status='delivered')
        self.client.authenticate_user(self.supplier)
        response = self.client.patch(f'/api/v1/order/supplier/{order.pk}/status/',
                                     {'status': 'cancelled'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['availableActions'], [])

        response = self.client.patch(f'/api/v1/order/supplier/{order.pk}/status/',
                                     {'status': 'lost'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_missing_order_action(self):
        self.client.authenticate_user(self.supplier)
        response = self.client.post('/api/v1/order/supplier/999999/accept/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_status_lookup(self):
        order = TestDataFactory.create_order(vendor=self.vendor, material=self.material, status='packed')
        self.client.authenticate_user(self.vendor)
        response = self.client.get(f'/api/v1/order/{order.pk}/status/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['orderId'], order.pk)
        self.assertEqual(response.data['currentStatus'], 'packed')
        self.assertEqual(response.data['supplierId'], self.supplier.pk)
        self.assertEqual(response.data['vendor']['id'], self.vendor.pk)

    def test_detail_hidden_from_other_parties(self):
        order = TestDataFactory.create_order(vendor=self.vendor, material=self.material)
        self.client.authenticate_user(TestDataFactory.create_vendor())
        self.assertEqual(self.client.get(f'/api/v1/order/{order.pk}/').status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(self.client.get(f'/api/v1/order/{order.pk}/status/').status_code,
                         status.HTTP_404_NOT_FOUND)

        self.client.authenticate_user(self.supplier)
        self.assertEqual(self.client.get(f'/api/v1/order/{order.pk}/').status_code, status.HTTP_200_OK)

    def test_stats_endpoints(self):
        TestDataFactory.create_order(vendor=self.vendor, material=self.material, quantity=2, status='pending')
        TestDataFactory.create_order(vendor=self.vendor, material=self.material, quantity=4, status='delivered')

        self.client.authenticate_user(self.vendor)
        response = self.client.get('/api/v1/order/vendor/stats/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['totalOrders'], 2)
        self.assertEqual(response.data['pendingOrders'], 1)
        self.assertEqual(response.data['deliveredOrders'], 1)
        self.assertEqual(response.data['activeOrders'], 1)
        self.assertEqual(response.data['completedOrders'], 1)
        self.assertEqual(Decimal(response.data['totalAmount']), Decimal('300.00'))
        self.assertEqual(Decimal(response.data['averageOrderValue']), Decimal('150.00'))
        self.assertEqual(response.data['monthlyOrders'], 2)

        self.client.authenticate_user(self.supplier)
        response = self.client.get('/api/v1/order/supplier/stats/')
        self.assertEqual(response.data['totalOrders'], 2)

    def test_stats_without_orders(self):
        self.client.authenticate_user(TestDataFactory.create_vendor())
        response = self.client.get('/api/v1/order/vendor/stats/')
        self.assertEqual(response.data['totalOrders'], 0)
        self.assertEqual(Decimal(response.data['averageOrderValue']), Decimal('0'))


class OrderDiscoveryAPITests(TestCase):
    """Supplier view of orders by distance to the vendor"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.supplier = TestDataFactory.create_supplier(latitude=19.0, longitude=72.8)
        self.material = TestDataFactory.create_material(supplier=self.supplier)
        self.client.authenticate_user(self.supplier)

    def test_orders_annotated_relative_to_supplier(self):
        now = timezone.now()
        vendor_here = TestDataFactory.create_vendor(latitude=19.0, longitude=72.8)
        vendor_far = TestDataFactory.create_vendor(latitude=19.1, longitude=72.9)
        vendor_nowhere = TestDataFactory.create_vendor()
        near = TestDataFactory.create_order(vendor=vendor_here, material=self.material,
                                            created_at=now - timedelta(days=2))
        far = TestDataFactory.create_order(vendor=vendor_far, material=self.material, created_at=now)
        unlocated = TestDataFactory.create_order(vendor=vendor_nowhere, material=self.material)

        response = self.client.get('/api/v1/discovery/orders/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['observer']['source'], 'profile')
        self.assertEqual([o['id'] for o in response.data['results']], [far.pk, near.pk])
        self.assertEqual(response.data['results'][1]['distance'], '0m')
        self.assertEqual(response.data['results'][1]['distanceKm'], 0)
        self.assertEqual([o['id'] for o in response.data['withoutLocation']], [unlocated.pk])
        self.assertEqual(response.data['count'], 3)

    def test_vendor_address_takes_precedence(self):
        vendor = TestDataFactory.create_vendor(latitude=28.6, longitude=77.2)
        address = TestDataFactory.create_address(vendor, latitude=19.0, longitude=72.8)
        TestDataFactory.create_order(vendor=vendor, material=self.material, vendor_address=address)
        response = self.client.get('/api/v1/discovery/orders/')
        self.assertEqual(response.data['results'][0]['distance'], '0m')

    def test_status_filter(self):
        vendor = TestDataFactory.create_vendor(latitude=19.0, longitude=72.8)
        TestDataFactory.create_order(vendor=vendor, material=self.material, status='pending')
        packed = TestDataFactory.create_order(vendor=vendor, material=self.material, status='packed')
        response = self.client.get('/api/v1/discovery/orders/', {'status': 'packed'})
        self.assertEqual([o['id'] for o in response.data['results']], [packed.pk])

        response = self.client.get('/api/v1/discovery/orders/', {'status': 'all'})
        self.assertEqual(response.data['count'], 2)

        response = self.client.get('/api/v1/discovery/orders/', {'status': 'bogus'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_without_observer_distance_is_unknown(self):
        supplier = TestDataFactory.create_supplier()
        material = TestDataFactory.create_material(supplier=supplier)
        vendor = TestDataFactory.create_vendor(latitude=19.0, longitude=72.8)
        TestDataFactory.create_order(vendor=vendor, material=material)
        self.client.authenticate_user(supplier)
        response = self.client.get('/api/v1/discovery/orders/')
        result = response.data['results'][0]
        self.assertIsNone(result['distanceKm'])
        self.assertEqual(result['locationState'], 'distance_unknown')
        self.assertEqual(result['distance'], 'Location available')

    def test_vendor_cannot_use_order_discovery(self):
        self.client.authenticate_user(TestDataFactory.create_vendor())
        response = self.client.get('/api/v1/discovery/orders/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
