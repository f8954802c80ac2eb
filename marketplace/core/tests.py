"""
Test suite for accounts, audit logging and the error envelope
"""
from django.test import RequestFactory, SimpleTestCase, TestCase
from rest_framework import status
from rest_framework.exceptions import NotAuthenticated

from marketplace.core.exceptions import (
    Forbidden, InvalidTransition, UpstreamUnavailable, ValidationError, api_exception_handler,
)
from marketplace.core.models import AuditLog, User
from marketplace.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from marketplace.core.utils import create_audit_log, get_client_ip


class ExceptionHandlerTests(SimpleTestCase):

    def test_domain_error_envelope(self):
        response = api_exception_handler(Forbidden('Not your order'), {})
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data, {'status': 'fail', 'message': 'Not your order'})

    def test_invalid_transition_carries_actions(self):
        exc = InvalidTransition('packed', 'out_for_delivery', ['start transit', 'cancel'])
        response = api_exception_handler(exc, {})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['currentStatus'], 'packed')
        self.assertEqual(response.data['requestedStatus'], 'out_for_delivery')
        self.assertEqual(response.data['availableActions'], ['start transit', 'cancel'])
        self.assertIn("'packed'", response.data['message'])
        self.assertIn("'out_for_delivery'", response.data['message'])

    def test_upstream_reason(self):
        response = api_exception_handler(UpstreamUnavailable('timeout'), {})
        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertEqual(response.data['status'], 'error')
        self.assertEqual(response.data['reason'], 'timeout')

    def test_drf_errors_are_wrapped(self):
        response = api_exception_handler(NotAuthenticated(), {})
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['status'], 'fail')

    def test_unexpected_error_does_not_leak(self):
        with self.assertLogs('marketplace.core', level='ERROR'):
            response = api_exception_handler(KeyError('secret_column'), {})
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data, {'status': 'error', 'message': 'Internal server error'})

    def test_validation_error_default_status(self):
        self.assertEqual(ValidationError('bad').status_code, 400)


class AuditLogTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_vendor()
        self.factory = RequestFactory()

    def test_create_audit_log(self):
        request = self.factory.get('/', HTTP_X_FORWARDED_FOR='10.0.0.1, 10.0.0.2')
        request.user = self.user
        log = create_audit_log(request=request, action='location_update', model_name='User',
                               object_id=self.user.pk, changes={'latitude': 19.0})
        self.assertEqual(log.user, self.user)
        self.assertEqual(log.ip_address, '10.0.0.1')
        self.assertEqual(log.object_id, str(self.user.pk))

    def test_missing_fields_are_skipped(self):
        with self.assertLogs('marketplace.core', level='WARNING'):
            self.assertIsNone(create_audit_log(user=self.user, action='order_create', model_name='Order'))
        self.assertFalse(AuditLog.objects.exists())

    def test_action_choices_cover_written_actions(self):
        self.assertEqual({value for value, _ in AuditLog.ACTION_CHOICES}, {
            'order_create', 'order_status_change', 'material_create', 'material_update',
            'location_update', 'location_clear',
        })

    def test_client_ip_without_request(self):
        self.assertIsNone(get_client_ip(None))


class UserModelTests(TestCase):

    def test_coordinate_requires_both_halves(self):
        user = TestDataFactory.create_vendor(latitude=19.0)
        self.assertIsNone(user.coordinate)
        user.longitude = 72.8
        self.assertEqual(tuple(user.coordinate), (19.0, 72.8))

    def test_display_name(self):
        user = TestDataFactory.create_supplier(business_name='Fresh Farms')
        self.assertEqual(user.display_name, 'Fresh Farms')
        self.assertTrue(user.is_supplier)
        self.assertFalse(user.is_vendor)

    def test_defaults(self):
        user = TestDataFactory.create_vendor()
        self.assertEqual(user.location_permission, 'prompt')
        self.assertFalse(user.onboarding_completed)


class AuthAPITests(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def _register(self, **overrides):
        payload = {
            'username': 'freshfarms', 'email': 'fresh@test.com', 'password': 'Str0ng-pass-123',
            'passwordConfirm': 'Str0ng-pass-123', 'role': 'supplier', 'firstName': 'Asha',
        }
        payload.update(overrides)
        return self.client.post('/api/v1/auth/register/', payload, format='json')

    def test_register(self):
        response = self._register()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['user']['role'], 'supplier')
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)

    def test_register_requires_role(self):
        response = self._register(role='admin')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['status'], 'fail')

    def test_register_password_mismatch(self):
        response = self._register(passwordConfirm='something-else-1')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_login_and_refresh(self):
        self._register()
        response = self.client.post('/api/v1/auth/login/', {
            'username': 'freshfarms', 'password': 'Str0ng-pass-123',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['user']['username'], 'freshfarms')

        response = self.client.post('/api/v1/auth/refresh/', {'refresh': response.data['refresh']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)

    def test_login_with_wrong_password(self):
        self._register()
        response = self.client.post('/api/v1/auth/login/', {
            'username': 'freshfarms', 'password': 'wrong',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['status'], 'fail')


class ProfileAPITests(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_vendor()
        self.client.authenticate_user(self.user)

    def test_get_profile(self):
        response = self.client.get('/api/v1/user/profile/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['username'], self.user.username)
        self.assertEqual(response.data['locationPermission'], 'prompt')

    def test_complete_onboarding(self):
        response = self.client.patch('/api/v1/user/profile/', {
            'businessName': 'Chaat Corner', 'city': 'Pune', 'onboardingCompleted': True,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertEqual(self.user.business_name, 'Chaat Corner')
        self.assertIsNotNone(self.user.onboarding_date)

    def test_role_and_coordinates_are_read_only(self):
        self.client.patch('/api/v1/user/profile/', {'role': 'supplier', 'latitude': 1.0}, format='json')
        self.user.refresh_from_db()
        self.assertEqual(self.user.role, User.ROLE_VENDOR)
        self.assertIsNone(self.user.latitude)

    def test_audit_logs_are_scoped(self):
        create_audit_log(user=self.user, action='location_clear', model_name='User', object_id=self.user.pk)
        other = TestDataFactory.create_vendor()
        create_audit_log(user=other, action='location_clear', model_name='User', object_id=other.pk)
        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['objectId'], str(self.user.pk))
