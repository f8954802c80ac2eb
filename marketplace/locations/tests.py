"""
Test suite for locations
Tests: distance maths, location resolution, nearby discovery, addresses and the location API
"""
import math
from datetime import datetime, timedelta

from django.core.cache import cache
from django.test import SimpleTestCase, TestCase
from rest_framework import status

from marketplace.core.exceptions import UpstreamUnavailable
from marketplace.core.models import AuditLog
from marketplace.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from marketplace.locations.discovery import (
    DISTANCE_UNKNOWN, MEASURED, NO_LOCATION, NearbyFeed, annotate_and_filter, nearest_first,
)
from marketplace.locations.geo import Coordinate, coordinate_from, distance_km, format_distance, is_valid_coordinate
from marketplace.locations.models import Address
from marketplace.locations.resolution import (
    DENIED, GRANTED, PROMPT, UNSUPPORTED, CacheLocationStore, GeolocationProvider,
    InMemoryLocationStore, LocationRecord, LocationResolutionService, SubmittedPositionProvider,
)


class GeoTests(SimpleTestCase):

    def test_zero_distance(self):
        for lat, lon in ((19.0, 72.8), (-33.9, 151.2), (89.9, -179.9)):
            self.assertEqual(distance_km(lat, lon, lat, lon), 0)

    def test_symmetric(self):
        a = (19.076, 72.8777)
        b = (28.7041, 77.1025)
        self.assertAlmostEqual(distance_km(*a, *b), distance_km(*b, *a))

    def test_known_distance(self):
        # Mumbai to Delhi is roughly 1150 km along the great circle
        self.assertAlmostEqual(distance_km(19.076, 72.8777, 28.7041, 77.1025), 1153, delta=5)

    def test_antipodes(self):
        self.assertAlmostEqual(distance_km(0, 0, 0, 180), math.pi * 6371.0, places=6)

    def test_non_finite_inputs_raise(self):
        for bad in (float('nan'), float('inf'), None, '19.0', True):
            with self.assertRaises(ValueError):
                distance_km(bad, 72.8, 19.0, 72.8)

    def test_format_distance(self):
        self.assertEqual(format_distance(0), '0m')
        self.assertEqual(format_distance(0.5), '500m')
        self.assertEqual(format_distance(0.9994), '999m')
        self.assertEqual(format_distance(1.0), '1.0km')
        self.assertEqual(format_distance(12.34), '12.3km')

    def test_valid_coordinate(self):
        self.assertTrue(is_valid_coordinate(19.0, 72.8))
        self.assertFalse(is_valid_coordinate(0, 0))
        self.assertFalse(is_valid_coordinate(91, 0))
        self.assertFalse(is_valid_coordinate(10, -181))
        self.assertFalse(is_valid_coordinate(None, 72.8))
        self.assertFalse(is_valid_coordinate(float('nan'), 72.8))

    def test_coordinate_is_atomic(self):
        self.assertEqual(coordinate_from(19.0, 72.8), Coordinate(19.0, 72.8))
        self.assertIsNone(coordinate_from(19.0, None))
        self.assertIsNone(coordinate_from(None, None))


class FakeProvider(GeolocationProvider):
    """Scripted device for resolution tests"""

    def __init__(self, supported=True, permission=None, position=None, error=None, permission_error=None):
        self.supported = supported
        self.permission = permission
        self.position = position
        self.error = error
        self.permission_error = permission_error
        self.position_calls = 0

    def is_supported(self):
        return self.supported

    def query_permission(self):
        if self.permission_error:
            raise self.permission_error
        return self.permission

    def get_current_position(self):
        self.position_calls += 1
        if self.error:
            raise UpstreamUnavailable(self.error)
        return self.position


class LocationResolutionTests(SimpleTestCase):

    def _service(self, store=None, profile=None, **provider):
        return LocationResolutionService(store or InMemoryLocationStore(), FakeProvider(**provider), profile=profile)

    def test_saved_location_returned_unmodified(self):
        record = LocationRecord(19.0, 72.8, DENIED)
        service = self._service(store=InMemoryLocationStore(record))
        self.assertIs(service.get_saved_location(), record)
        self.assertEqual(service.get_saved_location().permission_status, DENIED)

    def test_saved_location_idempotent(self):
        service = self._service(store=InMemoryLocationStore(LocationRecord(19.0, 72.8, GRANTED)))
        self.assertEqual(service.get_saved_location(), service.get_saved_location())

    def test_no_saved_location(self):
        self.assertIsNone(self._service().get_saved_location())

    def test_permission_unsupported(self):
        self.assertEqual(self._service(supported=False).get_current_permission(), UNSUPPORTED)

    def test_permission_introspection_unavailable(self):
        self.assertEqual(self._service().get_current_permission(), PROMPT)

    def test_permission_falls_back_to_recorded_state(self):
        service = LocationResolutionService(InMemoryLocationStore(), FakeProvider(), profile_permission=DENIED)
        self.assertEqual(service.get_current_permission(), DENIED)

    def test_recorded_unsupported_is_permanent(self):
        service = LocationResolutionService(InMemoryLocationStore(), FakeProvider(permission=GRANTED),
                                            profile_permission=UNSUPPORTED)
        self.assertEqual(service.get_current_permission(), UNSUPPORTED)

    def test_permission_introspection_failure_falls_back_to_prompt(self):
        service = self._service(permission_error=RuntimeError('boom'), position=Coordinate(19.0, 72.8))
        self.assertEqual(service.get_current_permission(), PROMPT)
        # Introspection failing never blocks the active request
        self.assertTrue(service.request_location().ok)

    def test_permission_reported(self):
        self.assertEqual(self._service(permission=GRANTED).get_current_permission(), GRANTED)

    def test_request_location_success(self):
        service = self._service(position=Coordinate(19.0, 72.8))
        result = service.request_location()
        self.assertEqual(result.coordinate, Coordinate(19.0, 72.8))
        self.assertEqual(result.permission_status, GRANTED)
        self.assertIsNone(result.reason)

    def test_request_location_failures(self):
        for reason in UpstreamUnavailable.REASONS:
            with self.subTest(reason=reason):
                result = self._service(error=reason).request_location()
                self.assertFalse(result.ok)
                self.assertEqual(result.permission_status, DENIED)
                self.assertEqual(result.reason, reason)

    def test_request_location_unsupported(self):
        result = self._service(supported=False).request_location()
        self.assertEqual(result.permission_status, UNSUPPORTED)
        self.assertEqual(result.reason, 'unavailable')

    def test_save_and_clear_are_idempotent(self):
        store = InMemoryLocationStore()
        service = self._service(store=store)
        service.save_location(Coordinate(19.0, 72.8))
        service.save_location(Coordinate(19.0, 72.8))
        self.assertEqual(store.get(), LocationRecord(19.0, 72.8, GRANTED))
        service.clear_location()
        service.clear_location()
        self.assertIsNone(store.get())

    def test_resolve_prefers_cache_over_profile_and_device(self):
        store = InMemoryLocationStore(LocationRecord(19.0, 72.8, GRANTED))
        service = self._service(store=store, profile=Coordinate(28.6, 77.2), position=Coordinate(12.9, 77.6))
        resolved = service.resolve()
        self.assertEqual(resolved.coordinate, Coordinate(19.0, 72.8))
        self.assertEqual(resolved.source, 'cache')
        self.assertEqual(service.provider.position_calls, 0)

    def test_resolve_falls_back_to_profile(self):
        service = self._service(profile=Coordinate(28.6, 77.2), position=Coordinate(12.9, 77.6))
        resolved = service.resolve()
        self.assertEqual(resolved.source, 'profile')
        self.assertEqual(service.provider.position_calls, 0)

    def test_resolve_uses_device_last(self):
        service = self._service(position=Coordinate(12.9, 77.6))
        resolved = service.resolve()
        self.assertEqual(resolved.source, 'device')
        self.assertEqual(resolved.permission_status, GRANTED)

    def test_resolve_device_failure_carries_reason(self):
        resolved = self._service(error='timeout').resolve()
        self.assertIsNone(resolved.coordinate)
        self.assertEqual(resolved.reason, 'timeout')
        self.assertEqual(resolved.to_dict()['latitude'], None)

    def test_resolve_without_device(self):
        service = self._service(position=Coordinate(12.9, 77.6))
        resolved = service.resolve(allow_device=False)
        self.assertIsNone(resolved.coordinate)
        self.assertEqual(service.provider.position_calls, 0)

    def test_cached_sentinel_is_ignored(self):
        store = InMemoryLocationStore(LocationRecord(0, 0, GRANTED))
        resolved = self._service(store=store, profile=Coordinate(28.6, 77.2)).resolve()
        self.assertEqual(resolved.source, 'profile')


class SubmittedPositionProviderTests(SimpleTestCase):

    def test_position(self):
        provider = SubmittedPositionProvider({'latitude': '19.0', 'longitude': '72.8'})
        self.assertTrue(provider.has_report())
        self.assertEqual(provider.get_current_position(), Coordinate(19.0, 72.8))

    def test_error_reason(self):
        provider = SubmittedPositionProvider({'error': 'permission-denied'})
        with self.assertRaises(UpstreamUnavailable) as ctx:
            provider.get_current_position()
        self.assertEqual(ctx.exception.reason, 'permission-denied')

    def test_permission_state(self):
        self.assertEqual(SubmittedPositionProvider({'permissionStatus': 'denied'}).query_permission(), DENIED)
        self.assertIsNone(SubmittedPositionProvider({}).query_permission())
        self.assertIsNone(SubmittedPositionProvider({'permissionStatus': 'maybe'}).query_permission())

    def test_unknown_reason_is_normalised(self):
        with self.assertRaises(UpstreamUnavailable) as ctx:
            SubmittedPositionProvider({'error': 'gremlins'}).get_current_position()
        self.assertEqual(ctx.exception.reason, 'unknown')

    def test_no_report(self):
        provider = SubmittedPositionProvider({'latitude': None, 'longitude': None})
        self.assertFalse(provider.has_report())

    def test_supported_flag(self):
        self.assertFalse(SubmittedPositionProvider({'supported': 'false'}).is_supported())
        self.assertTrue(SubmittedPositionProvider({}).is_supported())


class CacheLocationStoreTests(TestCase):

    def setUp(self):
        cache.clear()

    def test_round_trip_under_user_key(self):
        store = CacheLocationStore(42)
        store.set(LocationRecord(19.0, 72.8, GRANTED))
        self.assertEqual(store.key, 'user-location:42')
        self.assertEqual(cache.get('user-location:42'),
                         {'latitude': 19.0, 'longitude': 72.8, 'permissionStatus': GRANTED})
        self.assertEqual(CacheLocationStore(42).get(), LocationRecord(19.0, 72.8, GRANTED))
        self.assertIsNone(CacheLocationStore(43).get())

    def test_clear(self):
        store = CacheLocationStore(7)
        store.set(LocationRecord(19.0, 72.8, GRANTED))
        store.clear()
        store.clear()
        self.assertIsNone(store.get())


class DiscoveryTests(SimpleTestCase):

    def test_same_point_is_zero_meters(self):
        result = annotate_and_filter(Coordinate(19.0, 72.8), [{'id': 1, 'latitude': 19.0, 'longitude': 72.8}])
        annotated = result.with_location[0]
        self.assertEqual(annotated.distance_km, 0)
        self.assertEqual(annotated.distance_display, '0m')
        self.assertEqual(annotated.location_state, MEASURED)

    def test_null_island_is_without_location(self):
        result = annotate_and_filter(Coordinate(19.0, 72.8), [{'id': 1, 'latitude': 0, 'longitude': 0}])
        self.assertEqual(result.with_location, [])
        self.assertEqual(result.without_location[0].location_state, NO_LOCATION)

    def test_partial_and_nan_coordinates_are_without_location(self):
        candidates = [
            {'id': 1, 'latitude': 19.0},
            {'id': 2, 'latitude': float('nan'), 'longitude': 72.8},
            {'id': 3, 'latitude': None, 'longitude': None},
        ]
        result = annotate_and_filter(Coordinate(19.0, 72.8), candidates)
        self.assertEqual([a.entity['id'] for a in result.without_location], [1, 2, 3])

    def test_without_observer_distance_unknown(self):
        result = annotate_and_filter(None, [{'id': 1, 'latitude': 19.0, 'longitude': 72.8}])
        annotated = result.with_location[0]
        self.assertIsNone(annotated.distance_km)
        self.assertEqual(annotated.location_state, DISTANCE_UNKNOWN)

    def test_candidates_are_not_mutated(self):
        candidate = {'id': 1, 'latitude': 19.0, 'longitude': 72.8}
        annotate_and_filter(Coordinate(19.0, 72.8), [candidate])
        self.assertEqual(candidate, {'id': 1, 'latitude': 19.0, 'longitude': 72.8})

    def test_status_filter(self):
        candidates = [
            {'id': 1, 'status': 'pending', 'latitude': 19.0, 'longitude': 72.8},
            {'id': 2, 'status': 'packed', 'latitude': 19.0, 'longitude': 72.8},
            {'id': 3, 'status': 'packed'},
        ]
        result = annotate_and_filter(None, candidates, status_filter='packed')
        self.assertEqual([a.entity['id'] for a in result], [2, 3])
        self.assertEqual(len(annotate_and_filter(None, candidates, status_filter='all')), 3)

    def test_ordering(self):
        t0 = datetime(2024, 1, 1, 12, 0)
        candidates = [
            {'id': 5, 'latitude': 19.0, 'longitude': 72.8, 'created_at': t0},
            {'id': 9, 'latitude': 0, 'longitude': 0, 'created_at': t0},
            {'id': 3, 'latitude': 19.1, 'longitude': 72.8, 'created_at': t0 + timedelta(hours=1)},
            {'id': 2, 'latitude': 19.2, 'longitude': 72.8, 'created_at': t0},
            {'id': 4},
        ]
        result = annotate_and_filter(Coordinate(19.0, 72.8), candidates)
        self.assertEqual([a.entity['id'] for a in result.with_location], [3, 2, 5])
        self.assertEqual([a.entity['id'] for a in result.without_location], [9, 4])

    def test_radius(self):
        candidates = [
            {'id': 1, 'latitude': 19.0, 'longitude': 72.8},
            {'id': 2, 'latitude': 28.6, 'longitude': 77.2},
        ]
        result = annotate_and_filter(Coordinate(19.0, 72.8), candidates, max_distance_km=50)
        self.assertEqual([a.entity['id'] for a in result.with_location], [1])

    def test_nearest_first(self):
        candidates = [
            {'id': 1, 'latitude': 28.6, 'longitude': 77.2},
            {'id': 2, 'latitude': 19.0, 'longitude': 72.8},
        ]
        result = annotate_and_filter(Coordinate(19.0, 72.8), candidates)
        self.assertEqual([a.entity['id'] for a in nearest_first(result)], [2, 1])

    def test_feed_recomputes_on_every_change(self):
        feed = NearbyFeed([{'id': 1, 'latitude': 19.0, 'longitude': 72.8}])
        self.assertEqual(feed.result.with_location[0].location_state, DISTANCE_UNKNOWN)

        feed.set_observer(Coordinate(19.0, 72.8))
        self.assertEqual(feed.result.with_location[0].distance_display, '0m')

        feed.set_candidates([{'id': 2, 'latitude': 0, 'longitude': 0}])
        self.assertEqual(feed.result.with_location, [])
        self.assertEqual(feed.result.without_location[0].entity['id'], 2)


class LocationAPITests(TestCase):

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_vendor()
        self.client.authenticate_user(self.user)

    def test_get_without_any_location(self):
        response = self.client.get('/api/v1/location/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data['latitude'])
        self.assertEqual(response.data['permissionStatus'], 'prompt')
        self.assertIsNone(response.data['source'])

    def test_post_position_saves_cache_and_profile(self):
        response = self.client.post('/api/v1/location/', {'latitude': 19.0, 'longitude': 72.8}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['permissionStatus'], 'granted')

        self.user.refresh_from_db()
        self.assertEqual((self.user.latitude, self.user.longitude), (19.0, 72.8))
        self.assertEqual(self.user.location_permission, 'granted')
        self.assertIsNotNone(cache.get(f'user-location:{self.user.pk}'))
        self.assertTrue(AuditLog.objects.filter(action='location_update', user=self.user).exists())

        response = self.client.get('/api/v1/location/')
        self.assertEqual(response.data['source'], 'cache')
        self.assertEqual(response.data['latitude'], 19.0)

    def test_post_failure_is_typed(self):
        response = self.client.post('/api/v1/location/', {'error': 'permission-denied'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data['latitude'])
        self.assertEqual(response.data['permissionStatus'], 'denied')
        self.assertEqual(response.data['reason'], 'permission-denied')
        self.user.refresh_from_db()
        self.assertEqual(self.user.location_permission, 'denied')

    def test_post_unsupported_device(self):
        response = self.client.post('/api/v1/location/', {'supported': False}, format='json')
        self.assertEqual(response.data['permissionStatus'], 'unsupported')
        self.assertEqual(response.data['reason'], 'unavailable')

    def test_post_rejects_half_coordinate(self):
        response = self.client.post('/api/v1/location/', {'latitude': 19.0}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['status'], 'fail')

    def test_post_rejects_out_of_range(self):
        response = self.client.post('/api/v1/location/', {'latitude': 95, 'longitude': 72.8}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_clears_cache(self):
        self.client.post('/api/v1/location/', {'latitude': 19.0, 'longitude': 72.8}, format='json')
        response = self.client.delete('/api/v1/location/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertIsNone(cache.get(f'user-location:{self.user.pk}'))
        self.assertEqual(self.client.delete('/api/v1/location/').status_code, status.HTTP_204_NO_CONTENT)

        # Profile coordinate is still there
        self.assertEqual(self.client.get('/api/v1/location/').data['source'], 'profile')

    def test_permission_endpoint(self):
        response = self.client.get('/api/v1/location/permission/', {'permissionStatus': 'granted'})
        self.assertEqual(response.data, {'permissionStatus': 'granted'})
        response = self.client.get('/api/v1/location/permission/')
        self.assertEqual(response.data, {'permissionStatus': 'prompt'})
        response = self.client.get('/api/v1/location/permission/', {'supported': 'false'})
        self.assertEqual(response.data, {'permissionStatus': 'unsupported'})

    def test_permission_endpoint_remembers_unsupported_device(self):
        self.client.post('/api/v1/location/', {'supported': False}, format='json')
        response = self.client.get('/api/v1/location/permission/')
        self.assertEqual(response.data, {'permissionStatus': 'unsupported'})
        self.assertEqual(self.client.get('/api/v1/location/').data['permissionStatus'], 'unsupported')

    def test_permission_endpoint_reports_recorded_denial(self):
        self.client.post('/api/v1/location/', {'error': 'permission-denied'}, format='json')
        response = self.client.get('/api/v1/location/permission/')
        self.assertEqual(response.data, {'permissionStatus': 'denied'})


class AddressAPITests(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_vendor()
        self.client.authenticate_user(self.user)

    def _payload(self, **overrides):
        payload = {
            'addressLine1': '12 Market Road', 'city': 'Mumbai', 'state': 'Maharashtra',
            'postalCode': '400001', 'latitude': 19.0, 'longitude': 72.8,
        }
        payload.update(overrides)
        return payload

    def test_create_and_list(self):
        response = self.client.post('/api/v1/address/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['country'], 'India')
        response = self.client.get('/api/v1/address/')
        self.assertEqual(len(response.data), 1)

    def test_coordinate_is_atomic(self):
        response = self.client.post('/api/v1/address/', self._payload(longitude=None), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_single_default(self):
        first = self.client.post('/api/v1/address/', self._payload(isDefault=True), format='json').data
        second = self.client.post('/api/v1/address/', self._payload(isDefault=True), format='json').data
        self.assertFalse(Address.objects.get(pk=first['id']).is_default)
        self.assertTrue(Address.objects.get(pk=second['id']).is_default)

    def test_other_users_address_is_not_found(self):
        address = TestDataFactory.create_address(TestDataFactory.create_vendor())
        self.assertEqual(self.client.get(f'/api/v1/address/{address.pk}/').status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(self.client.delete(f'/api/v1/address/{address.pk}/').status_code,
                         status.HTTP_404_NOT_FOUND)


class SupplierDiscoveryAPITests(TestCase):

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.vendor = TestDataFactory.create_vendor(latitude=19.0, longitude=72.8)
        self.client.authenticate_user(self.vendor)

    def test_suppliers_by_distance(self):
        near = TestDataFactory.create_supplier(latitude=19.0, longitude=72.8)
        far = TestDataFactory.create_supplier(latitude=28.6, longitude=77.2)
        unset = TestDataFactory.create_supplier(latitude=0, longitude=0)

        response = self.client.get('/api/v1/discovery/suppliers/', {'sort': 'distance'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([s['id'] for s in response.data['results']], [near.pk, far.pk])
        self.assertEqual(response.data['results'][0]['distance'], '0m')
        self.assertEqual([s['id'] for s in response.data['withoutLocation']], [unset.pk])

        response = self.client.get('/api/v1/discovery/suppliers/', {'radius': 100})
        self.assertEqual([s['id'] for s in response.data['results']], [near.pk])

    def test_query_position_used_when_nothing_stored(self):
        vendor = TestDataFactory.create_vendor()
        supplier = TestDataFactory.create_supplier(latitude=19.0, longitude=72.8)
        self.client.authenticate_user(vendor)
        response = self.client.get('/api/v1/discovery/suppliers/', {'lat': 19.0, 'lng': 72.8})
        self.assertEqual(response.data['observer']['source'], 'device')
        self.assertEqual(response.data['results'][0]['id'], supplier.pk)
        self.assertEqual(response.data['results'][0]['distance'], '0m')

    def test_bad_radius(self):
        response = self.client.get('/api/v1/discovery/suppliers/', {'radius': 'far'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_supplier_cannot_discover_suppliers(self):
        self.client.authenticate_user(TestDataFactory.create_supplier())
        self.assertEqual(self.client.get('/api/v1/discovery/suppliers/').status_code, status.HTTP_403_FORBIDDEN)
