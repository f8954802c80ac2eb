import logging

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from marketplace.core.exceptions import ValidationError
from marketplace.core.models import User
from marketplace.core.permissions import IsVendor
from marketplace.core.utils import create_audit_log
from .discovery import annotate_and_filter, nearest_first
from .models import Address
from .resolution import GRANTED, service_for_user
from .serializers import (
    AddressSerializer, LocationReportSerializer, NearbySerializer, NearbySupplierSerializer,
)

logger = logging.getLogger('marketplace.locations')


def parse_radius(request):
    radius = request.query_params.get('radius', None)
    if radius in (None, ''):
        return None
    try:
        radius = float(radius)
    except ValueError:
        raise ValidationError(f"radius must be a number of kilometers, got '{radius}'")
    if radius <= 0:
        raise ValidationError('radius must be positive')
    return radius


def resolve_observer(request):
    """Observer location for discovery: cached record, profile, then lat/lng query parameters"""
    query = request.query_params
    payload = {'latitude': query.get('lat'), 'longitude': query.get('lng')}
    service = service_for_user(request.user, payload)
    return service.resolve(allow_device=service.provider.has_report())


def discovery_response(result, observer, entity_serializer, context=None):
    context = {**(context or {}), 'entity_serializer': entity_serializer}
    return Response({
        'observer': observer.to_dict(),
        'results': NearbySerializer(result.with_location, many=True, context=context).data,
        'withoutLocation': NearbySerializer(result.without_location, many=True, context=context).data,
        'count': len(result),
    })


# Address views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def address_list_create(request):
    """List the user's addresses or add a new one"""
    if request.method == 'GET':
        addresses = Address.objects.filter(user=request.user)
        return Response(AddressSerializer(addresses, many=True).data)

    serializer = AddressSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    address = serializer.save(user=request.user)
    if address.is_default:
        Address.objects.filter(user=request.user, is_default=True).exclude(pk=address.pk).update(is_default=False)
    logger.info(f"User {request.user.username} added address {address.id}")
    return Response(AddressSerializer(address).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def address_detail(request, pk):
    """Retrieve, update or delete one of the user's addresses"""
    address = get_object_or_404(Address, pk=pk, user=request.user)

    if request.method == 'GET':
        return Response(AddressSerializer(address).data)
    elif request.method == 'PATCH':
        serializer = AddressSerializer(address, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        address = serializer.save()
        if address.is_default:
            Address.objects.filter(user=request.user, is_default=True).exclude(pk=address.pk).update(is_default=False)
        return Response(AddressSerializer(address).data)
    else:  # DELETE
        address.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# Location views
@api_view(['GET', 'POST', 'DELETE'])
@permission_classes([IsAuthenticated])
def current_location(request):
    """
    GET: resolved location (cached record, then profile coordinate)
    POST: store a device reading reported by the client, or record its failure
    DELETE: forget the cached location
    """
    user = request.user

    if request.method == 'GET':
        service = service_for_user(user)
        return Response(service.resolve(allow_device=False).to_dict())

    if request.method == 'DELETE':
        service = service_for_user(user)
        service.clear_location()
        create_audit_log(request=request, action='location_clear', model_name='User',
                         object_id=user.pk, object_name=user.username)
        logger.info(f"User {user.username} cleared cached location")
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = LocationReportSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    service = service_for_user(user, serializer.validated_data)
    result = service.request_location()

    if result.ok:
        record = service.save_location(result.coordinate, GRANTED)
        user.latitude = result.coordinate.latitude
        user.longitude = result.coordinate.longitude
        user.location_permission = GRANTED
        user.save(update_fields=['latitude', 'longitude', 'location_permission', 'updated_at'])
        create_audit_log(request=request, action='location_update', model_name='User',
                         object_id=user.pk, object_name=user.username,
                         changes={'latitude': record.latitude, 'longitude': record.longitude})
        logger.info(f"User {user.username} location updated")
        return Response({**record.to_dict(), 'reason': None})

    user.location_permission = result.permission_status
    user.save(update_fields=['location_permission', 'updated_at'])
    logger.warning(f"User {user.username} location request failed: {result.reason}")
    return Response({
        'latitude': None,
        'longitude': None,
        'permissionStatus': result.permission_status,
        'reason': result.reason,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def location_permission(request):
    """Permission state reported by the client device, else the one recorded for the user"""
    service = service_for_user(request.user, request.query_params)
    return Response({'permissionStatus': service.get_current_permission()})


# Discovery views
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsVendor])
def nearby_suppliers(request):
    """Suppliers around the vendor (?radius=km, ?sort=distance for nearest first)"""
    observer = resolve_observer(request)
    radius = parse_radius(request)
    suppliers = User.objects.filter(role=User.ROLE_SUPPLIER, is_active=True).order_by('id')

    result = annotate_and_filter(observer.coordinate, suppliers, max_distance_km=radius)
    if request.query_params.get('sort') == 'distance':
        result.with_location = nearest_first(result)
    return discovery_response(result, observer, NearbySupplierSerializer)
