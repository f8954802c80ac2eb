import logging

from django.core.paginator import Paginator
from django.db.models import Case, F, FloatField, Q, When
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from marketplace.catalog.models import Material
from marketplace.core.exceptions import NotFound, ValidationError
from marketplace.core.models import User
from marketplace.core.permissions import IsSupplier, IsVendor
from marketplace.core.utils import get_page_params
from marketplace.locations.discovery import ALL_STATUSES, annotate_and_filter
from marketplace.locations.models import Address
from marketplace.locations.views import discovery_response, parse_radius, resolve_observer
from . import workflow
from .filters import OrderFilter
from .models import Order
from .serializers import (
    NearbyOrderSerializer, OrderCreateSerializer, OrderNoteInputSerializer, OrderRejectSerializer,
    OrderSerializer, OrderStatsSerializer, OrderStatusSerializer, OrderStatusUpdateSerializer,
)
from .stats import compute_order_stats

logger = logging.getLogger('marketplace.orders')


def _order_queryset():
    return Order.objects.select_related(
        'vendor', 'supplier', 'material', 'vendor_address', 'supplier_address'
    ).prefetch_related('notes')


def _paginated_orders(request, queryset):
    filterset = OrderFilter(request.query_params, queryset=queryset)
    if not filterset.is_valid():
        raise ValidationError(str(dict(filterset.errors)))

    page, limit = get_page_params(request)
    paginator = Paginator(filterset.qs, limit)
    page_obj = paginator.get_page(page)
    return Response({
        'results': OrderSerializer(page_obj, many=True).data,
        'count': paginator.count,
        'page': page_obj.number,
        'page_size': limit,
        'total_pages': paginator.num_pages,
    })


def _get_or_404(queryset, pk, message):
    if pk is None:
        return None
    try:
        return queryset.get(pk=pk)
    except queryset.model.DoesNotExist:
        raise NotFound(message)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsVendor])
def vendor_orders(request):
    """
    GET: the vendor's orders (?status=, ?material=, ?date_from=, ?date_to=)
    POST: place a new order with a supplier
    """
    if request.method == 'GET':
        return _paginated_orders(request, _order_queryset().filter(vendor=request.user))

    serializer = OrderCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    material = _get_or_404(Material.objects.all(), data['materialId'], 'Material not found')
    supplier = _get_or_404(User.objects.filter(role=User.ROLE_SUPPLIER), data['supplierId'], 'Supplier not found')
    vendor_address = _get_or_404(Address.objects.filter(user=request.user),
                                 data.get('vendorAddressId'), 'Vendor address not found')
    supplier_address = _get_or_404(Address.objects.filter(user=supplier),
                                   data.get('supplierAddressId'), 'Supplier address not found')

    order = workflow.create_order(
        vendor=request.user,
        material=material,
        supplier=supplier,
        quantity=data['quantity'],
        vendor_address=vendor_address,
        supplier_address=supplier_address,
        request=request,
    )
    return Response(OrderSerializer(_order_queryset().get(pk=order.pk)).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsSupplier])
def supplier_orders(request):
    """Orders addressed to the supplier"""
    return _paginated_orders(request, _order_queryset().filter(supplier=request.user))


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsSupplier])
def supplier_order_action(request, pk, action):
    """Named lifecycle step: accept, reject, prepare, pack, transit, delivery, delivered"""
    if action == 'reject':
        serializer = OrderRejectSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        workflow.reject_order(pk, request.user, serializer.validated_data.get('reason'), request=request)
    else:
        serializer = OrderNoteInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        workflow.perform_action(pk, action, request.user,
                                note=serializer.validated_data.get('note'), request=request)
    return Response(OrderSerializer(_order_queryset().get(pk=pk)).data)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsSupplier])
def supplier_order_status(request, pk):
    """Generic transition: body {status, note?}"""
    serializer = OrderStatusUpdateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    if data['status'] == workflow.REJECTED:
        workflow.reject_order(pk, request.user, data.get('note'), request=request)
    else:
        workflow.apply_transition(pk, data['status'], request.user, note=data.get('note'), request=request)
    return Response(OrderSerializer(_order_queryset().get(pk=pk)).data)


def _party_order(request, pk, queryset):
    """Order visible to the requesting vendor or supplier; 404 for anyone else"""
    return get_object_or_404(queryset.filter(Q(vendor=request.user) | Q(supplier=request.user)), pk=pk)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_detail(request, pk):
    order = _party_order(request, pk, _order_queryset())
    return Response(OrderSerializer(order).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_status(request, pk):
    order = _party_order(request, pk, Order.objects.select_related('vendor'))
    return Response(OrderStatusSerializer(order).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsVendor])
def vendor_order_stats(request):
    orders = Order.objects.filter(vendor=request.user).only('status', 'total_amount', 'created_at')
    return Response(OrderStatsSerializer(compute_order_stats(orders)).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsSupplier])
def supplier_order_stats(request):
    orders = Order.objects.filter(supplier=request.user).only('status', 'total_amount', 'created_at')
    return Response(OrderStatsSerializer(compute_order_stats(orders)).data)


def _located_at_vendor(queryset):
    """Annotate orders with the delivery coordinate: vendor address, else vendor profile"""
    has_address_location = Q(vendor_address__latitude__isnull=False, vendor_address__longitude__isnull=False)
    return queryset.annotate(
        latitude=Case(
            When(has_address_location, then=F('vendor_address__latitude')),
            default=F('vendor__latitude'),
            output_field=FloatField(),
        ),
        longitude=Case(
            When(has_address_location, then=F('vendor_address__longitude')),
            default=F('vendor__longitude'),
            output_field=FloatField(),
        ),
    )


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsSupplier])
def nearby_orders(request):
    """The supplier's orders with their distance to each vendor (?status=, ?radius=km)"""
    status_filter = request.query_params.get('status') or ALL_STATUSES
    if status_filter != ALL_STATUSES and status_filter not in workflow.STATUSES:
        raise ValidationError(f"Invalid status '{status_filter}'")

    observer = resolve_observer(request)
    radius = parse_radius(request)
    orders = _located_at_vendor(
        Order.objects.filter(supplier=request.user).select_related('vendor', 'material')
    )
    result = annotate_and_filter(observer.coordinate, orders, status_filter=status_filter,
                                 max_distance_km=radius)
    logger.info(f"Supplier {request.user.username} discovery: {len(result.with_location)} located, "
                f"{len(result.without_location)} without location")
    return discovery_response(result, observer, NearbyOrderSerializer)
