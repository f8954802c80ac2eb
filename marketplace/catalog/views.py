import logging

from django.core.paginator import Paginator
from django.db.models import ProtectedError
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from marketplace.core.exceptions import Forbidden, ValidationError
from marketplace.core.utils import create_audit_log, get_page_params
from .filters import MaterialFilter
from .models import Material
from .serializers import MaterialSerializer

logger = logging.getLogger('marketplace.catalog')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def material_list_create(request):
    """Browse the catalog or (suppliers) list a new material"""
    if request.method == 'GET':
        queryset = Material.objects.select_related('supplier')
        filterset = MaterialFilter(request.query_params, queryset=queryset)
        if not filterset.is_valid():
            raise ValidationError(str(dict(filterset.errors)))
        queryset = filterset.qs.order_by('-updated_at', '-created_at')

        page, limit = get_page_params(request)
        paginator = Paginator(queryset, limit)
        page_obj = paginator.get_page(page)

        return Response({
            'results': MaterialSerializer(page_obj, many=True).data,
            'count': paginator.count,
            'page': page_obj.number,
            'page_size': limit,
            'total_pages': paginator.num_pages,
        })

    if request.user.role != 'supplier':
        logger.warning(f"User {request.user.username} ({request.user.role}) attempted to list a material")
        raise Forbidden('Only suppliers can list materials')

    serializer = MaterialSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    material = serializer.save(supplier=request.user)
    create_audit_log(request=request, action='material_create', model_name='Material',
                     object_id=material.pk, object_name=material.name,
                     changes={'price_per_unit': str(material.price_per_unit),
                              'available_quantity': material.available_quantity})
    logger.info(f"Supplier {request.user.username} listed material '{material.name}'")
    return Response(MaterialSerializer(material).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def material_detail(request, pk):
    """Retrieve a material; only the owning supplier may change or remove it"""
    material = get_object_or_404(Material.objects.select_related('supplier'), pk=pk)

    if request.method == 'GET':
        return Response(MaterialSerializer(material).data)

    if material.supplier_id != request.user.pk:
        logger.warning(f"User {request.user.username} attempted to modify material {material.pk} of another supplier")
        raise Forbidden('You can only manage your own materials')

    if request.method == 'PATCH':
        old_price = material.price_per_unit
        serializer = MaterialSerializer(material, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        material = serializer.save()
        create_audit_log(request=request, action='material_update', model_name='Material',
                         object_id=material.pk, object_name=material.name,
                         changes={'fields': sorted(request.data.keys()),
                                  'old_price_per_unit': str(old_price),
                                  'price_per_unit': str(material.price_per_unit)})
        return Response(MaterialSerializer(material).data)

    try:
        material.delete()
    except ProtectedError:
        logger.warning(f"Supplier {request.user.username} tried to delete material {material.pk} which has orders")
        raise ValidationError('This material has orders and cannot be deleted. Set it to inactive instead.')
    return Response(status=status.HTTP_204_NO_CONTENT)
