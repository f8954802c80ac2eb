from django.urls import path
from .views import (
    address_list_create, address_detail,
    current_location, location_permission,
    nearby_suppliers,
)

urlpatterns = [
    path('address/', address_list_create, name='address-list-create'),
    path('address/<int:pk>/', address_detail, name='address-detail'),
    path('location/', current_location, name='current-location'),
    path('location/permission/', location_permission, name='location-permission'),
    path('discovery/suppliers/', nearby_suppliers, name='discovery-suppliers'),
]
