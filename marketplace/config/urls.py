"""
URL configuration for the marketplace project.

Every app mounts its routes under /api/v1/.
"""
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "Marketplace Admin Panel"
admin.site.site_title = "Marketplace Admin Portal"
admin.site.index_title = "Vendors, suppliers and orders"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('marketplace.core.urls')),
    path('api/v1/', include('marketplace.catalog.urls')),
    path('api/v1/', include('marketplace.locations.urls')),
    path('api/v1/', include('marketplace.orders.urls')),
]
