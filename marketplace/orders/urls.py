from django.urls import path
from .views import (
    vendor_orders, supplier_orders, supplier_order_action, supplier_order_status,
    order_detail, order_status, vendor_order_stats, supplier_order_stats, nearby_orders,
)
from .workflow import NAMED_ACTIONS

urlpatterns = [
    path('order/vendor/', vendor_orders, name='vendor-orders'),
    path('order/vendor/stats/', vendor_order_stats, name='vendor-order-stats'),
    path('order/supplier/', supplier_orders, name='supplier-orders'),
    path('order/supplier/stats/', supplier_order_stats, name='supplier-order-stats'),
    path('order/supplier/<int:pk>/status/', supplier_order_status, name='supplier-order-status'),
    path('order/<int:pk>/', order_detail, name='order-detail'),
    path('order/<int:pk>/status/', order_status, name='order-status'),
    path('discovery/orders/', nearby_orders, name='nearby-orders'),
]

urlpatterns += [
    path(f'order/supplier/<int:pk>/{action}/', supplier_order_action, {'action': action},
         name=f'supplier-order-{action}')
    for action in NAMED_ACTIONS
]
