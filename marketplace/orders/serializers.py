from rest_framework import serializers

from marketplace.catalog.serializers import MaterialSummarySerializer
from marketplace.core.serializers import UserSummarySerializer
from marketplace.locations.serializers import AddressSummarySerializer
from .models import Order, OrderNote
from .workflow import STATUSES, available_actions


class OrderNoteSerializer(serializers.ModelSerializer):
    updatedBy = serializers.PrimaryKeyRelatedField(source='author', read_only=True)

    class Meta:
        model = OrderNote
        fields = ['message', 'timestamp', 'updatedBy']


class OrderSerializer(serializers.ModelSerializer):
    vendor = UserSummarySerializer(read_only=True)
    supplier = UserSummarySerializer(read_only=True)
    material = MaterialSummarySerializer(read_only=True)
    vendorAddress = AddressSummarySerializer(source='vendor_address', read_only=True)
    supplierAddress = AddressSummarySerializer(source='supplier_address', read_only=True)
    totalAmount = serializers.DecimalField(source='total_amount', max_digits=12, decimal_places=2, read_only=True)
    notes = OrderNoteSerializer(many=True, read_only=True)
    availableActions = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Order
        fields = ['id', 'vendor', 'supplier', 'material', 'vendorAddress', 'supplierAddress',
                  'quantity', 'totalAmount', 'status', 'notes', 'availableActions',
                  'createdAt', 'updatedAt']

    def get_availableActions(self, obj):
        return available_actions(obj.status)


class OrderCreateSerializer(serializers.Serializer):
    materialId = serializers.IntegerField(min_value=1)
    supplierId = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1)
    vendorAddressId = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    supplierAddressId = serializers.IntegerField(required=False, allow_null=True, min_value=1)


class OrderNoteInputSerializer(serializers.Serializer):
    note = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=1000)


class OrderRejectSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=1000)


class OrderStatusUpdateSerializer(OrderNoteInputSerializer):
    status = serializers.CharField()

    def validate_status(self, value):
        if value not in STATUSES:
            raise serializers.ValidationError(f"Invalid status '{value}'. Valid statuses: {', '.join(STATUSES)}")
        return value


class OrderStatusSerializer(serializers.ModelSerializer):
    """Lightweight status lookup"""
    orderId = serializers.IntegerField(source='id', read_only=True)
    currentStatus = serializers.CharField(source='status', read_only=True)
    vendor = UserSummarySerializer(read_only=True)
    supplierId = serializers.IntegerField(source='supplier_id', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = Order
        fields = ['orderId', 'currentStatus', 'vendor', 'supplierId', 'createdAt']


class OrderStatsSerializer(serializers.Serializer):
    totalOrders = serializers.IntegerField(source='total_orders')
    pendingOrders = serializers.SerializerMethodField()
    acceptedOrders = serializers.SerializerMethodField()
    preparingOrders = serializers.SerializerMethodField()
    packedOrders = serializers.SerializerMethodField()
    inTransitOrders = serializers.SerializerMethodField()
    outForDeliveryOrders = serializers.SerializerMethodField()
    deliveredOrders = serializers.SerializerMethodField()
    cancelledOrders = serializers.SerializerMethodField()
    rejectedOrders = serializers.SerializerMethodField()
    activeOrders = serializers.IntegerField(source='active_orders')
    completedOrders = serializers.IntegerField(source='completed_orders')
    totalAmount = serializers.DecimalField(source='total_amount', max_digits=14, decimal_places=2)
    averageOrderValue = serializers.DecimalField(source='average_order_value', max_digits=14, decimal_places=2)
    monthlyOrders = serializers.IntegerField(source='monthly_orders')
    monthlyAmount = serializers.DecimalField(source='monthly_amount', max_digits=14, decimal_places=2)

    def get_pendingOrders(self, stats):
        return stats.count('pending')

    def get_acceptedOrders(self, stats):
        return stats.count('accepted')

    def get_preparingOrders(self, stats):
        return stats.count('preparing')

    def get_packedOrders(self, stats):
        return stats.count('packed')

    def get_inTransitOrders(self, stats):
        return stats.count('in_transit')

    def get_outForDeliveryOrders(self, stats):
        return stats.count('out_for_delivery')

    def get_deliveredOrders(self, stats):
        return stats.count('delivered')

    def get_cancelledOrders(self, stats):
        return stats.count('cancelled')

    def get_rejectedOrders(self, stats):
        return stats.count('rejected')


class NearbyOrderSerializer(serializers.ModelSerializer):
    """Order as listed in supplier discovery, located at the vendor"""
    vendor = UserSummarySerializer(read_only=True)
    material = MaterialSummarySerializer(read_only=True)
    totalAmount = serializers.DecimalField(source='total_amount', max_digits=12, decimal_places=2, read_only=True)
    latitude = serializers.FloatField(read_only=True)
    longitude = serializers.FloatField(read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = Order
        fields = ['id', 'vendor', 'material', 'quantity', 'totalAmount', 'status',
                  'latitude', 'longitude', 'createdAt']
