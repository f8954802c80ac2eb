from rest_framework import serializers

from marketplace.core.serializers import UserSummarySerializer
from .models import Material


class MaterialSerializer(serializers.ModelSerializer):
    supplier = UserSummarySerializer(read_only=True)
    pricePerUnit = serializers.DecimalField(source='price_per_unit', max_digits=10, decimal_places=2, min_value=0)
    availableQuantity = serializers.IntegerField(source='available_quantity', required=False, min_value=0)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Material
        fields = ['id', 'supplier', 'name', 'description', 'pricePerUnit', 'availableQuantity',
                  'unit', 'category', 'status', 'createdAt', 'updatedAt']


class MaterialSummarySerializer(serializers.ModelSerializer):
    pricePerUnit = serializers.DecimalField(source='price_per_unit', max_digits=10, decimal_places=2, read_only=True)

    class Meta:
        model = Material
        fields = ['id', 'name', 'pricePerUnit', 'unit']
