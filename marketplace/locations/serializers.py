from rest_framework import serializers

from marketplace.core.serializers import UserSummarySerializer
from .models import Address
from .resolution import PERMISSION_STATES
from marketplace.core.exceptions import UpstreamUnavailable


class AddressSerializer(serializers.ModelSerializer):
    addressLine1 = serializers.CharField(source='address_line1')
    addressLine2 = serializers.CharField(source='address_line2', required=False, allow_blank=True)
    postalCode = serializers.CharField(source='postal_code')
    isDefault = serializers.BooleanField(source='is_default', required=False)
    latitude = serializers.FloatField(required=False, allow_null=True, min_value=-90, max_value=90)
    longitude = serializers.FloatField(required=False, allow_null=True, min_value=-180, max_value=180)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = Address
        fields = ['id', 'addressLine1', 'addressLine2', 'city', 'state', 'postalCode', 'country',
                  'landmark', 'isDefault', 'latitude', 'longitude', 'createdAt']

    def validate(self, attrs):
        # A location is atomic: both halves or neither
        instance = self.instance
        latitude = attrs.get('latitude', instance.latitude if instance else None)
        longitude = attrs.get('longitude', instance.longitude if instance else None)
        if (latitude is None) != (longitude is None):
            raise serializers.ValidationError('latitude and longitude must be provided together')
        return attrs


class AddressSummarySerializer(serializers.ModelSerializer):
    street = serializers.CharField(source='address_line1', read_only=True)
    pincode = serializers.CharField(source='postal_code', read_only=True)

    class Meta:
        model = Address
        fields = ['id', 'street', 'city', 'state', 'pincode', 'latitude', 'longitude']


class LocationReportSerializer(serializers.Serializer):
    """Device geolocation result as reported by the client"""
    latitude = serializers.FloatField(required=False, allow_null=True, min_value=-90, max_value=90)
    longitude = serializers.FloatField(required=False, allow_null=True, min_value=-180, max_value=180)
    error = serializers.ChoiceField(choices=UpstreamUnavailable.REASONS, required=False)
    permissionStatus = serializers.ChoiceField(choices=PERMISSION_STATES, required=False)
    supported = serializers.BooleanField(required=False, default=True)

    def validate(self, attrs):
        latitude = attrs.get('latitude')
        longitude = attrs.get('longitude')
        if (latitude is None) != (longitude is None):
            raise serializers.ValidationError('latitude and longitude must be provided together')
        if latitude is None and not attrs.get('error') and attrs.get('supported', True):
            raise serializers.ValidationError('Provide latitude and longitude, or an error reason')
        return attrs


class NearbySerializer(serializers.Serializer):
    """Distance annotation wrapped around a serialized entity"""
    distanceKm = serializers.SerializerMethodField()
    distance = serializers.CharField(source='distance_display')
    locationState = serializers.CharField(source='location_state')

    def get_distanceKm(self, annotated):
        if annotated.distance_km is None:
            return None
        return round(annotated.distance_km, 3)

    def to_representation(self, annotated):
        data = super().to_representation(annotated)
        entity_serializer = self.context['entity_serializer']
        return {**entity_serializer(annotated.entity, context=self.context).data, **data}


class NearbySupplierSerializer(UserSummarySerializer):
    latitude = serializers.FloatField(read_only=True)
    longitude = serializers.FloatField(read_only=True)
    city = serializers.CharField(read_only=True)

    class Meta(UserSummarySerializer.Meta):
        fields = UserSummarySerializer.Meta.fields + ['city', 'latitude', 'longitude']
