from django.contrib.auth.password_validation import validate_password
from django.utils import timezone
from rest_framework import serializers

from .models import User, AuditLog


class UserSummarySerializer(serializers.ModelSerializer):
    """Counterpart identity embedded in orders and discovery results"""
    fullname = serializers.CharField(source='get_full_name', read_only=True)
    businessName = serializers.CharField(source='business_name', read_only=True)

    class Meta:
        model = User
        fields = ['id', 'fullname', 'businessName', 'email', 'phone']


class UserSerializer(serializers.ModelSerializer):
    firstName = serializers.CharField(source='first_name', required=False, allow_blank=True)
    lastName = serializers.CharField(source='last_name', required=False, allow_blank=True)
    businessName = serializers.CharField(source='business_name', required=False, allow_blank=True)
    businessType = serializers.CharField(source='business_type', required=False, allow_blank=True)
    businessAddress = serializers.CharField(source='business_address', required=False, allow_blank=True)
    onboardingCompleted = serializers.BooleanField(source='onboarding_completed', required=False)
    onboardingDate = serializers.DateTimeField(source='onboarding_date', read_only=True)
    locationPermission = serializers.CharField(source='location_permission', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = User
        fields = [
            'id', 'username', 'email', 'firstName', 'lastName', 'phone', 'role',
            'businessName', 'businessType', 'businessAddress', 'city', 'state', 'pincode',
            'onboardingCompleted', 'onboardingDate',
            'latitude', 'longitude', 'locationPermission', 'createdAt',
        ]
        read_only_fields = ['id', 'username', 'role', 'latitude', 'longitude']

    def update(self, instance, validated_data):
        # Stamp the first completion of onboarding
        if validated_data.get('onboarding_completed') and not instance.onboarding_completed:
            validated_data['onboarding_date'] = timezone.now()
        return super().update(instance, validated_data)


class UserCreateSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, validators=[validate_password])
    passwordConfirm = serializers.CharField(write_only=True)
    role = serializers.ChoiceField(choices=User.ROLE_CHOICES)
    firstName = serializers.CharField(source='first_name', required=False, allow_blank=True)
    lastName = serializers.CharField(source='last_name', required=False, allow_blank=True)

    class Meta:
        model = User
        fields = ['username', 'email', 'password', 'passwordConfirm', 'role', 'firstName', 'lastName', 'phone']

    def validate(self, attrs):
        if attrs['password'] != attrs['passwordConfirm']:
            raise serializers.ValidationError({"password": "Passwords don't match"})
        return attrs

    def create(self, validated_data):
        validated_data.pop('passwordConfirm')
        password = validated_data.pop('password')
        user = User(**validated_data, is_active=True)
        user.set_password(password)
        user.save()
        return user


class AuditLogSerializer(serializers.ModelSerializer):
    user = UserSummarySerializer(read_only=True)
    modelName = serializers.CharField(source='model_name', read_only=True)
    objectId = serializers.CharField(source='object_id', read_only=True)
    objectName = serializers.CharField(source='object_name', read_only=True)
    objectReference = serializers.CharField(source='object_reference', read_only=True)
    ipAddress = serializers.IPAddressField(source='ip_address', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = AuditLog
        fields = ['id', 'user', 'action', 'modelName', 'objectId', 'objectName',
                  'objectReference', 'changes', 'ipAddress', 'createdAt']
