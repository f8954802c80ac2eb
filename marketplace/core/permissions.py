from rest_framework.permissions import BasePermission


class IsVendor(BasePermission):
    message = 'Only vendors can perform this action'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and getattr(user, 'role', None) == 'vendor')


class IsSupplier(BasePermission):
    message = 'Only suppliers can perform this action'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and getattr(user, 'role', None) == 'supplier')
