from django.urls import path
from .views import (
    CustomTokenObtainPairView, CustomTokenRefreshView, register,
    user_profile, audit_log_list,
)

urlpatterns = [
    # Auth endpoints
    path('auth/register/', register, name='register'),
    path('auth/login/', CustomTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('auth/refresh/', CustomTokenRefreshView.as_view(), name='token_refresh'),

    # Profile / onboarding
    path('user/profile/', user_profile, name='user-profile'),

    # AuditLog endpoints
    path('audit-logs/', audit_log_list, name='audit-log-list'),
]
