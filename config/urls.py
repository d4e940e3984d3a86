"""
URL configuration for the CMS admin API.
"""
from django.contrib import admin
from django.urls import path, include
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

urlpatterns = [
    path('admin/', admin.site.urls),

    # API Documentation
    path('schema/', SpectacularAPIView.as_view(), name='schema'),
    path('schema/swagger/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),

    # API v1
    path('v1/', include('apps.core.urls')),  # Health

    # RBAC endpoints
    path('v1/', include('apps.rbac.urls')),  # User access, roles, permissions, audit logs

    # Navigation
    path('v1/', include('apps.menus.urls')),  # Permission-filtered menu
]
