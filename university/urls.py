"""
URL configuration for the university portal project.

The API lives under ``/api/v1/``; OpenAPI documentation is exposed at
``/swagger/`` and ``/redoc/`` and Prometheus metrics at ``/metrics``.
"""
from django.contrib import admin
from django.urls import include, path

from drf_yasg import openapi
from drf_yasg.views import get_schema_view
from rest_framework import permissions

from portal.views.health import healthz

# API metadata for Swagger/OpenAPI documentation
api_info = openapi.Info(
    title="University Portal API",
    default_version='v1',
    description="Backend services for the university administration portal.",
)

schema_view = get_schema_view(
    api_info,
    public=True,
    permission_classes=(permissions.AllowAny,),
)

urlpatterns = [
    path('admin/', admin.site.urls),
    path('healthz', healthz, name='healthz'),
    path('api/v1/', include('portal.routers')),
    path('', include('django_prometheus.urls')),
    path('swagger/', schema_view.with_ui('swagger', cache_timeout=0), name='schema-swagger-ui'),
    path('redoc/', schema_view.with_ui('redoc', cache_timeout=0), name='schema-redoc'),
]
