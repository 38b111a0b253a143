"""URL configuration for the MOOVY backend.

The `urlpatterns` list routes URLs to views. It includes Django admin,
the application routers and the OpenAPI schema.
"""
from django.contrib import admin  # type: ignore
from django.urls import path, include  # type: ignore
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView  # type: ignore

# API versioning. v1 is our initial version; future versions can be added here.

urlpatterns = [
    path('admin/', admin.site.urls),
    # Application URLs
    path('api/v1/users/', include('apps.users.urls')),
    path('api/v1/vehicles/', include('apps.vehicles.urls')),
    path('api/v1/bookings/', include('apps.bookings.urls')),
    path('api/v1/notifications/', include('apps.notifications.urls')),
    path('api/v1/reviews/', include('apps.reviews.urls')),
    # API schema
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
]
