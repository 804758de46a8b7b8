"""
URL configuration for foodmatch project.
"""

from django.contrib import admin
from django.urls import path, include
from django.http import JsonResponse


def health_check(request):
    """Health check endpoint"""
    import django
    from django.db import connection
    from django.conf import settings

    health_data = {
        "status": "healthy",
        "service": "foodmatch",
        "version": "1.0.0",
        "django_version": django.get_version(),
    }

    # Database connection test
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            health_data["database"] = "connected"
            health_data["database_engine"] = settings.DATABASES["default"]["ENGINE"]
    except Exception as e:
        # Report the database problem without failing the health check
        health_data["database"] = f"error: {str(e)[:100]}"
        health_data["database_engine"] = settings.DATABASES["default"].get(
            "ENGINE", "unknown"
        )

    return JsonResponse(health_data)


urlpatterns = [
    path("", health_check),
    path("health/", health_check),
    path("api/v1/health/", health_check),
    path("admin/", admin.site.urls),
    path("api/v1/foods/", include("foods.urls")),
]
