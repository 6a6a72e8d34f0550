import time

from django.conf import settings
from django.http import JsonResponse
from django.utils import timezone

_STARTED_AT = time.monotonic()


def index(request):
    return JsonResponse({
        "message": "StudyShare backend API is running",
        "version": "1.0.0",
        "endpoints": {
            "resources": "/api/resources/",
            "docs": "/api/docs/",
            "health": "/health/",
        },
    })


def health(request):
    return JsonResponse({
        "status": "OK",
        "message": "Server is running",
        "timestamp": timezone.now().isoformat(),
        "uptime": round(time.monotonic() - _STARTED_AT, 3),
        "environment": getattr(settings, "ENVIRONMENT", "development"),
    })


def not_found(request, exception=None):
    return JsonResponse(
        {"success": False, "error": "Route not found", "path": request.path},
        status=404,
    )
