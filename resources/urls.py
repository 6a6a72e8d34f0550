"""
URL patterns for the resources app.

A DRF router generates ``/resources/``, ``/resources/<id>/`` and the
action routes (``upload/``, ``mine/``, ``<id>/download/``,
``<id>/download-url/``, ``<id>/file/``).  Included under ``/api/``.
"""
from rest_framework.routers import DefaultRouter

from .views import ResourceViewSet

router = DefaultRouter()
router.register(r"resources", ResourceViewSet, basename="resource")

urlpatterns = router.urls
