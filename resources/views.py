"""
ViewSet for the resources app.

The catalog (list, detail, download counting) is public; uploading,
resolving a download URL and deleting need a verified bearer token, and
deleting additionally needs the caller to be the uploader.  Storage is
the client built at startup by ``ResourcesConfig`` unless a view is
constructed with its own.
"""
import logging

import requests
from django.apps import apps
from django.conf import settings
from django.http import HttpResponseRedirect, StreamingHttpResponse
from django.utils.http import content_disposition_header
from rest_framework import mixins, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.response import Response

from .download_urls import add_attachment_flag
from .filters import ResourceFilter
from .models import Resource
from .permissions import authorize_delete
from .serializers import ResourceSerializer, UploadReceiptSerializer
from .services import (
    UploadPipeline,
    delete_resource,
    increment_download_count,
    resolve_download_url,
    schedule_download_count,
)

logger = logging.getLogger(__name__)

AUTHENTICATED_ACTIONS = {"upload", "download_url", "destroy", "mine"}


class _Relay:
    """Streams an upstream response; Django calls ``close`` when the response ends."""

    def __init__(self, upstream):
        self.upstream = upstream

    def __iter__(self):
        return self.upstream.iter_content(chunk_size=64 * 1024)

    def close(self):
        self.upstream.close()


class ResourceViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    """
    Shared catalog of uploaded study resources.  Lists are newest first and
    wrapped as ``{count, resources}``; single resources as ``{resource}``.
    """
    queryset = Resource.objects.all()
    serializer_class = ResourceSerializer
    filterset_class = ResourceFilter
    storage = None

    def get_permissions(self):
        if self.action in AUTHENTICATED_ACTIONS:
            return [permissions.IsAuthenticated()]
        return [permissions.AllowAny()]

    def get_queryset(self):
        return Resource.objects.all().order_by("-created_at")

    def get_storage(self):
        return self.storage or apps.get_app_config("resources").storage

    def _catalog(self, queryset):
        resources = self.get_serializer(queryset, many=True).data
        return Response({"count": len(resources), "resources": resources})

    def list(self, request, *args, **kwargs):
        return self._catalog(self.filter_queryset(self.get_queryset()))

    def retrieve(self, request, *args, **kwargs):
        return Response({"resource": self.get_serializer(self.get_object()).data})

    @action(detail=False, methods=["get"])
    def mine(self, request):
        qs = self.filter_queryset(self.get_queryset()).filter(uploader_id=request.user.id)
        return self._catalog(qs)

    @action(detail=False, methods=["post"])
    def upload(self, request):
        pipeline = UploadPipeline(self.get_storage())
        resource = pipeline.run(request.user, request.FILES.get("file"), request.data)
        return Response(UploadReceiptSerializer(resource).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["put"])
    def download(self, request, pk=None):
        resource = self.get_object()
        count = increment_download_count(resource.pk)
        try:
            resource.refresh_from_db()
        except Resource.DoesNotExist:
            raise NotFound("Resource not found")
        return Response({"downloadCount": count, "resource": self.get_serializer(resource).data})

    @action(detail=True, methods=["get"], url_path="download-url")
    def download_url(self, request, pk=None):
        return Response(resolve_download_url(self.get_object()))

    @action(detail=True, methods=["get"])
    def file(self, request, pk=None):
        """
        Proxy download that forces an attachment.  The download is counted
        in the background; if storage cannot be read the client is sent to
        the forced-attachment URL instead.
        """
        resource = self.get_object()
        schedule_download_count(resource.pk)

        try:
            upstream = requests.get(
                resource.file_url, stream=True, timeout=settings.RESOURCE_FETCH_TIMEOUT
            )
        except requests.RequestException as e:
            logger.warning("Fetching %s from storage failed: %s", resource.pk, e)
            return HttpResponseRedirect(add_attachment_flag(resource.file_url))

        if upstream.status_code != 200:
            logger.warning(
                "Fetching %s from storage failed: status=%s", resource.pk, upstream.status_code
            )
            upstream.close()
            return HttpResponseRedirect(add_attachment_flag(resource.file_url))

        response = StreamingHttpResponse(
            _Relay(upstream),
            content_type=resource.file_type or upstream.headers.get("content-type", "application/octet-stream"),
        )
        response["Content-Disposition"] = content_disposition_header(True, resource.file_name)
        return response

    def destroy(self, request, *args, **kwargs):
        resource = self.get_object()
        authorize_delete(resource, request.user)
        delete_resource(resource, self.get_storage())
        return Response({"message": "Resource deleted successfully"})
