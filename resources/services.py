"""
Resource lifecycle operations.

Views stay thin; the work lives here so it can be driven from tasks and
tests with an injected storage client.

* ``UploadPipeline`` writes the file to object storage first and the
  ``Resource`` row second, removing the stored object again when anything
  after the storage write fails.
* ``increment_download_count`` bumps the counter in the database with an
  ``F()`` expression so concurrent downloads never lose an update.
* ``delete_resource`` removes the stored object (best effort) and then the
  row.

Compensating storage deletes are advisory: a failure is logged as a
``StorageInconsistency`` and the caller still sees the primary outcome.
"""
import logging

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, transaction
from django.db.models import F
from rest_framework.exceptions import NotFound, ValidationError

from .download_urls import add_attachment_flag
from .exceptions import InvalidUpload, StorageInconsistency, UploadFailed
from .models import Resource
from .serializers import ResourceUploadSerializer
from .storage import StorageError

logger = logging.getLogger(__name__)


def discard_stored_object(storage, object_id, reason: str) -> bool:
    """Best-effort removal of a stored object. Returns True if it went away."""
    if not object_id:
        logger.warning("No storage object id to discard (%s)", reason)
        return False
    try:
        storage.delete(object_id)
    except Exception as e:
        logger.error("%s", StorageInconsistency(object_id, reason, e))
        return False
    logger.info("Discarded stored object %s (%s)", object_id, reason)
    return True


def _megabytes(size: int) -> str:
    return f"{size / (1024 * 1024):g}MB"


class UploadPipeline:
    """Validate one inbound file, store it, then record it."""

    def __init__(self, storage, max_bytes=None, allowed_types=None):
        self.storage = storage
        self.max_bytes = max_bytes if max_bytes is not None else settings.RESOURCE_UPLOAD_MAX_BYTES
        self.allowed_types = list(
            allowed_types if allowed_types is not None else settings.RESOURCE_ALLOWED_MIME_TYPES
        )

    def check_file(self, upload) -> None:
        if upload is None:
            raise InvalidUpload({"file": ["No file uploaded or file validation failed"]})

        content_type = getattr(upload, "content_type", "") or ""
        if content_type not in self.allowed_types:
            raise InvalidUpload({"file": [
                f"File type {content_type or 'unknown'} is not allowed. "
                f"Allowed types: {', '.join(self.allowed_types)}"
            ]})

        if not upload.size:
            raise InvalidUpload({"file": ["The uploaded file is empty"]})
        if upload.size > self.max_bytes:
            raise InvalidUpload({"file": [
                f"File too large. Maximum size is {_megabytes(self.max_bytes)}"
            ]})

    def run(self, identity, upload, data) -> Resource:
        self.check_file(upload)

        try:
            stored = self.storage.save(upload)
        except StorageError as e:
            logger.error("Storage write failed for %s: %s", upload.name, e)
            raise UploadFailed(f"Upload failed: {e}") from e

        serializer = ResourceUploadSerializer(data=data)
        if not serializer.is_valid():
            discard_stored_object(self.storage, stored.object_id, "upload validation failed")
            raise ValidationError(serializer.errors)

        fields = serializer.validated_data
        try:
            with transaction.atomic():
                resource = Resource.objects.create(
                    title=fields["title"],
                    description=fields.get("description", ""),
                    subject=fields["subject"],
                    category=fields["category"],
                    file_url=stored.url,
                    file_name=upload.name,
                    file_type=stored.content_type,
                    file_size=stored.size,
                    storage_id=stored.object_id or "",
                    uploader_id=identity.id,
                    uploader_name=identity.display_name,
                )
        except DatabaseError as e:
            logger.exception("Saving resource metadata failed for %s", upload.name)
            discard_stored_object(self.storage, stored.object_id, "metadata write failed")
            raise UploadFailed(f"Upload failed: {e}") from e

        logger.info("Resource %s uploaded by %s", resource.pk, identity.id)
        return resource


def _resources_by_id(resource_id):
    try:
        return Resource.objects.filter(pk=resource_id)
    except (TypeError, ValueError, DjangoValidationError):
        raise NotFound("Resource not found")


def increment_download_count(resource_id) -> int:
    """Atomically add one download and return the new count."""
    qs = _resources_by_id(resource_id)
    try:
        updated = qs.update(download_count=F("download_count") + 1)
    except (TypeError, ValueError, DjangoValidationError):
        raise NotFound("Resource not found")
    if not updated:
        raise NotFound("Resource not found")
    return qs.values_list("download_count", flat=True).get()


def schedule_download_count(resource_id) -> None:
    """Queue a download count increment without waiting for it."""
    from .tasks import increment_download_count_task

    try:
        increment_download_count_task.delay(str(resource_id))
    except Exception as e:
        logger.warning("Could not dispatch download count for %s: %s", resource_id, e)


def resolve_download_url(resource: Resource) -> dict:
    return {
        "downloadUrl": add_attachment_flag(resource.file_url),
        "fileName": resource.file_name,
        "fileType": resource.file_type,
    }


def delete_resource(resource: Resource, storage) -> None:
    """Remove the stored object, then the metadata row."""
    resource_id = resource.pk
    if resource.storage_id:
        discard_stored_object(storage, resource.storage_id, f"resource {resource_id} deleted")
    resource.delete()
    logger.info("Resource %s deleted by its uploader", resource_id)
