"""
Error types raised along the resource lifecycle.

The API-facing ones are DRF exceptions so they render with the right
status code; ``StorageInconsistency`` never reaches a client and is only
logged when a compensating storage delete fails.
"""
from rest_framework import status
from rest_framework.exceptions import APIException, PermissionDenied, ValidationError


class InvalidUpload(ValidationError):
    """The attached file is missing, of a disallowed type or too large."""
    default_detail = "No file uploaded or file validation failed"
    default_code = "invalid_upload"


class Forbidden(PermissionDenied):
    default_detail = "Not authorized to delete this resource"


class UploadFailed(APIException):
    """Storage or metadata write failed after validation passed."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Upload failed"
    default_code = "upload_failed"


class StorageInconsistency(Exception):
    """A stored object could not be removed; storage and database disagree."""

    def __init__(self, object_id, reason, cause=None):
        self.object_id = object_id
        self.reason = reason
        self.cause = cause
        super().__init__(f"stored object {object_id} left behind ({reason}): {cause}")
