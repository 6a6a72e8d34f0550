"""
Object storage clients for uploaded resources.

Two backends implement the same small interface: ``save`` an uploaded
file and get back where it lives, ``delete`` it again by object id.

* ``CloudinaryObjectStorage`` talks to Cloudinary's upload API over
  ``requests`` with signed parameters.
* ``DjangoObjectStorage`` goes through Django's storage API, which is S3
  (``django-storages``) in production and whatever ``STORAGES["default"]``
  says elsewhere.

The backend named in ``settings.RESOURCE_STORAGE`` is built once at
startup by ``build_object_storage`` and injected where it is needed.
"""
import hashlib
import logging
import os
import time
from dataclasses import dataclass
from uuid import uuid4

import requests
from django.conf import settings
from django.core.files.storage import default_storage
from django.utils.module_loading import import_string
from django.utils.text import get_valid_filename

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when the object store rejects or fails a request."""


@dataclass
class StoredObject:
    url: str
    object_id: str | None
    size: int
    content_type: str


class ObjectStorage:
    """Interface shared by the storage backends."""

    def save(self, upload) -> StoredObject:
        raise NotImplementedError

    def delete(self, object_id: str) -> None:
        raise NotImplementedError


# MIME types Cloudinary must store as "raw" rather than as images
RAW_MIME_TYPES = {
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "text/plain",
    "application/zip",
    "application/x-7z-compressed",
}


def cloudinary_resource_type(content_type: str) -> str:
    return "raw" if content_type in RAW_MIME_TYPES else "image"


class CloudinaryObjectStorage(ObjectStorage):
    """
    Cloudinary upload API client.

    Object ids have the form ``<resource_type>:<public_id>`` because the
    destroy endpoint is scoped by resource type.
    """

    api_base = "https://api.cloudinary.com/v1_1"

    def __init__(self, cloud_name="", api_key="", api_secret="", folder="resources", timeout=60):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.folder = folder
        self.timeout = timeout

    def _sign(self, params: dict) -> str:
        payload = "&".join(f"{k}={params[k]}" for k in sorted(params) if params[k] not in (None, ""))
        return hashlib.sha1((payload + self.api_secret).encode("utf-8")).hexdigest()

    def _signed(self, params: dict) -> dict:
        params = {**params, "timestamp": int(time.time())}
        params["signature"] = self._sign(params)
        params["api_key"] = self.api_key
        return params

    def _endpoint(self, resource_type: str, action: str) -> str:
        return f"{self.api_base}/{self.cloud_name}/{resource_type}/{action}"

    def _public_id(self, filename: str, resource_type: str) -> str:
        stem, ext = os.path.splitext(get_valid_filename(filename) or "file")
        # raw assets keep their extension in the public id, images do not
        suffix = ext if resource_type == "raw" else ""
        return f"{stem}_{uuid4().hex[:8]}{suffix}"

    def save(self, upload) -> StoredObject:
        content_type = getattr(upload, "content_type", "") or "application/octet-stream"
        resource_type = cloudinary_resource_type(content_type)
        params = self._signed({
            "folder": self.folder,
            "public_id": self._public_id(upload.name, resource_type),
        })
        upload.seek(0)
        try:
            resp = requests.post(
                self._endpoint(resource_type, "upload"),
                data=params,
                files={"file": (upload.name, upload, content_type)},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise StorageError(f"Cloudinary upload failed: {e}") from e

        if resp.status_code != 200:
            raise StorageError(
                f"Cloudinary upload failed: status={resp.status_code} body={resp.text[:300]!r}"
            )

        try:
            data = resp.json()
        except ValueError as e:
            raise StorageError(f"Cloudinary upload returned a non-JSON body: {resp.text[:300]!r}") from e

        url = data.get("secure_url") or data.get("url")
        if not url:
            raise StorageError(f"Cloudinary upload response has no URL: {data!r}")
        public_id = data.get("public_id")
        logger.info("Stored %s on Cloudinary as %s/%s", upload.name, resource_type, public_id)
        return StoredObject(
            url=url,
            object_id=f"{data.get('resource_type', resource_type)}:{public_id}" if public_id else None,
            size=int(data.get("bytes") or upload.size),
            content_type=content_type,
        )

    def delete(self, object_id: str) -> None:
        resource_type, _, public_id = object_id.partition(":")
        if not public_id:
            resource_type, public_id = "image", object_id

        try:
            resp = requests.post(
                self._endpoint(resource_type, "destroy"),
                data=self._signed({"public_id": public_id}),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise StorageError(f"Cloudinary destroy failed: {e}") from e

        result = None
        if resp.status_code == 200:
            try:
                result = resp.json().get("result")
            except ValueError as e:
                raise StorageError(f"Cloudinary destroy of {object_id} returned a non-JSON body") from e
        if result != "ok":
            raise StorageError(
                f"Cloudinary destroy of {object_id} failed: status={resp.status_code} result={result!r}"
            )
        logger.info("Deleted %s from Cloudinary", object_id)


class DjangoObjectStorage(ObjectStorage):
    """Stores resources through Django's default file storage."""

    def __init__(self, location="resources", storage=None):
        self.location = location
        self.storage = storage or default_storage

    def save(self, upload) -> StoredObject:
        key = f"{self.location}/{uuid4()}_{get_valid_filename(upload.name) or 'file'}"
        try:
            saved_path = self.storage.save(key, upload)  # uploads to S3 if configured
            url = self.storage.url(saved_path)
        except Exception as e:
            raise StorageError(f"Storage write failed: {e}") from e

        logger.info("Stored %s as %s", upload.name, saved_path)
        return StoredObject(
            url=url,
            object_id=saved_path,
            size=upload.size,
            content_type=getattr(upload, "content_type", "") or "application/octet-stream",
        )

    def delete(self, object_id: str) -> None:
        try:
            self.storage.delete(object_id)
        except Exception as e:
            raise StorageError(f"Storage delete of {object_id} failed: {e}") from e


def build_object_storage(config=None) -> ObjectStorage:
    """Instantiate the backend described by ``settings.RESOURCE_STORAGE``."""
    config = config or settings.RESOURCE_STORAGE
    backend = import_string(config["BACKEND"])
    return backend(**config.get("OPTIONS", {}))
