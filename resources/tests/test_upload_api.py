"""
Tests for the upload pipeline behind ``POST /api/resources/upload/``.

Covers authentication, file checks that happen before anything is
stored, and the cleanup of stored objects when a later step fails.
"""
import logging

import pytest
import requests
from django.apps import apps
from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import DatabaseError

from resources import storage as storage_module
from resources.models import Resource
from resources.storage import CloudinaryObjectStorage

UPLOAD_URL = "/api/resources/upload/"


def _pdf(name="calc.pdf", size=2 * 1024 * 1024):
    return SimpleUploadedFile(name, b"%PDF-1.4\n" + b"0" * (size - 9), content_type="application/pdf")


def _form(**overrides):
    data = {"title": "Calc Notes", "subject": "Math", "category": "notes", "description": "Week 1"}
    data.update(overrides)
    return {k: v for k, v in data.items() if v is not None}


@pytest.mark.django_db
def test_upload_creates_resource(client, storage, auth_header):
    resp = client.post(UPLOAD_URL, {**_form(), "file": _pdf()}, **auth_header())
    assert resp.status_code == 201
    body = resp.json()
    assert set(body) == {"id", "title", "fileUrl", "createdAt"}
    assert body["title"] == "Calc Notes"
    assert body["fileUrl"].startswith("https://res.cloudinary.com/")

    resource = Resource.objects.get(pk=body["id"])
    assert resource.download_count == 0
    assert resource.uploader_id == "user-1"
    assert resource.uploader_name == "Ada Lovelace"
    assert resource.file_name == "calc.pdf"
    assert resource.file_type == "application/pdf"
    assert resource.file_size == 2 * 1024 * 1024
    assert resource.storage_id in storage.objects


@pytest.mark.django_db
def test_upload_defaults_category_and_description(client, storage, auth_header):
    resp = client.post(
        UPLOAD_URL, {**_form(category=None, description=None), "file": _pdf()}, **auth_header()
    )
    assert resp.status_code == 201
    resource = Resource.objects.get(pk=resp.json()["id"])
    assert resource.category == Resource.CATEGORY_NOTES
    assert resource.description == ""


@pytest.mark.django_db
def test_uploader_name_falls_back_to_username(client, storage, auth_header):
    resp = client.post(UPLOAD_URL, {**_form(), "file": _pdf()}, **auth_header(name=None))
    assert resp.status_code == 201
    assert Resource.objects.get().uploader_name == "user-1"


@pytest.mark.django_db
def test_uploader_name_falls_back_to_email(client, storage, auth_header):
    header = auth_header(name=None, **{"cognito:username": None})
    resp = client.post(UPLOAD_URL, {**_form(), "file": _pdf()}, **header)
    assert resp.status_code == 201
    assert Resource.objects.get().uploader_name == "ada@example.com"


@pytest.mark.django_db
def test_upload_requires_token(client, storage):
    resp = client.post(UPLOAD_URL, {**_form(), "file": _pdf()})
    assert resp.status_code == 401
    assert storage.saved == []


@pytest.mark.django_db
def test_upload_rejects_invalid_token(client, storage):
    resp = client.post(UPLOAD_URL, {**_form(), "file": _pdf()}, HTTP_AUTHORIZATION="Bearer not-a-jwt")
    assert resp.status_code == 401
    assert storage.saved == []


@pytest.mark.django_db
def test_upload_without_file(client, storage, auth_header):
    resp = client.post(UPLOAD_URL, _form(), **auth_header())
    assert resp.status_code == 400
    assert "file" in resp.json()
    assert storage.saved == []


@pytest.mark.django_db
def test_upload_rejects_disallowed_type(client, storage, auth_header):
    exe = SimpleUploadedFile("setup.exe", b"MZ" + b"0" * 100, content_type="application/x-msdownload")
    resp = client.post(UPLOAD_URL, {**_form(), "file": exe}, **auth_header())
    assert resp.status_code == 400
    assert "not allowed" in resp.json()["file"][0]
    assert storage.saved == []


@pytest.mark.django_db
def test_oversized_file_rejected_before_storage_write(client, storage, auth_header, settings):
    settings.RESOURCE_UPLOAD_MAX_BYTES = 1024 * 1024
    resp = client.post(UPLOAD_URL, {**_form(), "file": _pdf()}, **auth_header())
    assert resp.status_code == 400
    assert "too large" in resp.json()["file"][0]
    assert storage.saved == []
    assert Resource.objects.count() == 0


@pytest.mark.django_db
def test_missing_title_cleans_up_stored_object(client, storage, auth_header):
    resp = client.post(UPLOAD_URL, {**_form(title=None), "file": _pdf()}, **auth_header())
    assert resp.status_code == 400
    assert "title" in resp.json()
    assert len(storage.saved) == 1
    assert storage.deleted == storage.saved
    assert storage.objects == {}
    assert Resource.objects.count() == 0


@pytest.mark.django_db
def test_blank_subject_cleans_up_stored_object(client, storage, auth_header):
    resp = client.post(UPLOAD_URL, {**_form(subject="   "), "file": _pdf()}, **auth_header())
    assert resp.status_code == 400
    assert "subject" in resp.json()
    assert storage.objects == {}


@pytest.mark.django_db
def test_unknown_category_is_rejected(client, storage, auth_header):
    resp = client.post(UPLOAD_URL, {**_form(category="memes"), "file": _pdf()}, **auth_header())
    assert resp.status_code == 400
    assert "category" in resp.json()
    assert storage.objects == {}
    assert Resource.objects.count() == 0


@pytest.mark.django_db
def test_cleanup_failure_does_not_mask_validation_error(client, storage, auth_header, caplog):
    storage.fail_delete = True
    with caplog.at_level(logging.ERROR, logger="resources"):
        resp = client.post(UPLOAD_URL, {**_form(title=None), "file": _pdf()}, **auth_header())
    assert resp.status_code == 400
    assert "title" in resp.json()
    assert "left behind" in caplog.text


@pytest.mark.django_db
def test_storage_failure_surfaces_upload_failed(client, storage, auth_header):
    storage.fail_save = True
    resp = client.post(UPLOAD_URL, {**_form(), "file": _pdf()}, **auth_header())
    assert resp.status_code == 500
    assert "Upload failed" in resp.json()["detail"]
    assert Resource.objects.count() == 0


@pytest.mark.django_db
def test_metadata_failure_removes_orphaned_object(client, storage, auth_header, monkeypatch):
    def boom(**kwargs):
        raise DatabaseError("database is down")

    monkeypatch.setattr(Resource.objects, "create", boom)
    resp = client.post(UPLOAD_URL, {**_form(), "file": _pdf()}, **auth_header())
    assert resp.status_code == 500
    assert "database is down" in resp.json()["detail"]
    assert len(storage.saved) == 1
    assert storage.objects == {}


@pytest.mark.django_db
def test_gateway_page_from_cloudinary_surfaces_upload_failed(client, auth_header, monkeypatch):
    class GatewayPage:
        status_code = 200
        text = "<html>502 Bad Gateway</html>"

        def json(self):
            raise requests.JSONDecodeError("Expecting value", self.text, 0)

    backend = CloudinaryObjectStorage(cloud_name="demo", api_key="key", api_secret="secret")
    monkeypatch.setattr(apps.get_app_config("resources"), "storage", backend)
    monkeypatch.setattr(storage_module.requests, "post", lambda *a, **kw: GatewayPage())

    resp = client.post(UPLOAD_URL, {**_form(), "file": _pdf()}, **auth_header())
    assert resp.status_code == 500
    assert "Upload failed" in resp.json()["detail"]
    assert Resource.objects.count() == 0
