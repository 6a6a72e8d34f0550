"""
Test settings for the StudyShare backend.

Uses an in-memory SQLite database, runs Celery tasks inline and points
token verification at a fixed fake Cognito pool whose signing keys are
primed by the test fixtures.
"""
from .base import *  # noqa

DEBUG = False
ENVIRONMENT = "test"
ALLOWED_HOSTS = ["testserver", "localhost"]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.InMemoryStorage"},
    "staticfiles": {"BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage"},
}
RESOURCE_STORAGE = {
    "BACKEND": "resources.storage.DjangoObjectStorage",
    "OPTIONS": {"location": "resources"},
}

COGNITO_REGION = "us-east-1"
COGNITO_USER_POOL_ID = "us-east-1_TestPool"
COGNITO_APP_CLIENT_ID = "test-client-id"

CELERY_TASK_ALWAYS_EAGER = True
CELERY_BROKER_URL = "memory://"
CELERY_RESULT_BACKEND = None
