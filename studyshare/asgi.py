"""
ASGI entry point for the StudyShare backend.

Request handlers are I/O bound (identity provider, object storage and the
database); serving through ASGI keeps one slow request from holding up
the others.  The default settings module is the development configuration.
"""

import os

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "studyshare.settings.dev")

from django.conf import settings  # noqa: E402
from django.core.asgi import get_asgi_application  # noqa: E402
from django.contrib.staticfiles.handlers import ASGIStaticFilesHandler  # noqa: E402

application = get_asgi_application()

# Serve /static/ when running under uvicorn in DEBUG mode
if settings.DEBUG:
    application = ASGIStaticFilesHandler(application)
