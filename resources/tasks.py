# resources/tasks.py
import logging

from celery import shared_task
from rest_framework.exceptions import NotFound

from .services import increment_download_count

logger = logging.getLogger(__name__)


@shared_task(ignore_result=True)
def increment_download_count_task(resource_id: str) -> int | None:
    """
    Count one download in the background.  Nobody waits on this task, so
    a missing resource is logged rather than raised.
    """
    try:
        count = increment_download_count(resource_id)
    except NotFound:
        logger.warning("Download counted for unknown resource %s", resource_id)
        return None
    logger.debug("Resource %s now has %s downloads", resource_id, count)
    return count
