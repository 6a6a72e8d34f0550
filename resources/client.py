# resources/client.py
"""
Python client for the StudyShare resources API.

Besides thin wrappers over the endpoints, ``StudyShareClient.download``
implements the download flow used by front ends:

1. count the download in the background (the result is only logged),
2. fetch ``fileUrl`` directly and, once the whole body has arrived,
   write it to ``destination``,
3. if that fails, open the forced-attachment URL in a browser,
4. if that fails too, hand the raw ``fileUrl`` back to show the user.

Each step is tried once and only after the previous one failed.
"""
import logging
import shutil
import tempfile
import webbrowser
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

import requests

from .download_urls import add_attachment_flag

logger = logging.getLogger(__name__)

TIER_DIRECT = "direct"
TIER_ATTACHMENT = "attachment"
TIER_LINK = "link"


class StudyShareAPIError(Exception):
    def __init__(self, status_code, detail):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"{status_code}: {detail}")


@dataclass
class DownloadOutcome:
    tier: str
    location: str


class StudyShareClient:
    def __init__(self, base_url, token=None, session=None, executor=None,
                 opener=webbrowser.open, timeout=30, count_session=None):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.session = session or requests.Session()
        # used only from the executor thread
        self.count_session = count_session or requests.Session()
        self.executor = executor or ThreadPoolExecutor(max_workers=2)
        self.opener = opener
        self.timeout = timeout

    def _url(self, path):
        return f"{self.base_url}/api/resources/{path}"

    def _headers(self):
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    def _json(self, resp):
        if resp.status_code >= 400:
            try:
                detail = resp.json()
            except ValueError:
                detail = resp.text[:300]
            raise StudyShareAPIError(resp.status_code, detail)
        return resp.json()

    def list_resources(self, **filters) -> list[dict]:
        resp = self.session.get(self._url(""), params=filters, timeout=self.timeout)
        return self._json(resp)["resources"]

    def get_resource(self, resource_id) -> dict:
        resp = self.session.get(self._url(f"{resource_id}/"), timeout=self.timeout)
        return self._json(resp)["resource"]

    def upload(self, fileobj, filename, content_type, title, subject,
               description="", category="notes") -> dict:
        resp = self.session.post(
            self._url("upload/"),
            headers=self._headers(),
            data={"title": title, "subject": subject,
                  "description": description, "category": category},
            files={"file": (filename, fileobj, content_type)},
            timeout=self.timeout,
        )
        return self._json(resp)

    def increment_download_count(self, resource_id, session=None) -> int:
        resp = (session or self.session).put(
            self._url(f"{resource_id}/download/"), timeout=self.timeout
        )
        return self._json(resp)["downloadCount"]

    def get_download_url(self, resource_id) -> dict:
        resp = self.session.get(
            self._url(f"{resource_id}/download-url/"), headers=self._headers(), timeout=self.timeout
        )
        return self._json(resp)

    def delete(self, resource_id) -> str:
        resp = self.session.delete(
            self._url(f"{resource_id}/"), headers=self._headers(), timeout=self.timeout
        )
        return self._json(resp)["message"]

    def _count_in_background(self, resource_id):
        def _log_result(future):
            exc = future.exception()
            if exc is not None:
                logger.warning("Download count update failed for %s: %s", resource_id, exc)
            else:
                logger.debug("Download count for %s is now %s", resource_id, future.result())

        future = self.executor.submit(self.increment_download_count, resource_id, self.count_session)
        future.add_done_callback(_log_result)
        return future

    def download(self, resource: dict, destination) -> DownloadOutcome:
        """
        Download ``resource`` (as returned by the API) into ``destination``,
        a writable binary file object.  See the module docstring for the
        fallback order.
        """
        file_url = resource["fileUrl"]
        self._count_in_background(resource["id"])

        # destination is written only once the whole body has arrived
        with tempfile.SpooledTemporaryFile(max_size=8 * 1024 * 1024) as buffer:
            try:
                resp = self.session.get(file_url, stream=True, timeout=self.timeout)
                resp.raise_for_status()
                for chunk in resp.iter_content(chunk_size=64 * 1024):
                    buffer.write(chunk)
            except requests.RequestException as e:
                logger.warning("Direct download of %s failed: %s", file_url, e)
            else:
                buffer.seek(0)
                shutil.copyfileobj(buffer, destination)
                return DownloadOutcome(TIER_DIRECT, file_url)

        attachment_url = add_attachment_flag(file_url)
        try:
            if self.opener(attachment_url):
                return DownloadOutcome(TIER_ATTACHMENT, attachment_url)
            logger.warning("No browser available to open %s", attachment_url)
        except Exception as e:
            logger.warning("Opening %s failed: %s", attachment_url, e)

        return DownloadOutcome(TIER_LINK, file_url)

    def close(self):
        self.executor.shutdown(wait=True)
        self.count_session.close()
        self.session.close()
