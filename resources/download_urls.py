"""
Forced-download URLs for stored resources.

Cloudinary serves a stored file inline unless the delivery URL carries
the ``fl_attachment`` flag as a path segment right after the delivery
type (``.../image/upload/fl_attachment/v1712/resources/notes.png``).
``add_attachment_flag`` rewrites a retrieval URL into that form by
working on the list of path segments rather than on string offsets.
"""
import re
from urllib.parse import urlsplit, urlunsplit

from django.conf import settings

ATTACHMENT_FLAG = "fl_attachment"
UPLOAD_SEGMENT = "upload"
RAW_SEGMENT = "raw"
DEFAULT_ATTACHMENT_DOMAIN = "cloudinary.com"

_VERSION_RE = re.compile(r"^v\d+$")


def _is_provider_host(hostname: str, domain: str) -> bool:
    hostname = (hostname or "").lower()
    domain = domain.lower()
    return hostname == domain or hostname.endswith("." + domain)


def _index_of(segments, name, start=0):
    try:
        return segments.index(name, start)
    except ValueError:
        return None


def _has_flag(segment: str) -> bool:
    # fl_attachment may carry a download name: fl_attachment:my_notes
    return segment == ATTACHMENT_FLAG or segment.startswith(ATTACHMENT_FLAG + ":")


def _insertion_point(segments):
    """Index at which the flag segment belongs, or None."""
    upload = _index_of(segments, UPLOAD_SEGMENT)
    if upload is not None:
        return upload + 1

    raw = _index_of(segments, RAW_SEGMENT)
    if raw is not None:
        nested = _index_of(segments, UPLOAD_SEGMENT, raw + 1)
        return (nested if nested is not None else raw) + 1

    # Best effort for unexpected shapes: in front of the version segment
    for i, segment in enumerate(segments):
        if _VERSION_RE.match(segment):
            return i
    return None


def add_attachment_flag(url: str, domain: str | None = None) -> str:
    """
    Return ``url`` rewritten so the browser downloads instead of rendering.

    URLs outside the storage provider's domain come back unchanged, as do
    URLs with no recognisable delivery segment.  Applying the function to
    its own output returns the same URL.
    """
    if not url:
        return url
    if not domain and settings.configured:
        domain = getattr(settings, "RESOURCE_ATTACHMENT_DOMAIN", None)
    domain = domain or DEFAULT_ATTACHMENT_DOMAIN

    parts = urlsplit(url)
    if not _is_provider_host(parts.hostname, domain):
        return url

    segments = parts.path.split("/")
    index = _insertion_point(segments)
    if index is None:
        return url

    if index < len(segments) and _has_flag(segments[index]):
        return url
    if index > 0 and _has_flag(segments[index - 1]):
        return url

    segments.insert(index, ATTACHMENT_FLAG)
    return urlunsplit(parts._replace(path="/".join(segments)))
