# resources/permissions.py
from .exceptions import Forbidden


def is_uploader(resource, identity) -> bool:
    if not identity or not getattr(identity, "is_authenticated", False):
        return False
    return resource.uploader_id == identity.id


def authorize_delete(resource, identity) -> None:
    """Only the identity that uploaded a resource may delete it."""
    if not is_uploader(resource, identity):
        raise Forbidden()
