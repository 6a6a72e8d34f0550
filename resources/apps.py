from django.apps import AppConfig


class ResourcesConfig(AppConfig):
    """
    Configuration for the resources app.

    The ready() hook builds the object storage client once per process so
    views and tasks share it instead of configuring the provider globally.
    """
    default_auto_field = "django.db.models.BigAutoField"
    name = "resources"
    storage = None

    def ready(self) -> None:
        from .storage import build_object_storage

        self.storage = build_object_storage()
