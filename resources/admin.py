# resources/admin.py
from django.contrib import admin
from .models import Resource


@admin.register(Resource)
class ResourceAdmin(admin.ModelAdmin):
    list_display = ("title", "subject", "category", "uploader_name",
                    "download_count", "created_at")
    list_filter = ("category",)
    search_fields = ("title", "description", "subject", "uploader_name")
    readonly_fields = ("file_url", "storage_id", "uploader_id", "download_count", "created_at")
    ordering = ("-created_at",)
