"""
Serializers for the resources app.

``ResourceSerializer`` is the public, camelCase representation of a
resource; the storage object id never leaves the server.
``ResourceUploadSerializer`` validates the descriptive form fields that
accompany an upload, and ``UploadReceiptSerializer`` shapes the short
confirmation returned once an upload is stored.
"""
from rest_framework import serializers

from .models import Resource


class ResourceSerializer(serializers.ModelSerializer):
    fileUrl = serializers.CharField(source="file_url", read_only=True)
    fileName = serializers.CharField(source="file_name", read_only=True)
    fileType = serializers.CharField(source="file_type", read_only=True)
    fileSize = serializers.IntegerField(source="file_size", read_only=True)
    uploaderId = serializers.CharField(source="uploader_id", read_only=True)
    uploaderName = serializers.CharField(source="uploader_name", read_only=True)
    downloadCount = serializers.IntegerField(source="download_count", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = Resource
        fields = [
            "id",
            "title", "description", "subject", "category",
            "fileUrl", "fileName", "fileType", "fileSize",
            "uploaderId", "uploaderName",
            "downloadCount", "createdAt",
        ]
        read_only_fields = fields


class ResourceUploadSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    subject = serializers.CharField(max_length=120)
    category = serializers.ChoiceField(
        choices=Resource.CATEGORY_CHOICES, required=False, allow_blank=True
    )

    def validate_category(self, value):
        # an empty select box means "notes"
        return value or Resource.CATEGORY_NOTES

    def validate(self, data):
        data.setdefault("category", Resource.CATEGORY_NOTES)
        return data


class UploadReceiptSerializer(serializers.ModelSerializer):
    fileUrl = serializers.CharField(source="file_url", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = Resource
        fields = ["id", "title", "fileUrl", "createdAt"]
        read_only_fields = fields
