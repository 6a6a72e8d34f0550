# resources/filters.py
from django_filters.rest_framework import CharFilter, FilterSet

from .models import Resource


class ResourceFilter(FilterSet):
    """Filter set for catalog queries."""
    subject = CharFilter(field_name="subject", lookup_expr="iexact")
    uploaderId = CharFilter(field_name="uploader_id")

    class Meta:
        model = Resource
        fields = ["category", "subject", "uploaderId"]
