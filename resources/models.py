"""
Models for the resources app.

A ``Resource`` describes one uploaded file: its descriptive fields, where
the bytes live in object storage, who uploaded it and how often it has
been downloaded.  The uploader is the identity provider's user id, kept
as a plain string; the name next to it is a snapshot taken at upload.
"""
import uuid

from django.core.validators import MinValueValidator
from django.db import models


class Resource(models.Model):
    """A shared study resource backed by one stored object."""
    CATEGORY_NOTES = "notes"
    CATEGORY_ASSIGNMENT = "assignment"
    CATEGORY_PROJECT = "project"
    CATEGORY_PAST_PAPER = "past-paper"
    CATEGORY_BOOK = "book"
    CATEGORY_CHEATSHEET = "cheatsheet"
    CATEGORY_OTHER = "other"
    CATEGORY_CHOICES = [
        (CATEGORY_NOTES, "Notes"),
        (CATEGORY_ASSIGNMENT, "Assignment"),
        (CATEGORY_PROJECT, "Project"),
        (CATEGORY_PAST_PAPER, "Past paper"),
        (CATEGORY_BOOK, "Book"),
        (CATEGORY_CHEATSHEET, "Cheatsheet"),
        (CATEGORY_OTHER, "Other"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    subject = models.CharField(max_length=120, db_index=True)
    category = models.CharField(
        max_length=20, choices=CATEGORY_CHOICES, default=CATEGORY_NOTES
    )

    file_url = models.URLField(max_length=1024)
    file_name = models.CharField(max_length=255)
    file_type = models.CharField(max_length=255)
    file_size = models.PositiveBigIntegerField(validators=[MinValueValidator(1)])
    storage_id = models.CharField(
        max_length=512,
        blank=True,
        default="",
        help_text="Opaque object id used to delete the stored file",
    )

    uploader_id = models.CharField(max_length=255, db_index=True)
    uploader_name = models.CharField(max_length=255)

    download_count = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["category", "subject"], name="resource_category_subject_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.title} ({self.get_category_display()})"
