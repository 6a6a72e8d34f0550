"""
Initial migration for the resources app.

Creates the ``Resource`` model with its storage, ownership and counter
fields, plus an index backing category/subject filtering.
"""
import uuid

import django.core.validators
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Resource",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("title", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True, default="")),
                ("subject", models.CharField(db_index=True, max_length=120)),
                ("category", models.CharField(
                    choices=[
                        ("notes", "Notes"),
                        ("assignment", "Assignment"),
                        ("project", "Project"),
                        ("past-paper", "Past paper"),
                        ("book", "Book"),
                        ("cheatsheet", "Cheatsheet"),
                        ("other", "Other"),
                    ],
                    default="notes",
                    max_length=20,
                )),
                ("file_url", models.URLField(max_length=1024)),
                ("file_name", models.CharField(max_length=255)),
                ("file_type", models.CharField(max_length=255)),
                ("file_size", models.PositiveBigIntegerField(
                    validators=[django.core.validators.MinValueValidator(1)],
                )),
                ("storage_id", models.CharField(
                    blank=True,
                    default="",
                    help_text="Opaque object id used to delete the stored file",
                    max_length=512,
                )),
                ("uploader_id", models.CharField(db_index=True, max_length=255)),
                ("uploader_name", models.CharField(max_length=255)),
                ("download_count", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={"ordering": ["-created_at"]},
        ),
        migrations.AddIndex(
            model_name="resource",
            index=models.Index(fields=["category", "subject"], name="resource_category_subject_idx"),
        ),
    ]
