import django.db.models.deletion
from django.db import migrations, models

import vocabulary_tree.lib.fields


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Qualifier",
            fields=[
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                (
                    "name",
                    vocabulary_tree.lib.fields.MultiCollationCharField(
                        db_collations={"mysql": "utf8mb4_unicode_ci", "sqlite": "NOCASE"},
                        help_text="Short label for the authority, e.g. 'LCSH'.",
                        max_length=255,
                        unique=True,
                    ),
                ),
                (
                    "namespace",
                    vocabulary_tree.lib.fields.MultiCollationCharField(
                        blank=True,
                        db_collations={"mysql": "utf8mb4_bin", "sqlite": "BINARY"},
                        help_text="Namespace the authority's identifiers live in.",
                        max_length=255,
                    ),
                ),
                (
                    "url",
                    models.URLField(
                        blank=True,
                        help_text="Where the authority's records can be looked up.",
                        max_length=500,
                    ),
                ),
            ],
        ),
        migrations.CreateModel(
            name="Classification",
            fields=[
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                (
                    "field_id",
                    models.PositiveIntegerField(
                        help_text="Identifies the vocabulary (metadata field) this classification belongs to.",
                    ),
                ),
                (
                    "segment_name",
                    vocabulary_tree.lib.fields.MultiCollationCharField(
                        db_collations={"mysql": "utf8mb4_unicode_ci", "sqlite": "NOCASE"},
                        help_text="This classification's own label, without its ancestors.",
                        max_length=255,
                    ),
                ),
                (
                    "browse_name",
                    vocabulary_tree.lib.fields.MultiCollationCharField(
                        blank=True,
                        db_collations={"mysql": "utf8mb4_bin", "sqlite": "BINARY"},
                        editable=False,
                        help_text="Normalized segment name that browse ranges are computed from and compared against.",
                        max_length=255,
                    ),
                ),
                (
                    "full_name",
                    vocabulary_tree.lib.fields.MultiCollationCharField(
                        db_collations={"mysql": "utf8mb4_unicode_ci", "sqlite": "NOCASE"},
                        help_text="Labels of all ancestors and this classification, joined with ' -- '.",
                        max_length=750,
                    ),
                ),
                (
                    "depth",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Number of ancestors. Zero for top-level classifications.",
                    ),
                ),
                (
                    "resource_count",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Number of items assigned directly to this classification.",
                    ),
                ),
                (
                    "full_resource_count",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Number of items assigned to this classification or any classification below it.",
                    ),
                ),
                (
                    "last_assigned",
                    models.DateTimeField(
                        blank=True,
                        default=None,
                        help_text="When an item was last assigned to this classification.",
                        null=True,
                    ),
                ),
                (
                    "needs_recount",
                    models.BooleanField(
                        default=False,
                        help_text="Set when the stored counts were found to be inconsistent; cleared by a recount.",
                    ),
                ),
                (
                    "parent",
                    models.ForeignKey(
                        blank=True,
                        default=None,
                        help_text="Classification one level up from this one. Empty for top-level classifications.",
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="children",
                        to="vt_classification.classification",
                    ),
                ),
                (
                    "qualifier",
                    models.ForeignKey(
                        blank=True,
                        default=None,
                        help_text="Optional authority this classification comes from.",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        to="vt_classification.qualifier",
                    ),
                ),
            ],
            options={
                "indexes": [
                    models.Index(fields=["field_id", "parent"], name="vt_class_field_parent_idx"),
                    models.Index(fields=["field_id", "depth", "full_name"], name="vt_class_field_depth_name_idx"),
                    models.Index(fields=["field_id", "full_name"], name="vt_class_field_name_idx"),
                    models.Index(fields=["field_id", "depth", "browse_name"], name="vt_class_field_browse_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ItemClassification",
            fields=[
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                (
                    "item_id",
                    vocabulary_tree.lib.fields.MultiCollationCharField(
                        db_collations={"mysql": "utf8mb4_bin", "sqlite": "BINARY"},
                        db_index=True,
                        editable=False,
                        help_text="Identifier for the item being classified",
                        max_length=255,
                    ),
                ),
                ("created", models.DateTimeField(auto_now_add=True)),
                (
                    "classification",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="item_classifications",
                        to="vt_classification.classification",
                    ),
                ),
            ],
            options={
                "unique_together": {("item_id", "classification")},
            },
        ),
    ]
