"""
Classification app base data models
"""
from __future__ import annotations

import logging

from django.db import models
from django.utils.translation import gettext as _
from django.utils.translation import gettext_lazy

from vocabulary_tree.lib.fields import case_insensitive_char_field, case_sensitive_char_field

from ..exceptions import BlankNameError, ClassificationValidationError
from .utils import RESERVED_NAME_CHARS, join_full_name, normalize_name

log = logging.getLogger(__name__)


class Qualifier(models.Model):
    """
    An authority or namespace annotation that can be attached to a
    classification, e.g. "LCSH" for a Library of Congress subject heading.
    """

    id = models.BigAutoField(primary_key=True)
    name = case_insensitive_char_field(
        max_length=255,
        unique=True,
        help_text=gettext_lazy("Short label for the authority, e.g. 'LCSH'."),
    )
    namespace = case_sensitive_char_field(
        max_length=255,
        blank=True,
        help_text=gettext_lazy("Namespace the authority's identifiers live in."),
    )
    url = models.URLField(
        max_length=500,
        blank=True,
        help_text=gettext_lazy("Where the authority's records can be looked up."),
    )

    def __str__(self):
        return f"<{self.__class__.__name__}> ({self.id}) {self.name}"


class Classification(models.Model):
    """
    One node in a hierarchical controlled vocabulary ("tree field").

    Each vocabulary is identified by ``field_id`` (the host system's metadata
    field that uses it); the nodes of all vocabularies share this table.
    Classifications with no parent are the roots of their vocabulary.

    ``full_name`` and ``depth`` are denormalized from the ancestry,
    ``browse_name`` from ``segment_name``, and
    ``resource_count`` / ``full_resource_count`` from the item associations.
    Use the functions in ``api`` to change the tree, so that those columns
    stay in sync.
    """

    id = models.BigAutoField(primary_key=True)
    field_id = models.PositiveIntegerField(
        help_text=gettext_lazy("Identifies the vocabulary (metadata field) this classification belongs to."),
    )
    parent = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        default=None,
        on_delete=models.CASCADE,
        related_name="children",
        help_text=gettext_lazy(
            "Classification one level up from this one. Empty for top-level classifications."
        ),
    )
    segment_name = case_insensitive_char_field(
        max_length=255,
        help_text=gettext_lazy("This classification's own label, without its ancestors."),
    )
    browse_name = case_sensitive_char_field(
        max_length=255,
        blank=True,
        editable=False,
        help_text=gettext_lazy(
            "Normalized segment name that browse ranges are computed from and compared against."
        ),
    )
    full_name = case_insensitive_char_field(
        max_length=750,
        help_text=gettext_lazy(
            "Labels of all ancestors and this classification, joined with ' -- '."
        ),
    )
    depth = models.PositiveIntegerField(
        default=0,
        help_text=gettext_lazy("Number of ancestors. Zero for top-level classifications."),
    )
    qualifier = models.ForeignKey(
        Qualifier,
        null=True,
        blank=True,
        default=None,
        on_delete=models.SET_NULL,
        help_text=gettext_lazy("Optional authority this classification comes from."),
    )
    resource_count = models.PositiveIntegerField(
        default=0,
        help_text=gettext_lazy("Number of items assigned directly to this classification."),
    )
    full_resource_count = models.PositiveIntegerField(
        default=0,
        help_text=gettext_lazy(
            "Number of items assigned to this classification or any classification below it."
        ),
    )
    last_assigned = models.DateTimeField(
        null=True,
        blank=True,
        default=None,
        help_text=gettext_lazy("When an item was last assigned to this classification."),
    )
    needs_recount = models.BooleanField(
        default=False,
        help_text=gettext_lazy(
            "Set when the stored counts were found to be inconsistent; cleared by a recount."
        ),
    )

    class Meta:
        indexes = [
            models.Index(fields=["field_id", "parent"], name="vt_class_field_parent_idx"),
            models.Index(fields=["field_id", "depth", "full_name"], name="vt_class_field_depth_name_idx"),
            models.Index(fields=["field_id", "full_name"], name="vt_class_field_name_idx"),
            models.Index(fields=["field_id", "depth", "browse_name"], name="vt_class_field_browse_idx"),
        ]

    def __repr__(self):
        """
        Developer-facing representation of a Classification.
        """
        return str(self)

    def __str__(self):
        """
        User-facing string representation of a Classification.
        """
        return f"<{self.__class__.__name__}> ({self.id}) {self.full_name}"

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    def compute_full_name(self, parent: Classification | None) -> tuple[str, int]:
        """
        Return the (full_name, depth) this classification should have under
        ``parent``, which must already be consistent.
        """
        if parent is None:
            return self.segment_name, 0
        return join_full_name(parent.full_name, self.segment_name), parent.depth + 1

    def get_ancestor_ids(self) -> list[int]:
        """
        IDs of this classification's parent, grandparent, and so on up to the
        root, nearest first.

        Follows parent_id rather than trusting the denormalized depth, one
        query per level.
        """
        ancestor_ids: list[int] = []
        parent_id = self.parent_id
        while parent_id is not None:
            if parent_id in ancestor_ids or parent_id == self.id:
                log.error(f"Cycle detected in ancestors of {self}: {ancestor_ids + [parent_id]}")
                break
            ancestor_ids.append(parent_id)
            parent_id = (
                Classification.objects.filter(pk=parent_id)
                .values_list("parent_id", flat=True)
                .first()
            )
        return ancestor_ids

    def get_descendant_ids(self) -> list[int]:
        """
        IDs of every classification below this one, breadth first.
        """
        descendant_ids: list[int] = []
        level = [self.id]
        while level:
            level = list(
                Classification.objects.filter(parent_id__in=level)
                .order_by("full_name", "id")
                .values_list("id", flat=True)
            )
            descendant_ids.extend(level)
        return descendant_ids

    @property
    def child_count(self) -> int:
        """
        How many classifications have this one as their parent.
        """
        return self.children.count()

    def save(self, *args, **kwargs):
        """
        Keep browse_name in step with segment_name.
        """
        self.browse_name = normalize_name(self.segment_name)
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "segment_name" in update_fields and "browse_name" not in update_fields:
            kwargs["update_fields"] = [*update_fields, "browse_name"]
        super().save(*args, **kwargs)

    def clean(self):
        """
        Validate this classification's own values before saving.
        """
        self.segment_name = (self.segment_name or "").strip()
        if not self.segment_name:
            raise BlankNameError(_("Classification names cannot be blank."))
        for reserved in RESERVED_NAME_CHARS:
            if reserved in self.segment_name:
                raise ClassificationValidationError(
                    _("Classification names cannot contain '{chars}'.").format(chars=reserved)
                )


class ItemClassification(models.Model):
    """
    Assignment of an item (a record in the host collection) to a
    classification.

    These rows are the source of truth for ``Classification.resource_count``;
    the counts are maintained incrementally as rows come and go, and can be
    rebuilt from here with ``counts.recount()``.
    """

    id = models.BigAutoField(primary_key=True)
    item_id = case_sensitive_char_field(
        max_length=255,
        db_index=True,
        editable=False,
        help_text=gettext_lazy("Identifier for the item being classified"),
    )
    classification = models.ForeignKey(
        Classification,
        on_delete=models.CASCADE,
        related_name="item_classifications",
    )
    created = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = [
            ("item_id", "classification"),
        ]

    def __str__(self):
        return f"<{self.__class__.__name__}> {self.item_id}: {self.classification_id}"
