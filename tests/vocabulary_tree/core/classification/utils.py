"""
Useful utilities for testing classification trees.
"""
from __future__ import annotations

from vocabulary_tree.core.classification.models import Classification
from vocabulary_tree.core.classification.models.utils import normalize_name


def get_classification(full_name: str, field_id: int = 1) -> Classification:
    """
    Fetches and returns the classification with the given full name.
    """
    return Classification.objects.get(field_id=field_id, full_name=full_name)


def pretty_format_tree(field_id: int) -> list[str]:
    """
    Format a whole vocabulary as indented lines, one per classification, in
    tree order, so tests can compare the tree in one assert.
    """
    lines = []
    for classification in Classification.objects.filter(field_id=field_id).order_by("full_name"):
        lines.append(
            f"{classification.depth * '  '}{classification.segment_name} "
            f"({classification.resource_count}/{classification.full_resource_count})"
        )
    return lines


def assert_tree_consistent(field_id: int) -> None:
    """
    Assert that the stored full names, browse names, depths and total counts
    of a vocabulary agree with its structure.
    """
    classifications = list(Classification.objects.filter(field_id=field_id))
    by_id = {c.id: c for c in classifications}
    for classification in classifications:
        parent = by_id.get(classification.parent_id)
        if parent is None:
            assert classification.full_name == classification.segment_name
            assert classification.depth == 0
        else:
            assert classification.full_name == f"{parent.full_name} -- {classification.segment_name}"
            assert classification.depth == parent.depth + 1
        assert classification.browse_name == normalize_name(classification.segment_name)
        children_total = sum(
            c.full_resource_count for c in classifications if c.parent_id == classification.id
        )
        assert classification.full_resource_count == classification.resource_count + children_total, classification


class ClassificationTestMixin:
    """
    Base class that uses the classification fixture to load two small
    vocabularies for testing.
    """

    fixtures = ["tests/vocabulary_tree/core/fixtures/classification.yaml"]

    def setUp(self):
        super().setUp()
        self.field_id = 1
        self.other_field_id = 2
        self.science = get_classification("Science")
        self.biology = get_classification("Science -- Biology")
        self.cells = get_classification("Science -- Biology -- Cells")
        self.chemistry = get_classification("Science -- Chemistry")
        self.arts = get_classification("Arts")
        self.history = get_classification("History")
        self.other_science = get_classification("Science", field_id=2)
