"""
Test the classification APIs
"""
from __future__ import annotations

from datetime import datetime, timezone

import ddt  # type: ignore[import]

from vocabulary_tree.core.classification import api
from vocabulary_tree.core.classification.exceptions import (
    BlankNameError,
    ClassificationValidationError,
    DuplicateNameError,
    HasChildrenError,
    InvalidParentError,
    NotFoundError,
)
from vocabulary_tree.core.classification.models import Classification, ItemClassification, Qualifier
from vocabulary_tree.lib.test_utils import TestCase

from .utils import ClassificationTestMixin, assert_tree_consistent, pretty_format_tree


@ddt.ddt
class TestApiCreate(ClassificationTestMixin, TestCase):
    """
    Test creating classifications.
    """

    def test_create_child(self):
        animals = api.create_classification(3, api.ROOT, "Animals")
        mammals = api.create_classification(3, animals.id, "Mammals")
        assert mammals.full_name == "Animals -- Mammals"
        assert mammals.depth == 1
        assert mammals.parent_id == animals.id
        assert animals.full_name == "Animals"
        assert animals.depth == 0
        assert animals.is_root
        assert (mammals.resource_count, mammals.full_resource_count) == (0, 0)

    def test_create_strips_name(self):
        genes = api.create_classification(1, self.biology, "  Genes ")
        assert genes.segment_name == "Genes"
        assert genes.full_name == "Science -- Biology -- Genes"

    @ddt.data(
        (None, "science"),
        (None, "SCIENCE"),
        ("Science", "biology"),
    )
    @ddt.unpack
    def test_create_duplicate(self, parent_name, name):
        parent = Classification.objects.get(field_id=1, full_name=parent_name) if parent_name else None
        with self.assertRaises(DuplicateNameError):
            api.create_classification(1, parent, name)
        assert Classification.objects.filter(field_id=1).count() == 6

    def test_same_name_elsewhere(self):
        # Same name under another parent, or in another vocabulary, is fine
        api.create_classification(1, self.chemistry, "Biology")
        api.create_classification(2, api.ROOT, "Arts")
        api.create_classification(2, self.other_science, "Biology")

    @ddt.data("", "   ")
    def test_create_blank(self, name):
        with self.assertRaises(BlankNameError):
            api.create_classification(1, api.ROOT, name)

    def test_create_reserved(self):
        with self.assertRaises(ClassificationValidationError):
            api.create_classification(1, api.ROOT, "Art -- Modern")

    def test_create_parent_in_other_field(self):
        with self.assertRaises(InvalidParentError):
            api.create_classification(2, self.biology, "Genes")

    def test_create_missing_parent(self):
        with self.assertRaises(InvalidParentError):
            api.create_classification(1, 9999, "Genes")

    def test_create_from_full_name(self):
        genes, created = api.create_classification_from_full_name(1, "Science -- Biology -- Genes")
        assert created == 1
        assert genes.full_name == "Science -- Biology -- Genes"
        assert genes.parent_id == self.biology.id

        jazz, created = api.create_classification_from_full_name(1, "music--Jazz -- Bebop")
        assert created == 3
        assert jazz.full_name == "music -- Jazz -- Bebop"
        assert jazz.depth == 2
        assert_tree_consistent(1)

    def test_create_from_full_name_reuses_case_insensitively(self):
        genes, created = api.create_classification_from_full_name(1, "SCIENCE -- biology -- Genes")
        assert created == 1
        assert genes.full_name == "Science -- Biology -- Genes"

    def test_create_from_full_name_exists(self):
        with self.assertRaises(DuplicateNameError):
            api.create_classification_from_full_name(1, "Science -- Biology")

    @ddt.data("Science --  -- Genes", "", "Science -- ")
    def test_create_from_full_name_blank_segment(self, full_name):
        with self.assertRaises(BlankNameError):
            api.create_classification_from_full_name(1, full_name)
        assert Classification.objects.filter(field_id=1).count() == 6


class TestApiRead(ClassificationTestMixin, TestCase):
    """
    Test the read-only APIs.
    """

    def test_get_root_classifications(self):
        assert list(api.get_root_classifications(1)) == [self.arts, self.history, self.science]
        assert list(api.get_root_classifications(2)) == [self.other_science]
        assert not api.get_root_classifications(99).exists()

    def test_get_children(self):
        assert list(api.get_children(1, self.science)) == [self.biology, self.chemistry]
        assert list(api.get_children(1, self.science.id)) == [self.biology, self.chemistry]
        assert list(api.get_children(1, self.cells)) == []
        assert list(api.get_children(1, api.ROOT)) == [self.arts, self.history, self.science]

    def test_get_children_sorted_case_insensitively(self):
        zoology = api.create_classification(1, self.science, "zoology")
        astronomy = api.create_classification(1, self.science, "astronomy")
        assert list(api.get_children(1, self.science)) == [astronomy, self.biology, self.chemistry, zoology]

    def test_get_classification(self):
        assert api.get_classification(self.cells.id) == self.cells
        assert api.get_classification(9999) is None

    def test_get_classification_by_full_name(self):
        assert api.get_classification_by_full_name(1, "Science -- Biology") == self.biology
        assert api.get_classification_by_full_name(1, "science--biology") == self.biology
        assert api.get_classification_by_full_name(2, "Science -- Biology") is None
        assert api.get_classification_by_full_name(2, "Science") == self.other_science

    def test_get_ancestors(self):
        assert api.get_ancestors(self.cells) == [self.science, self.biology]
        assert api.get_ancestors(self.science) == []

    def test_get_descendant_ids(self):
        assert set(api.get_descendant_ids(self.science)) == {self.biology.id, self.chemistry.id, self.cells.id}


@ddt.ddt
class TestApiRename(ClassificationTestMixin, TestCase):
    """
    Test renaming classifications.
    """

    def test_rename(self):
        api.rename_classification(self.biology, "Life Sciences")
        assert self.biology.full_name == "Science -- Life Sciences"
        assert Classification.objects.get(pk=self.biology.pk).browse_name == "Lifesciences"
        self.cells.refresh_from_db()
        assert self.cells.full_name == "Science -- Life Sciences -- Cells"
        assert self.cells.depth == 2
        assert_tree_consistent(1)

    def test_rename_by_id(self):
        renamed = api.rename_classification(self.arts.id, "Fine Arts")
        assert renamed.full_name == "Fine Arts"

    def test_rename_change_case(self):
        api.rename_classification(self.biology, "BIOLOGY")
        self.cells.refresh_from_db()
        assert self.cells.full_name == "Science -- BIOLOGY -- Cells"

    def test_rename_duplicate(self):
        with self.assertRaises(DuplicateNameError):
            api.rename_classification(self.biology, "chemistry")
        self.biology.refresh_from_db()
        assert self.biology.segment_name == "Biology"

    @ddt.data(
        ("", BlankNameError),
        ("Life -- Sciences", ClassificationValidationError),
    )
    @ddt.unpack
    def test_rename_invalid(self, name, error):
        with self.assertRaises(error):
            api.rename_classification(self.biology, name)
        self.cells.refresh_from_db()
        assert self.cells.full_name == "Science -- Biology -- Cells"

    def test_rename_missing(self):
        with self.assertRaises(NotFoundError):
            api.rename_classification(9999, "Nothing")


class TestApiReparent(ClassificationTestMixin, TestCase):
    """
    Test moving classifications around.
    """

    def test_reparent_subtree(self):
        api.reparent_classification(self.biology, self.arts)
        assert pretty_format_tree(1) == [
            "Arts (0/3)",
            "  Biology (1/3)",
            "    Cells (2/2)",
            "History (1/1)",
            "Science (1/1)",
            "  Chemistry (0/0)",
        ]
        self.cells.refresh_from_db()
        assert self.cells.full_name == "Arts -- Biology -- Cells"
        assert self.cells.depth == 2
        assert_tree_consistent(1)

    def test_reparent_to_root(self):
        api.reparent_classification(self.cells, api.ROOT)
        self.cells.refresh_from_db()
        assert self.cells.full_name == "Cells"
        assert self.cells.depth == 0
        assert self.cells.is_root
        assert_tree_consistent(1)

    def test_reparent_within_ancestor(self):
        api.reparent_classification(self.cells, self.chemistry.id)
        assert pretty_format_tree(1) == [
            "Arts (0/0)",
            "History (1/1)",
            "Science (1/4)",
            "  Biology (1/1)",
            "  Chemistry (0/2)",
            "    Cells (2/2)",
        ]

    def test_reparent_same_parent(self):
        api.reparent_classification(self.cells, self.biology)
        assert_tree_consistent(1)
        assert self.cells.full_name == "Science -- Biology -- Cells"

    def test_reparent_under_descendant(self):
        with self.assertRaises(InvalidParentError):
            api.reparent_classification(self.science, self.cells)
        with self.assertRaises(InvalidParentError):
            api.reparent_classification(self.science, self.science)
        assert_tree_consistent(1)
        self.science.refresh_from_db()
        assert self.science.is_root

    def test_reparent_other_field(self):
        with self.assertRaises(InvalidParentError):
            api.reparent_classification(self.cells, self.other_science)

    def test_reparent_duplicate(self):
        api.create_classification(1, api.ROOT, "biology")
        with self.assertRaises(DuplicateNameError):
            api.reparent_classification(self.biology, api.ROOT)
        self.biology.refresh_from_db()
        assert self.biology.parent_id == self.science.id
        assert_tree_consistent(1)


class TestApiDelete(ClassificationTestMixin, TestCase):
    """
    Test deleting classifications.
    """

    def test_delete_leaf(self):
        assert api.delete_classification(self.cells) == 1
        assert pretty_format_tree(1) == [
            "Arts (0/0)",
            "History (1/1)",
            "Science (1/2)",
            "  Biology (1/1)",
            "  Chemistry (0/0)",
        ]
        assert not ItemClassification.objects.filter(item_id__in=["item-c", "item-d"]).exists()

    def test_delete_with_children(self):
        before = pretty_format_tree(1)
        with self.assertRaises(HasChildrenError) as exc:
            api.delete_classification(self.biology)
        assert exc.exception.child_count == 1
        assert "cascade=True" in str(exc.exception)
        assert pretty_format_tree(1) == before

    def test_delete_counts_current_children(self):
        assert self.cells.child_count == 0
        api.create_classification(1, self.cells, "Membranes")
        with self.assertRaises(HasChildrenError) as exc:
            api.delete_classification(self.cells)
        assert exc.exception.child_count == 1

    def test_delete_cascade(self):
        assert api.delete_classification(self.biology, cascade=True) == 2
        assert pretty_format_tree(1) == [
            "Arts (0/0)",
            "History (1/1)",
            "Science (1/1)",
            "  Chemistry (0/0)",
        ]
        assert_tree_consistent(1)

    def test_delete_root_cascade(self):
        assert api.delete_classification(self.science.id, cascade=True) == 4
        assert pretty_format_tree(1) == ["Arts (0/0)", "History (1/1)"]
        assert api.get_classification(self.other_science.id) == self.other_science

    def test_delete_missing(self):
        api.delete_classification(self.arts)
        with self.assertRaises(NotFoundError):
            api.delete_classification(self.arts)


class TestApiItems(ClassificationTestMixin, TestCase):
    """
    Test assigning items to classifications.
    """

    def test_get_item_classifications(self):
        ItemClassification.objects.create(item_id="item-c", classification=self.other_science)
        assert list(api.get_item_classifications("item-c")) == [self.other_science, self.cells]
        assert list(api.get_item_classifications("item-c", field_id=1)) == [self.cells]
        assert not api.get_item_classifications("item-z").exists()

    def test_set_item_classifications(self):
        ItemClassification.objects.create(item_id="item-c", classification=self.other_science)
        api.set_item_classifications("item-c", 1, [self.biology, self.history, self.biology])
        assert list(api.get_item_classifications("item-c", 1)) == [self.history, self.biology]
        # Other vocabularies are left alone
        assert list(api.get_item_classifications("item-c", 2)) == [self.other_science]
        assert pretty_format_tree(1) == [
            "Arts (0/0)",
            "History (2/2)",
            "Science (1/4)",
            "  Biology (2/3)",
            "    Cells (1/1)",
            "  Chemistry (0/0)",
        ]

    def test_set_item_classifications_empty(self):
        api.set_item_classifications("item-c", 1, [])
        assert not api.get_item_classifications("item-c").exists()
        assert_tree_consistent(1)

    def test_set_item_classifications_wrong_field(self):
        with self.assertRaises(InvalidParentError):
            api.set_item_classifications("item-c", 1, [self.other_science])
        assert list(api.get_item_classifications("item-c")) == [self.cells]

    def test_set_item_classifications_not_list(self):
        with self.assertRaises(ValueError):
            api.set_item_classifications("item-c", 1, self.biology)

    def test_associate_missing(self):
        with self.assertRaises(NotFoundError):
            api.associate_item("item-z", 9999)

    def test_set_qualifier(self):
        lcsh = Qualifier.objects.get(name="LCSH")
        api.set_qualifier(self.cells, lcsh)
        self.cells.refresh_from_db()
        assert self.cells.qualifier == lcsh
        api.set_qualifier(self.cells.id, None)
        self.cells.refresh_from_db()
        assert self.cells.qualifier is None


@ddt.ddt
class TestApiRecentlyUsed(ClassificationTestMixin, TestCase):
    """
    Test suggesting recently used classifications.
    """

    def setUp(self):
        super().setUp()
        assigned = [self.science, self.biology, self.cells, self.chemistry, self.history, self.other_science]
        for day, classification in enumerate(assigned, start=1):
            Classification.objects.filter(pk=classification.pk).update(
                last_assigned=datetime(2024, 1, day, tzinfo=timezone.utc),
            )

    def test_most_recent_first(self):
        assert api.get_recently_used_classifications(1, "science") == [
            self.chemistry,
            self.cells,
            self.biology,
            self.science,
        ]

    def test_every_word_required(self):
        assert api.get_recently_used_classifications(1, "sci CELL") == [self.cells]
        assert api.get_recently_used_classifications(1, "science history") == []

    def test_never_assigned(self):
        assert api.get_recently_used_classifications(1, "arts") == []
        api.associate_item("item-z", self.arts)
        assert api.get_recently_used_classifications(1, "arts") == [self.arts]
        # Now the most recent of all
        assert api.get_recently_used_classifications(1, "s")[0] == self.arts

    def test_exclusions(self):
        result = api.get_recently_used_classifications(
            1,
            "science",
            exclude_ids=[self.chemistry.id],
            exclude_names=["Science -- Biology"],
        )
        assert result == [self.cells, self.science]

    def test_limit(self):
        assert api.get_recently_used_classifications(1, "science", limit=2) == [self.chemistry, self.cells]

    @ddt.data("", "   ")
    def test_blank_search(self, search):
        assert api.get_recently_used_classifications(1, search) == []
