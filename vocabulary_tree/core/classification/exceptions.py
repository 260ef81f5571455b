"""
Exceptions raised by the classification APIs
"""
from __future__ import annotations

from django.core.exceptions import ObjectDoesNotExist, ValidationError
from django.utils.translation import gettext as _


class ClassificationValidationError(ValidationError):
    """
    A proposed change to the tree was rejected. Nothing has been saved.
    """


class DuplicateNameError(ClassificationValidationError):
    """
    Another classification under the same parent already has this name
    (compared case-insensitively).
    """


class InvalidParentError(ClassificationValidationError):
    """
    The requested parent doesn't exist, belongs to another vocabulary, or would
    create a cycle.
    """


class BlankNameError(ClassificationValidationError):
    """
    Segment names cannot be empty or whitespace.
    """


class NotFoundError(ObjectDoesNotExist):
    """
    No classification exists with the given id.
    """


class ClassificationError(Exception):
    """
    Base exception for classification tree operations
    """

    def __init__(self, message: str = ""):
        super().__init__()
        self.message = message

    def __str__(self):
        return str(self.message)

    def __repr__(self):
        return f"{self.__class__.__name__}({str(self)})"


class HasChildrenError(ClassificationError):
    """
    Raised when deleting a classification that still has children, without
    asking for the children to be deleted too.
    """

    def __init__(self, classification, child_count: int, **kargs):
        super().__init__(**kargs)
        self.classification = classification
        self.child_count = child_count
        if not self.message:
            self.message = _(
                "Classification '{name}' has {count} child classification(s);"
                " use cascade=True to delete them too."
            ).format(name=classification.full_name, count=child_count)


class ConsistencyError(ClassificationError):
    """
    A stored resource count would have become negative, which means the counts
    for this vocabulary have drifted from the item associations.
    """

    def __init__(self, classification_ids: list[int], **kargs):
        super().__init__(**kargs)
        self.classification_ids = classification_ids
        if not self.message:
            self.message = _("Resource counts out of sync for classifications {ids}").format(
                ids=classification_ids,
            )
