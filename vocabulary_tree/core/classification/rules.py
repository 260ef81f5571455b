"""
Django rules-based permissions for classifications
"""
from __future__ import annotations

from typing import Callable, Union

import django.contrib.auth.models
# typing support in rules depends on https://github.com/dfunckt/django-rules/pull/177
import rules  # type: ignore[import]
from attrs import define

from .models import Classification

UserType = Union[
    django.contrib.auth.models.User, django.contrib.auth.models.AnonymousUser
]


# Global staff are classification admins.
# (Superusers can already do anything)
is_classification_admin: Callable[[UserType], bool] = rules.is_staff


@define
class ItemClassificationPermissionItem:
    """
    Pair of classification and item_id used for permission checking.
    """

    classification: Classification
    item_id: str


@rules.predicate
def can_view_empty_classifications(user: UserType) -> bool:
    """
    Classifications without any items are hidden from browse pages, except
    for classification admins (who need to find them to fill or delete them).
    """
    return is_classification_admin(user)


@rules.predicate
def can_view_classification(user: UserType, classification: Classification | None = None) -> bool:
    """
    Anyone can view a classification that has items assigned to it (or below
    it), or list classifications.
    """
    return (
        not classification
        or classification.full_resource_count > 0
        or can_view_empty_classifications(user)
    )


@rules.predicate
def can_change_classification(user: UserType, classification: Classification | None = None) -> bool:
    """
    Only classification admins can create, rename, move or delete
    classifications.
    """
    return is_classification_admin(user)


@rules.predicate
def can_view_item_classification(
    user: UserType,
    perm_obj: ItemClassificationPermissionItem | None = None,
) -> bool:
    """
    Users can see an item's assignment to any classification they can view.
    """
    return not perm_obj or can_view_classification(user, perm_obj.classification)


@rules.predicate
def can_change_item_classification(
    user: UserType,
    perm_obj: ItemClassificationPermissionItem | None = None,
) -> bool:
    """
    Assigning items to classifications is for classification admins. Whether
    the user may edit the item itself is up to the host system.
    """
    return is_classification_admin(user)


# Classifications
rules.add_perm("vt_classification.add_classification", can_change_classification)
rules.add_perm("vt_classification.change_classification", can_change_classification)
rules.add_perm("vt_classification.delete_classification", can_change_classification)
rules.add_perm("vt_classification.view_classification", can_view_classification)
rules.add_perm("vt_classification.view_empty_classifications", can_view_empty_classifications)

# Qualifiers
rules.add_perm("vt_classification.add_qualifier", is_classification_admin)
rules.add_perm("vt_classification.change_qualifier", is_classification_admin)
rules.add_perm("vt_classification.delete_qualifier", is_classification_admin)
rules.add_perm("vt_classification.view_qualifier", rules.always_allow)

# Item assignments
rules.add_perm("vt_classification.add_itemclassification", can_change_item_classification)
rules.add_perm("vt_classification.change_itemclassification", can_change_item_classification)
rules.add_perm("vt_classification.delete_itemclassification", can_change_item_classification)
rules.add_perm("vt_classification.view_itemclassification", can_view_item_classification)
