"""
Classification API

Anyone using the classification app should use these APIs instead of creating
or modifying the models directly, since the tree carries denormalized columns
(full names, depths and item counts) that have to be kept in sync, and cached
browse ranges that have to be thrown away.

No permissions/rules are enforced by these methods -- these must be enforced
by the caller (see ``rules.py``).
"""
from __future__ import annotations

import logging
from typing import Iterable

from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone
from django.utils.translation import gettext as _

from . import counts
from .browse import invalidate_browse_cache
from .data import ClassificationOrId
from .exceptions import BlankNameError, DuplicateNameError, HasChildrenError, InvalidParentError, NotFoundError
from .full_names import update_full_names
from .models import Classification, ItemClassification, Qualifier
from .models.utils import FULL_NAME_SEPARATOR, split_full_name

log = logging.getLogger(__name__)

# Export these as part of the API
ClassificationDoesNotExist = Classification.DoesNotExist
ROOT = None


def _get_classification_or_raise(classification: ClassificationOrId) -> Classification:
    """
    Fetch (or refresh) a classification that a mutation is about to change.
    """
    if isinstance(classification, Classification):
        try:
            classification.refresh_from_db()
        except Classification.DoesNotExist as e:
            raise NotFoundError(
                _("Classification {id} does not exist.").format(id=classification.pk)
            ) from e
        return classification
    try:
        return Classification.objects.get(pk=classification)
    except Classification.DoesNotExist as e:
        raise NotFoundError(_("Classification {id} does not exist.").format(id=classification)) from e


def _get_parent(field_id: int, parent: ClassificationOrId | None) -> Classification | None:
    """
    Resolve ``parent`` and check it can hold classifications of ``field_id``.
    """
    if parent is None:
        return None
    parent_id = parent.pk if isinstance(parent, Classification) else parent
    parent = Classification.objects.filter(pk=parent_id).first()
    if parent is None:
        raise InvalidParentError(_("Parent classification {id} does not exist.").format(id=parent_id))
    if parent.field_id != field_id:
        raise InvalidParentError(
            _("Parent classification {parent} belongs to field {other}, not {field_id}.").format(
                parent=parent.full_name, other=parent.field_id, field_id=field_id,
            )
        )
    return parent


def _check_unique_name(
    field_id: int,
    parent: Classification | None,
    segment_name: str,
    exclude: Classification | None = None,
) -> None:
    siblings = Classification.objects.filter(
        field_id=field_id,
        parent=parent,
        segment_name__iexact=segment_name,
    )
    if exclude is not None:
        siblings = siblings.exclude(pk=exclude.pk)
    if siblings.exists():
        raise DuplicateNameError(
            _("A classification named '{name}' already exists under {parent}.").format(
                name=segment_name,
                parent=parent.full_name if parent else _("the top level"),
            )
        )


def _validate(classification: Classification) -> None:
    # Our own checks first, so that blank names raise BlankNameError rather
    # than the generic "field cannot be blank" error from clean_fields().
    classification.clean()
    classification.full_clean()


def create_classification(
    field_id: int,
    parent: ClassificationOrId | None,
    segment_name: str,
) -> Classification:
    """
    Creates, saves, and returns a new classification named ``segment_name``
    under ``parent`` (or at the top level of the vocabulary, if ``parent`` is
    ``ROOT``).

    Raises DuplicateNameError if a sibling already has the same name
    (compared case-insensitively), BlankNameError for an empty name, and
    InvalidParentError if the parent does not exist or belongs to another
    vocabulary.
    """
    with transaction.atomic():
        parent = _get_parent(field_id, parent)
        classification = Classification(field_id=field_id, parent=parent, segment_name=segment_name)
        classification.clean()
        _check_unique_name(field_id, parent, classification.segment_name)
        classification.full_name, classification.depth = classification.compute_full_name(parent)
        _validate(classification)
        classification.save()
    invalidate_browse_cache(field_id)
    return classification


def create_classification_from_full_name(field_id: int, full_name: str) -> tuple[Classification, int]:
    """
    Creates the classification at path ``full_name`` ("Science -- Biology --
    Cells"), along with any of its ancestors that don't exist yet.

    Returns the deepest classification and the number of classifications
    created. Raises DuplicateNameError if the whole path already existed.
    """
    segments = split_full_name(full_name)
    if not all(segments):
        raise BlankNameError(_("'{full_name}' contains a blank segment.").format(full_name=full_name))

    created = 0
    parent = None
    with transaction.atomic():
        for segment in segments:
            existing = Classification.objects.filter(
                field_id=field_id,
                parent=parent,
                segment_name__iexact=segment,
            ).first()
            if existing:
                parent = existing
            else:
                parent = create_classification(field_id, parent, segment)
                created += 1
        if not created:
            raise DuplicateNameError(
                _("Classification '{full_name}' already exists.").format(full_name=parent.full_name)
            )
    return parent, created


def get_classification(classification_id: int) -> Classification | None:
    """
    Returns the classification with the given ID, or None.
    """
    return Classification.objects.filter(pk=classification_id).first()


def get_classification_by_full_name(field_id: int, full_name: str) -> Classification | None:
    """
    Returns the classification of ``field_id`` at path ``full_name``
    (compared case-insensitively, with loose spacing around the separators),
    or None.
    """
    full_name = FULL_NAME_SEPARATOR.join(split_full_name(full_name))
    return Classification.objects.filter(field_id=field_id, full_name__iexact=full_name).first()


def get_children(field_id: int, parent: ClassificationOrId | None) -> QuerySet[Classification]:
    """
    Returns the direct children of ``parent`` (the top-level classifications
    when ``parent`` is ``ROOT``), sorted by full name.
    """
    parent_id = parent.pk if isinstance(parent, Classification) else parent
    return Classification.objects.filter(field_id=field_id, parent_id=parent_id).order_by("full_name")


def get_root_classifications(field_id: int) -> QuerySet[Classification]:
    """
    Returns the top-level classifications of a vocabulary, sorted by name.
    """
    return get_children(field_id, ROOT)


def get_descendant_ids(classification: Classification) -> list[int]:
    """
    Returns the IDs of every classification below ``classification``.
    """
    return classification.get_descendant_ids()


def get_ancestors(classification: Classification) -> list[Classification]:
    """
    Returns the ancestors of ``classification``, starting at the root.
    """
    ancestor_ids = classification.get_ancestor_ids()
    by_id = Classification.objects.in_bulk(ancestor_ids)
    return [by_id[pk] for pk in reversed(ancestor_ids) if pk in by_id]


def get_recently_used_classifications(
    field_id: int,
    search: str,
    limit: int = 5,
    exclude_ids: Iterable[int] = (),
    exclude_names: Iterable[str] = (),
) -> list[Classification]:
    """
    Returns up to ``limit`` classifications of ``field_id`` that items have
    been assigned to, most recently assigned first, for suggesting values
    while a user types.

    Every whitespace-separated word of ``search`` must appear somewhere in
    the full name (case-insensitively); a blank search matches nothing.
    Classifications in ``exclude_ids``, or whose full name is in
    ``exclude_names``, are left out.
    """
    words = search.split()
    if not words:
        return []
    qs = Classification.objects.filter(field_id=field_id, last_assigned__isnull=False)
    for word in words:
        qs = qs.filter(full_name__icontains=word)
    exclude_ids = list(exclude_ids)
    if exclude_ids:
        qs = qs.exclude(pk__in=exclude_ids)
    exclude_names = list(exclude_names)
    if exclude_names:
        qs = qs.exclude(full_name__in=exclude_names)
    return list(qs.order_by("-last_assigned", "full_name")[:limit])


def rename_classification(classification: ClassificationOrId, new_name: str) -> Classification:
    """
    Changes the segment name of ``classification`` and the full names of
    everything below it.
    """
    with transaction.atomic():
        classification = _get_classification_or_raise(classification)
        classification.segment_name = new_name
        classification.clean()
        _check_unique_name(
            classification.field_id,
            classification.parent,
            classification.segment_name,
            exclude=classification,
        )
        _validate(classification)
        classification.save(update_fields=["segment_name", "browse_name"])
        update_full_names(classification)
    invalidate_browse_cache(classification.field_id)
    return classification


def reparent_classification(
    classification: ClassificationOrId,
    new_parent: ClassificationOrId | None,
) -> Classification:
    """
    Moves ``classification`` (with everything below it) under
    ``new_parent``, or to the top level if ``new_parent`` is ``ROOT``.

    Raises InvalidParentError if the move would create a cycle or cross
    vocabularies, and DuplicateNameError if the new parent already has a
    child with the same name.
    """
    with transaction.atomic():
        classification = _get_classification_or_raise(classification)
        new_parent = _get_parent(classification.field_id, new_parent)
        new_parent_id = new_parent.pk if new_parent else None
        if new_parent is not None and (
            new_parent.pk == classification.pk
            or classification.pk in new_parent.get_ancestor_ids()
        ):
            raise InvalidParentError(
                _("Cannot move {name} under itself or one of its descendants.").format(
                    name=classification.full_name,
                )
            )
        if new_parent_id == classification.parent_id:
            return classification

        _check_unique_name(
            classification.field_id,
            new_parent,
            classification.segment_name,
            exclude=classification,
        )

        old_ancestor_ids = classification.get_ancestor_ids()
        classification.parent = new_parent
        classification.save(update_fields=["parent"])
        new_ancestor_ids = classification.get_ancestor_ids()

        # Ancestors shared by the old and new position keep their totals.
        moved = classification.full_resource_count
        counts.adjust_full_counts([pk for pk in old_ancestor_ids if pk not in new_ancestor_ids], -moved)
        counts.adjust_full_counts([pk for pk in new_ancestor_ids if pk not in old_ancestor_ids], moved)

        update_full_names(classification)
    invalidate_browse_cache(classification.field_id)
    return classification


def delete_classification(classification: ClassificationOrId, cascade: bool = False) -> int:
    """
    Deletes ``classification``, and with ``cascade=True`` everything below it
    along with all of their item assignments.

    Raises HasChildrenError if the classification has children and
    ``cascade`` is False. Returns the number of classifications deleted.
    """
    with transaction.atomic():
        classification = _get_classification_or_raise(classification)
        field_id = classification.field_id
        child_count = classification.child_count
        if child_count and not cascade:
            raise HasChildrenError(classification, child_count)

        counts.adjust_full_counts(
            classification.get_ancestor_ids(),
            -classification.full_resource_count,
        )
        _total, deleted_per_model = classification.delete()
    num_deleted = deleted_per_model.get(Classification._meta.label, 0)
    log.info(f"Deleted {num_deleted} classification(s) from field {field_id}")
    invalidate_browse_cache(field_id)
    return num_deleted


def set_qualifier(classification: ClassificationOrId, qualifier: Qualifier | None) -> Classification:
    """
    Sets (or, with None, removes) the authority qualifier of a classification.
    """
    classification = _get_classification_or_raise(classification)
    classification.qualifier = qualifier
    classification.save(update_fields=["qualifier"])
    return classification


def associate_item(item_id: str, classification: ClassificationOrId) -> bool:
    """
    Assigns the item ``item_id`` to ``classification``.

    Returns False (and changes nothing) if the item was already assigned.
    """
    with transaction.atomic():
        classification = _get_classification_or_raise(classification)
        _item_classification, created = ItemClassification.objects.get_or_create(
            item_id=str(item_id),
            classification=classification,
        )
        if not created:
            return False
        counts.on_item_associated(classification)
        Classification.objects.filter(pk=classification.pk).update(last_assigned=timezone.now())
    invalidate_browse_cache(classification.field_id)
    return True


def dissociate_item(item_id: str, classification: ClassificationOrId) -> bool:
    """
    Removes the item ``item_id`` from ``classification``.

    Returns False (and changes nothing) if the item wasn't assigned to it.
    """
    with transaction.atomic():
        classification = _get_classification_or_raise(classification)
        num_deleted, _per_model = ItemClassification.objects.filter(
            item_id=str(item_id),
            classification=classification,
        ).delete()
        if not num_deleted:
            return False
        counts.on_item_dissociated(classification)
    invalidate_browse_cache(classification.field_id)
    return True


def get_item_classifications(item_id: str, field_id: int | None = None) -> QuerySet[Classification]:
    """
    Returns the classifications the item is assigned to, optionally only the
    ones of one vocabulary, sorted by full name.
    """
    qs = Classification.objects.filter(item_classifications__item_id=str(item_id))
    if field_id is not None:
        qs = qs.filter(field_id=field_id)
    return qs.order_by("full_name")


def set_item_classifications(
    item_id: str,
    field_id: int,
    classifications: list[Classification],
) -> None:
    """
    Replaces the item's classifications in vocabulary ``field_id`` with the
    given list.

    Preserves existing assignments, adds new ones, and removes omitted ones.
    Assignments in other vocabularies are left alone.
    """
    if not isinstance(classifications, list):
        raise ValueError(
            _("Classifications must be a list, not {type}.").format(type=type(classifications).__name__)
        )
    # Remove duplicates preserving order
    wanted = list({c.pk: c for c in classifications}.values())
    for classification in wanted:
        if classification.field_id != field_id:
            raise InvalidParentError(
                _("Classification {name} does not belong to field {field_id}.").format(
                    name=classification.full_name, field_id=field_id,
                )
            )

    with transaction.atomic():
        current = list(get_item_classifications(item_id, field_id))
        wanted_ids = {c.pk for c in wanted}
        current_ids = {c.pk for c in current}
        # Remove omitted ones first
        for classification in current:
            if classification.pk not in wanted_ids:
                dissociate_item(item_id, classification)
        for classification in wanted:
            if classification.pk not in current_ids:
                associate_item(item_id, classification)
