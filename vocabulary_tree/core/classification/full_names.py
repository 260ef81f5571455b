"""
Keep Classification.full_name and Classification.depth (and the browse_name
key) in sync with the tree.

Both columns are derived from the chain of ancestors, so renaming or moving a
classification invalidates them for the classification itself and for its
entire subtree. ``update_full_names`` repairs one subtree after such an
edit; ``rebuild_full_names`` repairs a whole vocabulary.
"""
from __future__ import annotations

import logging

from django.db import transaction

from .models import Classification
from .models.utils import normalize_name

log = logging.getLogger(__name__)


def _refresh_level(
    level: list[Classification],
    parents: dict[int, Classification],
    changed: list[Classification],
) -> None:
    """
    Recompute each classification of ``level`` from its (already updated)
    parent in ``parents``, collecting the ones whose values moved.
    """
    for classification in level:
        parent = parents.get(classification.parent_id) if classification.parent_id else None
        full_name, depth = classification.compute_full_name(parent)
        browse_name = normalize_name(classification.segment_name)
        if (full_name, depth, browse_name) != (
            classification.full_name, classification.depth, classification.browse_name,
        ):
            classification.full_name = full_name
            classification.depth = depth
            classification.browse_name = browse_name
            changed.append(classification)


def _update_subtrees(roots: list[Classification], parents: dict[int, Classification]) -> int:
    """
    Walk down from ``roots`` one level at a time, recomputing every
    descendant from its freshly recomputed parent.
    """
    changed: list[Classification] = []
    _refresh_level(roots, parents, changed)
    level = roots
    while level:
        parents = {classification.id: classification for classification in level}
        level = list(
            Classification.objects.filter(parent_id__in=parents.keys()).order_by("id")
        )
        _refresh_level(level, parents, changed)

    if changed:
        Classification.objects.bulk_update(changed, ["full_name", "depth", "browse_name"], batch_size=500)
    return len(changed)


def update_full_names(classification: Classification) -> int:
    """
    Recompute full_name and depth for ``classification`` and everything
    below it.

    Call this after changing the classification's segment_name or parent.
    Returns how many rows actually changed, so re-running it on a
    consistent subtree returns 0.
    """
    parents = {}
    if classification.parent_id:
        parent = Classification.objects.get(pk=classification.parent_id)
        parents[parent.id] = parent
    with transaction.atomic():
        num_changed = _update_subtrees([classification], parents)
    log.debug(f"Updated full names below {classification}: {num_changed} changed")
    return num_changed


def rebuild_full_names(field_id: int) -> int:
    """
    Recompute full_name and depth for every classification in a vocabulary.

    This is a consistency pass for maintenance jobs; normal edits already
    keep the columns in sync.
    """
    roots = list(
        Classification.objects.filter(field_id=field_id, parent=None).order_by("id")
    )
    with transaction.atomic():
        num_changed = _update_subtrees(roots, {})
    if num_changed:
        log.warning(f"Repaired full names of {num_changed} classification(s) in field {field_id}")
    return num_changed
