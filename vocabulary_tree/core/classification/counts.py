"""
Keep the denormalized item counts on Classification in sync.

``resource_count`` is the number of items assigned directly to a
classification and ``full_resource_count`` the number assigned to it or to
anything below it, so that for every classification::

    full_resource_count == resource_count + sum(child.full_resource_count)

The ``on_item_*`` hooks apply incremental changes as atomic ``F()`` updates,
so concurrent requests touching the same ancestors don't lose updates.
``recount`` rebuilds everything from the ItemClassification rows and is meant
for background repair jobs, not for request handling.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from typing import Iterable

from django.db import models, transaction
from django.db.models import Case, F, Q, Value, When

from .config import get_setting
from .exceptions import ConsistencyError
from .models import Classification, ItemClassification

log = logging.getLogger(__name__)


def _adjust(ids: list[int], field_name: str, delta: int) -> None:
    """
    Add ``delta`` to ``field_name`` on the given classifications.

    Decrements never take a count below zero: rows that would go negative are
    clamped at 0 and flagged with ``needs_recount`` (or, with the
    STRICT_COUNTS setting, ConsistencyError is raised and nothing changes).
    """
    if not ids or not delta:
        return
    qs = Classification.objects.filter(pk__in=ids)
    if delta > 0:
        qs.update(**{field_name: F(field_name) + delta})
        return

    amount = -delta
    short = Q(**{f"{field_name}__lt": amount})
    with transaction.atomic():
        # The rows stay locked until the caller's transaction ends.
        stored = qs.select_for_update().order_by("pk").values_list("pk", field_name)
        short_ids = [pk for pk, value in stored if value < amount]
        if short_ids:
            if get_setting("STRICT_COUNTS"):
                raise ConsistencyError(short_ids)
            log.warning(
                f"Clamping {field_name} at 0 for classifications {short_ids}; flagged for recount"
            )
        # needs_recount goes first: MySQL applies SET assignments left to right.
        qs.update(
            needs_recount=Case(
                When(short, then=Value(True)),
                default=F("needs_recount"),
                output_field=models.BooleanField(),
            ),
            **{
                field_name: Case(
                    When(short, then=Value(0)),
                    default=F(field_name) - amount,
                    output_field=models.PositiveIntegerField(),
                ),
            },
        )


def adjust_full_counts(classification_ids: list[int], delta: int) -> None:
    """
    Add ``delta`` to full_resource_count of each of the given classifications.

    Used when a whole subtree (carrying ``delta`` items) appears under or
    disappears from a chain of ancestors.
    """
    with transaction.atomic():
        _adjust(classification_ids, "full_resource_count", delta)


def on_item_associated(classification: Classification) -> None:
    """
    Record that one more item was assigned to ``classification``.
    """
    lineage = [classification.pk] + classification.get_ancestor_ids()
    with transaction.atomic():
        _adjust([classification.pk], "resource_count", 1)
        _adjust(lineage, "full_resource_count", 1)


def on_item_dissociated(classification: Classification) -> None:
    """
    Record that one item was removed from ``classification``.
    """
    lineage = [classification.pk] + classification.get_ancestor_ids()
    with transaction.atomic():
        _adjust([classification.pk], "resource_count", -1)
        _adjust(lineage, "full_resource_count", -1)


def _post_order(classifications: list[Classification]) -> list[Classification]:
    """
    Order ``classifications`` so that every child comes before its parent.
    """
    children = defaultdict(list)
    by_id = {}
    for classification in classifications:
        by_id[classification.id] = classification
        children[classification.parent_id].append(classification)

    ordered = []
    # Roots are parentless, or point at a parent outside this field.
    stack = [(c, False) for c in classifications if c.parent_id is None or c.parent_id not in by_id]
    visited = set()
    while stack:
        classification, expanded = stack.pop()
        if expanded:
            ordered.append(classification)
            continue
        if classification.id in visited:
            continue
        visited.add(classification.id)
        stack.append((classification, True))
        stack.extend((child, False) for child in children[classification.id])

    if len(ordered) != len(classifications):
        unreachable = sorted(set(by_id) - visited)
        log.error(f"Classifications not reachable from any root (cycle?): {unreachable}")
    return ordered


def recount(field_id: int) -> int:
    """
    Recompute resource_count and full_resource_count for every classification
    of a vocabulary from the ItemClassification rows.

    Idempotent; returns how many classifications had wrong counts (0 when
    everything was already consistent).
    """
    with transaction.atomic():
        classifications = list(
            Classification.objects.select_for_update().filter(field_id=field_id)
        )
        direct_counts = dict(
            ItemClassification.objects
            .filter(classification__field_id=field_id)
            .values("classification_id")
            .annotate(num_items=models.Count("id"))
            .order_by()
            .values_list("classification_id", "num_items")
        )
        child_totals: dict[int | None, int] = defaultdict(int)
        changed = []
        for classification in _post_order(classifications):
            resource_count = direct_counts.get(classification.id, 0)
            full_resource_count = resource_count + child_totals[classification.id]
            child_totals[classification.parent_id] += full_resource_count
            if (
                classification.resource_count != resource_count
                or classification.full_resource_count != full_resource_count
                or classification.needs_recount
            ):
                classification.resource_count = resource_count
                classification.full_resource_count = full_resource_count
                classification.needs_recount = False
                changed.append(classification)

        if changed:
            Classification.objects.bulk_update(
                changed,
                ["resource_count", "full_resource_count", "needs_recount"],
                batch_size=500,
            )

    if changed:
        log.info(f"Recount of field {field_id} corrected {len(changed)} classification(s)")
    return len(changed)


def count_viewable_items(classification: Classification, viewable_item_ids: Iterable) -> int:
    """
    Count the distinct items assigned to ``classification`` or anything below
    it, considering only ``viewable_item_ids``.

    The stored counts include every item; which items a given user may see
    is decided by the caller's permission layer, so this count is computed on
    demand and never stored.
    """
    item_ids = [str(item_id) for item_id in viewable_item_ids]
    if not item_ids:
        return 0
    classification_ids = [classification.pk] + classification.get_descendant_ids()
    return (
        ItemClassification.objects
        .filter(classification_id__in=classification_ids, item_id__in=item_ids)
        .values("item_id")
        .distinct()
        .count()
    )
