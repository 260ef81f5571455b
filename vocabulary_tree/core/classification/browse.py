"""
Queries behind the "Browse by Category" pages.

A browse page lists one level of a vocabulary. Top-level lists that are too
long are split into alphabetical ranges (see ``partition``); the ranges are
derived from every sibling's ``browse_name``, so they're cached per
vocabulary and thrown away whenever a change to that vocabulary commits.
"""
from __future__ import annotations

import logging

from django.db import transaction
from django.db.models import Q, QuerySet

from vocabulary_tree.lib.cache import VersionedCache

from .config import get_setting
from .data import BrowseBin, BrowsePage, ClassificationOrId
from .models import Classification
from .models.utils import normalize_name
from .partition import partition

log = logging.getLogger(__name__)

_browse_cache = VersionedCache(
    "vocabulary_tree.browse_bins",
    timeout=lambda: get_setting("BROWSE_CACHE_TIMEOUT"),
)


class _InvalidateOnCommit:
    """
    on_commit callback that drops the cached ranges of one vocabulary.
    """

    def __init__(self, field_id: int):
        self.field_id = field_id

    def __call__(self):
        _browse_cache.invalidate(self.field_id)


def _pending_invalidation(field_id: int) -> bool:
    """
    True if the current transaction has changed ``field_id`` and not yet
    committed.

    Django drops on_commit callbacks when their transaction or savepoint is
    rolled back, so this stops being true after a rollback as well.
    """
    connection = transaction.get_connection()
    if not connection.in_atomic_block:
        return False
    return any(
        isinstance(entry[1], _InvalidateOnCommit) and entry[1].field_id == field_id
        for entry in connection.run_on_commit
    )


def _parent_id(parent: ClassificationOrId | None) -> int | None:
    if isinstance(parent, Classification):
        return parent.pk
    return parent


def build_range_query(
    field_id: int,
    parent: ClassificationOrId | None = None,
    start_label: str | None = None,
    end_label: str | None = None,
    include_empty: bool = False,
) -> QuerySet[Classification]:
    """
    Classifications of one browse level, ordered by full name.

    Top-level lists (no ``parent``) can be narrowed to the alphabetical range
    ``start_label`` to ``end_label``. Both bounds are inclusive and compared
    against the normalized ``browse_name``, the same key the ranges were
    computed from; the end bound also takes every name it is a prefix of, so
    "Ce" includes "Cells". Labels are normalized first, so "h" means "H".
    Child lists are never split, so the labels are ignored when ``parent``
    is given.

    Classifications with no items assigned directly are left out unless
    ``include_empty`` is set.
    """
    parent_id = _parent_id(parent)
    qs = Classification.objects.filter(field_id=field_id)
    if parent_id is None:
        qs = qs.filter(depth=0)
        start_label = normalize_name(start_label or "")
        end_label = normalize_name(end_label or "")
        if start_label:
            qs = qs.filter(browse_name__gte=start_label)
        if end_label:
            qs = qs.filter(Q(browse_name__lte=end_label) | Q(browse_name__startswith=end_label))
    else:
        qs = qs.filter(parent_id=parent_id)
        if start_label or end_label:
            log.debug(
                f"Ignoring browse range {start_label!r}-{end_label!r} below classification {parent_id}"
            )

    if not include_empty:
        qs = qs.exclude(resource_count=0)
    return qs.order_by("full_name")


def get_sibling_names(
    field_id: int,
    parent: ClassificationOrId | None = None,
    include_empty: bool = False,
) -> list[str]:
    """
    Normalized, sorted names of one browse level: the input for
    ``partition.partition``.

    Names with nothing left after normalization are skipped; they are only
    listed on unsplit pages.
    """
    names = build_range_query(field_id, parent, include_empty=include_empty).values_list(
        "browse_name", flat=True,
    )
    return sorted(name for name in names if name)


def get_browse_bins(
    field_id: int,
    parent: ClassificationOrId | None = None,
    max_per_page: int | None = None,
    include_empty: bool = False,
) -> list[BrowseBin]:
    """
    Alphabetical ranges for one browse level, or ``[]`` when everything fits
    on a single page.

    Results are cached until a change to the vocabulary commits, or
    BROWSE_CACHE_TIMEOUT passes. While the current transaction has
    uncommitted changes to the vocabulary the ranges are computed but not
    cached.
    """
    if max_per_page is None:
        max_per_page = get_setting("MAX_CLASSES_PER_BROWSE_PAGE")
    parent_id = _parent_id(parent)

    def compute() -> list[BrowseBin]:
        names = get_sibling_names(field_id, parent_id, include_empty=include_empty)
        return partition(names, max_per_page, get_setting("BROWSE_BIN_FILL_FACTOR"))

    if _pending_invalidation(field_id):
        return compute()
    return _browse_cache.get_or_set(
        field_id,
        (parent_id, max_per_page, include_empty),
        compute,
    )


def invalidate_browse_cache(field_id: int) -> None:
    """
    Forget every cached browse range of the vocabulary ``field_id`` once the
    current transaction commits (right away outside a transaction).
    """
    if _pending_invalidation(field_id):
        return
    transaction.on_commit(_InvalidateOnCommit(field_id))


def get_browse_page(
    field_id: int,
    parent: ClassificationOrId | None = None,
    start_label: str | None = None,
    end_label: str | None = None,
    include_empty: bool = False,
    max_per_page: int | None = None,
) -> BrowsePage:
    """
    Ranges and classifications for one browse page.

    When a top-level list is split into ranges and no range was asked for,
    the first range is shown.
    """
    parent_id = _parent_id(parent)
    bins = get_browse_bins(field_id, parent_id, max_per_page=max_per_page, include_empty=include_empty)
    if parent_id is None and bins and not (start_label or end_label):
        start_label = bins[0].begin_label
        end_label = bins[0].end_label

    return BrowsePage(
        field_id=field_id,
        parent_id=parent_id,
        bins=bins,
        start_label=start_label,
        end_label=end_label,
        classifications=build_range_query(
            field_id,
            parent_id,
            start_label=start_label,
            end_label=end_label,
            include_empty=include_empty,
        ),
    )
