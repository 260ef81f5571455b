"""
Classification repair celery tasks
"""
from __future__ import annotations

from celery import shared_task  # type: ignore[import]

from .browse import invalidate_browse_cache
from .counts import recount
from .full_names import rebuild_full_names


@shared_task
def recount_field_task(field_id: int) -> int:
    """
    Rebuilds the item counts of one vocabulary on a celery worker.

    Returns the number of classifications whose counts were corrected.
    """
    num_changed = recount(field_id)
    if num_changed:
        invalidate_browse_cache(field_id)
    return num_changed


@shared_task
def rebuild_full_names_task(field_id: int) -> int:
    """
    Rebuilds the full names and depths of one vocabulary on a celery worker.
    """
    num_changed = rebuild_full_names(field_id)
    if num_changed:
        invalidate_browse_cache(field_id)
    return num_changed
