"""
Alphabetical browse ranges for long lists of sibling classifications.

When a vocabulary has more top-level classifications than fit on one browse
page, the names are split into consecutive bins of roughly
``max_per_page`` names, and each bin gets a short label like "A-Ce" that is
just long enough to tell it apart from its neighbours.

Everything here is a pure function of its input; caching and database access
live in ``browse``.
"""
from __future__ import annotations

from typing import Iterable, Sequence

from .data import BrowseBin
from .models.utils import normalize_name

# Bins are not split within a run of names that share this many characters.
PREFIX_LENGTH = 2

DEFAULT_FILL_FACTOR = 0.8


def normalize_names(names: Iterable[str]) -> list[str]:
    """
    Normalize, drop names that end up empty, and sort.
    """
    return sorted(n for n in (normalize_name(name) for name in names) if n)


def shortest_distinguishing_prefix(name: str, other: str | None) -> str:
    """
    Shortest prefix of ``name`` that differs from the same-length prefix of
    ``other``.

    With no ``other`` (nothing to tell apart from) this is the first
    character. If one string is a prefix of the other, growth stops one
    character past the shorter of the two.
    """
    if other is None:
        return name[:1]
    limit = min(len(name), len(other)) + 1
    length = 1
    while length < limit and name[:length] == other[:length]:
        length += 1
    return name[:length]


def _fill_bins(sorted_names: Sequence[str], max_per_page: int, fill_factor: float) -> list[list[str]]:
    threshold = fill_factor * max_per_page
    bins: list[list[str]] = [[]]
    prefix = None
    for name in sorted_names:
        current = bins[-1]
        if len(current) > threshold and name[:PREFIX_LENGTH] != prefix:
            current = []
            bins.append(current)
        current.append(name)
        prefix = name[:PREFIX_LENGTH]
    return bins


def partition(
    sorted_names: Sequence[str],
    max_per_page: int,
    fill_factor: float = DEFAULT_FILL_FACTOR,
) -> list[BrowseBin]:
    """
    Split ``sorted_names`` (already normalized and sorted, see
    ``normalize_names``) into browse bins.

    Returns an empty list when no partitioning is needed: either everything
    fits in ``max_per_page``, or the names can't be split (e.g. they all share
    their first two characters). Callers should show a single page then.

    A bin is only closed once it holds more than ``fill_factor *
    max_per_page`` names, and never between two names with the same
    two-character prefix, so bins may end up larger than ``max_per_page``.
    """
    max_per_page = max(int(max_per_page), 1)
    if len(sorted_names) <= max_per_page:
        return []

    bins = _fill_bins(sorted_names, max_per_page, fill_factor)
    if len(bins) < 2:
        return []

    result = []
    for i, names in enumerate(bins):
        previous_end = bins[i - 1][-1] if i > 0 else None
        next_start = bins[i + 1][0] if i < len(bins) - 1 else None
        result.append(BrowseBin(
            begin_label=shortest_distinguishing_prefix(names[0], previous_end),
            end_label=shortest_distinguishing_prefix(names[-1], next_start),
            names=names,
        ))
    return result
