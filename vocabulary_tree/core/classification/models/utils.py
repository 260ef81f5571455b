"""
Utilities for classification models
"""
from __future__ import annotations

import re

FULL_NAME_SEPARATOR = " -- "

RESERVED_NAME_CHARS = [
    '--',  # Separates segments in full names and in "A -- B -- C" creation paths
]

# Characters that survive browse normalization; anything else is dropped.
_NON_BROWSE_CHARS = re.compile(r'[^0-9A-Za-z"]')


def normalize_name(name: str) -> str:
    """
    Browse key for a classification name: drop everything but ASCII letters,
    digits and double quotes, then capitalize the first character and
    lower-case the rest.

    "(Misc) Dogs" -> "Miscdogs". May return "".
    """
    cleaned = _NON_BROWSE_CHARS.sub("", name or "").lower()
    return cleaned[:1].upper() + cleaned[1:]


def join_full_name(parent_full_name: str | None, segment_name: str) -> str:
    """
    Full name of a classification whose parent has ``parent_full_name``
    (``None`` for top-level classifications).
    """
    if not parent_full_name:
        return segment_name
    return f"{parent_full_name}{FULL_NAME_SEPARATOR}{segment_name}"


def split_full_name(full_name: str) -> list[str]:
    """
    Split a full name into its stripped segments, root first.

    Accepts loosely formatted input ("A--B -- C"); empty segments are kept so
    callers can reject them.
    """
    return [segment.strip() for segment in full_name.split(RESERVED_NAME_CHARS[0])]
