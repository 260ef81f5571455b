"""
Settings for the classification app.

Host projects configure us through a single dict in their Django settings::

    VOCABULARY_TREE = {
        "MAX_CLASSES_PER_BROWSE_PAGE": 40,
        "BROWSE_CACHE_TIMEOUT": 300,
    }

Any key that is left out falls back to the default below.
"""
from __future__ import annotations

from typing import Any

from django.conf import settings

DEFAULTS: dict[str, Any] = {
    # How many sibling classifications a browse page shows before it is split
    # into alphabetical ranges.
    "MAX_CLASSES_PER_BROWSE_PAGE": 40,
    # How full a range must be before we start looking for a place to end it.
    "BROWSE_BIN_FILL_FACTOR": 0.8,
    # Seconds that computed browse ranges stay cached.
    "BROWSE_CACHE_TIMEOUT": 300,
    # Raise ConsistencyError instead of clamping when a count would go negative.
    "STRICT_COUNTS": False,
}


def get_setting(name: str) -> Any:
    """
    Return the configured value of ``name``, or its default.
    """
    if name not in DEFAULTS:
        raise KeyError(f"Unknown VOCABULARY_TREE setting: {name}")
    overrides = getattr(settings, "VOCABULARY_TREE", None) or {}
    return overrides.get(name, DEFAULTS[name])
