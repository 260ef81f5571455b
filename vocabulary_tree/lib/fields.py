"""
Field helpers that keep text comparison rules the same on every backend.

MySQL compares strings case-insensitively by default, while SQLite and
PostgreSQL are case-sensitive. Classification names are case-insensitive
(sibling uniqueness, browse ordering) but item identifiers are not, so each
text column states which behaviour it wants explicitly.
"""
from __future__ import annotations

from django.db import models

from .collations import MultiCollationMixin


def case_insensitive_char_field(**kwargs) -> MultiCollationCharField:
    """
    Return a ``MultiCollationCharField`` that sorts and compares without
    regard to case, so "Mammals" and "mammals" sort together.

    Any ``CharField`` argument may be passed through and overrides these
    defaults.
    """
    final_kwargs = {
        "null": False,
        "db_collations": {
            "sqlite": "NOCASE",
            # utf8mb4_unicode_ci is understood by both MySQL and MariaDB.
            "mysql": "utf8mb4_unicode_ci",
        },
    }
    final_kwargs.update(kwargs)

    return MultiCollationCharField(**final_kwargs)


def case_sensitive_char_field(**kwargs) -> MultiCollationCharField:
    """
    Return a ``MultiCollationCharField`` that compares byte-for-byte.

    Used for identifiers that come from other systems, where "abc" and "ABC"
    are two different things.
    """
    final_kwargs = {
        "null": False,
        "db_collations": {
            "sqlite": "BINARY",
            "mysql": "utf8mb4_bin",
        },
    }
    final_kwargs.update(kwargs)

    return MultiCollationCharField(**final_kwargs)


class MultiCollationCharField(MultiCollationMixin, models.CharField):
    """
    CharField with per-database-vendor collation settings.

    Django's own ``db_collation`` only takes a single value, which can't
    describe "NOCASE on SQLite, utf8mb4_unicode_ci on MySQL".
    """
