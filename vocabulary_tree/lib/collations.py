"""
Per-database-vendor collations for text fields.

Browse ordering and sibling uniqueness for classifications both depend on
case-insensitive comparison, but SQLite, MySQL and PostgreSQL disagree about
what their default collation does. The mixin here lets a field declare the
collation it wants for each vendor, and ``fields`` builds on it.
"""
from django.db import models


class MultiCollationMixin:
    """
    Mixin for CharField/TextField subclasses that picks a collation by vendor.
    """

    def __init__(self, *args, db_collations=None, db_collation=None, **kwargs):  # pylint: disable=unused-argument
        """
        ``db_collations`` maps ``connection.vendor`` names to collations, e.g.::

          {
            'mysql': 'utf8mb4_unicode_ci',
            'sqlite': 'NOCASE'
          }

        A single CharField-style ``db_collation`` is accepted for signature
        compatibility and ignored.
        """
        super().__init__(*args, **kwargs)
        self.db_collations = db_collations or {}

    def db_parameters(self, connection):
        """
        Add the collation for ``connection.vendor`` (if we have one) to the
        column parameters.
        """
        db_params = models.Field.db_parameters(self, connection)
        if connection.vendor in self.db_collations:
            db_params["collation"] = self.db_collations[connection.vendor]
        return db_params

    def deconstruct(self):
        """
        Serialize ``db_collations`` into migrations alongside the usual field
        arguments.
        """
        name, path, args, kwargs = super().deconstruct()
        if self.db_collations:
            kwargs["db_collations"] = self.db_collations
        return name, path, args, kwargs
