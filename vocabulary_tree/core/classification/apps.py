"""
classification Django application initialization.
"""

from django.apps import AppConfig


class ClassificationConfig(AppConfig):
    """
    Configuration for the classification Django application.
    """

    name = "vocabulary_tree.core.classification"
    verbose_name = "Classification"
    default_auto_field = "django.db.models.BigAutoField"
    label = "vt_classification"
