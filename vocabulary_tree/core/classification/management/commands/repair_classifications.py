"""
Recompute the denormalized columns of one or all vocabularies.

    ./manage.py repair_classifications --field-id 12 --full-names
"""
from __future__ import annotations

from django.core.management.base import BaseCommand

from ...models import Classification
from ...tasks import rebuild_full_names_task, recount_field_task


class Command(BaseCommand):
    help = "Recount items and (optionally) rebuild full names of classification vocabularies."

    def add_arguments(self, parser):
        parser.add_argument(
            "--field-id",
            type=int,
            action="append",
            dest="field_ids",
            help="Only repair this vocabulary. May be given more than once. Defaults to all of them.",
        )
        parser.add_argument(
            "--full-names",
            action="store_true",
            help="Also rebuild full names and depths before recounting.",
        )

    def handle(self, *args, **options):
        field_ids = options["field_ids"] or sorted(
            Classification.objects.values_list("field_id", flat=True).distinct().order_by()
        )
        for field_id in field_ids:
            if options["full_names"]:
                renamed = rebuild_full_names_task(field_id)
                self.stdout.write(f"Field {field_id}: repaired {renamed} full name(s)")
            recounted = recount_field_task(field_id)
            self.stdout.write(f"Field {field_id}: corrected {recounted} count(s)")
