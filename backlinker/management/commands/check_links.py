from __future__ import annotations

from django.core.management.base import BaseCommand

from ...engine.pipeline import build_pipeline
from ._summary import report


class Command(BaseCommand):
    help = "Run one deferred pass over unverified suggestions, oldest first."

    def add_arguments(self, parser):
        parser.add_argument("--batch-size", type=int, default=None, help="Suggestions to check this run")
        parser.add_argument("--config", default=None, help="YAML file merged over the engine defaults")

    def handle(self, *args, **options):
        pipeline = build_pipeline(options["config"])
        summary = pipeline.run_link_checks(options["batch_size"])
        report(self, "Link check", summary)
