from __future__ import annotations

from django.core.management.base import BaseCommand

from ...engine.pipeline import build_pipeline
from ._summary import report


class Command(BaseCommand):
    help = "Find and store backlink suggestions for one or more target pages."

    def add_arguments(self, parser):
        parser.add_argument("urls", nargs="+", help="Target page URLs")
        parser.add_argument("--config", default=None, help="YAML file merged over the engine defaults")

    def handle(self, *args, **options):
        pipeline = build_pipeline(options["config"])
        summary = pipeline.analyze_targets(options["urls"])
        report(self, "Analysis", summary)
