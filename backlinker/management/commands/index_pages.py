from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from ...engine.errors import FetchError
from ...engine.pipeline import build_pipeline
from ...engine.urlnorm import normalize_url
from ...models import Page
from ...services import read_sitemap
from ._summary import report


class Command(BaseCommand):
    help = "Fetch pages, cache their keyphrases and rebuild their sentence fragments."

    def add_arguments(self, parser):
        parser.add_argument("urls", nargs="*", help="Page URLs to index")
        parser.add_argument("--sitemap", help="Index pages listed in this sitemap that are not stored yet")
        parser.add_argument("--limit", type=int, default=None, help="Max pages per run (default: index_batch_size)")
        parser.add_argument("--refresh-keywords", action="store_true", help="Regenerate cached keyphrases")
        parser.add_argument("--config", default=None, help="YAML file merged over the engine defaults")

    def handle(self, *args, **options):
        pipeline = build_pipeline(options["config"])
        urls = list(options["urls"])

        if options["sitemap"]:
            try:
                listed = read_sitemap(options["sitemap"], timeout=pipeline.config.float_value("fetch_timeout"))
            except FetchError as exc:
                raise CommandError(str(exc)) from exc
            indexed = set(Page.objects.values_list("key", flat=True))
            known = set(indexed)
            known.update(normalize_url(url) for url in urls)
            for url in listed:
                key = normalize_url(url)
                if key not in known:
                    known.add(key)
                    urls.append(url)
            self.stdout.write(f"Sitemap lists {len(listed)} URL(s), {len(indexed)} already indexed.")

        if not urls:
            self.stdout.write("Nothing to index.")
            return

        limit = options["limit"] or pipeline.config.int_value("index_batch_size")
        summary = pipeline.index_pages(urls[:limit], refresh_keywords=options["refresh_keywords"])
        report(self, "Indexing", summary)
