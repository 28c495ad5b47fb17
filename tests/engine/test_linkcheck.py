"""Immediate and deferred link-existence check tests."""

from __future__ import annotations

import pytest

from backlinker.engine.linkcheck import LinkExistenceChecker
from backlinker.engine.types import ExtractedPage
from backlinker.engine.urlnorm import normalize_url
from backlinker.models import Suggestion

from .conftest import FakeExtractor, draft

pytestmark = pytest.mark.django_db

TARGET = "https://example.com/lipedema-diet"


def linking_page(url: str, *links: str) -> ExtractedPage:
    return ExtractedPage(url=url, title="Linking", text="", outbound_links=frozenset(links))


def store(source_url: str, **fields) -> Suggestion:
    values = {
        "target_url": TARGET,
        "target_key": normalize_url(TARGET),
        "source_url": source_url,
        "source_key": normalize_url(source_url),
        "anchor_text": "lipedema diet",
        "anchor_origin": Suggestion.AnchorOrigin.TITLE,
    }
    values.update(fields)
    return Suggestion.objects.create(**values)


def test_links_to_uses_canonical_forms(engine_config):
    extractor = FakeExtractor([linking_page("https://example.com/a", "https://example.com/lipedema-diet")])
    checker = LinkExistenceChecker(extractor, engine_config)
    assert checker.links_to("https://example.com/a", "http://www.example.com/lipedema-diet/?ref=x")


def test_immediate_filter_drops_linked_and_keeps_unreachable(engine_config):
    sleeps = []
    extractor = FakeExtractor(
        [
            linking_page("https://example.com/a", "https://example.com/lipedema-diet"),
            linking_page("https://example.com/b", "https://example.com/other"),
        ],
        broken=["https://example.com/c"],
    )
    engine_config.raw["politeness_delay"] = 2
    checker = LinkExistenceChecker(extractor, engine_config, sleep=sleeps.append)

    kept, filtered = checker.filter_unlinked(
        TARGET,
        [draft("https://example.com/a"), draft("https://example.com/b"), draft("https://example.com/c")],
    )

    assert [item.source_url for item in kept] == ["https://example.com/b", "https://example.com/c"]
    assert filtered == 1
    assert sleeps == [2.0, 2.0]


def test_unreachable_source_is_marked_verified(engine_config):
    row = store("https://example.com/gone")
    checker = LinkExistenceChecker(FakeExtractor(broken=["https://example.com/gone"]), engine_config)

    summary = checker.run_batch(1)

    row.refresh_from_db()
    assert row.link_verified is True
    assert summary.processed == 1
    assert summary.unreachable == 1
    assert summary.failed == 0


def test_source_already_linking_is_removed(engine_config):
    store("https://example.com/a")
    extractor = FakeExtractor([linking_page("https://example.com/a", "https://www.example.com/lipedema-diet/")])

    summary = LinkExistenceChecker(extractor, engine_config).run_batch()

    assert summary.removed == 1
    assert not Suggestion.objects.exists()


def test_batch_processes_oldest_unverified_first(engine_config):
    first = store("https://example.com/first")
    store("https://example.com/done", link_verified=True)
    second = store("https://example.com/second")
    third = store("https://example.com/third")
    extractor = FakeExtractor(
        [
            linking_page("https://example.com/first"),
            linking_page("https://example.com/second"),
            linking_page("https://example.com/third"),
        ]
    )
    checker = LinkExistenceChecker(extractor, engine_config)

    summary = checker.run_batch(2)

    assert summary.processed == 2
    assert summary.succeeded == 2
    assert extractor.fetched == ["https://example.com/first", "https://example.com/second"]
    verified = set(Suggestion.objects.filter(link_verified=True).values_list("pk", flat=True))
    assert {first.pk, second.pk} <= verified
    assert third.pk not in verified
    assert [row.pk for row in checker.pending(10)] == [third.pk]
