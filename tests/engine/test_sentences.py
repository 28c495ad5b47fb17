"""Fragment filtering and sentence index tests."""

from __future__ import annotations

import pytest

from backlinker.engine.sentences import SentenceStore, build_fragments, is_usable_sentence, split_sentences
from backlinker.engine.types import Block
from backlinker.models import Sentence

from .conftest import sentence

pytestmark = pytest.mark.django_db


def test_split_sentences_on_terminal_punctuation():
    assert split_sentences("One here. Two there! Three? Four") == ["One here.", "Two there!", "Three?", "Four"]
    assert split_sentences("   ") == []


def test_short_sentences_are_dropped(engine_config):
    assert not is_usable_sentence("Lipedema diet tips for beginners.", engine_config)
    assert is_usable_sentence(sentence("lipedema diet"), engine_config)


def test_pipes_and_boilerplate_are_dropped(engine_config):
    assert not is_usable_sentence(sentence("home | about | contact"), engine_config)
    assert not is_usable_sentence("Skip to content " + sentence("lipedema diet"), engine_config)


def test_site_name_fragments_are_configurable(engine_config):
    text = sentence("the acme clinic newsletter")
    assert is_usable_sentence(text, engine_config)
    engine_config.raw["site_name_fragments"] = ["Acme Clinic"]
    assert not is_usable_sentence(text, engine_config)


def test_title_case_menus_are_dropped(engine_config):
    menu = "Home About Us Our Team Lipedema Guide Diet Plans Exercise Tips Contact Us Book Now Patient Stories Today"
    assert not is_usable_sentence(menu, engine_config)


def test_fragments_keep_their_block_links(engine_config):
    blocks = [
        Block(text=sentence("lipedema diet") + " Short one.", links=frozenset({"https://example.com/diet"})),
        Block(text=sentence("compression garments")),
    ]
    fragments = build_fragments("https://example.com/a", "A", blocks, engine_config)
    assert [fragment.outbound_links for fragment in fragments] == [
        frozenset({"https://example.com/diet"}),
        frozenset(),
    ]


def test_reindex_replaces_previous_fragments(engine_config):
    store = SentenceStore(engine_config)
    url = "https://example.com/a"
    first = [Block(text=sentence("lipedema diet")), Block(text=sentence("exercise"))]
    second = [Block(text=sentence("compression garments"), links=frozenset({"https://example.com/b"}))]

    assert store.reindex(url, "A", first) == 2
    assert store.reindex(url, "A", first) == 2
    assert Sentence.objects.filter(page_url=url).count() == 2

    assert store.reindex(url, "A", second) == 1
    row = Sentence.objects.get(page_url=url)
    assert row.text == sentence("compression garments")
    assert row.outbound_links == ["https://example.com/b"]


def test_reindex_under_another_spelling_replaces_fragments(engine_config):
    store = SentenceStore(engine_config)
    store.reindex("https://example.com/a", "A", [Block(text=sentence("lipedema diet")), Block(text=sentence("exercise"))])
    store.reindex("http://www.example.com/a/", "A", [Block(text=sentence("compression garments"))])

    rows = Sentence.objects.filter(page_key="https://example.com/a")
    assert [row.text for row in rows] == [sentence("compression garments")]
    assert Sentence.objects.count() == 1


def test_reindex_with_no_blocks_clears_page(engine_config):
    store = SentenceStore(engine_config)
    store.reindex("https://example.com/a", "A", [Block(text=sentence("lipedema diet"))])
    assert store.reindex("https://example.com/a", "A", []) == 0
    assert not Sentence.objects.exists()


def test_find_by_keyword_is_case_insensitive_and_excludes_page(engine_config):
    store = SentenceStore(engine_config)
    store.reindex("https://example.com/a", "A", [Block(text=sentence("Lipedema Diet"))])
    store.reindex("https://example.com/b", "B", [Block(text=sentence("lipedema diet"))])
    store.reindex("https://example.com/c", "C", [Block(text=sentence("running shoes"))])

    found = store.find_by_keyword("lipedema diet", "https://example.com/b", 10)
    assert [fragment.page_url for fragment in found] == ["https://example.com/a"]
    assert store.find_by_keyword("lipedema diet", None, 1)[0].page_url == "https://example.com/a"
    assert store.find_by_keyword("  ", None, 10) == []


def test_exclusions_do_not_use_up_the_limit(engine_config):
    store = SentenceStore(engine_config)
    busy = [Block(text=sentence("lipedema diet")) for _ in range(3)]
    store.reindex("https://example.com/tag/diet", "Tag", busy)
    store.reindex("https://example.com/seen", "Seen", busy)
    store.reindex("https://example.com/fresh", "Fresh", [Block(text=sentence("lipedema diet"))])

    found = store.find_by_keyword(
        "lipedema diet",
        "https://example.com/other",
        1,
        skip_patterns=["/tag/"],
        exclude_keys={"https://example.com/seen"},
    )

    assert [fragment.page_url for fragment in found] == ["https://example.com/fresh"]
