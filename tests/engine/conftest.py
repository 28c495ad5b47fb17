"""Shared fixtures and fakes for engine tests."""

from __future__ import annotations

import json
from typing import Dict, Iterable, List, Sequence

import pytest

from backlinker.engine.config import EngineConfig, load_config
from backlinker.engine.errors import FetchError
from backlinker.engine.types import Block, ExtractedPage, SuggestionDraft
from backlinker.engine.urlnorm import normalize_url

# Long enough to clear min_sentence_words, mostly lower case.
FILLER = "and it is something that many readers ask about when they are looking for practical advice"


@pytest.fixture()
def engine_config() -> EngineConfig:
    """Default configuration without politeness delays."""

    config = load_config(None)
    config.raw["politeness_delay"] = 0
    return config


def sentence(*words: str) -> str:
    """Build a usable prose sentence that contains ``words``."""

    return f"This guide covers {' '.join(words)} {FILLER}."


def make_page(url: str, title: str, blocks: Sequence[Block] = ()) -> ExtractedPage:
    links = frozenset(link for block in blocks for link in block.links)
    return ExtractedPage(
        url=url,
        title=title,
        text=" ".join(block.text for block in blocks),
        blocks=list(blocks),
        outbound_links=links,
    )


class FakeExtractor:
    """Serves canned pages; URLs in ``broken`` raise FetchError."""

    def __init__(self, pages: Iterable[ExtractedPage] = (), broken: Iterable[str] = ()) -> None:
        self.pages: Dict[str, ExtractedPage] = {normalize_url(page.url): page for page in pages}
        self.broken = {normalize_url(url) for url in broken}
        self.fetched: List[str] = []

    def add(self, page: ExtractedPage) -> None:
        self.pages[normalize_url(page.url)] = page

    def fetch(self, url: str) -> ExtractedPage:
        self.fetched.append(url)
        key = normalize_url(url)
        if key in self.broken or key not in self.pages:
            raise FetchError(url, "HTTP 503")
        return self.pages[key]

    def fetch_links(self, url: str) -> frozenset:
        return self.fetch(url).outbound_links


class FakeOracle:
    """Returns queued replies in order and records every request."""

    def __init__(self, *replies) -> None:
        self.replies = list(replies)
        self.calls: List[dict] = []

    def queue(self, reply) -> None:
        self.replies.append(reply)

    def complete(self, system_prompt: str, user_prompt: str, *, temperature: float = 0.3) -> str:
        self.calls.append({"system": system_prompt, "user": user_prompt, "temperature": temperature})
        if not self.replies:
            raise AssertionError("unexpected oracle call")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, str):
            return reply
        return json.dumps(reply)


def confirmation(source_url: str, anchor: str, context: str, *, origin: str = "title", title: str = "") -> dict:
    return {
        "sourceUrl": source_url,
        "sourceTitle": title,
        "suggestedAnchorText": anchor,
        "anchorOrigin": origin,
        "context": context,
        "reason": "Readers of this sentence would want the full guide.",
    }


def draft(source_url: str, anchor: str = "lipedema diet", **overrides) -> SuggestionDraft:
    values = {
        "source_url": source_url,
        "source_title": "Source",
        "anchor_text": anchor,
        "anchor_origin": "title",
        "context": f"A sentence about the {anchor}.",
        "reason": "Relevant.",
    }
    values.update(overrides)
    return SuggestionDraft(**values)
