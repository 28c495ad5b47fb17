"""Sentence-level fragment index.

Pages are decomposed into sentences (and short headings) that survive a
noise filter, and each fragment keeps the normalised links that appeared
in its source block. Raw extracted text is dominated by navigation and
other chrome, so the filter errs on the side of dropping text.
"""

from __future__ import annotations

import logging
import re
from typing import Collection, Iterable, List, Sequence

from django.db import DatabaseError, transaction

from ..models import Sentence
from .config import EngineConfig
from .errors import StoreError
from .types import Block, Fragment
from .urlnorm import normalize_url

logger = logging.getLogger(__name__)

_SENTENCE_END = re.compile(r"(?<=[.!?])\s+")
_CAPITALIZED = re.compile(r"^[A-Z]")


def split_sentences(text: str) -> List[str]:
    """Split on sentence-ending punctuation followed by whitespace."""

    return [part.strip() for part in _SENTENCE_END.split(text or "") if part.strip()]


def is_usable_sentence(sentence: str, config: EngineConfig) -> bool:
    """Return True when ``sentence`` looks like prose rather than page chrome.

    A fragment must have at least ``min_sentence_words`` words, contain no
    pipe character or boilerplate phrase, and have no more than
    ``max_capitalized_ratio`` of its words capitalised (link lists and
    menus are mostly Title Case).
    """

    words = sentence.split()
    if len(words) < config.int_value("min_sentence_words"):
        return False

    if "|" in sentence:
        return False
    lowered = sentence.lower()
    for phrase in config.phrases("boilerplate_phrases") + config.phrases("site_name_fragments"):
        if phrase in lowered:
            return False

    capitalized = sum(1 for word in words if _CAPITALIZED.match(word))
    if capitalized / len(words) > config.float_value("max_capitalized_ratio"):
        return False

    return True


def build_fragments(
    page_url: str,
    page_title: str,
    blocks: Iterable[Block],
    config: EngineConfig,
) -> List[Fragment]:
    """Split blocks into filtered fragments carrying their block's links."""

    fragments: List[Fragment] = []
    for block in blocks:
        for sentence in split_sentences(block.text):
            if is_usable_sentence(sentence, config):
                fragments.append(
                    Fragment(
                        page_url=page_url,
                        page_title=page_title,
                        text=sentence,
                        outbound_links=frozenset(block.links),
                    )
                )
    return fragments


def _to_fragment(row: Sentence) -> Fragment:
    return Fragment(
        page_url=row.page_url,
        page_title=row.page_title,
        text=row.text,
        outbound_links=frozenset(row.outbound_links or []),
    )


class SentenceStore:
    """Durable per-page fragment index backed by the ``Sentence`` model."""

    def __init__(self, config: EngineConfig) -> None:
        self.config = config

    def reindex(self, page_url: str, page_title: str, blocks: Sequence[Block]) -> int:
        """Replace every fragment stored for ``page_url``; return the new count.

        Fragments are keyed on the canonical URL, so re-indexing a page under
        another spelling replaces its earlier extraction.

        The delete and insert happen in one transaction, so readers see
        either the previous extraction or this one, never a mix.
        """

        page_key = normalize_url(page_url)
        fragments = build_fragments(page_url, page_title, blocks, self.config)
        rows = [
            Sentence(
                page_url=fragment.page_url,
                page_key=page_key,
                page_title=fragment.page_title,
                text=fragment.text,
                outbound_links=sorted(fragment.outbound_links),
            )
            for fragment in fragments
        ]
        try:
            with transaction.atomic():
                Sentence.objects.filter(page_key=page_key).delete()
                Sentence.objects.bulk_create(rows)
        except DatabaseError as exc:
            raise StoreError(f"Could not reindex {page_url}: {exc}") from exc

        linked = sum(1 for fragment in fragments if fragment.outbound_links)
        logger.debug("Indexed %s fragment(s) for %s (%s with links)", len(rows), page_url, linked)
        return len(rows)

    def find_by_keyword(
        self,
        keyword: str,
        exclude_page_url: str | None,
        limit: int,
        *,
        skip_patterns: Iterable[str] = (),
        exclude_keys: Collection[str] = (),
        linked_to: str | None = None,
    ) -> List[Fragment]:
        """Case-insensitive substring search over fragment text.

        Returns at most ``limit`` fragments, the first match of each page in
        insertion order. Fragments of the excluded page, of pages whose URL
        contains one of ``skip_patterns``, of pages whose canonical URL is in
        ``exclude_keys`` and fragments whose links include ``linked_to`` are
        passed over and do not use up ``limit``.
        """

        keyword = (keyword or "").strip()
        if not keyword or limit <= 0:
            return []
        queryset = Sentence.objects.filter(text__icontains=keyword)
        if exclude_page_url:
            queryset = queryset.exclude(page_key=normalize_url(exclude_page_url))
        if exclude_keys:
            queryset = queryset.exclude(page_key__in=list(exclude_keys))
        for pattern in skip_patterns:
            if pattern:
                queryset = queryset.exclude(page_url__icontains=pattern)
        found: List[Fragment] = []
        pages: set[str] = set()
        try:
            for row in queryset.order_by('id').iterator():
                if row.page_key in pages:
                    continue
                if linked_to and linked_to in (row.outbound_links or []):
                    continue
                pages.add(row.page_key)
                found.append(_to_fragment(row))
                if len(found) >= limit:
                    break
        except DatabaseError as exc:
            raise StoreError(f"Sentence lookup for {keyword!r} failed: {exc}") from exc
        return found
