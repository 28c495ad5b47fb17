"""Candidate retrieval against the sentence index."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from .config import EngineConfig
from .sentences import SentenceStore
from .types import Candidate
from .urlnorm import normalize_url

logger = logging.getLogger(__name__)


def clean_keywords(keywords: Sequence[str]) -> List[str]:
    """Lower-case, strip and de-duplicate keywords, keeping their order."""

    seen: set[str] = set()
    cleaned: List[str] = []
    for keyword in keywords:
        value = " ".join(str(keyword).lower().split())
        if value and value not in seen:
            seen.add(value)
            cleaned.append(value)
    return cleaned


def longest_matching_keyword(sentence: str, keywords: Sequence[str]) -> Optional[str]:
    """Return the longest keyword occurring in ``sentence`` (case-insensitive).

    Ties keep the keyword that comes first in ``keywords``, so specific
    phrases win over the generic sub-phrases they contain.
    """

    lowered = sentence.lower()
    best: Optional[str] = None
    for keyword in keywords:
        if keyword and keyword.lower() in lowered:
            if best is None or len(keyword) > len(best):
                best = keyword
    return best


class CandidateRetriever:
    """Finds fragments on other pages that mention a target's keywords."""

    def __init__(self, store: SentenceStore, config: EngineConfig) -> None:
        self.store = store
        self.config = config

    def retrieve(self, target_url: str, keywords: Sequence[str], max_results: int | None = None) -> List[Candidate]:
        """Return at most ``max_results`` candidates, one per source page.

        Keywords are OR-combined and queried in order. Fragments on the
        target itself, on pages matching ``skip_url_patterns``, or whose
        block already links to the target are skipped. The first matching
        fragment of each source page is kept. Exclusions are applied in the
        sentence query so that they do not count against ``per_keyword_limit``.
        """

        limit = max_results if max_results is not None else self.config.int_value("max_candidates")
        terms = clean_keywords(keywords)
        if limit <= 0 or not terms:
            return []

        target = normalize_url(target_url)
        skip_patterns = self.config.get("skip_url_patterns", [])
        per_keyword = self.config.int_value("per_keyword_limit")

        candidates: List[Candidate] = []
        seen_sources: set[str] = set()

        for keyword in terms:
            fragments = self.store.find_by_keyword(
                keyword,
                target_url,
                per_keyword,
                skip_patterns=skip_patterns,
                exclude_keys=seen_sources,
                linked_to=target,
            )
            for fragment in fragments:
                seen_sources.add(normalize_url(fragment.page_url))
                candidates.append(
                    Candidate(
                        source_url=fragment.page_url,
                        source_title=fragment.page_title or fragment.page_url,
                        sentence=fragment.text,
                        matched_keyword=longest_matching_keyword(fragment.text, terms),
                    )
                )
                if len(candidates) >= limit:
                    logger.debug("Candidate cap of %s reached for %s", limit, target)
                    return candidates

        logger.debug("Retrieved %s candidate(s) for %s", len(candidates), target)
        return candidates
