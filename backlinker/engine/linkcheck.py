"""Checks whether a source page already links to a target.

Two modes share the same primitive. The immediate check runs during an
analysis, before anything is stored, and discards suggestions whose
source already links to the target. The deferred check walks stored,
unverified suggestions oldest first: a found link deletes the row, no
link marks it verified, and an unreachable source is also marked
verified so that one flaky page cannot hold the queue.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, FrozenSet, List, Protocol, Sequence, Tuple

from django.db import DatabaseError

from ..models import Suggestion
from .config import EngineConfig
from .errors import FetchError, StoreError
from .types import BatchSummary, SuggestionDraft
from .urlnorm import same_resource

logger = logging.getLogger(__name__)


class LinkFetcher(Protocol):
    def fetch_links(self, url: str) -> FrozenSet[str]:
        ...


class LinkExistenceChecker:
    """Compares a source page's live outbound links against a target."""

    def __init__(
        self,
        fetcher: LinkFetcher,
        config: EngineConfig,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.fetcher = fetcher
        self.config = config
        self.sleep = sleep

    @property
    def delay(self) -> float:
        return self.config.float_value("politeness_delay")

    def links_to(self, source_url: str, target_url: str) -> bool:
        """True when ``source_url`` currently links to ``target_url``.

        Raises :class:`FetchError` when the source cannot be fetched.
        """

        return any(same_resource(link, target_url) for link in self.fetcher.fetch_links(source_url))

    def filter_unlinked(
        self,
        target_url: str,
        drafts: Sequence[SuggestionDraft],
    ) -> Tuple[List[SuggestionDraft], int]:
        """Drop drafts whose source already links to the target.

        Sources that cannot be fetched are kept. Returns the kept drafts
        and the number filtered out.
        """

        kept: List[SuggestionDraft] = []
        filtered = 0
        for index, draft in enumerate(drafts):
            if index and self.delay:
                self.sleep(self.delay)
            try:
                linked = self.links_to(draft.source_url, target_url)
            except FetchError as exc:
                logger.info("Keeping %s, source could not be fetched (%s)", draft.source_url, exc.reason)
                kept.append(draft)
                continue
            if linked:
                logger.info("Filtered %s, already links to %s", draft.source_url, target_url)
                filtered += 1
            else:
                kept.append(draft)
        return kept, filtered

    def pending(self, limit: int) -> List[Suggestion]:
        try:
            return list(Suggestion.objects.filter(link_verified=False).order_by('created_at', 'id')[:limit])
        except DatabaseError as exc:
            raise StoreError(f"Could not load unverified suggestions: {exc}") from exc

    def run_batch(self, batch_size: int | None = None) -> BatchSummary:
        """Verify up to ``batch_size`` unverified suggestions, oldest first."""

        limit = batch_size if batch_size is not None else self.config.int_value("link_check_batch_size")
        summary = BatchSummary()
        try:
            rows = self.pending(limit)
        except StoreError as exc:
            summary.record_failure("load", exc)
            logger.error("Link check batch aborted: %s", exc)
            return summary

        for index, suggestion in enumerate(rows):
            if index and self.delay:
                self.sleep(self.delay)
            summary.processed += 1
            label = f"{suggestion.source_url} -> {suggestion.target_url}"
            try:
                linked = self.links_to(suggestion.source_url, suggestion.target_url)
            except FetchError as exc:
                logger.warning("Could not fetch %s (%s); marking verified", suggestion.source_url, exc.reason)
                summary.unreachable += 1
                linked = False

            try:
                if linked:
                    suggestion.delete()
                    summary.removed += 1
                    logger.info("Removed %s, link already present", label)
                else:
                    Suggestion.objects.filter(pk=suggestion.pk).update(link_verified=True)
                    summary.succeeded += 1
            except DatabaseError as exc:
                summary.record_failure(label, StoreError(str(exc)))
                logger.error("Could not update %s: %s", label, exc)

        logger.info(
            "Link check: %s processed, %s verified, %s removed, %s unreachable",
            summary.processed,
            summary.succeeded,
            summary.removed,
            summary.unreachable,
        )
        return summary
