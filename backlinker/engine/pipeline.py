"""Coordinator for the backlink pipeline.

``Pipeline`` exposes the operations a scheduler calls: indexing pages,
analysing a target page, and running one deferred link-check batch.
Collaborators (content extractor, oracle) are passed in explicitly so
tests can swap them for fakes.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Iterable, Protocol

from django.db import DatabaseError
from django.utils import timezone

from ..models import Page
from .config import EngineConfig, load_config
from .confirm import Oracle, SuggestionConfirmer
from .errors import BacklinkerError, StoreError
from .keywords import KeywordGenerator
from .linkcheck import LinkExistenceChecker
from .persist import SuggestionPersister
from .retrieval import CandidateRetriever
from .sentences import SentenceStore
from .types import AnalysisResult, BatchSummary, ExtractedPage
from .urlnorm import matches_any_pattern, normalize_url

logger = logging.getLogger(__name__)


class Extractor(Protocol):
    def fetch(self, url: str) -> ExtractedPage:
        ...

    def fetch_links(self, url: str) -> frozenset:
        ...


class Pipeline:
    """Runs indexing, analysis and link-check passes against the store."""

    def __init__(
        self,
        extractor: Extractor,
        oracle: Oracle,
        config: EngineConfig | None = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config or load_config(None)
        self.extractor = extractor
        self.sleep = sleep
        self.store = SentenceStore(self.config)
        self.retriever = CandidateRetriever(self.store, self.config)
        self.keywords = KeywordGenerator(oracle, self.config)
        self.confirmer = SuggestionConfirmer(oracle, self.config)
        self.checker = LinkExistenceChecker(extractor, self.config, sleep=sleep)
        self.persister = SuggestionPersister()

    # Indexing -----------------------------------------------------------------

    def _store_page(self, page: ExtractedPage, refresh_keywords: bool) -> Page:
        summary = page.text[: self.config.int_value("summary_chars")]
        try:
            record, _ = Page.objects.update_or_create(
                key=normalize_url(page.url),
                defaults={
                    'url': page.url,
                    'title': page.title,
                    'content': page.text,
                    'summary': summary,
                    'indexed_at': timezone.now(),
                },
            )
        except DatabaseError as exc:
            raise StoreError(f"Could not store page {page.url}: {exc}") from exc

        if refresh_keywords or record.keywords is None:
            record.keywords = self.keywords.generate(record.title)
            try:
                record.save(update_fields=['keywords'])
            except DatabaseError as exc:
                raise StoreError(f"Could not store keywords for {page.url}: {exc}") from exc
        return record

    def _index(self, url: str, refresh_keywords: bool) -> tuple[Page, ExtractedPage]:
        extracted = self.extractor.fetch(url)
        record = self._store_page(extracted, refresh_keywords)
        if matches_any_pattern(url, self.config.get("skip_url_patterns", [])):
            self.store.reindex(url, record.title, [])
        else:
            count = self.store.reindex(url, record.title, extracted.blocks)
            logger.info("Indexed %s (%s fragment(s))", url, count)
        return record, extracted

    def index_page(self, url: str, *, refresh_keywords: bool = False) -> Page:
        """Fetch ``url``, store it and replace its sentence fragments.

        Keywords are generated only when none have been computed for the page
        yet (an empty result still counts as computed), or when
        ``refresh_keywords`` is set.
        """

        record, _ = self._index(url, refresh_keywords)
        return record

    def index_pages(self, urls: Iterable[str], *, refresh_keywords: bool = False) -> BatchSummary:
        """Index each URL in turn; per-page failures are counted, not raised."""

        summary = BatchSummary()
        for index, url in enumerate(urls):
            if index and self.config.float_value("politeness_delay"):
                self.sleep(self.config.float_value("politeness_delay"))
            summary.processed += 1
            try:
                self.index_page(url, refresh_keywords=refresh_keywords)
            except BacklinkerError as exc:
                logger.warning("Indexing %s failed: %s", url, exc)
                summary.record_failure(url, exc)
            else:
                summary.succeeded += 1
        logger.info("Indexing: %s processed, %s failed", summary.processed, summary.failed)
        return summary

    # Analysis -----------------------------------------------------------------

    def analyze_target(self, url: str) -> AnalysisResult:
        """Find, confirm and store backlink suggestions for ``url``.

        Raises :class:`FetchError` if the target cannot be read,
        :class:`OracleError` if the oracle reply cannot be decoded and
        :class:`StoreError` on database failures. Nothing is stored when
        any of these occur before persistence.
        """

        record, extracted = self._index(url, refresh_keywords=False)
        result = AnalysisResult(target_url=url, target_title=record.title, keywords=list(record.keywords or []))
        logger.info("Analysing %s (normalised %s)", url, normalize_url(url))

        candidates = self.retriever.retrieve(url, record.keywords or [])
        result.candidate_count = len(candidates)
        if not candidates:
            logger.info("No candidates for %s", url)
            self._mark_analyzed(record)
            return result

        summary = extracted.text[: self.config.int_value("summary_chars")]
        drafts = self.confirmer.confirm(record.title, summary, candidates)
        result.confirmed_count = len(drafts)

        verified = False
        if self.config.immediate_link_check and drafts:
            drafts, result.filtered_count = self.checker.filter_unlinked(url, drafts)
            verified = True

        self.persister.upsert(url, record.title, drafts, link_verified=verified)
        result.saved = drafts
        self._mark_analyzed(record)
        logger.info(
            "Result for %s: %s confirmed, %s kept, %s filtered",
            url,
            result.confirmed_count,
            len(result.saved),
            result.filtered_count,
        )
        return result

    def analyze_targets(self, urls: Iterable[str]) -> BatchSummary:
        """Analyse each URL in turn; failures are counted per target."""

        summary = BatchSummary()
        for url in urls:
            summary.processed += 1
            try:
                self.analyze_target(url)
            except BacklinkerError as exc:
                logger.warning("Analysis of %s failed: %s", url, exc)
                summary.record_failure(url, exc)
            else:
                summary.succeeded += 1
        return summary

    def _mark_analyzed(self, record: Page) -> None:
        record.analyzed_at = timezone.now()
        try:
            record.save(update_fields=['analyzed_at'])
        except DatabaseError as exc:
            raise StoreError(f"Could not stamp {record.url}: {exc}") from exc

    # Link checks --------------------------------------------------------------

    def run_link_checks(self, batch_size: int | None = None) -> BatchSummary:
        return self.checker.run_batch(batch_size)


def build_pipeline(config_path: str | None = None) -> Pipeline:
    """Construct a pipeline with the live extractor and oracle from settings."""

    from django.conf import settings

    from ..oracle import ChatOracle
    from ..services import ContentExtractor

    config = load_config(config_path or getattr(settings, 'BACKLINKER_CONFIG', None))
    return Pipeline(ContentExtractor(config), ChatOracle.from_settings(), config)
