"""Idempotent storage of confirmed suggestions."""

from __future__ import annotations

import logging
from typing import List, Sequence

from django.db import DatabaseError, transaction

from ..models import Suggestion
from .errors import StoreError
from .types import SuggestionDraft
from .urlnorm import normalize_url

logger = logging.getLogger(__name__)


def dedupe_by_source(drafts: Sequence[SuggestionDraft]) -> List[SuggestionDraft]:
    """Keep the first draft for each (normalised) source URL."""

    seen: set[str] = set()
    unique: List[SuggestionDraft] = []
    for draft in drafts:
        key = normalize_url(draft.source_url)
        if key in seen:
            continue
        seen.add(key)
        unique.append(draft)
    return unique


class SuggestionPersister:
    """Upserts suggestions keyed by the canonical (target, source) pair."""

    def upsert(
        self,
        target_url: str,
        target_title: str,
        drafts: Sequence[SuggestionDraft],
        *,
        link_verified: bool = False,
    ) -> List[Suggestion]:
        """Create or update one row per source.

        Existing rows only have their content fields overwritten;
        ``review_status`` and ``link_verified`` belong to reviewers and the
        link checker. ``link_verified`` is applied to newly created rows
        only. An empty batch does nothing.
        """

        unique = dedupe_by_source(drafts)
        if not unique:
            return []

        target_key = normalize_url(target_url)
        saved: List[Suggestion] = []
        created = 0
        try:
            with transaction.atomic():
                for draft in unique:
                    content = {
                        'target_url': target_url,
                        'source_url': draft.source_url,
                        'target_title': target_title,
                        'source_title': draft.source_title,
                        'anchor_text': draft.anchor_text,
                        'anchor_origin': draft.anchor_origin,
                        'context': draft.context,
                        'reason': draft.reason,
                    }
                    suggestion, was_created = Suggestion.objects.update_or_create(
                        target_key=target_key,
                        source_key=normalize_url(draft.source_url),
                        defaults=content,
                        create_defaults={**content, 'link_verified': link_verified},
                    )
                    created += int(was_created)
                    saved.append(suggestion)
        except DatabaseError as exc:
            raise StoreError(f"Could not save suggestions for {target_url}: {exc}") from exc

        logger.info("Saved %s suggestion(s) for %s (%s new)", len(saved), target_url, created)
        return saved
