"""Typed data structures passed between pipeline stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, List, Optional


@dataclass(frozen=True)
class Block:
    """A paragraph or heading of extracted page text and the links inside it."""

    text: str
    links: FrozenSet[str] = frozenset()


@dataclass(frozen=True)
class ExtractedPage:
    """Result of fetching and parsing a single page."""

    url: str
    title: str
    text: str
    blocks: List[Block] = field(default_factory=list)
    outbound_links: FrozenSet[str] = frozenset()


@dataclass(frozen=True)
class Fragment:
    """A stored sentence or heading belonging to an indexed page."""

    page_url: str
    page_title: str
    text: str
    outbound_links: FrozenSet[str] = frozenset()


@dataclass(frozen=True)
class Candidate:
    """An unconfirmed (source page, sentence) pairing found by keyword search."""

    source_url: str
    source_title: str
    sentence: str
    matched_keyword: Optional[str] = None


@dataclass(frozen=True)
class SuggestionDraft:
    """An oracle-approved suggestion that has not been stored yet."""

    source_url: str
    source_title: str
    anchor_text: str
    anchor_origin: str
    context: str
    reason: str


@dataclass
class BatchSummary:
    """Counters reported by every batch operation."""

    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    removed: int = 0
    unreachable: int = 0
    errors: List[str] = field(default_factory=list)

    def record_failure(self, label: str, exc: Exception) -> None:
        self.failed += 1
        self.errors.append(f"{label}: {exc}")

    def as_dict(self) -> dict:
        return {
            "processed": self.processed,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "removed": self.removed,
            "unreachable": self.unreachable,
            "errors": list(self.errors),
        }


@dataclass
class AnalysisResult:
    """Outcome of analysing one target page."""

    target_url: str
    target_title: str
    keywords: List[str] = field(default_factory=list)
    candidate_count: int = 0
    confirmed_count: int = 0
    filtered_count: int = 0
    saved: List[SuggestionDraft] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "target_url": self.target_url,
            "target_title": self.target_title,
            "keywords": list(self.keywords),
            "candidates": self.candidate_count,
            "confirmed": self.confirmed_count,
            "filtered": self.filtered_count,
            "suggestions": [
                {
                    "source_url": item.source_url,
                    "source_title": item.source_title,
                    "anchor_text": item.anchor_text,
                    "anchor_origin": item.anchor_origin,
                    "context": item.context,
                    "reason": item.reason,
                }
                for item in self.saved
            ],
        }
