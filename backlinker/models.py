"""Database models for the backlinker app.

The app stores indexed pages, the sentence fragments extracted from
them, and the backlink suggestions produced by analysis runs. Fragments
are regenerated wholesale whenever their page is re-indexed; suggestions
are unique per canonical (target, source) pair and are reviewed by people outside
this app.
"""

from __future__ import annotations

from django.db import models


class Page(models.Model):
    """An indexed page of the site.

    ``key`` is the canonical form of ``url`` and identifies the page;
    ``url`` keeps the spelling it was last fetched with.
    """

    url = models.URLField(max_length=500)
    key = models.CharField(max_length=500, unique=True)
    title = models.CharField(max_length=300, blank=True)
    content = models.TextField(blank=True)
    summary = models.TextField(blank=True)
    keywords = models.JSONField(null=True, blank=True)
    indexed_at = models.DateTimeField(null=True, blank=True)
    analyzed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:  # pragma: no cover - convenience display
        return self.url


class Sentence(models.Model):
    """A filtered sentence or heading taken from an indexed page."""

    page_url = models.URLField(max_length=500)
    page_key = models.CharField(max_length=500, db_index=True)
    page_title = models.CharField(max_length=300, blank=True)
    text = models.TextField()
    outbound_links = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['id']

    def __str__(self) -> str:  # pragma: no cover - convenience display
        return f"{self.page_url} · {self.text[:60]}"


class Suggestion(models.Model):
    """A reviewable recommendation to link ``source_url`` to ``target_url``."""

    class AnchorOrigin(models.TextChoices):
        TITLE = 'title', 'Title-derived'
        VARIATION = 'variation', 'Keyword variation'

    class ReviewStatus(models.TextChoices):
        PENDING = 'pending', 'Pending'
        ACCEPTED = 'accepted', 'Accepted'
        DISMISSED = 'dismissed', 'Dismissed'

    target_url = models.URLField(max_length=500)
    target_key = models.CharField(max_length=500)
    target_title = models.CharField(max_length=300, blank=True)
    source_url = models.URLField(max_length=500)
    source_key = models.CharField(max_length=500)
    source_title = models.CharField(max_length=300, blank=True)
    anchor_text = models.CharField(max_length=300)
    anchor_origin = models.CharField(max_length=16, choices=AnchorOrigin.choices)
    context = models.TextField(blank=True)
    reason = models.TextField(blank=True)
    review_status = models.CharField(
        max_length=16,
        choices=ReviewStatus.choices,
        default=ReviewStatus.PENDING,
    )
    link_verified = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['created_at', 'id']
        constraints = [
            models.UniqueConstraint(
                fields=['target_key', 'source_key'],
                name='suggestion_target_source_unique',
            ),
        ]
        indexes = [
            models.Index(fields=['link_verified', 'created_at'], name='suggestion_unverified_idx'),
        ]

    def __str__(self) -> str:  # pragma: no cover - convenience display
        return f"{self.source_url} → {self.target_url} ({self.anchor_text})"
