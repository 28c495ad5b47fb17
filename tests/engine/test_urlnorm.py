"""URL canonicalisation tests."""

from __future__ import annotations

import pytest

from backlinker.engine.urlnorm import (
    matches_any_pattern,
    normalize_href,
    normalize_links,
    normalize_url,
    same_resource,
)


@pytest.mark.parametrize(
    "variant",
    [
        "https://example.com/guide",
        "http://example.com/guide",
        "https://www.example.com/guide",
        "HTTP://WWW.Example.com/Guide/",
        "https://example.com/guide?utm_source=feed",
        "https://example.com/guide#section-2",
        "https://example.com:443/guide",
    ],
)
def test_variants_share_one_canonical_form(variant):
    assert normalize_url(variant) == "https://example.com/guide"


def test_normalize_is_idempotent():
    for url in ["http://www.Example.com/a/b/?x=1", "not a url at all", "", "/relative/path/"]:
        once = normalize_url(url)
        assert normalize_url(once) == once


def test_non_default_port_is_kept():
    assert normalize_url("https://example.com:8443/a") == "https://example.com:8443/a"


def test_relative_urls_resolve_against_base():
    assert normalize_url("../other/", base="https://example.com/blog/post") == "https://example.com/other"


def test_unparseable_input_never_raises():
    assert normalize_url("http://[broken/page?x=1") == "https://[broken/page"
    assert normalize_url("Some Text/") == "some text"


@pytest.mark.parametrize("href", ["", "   ", "#top", "mailto:team@example.com", "javascript:void(0)", "tel:123"])
def test_unusable_hrefs_are_excluded(href):
    assert normalize_href(href, "https://example.com/page") is None


def test_href_with_bad_port_is_excluded():
    assert normalize_href("https://example.com:notaport/x", "https://example.com/") is None


def test_normalize_links_collapses_variants():
    links = normalize_links(
        ["/guide", "https://www.example.com/guide/", "#comments", "mailto:x@example.com", None],
        "https://example.com/blog/post",
    )
    assert links == {"https://example.com/guide"}


def test_same_resource_and_patterns():
    assert same_resource("http://www.example.com/a/", "https://example.com/a?ref=1")
    assert not same_resource("https://example.com/a", "https://example.com/b")
    assert matches_any_pattern("https://example.com/Category/news", ["/category/"])
    assert not matches_any_pattern("https://example.com/blog/news", ["/category/", ""])
