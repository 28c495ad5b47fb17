"""Canonical URL forms used for every link comparison in the pipeline."""

from __future__ import annotations

import re
from typing import Iterable, Optional, Set
from urllib.parse import urljoin, urlsplit

_QUERY_OR_FRAGMENT = re.compile(r"[?#].*$")
_DEFAULT_PORTS = {("http", 80), ("https", 443)}
_LINK_SCHEMES = {"http", "https"}


def _canonical_string(value: str) -> str:
    value = value.lower()
    if value.startswith("http://"):
        value = "https://" + value[len("http://"):]
    if value.startswith("https://www."):
        value = "https://" + value[len("https://www."):]
    if value.endswith("/"):
        value = value[:-1]
    return value


def normalize_url(url: str, base: str | None = None) -> str:
    """Return the canonical form of ``url``.

    Relative references are resolved against ``base`` when it is given.
    The query string and fragment are dropped, the result is lower-cased,
    ``http`` becomes ``https``, a leading ``www.`` is removed and a single
    trailing slash is stripped. Input that cannot be parsed falls back to
    the same transforms applied to the raw string, so this never raises.
    """

    candidate = (url or "").strip()
    try:
        absolute = urljoin(base, candidate) if base else candidate
        parts = urlsplit(absolute)
        if not parts.scheme or not parts.netloc:
            raise ValueError("not an absolute URL")
        netloc = parts.hostname or ""
        port = parts.port
        if port and (parts.scheme.lower(), port) not in _DEFAULT_PORTS:
            netloc = f"{netloc}:{port}"
        return _canonical_string(f"{parts.scheme}://{netloc}{parts.path}")
    except ValueError:
        return _canonical_string(_QUERY_OR_FRAGMENT.sub("", candidate))


def normalize_href(href: str | None, base: str | None = None) -> Optional[str]:
    """Normalise a link target found in a page, or ``None`` to exclude it.

    Only http(s) targets count as links; empty hrefs, in-page anchors,
    ``mailto:``/``javascript:`` style references and anything that fails
    to parse are excluded rather than treated as errors.
    """

    value = (href or "").strip()
    if not value or value.startswith("#"):
        return None
    try:
        absolute = urljoin(base, value) if base else value
        parts = urlsplit(absolute)
        parts.port  # raises ValueError on a malformed port
    except ValueError:
        return None
    if parts.scheme.lower() not in _LINK_SCHEMES or not parts.netloc:
        return None
    return normalize_url(absolute)


def normalize_links(hrefs: Iterable[str | None], base: str | None = None) -> Set[str]:
    """Return the set of normalised, usable targets among ``hrefs``."""

    links: Set[str] = set()
    for href in hrefs:
        normalized = normalize_href(href, base)
        if normalized:
            links.add(normalized)
    return links


def same_resource(first: str, second: str) -> bool:
    """True when both URLs name the same page in canonical form."""

    return normalize_url(first) == normalize_url(second)


def matches_any_pattern(url: str, patterns: Iterable[str]) -> bool:
    """True when ``url`` contains any of the given path patterns."""

    lowered = (url or "").lower()
    return any(pattern.lower() in lowered for pattern in patterns if pattern)
