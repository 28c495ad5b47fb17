"""Fetching and parsing of live pages and sitemaps.

These functions are the pipeline's only contact with the site being
analysed. They fetch raw documents with ``urllib.request`` under a fixed
timeout, turn HTML into title, plain text, paragraph/heading blocks and
the set of normalised outbound links, and read page URLs out of sitemap
XML. Every network or decoding problem surfaces as a
:class:`~backlinker.engine.errors.FetchError` so callers can count it
against the page being processed.
"""

from __future__ import annotations

import codecs
import gzip
import http.client
import re
import socket
import urllib.error
import urllib.request
from typing import FrozenSet, List
from xml.etree import ElementTree

from bs4 import BeautifulSoup  # type: ignore

from .engine.config import EngineConfig
from .engine.errors import FetchError
from .engine.types import Block, ExtractedPage
from .engine.urlnorm import normalize_links

# Elements dropped before plain text is taken from a page
NOISE_TAGS: tuple[str, ...] = ("script", "style", "noscript", "nav", "header", "footer")

# Elements whose text becomes sentence fragments
BLOCK_TAGS: list[str] = ["p", "h2", "h3"]

_WHITESPACE = re.compile(r"\s+")


def _resolve_charset(declared: str | None) -> str:
    """Return a codec name for ``declared``, or utf-8 when it is unknown."""

    try:
        return codecs.lookup(declared or "utf-8").name
    except LookupError:
        return "utf-8"


def fetch_text(url: str, *, timeout: float = 15, user_agent: str = "BacklinkerBot/1.0") -> str:
    """Fetch ``url`` and return its decoded body.

    Gzipped payloads (by extension or content type) are decompressed.
    Non-2xx responses, timeouts, truncated or malformed responses and
    network failures raise :class:`FetchError`. An unknown declared
    charset falls back to utf-8.
    """

    request = urllib.request.Request(url, headers={"User-Agent": user_agent})
    try:
        with urllib.request.urlopen(request, timeout=timeout) as resp:
            status = getattr(resp, "status", 200)
            if status < 200 or status >= 300:
                raise FetchError(url, f"HTTP {status}")
            data = resp.read()
            content_type = resp.headers.get("Content-Type", "")
            if url.lower().endswith(".gz") or "application/x-gzip" in content_type:
                try:
                    data = gzip.decompress(data)
                except OSError:
                    pass
            charset = _resolve_charset(resp.headers.get_content_charset())
    except urllib.error.HTTPError as exc:
        raise FetchError(url, f"HTTP {exc.code} {exc.reason}") from exc
    except urllib.error.URLError as exc:
        raise FetchError(url, str(exc.reason)) from exc
    except (socket.timeout, TimeoutError) as exc:
        raise FetchError(url, "timed out") from exc
    except http.client.HTTPException as exc:
        raise FetchError(url, f"bad response: {exc!r}") from exc
    except (ValueError, OSError) as exc:
        raise FetchError(url, str(exc)) from exc

    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return data.decode(charset, errors="replace")


def _make_soup(html: str) -> BeautifulSoup:
    try:
        return BeautifulSoup(html, "lxml")
    except Exception:
        # Fallback to html.parser if lxml isn't installed
        return BeautifulSoup(html, "html.parser")


def _clean(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def parse_page(html: str, url: str, *, content_chars: int = 15000) -> ExtractedPage:
    """Parse fetched HTML into an :class:`ExtractedPage`.

    Links are collected from the whole document before any chrome is
    removed, because a navigation or footer link to the target still
    counts as the page already linking to it. Blocks and plain text are
    taken after ``NOISE_TAGS`` are stripped.
    """

    soup = _make_soup(html or "")

    title_tag = soup.find("title")
    title = _clean(title_tag.get_text()) if title_tag else ""
    title = title or url

    outbound: FrozenSet[str] = frozenset(
        normalize_links((anchor.get("href") for anchor in soup.find_all("a", href=True)), url)
    )

    for tag in soup.find_all(list(NOISE_TAGS)):
        tag.decompose()

    blocks: List[Block] = []
    for element in soup.find_all(BLOCK_TAGS):
        text = _clean(element.get_text(" "))
        if not text:
            continue
        links = normalize_links((a.get("href") for a in element.find_all("a", href=True)), url)
        blocks.append(Block(text=text, links=frozenset(links)))

    body = soup.body or soup
    text = _clean(body.get_text(" "))[:content_chars]

    return ExtractedPage(url=url, title=title, text=text, blocks=blocks, outbound_links=outbound)


class ContentExtractor:
    """Fetches pages and exposes their text, blocks and outbound links."""

    def __init__(self, config: EngineConfig) -> None:
        self.timeout = config.float_value("fetch_timeout")
        self.user_agent = str(config.get("user_agent"))
        self.content_chars = config.int_value("content_chars")

    def fetch(self, url: str) -> ExtractedPage:
        html = fetch_text(url, timeout=self.timeout, user_agent=self.user_agent)
        return parse_page(html, url, content_chars=self.content_chars)

    def fetch_links(self, url: str) -> FrozenSet[str]:
        return self.fetch(url).outbound_links


def parse_sitemap(xml_text: str, fetch_nested: bool = True, *, timeout: float = 15) -> List[str]:
    """Parse a sitemap XML document and return a list of URLs.

    ``<sitemapindex>`` documents are followed one level deep when
    ``fetch_nested`` is set. Child sitemaps that fail to download are
    skipped; an unparseable document yields an empty list.
    """
    urls: List[str] = []
    try:
        root = ElementTree.fromstring(xml_text)
    except ElementTree.ParseError:
        return urls
    tag_lower = root.tag.lower()
    # Collect all <loc> tags regardless of namespace
    loc_elems = root.findall('.//{*}loc')
    if tag_lower.endswith('sitemapindex'):
        if not fetch_nested:
            return urls
        for loc in loc_elems:
            loc_url = (loc.text or '').strip()
            if not loc_url:
                continue
            try:
                nested = fetch_text(loc_url, timeout=timeout)
            except FetchError:
                continue
            # Do not recurse infinitely: only one level deep
            urls.extend(parse_sitemap(nested, fetch_nested=False))
    else:
        for loc in loc_elems:
            u = (loc.text or '').strip()
            if u:
                urls.append(u)
    return urls


def read_sitemap(url: str, *, timeout: float = 15) -> List[str]:
    """Fetch ``url`` and return the page URLs it lists."""

    return parse_sitemap(fetch_text(url, timeout=timeout), timeout=timeout)
