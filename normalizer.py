"""arXiv Atom entries -> normalized ``PaperRecord`` objects."""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ElementTree
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

import feedparser

from config import ARXIV_ABS_URL
from errors import FeedParseError, MalformedRecordError
from models import Author, PaperRecord

LOGGER = logging.getLogger(__name__)

_ARXIV_ID_RE = re.compile(r"(\d{4}\.\d{4,5})(v\d+)?$")
_WHITESPACE_RE = re.compile(r"\s+")

_ATOM_NS = "{http://www.w3.org/2005/Atom}"
_ARXIV_NS = "{http://arxiv.org/schemas/atom}"
_ERROR_ID_MARKER = "arxiv.org/api/errors"


@dataclass(frozen=True, slots=True)
class FeedPage:
    """One page of an arXiv query response."""

    total_results: int
    start_index: int
    items_per_page: int
    entries: list[Mapping[str, Any]]


def parse_feed(document: str | bytes) -> FeedPage:
    """Parse an Atom document into loosely typed entry mappings.

    Raises:
        FeedParseError: the document is not a feed, or arXiv answered with its
            error entry (HTTP 200 with an ``/api/errors`` id) for a bad query.
    """
    parsed = feedparser.parse(document)
    if not parsed.get("version") and not parsed.entries:
        cause = parsed.get("bozo_exception")
        raise FeedParseError(f"Invalid Atom response: no feed element found ({cause})")

    for entry in parsed.entries:
        if _ERROR_ID_MARKER in (entry.get("id") or ""):
            message = clean_text(entry.get("summary")) or entry.get("id")
            raise FeedParseError(f"arXiv rejected the query: {message}")

    authors_by_id = _raw_authors(document)
    feed_meta = parsed.feed
    return FeedPage(
        total_results=_as_int(feed_meta.get("opensearch_totalresults")),
        start_index=_as_int(feed_meta.get("opensearch_startindex")),
        items_per_page=_as_int(feed_meta.get("opensearch_itemsperpage")),
        entries=[_with_raw_authors(entry, authors_by_id) for entry in parsed.entries],
    )


def _raw_authors(document: str | bytes) -> dict[str, list[dict[str, str | None]]]:
    """Authors per entry id, read from the XML itself.

    feedparser flattens ``arxiv:affiliation`` into a single entry-level value,
    so the per-author affiliations only survive in the raw ``<author>`` nodes.
    """
    try:
        root = ElementTree.fromstring(document)
    except ElementTree.ParseError as exc:
        LOGGER.debug("Skipping author affiliations, document is not well-formed: %s", exc)
        return {}

    authors_by_id: dict[str, list[dict[str, str | None]]] = {}
    for entry in root.findall(f"{_ATOM_NS}entry"):
        entry_id = (entry.findtext(f"{_ATOM_NS}id") or "").strip()
        authors_by_id[entry_id] = [
            {
                "name": author.findtext(f"{_ATOM_NS}name") or "",
                "arxiv_affiliation": clean_text(author.findtext(f"{_ARXIV_NS}affiliation")) or None,
            }
            for author in entry.findall(f"{_ATOM_NS}author")
        ]
    return authors_by_id


def _with_raw_authors(
    entry: Mapping[str, Any], authors_by_id: Mapping[str, list[dict[str, str | None]]]
) -> Mapping[str, Any]:
    authors = authors_by_id.get((entry.get("id") or "").strip())
    if not authors:
        return entry
    return {**entry, "authors": authors}


def extract_arxiv_id(url: str | None) -> str:
    """Return the bare arXiv id from an abs URL, dropping any ``vN`` suffix."""
    match = _ARXIV_ID_RE.search((url or "").strip())
    if not match:
        raise MalformedRecordError(f"Failed to extract arXiv ID from: {url!r}")
    return match.group(1)


def clean_text(text: str | None) -> str:
    if not text:
        return ""
    return _WHITESPACE_RE.sub(" ", text).strip()


def normalize_entry(entry: Mapping[str, Any]) -> PaperRecord:
    """Convert one raw feed entry into a ``PaperRecord``.

    Raises:
        MalformedRecordError: the entry id does not carry an arXiv identifier
            or the entry has no published date.
    """
    arxiv_id = extract_arxiv_id(entry.get("id"))
    published = entry.get("published")
    if not published:
        raise MalformedRecordError(f"Entry {arxiv_id} has no published date")

    authors = tuple(
        Author(
            name=clean_text(author.get("name")),
            affiliation=author.get("arxiv_affiliation") or author.get("affiliation") or None,
        )
        for author in _as_list(entry.get("authors", entry.get("author")))
        if isinstance(author, Mapping)
    )

    codes = tuple(
        tag.get("term")
        for tag in _as_list(entry.get("tags", entry.get("category")))
        if isinstance(tag, Mapping) and tag.get("term")
    )
    primary = entry.get("arxiv_primary_category")
    primary_category = primary.get("term") if isinstance(primary, Mapping) else None
    primary_category = primary_category or (codes[0] if codes else None)

    return PaperRecord(
        id=arxiv_id,
        title=clean_text(entry.get("title")),
        abstract=clean_text(entry.get("summary")),
        authors=authors,
        published_date=published,
        updated_date=entry.get("updated"),
        primary_category=primary_category,
        arxiv_categories=codes,
        pdf_url=_pdf_link(entry.get("links", entry.get("link"))),
        arxiv_url=f"{ARXIV_ABS_URL}/{arxiv_id}",
        comment=clean_text(entry.get("arxiv_comment")) or None,
        journal_ref=clean_text(entry.get("arxiv_journal_ref")) or None,
        doi=entry.get("arxiv_doi") or None,
    )


def normalize_entries(entries: Iterable[Mapping[str, Any]]) -> list[PaperRecord]:
    """Normalize a page of entries, skipping the ones that are malformed."""
    papers: list[PaperRecord] = []
    for entry in entries:
        try:
            papers.append(normalize_entry(entry))
        except MalformedRecordError as exc:
            LOGGER.warning("Skipping malformed entry: %s", exc)
    return papers


def _pdf_link(links: Any) -> str | None:
    candidates = [link for link in _as_list(links) if isinstance(link, Mapping)]
    for link in candidates:
        if link.get("title") == "pdf":
            return link.get("href")
    for link in candidates:
        if link.get("type") == "application/pdf":
            return link.get("href")
    return None


def _as_list(value: Any) -> list[Any]:
    """Upstream gives a bare object for single children and a list otherwise."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0
