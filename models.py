"""Shared typed models for the pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


@dataclass(frozen=True, slots=True)
class Author:
    name: str
    affiliation: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "affiliation": self.affiliation}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Author:
        return cls(name=data.get("name") or "", affiliation=data.get("affiliation"))


@dataclass(frozen=True, slots=True)
class Tags:
    """Topic labels split by origin.

    ``auto`` is rewritten by every categorization run; ``manual`` holds curated
    labels and must survive merges.
    """

    auto: tuple[str, ...] = ()
    manual: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, list[str]]:
        return {"auto": list(self.auto), "manual": list(self.manual)}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Tags:
        data = data or {}
        return cls(auto=tuple(data.get("auto") or ()), manual=tuple(data.get("manual") or ()))


@dataclass(frozen=True, slots=True)
class PaperRecord:
    """Normalized arXiv paper as stored in the year partitions."""

    id: str
    title: str
    abstract: str
    authors: tuple[Author, ...]
    published_date: str
    updated_date: str | None = None
    primary_category: str | None = None
    arxiv_categories: tuple[str, ...] = ()
    pdf_url: str | None = None
    arxiv_url: str = ""
    comment: str | None = None
    journal_ref: str | None = None
    doi: str | None = None
    categories: tuple[str, ...] = ()
    tags: Tags = field(default_factory=Tags)
    fetched_at: str | None = None

    @property
    def year(self) -> int:
        return int(self.published_date[:4])

    @property
    def revision_date(self) -> datetime | None:
        """Timestamp used to decide which of two copies is newer."""
        return parse_timestamp(self.updated_date) or parse_timestamp(self.published_date)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "authors": [author.to_dict() for author in self.authors],
            "abstract": self.abstract,
            "publishedDate": self.published_date,
            "updatedDate": self.updated_date,
            "primaryCategory": self.primary_category,
            "arxivCategories": list(self.arxiv_categories),
            "pdfUrl": self.pdf_url,
            "arxivUrl": self.arxiv_url,
            "comment": self.comment,
            "journalRef": self.journal_ref,
            "doi": self.doi,
            "categories": list(self.categories),
            "tags": self.tags.to_dict(),
            "fetchedAt": self.fetched_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PaperRecord:
        paper_id = data["id"]
        return cls(
            id=paper_id,
            title=data.get("title") or "",
            abstract=data.get("abstract") or "",
            authors=tuple(Author.from_dict(a) for a in data.get("authors") or ()),
            published_date=data["publishedDate"],
            updated_date=data.get("updatedDate"),
            primary_category=data.get("primaryCategory"),
            arxiv_categories=tuple(data.get("arxivCategories") or ()),
            pdf_url=data.get("pdfUrl"),
            arxiv_url=data.get("arxivUrl") or f"https://arxiv.org/abs/{paper_id}",
            comment=data.get("comment"),
            journal_ref=data.get("journalRef"),
            doi=data.get("doi"),
            categories=tuple(data.get("categories") or ()),
            tags=Tags.from_dict(data.get("tags")),
            fetched_at=data.get("fetchedAt"),
        )


@dataclass(frozen=True, slots=True)
class Category:
    """Topic label assigned by keyword containment."""

    id: str
    name: str
    keywords: tuple[str, ...]
    description: str | None = None
    builtin: bool = True

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "name": self.name, "keywords": list(self.keywords)}
        if self.description:
            data["description"] = self.description
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any], builtin: bool = True) -> Category:
        return cls(
            id=data["id"],
            name=data.get("name") or data["id"],
            keywords=tuple(data.get("keywords") or ()),
            description=data.get("description"),
            builtin=builtin,
        )


@dataclass(frozen=True, slots=True)
class BlockedEntry:
    id: str
    reason: str | None = None
    blocked_at: str | None = None
    blocked_by: str | None = None


@dataclass(frozen=True, slots=True)
class SavedEntry:
    id: str
    saved_at: str | None = None
    note: str | None = None


def parse_timestamp(raw: str | None) -> datetime | None:
    """Parse an RFC3339 timestamp into an aware UTC datetime, or None."""
    if not raw:
        return None

    # arXiv returns timestamps with a trailing Z.
    value = raw.replace("Z", "+00:00")
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)
