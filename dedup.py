"""In-batch deduplication and merging of new batches into stored partitions."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Sequence

from models import PaperRecord, Tags

LOGGER = logging.getLogger(__name__)

_REPORT_LIMIT = 10


@dataclass(frozen=True, slots=True)
class Duplicate:
    id: str
    title: str
    duplicate_of: str


@dataclass(frozen=True, slots=True)
class DedupResult:
    unique: list[PaperRecord]
    duplicates: list[Duplicate]


@dataclass(frozen=True, slots=True)
class MergeResult:
    merged: list[PaperRecord]
    added: int
    updated: int


def deduplicate_papers(papers: Sequence[PaperRecord]) -> DedupResult:
    """Keep the first occurrence of every id."""
    first_seen: dict[str, PaperRecord] = {}
    unique: list[PaperRecord] = []
    duplicates: list[Duplicate] = []

    for paper in papers:
        original = first_seen.get(paper.id)
        if original is None:
            first_seen[paper.id] = paper
            unique.append(paper)
        else:
            duplicates.append(Duplicate(id=paper.id, title=paper.title, duplicate_of=original.title))

    return DedupResult(unique=unique, duplicates=duplicates)


def merge_papers(existing: Sequence[PaperRecord], incoming: Sequence[PaperRecord]) -> MergeResult:
    """Merge a new batch into a stored partition.

    Ids on one side only are kept as they are. For ids on both sides the
    incoming copy replaces the stored one only when its revision date
    (``updated_date`` falling back to ``published_date``) is strictly newer.
    A replacement keeps the stored ``categories`` when there are any and always
    keeps the stored ``tags.manual``; ``tags.auto`` comes from the incoming copy.

    Stored order is preserved with replacements in place; new ids follow in
    incoming order. Merging the same batch twice changes nothing the second
    time.
    """
    by_id: dict[str, PaperRecord] = {paper.id: paper for paper in existing}
    added = 0
    updated = 0

    for paper in incoming:
        current = by_id.get(paper.id)
        if current is None:
            by_id[paper.id] = paper
            added += 1
            continue

        if _is_newer(paper, current):
            by_id[paper.id] = dataclasses.replace(
                paper,
                categories=current.categories or paper.categories,
                tags=Tags(auto=paper.tags.auto or paper.categories, manual=current.tags.manual),
            )
            updated += 1

    return MergeResult(merged=list(by_id.values()), added=added, updated=updated)


def _is_newer(candidate: PaperRecord, current: PaperRecord) -> bool:
    candidate_date = candidate.revision_date
    current_date = current.revision_date
    if candidate_date is None:
        return False
    if current_date is None:
        return True
    return candidate_date > current_date


def log_dedup_stats(result: DedupResult) -> None:
    LOGGER.info(
        "Deduplication: unique=%s duplicates_removed=%s",
        len(result.unique),
        len(result.duplicates),
    )
    for duplicate in result.duplicates[:_REPORT_LIMIT]:
        LOGGER.info("  duplicate %s - %.60s", duplicate.id, duplicate.title)
    if len(result.duplicates) > _REPORT_LIMIT:
        LOGGER.info("  ... and %s more", len(result.duplicates) - _REPORT_LIMIT)


def log_merge_stats(year: int, result: MergeResult) -> None:
    LOGGER.info(
        "Merge %s: total=%s added=%s updated=%s",
        year,
        len(result.merged),
        result.added,
        result.updated,
    )
