"""Builds the lightweight cross-year ``index.json`` consumed by the browsing UI.

The index is derived data: it can be thrown away and rebuilt at any time from
the year partitions and the block-list. Each entry is a trimmed projection of
the stored record:

  id, title, authors (names only), abstract, publishedDate, arxivUrl,
  categories, year

and ``meta`` carries the build timestamp, the surviving paper count, the
category ids actually in use and the years present (newest first).

Runnable standalone:
    python index_builder.py
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Collection, Mapping, Sequence

from curation import blocked_ids
from models import PaperRecord, parse_timestamp
from year_store import YearStore, write_json_atomic

LOGGER = logging.getLogger(__name__)

_OLDEST = datetime.min.replace(tzinfo=UTC)


@dataclass(frozen=True, slots=True)
class IndexResult:
    index: dict[str, Any]
    # False when there were no stored papers at all; callers should then keep
    # whatever index is already on disk.
    source_found: bool


# ---------------------------------------------------------------------------
# Projection
# ---------------------------------------------------------------------------


def project_paper(paper: PaperRecord) -> dict[str, Any]:
    return {
        "id": paper.id,
        "title": paper.title,
        "authors": [author.name for author in paper.authors],
        "abstract": paper.abstract or "",
        "publishedDate": paper.published_date,
        "arxivUrl": paper.arxiv_url or f"https://arxiv.org/abs/{paper.id}",
        "categories": list(paper.categories),
        "year": paper.year,
    }


def _published_sort_key(entry: dict[str, Any]) -> datetime:
    return parse_timestamp(entry["publishedDate"]) or _OLDEST


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def build_index(
    partitions: Mapping[int, Sequence[PaperRecord]],
    blocked: Collection[str],
    now: datetime | None = None,
) -> IndexResult:
    """Project every non-blocked stored paper into the index shape."""
    all_papers = [paper for papers in partitions.values() for paper in papers]

    entries = [project_paper(paper) for paper in all_papers if paper.id not in blocked]
    entries.sort(key=_published_sort_key, reverse=True)

    years = sorted({entry["year"] for entry in entries}, reverse=True)
    used_categories = sorted({cat for entry in entries for cat in entry["categories"]})
    timestamp = (now or datetime.now(UTC)).isoformat()

    index = {
        "meta": {
            "lastUpdated": timestamp,
            "totalPapers": len(entries),
            "categories": used_categories,
            "years": years,
        },
        "papers": entries,
    }

    LOGGER.info(
        "Index built with %s papers (%s blocked)", len(entries), len(all_papers) - len(entries)
    )
    return IndexResult(index=index, source_found=bool(all_papers))


def build_and_save_index(store: YearStore, index_path: Path, blocklist_path: Path) -> IndexResult:
    """Rebuild the index from disk and write it, unless there is nothing stored."""
    result = build_index(store.load_all(), blocked_ids(blocklist_path))

    if not result.source_found:
        LOGGER.warning("No papers found; run a collection first. Keeping existing index.")
        return result

    write_json_atomic(index_path, result.index)
    meta = result.index["meta"]
    LOGGER.info("Index saved to %s", index_path)
    LOGGER.info("  Years: %s", ", ".join(str(year) for year in meta["years"]))
    LOGGER.info("  Categories: %s", ", ".join(meta["categories"]))
    return result


# ---------------------------------------------------------------------------
# Standalone execution
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import config

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    build_and_save_index(YearStore(config.PAPERS_DIR), config.INDEX_PATH, config.BLOCKLIST_PATH)
