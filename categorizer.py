"""Keyword-based topic labelling (no LLM calls)."""

from __future__ import annotations

import dataclasses
import logging
from typing import Sequence

from config import MIN_KEYWORD_MATCHES
from models import Category, PaperRecord, Tags

LOGGER = logging.getLogger(__name__)


def categorize_paper(
    paper: PaperRecord,
    categories: Sequence[Category],
    min_matches: int = MIN_KEYWORD_MATCHES,
) -> list[str]:
    """Return the ids of every category whose keywords appear in the paper.

    Matching is case-insensitive substring containment over title + abstract,
    not word-boundary. Each keyword counts at most once. Results are ordered by
    match count, highest first; ties keep the order of ``categories``.
    """
    text = f"{paper.title} {paper.abstract or ''}".lower()

    matched: list[tuple[str, int]] = []
    for category in categories:
        count = sum(1 for keyword in category.keywords if keyword.lower() in text)
        if count >= min_matches:
            matched.append((category.id, count))

    matched.sort(key=lambda item: item[1], reverse=True)  # sort() is stable
    return [category_id for category_id, _ in matched]


def categorize_papers(
    papers: Sequence[PaperRecord],
    categories: Sequence[Category],
    min_matches: int = MIN_KEYWORD_MATCHES,
) -> list[PaperRecord]:
    """Label a batch; returns new records with ``categories`` and ``tags.auto`` set."""
    LOGGER.info("Categorizing %s papers (min_matches=%s)", len(papers), min_matches)

    labelled: list[PaperRecord] = []
    for paper in papers:
        ids = tuple(categorize_paper(paper, categories, min_matches))
        labelled.append(
            dataclasses.replace(paper, categories=ids, tags=Tags(auto=ids, manual=paper.tags.manual))
        )

    _log_category_stats(labelled, categories)
    return labelled


def _log_category_stats(papers: Sequence[PaperRecord], categories: Sequence[Category]) -> None:
    if not papers:
        return

    counts = {category.id: 0 for category in categories}
    for paper in papers:
        for category_id in paper.categories:
            if category_id in counts:
                counts[category_id] += 1

    names = {category.id: category.name for category in categories}
    for category_id, count in sorted(counts.items(), key=lambda item: item[1], reverse=True):
        LOGGER.info(
            "  %-30s %5s (%.1f%%)", names[category_id], count, 100 * count / len(papers)
        )

    uncategorized = sum(1 for paper in papers if not paper.categories)
    if uncategorized:
        LOGGER.warning("%s papers have no categories", uncategorized)
