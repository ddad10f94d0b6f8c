"""Pure filtering of index papers for the browsing view.

``filter_papers`` is a function of (papers, state) only, so the UI can
recompute the visible list after every event without hidden state. Relevance
ranking is left to the UI's fuzzy search; the query here is plain
case-insensitive containment over title, authors and abstract.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Mapping, Sequence

from models import parse_timestamp

ViewMode = Literal["all", "saved", "removed"]
SortBy = Literal["date-desc", "date-asc", "relevance"]


@dataclass(frozen=True, slots=True)
class FilterState:
    search_query: str = ""
    sort_by: SortBy = "date-desc"
    selected_categories: frozenset[str] = frozenset()
    selected_years: frozenset[int] = frozenset()
    view_mode: ViewMode = "all"
    saved: frozenset[str] = frozenset()
    blocked: frozenset[str] = frozenset()


def filter_papers(
    papers: Sequence[Mapping[str, Any]], state: FilterState
) -> list[Mapping[str, Any]]:
    if state.view_mode == "saved":
        visible = [p for p in papers if p["id"] in state.saved]
    elif state.view_mode == "removed":
        visible = [p for p in papers if p["id"] in state.blocked]
    else:
        visible = [p for p in papers if p["id"] not in state.blocked]

    if state.selected_categories:
        visible = [
            p for p in visible if any(c in state.selected_categories for c in p.get("categories") or ())
        ]

    if state.selected_years:
        visible = [p for p in visible if int(p["year"]) in state.selected_years]

    query = state.search_query.strip().lower()
    if query:
        visible = [p for p in visible if query in _haystack(p)]

    if state.sort_by == "date-desc":
        visible.sort(key=_published, reverse=True)
    elif state.sort_by == "date-asc":
        visible.sort(key=_published)

    return visible


def _haystack(paper: Mapping[str, Any]) -> str:
    authors = " ".join(paper.get("authors") or ())
    return f"{paper.get('title', '')} {authors} {paper.get('abstract', '')}".lower()


def _published(paper: Mapping[str, Any]) -> str:
    parsed = parse_timestamp(paper.get("publishedDate"))
    return parsed.isoformat() if parsed else ""
