"""CLI entrypoint for the arXiv LLM papers collection."""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Sequence

import config
from arxiv_feed import SEARCH_QUERIES, ArxivClient, SearchQuery, collect_papers
from categories import load_effective_categories
from categorizer import categorize_papers
from curation import blocked_ids, saved_ids
from dedup import deduplicate_papers, log_dedup_stats, log_merge_stats, merge_papers
from errors import PipelineError, StorageError
from index_builder import build_and_save_index
from models import Category, PaperRecord
from rate_limiter import RateLimiter
from search_filter import FilterState, filter_papers
from year_store import YearStore, read_json, write_json_atomic

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class UpdateSummary:
    fetched: int = 0
    unique: int = 0
    duplicates: int = 0
    added: int = 0
    updated: int = 0
    years: tuple[int, ...] = ()


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line flags."""
    parser = argparse.ArgumentParser(description="Collect, categorize and index arXiv LLM papers")
    parser.add_argument(
        "--min-matches",
        type=int,
        default=config.MIN_KEYWORD_MATCHES,
        help="Keyword hits needed to assign a category (default: MIN_KEYWORD_MATCHES or 1)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    full = sub.add_parser("full", help="Fetch every query over a date range and merge into storage")
    full.add_argument("--start-date", default=config.DEFAULT_START_DATE, help="YYYY-MM-DD")
    full.add_argument("--end-date", default=None, help="YYYY-MM-DD (default: today)")
    full.add_argument(
        "--test",
        action="store_true",
        help=(
            f"Only run the first {config.TEST_MODE_QUERY_COUNT} queries, "
            f"capped at {config.TEST_MODE_MAX_RESULTS} results each"
        ),
    )

    incremental = sub.add_parser("incremental", help="Fetch the last N days and merge into storage")
    incremental.add_argument(
        "--lookback-days",
        type=int,
        default=config.LOOKBACK_DAYS,
        help="Days to look back from today (default: LOOKBACK_DAYS or 7)",
    )

    sub.add_parser("build-index", help="Rebuild index.json from the stored year files")

    categorize = sub.add_parser("categorize", help="Recategorize a JSON file of papers")
    categorize.add_argument("input", type=Path)
    categorize.add_argument("output", type=Path)

    search = sub.add_parser("search", help="List indexed papers matching filters")
    search.add_argument("query", nargs="?", default="")
    search.add_argument("--category", action="append", default=[], dest="categories")
    search.add_argument("--year", action="append", type=int, default=[], dest="years")
    search.add_argument("--view", choices=["all", "saved", "removed"], default="all")
    search.add_argument("--sort", choices=["date-desc", "date-asc", "relevance"], default="date-desc")
    search.add_argument("--limit", type=int, default=20)

    return parser.parse_args(argv)


def group_by_year(papers: Sequence[PaperRecord]) -> dict[int, list[PaperRecord]]:
    by_year: dict[int, list[PaperRecord]] = {}
    for paper in papers:
        by_year.setdefault(paper.year, []).append(paper)
    return by_year


def run_update(
    *,
    client: ArxivClient,
    limiter: RateLimiter,
    store: YearStore,
    categories: Sequence[Category],
    queries: Sequence[SearchQuery],
    min_matches: int,
    index_path: Path,
    blocklist_path: Path,
    **fetch_options,
) -> UpdateSummary:
    """Fetch, label, dedupe, merge per year and rebuild the index.

    The index is rebuilt only after every partition write has succeeded.
    """
    papers = collect_papers(client, limiter, queries, **fetch_options)
    if not papers:
        LOGGER.info("No new papers found in the requested range; collection is up to date")
        return UpdateSummary()

    fetched_at = datetime.now(UTC).isoformat()
    papers = [dataclasses.replace(paper, fetched_at=fetched_at) for paper in papers]

    labelled = categorize_papers(papers, categories, min_matches)
    dedup = deduplicate_papers(labelled)
    log_dedup_stats(dedup)

    by_year = group_by_year(dedup.unique)
    years = tuple(sorted(by_year, reverse=True))
    LOGGER.info("Papers span %s year(s): %s", len(years), ", ".join(str(y) for y in years))

    added = 0
    updated = 0
    for year in years:
        result = merge_papers(store.load(year), by_year[year])
        store.save(year, result.merged)
        log_merge_stats(year, result)
        added += result.added
        updated += result.updated

    build_and_save_index(store, index_path, blocklist_path)

    return UpdateSummary(
        fetched=len(papers),
        unique=len(dedup.unique),
        duplicates=len(dedup.duplicates),
        added=added,
        updated=updated,
        years=years,
    )


def _pipeline_dependencies(min_matches: int) -> dict:
    return {
        "client": ArxivClient(),
        "limiter": RateLimiter(config.ARXIV_RATE_LIMIT_MS),
        "store": YearStore(config.PAPERS_DIR),
        "categories": load_effective_categories(config.CATEGORIES_PATH, config.USER_CATEGORIES_PATH),
        "min_matches": min_matches,
        "index_path": config.INDEX_PATH,
        "blocklist_path": config.BLOCKLIST_PATH,
    }


def _log_summary(summary: UpdateSummary, start_date: str, end_date: str | None) -> None:
    LOGGER.info(
        "Summary: fetched=%s unique=%s duplicates=%s added=%s updated=%s",
        summary.fetched,
        summary.unique,
        summary.duplicates,
        summary.added,
        summary.updated,
    )
    LOGGER.info("Date range: %s to %s", start_date, end_date or "now")


def run_full(start_date: str, end_date: str | None, test_mode: bool, min_matches: int) -> UpdateSummary:
    """Run one full collection over ``[start_date, end_date]``."""
    queries = SEARCH_QUERIES
    max_results = None
    if test_mode:
        LOGGER.warning(
            "TEST MODE: only the first %s queries, %s results each",
            config.TEST_MODE_QUERY_COUNT,
            config.TEST_MODE_MAX_RESULTS,
        )
        queries = SEARCH_QUERIES[: config.TEST_MODE_QUERY_COUNT]
        max_results = config.TEST_MODE_MAX_RESULTS

    summary = run_update(
        **_pipeline_dependencies(min_matches),
        queries=queries,
        start_date=start_date,
        end_date=end_date,
        max_results=max_results,
        page_size=config.ARXIV_PAGE_SIZE,
    )
    _log_summary(summary, start_date, end_date)
    return summary


def run_incremental(lookback_days: int, min_matches: int) -> UpdateSummary:
    """Fetch papers submitted in the last ``lookback_days`` days."""
    today = datetime.now(UTC).date()
    start_date = (today - timedelta(days=lookback_days)).isoformat()
    end_date = today.isoformat()
    LOGGER.info("Fetching papers from the last %s days: %s to %s", lookback_days, start_date, end_date)

    summary = run_update(
        **_pipeline_dependencies(min_matches),
        queries=SEARCH_QUERIES,
        start_date=start_date,
        end_date=end_date,
        page_size=config.ARXIV_PAGE_SIZE,
    )
    _log_summary(summary, start_date, end_date)
    if summary.added:
        LOGGER.info("%s new papers added to the collection", summary.added)
    else:
        LOGGER.info("Collection is up to date (no new papers)")
    return summary


def run_build_index() -> None:
    build_and_save_index(YearStore(config.PAPERS_DIR), config.INDEX_PATH, config.BLOCKLIST_PATH)


def run_categorize(input_path: Path, output_path: Path, min_matches: int) -> int:
    """Recategorize papers from a JSON file (a list or ``{"papers": [...]}``)."""
    categories = load_effective_categories(config.CATEGORIES_PATH, config.USER_CATEGORIES_PATH)
    data = read_json(input_path)
    raw_papers = data if isinstance(data, list) else data.get("papers") or []
    try:
        papers = [PaperRecord.from_dict(item) for item in raw_papers]
    except (KeyError, TypeError, AttributeError) as exc:
        raise StorageError(f"Invalid paper record in {input_path}: {exc}") from exc

    labelled = categorize_papers(papers, categories, min_matches)
    write_json_atomic(output_path, {"papers": [paper.to_dict() for paper in labelled]})
    LOGGER.info("Categorized papers saved to %s", output_path)
    return len(labelled)


def run_search(args: argparse.Namespace) -> list[dict]:
    """Print indexed papers matching the given filters."""
    if not config.INDEX_PATH.exists():
        raise StorageError(f"No index at {config.INDEX_PATH}; run build-index first")

    index = read_json(config.INDEX_PATH)
    state = FilterState(
        search_query=args.query,
        sort_by=args.sort,
        selected_categories=frozenset(args.categories),
        selected_years=frozenset(args.years),
        view_mode=args.view,
        saved=saved_ids(config.SAVEDLIST_PATH),
        blocked=blocked_ids(config.BLOCKLIST_PATH),
    )
    matches = filter_papers(index.get("papers") or [], state)
    for paper in matches[: args.limit]:
        print(json.dumps({"id": paper["id"], "year": paper["year"], "title": paper["title"]}))
    LOGGER.info("%s papers match (showing %s)", len(matches), min(len(matches), args.limit))
    return list(matches)


def main(argv: Sequence[str] | None = None) -> int:
    """Initialize logging and execute the requested command."""
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args = parse_args(argv)

    try:
        if args.command == "full":
            run_full(args.start_date, args.end_date, args.test, args.min_matches)
        elif args.command == "incremental":
            run_incremental(args.lookback_days, args.min_matches)
        elif args.command == "build-index":
            run_build_index()
        elif args.command == "categorize":
            run_categorize(args.input, args.output, args.min_matches)
        elif args.command == "search":
            run_search(args)
    except PipelineError as exc:
        LOGGER.exception("%s failed: %s", args.command, exc)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
