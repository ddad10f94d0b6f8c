"""arXiv API ingestion: paginated fetch per query and multi-query collection."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Sequence

import requests

from config import (
    ARXIV_API_URL,
    ARXIV_MAX_RETRIES,
    ARXIV_PAGE_SIZE,
    DEFAULT_START_DATE,
    REQUEST_TIMEOUT_SECONDS,
)
from errors import QueryFailedError, TransientFetchError
from models import PaperRecord
from normalizer import FeedPage, normalize_entries, parse_feed
from rate_limiter import RateLimiter

LOGGER = logging.getLogger(__name__)

_RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})


@dataclass(frozen=True, slots=True)
class SearchQuery:
    query: str
    description: str
    category: str


SEARCH_QUERIES: tuple[SearchQuery, ...] = (
    SearchQuery(
        'abs:"large language model" AND (abs:application OR abs:applications)',
        "General LLM applications",
        "applications",
    ),
    SearchQuery('abs:"LLM agent" OR abs:"language model agent"', "LLM-based agents", "agents"),
    SearchQuery(
        'abs:"autonomous agent" AND abs:"language model"', "Autonomous LLM agents", "agents"
    ),
    SearchQuery(
        'abs:"language model" AND (abs:reasoning OR abs:"chain of thought")',
        "LLM reasoning capabilities",
        "reasoning",
    ),
    SearchQuery('abs:"large language model" AND abs:planning', "LLM planning systems", "planning"),
    SearchQuery(
        'abs:"language model" AND (abs:"tool use" OR abs:"tool usage" OR abs:"function calling")',
        "LLMs using tools",
        "tool-use",
    ),
    SearchQuery('abs:"multi-agent" AND abs:"language model"', "Multi-agent LLM systems", "multi-agent"),
    SearchQuery(
        'abs:"retrieval augmented generation" OR abs:"RAG"',
        "Retrieval-augmented generation",
        "rag",
    ),
    SearchQuery(
        'abs:"prompt engineering" OR abs:"prompt design"', "Prompt engineering techniques", "prompting"
    ),
    SearchQuery(
        'abs:"in-context learning" OR abs:"few-shot learning" AND abs:"language model"',
        "In-context learning",
        "learning",
    ),
    SearchQuery(
        'abs:"language model" AND (abs:coding OR abs:"code generation")',
        "LLMs for coding",
        "code-generation",
    ),
    SearchQuery('abs:"language model" AND (abs:robot OR abs:robotics)', "LLMs in robotics", "robotics"),
    SearchQuery(
        'abs:"language model" AND (abs:benchmark OR abs:evaluation) AND (abs:agent OR abs:application)',
        "LLM application benchmarks",
        "evaluation",
    ),
)


class ArxivClient:
    """Thin transport over the arXiv query endpoint.

    Retries 429/5xx responses and network errors with exponential backoff and
    raises ``TransientFetchError`` once the attempts are used up. Any other
    HTTP error status fails on the first attempt.
    """

    def __init__(
        self,
        base_url: str = ARXIV_API_URL,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        max_retries: int = ARXIV_MAX_RETRIES,
        backoff_seconds: float = 3.0,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.backoff_seconds = backoff_seconds
        self.session = session or requests.Session()

    def query(
        self,
        search_query: str,
        start: int,
        max_results: int,
        sort_by: str = "submittedDate",
        sort_order: str = "descending",
    ) -> FeedPage:
        params = {
            "search_query": search_query,
            "start": start,
            "max_results": max_results,
            "sortBy": sort_by,
            "sortOrder": sort_order,
        }
        delay_seconds = self.backoff_seconds
        last_error: Exception | None = None

        for attempt in range(1, self.max_retries + 1):
            try:
                response = self.session.get(self.base_url, params=params, timeout=self.timeout)
            except requests.RequestException as exc:
                last_error = exc
                if attempt >= self.max_retries:
                    break
                LOGGER.warning(
                    "arXiv request failed (attempt %s/%s): %s", attempt, self.max_retries, exc
                )
                time.sleep(delay_seconds)
                delay_seconds *= 2
                continue

            if response.status_code in _RETRYABLE_STATUS and attempt < self.max_retries:
                LOGGER.warning(
                    "arXiv returned HTTP %s (attempt %s/%s), retrying in %.1fs",
                    response.status_code,
                    attempt,
                    self.max_retries,
                    delay_seconds,
                )
                time.sleep(delay_seconds)
                delay_seconds *= 2
                continue

            # non-retryable status, or the last attempt
            try:
                response.raise_for_status()
            except requests.HTTPError as exc:
                raise TransientFetchError(
                    f"arXiv returned HTTP {response.status_code}: {exc}"
                ) from exc
            return parse_feed(response.content)

        raise TransientFetchError(f"arXiv request failed after retries: {last_error}") from last_error


def build_search_query(base_query: str, start_date: str | None, end_date: str | None) -> str:
    """AND the base query with a ``submittedDate`` clause covering whole days."""
    start = (start_date or DEFAULT_START_DATE).replace("-", "") + "0000"
    end_day = end_date or datetime.now(UTC).date().isoformat()
    end = end_day.replace("-", "") + "2359"
    return f"({base_query}) AND submittedDate:[{start} TO {end}]"


def fetch_papers_for_query(
    client: ArxivClient,
    limiter: RateLimiter,
    query: str,
    *,
    max_results: int | None = None,
    start_date: str | None = DEFAULT_START_DATE,
    end_date: str | None = None,
    page_size: int = ARXIV_PAGE_SIZE,
    sort_by: str = "submittedDate",
    sort_order: str = "descending",
) -> list[PaperRecord]:
    """Page through one arXiv query and return the normalized records.

    Args:
        client: Upstream transport.
        limiter: Shared gate awaited before every request.
        query: Base arXiv search expression.
        max_results: Cap on returned records; None means no cap.
        start_date: First submission day (YYYY-MM-DD).
        end_date: Last submission day; defaults to today.
        page_size: Upper bound on records requested per call.

    Raises:
        TransientFetchError: the very first page could not be fetched. Errors
            on later pages end pagination and the partial result is returned.
    """
    search_query = build_search_query(query, start_date, end_date)
    papers: list[PaperRecord] = []
    start = 0

    LOGGER.info("Fetching papers for query: %s", query)
    LOGGER.info("Date range: %s to %s", start_date or DEFAULT_START_DATE, end_date or "now")

    while max_results is None or len(papers) < max_results:
        remaining = page_size if max_results is None else max_results - len(papers)
        to_fetch = min(page_size, remaining)

        limiter.wait()
        try:
            LOGGER.debug("Fetching results %s - %s", start, start + to_fetch)
            page = client.query(search_query, start, to_fetch, sort_by, sort_order)
        except TransientFetchError as exc:
            if start == 0:
                raise
            LOGGER.warning(
                "Stopping fetch after error at offset %s, returning %s papers collected so far: %s",
                start,
                len(papers),
                exc,
            )
            break

        LOGGER.info(
            "Retrieved %s entries (%s total available)", len(page.entries), page.total_results
        )
        if not page.entries:
            break

        papers.extend(normalize_entries(page.entries))
        start += len(page.entries)

        if start >= page.total_results or len(page.entries) < to_fetch:
            break

    if max_results is not None:
        papers = papers[:max_results]

    LOGGER.info("Total papers fetched for query: %s", len(papers))
    return papers


def collect_papers(
    client: ArxivClient,
    limiter: RateLimiter,
    queries: Sequence[SearchQuery],
    **fetch_options,
) -> list[PaperRecord]:
    """Run queries in order and keep the first copy of every paper id.

    A query that fails outright is logged and skipped; the remaining queries
    still run.
    """
    papers: list[PaperRecord] = []
    seen_ids: set[str] = set()

    LOGGER.info("Starting multi-query fetch: %s queries", len(queries))

    for position, search in enumerate(queries, start=1):
        LOGGER.info(
            "[Query %s/%s] %s (category=%s)",
            position,
            len(queries),
            search.description,
            search.category,
        )
        try:
            fetched = fetch_papers_for_query(client, limiter, search.query, **fetch_options)
        except TransientFetchError as exc:
            LOGGER.warning("%s; continuing with next query", QueryFailedError(search.query, exc))
            continue

        new_count = 0
        for paper in fetched:
            if paper.id in seen_ids:
                continue
            seen_ids.add(paper.id)
            papers.append(paper)
            new_count += 1

        LOGGER.info(
            "Added %s new papers (%s duplicates skipped)", new_count, len(fetched) - new_count
        )

    LOGGER.info("Multi-query fetch complete: %s unique papers", len(papers))
    return papers
