"""Exception types raised across the ingestion pipeline."""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for every pipeline failure."""


class MalformedRecordError(PipelineError):
    """An upstream entry cannot be normalized (usually an unparseable id)."""


class TransientFetchError(PipelineError):
    """Network, HTTP or feed-level failure while talking to arXiv."""


class FeedParseError(TransientFetchError):
    """The upstream response was not a readable Atom feed."""


class QueryFailedError(PipelineError):
    """A whole search query failed; the collector skips it."""

    def __init__(self, query: str, cause: Exception) -> None:
        super().__init__(f"Query failed: {query!r}: {cause}")
        self.query = query
        self.cause = cause


class StorageError(PipelineError):
    """Reading or writing a partition, index or curation file failed."""


class ConfigError(PipelineError):
    """Category definitions or user overrides are missing or invalid."""
