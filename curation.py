"""Read-only access to the user's block-list and saved-list files."""

from __future__ import annotations

import logging
from pathlib import Path

from errors import StorageError
from models import BlockedEntry, SavedEntry
from year_store import read_json

LOGGER = logging.getLogger(__name__)


def load_blocklist(path: Path) -> list[BlockedEntry]:
    """Entries of ``{"blocked": [...]}``; a missing file means nothing is blocked."""
    if not path.exists():
        return []

    data = read_json(path)
    try:
        return [
            BlockedEntry(
                id=item["id"],
                reason=item.get("reason"),
                blocked_at=item.get("blockedAt"),
                blocked_by=item.get("blockedBy"),
            )
            for item in data.get("blocked") or []
        ]
    except (KeyError, TypeError, AttributeError) as exc:
        raise StorageError(f"Invalid block-list {path}: {exc}") from exc


def load_savedlist(path: Path) -> list[SavedEntry]:
    if not path.exists():
        return []

    data = read_json(path)
    try:
        return [
            SavedEntry(id=item["id"], saved_at=item.get("savedAt"), note=item.get("note"))
            for item in data.get("saved") or []
        ]
    except (KeyError, TypeError, AttributeError) as exc:
        raise StorageError(f"Invalid saved-list {path}: {exc}") from exc


def blocked_ids(path: Path) -> frozenset[str]:
    ids = frozenset(entry.id for entry in load_blocklist(path))
    LOGGER.info("Block-list: %s blocked papers", len(ids))
    return ids


def saved_ids(path: Path) -> frozenset[str]:
    return frozenset(entry.id for entry in load_savedlist(path))
