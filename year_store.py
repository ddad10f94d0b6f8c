"""JSON file store holding one partition of full paper records per year."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Sequence

from errors import StorageError
from models import PaperRecord

LOGGER = logging.getLogger(__name__)


class YearStore:
    """Reads and writes ``<papers_dir>/<year>.json`` partitions."""

    def __init__(self, papers_dir: Path) -> None:
        self.papers_dir = Path(papers_dir)

    def path_for(self, year: int) -> Path:
        return self.papers_dir / f"{year}.json"

    def years(self) -> list[int]:
        """Years with a partition on disk, newest first."""
        if not self.papers_dir.is_dir():
            return []
        years = [int(path.stem) for path in self.papers_dir.glob("*.json") if path.stem.isdigit()]
        return sorted(years, reverse=True)

    def load(self, year: int) -> list[PaperRecord]:
        """Return the stored papers for ``year``; an absent partition is empty."""
        path = self.path_for(year)
        if not path.exists():
            return []

        data = read_json(path)
        try:
            return [PaperRecord.from_dict(item) for item in data.get("papers") or []]
        except (KeyError, TypeError, AttributeError) as exc:
            raise StorageError(f"Invalid paper record in {path}: {exc}") from exc

    def load_all(self) -> dict[int, list[PaperRecord]]:
        partitions = {year: self.load(year) for year in self.years()}
        LOGGER.info(
            "Loaded %s papers from %s year files",
            sum(len(papers) for papers in partitions.values()),
            len(partitions),
        )
        return partitions

    def save(self, year: int, papers: Sequence[PaperRecord]) -> None:
        payload = {
            "year": year,
            "count": len(papers),
            "papers": [paper.to_dict() for paper in papers],
        }
        write_json_atomic(self.path_for(year), payload)
        LOGGER.info("Saved %s papers to %s.json", len(papers), year)


def read_json(path: Path) -> Any:
    try:
        with path.open(encoding="utf-8") as fh:
            return json.load(fh)
    except (OSError, ValueError) as exc:
        raise StorageError(f"Failed to read {path}: {exc}") from exc


def write_json_atomic(path: Path, payload: Any) -> None:
    """Write JSON next to ``path`` and swap it in, so readers never see half a file."""
    path = Path(path)
    tmp_name: str | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as fh:
            tmp_name = fh.name
            json.dump(payload, fh, indent=2, ensure_ascii=False)
            fh.write("\n")
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, path)
    except OSError as exc:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise StorageError(f"Failed to write {path}: {exc}") from exc
