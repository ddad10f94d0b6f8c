import json
from pathlib import Path
from unittest.mock import patch

import pytest

from errors import StorageError
from models import Author, PaperRecord, Tags
from year_store import YearStore, write_json_atomic


def _paper(paper_id: str, published: str = "2024-02-01T00:00:00Z") -> PaperRecord:
    return PaperRecord(
        id=paper_id,
        title=f"Paper {paper_id}",
        abstract="abstract",
        authors=(Author("Ada Lovelace", "Analytical Engines Ltd"), Author("Alan Turing")),
        published_date=published,
        updated_date=published,
        primary_category="cs.CL",
        arxiv_categories=("cs.CL", "cs.AI"),
        pdf_url=f"http://arxiv.org/pdf/{paper_id}v1",
        arxiv_url=f"https://arxiv.org/abs/{paper_id}",
        categories=("agents",),
        tags=Tags(auto=("agents",), manual=("safety",)),
        fetched_at="2024-02-02T00:00:00+00:00",
    )


def test_load_missing_partition_is_empty(tmp_path: Path) -> None:
    store = YearStore(tmp_path / "papers")

    assert store.load(2024) == []
    assert store.years() == []


def test_save_writes_year_count_and_papers(tmp_path: Path) -> None:
    store = YearStore(tmp_path / "papers")
    papers = [_paper("2402.00001"), _paper("2402.00002")]

    store.save(2024, papers)

    data = json.loads((tmp_path / "papers" / "2024.json").read_text(encoding="utf-8"))
    assert data["year"] == 2024
    assert data["count"] == 2 == len(data["papers"])
    first = data["papers"][0]
    assert first["publishedDate"] == "2024-02-01T00:00:00Z"
    assert first["authors"][1] == {"name": "Alan Turing", "affiliation": None}
    assert first["tags"] == {"auto": ["agents"], "manual": ["safety"]}


def test_save_then_load_returns_equal_records(tmp_path: Path) -> None:
    store = YearStore(tmp_path / "papers")
    papers = [_paper("2402.00001")]

    store.save(2024, papers)

    assert store.load(2024) == papers


def test_years_newest_first_and_ignores_other_files(tmp_path: Path) -> None:
    store = YearStore(tmp_path)
    store.save(2023, [_paper("2301.00001", "2023-01-01T00:00:00Z")])
    store.save(2024, [_paper("2402.00001")])
    (tmp_path / "notes.json").write_text("{}", encoding="utf-8")

    assert store.years() == [2024, 2023]
    assert set(store.load_all()) == {2023, 2024}


def test_load_corrupt_partition_raises_storage_error(tmp_path: Path) -> None:
    (tmp_path / "2024.json").write_text("{not json", encoding="utf-8")

    with pytest.raises(StorageError):
        YearStore(tmp_path).load(2024)


def test_failed_write_keeps_previous_partition(tmp_path: Path) -> None:
    store = YearStore(tmp_path)
    store.save(2024, [_paper("2402.00001")])
    before = (tmp_path / "2024.json").read_text(encoding="utf-8")

    with patch("year_store.os.replace", side_effect=OSError("disk full")), pytest.raises(StorageError):
        store.save(2024, [_paper("2402.00001"), _paper("2402.00002")])

    assert (tmp_path / "2024.json").read_text(encoding="utf-8") == before
    assert [p.name for p in tmp_path.iterdir()] == ["2024.json"]


def test_write_json_atomic_creates_parent_dirs(tmp_path: Path) -> None:
    target = tmp_path / "a" / "b" / "index.json"

    write_json_atomic(target, {"ok": True})

    assert json.loads(target.read_text(encoding="utf-8")) == {"ok": True}


def test_load_tolerates_missing_optional_fields(tmp_path: Path) -> None:
    (tmp_path / "2021.json").write_text(
        json.dumps(
            {
                "year": 2021,
                "count": 1,
                "papers": [{"id": "2101.00001", "title": "t", "publishedDate": "2021-01-01T00:00:00Z"}],
            }
        ),
        encoding="utf-8",
    )

    [paper] = YearStore(tmp_path).load(2021)

    assert paper.arxiv_url == "https://arxiv.org/abs/2101.00001"
    assert paper.tags == Tags()
    assert paper.authors == ()
