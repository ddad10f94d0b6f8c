import json
from datetime import UTC, datetime
from pathlib import Path

from index_builder import build_and_save_index, build_index, project_paper
from models import Author, PaperRecord
from year_store import YearStore

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


def _paper(paper_id: str, published: str, categories: tuple[str, ...] = ()) -> PaperRecord:
    return PaperRecord(
        id=paper_id,
        title=f"Paper {paper_id}",
        abstract="Full abstract text.",
        authors=(Author("Ada Lovelace", "Somewhere"), Author("Alan Turing")),
        published_date=published,
        arxiv_url=f"https://arxiv.org/abs/{paper_id}",
        categories=categories,
    )


def test_project_paper_shape() -> None:
    entry = project_paper(_paper("2401.00001", "2024-01-05T00:00:00Z", ("agents",)))

    assert entry == {
        "id": "2401.00001",
        "title": "Paper 2401.00001",
        "authors": ["Ada Lovelace", "Alan Turing"],
        "abstract": "Full abstract text.",
        "publishedDate": "2024-01-05T00:00:00Z",
        "arxivUrl": "https://arxiv.org/abs/2401.00001",
        "categories": ["agents"],
        "year": 2024,
    }


def test_blocked_paper_excluded_with_its_year() -> None:
    partitions = {
        2023: [_paper("p1", "2023-05-01T00:00:00Z", ("rag",))],
        2024: [_paper("p2", "2024-02-01T00:00:00Z", ("agents",)), _paper("p3", "2024-03-01T00:00:00Z")],
    }

    result = build_index(partitions, {"p1"}, now=NOW)
    meta = result.index["meta"]

    assert result.source_found is True
    assert [p["id"] for p in result.index["papers"]] == ["p3", "p2"]
    assert meta["totalPapers"] == 2
    assert meta["years"] == [2024]
    assert meta["categories"] == ["agents"]
    assert meta["lastUpdated"] == NOW.isoformat()


def test_sorted_newest_first_across_years_with_stable_ties() -> None:
    partitions = {
        2023: [_paper("old", "2023-01-01T00:00:00Z")],
        2024: [
            _paper("tie-a", "2024-01-01T00:00:00Z"),
            _paper("new", "2024-04-01T00:00:00Z"),
            _paper("tie-b", "2024-01-01T00:00:00Z"),
        ],
    }

    result = build_index(partitions, set(), now=NOW)

    assert [p["id"] for p in result.index["papers"]] == ["new", "tie-a", "tie-b", "old"]
    assert result.index["meta"]["years"] == [2024, 2023]


def test_meta_categories_only_those_in_use_sorted() -> None:
    partitions = {2024: [_paper("a", "2024-01-01T00:00:00Z", ("rag", "agents")), _paper("b", "2024-01-02T00:00:00Z", ("agents",))]}

    meta = build_index(partitions, set(), now=NOW).index["meta"]

    assert meta["categories"] == ["agents", "rag"]


def test_empty_partitions_signal_no_source() -> None:
    result = build_index({}, set(), now=NOW)

    assert result.source_found is False
    assert result.index["papers"] == []
    assert result.index["meta"]["totalPapers"] == 0
    assert result.index["meta"]["years"] == []


def test_all_blocked_still_counts_as_source() -> None:
    result = build_index({2024: [_paper("a", "2024-01-01T00:00:00Z")]}, {"a"}, now=NOW)

    assert result.source_found is True
    assert result.index["meta"]["totalPapers"] == 0


def test_build_and_save_writes_index_and_honours_blocklist(tmp_path: Path) -> None:
    store = YearStore(tmp_path / "papers")
    store.save(2024, [_paper("keep", "2024-01-01T00:00:00Z"), _paper("drop", "2024-01-02T00:00:00Z")])
    blocklist = tmp_path / "blocklist.json"
    blocklist.write_text(
        json.dumps({"blocked": [{"id": "drop", "reason": "off-topic", "blockedAt": "2024-01-03", "blockedBy": "me"}]}),
        encoding="utf-8",
    )
    index_path = tmp_path / "index.json"

    build_and_save_index(store, index_path, blocklist)

    index = json.loads(index_path.read_text(encoding="utf-8"))
    assert [p["id"] for p in index["papers"]] == ["keep"]
    # blocking is index-level only; the partition still holds the paper
    assert {p.id for p in store.load(2024)} == {"keep", "drop"}


def test_build_and_save_keeps_previous_index_when_no_data(tmp_path: Path) -> None:
    index_path = tmp_path / "index.json"
    index_path.write_text('{"previous": true}', encoding="utf-8")

    result = build_and_save_index(YearStore(tmp_path / "papers"), index_path, tmp_path / "missing.json")

    assert result.source_found is False
    assert json.loads(index_path.read_text(encoding="utf-8")) == {"previous": True}
