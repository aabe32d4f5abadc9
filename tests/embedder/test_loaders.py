from __future__ import annotations

from pathlib import Path

import pytest

from DocsToVec.Embedder.errors import (
    DocumentExtractionError,
    InputFormatError,
    InputNotFoundError,
)
from DocsToVec.Embedder.loaders import (
    PyPdfExtractor,
    discover_record_files,
    load_input,
    load_pdf,
    load_pdf_directory,
    load_records,
)
from DocsToVec.Embedder.settings import InputType
from tests.embedder.fakes import FakeExtractor


def test_load_records_uses_first_recognised_key(tmp_path: Path, write_json) -> None:
    path = write_json(
        tmp_path / "data.json",
        {
            "title": "Quiz",
            "items": [{"id": "i1"}],
            "qa_pairs": [{"id": "q1", "question": "Why?"}],
            "version": 2,
        },
    )
    input_set = load_records(path)

    assert input_set.items_key == "qa_pairs"
    assert [item["id"] for item in input_set.items] == ["q1"]
    assert input_set.metadata == {
        "title": "Quiz",
        "items": [{"id": "i1"}],
        "version": 2,
        "input_type": "json",
        "source_file": str(path),
    }


def test_load_records_accepts_chunks(tmp_path: Path, write_json) -> None:
    path = write_json(tmp_path / "c.json", {"chunks": [{"text": "x"}, {"text": "y"}]})
    input_set = load_records(path)
    assert input_set.items_key == "chunks"
    assert len(input_set) == 2


def test_load_records_without_array_key(tmp_path: Path, write_json) -> None:
    path = write_json(tmp_path / "bad.json", {"records": []})
    with pytest.raises(InputFormatError, match='"items", "qa_pairs", or "chunks"'):
        load_records(path)


def test_load_records_rejects_non_object_entries(tmp_path: Path, write_json) -> None:
    path = write_json(tmp_path / "bad.json", {"items": [{"id": 1}, "loose string"]})
    with pytest.raises(InputFormatError, match=r"items\[1\]"):
        load_records(path)


def test_load_records_missing_file(tmp_path: Path) -> None:
    with pytest.raises(InputNotFoundError):
        load_records(tmp_path / "absent.json")


def test_load_pdf_chunks_pages_and_skips_blank_pages(tmp_path: Path) -> None:
    pdf = tmp_path / "Report.pdf"
    pdf.write_bytes(b"%PDF-fake")
    page_two = "Second page sentence one. " * 5
    extractor = FakeExtractor({"Report.pdf": ["Intro page.", "   \n ", page_two]})

    input_set = load_pdf(pdf, chunk_size=60, chunk_overlap=10, extractor=extractor)

    assert input_set.items_key == "chunks"
    assert input_set.metadata == {
        "input_type": "pdf",
        "source_file": str(pdf),
        "chunk_size": 60,
        "chunk_overlap": 10,
    }
    first = input_set.items[0]
    assert first["id"] == "Report_p1_c0"
    assert first["text"] == "Intro page."
    assert first["metadata"] == {
        "source": "Report.pdf",
        "source_path": str(pdf),
        "page": 1,
        "total_pages": 3,
        "chunk_index": 0,
        "chunks_in_page": 1,
    }
    page_three = [item for item in input_set.items if item["metadata"]["page"] == 3]
    assert len(page_three) > 1
    assert [item["id"] for item in page_three] == [
        f"Report_p3_c{index}" for index in range(len(page_three))
    ]
    assert all(item["metadata"]["chunks_in_page"] == len(page_three) for item in page_three)
    assert not any(item["metadata"]["page"] == 2 for item in input_set.items)


def test_load_pdf_directory_orders_by_file_name(tmp_path: Path) -> None:
    for name in ("b.pdf", "A.PDF", "notes.txt"):
        (tmp_path / name).write_bytes(b"%PDF-fake")
    extractor = FakeExtractor({"A.PDF": ["alpha"], "b.pdf": ["beta"]})

    input_set = load_pdf_directory(tmp_path, chunk_size=100, chunk_overlap=0, extractor=extractor)

    assert extractor.opened == ["A.PDF", "b.pdf"]
    assert [item["id"] for item in input_set.items] == ["A_p1_c0", "b_p1_c0"]
    assert input_set.metadata["input_type"] == "pdf-dir"
    assert input_set.metadata["source_directory"] == str(tmp_path)


def test_load_pdf_directory_missing(tmp_path: Path) -> None:
    with pytest.raises(InputNotFoundError):
        load_pdf_directory(tmp_path / "none", extractor=FakeExtractor({}))


def test_extraction_failure_aborts_load(tmp_path: Path) -> None:
    pdf = tmp_path / "broken.pdf"
    pdf.write_bytes(b"this is not a pdf")
    pytest.importorskip("pypdf")
    with pytest.raises(DocumentExtractionError):
        load_pdf(pdf, extractor=PyPdfExtractor())


def test_pypdf_extractor_reads_generated_document(tmp_path: Path) -> None:
    pypdf = pytest.importorskip("pypdf")
    pdf = tmp_path / "blank.pdf"
    writer = pypdf.PdfWriter()
    writer.add_blank_page(width=200, height=200)
    writer.add_blank_page(width=200, height=200)
    with pdf.open("wb") as handle:
        writer.write(handle)

    document = PyPdfExtractor().open(pdf)
    assert document.page_count() == 2
    assert document.page_text(0).strip() == ""
    # blank pages contribute no chunks
    assert load_pdf(pdf).items == []


def test_discover_record_files(tmp_path: Path) -> None:
    for name in ("z.json", "a.JSON", "skip.yaml"):
        (tmp_path / name).write_text("{}", encoding="utf-8")
    assert [p.name for p in discover_record_files(tmp_path)] == ["a.JSON", "z.json"]


def test_load_input_rejects_batch_type(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        load_input(InputType.JSON_DIR, tmp_path)


def test_encrypted_pdf_raises_extraction_error(tmp_path: Path) -> None:
    pypdf = pytest.importorskip("pypdf")
    pdf = tmp_path / "locked.pdf"
    writer = pypdf.PdfWriter()
    writer.add_blank_page(width=200, height=200)
    writer.encrypt(user_password="secret")
    with pdf.open("wb") as handle:
        writer.write(handle)

    with pytest.raises(DocumentExtractionError, match="locked.pdf"):
        load_pdf(pdf)


def test_page_count_failure_raises_extraction_error(tmp_path: Path) -> None:
    from DocsToVec.Embedder.loaders import _PyPdfDocument

    class _BrokenReader:
        @property
        def pages(self):
            raise RuntimeError("xref table damaged")

    document = _PyPdfDocument(tmp_path / "bad.pdf", _BrokenReader())
    with pytest.raises(DocumentExtractionError, match="xref table damaged"):
        document.page_count()
