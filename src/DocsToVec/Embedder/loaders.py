# === NAVMAP v1 ===
# {
#   "module": "DocsToVec.Embedder.loaders",
#   "purpose": "Normalise record files and PDF documents into InputSet values.",
#   "sections": [
#     {
#       "id": "inputset",
#       "name": "InputSet",
#       "anchor": "class-inputset",
#       "kind": "class"
#     },
#     {
#       "id": "textextractor",
#       "name": "TextExtractor",
#       "anchor": "class-textextractor",
#       "kind": "class"
#     },
#     {
#       "id": "pypdfextractor",
#       "name": "PyPdfExtractor",
#       "anchor": "class-pypdfextractor",
#       "kind": "class"
#     },
#     {
#       "id": "load-records",
#       "name": "load_records",
#       "anchor": "function-load-records",
#       "kind": "function"
#     },
#     {
#       "id": "load-pdf",
#       "name": "load_pdf",
#       "anchor": "function-load-pdf",
#       "kind": "function"
#     },
#     {
#       "id": "load-pdf-directory",
#       "name": "load_pdf_directory",
#       "anchor": "function-load-pdf-directory",
#       "kind": "function"
#     },
#     {
#       "id": "discover-record-files",
#       "name": "discover_record_files",
#       "anchor": "function-discover-record-files",
#       "kind": "function"
#     },
#     {
#       "id": "load-input",
#       "name": "load_input",
#       "anchor": "function-load-input",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Normalise record files and PDF documents into :class:`InputSet` values.

Three layouts are accepted. Record files are JSON objects carrying their items
under ``qa_pairs``, ``items``, or ``chunks``; every other top-level field is
preserved as pass-through metadata. PDF files are read page by page through a
:class:`TextExtractor` and split with :func:`~DocsToVec.Embedder.chunking.chunk_text`.
PDF directories concatenate the chunks of each ``*.pdf`` file in name order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

from .chunking import chunk_text
from .errors import DocumentExtractionError, InputFormatError, InputNotFoundError
from .io import list_files_with_suffix, read_json_object
from .logging import get_logger, log_event
from .records import Record
from .settings import InputType

__all__ = [
    "ITEM_KEYS",
    "InputSet",
    "PdfDocument",
    "PyPdfExtractor",
    "TextExtractor",
    "discover_record_files",
    "load_input",
    "load_pdf",
    "load_pdf_directory",
    "load_records",
]

ITEM_KEYS: tuple[str, ...] = ("qa_pairs", "items", "chunks")
CHUNKS_KEY = "chunks"

_LOGGER = get_logger(__name__, base_fields={"stage": "load"})


@dataclass(slots=True)
class InputSet:
    """Items to embed plus the metadata written back around them."""

    items: List[Record]
    items_key: str
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.items)


class PdfDocument(Protocol):
    """Opened document exposing page-level text."""

    def page_count(self) -> int:
        """Return the number of pages."""

    def page_text(self, index: int) -> str:
        """Return the text of the zero-based page ``index``."""


class TextExtractor(Protocol):
    """Turns a PDF path into a :class:`PdfDocument`."""

    def open(self, path: Path) -> PdfDocument:
        """Open ``path``; raise :class:`DocumentExtractionError` on failure."""


class _PyPdfDocument:
    def __init__(self, path: Path, reader: Any) -> None:
        self._path = path
        self._reader = reader

    def page_count(self) -> int:
        try:
            return len(self._reader.pages)
        except Exception as exc:
            raise DocumentExtractionError(self._path, str(exc)) from exc

    def page_text(self, index: int) -> str:
        try:
            return self._reader.pages[index].extract_text() or ""
        except Exception as exc:
            raise DocumentExtractionError(self._path, f"page {index + 1}: {exc}") from exc


class PyPdfExtractor:
    """Text extractor backed by :class:`pypdf.PdfReader`."""

    def open(self, path: Path) -> PdfDocument:
        from pypdf import PdfReader

        try:
            reader = PdfReader(str(path))
        except Exception as exc:
            raise DocumentExtractionError(path, str(exc)) from exc
        if reader.is_encrypted:
            # only documents readable with an empty user password are supported
            try:
                decrypted = reader.decrypt("")
            except Exception as exc:
                raise DocumentExtractionError(path, f"cannot decrypt: {exc}") from exc
            if not decrypted:
                raise DocumentExtractionError(path, "document is encrypted and needs a password")
        return _PyPdfDocument(path, reader)


def load_records(path: Path) -> InputSet:
    """Load a JSON record file.

    The first of ``qa_pairs``, ``items``, ``chunks`` present in the document
    supplies the items. The remaining top-level fields become metadata, and
    ``input_type``/``source_file`` are added.

    Raises:
        InputNotFoundError: If ``path`` does not exist.
        InputFormatError: If the file is not a JSON object, has no recognised
            array key, or the array holds non-object entries.
    """

    data = read_json_object(path)
    items_key = next((key for key in ITEM_KEYS if key in data), None)
    if items_key is None:
        raise InputFormatError(
            'Input must contain "items", "qa_pairs", or "chunks" array', path
        )
    raw_items = data[items_key]
    if not isinstance(raw_items, list):
        raise InputFormatError(
            f'"{items_key}" must be an array, found {type(raw_items).__name__}', path
        )
    items: List[Record] = []
    for index, entry in enumerate(raw_items):
        if not isinstance(entry, dict):
            raise InputFormatError(
                f'"{items_key}[{index}]" must be an object, found {type(entry).__name__}',
                path,
            )
        items.append(Record(entry))

    metadata = {key: value for key, value in data.items() if key != items_key}
    metadata["input_type"] = InputType.JSON.value
    metadata["source_file"] = str(path)
    log_event(
        _LOGGER,
        "info",
        "Loaded record file",
        path=str(path),
        items_key=items_key,
        items=len(items),
    )
    return InputSet(items=items, items_key=items_key, metadata=metadata)


def _chunk_document(
    path: Path, extractor: TextExtractor, chunk_size: int, chunk_overlap: int
) -> List[Record]:
    if not path.is_file():
        raise InputNotFoundError(path, kind="PDF file")
    document = extractor.open(path)
    total_pages = document.page_count()
    log_event(_LOGGER, "info", "Processing PDF", path=str(path), pages=total_pages)

    chunks: List[Record] = []
    for page_index in range(total_pages):
        text = document.page_text(page_index)
        if not text.strip():
            continue
        page_chunks = chunk_text(text, chunk_size, chunk_overlap)
        for chunk_index, piece in enumerate(page_chunks):
            chunks.append(
                Record(
                    id=f"{path.stem}_p{page_index + 1}_c{chunk_index}",
                    text=piece,
                    metadata={
                        "source": path.name,
                        "source_path": str(path),
                        "page": page_index + 1,
                        "total_pages": total_pages,
                        "chunk_index": chunk_index,
                        "chunks_in_page": len(page_chunks),
                    },
                )
            )
    log_event(_LOGGER, "info", "Extracted chunks", path=str(path), chunks=len(chunks))
    return chunks


def load_pdf(
    path: Path,
    *,
    chunk_size: int = 500,
    chunk_overlap: int = 50,
    extractor: Optional[TextExtractor] = None,
) -> InputSet:
    """Extract and chunk a single PDF.

    Pages whose text is blank are skipped. Any extractor failure aborts the
    load with :class:`DocumentExtractionError`.
    """

    extractor = extractor or PyPdfExtractor()
    chunks = _chunk_document(path, extractor, chunk_size, chunk_overlap)
    metadata: Dict[str, Any] = {
        "input_type": InputType.PDF.value,
        "source_file": str(path),
        "chunk_size": chunk_size,
        "chunk_overlap": chunk_overlap,
    }
    return InputSet(items=chunks, items_key=CHUNKS_KEY, metadata=metadata)


def load_pdf_directory(
    directory: Path,
    *,
    chunk_size: int = 500,
    chunk_overlap: int = 50,
    extractor: Optional[TextExtractor] = None,
) -> InputSet:
    """Extract and chunk every ``*.pdf`` in ``directory`` in file-name order."""

    extractor = extractor or PyPdfExtractor()
    files = list_files_with_suffix(directory, ".pdf")
    log_event(_LOGGER, "info", "Found PDF files", directory=str(directory), files=len(files))
    chunks: List[Record] = []
    for pdf_path in files:
        chunks.extend(_chunk_document(pdf_path, extractor, chunk_size, chunk_overlap))
    metadata: Dict[str, Any] = {
        "input_type": InputType.PDF_DIR.value,
        "source_directory": str(directory),
        "chunk_size": chunk_size,
        "chunk_overlap": chunk_overlap,
    }
    return InputSet(items=chunks, items_key=CHUNKS_KEY, metadata=metadata)


def discover_record_files(directory: Path) -> List[Path]:
    """Return the ``*.json`` files directly inside ``directory``, sorted by name."""

    return list_files_with_suffix(directory, ".json")


def load_input(
    input_type: InputType,
    path: Path,
    *,
    chunk_size: int = 500,
    chunk_overlap: int = 50,
    extractor: Optional[TextExtractor] = None,
) -> InputSet:
    """Dispatch to the loader for a single-output ``input_type``.

    ``json-dir`` inputs produce one output per file and are handled by
    :mod:`DocsToVec.Embedder.batch` instead.
    """

    if input_type is InputType.JSON:
        return load_records(path)
    if input_type is InputType.PDF:
        return load_pdf(
            path, chunk_size=chunk_size, chunk_overlap=chunk_overlap, extractor=extractor
        )
    if input_type is InputType.PDF_DIR:
        return load_pdf_directory(
            path, chunk_size=chunk_size, chunk_overlap=chunk_overlap, extractor=extractor
        )
    raise ValueError(f"Input type '{input_type.value}' is not a single input set")

