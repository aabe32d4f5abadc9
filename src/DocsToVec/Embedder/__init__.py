"""
Resumable batch embedding for JSON records and PDF documents.

The submodules are layered leaves-first: :mod:`.chunking` and :mod:`.records`
have no internal dependencies, :mod:`.loaders` and :mod:`.checkpoint` build on
them, :mod:`.pipeline` drives one input set through an embedding provider, and
:mod:`.batch` fans the pipeline out over a directory. :mod:`.cli` wires it all
to the ``docstovec`` command.
"""

from .batch import BatchOrchestrator, BatchResult, batch_output_path
from .checkpoint import EmbedderInfo, is_complete, load_existing, save
from .chunking import chunk_text, iter_chunk_spans
from .errors import (
    DocumentExtractionError,
    EmbedderError,
    InputFormatError,
    InputNotFoundError,
    RecordTypeError,
)
from .loaders import InputSet, load_input, load_pdf, load_pdf_directory, load_records
from .pipeline import (
    EmbedFailure,
    EmbeddingPipeline,
    EmbedSuccess,
    PipelineResult,
    PipelineState,
    embed_item,
)
from .records import Record, item_identifier
from .settings import EmbedderCfg, InputType

__all__ = [
    "BatchOrchestrator",
    "BatchResult",
    "DocumentExtractionError",
    "EmbedFailure",
    "EmbedSuccess",
    "EmbedderCfg",
    "EmbedderError",
    "EmbedderInfo",
    "EmbeddingPipeline",
    "InputFormatError",
    "InputNotFoundError",
    "InputSet",
    "InputType",
    "PipelineResult",
    "PipelineState",
    "Record",
    "RecordTypeError",
    "batch_output_path",
    "chunk_text",
    "embed_item",
    "is_complete",
    "item_identifier",
    "iter_chunk_spans",
    "load_existing",
    "load_input",
    "load_pdf",
    "load_pdf_directory",
    "load_records",
    "save",
]
