# === NAVMAP v1 ===
# {
#   "module": "DocsToVec.Embedder.records",
#   "purpose": "Record mapping type with typed accessors and identifier derivation.",
#   "sections": [
#     {
#       "id": "record",
#       "name": "Record",
#       "anchor": "class-record",
#       "kind": "class"
#     },
#     {
#       "id": "item-identifier",
#       "name": "item_identifier",
#       "anchor": "function-item-identifier",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Record mapping type with typed accessors and identifier derivation.

Items flowing through the embedder are schemaless JSON objects: question/answer
pairs, generic items, or PDF chunks. :class:`Record` keeps them as ordered
mappings so every field the embedder does not know about is written back
unchanged, while the accessors give the pipeline checked access to the handful
of fields it does interpret.
"""

from __future__ import annotations

from numbers import Real
from typing import Any, List, Mapping, Optional, Sequence

from .errors import RecordTypeError

__all__ = ["EMBEDDINGS_FIELD", "Record", "item_identifier"]

EMBEDDINGS_FIELD = "embeddings"


class Record(dict):
    """Insertion-ordered JSON object with typed accessors.

    Accessors return ``default`` when a field is missing or ``null`` and raise
    :class:`RecordTypeError` when it holds a value of the wrong type.
    """

    def get_str(self, field: str, default: Optional[str] = None) -> Optional[str]:
        value = self.get(field)
        if value is None:
            return default
        if not isinstance(value, str):
            raise RecordTypeError(field, "string", value)
        return value

    def get_int(self, field: str, default: Optional[int] = None) -> Optional[int]:
        value = self.get(field)
        if value is None:
            return default
        if isinstance(value, bool) or not isinstance(value, int):
            raise RecordTypeError(field, "integer", value)
        return value

    def get_mapping(
        self, field: str, default: Optional[Mapping[str, Any]] = None
    ) -> Optional[Mapping[str, Any]]:
        value = self.get(field)
        if value is None:
            return default
        if not isinstance(value, Mapping):
            raise RecordTypeError(field, "object", value)
        return value

    def get_vector(self, field: str = EMBEDDINGS_FIELD) -> Optional[List[float]]:
        """Return ``field`` as a list of floats, or ``None`` when absent."""

        value = self.get(field)
        if value is None:
            return None
        if not isinstance(value, Sequence) or isinstance(value, (str, bytes)):
            raise RecordTypeError(field, "array of numbers", value)
        vector: List[float] = []
        for component in value:
            if isinstance(component, bool) or not isinstance(component, Real):
                raise RecordTypeError(field, "array of numbers", component)
            vector.append(float(component))
        return vector

    def get_text(self, field: str) -> Optional[str]:
        """Return the text to embed from ``field``.

        Strings are returned as stored and numbers are rendered with ``str``.
        Missing and ``null`` fields yield ``None``; booleans, arrays, and objects
        raise :class:`RecordTypeError`.
        """

        value = self.get(field)
        if value is None:
            return None
        if isinstance(value, str):
            return value
        if isinstance(value, Real) and not isinstance(value, bool):
            return str(value)
        raise RecordTypeError(field, "text", value)

    @property
    def has_embeddings(self) -> bool:
        """Return ``True`` once an embedding vector has been attached."""

        return self.get(EMBEDDINGS_FIELD) is not None

    def with_embeddings(self, vector: Sequence[float]) -> "Record":
        """Return a copy of the record carrying ``vector`` under ``embeddings``."""

        updated = Record(self)
        updated[EMBEDDINGS_FIELD] = [float(component) for component in vector]
        return updated

    @classmethod
    def coerce(cls, value: Mapping[str, Any]) -> "Record":
        """Return ``value`` as a :class:`Record` without copying existing records."""

        return value if isinstance(value, Record) else cls(value)


def item_identifier(record: Mapping[str, Any], index: int) -> str:
    """Return the resume identifier for ``record`` at position ``index``.

    Records with a non-null ``id`` use ``str(id)``; everything else falls back
    to its zero-based position in the source array.
    """

    identifier = record.get("id")
    if identifier is None:
        return str(index)
    return str(identifier)
