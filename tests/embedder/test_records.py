from __future__ import annotations

import pytest

from DocsToVec.Embedder.errors import RecordTypeError
from DocsToVec.Embedder.records import Record, item_identifier


def test_identifier_prefers_id_field() -> None:
    assert item_identifier({"id": 7}, 3) == "7"
    assert item_identifier({"id": "q-1"}, 0) == "q-1"


def test_identifier_falls_back_to_position() -> None:
    assert item_identifier({"question": "x"}, 4) == "4"
    assert item_identifier({"id": None}, 2) == "2"


def test_get_text_accepts_strings_and_numbers() -> None:
    record = Record(question="What?", year=2024, score=0.5)
    assert record.get_text("question") == "What?"
    assert record.get_text("year") == "2024"
    assert record.get_text("score") == "0.5"
    assert record.get_text("missing") is None


@pytest.mark.parametrize("value", [{"nested": "x"}, ["a", "b"], True])
def test_get_text_rejects_structured_values(value: object) -> None:
    record = Record(question=value)
    with pytest.raises(RecordTypeError) as excinfo:
        record.get_text("question")
    assert excinfo.value.field == "question"
    assert excinfo.value.error_code == "FIELD_TYPE"


def test_typed_accessors() -> None:
    record = Record(name="n", count=3, meta={"a": 1}, embeddings=[1, 2.5])
    assert record.get_str("name") == "n"
    assert record.get_int("count") == 3
    assert record.get_mapping("meta") == {"a": 1}
    assert record.get_vector() == [1.0, 2.5]
    assert record.get_str("absent", "fallback") == "fallback"

    with pytest.raises(RecordTypeError):
        record.get_int("name")
    with pytest.raises(RecordTypeError):
        Record(flag=True).get_int("flag")
    with pytest.raises(RecordTypeError):
        Record(embeddings=["x"]).get_vector()
    with pytest.raises(RecordTypeError):
        record.get_mapping("count")


def test_with_embeddings_copies_and_preserves_unknown_fields() -> None:
    original = Record(id="1", question="A", extra={"keep": True})
    updated = original.with_embeddings([0.1, 0.2])

    assert "embeddings" not in original
    assert updated["embeddings"] == [0.1, 0.2]
    assert list(updated.keys()) == ["id", "question", "extra", "embeddings"]
    assert updated.has_embeddings
    assert not original.has_embeddings
