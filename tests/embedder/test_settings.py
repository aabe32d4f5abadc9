from __future__ import annotations

import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from DocsToVec.Embedder.config import ConfigLoadError, load_config_mapping
from DocsToVec.Embedder.settings import EmbedderCfg, InputType, LogFormat, resolve_model_name


def test_defaults() -> None:
    cfg = EmbedderCfg()
    assert cfg.input_type is InputType.JSON
    assert cfg.model == "qwen3-0.6-embed"
    assert cfg.resolved_model == "Qwen/Qwen3-Embedding-0.6B"
    assert cfg.text_field == "question"
    assert cfg.batch_size == 100
    assert cfg.resume is True
    assert (cfg.chunk_size, cfg.chunk_overlap) == (500, 50)
    assert cfg.log_format is LogFormat.CONSOLE
    assert cfg.effective_trust_remote_code is False


def test_model_aliases() -> None:
    assert resolve_model_name("nomic-embed-text-v2") == "nomic-ai/nomic-embed-text-v2-moe"
    assert resolve_model_name("sentence-transformers/all-MiniLM-L6-v2") == (
        "sentence-transformers/all-MiniLM-L6-v2"
    )
    cfg = EmbedderCfg(model="nomic-embed-text-v2")
    assert cfg.effective_trust_remote_code is True


def test_document_inputs_embed_text_field() -> None:
    assert EmbedderCfg(input_type="pdf", text_field="question").effective_text_field == "text"
    assert EmbedderCfg(input_type="json-dir", text_field="body").effective_text_field == "body"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"batch_size": 0},
        {"chunk_size": 0},
        {"input_type": "pdf", "chunk_size": 50, "chunk_overlap": 50},
        {"chunk_overlap": -1},
        {"input_type": "csv"},
        {"text_field": "  "},
        {"log_format": "xml"},
    ],
)
def test_invalid_values_rejected(kwargs: dict) -> None:
    with pytest.raises(ValidationError):
        EmbedderCfg(**kwargs)


def test_environment_overrides_defaults() -> None:
    os.environ["DOCSTOVEC_BATCH_SIZE"] = "7"
    os.environ["DOCSTOVEC_MODEL"] = "custom/model"
    os.environ["DOCSTOVEC_LOG_LEVEL"] = "debug"
    cfg = EmbedderCfg()
    assert cfg.batch_size == 7
    assert cfg.model == "custom/model"
    assert cfg.log_level.value == "DEBUG"


def test_precedence_cli_over_file_over_env(tmp_path: Path) -> None:
    os.environ["DOCSTOVEC_BATCH_SIZE"] = "7"
    os.environ["DOCSTOVEC_TEXT_FIELD"] = "from_env"
    os.environ["DOCSTOVEC_DEVICE"] = "cuda"
    config = tmp_path / "run.yaml"
    config.write_text("batch-size: 11\ntext_field: from_file\n", encoding="utf-8")

    cfg = EmbedderCfg.from_sources(
        config_path=config, overrides={"text_field": "from_cli", "model": None}
    )

    assert cfg.text_field == "from_cli"
    assert cfg.batch_size == 11
    assert cfg.device == "cuda"
    assert cfg.model == "qwen3-0.6-embed"


def test_unknown_config_keys_rejected(tmp_path: Path) -> None:
    config = tmp_path / "run.json"
    config.write_text('{"batch_size": 5, "bogus": 1}', encoding="utf-8")
    with pytest.raises(ConfigLoadError, match="bogus"):
        EmbedderCfg.from_sources(config_path=config)


def test_load_config_mapping_formats(tmp_path: Path) -> None:
    toml_file = tmp_path / "run.toml"
    toml_file.write_text('model = "m"\nbatch_size = 3\n', encoding="utf-8")
    assert load_config_mapping(toml_file) == {"model": "m", "batch_size": 3}

    empty_yaml = tmp_path / "empty.yml"
    empty_yaml.write_text("", encoding="utf-8")
    assert load_config_mapping(empty_yaml) == {}

    json_file = tmp_path / "run.json"
    json_file.write_text('{"resume": false}', encoding="utf-8")
    assert load_config_mapping(json_file) == {"resume": False}


@pytest.mark.parametrize(
    "name,content",
    [
        ("list.yaml", "- a\n- b\n"),
        ("bad.json", "{oops"),
        ("bad.toml", "= nope"),
        ("bad.yaml", "key: [unclosed"),
    ],
)
def test_load_config_mapping_errors(tmp_path: Path, name: str, content: str) -> None:
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigLoadError):
        load_config_mapping(path)


def test_load_config_mapping_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigLoadError, match="not found"):
        load_config_mapping(tmp_path / "absent.toml")


def test_chunk_overlap_ignored_for_record_inputs() -> None:
    cfg = EmbedderCfg(input_type="json", chunk_size=100, chunk_overlap=600)
    assert cfg.chunk_overlap == 600
    assert EmbedderCfg(input_type="json-dir", chunk_size=100, chunk_overlap=100).input_type is InputType.JSON_DIR
    with pytest.raises(ValidationError):
        EmbedderCfg(input_type="pdf-dir", chunk_size=100, chunk_overlap=600)
