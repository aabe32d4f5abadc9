"""
Typer CLI for the embedder.

Commands:

* ``docstovec embed``: embed a record file, a PDF, a PDF directory, or a
  directory of record files (one output per file), resuming from existing
  output by default.
* ``docstovec status``: inspect the ``_embedder_metadata`` of output files.
* ``docstovec config show``: print the effective configuration.

Options layer with the precedence CLI > ``--config`` file > ``DOCSTOVEC_*``
environment > defaults. Fatal errors are logged as structured events, printed,
and exit with status 1; items that could not be embedded do not change the
exit status.
"""

from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Annotated, Any, Dict, List, Optional

import typer
import yaml
from pydantic import ValidationError

from .batch import OUTPUT_SUFFIX, BatchOrchestrator
from .checkpoint import EmbedderInfo, is_complete, read_embedder_metadata
from .cli_errors import CLIValidationError, format_cli_error
from .config import ConfigLoadError
from .errors import EmbedderError
from .loaders import load_input
from .logging import configure_logging, get_logger, log_event
from .pipeline import EmbeddingPipeline
from .progress import (
    LoggingProgressObserver,
    ProgressObserver,
    TqdmProgressObserver,
    format_duration,
)
from .providers.base import ProviderError
from .providers.factory import build_context, create_provider, provider_session
from .settings import EmbedderCfg, InputType, LogFormat

__all__ = ["app", "main"]

app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help="Embed JSON records and PDF documents with resumable checkpoints.",
)

config_app = typer.Typer(no_args_is_help=True)
app.add_typer(config_app, name="config", help="Inspect the effective configuration")

_LOGGER = get_logger(__name__, base_fields={"stage": "cli"})

BANNER_RULE = "═" * 67


def _validation_messages(exc: ValidationError) -> List[str]:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())) or "config"
        messages.append(f"{location}: {error.get('msg', 'invalid value')}")
    return messages


def _load_settings(config: Optional[Path], overrides: Dict[str, Any]) -> EmbedderCfg:
    try:
        return EmbedderCfg.from_sources(config_path=config, overrides=overrides)
    except ConfigLoadError as exc:
        typer.secho(f"✗ Configuration error: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc
    except ValidationError as exc:
        for message in _validation_messages(exc):
            typer.secho(f"✗ Invalid option {message}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2) from exc


def _validate_paths(cfg: EmbedderCfg) -> tuple[Path, Path]:
    if cfg.input_path is None:
        raise CLIValidationError(
            option="--input",
            message="an input path is required",
            hint="pass -i/--input or set DOCSTOVEC_INPUT_PATH",
        )
    if cfg.output_path is None:
        raise CLIValidationError(
            option="--output",
            message="an output path is required",
            hint="pass -o/--output or set DOCSTOVEC_OUTPUT_PATH",
        )
    if not cfg.input_type.is_batch and cfg.output_path.is_dir():
        raise CLIValidationError(
            option="--output",
            message=f"{cfg.output_path} is a directory",
            hint="single inputs write one output file; use --input-type json-dir for directories",
        )
    return cfg.input_path, cfg.output_path


def _error_code(exc: BaseException) -> str:
    if isinstance(exc, ProviderError):
        return f"PROVIDER_{exc.category.upper()}"
    return getattr(exc, "error_code", None) or type(exc).__name__


def _make_observer(cfg: EmbedderCfg, no_progress: bool) -> ProgressObserver:
    if no_progress or cfg.log_format is LogFormat.JSON:
        return LoggingProgressObserver(every=50)
    return TqdmProgressObserver(desc="Embedding")


def _close_observer(observer: ProgressObserver) -> None:
    close = getattr(observer, "close", None)
    if callable(close):
        close()


def print_completion_banner(
    *,
    input_type: str,
    total_items: int,
    new_embeddings: int,
    elapsed_seconds: float,
    output_path: Path,
    files_processed: Optional[int] = None,
    files_skipped: Optional[int] = None,
) -> None:
    """Print the end-of-run summary box."""

    lines = [f"╔{BANNER_RULE}╗", "║  COMPLETE ✅", f"╠{BANNER_RULE}╣"]
    if files_processed is not None:
        lines.append(f"║  Files processed: {files_processed}")
        if files_skipped is not None:
            lines.append(f"║  Files skipped:   {files_skipped}")
    lines.extend(
        [
            f"║  Input type:      {input_type}",
            f"║  Total items:     {total_items}",
            f"║  New embeddings:  {new_embeddings}",
            f"║  Time elapsed:    {format_duration(elapsed_seconds)}",
            f"║  Output saved:    {output_path}",
            f"╚{BANNER_RULE}╝",
        ]
    )
    typer.echo("\n" + "\n".join(lines))


def _run_batch(cfg: EmbedderCfg, input_dir: Path, output_dir: Path, observer: ProgressObserver) -> None:
    session = provider_session(create_provider(cfg), build_context(cfg))
    orchestrator = BatchOrchestrator(
        session,
        model=cfg.model,
        text_field=cfg.effective_text_field,
        batch_size=cfg.batch_size,
        resume=cfg.resume,
        observer=observer,
    )
    result = orchestrator.run(input_dir, output_dir)
    _close_observer(observer)
    if result.files_found == 0:
        typer.echo(f"No JSON files found in {input_dir}")
        return
    if not result.provider_opened:
        typer.secho(f"All {result.files_found} files already processed!", fg=typer.colors.GREEN)
        return
    print_completion_banner(
        input_type=cfg.input_type.value,
        total_items=result.total_items,
        new_embeddings=result.newly_embedded,
        elapsed_seconds=result.elapsed_seconds,
        output_path=output_dir,
        files_processed=result.files_processed,
        files_skipped=result.files_skipped,
    )


def _run_single(cfg: EmbedderCfg, input_path: Path, output_path: Path, observer: ProgressObserver) -> None:
    started = time.perf_counter()
    input_set = load_input(
        cfg.input_type,
        input_path,
        chunk_size=cfg.chunk_size,
        chunk_overlap=cfg.chunk_overlap,
    )
    log_event(_LOGGER, "info", f"Found {len(input_set)} items", input=str(input_path))
    document_source = cfg.input_type.is_document
    info = EmbedderInfo(
        model=cfg.model,
        text_field=cfg.effective_text_field,
        input_type=cfg.input_type.value,
        chunk_size=cfg.chunk_size if document_source else None,
        chunk_overlap=cfg.chunk_overlap if document_source else None,
    )
    with provider_session(create_provider(cfg), build_context(cfg)) as provider:
        pipeline = EmbeddingPipeline(
            provider,
            info=info,
            batch_size=cfg.batch_size,
            resume=cfg.resume,
            observer=observer,
        )
        result = pipeline.run(input_set, output_path)
    _close_observer(observer)
    print_completion_banner(
        input_type=cfg.input_type.value,
        total_items=result.total_items,
        new_embeddings=result.newly_embedded,
        elapsed_seconds=time.perf_counter() - started,
        output_path=output_path,
    )
    if result.embedded_count < result.total_items:
        typer.echo(
            f"{result.total_items - result.embedded_count} of {result.total_items} items "
            "have no embeddings (missing text or failed); re-run to retry failures."
        )


@app.command()
def embed(
    input_path: Annotated[
        Optional[Path], typer.Option("-i", "--input", help="Input file or directory")
    ] = None,
    output_path: Annotated[
        Optional[Path],
        typer.Option("-o", "--output", help="Output file, or directory for json-dir"),
    ] = None,
    input_type: Annotated[
        Optional[InputType],
        typer.Option("--input-type", help="Input layout (json|json-dir|pdf|pdf-dir)"),
    ] = None,
    model: Annotated[
        Optional[str],
        typer.Option("-m", "--model", help="qwen3-0.6-embed, nomic-embed-text-v2, or a model id"),
    ] = None,
    text_field: Annotated[
        Optional[str], typer.Option("-t", "--text-field", help="Record field to embed")
    ] = None,
    batch_size: Annotated[
        Optional[int], typer.Option("-b", "--batch-size", help="Checkpoint every N embeddings")
    ] = None,
    chunk_size: Annotated[
        Optional[int], typer.Option("-c", "--chunk-size", help="PDF chunk size in characters")
    ] = None,
    chunk_overlap: Annotated[
        Optional[int], typer.Option("--chunk-overlap", help="PDF chunk overlap in characters")
    ] = None,
    resume: Annotated[
        Optional[bool], typer.Option("--resume/--no-resume", help="Reuse existing embeddings")
    ] = None,
    device: Annotated[
        Optional[str], typer.Option("--device", help="Device hint (auto|cpu|cuda|mps)")
    ] = None,
    normalize: Annotated[
        Optional[bool],
        typer.Option("--normalize/--no-normalize", help="L2-normalise embeddings"),
    ] = None,
    trust_remote_code: Annotated[
        Optional[bool],
        typer.Option(
            "--trust-remote-code/--no-trust-remote-code", help="Allow custom model code"
        ),
    ] = None,
    offline: Annotated[
        Optional[bool],
        typer.Option("--offline/--online", help="Only use locally cached model files"),
    ] = None,
    config: Annotated[
        Optional[Path], typer.Option("--config", help="JSON, YAML, or TOML settings file")
    ] = None,
    log_level: Annotated[
        Optional[str], typer.Option("--log-level", help="DEBUG|INFO|WARNING|ERROR")
    ] = None,
    log_format: Annotated[
        Optional[str], typer.Option("--log-format", help="console|json")
    ] = None,
    no_progress: Annotated[
        bool, typer.Option("--no-progress", help="Log progress instead of drawing a bar")
    ] = False,
) -> None:
    """Generate embeddings, checkpointing every --batch-size new vectors."""

    overrides: Dict[str, Any] = {
        "input_path": input_path,
        "output_path": output_path,
        "input_type": input_type,
        "model": model,
        "text_field": text_field,
        "batch_size": batch_size,
        "chunk_size": chunk_size,
        "chunk_overlap": chunk_overlap,
        "resume": resume,
        "device": device,
        "normalize_l2": normalize,
        "trust_remote_code": trust_remote_code,
        "offline": offline,
        "log_level": log_level,
        "log_format": log_format,
    }
    cfg = _load_settings(config, overrides)
    configure_logging(cfg.log_level.value, cfg.log_format.value)

    try:
        resolved_input, resolved_output = _validate_paths(cfg)
    except CLIValidationError as exc:
        typer.secho(format_cli_error(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2) from exc

    log_event(
        _LOGGER,
        "info",
        "Starting embedding run",
        input=str(resolved_input),
        output=str(resolved_output),
        input_type=cfg.input_type.value,
        model=cfg.resolved_model,
        text_field=cfg.effective_text_field,
        batch_size=cfg.batch_size,
        resume=cfg.resume,
    )
    observer = _make_observer(cfg, no_progress)
    try:
        if cfg.input_type.is_batch:
            _run_batch(cfg, resolved_input, resolved_output, observer)
        else:
            _run_single(cfg, resolved_input, resolved_output, observer)
    except (EmbedderError, ProviderError, OSError) as exc:
        _close_observer(observer)
        log_event(
            _LOGGER,
            "error",
            "Embedding run failed",
            error=str(exc),
            error_code=_error_code(exc),
        )
        typer.secho(f"✗ Error: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc


def _status_rows(path: Path) -> List[Dict[str, Any]]:
    targets = sorted(path.glob(f"*{OUTPUT_SUFFIX}")) if path.is_dir() else [path]
    rows: List[Dict[str, Any]] = []
    for target in targets:
        metadata = read_embedder_metadata(target)
        rows.append(
            {
                "file": str(target),
                "complete": is_complete(target),
                "metadata": metadata,
            }
        )
    return rows


@app.command()
def status(
    output: Annotated[Path, typer.Argument(help="Output file or directory of outputs")],
    as_json: Annotated[bool, typer.Option("--json", help="Print machine-readable JSON")] = False,
) -> None:
    """Show embedding progress recorded in output files."""

    if not output.exists():
        typer.secho(f"✗ Not found: {output}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    rows = _status_rows(output)
    if as_json:
        typer.echo(json.dumps(rows, indent=2))
        return
    if not rows:
        typer.echo(f"No *{OUTPUT_SUFFIX} files in {output}")
        return
    for row in rows:
        metadata = row["metadata"]
        if metadata is None:
            typer.echo(f"{row['file']}: no embedder metadata")
            continue
        state = "complete" if row["complete"] else "incomplete"
        typer.echo(
            f"{row['file']}: {metadata.get('embedded_count')}/{metadata.get('total_items')} "
            f"embedded ({state}) model={metadata.get('model')} "
            f"generated_at={metadata.get('generated_at')}"
        )


@config_app.command("show")
def config_show(
    config: Annotated[
        Optional[Path], typer.Option("--config", help="JSON, YAML, or TOML settings file")
    ] = None,
    fmt: Annotated[str, typer.Option("--format", help="Output format (json|yaml)")] = "json",
) -> None:
    """Display the effective configuration after layering file, env, and defaults."""

    cfg = _load_settings(config, {})
    payload = cfg.display_dict()
    if fmt == "json":
        typer.echo(json.dumps(payload, indent=2))
    elif fmt == "yaml":
        typer.echo(yaml.safe_dump(payload, default_flow_style=False, sort_keys=False))
    else:
        typer.secho(f"✗ Unsupported format: {fmt}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)


def main() -> None:
    """Console-script entry point."""

    app()
