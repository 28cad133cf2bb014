# vecgrep/cli_actions.py
"""
Reusable CLI actions.

The CLI (`vecgrep.cli`) is a thin Typer layer over these functions. Each
action returns a process exit code instead of exiting, which keeps the
behaviors testable:

  - 0: success (for `search`: at least one line matched)
  - 1: `search` finished without a match
  - 2: error
"""

from __future__ import annotations

import io
import logging
import sys
from pathlib import Path
from typing import List, Optional, TextIO

import typer
from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
    TransferSpeedColumn,
)
from rich.table import Table

from .config import (
    DEFAULT_THRESHOLD,
    AppConfig,
    ScanOptions,
    find_config_file,
    load_config,
    resolve_model_path,
)
from .errors import TokenNotFound, VecgrepError
from .logging_setup import err_console
from .scan import run_scan
from .tools.convert import convert_text_model, quantize_store
from .tools.download import download_model
from .tools.reduce import reduce_model
from .tools.synonyms import find_similar_words
from .vectordb import load_vector_store

logger = logging.getLogger(__name__)

console = Console()

EXIT_MATCH = 0
EXIT_NO_MATCH = 1
EXIT_ERROR = 2


def _report_error(exc: BaseException) -> int:
    """Print an error on stderr and return the error exit code."""
    err_console.print(f"[red]Error:[/red] {escape(str(exc))}")
    return EXIT_ERROR


def read_patterns(pattern_file: str) -> List[str]:
    """
    Read query patterns, one per line; blank lines are skipped.

    Raises:
        typer.BadParameter: If the file cannot be read.
    """
    try:
        text = Path(pattern_file).expanduser().read_text(encoding="utf-8")
    except OSError as e:
        raise typer.BadParameter(f"cannot read pattern file {pattern_file}: {e}") from e
    return [ln.strip() for ln in text.splitlines() if ln.strip()]


def _load_app_config() -> Optional[AppConfig]:
    path = find_config_file()
    if path is None:
        return None
    cfg = load_config(path)
    logger.info("Using configuration file: %s", path)
    return cfg


def _reads_stdin(file: Optional[str]) -> bool:
    return file is None or file == "-"


def _open_input(file: Optional[str]) -> TextIO:
    """Open the scan input as UTF-8 text, replacing undecodable bytes."""
    if _reads_stdin(file):
        buffer = getattr(sys.stdin, "buffer", None)
        if buffer is None:
            return sys.stdin
        return io.TextIOWrapper(buffer, encoding="utf-8", errors="replace")
    return open(Path(file).expanduser(), "r", encoding="utf-8", errors="replace")


def _release_input(stream: TextIO, file: Optional[str]) -> None:
    if not _reads_stdin(file):
        stream.close()
    elif isinstance(stream, io.TextIOWrapper) and stream is not sys.stdin:
        # Leave the process stdin open.
        stream.detach()


def do_search(
    query: Optional[str],
    file: Optional[str],
    model: Optional[str],
    threshold: Optional[float],
    before_context: int = 0,
    after_context: int = 0,
    context: Optional[int] = None,
    line_numbers: bool = False,
    ignore_case: bool = False,
    only_matching: bool = False,
    only_lines: bool = False,
    pattern_file: Optional[str] = None,
    color: Optional[bool] = None,
) -> int:
    """
    Scan a file (or stdin) for lines semantically matching the queries.

    Args:
        query: Query word. With a pattern file and no FILE, it names the input file.
        file: Input file path; None or "-" reads stdin.
        model: Model path override.
        threshold: Similarity threshold override.
        before_context: Lines of leading context.
        after_context: Lines of trailing context.
        context: Sets both context sizes when given.
        line_numbers: Prefix lines with their number.
        ignore_case: Lower-case queries and tokens.
        only_matching: Print only matched tokens.
        only_lines: Print only matched lines.
        pattern_file: File with one query per line.
        color: Force colors on/off; None means "if stdout is a terminal".

    Returns:
        Exit code.

    Raises:
        typer.BadParameter: On missing query/model or an unreadable pattern file.
    """
    queries: List[str] = []
    if pattern_file:
        queries.extend(read_patterns(pattern_file))
        if query is not None and file is None:
            query, file = None, query
    if query:
        queries.append(query)
    if not queries:
        raise typer.BadParameter("a query or a pattern file (-f) is required")

    try:
        cfg = _load_app_config()
    except VecgrepError as e:
        return _report_error(e)

    model_path = resolve_model_path(model, cfg)
    if not model_path:
        raise typer.BadParameter(
            "model path is required. Provide it via config file, VECGREP_MODEL or -m/--model."
        )

    if threshold is None:
        threshold = cfg.threshold if cfg is not None and cfg.threshold is not None else DEFAULT_THRESHOLD
    if context is not None:
        before_context = after_context = context

    options = ScanOptions(
        threshold=threshold,
        context_before=before_context,
        context_after=after_context,
        ignore_case=ignore_case,
        line_numbers=line_numbers,
        only_matching=only_matching,
        only_lines=only_lines,
        color=sys.stdout.isatty() if color is None else color,
    )

    try:
        stream = _open_input(file)
    except OSError as e:
        return _report_error(e)

    try:
        result = run_scan(model_path, queries, options, stream, out=sys.stdout)
    finally:
        _release_input(stream, file)

    if not result.ok:
        return _report_error(result.error)  # type: ignore[arg-type]
    return EXIT_MATCH if result.matched else EXIT_NO_MATCH


def do_info(model: str) -> int:
    """
    Show format, vocabulary size and dimensions of a model.

    Args:
        model: Model file path.
    """
    try:
        store = load_vector_store(model)
    except VecgrepError as e:
        return _report_error(e)

    info = store.info()
    table = Table(show_header=True, header_style="bold")
    table.add_column("Property")
    table.add_column("Value")
    table.add_row("Path", str(info.path))
    table.add_row("Format", info.format)
    table.add_row("Representation", info.kind.value)
    table.add_row("Vocabulary", str(info.vocab_size))
    table.add_row("Dimensions", str(info.dim))
    if info.value_range is not None:
        table.add_row("Range", f"[{info.value_range[0]:.6g}, {info.value_range[1]:.6g}]")
    console.print(table)
    return EXIT_MATCH


def do_synonyms(
    query: Optional[str],
    model: Optional[str],
    threshold: float,
    pattern_file: Optional[str] = None,
    only_matching: bool = False,
    top: Optional[int] = None,
) -> int:
    """
    Print vocabulary words similar to each query.

    With a pattern file, out-of-vocabulary patterns produce a warning and are
    skipped; a single out-of-vocabulary query is an error.

    Args:
        query: Query word (optional with a pattern file).
        model: Model path override.
        threshold: Minimum similarity (inclusive).
        pattern_file: File with one query per line.
        only_matching: Print bare words (query first, then its neighbors).
        top: Optional cap on results per query.
    """
    queries = read_patterns(pattern_file) if pattern_file else []
    if query:
        queries.append(query)
    if not queries:
        raise typer.BadParameter("a query or a pattern file (-f) is required")

    try:
        model_path = resolve_model_path(model, _load_app_config())
        if not model_path:
            raise typer.BadParameter("model path is required (-m/--model).")
        store = load_vector_store(model_path)
    except VecgrepError as e:
        return _report_error(e)

    for q in queries:
        try:
            hits = find_similar_words(store, q, threshold, top=top)
        except TokenNotFound as e:
            if len(queries) == 1:
                return _report_error(e)
            err_console.print(f"[yellow]Warning:[/yellow] {escape(str(e))}")
            continue

        if only_matching:
            typer.echo(q)
            for word, _ in hits:
                typer.echo(word)
        else:
            typer.echo(f"Words similar to '{q}' with similarity >= {threshold:.2f}:")
            for word, score in hits:
                typer.echo(f"{word} {score:.4f}")
    return EXIT_MATCH


def do_convert(input_path: str, output: str) -> int:
    """
    Convert a text (FastText ``.vec``) model to the float32 binary format.

    Args:
        input_path: Text model path, or "-" for stdin.
        output: Output ``.bin`` path.
    """
    try:
        if input_path == "-":
            written = convert_text_model(sys.stdin, output)
        else:
            with open(Path(input_path).expanduser(), "r", encoding="utf-8") as fh:
                written = convert_text_model(fh, output)
    except (VecgrepError, OSError, UnicodeDecodeError) as e:
        return _report_error(e)

    console.print(f"[bold green]Conversion complete.[/bold green] {written} vectors saved as {escape(output)}")
    return EXIT_MATCH


def do_quantize(input_path: str, output: str) -> int:
    """
    Quantize a float32 model to int8.

    Args:
        input_path: Float32 model path.
        output: Output ``.8int.bin`` path.
    """
    try:
        store = load_vector_store(input_path)
        written, (lo, hi) = quantize_store(store, output)
    except VecgrepError as e:
        return _report_error(e)

    console.print(f"[bold green]Quantized model written:[/bold green] {escape(output)}")
    console.print(f"Vectors: {written}  Range: [{lo:.6g}, {hi:.6g}]")
    return EXIT_MATCH


def do_reduce(input_path: str, output: str, dim: int) -> int:
    """
    Reduce a float32 model's dimensionality with PCA.

    Args:
        input_path: Float32 model path.
        output: Output ``.bin`` path.
        dim: Target dimension.
    """
    try:
        store = load_vector_store(input_path)
        written = reduce_model(store, output, dim)
    except VecgrepError as e:
        return _report_error(e)

    console.print(f"[bold green]Reduced model saved:[/bold green] {escape(output)} ({written} x {dim})")
    return EXIT_MATCH


def do_download(url: str, out: str) -> int:
    """
    Download (and gunzip) a model with a progress bar.

    Args:
        url: Model URL.
        out: Destination path of the decompressed model.
    """
    progress = Progress(
        SpinnerColumn(),
        TextColumn("{task.description}"),
        BarColumn(),
        DownloadColumn(),
        TransferSpeedColumn(),
        TimeElapsedColumn(),
        console=err_console,
    )
    with progress:
        task = progress.add_task("Downloading", total=None)
        try:
            path = download_model(
                url,
                out,
                on_start=lambda total: progress.update(task, total=total),
                on_chunk=lambda n: progress.advance(task, n),
            )
        except VecgrepError as e:
            progress.stop()
            return _report_error(e)

    console.print(f"[bold green]Model downloaded and saved to:[/bold green] {escape(str(path))}")
    return EXIT_MATCH
