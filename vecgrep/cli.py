"""vecgrep CLI.

Commands:
  - search: grep-like scan of a file/stdin for words semantically close to a query
  - synonyms: list vocabulary words similar to a query
  - info: show model format, vocabulary size and dimensions
  - convert: FastText/word2vec text model -> float32 binary model
  - quantize: float32 binary model -> int8 quantized model
  - reduce: PCA dimension reduction of a float32 model
  - download: fetch a pre-trained model

Models:
  - ``*.bin``      float32 word2vec binary
  - ``*.8int.bin`` int8 quantized
"""

from __future__ import annotations

from typing import Optional

import typer

from . import __version__
from .cli_actions import (
    do_convert,
    do_download,
    do_info,
    do_quantize,
    do_reduce,
    do_search,
    do_synonyms,
)
from .logging_setup import configure_logging
from .tools.download import DEFAULT_MODEL_PATH, DEFAULT_MODEL_URL

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="vecgrep: semantic grep using static word embeddings.",
)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        typer.echo(f"vecgrep version {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging on stderr."),
    version: Optional[bool] = typer.Option(
        None, "--version", callback=version_callback, is_eager=True, help="Show version and exit."
    ),
):
    """Semantic grep using static word embeddings."""
    configure_logging(verbose)


@app.command()
def search(
    query: Optional[str] = typer.Argument(None, help="Query word (optional with -f)."),
    file: Optional[str] = typer.Argument(None, help="Input file; stdin when omitted or '-'."),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Path to the model file (.bin / .8int.bin)."),
    threshold: Optional[float] = typer.Option(None, "--threshold", "-t", help="Similarity threshold (default 0.7)."),
    after_context: int = typer.Option(0, "--after-context", "-A", min=0, help="Lines of context after a match."),
    before_context: int = typer.Option(0, "--before-context", "-B", min=0, help="Lines of context before a match."),
    context: Optional[int] = typer.Option(None, "--context", "-C", min=0, help="Lines of context before and after."),
    line_number: bool = typer.Option(False, "--line-number", "-n", help="Print line numbers."),
    ignore_case: bool = typer.Option(
        False,
        "--ignore-case",
        "-i",
        help="Ignore case. Embeddings are case-sensitive, so results may differ.",
    ),
    only_matching: bool = typer.Option(False, "--only-matching", "-o", help="Print only the matching words."),
    only_lines: bool = typer.Option(False, "--only-lines", "-l", help="Print matching lines without scores."),
    pattern_file: Optional[str] = typer.Option(None, "--file", "-f", help="File with patterns, one per line."),
    color: Optional[bool] = typer.Option(None, "--color/--no-color", help="Highlight matches (default: if a TTY)."),
):
    """Print lines containing words semantically similar to QUERY."""
    if only_matching and only_lines:
        raise typer.BadParameter("--only-matching and --only-lines are mutually exclusive")
    code = do_search(
        query=query,
        file=file,
        model=model,
        threshold=threshold,
        before_context=before_context,
        after_context=after_context,
        context=context,
        line_numbers=line_number,
        ignore_case=ignore_case,
        only_matching=only_matching,
        only_lines=only_lines,
        pattern_file=pattern_file,
        color=color,
    )
    raise typer.Exit(code=code)


@app.command()
def synonyms(
    query: Optional[str] = typer.Argument(None, help="Word to find similar words for."),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Path to the model file."),
    threshold: float = typer.Option(..., "--threshold", "-t", help="Minimum similarity (inclusive)."),
    pattern_file: Optional[str] = typer.Option(None, "--file", "-f", help="File with words, one per line."),
    only_matching: bool = typer.Option(False, "--only-matching", "-o", help="Print bare words only."),
    top: Optional[int] = typer.Option(None, "--top", min=1, help="Maximum results per word."),
):
    """List vocabulary words similar to QUERY."""
    raise typer.Exit(
        code=do_synonyms(
            query=query,
            model=model,
            threshold=threshold,
            pattern_file=pattern_file,
            only_matching=only_matching,
            top=top,
        )
    )


@app.command()
def info(
    model: str = typer.Argument(..., help="Path to the model file."),
):
    """Show model format, vocabulary size and dimensions."""
    raise typer.Exit(code=do_info(model))


@app.command()
def convert(
    input_path: str = typer.Argument(..., metavar="INPUT", help="FastText text model (.vec), or '-' for stdin."),
    output: str = typer.Argument(..., help="Output float32 model (.bin)."),
):
    """Convert a FastText/word2vec text model to binary."""
    raise typer.Exit(code=do_convert(input_path, output))


@app.command()
def quantize(
    input_path: str = typer.Argument(..., metavar="INPUT", help="Float32 model (.bin)."),
    output: str = typer.Argument(..., help="Output quantized model (.8int.bin)."),
):
    """Quantize a float32 model to 8-bit integers."""
    raise typer.Exit(code=do_quantize(input_path, output))


@app.command()
def reduce(
    input_path: str = typer.Argument(..., metavar="INPUT", help="Float32 model (.bin)."),
    output: str = typer.Argument(..., help="Output float32 model (.bin)."),
    dim: int = typer.Option(100, "--dim", "-d", min=1, help="Target dimension."),
):
    """Reduce model dimensionality with PCA."""
    raise typer.Exit(code=do_reduce(input_path, output, dim))


@app.command()
def download(
    url: str = typer.Option(DEFAULT_MODEL_URL, "--url", help="Model URL (gzip is decompressed)."),
    out: str = typer.Option(str(DEFAULT_MODEL_PATH), "--out", "-o", help="Destination file."),
):
    """Download a pre-trained word2vec model."""
    raise typer.Exit(code=do_download(url, out))


def main() -> None:
    """CLI entrypoint."""
    app()


if __name__ == "__main__":
    main()
