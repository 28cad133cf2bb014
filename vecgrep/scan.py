"""Run a semantic scan to completion.

This is the boundary used by the CLI: it loads (or receives) a vector store,
builds a fresh similarity cache for the scan, runs the matcher over the input
and reports a terminal status. It never exits the process.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Sequence, TextIO, Union

from .config import ScanOptions
from .errors import VecgrepError
from .matching.matcher import ScanSummary, StreamMatcher
from .output import LineWriter, make_highlighter
from .similarity import SimilarityCache, SimilarityEngine
from .vectordb import load_vector_store
from .vectordb.base import VectorStore

logger = logging.getLogger(__name__)


@dataclass
class ScanResult:
    """Outcome of `run_scan`: a summary on success, the error otherwise."""

    summary: Optional[ScanSummary] = None
    error: Optional[VecgrepError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def matched(self) -> bool:
        return self.summary is not None and self.summary.matched


def run_scan(
    model: Union[str, Path, VectorStore],
    queries: Sequence[str],
    options: ScanOptions,
    lines: Iterable[str],
    out: Optional[TextIO] = None,
) -> ScanResult:
    """
    Scan `lines` for tokens semantically close to `queries`.

    Args:
        model: Model file path, or an already loaded store.
        queries: Query terms (at least one).
        options: Scan options.
        lines: Input line stream.
        out: Output sink (defaults to stdout).

    Returns:
        ScanResult carrying either the scan summary or the typed error that
        stopped the scan. Output written before an error is kept.
    """
    try:
        options.validate()
        store = model if isinstance(model, VectorStore) else load_vector_store(model)
        engine = SimilarityEngine(SimilarityCache())
        writer = LineWriter(out, make_highlighter(options.color))
        matcher = StreamMatcher(store, engine, queries, options, writer)
        summary = matcher.run(lines)
    except VecgrepError as e:
        logger.debug("scan failed: %s", e, exc_info=True)
        return ScanResult(error=e)

    logger.debug("scanned %d line(s), %d matched", summary.lines_read, summary.matched_lines)
    return ScanResult(summary=summary)
