# vecgrep/matching/matcher.py
"""
Streaming semantic line matcher.

For every input line the matcher:
  1) splits the line into word tokens
  2) tests tokens in order against every query, in query order
  3) stops at the first (token, query) pair that qualifies
  4) prints the result according to the output mode

A pair qualifies when the tokens are lexically equal (ignoring case) or when
the cosine similarity of their embeddings is strictly greater than the
threshold. First qualifying pair wins; later tokens are not scored.

Output modes:
  - only-matching: the matched token alone
  - only-lines:    the highlighted line (optionally numbered)
  - full:          score line, leading context, highlighted line, trailing
                   context, then the ``--`` group separator
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from ..config import ScanOptions
from ..embeddings.base import Embedding
from ..errors import IncompatibleVectorTypes, TokenNotFound
from ..output import MATCH_TAG, Highlighter, LineWriter, PlainHighlighter
from ..similarity import EXACT_MATCH_SCORE, SimilarityEngine
from ..vectordb.base import VectorStore
from .context import ContextRing
from .lines import LineReader
from .tokenize import iter_tokens

logger = logging.getLogger(__name__)

GROUP_SEPARATOR = "--"


@dataclass
class QueryTerm:
    """A prepared query.

    Attributes:
        text: Query as given by the user.
        key: Lookup form (lower-cased when ignoring case).
        embedding: Query embedding, or None when out-of-vocabulary.
    """

    text: str
    key: str
    embedding: Optional[Embedding]

    @property
    def in_vocabulary(self) -> bool:
        return self.embedding is not None


@dataclass(frozen=True)
class LineMatch:
    """First qualifying (token, query) pair of a line."""

    line_number: int
    token: str
    query: str
    score: float


@dataclass
class ScanSummary:
    """Counters for a finished scan."""

    lines_read: int = 0
    matched_lines: int = 0

    @property
    def matched(self) -> bool:
        return self.matched_lines > 0


def format_score(score: float) -> str:
    return f"Similarity: {score:.4f}"


class _LazyLookup:
    """Looks up one token's embedding on first call; None when out-of-vocabulary."""

    def __init__(self, store: VectorStore, token: str) -> None:
        self._store = store
        self._token = token
        self._done = False
        self._embedding: Optional[Embedding] = None

    def __call__(self) -> Optional[Embedding]:
        if not self._done:
            self._done = True
            try:
                self._embedding = self._store.get_embedding(self._token)
            except TokenNotFound:
                self._embedding = None
        return self._embedding


class StreamMatcher:
    """
    Matches query terms against a line stream.

    Attributes:
        store: Embedding lookup.
        engine: Scorer with a per-scan cache.
        queries: Prepared query terms, in the order given.
        options: Threshold, context sizes and output flags.
        writer: Output sink.
        highlighter: Marks matched tokens in printed lines.
    """

    def __init__(
        self,
        store: VectorStore,
        engine: SimilarityEngine,
        queries: Sequence[str],
        options: ScanOptions,
        writer: LineWriter,
        highlighter: Optional[Highlighter] = None,
    ) -> None:
        if not queries:
            raise ValueError("at least one query is required")
        self.store = store
        self.engine = engine
        self.options = options.validate()
        self.writer = writer
        self.highlighter = highlighter or writer.highlighter or PlainHighlighter()
        self.queries = self._prepare(queries)
        self.context = ContextRing(options.context_before if self._full_mode else 0)

    @property
    def _full_mode(self) -> bool:
        return not (self.options.only_matching or self.options.only_lines)

    def _normalize(self, text: str) -> str:
        return text.lower() if self.options.ignore_case else text

    def _prepare(self, queries: Sequence[str]) -> List[QueryTerm]:
        terms: List[QueryTerm] = []
        for q in queries:
            key = self._normalize(q)
            try:
                emb: Optional[Embedding] = self.store.get_embedding(key)
            except TokenNotFound:
                logger.info("Query %r is not in the model vocabulary; only exact matches will be reported", q)
                emb = None
            terms.append(QueryTerm(text=q, key=key, embedding=emb))
        return terms

    def find_match(self, line: str, line_number: int = 0) -> Optional[LineMatch]:
        """Return the first qualifying (token, query) pair of `line`, if any."""
        threshold = self.options.threshold
        for token in iter_tokens(line):
            token_key = self._normalize(token)
            resolve = _LazyLookup(self.store, token_key)

            for q in self.queries:
                if self.engine.is_exact(q.key, token_key):
                    return LineMatch(line_number, token, q.text, EXACT_MATCH_SCORE)
                try:
                    score = self.engine.score_lazy(q.key, token_key, q.embedding, resolve)
                except IncompatibleVectorTypes as e:
                    logger.debug("Skipping %r vs %r: %s", q.key, token_key, e)
                    continue

                if score is not None and score > threshold:
                    return LineMatch(line_number, token, q.text, score)
        return None

    def highlight(self, line: str, token: str) -> str:
        """Mark every literal occurrence of `token` in `line`."""
        return line.replace(token, self.highlighter.decorate(token, MATCH_TAG))

    def _emit(self, match: LineMatch, line: str, reader: LineReader) -> None:
        opts = self.options
        if opts.only_matching:
            self.writer.write_line(match.token)
            return
        if opts.only_lines:
            self.writer.write_line(self.highlight(line, match.token), match.line_number, opts.line_numbers)
            return

        self.writer.write_line(format_score(match.score))
        for ctx in self.context.drain():
            self.writer.write_line(ctx.text, ctx.line_number, opts.line_numbers)
        self.writer.write_line(self.highlight(line, match.token), match.line_number, opts.line_numbers)
        for number, text in reader.take(opts.context_after):
            self.writer.write_line(text, number, opts.line_numbers)
        self.writer.write_line(GROUP_SEPARATOR)

    def run(self, lines: Iterable[str]) -> ScanSummary:
        """
        Scan `lines` to the end, writing results as they are found.

        Args:
            lines: Line iterable (e.g. an open text file); trailing newlines
                are stripped.

        Returns:
            Scan counters.

        Raises:
            StreamReadError: If reading the stream fails; output already
                written is kept.
        """
        summary = ScanSummary()
        reader = LineReader(lines)
        try:
            for number, line in reader:
                match = self.find_match(line, number)
                if match is None:
                    if self._full_mode:
                        self.context.push(line, number)
                    continue
                summary.matched_lines += 1
                self._emit(match, line, reader)
        finally:
            summary.lines_read = reader.line_number
            self.engine.log_stats()
        return summary
