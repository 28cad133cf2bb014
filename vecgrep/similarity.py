"""Cosine similarity with per-scan memoization.

The cache is keyed by the ordered ``(query_token, candidate_token)`` pair, so
each distinct pair costs at most one cosine computation for the lifetime of
the cache. One cache is created per scan and passed in explicitly.

Zero-norm vectors are not special-cased: the final division follows IEEE
float semantics and yields NaN (or +/-inf), which never compares greater
than a threshold.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Optional, Tuple

import numpy as np

from .embeddings.base import Embedding
from .errors import IncompatibleVectorTypes

logger = logging.getLogger(__name__)

EXACT_MATCH_SCORE = 1.0


def cosine(a: Embedding, b: Embedding) -> float:
    """Cosine similarity ``dot(a, b) / (|a| * |b|)``.

    Real embeddings accumulate in float64, quantized ones in int64; the
    conversion to float happens only for the final division.

    Raises:
        IncompatibleVectorTypes: If the representations (or dims) differ.
    """
    if a.kind is not b.kind:
        raise IncompatibleVectorTypes(f"cannot compare {a.kind.value} and {b.kind.value} embeddings")
    dot = a.dot(b)
    denom = np.sqrt(np.float64(a.norm_squared())) * np.sqrt(np.float64(b.norm_squared()))
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.float64(dot) / denom)


class SimilarityCache:
    """Grow-only map from (query, candidate) to a computed score."""

    def __init__(self) -> None:
        self._scores: Dict[Tuple[str, str], float] = {}

    def get(self, query: str, candidate: str) -> Optional[float]:
        return self._scores.get((query, candidate))

    def put(self, query: str, candidate: str, score: float) -> None:
        self._scores[(query, candidate)] = score

    def __contains__(self, pair: object) -> bool:
        return pair in self._scores

    def __len__(self) -> int:
        return len(self._scores)


class SimilarityEngine:
    """
    Scores candidate tokens against query tokens.

    Attributes:
        cache: Memo of computed scores, owned by one scan.
        computations: Number of cosine computations actually performed.
    """

    def __init__(self, cache: Optional[SimilarityCache] = None) -> None:
        self.cache = cache if cache is not None else SimilarityCache()
        self.computations = 0

    @staticmethod
    def is_exact(query_token: str, candidate_token: str) -> bool:
        """True when both tokens are equal after lower-casing."""
        return query_token.lower() == candidate_token.lower()

    def compute(self, query_vec: Embedding, candidate_vec: Embedding) -> float:
        """Uncached cosine computation."""
        self.computations += 1
        return cosine(query_vec, candidate_vec)

    def score(
        self,
        query_token: str,
        candidate_token: str,
        query_vec: Optional[Embedding],
        candidate_vec: Optional[Embedding],
    ) -> float:
        """Similarity of `candidate_token` to `query_token`.

        Lexically equal tokens (ignoring case) score 1.0 without touching the
        vectors, so an out-of-vocabulary query still matches itself.

        Args:
            query_token: Query text.
            candidate_token: Candidate text.
            query_vec: Query embedding (may be None only on the exact path).
            candidate_vec: Candidate embedding (may be None only on the exact path).

        Returns:
            Score in [-1, 1], or NaN for a zero-norm operand.

        Raises:
            IncompatibleVectorTypes: If the embeddings differ in representation.
            ValueError: If a vector is missing on the non-exact path.
        """
        result = self.score_lazy(query_token, candidate_token, query_vec, lambda: candidate_vec)
        if result is None:
            raise ValueError("both embeddings are required for a non-exact comparison")
        return result

    def score_lazy(
        self,
        query_token: str,
        candidate_token: str,
        query_vec: Optional[Embedding],
        resolve_candidate: Callable[[], Optional[Embedding]],
    ) -> Optional[float]:
        """Like `score`, but fetches the candidate embedding only on a cache miss.

        Args:
            query_token: Query text.
            candidate_token: Candidate text.
            query_vec: Query embedding, or None when out-of-vocabulary.
            resolve_candidate: Returns the candidate embedding, or None when
                out-of-vocabulary. Not called on the exact path or a cache hit.

        Returns:
            The score, or None when a non-exact pair lacks an embedding.

        Raises:
            IncompatibleVectorTypes: If the embeddings differ in representation.
        """
        if self.is_exact(query_token, candidate_token):
            return EXACT_MATCH_SCORE

        hit = self.cache.get(query_token, candidate_token)
        if hit is not None:
            return hit

        if query_vec is None:
            return None
        candidate_vec = resolve_candidate()
        if candidate_vec is None:
            return None

        result = self.compute(query_vec, candidate_vec)
        self.cache.put(query_token, candidate_token, result)
        return result

    def log_stats(self) -> None:
        logger.debug("similarity cache: %d entries, %d cosine computations", len(self.cache), self.computations)
