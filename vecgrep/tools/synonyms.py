"""Vocabulary-wide nearest words for a query (exact brute force)."""

from __future__ import annotations

from typing import List, Optional, Tuple

import numpy as np

from ..embeddings.base import VectorKind
from ..vectordb.base import VectorStore

_BLOCK_ROWS = 65536


def _similarities(store: VectorStore, query: str) -> np.ndarray:
    """Cosine similarity of `query` against every row of the store."""
    q = store.get_embedding(query)
    matrix = store.matrix()
    wide = np.int64 if store.kind is VectorKind.QUANTIZED else np.float64
    qv = q.values.astype(wide)
    q_norm = np.sqrt(np.float64(np.dot(qv, qv)))

    out = np.empty(matrix.shape[0], dtype=np.float64)
    with np.errstate(divide="ignore", invalid="ignore"):
        for start in range(0, matrix.shape[0], _BLOCK_ROWS):
            block = matrix[start : start + _BLOCK_ROWS].astype(wide)
            dots = (block @ qv).astype(np.float64)
            norms = np.sqrt(np.einsum("ij,ij->i", block, block).astype(np.float64))
            out[start : start + block.shape[0]] = dots / (norms * q_norm)
    return out


def find_similar_words(
    store: VectorStore,
    query: str,
    threshold: float,
    top: Optional[int] = None,
) -> List[Tuple[str, float]]:
    """
    List words whose similarity to `query` is ``>= threshold`` and ``< 1.0``.

    The query word itself is never returned.

    Args:
        store: Loaded vector store.
        query: Query word (must be in the vocabulary).
        threshold: Minimum similarity (inclusive).
        top: Optional cap on the number of results.

    Returns:
        (word, score) pairs sorted by descending score.

    Raises:
        TokenNotFound: If `query` is out-of-vocabulary.
    """
    scores = _similarities(store, query)
    words = store.words()
    with np.errstate(invalid="ignore"):
        mask = (scores >= threshold) & (scores < 1.0)
    idx = np.nonzero(mask)[0]
    idx = idx[np.argsort(-scores[idx], kind="stable")]

    results: List[Tuple[str, float]] = []
    for i in idx:
        if words[i] == query:
            continue
        results.append((words[i], float(scores[i])))
        if top is not None and len(results) >= top:
            break
    return results
