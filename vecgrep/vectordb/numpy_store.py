"""In-memory NumPy vector store.

Storage:
  - One (vocab, dim) matrix holding every vector (float32 or int8)
  - A dict mapping token -> row index

Duplicate tokens in the source are resolved last-one-wins at construction.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..embeddings.base import Embedding, QuantizedEmbedding, RealEmbedding, VectorKind
from ..errors import FormatError, TokenNotFound
from .base import StoreInfo, VectorStore

logger = logging.getLogger(__name__)


class NumpyVectorStore(VectorStore):
    """Vector store implementation backed by a single NumPy matrix."""

    def __init__(
        self,
        words: Sequence[str],
        matrix: np.ndarray,
        kind: VectorKind,
        value_range: Optional[Tuple[float, float]] = None,
        path: Optional[str] = None,
        format_name: str = "memory",
    ) -> None:
        if matrix.ndim != 2 or matrix.shape[0] != len(words):
            raise FormatError(f"matrix shape {matrix.shape} does not match {len(words)} words")
        if kind is VectorKind.QUANTIZED:
            if value_range is None:
                raise FormatError("quantized store requires a value range")
            matrix = matrix.astype(np.int8, copy=False)
        else:
            matrix = matrix.astype(np.float32, copy=False)

        index: Dict[str, int] = {}
        for row, word in enumerate(words):
            index[word] = row

        if len(index) < len(words):
            logger.debug("dropping %d duplicate token(s), last occurrence wins", len(words) - len(index))
            rows = sorted(index.values())
            matrix = matrix[rows]
            words = [words[r] for r in rows]
            index = {w: i for i, w in enumerate(words)}

        self.kind = kind
        self.path = path
        self.format_name = format_name
        self.value_range = (float(value_range[0]), float(value_range[1])) if value_range else None
        self._words: List[str] = list(words)
        self._matrix = matrix
        self._matrix.setflags(write=False)
        self._index = index

    @property
    def dim(self) -> int:
        return int(self._matrix.shape[1])

    def get_embedding(self, token: str) -> Embedding:
        row = self._index.get(token)
        if row is None:
            raise TokenNotFound(token)
        values = self._matrix[row]
        if self.kind is VectorKind.QUANTIZED:
            return QuantizedEmbedding(values, self.value_range)  # type: ignore[arg-type]
        return RealEmbedding(values)

    def words(self) -> List[str]:
        return list(self._words)

    def matrix(self) -> np.ndarray:
        return self._matrix

    def info(self) -> StoreInfo:
        return StoreInfo(
            path=self.path,
            format=self.format_name,
            kind=self.kind,
            vocab_size=len(self._words),
            dim=self.dim,
            value_range=self.value_range,
        )

    def __contains__(self, token: object) -> bool:
        return token in self._index

    def __len__(self) -> int:
        return len(self._words)

    @classmethod
    def from_mapping(cls, vectors: Dict[str, Sequence[float]]) -> "NumpyVectorStore":
        """Build a real-valued store from a plain ``{token: vector}`` dict."""
        words = list(vectors)
        if not words:
            raise FormatError("cannot build a store from an empty mapping")
        matrix = np.asarray([vectors[w] for w in words], dtype=np.float32)
        return cls(words, matrix, VectorKind.REAL)
