"""Vector store interfaces.

A vector store is responsible for:
  - Holding a token -> embedding table loaded once from a model file
  - Looking up the embedding of a single token
  - Exposing the whole table for vocabulary-wide utilities (synonyms, PCA)

Stores are immutable after load, so concurrent readers need no locking.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

import numpy as np

from ..embeddings.base import Embedding, VectorKind


@dataclass(frozen=True)
class StoreInfo:
    """Summary of a loaded store."""

    path: Optional[str]
    format: str
    kind: VectorKind
    vocab_size: int
    dim: int
    value_range: Optional[Tuple[float, float]] = None


class VectorStore:
    """Vector store interface."""

    kind: VectorKind

    @property
    def dim(self) -> int:
        """Dimensionality shared by every embedding in the store."""
        raise NotImplementedError

    def get_embedding(self, token: str) -> Embedding:
        """Return the embedding for `token`.

        Args:
            token: Case-sensitive token text.

        Returns:
            The token's embedding.

        Raises:
            TokenNotFound: If the token is out-of-vocabulary.
        """
        raise NotImplementedError

    def words(self) -> List[str]:
        """Return the vocabulary in row order of `matrix()`."""
        raise NotImplementedError

    def matrix(self) -> np.ndarray:
        """Return the (vocab, dim) component matrix aligned to `words()`."""
        raise NotImplementedError

    def info(self) -> StoreInfo:
        """Return basic stats about the store."""
        raise NotImplementedError

    def __contains__(self, token: object) -> bool:
        raise NotImplementedError

    def __len__(self) -> int:
        raise NotImplementedError

    def __iter__(self) -> Iterator[str]:
        return iter(self.words())
