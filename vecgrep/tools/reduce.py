"""PCA dimension reduction for float32 models."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

import numpy as np

from ..embeddings.base import VectorKind
from ..errors import ConfigError, FormatError
from ..vectordb.base import VectorStore
from ..vectordb.formats import write_word2vec_bin

logger = logging.getLogger(__name__)


def principal_directions(matrix: np.ndarray, dim: int) -> np.ndarray:
    """
    Top-`dim` principal directions of `matrix` rows.

    Directions come from the eigendecomposition of the covariance of the
    mean-centred data, ordered by decreasing variance.

    Args:
        matrix: (n, D) data.
        dim: Number of directions to keep.

    Returns:
        (D, dim) float64 matrix whose columns are unit directions.
    """
    data = matrix.astype(np.float64)
    centred = data - data.mean(axis=0)
    cov = centred.T @ centred / max(1, data.shape[0] - 1)
    eigvals, eigvecs = np.linalg.eigh(cov)
    order = np.argsort(eigvals)[::-1][:dim]
    return eigvecs[:, order]


def reduce_store(store: VectorStore, dim: int) -> np.ndarray:
    """
    Project every vector of a float32 store onto its first `dim` principal directions.

    The input vectors are projected as-is (uncentred).

    Raises:
        FormatError: If the store is quantized.
        ConfigError: If `dim` is outside [1, store.dim].
    """
    if store.kind is not VectorKind.REAL:
        raise FormatError("PCA reduction needs a float32 model")
    if not 1 <= dim <= store.dim:
        raise ConfigError(f"target dimension must be between 1 and {store.dim}, got {dim}")

    matrix = store.matrix()
    directions = principal_directions(matrix, dim)
    logger.debug("reducing %d vectors from %d to %d dims", matrix.shape[0], store.dim, dim)
    return (matrix.astype(np.float64) @ directions).astype(np.float32)


def reduce_model(store: VectorStore, output: Union[str, Path], dim: int) -> int:
    """Reduce `store` to `dim` dimensions and write it as a float32 model."""
    reduced = reduce_store(store, dim)
    return write_word2vec_bin(output, store.words(), reduced)
