# vecgrep/embeddings/base.py
"""Embedding value types.

An embedding is a fixed-length vector tagged with its representation:

  - REAL:      D float32 components
  - QUANTIZED: D int8 components plus the store-wide affine range [min, max]

Both variants expose the same `dot` / `norm_squared` contract. Arithmetic is
done in a domain matched to the representation: float64 accumulation for
real vectors, int64 accumulation for quantized ones.
"""

from __future__ import annotations

from enum import Enum
from typing import Tuple, Union

import numpy as np

from ..errors import IncompatibleVectorTypes


class VectorKind(str, Enum):
    """Representation tag of an embedding."""

    REAL = "real"
    QUANTIZED = "quantized"


class Embedding:
    """
    Base class for embeddings.

    Subclasses set `kind` and implement `dot` / `norm_squared`.
    """

    kind: VectorKind

    def __init__(self, values: np.ndarray) -> None:
        self._values = values

    @property
    def values(self) -> np.ndarray:
        """Raw components (read-only view)."""
        return self._values

    @property
    def dim(self) -> int:
        return int(self._values.shape[0])

    def _check_peer(self, other: "Embedding") -> None:
        if other.kind is not self.kind:
            raise IncompatibleVectorTypes(
                f"cannot combine {self.kind.value} and {other.kind.value} embeddings"
            )
        if other.dim != self.dim:
            raise IncompatibleVectorTypes(f"dimension mismatch: {self.dim} != {other.dim}")

    def dot(self, other: "Embedding") -> Union[int, float]:
        raise NotImplementedError

    def norm_squared(self) -> Union[int, float]:
        raise NotImplementedError

    def __len__(self) -> int:
        return self.dim

    def __repr__(self) -> str:
        return f"{type(self).__name__}(dim={self.dim})"


class RealEmbedding(Embedding):
    """Embedding with float32 components."""

    kind = VectorKind.REAL

    def __init__(self, values: np.ndarray) -> None:
        super().__init__(np.asarray(values, dtype=np.float32))
        self._wide = self._values.astype(np.float64)

    def dot(self, other: Embedding) -> float:
        self._check_peer(other)
        return float(np.dot(self._wide, other._wide))  # type: ignore[attr-defined]

    def norm_squared(self) -> float:
        return float(np.dot(self._wide, self._wide))


class QuantizedEmbedding(Embedding):
    """
    Embedding with int8 components and a shared dequantization range.

    Attributes:
        value_range: (min, max) shared by every embedding of the same store.
    """

    kind = VectorKind.QUANTIZED

    def __init__(self, values: np.ndarray, value_range: Tuple[float, float]) -> None:
        super().__init__(np.asarray(values, dtype=np.int8))
        self.value_range = (float(value_range[0]), float(value_range[1]))
        self._wide = self._values.astype(np.int64)

    def dot(self, other: Embedding) -> int:
        self._check_peer(other)
        return int(np.dot(self._wide, other._wide))  # type: ignore[attr-defined]

    def norm_squared(self) -> int:
        return int(np.dot(self._wide, self._wide))

    def dequantize(self) -> np.ndarray:
        """Map raw components back to float32 using `value_range`."""
        return dequantize(self._values, self.value_range)


def dequantize(raw: np.ndarray, value_range: Tuple[float, float]) -> np.ndarray:
    """
    Dequantize int8 components: ``min + (raw + 128) / 255 * (max - min)``.

    Args:
        raw: int8 array of any shape.
        value_range: (min, max) of the source values.

    Returns:
        float32 array of the same shape.
    """
    lo, hi = value_range
    scaled = (raw.astype(np.float64) + 128.0) / 255.0
    return (lo + scaled * (hi - lo)).astype(np.float32)


def quantize(values: np.ndarray, value_range: Tuple[float, float]) -> np.ndarray:
    """
    Quantize float components into int8 for a given (min, max) range.

    A degenerate range (min == max) maps every component to -128.

    Args:
        values: float array of any shape.
        value_range: (min, max) used for the affine mapping.

    Returns:
        int8 array of the same shape.
    """
    lo, hi = value_range
    span = hi - lo
    if span <= 0:
        return np.full(values.shape, -128, dtype=np.int8)
    raw = np.rint((values.astype(np.float64) - lo) / span * 255.0) - 128.0
    return np.clip(raw, -128, 127).astype(np.int8)
