"""Vector store loading.

The on-disk format is chosen from the filename suffix:
  - ``*.8int.bin`` -> quantized int8 model
  - ``*.bin``      -> float32 word2vec binary model
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Union

from ..errors import UnsupportedFormatError
from .base import StoreInfo, VectorStore
from .formats import QUANTIZED_FORMAT, WORD2VEC_FORMAT, read_quantized_bin, read_word2vec_bin
from .numpy_store import NumpyVectorStore

logger = logging.getLogger(__name__)

QUANTIZED_SUFFIX = ".8int.bin"
WORD2VEC_SUFFIX = ".bin"


def detect_format(path: Union[str, Path]) -> str:
    """Return the format name implied by a model filename.

    Raises:
        UnsupportedFormatError: If the suffix is not recognized.
    """
    name = Path(path).name
    if name.endswith(QUANTIZED_SUFFIX):
        return QUANTIZED_FORMAT
    if name.endswith(WORD2VEC_SUFFIX):
        return WORD2VEC_FORMAT
    raise UnsupportedFormatError(
        f"unsupported model file format: {name} (expected *{WORD2VEC_SUFFIX} or *{QUANTIZED_SUFFIX})"
    )


def load_vector_store(path: Union[str, Path]) -> NumpyVectorStore:
    """Load a model file into memory.

    Args:
        path: Model file path.

    Returns:
        Loaded store.

    Raises:
        UnsupportedFormatError: Unknown suffix.
        ModelIOError: File cannot be read.
        FormatError: File is malformed.
    """
    fmt = detect_format(path)
    started = time.perf_counter()
    if fmt == QUANTIZED_FORMAT:
        store = read_quantized_bin(path)
    else:
        store = read_word2vec_bin(path)
    logger.info(
        "Loaded %s model %s: %d words x %d dims in %.2fs",
        fmt,
        path,
        len(store),
        store.dim,
        time.perf_counter() - started,
    )
    return store


__all__ = [
    "NumpyVectorStore",
    "StoreInfo",
    "VectorStore",
    "detect_format",
    "load_vector_store",
]
