# vecgrep/tools/convert.py
"""
Model conversion utilities.

  - FastText / word2vec *text* models (``.vec``) -> float32 binary (``.bin``)
  - float32 models -> int8 quantized models (``.8int.bin``)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Tuple, Union

import numpy as np

from ..embeddings.base import VectorKind, quantize
from ..errors import FormatError
from ..vectordb import QUANTIZED_SUFFIX
from ..vectordb.base import VectorStore
from ..vectordb.formats import write_quantized_bin, write_word2vec_bin

logger = logging.getLogger(__name__)


def _parse_header(line: str) -> Tuple[int, int]:
    parts = line.split()
    if len(parts) != 2:
        raise FormatError(f"invalid header format: {line.strip()[:64]!r}")
    try:
        vocab, dim = int(parts[0]), int(parts[1])
    except ValueError as e:
        raise FormatError(f"invalid header format: {line.strip()[:64]!r}") from e
    if vocab <= 0 or dim <= 0:
        raise FormatError(f"invalid header: vocab_size={vocab}, dim={dim}")
    return vocab, dim


def read_text_vectors(lines: Iterable[str]) -> Tuple[List[str], np.ndarray]:
    """
    Parse a text model: a ``"<vocab> <dim>"`` header, then ``word v1 .. vdim`` lines.

    Blank lines are skipped.

    Args:
        lines: Text lines (e.g. an open file or stdin).

    Returns:
        (words, float32 matrix).

    Raises:
        FormatError: On a bad header, wrong field count or unparsable number.
    """
    it = iter(lines)
    header = next(it, None)
    if header is None:
        raise FormatError("error reading header: empty input")
    vocab, dim = _parse_header(header)

    words: List[str] = []
    rows: List[np.ndarray] = []
    for lineno, line in enumerate(it, start=2):
        parts = line.split()
        if not parts:
            continue
        if len(parts) != dim + 1:
            raise FormatError(f"line {lineno}: expected {dim + 1} fields, got {len(parts)}")
        try:
            rows.append(np.asarray(parts[1:], dtype=np.float32))
        except ValueError as e:
            raise FormatError(f"line {lineno}: error parsing float: {e}") from e
        words.append(parts[0])

    if not words:
        raise FormatError("no vectors found after header")
    if len(words) != vocab:
        logger.warning("header announced %d words, found %d; writing %d", vocab, len(words), len(words))
    return words, np.vstack(rows)


def convert_text_model(lines: Iterable[str], output: Union[str, Path]) -> int:
    """Convert a text model to the float32 binary format.

    Returns:
        Number of records written.
    """
    words, matrix = read_text_vectors(lines)
    return write_word2vec_bin(output, words, matrix)


def quantize_store(store: VectorStore, output: Union[str, Path]) -> Tuple[int, Tuple[float, float]]:
    """
    Write a float32 store as an int8 quantized model.

    The dequantization range is the global (min, max) of all components.

    Args:
        store: Real-valued store.
        output: Output path, normally ending in ``.8int.bin``.

    Returns:
        (records written, (min, max)).

    Raises:
        FormatError: If the store is already quantized.
    """
    if store.kind is not VectorKind.REAL:
        raise FormatError("model is already quantized")
    if not str(output).endswith(QUANTIZED_SUFFIX):
        logger.warning("output %s does not end in %s and will not be recognized on load", output, QUANTIZED_SUFFIX)

    matrix = store.matrix()
    value_range = (float(matrix.min()), float(matrix.max()))
    raw = quantize(matrix, value_range)
    written = write_quantized_bin(output, store.words(), raw, value_range)
    return written, value_range
