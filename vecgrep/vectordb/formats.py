# vecgrep/vectordb/formats.py
"""Binary model file formats.

Format A (word2vec binary, suffix ``.bin``):
  - ASCII header ``"<vocab> <dim>\\n"``
  - ``vocab`` records: word bytes terminated by a single space, then ``dim``
    little-endian float32 values, then an optional ``\\n``
  - the file must end exactly after the last record

Format B (quantized, suffix ``.8int.bin``):
  - header: little-endian ``int32 vocab, int32 dim, float32 min, float32 max``
  - ``vocab`` records: NUL-terminated word bytes, then ``dim`` int8 values
  - the file must end exactly after the last record

Files are read into memory in one pass; vectors are copied into a single
(vocab, dim) matrix.
"""

from __future__ import annotations

import struct
from pathlib import Path
from typing import List, Sequence, Tuple, Union

import numpy as np

from ..embeddings.base import VectorKind
from ..errors import FormatError, ModelIOError
from .numpy_store import NumpyVectorStore

PathLike = Union[str, Path]

WORD2VEC_FORMAT = "word2vec"
QUANTIZED_FORMAT = "quantized"

_QUANTIZED_HEADER = struct.Struct("<iiff")


def _read_bytes(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as e:
        raise ModelIOError(f"cannot read model file {path}: {e}") from e


def _decode_word(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace")


def _check_header(vocab: int, dim: int) -> None:
    if vocab <= 0 or dim <= 0:
        raise FormatError(
            f"invalid header: vocab_size={vocab}, dim={dim}. Check that you have a valid model file"
        )


def _check_capacity(vocab: int, min_record: int, available: int) -> None:
    """Reject headers announcing more records than the remaining bytes can hold."""
    if vocab * min_record > available:
        raise FormatError(
            f"header announces {vocab} records but only {available} bytes follow. Check that you have a valid model file"
        )


def read_word2vec_bin(path: PathLike) -> NumpyVectorStore:
    """Load a Format A (float32 word2vec binary) model.

    Args:
        path: Model file path.

    Returns:
        A real-valued NumpyVectorStore.

    Raises:
        ModelIOError: If the file cannot be read.
        FormatError: On a malformed header, truncated record or trailing bytes.
    """
    p = Path(path)
    data = _read_bytes(p)

    nl = data.find(b"\n")
    if nl < 0:
        raise FormatError("failed to read header: no newline found")
    fields = data[:nl].split()
    if len(fields) != 2:
        raise FormatError(f"failed to read header: {data[:nl][:64]!r}")
    try:
        vocab, dim = int(fields[0]), int(fields[1])
    except ValueError as e:
        raise FormatError(f"failed to read header: {data[:nl][:64]!r}") from e
    _check_header(vocab, dim)
    # word (>= 1 byte) + space + float32 values
    _check_capacity(vocab, 2 + 4 * dim, len(data) - nl - 1)

    n = len(data)
    record_bytes = dim * 4
    matrix = np.empty((vocab, dim), dtype=np.float32)
    words: List[str] = []
    pos = nl + 1
    for i in range(vocab):
        sp = data.find(b" ", pos)
        if sp < 0:
            raise FormatError(f"failed to read word for record {i}: unexpected end of file")
        words.append(_decode_word(data[pos:sp].strip()))

        start = sp + 1
        end = start + record_bytes
        if end > n:
            raise FormatError(f"failed to read vector for record {i}: truncated data")
        matrix[i] = np.frombuffer(data, dtype="<f4", count=dim, offset=start)
        pos = end

        if data[pos : pos + 1] == b"\n":
            pos += 1

    if pos != n:
        raise FormatError(
            f"unexpected data at end of file ({n - pos} trailing byte(s)). Check that you have a valid model file"
        )

    return NumpyVectorStore(words, matrix, VectorKind.REAL, path=str(p), format_name=WORD2VEC_FORMAT)


def read_quantized_bin(path: PathLike) -> NumpyVectorStore:
    """Load a Format B (int8 quantized) model.

    Args:
        path: Model file path.

    Returns:
        A quantized NumpyVectorStore carrying the file's (min, max) range.

    Raises:
        ModelIOError: If the file cannot be read.
        FormatError: On a malformed header, truncated record or trailing bytes.
    """
    p = Path(path)
    data = _read_bytes(p)

    if len(data) < _QUANTIZED_HEADER.size:
        raise FormatError("failed to read header: file too short")
    vocab, dim, lo, hi = _QUANTIZED_HEADER.unpack_from(data, 0)
    _check_header(vocab, dim)
    # NUL terminator + int8 values
    _check_capacity(vocab, 1 + dim, len(data) - _QUANTIZED_HEADER.size)

    n = len(data)
    matrix = np.empty((vocab, dim), dtype=np.int8)
    words: List[str] = []
    pos = _QUANTIZED_HEADER.size
    for i in range(vocab):
        nul = data.find(b"\x00", pos)
        if nul < 0:
            raise FormatError(f"failed to read word for record {i}: unexpected end of file")
        words.append(_decode_word(data[pos:nul]))

        start = nul + 1
        end = start + dim
        if end > n:
            raise FormatError(f"failed to read vector for record {i}: truncated data")
        matrix[i] = np.frombuffer(data, dtype=np.int8, count=dim, offset=start)
        pos = end

    if pos != n:
        raise FormatError(f"unexpected data at end of file ({n - pos} trailing byte(s))")

    return NumpyVectorStore(
        words,
        matrix,
        VectorKind.QUANTIZED,
        value_range=(lo, hi),
        path=str(p),
        format_name=QUANTIZED_FORMAT,
    )


def _encode_word(word: str, forbidden: bytes) -> bytes:
    raw = word.encode("utf-8")
    if not raw or any(b in raw for b in forbidden):
        raise FormatError(f"word cannot be stored in this format: {word!r}")
    return raw


def write_word2vec_bin(path: PathLike, words: Sequence[str], matrix: np.ndarray) -> int:
    """Write a Format A model (each record followed by a newline).

    Args:
        path: Output file path.
        words: Vocabulary aligned to `matrix` rows.
        matrix: (vocab, dim) real-valued matrix.

    Returns:
        Number of records written.

    Raises:
        FormatError: If shapes disagree or a word contains whitespace.
        ModelIOError: If the file cannot be written.
    """
    vecs = np.asarray(matrix, dtype="<f4")
    if vecs.ndim != 2 or vecs.shape[0] != len(words):
        raise FormatError(f"matrix shape {vecs.shape} does not match {len(words)} words")
    _check_header(len(words), vecs.shape[1])

    p = Path(path)
    try:
        with p.open("wb") as fh:
            fh.write(f"{len(words)} {vecs.shape[1]}\n".encode("ascii"))
            for word, row in zip(words, vecs):
                fh.write(_encode_word(word, b" \n\t\r"))
                fh.write(b" ")
                fh.write(row.tobytes())
                fh.write(b"\n")
    except OSError as e:
        raise ModelIOError(f"cannot write model file {p}: {e}") from e
    return len(words)


def write_quantized_bin(
    path: PathLike,
    words: Sequence[str],
    raw: np.ndarray,
    value_range: Tuple[float, float],
) -> int:
    """Write a Format B model.

    Args:
        path: Output file path.
        words: Vocabulary aligned to `raw` rows.
        raw: (vocab, dim) int8 matrix.
        value_range: (min, max) dequantization range.

    Returns:
        Number of records written.

    Raises:
        FormatError: If shapes disagree or a word contains a NUL byte.
        ModelIOError: If the file cannot be written.
    """
    vecs = np.asarray(raw, dtype=np.int8)
    if vecs.ndim != 2 or vecs.shape[0] != len(words):
        raise FormatError(f"matrix shape {vecs.shape} does not match {len(words)} words")
    _check_header(len(words), vecs.shape[1])

    p = Path(path)
    try:
        with p.open("wb") as fh:
            fh.write(_QUANTIZED_HEADER.pack(len(words), vecs.shape[1], value_range[0], value_range[1]))
            for word, row in zip(words, vecs):
                fh.write(_encode_word(word, b"\x00"))
                fh.write(b"\x00")
                fh.write(row.tobytes())
    except OSError as e:
        raise ModelIOError(f"cannot write model file {p}: {e}") from e
    return len(words)
