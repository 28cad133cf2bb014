from __future__ import annotations

import gzip
import io
from pathlib import Path

import numpy as np
import pytest
import requests

from vecgrep.embeddings.base import VectorKind
from vecgrep.errors import ConfigError, FormatError, ModelIOError, TokenNotFound
from vecgrep.tools import download as download_mod
from vecgrep.tools.convert import convert_text_model, quantize_store, read_text_vectors
from vecgrep.tools.reduce import reduce_model, reduce_store
from vecgrep.tools.synonyms import find_similar_words
from vecgrep.vectordb import load_vector_store
from vecgrep.vectordb.numpy_store import NumpyVectorStore


def test_synonyms_sorted_and_exclusive(royalty_store) -> None:
    hits = find_similar_words(royalty_store, "king", 0.0)
    words = [w for w, _ in hits]

    assert "king" not in words
    assert words[0] == "queen"
    assert [s for _, s in hits] == sorted((s for _, s in hits), reverse=True)
    assert all(0.0 <= s < 1.0 for _, s in hits)


def test_synonyms_threshold_and_top(royalty_store) -> None:
    assert [w for w, _ in find_similar_words(royalty_store, "apple", 0.9)] == ["banana"]
    assert len(find_similar_words(royalty_store, "apple", -1.0, top=1)) == 1
    with pytest.raises(TokenNotFound):
        find_similar_words(royalty_store, "zebra", 0.5)


def test_read_text_vectors() -> None:
    text = io.StringIO("2 3\nhello 0.1 0.2 0.3\n\nworld 1 2 3\n")
    words, matrix = read_text_vectors(text)
    assert words == ["hello", "world"]
    assert matrix.dtype == np.float32
    assert matrix.shape == (2, 3)


@pytest.mark.parametrize(
    "text",
    ["", "abc\n", "2 3\nhello 0.1 0.2\n", "1 2\nhello 0.1 x\n", "1 2\n\n"],
)
def test_read_text_vectors_errors(text: str) -> None:
    with pytest.raises(FormatError):
        read_text_vectors(io.StringIO(text))


def test_convert_then_search_model(tmp_path: Path) -> None:
    out = tmp_path / "conv.bin"
    written = convert_text_model(io.StringIO("3 2\nking 1 0\nqueen 0.9 0.436\napple 0 1\n"), out)

    store = load_vector_store(out)

    assert written == 3
    assert store.words() == ["king", "queen", "apple"]
    np.testing.assert_allclose(store.get_embedding("queen").values, [0.9, 0.436], rtol=1e-6)


def test_quantize_store(royalty_store, tmp_path: Path) -> None:
    out = tmp_path / "royalty.8int.bin"
    written, (lo, hi) = quantize_store(royalty_store, out)

    quant = load_vector_store(out)

    assert written == 4
    assert (lo, hi) == (0.0, 1.0)
    assert quant.kind is VectorKind.QUANTIZED
    np.testing.assert_allclose(quant.get_embedding("king").dequantize(), [1.0, 0.0], atol=1 / 255)
    # Ranking survives quantization.
    assert find_similar_words(quant, "king", 0.0)[0][0] == "queen"

    with pytest.raises(FormatError):
        quantize_store(quant, tmp_path / "again.8int.bin")


def test_reduce_store_keeps_main_axis(tmp_path: Path) -> None:
    rng = np.random.default_rng(0)
    base = rng.normal(size=(50, 1))
    matrix = np.hstack([base * 10.0, rng.normal(scale=0.01, size=(50, 3))]).astype(np.float32)
    store = NumpyVectorStore([f"w{i}" for i in range(50)], matrix, VectorKind.REAL)

    reduced = reduce_store(store, 1)
    corr = np.corrcoef(reduced[:, 0], matrix[:, 0])[0, 1]

    assert reduced.shape == (50, 1)
    assert abs(corr) > 0.99

    written = reduce_model(store, tmp_path / "small.bin", 2)
    assert written == 50
    assert load_vector_store(tmp_path / "small.bin").dim == 2


def test_reduce_rejects_bad_dim(royalty_store) -> None:
    with pytest.raises(ConfigError):
        reduce_store(royalty_store, 3)
    with pytest.raises(ConfigError):
        reduce_store(royalty_store, 0)


class _FakeResponse:
    def __init__(self, payload: bytes, status: int = 200) -> None:
        self.payload = payload
        self.status = status
        self.headers = {"content-length": str(len(payload))}

    def __enter__(self):
        return self

    def __exit__(self, *exc) -> None:
        return None

    def raise_for_status(self) -> None:
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")

    def iter_content(self, chunk_size: int = 1):
        for i in range(0, len(self.payload), 4):
            yield self.payload[i : i + 4]


def test_download_gunzips_payload(monkeypatch, tmp_path: Path) -> None:
    body = b"1 1\nx \x00\x00\x80\x3f\n"
    monkeypatch.setattr(download_mod.requests, "get", lambda url, stream, timeout: _FakeResponse(gzip.compress(body)))
    started, chunks = [], []

    path = download_mod.download_model(
        "https://example.invalid/m.bin.gz",
        tmp_path / "models" / "m.bin",
        on_start=started.append,
        on_chunk=chunks.append,
    )

    assert path.read_bytes() == body
    assert started == [len(gzip.compress(body))]
    assert sum(chunks) == started[0]
    assert not (tmp_path / "models" / "m.bin.part").exists()
    assert load_vector_store(path).words() == ["x"]


def test_download_plain_payload(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setattr(download_mod.requests, "get", lambda url, stream, timeout: _FakeResponse(b"raw"))
    path = download_mod.download_model("https://example.invalid/m.bin", tmp_path / "m.bin")
    assert path.read_bytes() == b"raw"


def test_download_http_error(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setattr(download_mod.requests, "get", lambda url, stream, timeout: _FakeResponse(b"", status=404))
    with pytest.raises(ModelIOError):
        download_mod.download_model("https://example.invalid/x", tmp_path / "x.bin")
    assert not (tmp_path / "x.bin").exists()
    assert not (tmp_path / "x.bin.part").exists()
