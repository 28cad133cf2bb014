"""Pytest configuration and fixtures."""

from __future__ import annotations

import io
from pathlib import Path
from typing import Callable, Dict, List, Sequence

import numpy as np
import pytest

from vecgrep.config import ScanOptions
from vecgrep.output import LineWriter, PlainHighlighter
from vecgrep.similarity import SimilarityCache, SimilarityEngine
from vecgrep.vectordb.formats import write_word2vec_bin
from vecgrep.vectordb.numpy_store import NumpyVectorStore
from vecgrep.matching.matcher import StreamMatcher

ROYALTY: Dict[str, List[float]] = {
    "king": [1.0, 0.0],
    "queen": [0.9, 0.436],
    "apple": [0.0, 1.0],
    "banana": [0.1, 0.99],
}


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch, tmp_path: Path) -> None:
    """Keep user/system config files and env vars out of tests."""
    monkeypatch.delenv("VECGREP_MODEL", raising=False)
    monkeypatch.delenv("VECGREP_CONFIG", raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def royalty_store() -> NumpyVectorStore:
    return NumpyVectorStore.from_mapping(ROYALTY)


@pytest.fixture
def model_file(tmp_path: Path) -> Path:
    """Float32 model file holding the ROYALTY vectors."""
    path = tmp_path / "royalty.bin"
    words = list(ROYALTY)
    write_word2vec_bin(path, words, np.asarray([ROYALTY[w] for w in words], dtype=np.float32))
    return path


@pytest.fixture
def make_matcher() -> Callable[..., "MatcherHarness"]:
    """Build a matcher writing to an in-memory buffer."""

    def _make(store, queries: Sequence[str], **opts) -> MatcherHarness:
        out = io.StringIO()
        engine = SimilarityEngine(SimilarityCache())
        writer = LineWriter(out, PlainHighlighter())
        matcher = StreamMatcher(store, engine, list(queries), ScanOptions(**opts), writer)
        return MatcherHarness(matcher=matcher, engine=engine, out=out)

    return _make


class MatcherHarness:
    def __init__(self, matcher: StreamMatcher, engine: SimilarityEngine, out: io.StringIO) -> None:
        self.matcher = matcher
        self.engine = engine
        self.out = out

    def run(self, lines: Sequence[str]):
        return self.matcher.run(lines)

    @property
    def lines(self) -> List[str]:
        return self.out.getvalue().splitlines()
