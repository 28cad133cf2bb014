from __future__ import annotations

import io

import numpy as np
import pytest

from vecgrep.config import ScanOptions
from vecgrep.embeddings.base import VectorKind
from vecgrep.errors import ConfigError, StreamReadError, TokenNotFound
from vecgrep.matching.context import ContextRing
from vecgrep.matching.lines import LineReader
from vecgrep.matching.matcher import StreamMatcher
from vecgrep.matching.tokenize import tokenize
from vecgrep.output import AnsiHighlighter, LineWriter
from vecgrep.similarity import SimilarityEngine
from vecgrep.vectordb.numpy_store import NumpyVectorStore


class CountingStore(NumpyVectorStore):
    """Counts embedding lookups per token."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.lookups: dict = {}

    def get_embedding(self, token):
        self.lookups[token] = self.lookups.get(token, 0) + 1
        return super().get_embedding(token)


def test_tokenize_unicode_words() -> None:
    assert tokenize("Hello, wörld! don't stop-now 3.14") == ["Hello", "wörld", "don't", "stop", "now", "3.14"]
    assert tokenize("  ...  ") == []


def test_tokenize_keeps_combining_marks_attached() -> None:
    assert tokenize("I like cafe\u0301 a lot") == ["I", "like", "cafe\u0301", "a", "lot"]
    assert tokenize("a naïve_word!") == ["a", "naïve_word"]


def test_decomposed_query_hits_exact_path(royalty_store, make_matcher) -> None:
    h = make_matcher(royalty_store, ["cafe\u0301"], threshold=0.99)
    match = h.matcher.find_match("a cafe\u0301 downtown")
    assert match is not None
    assert match.token == "cafe\u0301"
    assert match.score == 1.0


def test_king_queen_scenario(royalty_store, make_matcher) -> None:
    h = make_matcher(royalty_store, ["king"], threshold=0.8)

    queen = h.matcher.find_match("the queen spoke")
    assert queen is not None
    assert queen.token == "queen"
    assert queen.score == pytest.approx(0.9, abs=1e-3)

    king = h.matcher.find_match("long live the king")
    assert king is not None
    assert king.token == "king"
    assert king.score == 1.0


def test_exact_match_for_out_of_vocabulary_query(royalty_store, make_matcher) -> None:
    h = make_matcher(royalty_store, ["zebra"], threshold=0.99)
    assert h.matcher.queries[0].in_vocabulary is False
    assert h.matcher.find_match("a zebra and a king").token == "zebra"
    assert h.matcher.find_match("only a king") is None


def test_threshold_is_strict(make_matcher) -> None:
    store = NumpyVectorStore.from_mapping({"north": [3.0, 4.0], "south": [4.0, 3.0]})
    score = SimilarityEngine().score("north", "south", store.get_embedding("north"), store.get_embedding("south"))

    at = make_matcher(store, ["north"], threshold=score)
    below = make_matcher(store, ["north"], threshold=score - 1e-9)

    assert at.matcher.find_match("go south") is None
    assert below.matcher.find_match("go south") is not None


def test_first_qualifying_token_wins(royalty_store, make_matcher) -> None:
    h = make_matcher(royalty_store, ["king"], threshold=0.5)
    match = h.matcher.find_match("queen before king")
    assert match.token == "queen"
    assert match.score < 1.0


def test_context_scenario(royalty_store, make_matcher) -> None:
    h = make_matcher(royalty_store, ["MATCH"], threshold=0.0, context_before=1, context_after=1)

    summary = h.run(["a", "b MATCH", "c"])

    assert h.lines == ["Similarity: 1.0000", "a", "b MATCH", "c", "--"]
    assert summary.matched_lines == 1
    assert summary.lines_read == 3


def test_leading_context_is_bounded(royalty_store, make_matcher) -> None:
    h = make_matcher(royalty_store, ["king"], threshold=0.95, context_before=2, line_numbers=True)

    h.run(["one", "two", "three", "four", "the king", "five", "the king"])

    assert h.lines == [
        "Similarity: 1.0000",
        "3:three",
        "4:four",
        "5:the king",
        "--",
        "Similarity: 1.0000",
        "6:five",
        "7:the king",
        "--",
    ]


def test_trailing_context_is_not_rescanned(royalty_store, make_matcher) -> None:
    h = make_matcher(royalty_store, ["king"], threshold=0.8, context_after=1)

    summary = h.run(["king", "queen", "other"])

    assert summary.matched_lines == 1
    assert h.lines == ["Similarity: 1.0000", "king", "queen", "--"]


def test_trailing_context_stops_at_end_of_input(royalty_store, make_matcher) -> None:
    h = make_matcher(royalty_store, ["king"], threshold=0.8, context_after=5, line_numbers=True)
    h.run(["x", "king", "y"])
    assert h.lines == ["Similarity: 1.0000", "2:king", "3:y", "--"]


def test_only_matching_prints_tokens(royalty_store, make_matcher) -> None:
    h = make_matcher(royalty_store, ["king"], threshold=0.8, only_matching=True, line_numbers=True, context_before=3)
    h.run(["x", "the queen", "y", "king me"])
    assert h.lines == ["queen", "king"]


def test_only_lines_prints_numbered_lines(royalty_store, make_matcher) -> None:
    h = make_matcher(royalty_store, ["king"], threshold=0.8, only_lines=True, line_numbers=True, context_before=3)
    h.run(["x", "the queen", "y"])
    assert h.lines == ["2:the queen"]
    assert len(h.matcher.context) == 0


def test_highlight_marks_every_occurrence(royalty_store) -> None:
    out = io.StringIO()
    writer = LineWriter(out, AnsiHighlighter())
    matcher = StreamMatcher(royalty_store, SimilarityEngine(), ["king"], ScanOptions(threshold=0.8, only_lines=True), writer)

    matcher.run(["queen and queenly"])

    assert out.getvalue().count("\x1b[91mqueen\x1b[0m") == 2


def test_ignore_case_normalizes_query_and_tokens(royalty_store, make_matcher) -> None:
    sensitive = make_matcher(royalty_store, ["KING"], threshold=0.8)
    insensitive = make_matcher(royalty_store, ["KING"], threshold=0.8, ignore_case=True)

    assert sensitive.matcher.queries[0].in_vocabulary is False
    assert sensitive.matcher.find_match("a Queen") is None
    assert insensitive.matcher.find_match("a Queen").token == "Queen"


def test_each_pair_scored_once_across_scan(make_matcher) -> None:
    store = CountingStore(
        ["king", "queen", "apple", "banana"],
        np.array([[1.0, 0.0], [0.9, 0.436], [0.0, 1.0], [0.1, 0.99]], dtype=np.float32),
        kind=VectorKind.REAL,
    )
    h = make_matcher(store, ["king", "apple"], threshold=0.999)

    h.run(["banana queen unknown"] * 50)

    # (king|apple) x (banana|queen) are the only vector comparisons.
    assert h.engine.computations == 4
    assert store.lookups.get("banana") == 1
    assert store.lookups.get("queen") == 1


def test_query_order_does_not_change_other_query_result(royalty_store, make_matcher) -> None:
    forward = make_matcher(royalty_store, ["king", "apple"], threshold=0.95)
    backward = make_matcher(royalty_store, ["apple", "king"], threshold=0.95)

    for h in (forward, backward):
        h.matcher.find_match("queen")
        m = h.matcher.find_match("banana")
        assert m is not None and m.query == "apple"

    assert forward.engine.cache.get("apple", "banana") == backward.engine.cache.get("apple", "banana")
    assert forward.engine.cache.get("apple", "queen") == backward.engine.cache.get("apple", "queen")


def test_stream_error_keeps_partial_output(royalty_store, make_matcher) -> None:
    def lines():
        yield "the king"
        raise OSError("disk gone")

    h = make_matcher(royalty_store, ["king"], threshold=0.8, only_lines=True)
    with pytest.raises(StreamReadError):
        h.run(lines())
    assert h.lines == ["the king"]


def test_context_ring_capacity_and_drain() -> None:
    ring = ContextRing(2)
    for i in range(5):
        ring.push(f"l{i}", i + 1)
        assert len(ring) <= 2
    drained = ring.drain()
    assert [c.text for c in drained] == ["l3", "l4"]
    assert len(ring) == 0
    assert len(ContextRing(0)) == 0


def test_line_reader_take_advances_numbers() -> None:
    reader = LineReader(io.StringIO("a\nb\r\nc\n"))
    assert next(reader) == (1, "a")
    assert reader.take(5) == [(2, "b"), (3, "c")]
    assert reader.line_number == 3


def test_conflicting_modes_rejected(royalty_store, make_matcher) -> None:
    with pytest.raises(ConfigError):
        make_matcher(royalty_store, ["king"], only_matching=True, only_lines=True)
    with pytest.raises(ValueError):
        make_matcher(royalty_store, [])
    with pytest.raises(TokenNotFound):
        royalty_store.get_embedding("zebra")
