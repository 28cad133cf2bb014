"""Word segmentation for input lines.

Lines are split at Unicode default word boundaries (UAX #29), using the
``regex`` package's WORD mode. Segments made only of whitespace, punctuation
or symbols act as separators and are dropped.
"""

from __future__ import annotations

from typing import Iterator, List

import regex

# A word segment: starts at a boundary on a word character and runs to the
# next boundary. Combining marks stay attached ("café").
_WORD_SEGMENT_RE = regex.compile(r"\b\w.*?\b", regex.WORD | regex.DOTALL)


def iter_tokens(line: str) -> Iterator[str]:
    """Yield word tokens of `line` in order; separators are dropped."""
    for m in _WORD_SEGMENT_RE.finditer(line):
        yield m.group(0)


def tokenize(line: str) -> List[str]:
    """
    Split a line into word tokens.

    Args:
        line: Input text.

    Returns:
        Tokens in order of appearance.
    """
    return list(iter_tokens(line))
