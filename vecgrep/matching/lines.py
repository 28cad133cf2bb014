"""Pull-based line reader with explicit look-ahead."""

from __future__ import annotations

from typing import Iterable, Iterator, List, Tuple

from ..errors import StreamReadError


def _strip_eol(line: str) -> str:
    if line.endswith("\n"):
        line = line[:-1]
        if line.endswith("\r"):
            line = line[:-1]
    return line


class LineReader:
    """
    Numbered iteration over an input line stream.

    `take(n)` reads further lines from the same cursor so trailing context can
    be consumed without those lines being scanned again.

    Attributes:
        line_number: 1-based number of the last line read (0 before the first).
    """

    def __init__(self, lines: Iterable[str]) -> None:
        self._it = iter(lines)
        self.line_number = 0

    def _next(self) -> str:
        try:
            raw = next(self._it)
        except (OSError, UnicodeDecodeError) as e:
            raise StreamReadError(f"error reading input after line {self.line_number}: {e}") from e
        self.line_number += 1
        return _strip_eol(raw)

    def __iter__(self) -> Iterator[Tuple[int, str]]:
        return self

    def __next__(self) -> Tuple[int, str]:
        text = self._next()
        return self.line_number, text

    def take(self, n: int) -> List[Tuple[int, str]]:
        """Read up to `n` more lines (fewer at end of input)."""
        out: List[Tuple[int, str]] = []
        for _ in range(max(0, n)):
            try:
                out.append(next(self))
            except StopIteration:
                break
        return out
