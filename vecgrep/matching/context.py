"""Leading-context buffer for grep-style ``-B`` output."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Deque, List


@dataclass(frozen=True)
class ContextLine:
    """A buffered non-matching line."""

    text: str
    line_number: int


class ContextRing:
    """
    FIFO of at most `capacity` most recent non-matching lines.

    Attributes:
        capacity: Maximum number of buffered lines (0 disables buffering).
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 0:
            raise ValueError("context capacity must be >= 0")
        self.capacity = capacity
        self._lines: Deque[ContextLine] = deque(maxlen=capacity)

    def push(self, text: str, line_number: int) -> None:
        """Append a line, evicting the oldest once `capacity` is exceeded."""
        if self.capacity:
            self._lines.append(ContextLine(text=text, line_number=line_number))

    def drain(self) -> List[ContextLine]:
        """Return buffered lines oldest first and clear the buffer."""
        out = list(self._lines)
        self._lines.clear()
        return out

    def __len__(self) -> int:
        return len(self._lines)
