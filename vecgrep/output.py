# vecgrep/output.py
"""Output collaborators for the matcher.

  - Highlighter: visual marking of a piece of text for a semantic tag
  - LineWriter: writes one result line, optionally prefixed by its number

The matcher only calls `decorate` / `write_line`; the visual encoding lives
here. ANSI styling is rendered with Rich styles.
"""

from __future__ import annotations

import sys
from typing import Dict, Optional, TextIO

from rich.color import ColorSystem
from rich.style import Style

MATCH_TAG = "match"
LINE_NUMBER_TAG = "line_number"

DEFAULT_STYLES: Dict[str, Style] = {
    MATCH_TAG: Style(color="bright_red"),
    LINE_NUMBER_TAG: Style(color="bright_green"),
}


class Highlighter:
    """Highlighter interface."""

    def decorate(self, text: str, tag: str) -> str:
        """Return `text` marked for `tag`."""
        raise NotImplementedError


class PlainHighlighter(Highlighter):
    """Leaves text untouched (no colors)."""

    def decorate(self, text: str, tag: str) -> str:
        return text


class AnsiHighlighter(Highlighter):
    """
    Wraps text in ANSI escape codes.

    Attributes:
        styles: Mapping of tag -> Rich style. Unknown tags are left undecorated.
    """

    def __init__(self, styles: Optional[Dict[str, Style]] = None) -> None:
        self.styles = dict(DEFAULT_STYLES if styles is None else styles)

    def decorate(self, text: str, tag: str) -> str:
        style = self.styles.get(tag)
        if style is None:
            return text
        return style.render(text, color_system=ColorSystem.STANDARD)


def make_highlighter(color: bool) -> Highlighter:
    return AnsiHighlighter() if color else PlainHighlighter()


class LineWriter:
    """Writes result lines to a text sink."""

    def __init__(self, stream: Optional[TextIO] = None, highlighter: Optional[Highlighter] = None) -> None:
        self.stream = stream if stream is not None else sys.stdout
        self.highlighter = highlighter or PlainHighlighter()

    def write_line(self, text: str, line_number: Optional[int] = None, show_number: bool = False) -> None:
        """
        Write one line.

        Args:
            text: Line content (without trailing newline).
            line_number: 1-based line number, if the line has one.
            show_number: Prefix the line with ``<number>:`` when True.
        """
        if show_number and line_number is not None:
            prefix = self.highlighter.decorate(str(line_number), LINE_NUMBER_TAG) + ":"
        else:
            prefix = ""
        self.stream.write(f"{prefix}{text}\n")
