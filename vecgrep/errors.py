"""Error types raised by the vecgrep core.

Library code raises these; only the CLI layer turns them into messages and
exit codes. Each class also derives from the closest builtin so callers that
only know about ``OSError`` / ``ValueError`` / ``KeyError`` still catch them.
"""

from __future__ import annotations


class VecgrepError(Exception):
    """Base class for all vecgrep errors."""


class ModelIOError(VecgrepError, OSError):
    """A model (or config) file could not be opened or read."""


class FormatError(VecgrepError, ValueError):
    """A model file is malformed (bad header, truncated data, trailing bytes)."""


class UnsupportedFormatError(VecgrepError, ValueError):
    """The model file suffix does not name a known format."""


class TokenNotFound(VecgrepError, KeyError):
    """A token is not present in the vector store (out-of-vocabulary)."""

    def __init__(self, token: str) -> None:
        super().__init__(token)
        self.token = token

    def __str__(self) -> str:
        return f"token not in vocabulary: {self.token!r}"


class IncompatibleVectorTypes(VecgrepError, TypeError):
    """Two embeddings of different representations were compared."""


class StreamReadError(VecgrepError, OSError):
    """Reading the input line stream failed mid-scan."""


class ConfigError(VecgrepError, ValueError):
    """A configuration file or option combination is invalid."""
