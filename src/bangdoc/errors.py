"""Exceptions raised by bangdoc.

Problems inside annotation text never raise; only failures to read or
parse a source file do.
"""

from pathlib import Path


class BangdocError(Exception):
    """Base class for bangdoc errors."""


class SourceParseError(BangdocError):
    """A source file could not be read or is not valid Python."""

    def __init__(self, path: Path | str, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"failed to parse {path}: {reason}")
