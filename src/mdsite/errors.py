"""Exceptions raised while loading and rendering documents"""

from collections.abc import Sequence


class MdsiteError(Exception):
    """Base class for all mdsite errors."""


class ParseError(MdsiteError):
    """A document's metadata block is missing, malformed, or lacks a required field."""

    def __init__(self, path: str, field: str, message: str):
        self.path = path
        self.field = field
        self.message = message
        super().__init__(f"{path}: {field}: {message}")


class LoadError(MdsiteError):
    """A file or directory could not be read."""

    def __init__(self, path: str, message: str):
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}")


class AggregateError(MdsiteError):
    """One or more documents failed during a publish pass."""

    def __init__(self, errors: Sequence[MdsiteError]):
        self.errors = list(errors)
        noun = "document" if len(self.errors) == 1 else "documents"
        lines = [f"{len(self.errors)} {noun} failed:"]
        lines += [f"  {e}" for e in self.errors]
        super().__init__("\n".join(lines))
