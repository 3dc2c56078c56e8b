"""Custom exception hierarchy for the md5mesh toolkit."""

from __future__ import annotations


class Md5MeshError(Exception):
    """Base exception for all md5mesh errors."""


class ParseError(Md5MeshError):
    """Raised when the input text does not match the expected grammar.

    ``line`` and ``column`` are 1-based; ``offset`` is the 0-based character
    offset the scanner had reached. They are ``None`` for errors that have no
    position in the text (e.g. a file that cannot be read).
    """

    def __init__(
        self,
        message: str,
        *,
        expected: str | None = None,
        offset: int | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        self.expected = expected
        self.offset = offset
        self.line = line
        self.column = column
        super().__init__(message)


class ValidationError(Md5MeshError):
    """Raised when a well-formed scene violates a cross-reference invariant."""

    def __init__(
        self,
        message: str,
        *,
        entity: str | None = None,
        index: int | None = None,
        invariant: str | None = None,
        mesh_index: int | None = None,
    ) -> None:
        self.entity = entity
        self.index = index
        self.invariant = invariant
        self.mesh_index = mesh_index
        super().__init__(message)


class ExportError(Md5MeshError):
    """Raised when glTF/GLB export fails."""
