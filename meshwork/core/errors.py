"""Exception hierarchy shared by the mesh core, cursors and tessellation."""
from __future__ import annotations


class MeshError(Exception):
    """Base class of every error raised by meshwork."""


class StructureError(MeshError, ValueError):
    """A mutation would break (or a check found broken) half-edge connectivity."""


class DeletedElementError(StructureError, KeyError):
    """An identifier refers to a deleted or never-created element."""

    def __init__(self, kind: str, ident: int):
        self.kind = kind
        self.ident = ident
        super().__init__(f"{kind} {ident} does not exist (deleted or out of range)")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class VoidCursorError(MeshError):
    """A void cursor was asserted valid or dereferenced."""


class BorrowError(MeshError):
    """Single-writer discipline violated: second exclusive cursor, stale token
    or mutation through a shared cursor."""


class TriangulationError(MeshError):
    """A triangulation request could not produce a valid triangle set."""


class PreconditionError(TriangulationError, ValueError):
    """Input violates an algorithm precondition (convexity, simplicity)."""


__all__ = [
    'MeshError',
    'StructureError',
    'DeletedElementError',
    'VoidCursorError',
    'BorrowError',
    'TriangulationError',
    'PreconditionError',
]
