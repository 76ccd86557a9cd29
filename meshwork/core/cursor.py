"""Cursor layer: typed traversal and mutation handles over a HalfEdgeMesh.

A cursor is a (mesh, id, validity) triple and never owns mesh data. Three
independent axes describe it:

* position kind: :class:`VertexCursor`, :class:`EdgeCursor`, :class:`FaceCursor`
* access: the shared classes above, or their exclusive ``*Mut`` subclasses
* validity: :attr:`Validity.MAYBE` (may be void) or :attr:`Validity.VALID`

Navigation never raises. Stepping from a void cursor, or onto an absent
element, yields a void cursor of the destination kind, so traversal chains
stay branch-free until an explicit :meth:`Cursor.ensure`::

    apex = mesh.edge(e).next().target().ensure("loop too short")

Navigation results are always MAYBE cursors; only :meth:`Cursor.load` and
:meth:`Cursor.ensure` produce VALID ones.

Exclusive cursors hold the mesh's single write token. Navigating an
exclusive cursor moves the token to the returned cursor and the old handle
goes stale, so at most one live handle can mutate the mesh at any time.
Shared cursors can be created freely alongside it.
"""
from __future__ import annotations

import enum
from typing import Any, Callable, Iterator, List, Optional, Sequence

from .constants import NONE
from .errors import BorrowError, DeletedElementError, VoidCursorError
from .logging_utils import get_logger

__all__ = [
    'Validity', 'Access', 'PositionKind', 'Cursor',
    'VertexCursor', 'EdgeCursor', 'FaceCursor',
    'VertexCursorMut', 'EdgeCursorMut', 'FaceCursorMut',
]

log = get_logger('meshwork.cursor')


class Validity(enum.Enum):
    MAYBE = 'maybe'
    VALID = 'valid'


class Access(enum.Enum):
    SHARED = 'shared'
    EXCLUSIVE = 'exclusive'


class PositionKind(enum.Enum):
    VERTEX = 'vertex'
    EDGE = 'edge'
    FACE = 'face'


def _ident(value) -> int:
    if isinstance(value, Cursor):
        return value.id
    return NONE if value is None else int(value)


class Cursor:
    """Common state and the validity transitions shared by every cursor kind."""

    KIND: PositionKind
    ACCESS = Access.SHARED

    __slots__ = ('_mesh', '_id', '_validity')

    def __init__(self, mesh, ident=NONE, validity: Validity = Validity.MAYBE):
        self._mesh = mesh
        self._id = _ident(ident)
        self._validity = validity

    # -- tags -----------------------------------------------------------
    @property
    def mesh(self):
        return self._mesh

    @property
    def id(self) -> int:
        return self._id

    @property
    def validity(self) -> Validity:
        return self._validity

    @property
    def access(self) -> Access:
        return self.ACCESS

    def _exists(self) -> bool:
        raise NotImplementedError

    def is_void(self) -> bool:
        return self._id == NONE or not self._exists()

    def is_valid(self) -> bool:
        return not self.is_void()

    def __bool__(self) -> bool:
        return self.is_valid()

    def __eq__(self, other) -> bool:
        return (isinstance(other, Cursor) and other.KIND is self.KIND
                and other._mesh is self._mesh and other._id == self._id)

    def __hash__(self) -> int:
        return hash((self.KIND, id(self._mesh), self._id))

    def __repr__(self) -> str:
        state = 'void' if self.is_void() else self._validity.value
        return f"{type(self).__name__}({self._id}, {state})"

    # -- construction of successors --------------------------------------
    def _at(self, dest: type, ident: int, validity: Validity = Validity.MAYBE) -> 'Cursor':
        return dest(self._mesh, ident, validity)

    def _step(self, dest: type, fn: Callable[[Any, int], int]) -> 'Cursor':
        if self.is_void():
            return self._at(dest, NONE)
        return self._at(dest, fn(self._mesh, self._id))

    # -- validity transitions ---------------------------------------------
    def load(self) -> 'Cursor':
        """VALID cursor at the same id if it exists, otherwise a void MAYBE cursor."""
        if self.is_void():
            return self._at(type(self), NONE)
        return self._at(type(self), self._id, Validity.VALID)

    def ensure(self, message: Optional[str] = None) -> 'Cursor':
        """Assert the position exists; raise VoidCursorError otherwise."""
        if self.is_void():
            raise VoidCursorError(message or f"{self.KIND.value} cursor is void (id {self._id})")
        if self._validity is Validity.VALID:
            return self
        return self._at(type(self), self._id, Validity.VALID)

    def _require(self) -> int:
        if self._id == NONE:
            raise VoidCursorError(f"{self.KIND.value} cursor is void")
        if not self._exists():
            if self._validity is Validity.VALID:
                raise DeletedElementError(self.KIND.value, self._id)
            raise VoidCursorError(f"{self.KIND.value} {self._id} no longer exists; load() first")
        return self._id

    def stay(self, fn: Callable[['Cursor'], Any]) -> 'Cursor':
        """Run ``fn`` on a copy of this cursor for its side effects and stay put."""
        fn(self.clone())
        return self

    def map(self, fn: Callable[['Cursor'], Any], default: Any = None) -> Any:
        """``fn(self)`` when the cursor is valid, ``default`` when it is void."""
        return default if self.is_void() else fn(self)

    def clone(self) -> 'Cursor':
        return type(self)(self._mesh, self._id, self._validity)

    def shared(self) -> 'Cursor':
        """Read-only view at the same position."""
        return _SHARED[self.KIND](self._mesh, self._id, self._validity)


# ----------------------------------------------------------------------
# Shared cursors
# ----------------------------------------------------------------------
class VertexCursor(Cursor):
    KIND = PositionKind.VERTEX
    __slots__ = ()

    def _exists(self) -> bool:
        return self._mesh.has_vertex(self._id)

    def edge(self) -> 'EdgeCursor':
        """Representative outgoing half-edge (void for isolated vertices)."""
        return self._step(EdgeCursor, lambda m, v: m.edge_of_vertex(v))

    def face(self) -> 'FaceCursor':
        """First incident face in fan order (void if none)."""
        return self._step(FaceCursor, lambda m, v: next(m.faces_around(v), NONE))

    @property
    def payload(self) -> Any:
        return self._mesh.vertex_payload(self._require())

    def position(self):
        return self._mesh.position(self._require())

    def edges_out(self) -> Iterator['EdgeCursor']:
        if self.is_void():
            return iter(())
        return (EdgeCursor(self._mesh, e) for e in self._mesh.edges_out(self._id))

    def neighbors(self) -> Iterator['VertexCursor']:
        if self.is_void():
            return iter(())
        return (VertexCursor(self._mesh, w) for w in self._mesh.neighbors(self._id))

    def degree(self) -> int:
        return 0 if self.is_void() else self._mesh.degree(self._id)

    def is_boundary(self) -> bool:
        return self._mesh.is_boundary_vertex(self._require())


class EdgeCursor(Cursor):
    KIND = PositionKind.EDGE
    __slots__ = ()

    def _exists(self) -> bool:
        return self._mesh.has_edge(self._id)

    def next(self) -> 'EdgeCursor':
        return self._step(EdgeCursor, lambda m, e: m.next(e))

    def prev(self) -> 'EdgeCursor':
        return self._step(EdgeCursor, lambda m, e: m.prev(e))

    def twin(self) -> 'EdgeCursor':
        return self._step(EdgeCursor, lambda m, e: m.twin(e))

    def next_sibling(self) -> 'EdgeCursor':
        """Next outgoing half-edge around the source vertex."""
        return self._step(EdgeCursor, lambda m, e: m.next(m.twin(e)))

    def prev_sibling(self) -> 'EdgeCursor':
        return self._step(EdgeCursor, lambda m, e: m.twin(m.prev(e)))

    def source(self) -> 'VertexCursor':
        return self._step(VertexCursor, lambda m, e: m.source(e))

    origin = source

    def target(self) -> 'VertexCursor':
        return self._step(VertexCursor, lambda m, e: m.target(e))

    def face(self) -> 'FaceCursor':
        """Face left of the half-edge; void on a boundary."""
        return self._step(FaceCursor, lambda m, e: m.face_of(e))

    def nth(self, n: int) -> 'EdgeCursor':
        """Apply next() (or prev() for negative n) |n| times."""
        cur = self
        for _ in range(abs(n)):
            cur = cur.next() if n > 0 else cur.prev()
        return cur

    @property
    def payload(self) -> Any:
        return self._mesh.edge_payload(self._require())

    def is_boundary(self) -> bool:
        return self._mesh.is_boundary_edge(self._require())

    def has_face(self) -> bool:
        return not self.is_void() and self._mesh.face_of(self._id) != NONE

    def loop(self) -> Iterator['EdgeCursor']:
        if self.is_void():
            return iter(())
        return (EdgeCursor(self._mesh, e) for e in self._mesh.loop_edges(self._id))

    def loop_vertices(self) -> List[int]:
        if self.is_void():
            return []
        return [self._mesh.source(e) for e in self._mesh.loop_edges(self._id)]


class FaceCursor(Cursor):
    KIND = PositionKind.FACE
    __slots__ = ()

    def _exists(self) -> bool:
        return self._mesh.has_face(self._id)

    def edge(self) -> EdgeCursor:
        return self._step(EdgeCursor, lambda m, f: m.edge_of_face(f))

    @property
    def payload(self) -> Any:
        return self._mesh.face_payload(self._require())

    def edges(self) -> Iterator[EdgeCursor]:
        if self.is_void():
            return iter(())
        return (EdgeCursor(self._mesh, e) for e in self._mesh.face_edges(self._id))

    def vertices(self) -> List[int]:
        return [] if self.is_void() else list(self._mesh.face_vertices(self._id))

    def size(self) -> int:
        return 0 if self.is_void() else self._mesh.face_size(self._id)

    def polygon(self):
        return self._mesh.face_polygon(self._require())


_SHARED = {
    PositionKind.VERTEX: VertexCursor,
    PositionKind.EDGE: EdgeCursor,
    PositionKind.FACE: FaceCursor,
}


# ----------------------------------------------------------------------
# Exclusive cursors
# ----------------------------------------------------------------------
def _transform_arg(transform):
    from .operations import as_transform
    return as_transform(transform)


class _Exclusive:
    """Write-token handling mixed into the ``*Mut`` cursor classes.

    The borrow ends on :meth:`release`, at the end of a ``with`` block, or
    when the cursor holding the token is garbage collected, so a discarded
    step result such as ``mesh.vertex_mut().insert_vertex(p)`` does not
    leave the mesh locked.
    """

    ACCESS = Access.EXCLUSIVE

    @classmethod
    def acquire(cls, mesh, ident=NONE):
        """Take the mesh's write token; raises BorrowError if another cursor holds it."""
        token = mesh._acquire_write()
        log.debug("write token acquired on %r", mesh)
        cur = cls(mesh, ident, Validity.MAYBE, token)
        cur._scope = token
        return cur

    def _take(self):
        token = self._token
        if token is None:
            raise BorrowError("cursor was moved; continue with the cursor returned by the last step")
        if not token.active or self._mesh._write_token is not token:
            raise BorrowError("write token was released")
        self._token = None
        return token

    def _at(self, dest: type, ident: int, validity: Validity = Validity.MAYBE):
        return _MUT[dest.KIND](self._mesh, ident, validity, self._take())

    def _call(self, name: str, *args, **kwargs):
        token = self._token
        if token is None:
            raise BorrowError("cursor was moved; continue with the cursor returned by the last step")
        with token.calling():
            return getattr(self._mesh, name)(*args, **kwargs)

    def _run(self, fn, *args, **kwargs):
        """Run a construction operation from ``meshwork.core.operations`` under the token."""
        token = self._token
        if token is None:
            raise BorrowError("cursor was moved; continue with the cursor returned by the last step")
        with token.calling():
            return fn(self._mesh, *args, **kwargs)

    def clone(self):
        raise BorrowError("exclusive cursors cannot be cloned; use shared() for a read-only view")

    def stay(self, fn):
        """Run a step chain from here and come back to this position.

        ``fn`` receives this cursor and must return the cursor its chain ended
        on (or leave this one unmoved), so the token can travel back.
        """
        kind, ident, validity = type(self), self._id, self._validity
        out = fn(self)
        if self._token is not None:
            return self
        if not isinstance(out, _Exclusive) or out._token is None:
            raise BorrowError("stay(): the step lost the write token; return its final cursor")
        return out._at(_SHARED[kind.KIND], ident, validity)

    def release(self) -> None:
        token = self._take()
        self._mesh._release_write(token)
        log.debug("write token released on %r", self._mesh)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        # the token may have travelled down a step chain; the borrow still ends here
        token = self._token or getattr(self, '_scope', None)
        if token is not None and token.active:
            self._token = None
            self._mesh._release_write(token)
        return False

    def __del__(self):
        token = getattr(self, '_token', None)
        if token is not None and token.active and self._mesh._write_token is token:
            self._mesh._release_write(token)


class VertexCursorMut(_Exclusive, VertexCursor):
    __slots__ = ('_token',)

    def __init__(self, mesh, ident=NONE, validity: Validity = Validity.MAYBE, token=None):
        super().__init__(mesh, ident, validity)
        self._token = token

    def insert_vertex(self, payload: Any = None) -> 'VertexCursorMut':
        """New isolated vertex; works from any position, void included."""
        v = self._call('insert_vertex', payload)
        return self._at(VertexCursor, v, Validity.VALID)

    def insert_edge(self, target, payload: Any = None) -> 'EdgeCursorMut':
        """Connect this vertex to ``target``; lands on the new half-edge."""
        e = self._call('insert_edge', self._require(), _ident(target), payload)
        return self._at(EdgeCursor, e, Validity.VALID)

    connect = insert_edge

    def append_vertex(self, payload: Any = None, edge_payload: Any = None) -> 'EdgeCursorMut':
        """Grow a dangling edge to a new vertex; lands on the new half-edge."""
        _, e = self._call('add_vertex_via_vertex', self._require(), payload, edge_payload)
        return self._at(EdgeCursor, e, Validity.VALID)

    def append_path(self, payloads: Sequence[Any]) -> 'EdgeCursorMut':
        from .operations import append_path
        e = self._run(append_path, self._require(), payloads)
        return self._at(EdgeCursor, e, Validity.VALID)

    def set_payload(self, payload: Any) -> 'VertexCursorMut':
        self._call('set_vertex_payload', self._require(), payload)
        return self

    def remove(self) -> 'VertexCursorMut':
        self._call('delete_vertex', self._require())
        return self._at(VertexCursor, NONE)


class EdgeCursorMut(_Exclusive, EdgeCursor):
    __slots__ = ('_token',)

    def __init__(self, mesh, ident=NONE, validity: Validity = Validity.MAYBE, token=None):
        super().__init__(mesh, ident, validity)
        self._token = token

    def insert_edge_to(self, other, payload: Any = None) -> 'EdgeCursorMut':
        """Connect target(self) to target(other) right after both half-edges."""
        e = self._call('insert_edge_after', self._require(), _ident(other), payload)
        return self._at(EdgeCursor, e, Validity.VALID)

    def close_face(self, payload: Any = None) -> 'FaceCursorMut':
        """Close the face-less loop through this half-edge."""
        f = self._call('close_face', self._require(), payload)
        return self._at(FaceCursor, f, Validity.VALID)

    insert_face = close_face

    def append_vertex(self, payload: Any = None, edge_payload: Any = None) -> 'EdgeCursorMut':
        """Dangling edge from target(self) to a new vertex."""
        _, e = self._call('add_vertex_via_edge', self._require(), payload, edge_payload)
        return self._at(EdgeCursor, e, Validity.VALID)

    def append_path(self, payloads: Sequence[Any]) -> 'EdgeCursorMut':
        from .operations import append_path
        e = self._run(append_path, self._require(), payloads, from_edge=True)
        return self._at(EdgeCursor, e, Validity.VALID)

    def subdivide(self, payload: Any = None) -> 'EdgeCursorMut':
        """Split the edge with a new vertex; lands on the new second half."""
        _, e = self._call('subdivide_edge', self._require(), payload)
        return self._at(EdgeCursor, e, Validity.VALID)

    def set_payload(self, payload: Any) -> 'EdgeCursorMut':
        self._call('set_edge_payload', self._require(), payload)
        return self

    def remove(self, remove_isolated: bool = False) -> 'FaceCursorMut':
        """Delete the edge; lands on the surviving face (void if none)."""
        f = self._call('delete_edge', self._require(), remove_isolated)
        return self._at(FaceCursor, f)

    def loft(self, payloads: Sequence[Any], face_payload: Any = None) -> 'EdgeCursorMut':
        """Ring of quads along this face-less loop; lands on the new open ring."""
        from .operations import loft
        e = self._run(loft, self._require(), payloads, face_payload)
        return self._at(EdgeCursor, e, Validity.VALID)

    def extrude(self, transform, face_payload: Any = None) -> 'FaceCursorMut':
        """Loft a transformed copy of this loop and cap it; lands on the cap."""
        from .operations import extrude_boundary
        f = self._run(extrude_boundary, self._require(), _transform_arg(transform), face_payload)
        return self._at(FaceCursor, f, Validity.VALID)

    def fill_hole_apex(self, payload: Any = None, face_payload: Any = None) -> 'VertexCursorMut':
        """Fan of triangles from a new apex vertex over this loop; lands on the apex."""
        from .operations import fill_hole_apex
        v = self._run(fill_hole_apex, self._require(), payload, face_payload)
        return self._at(VertexCursor, v, Validity.VALID)


class FaceCursorMut(_Exclusive, FaceCursor):
    __slots__ = ('_token',)

    def __init__(self, mesh, ident=NONE, validity: Validity = Validity.MAYBE, token=None):
        super().__init__(mesh, ident, validity)
        self._token = token

    def set_payload(self, payload: Any) -> 'FaceCursorMut':
        self._call('set_face_payload', self._require(), payload)
        return self

    def remove(self) -> EdgeCursorMut:
        """Dissolve the face; lands on its former representative edge."""
        e = self._call('delete_face', self._require())
        return self._at(EdgeCursor, e, Validity.VALID)

    def extrude(self, transform, face_payload: Any = None) -> 'FaceCursorMut':
        from .operations import extrude_face
        f = self._run(extrude_face, self._require(), _transform_arg(transform), face_payload)
        return self._at(FaceCursor, f, Validity.VALID)

    def triangulate(self, algorithm=None, config=None) -> 'FaceCursorMut':
        """Triangulate in place; lands on the triangle that kept this face's id."""
        faces = self._call('triangulate_face', self._require(), algorithm, config)
        return self._at(FaceCursor, faces[0], Validity.VALID)


_MUT = {
    PositionKind.VERTEX: VertexCursorMut,
    PositionKind.EDGE: EdgeCursorMut,
    PositionKind.FACE: FaceCursorMut,
}
