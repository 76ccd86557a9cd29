"""Half-edge mesh core.

Vertices, half-edges and faces live in three arenas (plain lists indexed by
integer id). References between records are ids, ``NONE`` (-1) marks an
absent reference, and a deleted record keeps its slot with ``id == NONE``
so ids are never reused and a stale id fails loudly instead of reading
recycled data.

Conventions
-----------
* ``next(e)`` continues around the loop left of ``e`` (starts at ``target(e)``).
* ``prev(e)`` is the loop predecessor (ends at ``source(e)``).
* ``twin(e)`` runs the opposite way along the same undirected edge.
* Face loops wind counter-clockwise around the face normal. A half-edge with
  ``face == NONE`` lies on a boundary loop.

All relinking happens inside the mutating methods of :class:`HalfEdgeMesh`;
nothing else in the package writes connectivity fields.
"""
from __future__ import annotations

import copy
import functools
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from .config import MeshConfig, TriangulationConfig
from .constants import NONE
from .errors import BorrowError, DeletedElementError, StructureError, TriangulationError
from .geometry import project_to_plane
from .logging_utils import get_logger
from .payload import as_payload, position_of
from .stats import StatsRegistry

__all__ = ['HalfEdgeMesh', 'VertexRecord', 'HalfEdgeRecord', 'FaceRecord', 'WriteToken']


@dataclass(slots=True)
class VertexRecord:
    id: int
    edge: int = NONE
    payload: Any = None


@dataclass(slots=True)
class HalfEdgeRecord:
    id: int
    origin: int
    twin: int
    next: int = NONE
    prev: int = NONE
    face: int = NONE
    payload: Any = None


@dataclass(slots=True)
class FaceRecord:
    id: int
    edge: int
    payload: Any = None


class WriteToken:
    """Exclusive borrow of a mesh held by the live mutable cursor."""

    __slots__ = ('mesh', 'active', 'in_call')

    def __init__(self, mesh: 'HalfEdgeMesh'):
        self.mesh = mesh
        self.active = True
        self.in_call = False

    @contextmanager
    def calling(self):
        if not self.active or self.mesh._write_token is not self:
            raise BorrowError("write token was released; acquire a new mutable cursor")
        outer = self.in_call
        self.in_call = True
        try:
            yield self
        finally:
            self.in_call = outer


def _mutator(fn):
    """Borrow check, stats and optional invariant check around a primitive."""
    name = fn.__name__

    @functools.wraps(fn)
    def wrapper(self, *args, **kwargs):
        token = self._write_token
        if token is not None and not token.in_call:
            raise BorrowError(f"{name}: mesh is exclusively borrowed by a live mutable cursor")
        nested = self._depth > 0
        self._depth += 1
        try:
            if nested:
                result = fn(self, *args, **kwargs)
            else:
                with self.stats.track(name):
                    result = fn(self, *args, **kwargs)
        finally:
            self._depth -= 1
        if not nested and self.config.check_after_mutation:
            self.check()
        return result
    return wrapper


class HalfEdgeMesh:
    """Arena-backed half-edge mesh of an open, possibly non-manifold surface."""

    IS_HALFEDGE = True

    def __init__(self, config: Optional[MeshConfig] = None):
        self.config = config or MeshConfig()
        self._vertices: List[VertexRecord] = []
        self._halfedges: List[HalfEdgeRecord] = []
        self._faces: List[FaceRecord] = []
        self._live = [0, 0, 0]  # vertices, half-edges, faces
        self._write_token: Optional[WriteToken] = None
        self._depth = 0
        self.logger = get_logger('meshwork.mesh')
        self.stats = StatsRegistry()

    def __repr__(self) -> str:
        return (f"{type(self).__name__}(vertices={self.num_vertices()}, "
                f"edges={self.num_edges()}, faces={self.num_faces()})")

    # ------------------------------------------------------------------
    # Record access
    # ------------------------------------------------------------------
    def _v(self, v: int) -> VertexRecord:
        if 0 <= v < len(self._vertices):
            rec = self._vertices[v]
            if rec.id != NONE:
                return rec
        raise DeletedElementError('vertex', v)

    def _e(self, e: int) -> HalfEdgeRecord:
        if 0 <= e < len(self._halfedges):
            rec = self._halfedges[e]
            if rec.id != NONE:
                return rec
        raise DeletedElementError('half-edge', e)

    def _f(self, f: int) -> FaceRecord:
        if 0 <= f < len(self._faces):
            rec = self._faces[f]
            if rec.id != NONE:
                return rec
        raise DeletedElementError('face', f)

    def has_vertex(self, v: int) -> bool:
        return 0 <= v < len(self._vertices) and self._vertices[v].id != NONE

    def has_edge(self, e: int) -> bool:
        return 0 <= e < len(self._halfedges) and self._halfedges[e].id != NONE

    def has_face(self, f: int) -> bool:
        return 0 <= f < len(self._faces) and self._faces[f].id != NONE

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    def next(self, e: int) -> int:
        return self._e(e).next

    def prev(self, e: int) -> int:
        return self._e(e).prev

    def twin(self, e: int) -> int:
        return self._e(e).twin

    def source(self, e: int) -> int:
        return self._e(e).origin

    origin = source

    def target(self, e: int) -> int:
        return self._halfedges[self._e(e).twin].origin

    def face_of(self, e: int) -> int:
        return self._e(e).face

    def edge_of_vertex(self, v: int) -> int:
        return self._v(v).edge

    def edge_of_face(self, f: int) -> int:
        return self._f(f).edge

    def vertex_payload(self, v: int) -> Any:
        return self._v(v).payload

    def set_vertex_payload(self, v: int, payload: Any) -> None:
        self._v(v).payload = as_payload(payload)

    def edge_payload(self, e: int) -> Any:
        return self._e(e).payload

    def set_edge_payload(self, e: int, payload: Any) -> None:
        self._e(e).payload = payload

    def face_payload(self, f: int) -> Any:
        return self._f(f).payload

    def set_face_payload(self, f: int, payload: Any) -> None:
        self._f(f).payload = payload

    def position(self, v: int) -> np.ndarray:
        return position_of(self._v(v).payload)

    def find_edge(self, source: int, target: int) -> int:
        """Half-edge from source to target, NONE if the vertices are not adjacent."""
        for e in self.edges_out(source):
            if self._halfedges[self._halfedges[e].twin].origin == target:
                return e
        return NONE

    # ------------------------------------------------------------------
    # Counts and id iteration
    # ------------------------------------------------------------------
    def num_vertices(self) -> int:
        return self._live[0]

    def num_halfedges(self) -> int:
        return self._live[1]

    def num_edges(self) -> int:
        return self._live[1] // 2

    def num_faces(self) -> int:
        return self._live[2]

    def vertex_ids(self) -> Iterator[int]:
        return (r.id for r in self._vertices if r.id != NONE)

    def halfedge_ids(self) -> Iterator[int]:
        return (r.id for r in self._halfedges if r.id != NONE)

    def edge_ids(self) -> Iterator[int]:
        """One half-edge per undirected edge, the one leaving the lower vertex id."""
        for r in self._halfedges:
            if r.id == NONE:
                continue
            t = self._halfedges[r.twin]
            if (r.origin, r.id) < (t.origin, t.id):
                yield r.id

    def face_ids(self) -> Iterator[int]:
        return (r.id for r in self._faces if r.id != NONE)

    # ------------------------------------------------------------------
    # Neighborhood sequences (lazy, finite, restartable)
    # ------------------------------------------------------------------
    def _bound(self) -> int:
        return len(self._halfedges) + 1

    def edges_out(self, v: int) -> Iterator[int]:
        """Outgoing half-edges of v, starting at its representative edge."""
        start = self._v(v).edge
        if start == NONE:
            return
        he = self._halfedges
        e = start
        for _ in range(self._bound()):
            yield e
            e = he[he[e].twin].next
            if e == start:
                return
        raise StructureError(f"vertex fan of {v} does not close")

    def edges_in(self, v: int) -> Iterator[int]:
        for e in self.edges_out(v):
            yield self._halfedges[e].twin

    def neighbors(self, v: int) -> Iterator[int]:
        for e in self.edges_out(v):
            yield self._halfedges[self._halfedges[e].twin].origin

    def faces_around(self, v: int) -> Iterator[int]:
        seen = NONE
        for e in self.edges_out(v):
            f = self._halfedges[e].face
            if f != NONE and f != seen:
                seen = f
                yield f

    def degree(self, v: int) -> int:
        return sum(1 for _ in self.edges_out(v))

    def loop_edges(self, e: int) -> Iterator[int]:
        """The cyclic next-chain through e, starting at e."""
        self._e(e)
        he = self._halfedges
        cur = e
        for _ in range(self._bound()):
            yield cur
            cur = he[cur].next
            if cur == e:
                return
        raise StructureError(f"next-chain from half-edge {e} does not close")

    def face_edges(self, f: int) -> Iterator[int]:
        return self.loop_edges(self._f(f).edge)

    def face_vertices(self, f: int) -> Iterator[int]:
        for e in self.face_edges(f):
            yield self._halfedges[e].origin

    def face_size(self, f: int) -> int:
        return sum(1 for _ in self.face_edges(f))

    def boundary_loops(self) -> Iterator[List[int]]:
        """Face-less loops, each reported once from its smallest half-edge id."""
        for rec in self._halfedges:
            if rec.id == NONE or rec.face != NONE:
                continue
            if min(self.loop_edges(rec.id)) == rec.id:
                yield list(self.loop_edges(rec.id))

    def is_boundary_edge(self, e: int) -> bool:
        rec = self._e(e)
        return rec.face == NONE or self._halfedges[rec.twin].face == NONE

    def is_boundary_vertex(self, v: int) -> bool:
        if self._v(v).edge == NONE:
            return True
        return any(self._halfedges[e].face == NONE for e in self.edges_out(v))

    def is_isolated(self, v: int) -> bool:
        return self._v(v).edge == NONE

    # ------------------------------------------------------------------
    # Topology summaries
    # ------------------------------------------------------------------
    def euler_characteristic(self) -> int:
        return self.num_vertices() - self.num_edges() + self.num_faces()

    def is_closed(self) -> bool:
        return all(r.face != NONE for r in self._halfedges if r.id != NONE)

    def is_manifold(self) -> bool:
        """Vertex-manifold test: every vertex fan has at most one boundary wedge."""
        for v in self.vertex_ids():
            wedges = sum(1 for e in self.edges_out(v) if self._halfedges[e].face == NONE)
            if wedges > 1:
                return False
        return True

    def check(self) -> None:
        """Verify all connectivity invariants; raise StructureError on the first violation."""
        he = self._halfedges
        for r in he:
            if r.id == NONE:
                continue
            e = r.id
            for name, ref in (('twin', r.twin), ('next', r.next), ('prev', r.prev)):
                if not self.has_edge(ref):
                    raise StructureError(f"half-edge {e}: {name} {ref} is not a live half-edge")
            if r.twin == e or he[r.twin].twin != e:
                raise StructureError(f"half-edge {e}: twin symmetry broken")
            if he[r.next].prev != e or he[r.prev].next != e:
                raise StructureError(f"half-edge {e}: next/prev are not inverse")
            if he[r.next].origin != he[r.twin].origin:
                raise StructureError(f"half-edge {e}: next does not start at target")
            if not self.has_vertex(r.origin):
                raise StructureError(f"half-edge {e}: origin {r.origin} is not a live vertex")
            if r.face != NONE and not self.has_face(r.face):
                raise StructureError(f"half-edge {e}: face {r.face} is not a live face")
            if he[r.next].face != r.face:
                raise StructureError(f"half-edge {e}: loop mixes faces {r.face} and {he[r.next].face}")
        for v in self._vertices:
            if v.id == NONE or v.edge == NONE:
                continue
            if not self.has_edge(v.edge) or he[v.edge].origin != v.id:
                raise StructureError(f"vertex {v.id}: representative edge {v.edge} does not leave it")
        for f in self._faces:
            if f.id == NONE:
                continue
            if not self.has_edge(f.edge) or he[f.edge].face != f.id:
                raise StructureError(f"face {f.id}: representative edge {f.edge} does not bound it")
            for e in self.loop_edges(f.edge):
                if he[e].face != f.id:
                    raise StructureError(f"face {f.id}: loop edge {e} reports face {he[e].face}")

    # ------------------------------------------------------------------
    # Borrowing (used by the cursor layer)
    # ------------------------------------------------------------------
    def _acquire_write(self) -> WriteToken:
        token = self._write_token
        if token is not None and token.active:
            raise BorrowError("mesh already has a live mutable cursor")
        token = WriteToken(self)
        self._write_token = token
        return token

    def _release_write(self, token: WriteToken) -> None:
        token.active = False
        if self._write_token is token:
            self._write_token = None

    @property
    def is_borrowed(self) -> bool:
        return self._write_token is not None

    def release_borrow(self) -> bool:
        """End the exclusive borrow, whichever cursor holds it.

        Cursors still carrying the token go stale and raise BorrowError on
        their next mutation. Returns False when the mesh was not borrowed.
        """
        token = self._write_token
        if token is None:
            return False
        if token.in_call:
            raise BorrowError("cannot release the borrow while a cursor operation is running")
        self._release_write(token)
        self.logger.debug("write borrow released by the mesh owner")
        return True

    # ------------------------------------------------------------------
    # Insertion primitives
    # ------------------------------------------------------------------
    def _new_vertex(self, payload) -> int:
        vid = len(self._vertices)
        self._vertices.append(VertexRecord(vid, NONE, as_payload(payload)))
        self._live[0] += 1
        return vid

    def _new_pair(self, v: int, w: int, payload=None) -> Tuple[int, int]:
        h = len(self._halfedges)
        t = h + 1
        self._halfedges.append(HalfEdgeRecord(h, v, t, payload=payload))
        self._halfedges.append(HalfEdgeRecord(t, w, h, payload=copy.copy(payload)))
        self._live[1] += 2
        return h, t

    def _new_face(self, edge: int, payload) -> int:
        fid = len(self._faces)
        self._faces.append(FaceRecord(fid, edge, payload))
        self._live[2] += 1
        return fid

    def _boundary_in_edge(self, v: int) -> int:
        """Face-less half-edge ending at v in its first free wedge; NONE if isolated."""
        if self._v(v).edge == NONE:
            return NONE
        for e in self.edges_out(v):
            if self._halfedges[e].face == NONE:
                return self._halfedges[e].prev
        raise StructureError(f"vertex {v} has no free boundary wedge to attach an edge")

    def _link_edge(self, v: int, w: int, in_v: int, in_w: int, payload=None) -> int:
        he = self._halfedges
        out_v = he[in_v].next if in_v != NONE else NONE
        out_w = he[in_w].next if in_w != NONE else NONE
        h, t = self._new_pair(v, w, payload)
        H = he[h]; T = he[t]
        H.prev = in_v if in_v != NONE else t
        H.next = out_w if in_w != NONE else t
        T.prev = in_w if in_w != NONE else h
        T.next = out_v if in_v != NONE else h
        if in_v != NONE:
            he[in_v].next = h
            he[out_v].prev = t
        if in_w != NONE:
            he[in_w].next = t
            he[out_w].prev = h
        # newest edge becomes the fan representative
        self._vertices[v].edge = h
        self._vertices[w].edge = t
        self.logger.debug("edge %d/%d: %d -> %d", h, t, v, w)
        return h

    @_mutator
    def insert_vertex(self, payload: Any = None) -> int:
        """Create an isolated vertex and return its id."""
        vid = self._new_vertex(payload)
        self.logger.debug("vertex %d", vid)
        return vid

    @_mutator
    def insert_edge(self, source: int, target: int, payload: Any = None) -> int:
        """Connect two vertices; returns the half-edge source -> target.

        Each endpoint's fan is split at its first free boundary wedge in
        most-recently-created-first order. Connecting two vertices of the
        same face-less loop splits it, connecting different loops merges them.
        """
        if source == target:
            raise StructureError(f"cannot connect vertex {source} to itself")
        in_v = self._boundary_in_edge(source)
        in_w = self._boundary_in_edge(target)
        return self._link_edge(source, target, in_v, in_w, payload)

    @_mutator
    def insert_edge_after(self, in_a: int, in_b: int, payload: Any = None) -> int:
        """Connect target(in_a) to target(in_b), splicing right after both edges.

        Both half-edges must be face-less. The new half-edge follows ``in_a``
        and its twin follows ``in_b``; this picks the wedge explicitly where
        :meth:`insert_edge` would pick the first free one.
        """
        a = self._e(in_a); b = self._e(in_b)
        if a.face != NONE or b.face != NONE:
            raise StructureError("edges can only be spliced into face-less loops")
        v = self._halfedges[a.twin].origin
        w = self._halfedges[b.twin].origin
        if v == w:
            raise StructureError(f"cannot connect vertex {v} to itself")
        return self._link_edge(v, w, in_a, in_b, payload)

    @_mutator
    def add_vertex_via_edge(self, in_edge: int, payload: Any = None,
                            edge_payload: Any = None) -> Tuple[int, int]:
        """Grow a dangling edge from target(in_edge) to a new vertex.

        Returns ``(vertex, half_edge)`` with the half-edge pointing to the new vertex.
        """
        rec = self._e(in_edge)
        if rec.face != NONE:
            raise StructureError(f"half-edge {in_edge} bounds face {rec.face}; need a face-less edge")
        v = self._halfedges[rec.twin].origin
        w = self._new_vertex(payload)
        return w, self._link_edge(v, w, in_edge, NONE, edge_payload)

    @_mutator
    def add_vertex_via_vertex(self, v: int, payload: Any = None,
                              edge_payload: Any = None) -> Tuple[int, int]:
        """Grow a dangling edge from v (isolated or not) to a new vertex."""
        in_v = self._boundary_in_edge(v)
        w = self._new_vertex(payload)
        return w, self._link_edge(v, w, in_v, NONE, edge_payload)

    @_mutator
    def close_face(self, loop_start: int, payload: Any = None) -> int:
        """Turn the face-less loop through ``loop_start`` into a face."""
        self._e(loop_start)
        he = self._halfedges
        edges = []
        e = loop_start
        limit = len(he)
        while True:
            if he[e].face != NONE:
                raise StructureError(f"half-edge {e} already bounds face {he[e].face}")
            edges.append(e)
            e = he[e].next
            if e == loop_start:
                break
            if len(edges) > limit:
                raise StructureError(f"chain starting at half-edge {loop_start} is not closed")
        if len(edges) < 3:
            raise StructureError(f"a face needs at least 3 edges, loop has {len(edges)}")
        fid = self._new_face(loop_start, payload)
        for e in edges:
            he[e].face = fid
        self.logger.debug("face %d closed over %d edges", fid, len(edges))
        return fid

    @_mutator
    def close_chain(self, chain: Sequence[int], payload: Any = None) -> int:
        """Close a face over an explicit chain, which must already be a whole loop."""
        chain = list(chain)
        if len(chain) < 3:
            raise StructureError(f"a face needs at least 3 edges, chain has {len(chain)}")
        for a, b in zip(chain, chain[1:] + chain[:1]):
            if self._e(a).next != b:
                raise StructureError(f"chain is not cyclic: next({a}) is {self._halfedges[a].next}, not {b}")
        if len(set(chain)) != len(chain) or len(chain) != sum(1 for _ in self.loop_edges(chain[0])):
            raise StructureError("chain does not cover its loop exactly once")
        return self.close_face(chain[0], payload)

    # ------------------------------------------------------------------
    # Deletion primitives
    # ------------------------------------------------------------------
    @_mutator
    def delete_face(self, f: int) -> int:
        """Dissolve a face into a boundary loop; returns the former representative edge."""
        rec = self._f(f)
        for e in list(self.face_edges(f)):
            self._halfedges[e].face = NONE
        edge = rec.edge
        rec.id = NONE; rec.edge = NONE; rec.payload = None
        self._live[2] -= 1
        self.logger.debug("face %d deleted", f)
        return edge

    def _kill_vertex(self, v: int) -> None:
        rec = self._vertices[v]
        rec.id = NONE; rec.edge = NONE; rec.payload = None
        self._live[0] -= 1

    @_mutator
    def delete_edge(self, e: int, remove_isolated: bool = False) -> int:
        """Remove the undirected edge of ``e``.

        * between two faces: the faces merge; the survivor is face(e).
        * on a boundary: the adjacent face is dissolved first.
        * a dangling spike inside a face: the spike is cut, the face stays.
        * a bridge with the same face on both sides: refused, since the face
          boundary would fall apart into two loops.

        Returns the surviving face id or NONE.
        """
        he = self._halfedges
        H = self._e(e)
        t = H.twin
        T = he[t]
        fh, ft = H.face, T.face
        spike = H.next == t or T.next == e
        if fh != NONE and fh == ft and not spike:
            raise StructureError(f"removing edge {e} would split the boundary of face {fh}")
        survivor = NONE
        if fh != NONE and ft != NONE and fh != ft:
            for x in list(self.face_edges(ft)):
                he[x].face = fh
            frec = self._faces[ft]
            frec.id = NONE; frec.edge = NONE; frec.payload = None
            self._live[2] -= 1
            survivor = fh
        elif fh != NONE and ft != NONE:
            survivor = fh
        elif fh != NONE:
            self.delete_face(fh)
        elif ft != NONE:
            self.delete_face(ft)

        v, w = H.origin, T.origin
        ph, nh, pt, nt = H.prev, H.next, T.prev, T.next
        if ph != t:
            he[ph].next = nt
            he[nt].prev = ph
        if nh != t:
            he[pt].next = nh
            he[nh].prev = pt
        vrec = self._vertices[v]; wrec = self._vertices[w]
        if vrec.edge == e:
            vrec.edge = nt if nt != e else NONE
        if wrec.edge == t:
            wrec.edge = nh if nh != t else NONE
        if survivor != NONE and self._faces[survivor].edge in (e, t):
            for cand in (ph, nh, pt, nt):
                if cand not in (e, t) and he[cand].face == survivor:
                    self._faces[survivor].edge = cand
                    break
        for x in (e, t):
            r = he[x]
            r.id = NONE; r.origin = NONE; r.twin = NONE
            r.next = NONE; r.prev = NONE; r.face = NONE; r.payload = None
        self._live[1] -= 2
        if remove_isolated:
            for x in {v, w}:
                if self._vertices[x].edge == NONE:
                    self._kill_vertex(x)
        self.logger.debug("edge %d/%d deleted (%d - %d)", e, t, v, w)
        return survivor

    def _snapshot(self):
        return ([replace(r) for r in self._vertices], [replace(r) for r in self._halfedges],
                [replace(r) for r in self._faces], list(self._live))

    def _restore(self, saved) -> None:
        self._vertices, self._halfedges, self._faces, self._live = saved

    @_mutator
    def delete_vertex(self, v: int) -> None:
        """Remove v with all incident edges; faces around it merge into one.

        All or nothing: if one incident edge cannot be removed (a face
        boundary would split into two loops) the arenas are restored to
        their state before the call and StructureError propagates. The
        restore point costs one shallow copy of every record.
        """
        rec = self._v(v)
        saved = self._snapshot()
        try:
            while rec.edge != NONE:
                self.delete_edge(rec.edge)
        except StructureError:
            self._restore(saved)
            self.logger.debug("vertex %d kept: an incident edge cannot be removed", v)
            raise
        self._kill_vertex(v)
        self.logger.debug("vertex %d deleted", v)

    @_mutator
    def subdivide_edge(self, e: int, payload: Any = None) -> Tuple[int, int]:
        """Insert a vertex m on the edge of e (v -> w).

        ``e`` becomes v -> m and a new half-edge m -> w follows it in the same
        loop; the twin side gains w -> m before the old twin. Faces on both
        sides keep their ids and grow by one edge. Returns ``(m, m -> w)``.
        """
        he = self._halfedges
        E = self._e(e)
        t = E.twin
        T = he[t]
        w = T.origin
        m = self._new_vertex(payload)
        x, y = self._new_pair(m, w, copy.copy(E.payload))
        X = he[x]; Y = he[y]
        ne, pt = E.next, T.prev
        X.face = E.face
        Y.face = T.face
        if ne == t:
            # dangling tip: e, x, y, t run consecutively around w
            X.prev = e; X.next = y
            Y.prev = x; Y.next = t
        else:
            X.prev = e; X.next = ne
            he[ne].prev = x
            Y.prev = pt; Y.next = t
            he[pt].next = y
        E.next = x
        T.prev = y
        T.origin = m
        self._vertices[m].edge = x
        if self._vertices[w].edge == t:
            self._vertices[w].edge = y
        self.logger.debug("edge %d subdivided by vertex %d", e, m)
        return m, x

    # ------------------------------------------------------------------
    # Face splitting (triangulation splice)
    # ------------------------------------------------------------------
    def _validate_split(self, loop: List[int], triangles) -> Tuple[List[Tuple[int, int, int]], List[Tuple[int, int]]]:
        n = len(loop)
        tris = [tuple(int(i) for i in t) for t in triangles]
        if len(tris) != n - 2:
            raise StructureError(f"{len(tris)} triangles cannot tile a loop of {n} edges")
        verts = [self._halfedges[e].origin for e in loop]
        directed: Dict[Tuple[int, int], int] = {}
        for t in tris:
            if len(t) != 3 or len(set(t)) != 3 or any(not 0 <= i < n for i in t):
                raise StructureError(f"invalid triangle {t} for a loop of {n} edges")
            for a, b in ((t[0], t[1]), (t[1], t[2]), (t[2], t[0])):
                directed[(a, b)] = directed.get((a, b), 0) + 1
        diagonals = []
        for (a, b), count in directed.items():
            if count != 1:
                raise StructureError(f"directed edge ({a}, {b}) used {count} times")
            if b == (a + 1) % n:
                continue
            if a == (b + 1) % n:
                raise StructureError(f"triangle edge ({a}, {b}) runs against the face loop")
            if directed.get((b, a)) != 1:
                raise StructureError(f"edge ({a}, {b}) is neither a boundary edge nor a shared diagonal")
            if a < b:
                if verts[a] == verts[b]:
                    raise StructureError(f"diagonal ({a}, {b}) would join vertex {verts[a]} to itself")
                diagonals.append((a, b))
        for i in range(n):
            if (i, (i + 1) % n) not in directed:
                raise StructureError(f"boundary edge {i} is not covered")
        return tris, diagonals

    @_mutator
    def split_face(self, f: int, triangles: Sequence[Sequence[int]]) -> List[int]:
        """Replace face f by triangles over its loop.

        ``triangles`` index positions along the loop starting at the face's
        representative edge (position i is ``source`` of the i-th loop edge)
        and must wind like the face. Everything is validated before the mesh
        is touched. The first triangle keeps id f; the others get new faces
        carrying a copy of f's payload. Returns the face ids in triangle order.
        """
        frec = self._f(f)
        loop = list(self.face_edges(f))
        n = len(loop)
        tris, diagonals = self._validate_split(loop, triangles)
        if n == 3:
            return [f]
        he = self._halfedges
        verts = [he[e].origin for e in loop]
        dmap: Dict[Tuple[int, int], int] = {(i, (i + 1) % n): loop[i] for i in range(n)}
        for a, b in diagonals:
            h, t = self._new_pair(verts[a], verts[b])
            dmap[(a, b)] = h
            dmap[(b, a)] = t
        faces = []
        for k, (a, b, c) in enumerate(tris):
            e1, e2, e3 = dmap[(a, b)], dmap[(b, c)], dmap[(c, a)]
            fid = f if k == 0 else self._new_face(e1, copy.copy(frec.payload))
            if k == 0:
                frec.edge = e1
            for x, nx in ((e1, e2), (e2, e3), (e3, e1)):
                he[x].next = nx
                he[nx].prev = x
                he[x].face = fid
            faces.append(fid)
        self.logger.debug("face %d split into %d triangles", f, len(faces))
        return faces

    # ------------------------------------------------------------------
    # Geometry and triangulation
    # ------------------------------------------------------------------
    def face_polygon(self, f: int) -> Tuple[List[int], np.ndarray]:
        """Vertex ids of f and their 2D coordinates (projected if 3D)."""
        ids = list(self.face_vertices(f))
        return ids, project_to_plane([self.position(v) for v in ids])

    def _triangulation_config(self, algorithm, config: Optional[TriangulationConfig]) -> TriangulationConfig:
        cfg = config or self.config.triangulation
        return cfg.with_algorithm(algorithm) if algorithm is not None else cfg

    def triangulate_face(self, f: int, algorithm=None,
                         config: Optional[TriangulationConfig] = None) -> List[int]:
        """Triangulate face f in place; returns the ids of the resulting faces.

        On failure the face is left untouched and TriangulationError raised.
        """
        from .tessellate import triangulate_polygon

        cfg = self._triangulation_config(algorithm, config)
        ids, coords = self.face_polygon(f)
        tris = triangulate_polygon(coords, list(range(len(ids))), config=cfg)
        try:
            return self.split_face(f, tris)
        except StructureError as exc:
            self.logger.warning("face %d: %s output cannot be spliced: %s", f, cfg.algorithm.value, exc)
            raise TriangulationError(f"cannot splice triangulation of face {f}: {exc}") from exc

    def triangulate_faces(self, algorithm=None,
                          config: Optional[TriangulationConfig] = None) -> np.ndarray:
        """Index buffer (m, 3) of vertex ids covering every face; the mesh is not modified."""
        from .tessellate import triangulate_polygon

        cfg = self._triangulation_config(algorithm, config)
        out = []
        for f in self.face_ids():
            ids, coords = self.face_polygon(f)
            if len(ids) == 3:
                out.append(tuple(ids))
                continue
            for a, b, c in triangulate_polygon(coords, list(range(len(ids))), config=cfg):
                out.append((ids[a], ids[b], ids[c]))
        return np.asarray(out, dtype=int).reshape(-1, 3)

    # ------------------------------------------------------------------
    # Cursors
    # ------------------------------------------------------------------
    def vertex(self, v: int = NONE):
        from .cursor import VertexCursor
        return VertexCursor(self, v)

    def edge(self, e: int = NONE):
        from .cursor import EdgeCursor
        return EdgeCursor(self, e)

    def face(self, f: int = NONE):
        from .cursor import FaceCursor
        return FaceCursor(self, f)

    def vertex_mut(self, v: int = NONE):
        from .cursor import VertexCursorMut
        return VertexCursorMut.acquire(self, v)

    def edge_mut(self, e: int = NONE):
        from .cursor import EdgeCursorMut
        return EdgeCursorMut.acquire(self, e)

    def face_mut(self, f: int = NONE):
        from .cursor import FaceCursorMut
        return FaceCursorMut.acquire(self, f)

    @contextmanager
    def edit(self, v: int = NONE):
        """Scoped exclusive cursor; the borrow ends when the block exits."""
        cur = self.vertex_mut(v)
        token = cur._token
        try:
            yield cur
        finally:
            self._release_write(token)
