"""Construction operations built from the mesh-core primitives.

None of these functions touch connectivity fields directly; each one is a
sequence of :class:`~meshwork.core.mesh.HalfEdgeMesh` primitive calls. They
validate their inputs before the first primitive runs, so a rejected call
leaves the mesh as it was.
"""
from __future__ import annotations

from typing import Any, Callable, List, Sequence, Tuple

import numpy as np

from .constants import NONE
from .errors import StructureError
from .face_vertex import is_halfedge_mesh
from .logging_utils import get_logger
from .payload import VertexPayload, as_payload

__all__ = [
    'as_transform',
    'insert_polygon',
    'append_path',
    'loft',
    'extrude_boundary',
    'extrude_face',
    'fill_hole',
    'fill_hole_apex',
    'transform_mesh',
    'translate_mesh',
    'rotate_mesh',
    'scale_mesh',
]

log = get_logger('meshwork.operations')


def as_transform(transform) -> Callable[[Any], Any]:
    """Normalise a transform argument to a payload -> payload callable.

    Accepts a callable, an offset vector (d,), or a linear (d, d) /
    homogeneous (d+1, d+1) matrix applied to ``VertexPayload`` positions.
    """
    if callable(transform):
        return transform
    arr = np.asarray(transform, dtype=float)
    if arr.ndim == 1:
        return lambda p: as_payload(p).translated(arr)
    if arr.ndim == 2 and arr.shape[0] == arr.shape[1]:
        return lambda p: as_payload(p).transformed(arr)
    raise ValueError(f"cannot interpret transform of shape {arr.shape}")


def _copy_transformed(payload, fn):
    if isinstance(payload, VertexPayload):
        return fn(payload)
    return fn(as_payload(payload))


def _require_halfedge(mesh, op: str) -> None:
    if not is_halfedge_mesh(mesh):
        raise TypeError(f"{op} needs a half-edge mesh, got {type(mesh).__name__}")


def _faceless_loop(mesh, edge: int, min_len: int = 3) -> List[int]:
    if mesh.face_of(edge) != NONE:
        raise StructureError(f"half-edge {edge} bounds face {mesh.face_of(edge)}; need a boundary loop")
    loop = list(mesh.loop_edges(edge))
    if len(loop) < min_len:
        raise StructureError(f"boundary loop has {len(loop)} edges, need at least {min_len}")
    return loop


def insert_polygon(mesh, payloads: Sequence[Any], face_payload: Any = None) -> Tuple[int, int]:
    """Add a new polygonal face over fresh vertices.

    ``payloads`` give the vertices in face order (raw coordinates are
    wrapped into VertexPayload). Returns ``(face, first_edge)`` where the
    first edge runs from the first to the second vertex.
    """
    _require_halfedge(mesh, 'insert_polygon')
    payloads = list(payloads)
    if len(payloads) < 3:
        raise StructureError(f"a polygon needs at least 3 vertices, got {len(payloads)}")
    first = mesh.insert_vertex(payloads[0])
    v = first
    first_edge = NONE
    for p in payloads[1:]:
        v, e = mesh.add_vertex_via_vertex(v, p)
        if first_edge == NONE:
            first_edge = e
    mesh.insert_edge(v, first)
    f = mesh.close_face(first_edge, face_payload)
    log.debug("polygon face %d with %d vertices", f, len(payloads))
    return f, first_edge


def append_path(mesh, start: int, payloads: Sequence[Any], from_edge: bool = False) -> int:
    """Grow a chain of new vertices from a vertex (or after a face-less half-edge).

    Returns the last new half-edge, which points at the last new vertex.
    """
    _require_halfedge(mesh, 'append_path')
    payloads = list(payloads)
    if not payloads:
        raise StructureError("append_path needs at least one payload")
    if from_edge:
        _, e = mesh.add_vertex_via_edge(start, payloads[0])
    else:
        _, e = mesh.add_vertex_via_vertex(start, payloads[0])
    for p in payloads[1:]:
        _, e = mesh.add_vertex_via_edge(e, p)
    return e


def loft(mesh, edge: int, payloads: Sequence[Any], face_payload: Any = None) -> int:
    """Build a ring of quads along the face-less loop through ``edge``.

    ``payloads[i]`` becomes the new vertex paired with the source of the
    i-th loop edge (starting at ``edge``). The quads sit on the face-less
    side of the loop, wind like it, and leave a new open ring. Returns the
    ring half-edge parallel to ``edge``, ready for another loft.
    """
    _require_halfedge(mesh, 'loft')
    loop = _faceless_loop(mesh, edge)
    n = len(loop)
    payloads = list(payloads)
    if len(payloads) != n:
        raise StructureError(f"loft needs {n} payloads for a loop of {n} edges, got {len(payloads)}")
    # spokes v_i -> w_i, each spliced right after the loop edge entering v_i
    spokes = [NONE] * n
    for i in range(n):
        _, spokes[i] = mesh.add_vertex_via_edge(loop[i - 1], payloads[i])
    ring = [NONE] * n
    for i in range(n):
        back = mesh.prev(mesh.twin(spokes[i]))
        h = mesh.insert_edge_after(spokes[(i + 1) % n], back)
        mesh.close_face(h, face_payload)
        ring[i] = mesh.twin(h)
    log.debug("lofted %d quads from half-edge %d", n, edge)
    return ring[0]


def extrude_boundary(mesh, edge: int, transform, face_payload: Any = None) -> int:
    """Loft a transformed copy of the face-less loop through ``edge`` and cap it.

    Returns the cap face, which winds like the original loop.
    """
    _require_halfedge(mesh, 'extrude_boundary')
    fn = as_transform(transform)
    loop = _faceless_loop(mesh, edge)
    payloads = [_copy_transformed(mesh.vertex_payload(mesh.source(e)), fn) for e in loop]
    ring = loft(mesh, edge, payloads, face_payload)
    return mesh.close_face(ring, face_payload)


def extrude_face(mesh, face: int, transform, face_payload: Any = None) -> int:
    """Replace a face by a prism: side quads plus a transformed cap.

    The cap takes over the face's payload unless ``face_payload`` is given.
    Returns the cap face id.
    """
    _require_halfedge(mesh, 'extrude_face')
    fn = as_transform(transform)
    payload = mesh.face_payload(face) if face_payload is None else face_payload
    # transform first so a bad transform fails before the face is removed
    ids = list(mesh.face_vertices(face))
    new_payloads = [_copy_transformed(mesh.vertex_payload(v), fn) for v in ids]
    edge = mesh.delete_face(face)
    ring = loft(mesh, edge, new_payloads, payload)
    return mesh.close_face(ring, payload)


def fill_hole(mesh, edge: int, face_payload: Any = None) -> int:
    """Close the face-less loop through ``edge`` with a single face."""
    _require_halfedge(mesh, 'fill_hole')
    _faceless_loop(mesh, edge)
    return mesh.close_face(edge, face_payload)


def fill_hole_apex(mesh, edge: int, payload: Any = None, face_payload: Any = None) -> int:
    """Fill the face-less loop through ``edge`` with a triangle fan around a new vertex.

    Returns the apex vertex.
    """
    _require_halfedge(mesh, 'fill_hole_apex')
    loop = _faceless_loop(mesh, edge)
    n = len(loop)
    apex, spoke = mesh.add_vertex_via_edge(loop[-1], payload)
    back = mesh.twin(spoke)  # apex -> v_0
    for i in range(1, n):
        h = mesh.insert_edge_after(loop[i - 1], mesh.prev(back))
        mesh.close_face(h, face_payload)
        back = mesh.twin(h)  # apex -> v_i
    mesh.close_face(back, face_payload)
    log.debug("apex %d filled a loop of %d edges", apex, n)
    return apex


# ----------------------------------------------------------------------
# Whole-mesh transforms
# ----------------------------------------------------------------------
def transform_mesh(mesh, transform) -> int:
    """Apply ``transform`` (see :func:`as_transform`) to every vertex payload.

    Vertices without a payload are skipped. All new payloads are computed
    before the first one is stored, so a transform that fails on some vertex
    leaves the mesh untouched. Returns the number of vertices moved.
    """
    _require_halfedge(mesh, 'transform_mesh')
    fn = as_transform(transform)
    updates = [(v, _copy_transformed(mesh.vertex_payload(v), fn))
               for v in mesh.vertex_ids() if mesh.vertex_payload(v) is not None]
    for v, payload in updates:
        mesh.set_vertex_payload(v, payload)
    log.debug("transformed %d vertex payloads", len(updates))
    return len(updates)


def translate_mesh(mesh, offset) -> int:
    off = np.asarray(offset, dtype=float).reshape(-1)
    return transform_mesh(mesh, lambda p: as_payload(p).translated(off))


def _rotation_matrix(rotation, d: int) -> np.ndarray:
    if hasattr(rotation, 'as_matrix'):  # scipy.spatial.transform.Rotation
        m = np.asarray(rotation.as_matrix(), dtype=float)
    elif np.ndim(rotation) == 0:
        # angle in radians about the z axis
        c, s = np.cos(float(rotation)), np.sin(float(rotation))
        m = np.eye(d)
        m[:2, :2] = [[c, -s], [s, c]]
    else:
        m = np.asarray(rotation, dtype=float)
    if m.shape != (d, d):
        raise ValueError(f"rotation of shape {m.shape} does not fit a {d}D position")
    return m


def _linear_about(linear_for, center) -> Callable[[Any], Any]:
    """Payload callable applying the (d, d) matrix ``linear_for(d)`` about ``center``."""
    def apply(payload):
        p = as_payload(payload)
        d = p.dim
        lin = linear_for(d)
        m = np.eye(d + 1)
        m[:d, :d] = lin
        if center is not None:
            c = np.asarray(center, dtype=float).reshape(-1)
            if c.shape[0] != d:
                raise ValueError(f"center has {c.shape[0]} components, position has {d}")
            m[:d, d] = c - lin @ c
        return p.transformed(m)
    return apply


def rotate_mesh(mesh, rotation, center=None) -> int:
    """Rotate every vertex about ``center`` (the origin by default).

    ``rotation`` is an angle in radians about the z axis, a (d, d) matrix,
    or a ``scipy.spatial.transform.Rotation`` for 3D meshes. Normals rotate
    along.
    """
    return transform_mesh(mesh, _linear_about(lambda d: _rotation_matrix(rotation, d), center))


def scale_mesh(mesh, factor, center=None) -> int:
    """Scale every vertex about ``center`` by a scalar or per-axis ``factor``."""
    factors = np.asarray(factor, dtype=float).reshape(-1)
    if np.any(factors == 0.0):
        raise ValueError("scale factors must be non-zero")

    def linear(d):
        if factors.shape[0] not in (1, d):
            raise ValueError(f"{factors.shape[0]} scale factors for a {d}D position")
        return np.diag(np.broadcast_to(factors, (d,)))
    return transform_mesh(mesh, _linear_about(linear, center))
