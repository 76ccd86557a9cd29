"""Bare face-vertex mesh: positions plus polygon index lists.

It carries no connectivity beyond the faces themselves, so it does not
advertise the half-edge capability (``IS_HALFEDGE = False``) and only the
polygon-level algorithms apply to it.
"""
from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

import numpy as np

from .config import TriangulationConfig
from .errors import DeletedElementError, StructureError
from .geometry import project_to_plane
from .logging_utils import get_logger

__all__ = ['FaceVertexMesh', 'is_halfedge_mesh']

log = get_logger('meshwork.face_vertex')


def is_halfedge_mesh(mesh) -> bool:
    """True when ``mesh`` satisfies the half-edge connectivity contract."""
    return bool(getattr(mesh, 'IS_HALFEDGE', False))


class FaceVertexMesh:
    IS_HALFEDGE = False

    def __init__(self, points=None, faces: Optional[Sequence[Sequence[int]]] = None):
        self._points: List[np.ndarray] = []
        self._faces: List[Tuple[int, ...]] = []
        for p in (points if points is not None else []):
            self.add_vertex(p)
        for f in (faces or []):
            self.add_face(f)

    @classmethod
    def from_halfedge(cls, mesh) -> 'FaceVertexMesh':
        """Snapshot positions and faces of a half-edge mesh (ids are renumbered)."""
        remap = {}
        out = cls()
        for v in mesh.vertex_ids():
            remap[v] = out.add_vertex(mesh.position(v))
        for f in mesh.face_ids():
            out.add_face([remap[v] for v in mesh.face_vertices(f)])
        return out

    # counts / access
    def num_vertices(self) -> int:
        return len(self._points)

    def num_faces(self) -> int:
        return len(self._faces)

    def position(self, v: int) -> np.ndarray:
        if not 0 <= v < len(self._points):
            raise DeletedElementError('vertex', v)
        return self._points[v]

    def face_vertices(self, f: int) -> Tuple[int, ...]:
        if not 0 <= f < len(self._faces):
            raise DeletedElementError('face', f)
        return self._faces[f]

    def face_ids(self):
        return range(len(self._faces))

    def points(self) -> np.ndarray:
        return np.asarray(self._points, dtype=float)

    # construction
    def add_vertex(self, position) -> int:
        p = np.asarray(position, dtype=float).reshape(-1)
        if p.size not in (2, 3):
            raise ValueError(f"position must have 2 or 3 components, got {p.size}")
        self._points.append(p)
        return len(self._points) - 1

    def add_face(self, vertices: Sequence[int]) -> int:
        vs = tuple(int(v) for v in vertices)
        if len(vs) < 3:
            raise StructureError(f"a face needs at least 3 vertices, got {len(vs)}")
        if len(set(vs)) != len(vs):
            raise StructureError(f"face {vs} repeats a vertex")
        for v in vs:
            self.position(v)
        self._faces.append(vs)
        return len(self._faces) - 1

    # triangulation
    def face_polygon(self, f: int) -> Tuple[List[int], np.ndarray]:
        ids = list(self.face_vertices(f))
        return ids, project_to_plane([self._points[v] for v in ids])

    def triangulate_faces(self, algorithm=None, config: Optional[TriangulationConfig] = None) -> np.ndarray:
        """Index buffer (m, 3) covering every face."""
        from .tessellate import triangulate_polygon

        cfg = config or TriangulationConfig()
        if algorithm is not None:
            cfg = cfg.with_algorithm(algorithm)
        out = []
        for f in self.face_ids():
            ids, coords = self.face_polygon(f)
            for a, b, c in triangulate_polygon(coords, list(range(len(ids))), config=cfg):
                out.append((ids[a], ids[b], ids[c]))
        log.debug("triangulated %d faces into %d triangles", self.num_faces(), len(out))
        return np.asarray(out, dtype=int).reshape(-1, 3)

    def __repr__(self):
        return f"FaceVertexMesh(vertices={self.num_vertices()}, faces={self.num_faces()})"
