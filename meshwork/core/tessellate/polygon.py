"""Polygon contract shared by every triangulation algorithm.

Input: ``points`` (anything indexable by the entries of ``poly_indices``
yielding at least two coordinates) and ``poly_indices``, the boundary in
order. Output: a list of index triples taken from ``poly_indices``, wound
like the input boundary.

Algorithms work on a local copy (:class:`Polygon2D`) whose vertices are
re-ordered counter-clockwise and numbered 0..n-1; :meth:`Polygon2D.emit`
maps their local counter-clockwise triangles back.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

import numpy as np

from ..constants import EPS_AREA, EPS_REL_AREA
from ..errors import PreconditionError
from ..geometry import (is_convex_polygon, polygon_has_self_intersections, polygon_scale,
                        polygon_signed_area, triangle_areas)

Triangle = Tuple[int, int, int]

__all__ = ['Triangle', 'Polygon2D', 'as_polygon', 'require_area', 'require_simple', 'require_convex',
           'verify_triangulation']


@dataclass
class Polygon2D:
    pts: np.ndarray        # (n, 2) counter-clockwise local coordinates
    indices: List[int]     # caller indices in caller order
    ccw: bool              # caller order was counter-clockwise
    area: float            # magnitude of the signed area
    scale: float           # bounding-box diagonal
    extent: float          # summed absolute fan areas, never cancels

    @property
    def n(self) -> int:
        return self.pts.shape[0]

    def caller_position(self, local: int) -> int:
        return local if self.ccw else self.n - 1 - local

    def emit(self, local_tris: Iterable[Sequence[int]]) -> List[Triangle]:
        out = []
        for a, b, c in local_tris:
            ia = self.indices[self.caller_position(a)]
            ib = self.indices[self.caller_position(b)]
            ic = self.indices[self.caller_position(c)]
            out.append((ia, ib, ic) if self.ccw else (ia, ic, ib))
        return out

    def sub(self, local: Sequence[int]) -> np.ndarray:
        return self.pts[np.asarray(local, dtype=int)]


def _fan_extent(pts: np.ndarray) -> float:
    d = pts[1:] - pts[0]
    cross = d[:-1, 0] * d[1:, 1] - d[:-1, 1] * d[1:, 0]
    return 0.5 * float(np.sum(np.abs(cross)))


def _lowest_turn(pts: np.ndarray) -> float:
    """Turn at the lowest-leftmost vertex; its sign is the winding of any simple polygon."""
    i = int(np.lexsort((pts[:, 0], pts[:, 1]))[0])
    a, b, c = pts[i - 1], pts[i], pts[(i + 1) % pts.shape[0]]
    return float((b[0] - a[0]) * (c[1] - a[1]) - (b[1] - a[1]) * (c[0] - a[0]))


def as_polygon(points, poly_indices) -> Polygon2D:
    """Build the local counter-clockwise view of a caller polygon.

    The winding comes from the signed area. When that cancels (a
    self-crossing boundary such as a bowtie) the turn at the lowest vertex
    decides instead.
    """
    idx = [int(i) for i in poly_indices]
    if len(idx) < 3:
        raise PreconditionError(f"a polygon needs at least 3 vertices, got {len(idx)}")
    pts = np.asarray([np.asarray(points[i], dtype=float)[:2] for i in idx], dtype=float)
    scale = polygon_scale(pts)
    area = polygon_signed_area(pts)
    if abs(area) > EPS_AREA * scale * scale:
        ccw = area > 0.0
    else:
        ccw = _lowest_turn(pts) >= 0.0
    if not ccw:
        pts = pts[::-1].copy()
    return Polygon2D(pts, idx, ccw, abs(area), scale, _fan_extent(pts))


def verify_triangulation(points, poly_indices, tris, rel_tol: float = EPS_REL_AREA) -> List[str]:
    """Return a list of problems with ``tris`` as a triangulation of the polygon.

    Checks: triangle count n-2, indices drawn from the polygon, no
    degenerate triangle, winding like the boundary, every boundary edge used
    exactly once, every diagonal shared by exactly two triangles, and total
    area equal to the polygon area. An empty list means the triangulation
    is valid.
    """
    poly = as_polygon(points, poly_indices)
    n = poly.n
    problems = []
    tris = [tuple(int(i) for i in t) for t in tris]
    if len(tris) != n - 2:
        problems.append(f"expected {n - 2} triangles, got {len(tris)}")
    # caller id -> boundary position
    pos = {}
    for k, i in enumerate(poly.indices):
        pos.setdefault(i, []).append(k)
    if any(len(v) > 1 for v in pos.values()):
        problems.append("polygon repeats a vertex; edge bookkeeping skipped")
        return problems
    coords = np.asarray([np.asarray(points[i], dtype=float)[:2] for i in poly.indices])
    local = []
    for t in tris:
        if any(i not in pos for i in t):
            problems.append(f"triangle {t} uses a vertex outside the polygon")
            return problems
        local.append(tuple(pos[i][0] for i in t))
    areas = triangle_areas(coords, local)
    sign = 1.0 if poly.ccw else -1.0
    for t, a in zip(tris, areas):
        if abs(a) <= EPS_AREA * poly.scale * poly.scale:
            problems.append(f"triangle {t} is degenerate (area {a:.3e})")
        elif a * sign < 0:
            problems.append(f"triangle {t} winds against the boundary")
    directed = {}
    for a, b, c in local:
        for u, w in ((a, b), (b, c), (c, a)):
            directed[(u, w)] = directed.get((u, w), 0) + 1
    for i in range(n):
        j = (i + 1) % n
        fwd = (i, j)  # caller order, triangles wind like it
        if directed.get(fwd, 0) != 1:
            problems.append(f"boundary edge {poly.indices[i]}-{poly.indices[j]} used {directed.get(fwd, 0)} times")
    for (u, w), count in directed.items():
        if (w - u) % n == 1:
            continue
        if count != 1 or directed.get((w, u), 0) != 1:
            problems.append(f"diagonal {poly.indices[u]}-{poly.indices[w]} is not shared by two triangles")
    total = float(np.sum(np.abs(areas)))
    if abs(total - poly.area) > rel_tol * max(poly.area, poly.scale * poly.scale):
        problems.append(f"area mismatch: triangles {total:.12g} vs polygon {poly.area:.12g}")
    return problems


def require_area(poly: Polygon2D, algorithm: str) -> None:
    # extent, not area: a self-crossing boundary may have lobes that cancel
    if poly.extent <= EPS_AREA * poly.scale * poly.scale:
        raise PreconditionError(f"{algorithm}: polygon has no area")


def require_simple(poly: Polygon2D, algorithm: str) -> None:
    require_area(poly, algorithm)
    if polygon_has_self_intersections(poly.pts):
        raise PreconditionError(f"{algorithm}: polygon is not simple")


def require_convex(poly: Polygon2D, algorithm: str) -> None:
    """Strict convexity: a collinear run would give the fan a zero-area triangle."""
    require_area(poly, algorithm)
    if not is_convex_polygon(poly.pts, strict=True):
        raise PreconditionError(f"{algorithm}: polygon is not strictly convex")
