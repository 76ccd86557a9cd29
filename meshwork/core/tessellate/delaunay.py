"""Delaunay triangulation of a polygon through ``scipy.spatial.Delaunay``.

Qhull triangulates the convex hull of the boundary vertices; triangles
whose centroid falls outside the polygon are dropped. When that filtered
set is a triangulation of the polygon (n-2 triangles, every boundary edge
present, area preserved) it is already the constrained Delaunay result.
Otherwise some boundary edge is missing from the hull triangulation and the
constrained result is rebuilt here: an ear-clipping seed, which contains
every boundary edge, is flipped to the same Delaunay criterion. Only a
Qhull failure raises TriangulationError.
"""
from __future__ import annotations

from typing import List

from scipy.spatial import Delaunay, QhullError

from ..constants import EPS_REL_AREA
from ..errors import TriangulationError
from ..geometry import point_in_polygon
from ..logging_utils import get_logger
from .ear_clipping import EarClipper
from .edge_flip import lawson_flips
from .polygon import Polygon2D, Triangle, as_polygon, require_simple

__all__ = ['delaunay_local', 'delaunay_triangulation']

log = get_logger('meshwork.tessellate.delaunay')


def _covers_polygon(poly: Polygon2D, tris: List[Triangle]) -> bool:
    n = poly.n
    if len(tris) != n - 2:
        return False
    directed = set()
    for a, b, c in tris:
        directed.update(((a, b), (b, c), (c, a)))
    if any((i, (i + 1) % n) not in directed for i in range(n)):
        return False
    P = poly.pts
    total = 0.0
    for a, b, c in tris:
        total += 0.5 * ((P[b, 0] - P[a, 0]) * (P[c, 1] - P[a, 1]) - (P[b, 1] - P[a, 1]) * (P[c, 0] - P[a, 0]))
    return abs(total - poly.area) <= EPS_REL_AREA * max(poly.area, poly.scale * poly.scale)


def _hull_triangles(poly: Polygon2D) -> List[Triangle]:
    try:
        dt = Delaunay(poly.pts)
    except QhullError as exc:
        raise TriangulationError(f"delaunay: qhull failed on {poly.n} vertices") from exc
    P = poly.pts
    out = []
    for a, b, c in dt.simplices:
        a, b, c = int(a), int(b), int(c)
        cx, cy = (P[a] + P[b] + P[c]) / 3.0
        if not point_in_polygon(cx, cy, P):
            continue
        area2 = (P[b, 0] - P[a, 0]) * (P[c, 1] - P[a, 1]) - (P[b, 1] - P[a, 1]) * (P[c, 0] - P[a, 0])
        out.append((a, b, c) if area2 > 0 else (a, c, b))
    return out


def delaunay_local(poly: Polygon2D) -> List[Triangle]:
    """Counter-clockwise local triangles of the constrained Delaunay triangulation."""
    tris = _hull_triangles(poly)
    if _covers_polygon(poly, tris):
        return tris
    log.info("delaunay: hull triangulation misses boundary edges (%d of %d triangles kept); "
             "enforcing the boundary by flips", len(tris), poly.n - 2)
    return lawson_flips(poly.pts, EarClipper(poly).run(), poly.scale)


def delaunay_triangulation(points, poly_indices, check: bool = True) -> List[Triangle]:
    """Constrained Delaunay triangulation of a simple polygon."""
    poly = as_polygon(points, poly_indices)
    if check:
        require_simple(poly, 'delaunay')
    if poly.n == 3:
        return poly.emit([(0, 1, 2)])
    tris = delaunay_local(poly)
    log.debug("delaunay: %d triangles", len(tris))
    return poly.emit(tris)
