"""Geometry primitives shared by the mesh core and the tessellators.

All polygon helpers accept anything ``np.asarray`` turns into an ``(n, 2)``
float array. Orientation convention: counter-clockwise is positive.
"""
from __future__ import annotations

import math

import numpy as np

from .constants import EPS_ANGLE, EPS_AREA, EPS_COLINEAR, EPS_INCIRCLE

__all__ = [
    'orient2d', 'triangle_area', 'triangle_areas', 'incircle',
    'polygon_signed_area', 'point_in_polygon', 'point_in_triangle',
    'segments_intersect', 'polygon_has_self_intersections', 'is_convex_polygon',
    'polygon_scale', 'newell_normal', 'project_to_plane', 'total_edge_weight',
    'edge_length',
]

# Row block used by the quadratic edge-pair tests so memory stays O(n * block)
_PAIR_BLOCK = 256


def orient2d(a, b, c) -> float:
    """Twice the signed area of triangle (a, b, c); > 0 when counter-clockwise."""
    return float((b[0] - a[0]) * (c[1] - a[1]) - (b[1] - a[1]) * (c[0] - a[0]))


def triangle_area(a, b, c) -> float:
    """Signed area of a 2D triangle."""
    return 0.5 * orient2d(a, b, c)


def triangle_areas(points, tris) -> np.ndarray:
    """Signed areas of many triangles given as an ``(m, 3)`` index array."""
    pts = np.asarray(points, dtype=float)
    t = np.asarray(tris, dtype=int).reshape(-1, 3)
    if t.shape[0] == 0:
        return np.zeros(0)
    a = pts[t[:, 0]]; b = pts[t[:, 1]]; c = pts[t[:, 2]]
    return 0.5 * ((b[:, 0] - a[:, 0]) * (c[:, 1] - a[:, 1]) - (b[:, 1] - a[:, 1]) * (c[:, 0] - a[:, 0]))


def incircle(a, b, c, d) -> float:
    """Positive when d lies inside the circumcircle of counter-clockwise (a, b, c)."""
    adx = a[0] - d[0]; ady = a[1] - d[1]
    bdx = b[0] - d[0]; bdy = b[1] - d[1]
    cdx = c[0] - d[0]; cdy = c[1] - d[1]
    ad = adx * adx + ady * ady
    bd = bdx * bdx + bdy * bdy
    cd = cdx * cdx + cdy * cdy
    return float(adx * (bdy * cd - bd * cdy)
                 - ady * (bdx * cd - bd * cdx)
                 + ad * (bdx * cdy - bdy * cdx))


def edge_length(points, i, j) -> float:
    p = points[i]; q = points[j]
    return math.hypot(float(p[0] - q[0]), float(p[1] - q[1]))


def polygon_signed_area(polygon) -> float:
    """Return signed area of polygon (list of (x,y)); positive if CCW."""
    arr = np.asarray(polygon, dtype=float)
    if arr.shape[0] < 3:
        return 0.0
    x = arr[:, 0]; y = arr[:, 1]
    return float(0.5 * (np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1))))


def point_in_polygon(x, y, polygon) -> bool:
    """Ray casting even-odd rule; polygon: list of (x,y)."""
    inside = False
    n = len(polygon)
    if n < 3:
        return False
    for i in range(n):
        x1, y1 = polygon[i]; x2, y2 = polygon[(i + 1) % n]
        if (y1 > y) != (y2 > y) and x < (x2 - x1) * (y - y1) / (y2 - y1) + x1:
            inside = not inside
    return inside


def point_in_triangle(p, a, b, c, tol: float = 0.0) -> bool:
    """Closed containment test for a counter-clockwise triangle."""
    return (orient2d(a, b, p) >= -tol and orient2d(b, c, p) >= -tol
            and orient2d(c, a, p) >= -tol)


def polygon_scale(polygon) -> float:
    """Bounding-box diagonal, used to make tolerances scale invariant."""
    arr = np.asarray(polygon, dtype=float)
    if arr.shape[0] == 0:
        return 1.0
    span = float(np.linalg.norm(arr.max(axis=0) - arr.min(axis=0)))
    return span if span > 0.0 else 1.0


def segments_intersect(a, b, c, d, tol: float = 0.0) -> bool:
    """True if closed segments ab and cd share at least one point."""
    o1 = orient2d(a, b, c); o2 = orient2d(a, b, d)
    o3 = orient2d(c, d, a); o4 = orient2d(c, d, b)
    if ((o1 > tol and o2 < -tol) or (o1 < -tol and o2 > tol)) and \
            ((o3 > tol and o4 < -tol) or (o3 < -tol and o4 > tol)):
        return True

    def on_segment(p, q, r, o):
        return abs(o) <= tol and min(p[0], q[0]) <= r[0] <= max(p[0], q[0]) \
            and min(p[1], q[1]) <= r[1] <= max(p[1], q[1])

    return (on_segment(a, b, c, o1) or on_segment(a, b, d, o2)
            or on_segment(c, d, a, o3) or on_segment(c, d, b, o4))


def _pair_orient(ax, ay, bx, by, px, py):
    # broadcast orient2d: segments (rows) against points (columns)
    return (bx - ax)[:, None] * (py[None, :] - ay[:, None]) - (by - ay)[:, None] * (px[None, :] - ax[:, None])


def _within(ax, bx, px, tol):
    lo = np.minimum(ax, bx)[:, None] - tol
    hi = np.maximum(ax, bx)[:, None] + tol
    return (px[None, :] >= lo) & (px[None, :] <= hi)


def polygon_has_self_intersections(polygon) -> bool:
    """Return True unless the closed polyline is a simple polygon.

    Non-simple means any of: repeated vertex, a pair of non-adjacent edges
    that cross or touch, or two consecutive edges folding back on each other.
    Evaluated with numpy in row blocks, O(n^2) time.
    """
    pts = np.asarray(polygon, dtype=float)
    n = pts.shape[0]
    if n < 3:
        return False
    scale = polygon_scale(pts)
    tol = EPS_COLINEAR * scale * scale
    # duplicates
    uniq = np.unique(pts, axis=0)
    if uniq.shape[0] != n:
        return True
    nxt = np.roll(pts, -1, axis=0)
    # consecutive edges folding back
    prv = np.roll(pts, 1, axis=0)
    turn = (pts[:, 0] - prv[:, 0]) * (nxt[:, 1] - prv[:, 1]) - (pts[:, 1] - prv[:, 1]) * (nxt[:, 0] - prv[:, 0])
    back = np.einsum('ij,ij->i', pts - prv, nxt - pts) < 0
    if np.any((np.abs(turn) <= tol) & back):
        return True
    if n == 3:
        return False
    ax, ay = pts[:, 0], pts[:, 1]
    bx, by = nxt[:, 0], nxt[:, 1]
    idx = np.arange(n)
    for start in range(0, n, _PAIR_BLOCK):
        rows = slice(start, min(n, start + _PAIR_BLOCK))
        ri = idx[rows]
        diff = np.abs(ri[:, None] - idx[None, :])
        mask = (diff > 1) & (diff < n - 1)
        o1 = _pair_orient(ax[rows], ay[rows], bx[rows], by[rows], ax, ay)
        o2 = _pair_orient(ax[rows], ay[rows], bx[rows], by[rows], bx, by)
        cx = ax[None, :]; cy = ay[None, :]; dx = bx[None, :]; dy = by[None, :]
        pax = ax[rows][:, None]; pay = ay[rows][:, None]
        pbx = bx[rows][:, None]; pby = by[rows][:, None]
        o3 = (dx - cx) * (pay - cy) - (dy - cy) * (pax - cx)
        o4 = (dx - cx) * (pby - cy) - (dy - cy) * (pbx - cx)
        proper = (((o1 > tol) & (o2 < -tol)) | ((o1 < -tol) & (o2 > tol))) & \
                 (((o3 > tol) & (o4 < -tol)) | ((o3 < -tol) & (o4 > tol)))
        # touching: an endpoint lying on the other segment
        t1 = (np.abs(o1) <= tol) & _within(ax[rows], bx[rows], ax, tol) & _within(ay[rows], by[rows], ay, tol)
        t2 = (np.abs(o2) <= tol) & _within(ax[rows], bx[rows], bx, tol) & _within(ay[rows], by[rows], by, tol)
        if np.any(mask & (proper | t1 | t2)):
            return True
    return False


def is_convex_polygon(polygon, strict: bool = False) -> bool:
    """True if the polygon is convex (either orientation).

    Collinear vertices are accepted unless ``strict``. The total turning must
    be one full turn, which rejects self-overlapping stars whose turns all
    share a sign.
    """
    pts = np.asarray(polygon, dtype=float)
    n = pts.shape[0]
    if n < 3:
        return False
    edges = np.roll(pts, -1, axis=0) - pts
    if np.any(np.einsum('ij,ij->i', edges, edges) == 0.0):
        return False
    nxt = np.roll(edges, -1, axis=0)
    cross = edges[:, 0] * nxt[:, 1] - edges[:, 1] * nxt[:, 0]
    scale = polygon_scale(pts)
    tol = EPS_COLINEAR * scale * scale
    sign = 1.0 if polygon_signed_area(pts) >= 0.0 else -1.0
    cross = cross * sign
    if strict and np.any(cross <= tol):
        return False
    if np.any(cross < -tol):
        return False
    dots = np.einsum('ij,ij->i', edges, nxt)
    turning = float(np.sum(np.arctan2(cross, dots)))
    return abs(turning - 2.0 * math.pi) < EPS_ANGLE


def newell_normal(points) -> np.ndarray:
    """Unnormalised Newell normal of a (possibly non-planar) 3D polygon."""
    pts = np.asarray(points, dtype=float)
    nxt = np.roll(pts, -1, axis=0)
    return np.array([
        np.sum((pts[:, 1] - nxt[:, 1]) * (pts[:, 2] + nxt[:, 2])),
        np.sum((pts[:, 2] - nxt[:, 2]) * (pts[:, 0] + nxt[:, 0])),
        np.sum((pts[:, 0] - nxt[:, 0]) * (pts[:, 1] + nxt[:, 1])),
    ])


def project_to_plane(points) -> np.ndarray:
    """Map polygon positions to 2D coordinates.

    2D input is returned as a float copy. 3D input is projected onto the
    plane orthogonal to its Newell normal with a right-handed basis, so a
    polygon that winds counter-clockwise about its normal stays
    counter-clockwise in 2D.
    """
    pts = np.asarray(points, dtype=float)
    if pts.ndim != 2 or pts.shape[1] not in (2, 3):
        raise ValueError(f"expected (n, 2) or (n, 3) positions, got shape {pts.shape}")
    if pts.shape[1] == 2:
        return pts.copy()
    normal = newell_normal(pts)
    length = float(np.linalg.norm(normal))
    if length <= EPS_AREA:
        normal = np.array([0.0, 0.0, 1.0])
    else:
        normal = normal / length
    helper = np.array([1.0, 0.0, 0.0]) if abs(normal[0]) < 0.9 else np.array([0.0, 1.0, 0.0])
    u = np.cross(helper, normal)
    u /= np.linalg.norm(u)
    v = np.cross(normal, u)
    rel = pts - pts.mean(axis=0)
    return np.column_stack((rel @ u, rel @ v))


def total_edge_weight(points, tris) -> float:
    """Sum of the lengths of the distinct undirected edges of a triangle set."""
    pts = np.asarray(points, dtype=float)
    edges = set()
    for a, b, c in tris:
        for u, w in ((a, b), (b, c), (c, a)):
            edges.add((u, w) if u < w else (w, u))
    if not edges:
        return 0.0
    e = np.asarray(sorted(edges), dtype=int)
    return float(np.sum(np.linalg.norm(pts[e[:, 0]] - pts[e[:, 1]], axis=1)))
