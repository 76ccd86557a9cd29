"""Minimum-weight triangulation of simple polygons by dynamic programming.

``cost[i][j]`` is the cheapest triangulation of the sub-polygon i..j with
the recurrence

    cost[i][j] = min_k cost[i][k] + cost[k][j] + |ik| + |kj| + |ij|

over vertices k strictly between i and j for which (i, k) and (k, j) are
usable chords and triangle (i, k, j) is non-degenerate. Every interior
diagonal is counted twice and every boundary edge once, so minimising this
total minimises the summed diagonal length. O(n^3) time, O(n^2) space.
"""
from __future__ import annotations

from typing import List

import numpy as np

from ..constants import EPS_COLINEAR
from ..errors import TriangulationError
from ..geometry import orient2d
from .polygon import Polygon2D, Triangle, as_polygon, require_simple

__all__ = ['diagonal_matrix', 'min_weight_local', 'min_weight_triangulation', 'min_weight_quad']


def _cross(ux, uy, vx, vy):
    return ux * vy - uy * vx


def diagonal_matrix(pts: np.ndarray, tol: float) -> np.ndarray:
    """Boolean (n, n) matrix: True for boundary edges and interior diagonals.

    A chord i-j is an interior diagonal when it lies in the cone of both
    endpoints and meets no boundary edge other than those incident to i or
    j (touching counts as meeting).
    """
    n = pts.shape[0]
    X = pts[:, 0]; Y = pts[:, 1]
    NX = np.roll(X, -1); NY = np.roll(Y, -1)
    idx = np.arange(n)
    cone = np.zeros((n, n), dtype=bool)
    for i in range(n):
        px, py = X[i], Y[i]
        ax, ay = X[i - 1], Y[i - 1]
        bx, by = X[(i + 1) % n], Y[(i + 1) % n]
        dx = X - px; dy = Y - py
        if _cross(bx - px, by - py, ax - px, ay - py) >= -tol:
            # convex corner: j strictly left of i->prev and of j->i->next
            left_prev = _cross(dx, dy, ax - px, ay - py) > tol
            left_next = _cross(px - X, py - Y, bx - X, by - Y) > tol
            cone[i] = left_prev & left_next
        else:
            on_next = _cross(dx, dy, bx - px, by - py) >= -tol
            on_prev = _cross(px - X, py - Y, ax - X, ay - Y) >= -tol
            cone[i] = ~(on_next & on_prev)
    valid = cone & cone.T
    for i in range(n):
        js = idx[valid[i]]
        js = js[js > i]
        if js.size == 0:
            continue
        # segments i -> j (rows) against edges k -> k+1 (columns)
        sx = X[js] - X[i]; sy = Y[js] - Y[i]
        o1 = sx[:, None] * (Y[None, :] - Y[i]) - sy[:, None] * (X[None, :] - X[i])
        o2 = sx[:, None] * (NY[None, :] - Y[i]) - sy[:, None] * (NX[None, :] - X[i])
        ex = NX - X; ey = NY - Y
        o3 = ex[None, :] * (Y[i] - Y[None, :]) - ey[None, :] * (X[i] - X[None, :])
        o4 = ex[None, :] * (Y[js][:, None] - Y[None, :]) - ey[None, :] * (X[js][:, None] - X[None, :])
        straddle1 = ((o1 > tol) & (o2 < -tol)) | ((o1 < -tol) & (o2 > tol))
        straddle2 = ((o3 > tol) & (o4 < -tol)) | ((o3 < -tol) & (o4 > tol))
        lo_x = np.minimum(X[i], X[js])[:, None] - tol; hi_x = np.maximum(X[i], X[js])[:, None] + tol
        lo_y = np.minimum(Y[i], Y[js])[:, None] - tol; hi_y = np.maximum(Y[i], Y[js])[:, None] + tol
        start_on = (np.abs(o1) <= tol) & (X[None, :] >= lo_x) & (X[None, :] <= hi_x) \
            & (Y[None, :] >= lo_y) & (Y[None, :] <= hi_y)
        end_on = (np.abs(o2) <= tol) & (NX[None, :] >= lo_x) & (NX[None, :] <= hi_x) \
            & (NY[None, :] >= lo_y) & (NY[None, :] <= hi_y)
        hit = (straddle1 & straddle2) | start_on | end_on
        k = idx[None, :]
        jj = js[:, None]
        incident = (k == i) | (k == (i - 1) % n) | (k == jj) | (k == (jj - 1) % n)
        blocked = np.any(hit & ~incident, axis=1)
        valid[i, js[blocked]] = False
        valid[js[blocked], i] = False
    valid[idx, (idx + 1) % n] = True
    valid[(idx + 1) % n, idx] = True
    valid[idx, idx] = False
    return valid


def min_weight_local(pts: np.ndarray, scale: float) -> List[Triangle]:
    """DP over a local counter-clockwise polygon; returns local triangles."""
    n = pts.shape[0]
    if n == 3:
        return [(0, 1, 2)]
    tol = EPS_COLINEAR * scale * scale
    valid = diagonal_matrix(pts, tol)
    W = np.linalg.norm(pts[:, None, :] - pts[None, :, :], axis=2)
    cost = np.full((n, n), np.inf)
    split = np.full((n, n), -1, dtype=int)
    for i in range(n - 1):
        cost[i, i + 1] = 0.0
    X = pts[:, 0]; Y = pts[:, 1]
    for length in range(2, n):
        for i in range(0, n - length):
            j = i + length
            if not valid[i, j]:
                continue
            ks = np.arange(i + 1, j)
            area = (X[ks] - X[i]) * (Y[j] - Y[i]) - (Y[ks] - Y[i]) * (X[j] - X[i])
            ok = valid[i, ks] & valid[ks, j] & (area > tol)
            if not ok.any():
                continue
            c = cost[i, ks] + cost[ks, j] + W[i, ks] + W[ks, j] + W[i, j]
            c = np.where(ok, c, np.inf)
            m = int(np.argmin(c))
            if np.isfinite(c[m]):
                cost[i, j] = c[m]
                split[i, j] = ks[m]
    if not np.isfinite(cost[0, n - 1]):
        raise TriangulationError("min-weight: no triangulation without degenerate triangles")
    tris = []
    stack = [(0, n - 1)]
    while stack:
        i, j = stack.pop()
        k = int(split[i, j])
        tris.append((i, k, j))
        if k - i > 1:
            stack.append((i, k))
        if j - k > 1:
            stack.append((k, j))
    return tris


def _quad_local(poly: Polygon2D) -> List[Triangle]:
    p = poly.pts
    tol = EPS_COLINEAR * poly.scale * poly.scale
    options = []
    if orient2d(p[0], p[1], p[2]) > tol and orient2d(p[0], p[2], p[3]) > tol:
        options.append((float(np.linalg.norm(p[2] - p[0])), [(0, 1, 2), (0, 2, 3)]))
    if orient2d(p[1], p[2], p[3]) > tol and orient2d(p[1], p[3], p[0]) > tol:
        options.append((float(np.linalg.norm(p[3] - p[1])), [(1, 2, 3), (1, 3, 0)]))
    if not options:
        raise TriangulationError("min-weight: quadrilateral has no valid diagonal")
    return min(options, key=lambda o: o[0])[1]


def min_weight_quad(points, poly_indices) -> List[Triangle]:
    """Shorter valid diagonal of a (not necessarily convex) quadrilateral."""
    poly = as_polygon(points, poly_indices)
    if poly.n != 4:
        raise ValueError(f"min_weight_quad needs 4 vertices, got {poly.n}")
    return poly.emit(_quad_local(poly))


def min_weight_triangulation(points, poly_indices, check: bool = True) -> List[Triangle]:
    """Triangulation of minimum total edge length (simple polygons)."""
    poly = as_polygon(points, poly_indices)
    if check:
        require_simple(poly, 'min-weight')
    if poly.n == 4:
        return poly.emit(_quad_local(poly))
    return poly.emit(min_weight_local(poly.pts, poly.scale))
