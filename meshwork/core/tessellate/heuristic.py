"""Greedy weight reduction seeded from the sweep triangulation.

Each pass visits every diagonal once and flips it when its quad is
strictly convex and the other diagonal is shorter by more than
``EPS_IMPROVEMENT`` (relative to the polygon scale). Total weight strictly
decreases, so the passes terminate; they are additionally capped at
O(log n) so the whole run stays close to the sweep's O(n log n).
"""
from __future__ import annotations

import math
from typing import List, Optional

import numpy as np

from ..constants import EPS_COLINEAR, EPS_IMPROVEMENT
from ..logging_utils import get_logger
from .edge_flip import FlipTriangulation
from .polygon import Triangle, as_polygon, require_simple
from .sweep import sweep_local

__all__ = ['shorten_diagonals', 'heuristic_triangulation']

log = get_logger('meshwork.tessellate.heuristic')


def shorten_diagonals(pts: np.ndarray, tris, scale: float, max_passes: Optional[int] = None) -> List[Triangle]:
    state = FlipTriangulation(pts, tris)
    n = pts.shape[0]
    if max_passes is None:
        max_passes = 2 * max(1, math.ceil(math.log2(n))) + 1
    gain_tol = EPS_IMPROVEMENT * scale
    convex_tol = EPS_COLINEAR * scale * scale
    flips = 0
    for _ in range(max_passes):
        changed = False
        for u, w in state.diagonals():
            if not state.is_diagonal(u, w):
                continue
            _, r, _, p = state.quad(u, w)
            gain = np.linalg.norm(pts[u] - pts[w]) - np.linalg.norm(pts[r] - pts[p])
            if gain <= gain_tol or not state.can_flip(u, w, convex_tol):
                continue
            state.flip(u, w)
            flips += 1
            changed = True
        if not changed:
            break
    log.debug("heuristic: %d improving flips over %d vertices", flips, n)
    return state.tris


def heuristic_triangulation(points, poly_indices, check: bool = True,
                            max_passes: Optional[int] = None) -> List[Triangle]:
    """Sweep triangulation followed by shortening diagonal flips."""
    poly = as_polygon(points, poly_indices)
    if check:
        require_simple(poly, 'heuristic')
    if poly.n == 3:
        return poly.emit([(0, 1, 2)])
    return poly.emit(shorten_diagonals(poly.pts, sweep_local(poly), poly.scale, max_passes))
