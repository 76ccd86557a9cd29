"""Edge-flip (Lawson) triangulation.

Starts from an ear-clipping triangulation and flips every diagonal that
fails the local Delaunay test until a full pass changes nothing. The
incircle predicate carries a scale**4 relative slack, so cocircular
quads are left alone and no edge can flip back and forth. Each pass is
O(n) and the number of flips is bounded, O(n^3) overall.
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from ..constants import EPS_COLINEAR, EPS_INCIRCLE
from ..geometry import incircle, orient2d
from ..logging_utils import get_logger
from .ear_clipping import EarClipper
from .polygon import Triangle, as_polygon, require_simple

__all__ = ['FlipTriangulation', 'lawson_flips', 'edge_flip_triangulation']

log = get_logger('meshwork.tessellate.edge_flip')

Edge = Tuple[int, int]


class FlipTriangulation:
    """Counter-clockwise triangle set over local polygon vertices, with flips.

    Every directed edge is owned by at most one triangle; a diagonal is an
    edge owned in both directions.
    """

    def __init__(self, pts: np.ndarray, tris: Iterable[Sequence[int]]):
        self.pts = pts
        self.tris: List[Triangle] = [tuple(int(i) for i in t) for t in tris]
        self.owner: Dict[Edge, int] = {}
        for k in range(len(self.tris)):
            self._register(k)

    def _register(self, k: int) -> None:
        a, b, c = self.tris[k]
        for e in ((a, b), (b, c), (c, a)):
            self.owner[e] = k

    def _unregister(self, k: int) -> None:
        a, b, c = self.tris[k]
        for e in ((a, b), (b, c), (c, a)):
            del self.owner[e]

    def is_diagonal(self, u: int, w: int) -> bool:
        return (u, w) in self.owner and (w, u) in self.owner

    def diagonals(self) -> List[Edge]:
        return [(u, w) for (u, w) in self.owner if u < w and (w, u) in self.owner]

    def apex(self, u: int, w: int) -> int:
        """Third vertex of the triangle owning directed edge u -> w."""
        t = self.tris[self.owner[(u, w)]]
        return next(x for x in t if x != u and x != w)

    def quad(self, u: int, w: int) -> Tuple[int, int, int, int]:
        """The quad around diagonal u-w, counter-clockwise from u."""
        return u, self.apex(w, u), w, self.apex(u, w)

    def can_flip(self, u: int, w: int, tol: float = 0.0) -> bool:
        _, r, _, p = self.quad(u, w)
        P = self.pts
        return orient2d(P[u], P[r], P[p]) > tol and orient2d(P[r], P[w], P[p]) > tol

    def flip(self, u: int, w: int) -> List[Edge]:
        """Replace diagonal u-w by the other diagonal of its quad.

        Returns the four outer edges of the quad.
        """
        k1, k2 = self.owner[(u, w)], self.owner[(w, u)]
        _, r, _, p = self.quad(u, w)
        self._unregister(k1)
        self._unregister(k2)
        self.tris[k1] = (u, r, p)
        self.tris[k2] = (r, w, p)
        self._register(k1)
        self._register(k2)
        return [(u, r), (r, w), (w, p), (p, u)]

    def weight(self) -> float:
        P = self.pts
        return float(sum(np.linalg.norm(P[u] - P[w]) for u, w in self.diagonals()))


def lawson_flips(pts: np.ndarray, tris, scale: float, max_passes: Optional[int] = None) -> List[Triangle]:
    """Flip local triangles to the constrained Delaunay triangulation."""
    state = FlipTriangulation(pts, tris)
    n = pts.shape[0]
    if max_passes is None:
        max_passes = max(1, n * n)
    tol = EPS_INCIRCLE * scale ** 4
    convex_tol = EPS_COLINEAR * scale * scale
    flips = 0
    for _ in range(max_passes):
        changed = False
        for u, w in state.diagonals():
            if not state.is_diagonal(u, w):
                continue
            _, r, _, p = state.quad(u, w)
            if incircle(pts[u], pts[w], pts[p], pts[r]) <= tol:
                continue
            if not state.can_flip(u, w, convex_tol):
                continue
            state.flip(u, w)
            flips += 1
            changed = True
        if not changed:
            break
    else:
        log.warning("edge flip stopped after %d passes (%d flips) without converging", max_passes, flips)
    log.debug("edge flip: %d flips over %d vertices", flips, n)
    return state.tris


def edge_flip_triangulation(points, poly_indices, check: bool = True,
                            max_passes: Optional[int] = None) -> List[Triangle]:
    """Delaunay-like triangulation of a simple polygon without external code."""
    poly = as_polygon(points, poly_indices)
    if check:
        require_simple(poly, 'edge flip')
    if poly.n == 3:
        return poly.emit([(0, 1, 2)])
    seed = EarClipper(poly).run()
    return poly.emit(lawson_flips(poly.pts, seed, poly.scale, max_passes))
