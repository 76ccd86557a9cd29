"""Ear clipping with an exhaustive recovery mode.

The fast path walks the boundary and clips the first vertex that passes a
scale-relative ear test. When a whole lap finds nothing (every candidate is
a near-zero-area sliver or blocked within tolerance) the clipper switches
to recovery: an exhaustive scan with exact predicates that clips the best
shaped valid ear, then resumes the fast path. If recovery finds no ear the
request fails instead of emitting a degenerate or overlapping triangle.
"""
from __future__ import annotations

from typing import List

import numpy as np

from ..constants import EPS_TINY
from ..errors import TriangulationError
from ..geometry import orient2d
from ..logging_utils import get_logger
from .polygon import Polygon2D, Triangle, as_polygon, require_simple

__all__ = ['EarClipper', 'ear_clip_triangulation']

log = get_logger('meshwork.tessellate.ear_clipping')


class EarClipper:
    """Two-phase ear clipping over a :class:`Polygon2D` (local CCW frame)."""

    def __init__(self, poly: Polygon2D):
        self.pts = poly.pts
        n = poly.n
        self.nxt = [(i + 1) % n for i in range(n)]
        self.prv = [(i - 1) % n for i in range(n)]
        self.alive = np.ones(n, dtype=bool)
        self.remaining = n
        self.tol = EPS_TINY * poly.scale * poly.scale
        self.recoveries = 0
        p = self.pts
        pp = np.roll(p, 1, axis=0); pn = np.roll(p, -1, axis=0)
        turn = (p[:, 0] - pp[:, 0]) * (pn[:, 1] - pp[:, 1]) - (p[:, 1] - pp[:, 1]) * (pn[:, 0] - pp[:, 0])
        self.reflex = turn <= self.tol

    def _turn(self, i: int) -> float:
        return orient2d(self.pts[self.prv[i]], self.pts[i], self.pts[self.nxt[i]])

    def _blocked(self, a: int, b: int, c: int, candidates: np.ndarray, tol: float, exact: bool) -> bool:
        cand = candidates[(candidates != a) & (candidates != b) & (candidates != c)]
        if cand.size == 0:
            return False
        P = self.pts[cand]
        A, B, C = self.pts[a], self.pts[b], self.pts[c]
        # duplicates of the corners never block (self-touching boundaries)
        same = np.all(P == A, axis=1) | np.all(P == B, axis=1) | np.all(P == C, axis=1)
        o1 = (B[0] - A[0]) * (P[:, 1] - A[1]) - (B[1] - A[1]) * (P[:, 0] - A[0])
        o2 = (C[0] - B[0]) * (P[:, 1] - B[1]) - (C[1] - B[1]) * (P[:, 0] - B[0])
        o3 = (A[0] - C[0]) * (P[:, 1] - C[1]) - (A[1] - C[1]) * (P[:, 0] - C[0])
        if exact:
            inside = (o1 > 0) & (o2 > 0) & (o3 > 0)
            # on the new diagonal c-a (closed interior of the segment)
            on_diag = (o3 == 0) & (o1 >= 0) & (o2 >= 0)
            inside |= on_diag
        else:
            inside = (o1 >= -tol) & (o2 >= -tol) & (o3 >= -tol)
        return bool(np.any(inside & ~same))

    def _is_ear_fast(self, i: int) -> bool:
        a, c = self.prv[i], self.nxt[i]
        if self._turn(i) <= self.tol:
            return False
        cand = np.flatnonzero(self.alive & self.reflex)
        return not self._blocked(a, i, c, cand, self.tol, exact=False)

    def _best_ear_exhaustive(self) -> int:
        best, best_q = -1, -np.inf
        everyone = np.flatnonzero(self.alive)
        for i in everyone:
            i = int(i)
            a, c = self.prv[i], self.nxt[i]
            o = self._turn(i)
            if o <= 0.0:
                continue
            if self._blocked(a, i, c, everyone, 0.0, exact=True):
                continue
            A, B, C = self.pts[a], self.pts[i], self.pts[c]
            perim2 = float(np.sum((B - A) ** 2) + np.sum((C - B) ** 2) + np.sum((A - C) ** 2))
            q = o / perim2
            if q > best_q:
                best, best_q = i, q
        return best

    def _clip(self, i: int, out: List[Triangle]) -> None:
        a, c = self.prv[i], self.nxt[i]
        out.append((a, i, c))
        self.nxt[a] = c
        self.prv[c] = a
        self.alive[i] = False
        self.remaining -= 1
        for j in (a, c):
            self.reflex[j] = self._turn(j) <= self.tol

    def run(self) -> List[Triangle]:
        out: List[Triangle] = []
        i = 0
        fails = 0
        while self.remaining > 3:
            if fails >= self.remaining:
                ear = self._best_ear_exhaustive()
                if ear < 0:
                    raise TriangulationError(
                        f"ear clipping: no valid ear among {self.remaining} remaining vertices")
                if self.recoveries == 0:
                    log.info("ear clipping switched to recovery with %d vertices left", self.remaining)
                self.recoveries += 1
                self._clip(ear, out)
                i = self.nxt[ear]
                fails = 0
                continue
            if self._is_ear_fast(i):
                nxt = self.nxt[i]
                self._clip(i, out)
                i = nxt
                fails = 0
            else:
                fails += 1
                i = self.nxt[i]
        a = i
        b = self.nxt[a]
        c = self.nxt[b]
        if orient2d(self.pts[a], self.pts[b], self.pts[c]) <= 0.0:
            raise TriangulationError("ear clipping: final triangle is degenerate")
        out.append((a, b, c))
        return out


def ear_clip_triangulation(points, poly_indices, check: bool = True) -> List[Triangle]:
    """Ear-clipping triangulation of a simple polygon.

    O(n^2) typical, O(n^3) when near-degenerate input forces recovery.
    Raises PreconditionError for non-simple input (``check=True``) and
    TriangulationError when no valid ear exists.
    """
    poly = as_polygon(points, poly_indices)
    if check:
        require_simple(poly, 'ear clipping')
    if poly.n == 3:
        return poly.emit([(0, 1, 2)])
    return poly.emit(EarClipper(poly).run())
