"""Sweep-line triangulation: monotone decomposition, then per-piece fill.

The polygon is swept along +x (implemented as a top-down sweep over the
rotated frame (x, y) -> (y, -x)). Split and merge vertices are repaired
with diagonals to their helper, which cuts the polygon into pieces that are
monotone along the sweep; each piece is then triangulated with the
classic two-chain stack walk. O(n log n) overall.

``sweep_dynamic_triangulation`` keeps the decomposition but fills each
piece with the minimum-weight DP instead, ``sweep_delaunay_triangulation``
with Lawson flips to the Delaunay criterion.
"""
from __future__ import annotations

from bisect import bisect_left, insort
from typing import Dict, List, Optional, Sequence

import numpy as np

from ..constants import EPS_COLINEAR
from ..errors import TriangulationError
from ..geometry import polygon_has_self_intersections
from ..logging_utils import get_logger
from .edge_flip import lawson_flips
from .min_weight import min_weight_local
from .polygon import Polygon2D, Triangle, as_polygon, require_area, require_simple

__all__ = ['monotone_pieces', 'triangulate_monotone', 'sweep_local', 'sweep_triangulation',
           'sweep_dynamic_triangulation', 'sweep_delaunay_triangulation']

log = get_logger('meshwork.tessellate.sweep')

START, END, SPLIT, MERGE, REGULAR = range(5)


def _rotate(pts: np.ndarray) -> np.ndarray:
    return np.column_stack([pts[:, 1], -pts[:, 0]])


def _sweep_order(q: np.ndarray) -> np.ndarray:
    """Vertex ids from top to bottom; ties go left to right."""
    return np.lexsort((q[:, 0], -q[:, 1]))


def _orient(q, a, b, c) -> float:
    return float((q[b, 0] - q[a, 0]) * (q[c, 1] - q[a, 1]) - (q[b, 1] - q[a, 1]) * (q[c, 0] - q[a, 0]))


def _classify(q: np.ndarray, rank: np.ndarray) -> List[int]:
    n = q.shape[0]
    kinds = []
    for i in range(n):
        p, s = (i - 1) % n, (i + 1) % n
        convex = _orient(q, p, i, s) > 0.0
        if rank[p] > rank[i] and rank[s] > rank[i]:
            kinds.append(START if convex else SPLIT)
        elif rank[p] < rank[i] and rank[s] < rank[i]:
            kinds.append(END if convex else MERGE)
        else:
            kinds.append(REGULAR)
    return kinds


def _diagonals(q: np.ndarray) -> List[tuple]:
    n = q.shape[0]
    order = _sweep_order(q)
    rank = np.empty(n, dtype=int)
    rank[order] = np.arange(n)
    kinds = _classify(q, rank)
    helper: Dict[int, int] = {}
    status: List[int] = []  # edge ids (edge i runs i -> i+1), sorted left to right
    diagonals = []
    sweep_y = [0.0]

    def x_at(e):
        x0, y0 = q[e]
        x1, y1 = q[(e + 1) % n]
        if y0 == y1:
            return min(x0, x1)
        return x0 + (sweep_y[0] - y0) * (x1 - x0) / (y1 - y0)

    def left_of(v):
        k = bisect_left(status, q[v, 0], key=x_at) - 1
        if k < 0:
            raise TriangulationError(f"sweep: no edge left of vertex {v}")
        return status[k]

    def connect(v, e):
        h = helper.get(e)
        if h is None:
            raise TriangulationError(f"sweep: edge {e} is not active at vertex {v}")
        if kinds[h] == MERGE:
            diagonals.append((v, h))

    def drop(e):
        try:
            status.remove(e)
        except ValueError:
            raise TriangulationError(f"sweep: edge {e} missing from the sweep status") from None

    for v in order:
        v = int(v)
        sweep_y[0] = q[v, 1]
        prev_edge = (v - 1) % n
        kind = kinds[v]
        if kind == START:
            insort(status, v, key=x_at)
            helper[v] = v
        elif kind == END:
            connect(v, prev_edge)
            drop(prev_edge)
        elif kind == SPLIT:
            e = left_of(v)
            diagonals.append((v, helper[e]))
            helper[e] = v
            insort(status, v, key=x_at)
            helper[v] = v
        elif kind == MERGE:
            connect(v, prev_edge)
            drop(prev_edge)
            e = left_of(v)
            connect(v, e)
            helper[e] = v
        elif rank[(v - 1) % n] < rank[v]:
            # left chain, interior to the right
            connect(v, prev_edge)
            drop(prev_edge)
            insort(status, v, key=x_at)
            helper[v] = v
        else:
            e = left_of(v)
            connect(v, e)
            helper[e] = v
    return diagonals


def monotone_pieces(pts: np.ndarray) -> List[List[int]]:
    """Cut a counter-clockwise polygon into sweep-monotone pieces.

    Returns lists of local vertex ids, each counter-clockwise.
    """
    q = _rotate(np.asarray(pts, dtype=float))
    pieces = [list(range(q.shape[0]))]
    seen = set()
    for a, b in _diagonals(q):
        key = (min(a, b), max(a, b))
        if a == b or key in seen:
            continue
        seen.add(key)
        for k, piece in enumerate(pieces):
            if a not in piece or b not in piece:
                continue
            ia, ib = piece.index(a), piece.index(b)
            if (ib - ia) % len(piece) in (1, len(piece) - 1):
                continue
            if ia > ib:
                ia, ib = ib, ia
            pieces[k] = piece[ia:ib + 1]
            pieces.append(piece[ib:] + piece[:ia + 1])
            break
        else:
            raise TriangulationError(f"sweep: diagonal {a}-{b} fits no piece")
    return pieces


def triangulate_monotone(pts: np.ndarray, piece: Sequence[int], tol: float = 0.0) -> List[Triangle]:
    """Stack walk over one monotone piece; returns counter-clockwise triangles."""
    piece = list(piece)
    m = len(piece)
    if m == 3:
        return [tuple(piece)]
    q = _rotate(np.asarray(pts, dtype=float))
    sub = q[piece]
    order = [piece[k] for k in _sweep_order(sub)]
    top, bottom = order[0], order[-1]
    left = set()
    k = piece.index(top)
    while piece[k] != bottom:
        left.add(piece[k])
        k = (k + 1) % m

    tris = []

    def add(a, b, c):
        tris.append((a, b, c) if _orient(q, a, b, c) > 0.0 else (a, c, b))

    stack = [order[0], order[1]]
    for j in range(2, m - 1):
        u = order[j]
        if (u in left) != (stack[-1] in left):
            while len(stack) > 1:
                a = stack.pop()
                add(u, a, stack[-1])
            stack = [order[j - 1], u]
        else:
            last = stack.pop()
            while stack:
                top_ = stack[-1]
                if u in left:
                    visible = _orient(q, top_, last, u) > tol
                else:
                    visible = _orient(q, u, last, top_) > tol
                if not visible:
                    break
                add(u, last, top_)
                last = stack.pop()
            stack.append(last)
            stack.append(u)
    u = order[-1]
    last = stack.pop()
    while stack:
        add(u, last, stack[-1])
        last = stack.pop()
    if len(tris) != m - 2:
        raise TriangulationError(f"sweep: monotone piece of {m} vertices gave {len(tris)} triangles")
    return tris


def _pieces_or_whole(poly: Polygon2D) -> List[List[int]]:
    try:
        return monotone_pieces(poly.pts)
    except TriangulationError as exc:
        if not polygon_has_self_intersections(poly.pts):
            raise
        # the status cannot order a crossing boundary; walk it as one piece
        log.info("sweep: %s on a self-intersecting boundary; walking it as a single piece", exc)
        return [list(range(poly.n))]


def sweep_local(poly: Polygon2D) -> List[Triangle]:
    """Sweep triangulation of a local polygon, in local ids."""
    tol = EPS_COLINEAR * poly.scale * poly.scale
    pieces = _pieces_or_whole(poly)
    local = []
    for piece in pieces:
        local.extend(triangulate_monotone(poly.pts, piece, tol))
    log.debug("sweep: %d vertices, %d monotone pieces", poly.n, len(pieces))
    return local


def sweep_triangulation(points, poly_indices, check: bool = True) -> List[Triangle]:
    """Monotone-decomposition triangulation.

    No simplicity check: a self-intersecting boundary is swept as given.
    When the sweep status cannot order it, the whole boundary goes through
    the stack walk as one piece, which still yields n-2 triangles (they may
    overlap, as the lobes of the input do). Only a boundary with no extent
    at all is rejected.
    """
    poly = as_polygon(points, poly_indices)
    if check:
        require_area(poly, 'sweep')
    return poly.emit(sweep_local(poly))


def sweep_dynamic_triangulation(points, poly_indices, check: bool = True) -> List[Triangle]:
    """Monotone decomposition with a minimum-weight fill of each piece."""
    poly = as_polygon(points, poly_indices)
    if check:
        require_simple(poly, 'sweep-dynamic')
    pieces = monotone_pieces(poly.pts)
    local = []
    for piece in pieces:
        if len(piece) == 3:
            local.append(tuple(piece))
            continue
        sub_tris = min_weight_local(poly.sub(piece), poly.scale)
        local.extend((piece[a], piece[b], piece[c]) for a, b, c in sub_tris)
    log.debug("sweep-dynamic: %d vertices, %d monotone pieces", poly.n, len(pieces))
    return poly.emit(local)


def sweep_delaunay_triangulation(points, poly_indices, check: bool = True,
                                 max_passes: Optional[int] = None) -> List[Triangle]:
    """Monotone decomposition with a Delaunay fill of each piece.

    Each piece is stack-walked and then flipped to the Delaunay criterion.
    Flips stay inside their piece: a cutting diagonal is owned by one
    triangle of the piece only, so it is never flipped.
    """
    poly = as_polygon(points, poly_indices)
    if check:
        require_simple(poly, 'sweep-delaunay')
    tol = EPS_COLINEAR * poly.scale * poly.scale
    pieces = monotone_pieces(poly.pts)
    local = []
    for piece in pieces:
        tris = triangulate_monotone(poly.pts, piece, tol)
        if len(piece) > 3:
            tris = lawson_flips(poly.pts, tris, poly.scale, max_passes)
        local.extend(tris)
    log.debug("sweep-delaunay: %d vertices, %d monotone pieces", poly.n, len(pieces))
    return poly.emit(local)
