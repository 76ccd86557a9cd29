"""Fan triangulation of convex polygons."""
from __future__ import annotations

from typing import List

from .polygon import Triangle, as_polygon, require_convex

__all__ = ['fan_triangulation']


def fan_triangulation(points, poly_indices, check: bool = True) -> List[Triangle]:
    """Triangles from the first boundary vertex to every later edge.

    O(n). The polygon must be strictly convex (PreconditionError otherwise,
    also for collinear runs); with near-collinear vertices the fan may
    still contain slivers.
    """
    poly = as_polygon(points, poly_indices)
    if check:
        require_convex(poly, 'fan')
    # apex at the caller's first vertex whatever the winding
    apex = poly.caller_position(0)
    n = poly.n
    local = [(apex, (apex + i) % n, (apex + i + 1) % n) for i in range(1, n - 1)]
    return poly.emit(local)
