"""Triangulation dispatcher: pick an algorithm, run it, account for it."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

import numpy as np

from ..config import Algorithm, TriangulationConfig
from ..constants import EPS_TINY
from ..errors import PreconditionError, TriangulationError
from ..geometry import polygon_has_self_intersections
from ..logging_utils import get_logger
from ..stats import StatsRegistry
from .polygon import Triangle, as_polygon, verify_triangulation
from .strategies import ChainedStrategy, EarClipStrategy, SweepStrategy, strategy_for

__all__ = ['select_algorithm', 'triangulate_polygon', 'triangulation_stats', 'reset_triangulation_stats']

log = get_logger('meshwork.tessellate')

_STATS = StatsRegistry()


def select_algorithm(points, poly_indices, config: Optional[TriangulationConfig] = None) -> Algorithm:
    """Resolve ``AUTO`` for one polygon.

    Triangles use the fan. A boundary with two consecutive coincident
    vertices is refused with PreconditionError: every triangulation of it
    holds a zero-area triangle. Polygons above ``check_simplicity_max_vertices``
    and self-intersecting ones go to the sweep, which has no simplicity
    precondition. Otherwise the exact MinWeight program runs up to
    ``exact_max_vertices``, ``mid_size_algorithm`` up to
    ``hybrid_max_vertices`` and the sweep beyond.
    """
    cfg = config or TriangulationConfig()
    n = len(poly_indices)
    if n < 3:
        raise PreconditionError(f"a polygon needs at least 3 vertices, got {n}")
    if n == 3:
        return Algorithm.FAN
    poly = as_polygon(points, poly_indices)
    step = np.roll(poly.pts, -1, axis=0) - poly.pts
    if np.any(np.hypot(step[:, 0], step[:, 1]) <= EPS_TINY * poly.scale):
        raise PreconditionError("auto: boundary has a zero-length edge")
    if n > cfg.check_simplicity_max_vertices:
        return Algorithm.SWEEP
    if polygon_has_self_intersections(poly.pts):
        return Algorithm.SWEEP
    if n <= cfg.exact_max_vertices:
        return Algorithm.MIN_WEIGHT
    if n <= cfg.hybrid_max_vertices:
        return cfg.mid_size_algorithm
    return Algorithm.SWEEP


def triangulate_polygon(points, poly_indices, algorithm=None,
                        config: Optional[TriangulationConfig] = None) -> List[Triangle]:
    """Triangulate one polygon boundary.

    ``algorithm`` overrides ``config.algorithm``. Returns index triples
    drawn from ``poly_indices`` and wound like the boundary. Raises
    PreconditionError when a directly requested algorithm cannot accept the
    input and TriangulationError when the algorithm (and its fallbacks)
    fail, or when ``config.verify`` finds a problem with the result.
    """
    cfg = config or TriangulationConfig()
    requested = Algorithm.coerce(algorithm) if algorithm is not None else cfg.algorithm
    n = len(poly_indices)
    if requested is Algorithm.AUTO:
        chosen = select_algorithm(points, poly_indices, cfg)
        if chosen is Algorithm.SWEEP:
            # best effort for boundaries the sweep cannot order
            strategy = ChainedStrategy([SweepStrategy(), EarClipStrategy(check=False)])
        else:
            strategy = strategy_for(chosen, cfg)
        log.debug("auto selected %s for %d vertices", chosen.value, n)
    else:
        chosen = requested
        strategy = strategy_for(chosen, cfg)
    with _STATS.track(chosen.value) as stats:
        try:
            triangles = strategy.triangulate(points, poly_indices, cfg)
            if cfg.verify:
                problems = verify_triangulation(points, poly_indices, triangles)
                if problems:
                    raise TriangulationError(f"{chosen.value} produced an invalid triangulation: "
                                             + "; ".join(problems))
        except TriangulationError as e:
            log.warning("triangulation of %d vertices with %s aborted: %s", n, chosen.value, e)
            raise
        if isinstance(strategy, ChainedStrategy) and strategy.used > 0:
            stats.fallback_used += 1
    return triangles


def triangulation_stats() -> Dict[str, Dict[str, Any]]:
    """Per-algorithm counters for every request since the last reset."""
    return _STATS.summary()


def reset_triangulation_stats() -> None:
    _STATS.reset()
