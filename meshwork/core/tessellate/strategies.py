"""Strategy objects wrapping the triangulation algorithms.

Every strategy offers the ``try_triangulate`` protocol, returning
``(success, triangles, error)``, plus ``triangulate`` which returns the
triangles or raises. ``ChainedStrategy`` runs strategies in order until one
succeeds; it is how the dispatcher expresses fallbacks.
"""
from __future__ import annotations

from typing import List, Optional, Sequence

from ..config import Algorithm, TriangulationConfig
from ..errors import PreconditionError, TriangulationError
from ..logging_utils import get_logger
from .delaunay import delaunay_triangulation
from .ear_clipping import ear_clip_triangulation
from .edge_flip import edge_flip_triangulation
from .fan import fan_triangulation
from .heuristic import heuristic_triangulation
from .min_weight import min_weight_triangulation
from .polygon import Triangle
from .sweep import sweep_delaunay_triangulation, sweep_dynamic_triangulation, sweep_triangulation

__all__ = [
    'TriangulationStrategy',
    'FanStrategy',
    'EarClipStrategy',
    'SweepStrategy',
    'DelaunayStrategy',
    'EdgeFlipStrategy',
    'MinWeightStrategy',
    'SweepDynamicStrategy',
    'SweepDelaunayStrategy',
    'HeuristicStrategy',
    'ChainedStrategy',
    'strategy_for',
]

log = get_logger('meshwork.tessellate')


class TriangulationStrategy:
    """Base class for polygon triangulation strategies.

    Subclasses implement :meth:`triangulate`. ``check`` toggles the
    algorithm's precondition test (convexity or simplicity).
    """

    algorithm: Optional[Algorithm] = None

    def __init__(self, check: bool = True):
        self.check = check

    @property
    def name(self) -> str:
        return self.algorithm.value if self.algorithm is not None else self.__class__.__name__

    def triangulate(self, points, poly_indices, config: Optional[TriangulationConfig] = None) -> List[Triangle]:
        """Triangulate or raise TriangulationError (PreconditionError for bad input)."""
        raise NotImplementedError("Subclasses must implement triangulate")

    def try_triangulate(self, points, poly_indices, config: Optional[TriangulationConfig] = None):
        """Try to triangulate a polygon.

        Args:
            points: indexable of 2D coordinates
            poly_indices: boundary vertex indices in order
            config: optional TriangulationConfig

        Returns:
            tuple: (success: bool, triangles: list or None, error: str)
        """
        try:
            triangles = self.triangulate(points, poly_indices, config)
        except TriangulationError as e:
            return (False, None, f"{self.name} failed: {e}")
        return (True, triangles, "")

    def __repr__(self):
        return f"{self.__class__.__name__}(check={self.check})"


class FanStrategy(TriangulationStrategy):
    """Fan from one apex; convex polygons only."""
    algorithm = Algorithm.FAN

    def triangulate(self, points, poly_indices, config=None):
        return fan_triangulation(points, poly_indices, check=self.check)


class EarClipStrategy(TriangulationStrategy):
    """Ear clipping with exhaustive recovery; simple polygons."""
    algorithm = Algorithm.EAR_CLIPPING

    def triangulate(self, points, poly_indices, config=None):
        return ear_clip_triangulation(points, poly_indices, check=self.check)


class SweepStrategy(TriangulationStrategy):
    """Monotone sweep; no simplicity precondition."""
    algorithm = Algorithm.SWEEP

    def triangulate(self, points, poly_indices, config=None):
        return sweep_triangulation(points, poly_indices, check=self.check)


class DelaunayStrategy(TriangulationStrategy):
    """Constrained Delaunay seeded by Qhull; simple polygons."""
    algorithm = Algorithm.DELAUNAY

    def triangulate(self, points, poly_indices, config=None):
        return delaunay_triangulation(points, poly_indices, check=self.check)


class EdgeFlipStrategy(TriangulationStrategy):
    """Ear clipping followed by Lawson flips; simple polygons."""
    algorithm = Algorithm.EDGE_FLIP

    def triangulate(self, points, poly_indices, config=None):
        max_passes = config.max_flip_passes if config is not None else None
        return edge_flip_triangulation(points, poly_indices, check=self.check, max_passes=max_passes)


class MinWeightStrategy(TriangulationStrategy):
    """Exact minimum-weight dynamic program; simple polygons."""
    algorithm = Algorithm.MIN_WEIGHT

    def triangulate(self, points, poly_indices, config=None):
        return min_weight_triangulation(points, poly_indices, check=self.check)


class SweepDynamicStrategy(TriangulationStrategy):
    """Minimum weight inside each monotone piece; simple polygons."""
    algorithm = Algorithm.SWEEP_DYNAMIC

    def triangulate(self, points, poly_indices, config=None):
        return sweep_dynamic_triangulation(points, poly_indices, check=self.check)


class SweepDelaunayStrategy(TriangulationStrategy):
    """Lawson flips inside each monotone piece; simple polygons."""
    algorithm = Algorithm.SWEEP_DELAUNAY

    def triangulate(self, points, poly_indices, config=None):
        max_passes = config.max_flip_passes if config is not None else None
        return sweep_delaunay_triangulation(points, poly_indices, check=self.check, max_passes=max_passes)


class HeuristicStrategy(TriangulationStrategy):
    """Sweep seed plus diagonal-shortening flips; simple polygons."""
    algorithm = Algorithm.HEURISTIC

    def triangulate(self, points, poly_indices, config=None):
        return heuristic_triangulation(points, poly_indices, check=self.check)


class ChainedStrategy(TriangulationStrategy):
    """Meta-strategy that tries multiple strategies in sequence until one succeeds.

    A PreconditionError is raised at once: the input, not the algorithm, is
    at fault. ``used`` holds the position of the strategy that produced the
    last result (0 means no fallback was needed).
    """

    def __init__(self, strategies: Sequence[TriangulationStrategy]):
        super().__init__(check=True)
        self.strategies = list(strategies)
        self.used = -1

    @property
    def name(self) -> str:
        return '>'.join(s.name for s in self.strategies) or 'chain'

    def triangulate(self, points, poly_indices, config=None):
        errors = []
        last: Optional[TriangulationError] = None
        self.used = -1
        for i, strategy in enumerate(self.strategies):
            try:
                triangles = strategy.triangulate(points, poly_indices, config)
            except PreconditionError:
                raise
            except TriangulationError as e:
                errors.append(f"Strategy {i} ({strategy.name}): {e}")
                last = e
                if i + 1 < len(self.strategies):
                    log.info("%s failed (%s); falling back to %s", strategy.name, e,
                             self.strategies[i + 1].name)
                continue
            self.used = i
            return triangles
        raise TriangulationError("All strategies failed: " + "; ".join(errors)) from last

    def __repr__(self):
        return f"ChainedStrategy({self.strategies!r})"


_BY_ALGORITHM = {
    Algorithm.FAN: FanStrategy,
    Algorithm.EAR_CLIPPING: EarClipStrategy,
    Algorithm.SWEEP: SweepStrategy,
    Algorithm.DELAUNAY: DelaunayStrategy,
    Algorithm.EDGE_FLIP: EdgeFlipStrategy,
    Algorithm.MIN_WEIGHT: MinWeightStrategy,
    Algorithm.SWEEP_DYNAMIC: SweepDynamicStrategy,
    Algorithm.SWEEP_DELAUNAY: SweepDelaunayStrategy,
    Algorithm.HEURISTIC: HeuristicStrategy,
}


def strategy_for(algorithm, config: Optional[TriangulationConfig] = None) -> TriangulationStrategy:
    """Strategy running a concrete algorithm, with the configured fallbacks."""
    algorithm = Algorithm.coerce(algorithm)
    if algorithm is Algorithm.AUTO:
        raise ValueError("AUTO has no strategy of its own; resolve it with select_algorithm first")
    cfg = config or TriangulationConfig()
    strategy = _BY_ALGORITHM[algorithm]()
    if algorithm is Algorithm.DELAUNAY and cfg.delaunay_fallback:
        return ChainedStrategy([strategy, EdgeFlipStrategy()])
    return strategy
