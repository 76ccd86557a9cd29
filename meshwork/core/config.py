"""Configuration objects for meshwork triangulation and mesh editing."""
from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional


class Algorithm(enum.Enum):
    """Polygon triangulation algorithms understood by the dispatcher."""
    FAN = 'fan'
    EAR_CLIPPING = 'ear_clipping'
    SWEEP = 'sweep'
    DELAUNAY = 'delaunay'
    EDGE_FLIP = 'edge_flip'
    MIN_WEIGHT = 'min_weight'
    SWEEP_DYNAMIC = 'sweep_dynamic'
    SWEEP_DELAUNAY = 'sweep_delaunay'
    HEURISTIC = 'heuristic'
    AUTO = 'auto'

    @classmethod
    def coerce(cls, value) -> 'Algorithm':
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(f"unknown triangulation algorithm {value!r}") from None


_MID_SIZE = (Algorithm.DELAUNAY, Algorithm.SWEEP_DYNAMIC, Algorithm.SWEEP_DELAUNAY)


@dataclass
class TriangulationConfig:
    """Triangulation request parameters.

    Attributes
    ----------
    algorithm : Algorithm
        Algorithm used when a request does not name one.
    exact_max_vertices : int
        ``AUTO`` runs the exact MinWeight program up to this many vertices.
    hybrid_max_vertices : int
        ``AUTO`` runs ``mid_size_algorithm`` up to this many vertices and
        the sweep beyond it.
    mid_size_algorithm : Algorithm
        DELAUNAY, SWEEP_DYNAMIC or SWEEP_DELAUNAY.
    check_simplicity_max_vertices : int
        Above this size ``AUTO`` skips the quadratic simplicity test and
        routes straight to the sweep, which has no precondition.
    delaunay_fallback : bool
        Retry a failed Delaunay request with ear clipping + edge flips.
    verify : bool
        Run the full triangulation verifier on every dispatched request.
    max_flip_passes : int, optional
        Cap on edge-flip sweeps; derived from the polygon size if None.
    """
    algorithm: Algorithm = Algorithm.AUTO
    exact_max_vertices: int = 12
    hybrid_max_vertices: int = 256
    mid_size_algorithm: Algorithm = Algorithm.DELAUNAY
    check_simplicity_max_vertices: int = 2048
    delaunay_fallback: bool = True
    verify: bool = False
    max_flip_passes: Optional[int] = None

    def __post_init__(self):
        self.algorithm = Algorithm.coerce(self.algorithm)
        self.mid_size_algorithm = Algorithm.coerce(self.mid_size_algorithm)
        if self.mid_size_algorithm not in _MID_SIZE:
            raise ValueError("mid_size_algorithm must be DELAUNAY, SWEEP_DYNAMIC or SWEEP_DELAUNAY")
        if self.exact_max_vertices < 3:
            raise ValueError("exact_max_vertices must be >= 3")
        if self.hybrid_max_vertices < self.exact_max_vertices:
            raise ValueError("hybrid_max_vertices must be >= exact_max_vertices")

    def with_algorithm(self, algorithm) -> 'TriangulationConfig':
        return replace(self, algorithm=Algorithm.coerce(algorithm))


@dataclass
class MeshConfig:
    """Unified mesh configuration.

    Attributes
    ----------
    check_after_mutation : bool
        Run the full invariant check after every mutating primitive.
    triangulation : TriangulationConfig
        Defaults for face triangulation requests.
    extras : dict
        Free-form dictionary for caller extensions.
    """
    check_after_mutation: bool = False
    triangulation: TriangulationConfig = field(default_factory=TriangulationConfig)
    extras: Dict[str, Any] = field(default_factory=dict)


__all__ = ['Algorithm', 'TriangulationConfig', 'MeshConfig']
