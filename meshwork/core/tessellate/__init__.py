"""Polygon triangulation: algorithms, strategies and the dispatcher.

Every algorithm takes ``(points, poly_indices)`` and returns index triples
drawn from ``poly_indices`` and wound like the boundary.
"""
from ..config import Algorithm, TriangulationConfig
from .delaunay import delaunay_triangulation
from .dispatch import reset_triangulation_stats, select_algorithm, triangulate_polygon, triangulation_stats
from .ear_clipping import EarClipper, ear_clip_triangulation
from .edge_flip import FlipTriangulation, edge_flip_triangulation
from .fan import fan_triangulation
from .heuristic import heuristic_triangulation
from .min_weight import min_weight_quad, min_weight_triangulation
from .polygon import Polygon2D, Triangle, as_polygon, verify_triangulation
from .strategies import (ChainedStrategy, DelaunayStrategy, EarClipStrategy, EdgeFlipStrategy, FanStrategy,
                         HeuristicStrategy, MinWeightStrategy, SweepDelaunayStrategy, SweepDynamicStrategy,
                         SweepStrategy, TriangulationStrategy, strategy_for)
from .sweep import (monotone_pieces, sweep_delaunay_triangulation, sweep_dynamic_triangulation,
                    sweep_triangulation)

__all__ = [
    'Algorithm', 'TriangulationConfig',
    # algorithms
    'fan_triangulation', 'ear_clip_triangulation', 'sweep_triangulation', 'delaunay_triangulation',
    'edge_flip_triangulation', 'min_weight_triangulation', 'sweep_dynamic_triangulation',
    'sweep_delaunay_triangulation', 'heuristic_triangulation', 'min_weight_quad',
    # building blocks
    'Polygon2D', 'Triangle', 'as_polygon', 'EarClipper', 'FlipTriangulation', 'monotone_pieces',
    # strategies
    'TriangulationStrategy', 'FanStrategy', 'EarClipStrategy', 'SweepStrategy', 'DelaunayStrategy',
    'EdgeFlipStrategy', 'MinWeightStrategy', 'SweepDynamicStrategy', 'SweepDelaunayStrategy', 'HeuristicStrategy',
    'ChainedStrategy', 'strategy_for',
    # dispatcher
    'select_algorithm', 'triangulate_polygon', 'verify_triangulation',
    'triangulation_stats', 'reset_triangulation_stats',
]
