"""Central numerical tolerances and identifier sentinels.

Every predicate in the package reads its slack from here so the values can
be tuned in one place (``tests/test_no_raw_tolerance_literals.py`` keeps
the algorithm modules honest).
"""
from __future__ import annotations

# Identity
NONE: int = -1                    # absent / deleted element id

# Geometry tolerances
EPS_AREA: float = 1e-12           # minimum positive (absolute) triangle area
EPS_COLINEAR: float = 1e-15       # near-colinearity threshold, relative to scale**2
EPS_INCIRCLE: float = 1e-12       # incircle slack, relative to scale**4
EPS_IMPROVEMENT: float = 1e-12    # minimum weight gain for a local improvement step
EPS_TINY: float = 1e-14           # scale-relative slack of the ear-clipping fast path
EPS_REL_AREA: float = 1e-9        # relative agreement of triangulated and polygon area
EPS_ANGLE: float = 1e-6           # slack on a total turning angle, in radians

__all__ = [
    'NONE',
    'EPS_AREA',
    'EPS_COLINEAR',
    'EPS_INCIRCLE',
    'EPS_IMPROVEMENT',
    'EPS_TINY',
    'EPS_REL_AREA',
    'EPS_ANGLE',
]
