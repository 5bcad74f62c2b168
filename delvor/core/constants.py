"""Central numerical tolerances for the triangulation and its geometry.

Every tolerance used by the predicates lives here so the package behaves
consistently and tests can refer to the same thresholds.
"""
from __future__ import annotations

# Site identity
CLOSE: float = 1e-4               # two points closer than this are the same point

# Intersection
PARALLEL: float = 1e-5            # |cross(d0, d1)| below this means parallel directions

# In-circle predicate
EPS_INCIRCLE: float = 1e-12       # relative error bound against the determinant permanent

# Traversal guards
WALK_STEP_FACTOR: int = 4         # a walk may visit at most factor * triangles + slack steps
WALK_STEP_SLACK: int = 16

__all__ = [
    'CLOSE',
    'PARALLEL',
    'EPS_INCIRCLE',
    'WALK_STEP_FACTOR',
    'WALK_STEP_SLACK',
]
