"""bezier_flatten: curvature-adaptive flattening of cubic Bézier curves.

Turns cubic Bézier segments into polylines for path-rendering and stroking
pipelines, refining where curvature is high and coarsening where the curve
is nearly straight. Tolerance is relative to the display scale.

Architecture layers (strict one-way dependency):
    scripts/ → bezier_flatten/subdivision/ → bezier_flatten/utils/

Key invariants:
    - Output polylines start and end exactly on the curve end points
    - Vertices are emitted in increasing curve-parameter order
    - Subdivision depth is bounded by recursion_limit; nothing in the core raises
    - YAML-only configs, validated by pydantic schemas
"""

__version__ = "1.0.0"

from .subdivision import Branch, Subdivider, SubdivisionEvent, make_subdivider
from .utils.validators import SubdividerConfig

__all__ = [
    'Branch',
    'Subdivider',
    'SubdividerConfig',
    'SubdivisionEvent',
    'make_subdivider',
]
