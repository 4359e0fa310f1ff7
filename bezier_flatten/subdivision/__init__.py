"""Adaptive subdivision of cubic Bézier curves.

Modules:
    - subdivider: Subdivider (flatten, trace, flatten_path) and make_subdivider()

Used by:
    - scripts/flatten_curves.py: batch flattening of curves.v1 files
    - Rendering/stroking layers embedding the library
"""

from .subdivider import Branch, Subdivider, SubdivisionEvent, make_subdivider

__all__ = [
    'Branch',
    'Subdivider',
    'SubdivisionEvent',
    'make_subdivider',
]
