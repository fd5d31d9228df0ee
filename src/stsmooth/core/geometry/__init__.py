"""
Planar geometry for the evaluation grid.

Coordinates are (longitude, latitude) treated as Euclidean (x, y).
"""

from stsmooth.core.geometry.grid import (
    EvaluationGrid,
    axis_values,
    squared_distances,
)

__all__ = [
    "EvaluationGrid",
    "axis_values",
    "squared_distances",
]
