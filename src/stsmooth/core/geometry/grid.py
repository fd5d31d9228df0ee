"""
Planar evaluation grid and distance utilities.

The evaluation grid is the dense lattice of (longitude, latitude) points at
which smoothed values are estimated. It is built once per run, independent
of the observation data, and shared read-only by every time step and
bandwidth trial.
"""

from dataclasses import dataclass, field
from typing import Iterator, Tuple
import numpy as np
from scipy.spatial.distance import cdist

from stsmooth.errors import ParameterError

__all__ = [
    "EvaluationGrid",
    "axis_values",
    "squared_distances",
]

# Relative tolerance for including an axis endpoint that falls on the lattice
_ENDPOINT_RTOL = 1e-9


def axis_values(start: float, stop: float, step: float, name: str = "axis") -> np.ndarray:
    """
    Build one grid axis: start, start + step, ... up to and including stop.

    The stop value is included when it lies on the step lattice within a
    small floating-point tolerance.

    Args:
        start: First axis value
        stop: Upper bound (inclusive)
        step: Positive spacing
        name: Axis name used in error messages

    Returns:
        1D float array of axis values
    """
    start, stop, step = float(start), float(stop), float(step)

    if not all(np.isfinite(v) for v in (start, stop, step)):
        raise ParameterError(f"{name} bounds and step must be finite")
    if step <= 0:
        raise ParameterError(
            f"{name} step must be positive, got {step}",
            suggestion="Use a step such as 0.05 degrees",
        )
    if stop < start:
        raise ParameterError(f"{name} max ({stop}) is smaller than min ({start})")

    n_steps = int(np.floor((stop - start) / step * (1 + _ENDPOINT_RTOL) + _ENDPOINT_RTOL))
    return start + step * np.arange(n_steps + 1, dtype=np.float64)


def squared_distances(queries: np.ndarray, points: np.ndarray) -> np.ndarray:
    """
    Pairwise squared Euclidean distances.

    Args:
        queries: (M, 2) array of query (x, y) coordinates
        points: (N, 2) array of observation (x, y) coordinates

    Returns:
        (M, N) array of squared distances
    """
    queries = np.atleast_2d(np.asarray(queries, dtype=np.float64))
    points = np.atleast_2d(np.asarray(points, dtype=np.float64))

    if points.size == 0:
        return np.zeros((len(queries), 0), dtype=np.float64)

    return cdist(queries, points, metric="sqeuclidean")


@dataclass(frozen=True, eq=False)
class EvaluationGrid:
    """
    Fixed Cartesian product of longitude (x) and latitude (y) values.

    Points are ordered with x varying fastest, then y. Each point's
    identity is its (x, y) pair; the arrays are read-only.

    Attributes:
        x: Longitude axis values
        y: Latitude axis values

    Example:
        >>> grid = EvaluationGrid.from_bounds(-74.3, -73.7, 0.05, 40.5, 40.9, 0.05)
        >>> len(grid)
        117
    """
    x: np.ndarray
    y: np.ndarray
    _points: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        x = np.array(self.x, dtype=np.float64).ravel()
        y = np.array(self.y, dtype=np.float64).ravel()

        if x.size == 0 or y.size == 0:
            raise ParameterError("Grid axes must each contain at least one value")
        if not (np.all(np.isfinite(x)) and np.all(np.isfinite(y))):
            raise ParameterError("Grid axes must contain finite values only")

        xx, yy = np.meshgrid(x, y)
        points = np.column_stack([xx.ravel(), yy.ravel()])

        for arr in (x, y, points):
            arr.setflags(write=False)

        object.__setattr__(self, "x", x)
        object.__setattr__(self, "y", y)
        object.__setattr__(self, "_points", points)

    @classmethod
    def from_bounds(
        cls,
        x_min: float,
        x_max: float,
        x_step: float,
        y_min: float,
        y_max: float,
        y_step: float,
    ) -> "EvaluationGrid":
        """
        Create grid from axis bounds and steps.

        Args:
            x_min, x_max, x_step: Longitude range and spacing
            y_min, y_max, y_step: Latitude range and spacing

        Returns:
            EvaluationGrid
        """
        return cls(
            x=axis_values(x_min, x_max, x_step, name="x (longitude)"),
            y=axis_values(y_min, y_max, y_step, name="y (latitude)"),
        )

    @property
    def points(self) -> np.ndarray:
        """(G, 2) read-only array of (longitude, latitude) points."""
        return self._points

    @property
    def longitudes(self) -> np.ndarray:
        return self._points[:, 0]

    @property
    def latitudes(self) -> np.ndarray:
        return self._points[:, 1]

    @property
    def shape(self) -> Tuple[int, int]:
        """Grid shape as (n_y, n_x), matching a row-major raster."""
        return (len(self.y), len(self.x))

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[Tuple[float, float]]:
        for px, py in self._points:
            yield (float(px), float(py))

    def to_frame(self):
        """Return grid points as a DataFrame with longitude/latitude columns."""
        import pandas as pd

        return pd.DataFrame({
            "longitude": self.longitudes,
            "latitude": self.latitudes,
        })

    def __repr__(self) -> str:
        return (
            f"EvaluationGrid(x=[{self.x[0]:.4f}, {self.x[-1]:.4f}] n={len(self.x)}, "
            f"y=[{self.y[0]:.4f}, {self.y[-1]:.4f}] n={len(self.y)})"
        )
