"""
Data structures for observations, smoothing results and
cross-validation outcomes.

Observations come in as an ObservationSet (partitioned implicitly by time);
the Grid Smoother produces one SmoothedBatch per time step, and the
Cross-Validator / Bandwidth Selector report their outcomes as
TimeStepError, CrossValidationResult and BandwidthSelection records.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional, Sequence
import math
import numpy as np
import pandas as pd

from stsmooth.errors import DataValidationError

if TYPE_CHECKING:
    from stsmooth.core.geometry.grid import EvaluationGrid

__all__ = [
    "Observation",
    "ObservationSet",
    "SmoothedResult",
    "SmoothedBatch",
    "TimeStepError",
    "CrossValidationResult",
    "BandwidthSelection",
    "OBSERVATION_COLUMNS",
    "RESULT_COLUMNS",
]

OBSERVATION_COLUMNS = ("time", "latitude", "longitude", "value")
RESULT_COLUMNS = ("time", "latitude", "longitude", "value", "grid_id")


@dataclass(frozen=True)
class Observation:
    """
    A single point observation.

    Attributes:
        time: Time step the observation belongs to (date or timestamp)
        latitude: Latitude (y coordinate)
        longitude: Longitude (x coordinate)
        value: Observed value
    """
    time: Any
    latitude: float
    longitude: float
    value: float


class ObservationSet:
    """
    Immutable collection of observations, partitioned implicitly by time.

    Backed by a pandas DataFrame with the canonical columns
    ``time, latitude, longitude, value``. Row order carries no meaning.

    Example:
        >>> obs = ObservationSet.from_frame(df, time="date", value="pm25")
        >>> for t, subset in obs.split_by_time().items():
        ...     print(t, len(subset))
    """

    def __init__(self, frame: pd.DataFrame, validate: bool = True):
        missing = [c for c in OBSERVATION_COLUMNS if c not in frame.columns]
        if missing:
            raise DataValidationError(
                f"Observation table is missing columns: {missing}",
                suggestion="Map your column names with ObservationSet.from_frame(..., time=..., value=...)",
            )

        frame = frame.loc[:, list(OBSERVATION_COLUMNS)].reset_index(drop=True)

        if validate:
            numeric = {}
            for column in ("latitude", "longitude", "value"):
                try:
                    numeric[column] = pd.to_numeric(frame[column]).astype(np.float64)
                except (TypeError, ValueError) as e:
                    raise DataValidationError(
                        f"Column '{column}' must be numeric: {e}"
                    ) from e

                bad = ~np.isfinite(numeric[column].to_numpy())
                if bad.any():
                    raise DataValidationError(
                        f"Column '{column}' contains {int(bad.sum())} non-finite value(s)",
                        suggestion="Drop or impute missing observations before smoothing",
                        details={"rows": np.flatnonzero(bad)[:10].tolist()},
                    )
            frame = frame.assign(**numeric)

            if frame["time"].isna().any():
                raise DataValidationError("Column 'time' contains missing values")

        self._frame = frame

    @classmethod
    def from_frame(
        cls,
        frame: pd.DataFrame,
        time: str = "time",
        latitude: str = "latitude",
        longitude: str = "longitude",
        value: str = "value",
    ) -> "ObservationSet":
        """
        Create from a DataFrame with arbitrary column names.

        Args:
            frame: Input table
            time, latitude, longitude, value: Source column names

        Returns:
            ObservationSet
        """
        mapping = {time: "time", latitude: "latitude", longitude: "longitude", value: "value"}
        missing = [src for src in mapping if src not in frame.columns]
        if missing:
            raise DataValidationError(
                f"Input table is missing columns: {missing}",
                details={"available": list(frame.columns)},
            )
        return cls(frame.loc[:, list(mapping)].rename(columns=mapping))

    @classmethod
    def from_records(cls, records: Sequence[Observation]) -> "ObservationSet":
        """Create from a sequence of Observation records."""
        frame = pd.DataFrame(
            [(r.time, r.latitude, r.longitude, r.value) for r in records],
            columns=list(OBSERVATION_COLUMNS),
        )
        return cls(frame)

    def time_steps(self) -> List[Any]:
        """Distinct time values in ascending order."""
        return sorted(pd.unique(self._frame["time"]))

    def for_time(self, time_value: Any) -> "ObservationSet":
        """Observations whose time equals ``time_value`` exactly."""
        subset = self._frame[self._frame["time"] == time_value]
        return ObservationSet(subset, validate=False)

    def split_by_time(self) -> Dict[Any, "ObservationSet"]:
        """Ordered mapping of time value -> observations for that time."""
        return {t: self.for_time(t) for t in self.time_steps()}

    @property
    def coordinates(self) -> np.ndarray:
        """(N, 2) array of (longitude, latitude), i.e. (x, y)."""
        return self._frame[["longitude", "latitude"]].to_numpy(dtype=np.float64)

    @property
    def values(self) -> np.ndarray:
        return self._frame["value"].to_numpy(dtype=np.float64)

    @property
    def is_empty(self) -> bool:
        return len(self._frame) == 0

    def to_frame(self) -> pd.DataFrame:
        """Copy of the underlying table."""
        return self._frame.copy()

    def __len__(self) -> int:
        return len(self._frame)

    def __iter__(self) -> Iterator[Observation]:
        for row in self._frame.itertuples(index=False):
            yield Observation(
                time=row.time,
                latitude=float(row.latitude),
                longitude=float(row.longitude),
                value=float(row.value),
            )

    def __repr__(self) -> str:
        return f"ObservationSet(n={len(self)}, time_steps={self._frame['time'].nunique()})"


@dataclass(frozen=True)
class SmoothedResult:
    """
    One smoothed value at one grid point for one time step.

    ``value`` is NaN when the grid point had no kernel support.
    ``grid_id`` is the sequential identifier of the time step in the run.
    """
    time: Any
    latitude: float
    longitude: float
    value: float
    grid_id: int

    @property
    def is_missing(self) -> bool:
        return math.isnan(self.value)


@dataclass(eq=False)
class SmoothedBatch:
    """
    Grid Smoother output for a single time step.

    Attributes:
        time: Time value the batch was computed for
        grid_id: Sequential identifier of the time step in the run
        bandwidth: Bandwidth used
        grid: Evaluation grid (shared, read-only)
        values: (G,) smoothed values in grid order, NaN where unsupported
        supported: (G,) boolean mask of grid points with kernel support
        n_observations: Number of observations used for this time step
    """
    time: Any
    grid_id: int
    bandwidth: float
    grid: "EvaluationGrid"
    values: np.ndarray
    supported: np.ndarray
    n_observations: int = 0

    @property
    def missing_count(self) -> int:
        return int(np.count_nonzero(~self.supported))

    def __len__(self) -> int:
        return len(self.values)

    def records(self) -> Iterator[SmoothedResult]:
        for (lon, lat), value in zip(self.grid.points, self.values):
            yield SmoothedResult(
                time=self.time,
                latitude=float(lat),
                longitude=float(lon),
                value=float(value),
                grid_id=self.grid_id,
            )

    def to_frame(self) -> pd.DataFrame:
        """Long-form table with the output columns, one row per grid point."""
        n = len(self.values)
        return pd.DataFrame({
            "time": [self.time] * n,
            "latitude": self.grid.latitudes,
            "longitude": self.grid.longitudes,
            "value": self.values,
            "grid_id": np.full(n, self.grid_id, dtype=np.int64),
        })


@dataclass
class TimeStepError:
    """
    Leave-one-out outcome for one time step at one bandwidth.

    Attributes:
        time: Time value
        n_observations: Observations in the time step
        n_splits: Leave-one-out splits attempted
        n_excluded: Splits excluded because the evaluator had no support
        mse: Mean squared error over non-excluded splits (NaN if undefined)
        reason: Why mse is undefined ("insufficient_data", "no_support") or None
    """
    time: Any
    n_observations: int
    n_splits: int = 0
    n_excluded: int = 0
    mse: float = float("nan")
    reason: Optional[str] = None

    @property
    def is_defined(self) -> bool:
        return not math.isnan(self.mse)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "time": str(self.time),
            "n_observations": self.n_observations,
            "n_splits": self.n_splits,
            "n_excluded": self.n_excluded,
            "mse": None if math.isnan(self.mse) else self.mse,
            "reason": self.reason,
        }


@dataclass
class CrossValidationResult:
    """
    Cross-validation error of one bandwidth across all time steps.

    ``error`` is the mean of the defined per-time-step errors, or NaN
    ("missing") when no time step produced one.
    """
    bandwidth: float
    error: float = float("nan")
    time_steps: List[TimeStepError] = field(default_factory=list)

    @property
    def is_defined(self) -> bool:
        return not math.isnan(self.error)

    @property
    def n_time_steps_used(self) -> int:
        return sum(1 for t in self.time_steps if t.is_defined)

    @property
    def n_time_steps_excluded(self) -> int:
        return sum(1 for t in self.time_steps if not t.is_defined)

    @property
    def n_excluded_splits(self) -> int:
        return sum(t.n_excluded for t in self.time_steps)

    @classmethod
    def from_time_steps(
        cls, bandwidth: float, time_steps: List[TimeStepError]
    ) -> "CrossValidationResult":
        defined = [t.mse for t in time_steps if t.is_defined]
        error = float(np.mean(defined)) if defined else float("nan")
        return cls(bandwidth=bandwidth, error=error, time_steps=time_steps)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bandwidth": self.bandwidth,
            "error": self.error if self.is_defined else None,
            "n_time_steps_used": self.n_time_steps_used,
            "n_time_steps_excluded": self.n_time_steps_excluded,
            "n_excluded_splits": self.n_excluded_splits,
            "time_steps": [t.to_dict() for t in self.time_steps],
        }


@dataclass
class BandwidthSelection:
    """
    Outcome of a bandwidth sweep.

    Attributes:
        bandwidth: Selected bandwidth
        error: Its cross-validation error
        index: Position of the selected candidate in the sweep
        results: Per-candidate results, in candidate order
    """
    bandwidth: float
    error: float
    index: int = 0
    results: List[CrossValidationResult] = field(default_factory=list)

    @property
    def candidates(self) -> List[float]:
        return [r.bandwidth for r in self.results]

    @property
    def errors(self) -> List[float]:
        return [r.error for r in self.results]

    def as_mapping(self) -> Dict[float, float]:
        """Candidate bandwidth -> cross-validation error (NaN if missing)."""
        return {r.bandwidth: r.error for r in self.results}

    def to_frame(self) -> pd.DataFrame:
        """Candidate/error table for diagnostic plotting."""
        return pd.DataFrame({
            "bandwidth": self.candidates,
            "cv_error": self.errors,
            "n_time_steps_used": [r.n_time_steps_used for r in self.results],
            "n_excluded_splits": [r.n_excluded_splits for r in self.results],
            "selected": [i == self.index for i in range(len(self.results))],
        })

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bandwidth": self.bandwidth,
            "error": self.error,
            "index": self.index,
            "candidates": [r.to_dict() for r in self.results],
        }
