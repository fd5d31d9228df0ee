"""
Grid smoother: evaluates the kernel smoother at every grid point for one
time step.
"""

import logging
from typing import Any, Optional

from stsmooth.core.geometry.grid import EvaluationGrid
from stsmooth.core.regression.kernels import Kernel
from stsmooth.core.regression.nadaraya_watson import NadarayaWatsonEstimator
from stsmooth.data import ObservationSet, SmoothedBatch

__all__ = ["smooth_grid", "DEFAULT_CHUNK_SIZE"]

logger = logging.getLogger(__name__)

# Grid points per distance matrix
DEFAULT_CHUNK_SIZE = 4096


def smooth_grid(
    time_value: Any,
    bandwidth: float,
    observations: ObservationSet,
    grid: EvaluationGrid,
    grid_id: int = 0,
    kernel: Optional[Kernel] = None,
    min_weight_sum: float = 0.0,
    chunk_size: Optional[int] = DEFAULT_CHUNK_SIZE,
) -> SmoothedBatch:
    """
    Smooth one time step onto the evaluation grid.

    Observations are filtered to those whose time equals ``time_value``.
    Grid points without kernel support are returned as NaN and flagged in
    the batch's support mask; an empty time slice yields an all-missing
    batch rather than an error.

    Args:
        time_value: Time step to smooth
        bandwidth: Kernel bandwidth h > 0
        observations: Full observation set (all time steps)
        grid: Evaluation grid
        grid_id: Sequential identifier of this time step in the run
        kernel: Kernel to use (default: GaussianRBFKernel)
        min_weight_sum: Support threshold on the total kernel weight
        chunk_size: Grid points evaluated per distance matrix

    Returns:
        SmoothedBatch with one value per grid point, in grid order
    """
    subset = observations.for_time(time_value)

    estimator = NadarayaWatsonEstimator(
        bandwidth=bandwidth, kernel=kernel, min_weight_sum=min_weight_sum
    )
    estimator.fit(subset.coordinates, subset.values)
    values, supported = estimator.predict_batch(grid.points, chunk_size=chunk_size)

    batch = SmoothedBatch(
        time=time_value,
        grid_id=grid_id,
        bandwidth=bandwidth,
        grid=grid,
        values=values,
        supported=supported,
        n_observations=len(subset),
    )

    if subset.is_empty:
        logger.warning("Time step %s has no observations; all %d grid points missing",
                       time_value, len(grid))
    elif batch.missing_count:
        logger.warning(
            "Time step %s: %d of %d grid points have no kernel support at h=%.6g",
            time_value, batch.missing_count, len(grid), bandwidth,
        )
    else:
        logger.debug("Time step %s smoothed from %d observations", time_value, len(subset))

    return batch
