"""
Leave-one-out cross-validation of the kernel smoother.

For one candidate bandwidth, every time step is evaluated separately:
each observation is held out in turn and predicted from the remaining
observations of the same time step. Splits whose prediction has no kernel
support are excluded and counted; time steps with fewer than two
observations are excluded entirely.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Union
import numpy as np

from stsmooth.core.geometry.grid import squared_distances
from stsmooth.core.regression.kernels import Kernel, GaussianRBFKernel
from stsmooth.core.regression.nadaraya_watson import nadaraya_watson
from stsmooth.data import CrossValidationResult, ObservationSet, TimeStepError
from stsmooth.errors import InsufficientDataError

__all__ = [
    "time_step_error",
    "cross_validate",
    "cross_validation_error",
]

logger = logging.getLogger(__name__)

ObservationsByTime = Union[ObservationSet, Mapping[Any, ObservationSet]]


def _kernel_for(bandwidth: float, kernel: Optional[Kernel]) -> Kernel:
    if kernel is None:
        return GaussianRBFKernel(bandwidth=bandwidth)
    return kernel.with_bandwidth(bandwidth)


def time_step_error(
    bandwidth: float,
    observations: ObservationSet,
    time_value: Any = None,
    kernel: Optional[Kernel] = None,
    min_weight_sum: float = 0.0,
) -> TimeStepError:
    """
    Compute the LOOCV error of one time step.

    Uses a precomputed distance matrix with the diagonal removed, so row i
    is the Kernel Evaluator applied to all observations except i at the
    location of observation i.

    Args:
        bandwidth: Kernel bandwidth h > 0
        observations: Observations of a single time step
        time_value: Time value used to label the outcome
        kernel: Kernel to use (default: GaussianRBFKernel)
        min_weight_sum: Support threshold on the total kernel weight

    Returns:
        TimeStepError with the mean squared error over supported splits

    Raises:
        InsufficientDataError: If the time step has fewer than 2 observations
    """
    n = len(observations)
    if n < 2:
        raise InsufficientDataError(
            f"Time step {time_value!s} has {n} observation(s); "
            "leave-one-out needs at least 2",
            details={"time": time_value, "n_observations": n},
        )

    kernel = _kernel_for(bandwidth, kernel)
    coords = observations.coordinates
    values = observations.values

    # Hold out observation i from its own prediction
    sq = squared_distances(coords, coords)
    np.fill_diagonal(sq, np.inf)

    predictions, supported = nadaraya_watson(sq, values, kernel, min_weight_sum)
    n_excluded = int(np.count_nonzero(~supported))

    outcome = TimeStepError(
        time=time_value,
        n_observations=n,
        n_splits=n,
        n_excluded=n_excluded,
    )

    if n_excluded == n:
        outcome.reason = "no_support"
        return outcome

    squared_errors = (predictions[supported] - values[supported]) ** 2
    outcome.mse = float(np.mean(squared_errors))
    return outcome


def _by_time(observations: ObservationsByTime) -> Dict[Any, ObservationSet]:
    if isinstance(observations, ObservationSet):
        return observations.split_by_time()
    return dict(observations)


def cross_validate(
    bandwidth: float,
    observations: ObservationsByTime,
    kernel: Optional[Kernel] = None,
    min_weight_sum: float = 0.0,
) -> CrossValidationResult:
    """
    Cross-validation outcome of one bandwidth across all time steps.

    Args:
        bandwidth: Kernel bandwidth h > 0
        observations: ObservationSet, or mapping of time -> ObservationSet
        kernel: Kernel to use (default: GaussianRBFKernel)
        min_weight_sum: Support threshold on the total kernel weight

    Returns:
        CrossValidationResult; its ``error`` is NaN when no time step
        produced a defined error
    """
    kernel = _kernel_for(bandwidth, kernel)
    outcomes: List[TimeStepError] = []

    for time_value, subset in _by_time(observations).items():
        try:
            outcome = time_step_error(
                bandwidth, subset, time_value, kernel=kernel,
                min_weight_sum=min_weight_sum,
            )
        except InsufficientDataError as e:
            logger.debug("Excluding time step from CV: %s", e.message)
            outcome = TimeStepError(
                time=time_value,
                n_observations=len(subset),
                reason="insufficient_data",
            )

        if outcome.n_excluded:
            logger.debug(
                "h=%.6g, time %s: %d of %d splits excluded (no support)",
                bandwidth, time_value, outcome.n_excluded, outcome.n_splits,
            )
        outcomes.append(outcome)

    result = CrossValidationResult.from_time_steps(bandwidth, outcomes)

    logger.debug(
        "h=%.6g: CV error %s (%d time steps used, %d excluded, %d splits excluded)",
        bandwidth,
        f"{result.error:.6g}" if result.is_defined else "missing",
        result.n_time_steps_used,
        result.n_time_steps_excluded,
        result.n_excluded_splits,
    )
    return result


def cross_validation_error(
    bandwidth: float,
    observations: ObservationsByTime,
    kernel: Optional[Kernel] = None,
    min_weight_sum: float = 0.0,
) -> float:
    """
    Leave-one-out cross-validation error of a bandwidth.

    Mean over time steps of the per-time-step mean squared LOO error.

    Returns:
        The error, or NaN when the bandwidth has no valid estimate
        (for example, every time step has a single observation)
    """
    return cross_validate(bandwidth, observations, kernel, min_weight_sum).error
