"""
Bandwidth selection methods for kernel regression.

This module provides Leave-One-Out Cross-Validation (LOOCV) bandwidth
selection over an ordered sequence of candidate bandwidths, plus helpers
for building candidate sequences.
"""

from functools import partial
from typing import Any, List, Optional, Sequence, Tuple
import logging
import numpy as np

from stsmooth.core.regression.cross_validation import ObservationsByTime, cross_validate
from stsmooth.core.regression.kernels import Kernel
from stsmooth.data import BandwidthSelection, CrossValidationResult, ObservationSet
from stsmooth.errors import ParameterError, SelectionFailureError
from stsmooth.utils.parallel import map_ordered

__all__ = [
    "LOOCVBandwidthSelector",
    "RuleOfThumbBandwidth",
    "select_bandwidth",
    "candidate_range",
    "default_candidates",
]

logger = logging.getLogger(__name__)


def _validate_candidates(candidates: Sequence[float]) -> List[float]:
    try:
        values = [float(h) for h in candidates]
    except (TypeError, ValueError) as e:
        raise ParameterError(f"Candidate bandwidths must be numbers: {e}") from e

    if not values:
        raise ParameterError(
            "At least one candidate bandwidth is required",
            suggestion="Pass e.g. candidate_range(0.01, 1.0, 50)",
        )

    bad = [h for h in values if not np.isfinite(h) or h <= 0]
    if bad:
        raise ParameterError(
            f"Candidate bandwidths must be positive and finite, got {bad[:5]}"
        )
    return values


def _as_partition(observations: ObservationsByTime):
    if isinstance(observations, ObservationSet):
        return observations.split_by_time()
    return dict(observations)


def _failure_message(partition) -> Tuple[str, str]:
    """Describe the data condition behind an all-missing sweep."""
    if not partition:
        return (
            "no observations were supplied",
            "Check the input table and its column mapping",
        )

    usable = sum(1 for subset in partition.values() if len(subset) >= 2)
    if usable == 0:
        return (
            "fewer than 2 observations in every time step, so leave-one-out "
            "cross-validation is impossible",
            "Supply a fixed bandwidth instead of selecting one from the data",
        )
    return (
        f"no leave-one-out split in any of the {usable} usable time step(s) had "
        "kernel support; the candidate bandwidths are too small for the "
        "observation spacing",
        "Use larger candidate bandwidths",
    )


class LOOCVBandwidthSelector:
    """
    Leave-One-Out Cross-Validation bandwidth selector.

    This selector finds the candidate bandwidth that minimizes the LOO-CV
    error, which estimates the prediction error on unseen data.

    The algorithm:
    1. For each candidate bandwidth h (in the given order)
    2. For each time step and each observation i in it:
       - Predict yᵢ from the other observations of that time step
       - Compute squared error (ŷᵢ - yᵢ)²
    3. Average per time step, then across time steps
    4. Return the first candidate with minimum error, ignoring missing ones

    Example:
        >>> selector = LOOCVBandwidthSelector(candidates=candidate_range(0.01, 1.0, 50))
        >>> optimal_h = selector.select(observations)
        >>> selector.selection.to_frame()
    """

    def __init__(
        self,
        candidates: Sequence[float],
        kernel: Optional[Kernel] = None,
        min_weight_sum: float = 0.0,
        workers: int = 1,
        backend: str = "thread",
        timeout: Optional[float] = None,
        show_progress: bool = False,
    ):
        """
        Initialize LOOCV bandwidth selector.

        Args:
            candidates: Ordered sequence of candidate bandwidths
            kernel: Kernel to use (default: GaussianRBFKernel)
            min_weight_sum: Support threshold on the total kernel weight
            workers: Candidates evaluated in parallel (1 = sequential)
            backend: Worker pool type ("thread" or "process")
            timeout: Deadline in seconds for the whole sweep; candidates
                already being evaluated when it passes still run to completion
            show_progress: Show a progress bar over candidates
        """
        self.candidates = _validate_candidates(candidates)
        self.kernel = kernel
        self.min_weight_sum = min_weight_sum
        self.workers = workers
        self.backend = backend
        self.timeout = timeout
        self.show_progress = show_progress

        # Results storage
        self.selection: Optional[BandwidthSelection] = None
        self.search_history: List[Tuple[float, float]] = []

    @property
    def optimal_bandwidth(self) -> Optional[float]:
        return self.selection.bandwidth if self.selection else None

    @property
    def optimal_error(self) -> Optional[float]:
        return self.selection.error if self.selection else None

    def evaluate(self, observations: ObservationsByTime) -> List[CrossValidationResult]:
        """
        Cross-validate every candidate.

        Returns:
            One CrossValidationResult per candidate, in candidate order
        """
        partition = _as_partition(observations)
        objective = partial(
            cross_validate,
            observations=partition,
            kernel=self.kernel,
            min_weight_sum=self.min_weight_sum,
        )

        results = map_ordered(
            objective,
            self.candidates,
            workers=self.workers,
            backend=self.backend,
            timeout=self.timeout,
            show_progress=self.show_progress,
            description="Bandwidth sweep",
        )

        self.search_history = [(r.bandwidth, r.error) for r in results]
        return results

    def select(self, observations: ObservationsByTime) -> float:
        """
        Select optimal bandwidth using LOOCV.

        Args:
            observations: ObservationSet, or mapping of time -> ObservationSet

        Returns:
            Optimal bandwidth (one of the candidates)

        Raises:
            SelectionFailureError: If every candidate's error is missing
        """
        partition = _as_partition(observations)
        results = self.evaluate(partition)

        best_idx = None
        for idx, result in enumerate(results):
            if not result.is_defined:
                continue
            # Strict comparison keeps the first candidate on ties
            if best_idx is None or result.error < results[best_idx].error:
                best_idx = idx

        if best_idx is None:
            condition, suggestion = _failure_message(partition)
            raise SelectionFailureError(
                f"Bandwidth selection failed for all {len(results)} candidate(s): {condition}",
                suggestion=suggestion,
                details={"candidates": list(self.candidates)},
            )

        best = results[best_idx]
        self.selection = BandwidthSelection(
            bandwidth=best.bandwidth,
            error=best.error,
            index=best_idx,
            results=results,
        )

        logger.info(
            "Selected bandwidth h=%.6g (CV error %.6g) from %d candidates",
            best.bandwidth, best.error, len(results),
        )
        n_missing = sum(1 for r in results if not r.is_defined)
        if n_missing:
            logger.info("%d candidate(s) had no valid CV estimate", n_missing)

        return self.selection.bandwidth


def select_bandwidth(
    candidates: Sequence[float],
    observations: ObservationsByTime,
    **kwargs: Any,
) -> float:
    """
    Pick the candidate bandwidth with minimum LOOCV error.

    Args:
        candidates: Ordered sequence of candidate bandwidths
        observations: ObservationSet, or mapping of time -> ObservationSet
        **kwargs: Passed to LOOCVBandwidthSelector

    Returns:
        Selected bandwidth
    """
    return LOOCVBandwidthSelector(candidates, **kwargs).select(observations)


def candidate_range(start: float, stop: float, num: int = 50) -> List[float]:
    """
    Linear range of candidate bandwidths, both ends included.

    Args:
        start: Smallest candidate (> 0)
        stop: Largest candidate (>= start)
        num: Number of candidates

    Returns:
        List of candidates in increasing order
    """
    if num < 1:
        raise ParameterError(f"num must be at least 1, got {num}")
    if start <= 0 or stop < start:
        raise ParameterError(
            f"Invalid candidate range [{start}, {stop}]",
            suggestion="Use 0 < start <= stop",
        )
    return [float(h) for h in np.linspace(start, stop, num)]


class RuleOfThumbBandwidth:
    """
    Rule-of-thumb bandwidth estimates.

    These provide quick bandwidth estimates without cross-validation,
    useful for centering a candidate range.
    """

    @staticmethod
    def _spread(coordinates: np.ndarray) -> Tuple[int, float]:
        coordinates = np.asarray(coordinates, dtype=np.float64).reshape(-1, 2)
        n = len(coordinates)
        if n < 2:
            raise ParameterError("At least 2 observations are needed for a rule-of-thumb bandwidth")

        sigma_x = np.std(coordinates[:, 0])
        sigma_y = np.std(coordinates[:, 1])

        # Geometric mean of spreads, or the non-zero one if points are collinear
        sigma = np.sqrt(sigma_x * sigma_y)
        if sigma == 0:
            sigma = max(sigma_x, sigma_y)
        return n, float(sigma)

    @staticmethod
    def silverman(coordinates: np.ndarray, minimum: float = 1e-6) -> float:
        """
        Silverman's rule of thumb.

        h = 1.06 * σ * n^(-1/5)

        Args:
            coordinates: (N, 2) array of (x, y) coordinates
            minimum: Lower bound for the returned bandwidth

        Returns:
            Bandwidth estimate
        """
        n, sigma = RuleOfThumbBandwidth._spread(coordinates)
        return max(1.06 * sigma * n ** (-1 / 5), minimum)

    @staticmethod
    def scott(coordinates: np.ndarray, minimum: float = 1e-6) -> float:
        """
        Scott's rule of thumb.

        h = σ * n^(-1/6)   (d = 2 dimensions)
        """
        n, sigma = RuleOfThumbBandwidth._spread(coordinates)
        return max(sigma * n ** (-1 / 6), minimum)


def default_candidates(
    observations: ObservationSet,
    num: int = 30,
    low: float = 0.1,
    high: float = 3.0,
) -> List[float]:
    """
    Candidate range around the Silverman estimate of the pooled data.

    Spans ``[low * h0, high * h0]`` where h0 is Silverman's bandwidth of
    all observation coordinates.

    Raises:
        SelectionFailureError: If there are fewer than 2 observations, so
            no candidate could ever be cross-validated
    """
    if observations is None or len(observations) < 2:
        partition = {} if observations is None else _as_partition(observations)
        condition, suggestion = _failure_message(partition)
        raise SelectionFailureError(
            f"Cannot derive candidate bandwidths: {condition}",
            suggestion=suggestion,
            details={"n_observations": 0 if observations is None else len(observations)},
        )

    h0 = RuleOfThumbBandwidth.silverman(observations.coordinates)
    logger.debug("Silverman bandwidth %.6g used to center candidates", h0)
    return candidate_range(low * h0, high * h0, num)
