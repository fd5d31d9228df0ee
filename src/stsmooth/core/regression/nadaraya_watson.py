"""
Nadaraya-Watson kernel regression estimator.

This module implements the Kernel Evaluator: a weighted mean of observed
values with Gaussian weights on planar (longitude, latitude) distance.

The estimator computes:
    ŷ(x) = Σᵢ K(d(x, xᵢ)) · yᵢ / Σᵢ K(d(x, xᵢ))

where:
    - K is a kernel function (Gaussian RBF by default)
    - d(·, ·) is the Euclidean distance in coordinate space
    - (xᵢ, yᵢ) are observations

Weights are evaluated in log space and shifted by the largest log-weight
of each query before exponentiation. The support test uses the unshifted
total weight, so a query is unsupported exactly when Σᵢ K(...) underflows
to zero (or does not exceed ``min_weight_sum``).
"""

from typing import Optional, Tuple, Union
import numpy as np

from stsmooth.core.geometry.grid import squared_distances
from stsmooth.core.regression.kernels import Kernel, GaussianRBFKernel
from stsmooth.errors import NoSupportError, ParameterError

__all__ = [
    "nadaraya_watson",
    "smooth",
    "NadarayaWatsonEstimator",
    "KernelEstimate",
]


class KernelEstimate:
    """
    Result of kernel regression at a query point.

    Attributes:
        value: Estimated value at the query point
        weight_sum: Total (unshifted) kernel weight from all observations
        weights: Kernel weights for all observations
        relative_weights: Kernel weights divided by the largest one
    """

    __slots__ = ("value", "weight_sum", "weights", "relative_weights")

    def __init__(
        self,
        value: float,
        weight_sum: float,
        weights: Optional[np.ndarray] = None,
        relative_weights: Optional[np.ndarray] = None,
    ):
        self.value = value
        self.weight_sum = weight_sum
        self.weights = weights
        self.relative_weights = relative_weights

    @property
    def effective_samples(self) -> float:
        """
        Estimate effective number of observations contributing.

        Uses the formula: n_eff = (Σwᵢ)² / Σwᵢ², which is scale-free, so it
        is computed from the relative weights when they are available.
        """
        weights = self.relative_weights if self.relative_weights is not None else self.weights
        if weights is None or len(weights) == 0:
            return 0.0
        total = np.sum(weights)
        squares = np.sum(weights ** 2)
        if squares == 0:
            return 0.0
        return float(total ** 2 / squares)

    def __repr__(self) -> str:
        return f"KernelEstimate(value={self.value:.6g}, weight_sum={self.weight_sum:.3g})"


def _shifted_weights(
    sq_distances: np.ndarray,
    kernel: Kernel,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Row-normalised kernel weights and the log of each row's largest weight.

    Entries that are +inf in ``sq_distances`` get zero weight (used to
    hold an observation out). Rows with no finite entry have peak -inf.
    """
    log_w = kernel.log_weight(sq_distances)
    peak = np.max(log_w, axis=1)
    finite_peak = np.isfinite(peak)
    safe_peak = np.where(finite_peak, peak, 0.0)

    shifted = np.exp(log_w - safe_peak[:, None])
    shifted[~finite_peak] = 0.0
    return shifted, peak


def nadaraya_watson(
    sq_distances: np.ndarray,
    values: np.ndarray,
    kernel: Kernel,
    min_weight_sum: float = 0.0,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Evaluate the kernel smoother for many queries at once.

    Args:
        sq_distances: (M, N) squared distances from M queries to N observations.
            An entry of +inf removes that observation for that query.
        values: (N,) observed values
        kernel: Kernel providing ``log_weight``
        min_weight_sum: A query is supported only if its total kernel
            weight is strictly greater than this threshold

    Returns:
        Tuple of (estimates, supported): (M,) estimates, NaN where
        unsupported, and the (M,) boolean support mask
    """
    sq_distances = np.atleast_2d(np.asarray(sq_distances, dtype=np.float64))
    values = np.asarray(values, dtype=np.float64)
    n_queries, n_obs = sq_distances.shape

    if n_obs != len(values):
        raise ParameterError(
            f"Distance matrix has {n_obs} columns but {len(values)} values were given"
        )

    if n_obs == 0:
        return np.full(n_queries, np.nan), np.zeros(n_queries, dtype=bool)

    shifted, peak = _shifted_weights(sq_distances, kernel)
    shifted_sum = shifted.sum(axis=1)

    # Unshifted total weight: exp(peak) * Σ shifted
    with np.errstate(under="ignore"):
        weight_sum = np.exp(peak) * shifted_sum
    supported = weight_sum > min_weight_sum

    numerator = shifted @ values
    estimates = np.full(n_queries, np.nan)
    np.divide(numerator, shifted_sum, out=estimates, where=supported)

    return estimates, supported


def _observation_arrays(observations) -> Tuple[np.ndarray, np.ndarray]:
    """Coordinates (N, 2) and values (N,) from an ObservationSet or records."""
    if hasattr(observations, "coordinates") and hasattr(observations, "values"):
        return (
            np.asarray(observations.coordinates, dtype=np.float64).reshape(-1, 2),
            np.asarray(observations.values, dtype=np.float64),
        )

    records = list(observations)
    coords = np.array([[o.longitude, o.latitude] for o in records], dtype=np.float64)
    values = np.array([o.value for o in records], dtype=np.float64)
    return coords.reshape(-1, 2), values


def smooth(
    query_x: float,
    query_y: float,
    observations,
    bandwidth: float,
    kernel: Optional[Kernel] = None,
    min_weight_sum: float = 0.0,
) -> float:
    """
    Smoothed value at one query location.

    Args:
        query_x: Query longitude
        query_y: Query latitude
        observations: ObservationSet or iterable of Observation records
        bandwidth: Kernel bandwidth h > 0
        kernel: Kernel to use (default: GaussianRBFKernel(bandwidth))
        min_weight_sum: Support threshold on the total kernel weight

    Returns:
        Weighted mean of observed values

    Raises:
        NoSupportError: If there are no observations or the total kernel
            weight at the query point is not above ``min_weight_sum``

    Example:
        >>> smooth(0.0, 0.0, observations, bandwidth=0.5)
    """
    estimator = NadarayaWatsonEstimator(
        bandwidth=bandwidth, kernel=kernel, min_weight_sum=min_weight_sum
    )
    estimator.fit(*_observation_arrays(observations))
    return estimator.predict(query_x, query_y)


class NadarayaWatsonEstimator:
    """
    Nadaraya-Watson kernel regression estimator for planar point data.

    This estimator performs non-parametric regression using kernel
    smoothing, computing a weighted average of observed values where
    weights are determined by kernel-evaluated distances.

    Example:
        >>> estimator = NadarayaWatsonEstimator(bandwidth=0.5)
        >>> estimator.fit(coordinates, values)
        >>> prediction = estimator.predict(-73.9, 40.7)
    """

    def __init__(
        self,
        bandwidth: float = 0.5,
        kernel: Optional[Kernel] = None,
        min_weight_sum: float = 0.0,
    ):
        """
        Initialize Nadaraya-Watson estimator.

        Args:
            bandwidth: Kernel bandwidth parameter
            kernel: Kernel function (default: GaussianRBFKernel); its
                bandwidth is replaced by ``bandwidth``
            min_weight_sum: Support threshold on the total kernel weight
        """
        if kernel is None:
            kernel = GaussianRBFKernel(bandwidth=bandwidth)
        else:
            kernel = kernel.with_bandwidth(bandwidth)

        if min_weight_sum < 0:
            raise ParameterError("min_weight_sum must be non-negative")

        self.kernel = kernel
        self.min_weight_sum = float(min_weight_sum)
        self._coordinates: Optional[np.ndarray] = None
        self._values: Optional[np.ndarray] = None

    def fit(
        self,
        coordinates: np.ndarray,
        values: np.ndarray,
    ) -> "NadarayaWatsonEstimator":
        """
        Fit the estimator with observations.

        Args:
            coordinates: (N, 2) array of (longitude, latitude) pairs
            values: (N,) array of observed values

        Returns:
            self for method chaining
        """
        coordinates = np.asarray(coordinates, dtype=np.float64)
        values = np.asarray(values, dtype=np.float64)

        if coordinates.size == 0:
            coordinates = coordinates.reshape(0, 2)

        if coordinates.ndim != 2 or coordinates.shape[1] != 2:
            raise ParameterError("coordinates must be a 2D array with shape (N, 2)")

        if len(coordinates) != len(values):
            raise ParameterError("coordinates and values must have same length")

        self._coordinates = coordinates
        self._values = values

        return self

    def predict(
        self,
        query_x: float,
        query_y: float,
        return_details: bool = False,
    ) -> Union[float, KernelEstimate]:
        """
        Predict value at a query location.

        Args:
            query_x: Query longitude
            query_y: Query latitude
            return_details: If True, return KernelEstimate

        Returns:
            Predicted value, or KernelEstimate if return_details=True

        Raises:
            NoSupportError: If the query point has no kernel support
        """
        if self._coordinates is None:
            raise RuntimeError("Estimator must be fit before prediction")

        if len(self._values) == 0:
            raise NoSupportError(
                "No support at query point: there are no observations",
                details={"query": (query_x, query_y), "n_observations": 0},
            )

        sq = squared_distances([[query_x, query_y]], self._coordinates)
        estimates, supported = nadaraya_watson(
            sq, self._values, self.kernel, self.min_weight_sum
        )

        if not supported[0]:
            raise NoSupportError(
                f"No support at query point ({query_x:.6g}, {query_y:.6g}): "
                f"total kernel weight underflows for bandwidth {self.bandwidth:.6g}",
                suggestion="Use a larger bandwidth or a query closer to the observations",
                details={
                    "query": (query_x, query_y),
                    "bandwidth": self.bandwidth,
                    "n_observations": len(self._values),
                },
            )

        value = float(estimates[0])

        if return_details:
            shifted, peak = _shifted_weights(sq, self.kernel)
            with np.errstate(under="ignore"):
                weights = self.kernel.from_squared(sq[0])
                weight_sum = float(np.exp(peak[0]) * shifted[0].sum())
            return KernelEstimate(
                value=value,
                weight_sum=weight_sum,
                weights=weights,
                relative_weights=shifted[0],
            )

        return value

    def predict_batch(
        self,
        query_points: np.ndarray,
        chunk_size: Optional[int] = None,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Predict values at multiple query locations.

        Unsupported queries do not raise; they are reported through the
        returned support mask and carry NaN.

        Args:
            query_points: (M, 2) array of (longitude, latitude) pairs
            chunk_size: Evaluate at most this many queries per distance
                matrix (default: all at once)

        Returns:
            Tuple of (values, supported), each of shape (M,)
        """
        if self._coordinates is None:
            raise RuntimeError("Estimator must be fit before prediction")

        query_points = np.asarray(query_points, dtype=np.float64)
        if query_points.ndim != 2 or query_points.shape[1] != 2:
            raise ParameterError("query_points must have shape (M, 2)")

        n = len(query_points)
        step = max(int(chunk_size), 1) if chunk_size else max(n, 1)

        predictions = np.full(n, np.nan)
        supported = np.zeros(n, dtype=bool)

        for start in range(0, n, step):
            stop = min(start + step, n)
            sq = squared_distances(query_points[start:stop], self._coordinates)
            predictions[start:stop], supported[start:stop] = nadaraya_watson(
                sq, self._values, self.kernel, self.min_weight_sum
            )

        return predictions, supported

    @property
    def bandwidth(self) -> float:
        """Get current bandwidth."""
        return self.kernel.bandwidth

    @property
    def n_samples(self) -> int:
        """Number of fitted observations."""
        return len(self._values) if self._values is not None else 0

    def __repr__(self) -> str:
        n = self.n_samples
        return f"NadarayaWatsonEstimator(kernel={self.kernel}, n_samples={n})"
