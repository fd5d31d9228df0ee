"""
Kernel functions for planar kernel regression.

Kernels map (squared) Euclidean distances in longitude/latitude space to
non-negative weights for the Nadaraya-Watson smoother.
"""

from abc import ABC, abstractmethod
from typing import Union
import numpy as np

from stsmooth.errors import ParameterError

__all__ = [
    "Kernel",
    "GaussianRBFKernel",
]


def _check_bandwidth(value: float) -> float:
    value = float(value)
    if not np.isfinite(value) or value <= 0:
        raise ParameterError(
            f"Bandwidth must be a positive finite number, got {value}",
            suggestion="Pass h > 0, e.g. a value in the range of the observation spacing",
        )
    return value


class Kernel(ABC):
    """Abstract base class for kernel functions."""

    @abstractmethod
    def __call__(
        self, distance: Union[float, np.ndarray]
    ) -> Union[float, np.ndarray]:
        """
        Compute kernel weight for given distance(s).

        Args:
            distance: Euclidean distance value(s)

        Returns:
            Kernel weight(s), non-negative values
        """
        pass

    @abstractmethod
    def log_weight(
        self, squared_distance: Union[float, np.ndarray]
    ) -> Union[float, np.ndarray]:
        """
        Compute the natural log of the kernel weight from squared distance(s).

        Working in log space lets callers rescale weights before
        exponentiating, which avoids losing precision to underflow.
        """
        pass

    def from_squared(
        self, squared_distance: Union[float, np.ndarray]
    ) -> Union[float, np.ndarray]:
        """Compute kernel weight(s) from squared distance(s)."""
        return np.exp(self.log_weight(squared_distance))

    @property
    @abstractmethod
    def bandwidth(self) -> float:
        """Return the kernel bandwidth parameter."""
        pass

    @bandwidth.setter
    @abstractmethod
    def bandwidth(self, value: float) -> None:
        """Set the kernel bandwidth parameter."""
        pass

    @abstractmethod
    def with_bandwidth(self, value: float) -> "Kernel":
        """Return a copy of this kernel with a different bandwidth."""
        pass


class GaussianRBFKernel(Kernel):
    """
    Gaussian Radial Basis Function kernel.

    K(d) = exp(-d² / (2h²))

    where d is the Euclidean distance and h is the bandwidth. Infinite
    support: every observation gets a positive weight in exact arithmetic,
    but weights underflow to zero in floating point once d²/(2h²) exceeds
    roughly 745.

    Attributes:
        _bandwidth: Standard deviation (h) of the Gaussian
    """

    def __init__(self, bandwidth: float = 1.0):
        """
        Initialize Gaussian RBF kernel.

        Args:
            bandwidth: Standard deviation h (controls spatial decay rate)
        """
        self._bandwidth = _check_bandwidth(bandwidth)

    def __call__(
        self, distance: Union[float, np.ndarray]
    ) -> Union[float, np.ndarray]:
        """
        Compute Gaussian kernel weight.

        Args:
            distance: Euclidean distance(s)

        Returns:
            Kernel weight(s) in range [0, 1]
        """
        return self.from_squared(np.square(distance))

    def log_weight(
        self, squared_distance: Union[float, np.ndarray]
    ) -> Union[float, np.ndarray]:
        # log K = -d² / (2h²)
        return -np.asarray(squared_distance, dtype=np.float64) / (2.0 * self._bandwidth ** 2)

    @property
    def bandwidth(self) -> float:
        return self._bandwidth

    @bandwidth.setter
    def bandwidth(self, value: float) -> None:
        self._bandwidth = _check_bandwidth(value)

    def with_bandwidth(self, value: float) -> "GaussianRBFKernel":
        return GaussianRBFKernel(bandwidth=value)

    def __repr__(self) -> str:
        return f"GaussianRBFKernel(bandwidth={self._bandwidth:.4f})"
