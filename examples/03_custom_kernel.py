#!/usr/bin/env python3
"""
Example 03: Custom Kernel

This example shows how to plug a different kernel into the smoother.
A Cauchy kernel has heavier tails than the Gaussian, so points far from
every station still receive an estimate.

Usage:
    python 03_custom_kernel.py
"""

import numpy as np

from stsmooth.core.regression import GaussianRBFKernel, Kernel


class CauchyKernel(Kernel):
    """
    Cauchy kernel.

    K(d) = 1 / (1 + d² / h²)
    """

    def __init__(self, bandwidth: float = 1.0):
        self._bandwidth = float(bandwidth)

    def __call__(self, distance):
        return self.from_squared(np.square(distance))

    def log_weight(self, squared_distance):
        return -np.log1p(np.asarray(squared_distance, dtype=np.float64) / self._bandwidth ** 2)

    @property
    def bandwidth(self) -> float:
        return self._bandwidth

    @bandwidth.setter
    def bandwidth(self, value: float) -> None:
        self._bandwidth = float(value)

    def with_bandwidth(self, value: float) -> "CauchyKernel":
        return CauchyKernel(bandwidth=value)


def main():
    """Run custom kernel example."""
    from stsmooth import EvaluationGrid, Observation, ObservationSet
    from stsmooth.smoothing import smooth_grid

    observations = ObservationSet.from_records([
        Observation(time=0, latitude=0.0, longitude=0.0, value=10.0),
        Observation(time=0, latitude=0.0, longitude=1.0, value=20.0),
        Observation(time=0, latitude=1.0, longitude=0.0, value=30.0),
    ])
    # Far corner of the grid is ~40 units away from every station
    grid = EvaluationGrid.from_bounds(0.0, 30.0, 10.0, 0.0, 30.0, 10.0)

    for kernel in (GaussianRBFKernel(0.05), CauchyKernel(0.05)):
        batch = smooth_grid(0, kernel.bandwidth, observations, grid, kernel=kernel)
        print(f"{type(kernel).__name__}: {batch.missing_count} of {len(batch)} points missing")
        print(batch.to_frame().pivot(index="latitude", columns="longitude", values="value").round(2))
        print()


if __name__ == "__main__":
    main()
