#!/usr/bin/env python3
"""
Example 01: Basic Smoothing

This example smooths a week of synthetic PM2.5 readings from scattered
stations onto a regular grid, with the bandwidth chosen by leave-one-out
cross-validation.

Usage:
    python 01_basic_smoothing.py [output_dir]
"""

import sys

import numpy as np
import pandas as pd


def make_readings(n_days: int = 7, n_stations: int = 25, seed: int = 0) -> pd.DataFrame:
    """Synthetic readings around lower Manhattan."""
    rng = np.random.default_rng(seed)
    lon = rng.uniform(-74.05, -73.90, n_stations)
    lat = rng.uniform(40.65, 40.80, n_stations)

    rows = []
    for day in pd.date_range("2024-01-01", periods=n_days, freq="D"):
        level = 8.0 + 4.0 * np.sin(day.dayofyear / 3.0)
        pm25 = level + 30.0 * (lon + 74.0) - 20.0 * (lat - 40.7) + rng.normal(0, 0.8, n_stations)
        rows.extend(zip([day] * n_stations, lat, lon, pm25))

    return pd.DataFrame(rows, columns=["date", "lat", "lon", "pm25"])


def main():
    """Run basic smoothing example."""
    output_dir = sys.argv[1] if len(sys.argv) > 1 else None

    from stsmooth import EvaluationGrid, ObservationSet, iterative_smoother
    from stsmooth.core.regression import candidate_range

    readings = make_readings()
    observations = ObservationSet.from_frame(
        readings, time="date", latitude="lat", longitude="lon", value="pm25"
    )
    print(f"Loaded {observations}")

    grid = EvaluationGrid.from_bounds(-74.05, -73.90, 0.01, 40.65, 40.80, 0.01)
    print(f"Grid: {grid.shape[1]} x {grid.shape[0]} points")
    print()

    result = iterative_smoother(observations, grid, candidate_range(0.005, 0.2, 40))
    print(result.summary())
    print()

    print("First rows:")
    print(result.table.head(10).to_string(index=False))

    if output_dir:
        files = result.save(output_dir, overwrite=True)
        print()
        for name, path in files.items():
            print(f"  {name}: {path}")


if __name__ == "__main__":
    main()
