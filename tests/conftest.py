"""Shared fixtures for stsmooth tests."""

import logging

import numpy as np
import pandas as pd
import pytest

from stsmooth.core.geometry.grid import EvaluationGrid
from stsmooth.data import Observation, ObservationSet


@pytest.fixture
def three_stations():
    """Three observations of one time step around the origin."""
    return ObservationSet.from_records([
        Observation(time=0, latitude=0.0, longitude=0.0, value=10.0),
        Observation(time=0, latitude=0.0, longitude=1.0, value=20.0),
        Observation(time=0, latitude=1.0, longitude=0.0, value=30.0),
    ])


@pytest.fixture
def pair():
    """One time step with two observations one unit apart."""
    return ObservationSet.from_records([
        Observation(time="2024-01-01", latitude=0.0, longitude=0.0, value=10.0),
        Observation(time="2024-01-01", latitude=0.0, longitude=1.0, value=14.0),
    ])


@pytest.fixture
def daily_frame():
    """Three days of scattered observations on the unit square."""
    rng = np.random.default_rng(42)
    days = pd.to_datetime(["2024-01-01", "2024-01-02", "2024-01-03"])
    rows = []
    for i, day in enumerate(days):
        for _ in range(8):
            lon, lat = rng.uniform(0.0, 1.0, size=2)
            value = 10.0 * (i + 1) + 5.0 * lon - 3.0 * lat + rng.normal(0.0, 0.5)
            rows.append((day, lat, lon, value))
    return pd.DataFrame(rows, columns=["time", "latitude", "longitude", "value"])


@pytest.fixture
def daily(daily_frame):
    return ObservationSet(daily_frame)


@pytest.fixture
def unit_grid():
    """5 x 5 grid on the unit square."""
    return EvaluationGrid.from_bounds(0.0, 1.0, 0.25, 0.0, 1.0, 0.25)


@pytest.fixture(autouse=True)
def reset_stsmooth_logger():
    """Drop handlers the CLI attaches so later tests do not log to closed streams."""
    yield
    logger = logging.getLogger("stsmooth")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
