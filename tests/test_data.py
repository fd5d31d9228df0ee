"""Tests for observation containers and table I/O."""

import numpy as np
import pandas as pd
import pytest

from stsmooth.data import Observation, ObservationSet
from stsmooth.errors import DataValidationError, ParameterError
from stsmooth.utils.io import read_observations, write_table


class TestObservationSet:
    """Tests for ObservationSet."""

    def test_time_steps_sorted(self):
        obs = ObservationSet.from_records([
            Observation(time=3, latitude=0.0, longitude=0.0, value=1.0),
            Observation(time=1, latitude=0.0, longitude=0.0, value=1.0),
            Observation(time=3, latitude=1.0, longitude=0.0, value=1.0),
        ])

        assert obs.time_steps() == [1, 3]
        assert [len(s) for s in obs.split_by_time().values()] == [1, 2]

    def test_coordinates_are_longitude_latitude(self):
        obs = ObservationSet.from_records([
            Observation(time=0, latitude=40.7, longitude=-74.0, value=12.0),
        ])
        np.testing.assert_array_equal(obs.coordinates, [[-74.0, 40.7]])

    def test_from_frame_column_mapping(self):
        frame = pd.DataFrame({
            "date": ["2024-01-01"], "lat": [40.7], "lon": [-74.0], "pm25": [12.0],
        })
        obs = ObservationSet.from_frame(frame, time="date", latitude="lat", longitude="lon", value="pm25")

        assert len(obs) == 1
        assert list(obs)[0].value == 12.0

    def test_missing_column(self):
        with pytest.raises(DataValidationError):
            ObservationSet(pd.DataFrame({"time": [1], "latitude": [0.0], "value": [1.0]}))

    def test_non_finite_value(self):
        frame = pd.DataFrame({
            "time": [1, 1], "latitude": [0.0, 1.0], "longitude": [0.0, 1.0], "value": [1.0, np.nan],
        })
        with pytest.raises(DataValidationError, match="non-finite"):
            ObservationSet(frame)

    def test_non_numeric_coordinate(self):
        frame = pd.DataFrame({
            "time": [1], "latitude": ["north"], "longitude": [0.0], "value": [1.0],
        })
        with pytest.raises(DataValidationError):
            ObservationSet(frame)


class TestTableIO:
    """Tests for read_observations and write_table."""

    def test_csv_with_dates(self, tmp_path):
        path = tmp_path / "obs.csv"
        pd.DataFrame({
            "date": ["2024-01-02", "2024-01-01", "2024-01-01"],
            "lat": [0.0, 0.0, 1.0],
            "lon": [0.0, 1.0, 0.0],
            "pm25": [5.0, 6.0, 7.0],
        }).to_csv(path, index=False)

        obs = read_observations(path, columns={"time": "date", "latitude": "lat",
                                               "longitude": "lon", "value": "pm25"})

        steps = obs.time_steps()
        assert len(steps) == 2
        assert pd.Timestamp(steps[0]) == pd.Timestamp("2024-01-01")

    def test_json_round_trip(self, tmp_path, daily_frame):
        path = write_table(daily_frame, tmp_path / "obs.json")
        obs = read_observations(path)

        assert len(obs) == len(daily_frame)
        assert len(obs.time_steps()) == 3

    def test_unknown_field_in_mapping(self, tmp_path, daily_frame):
        path = write_table(daily_frame, tmp_path / "obs.csv")
        with pytest.raises(ParameterError):
            read_observations(path, columns={"pollutant": "value"})

    def test_unsupported_format(self, tmp_path, daily_frame):
        with pytest.raises(ParameterError):
            write_table(daily_frame, tmp_path / "obs.xlsx")

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_observations(tmp_path / "missing.csv")

    def test_no_overwrite(self, tmp_path, daily_frame):
        path = write_table(daily_frame, tmp_path / "obs.csv")
        with pytest.raises(DataValidationError):
            write_table(daily_frame, path, overwrite=False)
