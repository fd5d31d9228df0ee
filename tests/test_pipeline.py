"""Tests for the smoothing pipeline."""

import json

import numpy as np
import pandas as pd
import pytest

from stsmooth.config import BandwidthConfig, Config, DataConfig, ExecutionConfig
from stsmooth.data import RESULT_COLUMNS
from stsmooth.errors import DataValidationError, ParameterError, SelectionFailureError
from stsmooth.smoothing import pipeline as pipeline_module
from stsmooth.smoothing.pipeline import SmoothingPipeline, iterative_smoother


CANDIDATES = [0.1, 0.2, 0.4, 0.8]


class TestIterativeSmoother:
    """Tests for the iterative_smoother entry point."""

    def test_output_table(self, daily, unit_grid):
        result = iterative_smoother(daily, unit_grid, candidates=CANDIDATES)

        assert tuple(result.table.columns) == RESULT_COLUMNS
        assert len(result.table) == 3 * len(unit_grid)
        assert result.bandwidth in CANDIDATES
        assert result.selection is not None
        assert result.skipped_steps == []

    def test_grid_ids_follow_time_order(self, daily, unit_grid):
        result = iterative_smoother(daily, unit_grid, candidates=CANDIDATES)
        table = result.table

        assert table["grid_id"].tolist() == sorted(table["grid_id"].tolist())
        firsts = table.groupby("grid_id")["time"].first()
        assert firsts.is_monotonic_increasing
        assert list(firsts.index) == [0, 1, 2]

    def test_each_step_covers_grid(self, daily, unit_grid):
        result = iterative_smoother(daily, unit_grid, bandwidth=0.3)

        for _, group in result.table.groupby("grid_id"):
            np.testing.assert_array_equal(group["longitude"], unit_grid.longitudes)
            np.testing.assert_array_equal(group["latitude"], unit_grid.latitudes)

    def test_fixed_bandwidth_skips_selection(self, daily, unit_grid):
        result = iterative_smoother(daily, unit_grid, bandwidth=0.25)

        assert result.bandwidth == 0.25
        assert result.selection is None

    def test_threads_match_sequential(self, daily, unit_grid):
        sequential = iterative_smoother(daily, unit_grid, candidates=CANDIDATES)
        threaded = iterative_smoother(daily, unit_grid, candidates=CANDIDATES, workers=3)

        assert sequential.bandwidth == threaded.bandwidth
        pd.testing.assert_frame_equal(sequential.table, threaded.table)

    def test_default_candidates(self, daily, unit_grid):
        result = iterative_smoother(daily, unit_grid, num_candidates=5)
        assert len(result.selection.candidates) == 5

    def test_unknown_option(self, daily, unit_grid):
        with pytest.raises(ParameterError):
            iterative_smoother(daily, unit_grid, bandwidth=0.3, colour="red")

    def test_selection_failure_propagates(self, unit_grid):
        frame = pd.DataFrame({
            "time": [1, 2],
            "latitude": [0.0, 0.5],
            "longitude": [0.0, 0.5],
            "value": [1.0, 2.0],
        })
        with pytest.raises(SelectionFailureError):
            iterative_smoother(frame, unit_grid, candidates=CANDIDATES)

    def test_single_observation_without_candidates(self, unit_grid):
        frame = pd.DataFrame({
            "time": [1], "latitude": [0.5], "longitude": [0.5], "value": [3.0],
        })
        with pytest.raises(SelectionFailureError, match="fewer than 2 observations"):
            SmoothingPipeline().run(frame, unit_grid)

    def test_single_observation_steps_with_fixed_bandwidth(self, unit_grid):
        frame = pd.DataFrame({
            "time": [1, 2],
            "latitude": [0.0, 0.5],
            "longitude": [0.0, 0.5],
            "value": [1.0, 2.0],
        })
        result = iterative_smoother(frame, unit_grid, bandwidth=0.5)

        by_step = result.table.groupby("grid_id")["value"]
        np.testing.assert_allclose(by_step.min(), [1.0, 2.0])
        np.testing.assert_allclose(by_step.max(), [1.0, 2.0])


class TestSmoothingPipeline:
    """Tests for SmoothingPipeline configuration handling."""

    def test_dataframe_with_column_mapping(self, daily_frame, unit_grid):
        frame = daily_frame.rename(columns={"time": "date", "value": "pm25"})
        config = Config(
            data=DataConfig(time_column="date", value_column="pm25"),
            bandwidth=BandwidthConfig(value=0.3),
        )

        result = SmoothingPipeline(config).run(frame, unit_grid)
        assert len(result.table) == 3 * len(unit_grid)

    def test_grid_from_config(self, daily):
        config = Config(
            grid={"x_min": 0.0, "x_max": 1.0, "x_step": 0.5, "y_min": 0.0, "y_max": 1.0, "y_step": 0.5},
            bandwidth=BandwidthConfig(value=0.3),
        )
        result = SmoothingPipeline(config).run(daily)

        assert len(result.grid) == 9
        assert len(result.table) == 27

    def test_skip_failed_step(self, daily, unit_grid, monkeypatch):
        failing = daily.time_steps()[1]
        original = pipeline_module.smooth_grid

        def flaky_smooth_grid(time_value, *args, **kwargs):
            if time_value == failing:
                raise RuntimeError("disk full")
            return original(time_value, *args, **kwargs)

        monkeypatch.setattr(pipeline_module, "smooth_grid", flaky_smooth_grid)

        config = Config(
            bandwidth=BandwidthConfig(value=0.3),
            execution=ExecutionConfig(on_step_error="skip"),
        )
        result = SmoothingPipeline(config).run(daily, unit_grid)

        assert result.skipped_steps == [failing]
        assert sorted(result.table["grid_id"].unique()) == [0, 2]

    def test_failed_step_raises_by_default(self, daily, unit_grid, monkeypatch):
        def broken(*args, **kwargs):
            raise RuntimeError("disk full")

        monkeypatch.setattr(pipeline_module, "smooth_grid", broken)

        with pytest.raises(RuntimeError, match="disk full"):
            SmoothingPipeline(Config(bandwidth=BandwidthConfig(value=0.3))).run(daily, unit_grid)


class TestPipelineResult:
    """Tests for PipelineResult output."""

    def test_save(self, daily, unit_grid, tmp_path):
        result = iterative_smoother(daily, unit_grid, candidates=CANDIDATES)
        files = result.save(tmp_path / "out")

        assert set(files) == {"results", "cv_errors", "report"}
        saved = pd.read_csv(files["results"])
        assert list(saved.columns) == list(RESULT_COLUMNS)
        assert len(saved) == len(result.table)

        cv = pd.read_csv(files["cv_errors"])
        assert cv["bandwidth"].tolist() == pytest.approx(CANDIDATES)

        report = json.loads(files["report"].read_text())
        assert report["bandwidth"] == result.bandwidth
        assert report["summary"]["n_time_steps"] == 3

    def test_save_refuses_overwrite(self, daily, unit_grid, tmp_path):
        result = iterative_smoother(daily, unit_grid, bandwidth=0.3)
        result.save(tmp_path)

        with pytest.raises(DataValidationError, match="already exists"):
            result.save(tmp_path)
        result.save(tmp_path, overwrite=True)

    def test_run_with_output_dir(self, daily, unit_grid, tmp_path):
        config = Config(
            bandwidth=BandwidthConfig(candidates=CANDIDATES),
            output={"format": "json"},
        )
        result = SmoothingPipeline(config).run(daily, unit_grid, output_dir=tmp_path)

        assert (tmp_path / "smoothed.json").exists()
        assert "results" in result.output_files

    def test_summary(self, daily, unit_grid):
        result = iterative_smoother(daily, unit_grid, candidates=CANDIDATES)
        text = result.summary()

        assert "Bandwidth" in text
        assert "Time steps: 3" in text
