"""Tests for configuration schemas."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from stsmooth.config import BandwidthConfig, Config, GridConfig
from stsmooth.errors import ParameterError


class TestConfig:
    """Tests for Config loading and saving."""

    def test_defaults(self):
        config = Config()

        assert config.data.time_column == "time"
        assert config.bandwidth.value is None
        assert config.execution.workers == 1
        assert config.execution.on_step_error == "raise"
        assert config.output.base_dir == Path("results")

    def test_extra_keys_forbidden(self):
        with pytest.raises(ValidationError):
            Config(plotting={"dpi": 300})

    def test_yaml_round_trip(self, tmp_path):
        config = Config(
            bandwidth=BandwidthConfig(candidates=[0.1, 0.2]),
            output={"base_dir": "out", "format": "json"},
        )
        path = tmp_path / "stsmooth.yaml"
        config.to_yaml(path)

        assert Config.from_file(path) == config

    def test_toml_round_trip(self, tmp_path):
        config = Config(
            grid=GridConfig(x_min=-75.0, x_max=-73.0, x_step=0.1),
            bandwidth=BandwidthConfig(range_start=0.01, range_stop=0.5, num_candidates=10),
        )
        path = tmp_path / "stsmooth.toml"
        config.to_toml(path)

        assert Config.from_file(path) == config

    def test_toml_file(self, tmp_path):
        path = tmp_path / "run.toml"
        path.write_text(
            "[data]\n"
            'time_column = "date"\n'
            'value_column = "pm25"\n'
            "\n"
            "[bandwidth]\n"
            'candidates = "0.05, 0.1, 0.2"\n'
            "\n"
            "[execution]\n"
            "workers = 4\n"
        )
        config = Config.from_file(path)

        assert config.data.columns["value"] == "pm25"
        assert config.bandwidth.candidates == [0.05, 0.1, 0.2]
        assert config.execution.workers == 4

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Config.from_file(tmp_path / "nope.yaml")

    def test_unsupported_suffix(self, tmp_path):
        with pytest.raises(ValueError, match="Unsupported"):
            Config.from_file(tmp_path / "config.ini")


class TestBandwidthConfig:
    """Tests for BandwidthConfig validation and candidate resolution."""

    def test_range_needs_both_ends(self):
        with pytest.raises(ValidationError):
            BandwidthConfig(range_start=0.1)

    def test_range_order(self):
        with pytest.raises(ValidationError):
            BandwidthConfig(range_start=1.0, range_stop=0.1)

    def test_negative_candidate(self):
        with pytest.raises(ValidationError):
            BandwidthConfig(candidates=[0.1, -0.2])

    def test_explicit_candidates_win(self, daily):
        config = BandwidthConfig(candidates=[0.3, 0.1], range_start=0.5, range_stop=1.0)
        assert config.resolve_candidates(daily) == [0.3, 0.1]

    def test_range(self, daily):
        config = BandwidthConfig(range_start=0.1, range_stop=0.5, num_candidates=5)
        assert config.resolve_candidates(daily) == pytest.approx([0.1, 0.2, 0.3, 0.4, 0.5])

    def test_rule_of_thumb_fallback(self, daily):
        assert len(BandwidthConfig(num_candidates=6).resolve_candidates(daily)) == 6


class TestGridConfig:
    """Tests for GridConfig.build."""

    def test_complete_bounds(self):
        grid = GridConfig(
            x_min=0.0, x_max=1.0, x_step=0.5, y_min=0.0, y_max=2.0, y_step=1.0,
        ).build()
        assert grid.shape == (3, 3)

    def test_bounds_from_observations(self, daily):
        grid = GridConfig(resolution=4).build(daily)
        coords = daily.coordinates

        assert grid.shape == (4, 4)
        assert grid.x[0] == pytest.approx(coords[:, 0].min())
        assert grid.x[-1] == pytest.approx(coords[:, 0].max())
        assert grid.y[-1] == pytest.approx(coords[:, 1].max())

    def test_incomplete_without_data(self):
        with pytest.raises(ParameterError):
            GridConfig(x_min=0.0).build()

    def test_max_below_min(self):
        with pytest.raises(ValidationError):
            GridConfig(x_min=1.0, x_max=0.0)
