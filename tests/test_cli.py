"""Tests for the stsmooth command line interface."""

import pandas as pd
import pytest
from click.testing import CliRunner

from stsmooth.cli.app import cli

COLUMNS = [
    "--time-column", "date",
    "--lat-column", "lat",
    "--lon-column", "lon",
    "--value-column", "pm25",
]


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def pm25_csv(tmp_path, daily_frame):
    path = tmp_path / "pm25.csv"
    daily_frame.rename(columns={
        "time": "date", "latitude": "lat", "longitude": "lon", "value": "pm25",
    }).assign(date=lambda df: df["date"].dt.strftime("%Y-%m-%d")).to_csv(path, index=False)
    return path


def test_run(runner, pm25_csv, tmp_path):
    out = tmp_path / "out"
    result = runner.invoke(cli, [
        "run", str(pm25_csv), *COLUMNS,
        "--x-min", "0", "--x-max", "1", "--x-step", "0.5",
        "--y-min", "0", "--y-max", "1", "--y-step", "0.5",
        "--candidates", "0.1,0.3,0.6",
        "-o", str(out),
    ], obj={})

    assert result.exit_code == 0, result.output
    assert "Bandwidth:" in result.output

    table = pd.read_csv(out / "smoothed.csv")
    assert list(table.columns) == ["time", "latitude", "longitude", "value", "grid_id"]
    assert len(table) == 3 * 9
    assert sorted(table["grid_id"].unique()) == [0, 1, 2]
    assert (out / "cv_errors.csv").exists()
    assert (out / "report.json").exists()


def test_run_fixed_bandwidth_skips_selection(runner, pm25_csv, tmp_path):
    out = tmp_path / "out"
    result = runner.invoke(cli, [
        "run", str(pm25_csv), *COLUMNS, "--bandwidth", "0.4", "--resolution", "3",
        "-o", str(out),
    ], obj={})

    assert result.exit_code == 0, result.output
    assert not (out / "cv_errors.csv").exists()
    assert len(pd.read_csv(out / "smoothed.csv")) == 3 * 9


def test_select(runner, pm25_csv, tmp_path):
    table = tmp_path / "cv.csv"
    result = runner.invoke(cli, [
        "select", str(pm25_csv), *COLUMNS, "--range", "0.1", "0.5", "--num-candidates", "5",
        "-o", str(table),
    ], obj={})

    assert result.exit_code == 0, result.output
    assert "Selected bandwidth" in result.output
    assert result.output.count("*") == 1
    assert len(pd.read_csv(table)) == 5


def test_select_fails_with_single_observation_steps(runner, tmp_path):
    path = tmp_path / "sparse.csv"
    pd.DataFrame({
        "time": ["2024-01-01", "2024-01-02"],
        "latitude": [0.0, 1.0],
        "longitude": [0.0, 1.0],
        "value": [1.0, 2.0],
    }).to_csv(path, index=False)

    result = runner.invoke(cli, ["select", str(path), "--candidates", "0.5,1.0"], obj={})

    assert result.exit_code == 1
    assert "fewer than 2 observations" in result.output


def test_candidates_parsed_by_config(runner, pm25_csv):
    result = runner.invoke(cli, ["select", str(pm25_csv), *COLUMNS, "--candidates", "0.3, 0.1"], obj={})

    assert result.exit_code == 0, result.output
    assert "0.3" in result.output
    assert result.output.count("*") == 1


def test_bad_candidates(runner, pm25_csv):
    result = runner.invoke(cli, ["select", str(pm25_csv), *COLUMNS, "--candidates", "a,b"], obj={})
    assert result.exit_code == 2


def test_info(runner):
    result = runner.invoke(cli, ["info"], obj={})
    assert result.exit_code == 0
    assert "NumPy" in result.output


def test_init_and_validate(runner, tmp_path):
    path = tmp_path / "stsmooth.toml"
    result = runner.invoke(cli, ["init", "--format", "toml", "-o", str(path)], obj={})
    assert result.exit_code == 0, result.output
    assert path.exists()

    result = runner.invoke(cli, ["init", "--format", "toml", "-o", str(path)], obj={})
    assert result.exit_code == 1

    result = runner.invoke(cli, ["config", "validate", str(path)], obj={})
    assert result.exit_code == 0
    assert "Configuration is valid" in result.output


def test_config_validate_rejects_bad_file(runner, tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("execution:\n  workers: 0\n")

    result = runner.invoke(cli, ["config", "validate", str(path)], obj={})
    assert result.exit_code == 1
    assert "Configuration error" in result.output
