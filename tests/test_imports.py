"""Tests that each public module imports on its own in a fresh interpreter."""

import subprocess
import sys

import pytest


@pytest.mark.parametrize("module", [
    "stsmooth.data",
    "stsmooth.utils",
    "stsmooth.utils.io",
    "stsmooth.config",
    "stsmooth.core",
    "stsmooth.smoothing",
    "stsmooth.cli.app",
])
def test_module_imports_standalone(module):
    result = subprocess.run(
        [sys.executable, "-c", f"import {module}"],
        capture_output=True,
        text=True,
    )
    assert result.returncode == 0, result.stderr


def test_read_observations_entry_point():
    result = subprocess.run(
        [sys.executable, "-c",
         "from stsmooth.data import ObservationSet; "
         "from stsmooth.utils.io import read_observations"],
        capture_output=True,
        text=True,
    )
    assert result.returncode == 0, result.stderr
