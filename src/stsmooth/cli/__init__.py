"""
stsmooth Command Line Interface.

This package provides the command-line interface for stsmooth,
including commands for smoothing and bandwidth selection.

Usage:
    stsmooth --help
    stsmooth run --help
    stsmooth select --help
"""

from stsmooth.cli.app import cli, main

__all__ = ["cli", "main"]
