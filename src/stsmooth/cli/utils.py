"""
CLI utility functions.

Helper functions for the command-line interface.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Optional, Union

import click

__all__ = [
    "setup_logging",
    "validate_path",
    "load_config",
    "apply_overrides",
    "format_duration",
]


def setup_logging(level: str = "INFO") -> logging.Logger:
    """
    Set up logging for CLI.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured logger
    """
    logger = logging.getLogger("stsmooth")
    logger.setLevel(getattr(logging, level.upper()))

    # Create console handler if not exists
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(getattr(logging, level.upper()))

        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    else:
        for handler in logger.handlers:
            handler.setLevel(getattr(logging, level.upper()))

    return logger


def validate_path(path: Union[str, Path], must_be_file: bool = True) -> Path:
    """
    Resolve an input path and check that it exists.

    Raises:
        click.ClickException: If the path is missing, or is not a file
            when ``must_be_file`` is set
    """
    path = Path(path).resolve()

    if not path.exists():
        raise click.ClickException(f"Path does not exist: {path}")
    if must_be_file and not path.is_file():
        raise click.ClickException(f"Path is not a file: {path}")

    return path


def load_config(config_file: Optional[str] = None):
    """
    Load a configuration file, or the defaults when none is given.

    Raises:
        click.ClickException: If the file cannot be parsed or validated
    """
    import yaml

    from stsmooth.config import Config

    if config_file is None:
        return Config()

    try:
        return Config.from_file(config_file)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        raise click.ClickException(f"Configuration error in {config_file}: {e}") from e


def apply_overrides(config, section: str, **values: Any):
    """
    Return a copy of ``config`` with command line values applied to one section.

    Options left as None keep the configured value.
    """
    from stsmooth.config import Config

    updates = {k: v for k, v in values.items() if v is not None}
    if not updates:
        return config

    data = config.model_dump()
    data[section].update(updates)
    try:
        return Config(**data)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e


def format_duration(seconds: float) -> str:
    """
    Format duration to human readable string.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted string (e.g., "1h 23m 45s")
    """
    if seconds < 60:
        return f"{seconds:.1f}s"

    minutes, secs = divmod(int(seconds), 60)
    if minutes < 60:
        return f"{minutes}m {secs}s"

    hours, mins = divmod(minutes, 60)
    return f"{hours}h {mins}m {secs}s"
