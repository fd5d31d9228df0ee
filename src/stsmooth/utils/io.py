"""
I/O utilities for observation and result tables.

Provides functions for reading an observation table from CSV, Parquet or
JSON into an ObservationSet, and for writing result tables back out.
"""

import logging
from pathlib import Path
from typing import Dict, Optional, Union

import pandas as pd

from stsmooth.data import ObservationSet
from stsmooth.errors import DataValidationError, ParameterError

__all__ = [
    "read_observations",
    "read_table",
    "write_table",
    "TABLE_FORMATS",
]

logger = logging.getLogger(__name__)

TABLE_FORMATS = ("csv", "parquet", "json")


def _format_for(path: Path, format: Optional[str]) -> str:
    fmt = (format or path.suffix.lstrip(".")).lower()
    if fmt == "pq":
        fmt = "parquet"
    if fmt not in TABLE_FORMATS:
        raise ParameterError(
            f"Unsupported table format: '{fmt}'",
            suggestion=f"Use one of: {', '.join(TABLE_FORMATS)}",
        )
    return fmt


def _parquet_error(e: ImportError) -> ParameterError:
    return ParameterError(
        f"Parquet support is not installed: {e}",
        suggestion="pip install 'stsmooth[parquet]'",
    )


def read_table(path: Union[str, Path], format: Optional[str] = None) -> pd.DataFrame:
    """Load a table from file.

    Args:
        path: Path to table file
        format: "csv", "parquet" or "json" (default: from the file suffix)

    Returns:
        DataFrame
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Table not found: {path}")

    fmt = _format_for(path, format)
    if fmt == "csv":
        return pd.read_csv(path)
    elif fmt == "parquet":
        try:
            return pd.read_parquet(path)
        except ImportError as e:
            raise _parquet_error(e) from e
    return pd.read_json(path, orient="records")


def read_observations(
    path: Union[str, Path],
    columns: Optional[Dict[str, str]] = None,
    format: Optional[str] = None,
    parse_dates: bool = True,
) -> ObservationSet:
    """Load observations from a table file.

    Args:
        path: Path to table file
        columns: Mapping of observation field -> source column name, e.g.
            ``{"time": "date", "value": "pm25"}``; unmapped fields use
            their own name
        format: "csv", "parquet" or "json" (default: from the file suffix)
        parse_dates: Convert a text time column to timestamps

    Returns:
        ObservationSet

    Example:
        >>> obs = read_observations("pm25.csv", columns={"time": "date", "value": "pm25"})
    """
    frame = read_table(path, format)
    columns = dict(columns or {})

    unknown = set(columns) - {"time", "latitude", "longitude", "value"}
    if unknown:
        raise ParameterError(f"Unknown observation fields in column mapping: {sorted(unknown)}")

    time_column = columns.get("time", "time")
    if parse_dates and time_column in frame.columns and pd.api.types.is_string_dtype(frame[time_column]):
        try:
            frame[time_column] = pd.to_datetime(frame[time_column])
        except (TypeError, ValueError) as e:
            logger.debug("Keeping column '%s' as text: %s", time_column, e)

    observations = ObservationSet.from_frame(frame, **columns)
    logger.info(
        "Loaded %d observations over %d time steps from %s",
        len(observations), len(observations.time_steps()), path,
    )
    return observations


def write_table(
    frame: pd.DataFrame,
    path: Union[str, Path],
    format: Optional[str] = None,
    overwrite: bool = True,
) -> Path:
    """Save a table to file.

    Args:
        frame: Table to write
        path: Output file path
        format: "csv", "parquet" or "json" (default: from the file suffix)
        overwrite: Replace an existing file

    Returns:
        Path written
    """
    path = Path(path)
    fmt = _format_for(path, format)

    if path.exists() and not overwrite:
        raise DataValidationError(
            f"Output file already exists: {path}",
            suggestion="Pass overwrite=True or choose another output directory",
        )
    path.parent.mkdir(parents=True, exist_ok=True)

    if fmt == "csv":
        frame.to_csv(path, index=False)
    elif fmt == "parquet":
        try:
            frame.to_parquet(path, index=False)
        except ImportError as e:
            raise _parquet_error(e) from e
    else:
        frame.to_json(path, orient="records", date_format="iso", indent=2)

    logger.debug("Wrote %d rows to %s", len(frame), path)
    return path
