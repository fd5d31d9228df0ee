"""
Pydantic configuration schemas for stsmooth.

This module defines all configuration classes using Pydantic v2 for
type-safe configuration management with validation and serialization.
"""

from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

__all__ = [
    "DataConfig",
    "GridConfig",
    "BandwidthConfig",
    "ExecutionConfig",
    "OutputConfig",
    "Config",
]


class DataConfig(BaseModel):
    """Column mapping from the input table to the observation fields."""

    model_config = ConfigDict(extra="forbid")

    time_column: str = Field(
        default="time",
        description="Column holding the time step (date or timestamp)",
    )
    latitude_column: str = Field(
        default="latitude",
        description="Column holding latitude (y coordinate)",
    )
    longitude_column: str = Field(
        default="longitude",
        description="Column holding longitude (x coordinate)",
    )
    value_column: str = Field(
        default="value",
        description="Column holding the observed value",
    )
    parse_dates: bool = Field(
        default=True,
        description="Parse the time column as dates when reading text formats",
    )

    @property
    def columns(self) -> Dict[str, str]:
        """Keyword mapping accepted by ObservationSet.from_frame."""
        return {
            "time": self.time_column,
            "latitude": self.latitude_column,
            "longitude": self.longitude_column,
            "value": self.value_column,
        }


class GridConfig(BaseModel):
    """
    Evaluation grid bounds and spacing.

    Bounds left unset are taken from the extent of the observations; a
    step left unset is derived from ``resolution`` (points per axis).
    """

    model_config = ConfigDict(extra="forbid")

    x_min: Optional[float] = Field(default=None, description="Minimum longitude")
    x_max: Optional[float] = Field(default=None, description="Maximum longitude")
    x_step: Optional[float] = Field(default=None, gt=0, description="Longitude spacing")
    y_min: Optional[float] = Field(default=None, description="Minimum latitude")
    y_max: Optional[float] = Field(default=None, description="Maximum latitude")
    y_step: Optional[float] = Field(default=None, gt=0, description="Latitude spacing")
    resolution: int = Field(
        default=50,
        ge=2,
        le=10000,
        description="Points per axis when a step is not given",
    )

    @model_validator(mode="after")
    def validate_bounds(self) -> "GridConfig":
        """Ensure max >= min where both are set."""
        for axis in ("x", "y"):
            lo = getattr(self, f"{axis}_min")
            hi = getattr(self, f"{axis}_max")
            if lo is not None and hi is not None and hi < lo:
                raise ValueError(f"{axis}_max ({hi}) must be >= {axis}_min ({lo})")
        return self

    @property
    def is_complete(self) -> bool:
        """True if the grid can be built without looking at the data."""
        return None not in (
            self.x_min, self.x_max, self.x_step,
            self.y_min, self.y_max, self.y_step,
        )

    def _axis(self, lo, hi, step, data_lo, data_hi):
        lo = data_lo if lo is None else lo
        hi = data_hi if hi is None else hi
        if step is None:
            span = hi - lo
            step = span / (self.resolution - 1) if span > 0 else 1.0
        return lo, hi, step

    def build(self, observations=None):
        """
        Build the evaluation grid.

        Args:
            observations: ObservationSet used to fill unset bounds

        Returns:
            EvaluationGrid
        """
        from stsmooth.core.geometry.grid import EvaluationGrid
        from stsmooth.errors import ParameterError

        if not self.is_complete and (observations is None or observations.is_empty):
            raise ParameterError(
                "Grid bounds are incomplete and there are no observations to derive them from",
                suggestion="Set x_min, x_max, y_min, y_max in the [grid] section",
            )

        if observations is not None and not observations.is_empty:
            coords = observations.coordinates
            x_lo, y_lo = coords.min(axis=0)
            x_hi, y_hi = coords.max(axis=0)
        else:
            x_lo = x_hi = y_lo = y_hi = None

        x = self._axis(self.x_min, self.x_max, self.x_step, x_lo, x_hi)
        y = self._axis(self.y_min, self.y_max, self.y_step, y_lo, y_hi)
        return EvaluationGrid.from_bounds(
            float(x[0]), float(x[1]), float(x[2]),
            float(y[0]), float(y[1]), float(y[2]),
        )


class BandwidthConfig(BaseModel):
    """
    Bandwidth selection configuration.

    Precedence: a fixed ``value`` skips selection; otherwise explicit
    ``candidates``; otherwise ``range_start``..``range_stop``; otherwise a
    range around the Silverman rule-of-thumb estimate.
    """

    model_config = ConfigDict(extra="forbid")

    value: Optional[float] = Field(
        default=None,
        gt=0,
        description="Fixed bandwidth (skips cross-validation)",
    )
    candidates: Optional[List[float]] = Field(
        default=None,
        description="Ordered candidate bandwidths",
    )
    range_start: Optional[float] = Field(
        default=None,
        gt=0,
        description="Smallest candidate of a linear range",
    )
    range_stop: Optional[float] = Field(
        default=None,
        gt=0,
        description="Largest candidate of a linear range",
    )
    num_candidates: int = Field(
        default=30,
        ge=1,
        le=10000,
        description="Number of candidates in a generated range",
    )
    min_weight_sum: float = Field(
        default=0.0,
        ge=0.0,
        description="Total kernel weight a prediction needs to count as supported",
    )
    timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        description="Deadline for the whole bandwidth sweep",
    )

    @field_validator("candidates", mode="before")
    @classmethod
    def parse_candidates(cls, v: Any) -> Optional[List[float]]:
        """Parse candidate string like '0.1,0.2,0.5'."""
        if v is None:
            return None
        if isinstance(v, str):
            v = [s for s in v.replace(" ", "").split(",") if s]
        values = [float(s) for s in v] if isinstance(v, (list, tuple)) else [float(v)]
        if not values:
            raise ValueError("candidates must not be empty")
        if any(h <= 0 for h in values):
            raise ValueError("candidates must be positive")
        return values

    @model_validator(mode="after")
    def validate_range(self) -> "BandwidthConfig":
        """Ensure range_start and range_stop come together and are ordered."""
        if (self.range_start is None) != (self.range_stop is None):
            raise ValueError("range_start and range_stop must be given together")
        if self.range_start is not None and self.range_stop < self.range_start:
            raise ValueError("range_stop must be >= range_start")
        return self

    def resolve_candidates(self, observations=None) -> List[float]:
        """
        Ordered candidate bandwidths for the sweep.

        Args:
            observations: ObservationSet used for the rule-of-thumb fallback

        Returns:
            List of candidates
        """
        from stsmooth.core.regression.bandwidth import candidate_range, default_candidates

        if self.candidates is not None:
            return list(self.candidates)
        if self.range_start is not None:
            return candidate_range(self.range_start, self.range_stop, self.num_candidates)
        return default_candidates(observations, num=self.num_candidates)


class ExecutionConfig(BaseModel):
    """Configuration for parallel execution."""

    model_config = ConfigDict(extra="forbid")

    workers: int = Field(
        default=1,
        ge=1,
        le=256,
        description="Parallel workers for the sweep and the smoothing pass",
    )
    backend: Literal["thread", "process"] = Field(
        default="thread",
        description="Worker pool type",
    )
    chunk_size: int = Field(
        default=4096,
        ge=1,
        description="Grid points evaluated per distance matrix",
    )
    show_progress: bool = Field(
        default=False,
        description="Show progress bars",
    )
    on_step_error: Literal["raise", "skip"] = Field(
        default="raise",
        description="Propagate a failing time step, or skip it and keep partial results",
    )


class OutputConfig(BaseModel):
    """Configuration for output paths and formats."""

    model_config = ConfigDict(extra="forbid")

    base_dir: Path = Field(
        default=Path("results"),
        description="Base output directory",
    )
    format: Literal["csv", "parquet", "json"] = Field(
        default="csv",
        description="Results table format",
    )
    overwrite: bool = Field(
        default=False,
        description="Overwrite existing results",
    )
    save_cv_errors: bool = Field(
        default=True,
        description="Save the candidate/error table next to the results",
    )

    @field_validator("base_dir", mode="before")
    @classmethod
    def validate_base_dir(cls, v: Any) -> Path:
        """Convert string to Path."""
        return Path(v) if isinstance(v, str) else v


class Config(BaseModel):
    """
    Main configuration class for stsmooth.

    This class combines all sub-configurations and provides methods
    for loading from TOML/YAML files.

    Example:
        >>> config = Config.from_toml("stsmooth.toml")
        >>> config = Config(
        ...     grid=GridConfig(x_min=-75, x_max=-73, x_step=0.1,
        ...                     y_min=40, y_max=41, y_step=0.1),
        ...     bandwidth=BandwidthConfig(candidates=[0.05, 0.1, 0.2]),
        ... )
    """

    model_config = ConfigDict(extra="forbid")

    data: DataConfig = Field(
        default_factory=DataConfig,
        description="Input column mapping",
    )
    grid: GridConfig = Field(
        default_factory=GridConfig,
        description="Evaluation grid configuration",
    )
    bandwidth: BandwidthConfig = Field(
        default_factory=BandwidthConfig,
        description="Bandwidth selection configuration",
    )
    execution: ExecutionConfig = Field(
        default_factory=ExecutionConfig,
        description="Execution configuration",
    )
    output: OutputConfig = Field(
        default_factory=OutputConfig,
        description="Output configuration",
    )

    @classmethod
    def from_toml(cls, path: Union[str, Path]) -> "Config":
        """
        Load configuration from TOML file.

        Args:
            path: Path to TOML configuration file

        Returns:
            Config instance
        """
        import sys

        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        # Use tomli for Python < 3.11, tomllib for >= 3.11
        if sys.version_info >= (3, 11):
            import tomllib

            with open(path, "rb") as f:
                data = tomllib.load(f)
        else:
            import tomli

            with open(path, "rb") as f:
                data = tomli.load(f)

        return cls(**data)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "Config":
        """
        Load configuration from YAML file.

        Args:
            path: Path to YAML configuration file

        Returns:
            Config instance
        """
        import yaml

        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "Config":
        """Load configuration from JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        return cls.model_validate_json(path.read_text())

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "Config":
        """
        Load configuration from file (auto-detect format).

        Args:
            path: Path to configuration file (.toml, .yaml/.yml or .json)

        Returns:
            Config instance
        """
        path = Path(path)
        suffix = path.suffix.lower()

        if suffix == ".toml":
            return cls.from_toml(path)
        elif suffix in (".yaml", ".yml"):
            return cls.from_yaml(path)
        elif suffix == ".json":
            return cls.from_json(path)
        else:
            raise ValueError(f"Unsupported config format: {suffix}")

    def to_toml(self, path: Union[str, Path]) -> None:
        """
        Save configuration to TOML file.

        TOML has no null, so unset options are left out.

        Args:
            path: Output path
        """
        import tomli_w

        path = Path(path)
        data = self.model_dump(mode="json", exclude_none=True)

        # Convert Path objects to strings
        data = _convert_paths_to_strings(data)

        with open(path, "wb") as f:
            tomli_w.dump(data, f)

    def to_yaml(self, path: Union[str, Path]) -> None:
        """
        Save configuration to YAML file.

        Args:
            path: Output path
        """
        import yaml

        path = Path(path)
        data = self.model_dump(mode="json")
        data = _convert_paths_to_strings(data)

        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)


def _convert_paths_to_strings(obj: Any) -> Any:
    """Recursively convert Path objects to strings for serialization."""
    if isinstance(obj, Path):
        return str(obj)
    elif isinstance(obj, dict):
        return {k: _convert_paths_to_strings(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_convert_paths_to_strings(v) for v in obj]
    elif isinstance(obj, tuple):
        return list(_convert_paths_to_strings(v) for v in obj)
    return obj
