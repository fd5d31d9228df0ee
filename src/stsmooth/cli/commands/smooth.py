"""
Smoothing commands for stsmooth CLI.

Runs the full pipeline on an observation table: bandwidth selection,
grid smoothing of every time step, and output files.
"""

from typing import Optional, Tuple

import click

from stsmooth.cli.utils import (
    apply_overrides,
    format_duration,
    load_config,
    validate_path,
)
from stsmooth.errors import SmootherError

__all__ = ["run", "column_options", "observations_from"]


def column_options(func):
    """Attach the input column mapping options to a command."""
    options = [
        click.option("--time-column", type=str, default=None,
                     help="Time column name (default: time)"),
        click.option("--lat-column", type=str, default=None,
                     help="Latitude column name (default: latitude)"),
        click.option("--lon-column", type=str, default=None,
                     help="Longitude column name (default: longitude)"),
        click.option("--value-column", type=str, default=None,
                     help="Value column name (default: value)"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def observations_from(input_file: str, config):
    """Read the input table using the configured column mapping."""
    from stsmooth.utils.io import read_observations

    path = validate_path(input_file)
    return read_observations(
        path,
        columns=config.data.columns,
        parse_dates=config.data.parse_dates,
    )


@click.command("run")
@click.argument("input_file", type=click.Path(exists=True))
@click.option(
    "-c", "--config",
    "config_file",
    type=click.Path(exists=True),
    default=None,
    help="Configuration file path"
)
@click.option(
    "-o", "--output",
    type=click.Path(),
    default=None,
    help="Output directory for results (default: from config, 'results')"
)
@column_options
@click.option("--x-min", type=float, default=None, help="Minimum grid longitude")
@click.option("--x-max", type=float, default=None, help="Maximum grid longitude")
@click.option("--x-step", type=float, default=None, help="Grid longitude spacing")
@click.option("--y-min", type=float, default=None, help="Minimum grid latitude")
@click.option("--y-max", type=float, default=None, help="Maximum grid latitude")
@click.option("--y-step", type=float, default=None, help="Grid latitude spacing")
@click.option(
    "--resolution",
    type=int,
    default=None,
    help="Grid points per axis when a step is not given"
)
@click.option(
    "--bandwidth",
    type=float,
    default=None,
    help="Fixed bandwidth (skips cross-validation)"
)
@click.option(
    "--candidates",
    type=str,
    default=None,
    help="Comma-separated candidate bandwidths, e.g. 0.05,0.1,0.2"
)
@click.option(
    "--range",
    "bw_range",
    type=float,
    nargs=2,
    default=None,
    help="Candidate range START STOP (with --num-candidates)"
)
@click.option(
    "--num-candidates",
    type=int,
    default=None,
    help="Number of candidates in a generated range"
)
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Deadline in seconds for the bandwidth sweep (candidates already running finish before exit)"
)
@click.option(
    "--workers",
    type=int,
    default=None,
    help="Number of parallel workers (default: 1)"
)
@click.option(
    "--backend",
    type=click.Choice(["thread", "process"]),
    default=None,
    help="Worker pool type (default: thread)"
)
@click.option(
    "--skip-failed-steps",
    is_flag=True,
    default=False,
    help="Skip time steps that fail instead of aborting"
)
@click.option(
    "--progress",
    is_flag=True,
    default=False,
    help="Show progress bars"
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["csv", "parquet", "json"]),
    default=None,
    help="Results table format (default: csv)"
)
@click.option(
    "--overwrite",
    is_flag=True,
    default=False,
    help="Overwrite existing results"
)
@click.pass_context
def run(
    ctx: click.Context,
    input_file: str,
    config_file: Optional[str],
    output: Optional[str],
    time_column: Optional[str],
    lat_column: Optional[str],
    lon_column: Optional[str],
    value_column: Optional[str],
    x_min: Optional[float],
    x_max: Optional[float],
    x_step: Optional[float],
    y_min: Optional[float],
    y_max: Optional[float],
    y_step: Optional[float],
    resolution: Optional[int],
    bandwidth: Optional[float],
    candidates: Optional[str],
    bw_range: Optional[Tuple[float, float]],
    num_candidates: Optional[int],
    timeout: Optional[float],
    workers: Optional[int],
    backend: Optional[str],
    skip_failed_steps: bool,
    progress: bool,
    output_format: Optional[str],
    overwrite: bool,
) -> None:
    """
    Smooth an observation table onto a regular grid.

    INPUT_FILE: CSV, Parquet or JSON table with time, latitude,
    longitude and value columns (names configurable).

    \b
    Outputs (in the output directory):
        smoothed.<format>   time, latitude, longitude, value, grid_id
        cv_errors.csv       candidate bandwidth vs. LOOCV error
        report.json         run summary
    """
    from stsmooth.smoothing.pipeline import SmoothingPipeline

    config = load_config(config_file)
    config = apply_overrides(
        config, "data",
        time_column=time_column,
        latitude_column=lat_column,
        longitude_column=lon_column,
        value_column=value_column,
    )
    config = apply_overrides(
        config, "grid",
        x_min=x_min, x_max=x_max, x_step=x_step,
        y_min=y_min, y_max=y_max, y_step=y_step,
        resolution=resolution,
    )
    config = apply_overrides(
        config, "bandwidth",
        value=bandwidth,
        candidates=candidates,
        range_start=bw_range[0] if bw_range else None,
        range_stop=bw_range[1] if bw_range else None,
        num_candidates=num_candidates,
        timeout_seconds=timeout,
    )
    config = apply_overrides(
        config, "execution",
        workers=workers,
        backend=backend,
        show_progress=True if progress else None,
        on_step_error="skip" if skip_failed_steps else None,
    )
    config = apply_overrides(
        config, "output",
        format=output_format,
        overwrite=True if overwrite else None,
    )

    output_dir = output or config.output.base_dir
    quiet = ctx.obj.get("quiet", False) if ctx.obj else False

    try:
        observations = observations_from(input_file, config)
        result = SmoothingPipeline(config).run(observations, output_dir=output_dir)
    except SmootherError as e:
        raise click.ClickException(str(e)) from e

    if not quiet:
        click.echo(result.summary())
        click.echo(f"\nCompleted in {format_duration(result.elapsed_seconds)}")
