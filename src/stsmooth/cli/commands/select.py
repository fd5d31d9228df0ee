"""
Bandwidth selection command for stsmooth CLI.

Runs only the LOOCV bandwidth sweep and reports the candidate/error table.
"""

from typing import Optional, Tuple
import math

import click

from stsmooth.cli.commands.smooth import column_options, observations_from
from stsmooth.cli.utils import apply_overrides, load_config
from stsmooth.errors import SmootherError

__all__ = ["select"]


@click.command("select")
@click.argument("input_file", type=click.Path(exists=True))
@click.option(
    "-c", "--config",
    "config_file",
    type=click.Path(exists=True),
    default=None,
    help="Configuration file path"
)
@column_options
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
    help="Deadline in seconds for the sweep (candidates already running finish before exit)"
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
    "-o", "--output",
    type=click.Path(),
    default=None,
    help="Write the candidate/error table to this CSV file"
)
@click.pass_context
def select(
    ctx: click.Context,
    input_file: str,
    config_file: Optional[str],
    time_column: Optional[str],
    lat_column: Optional[str],
    lon_column: Optional[str],
    value_column: Optional[str],
    candidates: Optional[str],
    bw_range: Optional[Tuple[float, float]],
    num_candidates: Optional[int],
    timeout: Optional[float],
    workers: Optional[int],
    backend: Optional[str],
    output: Optional[str],
) -> None:
    """
    Select the kernel bandwidth by leave-one-out cross-validation.

    INPUT_FILE: CSV, Parquet or JSON observation table.

    Prints every candidate with its cross-validation error; the selected
    bandwidth is marked with '*'.
    """
    from stsmooth.core.regression.bandwidth import LOOCVBandwidthSelector
    from stsmooth.utils.io import write_table

    config = load_config(config_file)
    config = apply_overrides(
        config, "data",
        time_column=time_column,
        latitude_column=lat_column,
        longitude_column=lon_column,
        value_column=value_column,
    )
    config = apply_overrides(
        config, "bandwidth",
        candidates=candidates,
        range_start=bw_range[0] if bw_range else None,
        range_stop=bw_range[1] if bw_range else None,
        num_candidates=num_candidates,
        timeout_seconds=timeout,
    )
    config = apply_overrides(config, "execution", workers=workers, backend=backend)

    try:
        observations = observations_from(input_file, config)
        selector = LOOCVBandwidthSelector(
            config.bandwidth.resolve_candidates(observations),
            min_weight_sum=config.bandwidth.min_weight_sum,
            workers=config.execution.workers,
            backend=config.execution.backend,
            timeout=config.bandwidth.timeout_seconds,
            show_progress=config.execution.show_progress,
        )
        bandwidth = selector.select(observations)
    except SmootherError as e:
        raise click.ClickException(str(e)) from e

    frame = selector.selection.to_frame()

    click.echo(f"\n{'Bandwidth':>12}  {'CV error':>14}  {'Steps':>5}  {'Excluded':>8}")
    click.echo("-" * 46)
    for row in frame.itertuples(index=False):
        error = "missing" if math.isnan(row.cv_error) else f"{row.cv_error:.6g}"
        marker = " *" if row.selected else ""
        click.echo(
            f"{row.bandwidth:>12.6g}  {error:>14}  {row.n_time_steps_used:>5}  "
            f"{row.n_excluded_splits:>8}{marker}"
        )

    click.echo(f"\nSelected bandwidth: {bandwidth:.6g}")

    if output:
        path = write_table(frame, output, "csv")
        click.echo(f"Candidate table saved to: {path}")
