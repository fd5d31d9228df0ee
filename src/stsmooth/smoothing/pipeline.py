"""
Smoothing pipeline orchestrator.

Main entry point for running the complete workflow: build the grid,
select one global bandwidth by LOOCV, smooth every time step onto the
grid and collect the results into a single long-form table.
"""

from dataclasses import dataclass, field
from datetime import datetime
from functools import partial
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union
import json
import logging
import time
import uuid

import numpy as np
import pandas as pd

from stsmooth.config.schema import BandwidthConfig, Config, ExecutionConfig
from stsmooth.core.geometry.grid import EvaluationGrid
from stsmooth.core.regression.bandwidth import LOOCVBandwidthSelector
from stsmooth.data import BandwidthSelection, ObservationSet, RESULT_COLUMNS, SmoothedBatch
from stsmooth.errors import ParameterError
from stsmooth.smoothing.grid_smoother import smooth_grid
from stsmooth.utils.io import write_table
from stsmooth.utils.parallel import map_ordered

__all__ = [
    "SmoothingPipeline",
    "PipelineResult",
    "iterative_smoother",
]

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """
    Result of a smoothing pipeline run.

    Contains the selected bandwidth, per-time-step batches and the
    concatenated results table.
    """
    run_id: str
    bandwidth: float
    grid: EvaluationGrid
    batches: List[SmoothedBatch] = field(default_factory=list)
    table: pd.DataFrame = field(default_factory=lambda: pd.DataFrame(columns=list(RESULT_COLUMNS)))
    selection: Optional[BandwidthSelection] = None
    skipped_steps: List[Any] = field(default_factory=list)
    elapsed_seconds: float = 0.0
    config: Optional[Dict[str, Any]] = None
    output_files: Dict[str, Path] = field(default_factory=dict)

    @property
    def n_time_steps(self) -> int:
        return len(self.batches)

    @property
    def missing_count(self) -> int:
        """Grid values without kernel support, over all time steps."""
        return sum(b.missing_count for b in self.batches)

    def summary(self) -> str:
        """Generate a text summary."""
        lines = [
            f"Smoothing Result: {self.run_id}",
            f"{'='*50}",
            f"Bandwidth: {self.bandwidth:.6g}"
            + ("" if self.selection is None else f" (LOOCV error {self.selection.error:.6g}, "
               f"{len(self.selection.results)} candidates)"),
            f"Grid: {self.grid.shape[1]} x {self.grid.shape[0]} points",
            f"Time steps: {self.n_time_steps}",
            f"Rows: {len(self.table)}",
            f"Missing values: {self.missing_count}",
            f"Elapsed: {self.elapsed_seconds:.2f}s",
        ]

        if self.skipped_steps:
            lines.append(f"Skipped time steps: {', '.join(str(t) for t in self.skipped_steps)}")

        if self.output_files:
            lines.extend([
                "",
                "Output Files:",
            ])
            for name, path in self.output_files.items():
                lines.append(f"  {name}: {path}")

        return '\n'.join(lines)

    def save(
        self,
        output_dir: Union[str, Path],
        format: str = "csv",
        overwrite: bool = False,
        save_cv_errors: bool = True,
    ) -> Dict[str, Path]:
        """
        Save outputs to a directory.

        Writes the results table, the candidate/error table (when a
        bandwidth was selected) and a JSON run report.

        Returns:
            Mapping of output name -> file path
        """
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        output_files = {}

        output_files['results'] = write_table(
            self.table, output_dir / f"smoothed.{format}", format, overwrite=overwrite
        )

        if save_cv_errors and self.selection is not None:
            output_files['cv_errors'] = write_table(
                self.selection.to_frame(), output_dir / "cv_errors.csv", "csv", overwrite=overwrite
            )

        report_path = output_dir / "report.json"
        self._generate_report(report_path)
        output_files['report'] = report_path

        self.output_files.update(output_files)
        logger.info("Saved %d output files to %s", len(output_files), output_dir)
        return output_files

    def _generate_report(self, path: Path) -> None:
        """Generate run report."""
        report = {
            'run_id': self.run_id,
            'created_at': datetime.now().isoformat(),
            'bandwidth': self.bandwidth,
            'selection': None if self.selection is None else self.selection.to_dict(),
            'grid': {
                'n_x': self.grid.shape[1],
                'n_y': self.grid.shape[0],
                'x_min': float(self.grid.x[0]),
                'x_max': float(self.grid.x[-1]),
                'y_min': float(self.grid.y[0]),
                'y_max': float(self.grid.y[-1]),
            },
            'summary': {
                'n_time_steps': self.n_time_steps,
                'n_rows': len(self.table),
                'missing_values': self.missing_count,
                'skipped_steps': [str(t) for t in self.skipped_steps],
                'elapsed_seconds': self.elapsed_seconds,
            },
            'time_steps': [
                {
                    'time': str(b.time),
                    'grid_id': b.grid_id,
                    'n_observations': b.n_observations,
                    'missing_values': b.missing_count,
                }
                for b in self.batches
            ],
            'config': self.config,
        }

        with open(path, 'w') as f:
            json.dump(report, f, indent=2)


def _smooth_step(
    step: Tuple[int, Any, ObservationSet],
    bandwidth: float,
    grid: EvaluationGrid,
    min_weight_sum: float,
    chunk_size: int,
    skip_errors: bool,
) -> Optional[SmoothedBatch]:
    """Smooth one (grid_id, time, observations) work item."""
    grid_id, time_value, subset = step
    try:
        return smooth_grid(
            time_value, bandwidth, subset, grid,
            grid_id=grid_id,
            min_weight_sum=min_weight_sum,
            chunk_size=chunk_size,
        )
    except Exception as e:
        if not skip_errors:
            raise
        logger.warning("Skipping time step %s: %s", time_value, e)
        return None


class SmoothingPipeline:
    """
    Main smoothing pipeline orchestrator.

    Selects one bandwidth for the whole run, then smooths each time step
    independently (optionally in parallel) and concatenates the batches
    once, in ascending time order.

    Example:
        >>> # Simple usage
        >>> pipeline = SmoothingPipeline()
        >>> result = pipeline.run(observations, grid)
        >>>
        >>> # Custom configuration
        >>> config = Config.from_file("stsmooth.toml")
        >>> result = SmoothingPipeline(config).run(observations)
        >>> print(result.summary())
    """

    def __init__(self, config: Optional[Config] = None):
        self.config = config or Config()
        self.selector: Optional[LOOCVBandwidthSelector] = None

    def _as_observations(self, observations: Union[ObservationSet, pd.DataFrame]) -> ObservationSet:
        if isinstance(observations, ObservationSet):
            return observations
        if isinstance(observations, pd.DataFrame):
            return ObservationSet.from_frame(observations, **self.config.data.columns)
        raise ParameterError(
            f"Expected ObservationSet or DataFrame, got {type(observations).__name__}"
        )

    def select_bandwidth(
        self,
        observations: Union[ObservationSet, pd.DataFrame],
    ) -> Tuple[float, Optional[BandwidthSelection]]:
        """
        Resolve the global bandwidth.

        Returns:
            Tuple of (bandwidth, selection); selection is None when the
            bandwidth is fixed by configuration
        """
        observations = self._as_observations(observations)
        bw_config = self.config.bandwidth
        execution = self.config.execution

        if bw_config.value is not None:
            logger.info("Using fixed bandwidth h=%.6g", bw_config.value)
            return bw_config.value, None

        candidates = bw_config.resolve_candidates(observations)
        logger.info(
            "Selecting bandwidth from %d candidates in [%.6g, %.6g]",
            len(candidates), min(candidates), max(candidates),
        )

        self.selector = LOOCVBandwidthSelector(
            candidates,
            min_weight_sum=bw_config.min_weight_sum,
            workers=execution.workers,
            backend=execution.backend,
            timeout=bw_config.timeout_seconds,
            show_progress=execution.show_progress,
        )
        bandwidth = self.selector.select(observations)
        return bandwidth, self.selector.selection

    def run(
        self,
        observations: Union[ObservationSet, pd.DataFrame],
        grid: Optional[EvaluationGrid] = None,
        output_dir: Optional[Union[str, Path]] = None,
    ) -> PipelineResult:
        """
        Run the smoothing pipeline.

        Args:
            observations: ObservationSet, or DataFrame mapped through the
                configured column names
            grid: Evaluation grid (default: built from configuration)
            output_dir: Save outputs here when given

        Returns:
            PipelineResult with all outputs
        """
        start_time = time.perf_counter()
        run_id = str(uuid.uuid4())[:8]
        execution = self.config.execution

        observations = self._as_observations(observations)
        if grid is None:
            grid = self.config.grid.build(observations)

        logger.info(
            "Run %s: %d observations, %d time steps, %d grid points",
            run_id, len(observations), len(observations.time_steps()), len(grid),
        )

        bandwidth, selection = self.select_bandwidth(observations)

        steps = [
            (grid_id, time_value, subset)
            for grid_id, (time_value, subset) in enumerate(observations.split_by_time().items())
        ]
        task = partial(
            _smooth_step,
            bandwidth=bandwidth,
            grid=grid,
            min_weight_sum=self.config.bandwidth.min_weight_sum,
            chunk_size=execution.chunk_size,
            skip_errors=execution.on_step_error == "skip",
        )
        outputs = map_ordered(
            task,
            steps,
            workers=execution.workers,
            backend=execution.backend,
            show_progress=execution.show_progress,
            description="Smoothing",
        )

        batches = [b for b in outputs if b is not None]
        skipped = [step[1] for step, b in zip(steps, outputs) if b is None]

        if batches:
            table = pd.concat([b.to_frame() for b in batches], ignore_index=True)
        else:
            table = pd.DataFrame(columns=list(RESULT_COLUMNS))

        result = PipelineResult(
            run_id=run_id,
            bandwidth=bandwidth,
            grid=grid,
            batches=batches,
            table=table,
            selection=selection,
            skipped_steps=skipped,
            elapsed_seconds=time.perf_counter() - start_time,
            config=self.config.model_dump(mode="json"),
        )

        n_missing = result.missing_count
        if n_missing:
            logger.warning(
                "%d of %d smoothed values have no kernel support (NaN)",
                n_missing, len(table),
            )

        if output_dir is not None:
            output = self.config.output
            result.save(
                output_dir,
                format=output.format,
                overwrite=output.overwrite,
                save_cv_errors=output.save_cv_errors,
            )

        # Elapsed includes saving
        result.elapsed_seconds = time.perf_counter() - start_time
        logger.info("Run %s finished in %.2fs", run_id, result.elapsed_seconds)
        return result


def iterative_smoother(
    observations: Union[ObservationSet, pd.DataFrame],
    grid: EvaluationGrid,
    candidates: Optional[Sequence[float]] = None,
    bandwidth: Optional[float] = None,
    **options: Any,
) -> PipelineResult:
    """
    Smooth every time step onto a grid with one LOOCV-selected bandwidth.

    Args:
        observations: ObservationSet or DataFrame with columns
            ``time, latitude, longitude, value``
        grid: Evaluation grid
        candidates: Ordered candidate bandwidths (default: a range around
            the Silverman estimate)
        bandwidth: Fixed bandwidth; skips selection
        **options: Execution options (``workers``, ``backend``,
            ``chunk_size``, ``show_progress``, ``on_step_error``) and
            bandwidth options (``min_weight_sum``, ``timeout_seconds``,
            ``num_candidates``)

    Returns:
        PipelineResult

    Example:
        >>> grid = EvaluationGrid.from_bounds(-75, -73, 0.05, 40, 41, 0.05)
        >>> result = iterative_smoother(obs, grid, candidate_range(0.01, 1.0, 50))
        >>> result.table.head()
    """
    execution_opts = {k: v for k, v in options.items() if k in ExecutionConfig.model_fields}
    bandwidth_opts = {
        k: v for k, v in options.items()
        if k in BandwidthConfig.model_fields and k not in ("value", "candidates")
    }
    unknown = set(options) - set(execution_opts) - set(bandwidth_opts)
    if unknown:
        raise ParameterError(f"Unknown options: {sorted(unknown)}")

    config = Config(
        bandwidth=BandwidthConfig(
            value=bandwidth,
            candidates=None if candidates is None else [float(h) for h in np.atleast_1d(candidates)],
            **bandwidth_opts,
        ),
        execution=ExecutionConfig(**execution_opts),
    )
    return SmoothingPipeline(config).run(observations, grid)
