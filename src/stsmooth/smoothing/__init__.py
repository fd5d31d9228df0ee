"""
Grid smoothing and the end-to-end pipeline.
"""

from stsmooth.smoothing.grid_smoother import smooth_grid
from stsmooth.smoothing.pipeline import (
    PipelineResult,
    SmoothingPipeline,
    iterative_smoother,
)

__all__ = [
    "smooth_grid",
    "PipelineResult",
    "SmoothingPipeline",
    "iterative_smoother",
]
