"""
stsmooth: Iterative 2-D kernel smoothing of spatio-temporal point data.

This package estimates continuous spatial fields from sparse point
observations recorded over discrete time steps, using Nadaraya-Watson
kernel regression with a bandwidth tuned by leave-one-out cross-validation.
"""

__version__ = "0.1.0"
__author__ = "stsmooth Contributors"

# Lazy imports to keep `import stsmooth` light (pandas/scipy load on demand)
def __getattr__(name: str):
    """Lazy import module attributes."""
    if name == "geometry":
        from stsmooth.core import geometry
        return geometry
    elif name == "regression":
        from stsmooth.core import regression
        return regression
    elif name == "Observation":
        from stsmooth.data import Observation
        return Observation
    elif name == "ObservationSet":
        from stsmooth.data import ObservationSet
        return ObservationSet
    elif name == "EvaluationGrid":
        from stsmooth.core.geometry.grid import EvaluationGrid
        return EvaluationGrid
    elif name == "smooth":
        from stsmooth.core.regression.nadaraya_watson import smooth
        return smooth
    elif name == "cross_validation_error":
        from stsmooth.core.regression.cross_validation import cross_validation_error
        return cross_validation_error
    elif name == "select_bandwidth":
        from stsmooth.core.regression.bandwidth import select_bandwidth
        return select_bandwidth
    elif name == "smooth_grid":
        from stsmooth.smoothing.grid_smoother import smooth_grid
        return smooth_grid
    elif name == "SmoothingPipeline":
        from stsmooth.smoothing.pipeline import SmoothingPipeline
        return SmoothingPipeline
    elif name == "iterative_smoother":
        from stsmooth.smoothing.pipeline import iterative_smoother
        return iterative_smoother
    elif name == "Config":
        from stsmooth.config.schema import Config
        return Config
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

__all__ = [
    "__version__",
    "geometry",
    "regression",
    "Observation",
    "ObservationSet",
    "EvaluationGrid",
    "smooth",
    "cross_validation_error",
    "select_bandwidth",
    "smooth_grid",
    "SmoothingPipeline",
    "iterative_smoother",
    "Config",
]
