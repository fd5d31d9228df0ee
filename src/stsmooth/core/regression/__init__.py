"""
Kernel regression on planar coordinates.

This module implements Nadaraya-Watson kernel regression for
interpolating sparse point observations onto a dense grid, and
leave-one-out cross-validation for choosing the bandwidth.
"""

from stsmooth.core.regression.kernels import (
    Kernel,
    GaussianRBFKernel,
)
from stsmooth.core.regression.nadaraya_watson import (
    NadarayaWatsonEstimator,
    KernelEstimate,
    nadaraya_watson,
    smooth,
)
from stsmooth.core.regression.cross_validation import (
    cross_validate,
    cross_validation_error,
    time_step_error,
)
from stsmooth.core.regression.bandwidth import (
    LOOCVBandwidthSelector,
    RuleOfThumbBandwidth,
    candidate_range,
    default_candidates,
    select_bandwidth,
)

__all__ = [
    # Kernels
    "Kernel",
    "GaussianRBFKernel",
    # Estimator
    "NadarayaWatsonEstimator",
    "KernelEstimate",
    "nadaraya_watson",
    "smooth",
    # Cross-validation
    "cross_validate",
    "cross_validation_error",
    "time_step_error",
    # Bandwidth selection
    "LOOCVBandwidthSelector",
    "RuleOfThumbBandwidth",
    "candidate_range",
    "default_candidates",
    "select_bandwidth",
]
