"""
Core modules for stsmooth.

This package provides the mathematical foundations for planar
kernel smoothing.

Subpackages:
    geometry: Evaluation grid and planar squared distances
    regression: Nadaraya-Watson kernel regression with LOOCV bandwidth selection
"""

from stsmooth.core import geometry
from stsmooth.core import regression

__all__ = ["geometry", "regression"]
