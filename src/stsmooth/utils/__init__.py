"""
Utility modules for stsmooth.
"""

from stsmooth.utils.io import read_observations, write_table, TABLE_FORMATS
from stsmooth.utils.parallel import map_ordered, BACKENDS

__all__ = [
    "read_observations",
    "write_table",
    "TABLE_FORMATS",
    "map_ordered",
    "BACKENDS",
]
