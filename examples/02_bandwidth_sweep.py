#!/usr/bin/env python3
"""
Example 02: Bandwidth Sweep

This example runs only the cross-validation sweep and prints the error
curve, comparing the selected bandwidth with the Silverman and Scott
rules of thumb.

Usage:
    python 02_bandwidth_sweep.py observations.csv
"""

import math
import sys
from pathlib import Path


def main():
    """Run bandwidth sweep example."""
    if len(sys.argv) < 2:
        print("Usage: python 02_bandwidth_sweep.py <observations.csv>")
        print("\nThe table needs time, latitude, longitude and value columns.")
        sys.exit(1)

    from stsmooth.core.regression import (
        LOOCVBandwidthSelector,
        RuleOfThumbBandwidth,
        default_candidates,
    )
    from stsmooth.utils.io import read_observations

    observations = read_observations(Path(sys.argv[1]))
    print(f"Loaded {observations}")

    coords = observations.coordinates
    print(f"  Silverman: {RuleOfThumbBandwidth.silverman(coords):.6g}")
    print(f"  Scott:     {RuleOfThumbBandwidth.scott(coords):.6g}")
    print()

    selector = LOOCVBandwidthSelector(default_candidates(observations, num=20), workers=4)
    selector.select(observations)

    # Bar length proportional to error, relative to the worst defined candidate
    errors = [e for e in selector.selection.errors if not math.isnan(e)]
    worst = max(errors) if errors else 1.0
    for h, error in selector.selection.as_mapping().items():
        if math.isnan(error):
            print(f"  h={h:<10.4g} (no support)")
            continue
        bar = "#" * max(1, int(40 * error / worst)) if worst > 0 else ""
        marker = " <- selected" if h == selector.optimal_bandwidth else ""
        print(f"  h={h:<10.4g} {error:>12.6g} {bar}{marker}")

    print()
    print(f"Selected bandwidth: {selector.optimal_bandwidth:.6g}")
    print(f"CV error: {selector.optimal_error:.6g}")


if __name__ == "__main__":
    main()
