"""Tests for LOOCV bandwidth selection."""

import math

import numpy as np
import pytest

from stsmooth.core.regression.bandwidth import (
    LOOCVBandwidthSelector,
    RuleOfThumbBandwidth,
    candidate_range,
    default_candidates,
    select_bandwidth,
)
from stsmooth.core.regression.cross_validation import cross_validation_error
from stsmooth.data import Observation, ObservationSet
from stsmooth.errors import DeadlineExceededError, ParameterError, SelectionFailureError


class TestSelectBandwidth:
    """Tests for select_bandwidth and LOOCVBandwidthSelector."""

    def test_tie_resolves_to_first_candidate(self, pair):
        """Every candidate has the same error for two observations."""
        assert select_bandwidth([0.1, 1.0, 10.0], pair) == 0.1
        assert select_bandwidth([10.0, 1.0, 0.1], pair) == 10.0

    def test_deterministic(self, daily):
        candidates = candidate_range(0.05, 1.0, 12)
        first = select_bandwidth(candidates, daily)
        second = select_bandwidth(candidates, daily)
        assert first == second

    def test_selects_minimum_error(self, daily):
        candidates = [0.05, 0.1, 0.2, 0.4, 0.8, 1.6]
        errors = [cross_validation_error(h, daily) for h in candidates]

        assert select_bandwidth(candidates, daily) == candidates[int(np.nanargmin(errors))]

    def test_single_candidate(self, daily):
        assert select_bandwidth([0.3], daily) == 0.3

    def test_selection_record(self, daily):
        selector = LOOCVBandwidthSelector([0.1, 0.3, 0.9])
        h = selector.select(daily)

        selection = selector.selection
        assert selection.bandwidth == h
        assert selection.candidates == [0.1, 0.3, 0.9]
        assert selection.candidates[selection.index] == h
        assert len(selector.search_history) == 3

        frame = selection.to_frame()
        assert list(frame.columns) == [
            "bandwidth", "cv_error", "n_time_steps_used", "n_excluded_splits", "selected",
        ]
        assert frame["selected"].sum() == 1

    def test_missing_candidates_are_skipped(self):
        """A candidate with no supported split is ignored, not selected."""
        obs = ObservationSet.from_records([
            Observation(time=0, latitude=0.0, longitude=0.0, value=1.0),
            Observation(time=0, latitude=0.0, longitude=50.0, value=3.0),
        ])
        selector = LOOCVBandwidthSelector([0.1, 100.0])

        assert selector.select(obs) == 100.0
        assert math.isnan(selector.selection.as_mapping()[0.1])

    def test_parallel_matches_sequential(self, daily):
        candidates = candidate_range(0.05, 1.0, 8)
        sequential = LOOCVBandwidthSelector(candidates)
        threaded = LOOCVBandwidthSelector(candidates, workers=4)

        assert sequential.select(daily) == threaded.select(daily)
        np.testing.assert_allclose(
            sequential.selection.errors, threaded.selection.errors
        )


class TestSelectionFailure:
    """Tests for the all-missing failure path."""

    def test_single_observation_per_time_step(self):
        obs = ObservationSet.from_records([
            Observation(time=t, latitude=0.0, longitude=float(t), value=float(t))
            for t in range(3)
        ])

        with pytest.raises(SelectionFailureError, match="fewer than 2 observations"):
            select_bandwidth([0.1, 1.0], obs)

    def test_no_support(self):
        obs = ObservationSet.from_records([
            Observation(time=0, latitude=0.0, longitude=0.0, value=1.0),
            Observation(time=0, latitude=0.0, longitude=100.0, value=3.0),
        ])

        with pytest.raises(SelectionFailureError, match="kernel support"):
            select_bandwidth([0.01, 0.1], obs)

    @pytest.mark.parametrize("candidates", [[], [0.0], [-1.0, 1.0], [np.nan]])
    def test_invalid_candidates(self, candidates):
        with pytest.raises(ParameterError):
            LOOCVBandwidthSelector(candidates)

    def test_deadline(self, daily, monkeypatch):
        import time

        from stsmooth.core.regression import bandwidth as bandwidth_module

        original = bandwidth_module.cross_validate

        def slow_cross_validate(h, **kwargs):
            time.sleep(0.05)
            return original(h, **kwargs)

        monkeypatch.setattr(bandwidth_module, "cross_validate", slow_cross_validate)

        with pytest.raises(DeadlineExceededError):
            select_bandwidth([0.1, 0.2, 0.3, 0.4], daily, timeout=0.01)


class TestCandidateHelpers:
    """Tests for candidate_range, rules of thumb and default candidates."""

    def test_candidate_range_inclusive(self):
        candidates = candidate_range(0.1, 1.0, 10)

        assert len(candidates) == 10
        assert candidates[0] == pytest.approx(0.1)
        assert candidates[-1] == pytest.approx(1.0)
        assert all(np.diff(candidates) > 0)

    @pytest.mark.parametrize("start,stop,num", [(0.0, 1.0, 5), (1.0, 0.5, 5), (0.1, 1.0, 0)])
    def test_candidate_range_invalid(self, start, stop, num):
        with pytest.raises(ParameterError):
            candidate_range(start, stop, num)

    def test_silverman(self):
        coords = np.array([[0.0, 0.0], [1.0, 1.0], [2.0, 2.0], [3.0, 3.0]])
        sigma = np.std([0.0, 1.0, 2.0, 3.0])

        assert RuleOfThumbBandwidth.silverman(coords) == pytest.approx(1.06 * sigma * 4 ** (-0.2))
        assert RuleOfThumbBandwidth.scott(coords) == pytest.approx(sigma * 4 ** (-1 / 6))

    def test_silverman_collinear(self):
        """Points on a horizontal line use the x spread."""
        coords = np.array([[0.0, 5.0], [2.0, 5.0]])
        assert RuleOfThumbBandwidth.silverman(coords) == pytest.approx(1.06 * 1.0 * 2 ** (-0.2))

    def test_rule_of_thumb_needs_two_points(self):
        with pytest.raises(ParameterError):
            RuleOfThumbBandwidth.silverman(np.array([[0.0, 0.0]]))

    def test_default_candidates(self, daily):
        h0 = RuleOfThumbBandwidth.silverman(daily.coordinates)
        candidates = default_candidates(daily, num=7)

        assert len(candidates) == 7
        assert candidates[0] < h0 < candidates[-1]

    def test_default_candidates_single_observation(self):
        single = ObservationSet.from_records([
            Observation(time=0, latitude=0.0, longitude=0.0, value=1.0),
        ])
        with pytest.raises(SelectionFailureError, match="fewer than 2 observations"):
            default_candidates(single)
