#!/usr/bin/env python
"""
Heart Rate Tests
RR intervals, outlier rejection and median heart rate.
"""

import numpy as np
import pytest
import sys, os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from heart_rate import (
    RateEstimate,
    rr_intervals_from_peaks,
    filter_rr_intervals,
    estimate_bpm_from_rr,
    estimate_bpm,
)


def test_rr_intervals_in_seconds():
    rr = rr_intervals_from_peaks([100, 500, 900, 1310], 500)

    assert np.allclose(rr, [0.8, 0.8, 0.82])


def test_rr_intervals_drop_non_positive_gaps():
    rr = rr_intervals_from_peaks([100, 100, 500], 500)

    assert np.allclose(rr, [0.8]), "Duplicate peak produces no interval"
    assert len(rr_intervals_from_peaks([100, 500], 0)) == 0


def test_outlier_interval_rejected():
    rr = [0.8, 0.81, 0.79, 0.80, 5.0]

    filtered = filter_rr_intervals(rr)
    estimate = estimate_bpm_from_rr(rr)

    assert 5.0 not in filtered, "Missed-beat interval removed"
    assert estimate.median_rr == pytest.approx(0.8)
    assert estimate.bpm == pytest.approx(75.0)


def test_filter_uses_nearest_rank_quartiles():
    # sorted: [1, 2, 3, 4, 100] -> Q1 = 2, Q3 = 4, fences [-1, 7]
    filtered = filter_rr_intervals([4, 100, 2, 1, 3])

    assert list(filtered) == [1, 2, 3, 4]


def test_filter_short_input_unchanged():
    assert list(filter_rr_intervals([0.8, 3.0])) == [0.8, 3.0]
    assert len(filter_rr_intervals([])) == 0


def test_even_count_median():
    estimate = estimate_bpm_from_rr([0.6, 0.8])

    assert estimate.median_rr == pytest.approx(0.7)
    assert estimate.bpm == pytest.approx(60.0 / 0.7)


def test_bpm_clamped_to_physiological_range():
    fast = estimate_bpm([0, 10, 20, 30], 500)
    slow = estimate_bpm([0, 5000, 10000], 500)

    assert fast.bpm == 220, "0.02 s RR clamps to 220 bpm"
    assert slow.bpm == 30, "10 s RR clamps to 30 bpm"
    assert slow.median_rr == pytest.approx(10.0), "Unclamped RR kept for QTc"


def test_no_rate_without_two_peaks():
    assert estimate_bpm([], 500) is None
    assert estimate_bpm([1200], 500) is None
    assert estimate_bpm([300, 300], 500) is None, "Zero-length interval ignored"
    assert estimate_bpm_from_rr([]) is None


def test_rate_estimate_type():
    estimate = estimate_bpm([0, 400, 800, 1200, 1600], 500)

    assert isinstance(estimate, RateEstimate)
    assert estimate.bpm == pytest.approx(75.0)


if __name__ == "__main__":
    for name, func in list(globals().items()):
        if name.startswith("test_") and callable(func):
            func()
            print(f"PASS {name}")
