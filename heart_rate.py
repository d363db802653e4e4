#!/usr/bin/env python
"""
Heart Rate Estimation Module
RR intervals, IQR outlier rejection and median-based heart rate.
"""

import numpy as np
from typing import Optional, Sequence, Union
from dataclasses import dataclass

from ecg_constants import (
    RR_IQR_MIN_INTERVALS,
    RR_Q1_RANK,
    RR_Q3_RANK,
    RR_IQR_FACTOR,
    HEART_RATE_CLAMP_BPM,
)
from signal_processing import is_valid_sample_rate


@dataclass(frozen=True)
class RateEstimate:
    """Heart rate derived from the median filtered RR interval."""
    bpm: float  # clamped, not rounded
    median_rr: float  # seconds, needed for QTc


def rr_intervals_from_peaks(r_peaks: Union[Sequence[int], np.ndarray],
                            sample_rate: float) -> np.ndarray:
    """RR intervals in seconds between consecutive peaks; non-positive gaps dropped."""
    peaks = np.asarray(r_peaks, dtype=float)
    if len(peaks) < 2 or not is_valid_sample_rate(sample_rate):
        return np.array([], dtype=float)

    rr = np.diff(peaks) / float(sample_rate)
    return rr[rr > 0]


def filter_rr_intervals(rr_intervals: Union[Sequence[float], np.ndarray]) -> np.ndarray:
    """
    Reject outlying RR intervals with Tukey fences.

    Quartiles are nearest-rank (no interpolation):
    Q1 = sorted[floor((len-1) * 0.25)], Q3 = sorted[floor((len-1) * 0.75)].
    Values inside [Q1 - 1.5*IQR, Q3 + 1.5*IQR] are kept, in sorted order.

    Fewer than three intervals are returned unchanged.
    """
    rr = np.asarray(rr_intervals, dtype=float)
    if len(rr) < RR_IQR_MIN_INTERVALS:
        return rr

    ordered = np.sort(rr)
    q1 = ordered[int(np.floor((len(ordered) - 1) * RR_Q1_RANK))]
    q3 = ordered[int(np.floor((len(ordered) - 1) * RR_Q3_RANK))]
    iqr = q3 - q1
    low = q1 - RR_IQR_FACTOR * iqr
    high = q3 + RR_IQR_FACTOR * iqr

    return ordered[(ordered >= low) & (ordered <= high)]


def estimate_bpm_from_rr(rr_intervals: Union[Sequence[float], np.ndarray]) -> Optional[RateEstimate]:
    """
    Heart rate from RR intervals in seconds.

    The median is taken over the IQR-filtered set; if filtering removes
    everything the unfiltered set is used instead.

    Returns:
        RateEstimate with bpm clamped to [30, 220], or None when no positive
        interval is available
    """
    rr = np.asarray(rr_intervals, dtype=float)
    rr = rr[rr > 0]
    if len(rr) == 0:
        return None

    filtered = filter_rr_intervals(rr)
    median_rr = float(np.median(filtered if len(filtered) else rr))
    if not np.isfinite(median_rr) or median_rr <= 0:
        return None

    low, high = HEART_RATE_CLAMP_BPM
    bpm = min(high, max(low, 60.0 / median_rr))

    return RateEstimate(bpm=bpm, median_rr=median_rr)


def estimate_bpm(r_peaks: Union[Sequence[int], np.ndarray],
                 sample_rate: float) -> Optional[RateEstimate]:
    """Heart rate from R-peak sample indices; None with fewer than two peaks."""
    if len(r_peaks) < 2:
        return None
    return estimate_bpm_from_rr(rr_intervals_from_peaks(r_peaks, sample_rate))
