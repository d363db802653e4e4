#!/usr/bin/env python
"""
ECG Wave Detection Module
QRS boundaries, P-wave and T-wave end around one representative R-peak.

Every search works on a baseline-corrected Lead II signal. Detection failure
is reported as None, never as a sentinel index.
"""

import numpy as np
from typing import Optional, Tuple
from dataclasses import dataclass

from ecg_constants import (
    QRS_FALLBACK_HALF_WIDTH_SAMPLES,
    QRS_ONSET_BASELINE_START_MS,
    QRS_ONSET_BASELINE_END_MS,
    QRS_ONSET_SEARCH_MS,
    QRS_ONSET_DEVIATION_FRACTION,
    QRS_ONSET_SLOPE_FRACTION,
    QRS_OFFSET_SEARCH_START_MS,
    QRS_OFFSET_SEARCH_END_MS,
    QRS_ST_BASELINE_WINDOW_S,
    QRS_ST_BASELINE_MIN_SAMPLES,
    QRS_ST_DEVIATION_FRACTION,
    P_WAVE_SEARCH_START_MS,
    P_WAVE_SEARCH_END_MS,
    PR_BASELINE_START_MS,
    PR_BASELINE_END_MS,
    P_WAVE_ONSET_NOISE_FACTOR,
    P_WAVE_END_NOISE_FACTOR,
    QT_SEARCH_START_MS,
    QT_SEARCH_END_MS,
    T_PEAK_SEARCH_MS,
    RATE_SCALING_REFERENCE_HZ,
    T_BASELINE_LEAD_SAMPLES,
    T_BASELINE_SPAN_SAMPLES,
    T_END_FALLBACK_SAMPLES,
    T_END_THRESHOLD_FRACTION,
    T_END_AMPLITUDE_DIVISOR,
)
from signal_processing import ms_to_samples, max_abs_amplitude, segment_mean


@dataclass(frozen=True)
class PWaveMarker:
    """Detected P-wave for one beat."""
    p_start: int
    p_end: int
    pr_ms: float
    p_duration_ms: float


@dataclass(frozen=True)
class TWaveMarker:
    """T-wave end for one beat.

    fallback is True when no return to baseline was found and t_end is the
    fixed offset from QRS onset.
    """
    t_peak: int
    t_end: int
    qt_ms: float
    fallback: bool = False


def _qrs_fallback(r_index: int, n: int) -> Tuple[int, int]:
    half = QRS_FALLBACK_HALF_WIDTH_SAMPLES
    return max(0, r_index - half), min(n - 1, r_index + half)


def detect_qrs_boundaries(ecg_signal: np.ndarray,
                          sample_rate: float,
                          r_index: int) -> Tuple[int, int]:
    """
    Find QRS onset and offset (J-point) around one R-peak.

    ONSET: baseline is the mean of R-80ms..R-40ms. Scanning backward from
    R-1 to R-60ms, the first sample that deviates from the baseline by more
    than 0.05 * max_abs while rising towards R by more than 0.02 * max_abs
    per sample is the onset.

    OFFSET: the ST level is the mean of a 60 ms window starting at R+90ms.
    Among samples in R+40ms..R+90ms lying within 0.15 * max_abs of the ST
    level, the one with the smallest absolute slope is the J-point.

    Either boundary falls back to R -/+ 23 samples when nothing qualifies.

    Args:
        ecg_signal: Baseline-corrected signal
        sample_rate: Sampling rate in Hz
        r_index: Sample index of the representative R-peak

    Returns:
        (qrs_start, qrs_end) sample indices clamped to the signal
    """
    x = np.asarray(ecg_signal, dtype=float)
    n = len(x)
    if r_index <= 0 or r_index >= n - 1:
        return _qrs_fallback(r_index, n)

    max_abs = max_abs_amplitude(x)
    fallback_start, fallback_end = _qrs_fallback(r_index, n)

    # QRS onset
    baseline_start = max(0, r_index - ms_to_samples(QRS_ONSET_BASELINE_START_MS, sample_rate))
    baseline_end = max(baseline_start + 1,
                       min(n - 1, r_index - ms_to_samples(QRS_ONSET_BASELINE_END_MS, sample_rate)))
    baseline = segment_mean(x, baseline_start, baseline_end)
    if baseline is None:
        baseline = 0.0

    deviation_threshold = QRS_ONSET_DEVIATION_FRACTION * max_abs
    slope_threshold = QRS_ONSET_SLOPE_FRACTION * max_abs
    search_start = max(0, r_index - ms_to_samples(QRS_ONSET_SEARCH_MS, sample_rate))

    qrs_start = None
    for i in range(r_index - 1, search_start - 1, -1):
        if abs(x[i] - baseline) > deviation_threshold and x[i + 1] - x[i] > slope_threshold:
            qrs_start = i
            break
    if qrs_start is None:
        qrs_start = fallback_start

    # QRS offset (J-point)
    end_search_start = min(n - 2, r_index + ms_to_samples(QRS_OFFSET_SEARCH_START_MS, sample_rate))
    end_search_end = min(n - 2, r_index + ms_to_samples(QRS_OFFSET_SEARCH_END_MS, sample_rate))

    st_window = max(QRS_ST_BASELINE_MIN_SAMPLES, int(np.floor(QRS_ST_BASELINE_WINDOW_S * sample_rate)))
    st_baseline = segment_mean(x, end_search_end, min(n - 1, end_search_end + st_window))
    if st_baseline is None:
        st_baseline = 0.0
    st_threshold = QRS_ST_DEVIATION_FRACTION * max_abs

    qrs_end = None
    min_slope = np.inf
    for i in range(end_search_start, end_search_end + 1):
        slope = abs(x[i + 1] - x[i])
        if abs(x[i] - st_baseline) < st_threshold and slope < min_slope:
            min_slope = slope
            qrs_end = i
    if qrs_end is None:
        qrs_end = fallback_end

    return int(qrs_start), int(qrs_end)


def detect_p_wave(ecg_signal: np.ndarray,
                  sample_rate: float,
                  qrs_start: Optional[int]) -> Optional[PWaveMarker]:
    """
    Detect a P-wave in the window QRS_start-200ms .. QRS_start-90ms.

    The PR segment (QRS_start-50ms .. QRS_start-20ms) supplies the baseline
    and noise level. Onset is the first sample rising above baseline by more
    than 0.3 * noise and increasing over the next two samples. The P-wave
    ends at the first later sample within |baseline| + noise of the baseline,
    or at QRS_start-1.

    Returns:
        PWaveMarker, or None when no onset qualifies. The caller applies the
        heart-rate fallback in that case.
    """
    if qrs_start is None or qrs_start <= 0:
        return None

    x = np.asarray(ecg_signal, dtype=float)
    n = len(x)

    search_start = max(0, qrs_start - ms_to_samples(P_WAVE_SEARCH_START_MS, sample_rate))
    search_end = max(0, qrs_start - ms_to_samples(P_WAVE_SEARCH_END_MS, sample_rate))
    if search_end <= search_start:
        return None

    base_start = max(0, qrs_start - ms_to_samples(PR_BASELINE_START_MS, sample_rate))
    base_end = max(base_start + 1, min(n - 1, qrs_start - ms_to_samples(PR_BASELINE_END_MS, sample_rate)))
    pr_segment = x[base_start:base_end + 1]
    if len(pr_segment) == 0:
        return None

    baseline = float(np.mean(pr_segment))
    noise = float(np.std(pr_segment))

    p_start = None
    for i in range(search_start, search_end - 2):
        if (x[i] - baseline > P_WAVE_ONSET_NOISE_FACTOR * noise and
                x[i + 1] > x[i] and
                x[i + 2] > x[i + 1]):
            p_start = i
            break
    if p_start is None:
        return None

    p_end = qrs_start - 1
    end_threshold = abs(baseline) + P_WAVE_END_NOISE_FACTOR * noise
    for i in range(p_start + 1, min(qrs_start, n)):
        if abs(x[i] - baseline) < end_threshold:
            p_end = i
            break

    return PWaveMarker(
        p_start=int(p_start),
        p_end=int(p_end),
        pr_ms=(qrs_start - p_start) / sample_rate * 1000.0,
        p_duration_ms=(p_end - p_start) / sample_rate * 1000.0,
    )


def detect_qt(ecg_signal: np.ndarray,
              sample_rate: float,
              r_index: Optional[int],
              qrs_start: Optional[int]) -> Optional[TWaveMarker]:
    """Locate T-wave end and the QT interval measured from QRS onset."""
    if r_index is None or qrs_start is None:
        return None

    x = np.asarray(ecg_signal, dtype=float)
    n = len(x)

    search_start = min(n - 2, r_index + ms_to_samples(QT_SEARCH_START_MS, sample_rate))
    search_end = min(n - 2, r_index + ms_to_samples(QT_SEARCH_END_MS, sample_rate))
    if search_end <= search_start:
        return None

    # T-peak within the first 75 ms of the window
    t_peak_end = min(search_end, search_start + ms_to_samples(T_PEAK_SEARCH_MS, sample_rate))
    t_peak = search_start + int(np.argmax(x[search_start:t_peak_end + 1]))

    scale = sample_rate / RATE_SCALING_REFERENCE_HZ
    lead = max(1, int(np.floor(T_BASELINE_LEAD_SAMPLES * scale)))
    span = max(1, int(np.floor(T_BASELINE_SPAN_SAMPLES * scale)))
    base_start = max(0, search_end - lead)
    baseline = segment_mean(x, base_start, min(n - 1, base_start + span))
    if baseline is None:
        baseline = 0.0

    threshold = T_END_THRESHOLD_FRACTION * (max_abs_amplitude(x) / T_END_AMPLITUDE_DIVISOR)

    t_end = None
    for i in range(t_peak, search_end + 1):
        if abs(x[i] - baseline) < threshold and abs(x[i + 1] - baseline) < threshold:
            t_end = i
            break

    fallback = t_end is None
    if fallback:
        t_end = min(n - 1, qrs_start + max(1, int(np.floor(T_END_FALLBACK_SAMPLES * scale))))

    return TWaveMarker(
        t_peak=int(t_peak),
        t_end=int(t_end),
        qt_ms=(t_end - qrs_start) / sample_rate * 1000.0,
        fallback=fallback,
    )
