#!/usr/bin/env python
"""
ECG Interval Measurements Module
Assembles heart rate, PR, QRS, P-wave, QT and QTc from a single Lead II.

compute_metrics() is the engine entry point: a pure function of
(signal, sample_rate) returning a MetricsRecord. It never raises for
well-typed numeric input; anything that cannot be measured reliably is None.

MEASUREMENT PIPELINE:
├── Baseline correction (2 s centered moving average)
├── R-peak detection (adaptive threshold + refractory period)
├── Heart rate (IQR-filtered median RR)
├── Representative beat (middle R-peak)
│   ├── QRS onset / J-point
│   ├── P-wave (heart-rate fallback table when not found)
│   └── T-wave end
├── QTc (Bazett: QT / sqrt(RR))
└── Clamping to reported ranges

Typical use:
>>> record = compute_metrics(lead_ii, sample_rate=500)
>>> record.bpm, record.qtc_ms
"""

import numpy as np
from typing import Dict, Optional, Sequence, Tuple, Union
from dataclasses import dataclass, asdict

from ecg_constants import (
    PR_FALLBACK_TABLE,
    PR_FALLBACK_DEFAULT_MS,
    P_DURATION_FALLBACK_RATIO,
    PR_CLAMP_MS,
    QRS_CLAMP_MS,
    P_DURATION_CLAMP_MS,
    QT_CLAMP_MS,
    QTC_CLAMP_MS,
)
from signal_processing import baseline_correct, detect_r_peaks, is_valid_sample_rate
from heart_rate import RateEstimate, estimate_bpm
from ecg_detection import (
    PWaveMarker,
    TWaveMarker,
    detect_qrs_boundaries,
    detect_p_wave,
    detect_qt,
)


@dataclass(frozen=True)
class MetricsRecord:
    """
    Interval measurements for one Lead II recording.

    Every field is independently optional. Non-null values always lie within
    their reported range.

    Attributes:
        bpm: Heart rate, rounded (30-220)
        pr_ms: PR interval (80-320 ms)
        qrs_ms: QRS duration (60-200 ms)
        p_ms: P-wave duration (40-200 ms)
        qt_ms: QT interval (200-600 ms)
        qtc_ms: Bazett-corrected QT (200-600 ms)
    """
    bpm: Optional[int] = None
    pr_ms: Optional[float] = None
    qrs_ms: Optional[float] = None
    p_ms: Optional[float] = None
    qt_ms: Optional[float] = None
    qtc_ms: Optional[float] = None

    @property
    def is_empty(self) -> bool:
        return all(value is None for value in asdict(self).values())

    def to_dict(self) -> Dict[str, Optional[float]]:
        return asdict(self)


@dataclass(frozen=True, eq=False)
class LeadAnalysis:
    """Intermediate results behind a MetricsRecord, for plotting and reports.

    Holds numpy arrays, so equality is identity; compare .metrics instead.
    """
    metrics: MetricsRecord
    sample_rate: Optional[float] = None
    corrected: Optional[np.ndarray] = None
    r_peaks: Optional[np.ndarray] = None
    rate: Optional[RateEstimate] = None
    representative_peak: Optional[int] = None
    qrs: Optional[Tuple[int, int]] = None
    p_wave: Optional[PWaveMarker] = None
    t_wave: Optional[TWaveMarker] = None
    pr_from_fallback: bool = False


def _round_half_up(value: float) -> int:
    return int(np.floor(value + 0.5))


def clamp_metric(value: Optional[float], bounds: Tuple[float, float]) -> Optional[float]:
    """Pull a value into [low, high]; None and non-finite values become None."""
    if value is None:
        return None
    value = float(value)
    if not np.isfinite(value):
        return None
    low, high = bounds
    return min(high, max(low, value))


def fallback_pr_from_bpm(bpm: Optional[float]) -> Optional[int]:
    """
    Population PR interval (ms) for a heart rate.

    <50 -> 200, <60 -> 180, <100 -> 160, <120 -> 140, <150 -> 130, else 120.
    Returns None without a usable heart rate.
    """
    if bpm is None or not np.isfinite(bpm) or bpm == 0:
        return None
    for upper_bpm, pr_ms in PR_FALLBACK_TABLE:
        if bpm < upper_bpm:
            return pr_ms
    return PR_FALLBACK_DEFAULT_MS


def resolve_pr_interval(p_wave: Optional[PWaveMarker],
                        bpm: Optional[float]) -> Tuple[Optional[float], Optional[float], bool]:
    """
    Choose PR interval and P-wave duration.

    Returns:
        (pr_ms, p_ms, used_fallback). A detected P-wave wins; otherwise the
        heart-rate table gives PR and P duration = round(PR * 0.4).
    """
    if p_wave is not None and p_wave.pr_ms and np.isfinite(p_wave.pr_ms):
        return p_wave.pr_ms, p_wave.p_duration_ms, False

    fallback = fallback_pr_from_bpm(bpm)
    if fallback is None:
        return None, None, True
    return float(fallback), float(_round_half_up(fallback * P_DURATION_FALLBACK_RATIO)), True


def bazett_qtc(qt_ms: Optional[float], rr_seconds: Optional[float]) -> Optional[float]:
    """QTc = QT / sqrt(RR), with QT in ms and RR in seconds."""
    if qt_ms is None or rr_seconds is None:
        return None
    if not np.isfinite(qt_ms) or not np.isfinite(rr_seconds) or rr_seconds <= 0:
        return None
    return qt_ms / np.sqrt(rr_seconds)


def select_representative_peak(r_peaks: np.ndarray) -> Optional[int]:
    """Middle R-peak of the sequence, used as the single-beat timing proxy."""
    if len(r_peaks) == 0:
        return None
    return int(r_peaks[len(r_peaks) // 2])


def analyze_lead(ecg_signal: Union[Sequence[float], np.ndarray],
                 sample_rate: float) -> LeadAnalysis:
    """
    Run the full interval pipeline and keep every intermediate result.

    Args:
        ecg_signal: Raw Lead II samples
        sample_rate: Sampling rate in Hz

    Returns:
        LeadAnalysis whose metrics field is what compute_metrics() returns
    """
    if ecg_signal is None or len(ecg_signal) == 0 or not is_valid_sample_rate(sample_rate):
        return LeadAnalysis(metrics=MetricsRecord())

    sample_rate = float(sample_rate)
    corrected = baseline_correct(ecg_signal, sample_rate)
    r_peaks = detect_r_peaks(corrected, sample_rate)
    rate = estimate_bpm(r_peaks, sample_rate)
    bpm = rate.bpm if rate is not None else None
    median_rr = rate.median_rr if rate is not None else None

    representative = select_representative_peak(r_peaks)
    if representative is None:
        return LeadAnalysis(
            metrics=MetricsRecord(),
            sample_rate=sample_rate,
            corrected=corrected,
            r_peaks=r_peaks,
            rate=rate,
        )

    qrs_start, qrs_end = detect_qrs_boundaries(corrected, sample_rate, representative)
    qrs_ms = None
    if qrs_end > qrs_start:
        qrs_ms = (qrs_end - qrs_start) / sample_rate * 1000.0

    p_wave = detect_p_wave(corrected, sample_rate, qrs_start)
    pr_ms, p_ms, pr_from_fallback = resolve_pr_interval(p_wave, bpm)

    t_wave = detect_qt(corrected, sample_rate, representative, qrs_start)
    qt_ms = None
    if t_wave is not None and np.isfinite(t_wave.qt_ms):
        qt_ms = t_wave.qt_ms

    # QTc uses the unclamped QT
    qtc_ms = bazett_qtc(qt_ms, median_rr)

    metrics = MetricsRecord(
        bpm=_round_half_up(bpm) if bpm else None,
        pr_ms=clamp_metric(pr_ms, PR_CLAMP_MS),
        qrs_ms=clamp_metric(qrs_ms, QRS_CLAMP_MS),
        p_ms=clamp_metric(p_ms, P_DURATION_CLAMP_MS),
        qt_ms=clamp_metric(qt_ms, QT_CLAMP_MS),
        qtc_ms=clamp_metric(qtc_ms, QTC_CLAMP_MS),
    )

    return LeadAnalysis(
        metrics=metrics,
        sample_rate=sample_rate,
        corrected=corrected,
        r_peaks=r_peaks,
        rate=rate,
        representative_peak=representative,
        qrs=(qrs_start, qrs_end),
        p_wave=p_wave,
        t_wave=t_wave,
        pr_from_fallback=pr_from_fallback,
    )


def compute_metrics(ecg_signal: Union[Sequence[float], np.ndarray],
                    sample_rate: float) -> MetricsRecord:
    """Interval measurements for a Lead II signal. Never raises on numeric input."""
    return analyze_lead(ecg_signal, sample_rate).metrics


if __name__ == "__main__":
    from examples.generate_ecg_data import ECGGenerator

    gen = ECGGenerator(sample_rate=500)
    lead_ii, metadata = gen.generate_lead_ii(duration=10, heart_rate=72)

    record = compute_metrics(lead_ii, metadata['sample_rate'])
    print("Lead II interval measurements:")
    for name, value in record.to_dict().items():
        print(f"  {name}: {value if value is not None else 'not measured'}")
