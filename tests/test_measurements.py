#!/usr/bin/env python
"""
Interval Measurement Tests
End-to-end behaviour of compute_metrics() and its helpers.
"""

import numpy as np
import pytest
import sys, os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from examples.generate_ecg_data import ECGGenerator
from ecg_constants import (
    HEART_RATE_CLAMP_BPM,
    PR_CLAMP_MS,
    QRS_CLAMP_MS,
    P_DURATION_CLAMP_MS,
    QT_CLAMP_MS,
    QTC_CLAMP_MS,
)
from ecg_measurements import (
    MetricsRecord,
    analyze_lead,
    bazett_qtc,
    clamp_metric,
    compute_metrics,
    fallback_pr_from_bpm,
    resolve_pr_interval,
    select_representative_peak,
)

METRIC_BOUNDS = {
    'bpm': HEART_RATE_CLAMP_BPM,
    'pr_ms': PR_CLAMP_MS,
    'qrs_ms': QRS_CLAMP_MS,
    'p_ms': P_DURATION_CLAMP_MS,
    'qt_ms': QT_CLAMP_MS,
    'qtc_ms': QTC_CLAMP_MS,
}


def _assert_in_bounds(record: MetricsRecord, context: str):
    for name, value in record.to_dict().items():
        if value is None:
            continue
        low, high = METRIC_BOUNDS[name]
        assert low <= value <= high, f"{context}: {name}={value} outside [{low}, {high}]"


def test_null_safety():
    """Unusable input gives an all-None record instead of raising."""
    signal = np.sin(np.arange(5000) / 50.0)

    cases = [
        ([], 500),
        (np.array([]), 500),
        (signal, 0),
        (signal, -1),
        (signal, None),
        (signal, float('nan')),
        (signal, float('inf')),
    ]
    for ecg, rate in cases:
        record = compute_metrics(ecg, rate)
        assert record.is_empty, f"Expected empty record for rate={rate}, n={len(ecg)}"


def test_flat_signal_has_no_measurements():
    record = compute_metrics(np.zeros(5000), 500)

    assert record == MetricsRecord()


def test_deterministic():
    gen = ECGGenerator(sample_rate=500)
    lead_ii, _ = gen.generate_lead_ii(duration=10, heart_rate=72, seed=3)

    first = compute_metrics(lead_ii, 500)
    second = compute_metrics(lead_ii.copy(), 500)

    assert first == second, "Same input gives the same record"


def test_input_not_modified():
    gen = ECGGenerator(sample_rate=500)
    lead_ii, _ = gen.generate_lead_ii(duration=10, heart_rate=72)
    original = lead_ii.copy()

    compute_metrics(lead_ii, 500)

    assert np.array_equal(lead_ii, original)


def test_pulse_train_75_bpm():
    gen = ECGGenerator(sample_rate=500)
    signal, metadata = gen.generate_r_pulse_train(duration=10, rr_interval=0.8)

    record = compute_metrics(signal, 500)

    assert abs(record.bpm - 75) <= 2, f"bpm {record.bpm}"
    assert record.qrs_ms is not None
    assert 60 <= record.qrs_ms <= 200


def test_pulse_train_uses_heart_rate_fallback_for_pr():
    gen = ECGGenerator(sample_rate=500)
    signal, _ = gen.generate_r_pulse_train(duration=10, rr_interval=0.546)

    analysis = analyze_lead(signal, 500)
    record = analysis.metrics

    assert record.bpm == 110
    assert analysis.p_wave is None, "Pulses carry no P-wave"
    assert analysis.pr_from_fallback
    assert record.pr_ms == 140
    assert record.p_ms == 56


def test_synthetic_sinus_rhythm():
    gen = ECGGenerator(sample_rate=500)
    lead_ii, _ = gen.generate_lead_ii(duration=10, heart_rate=72)

    analysis = analyze_lead(lead_ii, 500)
    record = analysis.metrics

    assert 69 <= record.bpm <= 75, f"bpm {record.bpm}"
    assert record.qrs_ms is not None
    assert record.qt_ms is not None
    assert record.qtc_ms is not None
    assert analysis.qrs[0] < analysis.representative_peak <= analysis.qrs[1]


def test_single_peak_has_no_rate_dependent_metrics():
    x = np.zeros(2000)
    x[1000] = 1.0

    analysis = analyze_lead(x, 500)
    record = analysis.metrics

    assert list(analysis.r_peaks) == [1000]
    assert record.bpm is None
    assert record.pr_ms is None, "No P-wave and no rate for the fallback"
    assert record.p_ms is None
    assert record.qtc_ms is None, "QTc needs an RR interval"
    assert record.qrs_ms is not None


def test_clamp_invariant_across_inputs():
    gen = ECGGenerator(sample_rate=500)
    signals = []

    for heart_rate in (40, 72, 150, 200):
        lead_ii, _ = gen.generate_lead_ii(duration=10, heart_rate=heart_rate)
        signals.append((f"sinus {heart_rate} bpm", lead_ii, 500))

    for rr in (0.25, 0.5, 1.5, 2.5):
        pulses, _ = gen.generate_r_pulse_train(duration=12, rr_interval=rr)
        signals.append((f"pulses rr={rr}", pulses, 500))

    for rate in (100, 250, 360, 1000):
        rng = np.random.default_rng(rate)
        signals.append((f"noise {rate} Hz", rng.normal(0, 1, 10 * rate), rate))

    signals.append(("three samples", np.array([0.0, 1.0, 0.0]), 500))
    signals.append(("adc counts", 1000.0 * signals[1][1], 500))

    for context, ecg, rate in signals:
        _assert_in_bounds(compute_metrics(ecg, rate), context)


def test_bpm_is_integer():
    gen = ECGGenerator(sample_rate=500)
    signal, _ = gen.generate_r_pulse_train(duration=10, rr_interval=0.8)

    bpm = compute_metrics(signal, 500).bpm

    assert isinstance(bpm, int)


def test_fallback_pr_table():
    expected = [(45, 200), (55, 180), (75, 160), (110, 140), (130, 130), (180, 120),
                (50, 180), (100, 140), (150, 120)]
    for bpm, pr in expected:
        assert fallback_pr_from_bpm(bpm) == pr, f"bpm {bpm}"

    assert fallback_pr_from_bpm(None) is None
    assert fallback_pr_from_bpm(0) is None


def test_resolve_pr_without_p_wave():
    assert resolve_pr_interval(None, 110) == (140.0, 56.0, True)
    assert resolve_pr_interval(None, 75) == (160.0, 64.0, True)
    assert resolve_pr_interval(None, None) == (None, None, True)


def test_bazett_correction():
    assert bazett_qtc(400, 1.0) == pytest.approx(400.0)
    assert bazett_qtc(400, 0.64) == pytest.approx(500.0)
    assert bazett_qtc(None, 1.0) is None
    assert bazett_qtc(400, None) is None
    assert bazett_qtc(400, 0) is None


def test_clamp_metric():
    assert clamp_metric(500, PR_CLAMP_MS) == 320
    assert clamp_metric(10, PR_CLAMP_MS) == 80
    assert clamp_metric(150, PR_CLAMP_MS) == 150
    assert clamp_metric(None, PR_CLAMP_MS) is None
    assert clamp_metric(float('nan'), PR_CLAMP_MS) is None


def test_representative_peak_is_middle():
    assert select_representative_peak(np.array([10, 20, 30, 40])) == 30
    assert select_representative_peak(np.array([10, 20, 30])) == 20
    assert select_representative_peak(np.array([], dtype=int)) is None


def test_record_dict_keys():
    record = MetricsRecord(bpm=75, qrs_ms=94.0)

    assert list(record.to_dict()) == ['bpm', 'pr_ms', 'qrs_ms', 'p_ms', 'qt_ms', 'qtc_ms']
    assert not record.is_empty
    assert MetricsRecord().is_empty


def test_lead_analysis_comparison_does_not_inspect_arrays():
    gen = ECGGenerator(sample_rate=500)
    signal, _ = gen.generate_r_pulse_train(duration=10, rr_interval=0.8)

    first = analyze_lead(signal, 500)
    second = analyze_lead(signal, 500)

    assert first == first
    assert (first == second) is False, "Distinct analyses compare by identity"
    assert first.metrics == second.metrics, "Measurements compare by value"


if __name__ == "__main__":
    for name, func in list(globals().items()):
        if name.startswith("test_") and callable(func):
            func()
            print(f"PASS {name}")
