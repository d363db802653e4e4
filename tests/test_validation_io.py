#!/usr/bin/env python
"""
Validation and File I/O Tests
Input checks, JSON/CSV exports and running the engine on Lead II.
"""

import json
import re
import numpy as np
import pytest
import warnings
import sys, os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from examples.generate_ecg_data import ECGGenerator
from ecg_constants import STANDARD_12_LEADS
from ecg_validation import (
    ECGValidator,
    ECGValidationError,
    ECGWarning,
    prepare_lead_signal,
    quick_validate,
    strict_validate,
)
from ecg_io import (
    ECGRecording,
    parse_ecg_json,
    read_ecg_json,
    write_ecg_json,
    read_csv,
    write_csv,
    load_ecg,
    analyze_recording,
)


def _clean_lead(duration=10, fs=500):
    gen = ECGGenerator(sample_rate=fs)
    lead_ii, _ = gen.generate_lead_ii(duration=duration, heart_rate=72, baseline_wander=0.0)
    return lead_ii


# Validation

def test_clean_lead_validates_without_warnings():
    validator = ECGValidator()

    with warnings.catch_warnings():
        warnings.simplefilter('error', ECGWarning)
        results = validator.validate_lead(_clean_lead(), 500)

    assert results['overall_valid']
    assert "VALID" in validator.get_validation_report()


def test_rejects_malformed_signals():
    validator = ECGValidator()
    bad_inputs = [
        None,
        "1,2,3",
        [1.0, "x", 3.0],
        np.zeros((2, 500)),
        np.array([0.0, np.nan, 1.0]),
        np.array([0.0, np.inf, 1.0]),
    ]
    for signal in bad_inputs:
        with pytest.raises(ECGValidationError):
            validator.validate_lead(signal, 500)


def test_rejects_bad_sample_rates():
    validator = ECGValidator()
    for rate in (None, "500", True, 0, -250, float('nan')):
        with pytest.raises(ECGValidationError):
            validator.validate_lead(_clean_lead(), rate)


def test_warning_level_issues():
    validator = ECGValidator()

    with pytest.warns(ECGWarning, match=r"below the 250 Hz diagnostic minimum \(500 Hz recommended\)"):
        validator.validate_lead(np.zeros(2000), 200)

    with pytest.warns(ECGWarning, match="too short"):
        validator.validate_lead(np.zeros(500), 500)

    with pytest.warns(ECGWarning, match="Amplitude outside"):
        validator.validate_lead(1000.0 * _clean_lead(), 500)

    with pytest.warns(ECGWarning, match="DC offset"):
        validator.validate_lead(_clean_lead() + 2.0, 500)


def test_strict_mode_raises_on_warnings():
    with pytest.raises(ECGValidationError, match="too short"):
        strict_validate(np.zeros(500), 500)


def test_quick_validate():
    assert quick_validate(_clean_lead(), 500)
    assert not quick_validate(np.zeros(500), 500), "Too short"
    assert not quick_validate([0.0, np.nan], 500)
    assert not quick_validate(_clean_lead(), 0)


def test_prepare_lead_signal_caps_duration():
    signal = prepare_lead_signal(_clean_lead(duration=10).tolist(), 500, max_duration_s=6)

    assert isinstance(signal, np.ndarray)
    assert len(signal) == 3000

    with pytest.raises(ECGValidationError):
        prepare_lead_signal(_clean_lead(), 500, max_duration_s=0)


# JSON export

def test_parse_ecg_json_errors():
    good = ECGGenerator().generate_12_lead_export(duration=3)

    with pytest.raises(ValueError, match=re.escape("Invalid ECG JSON format.")):
        parse_ecg_json({'leads': good['leads']})
    with pytest.raises(ValueError, match=re.escape("Invalid ECG JSON format.")):
        parse_ecg_json([1, 2, 3])
    with pytest.raises(ValueError, match=re.escape("Sampling rate must be a positive number.")):
        parse_ecg_json({'sampling_rate': 0, 'leads': good['leads']})

    missing = dict(good['leads'])
    del missing['V6']
    with pytest.raises(ValueError, match=re.escape("Lead V6 is missing or not an array.")):
        parse_ecg_json({'sampling_rate': 500, 'leads': missing})

    not_array = dict(good['leads'], aVR="0.1,0.2")
    with pytest.raises(ValueError, match=re.escape("Lead aVR is missing or not an array.")):
        parse_ecg_json({'sampling_rate': 500, 'leads': not_array})


def test_parse_ecg_json_custom_required_leads():
    recording = parse_ecg_json({'sampling_rate': 360, 'leads': {'II': [0.0, 0.1, 0.2]}},
                               required_leads=('II',))

    assert recording.sample_rate == 360.0
    assert recording.lead_names == ['II']
    assert recording.n_samples == 3


def test_read_json_export_and_measure_full_lead(tmp_path):
    export = ECGGenerator(sample_rate=500).generate_12_lead_export(duration=10, heart_rate=72)
    path = tmp_path / "ecg_data_001.json"
    path.write_text(json.dumps(export))

    with warnings.catch_warnings():
        warnings.simplefilter('error', ECGWarning)
        recording = read_ecg_json(str(path))

    assert recording.lead_names[:12] == list(STANDARD_12_LEADS)
    assert recording.n_samples == 5000

    analysis = analyze_recording(recording)
    assert len(analysis.corrected) == 5000, "Measured on the whole lead, not the display window"
    assert 69 <= analysis.metrics.bpm <= 75, f"bpm {analysis.metrics.bpm}"


def test_read_json_max_duration(tmp_path):
    export = ECGGenerator(sample_rate=500).generate_12_lead_export(duration=10)
    path = tmp_path / "ecg_data_002.json"
    path.write_text(json.dumps(export))

    recording = read_ecg_json(str(path), max_duration=6)

    assert recording.n_samples == 3000
    assert recording.duration == pytest.approx(6.0)


def test_read_json_warns_on_unexpected_file_name(tmp_path):
    export = ECGGenerator().generate_12_lead_export(duration=3)
    path = tmp_path / "export.json"
    path.write_text(json.dumps(export))

    with pytest.warns(ECGWarning, match=r"ecg_data_\*\.json"):
        recording = read_ecg_json(str(path))

    assert recording.lead_names[:12] == list(STANDARD_12_LEADS), "Parsing still attempted"


def test_read_json_invalid_file(tmp_path):
    path = tmp_path / "ecg_data_broken.json"
    path.write_text("{not json")

    with pytest.raises(ValueError, match="Failed to parse"):
        read_ecg_json(str(path))


def test_write_then_read_json(tmp_path):
    export = ECGGenerator().generate_12_lead_export(duration=3)
    recording = parse_ecg_json(export)
    path = str(tmp_path / "ecg_data_copy.json")

    write_ecg_json(path, recording)
    loaded = load_ecg(path)

    assert loaded.sample_rate == recording.sample_rate
    assert np.allclose(loaded.lead('II'), recording.lead('II'))


# CSV

def test_csv_write_read(tmp_path):
    leads = {'II': np.linspace(-1, 1, 50), 'V1': np.linspace(1, -1, 50)}
    path = str(tmp_path / "ecg.csv")

    write_csv(path, ECGRecording(sample_rate=250.0, leads=leads))
    loaded = read_csv(path)

    assert loaded.sample_rate == 250.0
    assert loaded.lead_names == ['II', 'V1']
    assert np.allclose(loaded.lead('V1'), leads['V1'])


def test_csv_bad_metadata(tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("II,V1\n0.1,0.2\n")

    with pytest.raises(ValueError, match="metadata row"):
        read_csv(str(path))


def test_csv_row_width_must_match_header(tmp_path):
    # 6 values divide evenly into 2 columns; the rows must still be rejected
    path = tmp_path / "wide.csv"
    path.write_text("II,V1\n#sample_rate,500\n1,2,3\n4,5,6\n")

    with pytest.raises(ValueError, match="CSV row 3 has 3 values, expected 2"):
        read_csv(str(path))


def test_load_csv_honours_max_duration(tmp_path):
    leads = {'II': np.arange(5000.0), 'V1': np.zeros(5000)}
    path = str(tmp_path / "ecg.csv")
    write_csv(path, ECGRecording(sample_rate=500.0, leads=leads))

    loaded = load_ecg(path, max_duration=2)

    assert loaded.n_samples == 1000
    assert np.array_equal(loaded.lead('II'), np.arange(1000.0))


def test_csv_rejects_ragged_leads(tmp_path):
    recording = ECGRecording(sample_rate=500.0, leads={'II': np.zeros(10), 'V1': np.zeros(5)})

    with pytest.raises(ValueError):
        write_csv(str(tmp_path / "ragged.csv"), recording)


# Recording helpers

def test_recording_lead_lookup_and_window():
    recording = ECGRecording(sample_rate=500.0, leads={'II': np.arange(5000.0)})

    with pytest.raises(KeyError):
        recording.lead('V1')

    short = recording.windowed(2.5)
    assert short.n_samples == 1250
    assert recording.n_samples == 5000, "Original left intact"


def test_unknown_extension():
    with pytest.raises(ValueError, match="Unknown or unsupported"):
        load_ecg("recording.edf")


if __name__ == "__main__":
    import tempfile
    from pathlib import Path

    for name, func in list(globals().items()):
        if name.startswith("test_") and callable(func):
            if func.__code__.co_argcount:
                with tempfile.TemporaryDirectory() as tmp:
                    func(Path(tmp))
            else:
                func()
            print(f"PASS {name}")
