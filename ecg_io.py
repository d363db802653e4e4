#!/usr/bin/env python
"""
ECG File Format I/O Module
Reads and writes 12-lead ECG exports (JSON, CSV) and feeds Lead II to the
interval engine.

JSON export format:
{
    "sampling_rate": 500,
    "leads": {"I": [...], "II": [...], ..., "V6": [...]}
}
"""

import numpy as np
import json
import csv
import os
import re
import warnings
from typing import Dict, List, Optional
from dataclasses import dataclass, field

from ecg_constants import STANDARD_12_LEADS, ANALYSIS_LEAD
from ecg_measurements import LeadAnalysis, analyze_lead
from ecg_validation import ECGWarning

EXPORT_FILENAME_PATTERN = re.compile(r"^ecg_data_.*\.json$", re.IGNORECASE)


@dataclass
class ECGRecording:
    """A loaded multi-lead ECG recording."""
    sample_rate: float
    leads: Dict[str, np.ndarray] = field(default_factory=dict)
    source: Optional[str] = None

    @property
    def lead_names(self) -> List[str]:
        return list(self.leads.keys())

    @property
    def n_samples(self) -> int:
        if not self.leads:
            return 0
        return max(len(values) for values in self.leads.values())

    @property
    def duration(self) -> float:
        return self.n_samples / self.sample_rate

    def lead(self, name: str = ANALYSIS_LEAD) -> np.ndarray:
        if name not in self.leads:
            raise KeyError(f"Lead {name} not present in recording (available: {', '.join(self.leads)})")
        return self.leads[name]

    def windowed(self, seconds: float) -> 'ECGRecording':
        """Copy limited to the first `seconds` of every lead."""
        max_samples = int(np.floor(seconds * self.sample_rate))
        return ECGRecording(
            sample_rate=self.sample_rate,
            leads={name: values[:max_samples] for name, values in self.leads.items()},
            source=self.source
        )


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_ecg_json(ecg_json: dict,
                   required_leads=STANDARD_12_LEADS,
                   source: Optional[str] = None) -> ECGRecording:
    """
    Build an ECGRecording from a decoded JSON export.

    Raises:
        ValueError: When the sampling rate or any required lead is invalid
    """
    if (not isinstance(ecg_json, dict) or
            not _is_number(ecg_json.get('sampling_rate')) or
            not isinstance(ecg_json.get('leads'), dict)):
        raise ValueError("Invalid ECG JSON format.")

    sample_rate = ecg_json['sampling_rate']
    if not np.isfinite(sample_rate) or sample_rate <= 0:
        raise ValueError("Sampling rate must be a positive number.")

    raw_leads = ecg_json['leads']
    leads = {}
    for name in required_leads:
        values = raw_leads.get(name)
        if not isinstance(values, list):
            raise ValueError(f"Lead {name} is missing or not an array.")
        try:
            leads[name] = np.array(values, dtype=float)
        except (TypeError, ValueError):
            raise ValueError(f"Lead {name} contains non-numeric samples.")

    # Extra leads are kept after the required ones
    for name, values in raw_leads.items():
        if name not in leads and isinstance(values, list):
            try:
                leads[name] = np.array(values, dtype=float)
            except (TypeError, ValueError):
                continue

    return ECGRecording(sample_rate=float(sample_rate), leads=leads, source=source)


def read_ecg_json(filepath: str,
                  max_duration: Optional[float] = None,
                  required_leads=STANDARD_12_LEADS) -> ECGRecording:
    """
    Read an ECG JSON export.

    Args:
        filepath: Path to JSON file
        max_duration: Keep only the first max_duration seconds
        required_leads: Leads that must be present as arrays

    Returns:
        ECGRecording
    """
    if not EXPORT_FILENAME_PATTERN.match(os.path.basename(filepath)):
        warnings.warn(f"File name {os.path.basename(filepath)} does not match expected pattern "
                      f"ecg_data_*.json. Parsing will still be attempted.", ECGWarning)

    with open(filepath, 'r') as f:
        try:
            ecg_json = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Failed to parse ECG JSON file: {e}")

    recording = parse_ecg_json(ecg_json, required_leads=required_leads, source=filepath)
    if max_duration is not None:
        recording = recording.windowed(max_duration)
    return recording


def write_ecg_json(filepath: str, recording: ECGRecording):
    """Write a recording in the JSON export format."""
    ecg_json = {
        'sampling_rate': recording.sample_rate,
        'leads': {name: np.asarray(values, dtype=float).tolist()
                  for name, values in recording.leads.items()}
    }
    with open(filepath, 'w') as f:
        json.dump(ecg_json, f)


def read_csv(filepath: str, max_duration: Optional[float] = None) -> ECGRecording:
    """
    Read ECG from CSV file.

    CSV Format:
    Row 1: Header with lead names
    Row 2: '#sample_rate', <rate>
    Rows 3+: Sample values for each lead, one column per header name
    """
    with open(filepath, 'r', newline='') as f:
        reader = csv.reader(f)

        try:
            header = next(reader)
            meta_row = next(reader)
        except StopIteration:
            raise ValueError(f"CSV file {filepath} has no header or metadata row")

        if not meta_row or not meta_row[0].startswith('#') or len(meta_row) < 2:
            raise ValueError("CSV metadata row must be '#sample_rate,<rate>'")
        try:
            sample_rate = float(meta_row[1])
        except ValueError:
            raise ValueError(f"Invalid sample rate in CSV metadata: {meta_row[1]}")
        if not np.isfinite(sample_rate) or sample_rate <= 0:
            raise ValueError("Sampling rate must be a positive number.")

        rows = []
        for row in reader:
            if not row or row[0].startswith('#'):
                continue
            if len(row) != len(header):
                raise ValueError(f"CSV row {reader.line_num} has {len(row)} values, "
                                 f"expected {len(header)} ({', '.join(header)})")
            rows.append(row)

    try:
        data = np.array(rows, dtype=float).reshape(-1, len(header)).T
    except ValueError as e:
        raise ValueError(f"CSV file {filepath} contains non-numeric samples: {e}")
    leads = {name: data[i] for i, name in enumerate(header)}

    recording = ECGRecording(sample_rate=sample_rate, leads=leads, source=filepath)
    if max_duration is not None:
        recording = recording.windowed(max_duration)
    return recording


def write_csv(filepath: str, recording: ECGRecording):
    """Write ECG to CSV file."""
    names = recording.lead_names
    lengths = {len(recording.leads[name]) for name in names}
    if len(lengths) > 1:
        raise ValueError("CSV export requires all leads to have the same length")

    with open(filepath, 'w', newline='') as f:
        writer = csv.writer(f)
        writer.writerow(names)
        writer.writerow(['#sample_rate', recording.sample_rate])

        columns = np.array([recording.leads[name] for name in names], dtype=float)
        for row in columns.T:
            writer.writerow(row)


def load_ecg(filepath: str, **kwargs) -> ECGRecording:
    """Load an ECG file, choosing the reader from the file extension."""
    ext = filepath.lower().rsplit('.', 1)[-1]
    if ext == 'json':
        return read_ecg_json(filepath, **kwargs)
    elif ext == 'csv':
        return read_csv(filepath, **kwargs)
    else:
        raise ValueError(f"Unknown or unsupported file format: {filepath}")


def analyze_recording(recording: ECGRecording, lead_name: str = ANALYSIS_LEAD) -> LeadAnalysis:
    """
    Run the interval engine on one lead of a recording (Lead II by default).

    Pass the full recording; the display window is applied at plot time.
    """
    return analyze_lead(recording.lead(lead_name), recording.sample_rate)


if __name__ == "__main__":
    import sys

    if len(sys.argv) < 2:
        print("Usage: python ecg_io.py <ecg_data.json|csv>")
        sys.exit(1)

    rec = load_ecg(sys.argv[1])
    print(f"Loaded {len(rec.leads)} leads, {rec.duration:.1f} s at {rec.sample_rate} Hz")
    print(analyze_recording(rec).metrics)
