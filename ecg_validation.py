#!/usr/bin/env python
"""
ECG Input Validation Module
Checks a Lead II signal and sampling rate before they reach the interval engine.

The engine itself degrades to null measurements on poor data; this module is
where malformed input (non-numeric samples, NaN, missing sampling rate) is
rejected and questionable input is reported.
"""

import numpy as np
import warnings
from typing import Dict, Optional, Sequence, Union

from ecg_constants import (
    MIN_SAMPLE_RATE_DIAGNOSTIC_HZ,
    RECOMMENDED_SAMPLE_RATE_HZ,
    MIN_RECORDING_DURATION_S,
    MAX_PLAUSIBLE_AMPLITUDE_MV,
    MAX_DC_OFFSET_MV,
)


class ECGValidationError(Exception):
    """Custom exception for ECG validation errors."""
    pass


class ECGWarning(UserWarning):
    """Custom warning for ECG validation issues."""
    pass


class ECGValidator:
    """Validation of single-lead input for interval measurement."""

    def __init__(self, strict_mode: bool = False):
        """Initialize validator."""
        self.strict_mode = strict_mode
        self.validation_results = {}

    def validate_lead(self,
                      ecg_signal: Union[Sequence[float], np.ndarray],
                      sample_rate: float) -> Dict[str, bool]:
        """
        Validate one lead and its sampling rate.

        Raises:
            ECGValidationError: For input the engine must not be called with.
                In strict mode, also for any warning-level issue.
        """
        results = {
            'data_format': False,
            'sample_rate': False,
            'duration': False,
            'amplitude_range': False,
            'overall_valid': False
        }

        signal = self._validate_data_format(ecg_signal)
        results['data_format'] = True
        results['sample_rate'] = self._validate_sample_rate(sample_rate)
        results['duration'] = self._validate_duration(signal, sample_rate)
        results['amplitude_range'] = self._validate_amplitude_range(signal)

        component_results = [results['data_format'], results['sample_rate'],
                             results['duration'], results['amplitude_range']]
        results['overall_valid'] = all(component_results)

        self.validation_results = results
        return results

    def _validate_data_format(self, ecg_signal) -> np.ndarray:
        """Convert to a 1-D float array or raise."""
        if ecg_signal is None:
            raise ECGValidationError("ECG signal is missing")

        if isinstance(ecg_signal, (str, bytes)):
            raise ECGValidationError("ECG signal must be a sequence of numbers")

        try:
            signal = np.asarray(ecg_signal, dtype=float)
        except (TypeError, ValueError) as e:
            raise ECGValidationError(f"ECG signal must contain only numbers: {e}")

        if signal.ndim != 1:
            raise ECGValidationError(f"ECG signal must be 1D array (samples,), got {signal.ndim}D")

        if np.any(np.isnan(signal)) or np.any(np.isinf(signal)):
            raise ECGValidationError("ECG signal contains NaN or infinite values")

        return signal

    def _validate_sample_rate(self, sample_rate) -> bool:
        """Validate sample rate type and diagnostic minimum."""
        if isinstance(sample_rate, bool) or not isinstance(sample_rate, (int, float, np.integer, np.floating)):
            raise ECGValidationError(f"Sample rate must be a number, got {type(sample_rate).__name__}")

        if not np.isfinite(sample_rate) or sample_rate <= 0:
            raise ECGValidationError(f"Sample rate must be positive number, got {sample_rate}")

        if sample_rate < MIN_SAMPLE_RATE_DIAGNOSTIC_HZ:
            self._handle_validation_issue(
                f"Sample rate {sample_rate} Hz is below the {MIN_SAMPLE_RATE_DIAGNOSTIC_HZ} Hz "
                f"diagnostic minimum ({RECOMMENDED_SAMPLE_RATE_HZ} Hz recommended). "
                f"Interval boundaries will be coarse.")
            return False

        return True

    def _validate_duration(self, signal: np.ndarray, sample_rate: float) -> bool:
        """At least two beats are needed for a heart rate."""
        duration = len(signal) / float(sample_rate)
        if duration < MIN_RECORDING_DURATION_S:
            self._handle_validation_issue(
                f"Recording too short: {duration:.2f} s. "
                f"At least {MIN_RECORDING_DURATION_S:.0f} s is needed to measure heart rate.")
            return False
        return True

    def _validate_amplitude_range(self, signal: np.ndarray) -> bool:
        """Validate amplitude against physiological ranges."""
        if len(signal) == 0:
            return True

        valid = True
        min_val, max_val = float(np.min(signal)), float(np.max(signal))
        if min_val < -MAX_PLAUSIBLE_AMPLITUDE_MV or max_val > MAX_PLAUSIBLE_AMPLITUDE_MV:
            self._handle_validation_issue(
                f"Amplitude outside typical range: {min_val:.2f} to {max_val:.2f} mV. "
                f"Signal may be in ADC counts; thresholds are range-relative.")
            valid = False

        mean_value = float(np.mean(signal))
        if abs(mean_value) > MAX_DC_OFFSET_MV:
            self._handle_validation_issue(
                f"Large DC offset detected: {mean_value:.2f} mV. Baseline correction will remove it.")
            valid = False

        return valid

    def _handle_validation_issue(self, message: str):
        """Handle validation issues based on strict mode setting."""
        if self.strict_mode:
            raise ECGValidationError(message)
        else:
            warnings.warn(message, ECGWarning)

    def get_validation_report(self) -> str:
        """Get a formatted validation report."""
        if not self.validation_results:
            return "No validation performed yet."

        report = "ECG Validation Report\n" + "=" * 30 + "\n"

        for check, result in self.validation_results.items():
            if check == 'overall_valid':
                continue
            status = "PASS" if result else "WARN"
            report += f"{check.replace('_', ' ').title():.<20} {status}\n"

        overall = "VALID" if self.validation_results.get('overall_valid', False) else "USABLE WITH WARNINGS"
        report += f"\n{'Overall Status':.<20} {overall}\n"

        return report


def prepare_lead_signal(ecg_signal: Union[Sequence[float], np.ndarray],
                        sample_rate: float,
                        max_duration_s: Optional[float] = None,
                        strict_mode: bool = False) -> np.ndarray:
    """
    Validate a lead and return it as a float array ready for compute_metrics().

    Args:
        ecg_signal: Lead samples
        sample_rate: Sampling rate in Hz
        max_duration_s: Keep only the first max_duration_s seconds. Bounds the
            engine's run time for latency-sensitive callers.
        strict_mode: Raise instead of warning on questionable input

    Returns:
        1-D float array
    """
    validator = ECGValidator(strict_mode=strict_mode)
    validator.validate_lead(ecg_signal, sample_rate)

    signal = np.asarray(ecg_signal, dtype=float)
    if max_duration_s is not None:
        if max_duration_s <= 0:
            raise ECGValidationError(f"max_duration_s must be positive, got {max_duration_s}")
        signal = signal[:int(np.floor(max_duration_s * sample_rate))]

    return signal


# Convenience functions for quick validation
def quick_validate(ecg_signal: Union[Sequence[float], np.ndarray], sample_rate: float) -> bool:
    """Quick validation with default settings; False instead of raising."""
    validator = ECGValidator(strict_mode=False)
    try:
        with warnings.catch_warnings():
            warnings.simplefilter('ignore', ECGWarning)
            results = validator.validate_lead(ecg_signal, sample_rate)
    except ECGValidationError:
        return False
    return results['overall_valid']


def strict_validate(ecg_signal: Union[Sequence[float], np.ndarray], sample_rate: float):
    """Strict validation that raises exceptions on any issue."""
    validator = ECGValidator(strict_mode=True)
    return validator.validate_lead(ecg_signal, sample_rate)
