#!/usr/bin/env python
"""
ECG Data Generation for Testing and Examples
Generates synthetic Lead II signals and 12-lead JSON exports.
"""

import numpy as np
import matplotlib.pyplot as plt
from typing import Tuple, Optional, Dict


class ECGGenerator:
    """Generate synthetic ECG signals for testing and development."""

    def __init__(self, sample_rate: int = 500):
        """
        Initialize ECG generator.

        Args:
            sample_rate: Sampling frequency in Hz
        """
        self.fs = sample_rate
        self.lead_names = ['I', 'II', 'III', 'aVR', 'aVL', 'aVF',
                           'V1', 'V2', 'V3', 'V4', 'V5', 'V6']

    def generate_r_pulse_train(self,
                               duration: float = 10.0,
                               rr_interval: float = 0.8,
                               amplitude: float = 1.0,
                               width: float = 0.012,
                               first_beat: float = 0.4,
                               offset: float = 0.0) -> Tuple[np.ndarray, Dict]:
        """
        Generate evenly spaced Gaussian "R" pulses on a flat baseline.

        Pulse centres fall exactly on sample indices, so each pulse has a
        single strict local maximum.

        Args:
            duration: Signal duration in seconds
            rr_interval: Separation between pulses in seconds
            amplitude: Pulse height in mV
            width: Gaussian standard deviation in seconds
            first_beat: Time of the first pulse in seconds
            offset: Constant DC offset in mV

        Returns:
            Tuple of (signal, metadata); metadata['r_peaks'] holds the pulse
            centre indices
        """
        n_samples = int(duration * self.fs)
        idx = np.arange(n_samples)
        width_samples = width * self.fs

        centres = []
        k = 0
        while True:
            centre = int(round(first_beat * self.fs + k * rr_interval * self.fs))
            if centre >= n_samples:
                break
            centres.append(centre)
            k += 1

        signal = np.full(n_samples, float(offset))
        for centre in centres:
            signal += amplitude * np.exp(-0.5 * ((idx - centre) / width_samples) ** 2)

        metadata = {
            'sample_rate': self.fs,
            'duration': duration,
            'heart_rate': 60.0 / rr_interval,
            'r_peaks': np.array(centres, dtype=int),
            'signal_type': 'Gaussian R pulse train'
        }

        return signal, metadata

    def generate_lead_ii(self,
                         duration: float = 10.0,
                         heart_rate: float = 72,
                         noise_level: float = 0.02,
                         baseline_wander: float = 0.1,
                         seed: Optional[int] = 0) -> Tuple[np.ndarray, Dict]:
        """
        Generate a Lead II normal sinus rhythm with P, QRS and T waves.

        Args:
            duration: Signal duration in seconds
            heart_rate: Heart rate in beats per minute
            noise_level: Gaussian noise standard deviation (mV)
            baseline_wander: Amplitude of 0.3 Hz respiratory drift (mV)
            seed: Random seed (None for non-reproducible noise)

        Returns:
            Tuple of (signal, metadata)
        """
        signal, metadata = self._generate_lead(duration, heart_rate, noise_level,
                                               baseline_wander, self._get_lead_amplitude_factors(1),
                                               np.random.default_rng(seed))
        metadata['leads'] = ['II']
        return signal, metadata

    def generate_12_lead_export(self,
                                duration: float = 10.0,
                                heart_rate: float = 72,
                                noise_level: float = 0.02,
                                seed: Optional[int] = 0) -> Dict:
        """
        Generate a 12-lead recording in the JSON export layout.

        Returns:
            {'sampling_rate': fs, 'leads': {name: [samples...]}}
        """
        rng = np.random.default_rng(seed)
        leads = {}
        for lead_idx, name in enumerate(self.lead_names):
            signal, _ = self._generate_lead(duration, heart_rate, noise_level, 0.1,
                                            self._get_lead_amplitude_factors(lead_idx), rng)
            leads[name] = signal.tolist()

        return {'sampling_rate': self.fs, 'leads': leads}

    def _generate_lead(self, duration, heart_rate, noise_level, baseline_wander,
                       lead_factors, rng) -> Tuple[np.ndarray, Dict]:
        n_samples = int(duration * self.fs)
        rr_interval = 60.0 / heart_rate
        t = np.arange(n_samples) / self.fs

        signal = np.zeros(n_samples)
        beat_times = np.arange(0.3, duration, rr_interval)
        for beat_time in beat_times:
            signal += self._generate_pqrst_complex(beat_time, lead_factors, t)

        if noise_level > 0:
            signal += rng.normal(0, noise_level, n_samples)

        if baseline_wander > 0:
            signal += baseline_wander * np.sin(2 * np.pi * 0.3 * t)

        metadata = {
            'sample_rate': self.fs,
            'duration': duration,
            'heart_rate': heart_rate,
            'signal_type': 'Normal Sinus Rhythm',
            'noise_level': noise_level
        }

        return signal, metadata

    def _generate_pqrst_complex(self, beat_time: float, lead_factors: Dict[str, float],
                                t: np.ndarray) -> np.ndarray:
        """Generate a single PQRST complex centred on the R wave."""
        signal = np.zeros(len(t))

        # P wave (atrial depolarization)
        signal += self._gaussian_wave(t, beat_time - 0.16, 0.15 * lead_factors['p'], 0.02)
        # Q wave
        signal += self._gaussian_wave(t, beat_time - 0.03, -0.1 * lead_factors['q'], 0.008)
        # R wave
        signal += self._gaussian_wave(t, beat_time, 1.0 * lead_factors['r'], 0.01)
        # S wave
        signal += self._gaussian_wave(t, beat_time + 0.03, -0.25 * lead_factors['s'], 0.01)
        # T wave (ventricular repolarization)
        signal += self._gaussian_wave(t, beat_time + 0.26, 0.3 * lead_factors['t'], 0.04)

        return signal

    def _gaussian_wave(self, t: np.ndarray, center: float, amplitude: float, width: float) -> np.ndarray:
        """Generate Gaussian wave centered at specific time."""
        return amplitude * np.exp(-0.5 * ((t - center) / width) ** 2)

    def _get_lead_amplitude_factors(self, lead_idx: int) -> Dict[str, float]:
        """Get lead-specific amplitude factors for PQRST waves."""
        lead_factors = [
            # Limb leads
            {'p': 1.0, 'q': 0.5, 'r': 0.8, 's': 0.3, 't': 0.8},  # Lead I
            {'p': 1.2, 'q': 0.3, 'r': 1.2, 's': 0.2, 't': 1.0},  # Lead II
            {'p': 0.8, 'q': 0.2, 'r': 0.4, 's': 0.1, 't': 0.3},  # Lead III
            {'p': -0.8, 'q': -0.2, 'r': -0.6, 's': -0.1, 't': -0.5},  # aVR
            {'p': 0.6, 'q': 0.4, 'r': 0.5, 's': 0.2, 't': 0.4},  # aVL
            {'p': 1.0, 'q': 0.1, 'r': 0.7, 's': 0.1, 't': 0.6},  # aVF
            # Precordial leads
            {'p': 0.3, 'q': 0.1, 'r': 0.3, 's': 0.8, 't': -0.2},  # V1
            {'p': 0.4, 'q': 0.2, 'r': 0.5, 's': 0.6, 't': 0.1},  # V2
            {'p': 0.5, 'q': 0.3, 'r': 0.8, 's': 0.4, 't': 0.4},  # V3
            {'p': 0.6, 'q': 0.2, 'r': 1.2, 's': 0.2, 't': 0.6},  # V4
            {'p': 0.7, 'q': 0.1, 'r': 1.0, 's': 0.1, 't': 0.5},  # V5
            {'p': 0.6, 'q': 0.1, 'r': 0.8, 's': 0.1, 't': 0.4},  # V6
        ]

        return lead_factors[lead_idx] if lead_idx < len(lead_factors) else lead_factors[0]


if __name__ == "__main__":
    generator = ECGGenerator()
    lead_ii, metadata = generator.generate_lead_ii()

    print(f"Generated Lead II: {metadata}")
    print(f"Amplitude range: {lead_ii.min():.3f} to {lead_ii.max():.3f} mV")

    plt.figure(figsize=(12, 4))
    plt.plot(np.arange(len(lead_ii)) / metadata['sample_rate'], lead_ii)
    plt.title("Synthetic Lead II")
    plt.xlabel('Time (s)')
    plt.ylabel('Amplitude (mV)')
    plt.grid(True)
    plt.tight_layout()
    plt.show()
