#!/usr/bin/env python
"""
Clinical ECG Plotting Module
Lead II waveform with the detected fiducial points of the measured beat.
"""

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.ticker import MultipleLocator
from typing import Optional, Tuple

from ecg_measurements import LeadAnalysis
from ecg_constants import DISPLAY_WINDOW_S
from clinical_report import format_metrics_strip, METRICS_STRIP_LABELS

# Standard ECG paper: 0.04 s / 0.1 mV small boxes, 0.2 s / 0.5 mV large boxes
MINOR_TIME_S = 0.04
MAJOR_TIME_S = 0.2
MINOR_VOLTAGE_MV = 0.1
MAJOR_VOLTAGE_MV = 0.5
MAX_GRID_SPAN_MV = 20.0


class MetricsPlotter:
    """Plot a LeadAnalysis with R-peaks, QRS, P-wave and T-wave markers."""

    def __init__(self, style: str = 'clinical'):
        """
        Initialize plotter.

        Args:
            style: Plot style ('clinical', 'research', 'print')
        """
        self.style = style

        # Style configurations
        self.styles = {
            'clinical': {
                'major_grid_color': '#FF0000',  # Red major grid
                'minor_grid_color': '#FFB3B3',  # Light red minor grid
                'signal_color': '#000000',  # Black signal
                'background_color': '#FFFFFF',
                'marker_color': '#0055CC',
                'text_color': '#000000',
                'grid_alpha': 0.8
            },
            'research': {
                'major_grid_color': '#333333',
                'minor_grid_color': '#CCCCCC',
                'signal_color': '#0066CC',  # Blue signal
                'background_color': '#FFFFFF',
                'marker_color': '#FF6600',  # Orange markers
                'text_color': '#333333',
                'grid_alpha': 0.6
            },
            'print': {
                'major_grid_color': '#000000',
                'minor_grid_color': '#666666',
                'signal_color': '#000000',
                'background_color': '#FFFFFF',
                'marker_color': '#000000',
                'text_color': '#000000',
                'grid_alpha': 1.0
            }
        }

        self.current_style = self.styles.get(style, self.styles['clinical'])

    def plot_lead_analysis(self,
                           analysis: LeadAnalysis,
                           lead_name: str = "II",
                           duration: Optional[float] = DISPLAY_WINDOW_S,
                           show_grid: bool = True,
                           figsize: Tuple[float, float] = (12, 4)) -> plt.Figure:
        """
        Plot the baseline-corrected lead with fiducial markers.

        Args:
            analysis: Result of analyze_lead()
            lead_name: Lead label for the y axis
            duration: Seconds to plot from the start, 6 s by default (None for
                the full signal). Measurements always come from the full lead.
            show_grid: Draw ECG paper grid
            figsize: Figure size

        Returns:
            matplotlib Figure object
        """
        if analysis.corrected is None or not analysis.sample_rate:
            raise ValueError("Analysis has no signal to plot")

        fs = analysis.sample_rate
        signal = analysis.corrected
        n_samples = len(signal) if duration is None else min(len(signal), int(duration * fs))
        time_axis = np.arange(n_samples) / fs
        segment = signal[:n_samples]

        fig, ax = plt.subplots(figsize=figsize)
        fig.patch.set_facecolor(self.current_style['background_color'])

        ax.plot(time_axis, segment, color=self.current_style['signal_color'], linewidth=0.8)

        self._add_r_peaks(ax, analysis, n_samples)
        self._add_beat_markers(ax, analysis, n_samples)

        # Paper grid only makes sense for mV-scaled signals
        if show_grid and n_samples > 0 and np.ptp(segment) <= MAX_GRID_SPAN_MV:
            self._setup_paper_grid(ax)

        strip = format_metrics_strip(analysis.metrics)
        ax.set_title("   ".join(f"{label}: {strip[label]}" for label in METRICS_STRIP_LABELS),
                     fontsize=11, fontweight='bold', color=self.current_style['text_color'])
        ax.set_ylabel(f'{lead_name} (mV)', fontsize=10, fontweight='bold',
                      color=self.current_style['text_color'])
        ax.set_xlabel('Time (s)', fontsize=8, color=self.current_style['text_color'])

        ax.spines['top'].set_visible(False)
        ax.spines['right'].set_visible(False)
        ax.tick_params(colors=self.current_style['text_color'], labelsize=8)

        if ax.get_legend_handles_labels()[0]:
            ax.legend(loc='upper right', fontsize=7, framealpha=0.9)

        plt.tight_layout()
        return fig

    def _add_r_peaks(self, ax: plt.Axes, analysis: LeadAnalysis, n_samples: int):
        if analysis.r_peaks is None or len(analysis.r_peaks) == 0:
            return
        peaks = analysis.r_peaks[analysis.r_peaks < n_samples]
        if len(peaks) == 0:
            return
        ax.plot(peaks / analysis.sample_rate, analysis.corrected[peaks], 'v',
                color=self.current_style['marker_color'], markersize=5, label='R-peak')

    def _add_beat_markers(self, ax: plt.Axes, analysis: LeadAnalysis, n_samples: int):
        """Vertical markers for the representative beat's boundaries."""
        fs = analysis.sample_rate
        color = self.current_style['marker_color']

        markers = []
        if analysis.qrs is not None:
            markers.append((analysis.qrs[0], '-', 'QRS onset'))
            markers.append((analysis.qrs[1], '-', 'J-point'))
        if analysis.p_wave is not None:
            markers.append((analysis.p_wave.p_start, '--', 'P onset'))
            markers.append((analysis.p_wave.p_end, '--', 'P end'))
        if analysis.t_wave is not None:
            markers.append((analysis.t_wave.t_end, ':', 'T end'))

        for index, linestyle, label in markers:
            if 0 <= index < n_samples:
                ax.axvline(index / fs, color=color, linestyle=linestyle,
                           linewidth=0.9, alpha=0.8, label=label)

    def _setup_paper_grid(self, ax: plt.Axes):
        ax.xaxis.set_major_locator(MultipleLocator(MAJOR_TIME_S))
        ax.xaxis.set_minor_locator(MultipleLocator(MINOR_TIME_S))
        ax.yaxis.set_major_locator(MultipleLocator(MAJOR_VOLTAGE_MV))
        ax.yaxis.set_minor_locator(MultipleLocator(MINOR_VOLTAGE_MV))

        ax.grid(True, which='major',
                color=self.current_style['major_grid_color'],
                linewidth=0.8, alpha=self.current_style['grid_alpha'])
        ax.grid(True, which='minor',
                color=self.current_style['minor_grid_color'],
                linewidth=0.3, alpha=self.current_style['grid_alpha'])


def plot_lead_analysis(analysis: LeadAnalysis, lead_name: str = "II", **kwargs) -> plt.Figure:
    """Quick annotated plot of an analysed lead."""
    return MetricsPlotter().plot_lead_analysis(analysis, lead_name=lead_name, **kwargs)


if __name__ == "__main__":
    from examples.generate_ecg_data import ECGGenerator
    from ecg_measurements import analyze_lead

    gen = ECGGenerator()
    lead_ii, metadata = gen.generate_lead_ii(duration=10, heart_rate=75)
    fig = plot_lead_analysis(analyze_lead(lead_ii, metadata['sample_rate']), duration=4)
    plt.show()
