#!/usr/bin/env python
"""
Clinical Report Generation Module
Metrics strip, normal-range assessment and text/PDF reports for Lead II
interval measurements.
"""

from datetime import datetime
from typing import Dict, List, Optional, Tuple
from dataclasses import dataclass
import matplotlib.pyplot as plt
from matplotlib.backends.backend_pdf import PdfPages

from ecg_constants import (
    HEART_RATE_NORMAL_BPM,
    PR_INTERVAL_NORMAL_MS,
    QRS_DURATION_NORMAL_MS,
    P_WAVE_DURATION_NORMAL_MS,
    QT_INTERVAL_NORMAL_MS,
    QTC_INTERVAL_NORMAL_MALE_MS,
    QTC_INTERVAL_NORMAL_FEMALE_MS,
    DISPLAY_WINDOW_S,
)
from ecg_measurements import MetricsRecord, LeadAnalysis

MISSING_VALUE = "--"
ESTIMATED_PR_FIELDS = ("PR Interval", "P Duration")
METRICS_STRIP_LABELS = ("BPM", "PR", "QRS", "P", "QT/QTc")


@dataclass
class IntervalAssessment:
    """One measurement compared with its adult normal range."""
    name: str
    value: float
    unit: str
    normal_range: Tuple[float, float]
    is_normal: bool
    note: Optional[str] = None

    def __str__(self):
        status = "NORMAL" if self.is_normal else "ABNORMAL"
        low, high = self.normal_range
        return f"{self.name}: {self.value:.0f} {self.unit} ({status}, normal {low:.0f}-{high:.0f})"


def _ms(value: Optional[float]) -> str:
    return MISSING_VALUE if value is None else f"{round(value)} ms"


def format_metrics_strip(record: MetricsRecord) -> Dict[str, str]:
    """
    Display strings for the one-line metrics strip.

    QT/QTc is shown only when both values exist, e.g. "400/435 ms".
    """
    strip = {label: MISSING_VALUE for label in METRICS_STRIP_LABELS}

    if record.bpm is not None:
        strip["BPM"] = str(record.bpm)
    strip["PR"] = _ms(record.pr_ms)
    strip["QRS"] = _ms(record.qrs_ms)
    strip["P"] = _ms(record.p_ms)
    if record.qt_ms is not None and record.qtc_ms is not None:
        strip["QT/QTc"] = f"{round(record.qt_ms)}/{round(record.qtc_ms)} ms"

    return strip


def assess_intervals(record: MetricsRecord,
                     sex: Optional[str] = None,
                     pr_estimated: bool = False) -> List[IntervalAssessment]:
    """
    Compare each measured value with adult normal ranges.

    Args:
        record: Interval measurements
        sex: 'M' or 'F' selects the QTc limit; the male limit is used otherwise
        pr_estimated: PR and P come from the heart-rate table rather than a
            detected P-wave; they are left out of the assessment

    Returns:
        One IntervalAssessment per non-null measurement
    """
    qtc_limit = QTC_INTERVAL_NORMAL_FEMALE_MS if sex and sex.upper().startswith('F') \
        else QTC_INTERVAL_NORMAL_MALE_MS

    checks = [
        ("Heart Rate", record.bpm, "bpm", HEART_RATE_NORMAL_BPM,
         "Bradycardia", "Tachycardia"),
        ("PR Interval", record.pr_ms, "ms", PR_INTERVAL_NORMAL_MS,
         "Short PR interval", "Prolonged PR interval"),
        ("QRS Duration", record.qrs_ms, "ms", QRS_DURATION_NORMAL_MS,
         "Narrow QRS complex", "Wide QRS complex"),
        ("P Duration", record.p_ms, "ms", P_WAVE_DURATION_NORMAL_MS,
         "Short P-wave", "Prolonged P-wave"),
        ("QT Interval", record.qt_ms, "ms", QT_INTERVAL_NORMAL_MS,
         "Short QT interval", "Prolonged QT interval"),
        ("QTc Interval", record.qtc_ms, "ms", (0, qtc_limit),
         None, "Prolonged QTc interval"),
    ]

    assessments = []
    for name, value, unit, (low, high), low_note, high_note in checks:
        if value is None:
            continue
        if pr_estimated and name in ESTIMATED_PR_FIELDS:
            continue
        note = None
        if value < low:
            note = low_note
        elif value > high:
            note = high_note
        assessments.append(IntervalAssessment(
            name=name,
            value=float(value),
            unit=unit,
            normal_range=(low, high),
            is_normal=low <= value <= high,
            note=note
        ))

    return assessments


def generate_text_report(analysis: LeadAnalysis,
                         lead_name: str = "II",
                         patient_id: Optional[str] = None,
                         sex: Optional[str] = None) -> str:
    """Generate formatted text report for one analysed lead."""
    record = analysis.metrics
    report = []
    report.append("=" * 60)
    report.append("ECG INTERVAL MEASUREMENT REPORT")
    report.append("=" * 60)
    report.append("")

    if patient_id:
        report.append(f"Patient ID: {patient_id}")
    report.append(f"Lead: {lead_name}")
    if analysis.sample_rate:
        report.append(f"Sample Rate: {analysis.sample_rate:g} Hz")
    if analysis.corrected is not None and analysis.sample_rate:
        report.append(f"Duration: {len(analysis.corrected) / analysis.sample_rate:.1f} seconds")
    if analysis.r_peaks is not None:
        report.append(f"R-peaks detected: {len(analysis.r_peaks)}")
    report.append("")

    report.append("MEASUREMENTS:")
    report.append("-" * 60)
    strip = format_metrics_strip(record)
    for label in METRICS_STRIP_LABELS:
        report.append(f"{label:.<20} {strip[label]}")
    if analysis.pr_from_fallback and record.pr_ms is not None:
        report.append("PR and P duration estimated from heart rate (no P-wave detected)")
    if analysis.t_wave is not None and analysis.t_wave.fallback:
        report.append("T-wave end not found; QT uses a fixed offset from QRS onset")
    report.append("")

    assessments = assess_intervals(record, sex=sex, pr_estimated=analysis.pr_from_fallback)
    abnormal = [a for a in assessments if not a.is_normal]

    report.append("INTERPRETATION:")
    report.append("-" * 60)
    if record.is_empty:
        report.append("No reliable measurement could be made from this lead.")
    elif not abnormal:
        report.append("All measured intervals within normal limits.")
    else:
        for i, assessment in enumerate(abnormal, 1):
            report.append(f"  {i}. {assessment.note}: {assessment}")
    report.append("")

    report.append("DISCLAIMER:")
    report.append("-" * 60)
    report.append("Automated single-lead measurements. Verify with a qualified physician.")
    report.append(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    report.append("=" * 60)

    return '\n'.join(report)


def generate_pdf_report(filepath: str,
                        analysis: LeadAnalysis,
                        lead_name: str = "II",
                        patient_id: Optional[str] = None,
                        sex: Optional[str] = None,
                        style: str = 'clinical',
                        duration: Optional[float] = DISPLAY_WINDOW_S):
    """
    Generate PDF report: annotated Lead II page followed by the text report.

    Args:
        filepath: Output PDF file path
        analysis: Result of analyze_lead()
        lead_name: Name of the analysed lead
        patient_id: Optional patient identifier
        sex: 'M' or 'F' for the QTc limit
        style: Plot style
        duration: Seconds of waveform on the plot page (None for all)
    """
    from clinical_plot import MetricsPlotter

    plotter = MetricsPlotter(style=style)

    with PdfPages(filepath) as pdf:
        # Page 1: annotated waveform
        if analysis.corrected is not None and len(analysis.corrected) > 0:
            fig = plotter.plot_lead_analysis(analysis, lead_name=lead_name, duration=duration)
            pdf.savefig(fig, bbox_inches='tight')
            plt.close(fig)

        # Page 2: text report
        fig = plt.figure(figsize=(8.5, 11))
        ax = fig.add_subplot(111)
        ax.axis('off')
        ax.text(0.05, 0.95, generate_text_report(analysis, lead_name, patient_id, sex),
                transform=ax.transAxes,
                fontsize=9,
                verticalalignment='top',
                fontfamily='monospace')
        pdf.savefig(fig, bbox_inches='tight')
        plt.close(fig)

        d = pdf.infodict()
        d['Title'] = 'ECG Interval Measurement Report'
        d['Subject'] = f'Patient: {patient_id}' if patient_id else 'ECG intervals'
        d['Keywords'] = 'ECG, PR, QRS, QT, QTc'
        d['CreationDate'] = datetime.now()


if __name__ == "__main__":
    from examples.generate_ecg_data import ECGGenerator
    from ecg_measurements import analyze_lead

    gen = ECGGenerator()
    lead_ii, metadata = gen.generate_lead_ii(duration=10, heart_rate=75)
    result = analyze_lead(lead_ii, metadata['sample_rate'])

    print(generate_text_report(result, patient_id='TEST001'))
    generate_pdf_report('test_report.pdf', result, patient_id='TEST001')
    print("PDF report generated: test_report.pdf")
