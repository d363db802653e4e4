#!/usr/bin/env python
"""
ECG Interval Engine Constants

Every numerical threshold used by the Lead II interval engine lives here.
The values were tuned empirically on 500 Hz recordings and are kept exactly
as tuned: changing any of them changes the measurements the engine reports.

Where a threshold is expressed in samples at 500 Hz it is rescaled by
sample_rate / RATE_SCALING_REFERENCE_HZ at the point of use.
"""

# ==============================================================================
# BASELINE CORRECTION
# ==============================================================================
# Centered moving-average subtraction. A 2 s window spans at least one full
# cardiac cycle down to 30 bpm, so the window mean tracks respiration drift
# and not the QRS itself.
BASELINE_WINDOW_S = 2.0
BASELINE_MIN_WINDOW_SAMPLES = 3

# ==============================================================================
# R-PEAK DETECTION
# ==============================================================================
# Primary threshold: mean + 1.5 * std of the corrected signal
R_PEAK_STD_FACTOR = 1.5

# Relaxed threshold used when the primary pass finds too few peaks:
# mean + 0.6 * (max - mean)
R_PEAK_FALLBACK_FRACTION = 0.6
R_PEAK_MIN_PEAKS = 5

# 5-point local maximum: candidate must exceed neighbours at +/-1 and +/-2
R_PEAK_NEIGHBOUR_SPAN = 2

# Refractory period between accepted peaks:
# max(150 samples, floor(0.25 * sample_rate))
R_PEAK_REFRACTORY_MIN_SAMPLES = 150
R_PEAK_REFRACTORY_S = 0.25

# ==============================================================================
# HEART RATE (RR INTERVALS)
# ==============================================================================
# Tukey fences on nearest-rank quartiles
RR_IQR_MIN_INTERVALS = 3
RR_Q1_RANK = 0.25
RR_Q3_RANK = 0.75
RR_IQR_FACTOR = 1.5

# Reported heart rate is clamped to this range (bpm)
HEART_RATE_CLAMP_BPM = (30, 220)

# ==============================================================================
# QRS BOUNDARIES
# ==============================================================================
# Fixed half-width used when a boundary cannot be located. Independent of
# sampling rate (46 ms at 500 Hz).
QRS_FALLBACK_HALF_WIDTH_SAMPLES = 23

# Onset: pre-beat baseline from R-80ms to R-40ms, backward search to R-60ms
QRS_ONSET_BASELINE_START_MS = 80
QRS_ONSET_BASELINE_END_MS = 40
QRS_ONSET_SEARCH_MS = 60

# The signal is not assumed to be calibrated in mV, so "0.05 mV" style
# thresholds are expressed as fractions of the largest absolute sample.
QRS_ONSET_DEVIATION_FRACTION = 0.05
QRS_ONSET_SLOPE_FRACTION = 0.02

# Offset (J-point): search R+40ms..R+90ms for the flattest sample close to
# the ST level measured just after the search window
QRS_OFFSET_SEARCH_START_MS = 40
QRS_OFFSET_SEARCH_END_MS = 90
QRS_ST_BASELINE_WINDOW_S = 0.06
QRS_ST_BASELINE_MIN_SAMPLES = 5
QRS_ST_DEVIATION_FRACTION = 0.15

# ==============================================================================
# P-WAVE
# ==============================================================================
# Search QRS_start-200ms .. QRS_start-90ms
P_WAVE_SEARCH_START_MS = 200
P_WAVE_SEARCH_END_MS = 90

# PR segment baseline: QRS_start-50ms .. QRS_start-20ms
PR_BASELINE_START_MS = 50
PR_BASELINE_END_MS = 20

# Onset when deflection exceeds 0.3 * PR noise and keeps rising for 2 samples
P_WAVE_ONSET_NOISE_FACTOR = 0.3
# End when the signal returns within |baseline| + 1.0 * noise
P_WAVE_END_NOISE_FACTOR = 1.0

# Population PR interval by heart rate, used when no P-wave is found.
# (upper bpm bound exclusive, PR ms); last entry applies above 150 bpm.
PR_FALLBACK_TABLE = (
    (50, 200),
    (60, 180),
    (100, 160),
    (120, 140),
    (150, 130),
)
PR_FALLBACK_DEFAULT_MS = 120

# P-wave duration estimate from the fallback PR interval
P_DURATION_FALLBACK_RATIO = 0.4

# ==============================================================================
# QT INTERVAL
# ==============================================================================
# T-wave end searched in R+200ms .. R+350ms, T-peak within the first 75ms
QT_SEARCH_START_MS = 200
QT_SEARCH_END_MS = 350
T_PEAK_SEARCH_MS = 75

# Sample counts below were tuned at 500 Hz
RATE_SCALING_REFERENCE_HZ = 500.0
T_BASELINE_LEAD_SAMPLES = 10
T_BASELINE_SPAN_SAMPLES = 30
T_END_FALLBACK_SAMPLES = 170

# "0.03 mV" relative to a quarter of the signal range
T_END_THRESHOLD_FRACTION = 0.03
T_END_AMPLITUDE_DIVISOR = 4.0

# ==============================================================================
# REPORTED VALUE RANGES
# ==============================================================================
# Values outside these ranges are pulled to the nearest bound
PR_CLAMP_MS = (80, 320)
QRS_CLAMP_MS = (60, 200)
P_DURATION_CLAMP_MS = (40, 200)
QT_CLAMP_MS = (200, 600)
QTC_CLAMP_MS = (200, 600)

# ==============================================================================
# CLINICAL NORMAL RANGES (Adult Values)
# ==============================================================================
# Reference: AHA/ACCF/HRS Recommendations for the Standardization and
#            Interpretation of the Electrocardiogram.
#            J Am Coll Cardiol. 2009;53(11):976-981.
#            DOI: 10.1016/j.jacc.2008.12.013

# Short PR (<120ms): consider pre-excitation; long PR (>200ms): AV block
PR_INTERVAL_NORMAL_MS = (120, 200)

# Wide QRS (>120ms): bundle branch block or ventricular origin
QRS_DURATION_NORMAL_MS = (80, 120)

# P-wave duration above 120ms suggests left atrial enlargement
P_WAVE_DURATION_NORMAL_MS = (80, 120)

# Rate-dependent; use QTc for rate correction
QT_INTERVAL_NORMAL_MS = (350, 450)

# Bazett QTc upper limits
# Reference: Goldenberg I et al. J Am Coll Cardiol. 2006;48(10):1988-1996
QTC_INTERVAL_NORMAL_MALE_MS = 450
QTC_INTERVAL_NORMAL_FEMALE_MS = 460

# Bradycardia: <60 bpm, Tachycardia: >100 bpm
HEART_RATE_NORMAL_BPM = (60, 100)

# ==============================================================================
# INPUT REQUIREMENTS
# ==============================================================================
# Per AHA: 250 Hz minimum for diagnostic ECG, 500 Hz recommended
MIN_SAMPLE_RATE_DIAGNOSTIC_HZ = 250
RECOMMENDED_SAMPLE_RATE_HZ = 500

# Two seconds guarantees at least two beats above 60 bpm
MIN_RECORDING_DURATION_S = 2.0

# Physiological amplitude sanity limits (mV)
MAX_PLAUSIBLE_AMPLITUDE_MV = 10.0
MAX_DC_OFFSET_MV = 1.0

# Standard 12-lead export layout; Lead II drives the interval engine
STANDARD_12_LEADS = ('I', 'II', 'III', 'aVR', 'aVL', 'aVF',
                     'V1', 'V2', 'V3', 'V4', 'V5', 'V6')
ANALYSIS_LEAD = 'II'

# Preview window used when displaying an uploaded recording (seconds)
DISPLAY_WINDOW_S = 6
