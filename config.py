"""
sync-signals - Configuration

All tunable parameters, thresholds, and constants with documentation.
Every default value includes rationale.
"""

from typing import Dict, Tuple

# =============================================================================
# FRAME-LEVEL PARAMETERS
# =============================================================================

# Frame length for energy-oriented passes (samples)
# Why: 2048 samples at 44100 Hz ≈ 46ms window, long enough for stable energy
#      while still resolving individual kicks and snares
ENERGY_FRAME_LENGTH: int = 2048

# Hop length for energy-oriented passes (samples)
# Why: 1024 samples = 2x overlap, halves the work of the peak/segment/pause/build
#      passes which only need ~23ms time resolution
ENERGY_HOP_LENGTH: int = 1024

# Frame length for classification-oriented features (samples)
# Why: same window as energy passes so band energies describe the same sound
CLASSIFY_FRAME_LENGTH: int = 2048

# Hop length for classification-oriented features (samples)
# Why: 512 samples = 4x overlap, finer grid so a beat tick lands close to a frame
CLASSIFY_HOP_LENGTH: int = 512

# Target sample rate when loading files (Hz)
# Why: 22050 Hz keeps everything up to 11kHz (kick through hi-hat body),
#      halves the sample count vs 44100 Hz
TARGET_SAMPLE_RATE: int = 22050

# =============================================================================
# SPECTRAL BAND PARAMETERS
# =============================================================================

# Fraction of spectrum bins counted as the low (bass) band
# Why: bottom 10% of bins at 22050 Hz covers roughly 0-1.1kHz, where kicks
#      and bass lines carry their energy
LOW_BAND_FRACTION: float = 0.1

# Bin range (as fractions of the spectrum) counted as the high band
# Why: 40-80% of bins is the snare crack / hi-hat range, skipping the
#      mid-range where vocals dominate
HIGH_BAND_RANGE: Tuple[float, float] = (0.4, 0.8)

# =============================================================================
# CLASSIFIER THRESHOLDS
# =============================================================================

# Minimum normalized low-band ratio for a bass-type hit
# Why: 0.7 = top 30% of the track's bass energy
BASS_RATIO_THRESHOLD: float = 0.7

# Low band must exceed high band by this factor to count as bass
# Why: 1.5x dominance avoids tagging full-spectrum hits as bass
BASS_DOMINANCE: float = 1.5

# Low-band ratio above which a bass hit is promoted to a drop
# Why: 0.85 = near the loudest bass moment of the track
DROP_RATIO_THRESHOLD: float = 0.85

# Intensity boost added to bass/drop classifications
BASS_INTENSITY_BOOST: float = 0.2

# Minimum normalized high-band ratio for a snare
# Why: 0.6 = snares are rarely as loud (relative) as the bass peak
SNARE_RATIO_THRESHOLD: float = 0.6

# High band must exceed low band by this factor to count as snare
SNARE_DOMINANCE: float = 1.2

# Intensity boost added to snare classifications
SNARE_INTENSITY_BOOST: float = 0.1

# Low/high ratios that together mark a full-spectrum hit
# Why: both bands busy at once is a kick+snare or a crash
HIT_LOW_THRESHOLD: float = 0.5
HIT_HIGH_THRESHOLD: float = 0.4

# Intensity boost added to full-spectrum hits
HIT_INTENSITY_BOOST: float = 0.2

# Intensity for anything the table cannot place
DEFAULT_HIT_INTENSITY: float = 0.5

# Energy-only rule: intensity above which a peak is a drop / bass
# Why: matches the spectral table's drop/bass split without band information
ENERGY_DROP_INTENSITY: float = 0.8
ENERGY_BASS_INTENSITY: float = 0.5

# =============================================================================
# DETECTOR PARAMETERS
# =============================================================================

# Intensity above which an energy peak is always labelled a drop
# Why: 0.85 = within 15% of the loudest frame relative to the mean
PEAK_DROP_INTENSITY: float = 0.85

# Neighbours on each side an energy peak must strictly exceed
PEAK_NEIGHBORS: int = 2

# Local onset fallback: neighbours on each side, threshold fraction, spacing
# Why: when no onset detector is available, a 3-frame local maximum above the
#      midpoint between mean and max energy is a usable transient proxy
ONSET_FALLBACK_NEIGHBORS: int = 3
ONSET_FALLBACK_THRESHOLD: float = 0.5
ONSET_FALLBACK_MIN_DISTANCE_SEC: float = 0.15

# Segment window for verse/chorus classification (seconds)
# Why: 4 seconds ≈ 2 bars at 120 BPM, long enough to average out individual hits
SEGMENT_WINDOW_SEC: float = 4.0

# Window average above median * factor is a chorus
# Why: 10% above the median separates loud sections without flipping on noise
CHORUS_ENERGY_FACTOR: float = 1.1

# Fixed intensities for section changes
CHORUS_INTENSITY: float = 0.85
VERSE_INTENSITY: float = 0.6

# Section changes closer than this to an existing point are dropped (seconds)
SEGMENT_DEDUP_SEC: float = 1.0

# Silence threshold as a fraction of mean energy
# Why: 10% of mean energy is a clear gap; without spectral features the
#      energy estimate is coarser, so the basic mode is more permissive
SILENCE_FACTOR: float = 0.1
SILENCE_FACTOR_BASIC: float = 0.15

# Minimum silence run to emit pause/resume (seconds)
MIN_PAUSE_SEC: float = 0.15
MIN_PAUSE_SEC_BASIC: float = 0.1

# Pause/resume intensities
# Why: the moment sound returns is one of the strongest cut points
PAUSE_INTENSITY: float = 0.6
RESUME_INTENSITY: float = 0.9

# Pause/resume points closer than this to an existing point are dropped (seconds)
PAUSE_DEDUP_SEC: float = 0.1

# Build detection window on each side of a frame (seconds)
BUILD_WINDOW_SEC: float = 0.5

# After/before energy ratio that marks a build
# Why: 1.6x sustained rise over half a second is audible as a swell
BUILD_RATIO_THRESHOLD: float = 1.6

# Guard against division by zero in the build ratio
BUILD_EPSILON: float = 0.001

# (ratio - 1) / divisor maps a build ratio to intensity
BUILD_INTENSITY_DIVISOR: float = 1.5

# Builds closer than this to an existing point are dropped (seconds)
BUILD_DEDUP_SEC: float = 0.5

# =============================================================================
# CURATION PARAMETERS
# =============================================================================

# Minimum number of points requested from the density target
# Why: very short or sparse tracks still need enough cuts to edit with
MIN_TARGET_COUNT: int = 20

# Types that always survive density filtering
MUST_KEEP_TYPES: Tuple[str, ...] = ('drop', 'resume')

# Intensity above which a point always survives density filtering
MUST_KEEP_INTENSITY: float = 0.85

# Lowered must-keep intensity for dense presets
# Why: denser presets ask for more cuts, so more mid-strength moments qualify
MUST_KEEP_INTENSITY_DENSE: float = 0.75

# Presets with energy_threshold at or below this count as dense
DENSE_ENERGY_THRESHOLD: float = 0.6

# Synthetic filler intensities
# Why: below every organically detected point so fillers sort last
FILLER_INTENSITY: float = 0.4
BOUNDARY_FILLER_INTENSITY: float = 0.3

# Intensity of uniformly spaced points when detection found almost nothing
UNIFORM_FALLBACK_INTENSITY: float = 0.5

# =============================================================================
# PRESET PARAMETERS
# =============================================================================

# Preset used when the caller does not name one
DEFAULT_PRESET: str = 'standard'

# Built-in preset table: name -> field values
# Why: chill favours sparse, spaced-out cuts; beat-heavy cuts on nearly every
#      transient. Dedup windows in milliseconds, max gap in seconds.
PRESET_TABLE: Dict[str, Dict[str, float]] = {
    'chill': {
        'density_min': 0.8,
        'density_max': 1.5,
        'energy_threshold': 0.75,
        'onset_dedup_ms': 80.0,
        'energy_dedup_ms': 300.0,
        'max_gap_sec': 3.0,
    },
    'standard': {
        'density_min': 1.5,
        'density_max': 2.5,
        'energy_threshold': 0.70,
        'onset_dedup_ms': 50.0,
        'energy_dedup_ms': 200.0,
        'max_gap_sec': 2.0,
    },
    'beat-heavy': {
        'density_min': 2.5,
        'density_max': 4.0,
        'energy_threshold': 0.50,
        'onset_dedup_ms': 30.0,
        'energy_dedup_ms': 100.0,
        'max_gap_sec': 1.0,
    },
}

# =============================================================================
# CUT PLANNING PARAMETERS
# =============================================================================

# Cut windows shorter than this are skipped (seconds)
# Why: anything under 100ms reads as a glitch rather than a cut
MIN_CUT_WINDOW_SEC: float = 0.1

# Tempo assumed when no beat tracker result is available (BPM)
FALLBACK_BPM: float = 120.0

# =============================================================================
# OUTPUT PARAMETERS
# =============================================================================

# JSON schema version
# Why: Versioning allows future format changes while maintaining compatibility
SCHEMA_VERSION: str = "1.0.0"

# Decimal places for times and intensities in JSON output
# Why: 4 places = 0.1ms, far below any video frame duration
OUTPUT_PRECISION: int = 4

# Maximum track duration to process (seconds)
# Why: 600 seconds (10 minutes) covers most tracks, prevents memory issues
#      with extremely long files. Can be increased if needed.
MAX_TRACK_DURATION_SEC: float = 600.0

# Plot resolution (dots per inch)
PLOT_DPI: int = 150

# Plot figure size (width, height in inches)
# Why: wide and short, sync points read as a timeline
PLOT_FIGSIZE: tuple = (14, 4)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def validate_config() -> bool:
    """
    Validate configuration parameters for consistency.

    Returns:
        True if config is valid

    Raises:
        ValueError: If configuration is invalid
    """
    for name, value in (
        ('ENERGY_FRAME_LENGTH', ENERGY_FRAME_LENGTH),
        ('ENERGY_HOP_LENGTH', ENERGY_HOP_LENGTH),
        ('CLASSIFY_FRAME_LENGTH', CLASSIFY_FRAME_LENGTH),
        ('CLASSIFY_HOP_LENGTH', CLASSIFY_HOP_LENGTH),
        ('TARGET_SAMPLE_RATE', TARGET_SAMPLE_RATE),
    ):
        if value <= 0:
            raise ValueError(f"{name} must be positive")

    if not (0.0 < LOW_BAND_FRACTION < 1.0):
        raise ValueError("LOW_BAND_FRACTION must be in (0, 1)")

    low, high = HIGH_BAND_RANGE
    if not (0.0 <= low < high <= 1.0):
        raise ValueError("HIGH_BAND_RANGE must satisfy 0 <= low < high <= 1")

    if not (FILLER_INTENSITY > BOUNDARY_FILLER_INTENSITY > 0.0):
        raise ValueError("Filler intensities must be positive and ordered")

    if MUST_KEEP_INTENSITY_DENSE > MUST_KEEP_INTENSITY:
        raise ValueError("MUST_KEEP_INTENSITY_DENSE cannot exceed MUST_KEEP_INTENSITY")

    if DEFAULT_PRESET not in PRESET_TABLE:
        raise ValueError(f"DEFAULT_PRESET '{DEFAULT_PRESET}' is not a built-in preset")

    return True


# Validate on import
validate_config()
