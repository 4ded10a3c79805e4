"""
Timebase Module - Frame/Time Conversion Utilities

Provides deterministic frame count and frame<->time conversion, and the
in-track check applied to every candidate point.

DESIGN CONSTRAINTS:
- duration_sec is the source of truth
- All point times satisfy 0 <= t < duration_sec
- Deterministic: same inputs -> same outputs
- No config imports (explicit parameters)

FRAME GRID:
- Frame count: n = max(0, floor((n_samples - frame_length) / hop_length))
- Frame start: t[i] = i * hop_length / sample_rate
"""

from typing import Optional

import numpy as np


# =============================================================================
# CONSTANTS
# =============================================================================

EPSILON_SEC: float = 1e-6  # Floating point tolerance for comparisons


# =============================================================================
# CORE FUNCTIONS
# =============================================================================

def expected_frame_count(n_samples: int, frame_length: int, hop_length: int) -> int:
    """
    Number of full frames on the analysis grid.

    Parameters:
        n_samples: Signal length in samples
        frame_length: Frame size in samples
        hop_length: Hop between frame starts in samples

    Returns:
        floor((n_samples - frame_length) / hop_length), or 0 if the signal
        is shorter than one frame
    """
    if frame_length <= 0 or hop_length <= 0:
        return 0
    if n_samples < frame_length:
        return 0
    return (n_samples - frame_length) // hop_length


def frame_to_time(frame_idx: int, sample_rate: int, hop_length: int) -> float:
    """Start time (seconds) of a frame."""
    return float(frame_idx * hop_length / sample_rate)


def frames_to_time(frames: np.ndarray, sample_rate: int, hop_length: int) -> np.ndarray:
    """Vectorized frame_to_time."""
    return np.asarray(frames, dtype=np.float64) * hop_length / sample_rate


def time_to_frame(
    time_sec: float,
    sample_rate: int,
    hop_length: int,
    n_frames: Optional[int] = None
) -> int:
    """
    Nearest frame index to a time, optionally clamped to [0, n_frames - 1].

    Parameters:
        time_sec: Time in seconds
        sample_rate: Sample rate (Hz)
        hop_length: Hop between frames (samples)
        n_frames: Frame count for clamping (None = no upper clamp)

    Returns:
        Frame index
    """
    idx = int(round(time_sec * sample_rate / hop_length))
    idx = max(0, idx)
    if n_frames is not None and n_frames > 0:
        idx = min(idx, n_frames - 1)
    return idx


def seconds_to_frames(seconds: float, sample_rate: int, hop_length: int) -> int:
    """Whole number of frames spanning a duration (floored)."""
    return int(seconds * sample_rate / hop_length)


# =============================================================================
# TRACK BOUNDS
# =============================================================================

def is_time_in_track(time_sec: float, duration_sec: float) -> bool:
    """True if 0 <= time_sec < duration_sec."""
    return 0.0 <= time_sec < duration_sec
