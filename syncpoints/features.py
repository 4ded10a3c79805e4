"""
Feature Extraction Module

Slice the signal into overlapping frames and compute per-frame features.
All features are vectorized and aligned to the same frame grid:

    n_frames = floor((n_samples - frame_length) / hop_length)

Energy is always available. Low/high band energies and the spectral
centroid are only computed when a spectrum provider is supplied.
"""

import logging
from typing import Callable, Dict, Optional, Tuple

import librosa
import numpy as np

import config
from syncpoints.collaborators import SPECTRUM, has_capability
from syncpoints.models import AudioSignal, FrameFeatures
from syncpoints.timebase import expected_frame_count

logger = logging.getLogger(__name__)


ENERGY_MODES = ('sum', 'rms')


def frame_signal(
    samples: np.ndarray,
    frame_length: int = config.ENERGY_FRAME_LENGTH,
    hop_length: int = config.ENERGY_HOP_LENGTH
) -> np.ndarray:
    """
    Slice samples into overlapping frames.

    Parameters:
        samples: 1D audio array
        frame_length: Frame size in samples
        hop_length: Hop size in samples

    Returns:
        (n_frames, frame_length) array view; empty if the signal is
        shorter than one frame
    """
    n_frames = expected_frame_count(len(samples), frame_length, hop_length)
    if n_frames == 0:
        return np.zeros((0, frame_length), dtype=np.float32)

    frames = librosa.util.frame(
        np.ascontiguousarray(samples),
        frame_length=frame_length,
        hop_length=hop_length
    )
    # librosa keeps the final frame that ends exactly at the last sample
    return frames[:, :n_frames].T


def compute_frame_energy(
    samples: np.ndarray,
    frame_length: int = config.ENERGY_FRAME_LENGTH,
    hop_length: int = config.ENERGY_HOP_LENGTH,
    mode: str = 'sum'
) -> np.ndarray:
    """
    Compute energy per frame.

    Parameters:
        samples: 1D audio array
        frame_length: Frame size in samples
        hop_length: Hop size in samples
        mode: 'sum' (sum of squares) or 'rms' (root mean square)

    Returns:
        Array of non-negative energies (length n_frames)

    Raises:
        ValueError: If mode is unknown
    """
    if mode not in ENERGY_MODES:
        raise ValueError(f"Unknown energy mode: {mode} (expected one of {ENERGY_MODES})")

    frames = frame_signal(samples, frame_length, hop_length).astype(np.float64)
    if len(frames) == 0:
        return np.zeros(0, dtype=np.float64)

    sum_squares = np.sum(frames ** 2, axis=1)
    if mode == 'sum':
        return sum_squares
    return np.sqrt(sum_squares / frame_length)


def band_energies(magnitudes: np.ndarray) -> Tuple[float, float, float]:
    """
    Reduce one magnitude spectrum to (low band, high band, centroid).

    Low band is the squared-magnitude sum over the bottom LOW_BAND_FRACTION
    of bins; high band over HIGH_BAND_RANGE. Centroid is the
    energy-weighted mean bin index (0 for an all-zero spectrum).

    Raises:
        ValueError: If the spectrum is empty or not finite
    """
    power = np.asarray(magnitudes, dtype=np.float64) ** 2
    n_bins = len(power)
    if power.ndim != 1 or n_bins == 0:
        raise ValueError(f"Spectrum must be a non-empty 1D array, got shape {power.shape}")
    if not np.isfinite(power).all():
        raise ValueError("Spectrum contains NaN or infinite values")

    low_end = max(1, int(np.ceil(n_bins * config.LOW_BAND_FRACTION)))
    high_start = int(n_bins * config.HIGH_BAND_RANGE[0])
    high_end = max(high_start + 1, int(n_bins * config.HIGH_BAND_RANGE[1]))

    low = float(np.sum(power[:low_end]))
    high = float(np.sum(power[high_start:high_end]))

    total = float(np.sum(power))
    if total > 0:
        centroid = float(np.sum(np.arange(n_bins) * power) / total)
    else:
        centroid = 0.0

    return low, high, centroid


def compute_band_features(
    frames: np.ndarray,
    spectrum_fn: Callable[[np.ndarray], np.ndarray]
) -> Dict[str, np.ndarray]:
    """
    Compute band energies and centroid for every frame.

    A frame whose spectrum call fails gets NaN in all three arrays; the
    remaining frames are unaffected.

    Parameters:
        frames: (n_frames, frame_length) array
        spectrum_fn: Callable mapping a frame to its magnitude spectrum

    Returns:
        Dictionary with keys 'low_band', 'high_band', 'spectral_centroid'
    """
    n_frames = len(frames)
    low = np.full(n_frames, np.nan)
    high = np.full(n_frames, np.nan)
    centroid = np.full(n_frames, np.nan)

    failures = 0
    for i in range(n_frames):
        try:
            low[i], high[i], centroid[i] = band_energies(spectrum_fn(frames[i]))
        except Exception as e:
            failures += 1
            logger.debug("Spectrum failed for frame %d: %s", i, e)

    if failures:
        logger.warning(
            "Spectrum unavailable for %d of %d frames; those frames use energy-only rules",
            failures, n_frames
        )

    return {
        'low_band': low,
        'high_band': high,
        'spectral_centroid': centroid,
    }


def extract_frame_features(
    signal: AudioSignal,
    frame_length: int = config.CLASSIFY_FRAME_LENGTH,
    hop_length: int = config.CLASSIFY_HOP_LENGTH,
    collaborator: Optional[object] = None,
    energy_mode: str = 'rms'
) -> FrameFeatures:
    """
    Extract all frame-level features on one grid.

    Parameters:
        signal: Input signal
        frame_length: Frame size in samples
        hop_length: Hop size in samples
        collaborator: Optional provider with a spectrum(frame) method
        energy_mode: 'sum' or 'rms'

    Returns:
        FrameFeatures; band arrays are None without a spectrum provider
    """
    energy = compute_frame_energy(signal.samples, frame_length, hop_length, mode=energy_mode)

    bands: Dict[str, Optional[np.ndarray]] = {
        'low_band': None,
        'high_band': None,
        'spectral_centroid': None,
    }
    if has_capability(collaborator, SPECTRUM) and len(energy) > 0:
        frames = frame_signal(signal.samples, frame_length, hop_length)
        bands = compute_band_features(frames, collaborator.spectrum)

    logger.debug(
        "Extracted %d frames (frame=%d, hop=%d, bands=%s)",
        len(energy), frame_length, hop_length, bands['low_band'] is not None
    )

    return FrameFeatures(
        energy=energy,
        frame_length=frame_length,
        hop_length=hop_length,
        sample_rate=signal.sample_rate,
        **bands
    )


def compute_average_energy(features: FrameFeatures) -> float:
    """Mean frame energy (0 for tracks shorter than one frame)."""
    if features.n_frames == 0:
        return 0.0
    return float(np.mean(features.energy))
