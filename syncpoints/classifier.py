"""
Spectral Classifier Module

Assign a sync point type and intensity to a time instant using the
track-wide band energy history.

DECISION TABLE (priority order, ratios normalized by the track maximum):
1. low > 0.7 and low > 1.5 * high   -> drop (low > 0.85) or bass, min(1, low + 0.2)
2. high > 0.6 and high > 1.2 * low  -> snare, min(1, high + 0.1)
3. low > 0.5 and high > 0.4         -> hit, min(1, (low + high) / 2 + 0.2)
4. otherwise                        -> hit, 0.5

Without band energies (or for a frame whose spectrum failed) the reduced
energy-only rule applies: drop above 0.8, bass above 0.5, else hit.
"""

from typing import Optional, Tuple

import numpy as np

import config
from syncpoints.models import FrameFeatures, SyncPointType
from syncpoints.timebase import time_to_frame


def clamp01(value: float) -> float:
    """Clamp a value to [0, 1]; NaN maps to 0."""
    if not np.isfinite(value):
        return 0.0
    return float(min(1.0, max(0.0, value)))


def normalized_intensity(value: float, mean: float, maximum: float) -> float:
    """clamp01((value - mean) / (max - mean)), 0 when max == mean."""
    spread = maximum - mean
    if spread <= 0:
        return 0.0
    return clamp01((value - mean) / spread)


def _track_max(values: Optional[np.ndarray]) -> float:
    if values is None or len(values) == 0 or np.all(np.isnan(values)):
        return 0.0
    return float(np.nanmax(values))


def classify_energy_only(intensity: float) -> Tuple[SyncPointType, float]:
    """Reduced rule used when band energies are unavailable."""
    intensity = clamp01(intensity)
    if intensity > config.ENERGY_DROP_INTENSITY:
        return SyncPointType.DROP, intensity
    if intensity > config.ENERGY_BASS_INTENSITY:
        return SyncPointType.BASS, intensity
    return SyncPointType.HIT, intensity


def classify_band_ratios(low_ratio: float, high_ratio: float) -> Tuple[SyncPointType, float]:
    """Apply the decision table to normalized low/high band ratios."""
    if low_ratio > config.BASS_RATIO_THRESHOLD and low_ratio > config.BASS_DOMINANCE * high_ratio:
        point_type = SyncPointType.DROP if low_ratio > config.DROP_RATIO_THRESHOLD else SyncPointType.BASS
        return point_type, min(1.0, low_ratio + config.BASS_INTENSITY_BOOST)

    if high_ratio > config.SNARE_RATIO_THRESHOLD and high_ratio > config.SNARE_DOMINANCE * low_ratio:
        return SyncPointType.SNARE, min(1.0, high_ratio + config.SNARE_INTENSITY_BOOST)

    if low_ratio > config.HIT_LOW_THRESHOLD and high_ratio > config.HIT_HIGH_THRESHOLD:
        return SyncPointType.HIT, min(1.0, (low_ratio + high_ratio) / 2 + config.HIT_INTENSITY_BOOST)

    return SyncPointType.HIT, config.DEFAULT_HIT_INTENSITY


class SpectralClassifier:
    """
    Classifies time instants against fully computed frame features.

    Track maxima are taken once at construction, so every classify() call
    sees the same normalization.
    """

    def __init__(self, features: FrameFeatures):
        self.features = features
        self.low_max = _track_max(features.low_band)
        self.high_max = _track_max(features.high_band)
        if features.n_frames > 0:
            self.energy_mean = float(np.mean(features.energy))
            self.energy_max = float(np.max(features.energy))
        else:
            self.energy_mean = 0.0
            self.energy_max = 0.0

    def frame_at(self, time_sec: float) -> int:
        return time_to_frame(
            time_sec,
            self.features.sample_rate,
            self.features.hop_length,
            self.features.n_frames
        )

    def band_ratios(self, frame: int) -> Optional[Tuple[float, float]]:
        """Normalized (low, high) ratios at a frame, or None if unavailable."""
        if not self.features.has_bands or self.features.n_frames == 0:
            return None

        low = self.features.low_band[frame]
        high = self.features.high_band[frame]
        if np.isnan(low) or np.isnan(high):
            return None

        low_ratio = low / self.low_max if self.low_max > 0 else 0.0
        high_ratio = high / self.high_max if self.high_max > 0 else 0.0
        return float(low_ratio), float(high_ratio)

    def energy_intensity(self, frame: int) -> float:
        if self.features.n_frames == 0:
            return 0.0
        return normalized_intensity(
            float(self.features.energy[frame]), self.energy_mean, self.energy_max
        )

    def classify(
        self,
        time_sec: float,
        energy_intensity: Optional[float] = None
    ) -> Tuple[SyncPointType, float]:
        """
        Classify the instant nearest time_sec.

        Parameters:
            time_sec: Time in seconds
            energy_intensity: Caller's energy-peak intensity, used by the
                reduced rule (None = derive from this grid's energy)

        Returns:
            Tuple of (type, intensity in [0, 1])
        """
        frame = self.frame_at(time_sec)
        ratios = self.band_ratios(frame)

        if ratios is None:
            if energy_intensity is None:
                energy_intensity = self.energy_intensity(frame)
            return classify_energy_only(energy_intensity)

        point_type, intensity = classify_band_ratios(*ratios)
        return point_type, clamp01(intensity)
