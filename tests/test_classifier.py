"""
Spectral Classifier Tests

Decision table priority, track-wide normalization and the energy-only
reduced rule.
"""

import pytest
import numpy as np

from syncpoints.classifier import (
    SpectralClassifier,
    clamp01,
    classify_band_ratios,
    classify_energy_only,
    normalized_intensity,
)
from syncpoints.models import FrameFeatures, SyncPointType


SR = 22050
HOP = 512


def frame_time(i: int) -> float:
    return i * HOP / SR


def make_features(energy, low=None, high=None) -> FrameFeatures:
    return FrameFeatures(
        energy=np.asarray(energy, dtype=np.float64),
        frame_length=2048,
        hop_length=HOP,
        sample_rate=SR,
        low_band=None if low is None else np.asarray(low, dtype=np.float64),
        high_band=None if high is None else np.asarray(high, dtype=np.float64),
    )


class TestDecisionTable:
    """Tests for classify_band_ratios."""

    def test_drop(self):
        assert classify_band_ratios(0.9, 0.1) == (SyncPointType.DROP, pytest.approx(1.0))

    def test_bass(self):
        point_type, intensity = classify_band_ratios(0.75, 0.2)
        assert point_type == SyncPointType.BASS
        assert intensity == pytest.approx(0.95)

    def test_drop_threshold_is_strict(self):
        assert classify_band_ratios(0.85, 0.1)[0] == SyncPointType.BASS

    def test_bass_requires_dominance(self):
        # 0.8 is not > 1.5 * 0.6, falls through to the full-spectrum hit rule
        point_type, intensity = classify_band_ratios(0.8, 0.6)
        assert point_type == SyncPointType.HIT
        assert intensity == pytest.approx(0.9)

    def test_snare(self):
        point_type, intensity = classify_band_ratios(0.2, 0.7)
        assert point_type == SyncPointType.SNARE
        assert intensity == pytest.approx(0.8)

    def test_snare_requires_dominance(self):
        # 0.65 is not > 1.2 * 0.6
        point_type, intensity = classify_band_ratios(0.6, 0.65)
        assert point_type == SyncPointType.HIT
        assert intensity == pytest.approx(0.825)

    def test_default_hit(self):
        assert classify_band_ratios(0.1, 0.1) == (SyncPointType.HIT, 0.5)
        assert classify_band_ratios(0.0, 0.0) == (SyncPointType.HIT, 0.5)


class TestEnergyOnlyRule:
    """Tests for classify_energy_only."""

    @pytest.mark.parametrize('intensity,expected', [
        (0.95, SyncPointType.DROP),
        (0.81, SyncPointType.DROP),
        (0.8, SyncPointType.BASS),
        (0.6, SyncPointType.BASS),
        (0.5, SyncPointType.HIT),
        (0.1, SyncPointType.HIT),
    ])
    def test_thresholds(self, intensity, expected):
        point_type, value = classify_energy_only(intensity)
        assert point_type == expected
        assert value == pytest.approx(intensity)

    def test_intensity_clamped(self):
        assert classify_energy_only(1.7) == (SyncPointType.DROP, 1.0)
        assert classify_energy_only(-0.3) == (SyncPointType.HIT, 0.0)


class TestSpectralClassifier:
    """Tests for SpectralClassifier against hand-built features."""

    def setup_method(self):
        self.features = make_features(
            energy=[0.0, 0.0, 0.0, 0.0, 0.0, 1.0],
            low=[1.0, 0.75, 0.1, 0.6, 0.0, np.nan],
            high=[0.1, 0.1, 1.0, 0.5, 0.0, 0.2],
        )
        self.classifier = SpectralClassifier(self.features)

    def test_track_maxima_ignore_nan(self):
        assert self.classifier.low_max == 1.0
        assert self.classifier.high_max == 1.0

    def test_each_rule(self):
        assert self.classifier.classify(frame_time(0))[0] == SyncPointType.DROP
        assert self.classifier.classify(frame_time(1))[0] == SyncPointType.BASS
        assert self.classifier.classify(frame_time(2))[0] == SyncPointType.SNARE

        point_type, intensity = self.classifier.classify(frame_time(3))
        assert point_type == SyncPointType.HIT
        assert intensity == pytest.approx(0.75)

        assert self.classifier.classify(frame_time(4)) == (SyncPointType.HIT, 0.5)

    def test_nearest_frame(self):
        """A time between frames snaps to the nearest one."""
        assert self.classifier.classify(frame_time(2) + 0.4 * HOP / SR)[0] == SyncPointType.SNARE

    def test_failed_frame_uses_energy_rule(self):
        # Frame 5 has NaN bands and the maximum energy
        assert self.classifier.classify(frame_time(5)) == (SyncPointType.DROP, 1.0)

    def test_failed_frame_uses_caller_intensity(self):
        assert self.classifier.classify(frame_time(5), energy_intensity=0.6) == (SyncPointType.BASS, 0.6)

    def test_normalization_is_track_wide(self):
        """Scaling all bands leaves the classification unchanged."""
        scaled = SpectralClassifier(make_features(
            energy=self.features.energy,
            low=self.features.low_band * 1000,
            high=self.features.high_band * 1000,
        ))
        for i in range(5):
            assert scaled.classify(frame_time(i)) == self.classifier.classify(frame_time(i))

    def test_without_bands(self):
        classifier = SpectralClassifier(make_features(energy=[1.0, 1.0, 1.0, 4.0]))
        # mean 1.75, max 4 -> frame 3 intensity 1.0, frame 0 intensity 0
        assert classifier.classify(frame_time(3)) == (SyncPointType.DROP, 1.0)
        assert classifier.classify(frame_time(0)) == (SyncPointType.HIT, 0.0)
        assert classifier.classify(frame_time(0), energy_intensity=0.7)[0] == SyncPointType.BASS

    def test_silent_bands(self):
        classifier = SpectralClassifier(make_features(
            energy=[0.0, 0.0], low=[0.0, 0.0], high=[0.0, 0.0]
        ))
        assert classifier.classify(0.0) == (SyncPointType.HIT, 0.5)

    def test_no_frames(self):
        classifier = SpectralClassifier(make_features(energy=[]))
        assert classifier.classify(1.0) == (SyncPointType.HIT, 0.0)


def test_clamp01():
    assert clamp01(1.5) == 1.0
    assert clamp01(-1.0) == 0.0
    assert clamp01(0.25) == 0.25
    assert clamp01(float('nan')) == 0.0


def test_normalized_intensity():
    assert normalized_intensity(3.0, 1.0, 5.0) == pytest.approx(0.5)
    assert normalized_intensity(0.5, 1.0, 5.0) == 0.0
    assert normalized_intensity(2.0, 2.0, 2.0) == 0.0
