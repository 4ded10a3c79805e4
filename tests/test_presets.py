"""
Preset and Model Tests

Built-in preset values, preset validation and the data model invariants.
"""

import dataclasses

import pytest

import config
from syncpoints.models import AudioAnalysisResult, AudioSignal, SyncPoint, SyncPointType
from syncpoints.presets import (
    PRESETS,
    AnalysisPreset,
    get_preset,
    must_keep_threshold,
    validate_preset,
)


def make_preset(**overrides) -> AnalysisPreset:
    values = dict(
        name='custom', density_min=1.0, density_max=2.0, energy_threshold=0.7,
        onset_dedup_ms=50.0, energy_dedup_ms=200.0, max_gap_sec=2.0
    )
    values.update(overrides)
    return AnalysisPreset(**values)


class TestBuiltinPresets:
    """Tests for the shipped preset table."""

    def test_three_presets(self):
        assert set(PRESETS) == {'chill', 'standard', 'beat-heavy'}

    @pytest.mark.parametrize('name,expected', [
        ('chill', (0.8, 1.5, 0.75, 80.0, 300.0, 3.0)),
        ('standard', (1.5, 2.5, 0.70, 50.0, 200.0, 2.0)),
        ('beat-heavy', (2.5, 4.0, 0.50, 30.0, 100.0, 1.0)),
    ])
    def test_preset_values(self, name, expected):
        preset = get_preset(name)
        assert (
            preset.density_min, preset.density_max, preset.energy_threshold,
            preset.onset_dedup_ms, preset.energy_dedup_ms, preset.max_gap_sec
        ) == pytest.approx(expected)

    def test_default_preset(self):
        assert get_preset().name == config.DEFAULT_PRESET == 'standard'

    def test_unknown_preset_lists_names(self):
        with pytest.raises(ValueError, match='beat-heavy'):
            get_preset('polka')

    def test_unit_conversions(self):
        preset = get_preset('standard')
        assert preset.onset_dedup_sec == pytest.approx(0.05)
        assert preset.energy_dedup_sec == pytest.approx(0.2)
        assert preset.mean_density == pytest.approx(2.0)

    def test_presets_are_immutable(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            get_preset('chill').max_gap_sec = 10.0

    def test_to_dict(self):
        data = get_preset('chill').to_dict()
        assert data['name'] == 'chill'
        assert data['max_gap_sec'] == 3.0


class TestPresetValidation:
    """Tests for validate_preset."""

    def test_valid(self):
        assert validate_preset(make_preset())

    @pytest.mark.parametrize('overrides', [
        {'density_min': 0.0},
        {'density_min': 2.0, 'density_max': 1.0},
        {'energy_threshold': 1.5},
        {'energy_threshold': -0.1},
        {'onset_dedup_ms': -1.0},
        {'energy_dedup_ms': -1.0},
        {'max_gap_sec': 0.0},
        {'max_gap_sec': -2.0},
    ])
    def test_invalid(self, overrides):
        with pytest.raises(ValueError):
            validate_preset(make_preset(**overrides))


class TestMustKeepThreshold:

    def test_normal_presets(self):
        assert must_keep_threshold(get_preset('standard')) == 0.85
        assert must_keep_threshold(get_preset('chill')) == 0.85

    def test_dense_preset_lowers_threshold(self):
        assert must_keep_threshold(get_preset('beat-heavy')) == 0.75
        assert must_keep_threshold(make_preset(energy_threshold=0.6)) == 0.75


class TestModels:
    """Tests for data model invariants."""

    def test_sync_point_type_is_closed_set(self):
        values = {t.value for t in SyncPointType}
        assert values == {
            'drop', 'bass', 'snare', 'hit', 'build', 'transition',
            'vocal', 'pause', 'resume', 'chorus', 'verse'
        }

    def test_sync_point_type_compares_to_string(self):
        assert SyncPointType.DROP == 'drop'
        assert SyncPointType('resume') is SyncPointType.RESUME

    @pytest.mark.parametrize('intensity', [-0.01, 1.01])
    def test_intensity_out_of_range_rejected(self, intensity):
        with pytest.raises(ValueError):
            SyncPoint(1.0, SyncPointType.HIT, intensity)

    def test_intensity_bounds_accepted(self):
        assert SyncPoint(1.0, SyncPointType.HIT, 0.0).intensity == 0.0
        assert SyncPoint(1.0, SyncPointType.HIT, 1.0).intensity == 1.0

    def test_signal_duration_from_samples(self):
        signal = AudioSignal.from_samples([0.0] * 44100, 22050)
        assert signal.duration == pytest.approx(2.0)
        assert signal.n_samples == 44100

    def test_type_counts_covers_every_type(self):
        result = AudioAnalysisResult(
            sync_points=(
                SyncPoint(0.5, SyncPointType.DROP, 0.9),
                SyncPoint(1.0, SyncPointType.HIT, 0.5),
                SyncPoint(1.5, SyncPointType.HIT, 0.4),
            ),
            duration=2.0,
            estimated_tempo=None,
            average_energy=0.1,
        )
        counts = result.type_counts()
        assert len(counts) == len(SyncPointType)
        assert counts[SyncPointType.HIT] == 2
        assert counts[SyncPointType.DROP] == 1
        assert counts[SyncPointType.VOCAL] == 0
