"""
Pipeline Tests

Entry-point validation, the phase runner, collaborator degradation and
determinism.
"""

import json
import warnings

import pytest
import numpy as np
from scipy.io import wavfile

from syncpoints import pipeline
from syncpoints.classifier import SpectralClassifier
from syncpoints.detectors import CandidateAccumulator, DetectionContext, DetectorPass
from syncpoints.export import result_to_dict
from syncpoints.features import extract_frame_features
from syncpoints.models import AudioSignal, SyncPoint, SyncPointType
from syncpoints.presets import AnalysisPreset, get_preset
from syncpoints.synthetic import generate_kick_pattern, generate_silence


SR = 22050


class FakeCollaborator:
    """Fixed beat grid, fixed onsets and a treble-only spectrum."""

    def __init__(self, duration, bpm=120.0):
        self.bpm = bpm
        self.ticks = np.arange(0.0, duration, 0.5)
        self.spectrum_calls = 0

    def tempo_and_ticks(self):
        return self.bpm, self.ticks

    def onset_times(self):
        return self.ticks + 0.25

    def spectrum(self, frame):
        self.spectrum_calls += 1
        mags = np.zeros(1025)
        mags[500:700] = 1.0
        return mags


class BrokenCollaborator:
    """Every capability raises."""

    def tempo_and_ticks(self):
        raise RuntimeError("tempo model not loaded")

    def onset_times(self):
        raise RuntimeError("onset model not loaded")

    def spectrum(self, frame):
        raise RuntimeError("fft failed")


class SpectrumOnly:
    def spectrum(self, frame):
        return np.abs(np.fft.rfft(frame))


def kick_signal(duration=12.0):
    return AudioSignal.from_samples(generate_kick_pattern(duration=duration, sr=SR), SR)


def quiet_analyze(signal, preset='standard', collaborator=None):
    with warnings.catch_warnings():
        warnings.simplefilter('ignore', UserWarning)
        return pipeline.analyze_signal(signal, preset, collaborator)


# =============================================================================
# ENTRY VALIDATION
# =============================================================================

class TestEntryValidation:

    def test_resolve_by_name(self):
        assert pipeline.resolve_preset('chill') is get_preset('chill')

    def test_custom_preset(self):
        custom = AnalysisPreset('sparse', 0.5, 1.0, 0.8, 100.0, 400.0, 4.0)
        assert pipeline.resolve_preset(custom) is custom

    def test_invalid_custom_preset_rejected(self):
        bad = AnalysisPreset('bad', 3.0, 1.0, 0.7, 50.0, 200.0, 2.0)
        with pytest.raises(ValueError, match='density_max'):
            pipeline.analyze_signal(kick_signal(2.0), bad)

    def test_negative_max_gap_rejected(self):
        bad = AnalysisPreset('bad', 1.0, 2.0, 0.7, 50.0, 200.0, -1.0)
        with pytest.raises(ValueError):
            pipeline.analyze_signal(kick_signal(2.0), bad)

    def test_unknown_preset_rejected(self):
        with pytest.raises(ValueError):
            pipeline.analyze_signal(kick_signal(2.0), 'dubstep')

    def test_non_preset_rejected(self):
        with pytest.raises(ValueError):
            pipeline.resolve_preset(42)

    @pytest.mark.parametrize('signal', [
        AudioSignal(samples=np.zeros(1000, dtype=np.float32), sample_rate=0, duration=0.1),
        AudioSignal(samples=np.zeros((2, 1000), dtype=np.float32), sample_rate=SR, duration=0.1),
        AudioSignal(samples=np.array([0.0, np.inf], dtype=np.float32), sample_rate=SR, duration=0.1),
        AudioSignal(samples=np.zeros(1000, dtype=np.float32), sample_rate=SR, duration=-1.0),
    ])
    def test_invalid_signal_rejected(self, signal):
        with pytest.raises(ValueError):
            pipeline.analyze_signal(signal, 'standard', SpectrumOnly())


# =============================================================================
# COLLABORATOR HANDLING
# =============================================================================

class TestCollaborators:

    def test_missing_collaborator_warns(self):
        with pytest.warns(UserWarning, match='collaborator'):
            result = pipeline.analyze_signal(kick_signal(4.0))
        assert result.phases[0].name == 'tempo'
        assert result.phases[0].skipped

    def test_no_warning_with_collaborator(self):
        with warnings.catch_warnings():
            warnings.simplefilter('error')
            pipeline.analyze_signal(kick_signal(4.0), 'standard', SpectrumOnly())

    def test_full_collaborator(self):
        signal = kick_signal()
        collaborator = FakeCollaborator(signal.duration)
        result = pipeline.analyze_signal(signal, 'standard', collaborator)

        assert result.estimated_tempo == 120.0
        assert all(p.ok and not p.skipped for p in result.phases)
        assert collaborator.spectrum_calls > 0

        # Treble-only spectrum: every beat tick is a full-intensity snare
        snare_times = {p.time for p in result.sync_points if p.type == SyncPointType.SNARE}
        for tick in collaborator.ticks:
            assert tick in snare_times

    def test_broken_collaborator_never_aborts(self, caplog):
        signal = kick_signal()
        result = pipeline.analyze_signal(signal, 'standard', BrokenCollaborator())

        phases = {p.name: p for p in result.phases}
        assert not phases['tempo'].ok
        assert 'tempo model not loaded' in phases['tempo'].error
        assert not phases['onset'].ok
        assert all(phases[name].ok for name in ['energy', 'segment', 'pause', 'build'])

        assert result.estimated_tempo is None
        assert len(result.sync_points) >= 2
        assert "Detector pass 'tempo' failed" in caplog.text

    def test_spectrum_only_uses_local_onsets(self):
        result = pipeline.analyze_signal(kick_signal(), 'standard', SpectrumOnly())
        phases = {p.name: p for p in result.phases}

        assert phases['tempo'].skipped
        assert phases['onset'].ok
        assert phases['onset'].added > 0

    def test_collaborator_reports_invalid_tempo(self):
        signal = kick_signal()
        collaborator = FakeCollaborator(signal.duration, bpm=float('nan'))
        result = pipeline.analyze_signal(signal, 'standard', collaborator)

        assert not result.phases[0].ok
        assert result.estimated_tempo is None


# =============================================================================
# PHASE RUNNER
# =============================================================================

def test_phase_runner_continues_after_failure():
    signal = kick_signal(4.0)
    calls = []

    def failing(ctx):
        calls.append('failing')
        ctx.candidates.add(SyncPoint(1.0, SyncPointType.HIT, 0.5))
        raise ValueError("malformed array")

    def working(ctx):
        calls.append('working')
        ctx.candidates.add(SyncPoint(2.0, SyncPointType.BASS, 0.7))

    passes = (
        DetectorPass('failing', failing),
        DetectorPass('needs-tempo', working, requires='tempo_and_ticks'),
        DetectorPass('working', working),
    )

    feats = extract_frame_features(signal)
    ctx = DetectionContext(
        signal=signal,
        preset=get_preset('standard'),
        collaborator=None,
        energy=feats,
        classify=feats,
        classifier=SpectralClassifier(feats),
        candidates=CandidateAccumulator(signal.duration),
    )
    reports = pipeline.run_phases(ctx, passes)

    assert calls == ['failing', 'working']
    assert [r.name for r in reports] == ['failing', 'needs-tempo', 'working']
    assert not reports[0].ok
    assert reports[0].added == 1
    assert 'ValueError' in reports[0].error
    assert reports[1].ok and reports[1].skipped
    assert reports[2].ok and reports[2].added == 1


# =============================================================================
# DETERMINISM
# =============================================================================

@pytest.mark.parametrize('preset_name', ['chill', 'beat-heavy'])
def test_determinism(preset_name):
    signal = kick_signal()

    first = pipeline.analyze_signal(signal, preset_name, FakeCollaborator(signal.duration))
    second = pipeline.analyze_signal(signal, preset_name, FakeCollaborator(signal.duration))

    assert first == second
    assert json.dumps(result_to_dict(first)) == json.dumps(result_to_dict(second))


def test_energy_only_determinism():
    signal = kick_signal()
    assert quiet_analyze(signal) == quiet_analyze(signal)


def test_analyze_file(tmp_path):
    path = tmp_path / 'kicks.wav'
    wavfile.write(str(path), SR, generate_kick_pattern(duration=5.0, sr=SR))

    with warnings.catch_warnings():
        warnings.simplefilter('ignore', UserWarning)
        result = pipeline.analyze_file(str(path), 'chill', use_collaborator=False)

    assert result.duration == pytest.approx(5.0, abs=0.01)
    assert result.preset_name == 'chill'
    assert len(result.sync_points) >= 2


def test_sparse_custom_preset_on_silence():
    """Fallback spacing wider than the preset's max gap is still gap-filled."""
    sparse = AnalysisPreset('sparse', 0.2, 0.3, 0.7, 50.0, 200.0, 1.0)
    signal = AudioSignal.from_samples(generate_silence(10.0, SR), SR)

    result = quiet_analyze(signal, sparse)

    times = [0.0] + [p.time for p in result.sync_points] + [result.duration]
    assert max(b - a for a, b in zip(times, times[1:])) <= sparse.max_gap_sec + 1e-6
    assert all(p.synthetic for p in result.sync_points)
