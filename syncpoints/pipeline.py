"""
Analysis Pipeline Module

Single entry point for sync point analysis:

    signal -> frame features -> detector passes -> curation -> result

The pipeline is a pure function of (signal, preset, collaborator). Each
detector pass runs through a phase runner that records a PhaseReport and
always continues, so a failing collaborator never aborts the analysis.

USAGE:
    from syncpoints.pipeline import analyze_signal
    from syncpoints.collaborators import LibrosaFeatureCollaborator

    result = analyze_signal(signal, 'beat-heavy', LibrosaFeatureCollaborator(signal))
"""

import logging
import warnings
from typing import Optional, Tuple, Union

import numpy as np

import config
from syncpoints.audio_io import load_signal
from syncpoints.classifier import SpectralClassifier
from syncpoints.collaborators import LibrosaFeatureCollaborator, has_capability
from syncpoints.curation import curate
from syncpoints.detectors import (
    DETECTOR_PASSES,
    CandidateAccumulator,
    DetectionContext,
    DetectorPass,
)
from syncpoints.features import compute_average_energy, extract_frame_features
from syncpoints.models import AudioAnalysisResult, AudioSignal, PhaseReport
from syncpoints.presets import AnalysisPreset, get_preset, validate_preset

logger = logging.getLogger(__name__)


PresetLike = Union[str, AnalysisPreset]


def resolve_preset(preset: PresetLike) -> AnalysisPreset:
    """
    Look up a preset by name, or validate a custom one.

    Raises:
        ValueError: If the name is unknown or the preset is inconsistent
    """
    if isinstance(preset, str):
        return get_preset(preset)
    if not isinstance(preset, AnalysisPreset):
        raise ValueError(f"preset must be a name or AnalysisPreset, got {type(preset).__name__}")
    validate_preset(preset)
    return preset


def validate_signal(signal: AudioSignal) -> None:
    """
    Reject signals that cannot be analyzed at all.

    Short or silent signals pass; they take the degraded path.

    Raises:
        ValueError: If the signal is malformed
    """
    if signal.sample_rate <= 0:
        raise ValueError(f"Sample rate must be positive, got {signal.sample_rate}")
    if np.ndim(signal.samples) != 1:
        raise ValueError(f"Samples must be 1D mono, got shape {np.shape(signal.samples)}")
    if signal.duration < 0 or not np.isfinite(signal.duration):
        raise ValueError(f"Duration must be a non-negative number, got {signal.duration}")
    if not np.isfinite(signal.samples).all():
        raise ValueError("Samples contain NaN or infinite values")


def run_phase(ctx: DetectionContext, detector_pass: DetectorPass) -> PhaseReport:
    """
    Run one detector pass, converting any failure into a report.

    Returns:
        PhaseReport with the number of candidates the pass added
    """
    if detector_pass.requires and not has_capability(ctx.collaborator, detector_pass.requires):
        logger.debug("Skipping '%s' pass: no %s capability", detector_pass.name, detector_pass.requires)
        return PhaseReport(name=detector_pass.name, ok=True, skipped=True)

    before = len(ctx.candidates)
    try:
        detector_pass.run(ctx)
    except Exception as e:
        logger.warning("Detector pass '%s' failed: %s", detector_pass.name, e)
        return PhaseReport(
            name=detector_pass.name,
            ok=False,
            added=len(ctx.candidates) - before,
            error=f"{type(e).__name__}: {e}"
        )

    added = len(ctx.candidates) - before
    logger.debug("Pass '%s' added %d candidate(s)", detector_pass.name, added)
    return PhaseReport(name=detector_pass.name, ok=True, added=added)


def run_phases(ctx: DetectionContext, passes=DETECTOR_PASSES) -> Tuple[PhaseReport, ...]:
    """Run every pass in order; never stops early."""
    return tuple(run_phase(ctx, detector_pass) for detector_pass in passes)


def analyze_signal(
    signal: AudioSignal,
    preset: PresetLike = config.DEFAULT_PRESET,
    collaborator: Optional[object] = None
) -> AudioAnalysisResult:
    """
    Detect and curate sync points for one signal.

    Parameters:
        signal: Mono input signal
        preset: Preset name or AnalysisPreset
        collaborator: Optional tempo/onset/spectrum provider; its lifecycle
            belongs to the caller

    Returns:
        AudioAnalysisResult with points in ascending time order

    Raises:
        ValueError: If the preset or signal is invalid
    """
    preset = resolve_preset(preset)
    validate_signal(signal)

    basic = collaborator is None
    if basic:
        warnings.warn(
            "No feature collaborator supplied; using energy-only detection",
            UserWarning
        )

    logger.info(
        "Analyzing %.2fs signal at %d Hz with preset '%s'",
        signal.duration, signal.sample_rate, preset.name
    )

    energy = extract_frame_features(
        signal,
        config.ENERGY_FRAME_LENGTH,
        config.ENERGY_HOP_LENGTH,
        collaborator=None,
        energy_mode='sum'
    )
    classify = extract_frame_features(
        signal,
        config.CLASSIFY_FRAME_LENGTH,
        config.CLASSIFY_HOP_LENGTH,
        collaborator=collaborator,
        energy_mode='rms'
    )

    ctx = DetectionContext(
        signal=signal,
        preset=preset,
        collaborator=collaborator,
        energy=energy,
        classify=classify,
        classifier=SpectralClassifier(classify),
        candidates=CandidateAccumulator(signal.duration),
        basic=basic
    )

    phases = run_phases(ctx)
    sync_points = curate(ctx.candidates.points, signal.duration, preset)

    average_energy = compute_average_energy(classify)

    logger.info(
        "Found %d sync points from %d candidates", len(sync_points), len(ctx.candidates)
    )

    return AudioAnalysisResult(
        sync_points=tuple(sync_points),
        duration=signal.duration,
        estimated_tempo=ctx.tempo,
        average_energy=average_energy,
        preset_name=preset.name,
        phases=phases
    )


def analyze_file(
    file_path: str,
    preset: PresetLike = config.DEFAULT_PRESET,
    use_collaborator: bool = True,
    target_sr: Optional[int] = None
) -> AudioAnalysisResult:
    """
    Load an audio file and analyze it.

    Parameters:
        file_path: Path to audio file
        preset: Preset name or AnalysisPreset
        use_collaborator: Attach a LibrosaFeatureCollaborator (False = energy-only)
        target_sr: Sample rate to load at (None = config default)

    Returns:
        AudioAnalysisResult
    """
    signal = load_signal(file_path, target_sr=target_sr)
    collaborator = LibrosaFeatureCollaborator(signal) if use_collaborator else None
    return analyze_signal(signal, preset, collaborator)
