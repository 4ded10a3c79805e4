"""
Detector Passes Module

Independent, best-effort passes that append raw candidate sync points to a
shared accumulator. Passes run in a fixed order; later passes dedupe
against everything earlier passes produced.

PASSES:
- tempo:   classify beat ticks from the tempo collaborator
- onset:   classify onsets (collaborator, or local energy peaks)
- energy:  percentile-thresholded energy peaks, drops above 0.85
- segment: verse/chorus changes over 4 s windows
- pause:   pause/resume around silence runs
- build:   sustained energy rises over 0.5 s
"""

import bisect
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

import numpy as np
from scipy import signal as scipy_signal

import config
from syncpoints.classifier import SpectralClassifier, clamp01, normalized_intensity
from syncpoints.collaborators import ONSETS, TEMPO, has_capability
from syncpoints.models import AudioSignal, FrameFeatures, SyncPoint, SyncPointType
from syncpoints.presets import AnalysisPreset
from syncpoints.timebase import frame_to_time, is_time_in_track, seconds_to_frames

logger = logging.getLogger(__name__)


class CandidateAccumulator:
    """
    Unsorted candidate list with a sorted time index for proximity checks.

    Points outside [0, duration) are rejected on add.
    """

    def __init__(self, duration: float):
        self.duration = duration
        self._points: List[SyncPoint] = []
        self._times: List[float] = []

    def __len__(self) -> int:
        return len(self._points)

    @property
    def points(self) -> List[SyncPoint]:
        """Candidates in insertion order."""
        return list(self._points)

    def has_near(self, time_sec: float, window_sec: float) -> bool:
        """True if any candidate lies strictly within window_sec of time_sec."""
        idx = bisect.bisect_right(self._times, time_sec - window_sec)
        return idx < len(self._times) and self._times[idx] < time_sec + window_sec

    def add(self, point: SyncPoint) -> bool:
        if not is_time_in_track(point.time, self.duration):
            return False
        self._points.append(point)
        bisect.insort(self._times, point.time)
        return True

    def add_classified(
        self,
        time_sec: float,
        classifier: SpectralClassifier,
        energy_intensity: Optional[float] = None
    ) -> bool:
        point_type, intensity = classifier.classify(time_sec, energy_intensity)
        return self.add(SyncPoint(time=float(time_sec), type=point_type, intensity=intensity))


@dataclass
class DetectionContext:
    """
    Everything one analysis call shares between detector passes.

    Attributes:
        signal: Input signal
        preset: Active preset
        collaborator: Optional feature collaborator
        energy: Sum-of-squares features on the energy grid (2048/1024)
        classify: RMS and band features on the classification grid (2048/512)
        classifier: Classifier bound to the classification features
        candidates: Shared accumulator
        basic: True when no collaborator was supplied at all
        tempo: BPM reported by the tempo pass, if it ran
    """
    signal: AudioSignal
    preset: AnalysisPreset
    collaborator: Optional[object]
    energy: FrameFeatures
    classify: FrameFeatures
    classifier: SpectralClassifier
    candidates: CandidateAccumulator
    basic: bool = False
    tempo: Optional[float] = None

    def energy_time(self, frame: int) -> float:
        return frame_to_time(frame, self.energy.sample_rate, self.energy.hop_length)

    def energy_frames(self, seconds: float) -> int:
        return seconds_to_frames(seconds, self.energy.sample_rate, self.energy.hop_length)


# =============================================================================
# COLLABORATOR-DRIVEN PASSES
# =============================================================================

def detect_beats(ctx: DetectionContext) -> None:
    """Classify every beat tick inside the track."""
    bpm, ticks = ctx.collaborator.tempo_and_ticks()
    bpm = float(bpm)
    if not np.isfinite(bpm) or bpm <= 0:
        raise ValueError(f"Tempo collaborator returned invalid BPM: {bpm}")
    ctx.tempo = bpm

    for tick in ticks:
        tick = float(tick)
        if is_time_in_track(tick, ctx.signal.duration):
            ctx.candidates.add_classified(tick, ctx.classifier)


def local_onset_times(features: FrameFeatures) -> np.ndarray:
    """
    Onset proxy from RMS energy peaks when no onset detector is available.

    Peaks must rise above the midpoint between mean and max energy and be
    at least ONSET_FALLBACK_MIN_DISTANCE_SEC apart.

    Returns:
        Onset times in seconds
    """
    energy = features.energy
    if len(energy) == 0:
        return np.zeros(0)

    mean = float(np.mean(energy))
    maximum = float(np.max(energy))
    if maximum <= mean:
        return np.zeros(0)

    threshold = mean + (maximum - mean) * config.ONSET_FALLBACK_THRESHOLD
    min_distance = max(
        config.ONSET_FALLBACK_NEIGHBORS,
        seconds_to_frames(
            config.ONSET_FALLBACK_MIN_DISTANCE_SEC, features.sample_rate, features.hop_length
        )
    )
    peaks, _ = scipy_signal.find_peaks(energy, height=threshold, distance=min_distance)

    return peaks.astype(np.float64) * features.hop_length / features.sample_rate


def detect_onsets(ctx: DetectionContext) -> None:
    """Classify onsets not already covered by an earlier candidate."""
    if has_capability(ctx.collaborator, ONSETS):
        onsets = np.asarray(ctx.collaborator.onset_times(), dtype=np.float64)
    else:
        onsets = local_onset_times(ctx.classify)
        logger.debug("Using %d local energy peaks as onsets", len(onsets))

    dedup = ctx.preset.onset_dedup_sec
    for onset in onsets:
        onset = float(onset)
        if not is_time_in_track(onset, ctx.signal.duration):
            continue
        if ctx.candidates.has_near(onset, dedup):
            continue
        ctx.candidates.add_classified(onset, ctx.classifier)


# =============================================================================
# SELF-CONTAINED PASSES
# =============================================================================

def detect_energy_peaks(ctx: DetectionContext) -> None:
    """
    Percentile-thresholded local maxima of frame energy.

    A frame is a peak when it exceeds the preset percentile and strictly
    exceeds PEAK_NEIGHBORS frames on each side. Intensity above
    PEAK_DROP_INTENSITY is always a drop; otherwise the classifier picks
    the type and the higher of the two intensities is kept.
    """
    energy = ctx.energy.energy
    k = config.PEAK_NEIGHBORS
    if len(energy) <= 2 * k:
        return

    threshold = float(np.percentile(energy, ctx.preset.energy_threshold * 100))
    mean = float(np.mean(energy))
    maximum = float(np.max(energy))
    dedup = ctx.preset.energy_dedup_sec

    for i in range(k, len(energy) - k):
        value = energy[i]
        if value <= threshold:
            continue
        neighbours = np.concatenate([energy[i - k:i], energy[i + 1:i + k + 1]])
        if not np.all(value > neighbours):
            continue

        time_sec = ctx.energy_time(i)
        if ctx.candidates.has_near(time_sec, dedup):
            continue

        intensity = normalized_intensity(float(value), mean, maximum)
        if intensity > config.PEAK_DROP_INTENSITY:
            point_type = SyncPointType.DROP
        else:
            point_type, class_intensity = ctx.classifier.classify(time_sec, intensity)
            intensity = max(intensity, class_intensity)

        ctx.candidates.add(SyncPoint(time=time_sec, type=point_type, intensity=intensity))


def window_averages(energy: np.ndarray, window: int, step: int) -> List[float]:
    """Mean energy of each window starting at 0, step, 2*step, ... (< n - window)."""
    return [float(np.mean(energy[i:i + window])) for i in range(0, len(energy) - window, step)]


def detect_segments(ctx: DetectionContext) -> None:
    """
    Verse/chorus changes from 4 s windows with 50% overlap.

    A window is chorus when its mean exceeds CHORUS_ENERGY_FACTOR times the
    median window mean. Points are emitted only where the label changes.
    """
    energy = ctx.energy.energy
    window = ctx.energy_frames(config.SEGMENT_WINDOW_SEC)
    step = window // 2
    if window <= 0 or step <= 0 or len(energy) <= 2 * window:
        return

    averages = window_averages(energy, window, step)
    if not averages:
        return
    median = sorted(averages)[len(averages) // 2]

    previous = None
    for idx, average in enumerate(averages):
        label = SyncPointType.CHORUS if average > median * config.CHORUS_ENERGY_FACTOR else SyncPointType.VERSE
        time_sec = ctx.energy_time(idx * step)

        if previous is not None and label != previous and time_sec > 0:
            if not ctx.candidates.has_near(time_sec, config.SEGMENT_DEDUP_SEC):
                intensity = config.CHORUS_INTENSITY if label == SyncPointType.CHORUS else config.VERSE_INTENSITY
                ctx.candidates.add(SyncPoint(time=time_sec, type=label, intensity=intensity))
        previous = label


def silence_runs(silent: np.ndarray) -> List[tuple]:
    """
    (start, end) frame pairs of silent runs that end before the last frame.

    end is the first non-silent frame after the run.
    """
    runs = []
    start = None
    for i, is_silent in enumerate(silent):
        if is_silent and start is None:
            start = i
        elif not is_silent and start is not None:
            runs.append((start, i))
            start = None
    return runs


def detect_pauses(ctx: DetectionContext) -> None:
    """Pause at the start and resume at the end of each long enough silence."""
    energy = ctx.energy.energy
    if len(energy) == 0:
        return

    if ctx.basic:
        factor, min_pause = config.SILENCE_FACTOR_BASIC, config.MIN_PAUSE_SEC_BASIC
    else:
        factor, min_pause = config.SILENCE_FACTOR, config.MIN_PAUSE_SEC

    threshold = float(np.mean(energy)) * factor
    for start, end in silence_runs(energy < threshold):
        run_sec = (end - start) * ctx.energy.hop_length / ctx.energy.sample_rate
        if run_sec < min_pause:
            continue
        start_time = ctx.energy_time(start)
        end_time = ctx.energy_time(end)

        if not ctx.candidates.has_near(start_time, config.PAUSE_DEDUP_SEC):
            ctx.candidates.add(SyncPoint(
                time=start_time, type=SyncPointType.PAUSE, intensity=config.PAUSE_INTENSITY
            ))
        if not ctx.candidates.has_near(end_time, config.PAUSE_DEDUP_SEC):
            ctx.candidates.add(SyncPoint(
                time=end_time, type=SyncPointType.RESUME, intensity=config.RESUME_INTENSITY
            ))


def detect_builds(ctx: DetectionContext) -> None:
    """Frames where the next 0.5 s is much louder than the previous 0.5 s."""
    energy = ctx.energy.energy
    window = ctx.energy_frames(config.BUILD_WINDOW_SEC)
    if window <= 0 or len(energy) < 2 * window + 1:
        return

    cumulative = np.concatenate([[0.0], np.cumsum(energy, dtype=np.float64)])
    centres = np.arange(window, len(energy) - window)
    before = (cumulative[centres] - cumulative[centres - window]) / window
    after = (cumulative[centres + window] - cumulative[centres]) / window
    ratios = after / (before + config.BUILD_EPSILON)

    for frame, ratio in zip(centres, ratios):
        if ratio <= config.BUILD_RATIO_THRESHOLD:
            continue
        time_sec = ctx.energy_time(int(frame))
        if ctx.candidates.has_near(time_sec, config.BUILD_DEDUP_SEC):
            continue
        intensity = clamp01((ratio - 1) / config.BUILD_INTENSITY_DIVISOR)
        ctx.candidates.add(SyncPoint(time=time_sec, type=SyncPointType.BUILD, intensity=intensity))


# =============================================================================
# PASS TABLE
# =============================================================================

@dataclass(frozen=True)
class DetectorPass:
    """
    One entry in the fixed pass order.

    Attributes:
        name: Pass name used in logs and phase reports
        run: Callable appending candidates to the context
        requires: Collaborator capability the pass needs (None = self-contained)
    """
    name: str
    run: Callable[[DetectionContext], None]
    requires: Optional[str] = None


DETECTOR_PASSES = (
    DetectorPass('tempo', detect_beats, requires=TEMPO),
    DetectorPass('onset', detect_onsets),
    DetectorPass('energy', detect_energy_peaks),
    DetectorPass('segment', detect_segments),
    DetectorPass('pause', detect_pauses),
    DetectorPass('build', detect_builds),
)
