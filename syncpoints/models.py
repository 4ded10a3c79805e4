"""
Data Model Module

Immutable types shared by every stage of the analysis:
signal in, frame features in the middle, sync points out.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

import numpy as np


class SyncPointType(str, Enum):
    """
    Musical meaning of a sync point.

    TRANSITION and VOCAL are reserved: no detector emits them yet, but
    they are part of the closed set consumers must handle.
    """
    DROP = 'drop'
    BASS = 'bass'
    SNARE = 'snare'
    HIT = 'hit'
    BUILD = 'build'
    TRANSITION = 'transition'
    VOCAL = 'vocal'
    PAUSE = 'pause'
    RESUME = 'resume'
    CHORUS = 'chorus'
    VERSE = 'verse'


@dataclass(frozen=True)
class SyncPoint:
    """
    A timestamp tagged with a musical type and an intensity.

    Attributes:
        time: Position in seconds, 0 <= time < duration
        type: SyncPointType
        intensity: How impactful the moment is, in [0, 1]
        synthetic: True for filler points inserted by gap filling
    """
    time: float
    type: SyncPointType
    intensity: float
    synthetic: bool = False

    def __post_init__(self):
        if not (0.0 <= self.intensity <= 1.0):
            raise ValueError(f"intensity must be in [0, 1], got {self.intensity}")


@dataclass(frozen=True)
class AudioSignal:
    """
    Decoded, down-mixed audio owned by one analysis call.

    Attributes:
        samples: 1D float array in [-1, 1]
        sample_rate: Sample rate in Hz
        duration: Duration in seconds
    """
    samples: np.ndarray
    sample_rate: int
    duration: float

    @classmethod
    def from_samples(cls, samples: np.ndarray, sample_rate: int) -> 'AudioSignal':
        """Build a signal whose duration is derived from the sample count."""
        samples = np.asarray(samples, dtype=np.float32)
        duration = len(samples) / sample_rate if sample_rate > 0 else 0.0
        return cls(samples=samples, sample_rate=int(sample_rate), duration=float(duration))

    @property
    def n_samples(self) -> int:
        return len(self.samples)


@dataclass(frozen=True)
class FrameFeatures:
    """
    Per-frame features stored as parallel arrays indexed by frame.

    Band arrays are None when no spectrum provider was available, and
    contain NaN for individual frames whose spectrum could not be computed.
    """
    energy: np.ndarray
    frame_length: int
    hop_length: int
    sample_rate: int
    low_band: Optional[np.ndarray] = None
    high_band: Optional[np.ndarray] = None
    spectral_centroid: Optional[np.ndarray] = None

    @property
    def n_frames(self) -> int:
        return len(self.energy)

    @property
    def has_bands(self) -> bool:
        return self.low_band is not None and self.high_band is not None


@dataclass(frozen=True)
class PhaseReport:
    """
    Outcome of one detector pass.

    Attributes:
        name: Pass name
        ok: False if the pass raised
        added: Number of candidates the pass appended
        skipped: True if a required collaborator capability was missing
        error: Error message when ok is False
    """
    name: str
    ok: bool
    added: int = 0
    skipped: bool = False
    error: Optional[str] = None


@dataclass(frozen=True)
class AudioAnalysisResult:
    """
    Final output of one analysis call.

    Attributes:
        sync_points: Points in strictly ascending time order
        duration: Track duration in seconds
        estimated_tempo: BPM from the tempo collaborator, if any
        average_energy: Mean frame RMS energy of the track
        preset_name: Name of the preset used
        phases: One PhaseReport per detector pass
    """
    sync_points: Tuple[SyncPoint, ...]
    duration: float
    estimated_tempo: Optional[float]
    average_energy: float
    preset_name: str = ''
    phases: Tuple[PhaseReport, ...] = field(default_factory=tuple)

    def type_counts(self) -> Dict[SyncPointType, int]:
        """Count points per type (every type present, zero if unused)."""
        counts = {point_type: 0 for point_type in SyncPointType}
        for point in self.sync_points:
            counts[point.type] += 1
        return counts
