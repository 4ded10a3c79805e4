"""
Feature Collaborator Module

Optional providers of tempo, onset and spectrum information. The analysis
takes a collaborator (or None) as an explicit argument; loading, reuse and
disposal of any underlying model belong to the caller.

Each method may be absent or may raise independently. Absence or failure
degrades the matching detector pass instead of aborting the analysis.
"""

from typing import Dict, Optional, Protocol, Sequence, Tuple, runtime_checkable

import librosa
import numpy as np
from scipy import signal as scipy_signal

import config
from syncpoints.models import AudioSignal


TEMPO = 'tempo_and_ticks'
ONSETS = 'onset_times'
SPECTRUM = 'spectrum'


@runtime_checkable
class FeatureCollaborator(Protocol):
    """
    Protocol for optional feature providers.

    Implementations need not define every method; capabilities are probed
    with has_capability() before use.
    """

    def tempo_and_ticks(self) -> Tuple[float, Sequence[float]]:
        """
        Estimate global tempo and beat positions.

        Returns:
            Tuple of (bpm, beat tick times in seconds, ascending)
        """
        ...

    def onset_times(self) -> Sequence[float]:
        """
        Detect transient onsets.

        Returns:
            Onset times in seconds
        """
        ...

    def spectrum(self, frame: np.ndarray) -> np.ndarray:
        """
        Magnitude spectrum of one analysis frame.

        Parameters:
            frame: Frame samples

        Returns:
            Non-negative magnitudes, low to high frequency
        """
        ...


def has_capability(collaborator: Optional[object], name: str) -> bool:
    """True if the collaborator exists and exposes a callable `name`."""
    if collaborator is None:
        return False
    return callable(getattr(collaborator, name, None))


class LibrosaFeatureCollaborator:
    """
    Feature collaborator backed by librosa beat tracking and onset detection.

    Bound to one AudioSignal; construct a new instance per track.
    """

    def __init__(
        self,
        signal: AudioSignal,
        hop_length: int = config.CLASSIFY_HOP_LENGTH,
        window: str = 'hann'
    ):
        """
        Parameters:
            signal: Signal to analyze
            hop_length: Hop for beat/onset tracking (samples)
            window: Window applied before each spectrum FFT
        """
        self.signal = signal
        self.hop_length = hop_length
        self.window = window
        self._windows: Dict[int, np.ndarray] = {}

    def tempo_and_ticks(self) -> Tuple[float, np.ndarray]:
        tempo, beat_frames = librosa.beat.beat_track(
            y=self.signal.samples,
            sr=self.signal.sample_rate,
            hop_length=self.hop_length
        )
        # Handle both scalar tempo and array tempo (librosa version differences)
        tempo = np.atleast_1d(tempo)
        if len(tempo) == 0:
            raise ValueError("Beat tracker returned no tempo estimate")
        bpm = float(tempo[0])

        beat_times = librosa.frames_to_time(
            beat_frames, sr=self.signal.sample_rate, hop_length=self.hop_length
        )
        return bpm, beat_times

    def onset_times(self) -> np.ndarray:
        return librosa.onset.onset_detect(
            y=self.signal.samples,
            sr=self.signal.sample_rate,
            hop_length=self.hop_length,
            units='time'
        )

    def spectrum(self, frame: np.ndarray) -> np.ndarray:
        n = len(frame)
        if n not in self._windows:
            self._windows[n] = scipy_signal.get_window(self.window, n)
        return np.abs(np.fft.rfft(frame * self._windows[n]))
