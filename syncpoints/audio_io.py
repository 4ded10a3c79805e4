"""
Audio I/O Module

Handles audio loading, down-mixing, and normalization, and packages the
result as an AudioSignal. All operations are deterministic and reproducible.
"""

from typing import Optional, Tuple

import librosa
import numpy as np

import config
from syncpoints.models import AudioSignal


def load_audio(file_path: str, target_sr: Optional[int] = None) -> Tuple[np.ndarray, int]:
    """
    Load audio file and return as a mono numpy array.

    Parameters:
        file_path: Path to audio file (wav, mp3, flac, ogg)
        target_sr: Target sample rate (None = use native rate)

    Returns:
        Tuple of (audio_array, sample_rate)
        audio_array: mono float32 array in range [-1.0, 1.0]
        sample_rate: sample rate in Hz

    Raises:
        FileNotFoundError: If file doesn't exist
    """
    audio, sr = librosa.load(file_path, sr=target_sr, mono=False)
    audio = convert_to_mono(np.asarray(audio, dtype=np.float32))
    return audio.astype(np.float32), int(sr)


def convert_to_mono(audio: np.ndarray, method: str = 'average') -> np.ndarray:
    """
    Convert stereo/multi-channel audio to mono.

    Parameters:
        audio: Audio array (1D mono, or 2D channels-first as returned by librosa)
        method: Conversion method - 'average', 'left', 'right'

    Returns:
        Mono audio array (1D)

    Raises:
        ValueError: If method is invalid or audio shape is unexpected
    """
    # Guard: validate method early
    if method not in ['average', 'left', 'right']:
        raise ValueError(f"Unknown mono conversion method: {method}")

    # Guard: already mono
    if audio.ndim == 1:
        return audio

    # Guard: unexpected shape
    if audio.ndim != 2:
        raise ValueError(f"Unexpected audio shape: {audio.shape}")

    # Fewer rows than columns means (channels, samples)
    is_channels_first = audio.shape[0] < audio.shape[1]

    if method == 'average':
        return librosa.to_mono(audio if is_channels_first else audio.T)
    elif method == 'left':
        return audio[0, :] if is_channels_first else audio[:, 0]
    else:  # method == 'right'
        return audio[-1, :] if is_channels_first else audio[:, -1]


def normalize_audio(audio: np.ndarray) -> Tuple[np.ndarray, float]:
    """
    Peak-normalize audio so the maximum absolute value is 1.0.

    Parameters:
        audio: Audio array

    Returns:
        Tuple of (normalized_audio, normalization_factor)
    """
    peak = np.abs(audio).max() if len(audio) > 0 else 0.0
    if peak == 0:
        # Silent audio
        return audio, 1.0
    factor = 1.0 / peak
    return audio * factor, float(factor)


def validate_audio(audio: np.ndarray, sr: int, max_duration: Optional[float] = None) -> None:
    """
    Validate an audio array before building a signal from it.

    Short or silent audio is accepted; it produces a degraded but valid result.

    Parameters:
        audio: Audio array to validate
        sr: Sample rate (Hz)
        max_duration: Maximum allowed duration in seconds (None = use config)

    Raises:
        ValueError: If audio is invalid
    """
    if max_duration is None:
        max_duration = config.MAX_TRACK_DURATION_SEC

    if sr <= 0:
        raise ValueError(f"Sample rate must be positive, got {sr}")

    if np.ndim(audio) != 1:
        raise ValueError(f"Audio must be 1D mono, got shape {np.shape(audio)}")

    if not np.isfinite(audio).all():
        raise ValueError("Audio contains NaN or infinite values")

    duration = len(audio) / sr
    if duration > max_duration:
        raise ValueError(
            f"Audio duration ({duration:.1f}s) exceeds maximum "
            f"({max_duration:.1f}s)"
        )


def load_signal(
    file_path: str,
    target_sr: Optional[int] = None,
    normalize: bool = True
) -> AudioSignal:
    """
    Load, down-mix, optionally peak-normalize and validate an audio file.

    Pipeline: load → mono → resample → normalize → validate

    Parameters:
        file_path: Path to audio file
        target_sr: Target sample rate (None = use config default)
        normalize: Whether to peak-normalize

    Returns:
        AudioSignal ready for analysis
    """
    if target_sr is None:
        target_sr = config.TARGET_SAMPLE_RATE

    audio, sr = load_audio(file_path, target_sr=target_sr)

    if normalize:
        audio, _ = normalize_audio(audio)

    validate_audio(audio, sr)

    return AudioSignal.from_samples(audio, sr)
