"""
Synthetic Audio Generators

Generated audio with known ground truth, used by the demo mode and the
test suite. No external audio files required.
"""

from typing import Tuple

import numpy as np


def _kick(sr: int, length_sec: float = 0.1, freq: float = 60.0) -> np.ndarray:
    """Exponentially decaying low sine burst."""
    t = np.arange(int(sr * length_sec)) / sr
    return np.exp(-t * 20) * np.sin(2 * np.pi * freq * t)


def _place(audio: np.ndarray, burst: np.ndarray, start: int, gain: float) -> None:
    end = min(len(audio), start + len(burst))
    if start < end:
        audio[start:end] += gain * burst[:end - start]


def generate_kick_pattern(
    duration: float = 10.0,
    sr: int = 22050,
    bpm: float = 120.0,
    gain: float = 0.8
) -> np.ndarray:
    """
    Kick drum on every beat over a quiet sine bed.

    Parameters:
        duration: Duration in seconds
        sr: Sample rate
        bpm: Kick tempo
        gain: Kick amplitude

    Returns:
        Mono float32 audio, peak-normalized
    """
    samples = int(duration * sr)
    t = np.arange(samples) / sr
    audio = 0.15 * np.sin(2 * np.pi * 220 * t)

    kick = _kick(sr)
    interval = int(sr * 60.0 / bpm)
    for start in range(0, samples, interval):
        _place(audio, kick, start, gain)

    audio = audio / np.max(np.abs(audio))
    return audio.astype(np.float32)


def generate_build_then_drop(duration: float = 30.0, sr: int = 22050) -> Tuple[np.ndarray, float]:
    """
    Rising swell in the first half, loud kicks from the midpoint.

    Returns:
        Tuple of (audio, drop_time_expected)
    """
    samples = int(duration * sr)
    half_point = samples // 2
    t = np.arange(samples) / sr

    progress = np.clip(np.arange(samples) / max(half_point, 1), 0.0, 1.0)
    amplitude = np.where(np.arange(samples) < half_point, 0.05 + progress * 0.35, 0.6)
    audio = amplitude * np.sin(2 * np.pi * (200 + 300 * progress) * t)

    kick = _kick(sr)
    for start in range(half_point, samples, int(sr * 0.5)):
        _place(audio, kick, start, 1.0)

    audio = audio / np.max(np.abs(audio))
    return audio.astype(np.float32), half_point / sr


def generate_with_pause(
    duration: float = 20.0,
    sr: int = 22050,
    pause_start: float = 8.0,
    pause_length: float = 1.25
) -> Tuple[np.ndarray, Tuple[float, float]]:
    """
    Kick pattern with a fully silent break.

    Returns:
        Tuple of (audio, (pause_start, pause_end))
    """
    audio = generate_kick_pattern(duration, sr)
    start = int(pause_start * sr)
    end = int((pause_start + pause_length) * sr)
    audio[start:end] = 0.0
    return audio, (pause_start, pause_start + pause_length)


def generate_section_contrast(
    duration: float = 40.0,
    sr: int = 22050,
    section_length: float = 10.0
) -> Tuple[np.ndarray, list]:
    """
    Alternating quiet and loud sections of equal length.

    Returns:
        Tuple of (audio, section_boundary_times)
    """
    samples = int(duration * sr)
    t = np.arange(samples) / sr
    loud = (np.floor(t / section_length) % 2).astype(bool)
    amplitude = np.where(loud, 0.8, 0.2)
    audio = amplitude * np.sin(2 * np.pi * 330 * t)

    boundaries = list(np.arange(section_length, duration, section_length))
    return audio.astype(np.float32), boundaries


def generate_silence(duration: float = 10.0, sr: int = 22050) -> np.ndarray:
    """All-zero audio."""
    return np.zeros(int(duration * sr), dtype=np.float32)
