"""
Cut Planning Module

Helpers that turn analysis output into edit decisions: consecutive cut
windows between sync points, and beat-length cut patterns mapped onto a
beat grid.
"""

from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

import config
from syncpoints.models import SyncPoint


VARIABLE_PATTERNS = (
    (1, 1, 2, 4),
    (2, 2, 1, 1, 2),
    (4, 2, 1, 1),
    (1, 2, 1, 2, 2),
)

CUT_STYLES = ('variable', '1', '2', '4')


@dataclass(frozen=True)
class CutWindow:
    """
    One clip slot on the output timeline.

    Attributes:
        start: Start time in seconds
        end: End time in seconds
        sync_index: Index of the sync point that opens the window
    """
    start: float
    end: float
    sync_index: int

    @property
    def duration(self) -> float:
        return self.end - self.start


@dataclass(frozen=True)
class BeatCut:
    """
    A cut placed on a beat grid.

    Attributes:
        start: Start time in seconds (time of the opening beat)
        duration: Cut length in seconds
        beat_index: Index of the opening beat
    """
    start: float
    duration: float
    beat_index: int


def plan_cut_windows(
    points: Sequence[SyncPoint],
    output_length: float,
    duration: float
) -> List[CutWindow]:
    """
    Consecutive cut windows opened by each sync point before output_length.

    Each window ends at the next such point, and the last one at
    min(output_length, duration). Windows shorter than MIN_CUT_WINDOW_SEC
    are skipped.

    Parameters:
        points: Sync points in ascending time order
        output_length: Length of the edit in seconds
        duration: Track duration in seconds

    Returns:
        List of CutWindow, in time order
    """
    end_limit = min(output_length, duration)
    relevant = [(i, p) for i, p in enumerate(points) if p.time < end_limit]

    windows = []
    for k, (index, point) in enumerate(relevant):
        end = relevant[k + 1][1].time if k + 1 < len(relevant) else end_limit
        if end - point.time < config.MIN_CUT_WINDOW_SEC:
            continue
        windows.append(CutWindow(start=point.time, end=end, sync_index=index))

    return windows


def generate_cut_pattern(total_beats: int, style: str = 'variable') -> List[int]:
    """
    Split total_beats into cut lengths (in beats).

    Parameters:
        total_beats: Number of beats to cover
        style: '1', '2' or '4' for fixed lengths, 'variable' to cycle
            through VARIABLE_PATTERNS

    Returns:
        Cut lengths summing to total_beats (the last may be shortened)

    Raises:
        ValueError: If style is unknown
    """
    if style not in CUT_STYLES:
        raise ValueError(f"Unknown cut style: {style} (expected one of {CUT_STYLES})")

    if style == 'variable':
        lengths = (length for i in range(total_beats)
                   for length in VARIABLE_PATTERNS[i % len(VARIABLE_PATTERNS)])
    else:
        lengths = (int(style) for _ in range(total_beats))

    cuts = []
    remaining = total_beats
    for length in lengths:
        if remaining <= 0:
            break
        cut = min(length, remaining)
        cuts.append(cut)
        remaining -= cut

    return cuts


def uniform_beat_grid(bpm: float, duration: float, offset: float = 0.0) -> np.ndarray:
    """
    Beat times every 60 / bpm seconds from offset while inside the track.

    A non-positive or non-finite bpm falls back to FALLBACK_BPM.
    """
    if not np.isfinite(bpm) or bpm <= 0:
        bpm = config.FALLBACK_BPM
    interval = 60.0 / bpm
    count = int(np.ceil(max(0.0, duration - offset) / interval))
    beats = offset + np.arange(count) * interval
    return beats[beats < duration]


def map_cuts_to_beats(
    cuts: Sequence[int],
    beat_times: Sequence[float],
    bpm: float
) -> List[BeatCut]:
    """
    Place beat-length cuts onto beat ticks.

    Stops when the beat grid runs out. A non-positive or non-finite bpm
    falls back to FALLBACK_BPM, as in uniform_beat_grid().
    """
    if not np.isfinite(bpm) or bpm <= 0:
        bpm = config.FALLBACK_BPM
    beat_duration = 60.0 / bpm
    result = []

    beat_index = 0
    for cut in cuts:
        if beat_index >= len(beat_times):
            break
        result.append(BeatCut(
            start=float(beat_times[beat_index]),
            duration=cut * beat_duration,
            beat_index=beat_index
        ))
        beat_index += cut

    return result
