"""
Curation Module

Turn the unsorted candidate list into the final sync point sequence:

    sort -> merge -> target count -> must-keep partition -> budget fill
         -> re-sort -> gap fill

Must-keep points are never truncated, even when they alone exceed the
target count. When fewer than two points survive, the whole track is
covered with uniformly spaced hits instead, still gap-filled so sparse
presets keep to their max gap.
"""

import logging
import math
from typing import List, Tuple

import config
from syncpoints.models import SyncPoint, SyncPointType
from syncpoints.presets import AnalysisPreset, must_keep_threshold
from syncpoints.timebase import EPSILON_SEC

logger = logging.getLogger(__name__)


def sort_by_time(points: List[SyncPoint]) -> List[SyncPoint]:
    """Stable sort by time (equal times keep their original order)."""
    return sorted(points, key=lambda p: p.time)


def merge_candidates(points: List[SyncPoint], window_sec: float) -> List[SyncPoint]:
    """
    Merge time-sorted candidates closer than window_sec.

    Each merged point keeps the time of the first candidate in its group
    and takes the type and intensity of the most intense one (ties keep
    the earlier).

    Parameters:
        points: Candidates sorted by time
        window_sec: Merge window in seconds

    Returns:
        Merged points, strictly ascending in time
    """
    merged: List[SyncPoint] = []

    for point in points:
        if merged:
            anchor = merged[-1]
            gap = point.time - anchor.time
            if gap < window_sec or gap <= 0:
                if point.intensity > anchor.intensity:
                    merged[-1] = SyncPoint(
                        time=anchor.time,
                        type=point.type,
                        intensity=point.intensity,
                        synthetic=point.synthetic
                    )
                continue
        merged.append(point)

    return merged


def compute_target_count(duration: float, preset: AnalysisPreset) -> int:
    """
    Number of points requested for a track.

    At least MIN_TARGET_COUNT from the lower density bound, never more
    than the upper density bound allows.
    """
    lower = max(config.MIN_TARGET_COUNT, int(math.floor(duration * preset.density_min)))
    upper = int(math.floor(duration * preset.density_max))
    return min(lower, upper)


def is_must_keep(point: SyncPoint, threshold: float) -> bool:
    return point.type.value in config.MUST_KEEP_TYPES or point.intensity > threshold


def partition_must_keep(
    points: List[SyncPoint],
    threshold: float
) -> Tuple[List[SyncPoint], List[SyncPoint]]:
    """
    Split points into (must_keep, others).

    others is sorted by intensity, highest first (stable for equal values).
    """
    must_keep = [p for p in points if is_must_keep(p, threshold)]
    others = [p for p in points if not is_must_keep(p, threshold)]
    others.sort(key=lambda p: p.intensity, reverse=True)
    return must_keep, others


def select_points(
    points: List[SyncPoint],
    target_count: int,
    threshold: float
) -> List[SyncPoint]:
    """All must-keep points plus the most intense others up to the target, by time."""
    must_keep, others = partition_must_keep(points, threshold)
    remaining = max(0, target_count - len(must_keep))
    return sort_by_time(must_keep + others[:remaining])


def uniform_points(duration: float, spacing: float) -> List[SyncPoint]:
    """Hits every `spacing` seconds from 0 while inside the track."""
    points = []
    if spacing <= 0:
        return points

    k = 0
    while k * spacing < duration:
        points.append(SyncPoint(
            time=k * spacing,
            type=SyncPointType.HIT,
            intensity=config.UNIFORM_FALLBACK_INTENSITY,
            synthetic=True
        ))
        k += 1
    return points


def _fillers(start: float, end: float, max_gap: float, intensity: float) -> List[SyncPoint]:
    """Evenly spaced hits splitting (start, end) into sub-gaps <= max_gap."""
    gap = end - start
    if gap <= max_gap + EPSILON_SEC:
        return []

    pieces = int(math.ceil(gap / max_gap))
    step = gap / pieces
    return [
        SyncPoint(time=start + k * step, type=SyncPointType.HIT, intensity=intensity, synthetic=True)
        for k in range(1, pieces)
    ]


def fill_gaps(points: List[SyncPoint], duration: float, max_gap: float) -> List[SyncPoint]:
    """
    Insert synthetic hits wherever consecutive points are more than max_gap apart.

    The leading gap (0 to first point) and trailing gap (last point to
    duration) use the lower boundary filler intensity.

    Parameters:
        points: Time-sorted points (at least one)
        duration: Track duration in seconds
        max_gap: Largest allowed gap in seconds

    Returns:
        Time-sorted points including fillers
    """
    if not points:
        return []

    result = _fillers(0.0, points[0].time, max_gap, config.BOUNDARY_FILLER_INTENSITY)
    result.append(points[0])

    for previous, current in zip(points, points[1:]):
        result.extend(_fillers(previous.time, current.time, max_gap, config.FILLER_INTENSITY))
        result.append(current)

    result.extend(_fillers(points[-1].time, duration, max_gap, config.BOUNDARY_FILLER_INTENSITY))
    return result


def curate(candidates: List[SyncPoint], duration: float, preset: AnalysisPreset) -> List[SyncPoint]:
    """
    Run the full curation pipeline over raw candidates.

    Parameters:
        candidates: Unsorted candidates from the detector passes
        duration: Track duration in seconds
        preset: Active preset

    Returns:
        Final sync points, strictly ascending in time
    """
    merged = merge_candidates(sort_by_time(candidates), preset.onset_dedup_sec)
    target_count = compute_target_count(duration, preset)
    selected = select_points(merged, target_count, must_keep_threshold(preset))

    logger.debug(
        "Curation: %d candidates -> %d merged -> %d selected (target %d)",
        len(candidates), len(merged), len(selected), target_count
    )

    if len(selected) < 2:
        spacing = 1.0 / preset.mean_density
        logger.info(
            "Only %d point(s) detected; using uniform spacing of %.3fs",
            len(selected), spacing
        )
        return fill_gaps(uniform_points(duration, spacing), duration, preset.max_gap_sec)

    final = fill_gaps(selected, duration, preset.max_gap_sec)
    fillers = len(final) - len(selected)
    if fillers:
        logger.debug("Inserted %d filler point(s)", fillers)
    return final
