"""
Report Module

Presentation helpers over a finished analysis: a one-line summary and a
fixed colour for each sync point type.
"""

from typing import Dict, List, Tuple

from syncpoints.models import AudioAnalysisResult, SyncPointType


# Types reported in the summary, in display order, with their plural labels
SUMMARY_ORDER: Tuple[Tuple[SyncPointType, str], ...] = (
    (SyncPointType.DROP, 'drops'),
    (SyncPointType.CHORUS, 'choruses'),
    (SyncPointType.VERSE, 'verses'),
    (SyncPointType.BUILD, 'builds'),
    (SyncPointType.BASS, 'bass'),
    (SyncPointType.HIT, 'hits'),
    (SyncPointType.PAUSE, 'pauses'),
)

EMPTY_SUMMARY = 'No sync points detected'

SYNC_POINT_COLORS: Dict[SyncPointType, str] = {
    SyncPointType.DROP: '#ef4444',        # red
    SyncPointType.BASS: '#f97316',        # orange
    SyncPointType.SNARE: '#eab308',       # yellow
    SyncPointType.HIT: '#22c55e',         # green
    SyncPointType.BUILD: '#3b82f6',       # blue
    SyncPointType.TRANSITION: '#8b5cf6',  # purple
    SyncPointType.VOCAL: '#ec4899',       # pink
    SyncPointType.PAUSE: '#6b7280',       # gray
    SyncPointType.RESUME: '#10b981',      # emerald
    SyncPointType.CHORUS: '#f59e0b',      # amber
    SyncPointType.VERSE: '#06b6d4',       # cyan
}


def summarize(result: AudioAnalysisResult) -> str:
    """
    One-line summary such as "128 BPM | 2 drops | 1 choruses | 14 hits".

    Types with zero count are omitted; snares and resumes are not listed.
    Returns EMPTY_SUMMARY when there is nothing to report.
    """
    counts = result.type_counts()

    parts: List[str] = []
    if result.estimated_tempo:
        parts.append(f"{int(round(result.estimated_tempo))} BPM")

    for point_type, label in SUMMARY_ORDER:
        if counts[point_type] > 0:
            parts.append(f"{counts[point_type]} {label}")

    return ' | '.join(parts) or EMPTY_SUMMARY


def sync_point_color(point_type: SyncPointType) -> str:
    """Hex colour for a sync point type (accepts the enum or its string value)."""
    return SYNC_POINT_COLORS[SyncPointType(point_type)]
