"""
Export Module

Generate JSON outputs and plots for analysis results.
All outputs follow a versioned schema for consistency.
"""

import json
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np
import matplotlib
matplotlib.use('Agg')  # Non-interactive backend
import matplotlib.pyplot as plt
from matplotlib.lines import Line2D

import config
from syncpoints.cuts import CutWindow, plan_cut_windows
from syncpoints.features import compute_frame_energy
from syncpoints.models import AudioAnalysisResult, AudioSignal, PhaseReport, SyncPoint
from syncpoints.presets import AnalysisPreset
from syncpoints.report import summarize, sync_point_color
from syncpoints.timebase import frames_to_time


class NumpyEncoder(json.JSONEncoder):
    """JSON encoder that handles numpy scalars/arrays and enums."""
    def default(self, obj):
        if isinstance(obj, np.integer):
            return int(obj)
        elif isinstance(obj, np.floating):
            return float(obj)
        elif isinstance(obj, np.ndarray):
            return obj.tolist()
        elif isinstance(obj, np.bool_):
            return bool(obj)
        elif isinstance(obj, Enum):
            return obj.value
        return super().default(obj)


def _round(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    return round(float(value), config.OUTPUT_PRECISION)


def point_to_dict(point: SyncPoint) -> Dict:
    return {
        'time': _round(point.time),
        'type': point.type.value,
        'intensity': _round(point.intensity),
        'synthetic': point.synthetic,
    }


def phase_to_dict(phase: PhaseReport) -> Dict:
    return {
        'name': phase.name,
        'ok': phase.ok,
        'skipped': phase.skipped,
        'added': phase.added,
        'error': phase.error,
    }


def cut_window_to_dict(window: CutWindow) -> Dict:
    return {
        'start': _round(window.start),
        'end': _round(window.end),
        'sync_index': window.sync_index,
    }


def result_to_dict(
    result: AudioAnalysisResult,
    preset: Optional[AnalysisPreset] = None,
    track_name: Optional[str] = None
) -> Dict:
    """
    Build the result JSON following the schema.

    Parameters:
        result: Analysis result
        preset: Preset used (None = record only its name)
        track_name: Optional track name

    Returns:
        Dict ready for JSON serialization
    """
    counts = result.type_counts()
    cut_windows = plan_cut_windows(result.sync_points, result.duration, result.duration)

    data = {
        'schema_version': config.SCHEMA_VERSION,
        'track_name': track_name,
        'duration': _round(result.duration),
        'estimated_tempo': _round(result.estimated_tempo),
        'average_energy': round(float(result.average_energy), 6),
        'preset': preset.to_dict() if preset is not None else {'name': result.preset_name},
        'summary': summarize(result),
        'num_sync_points': len(result.sync_points),
        'type_counts': {t.value: n for t, n in counts.items() if n > 0},
        'sync_points': [point_to_dict(p) for p in result.sync_points],
        'cut_windows': [cut_window_to_dict(w) for w in cut_windows],
        'phases': [phase_to_dict(p) for p in result.phases],
    }

    return data


def save_json(data: Dict, output_path: Path) -> None:
    """
    Save data as JSON with pretty printing.

    Parameters:
        data: Dictionary to save
        output_path: Path to output file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w') as f:
        json.dump(data, f, indent=2, cls=NumpyEncoder)


def export_result_json(
    result: AudioAnalysisResult,
    output_path: Path,
    preset: Optional[AnalysisPreset] = None,
    track_name: Optional[str] = None
) -> Path:
    """Write result_to_dict() output to a file and return its path."""
    output_path = Path(output_path)
    save_json(result_to_dict(result, preset, track_name), output_path)
    return output_path


def plot_sync_points(
    result: AudioAnalysisResult,
    output_path: Path,
    signal: Optional[AudioSignal] = None,
    title: str = "Sync Points"
) -> None:
    """
    Plot sync points as colour-coded stems over the energy envelope.

    Parameters:
        result: Analysis result
        output_path: Path to save plot
        signal: Optional signal; when given, its RMS envelope is drawn
        title: Plot title
    """
    fig, ax = plt.subplots(1, 1, figsize=config.PLOT_FIGSIZE)

    if signal is not None:
        rms = compute_frame_energy(
            signal.samples,
            config.CLASSIFY_FRAME_LENGTH,
            config.CLASSIFY_HOP_LENGTH,
            mode='rms'
        )
        if len(rms) > 0 and np.max(rms) > 0:
            times = frames_to_time(np.arange(len(rms)), signal.sample_rate, config.CLASSIFY_HOP_LENGTH)
            ax.fill_between(times, 0, rms / np.max(rms), color='gray', alpha=0.25, linewidth=0)

    seen_types = []
    for point in result.sync_points:
        color = sync_point_color(point.type)
        style = ':' if point.synthetic else '-'
        ax.vlines(point.time, 0, point.intensity, colors=color, linestyles=style, linewidth=1.2)
        ax.plot(point.time, point.intensity, 'o', color=color, markersize=3)
        if point.type not in seen_types:
            seen_types.append(point.type)

    handles = [
        Line2D([0], [0], color=sync_point_color(t), linewidth=2, label=t.value)
        for t in seen_types
    ]
    if handles:
        ax.legend(handles=handles, loc='upper right', fontsize=8, ncol=min(len(handles), 6))

    ax.set_xlim(0, max(result.duration, 1e-3))
    ax.set_ylim(0, 1.1)
    ax.set_xlabel('Time (seconds)', fontsize=10)
    ax.set_ylabel('Intensity', fontsize=10)
    ax.set_title(f"{title}: {summarize(result)}", fontsize=12, fontweight='bold')
    ax.grid(True, alpha=0.3)

    plt.tight_layout()

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    plt.savefig(output_path, dpi=config.PLOT_DPI, bbox_inches='tight')
    plt.close(fig)


def export_all_outputs(
    result: AudioAnalysisResult,
    output_dir: Path,
    track_name: str,
    preset: Optional[AnalysisPreset] = None,
    signal: Optional[AudioSignal] = None,
    generate_plots: bool = True
) -> List[Path]:
    """
    Export all outputs: sync point JSON and, optionally, the timeline plot.

    Returns:
        List of paths to created files
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    created_files = [
        export_result_json(result, output_dir / f"{track_name}_syncpoints.json", preset, track_name)
    ]

    if generate_plots:
        plot_path = output_dir / f"{track_name}_syncpoints.png"
        plot_sync_points(result, plot_path, signal=signal, title=track_name)
        created_files.append(plot_path)

    return created_files


def print_analysis_summary(result: AudioAnalysisResult, track_name: str) -> None:
    """
    Print concise analysis summary to console.

    Parameters:
        result: Analysis result
        track_name: Track name
    """
    print(f"\n{'='*60}")
    print(f"Sync Points: {track_name}")
    print(f"{'='*60}")
    print(f"Duration: {result.duration:.2f} seconds")
    print(f"Preset: {result.preset_name}")
    if result.estimated_tempo:
        print(f"Tempo: {result.estimated_tempo:.1f} BPM")
    print(f"Average energy: {result.average_energy:.4f}")
    print(f"Sync points: {len(result.sync_points)} "
          f"({sum(1 for p in result.sync_points if p.synthetic)} filler)")
    print(f"Summary: {summarize(result)}")

    failed = [p for p in result.phases if not p.ok]
    if failed:
        print("\nFailed passes:")
        for phase in failed:
            print(f"  {phase.name}: {phase.error}")

    print(f"{'='*60}\n")
