#!/usr/bin/env python3
"""
sync-signals - Command Line Interface

Main entry point for running sync point analysis on audio tracks.
"""

import argparse
import logging
import sys
import warnings
from pathlib import Path

import config
from syncpoints import audio_io, export
from syncpoints.collaborators import LibrosaFeatureCollaborator
from syncpoints.models import AudioSignal
from syncpoints.pipeline import analyze_signal
from syncpoints.presets import PRESETS, get_preset

logger = logging.getLogger(__name__)

AUDIO_EXTENSIONS = ['.wav', '.mp3', '.flac', '.ogg', '.m4a']


def analyze_and_export(
    signal: AudioSignal,
    track_name: str,
    output_dir: Path,
    params: dict
) -> list:
    """
    Analyze a loaded signal and write its outputs.

    Parameters:
        signal: Loaded signal
        track_name: Name used for output files
        output_dir: Output directory for results
        params: Parameters dict (preset, use_collaborator, generate_plots)

    Returns:
        List of created file paths
    """
    preset = get_preset(params['preset'])
    collaborator = LibrosaFeatureCollaborator(signal) if params['use_collaborator'] else None

    with warnings.catch_warnings():
        # Energy-only mode was requested explicitly
        if collaborator is None:
            warnings.simplefilter('ignore', UserWarning)
        result = analyze_signal(signal, preset, collaborator)

    created_files = export.export_all_outputs(
        result,
        output_dir,
        track_name,
        preset=preset,
        signal=signal,
        generate_plots=params['generate_plots']
    )
    logger.info("Created %d output files in %s", len(created_files), output_dir)

    export.print_analysis_summary(result, track_name)
    return created_files


def process_single_track(
    file_path: Path,
    output_dir: Path,
    params: dict,
    verbose: bool = False
) -> bool:
    """
    Process a single audio track: load, analyze, export.

    Parameters:
        file_path: Path to audio file
        output_dir: Output directory for results
        params: Parameters dict
        verbose: Print tracebacks on failure

    Returns:
        True if successful, False otherwise
    """
    try:
        logger.info("Processing: %s", file_path.name)
        signal = audio_io.load_signal(str(file_path), target_sr=params['target_sr'])
        logger.info("Duration: %.2fs, Sample rate: %d Hz", signal.duration, signal.sample_rate)

        analyze_and_export(signal, file_path.stem, output_dir, params)
        return True

    except Exception as e:
        print(f"ERROR processing {file_path.name}: {e}", file=sys.stderr)
        if verbose:
            import traceback
            traceback.print_exc()
        return False


def process_directory(
    input_dir: Path,
    output_dir: Path,
    params: dict,
    verbose: bool = False
) -> dict:
    """
    Process all audio files in a directory.

    Returns:
        Dict with success/failure counts
    """
    audio_files = set()
    for ext in AUDIO_EXTENSIONS:
        audio_files.update(input_dir.glob(f'*{ext}'))
        audio_files.update(input_dir.glob(f'*{ext.upper()}'))

    if not audio_files:
        print(f"No audio files found in {input_dir}")
        return {'success': 0, 'failed': 0}

    print(f"Found {len(audio_files)} audio files")

    success_count = 0
    failed_count = 0

    for audio_file in sorted(audio_files):
        track_output_dir = output_dir / audio_file.stem
        if process_single_track(audio_file, track_output_dir, params, verbose):
            success_count += 1
        else:
            failed_count += 1

    print(f"\nProcessing complete: {success_count} successful, {failed_count} failed")

    return {'success': success_count, 'failed': failed_count}


def run_demo_mode(output_dir: Path, params: dict, verbose: bool = False) -> bool:
    """
    Run demo mode using synthetic test tracks.

    Returns:
        True if every demo track succeeded
    """
    print("Running demo mode with synthetic audio...")

    from syncpoints.synthetic import (
        generate_build_then_drop,
        generate_kick_pattern,
        generate_with_pause,
    )

    sr = params['target_sr']

    test_tracks = [
        ('demo_build_drop', generate_build_then_drop(duration=30, sr=sr)[0], 'Build-then-drop pattern'),
        ('demo_kicks', generate_kick_pattern(duration=20, sr=sr), 'Steady 120 BPM kicks'),
        ('demo_pause', generate_with_pause(duration=20, sr=sr)[0], 'Kicks with a silent break'),
    ]

    print(f"Generated {len(test_tracks)} synthetic test tracks")

    for name, audio, description in test_tracks:
        print(f"\nProcessing: {name} ({description})")
        print("-" * 60)

        try:
            signal = AudioSignal.from_samples(audio, sr)
            analyze_and_export(signal, name, output_dir / name, params)
        except Exception as e:
            print(f"ERROR: {e}", file=sys.stderr)
            if verbose:
                import traceback
                traceback.print_exc()
            return False

    print(f"\nDemo complete! Results saved to {output_dir}")
    return True


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description='sync-signals - Sync point detection for beat-synchronized video cuts',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Analyze single file
  %(prog)s track.wav --output results/

  # Analyze directory with a denser preset
  %(prog)s tracks/ --output results/ --preset beat-heavy

  # Energy-only analysis, no plots
  %(prog)s track.wav --output results/ --no-collaborator --no-plots

  # Run demo mode
  %(prog)s --demo --output demo_results/
        """
    )

    parser.add_argument(
        'input',
        nargs='?',
        help='Input audio file or directory'
    )

    parser.add_argument(
        '-o', '--output',
        default='output',
        help='Output directory (default: output/)'
    )

    parser.add_argument(
        '--preset',
        default=config.DEFAULT_PRESET,
        choices=sorted(PRESETS),
        help=f'Analysis preset (default: {config.DEFAULT_PRESET})'
    )

    parser.add_argument(
        '--demo',
        action='store_true',
        help='Run demo mode with synthetic audio'
    )

    parser.add_argument(
        '--no-collaborator',
        action='store_true',
        help='Skip beat tracking, onset detection and spectral classification'
    )

    parser.add_argument(
        '--no-plots',
        action='store_true',
        help='Skip plot generation'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Debug logging and tracebacks'
    )

    parser.add_argument(
        '--target-sr',
        type=int,
        help=f'Target sample rate (default: {config.TARGET_SAMPLE_RATE})'
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(levelname)s %(name)s: %(message)s'
    )

    if not args.demo and not args.input:
        parser.error("Either provide an input file/directory or use --demo")

    params = {
        'target_sr': args.target_sr or config.TARGET_SAMPLE_RATE,
        'preset': args.preset,
        'use_collaborator': not args.no_collaborator,
        'generate_plots': not args.no_plots,
    }

    output_dir = Path(args.output)

    if args.demo:
        success = run_demo_mode(output_dir, params, args.verbose)
        sys.exit(0 if success else 1)

    input_path = Path(args.input)

    if not input_path.exists():
        print(f"ERROR: Input path does not exist: {input_path}", file=sys.stderr)
        sys.exit(1)

    if input_path.is_file():
        success = process_single_track(input_path, output_dir, params, args.verbose)
        sys.exit(0 if success else 1)
    elif input_path.is_dir():
        results = process_directory(input_path, output_dir, params, args.verbose)
        sys.exit(0 if results['failed'] == 0 else 1)
    else:
        print(f"ERROR: Invalid input path: {input_path}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
