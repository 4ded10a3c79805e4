"""
Preset Module - Named Analysis Presets

A preset bundles the thresholds that control detection sensitivity and
output density. Presets are chosen once per analysis call and never
mutated mid-run.

USAGE:
    from syncpoints.presets import get_preset, AnalysisPreset

    preset = get_preset('beat-heavy')

    custom = AnalysisPreset(
        name='sparse',
        density_min=0.5, density_max=1.0, energy_threshold=0.8,
        onset_dedup_ms=100.0, energy_dedup_ms=400.0, max_gap_sec=4.0
    )
"""

from dataclasses import dataclass
from typing import Dict

import config


@dataclass(frozen=True)
class AnalysisPreset:
    """
    Detection and density parameters for one analysis call.

    Attributes:
        name: Preset name (informational)
        density_min: Lower bound of the density target (points/second)
        density_max: Upper bound of the density target (points/second)
        energy_threshold: Percentile (0..1) of frame energy used as peak threshold
        onset_dedup_ms: Onset dedup and merge window (milliseconds)
        energy_dedup_ms: Energy-peak dedup window (milliseconds)
        max_gap_sec: Largest allowed gap between consecutive output points (seconds)
    """
    name: str
    density_min: float
    density_max: float
    energy_threshold: float
    onset_dedup_ms: float
    energy_dedup_ms: float
    max_gap_sec: float

    @property
    def onset_dedup_sec(self) -> float:
        return self.onset_dedup_ms / 1000.0

    @property
    def energy_dedup_sec(self) -> float:
        return self.energy_dedup_ms / 1000.0

    @property
    def mean_density(self) -> float:
        """Midpoint of the density range (points/second)."""
        return (self.density_min + self.density_max) / 2.0

    def to_dict(self) -> Dict:
        """Export preset values for JSON serialization."""
        return {
            'name': self.name,
            'density_min': self.density_min,
            'density_max': self.density_max,
            'energy_threshold': self.energy_threshold,
            'onset_dedup_ms': self.onset_dedup_ms,
            'energy_dedup_ms': self.energy_dedup_ms,
            'max_gap_sec': self.max_gap_sec,
        }


def validate_preset(preset: AnalysisPreset) -> bool:
    """
    Validate preset parameters for consistency.

    Parameters:
        preset: AnalysisPreset instance to validate

    Returns:
        True if preset is valid

    Raises:
        ValueError: If preset is invalid
    """
    if preset.density_min <= 0:
        raise ValueError(f"density_min must be positive, got {preset.density_min}")
    if preset.density_max < preset.density_min:
        raise ValueError(
            f"density_max ({preset.density_max}) must be >= density_min ({preset.density_min})"
        )
    if not (0.0 <= preset.energy_threshold <= 1.0):
        raise ValueError(f"energy_threshold must be in [0, 1], got {preset.energy_threshold}")
    if preset.onset_dedup_ms < 0:
        raise ValueError(f"onset_dedup_ms must be non-negative, got {preset.onset_dedup_ms}")
    if preset.energy_dedup_ms < 0:
        raise ValueError(f"energy_dedup_ms must be non-negative, got {preset.energy_dedup_ms}")
    if preset.max_gap_sec <= 0:
        raise ValueError(f"max_gap_sec must be positive, got {preset.max_gap_sec}")

    return True


def must_keep_threshold(preset: AnalysisPreset) -> float:
    """Intensity above which a point survives density filtering unconditionally."""
    if preset.energy_threshold <= config.DENSE_ENERGY_THRESHOLD:
        return config.MUST_KEEP_INTENSITY_DENSE
    return config.MUST_KEEP_INTENSITY


# Built-in presets keyed by name
PRESETS: Dict[str, AnalysisPreset] = {
    name: AnalysisPreset(name=name, **values)
    for name, values in config.PRESET_TABLE.items()
}


def get_preset(name: str = config.DEFAULT_PRESET) -> AnalysisPreset:
    """
    Look up a built-in preset by name.

    Raises:
        ValueError: If no preset has this name
    """
    try:
        return PRESETS[name]
    except KeyError:
        valid = ', '.join(sorted(PRESETS))
        raise ValueError(f"Unknown preset '{name}' (expected one of: {valid})") from None


# Validate built-in presets on import
for _preset in PRESETS.values():
    validate_preset(_preset)
