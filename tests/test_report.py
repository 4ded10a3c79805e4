"""
Report Tests

Summary line format and the per-type colour map.
"""

import pytest

from syncpoints import report
from syncpoints.models import AudioAnalysisResult, SyncPoint, SyncPointType


def make_result(types, tempo=None):
    points = tuple(
        SyncPoint(time=0.5 * i, type=point_type, intensity=0.5)
        for i, point_type in enumerate(types)
    )
    return AudioAnalysisResult(
        sync_points=points,
        duration=60.0,
        estimated_tempo=tempo,
        average_energy=0.1,
    )


class TestSummary:

    def test_scenario(self):
        result = make_result(
            [SyncPointType.DROP] * 2 + [SyncPointType.CHORUS] + [SyncPointType.HIT] * 14,
            tempo=128.0,
        )
        assert report.summarize(result) == "128 BPM | 2 drops | 1 choruses | 14 hits"

    def test_display_order(self):
        result = make_result([
            SyncPointType.PAUSE,
            SyncPointType.HIT,
            SyncPointType.BASS,
            SyncPointType.BUILD,
            SyncPointType.VERSE,
            SyncPointType.CHORUS,
            SyncPointType.DROP,
        ])
        assert report.summarize(result) == (
            "1 drops | 1 choruses | 1 verses | 1 builds | 1 bass | 1 hits | 1 pauses"
        )

    def test_tempo_rounded(self):
        result = make_result([SyncPointType.HIT], tempo=127.6)
        assert report.summarize(result).startswith("128 BPM")

    def test_unlisted_types_omitted(self):
        result = make_result([SyncPointType.SNARE, SyncPointType.RESUME, SyncPointType.BASS])
        assert report.summarize(result) == "1 bass"

    def test_empty(self):
        assert report.summarize(make_result([])) == report.EMPTY_SUMMARY

    def test_tempo_only(self):
        assert report.summarize(make_result([], tempo=90.0)) == "90 BPM"


class TestColors:

    def test_every_type_has_a_color(self):
        assert set(report.SYNC_POINT_COLORS) == set(SyncPointType)

    def test_colors_are_hex(self):
        for color in report.SYNC_POINT_COLORS.values():
            assert color.startswith('#') and len(color) == 7

    def test_distinct(self):
        colors = list(report.SYNC_POINT_COLORS.values())
        assert len(set(colors)) == len(colors)

    @pytest.mark.parametrize('point_type', ['drop', SyncPointType.DROP])
    def test_lookup_by_value_or_enum(self, point_type):
        assert report.sync_point_color(point_type) == '#ef4444'

    def test_unknown_type(self):
        with pytest.raises(ValueError):
            report.sync_point_color('cowbell')
