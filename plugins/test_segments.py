"""
Tests for the segment layout and particle bucketing.
"""

import numpy as np
import pytest

from insect_development.cell_types import CellType
from insect_development.engine_base import ParticleSnapshot
from insect_development.segments import (
    assign_segments, bucket_counts, build_segments, segment_column,
)


def _snapshot(z_values, types=None):
    z = np.asarray(z_values, dtype=np.float64)
    positions = np.zeros((len(z), 3))
    positions[:, 2] = z
    if types is None:
        types = np.zeros(len(z), dtype=np.int64)
    return ParticleSnapshot(positions, np.zeros_like(positions), types)


def test_default_layout():
    print("Testing procedural layout...")
    segments = build_segments(13)
    names = [s.name for s in segments]
    assert names[:3] == ["Head_1", "Head_2", "Head_3"]
    assert names[3:6] == ["Thorax_1", "Thorax_2", "Thorax_3"]
    assert names[-1] == "Abdomen_7"

    pairs = [s.appendage_pairs for s in segments]
    assert pairs == [1, 0, 1, 1, 2, 2, 0, 0, 0, 0, 0, 0, 1]
    assert all(s.has_appendages == (s.appendage_pairs > 0) for s in segments)

    assert segments[0].relative_position == 0.0
    assert segments[-1].relative_position == 1.0
    assert segments[4].size == 1.2 and segments[8].size == 0.8
    print("  ✓ Head / thorax / abdomen")


def test_allowed_cell_types_by_region():
    segments = build_segments(13)
    assert CellType.MUSCLE not in segments[0].allowed_cell_types
    assert CellType.FAT not in segments[2].allowed_cell_types
    assert len(segments[4].allowed_cell_types) == 10
    assert CellType.APPENDAGE not in segments[9].allowed_cell_types


def test_single_segment_position():
    (only,) = build_segments(1)
    assert only.relative_position == 0.0


def test_zero_segments_rejected():
    with pytest.raises(ValueError):
        build_segments(0)


def test_bucketing_by_projection():
    print("Testing segment bucketing...")
    snap = _snapshot([-5.0, -2.5, 0.0, 4.99, 100.0, -100.0])
    buckets = assign_segments(snap, (0, 0, 1), body_length=10.0, count=5)

    # proj = z / 10 + 0.5 -> floor(proj * 5), clamped
    assert [list(b) for b in buckets] == [[0, 5], [1], [2], [], [3, 4]]
    assert bucket_counts(buckets) == [2, 1, 1, 0, 2]
    print("  ✓ Clamped projection buckets")


def test_bucketing_normalizes_axis():
    snap = _snapshot([-4.0, 1.0, 3.5])
    a = assign_segments(snap, (0, 0, 1), 10.0, 4)
    b = assign_segments(snap, (0, 0, 7.5), 10.0, 4)
    assert [list(x) for x in a] == [list(x) for x in b]


def test_inactive_particles_skipped():
    snap = _snapshot([0.0, 0.0, 0.0], types=[0, -1, 3])
    buckets = assign_segments(snap, body_length=10.0, count=3)
    assert list(buckets[1]) == [0, 2]
    assert sum(bucket_counts(buckets)) == 2


def test_buckets_rebuilt_from_scratch():
    first = assign_segments(_snapshot([-4.0]), body_length=10.0, count=2)
    second = assign_segments(_snapshot([4.0]), body_length=10.0, count=2)
    assert bucket_counts(first) == [1, 0]
    assert bucket_counts(second) == [0, 1]


def test_empty_snapshot():
    buckets = assign_segments(None, count=4)
    assert bucket_counts(buckets) == [0, 0, 0, 0]


def test_zero_body_length_rejected():
    with pytest.raises(ValueError, match="Body length"):
        assign_segments(_snapshot([0.0, 0.5]), body_length=0.0, count=4)
    with pytest.raises(ValueError):
        assign_segments(_snapshot([0.0]), body_length=-2.0, count=4)
    # Nothing to project
    assert bucket_counts(assign_segments(None, body_length=0.0, count=2)) == [0, 0]


def test_homeotic_copy_keeps_position():
    segments = build_segments(13)
    target, source = segments[7], segments[4]
    target.copy_identity_from(source)
    assert target.relative_position == pytest.approx(7 / 12)
    assert target.appendage_pairs == 2 and target.has_appendages
    assert target.size == source.size
    assert target.allowed_cell_types == source.allowed_cell_types
    assert target.name == "Abdomen_2"


def test_segment_column():
    segments = build_segments(13)
    assert segment_column(segments[0], 32) == (0, 3)
    assert segment_column(segments[4], 32) == (10, 4)


if __name__ == "__main__":
    test_default_layout()
    test_bucketing_by_projection()
    print("\nAll segment tests passed!")
