"""
Body Segments

Ordered regions along the anterior-posterior axis, and the per-tick
bucketing of particles into them.

The procedural layout follows the standard insect plan: three head
segments, three thoracic segments, and the rest abdominal.
"""

import math
import numpy as np
from .cell_types import CellType, CELL_TYPES

DEFAULT_SEGMENT_COUNT = 13
DEFAULT_AXIS = (0.0, 0.0, 1.0)

_HEAD_EXCLUDED = (CellType.MUSCLE, CellType.FAT)
_ABDOMEN_EXCLUDED = (CellType.APPENDAGE,)


class BodySegment:
    """One body region.

    Args:
        name: Display name, e.g. "Thorax_2"
        relative_position: Position in [0, 1] along the AP axis
        size: Relative size (1.0 = nominal)
        allowed_cell_types: CellTypes permitted in this region
        local_morphogens: Morphogens injected around this segment each tick
        local_genes: Genes associated with the region (informational)
        has_appendages: Whether the segment carries appendages
        appendage_pairs: Number of appendage pairs
    """

    def __init__(self, name, relative_position, size=1.0, allowed_cell_types=CELL_TYPES,
                 local_morphogens=(), local_genes=(), has_appendages=False,
                 appendage_pairs=0):
        self.name = name
        self.relative_position = relative_position
        self.size = size
        self.allowed_cell_types = tuple(allowed_cell_types)
        self.local_morphogens = list(local_morphogens)
        self.local_genes = list(local_genes)
        self.has_appendages = has_appendages
        self.appendage_pairs = appendage_pairs

    def copy_identity_from(self, source):
        """Take over another segment's identity, keeping this one's position."""
        self.has_appendages = source.has_appendages
        self.appendage_pairs = source.appendage_pairs
        self.size = source.size
        self.allowed_cell_types = tuple(source.allowed_cell_types)

    def copy(self):
        return BodySegment(
            self.name, self.relative_position, self.size, self.allowed_cell_types,
            [m.copy() for m in self.local_morphogens], list(self.local_genes),
            self.has_appendages, self.appendage_pairs,
        )

    def identity(self):
        """Comparable tuple of every attribute (used for state comparisons)."""
        return (
            self.name, self.relative_position, self.size,
            self.allowed_cell_types, self.has_appendages, self.appendage_pairs,
            tuple(m.name for m in self.local_morphogens),
        )

    def __repr__(self):
        return (f"BodySegment({self.name!r}, pos={self.relative_position:.3f}, "
                f"size={self.size:.3f}, pairs={self.appendage_pairs})")


def allowed_cell_types_for(index):
    """Cell types permitted in the segment at `index` of the procedural layout."""
    if index < 3:
        return tuple(ct for ct in CELL_TYPES if ct not in _HEAD_EXCLUDED)
    if index < 6:
        return CELL_TYPES
    return tuple(ct for ct in CELL_TYPES if ct not in _ABDOMEN_EXCLUDED)


def build_segments(count=DEFAULT_SEGMENT_COUNT):
    """Procedural head/thorax/abdomen layout with `count` segments.

    Raises:
        ValueError: if count < 1
    """
    if count < 1:
        raise ValueError(f"Segment count must be at least 1, got {count}")

    segments = []
    for i in range(count):
        relative_position = i / (count - 1) if count > 1 else 0.0
        pairs = 0
        if i < 3:
            name = f"Head_{i + 1}"
            if i in (0, 2):     # antennae, mouthparts
                pairs = 1
        elif i < 6:
            name = f"Thorax_{i - 2}"
            pairs = 2 if i in (4, 5) else 1   # legs, plus wings on T2/T3
        else:
            name = f"Abdomen_{i - 5}"
            if i == count - 1:  # cerci
                pairs = 1
        size = 1.2 if 3 <= i < 6 else 0.8
        segments.append(BodySegment(
            name, relative_position, size, allowed_cell_types_for(i),
            has_appendages=pairs > 0, appendage_pairs=pairs,
        ))
    return segments


def project_positions(positions, axis=DEFAULT_AXIS, body_length=1.0):
    """Normalized AP coordinate (0 = anterior end) for each position.

    Raises:
        ValueError: if body_length is not positive
    """
    if not body_length > 0:
        raise ValueError(f"Body length must be positive, got {body_length!r}")
    axis = np.asarray(axis, dtype=np.float64)
    norm = np.linalg.norm(axis)
    if norm > 0:
        axis = axis / norm
    positions = np.asarray(positions, dtype=np.float64).reshape(-1, 3)
    return positions @ axis / body_length + 0.5


def segment_indices(positions, axis=DEFAULT_AXIS, body_length=1.0,
                    count=DEFAULT_SEGMENT_COUNT):
    """Segment index of every position, clamped to [0, count - 1]."""
    proj = project_positions(positions, axis, body_length)
    idx = np.floor(proj * count)
    return np.clip(idx, 0, count - 1).astype(np.int64)


def assign_segments(snapshot, axis=DEFAULT_AXIS, body_length=1.0,
                    count=DEFAULT_SEGMENT_COUNT):
    """Bucket live particles into segments.

    Args:
        snapshot: ParticleSnapshot (positions, type indices)
        axis: Primary body axis (normalized internally)
        body_length: Body length used to normalize the projection
        count: Number of segments

    Returns:
        List of `count` int arrays of particle indices, rebuilt from scratch.
        Particles with a negative type index are skipped.
    """
    buckets = [np.zeros(0, dtype=np.int64) for _ in range(count)]
    if snapshot is None or len(snapshot) == 0:
        return buckets

    live = np.flatnonzero(snapshot.type_indices >= 0)
    if live.size == 0:
        return buckets
    idx = segment_indices(snapshot.positions[live], axis, body_length, count)
    for s in range(count):
        buckets[s] = live[idx == s]
    return buckets


def bucket_counts(buckets):
    return [int(len(b)) for b in buckets]


def segment_column(segment, res_x):
    """Grid column and injection radius of a segment along x."""
    center = int(math.floor(segment.relative_position * res_x))
    radius = int(math.ceil(segment.size * res_x * 0.1))
    return center, radius
