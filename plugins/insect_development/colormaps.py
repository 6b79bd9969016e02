"""
Colormaps and Frame Rendering for Morphogen Fields

Maps normalized concentrations to RGB through (256, 3) uint8 lookup
tables, and composes the top-down frame shared by the viewer and the
headless PNG snapshots: a morphogen slice, segment boundaries and the
particle cloud.
"""

import numpy as np


def _interpolate_colors(stops, n=256):
    """
    Build a colormap by interpolating between color stops.

    Args:
        stops: List of (position, (r, g, b)) where position is [0, 1]
        n: Number of entries in the LUT
    """
    positions = np.array([s[0] for s in stops], dtype=np.float64)
    colors = np.array([s[1] for s in stops], dtype=np.float64)
    t = np.linspace(0.0, 1.0, n)
    lut = np.empty((n, 3), dtype=np.uint8)
    for c in range(3):
        lut[:, c] = np.interp(t, positions, colors[:, c]).astype(np.uint8)
    return lut


# --- Colormap Definitions ---

def thermal():
    """Blue low to red high."""
    return _interpolate_colors([
        (0.00, (0, 0, 20)),
        (0.20, (0, 0, 120)),
        (0.40, (30, 80, 180)),
        (0.50, (60, 180, 80)),
        (0.60, (200, 200, 30)),
        (0.80, (240, 80, 0)),
        (1.00, (255, 255, 255)),
    ])


def yolk():
    """Dark amber to pale yolk, for early-stage fields."""
    return _interpolate_colors([
        (0.00, (10, 6, 2)),
        (0.30, (90, 50, 10)),
        (0.60, (210, 150, 40)),
        (1.00, (255, 245, 200)),
    ])


def chitin():
    """Near black through brown to gold."""
    return _interpolate_colors([
        (0.00, (4, 3, 2)),
        (0.35, (60, 35, 15)),
        (0.70, (170, 120, 40)),
        (1.00, (250, 220, 120)),
    ])


def tint(color):
    """Black to a single morphogen's display color."""
    return _interpolate_colors([
        (0.00, (0, 0, 0)),
        (1.00, tuple(color)),
    ])


# Registry of all named colormaps
COLORMAPS = {
    "thermal": thermal,
    "yolk": yolk,
    "chitin": chitin,
}

COLORMAP_ORDER = list(COLORMAPS.keys())


def get_colormap(name):
    """Get a colormap LUT (256, 3) uint8 array by name."""
    return COLORMAPS[name]()


def normalize(field):
    """Rescale a field to [0, 1] by its own min/max (flat fields map to 0)."""
    lo = float(field.min())
    span = float(field.max()) - lo
    if span <= 1e-12:
        return np.zeros_like(field, dtype=np.float64)
    return (field - lo) / span


def apply_colormap(field, lut):
    """
    Apply a colormap LUT to a 2D float field.

    Args:
        field: 2D numpy array with values in [0, 1]
        lut: (256, 3) uint8 colormap lookup table

    Returns:
        (H, W, 3) uint8 RGB image
    """
    indices = (np.clip(field, 0, 1) * 255).astype(np.uint8)
    return lut[indices]


def render_slice(slice_xz, lut, size):
    """Colorize an (x, z) morphogen slice into a (size, size, 3) image.

    The image is drawn with the anterior end (x = 0) at the top.
    """
    rgb = apply_colormap(normalize(slice_xz), lut)
    rows = max(1, size // rgb.shape[0])
    cols = max(1, size // rgb.shape[1])
    rgb = np.repeat(np.repeat(rgb, rows, axis=0), cols, axis=1)
    out = np.zeros((size, size, 3), dtype=np.uint8)
    h, w = min(size, rgb.shape[0]), min(size, rgb.shape[1])
    out[:h, :w] = rgb[:h, :w]
    return out


def draw_segment_bounds(rgb, segments, color=(255, 255, 255)):
    """Draw a horizontal line at each segment's AP position (in place)."""
    size = rgb.shape[0]
    for _, position, _, _ in segments:
        row = min(size - 1, int(position * (size - 1)))
        rgb[row, ::2] = color
    return rgb


def draw_particles(rgb, positions, types, colors, bounds):
    """Plot particles top-down (z down the image, x across) in place.

    Args:
        rgb: (H, W, 3) uint8 image
        positions: (N, 3) engine-space positions
        types: (N,) type indices (negative = skip)
        colors: Per-type RGB color hints
        bounds: Engine bounds (width, height, length)
    """
    if len(types) == 0:
        return rgb
    h, w = rgb.shape[:2]
    half = np.maximum(np.asarray(bounds, dtype=np.float64) * 0.5, 1e-6)
    live = types >= 0
    pos = positions[live]
    t = types[live]
    cols = np.clip(((pos[:, 0] / half[0]) * 0.5 + 0.5) * (w - 1), 0, w - 1).astype(np.int64)
    rows = np.clip(((pos[:, 2] / half[2]) * 0.5 + 0.5) * (h - 1), 0, h - 1).astype(np.int64)
    palette = np.asarray(colors, dtype=np.uint8)
    rgb[rows, cols] = palette[t]
    return rgb


def compose_frame(published, morphogen, lut, size=512, snapshot=None, bounds=None):
    """Full frame from a simulator's published snapshot.

    Args:
        published: DevelopmentSimulator.latest_snapshot() dict
        morphogen: Name of the morphogen slice to show
        lut: Colormap LUT (None = tint by the morphogen's color)
        size: Output image size in pixels
        snapshot: Optional ParticleSnapshot to overlay
        bounds: Engine bounds for the particle overlay
    """
    slice_xz = published["slices"][morphogen]
    if lut is None:
        lut = tint(published["morphogen_colors"][morphogen])
    rgb = render_slice(slice_xz, lut, size)
    draw_segment_bounds(rgb, published["segments"], color=(90, 90, 90))
    if snapshot is not None and bounds is not None:
        draw_particles(rgb, snapshot.positions, snapshot.type_indices,
                       published["cell_colors"], bounds)
    return rgb
