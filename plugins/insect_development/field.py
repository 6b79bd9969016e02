"""
Morphogen Field

A 4D concentration grid indexed by (morphogen, x, y, z) over normalized body
space: x runs anterior -> posterior, y ventral -> dorsal, z left -> right.

Each step every mobile morphogen relaxes toward the mean of its in-bounds
6-neighborhood and decays proportionally to its own concentration:

  next = c + (neighbor_mean - c) * diffusion_rate * dt - c * decay_rate * dt

Edge cells average only the neighbors that exist. The step reads the
pre-step grid and writes a shadow buffer, so no cell ever sees a partially
updated neighborhood. Concentrations are not clamped and may go negative.
"""

import logging
import numpy as np
from scipy.ndimage import convolve
from .segments import segment_column

logger = logging.getLogger(__name__)

DEFAULT_RESOLUTION = (32, 16, 32)

# Face-adjacent neighbors only (no diagonals, no center)
_NEIGHBOR_KERNEL = np.zeros((3, 3, 3), dtype=np.float64)
_NEIGHBOR_KERNEL[0, 1, 1] = _NEIGHBOR_KERNEL[2, 1, 1] = 1.0
_NEIGHBOR_KERNEL[1, 0, 1] = _NEIGHBOR_KERNEL[1, 2, 1] = 1.0
_NEIGHBOR_KERNEL[1, 1, 0] = _NEIGHBOR_KERNEL[1, 1, 2] = 1.0

GRADIENT_AP = "ap"
GRADIENT_DV = "dv"


def infer_gradient(name):
    """Initial gradient axis implied by a morphogen name (None if flat)."""
    if "Anterior" in name or "AP" in name:
        return GRADIENT_AP
    if "Dorsal" in name or "DV" in name:
        return GRADIENT_DV
    return None


class Morphogen:
    """A named diffusible signal.

    Args:
        name: Unique identifier (exact-match key for activation)
        concentration: Baseline level; also the strength used for
            segment-local injection when attached to a segment
        diffusion_rate: Relaxation rate toward the neighbor mean. Zero or
            negative marks the morphogen immobile and it is skipped entirely
            by the diffusion step (no decay either)
        decay_rate: Proportional loss per unit time
        target_cell_types: Cell types downstream consumers associate with it
        color: RGB display color
        active: Whether the morphogen is published to the visualization layer
        gradient: "ap", "dv" or None. Inferred from the name when omitted
    """

    def __init__(self, name, concentration=1.0, diffusion_rate=0.3,
                 decay_rate=0.05, target_cell_types=(), color=(255, 255, 255),
                 active=True, gradient="infer"):
        self.name = name
        self.concentration = concentration
        self.diffusion_rate = diffusion_rate
        self.decay_rate = decay_rate
        self.target_cell_types = tuple(target_cell_types)
        self.color = tuple(color)
        self.active = active
        self.gradient = infer_gradient(name) if gradient == "infer" else gradient

    def copy(self):
        return Morphogen(self.name, self.concentration, self.diffusion_rate,
                         self.decay_rate, self.target_cell_types, self.color,
                         self.active, self.gradient)

    def __repr__(self):
        return (f"Morphogen({self.name!r}, concentration={self.concentration}, "
                f"diffusion_rate={self.diffusion_rate}, decay_rate={self.decay_rate})")


class MorphogenField:
    """Concentration grid for a fixed list of morphogens.

    Args:
        morphogens: List of Morphogen (grid index = list index)
        resolution: (res_x, res_y, res_z) cell counts
    """

    def __init__(self, morphogens, resolution=DEFAULT_RESOLUTION):
        resolution = tuple(int(r) for r in resolution)
        if len(resolution) != 3 or min(resolution) < 1:
            raise ValueError(f"Field resolution must be three positive ints, got {resolution!r}")
        names = [m.name for m in morphogens]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate morphogen names: {names!r}")

        self.morphogens = list(morphogens)
        self.resolution = resolution
        self._index = {m.name: i for i, m in enumerate(self.morphogens)}

        shape = (len(self.morphogens),) + resolution
        self.grid = np.zeros(shape, dtype=np.float64)

        # Work buffers, allocated once
        self._shadow = np.empty(resolution, dtype=np.float64)
        self._neighbor_sum = np.empty(resolution, dtype=np.float64)
        self._neighbor_count = convolve(np.ones(resolution, dtype=np.float64),
                                        _NEIGHBOR_KERNEL, mode="constant", cval=0.0)
        self._has_neighbors = self._neighbor_count > 0

        self.initialize()

    @property
    def shape(self):
        return self.grid.shape

    def initialize(self):
        """Zero the grid and lay down the initial body-axis gradients."""
        self.grid[:] = 0.0
        res_x, res_y, _ = self.resolution
        for m, morphogen in enumerate(self.morphogens):
            if morphogen.gradient == GRADIENT_AP:
                # High at anterior
                profile = 1.0 - np.arange(res_x, dtype=np.float64) / res_x
                self.grid[m] = profile[:, None, None]
            elif morphogen.gradient == GRADIENT_DV:
                # High at dorsal
                profile = np.arange(res_y, dtype=np.float64) / res_y
                self.grid[m] = profile[None, :, None]

    # -----------------------------------------------------------------------
    # Lookup
    # -----------------------------------------------------------------------

    def index_of(self, name):
        """Grid index for an exact morphogen name, or None."""
        return self._index.get(name)

    def find(self, fragment):
        """First morphogen whose name contains `fragment`, or None."""
        for morphogen in self.morphogens:
            if fragment in morphogen.name:
                return morphogen
        return None

    # -----------------------------------------------------------------------
    # Dynamics
    # -----------------------------------------------------------------------

    def diffuse(self, dt):
        """Advance diffusion and decay for every mobile morphogen by dt."""
        for m, morphogen in enumerate(self.morphogens):
            if morphogen.diffusion_rate <= 0:
                continue
            current = self.grid[m]
            convolve(current, _NEIGHBOR_KERNEL, output=self._neighbor_sum,
                     mode="constant", cval=0.0)

            out = self._shadow
            np.divide(self._neighbor_sum, self._neighbor_count, out=out,
                      where=self._has_neighbors)
            out -= current
            out *= morphogen.diffusion_rate * dt
            out -= current * (morphogen.decay_rate * dt)
            out += current
            # A lone cell (1x1x1 grid) has nothing to exchange with
            np.copyto(out, current, where=~self._has_neighbors)

            np.copyto(current, out)

    def inject_segments(self, segments, dt):
        """Add each segment's local morphogens around its AP position.

        The injected amount is concentration * falloff * dt, where falloff
        drops linearly from 1 at the segment's grid column to 0 at
        ceil(size * res_x * 0.1) columns away, uniform across y and z.
        Local morphogens that are not part of this field are ignored.
        """
        res_x = self.resolution[0]
        for segment in segments:
            if not segment.local_morphogens:
                continue
            center, radius = segment_column(segment, res_x)
            lo = max(0, center - radius)
            hi = min(res_x, center + radius + 1)
            if lo >= hi:
                continue
            xs = np.arange(lo, hi)
            if radius > 0:
                falloff = 1.0 - np.clip(np.abs(xs - center) / radius, 0.0, 1.0)
            else:
                falloff = (xs == center).astype(np.float64)

            for local in segment.local_morphogens:
                m = self._index.get(local.name)
                if m is None:
                    continue
                amount = local.concentration * falloff * dt
                self.grid[m, lo:hi] += amount[:, None, None]

    def activate(self, name, amount):
        """Add `amount` uniformly to every cell of the named morphogen.

        The morphogen's baseline concentration is set to `amount` as well.

        Returns:
            True if the morphogen exists, False otherwise (no effect)
        """
        m = self._index.get(name)
        if m is None:
            logger.debug("activate: no morphogen named %r", name)
            return False
        self.morphogens[m].concentration = amount
        self.grid[m] += amount
        return True

    # -----------------------------------------------------------------------
    # Reads
    # -----------------------------------------------------------------------

    def average(self, index):
        """Arithmetic mean concentration over the whole grid of one morphogen."""
        return float(self.grid[index].mean())

    def averages(self):
        """Mean concentration of every morphogen, as a 1D array."""
        if not self.morphogens:
            return np.zeros(0, dtype=np.float64)
        return self.grid.reshape(len(self.morphogens), -1).mean(axis=1)

    def total(self, index):
        return float(self.grid[index].sum())

    def slice(self, index, y=None):
        """Horizontal (x, z) slice of one morphogen at height y (default mid)."""
        if y is None:
            y = self.resolution[1] // 2
        return self.grid[index, :, y, :].copy()
