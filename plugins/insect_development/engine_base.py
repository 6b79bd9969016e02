"""
Abstract Base Class for Particle Engines

The developmental core never integrates particles itself. It drives an
engine through this interface: cell-type descriptors, the interaction rule
set, global kinetics, spatial bounds and spawn targets go out; particle
snapshots come back.
"""

from abc import ABC, abstractmethod
import numpy as np


class ParticleSnapshot:
    """Positions, velocities and type indices of the live particles.

    Args:
        positions: (N, 3) float array
        velocities: (N, 3) float array
        type_indices: (N,) int array; negative marks an inactive slot
    """

    def __init__(self, positions, velocities, type_indices):
        self.positions = np.asarray(positions, dtype=np.float64).reshape(-1, 3)
        self.velocities = np.asarray(velocities, dtype=np.float64).reshape(-1, 3)
        self.type_indices = np.asarray(type_indices, dtype=np.int64).reshape(-1)

    def __len__(self):
        return len(self.type_indices)

    def counts(self, n_types):
        """Live particle count per type index."""
        live = self.type_indices[self.type_indices >= 0]
        return np.bincount(live, minlength=n_types)[:n_types]

    def copy(self):
        return ParticleSnapshot(self.positions.copy(), self.velocities.copy(),
                                self.type_indices.copy())


class ParticleEngine(ABC):
    """Base class for particle engines driven by the developmental core."""

    engine_name = ""    # e.g. "scatter"
    engine_label = ""   # e.g. "Scatter (reference)"

    def __init__(self):
        self.cell_types = []
        self.rules = []
        self.kinetics = {"interaction_strength": 1.0, "dampening": 0.95,
                         "interaction_radius": 5.0}
        self.bounds = (1.0, 1.0, 1.0)
        self.generation = 0

    def set_cell_types(self, descriptors):
        """Replace the cell-type table (list of {name, radius, mass, spawn_count, color})."""
        self.cell_types = [dict(d) for d in descriptors]

    def set_rules(self, rules):
        """Replace the whole interaction rule set."""
        self.rules = list(rules)

    def set_kinetics(self, interaction_strength, dampening, interaction_radius):
        self.kinetics = {
            "interaction_strength": interaction_strength,
            "dampening": dampening,
            "interaction_radius": interaction_radius,
        }

    def set_bounds(self, bounds):
        self.bounds = tuple(float(b) for b in bounds)

    def spawn_target(self, type_index):
        return self.cell_types[type_index]["spawn_count"]

    def update_spawn_target(self, type_index, count):
        """Request a new target population for one cell type."""
        if 0 <= type_index < len(self.cell_types):
            self.cell_types[type_index]["spawn_count"] = count

    @abstractmethod
    def step(self, dt):
        """Advance the particles by dt."""

    @abstractmethod
    def snapshot(self):
        """Return a ParticleSnapshot, or None if none is available."""

    @abstractmethod
    def reset(self):
        """Drop all particles and respawn from the current cell-type table."""

    @property
    def stats(self):
        """Return current engine statistics."""
        return {
            "generation": self.generation,
            "rules": len(self.rules),
            "bounds": self.bounds,
            **self.kinetics,
        }
