"""
Scatter Particle Engine

A small numpy reference engine. Particles live in an axis-aligned box
centered on the origin with extents given by the bounds vector
(width, height, length) -> (x, y, z). Each step every particle is pulled
toward the centroid of every cell type, weighted by the interaction matrix,
damped, jittered, and confined to the box. Populations grow toward the
spawn targets a few particles per step.

It is not a physics engine; it exists so the developmental core can run
headless and be observed end to end.
"""

import numpy as np
from .engine_base import ParticleEngine, ParticleSnapshot
from .interactions import to_matrix


class ScatterParticleEngine(ParticleEngine):

    engine_name = "scatter"
    engine_label = "Scatter (reference)"

    def __init__(self, max_particles=4000, spawn_per_step=8, jitter=0.05, seed=None):
        super().__init__()
        self.max_particles = max_particles
        self.spawn_per_step = spawn_per_step
        self.jitter = jitter
        self.seed = seed
        self.rng = np.random.default_rng(seed)
        self._matrix = np.zeros((0, 0), dtype=np.float64)
        self._clear()

    def _clear(self):
        self.positions = np.zeros((0, 3), dtype=np.float64)
        self.velocities = np.zeros((0, 3), dtype=np.float64)
        self.types = np.zeros(0, dtype=np.int64)
        self.generation = 0

    def set_cell_types(self, descriptors):
        super().set_cell_types(descriptors)
        self._matrix = to_matrix(self.rules, len(self.cell_types))

    def set_rules(self, rules):
        super().set_rules(rules)
        self._matrix = to_matrix(self.rules, len(self.cell_types))

    def reset(self):
        self.rng = np.random.default_rng(self.seed)
        self._clear()
        self._spawn(fill=True)

    @property
    def half_extent(self):
        return np.asarray(self.bounds, dtype=np.float64) * 0.5

    # -----------------------------------------------------------------------
    # Population
    # -----------------------------------------------------------------------

    def _deficits(self):
        n_types = len(self.cell_types)
        counts = np.bincount(self.types, minlength=n_types)[:n_types]
        targets = np.array([int(round(ct["spawn_count"])) for ct in self.cell_types],
                           dtype=np.int64)
        return np.maximum(targets - counts, 0)

    def _spawn(self, fill=False):
        if not self.cell_types:
            return
        deficits = self._deficits()
        room = self.max_particles - len(self.types)
        if room <= 0:
            return
        if not fill:
            deficits = np.minimum(deficits, self.spawn_per_step)
        new_types = np.repeat(np.arange(len(deficits)), deficits)[:room]
        if new_types.size == 0:
            return
        half = self.half_extent
        pos = self.rng.uniform(-1.0, 1.0, size=(new_types.size, 3)) * half
        self.positions = np.vstack([self.positions, pos])
        self.velocities = np.vstack([self.velocities, np.zeros_like(pos)])
        self.types = np.concatenate([self.types, new_types])

    # -----------------------------------------------------------------------
    # Dynamics
    # -----------------------------------------------------------------------

    def step(self, dt):
        self._spawn()
        n = len(self.types)
        if n == 0:
            self.generation += 1
            return

        n_types = len(self.cell_types)
        centroids = np.zeros((n_types, 3), dtype=np.float64)
        counts = np.bincount(self.types, minlength=n_types)[:n_types]
        for axis in range(3):
            centroids[:, axis] = np.bincount(self.types, weights=self.positions[:, axis],
                                             minlength=n_types)[:n_types]
        present = counts > 0
        centroids[present] /= counts[present, None]

        # Pull toward each type's centroid, weighted by attraction
        weights = self._matrix[self.types][:, present]              # (n, k)
        offsets = centroids[present][None, :, :] - self.positions[:, None, :]
        radius = max(self.kinetics["interaction_radius"], 1e-6)
        force = (weights[:, :, None] * offsets).sum(axis=1) / radius
        force *= self.kinetics["interaction_strength"]

        noise = self.rng.normal(0.0, self.jitter, size=self.positions.shape)
        self.velocities = self.velocities * self.kinetics["dampening"] + (force + noise) * dt
        self.positions += self.velocities * dt

        half = self.half_extent
        outside = np.abs(self.positions) > half
        self.velocities[outside] *= -0.5
        np.clip(self.positions, -half, half, out=self.positions)
        self.generation += 1

    def snapshot(self):
        return ParticleSnapshot(self.positions.copy(), self.velocities.copy(),
                                self.types.copy())
