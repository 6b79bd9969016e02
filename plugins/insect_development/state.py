"""
Simulation State

The single owned object holding everything a tick mutates: the morphogen
field, the gene network, the segment array, the interaction rules, the
segment buckets, the stage clock and the pattern/evo-devo layers. Components
receive it (or the pieces they need) explicitly; nothing lives in module
globals.
"""

import numpy as np

from .field import MorphogenField
from .genes import GeneNetwork
from .patterns import PatternTarget, build_modules
from .presets import apply_local_morphogens, apply_segment_overrides
from .segments import build_segments


class SimulationState:
    """Mutable state of one simulation run.

    Args:
        plan: Resolved body plan (presets.resolve_body_plan)
        morphogens: Morphogen templates (copied, never mutated)
        genes: Gene templates (copied, never mutated)
        resolution: Field resolution (res_x, res_y, res_z)
        stages: StageController
        evodevo: EvoDevoController
        seed: Seed for the division RNG

    Raises:
        ValueError: if a body dimension is not positive
    """

    def __init__(self, plan, morphogens, genes, resolution, stages, evodevo, seed=None):
        self.plan = plan
        self.body = dict(plan["body"])
        bad = {k: v for k, v in self.body.items() if not v > 0}
        if bad:
            raise ValueError(f"Body dimensions must be positive, got {bad!r}")
        self.pattern = dict(plan["pattern"])
        self.structures = dict(plan["structures"])

        self.segments = build_segments(plan["segment_count"])
        apply_segment_overrides(self.segments, plan["segment_overrides"])
        apply_local_morphogens(self.segments, plan.get("local_morphogens", ()))

        self.field = MorphogenField([m.copy() for m in morphogens], resolution)
        self.genes = GeneNetwork([g.copy() for g in genes])
        self.genes.reset()

        self.stages = stages
        self.evodevo = evodevo
        self.target = PatternTarget(self.field, self.genes)
        self.modules = build_modules(self.pattern, self.structures)

        self.rules = []
        self.buckets = [np.zeros(0, dtype=np.int64) for _ in self.segments]
        self.rng = np.random.default_rng(seed)
        self.tick = 0
        self.progress = 0.0
        self.snapshot = None

    @property
    def dims(self):
        """Body (width, height, length), the order the engine bounds use."""
        return (self.body["width"], self.body["height"], self.body["length"])

    def bucket_counts(self):
        return [int(len(b)) for b in self.buckets]

    def fingerprint(self):
        """Comparable copy of the state (field, segments, rules, clock)."""
        return {
            "grid": self.field.grid.copy(),
            "concentrations": [m.concentration for m in self.field.morphogens],
            "expressed": [g.is_expressed for g in self.genes],
            "segments": [s.identity() for s in self.segments],
            "rules": [r.as_tuple() for r in self.rules],
            "buckets": self.bucket_counts(),
            "stage": self.stages.stage,
            "age": self.stages.age,
            "tick": self.tick,
        }
