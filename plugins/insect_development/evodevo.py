"""
Evo-Devo Transforms

Per-tick structural and kinetic perturbations layered on the body plan:

- Homeotic transformation: occasionally a trunk segment takes over the
  identity (appendages, size, allowed cell types) of a neighbor while
  keeping its own position.
- Heterochrony: rescales division/differentiation/migration rates by a
  signed timing factor.
- Allometric growth: during Embryo and Larva, grows or shrinks the segment
  ranges the body plan names.
"""

import logging
from collections import deque

import numpy as np
from .stages import DevelopmentalStage
from .presets import LAST

logger = logging.getLogger(__name__)

HOMEOTIC_WINDOW = (0.3, 0.7)
HOMEOTIC_MIN_RATE = 0.01
TRANSFORMATION_LOG_SIZE = 256
HETEROCHRONY_DEADBAND = 0.1
ALLOMETRIC_MIN_FACTOR = 0.1
SIZE_LIMITS = (0.3, 2.0)

# rate name -> (weight, min, max)
HETEROCHRONY_RULES = {
    "division_rate": (0.5, 0.01, 0.3),
    "differentiation_rate": (0.7, 0.01, 0.3),
    "migration_rate": (0.3, 0.01, 0.5),
}

GROWTH_STAGES = (DevelopmentalStage.EMBRYO, DevelopmentalStage.LARVA)


class EvoDevoController:
    """Homeotic, heterochronic and allometric perturbations.

    Args:
        homeotic_rate: Transformation chance per unit time (0 disables)
        heterochrony: Signed timing factor in [-1, 1]
        allometric_growth: Growth factor (below 0.1 disables)
        constraints: Clamp segment sizes to SIZE_LIMITS
        growth_rules: Rules from presets.growth_rules()
        seed: RNG seed
    """

    def __init__(self, homeotic_rate=0.0, heterochrony=0.0, allometric_growth=0.5,
                 constraints=True, growth_rules=(), seed=None):
        self.homeotic_rate = homeotic_rate
        self.heterochrony = heterochrony
        self.allometric_growth = allometric_growth
        self.constraints = constraints
        self.growth_rules = list(growth_rules)
        self.rng = np.random.default_rng(seed)
        # (target, source), most recent last
        self.transformations = deque(maxlen=TRANSFORMATION_LOG_SIZE)

    def reseed(self, seed):
        self.rng = np.random.default_rng(seed)
        self.transformations.clear()

    def set_params(self, **kwargs):
        for key in ("homeotic_rate", "heterochrony", "allometric_growth", "constraints"):
            if key in kwargs:
                setattr(self, key, kwargs[key])
        if "growth_rules" in kwargs:
            self.growth_rules = list(kwargs["growth_rules"])

    def get_params(self):
        return {
            "homeotic_rate": self.homeotic_rate,
            "heterochrony": self.heterochrony,
            "allometric_growth": self.allometric_growth,
            "constraints": self.constraints,
        }

    def apply(self, segments, stages, progress, dt):
        """Run all three transforms for one tick."""
        if self.homeotic_rate > 0:
            self.apply_homeotic(segments, progress, dt)
        if abs(self.heterochrony) > HETEROCHRONY_DEADBAND:
            self.apply_heterochrony(stages)
        if self.allometric_growth > 0:
            self.apply_allometric(segments, stages.stage, dt)

    # -----------------------------------------------------------------------
    # Homeotic transformation
    # -----------------------------------------------------------------------

    def apply_homeotic(self, segments, progress, dt):
        """Maybe transform one segment. Returns (target, source) or None."""
        if self.homeotic_rate <= HOMEOTIC_MIN_RATE:
            return None
        lo, hi = HOMEOTIC_WINDOW
        if not lo < progress < hi:
            return None
        if self.rng.random() >= self.homeotic_rate * dt:
            return None

        # Head segments and the last segment are never targets
        if len(segments) - 2 <= 3:
            return None
        index = int(self.rng.integers(3, len(segments) - 2))
        anteriorize = self.rng.random() < 0.5

        if anteriorize and index > 3:
            source = index - 1
        elif not anteriorize and index < len(segments) - 1:
            source = index + 1
        else:
            return None
        return self.transform_segment(segments, index, source)

    def transform_segment(self, segments, target, source):
        """Copy the source segment's identity onto the target, keeping position."""
        if not (0 <= target < len(segments) and 0 <= source < len(segments)):
            return None
        segments[target].copy_identity_from(segments[source])
        self.transformations.append((target, source))
        logger.info("Homeotic transformation: segment %d (%s) -> identity of %d (%s)",
                    target, segments[target].name, source, segments[source].name)
        return target, source

    # -----------------------------------------------------------------------
    # Heterochrony
    # -----------------------------------------------------------------------

    def apply_heterochrony(self, stages):
        f = self.heterochrony
        if abs(f) < HETEROCHRONY_DEADBAND:
            return
        for name, (weight, lo, hi) in HETEROCHRONY_RULES.items():
            value = getattr(stages, name) * (1.0 + f * weight)
            setattr(stages, name, min(max(value, lo), hi))

    # -----------------------------------------------------------------------
    # Allometric growth
    # -----------------------------------------------------------------------

    def apply_allometric(self, segments, stage, dt):
        if self.allometric_growth < ALLOMETRIC_MIN_FACTOR or not segments:
            return
        if stage not in GROWTH_STAGES:
            return
        amount = self.allometric_growth * dt * 0.1
        for rule in self.growth_rules:
            if rule[0] == "segment":
                _, index, weight = rule
                self.grow_segment(segments, index, amount * weight)
            else:
                _, start, end, weight = rule
                self.grow_range(segments, start, end, amount * weight)

    def grow_segment(self, segments, index, amount):
        if not 0 <= index < len(segments):
            return
        size = segments[index].size + amount
        if self.constraints:
            size = min(max(size, SIZE_LIMITS[0]), SIZE_LIMITS[1])
        segments[index].size = size

    def grow_range(self, segments, start, end, amount):
        last = len(segments) - 1
        if end == LAST:
            end = last
        start = min(max(start, 0), last)
        end = min(max(end, 0), last)
        for i in range(start, end + 1):
            self.grow_segment(segments, i, amount)
