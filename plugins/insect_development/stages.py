"""
Developmental Stage Controller

Five-state machine driven by developmental age:

  age < 10  Egg
  age < 30  Embryo
  age < 60  Larva
  age < 90  Pupa
  else      Adult

Each stage owns a kinetic bundle that is pushed to the particle engine every
tick, and a slice of the [0, 1] progress range. Progress is piecewise linear
in age and non-decreasing, so the pattern layer sees one smooth clock:

  Egg     [ 0, 10) -> [0.0, 0.2)
  Embryo  [10, 30) -> [0.2, 0.4)
  Larva   [30, 60) -> [0.4, 0.7)
  Pupa    [60, 90) -> [0.7, 1.0)
  Adult            -> 1.0

Every stage, Egg included, carries all three rates. The Egg bundle sets
differentiation_rate to 0.1, the same value the controller starts with, so
each push restores it rather than leaving whatever heterochrony scaled it
to on the previous tick.
"""

import enum
import logging

logger = logging.getLogger(__name__)


class DevelopmentalStage(enum.IntEnum):
    EGG = 0
    EMBRYO = 1
    LARVA = 2
    PUPA = 3
    ADULT = 4

    @property
    def label(self):
        return self.name.capitalize()


# Upper age bound of each stage (Adult is open-ended)
STAGE_THRESHOLDS = (
    (DevelopmentalStage.EGG, 10.0),
    (DevelopmentalStage.EMBRYO, 30.0),
    (DevelopmentalStage.LARVA, 60.0),
    (DevelopmentalStage.PUPA, 90.0),
)

# (age_start, age_end, progress_start, progress_end)
_PROGRESS_MAP = {
    DevelopmentalStage.EGG: (0.0, 10.0, 0.0, 0.2),
    DevelopmentalStage.EMBRYO: (10.0, 30.0, 0.2, 0.4),
    DevelopmentalStage.LARVA: (30.0, 60.0, 0.4, 0.7),
    DevelopmentalStage.PUPA: (60.0, 90.0, 0.7, 1.0),
}

# Age that SetStage jumps to for each stage
STAGE_CANONICAL_AGE = {
    DevelopmentalStage.EGG: 5.0,
    DevelopmentalStage.EMBRYO: 20.0,
    DevelopmentalStage.LARVA: 45.0,
    DevelopmentalStage.PUPA: 75.0,
    DevelopmentalStage.ADULT: 100.0,
}

STAGE_PARAMS = {
    DevelopmentalStage.EGG: {
        "interaction_strength": 2.0, "dampening": 0.9, "interaction_radius": 3.0,
        "division_rate": 0.1, "differentiation_rate": 0.1, "migration_rate": 0.05,
        "bounds_factor": 0.3,
    },
    DevelopmentalStage.EMBRYO: {
        "interaction_strength": 1.5, "dampening": 0.92, "interaction_radius": 5.0,
        "division_rate": 0.08, "differentiation_rate": 0.15, "migration_rate": 0.1,
        "bounds_factor": 0.5,
    },
    DevelopmentalStage.LARVA: {
        "interaction_strength": 1.2, "dampening": 0.95, "interaction_radius": 8.0,
        "division_rate": 0.05, "differentiation_rate": 0.1, "migration_rate": 0.15,
        "bounds_factor": 0.7,
    },
    DevelopmentalStage.PUPA: {
        "interaction_strength": 1.8, "dampening": 0.9, "interaction_radius": 12.0,
        "division_rate": 0.02, "differentiation_rate": 0.2, "migration_rate": 0.25,
        "bounds_factor": 0.9,
    },
    DevelopmentalStage.ADULT: {
        "interaction_strength": 1.0, "dampening": 0.98, "interaction_radius": 15.0,
        "division_rate": 0.01, "differentiation_rate": 0.05, "migration_rate": 0.1,
        "bounds_factor": 1.0,
    },
}

# Rate fields before the first stage push
INITIAL_RATES = {
    "division_rate": 0.05,
    "differentiation_rate": 0.1,
    "migration_rate": 0.2,
}


def stage_for_age(age):
    """Stage that a developmental age falls into."""
    for stage, upper in STAGE_THRESHOLDS:
        if age < upper:
            return stage
    return DevelopmentalStage.ADULT


def progress_for_age(age):
    """Normalized developmental progress in [0, 1] for an age."""
    stage = stage_for_age(age)
    if stage == DevelopmentalStage.ADULT:
        return 1.0
    a0, a1, p0, p1 = _PROGRESS_MAP[stage]
    t = (max(age, a0) - a0) / (a1 - a0)
    return p0 + (p1 - p0) * min(t, 1.0)


def parse_stage(value):
    """Accept a DevelopmentalStage, its int value or its name."""
    if isinstance(value, DevelopmentalStage):
        return value
    if isinstance(value, str):
        try:
            return DevelopmentalStage[value.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown developmental stage: {value!r}") from None
    return DevelopmentalStage(value)


class StageController:
    """Tracks age and stage, and owns the division/differentiation/migration rates.

    The rate fields are reset to the stage bundle on every tick by apply();
    evo-devo heterochrony rescales them afterwards within the same tick.
    """

    def __init__(self, development_speed=1.0):
        self.development_speed = development_speed
        self.reset()

    def reset(self):
        self.age = 0.0
        self.stage = DevelopmentalStage.EGG
        self.division_rate = INITIAL_RATES["division_rate"]
        self.differentiation_rate = INITIAL_RATES["differentiation_rate"]
        self.migration_rate = INITIAL_RATES["migration_rate"]

    @property
    def params(self):
        return STAGE_PARAMS[self.stage]

    def advance(self, dt):
        """Advance age by dt * development_speed and update the stage.

        Returns:
            True if the stage changed
        """
        self.age += dt * self.development_speed
        new_stage = stage_for_age(self.age)
        if new_stage != self.stage:
            logger.info("Stage %s -> %s at age %.2f",
                        self.stage.label, new_stage.label, self.age)
            self.stage = new_stage
            return True
        return False

    def set_stage(self, stage):
        """Jump to a stage, moving age to that stage's canonical value."""
        stage = parse_stage(stage)
        self.stage = stage
        self.age = STAGE_CANONICAL_AGE[stage]
        logger.info("Stage set to %s (age %.1f)", stage.label, self.age)

    def progress(self):
        return progress_for_age(self.age)

    def bounds(self, dims, bounds_multiplier=10.0):
        """Spatial bounds (width, height, length) scaled for the current stage."""
        factor = self.params["bounds_factor"] * bounds_multiplier
        return tuple(float(d) * factor for d in dims)

    def apply(self, engine, dims, bounds_multiplier=10.0):
        """Push the stage bundle to the engine and reset the local rate fields.

        Args:
            engine: ParticleEngine (or None to update rates only)
            dims: Body (width, height, length)
            bounds_multiplier: Global scale on the spatial bounds
        """
        p = self.params
        self.division_rate = p["division_rate"]
        self.differentiation_rate = p["differentiation_rate"]
        self.migration_rate = p["migration_rate"]
        if engine is not None:
            engine.set_kinetics(p["interaction_strength"], p["dampening"],
                                p["interaction_radius"])
            engine.set_bounds(self.bounds(dims, bounds_multiplier))

    def rates(self):
        return {
            "division_rate": self.division_rate,
            "differentiation_rate": self.differentiation_rate,
            "migration_rate": self.migration_rate,
        }
