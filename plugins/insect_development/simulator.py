"""
DevelopmentSimulator: headless developmental core

Drives one insect body-plan simulation against a particle engine. Each tick
runs a fixed pipeline:

  1. drain queued control calls (set_stage, activate_morphogen, ...)
  2. stage: advance age, push kinetics and bounds, reset rate fields
  3. field: diffuse/decay, then segment-local injection
  4. genes: evaluate expression from field averages
  5. pattern modules, then evo-devo transforms
  6. engine snapshot; if present, regenerate interaction rules and
     rebuild segment buckets
  7. cell division -> spawn target updates
  8. step the engine and publish a read-only snapshot

Control calls may come from any thread. They are queued and applied at the
start of the next tick, before the diffusion pass. A queued reset rebuilds
the whole state and ends that tick without advancing.

Usage:
    from insect_development.simulator import DevelopmentSimulator
    sim = DevelopmentSimulator("diptera", seed=1)
    for _ in range(100):
        sim.step(0.1)
    print(sim.stats)
"""

import logging
import threading

from .cell_types import (
    CELL_TYPES, cell_type_descriptors, color_hint, validate_cell_types,
)
from .evodevo import EvoDevoController
from .interactions import InteractionMatrixGenerator
from .particles import ScatterParticleEngine
from .population import maybe_divide
from .presets import (
    DEFAULT_PRESET, default_genes, default_morphogens, growth_rules,
    resolve_body_plan,
)
from .segments import DEFAULT_AXIS, assign_segments
from .stages import StageController, parse_stage
from .state import SimulationState
from .field import DEFAULT_RESOLUTION

logger = logging.getLogger(__name__)

# Keys set_params() forwards to the evo-devo controller
EVODEVO_KEYS = ("homeotic_rate", "heterochrony", "allometric_growth", "constraints")

# Keys set_params() writes into the live pattern dict
PATTERN_KEYS = (
    "anterior_dominance", "segmentation_strength", "appendage_formation_rate",
    "body_symmetry", "specialization_rate",
)


def _check_bounds_multiplier(value):
    if not value > 0:
        raise ValueError(f"bounds_multiplier must be positive, got {value!r}")


class DevelopmentSimulator:
    """Headless insect development simulation.

    Args:
        body_plan: Preset key (see presets.PRESET_ORDER)
        engine: ParticleEngine to drive (default: ScatterParticleEngine)
        seed: Seed for every RNG (division, evo-devo, reference engine)
        resolution: Morphogen field resolution (res_x, res_y, res_z)
        morphogens: Morphogen templates (default: presets.default_morphogens())
        genes: Gene templates (default: presets.default_genes())
        cell_types: Cell-type table (default: all ten types)
        strict_names: Raise KeyError for unknown morphogen/gene names
            instead of ignoring them
        spawn_multiplier: Scales initial cell populations
        bounds_multiplier: Scales the engine's spatial bounds
        development_speed: Age advanced per unit of dt
        body_axis: Primary (anterior-posterior) axis in engine space
        **evodevo: homeotic_rate, heterochrony, allometric_growth, constraints
    """

    def __init__(self, body_plan=DEFAULT_PRESET, engine=None, seed=None,
                 resolution=DEFAULT_RESOLUTION, morphogens=None, genes=None,
                 cell_types=CELL_TYPES, strict_names=False, spawn_multiplier=1.0,
                 bounds_multiplier=10.0, development_speed=1.0,
                 body_axis=DEFAULT_AXIS, **evodevo):
        validate_cell_types(cell_types)
        _check_bounds_multiplier(bounds_multiplier)
        self.cell_types = tuple(cell_types)
        self.seed = seed
        self.resolution = tuple(resolution)
        self.strict_names = strict_names
        self.spawn_multiplier = spawn_multiplier
        self.bounds_multiplier = bounds_multiplier
        self.body_axis = tuple(body_axis)

        self.morphogen_templates = list(morphogens) if morphogens is not None else default_morphogens()
        self.gene_templates = list(genes) if genes is not None else default_genes()
        self._morphogen_names = {m.name for m in self.morphogen_templates}
        self._gene_names = {g.name for g in self.gene_templates}

        self.engine = engine if engine is not None else ScatterParticleEngine(seed=seed)
        self.generator = InteractionMatrixGenerator(self.cell_types)
        self.stages = StageController(development_speed)
        self.evodevo = EvoDevoController(seed=seed)
        self.evodevo.set_params(**{k: v for k, v in evodevo.items() if k in EVODEVO_KEYS})

        self.plan = resolve_body_plan(body_plan)
        self.state = None

        # Control queue (any thread) and tick lock (one tick at a time)
        self._pending = []
        self._pending_lock = threading.Lock()
        self._tick_lock = threading.RLock()

        # Published snapshot for readers on other threads
        self._published = None
        self._publish_lock = threading.Lock()

        self._initialize()

    # -----------------------------------------------------------------------
    # Initialization
    # -----------------------------------------------------------------------

    def _initialize(self):
        """Rebuild all state from the current body plan (full reset)."""
        self.stages.reset()
        self.evodevo.reseed(self.seed)
        self.evodevo.set_params(growth_rules=growth_rules(self.plan))

        state = SimulationState(self.plan, self.morphogen_templates, self.gene_templates,
                                self.resolution, self.stages, self.evodevo, seed=self.seed)
        if not state.segments:
            raise ValueError("Body plan produced no segments")

        state.rules = self.generator.base_rules()
        self.state = state

        self.engine.set_cell_types(cell_type_descriptors(self.spawn_multiplier, self.cell_types))
        self.engine.set_rules(state.rules)
        self.stages.apply(self.engine, state.dims, self.bounds_multiplier)
        self.engine.reset()

        logger.info("Initialized %s: %d segments, %d morphogens, %d genes, %d rules",
                    self.plan["name"], len(state.segments), len(state.field.morphogens),
                    len(state.genes), len(state.rules))
        self._publish()

    # -----------------------------------------------------------------------
    # Control surface (thread-safe, applied at the start of the next tick)
    # -----------------------------------------------------------------------

    def _enqueue(self, op, *args):
        with self._pending_lock:
            self._pending.append((op, args))

    def set_stage(self, stage):
        """Jump to a developmental stage (age moves to its canonical value)."""
        self._enqueue("set_stage", parse_stage(stage))

    def activate_morphogen(self, name, amount):
        """Add `amount` uniformly to the named morphogen's grid."""
        if self.strict_names and name not in self._morphogen_names:
            raise KeyError(f"Unknown morphogen: {name!r}")
        self._enqueue("activate_morphogen", name, float(amount))

    def express_gene(self, name, value):
        """Force a gene's expression until the next evaluation pass."""
        if self.strict_names and name not in self._gene_names:
            raise KeyError(f"Unknown gene: {name!r}")
        self._enqueue("express_gene", name, bool(value))

    def reset(self):
        """Request a full reinitialization."""
        self._enqueue("reset")

    def select_body_plan(self, key):
        """Switch body plan; applied atomically together with a full reset.

        Raises:
            ValueError: if the key is unknown
        """
        plan = resolve_body_plan(key)
        self._enqueue("select_body_plan", plan)

    def pending(self):
        with self._pending_lock:
            return len(self._pending)

    def apply_pending(self):
        """Apply queued control calls now. Returns True if a reset ran."""
        with self._tick_lock:
            return self._drain()

    def _drain(self):
        with self._pending_lock:
            pending, self._pending = self._pending, []

        did_reset = False
        for op, args in pending:
            if op == "reset":
                self._initialize()
                did_reset = True
            elif op == "select_body_plan":
                self.plan = args[0]
                logger.info("Body plan -> %s", self.plan["name"])
                self._initialize()
                did_reset = True
            elif op == "set_stage":
                self.stages.set_stage(args[0])
                self.state.progress = self.stages.progress()
            elif op == "activate_morphogen":
                self.state.field.activate(*args)
            elif op == "express_gene":
                self.state.genes.express(*args)
        return did_reset

    # -----------------------------------------------------------------------
    # Tick
    # -----------------------------------------------------------------------

    def step(self, dt):
        """Run one simulation tick of length dt."""
        with self._tick_lock:
            if self._drain():
                # A reset reproduces the fresh state exactly; nothing advances
                return

            st = self.state
            engine = self.engine

            self.stages.advance(dt)
            self.stages.apply(engine, st.dims, self.bounds_multiplier)

            st.field.diffuse(dt)
            st.field.inject_segments(st.segments, dt)

            st.genes.evaluate(st.field)

            progress = self.stages.progress()
            for module in st.modules:
                module.update(progress, st.target)
            self.evodevo.apply(st.segments, self.stages, progress, dt)

            snapshot = engine.snapshot()
            st.snapshot = snapshot
            if snapshot is not None:
                rules, replaced = self.generator.regenerate(st.rules, st.genes)
                if replaced:
                    st.rules = rules
                    engine.set_rules(rules)
                st.buckets = assign_segments(snapshot, self.body_axis,
                                             self.body_length, len(st.segments))

            maybe_divide(engine, self.stages.stage, self.stages.division_rate, dt, st.rng,
                         self.cell_types)

            st.progress = self.stages.progress()
            engine.step(dt)
            st.tick += 1
            self._publish()

    def run(self, steps, dt=0.1):
        for _ in range(steps):
            self.step(dt)
        return self.stats

    # -----------------------------------------------------------------------
    # Parameters
    # -----------------------------------------------------------------------

    @property
    def body_length(self):
        """Body length in engine units (the z extent of the current bounds)."""
        return self.stages.bounds(self.state.dims, self.bounds_multiplier)[2]

    def set_params(self, **kwargs):
        """Update runtime parameters. Unknown keys are ignored.

        spawn_multiplier takes effect at the next reset.

        Raises:
            ValueError: if bounds_multiplier is not positive (nothing is
                changed)
        """
        if "bounds_multiplier" in kwargs:
            _check_bounds_multiplier(kwargs["bounds_multiplier"])
        with self._tick_lock:
            if "development_speed" in kwargs:
                self.stages.development_speed = float(kwargs["development_speed"])
            if "bounds_multiplier" in kwargs:
                self.bounds_multiplier = float(kwargs["bounds_multiplier"])
            if "spawn_multiplier" in kwargs:
                self.spawn_multiplier = float(kwargs["spawn_multiplier"])
            if "strict_names" in kwargs:
                self.strict_names = bool(kwargs["strict_names"])
            self.evodevo.set_params(**{k: v for k, v in kwargs.items() if k in EVODEVO_KEYS})
            for key in PATTERN_KEYS:
                if key in kwargs:
                    self.state.pattern[key] = float(kwargs[key])

    def get_params(self):
        params = {
            "body_plan": self.plan["key"],
            "development_speed": self.stages.development_speed,
            "bounds_multiplier": self.bounds_multiplier,
            "spawn_multiplier": self.spawn_multiplier,
            "strict_names": self.strict_names,
            "seed": self.seed,
        }
        params.update(self.evodevo.get_params())
        params.update(self.state.pattern)
        return params

    # -----------------------------------------------------------------------
    # Reads
    # -----------------------------------------------------------------------

    def morphogen_averages(self):
        """{name: mean concentration} for active morphogens."""
        averages = self.state.field.averages()
        return {m.name: float(averages[i])
                for i, m in enumerate(self.state.field.morphogens) if m.active}

    def _publish(self):
        st = self.state
        field = st.field
        published = {
            "tick": st.tick,
            "age": self.stages.age,
            "stage": self.stages.stage.label,
            "progress": st.progress,
            "averages": self.morphogen_averages(),
            "morphogen_colors": {m.name: m.color for m in field.morphogens if m.active},
            "slices": {m.name: field.slice(i)
                       for i, m in enumerate(field.morphogens) if m.active},
            "cell_colors": [color_hint(ct) for ct in self.cell_types],
            "expressed_genes": st.genes.expressed_names(),
            "segments": [(s.name, s.relative_position, s.size, s.appendage_pairs)
                         for s in st.segments],
            "segment_counts": st.bucket_counts(),
            "particles": st.snapshot,
            "bounds": self.engine.bounds,
        }
        with self._publish_lock:
            self._published = published

    def latest_snapshot(self):
        """Most recent published snapshot (safe to call from any thread)."""
        with self._publish_lock:
            return self._published

    @property
    def stats(self):
        """Return current simulation statistics."""
        st = self.state
        return {
            "body_plan": self.plan["key"],
            "tick": st.tick,
            "age": self.stages.age,
            "stage": self.stages.stage.label,
            "progress": st.progress,
            "expressed_genes": st.genes.expressed_names(),
            "rules": len(st.rules),
            "segment_counts": st.bucket_counts(),
            **self.stages.rates(),
        }

