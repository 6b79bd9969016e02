"""
Tests for the reference scatter engine and frame rendering.
"""

import numpy as np

from insect_development.cell_types import CellType, cell_type_descriptors, type_index
from insect_development.colormaps import (
    COLORMAP_ORDER, apply_colormap, compose_frame, get_colormap, normalize,
)
from insect_development.interactions import InteractionMatrixGenerator
from insect_development.particles import ScatterParticleEngine
from insect_development.simulator import DevelopmentSimulator


def _engine(**kwargs):
    engine = ScatterParticleEngine(seed=0, **kwargs)
    engine.set_cell_types(cell_type_descriptors())
    engine.set_rules(InteractionMatrixGenerator().base_rules())
    engine.set_bounds((6.0, 6.0, 20.0))
    return engine


def test_reset_fills_initial_populations():
    print("Testing scatter engine spawn...")
    engine = _engine()
    engine.reset()
    counts = engine.snapshot().counts(10)
    assert counts[type_index(CellType.STEM)] == 100
    assert counts.sum() == 320
    print(f"  ✓ {counts.sum()} particles")


def test_particles_stay_in_bounds():
    engine = _engine()
    engine.reset()
    for _ in range(50):
        engine.step(0.1)
    positions = engine.snapshot().positions
    assert np.all(np.abs(positions) <= np.array([3.0, 3.0, 10.0]) + 1e-9)
    assert engine.generation == 50


def test_spawn_target_growth_is_gradual():
    engine = _engine(spawn_per_step=4)
    engine.reset()
    stem = type_index(CellType.STEM)
    engine.update_spawn_target(stem, 110.0)

    engine.step(0.1)
    assert engine.snapshot().counts(10)[stem] == 104
    for _ in range(5):
        engine.step(0.1)
    assert engine.snapshot().counts(10)[stem] == 110


def test_max_particles_cap():
    engine = _engine(max_particles=50)
    engine.reset()
    assert len(engine.snapshot()) == 50


def test_snapshot_is_a_copy():
    engine = _engine()
    engine.reset()
    snap = engine.snapshot()
    before = snap.positions.copy()
    engine.step(0.1)
    assert np.array_equal(snap.positions, before)


def test_deterministic_with_seed():
    a, b = _engine(), _engine()
    a.reset()
    b.reset()
    for _ in range(10):
        a.step(0.1)
        b.step(0.1)
    assert np.array_equal(a.snapshot().positions, b.snapshot().positions)


def test_colormaps():
    for name in COLORMAP_ORDER:
        lut = get_colormap(name)
        assert lut.shape == (256, 3)
        assert lut.dtype == np.uint8

    flat = normalize(np.full((4, 4), 2.0))
    assert np.all(flat == 0.0)
    rgb = apply_colormap(np.linspace(0, 1, 16).reshape(4, 4), get_colormap(COLORMAP_ORDER[0]))
    assert rgb.shape == (4, 4, 3)


def test_compose_frame_from_published():
    print("Testing frame composition...")
    sim = DevelopmentSimulator(seed=2, resolution=(8, 4, 8))
    sim.run(3, dt=0.5)
    published = sim.latest_snapshot()

    for name in published["averages"]:
        rgb = compose_frame(published, name, None, size=64,
                            snapshot=published["particles"], bounds=published["bounds"])
        assert rgb.shape == (64, 64, 3)
        assert rgb.dtype == np.uint8
    print("  ✓ One frame per morphogen")


if __name__ == "__main__":
    test_reset_fills_initial_populations()
    test_compose_frame_from_published()
    print("\nAll particle tests passed!")
