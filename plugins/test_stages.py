"""
Tests for the developmental stage controller.
"""

import numpy as np
import pytest

from insect_development.particles import ScatterParticleEngine
from insect_development.stages import (
    STAGE_PARAMS, DevelopmentalStage, StageController, parse_stage,
    progress_for_age, stage_for_age,
)


def test_stage_for_canonical_ages():
    print("Testing stage thresholds...")
    expected = {
        5: DevelopmentalStage.EGG,
        20: DevelopmentalStage.EMBRYO,
        45: DevelopmentalStage.LARVA,
        75: DevelopmentalStage.PUPA,
        100: DevelopmentalStage.ADULT,
    }
    for age, stage in expected.items():
        assert stage_for_age(age) == stage, f"age {age}"
    assert stage_for_age(9.999) == DevelopmentalStage.EGG
    assert stage_for_age(10.0) == DevelopmentalStage.EMBRYO
    assert stage_for_age(90.0) == DevelopmentalStage.ADULT
    print("  ✓ Five stages")


def test_progress_is_monotone_and_bounded():
    ages = np.arange(0.0, 120.0, 0.25)
    progress = [progress_for_age(a) for a in ages]
    assert all(0.0 <= p <= 1.0 for p in progress)
    assert all(b >= a for a, b in zip(progress, progress[1:])), "Progress must never decrease"
    assert progress_for_age(0.0) == 0.0
    assert progress_for_age(100.0) == 1.0


def test_progress_stage_boundaries():
    assert progress_for_age(10.0) == pytest.approx(0.2)
    assert progress_for_age(30.0) == pytest.approx(0.4)
    assert progress_for_age(60.0) == pytest.approx(0.7)
    assert progress_for_age(45.0) == pytest.approx(0.55)
    assert progress_for_age(89.9) < 1.0


def test_advance_uses_development_speed():
    stages = StageController(development_speed=0.5)
    changed = stages.advance(2.0)
    assert stages.age == 1.0
    assert not changed

    assert stages.advance(20.0)
    assert stages.stage == DevelopmentalStage.EMBRYO


def test_set_stage_moves_age():
    stages = StageController()
    stages.set_stage("pupa")
    assert stages.stage == DevelopmentalStage.PUPA
    assert stages.age == 75.0
    assert stages.progress() == pytest.approx(0.85)


def test_parse_stage():
    assert parse_stage(DevelopmentalStage.LARVA) == DevelopmentalStage.LARVA
    assert parse_stage(2) == DevelopmentalStage.LARVA
    assert parse_stage(" Adult ") == DevelopmentalStage.ADULT
    with pytest.raises(ValueError):
        parse_stage("chrysalis")


def test_apply_pushes_kinetics_and_bounds():
    print("Testing stage push to engine...")
    engine = ScatterParticleEngine(seed=0)
    stages = StageController()
    stages.set_stage(DevelopmentalStage.LARVA)
    stages.division_rate = 0.9

    stages.apply(engine, (3.0, 2.0, 10.0), bounds_multiplier=10.0)

    p = STAGE_PARAMS[DevelopmentalStage.LARVA]
    assert engine.kinetics == {
        "interaction_strength": p["interaction_strength"],
        "dampening": p["dampening"],
        "interaction_radius": p["interaction_radius"],
    }
    assert engine.bounds == pytest.approx((21.0, 14.0, 70.0))
    assert stages.division_rate == p["division_rate"], "Rate fields reset each push"
    print("  ✓ Kinetics and bounds pushed")


def test_egg_push_restores_differentiation_rate():
    stages = StageController()
    stages.differentiation_rate = 0.27      # e.g. left over from heterochrony
    stages.apply(None, (1.0, 1.0, 1.0))
    assert stages.stage == DevelopmentalStage.EGG
    assert stages.differentiation_rate == STAGE_PARAMS[DevelopmentalStage.EGG]["differentiation_rate"]
    assert stages.differentiation_rate == 0.1


def test_reset():
    stages = StageController()
    stages.set_stage(DevelopmentalStage.ADULT)
    stages.reset()
    assert stages.stage == DevelopmentalStage.EGG
    assert stages.age == 0.0
    assert stages.rates()["migration_rate"] == 0.2


if __name__ == "__main__":
    test_stage_for_canonical_ages()
    test_apply_pushes_kinetics_and_bounds()
    print("\nAll stage tests passed!")
