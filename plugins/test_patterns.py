"""
Tests for the developmental pattern modules.
"""

import math
import pytest

from insect_development.field import MorphogenField
from insect_development.genes import GeneNetwork
from insect_development.patterns import PatternTarget, activation_profile, build_modules
from insect_development.presets import (
    DEFAULT_PATTERN, DEFAULT_STRUCTURES, default_genes, default_morphogens,
)


def _target():
    field = MorphogenField(default_morphogens(), (4, 4, 4))
    genes = GeneNetwork(default_genes())
    return PatternTarget(field, genes)


def _modules(**flags):
    structures = dict(DEFAULT_STRUCTURES)
    structures.update(flags)
    return {m.name: m for m in build_modules(dict(DEFAULT_PATTERN), structures)}


def test_module_set_follows_structures():
    print("Testing module selection...")
    modules = _modules()
    assert list(modules) == [
        "Head Formation", "Thorax Formation", "Abdomen Formation",
        "Wing Formation", "Eye Formation",
    ]
    assert "Specialized Legs" in _modules(specialized_legs=True)
    bare = _modules(wings=False, compound_eyes=False)
    assert list(bare) == ["Head Formation", "Thorax Formation", "Abdomen Formation"]
    print("  ✓ Structure flags gate optional modules")


def test_head_waits_for_progress():
    target = _target()
    head = _modules()["Head Formation"]
    a = target.field.index_of("Anterior-Posterior")
    before = target.field.average(a)

    level = head.update(0.05, target)
    assert level == pytest.approx(0.1 * 0.7)
    assert target.field.average(a) == before, "No pulse before p = 0.1"

    level = head.update(0.2, target)
    assert target.field.average(a) == pytest.approx(before + level)


def test_wing_pulse_and_gene():
    print("Testing wing module...")
    target = _target()
    wing = _modules()["Wing Formation"]
    i = target.field.index_of("Appendage")
    before = target.field.average(i)

    assert wing.activation(0.3) == 0.0
    assert wing.activation(0.85) == 0.0
    level = wing.update(0.6, target)

    assert level == pytest.approx(DEFAULT_PATTERN["appendage_formation_rate"])
    assert target.field.average(i) == pytest.approx(before + level)
    assert target.genes.get("Appendage_Dev").is_expressed
    print("  ✓ Appendage pulsed, Appendage_Dev forced on")


def test_eye_shuts_off_late():
    eye = _modules()["Eye Formation"]
    assert eye.activation(0.0) == 0.0
    assert eye.activation(0.7) == 0.0
    assert eye.activation(0.9) == 0.0
    assert eye.activation(0.4) == pytest.approx(0.9 * 0.6)


def test_abdomen_forces_epithelial_late():
    target = _target()
    abdomen = _modules()["Abdomen Formation"]
    level = abdomen.update(0.9, target)
    assert level == pytest.approx(0.63)
    assert target.genes.get("Epithelial_Dev").is_expressed

    early = _target()
    abdomen.update(0.6, early)
    assert not early.genes.get("Epithelial_Dev").is_expressed, "Only forced after p = 0.7"


def test_thorax_profile():
    progress, levels = activation_profile(_modules()["Thorax Formation"], samples=11)
    assert len(progress) == 11
    assert levels[5] == pytest.approx(0.8)
    assert levels[0] == pytest.approx(0.0)
    assert levels[3] == pytest.approx(math.sin(0.3 * math.pi) * 0.8)


def test_pattern_edits_take_effect():
    pattern = dict(DEFAULT_PATTERN)
    head = build_modules(pattern, dict(DEFAULT_STRUCTURES))[0]
    assert head.activation(0.5) == pytest.approx(0.7)
    pattern["anterior_dominance"] = 0.2
    assert head.activation(0.5) == pytest.approx(0.2)


def test_missing_fragment_is_noop():
    target = _target()
    before = target.field.grid.copy()
    assert not target.activate("Nonexistent", 1.0)
    assert not target.express("Nonexistent", True)
    assert (target.field.grid == before).all()


if __name__ == "__main__":
    test_module_set_follows_structures()
    test_wing_pulse_and_gene()
    print("\nAll pattern tests passed!")
