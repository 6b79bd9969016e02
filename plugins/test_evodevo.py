"""
Tests for the evo-devo transforms: homeotic transformation, heterochrony
and allometric growth.
"""

import pytest

from insect_development.evodevo import EvoDevoController, SIZE_LIMITS, TRANSFORMATION_LOG_SIZE
from insect_development.presets import LAST
from insect_development.segments import build_segments
from insect_development.stages import DevelopmentalStage, StageController


def _stages_at(stage):
    stages = StageController()
    stages.set_stage(stage)
    stages.apply(None, (1.0, 1.0, 1.0))
    return stages


# ---------------------------------------------------------------------------
# Homeotic
# ---------------------------------------------------------------------------

def test_homeotic_preserves_position():
    print("Testing homeotic transformation...")
    segments = build_segments(13)
    positions = [s.relative_position for s in segments]
    evo = EvoDevoController(homeotic_rate=1.0, allometric_growth=0.0, seed=3)

    fired = None
    for _ in range(50):
        fired = evo.apply_homeotic(segments, progress=0.5, dt=10.0)
        if fired is not None:
            break

    assert fired is not None, "rate * dt >= 1 fires on every valid draw"
    target, source = fired
    assert 3 <= target < 11
    assert abs(target - source) == 1
    assert [s.relative_position for s in segments] == positions
    assert segments[target].appendage_pairs == segments[source].appendage_pairs
    assert segments[target].size == segments[source].size
    assert evo.transformations[-1] == fired
    print("  ✓ Identity copied, position kept")


def test_homeotic_window_is_open():
    segments = build_segments(13)
    evo = EvoDevoController(homeotic_rate=1.0, seed=0)
    for progress in (0.0, 0.3, 0.7, 0.9):
        for _ in range(20):
            assert evo.apply_homeotic(segments, progress, dt=10.0) is None
    assert len(evo.transformations) == 0


def test_homeotic_low_rate_disabled():
    segments = build_segments(13)
    evo = EvoDevoController(homeotic_rate=0.01, seed=0)
    for _ in range(50):
        assert evo.apply_homeotic(segments, 0.5, dt=1000.0) is None


def test_homeotic_skips_short_bodies():
    segments = build_segments(5)
    evo = EvoDevoController(homeotic_rate=1.0, seed=0)
    for _ in range(20):
        assert evo.apply_homeotic(segments, 0.5, dt=10.0) is None


def test_transform_segment_bounds():
    segments = build_segments(13)
    evo = EvoDevoController()
    assert evo.transform_segment(segments, 20, 3) is None
    assert evo.transform_segment(segments, 6, 5) == (6, 5)
    assert segments[6].has_appendages


def test_transformation_log_is_bounded():
    segments = build_segments(13)
    evo = EvoDevoController(seed=0)
    for _ in range(TRANSFORMATION_LOG_SIZE + 40):
        evo.transform_segment(segments, 7, 6)
    evo.transform_segment(segments, 8, 9)
    assert len(evo.transformations) == TRANSFORMATION_LOG_SIZE
    assert evo.transformations[-1] == (8, 9), "Newest entry kept"

    evo.reseed(1)
    assert len(evo.transformations) == 0


# ---------------------------------------------------------------------------
# Heterochrony
# ---------------------------------------------------------------------------

def test_heterochrony_scales_rates():
    print("Testing heterochrony...")
    stages = _stages_at(DevelopmentalStage.LARVA)
    EvoDevoController(heterochrony=0.5).apply_heterochrony(stages)
    assert stages.division_rate == pytest.approx(0.05 * 1.25)
    assert stages.differentiation_rate == pytest.approx(0.1 * 1.35)
    assert stages.migration_rate == pytest.approx(0.15 * 1.15)
    print("  ✓ Weighted rate scaling")


def test_heterochrony_clamps():
    stages = _stages_at(DevelopmentalStage.PUPA)
    EvoDevoController(heterochrony=1.0).apply_heterochrony(stages)
    assert stages.differentiation_rate == 0.3       # 0.2 * 1.7 = 0.34
    assert stages.migration_rate == pytest.approx(0.25 * 1.3)

    stages = _stages_at(DevelopmentalStage.ADULT)
    EvoDevoController(heterochrony=-1.0).apply_heterochrony(stages)
    assert stages.division_rate == pytest.approx(0.01)  # 0.005 clamped up


def test_heterochrony_deadband():
    stages = _stages_at(DevelopmentalStage.LARVA)
    before = stages.rates()
    EvoDevoController(heterochrony=0.05).apply_heterochrony(stages)
    assert stages.rates() == before


# ---------------------------------------------------------------------------
# Allometric growth
# ---------------------------------------------------------------------------

def test_allometric_grows_named_segment():
    segments = build_segments(13)
    evo = EvoDevoController(allometric_growth=1.0, growth_rules=[("segment", 0, 1.0)])
    evo.apply_allometric(segments, DevelopmentalStage.EMBRYO, dt=1.0)
    assert segments[0].size == pytest.approx(0.9)
    assert segments[1].size == pytest.approx(0.8)


def test_allometric_only_in_growth_stages():
    for stage in (DevelopmentalStage.EGG, DevelopmentalStage.PUPA, DevelopmentalStage.ADULT):
        segments = build_segments(13)
        evo = EvoDevoController(allometric_growth=1.0, growth_rules=[("segment", 0, 1.0)])
        evo.apply_allometric(segments, stage, dt=1.0)
        assert segments[0].size == 0.8, stage.label


def test_allometric_below_threshold_disabled():
    segments = build_segments(13)
    evo = EvoDevoController(allometric_growth=0.05, growth_rules=[("segment", 0, 1.0)])
    evo.apply_allometric(segments, DevelopmentalStage.LARVA, dt=1.0)
    assert segments[0].size == 0.8


def test_allometric_constraints_clamp():
    segments = build_segments(13)
    evo = EvoDevoController(allometric_growth=1.0,
                            growth_rules=[("segment", 4, 100.0), ("segment", 6, -100.0)])
    evo.apply_allometric(segments, DevelopmentalStage.LARVA, dt=1.0)
    assert segments[4].size == SIZE_LIMITS[1]
    assert segments[6].size == SIZE_LIMITS[0]

    evo.constraints = False
    evo.apply_allometric(segments, DevelopmentalStage.LARVA, dt=1.0)
    assert segments[4].size > SIZE_LIMITS[1]


def test_allometric_ranges_and_last():
    print("Testing allometric ranges...")
    segments = build_segments(10)
    evo = EvoDevoController(allometric_growth=1.0,
                            growth_rules=[("range", 6, LAST, -0.5), ("segment", 42, 1.0)])
    evo.apply_allometric(segments, DevelopmentalStage.EMBRYO, dt=1.0)
    assert [s.size for s in segments[6:]] == pytest.approx([0.75] * 4)
    assert segments[5].size == 1.2, "Out-of-range single segment is a no-op"

    evo.growth_rules = [("range", 8, 30, 1.0)]
    evo.apply_allometric(segments, DevelopmentalStage.EMBRYO, dt=1.0)
    assert segments[9].size == pytest.approx(0.85), "Range end clamped to last segment"
    print("  ✓ Ranges clamped")


def test_apply_runs_all_transforms():
    segments = build_segments(13)
    stages = _stages_at(DevelopmentalStage.LARVA)
    evo = EvoDevoController(homeotic_rate=0.0, heterochrony=0.5, allometric_growth=1.0,
                            growth_rules=[("segment", 0, 1.0)])
    evo.apply(segments, stages, progress=0.55, dt=1.0)
    assert stages.division_rate == pytest.approx(0.0625)
    assert segments[0].size == pytest.approx(0.9)
    assert len(evo.transformations) == 0


def test_params_roundtrip():
    evo = EvoDevoController()
    evo.set_params(homeotic_rate=0.2, constraints=False, unknown=1)
    params = evo.get_params()
    assert params["homeotic_rate"] == 0.2
    assert params["constraints"] is False
    assert "unknown" not in params


if __name__ == "__main__":
    test_homeotic_preserves_position()
    test_heterochrony_scales_rates()
    test_allometric_ranges_and_last()
    print("\nAll evo-devo tests passed!")
