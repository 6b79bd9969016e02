"""
Tests for the background SimulationRunner thread.
"""

import time

from insect_development.particles import ScatterParticleEngine
from insect_development.runner import SimulationRunner
from insect_development.simulator import DevelopmentSimulator


class FailingEngine(ScatterParticleEngine):
    def step(self, dt):
        raise RuntimeError("engine fault")


def test_runner_stops_after_max_ticks():
    print("Testing runner with max_ticks...")
    sim = DevelopmentSimulator(seed=1, resolution=(8, 4, 8))
    runner = SimulationRunner(sim, target_fps=0, dt=0.1, max_ticks=5)
    runner.start()
    runner.join(timeout=30)

    assert not runner.is_alive()
    assert runner.ticks == 5
    assert runner.errors == 0
    assert sim.stats["tick"] == 5
    assert runner.get_latest_snapshot()["tick"] == 5
    print("  ✓ 5 ticks, snapshot published")


def test_control_calls_from_main_thread():
    sim = DevelopmentSimulator(seed=1, resolution=(8, 4, 8))
    sim.set_stage("pupa")
    runner = SimulationRunner(sim, target_fps=0, dt=0.1, max_ticks=1)
    runner.start()
    runner.join(timeout=30)
    assert runner.get_latest_snapshot()["stage"] == "Pupa"


def test_failed_ticks_are_counted():
    sim = DevelopmentSimulator(engine=FailingEngine(seed=0), seed=0, resolution=(4, 2, 4))
    runner = SimulationRunner(sim, target_fps=100, dt=0.1)
    runner.start()
    deadline = time.time() + 5.0
    while runner.errors == 0 and time.time() < deadline:
        time.sleep(0.01)
    runner.stop(timeout=5.0)

    assert not runner.is_alive()
    assert runner.errors > 0
    assert runner.ticks == 0


def test_pause_and_resume():
    sim = DevelopmentSimulator(seed=1, resolution=(4, 2, 4))
    runner = SimulationRunner(sim, target_fps=200, dt=0.1)
    runner.pause()
    assert runner.paused
    runner.start()
    time.sleep(0.1)
    assert runner.ticks == 0, "Paused runner does not tick"

    runner.resume()
    deadline = time.time() + 5.0
    while runner.ticks == 0 and time.time() < deadline:
        time.sleep(0.01)
    runner.stop(timeout=5.0)
    assert runner.ticks > 0


if __name__ == "__main__":
    test_runner_stops_after_max_ticks()
    print("\nAll runner tests passed!")
