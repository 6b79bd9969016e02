"""
Background Simulation Runner

Runs a DevelopmentSimulator continuously on its own thread so a viewer (or
any other reader) always has a fresh snapshot without doing simulation work
itself. Readers never touch the live field: they get the snapshot the
simulator publishes at the end of each tick, under its lock.

Control calls (set_stage, activate_morphogen, ...) can be made on the
simulator from any thread; they are queued and picked up by the next tick.
"""

import logging
import threading
import time

logger = logging.getLogger(__name__)


class SimulationRunner(threading.Thread):
    """Background thread that steps the simulator at a target tick rate.

    Args:
        simulator: DevelopmentSimulator to drive
        target_fps: Ticks per second of wall time
        dt: Fixed simulation dt per tick (None = measured wall-clock dt,
            clamped to [0.001, 0.1])
        max_ticks: Stop after this many ticks (None = run until stop())
    """

    def __init__(self, simulator, target_fps=20, dt=None, max_ticks=None):
        super().__init__(daemon=True)
        self.simulator = simulator
        self.target_fps = target_fps
        self.dt = dt
        self.max_ticks = max_ticks
        self.ticks = 0
        self.errors = 0
        self._running = threading.Event()
        self._running.set()
        self._paused = threading.Event()
        self._last_time = None

    def _next_dt(self, now):
        if self.dt is not None:
            return self.dt
        if self._last_time is None:
            dt = 1.0 / (self.target_fps or 20)
        else:
            dt = now - self._last_time
        return max(0.001, min(dt, 0.1))

    def run(self):
        logger.info("Simulation runner started (%s fps)", self.target_fps)
        while self._running.is_set():
            now = time.perf_counter()
            dt = self._next_dt(now)
            self._last_time = now

            if self._paused.is_set():
                time.sleep(1.0 / max(self.target_fps or 20, 1))
                continue

            try:
                self.simulator.step(dt)
                self.ticks += 1
            except Exception:
                self.errors += 1
                logger.exception("Simulation tick failed")

            if self.max_ticks is not None and self.ticks >= self.max_ticks:
                break

            if self.target_fps:
                elapsed = time.perf_counter() - now
                sleep_time = (1.0 / self.target_fps) - elapsed
                if sleep_time > 0:
                    time.sleep(sleep_time)
        logger.info("Simulation runner stopped after %d ticks", self.ticks)

    def get_latest_snapshot(self):
        """Return the most recent published snapshot dict (or None)."""
        return self.simulator.latest_snapshot()

    @property
    def paused(self):
        return self._paused.is_set()

    def pause(self):
        self._paused.set()

    def resume(self):
        self._paused.clear()

    def stop(self, timeout=None):
        self._running.clear()
        if self.is_alive() and threading.current_thread() is not self:
            self.join(timeout)
