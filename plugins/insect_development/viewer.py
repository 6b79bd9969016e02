"""
Interactive Pygame Viewer for Insect Development

Shows a top-down slice of one morphogen with the segment boundaries and the
particle cloud on top, and a side panel with stage, progress, expressed
genes and per-morphogen averages. The simulation runs on a background
SimulationRunner; the viewer only reads published snapshots and queues
control calls.

Controls:
  SPACE       Pause / Resume
  R           Reset
  M           Next morphogen slice
  C           Next colormap (or the morphogen's own color)
  A           Pulse the shown morphogen (+0.5)
  1-5         Jump to Egg / Embryo / Larva / Pupa / Adult
  N           Next body plan
  S           Save screenshot
  H           Toggle HUD overlay
  Q / ESC     Quit
"""

import os
import time
import pygame

from .colormaps import COLORMAP_ORDER, compose_frame, get_colormap
from .presets import PRESET_ORDER, get_preset
from .runner import SimulationRunner
from .simulator import DevelopmentSimulator
from .stages import DevelopmentalStage

PANEL_WIDTH = 260

THEME = {
    "bg": (12, 12, 16),
    "panel": (22, 22, 28),
    "text": (210, 215, 225),
    "dim": (120, 125, 135),
    "bar_bg": (40, 40, 48),
}

STAGE_KEYS = {
    pygame.K_1: DevelopmentalStage.EGG,
    pygame.K_2: DevelopmentalStage.EMBRYO,
    pygame.K_3: DevelopmentalStage.LARVA,
    pygame.K_4: DevelopmentalStage.PUPA,
    pygame.K_5: DevelopmentalStage.ADULT,
}


class Viewer:
    """Pygame front end over a DevelopmentSimulator.

    Args:
        width, height: Canvas size in pixels (panel is added to the right)
        body_plan: Initial preset key
        seed: Simulation seed
        dt: Fixed simulation dt per tick
        target_fps: Simulation ticks per second
    """

    def __init__(self, width=720, height=720, body_plan="diptera", seed=None,
                 dt=0.1, target_fps=30):
        self.canvas_w = width
        self.canvas_h = height
        self.simulator = DevelopmentSimulator(body_plan, seed=seed)
        self.runner = SimulationRunner(self.simulator, target_fps=target_fps, dt=dt)

        self.plan_key = body_plan
        self.morphogen_idx = 0
        self.colormap_idx = -1      # -1 = morphogen's own color
        self.show_hud = True
        self.running = True
        self.fps_history = []

    @property
    def total_w(self):
        return self.canvas_w + PANEL_WIDTH

    def _morphogen_names(self, published):
        return list(published["averages"].keys())

    def _current_lut(self):
        if self.colormap_idx < 0:
            return None
        return get_colormap(COLORMAP_ORDER[self.colormap_idx])

    def _render_frame(self, published):
        names = self._morphogen_names(published)
        if not names:
            return None
        name = names[self.morphogen_idx % len(names)]
        rgb = compose_frame(published, name, self._current_lut(),
                            size=max(self.canvas_w, self.canvas_h),
                            snapshot=published["particles"],
                            bounds=published["bounds"])
        return pygame.surfarray.make_surface(rgb.swapaxes(0, 1).copy())

    def _draw_hud(self, screen, published, fps):
        if not self.show_hud:
            return
        names = self._morphogen_names(published)
        shown = names[self.morphogen_idx % len(names)] if names else "-"
        line = (f"{get_preset(self.plan_key)['name']}  |  {published['stage']}  "
                f"age {published['age']:.1f}  |  {shown}  |  FPS: {fps:.0f}")
        if self.runner.paused:
            line = "[PAUSED]  " + line

        bg_surface = pygame.Surface((self.canvas_w, 24), pygame.SRCALPHA)
        bg_surface.fill((0, 0, 0, 140))
        screen.blit(bg_surface, (0, 0))
        screen.blit(self.hud_font.render(line, True, THEME["text"]), (10, 6))

    def _draw_panel(self, screen, published):
        x0 = self.canvas_w
        pygame.draw.rect(screen, THEME["panel"], (x0, 0, PANEL_WIDTH, self.canvas_h))
        font = self.panel_font
        y = 12

        def text(s, color=THEME["text"]):
            nonlocal y
            screen.blit(font.render(s, True, color), (x0 + 12, y))
            y += 18

        text(f"Stage: {published['stage']}")
        text(f"Progress: {published['progress']:.3f}")
        text(f"Tick: {published['tick']}")
        y += 8
        text("MORPHOGENS", THEME["dim"])
        top = max(published["averages"].values(), default=1.0) or 1.0
        for name, avg in published["averages"].items():
            text(f"{name[:18]:18s} {avg:7.3f}")
            frac = max(0.0, min(1.0, avg / top)) if top > 0 else 0.0
            bar_w = PANEL_WIDTH - 24
            pygame.draw.rect(screen, THEME["bar_bg"], (x0 + 12, y, bar_w, 4))
            color = published["morphogen_colors"][name]
            pygame.draw.rect(screen, color, (x0 + 12, y, int(bar_w * frac), 4))
            y += 10
        y += 8
        text("EXPRESSED GENES", THEME["dim"])
        for gene in published["expressed_genes"] or ["(none)"]:
            text(gene)
        y += 8
        text("SEGMENTS (particles)", THEME["dim"])
        for (name, _, size, pairs), count in zip(published["segments"],
                                                 published["segment_counts"]):
            text(f"{name:11s} {size:4.2f} {pairs}p {count:5d}")

    def _save_screenshot(self, published):
        screenshots_dir = os.path.join(
            os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))),
            "screenshots"
        )
        os.makedirs(screenshots_dir, exist_ok=True)
        timestamp = time.strftime("%Y%m%d_%H%M%S")
        path = os.path.join(screenshots_dir, f"insect_{self.plan_key}_{timestamp}.png")
        surface = self._render_frame(published)
        if surface is not None:
            pygame.image.save(surface, path)
            print(f"Screenshot saved: {path}")

    def _next_body_plan(self):
        idx = (PRESET_ORDER.index(self.plan_key) + 1) % len(PRESET_ORDER)
        self.plan_key = PRESET_ORDER[idx]
        self.simulator.select_body_plan(self.plan_key)

    def run(self):
        """Main viewer loop."""
        pygame.init()
        screen = pygame.display.set_mode((self.total_w, self.canvas_h))
        pygame.display.set_caption("Insect Development")
        clock = pygame.time.Clock()
        self.hud_font = pygame.font.SysFont("menlo", 13)
        self.panel_font = pygame.font.SysFont("menlo", 12)

        self.runner.start()
        try:
            while self.running:
                frame_start = time.time()
                for event in pygame.event.get():
                    if event.type == pygame.QUIT:
                        self.running = False
                    elif event.type == pygame.KEYDOWN:
                        self._handle_keydown(event)

                published = self.runner.get_latest_snapshot()
                screen.fill(THEME["bg"])
                if published is not None:
                    surface = self._render_frame(published)
                    if surface is not None:
                        scaled = pygame.transform.scale(surface, (self.canvas_w, self.canvas_h))
                        screen.blit(scaled, (0, 0))
                    self.fps_history.append(time.time() - frame_start)
                    if len(self.fps_history) > 30:
                        self.fps_history.pop(0)
                    fps = len(self.fps_history) / max(sum(self.fps_history), 0.001)
                    self._draw_hud(screen, published, fps)
                    self._draw_panel(screen, published)

                pygame.display.flip()
                clock.tick(60)
        finally:
            self.runner.stop(timeout=1.0)
            pygame.quit()

    def _handle_keydown(self, event):
        key = event.key
        published = self.runner.get_latest_snapshot()

        if key in (pygame.K_q, pygame.K_ESCAPE):
            self.running = False
        elif key == pygame.K_SPACE:
            if self.runner.paused:
                self.runner.resume()
            else:
                self.runner.pause()
        elif key == pygame.K_r:
            self.simulator.reset()
        elif key == pygame.K_m:
            self.morphogen_idx += 1
        elif key == pygame.K_c:
            self.colormap_idx += 1
            if self.colormap_idx >= len(COLORMAP_ORDER):
                self.colormap_idx = -1
        elif key == pygame.K_a and published is not None:
            names = self._morphogen_names(published)
            if names:
                self.simulator.activate_morphogen(names[self.morphogen_idx % len(names)], 0.5)
        elif key in STAGE_KEYS:
            self.simulator.set_stage(STAGE_KEYS[key])
        elif key == pygame.K_n:
            self._next_body_plan()
        elif key == pygame.K_s and published is not None:
            self._save_screenshot(published)
        elif key == pygame.K_h:
            self.show_hud = not self.show_hud
