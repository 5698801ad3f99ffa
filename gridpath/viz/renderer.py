import asyncio
import logging
import math
from typing import Dict, List, Optional, Tuple

import numpy as np
import pygame

from gridpath.core.grid import Grid, CellType

logger = logging.getLogger(__name__)

# Indexed by CellType value
PALETTE = np.array([
    (245, 245, 245),  # EMPTY
    (40, 40, 48),     # WALL
    (46, 204, 113),   # START
    (231, 76, 60),    # END
    (93, 173, 226),   # VISITED
    (255, 215, 0),    # PATH (gold)
    (120, 100, 140),  # FILLED_DEAD_END
], dtype=np.uint8)


def grid_to_rgb(grid: Grid) -> np.ndarray:
    """
    (size, size, 3) uint8 image of the grid. Visited cells that DFS passed
    through repeatedly are drawn darker.
    """
    cells = grid.to_numpy()
    rgb = PALETTE[cells].astype(np.float32)

    if grid.visit_counts:
        counts = np.array(grid.get_visit_counts(), dtype=np.float32)
        repeat = (cells == CellType.VISITED) & (counts > 1)
        shade = 1.0 / (1.0 + 0.35 * np.clip(counts - 1, 0, 6))
        rgb[repeat] *= shade[repeat][:, None]

    return rgb.astype(np.uint8)


def panel_layout(count: int) -> Tuple[int, int]:
    """(columns, rows) for tiling `count` panels, wider than tall."""
    if count <= 0:
        return 0, 0
    cols = math.ceil(math.sqrt(count))
    rows = math.ceil(count / cols)
    return cols, rows


class Renderer:
    COLOR_BG = (10, 10, 10)
    COLOR_TEXT = (255, 255, 255)
    COLOR_WINNER = (255, 215, 0)

    HEADER = 24
    PADDING = 12

    def __init__(self, control=None, width=1280, height=720, record=False, record_file=None, title="gridpath"):
        self.control = control
        self.screen_width = width
        self.screen_height = height
        self.title = title

        from gridpath.viz.recorder import VideoRecorder
        self.recorder = VideoRecorder(active=record, output_file=record_file)

        # name -> (latest snapshot, step count)
        self.panels: Dict[str, Tuple[Grid, int]] = {}
        self.status_lines: List[str] = []
        self.highlight: Optional[str] = None

        self.running = True
        self.font = None
        self.clock = None
        self.surface = None

    def init_window(self):
        pygame.init()
        pygame.display.set_caption(self.title)
        self.surface = pygame.display.set_mode((self.screen_width, self.screen_height), pygame.RESIZABLE)
        self.clock = pygame.time.Clock()
        self.font = pygame.font.SysFont("Consolas", 16)
        logger.debug("Viewer window opened (%dx%d)", self.screen_width, self.screen_height)

    def handle_input(self):
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
                if self.control:
                    self.control.cancel()

            elif event.type == pygame.VIDEORESIZE:
                self.screen_width, self.screen_height = event.w, event.h

            elif event.type == pygame.KEYDOWN and self.control:
                if event.key == pygame.K_SPACE:
                    self.control.toggle_pause()
                elif event.key == pygame.K_ESCAPE:
                    self.control.cancel()

    # Driver callbacks

    def on_update(self, name: str, grid: Grid, steps: int):
        self.panels[name] = (grid, steps)
        self.refresh()

    def set_status(self, *lines: str):
        self.status_lines = list(lines)
        self.refresh()

    # Drawing

    def draw_panels(self):
        self.surface.fill(self.COLOR_BG)
        cols, rows = panel_layout(len(self.panels))
        if not cols:
            return

        top = self.HEADER * (len(self.status_lines) + 1)
        cell_w = (self.screen_width - self.PADDING) // cols
        cell_h = (self.screen_height - top - self.PADDING) // rows
        side = max(1, min(cell_w, cell_h - self.HEADER) - self.PADDING)

        for i, (name, (grid, steps)) in enumerate(self.panels.items()):
            px = self.PADDING + (i % cols) * cell_w
            py = top + (i // cols) * cell_h

            color = self.COLOR_WINNER if name == self.highlight else self.COLOR_TEXT
            label = self.font.render(f"{name}  steps: {steps}", True, color)
            self.surface.blit(label, (px, py))

            # surfarray is (width, height, 3): transpose rows/cols
            image = np.ascontiguousarray(np.transpose(grid_to_rgb(grid), (1, 0, 2)))
            grid_surface = pygame.surfarray.make_surface(image)
            grid_surface = pygame.transform.scale(grid_surface, (side, side))
            self.surface.blit(grid_surface, (px, py + self.HEADER))

    def draw_hud(self):
        paused = self.control is not None and self.control.paused
        info = [f"FPS: {int(self.clock.get_fps())}", "PAUSED (space)" if paused else "space: pause  esc: cancel"]
        info.extend(self.status_lines)
        for i, text in enumerate(info):
            lbl = self.font.render(text, True, self.COLOR_TEXT)
            self.surface.blit(lbl, (10, 4 + i * 18))

    def refresh(self):
        if self.surface is None or not self.running:
            return
        self.handle_input()
        self.draw_panels()
        self.draw_hud()
        pygame.display.flip()

        if self.recorder.active:
            self.recorder.capture_frame(self.surface)

        # Pacing is the driver's job; this only feeds the FPS counter
        self.clock.tick()

    async def keep_alive(self, interval: float = 1 / 30):
        """Services window events while the driver is paused or between steps."""
        while self.running:
            self.refresh()
            await asyncio.sleep(interval)

    def wait_for_close(self):
        """Keeps the final frame on screen until the window is closed."""
        while self.running:
            self.refresh()
            self.clock.tick(30)

    def close(self):
        self.recorder.stop()
        pygame.quit()
