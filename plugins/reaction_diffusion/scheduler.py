"""
Frame Scheduler - Running / Paused state machine

One tick per frame of the external clock:

  Running: pipeline once -> cursor disc (if pointer engaged) -> border
  Paused:                   cursor disc (if pointer engaged) -> border

The border is always live and painting works while paused. While paused,
step_forward(n) applies n full frames (pipeline + cursor + border) without
leaving the paused state. Pausing takes effect at the next tick boundary;
nothing here ever interrupts a pass.
"""

from .overlay import paint_circle, stroke_border


RUNNING = "Running"
PAUSED = "Paused"


class FrameScheduler:
    """Drives the executor and the per-tick overlay draws."""

    def __init__(self, store, executor, params, controls, running=True):
        self.store = store
        self.executor = executor
        self.params = params
        self.controls = controls
        self.running = running
        self.generation = 0

    @property
    def status(self):
        return RUNNING if self.running else PAUSED

    def toggle(self):
        self.running = not self.running
        return self.status

    def pause(self):
        self.running = False

    def resume(self):
        self.running = True

    def _draw_live_overlays(self, pointer):
        with self.store.claim("overlay"):
            buffer = self.store.current
            if pointer is not None:
                paint_circle(buffer, pointer, self.controls.cursor_radius,
                             self.controls.cursor_color)
            stroke_border(buffer, self.controls.border_color,
                          self.controls.border_thickness)

    def advance(self, pointer=None):
        """One full frame regardless of run state."""
        self.executor.run(self.store, self.params)
        self.generation += 1
        self._draw_live_overlays(pointer)

    def tick(self, pointer=None):
        """Called once per frame by the clock. Returns True if the pipeline ran."""
        if self.running:
            self.advance(pointer)
            return True
        self._draw_live_overlays(pointer)
        return False

    def step_forward(self, n=1, pointer=None):
        """Apply n frames while paused. Ignored while running.

        Returns the number of frames applied.
        """
        if self.running:
            return 0
        n = int(n)
        if n < 1:
            raise ValueError(f"step count must be a positive integer, got {n}")
        for _ in range(n):
            self.advance(pointer)
        return n
