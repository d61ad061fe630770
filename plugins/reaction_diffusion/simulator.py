"""
Simulation - headless core of the reaction-diffusion loop

Owns the frame buffers, the pipeline parameters, the overlay controls and
the scheduler, with an explicit create / reset / destroy lifecycle. No
pygame dependency: the viewer and the headless snap mode both drive it.

Usage:
    from reaction_diffusion.simulator import Simulation
    sim = Simulation(size=200)
    sim.pointer_down(100, 100)
    for _ in range(60):
        sim.tick()
    sim.save("screenshots")
"""

import os

import numpy as np

from .frame_store import FrameStore
from .pipeline import PipelineExecutor, PipelineParameters
from .scheduler import FrameScheduler
from .overlay import (
    OverlayControls, BLACK, color_name, paint_circle,
    scatter_points, composite_text, composite_image,
)
from .export import save_png, load_image, UnsupportedImageError
from .settings import (
    DEFAULTS, DEFAULT_RESOLUTION, RESOLUTIONS, WARMUP_TICKS, CommittedValue, ResolutionStore,
)


SEED_ORDER = ("disc", "points", "text", "blank")


class Simulation:
    """Single-threaded reaction-diffusion session.

    Args:
        size: Buffer side in pixels. None = persisted choice (or default)
        channels: 4 (RGBA) or 1 (gray)
        quantize: Emulate 8-bit framebuffers between passes
        warmup: Ticks to run right after creation
        settings: ResolutionStore for the persisted resolution (None = no persistence)
        rng: numpy Generator for random points (seed it for reproducible runs)
        params: PipelineParameters (None = defaults)
        save_dir: Directory the save command writes into
    """

    def __init__(self, size=None, channels=4, quantize=True, warmup=0,
                 settings=None, rng=None, params=None, save_dir="screenshots"):
        self.settings = settings
        self.save_dir = save_dir
        if size is None:
            size = settings.load() if settings is not None else DEFAULT_RESOLUTION
        self.rng = np.random.default_rng() if rng is None else rng

        self.params = params if params is not None else PipelineParameters(**DEFAULTS)
        # Unsharp radius edits apply on commit only
        self.unsharp_radius = CommittedValue(self.params.unsharp_radius)

        self.store = FrameStore(size, channels=channels, quantize=quantize)
        self.executor = PipelineExecutor()
        self.controls = OverlayControls(size)
        self.scheduler = FrameScheduler(self.store, self.executor, self.params, self.controls)

        self.pointer = None
        self.selected_image = None
        self.selected_image_name = "None"
        self.messages = []
        self.alive = True

        for _ in range(warmup):
            self.tick()

    @classmethod
    def create(cls, settings=None, **kwargs):
        """Start a session at the persisted resolution, followed by the warm-up frames."""
        if settings is None:
            settings = ResolutionStore()
        kwargs.setdefault("warmup", WARMUP_TICKS)
        return cls(size=None, settings=settings, **kwargs)

    # -----------------------------------------------------------------------
    # Lifecycle
    # -----------------------------------------------------------------------

    @property
    def size(self):
        return self.store.size

    @property
    def status(self):
        return self.scheduler.status

    @property
    def running(self):
        return self.scheduler.running

    def reset(self, size=None):
        """Full reset: reallocate buffers, clear to white, drop overlay state.

        The run/pause state and the committed pipeline parameters survive,
        an uncommitted radius edit is dropped. Overlay controls are rebuilt
        for the new size.
        """
        running = self.scheduler.running
        self.store.reset(size)
        self.unsharp_radius.revert()
        self.controls = OverlayControls(self.store.size)
        self.scheduler = FrameScheduler(self.store, self.executor, self.params,
                                        self.controls, running=running)
        self.pointer = None
        self.selected_image = None
        self.selected_image_name = "None"

    def set_resolution(self, size):
        """Switch resolution (persisted when a settings store is attached)."""
        size = int(size)
        if size not in RESOLUTIONS:
            raise ValueError(f"unsupported resolution {size}; choose from {RESOLUTIONS}")
        if self.settings is not None:
            self.settings.save(size)
        self.reset(size)
        self._notify(f"Resolution set to {size}x{size}")

    def destroy(self):
        self.store.release()
        self.selected_image = None
        self.alive = False

    def _notify(self, message):
        self.messages.append(message)
        print(f"[RD] {message}")

    @property
    def last_message(self):
        return self.messages[-1] if self.messages else ""

    # -----------------------------------------------------------------------
    # Parameters
    # -----------------------------------------------------------------------

    def set_params(self, **params):
        """Update pipeline parameters or overlay controls between frames.

        unsharp_radius only becomes pending here; commit_unsharp_radius()
        applies it.
        """
        if "unsharp_radius" in params:
            self.unsharp_radius.set_pending(params.pop("unsharp_radius"))
        pipeline_keys = DEFAULTS.keys()
        self.params.set_params(**{k: v for k, v in params.items() if k in pipeline_keys})
        overlay = {k: v for k, v in params.items() if k not in pipeline_keys}
        if overlay:
            self.controls.set_params(**overlay)

    def commit_unsharp_radius(self):
        """Apply a pending radius edit. Returns True if the radius changed."""
        if not self.unsharp_radius.dirty:
            return False
        self.params.unsharp_radius = self.unsharp_radius.commit()
        self._notify(f"Pattern scale set to {self.params.unsharp_radius:.1f}")
        return True

    def get_params(self):
        params = self.controls.get_params()
        params.update(self.params.get_params())
        params["unsharp_radius_pending"] = self.unsharp_radius.pending
        return params

    # -----------------------------------------------------------------------
    # Frame driving
    # -----------------------------------------------------------------------

    def tick(self):
        return self.scheduler.tick(self.pointer)

    def step_forward(self, n=1):
        return self.scheduler.step_forward(n, self.pointer)

    def toggle_running(self):
        return self.scheduler.toggle()

    def pause(self):
        self.scheduler.pause()

    def resume(self):
        self.scheduler.resume()

    # -----------------------------------------------------------------------
    # Pointer (cursor painting)
    # -----------------------------------------------------------------------

    def pointer_down(self, x, y):
        self.pointer = (float(x), float(y))

    def pointer_move(self, x, y):
        if self.pointer is not None:
            self.pointer = (float(x), float(y))

    def pointer_up(self):
        self.pointer = None

    # -----------------------------------------------------------------------
    # Overlay actions
    # -----------------------------------------------------------------------

    def clear(self):
        with self.store.claim("clear"):
            self.store.current[:] = self.store.background

    def toggle_cursor_color(self):
        self.controls.toggle_cursor_color()
        return color_name(self.controls.cursor_color)

    def toggle_border_color(self):
        self.controls.toggle_border_color()
        return color_name(self.controls.border_color)

    def toggle_text_colors(self):
        self.controls.toggle_text_colors()
        return color_name(self.controls.text_fill_color)

    def toggle_font(self):
        self.controls.toggle_font()
        return self.controls.font_name

    def scatter_points(self):
        """Drop random black seed points (pauses the simulation)."""
        self.pause()
        with self.store.claim("points"):
            return scatter_points(self.store.current, self.controls.random_point_count,
                                  self.controls.random_point_size, BLACK, rng=self.rng)

    def submit_text(self):
        """Composite the text controls onto the frame (pauses the simulation)."""
        c = self.controls
        self.pause()
        with self.store.claim("text"):
            composite_text(self.store.current, c.text_content, c.font_name, c.text_size,
                           c.text_fill_color, c.text_stroke_color, c.outline_weight,
                           c.text_weight)

    def seed(self, kind="disc"):
        """Seed the frame without touching the run state.

        disc   - black disc, radius size / 20, at the center
        points - random points with the current point controls
        text   - the current text controls
        blank  - clear to white
        """
        if kind not in SEED_ORDER:
            raise ValueError(f"unknown seed {kind!r}; choose from {SEED_ORDER}")
        c = self.controls
        with self.store.claim("seed"):
            buffer = self.store.current
            buffer[:] = self.store.background
            if kind == "disc":
                half = self.size / 2.0
                paint_circle(buffer, (half, half), self.size / 20.0, BLACK)
            elif kind == "points":
                scatter_points(buffer, c.random_point_count, c.random_point_size,
                               BLACK, rng=self.rng)
            elif kind == "text":
                composite_text(buffer, c.text_content, c.font_name, c.text_size,
                               c.text_fill_color, c.text_stroke_color, c.outline_weight,
                               c.text_weight)

    def load_image(self, path):
        """Select an image for submit_image(). Returns False if rejected."""
        try:
            image = load_image(path)
        except UnsupportedImageError as e:
            self._notify(str(e))
            return False
        self.selected_image = image
        self.selected_image_name = os.path.basename(path)
        self._notify(f"Loaded image {self.selected_image_name}")
        return True

    def submit_image(self):
        """Composite the selected image, long side = buffer side (pauses)."""
        if self.selected_image is None:
            self._notify("Load an image first (drop a JPEG or PNG onto the window)")
            return False
        self.pause()
        with self.store.claim("image"):
            composite_image(self.store.current, self.selected_image, self.store.size)
        return True

    # -----------------------------------------------------------------------
    # Export
    # -----------------------------------------------------------------------

    def frame_rgba(self):
        """Current frame as (H, W, 4) uint8."""
        return self.store.to_uint8()

    def save(self, directory):
        path = save_png(self.frame_rgba(), directory,
                        transparent=self.controls.transparent_background,
                        threshold=self.controls.transparency_threshold)
        print(f"Screenshot saved: {path}")
        return path

    @property
    def stats(self):
        stats = self.store.stats
        stats["generation"] = self.scheduler.generation
        stats["status"] = self.scheduler.status
        return stats

