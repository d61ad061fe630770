"""
Interactive Pygame Viewer for the Reaction-Diffusion Loop

Shows the frame buffer scaled up to the window, with a scrollable side
panel for the pattern, cursor, text, random point and export controls.

Controls:
  SPACE       Run / Pause
  1-9, 0      Step 1-9 / 10 frames (while paused)
  B / V       Toggle cursor / border color
  X / F       Toggle text colors / font
  C           Clear
  R           Random points (pauses)
  T           Submit text (pauses)
  I           Submit dropped image (pauses)
  S           Save PNG
  TAB         Toggle control panel
  H           Toggle HUD overlay
  Q / ESC     Quit
  Mouse L     Paint with the cursor color
  Drop file   Select a JPEG / PNG for Submit Image
"""

import time
import numpy as np
import pygame

from .commands import dispatch_key
from .controls import ControlPanel, THEME
from .overlay import color_name
from .settings import RESOLUTIONS, get_slider_defs, clamp_to_slider


PANEL_WIDTH = 280
INT_KEYS = ("random_point_count", "random_point_size", "transparency_threshold")


def canvas_to_buffer(pos, canvas_size, buffer_size):
    """Map a window position on the canvas to buffer pixel coordinates."""
    cw, ch = canvas_size
    return (pos[0] * buffer_size / cw, pos[1] * buffer_size / ch)


def frame_surface(rgba):
    """pygame Surface from an (H, W, 4) uint8 frame (alpha dropped)."""
    return pygame.surfarray.make_surface(np.ascontiguousarray(rgba[:, :, :3].swapaxes(0, 1)))


class Viewer:
    def __init__(self, sim, width=600, height=600):
        self.sim = sim
        self.canvas_w = width
        self.canvas_h = height
        self.panel_visible = True
        self.show_hud = True
        self.running = True
        self.painting = False
        self.fps_history = []

        # Built after pygame.init in run()
        self.panel = None
        self.sliders = {}
        self.text_field = None
        self.resolution_buttons = None

    @property
    def total_w(self):
        return self.canvas_w + (PANEL_WIDTH if self.panel_visible else 0)

    # -----------------------------------------------------------------------
    # Panel
    # -----------------------------------------------------------------------

    def _build_panel(self):
        sim = self.sim
        panel = ControlPanel(self.canvas_w, 0, PANEL_WIDTH, self.canvas_h)
        self.sliders = {}
        values = sim.get_params()

        section = None
        for sdef in get_slider_defs(sim.size):
            if sdef["section"] != section:
                section = sdef["section"]
                panel.add_section(section)
                if section == "TEXT":
                    self.text_field = panel.add_text_field(
                        sim.controls.text_content,
                        on_change=lambda v: sim.set_params(text_content=v),
                        on_submit=lambda v: sim.submit_text(),
                    )
            key = sdef["key"]
            value = values.get(key, sdef["default"])
            if sdef.get("commit"):
                self.sliders[key] = panel.add_slider(
                    sdef["label"], sdef["min"], sdef["max"], value,
                    fmt=sdef.get("fmt", ".2f"), step=sdef.get("step"),
                    on_change=lambda v: sim.set_params(unsharp_radius=v),
                    on_commit=lambda v: sim.commit_unsharp_radius(),
                    commit=True,
                )
            else:
                self.sliders[key] = panel.add_slider(
                    sdef["label"], sdef["min"], sdef["max"], clamp_to_slider(sdef, value),
                    fmt=sdef.get("fmt", ".2f"), step=sdef.get("step"),
                    on_change=self._make_param_callback(key),
                )
            if key == "cursor_radius":
                panel.add_button(lambda: f"Cursor: {color_name(sim.controls.cursor_color)}  [B]",
                                 on_click=sim.toggle_cursor_color)
                panel.add_button(lambda: f"Border: {color_name(sim.controls.border_color)}  [V]",
                                 on_click=sim.toggle_border_color)
            elif key == "outline_weight":
                panel.add_button(lambda: f"Text fill: {color_name(sim.controls.text_fill_color)}  [X]",
                                 on_click=sim.toggle_text_colors)
                panel.add_button(lambda: f"Font: {sim.controls.font_name}  [F]",
                                 on_click=sim.toggle_font)
                panel.add_button("Submit Text  [T]", on_click=sim.submit_text)
            elif key == "random_point_size":
                panel.add_button("Random Points  [R]", on_click=sim.scatter_points)

        panel.add_section("IMAGE")
        panel.add_label(lambda: f"Selected: {sim.selected_image_name}")
        panel.add_label("Drop a JPEG / PNG onto the window")
        panel.add_button("Submit Image  [I]", on_click=sim.submit_image)

        panel.add_section("EXPORT")
        panel.add_button(
            lambda: "Transparent BG: " + ("On" if sim.controls.transparent_background else "Off"),
            on_click=self._on_transparent_toggle,
        )
        panel.add_button("Save PNG  [S]", on_click=lambda: sim.save(sim.save_dir))

        panel.add_section("RESOLUTION")
        labels = [str(r) for r in RESOLUTIONS]
        selected = RESOLUTIONS.index(sim.size) if sim.size in RESOLUTIONS else 0
        self.resolution_buttons = panel.add_button_row(labels, selected=selected,
                                                       on_select=self._on_resolution_select)

        panel.add_section("SIMULATION")
        panel.add_button(lambda: ("Pause" if sim.running else "Run") + "  [Space]",
                         on_click=sim.toggle_running)
        panel.add_button("Clear  [C]", on_click=sim.clear)

        self.panel = panel

    def _make_param_callback(self, key):
        def callback(val):
            if key in INT_KEYS:
                val = int(val)
            self.sim.set_params(**{key: val})
        return callback

    def _on_transparent_toggle(self):
        c = self.sim.controls
        c.transparent_background = not c.transparent_background

    def _on_resolution_select(self, idx, label):
        size = RESOLUTIONS[idx]
        if size == self.sim.size:
            return
        self.sim.set_resolution(size)
        self.painting = False
        self._build_panel()

    # -----------------------------------------------------------------------
    # Drawing
    # -----------------------------------------------------------------------

    def _draw_hud(self, screen, fps):
        if not self.show_hud:
            return
        stats = self.sim.stats
        line = (f"{stats['status']}  |  Gen: {stats['generation']:,}  |  "
                f"{stats['size']}x{stats['size']}  |  FPS: {fps:.0f}")
        message = self.sim.last_message
        if message:
            line += f"  |  {message}"

        bg_surface = pygame.Surface((self.canvas_w, 24), pygame.SRCALPHA)
        bg_surface.fill((0, 0, 0, 140))
        screen.blit(bg_surface, (0, 0))
        screen.blit(self.hud_font.render(line, True, (215, 218, 225)), (10, 6))

    # -----------------------------------------------------------------------
    # Input
    # -----------------------------------------------------------------------

    def _in_canvas(self, pos):
        return 0 <= pos[0] < self.canvas_w and 0 <= pos[1] < self.canvas_h

    def _handle_mouse(self, event):
        size = (self.canvas_w, self.canvas_h)
        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            if self._in_canvas(event.pos):
                self.painting = True
                self.sim.pointer_down(*canvas_to_buffer(event.pos, size, self.sim.size))
        elif event.type == pygame.MOUSEMOTION and self.painting:
            self.sim.pointer_move(*canvas_to_buffer(event.pos, size, self.sim.size))
        elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
            self.painting = False
            self.sim.pointer_up()

    def _handle_keydown(self, event, screen):
        if self.panel and self.panel.text_focused:
            self.panel.handle_event(event)
            return screen

        key = event.key
        if key in (pygame.K_q, pygame.K_ESCAPE):
            self.running = False
        elif key == pygame.K_TAB:
            self.panel_visible = not self.panel_visible
            screen = pygame.display.set_mode((self.total_w, self.canvas_h))
        elif key == pygame.K_h:
            self.show_hud = not self.show_hud
        else:
            dispatch_key(self.sim, event.unicode)
        return screen

    def run(self):
        """Main viewer loop."""
        pygame.init()

        screen = pygame.display.set_mode((self.total_w, self.canvas_h))
        pygame.display.set_caption("Reaction-Diffusion")
        clock = pygame.time.Clock()

        self.hud_font = pygame.font.SysFont("menlo", 13)
        self.panel_font = pygame.font.SysFont("menlo", 12)

        self._build_panel()

        while self.running:
            frame_start = time.time()

            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    self.running = False
                    continue

                if event.type == pygame.DROPFILE:
                    self.sim.load_image(event.file)
                    continue

                if event.type == pygame.KEYDOWN:
                    screen = self._handle_keydown(event, screen)
                    continue

                if self.panel_visible and self.panel:
                    if self.panel.handle_event(event):
                        if event.type == pygame.MOUSEBUTTONUP:
                            self.painting = False
                            self.sim.pointer_up()
                        continue

                if hasattr(event, "pos"):
                    self._handle_mouse(event)

            self.sim.tick()

            screen.fill(THEME["bg"])
            scaled = pygame.transform.smoothscale(frame_surface(self.sim.frame_rgba()),
                                                  (self.canvas_w, self.canvas_h))
            screen.blit(scaled, (0, 0))

            frame_time = time.time() - frame_start
            self.fps_history.append(frame_time)
            if len(self.fps_history) > 30:
                self.fps_history.pop(0)
            avg_fps = 1.0 / max(np.mean(self.fps_history), 0.001)

            self._draw_hud(screen, avg_fps)

            if self.panel_visible and self.panel:
                self.panel.x = self.canvas_w
                self.panel.height = self.canvas_h
                self.panel.draw(screen, self.panel_font)

            pygame.display.flip()
            clock.tick(60)

        self.sim.destroy()
        pygame.quit()
