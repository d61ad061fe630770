"""
Defaults, Slider Definitions and Persisted Settings

Module-level constants describe the control surface. Two small helpers
carry the stateful parts:

1. CommittedValue  - edit freely, takes effect only on commit() (used for
                     the unsharp radius so dragging does not thrash the loop)
2. ResolutionStore - JSON key/value file that remembers the resolution
                     choice across sessions
"""

import json
import os


RESOLUTIONS = (100, 200, 300, 400, 500, 600)
DEFAULT_RESOLUTION = 200
DISPLAY_SIZE = 600
RESOLUTION_KEY = "rd-resolution"
SETTINGS_ENV = "RD_SETTINGS"
WARMUP_TICKS = 3

DEFAULTS = {
    "blur_spread": 1.0,
    "unsharp_radius": 3.5,
    "unsharp_amount": 64.0,
}


def get_slider_defs(size=DEFAULT_RESOLUTION):
    """Slider definitions for the control panel.

    Same dict format as the engine sliders of the viewer:
        {"key", "label", "section", "min", "max", "default", "fmt", "step"}
    Drawing sizes scale with the buffer (size / 600).
    """
    ui_scale = size / DISPLAY_SIZE
    return [
        {"key": "blur_spread", "label": "Blur Spread", "section": "PATTERN",
         "min": 0.0, "max": 3.0, "default": 1.0, "fmt": ".2f", "step": 0.05},
        {"key": "unsharp_radius", "label": "Pattern Scale (Radius)", "section": "PATTERN",
         "min": 1.0, "max": 20.0, "default": 3.5, "fmt": ".1f", "step": 0.5,
         "commit": True},
        {"key": "unsharp_amount", "label": "Sharpen Amount", "section": "PATTERN",
         "min": 0.0, "max": 128.0, "default": 64.0, "fmt": ".1f", "step": 0.5},
        {"key": "cursor_radius", "label": "Cursor Radius", "section": "CURSOR",
         "min": 5, "max": max(6, 75 * ui_scale), "default": size / 12, "fmt": ".0f", "step": 1},
        {"key": "text_size", "label": "Text Size", "section": "TEXT",
         "min": 100 * ui_scale, "max": 500 * ui_scale, "default": 250 * ui_scale,
         "fmt": ".0f", "step": 1},
        {"key": "text_weight", "label": "Text Weight", "section": "TEXT",
         "min": 0.0, "max": 30 * ui_scale, "default": 0.0, "fmt": ".1f", "step": 0.5},
        {"key": "outline_weight", "label": "Outline Weight", "section": "TEXT",
         "min": 0.0, "max": 30 * ui_scale, "default": 15 * ui_scale, "fmt": ".1f", "step": 0.5},
        {"key": "random_point_count", "label": "Point Count", "section": "RANDOM POINTS",
         "min": 1, "max": 100, "default": 20, "fmt": ".0f", "step": 1},
        {"key": "random_point_size", "label": "Point Size", "section": "RANDOM POINTS",
         "min": 10, "max": 100, "default": 50, "fmt": ".0f", "step": 1},
        {"key": "transparency_threshold", "label": "Transparency Threshold", "section": "EXPORT",
         "min": 0, "max": 255, "default": 255, "fmt": ".0f", "step": 1},
    ]


def clamp_to_slider(sdef, value):
    """Snap a value to a slider's step and clamp it to [min, max]."""
    if sdef.get("step"):
        value = round(value / sdef["step"]) * sdef["step"]
    return max(sdef["min"], min(sdef["max"], value))


def step_count_for_digit(digit):
    """Digit keys 1-9 step that many frames, 0 steps 10."""
    return 10 if digit == 0 else digit


class CommittedValue:
    """A value whose edits only apply on commit().

    The control surface writes `pending` while the user drags; the pipeline
    reads `value`, which changes once the edit is committed.
    """

    def __init__(self, initial_value):
        self.value = initial_value
        self.pending = initial_value

    def set_pending(self, new_value):
        self.pending = new_value

    @property
    def dirty(self):
        return self.pending != self.value

    def commit(self):
        """Apply the pending edit. Returns the committed value."""
        self.value = self.pending
        return self.value

    def revert(self):
        self.pending = self.value


def default_settings_path():
    env = os.environ.get(SETTINGS_ENV)
    if env:
        return env
    return os.path.join(os.path.expanduser("~"), ".config", "reaction-diffusion", "settings.json")


class ResolutionStore:
    """Persist the resolution choice in a small JSON file."""

    def __init__(self, path=None):
        self.path = path or default_settings_path()

    def _read(self):
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError):
            return {}
        return data if isinstance(data, dict) else {}

    def load(self):
        """Stored resolution, or the default if missing or invalid."""
        try:
            value = int(self._read().get(RESOLUTION_KEY, DEFAULT_RESOLUTION))
        except (TypeError, ValueError):
            return DEFAULT_RESOLUTION
        return value if value in RESOLUTIONS else DEFAULT_RESOLUTION

    def save(self, resolution):
        if resolution not in RESOLUTIONS:
            raise ValueError(f"unsupported resolution {resolution}; choose from {RESOLUTIONS}")
        data = self._read()
        data[RESOLUTION_KEY] = resolution
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
