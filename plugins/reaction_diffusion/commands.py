"""
Key Command Dispatch

Maps single-character keys to Simulation actions. Letter keys are ignored
while a text field has focus so typing text never triggers commands.

  space  Run / pause          b  Cursor color       v  Border color
  c      Clear                x  Text colors        f  Font
  r      Random points        t  Submit text        i  Submit image
  s      Save PNG             1-9, 0  Step 1-9 / 10 frames while paused
"""

from .settings import step_count_for_digit


DIGIT_KEYS = frozenset("0123456789")


def _toggle(sim):
    status = sim.toggle_running()
    print(f"[RD] {status}")


def _cursor_color(sim):
    print(f"[RD] Cursor color: {sim.toggle_cursor_color()}")


def _border_color(sim):
    print(f"[RD] Border color: {sim.toggle_border_color()}")


def _text_colors(sim):
    print(f"[RD] Text fill: {sim.toggle_text_colors()}")


def _font(sim):
    print(f"[RD] Font: {sim.toggle_font()}")


def _save(sim):
    sim.save(sim.save_dir)


KEY_COMMANDS = {
    " ": _toggle,
    "b": _cursor_color,
    "c": lambda sim: sim.clear(),
    "r": lambda sim: sim.scatter_points(),
    "t": lambda sim: sim.submit_text(),
    "i": lambda sim: sim.submit_image(),
    "s": _save,
    "v": _border_color,
    "x": _text_colors,
    "f": _font,
}


def dispatch_key(sim, key, text_focused=False):
    """Run the command bound to `key`. Returns True if the key was consumed."""
    if text_focused or not key:
        return False
    key = key.lower() if len(key) == 1 else key
    if key in DIGIT_KEYS:
        return sim.step_forward(step_count_for_digit(int(key))) > 0
    command = KEY_COMMANDS.get(key)
    if command is None:
        return False
    command(sim)
    return True
