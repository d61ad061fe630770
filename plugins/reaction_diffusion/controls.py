"""
UI Controls for the Reaction-Diffusion Viewer

Dark-themed widgets drawn directly with pygame: sliders (optionally
apply-on-release), buttons, a radio row for the resolution choice, a
one-line text field and a scrollable side panel that hosts them.
"""

import pygame


# Theme colors
THEME = {
    "bg": (14, 14, 18),
    "panel": (24, 24, 30),
    "track": (52, 52, 62),
    "track_fill": (210, 210, 220),
    "track_pending": (200, 150, 70),
    "handle": (200, 205, 215),
    "handle_active": (255, 255, 255),
    "text": (180, 182, 190),
    "text_bright": (235, 236, 240),
    "text_dim": (105, 108, 118),
    "button": (40, 40, 50),
    "button_hover": (58, 58, 72),
    "button_active": (150, 150, 165),
    "field": (34, 34, 44),
    "field_focus": (120, 120, 140),
    "divider": (42, 42, 54),
}


class Slider:
    """Horizontal slider with label and value display.

    With commit=True the value is only reported through on_commit when the
    drag ends; on_change still fires while dragging so the panel can show
    the pending value.
    """

    def __init__(self, x, y, width, label, min_val, max_val, value,
                 fmt=".2f", step=None, on_change=None, on_commit=None, commit=False):
        self.x = x
        self.y = y
        self.width = width
        self.height = 36
        self.label = label
        self.min_val = min_val
        self.max_val = max_val
        self.value = value
        self.committed = value
        self.fmt = fmt
        self.step = step
        self.on_change = on_change
        self.on_commit = on_commit
        self.commit = commit
        self.dragging = False
        self.hovered = False

        self.track_y = self.y + 22
        self.track_h = 4
        self.handle_r = 7
        self.track_x = self.x + 8
        self.track_w = self.width - 16

    def _val_to_x(self, val):
        span = (self.max_val - self.min_val) or 1.0
        frac = (val - self.min_val) / span
        return self.track_x + frac * self.track_w

    def _x_to_val(self, px):
        frac = max(0.0, min(1.0, (px - self.track_x) / self.track_w))
        val = self.min_val + frac * (self.max_val - self.min_val)
        if self.step:
            val = round(val / self.step) * self.step
        return max(self.min_val, min(self.max_val, val))

    def _drag_to(self, px):
        self.value = self._x_to_val(px)
        if self.on_change:
            self.on_change(self.value)

    def _release(self):
        self.dragging = False
        if self.value != self.committed:
            self.committed = self.value
            if self.on_commit:
                self.on_commit(self.value)

    @property
    def pending(self):
        return self.commit and self.value != self.committed

    def handle_event(self, event):
        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            mx, my = event.pos
            if (self.track_x - 4 <= mx <= self.track_x + self.track_w + 4 and
                    self.track_y - 12 <= my <= self.track_y + 12):
                self.dragging = True
                self._drag_to(mx)
                return True

        elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
            if self.dragging:
                self._release()
                return True

        elif event.type == pygame.MOUSEMOTION:
            mx, my = event.pos
            hx = self._val_to_x(self.value)
            self.hovered = abs(mx - hx) < 12 and abs(my - self.track_y) < 12
            if self.dragging:
                self._drag_to(mx)
                return True

        return False

    def set_value(self, val):
        self.value = max(self.min_val, min(self.max_val, val))
        self.committed = self.value

    def draw(self, surface, font):
        label = self.label + (" *" if self.pending else "")
        surface.blit(font.render(label, True, THEME["text"]), (self.x + 8, self.y + 2))

        val_surf = font.render(f"{self.value:{self.fmt}}", True, THEME["text_bright"])
        surface.blit(val_surf, (self.x + self.width - val_surf.get_width() - 8, self.y + 2))

        track_rect = pygame.Rect(self.track_x, self.track_y - self.track_h // 2,
                                 self.track_w, self.track_h)
        pygame.draw.rect(surface, THEME["track"], track_rect, border_radius=2)

        hx = self._val_to_x(self.value)
        fill = THEME["track_pending"] if self.pending else THEME["track_fill"]
        fill_rect = pygame.Rect(self.track_x, self.track_y - self.track_h // 2,
                                hx - self.track_x, self.track_h)
        pygame.draw.rect(surface, fill, fill_rect, border_radius=2)

        color = THEME["handle_active"] if (self.dragging or self.hovered) else THEME["handle"]
        r = self.handle_r + (2 if self.dragging else 0)
        pygame.draw.circle(surface, color, (int(hx), self.track_y), r)


class Button:
    """Clickable button. label may be a callable for state-dependent text."""

    def __init__(self, x, y, width, height, label, on_click=None, active=False):
        self.rect = pygame.Rect(x, y, width, height)
        self.label = label
        self.on_click = on_click
        self.active = active
        self.hovered = False

    def handle_event(self, event):
        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            if self.rect.collidepoint(event.pos):
                if self.on_click:
                    self.on_click()
                return True
        elif event.type == pygame.MOUSEMOTION:
            self.hovered = self.rect.collidepoint(event.pos)
        return False

    def draw(self, surface, font):
        if self.active:
            color = THEME["button_active"]
        elif self.hovered:
            color = THEME["button_hover"]
        else:
            color = THEME["button"]
        pygame.draw.rect(surface, color, self.rect, border_radius=4)

        text = self.label() if callable(self.label) else self.label
        label_surf = font.render(text, True, THEME["text_bright"])
        lx = self.rect.x + (self.rect.width - label_surf.get_width()) // 2
        ly = self.rect.y + (self.rect.height - label_surf.get_height()) // 2
        surface.blit(label_surf, (lx, ly))


class ButtonRow:
    """Row of selectable buttons (radio behaviour)."""

    def __init__(self, x, y, width, labels, selected=0, on_select=None, btn_height=24):
        self.labels = labels
        self.selected = selected
        self.on_select = on_select

        self.buttons = []
        padding = 4
        bx, by = x, y
        for label in labels:
            bw = max(len(label) * 8 + 14, 40)
            if bx + bw > x + width and bx > x:
                bx = x
                by += btn_height + padding
            self.buttons.append(Button(bx, by, bw, btn_height, label))
            bx += bw + padding

        self.total_height = by - y + btn_height
        self._update_active()

    def _update_active(self):
        for i, btn in enumerate(self.buttons):
            btn.active = (i == self.selected)

    def select(self, index):
        self.selected = index
        self._update_active()

    def handle_event(self, event):
        for i, btn in enumerate(self.buttons):
            if btn.handle_event(event):
                self.select(i)
                if self.on_select:
                    self.on_select(i, self.labels[i])
                return True
        return False

    def draw(self, surface, font):
        for btn in self.buttons:
            btn.draw(surface, font)


class SectionHeader:
    """Section divider with title."""

    def __init__(self, x, y, width, title):
        self.x = x
        self.y = y
        self.width = width
        self.title = title
        self.height = 24

    def draw(self, surface, font):
        pygame.draw.line(surface, THEME["divider"],
                         (self.x + 8, self.y + 8),
                         (self.x + self.width - 8, self.y + 8))
        surface.blit(font.render(self.title, True, THEME["text_dim"]), (self.x + 8, self.y + 12))


class TextField:
    """One-line text input. Click to focus, Enter or click elsewhere to blur.

    While focused the viewer must not treat letters as hotkeys; check
    `focused` before dispatching key commands.
    """

    def __init__(self, x, y, width, value="", on_change=None, on_submit=None):
        self.rect = pygame.Rect(x, y, width, 26)
        self.value = value
        self.on_change = on_change
        self.on_submit = on_submit
        self.focused = False

    def _set(self, value):
        self.value = value
        if self.on_change:
            self.on_change(value)

    def handle_event(self, event):
        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            was = self.focused
            self.focused = self.rect.collidepoint(event.pos)
            if self.focused:
                pygame.key.start_text_input()
            elif was:
                pygame.key.stop_text_input()
            return self.focused
        if not self.focused:
            return False
        if event.type == pygame.TEXTINPUT:
            self._set(self.value + event.text)
            return True
        if event.type == pygame.KEYDOWN:
            if event.key == pygame.K_BACKSPACE:
                self._set(self.value[:-1])
            elif event.key in (pygame.K_RETURN, pygame.K_KP_ENTER, pygame.K_ESCAPE):
                self.focused = False
                pygame.key.stop_text_input()
                if event.key != pygame.K_ESCAPE and self.on_submit:
                    self.on_submit(self.value)
            return True
        return False

    def draw(self, surface, font):
        pygame.draw.rect(surface, THEME["field"], self.rect, border_radius=3)
        if self.focused:
            pygame.draw.rect(surface, THEME["field_focus"], self.rect, 1, border_radius=3)
        text = self.value + ("|" if self.focused else "")
        text_surf = font.render(text, True, THEME["text_bright"])
        # Keep the tail of long text visible
        clip = max(0, text_surf.get_width() - (self.rect.width - 12))
        surface.blit(text_surf, (self.rect.x + 6, self.rect.y + 5),
                     area=pygame.Rect(clip, 0, self.rect.width - 12, text_surf.get_height()))


class Label:
    """Static or computed line of dim text."""

    def __init__(self, x, y, text):
        self.x = x
        self.y = y
        self.text = text

    def draw(self, surface, font):
        text = self.text() if callable(self.text) else self.text
        surface.blit(font.render(text, True, THEME["text_dim"]), (self.x + 8, self.y))


class ControlPanel:
    """
    Side panel hosting the control widgets.
    Lays widgets out top to bottom and scrolls with the mouse wheel when
    they do not fit.
    """

    def __init__(self, x, y, width, height):
        self.x = x
        self.y = y
        self.width = width
        self.height = height
        self.widgets = []
        self.surface = pygame.Surface((width, height))
        self.scroll = 0
        self._cursor_y = 8

    @property
    def content_height(self):
        return self._cursor_y + 8

    def add_section(self, title):
        header = SectionHeader(0, self._cursor_y, self.width, title)
        self.widgets.append(header)
        self._cursor_y += header.height + 4

    def add_slider(self, label, min_val, max_val, value, fmt=".2f",
                   step=None, on_change=None, on_commit=None, commit=False):
        slider = Slider(0, self._cursor_y, self.width, label, min_val, max_val,
                        value, fmt, step, on_change, on_commit, commit)
        self.widgets.append(slider)
        self._cursor_y += slider.height + 6
        return slider

    def add_button_row(self, labels, selected=0, on_select=None):
        row = ButtonRow(8, self._cursor_y, self.width - 16, labels, selected, on_select)
        self.widgets.append(row)
        self._cursor_y += row.total_height + 8
        return row

    def add_button(self, label, on_click=None):
        btn = Button(8, self._cursor_y, self.width - 16, 26, label, on_click)
        self.widgets.append(btn)
        self._cursor_y += 32
        return btn

    def add_text_field(self, value="", on_change=None, on_submit=None):
        field = TextField(8, self._cursor_y, self.width - 16, value, on_change, on_submit)
        self.widgets.append(field)
        self._cursor_y += field.rect.height + 8
        return field

    def add_label(self, text):
        label = Label(0, self._cursor_y, text)
        self.widgets.append(label)
        self._cursor_y += 20
        return label

    def add_spacer(self, height=8):
        self._cursor_y += height

    @property
    def text_focused(self):
        return any(getattr(w, "focused", False) for w in self.widgets)

    def _scroll_by(self, dy):
        max_scroll = max(0, self.content_height - self.height)
        self.scroll = max(0, min(max_scroll, self.scroll - dy * 24))

    def contains(self, pos):
        return (self.x <= pos[0] <= self.x + self.width and
                self.y <= pos[1] <= self.y + self.height)

    def handle_event(self, event):
        """Process events, translating positions into scrolled panel space."""
        if event.type == pygame.MOUSEWHEEL:
            if self.contains(pygame.mouse.get_pos()):
                self._scroll_by(event.y)
                return True
            return False

        if hasattr(event, "pos"):
            local_pos = (event.pos[0] - self.x, event.pos[1] - self.y + self.scroll)
            if not self.contains(event.pos):
                # Releases outside the panel still end drags and blur fields
                if event.type in (pygame.MOUSEBUTTONUP, pygame.MOUSEBUTTONDOWN):
                    outside = pygame.event.Event(event.type, {
                        **{k: v for k, v in event.__dict__.items() if k != "pos"},
                        "pos": (-1, -1),
                    })
                    for widget in self.widgets:
                        if hasattr(widget, "handle_event"):
                            widget.handle_event(outside)
                return False
            adjusted = pygame.event.Event(event.type, {
                **{k: v for k, v in event.__dict__.items() if k != "pos"},
                "pos": local_pos,
            })
        else:
            adjusted = event

        for widget in self.widgets:
            if hasattr(widget, "handle_event"):
                if widget.handle_event(adjusted):
                    return True
        return False

    def draw(self, target_surface, font):
        """Draw the panel onto the target surface."""
        content = pygame.Surface((self.width, max(self.height, self.content_height)))
        content.fill(THEME["panel"])
        for widget in self.widgets:
            widget.draw(content, font)

        self.surface.blit(content, (0, 0), area=pygame.Rect(0, self.scroll, self.width, self.height))
        pygame.draw.line(self.surface, THEME["divider"], (0, 0), (0, self.height))
        target_surface.blit(self.surface, (self.x, self.y))
