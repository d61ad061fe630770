"""
Interactive Overlay Compositor

Draw operations that write straight into a frame buffer between pipeline
runs: cursor discs, random seed points, the border stroke, rasterized text
and loaded images. Everything drawn here is baked into the buffer and gets
picked up by the next blur pass (the border itself diffuses).

Colors are gray levels in [0, 1]; the controls only toggle between Black (0.0) and
White (1.0). Alpha stays opaque.
"""

import numpy as np
from PIL import Image, ImageDraw, ImageFont


BLACK = 0.0
WHITE = 1.0

# Font choice -> candidate TrueType files, first one found wins
FONTS = {
    "Mincho": ["NotoSerifCJK-Regular.ttc", "DejaVuSerif.ttf", "LiberationSerif-Regular.ttf",
               "Times New Roman.ttf", "times.ttf"],
    "Gothic": ["NotoSansCJK-Regular.ttc", "DejaVuSans.ttf", "LiberationSans-Regular.ttf",
               "Arial.ttf", "arial.ttf"],
}
FONT_ORDER = ["Mincho", "Gothic"]
LINE_DELIMITER = "/"


def color_name(value):
    return "White" if value >= 0.5 else "Black"


def toggled(value):
    """Black <-> White."""
    return WHITE - value


class OverlayControls:
    """User-facing drawing controls (colors, text, points, export).

    Sizes scale with the buffer side.
    """

    def __init__(self, size=200):
        ui_scale = size / 600
        self.cursor_color = BLACK
        self.cursor_radius = size / 12
        self.border_color = WHITE
        self.border_thickness = size / 24
        self.text_content = "文字"
        self.text_size = 250 * ui_scale
        self.text_weight = 0.0
        self.outline_weight = 15 * ui_scale
        self.text_fill_color = BLACK
        self.text_stroke_color = WHITE
        self.font_name = "Mincho"
        self.random_point_count = 20
        self.random_point_size = 50
        self.transparent_background = False
        self.transparency_threshold = 255

    def toggle_cursor_color(self):
        self.cursor_color = toggled(self.cursor_color)

    def toggle_border_color(self):
        self.border_color = toggled(self.border_color)

    def toggle_text_colors(self):
        """Fill flips, stroke is always the opposite of fill."""
        self.text_fill_color = toggled(self.text_fill_color)
        self.text_stroke_color = toggled(self.text_fill_color)

    def toggle_font(self):
        idx = FONT_ORDER.index(self.font_name) if self.font_name in FONT_ORDER else -1
        self.font_name = FONT_ORDER[(idx + 1) % len(FONT_ORDER)]

    def set_params(self, **params):
        for key, value in params.items():
            if not hasattr(self, key):
                raise AttributeError(f"unknown overlay control: {key}")
            setattr(self, key, value)

    def get_params(self):
        return dict(vars(self))


# ---------------------------------------------------------------------------
# Primitives
# ---------------------------------------------------------------------------

def _set_color(buffer, mask, color):
    buffer[mask, :min(3, buffer.shape[2])] = color
    if buffer.shape[2] == 4:
        buffer[mask, 3] = 1.0


def paint_circle(buffer, center, radius, color):
    """Flat-filled disc: every texel whose center lies within `radius`."""
    h, w = buffer.shape[:2]
    cx, cy = center
    Y, X = np.ogrid[:h, :w]
    mask = (X + 0.5 - cx) ** 2 + (Y + 0.5 - cy) ** 2 <= radius * radius
    _set_color(buffer, mask, color)
    return int(mask.sum())


def scatter_points(buffer, count, size, color=BLACK, rng=None):
    """Paint `count` discs of diameter `size` at uniform-random positions.

    Returns the list of centers used.
    """
    rng = np.random.default_rng() if rng is None else rng
    h, w = buffer.shape[:2]
    xs = rng.uniform(0, w, count)
    ys = rng.uniform(0, h, count)
    centers = list(zip(xs.tolist(), ys.tolist()))
    for center in centers:
        paint_circle(buffer, center, size / 2.0, color)
    return centers


def stroke_border(buffer, color, thickness):
    """Unfilled rectangle at the buffer's full extent.

    The stroke is centered on the outline, so thickness / 2 lands inside
    the buffer. Thickness 0 draws nothing.
    """
    if thickness <= 0:
        return
    h, w = buffer.shape[:2]
    half = thickness / 2.0
    Y, X = np.ogrid[:h, :w]
    edge_x = np.minimum(X + 0.5, w - X - 0.5)
    edge_y = np.minimum(Y + 0.5, h - Y - 0.5)
    mask = np.minimum(edge_x, edge_y) <= half
    _set_color(buffer, mask, color)


def load_font(font_name, size):
    """TrueType font for a font choice, Pillow's built-in font as last resort."""
    size = max(1, int(round(size)))
    for candidate in FONTS.get(font_name, []):
        try:
            return ImageFont.truetype(candidate, size)
        except OSError:
            continue
    return ImageFont.load_default(size=size)


def _gray_level(value):
    return int(round(float(np.clip(value, 0.0, 1.0)) * 255))


def render_text_layer(size, content, font, text_size, fill, stroke, stroke_width, weight):
    """Rasterize multi-line text onto a transparent (L, alpha) layer.

    Lines split on '/', centered on the layer with a leading of
    text_size / 2. The outline pass is drawn first (stroke color, outline
    weight), then the fill pass (fill color, text weight) on top.
    """
    layer = Image.new("LA", (size, size), (0, 0))
    draw = ImageDraw.Draw(layer)
    lines = content.split(LINE_DELIMITER)
    leading = text_size / 2.0
    center = size / 2.0

    passes = [
        (_gray_level(stroke), int(round(stroke_width))),
        (_gray_level(fill), int(round(weight))),
    ]
    for level, width in passes:
        for i, line in enumerate(lines):
            if not line:
                continue
            left, top, right, bottom = font.getbbox(line)
            x = center - (right - left) / 2.0 - left
            y = center + (i - (len(lines) - 1) / 2.0) * leading - (bottom - top) / 2.0 - top
            draw.text((x, y), line, font=font, fill=(level, 255),
                      stroke_width=width, stroke_fill=(level, 255))
    return layer


def composite_layer(buffer, layer, origin=(0, 0)):
    """Alpha-blend a Pillow image onto the buffer at `origin` (top-left)."""
    rgba = np.asarray(layer.convert("RGBA"), dtype=np.float32) / 255.0
    h, w = buffer.shape[:2]
    ox, oy = origin
    lh = min(rgba.shape[0], h - oy)
    lw = min(rgba.shape[1], w - ox)
    if lh <= 0 or lw <= 0:
        return
    src = rgba[:lh, :lw]
    alpha = src[:, :, 3:4]
    region = buffer[oy:oy + lh, ox:ox + lw]
    channels = min(3, buffer.shape[2])
    if channels == 1:
        color = src[:, :, :3].mean(axis=2, keepdims=True)
    else:
        color = src[:, :, :3]
    region[:, :, :channels] = color * alpha + region[:, :, :channels] * (1.0 - alpha)
    if buffer.shape[2] == 4:
        region[:, :, 3] = 1.0


def composite_text(buffer, content, font_name, size, fill, stroke, stroke_width, weight=0.0):
    """Rasterize `content` and blend it onto the buffer."""
    font = load_font(font_name, size)
    layer = render_text_layer(buffer.shape[0], content, font, size,
                              fill, stroke, stroke_width, weight)
    composite_layer(buffer, layer)
    return layer


def fit_image(image, target_long_side):
    """Uniform scale so the longer side equals target_long_side."""
    w, h = image.size
    scale = target_long_side / max(w, h)
    new_size = (max(1, int(round(w * scale))), max(1, int(round(h * scale))))
    return image.resize(new_size, Image.Resampling.BILINEAR)


def composite_image(buffer, image, target_long_side=None):
    """Scale an image to fit and blend it at the origin."""
    target = buffer.shape[0] if target_long_side is None else target_long_side
    scaled = fit_image(image.convert("RGBA"), target)
    composite_layer(buffer, scaled)
    return scaled.size
