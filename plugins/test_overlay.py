#!/usr/bin/env python3
"""
Tests for the overlay compositor.

Verifies:
1. Disc painting and random points
2. Border stroke thickness (half lands inside)
3. Text rasterization: outline pass under the fill pass
4. Image fit-and-blend at the origin
5. Control defaults and color toggles
"""

import numpy as np
from PIL import Image
from reaction_diffusion.overlay import (
    OverlayControls, BLACK, WHITE, color_name, paint_circle, scatter_points,
    stroke_border, load_font, render_text_layer, composite_text, composite_image,
)


def _white(size=64, channels=4):
    return np.ones((size, size, channels), dtype=np.float32)


def test_paint_circle():
    print("Testing paint_circle...")
    buf = _white()
    buf[:, :, 3] = 0.5
    count = paint_circle(buf, (32, 32), 10, BLACK)
    assert abs(count - np.pi * 100) < 20, f"Disc area off: {count}"
    assert np.all(buf[32, 32, :3] == 0.0) and buf[32, 32, 3] == 1.0
    assert np.all(buf[32, 45, :3] == 1.0), "Outside the radius is untouched"
    assert int((buf[:, :, 0] == 0.0).sum()) == count
    print("  ✓ Flat disc, opaque")


def test_scatter_points():
    print("Testing scatter_points...")
    a = _white(channels=1)
    b = _white(channels=1)
    centers_a = scatter_points(a, 20, 6, rng=np.random.default_rng(3))
    centers_b = scatter_points(b, 20, 6, rng=np.random.default_rng(3))
    assert len(centers_a) == 20
    assert centers_a == centers_b and np.array_equal(a, b), "Seeded RNG reproduces points"
    for cx, cy in centers_a:
        assert 0 <= cx < 64 and 0 <= cy < 64
        assert a[int(cy), int(cx), 0] == BLACK, "Each point center is painted"
    print("  ✓ Points land inside the buffer, reproducibly")


def test_stroke_border():
    print("Testing stroke_border...")
    buf = _white(channels=1)
    stroke_border(buf, BLACK, 0)
    assert np.all(buf == 1.0), "Thickness 0 draws nothing"

    stroke_border(buf, BLACK, 8)
    gray = buf[:, :, 0]
    for edge in (gray[:, :4], gray[:, -4:], gray[:4, :], gray[-4:, :]):
        assert np.all(edge == 0.0), "Half of the thickness lands inside"
    assert np.all(gray[4:-4, 4:-4] == 1.0), "Interior untouched"
    print("  ✓ Border stroke centered on the outline")


def test_text_layer_passes():
    print("Testing text rasterization...")
    font = load_font("Gothic", 40)
    layer = render_text_layer(100, "AB", font, 40, BLACK, WHITE, 3, 0)
    data = np.asarray(layer)
    assert data.shape == (100, 100, 2)
    opaque = data[:, :, 1] == 255
    assert np.any(opaque & (data[:, :, 0] == 0)), "Fill pass visible on top"
    assert np.any(opaque & (data[:, :, 0] == 255)), "Outline pass visible around the fill"
    assert data[0, 0, 1] == 0, "Layer background is transparent"

    ys, xs = np.nonzero(opaque)
    assert abs(xs.mean() - 50) < 15 and abs(ys.mean() - 50) < 15, "Text is centered"

    two = np.asarray(render_text_layer(100, "A/B", font, 40, BLACK, WHITE, 0, 0))
    ys, _ = np.nonzero(two[:, :, 1] > 0)
    assert ys.min() < 40 and ys.max() > 60, "Lines stack around the center"
    print("  ✓ Outline then fill, centered lines")


def test_composite_text():
    print("Testing composite_text...")
    buf = _white(100)
    composite_text(buf, "AB", "Mincho", 40, BLACK, WHITE, 3)
    assert buf[:, :, 0].min() == 0.0, "Black fill blended in"
    assert np.all(buf[:, :, 3] == 1.0), "Alpha stays opaque"
    assert np.all(buf[:5, :, :3] == 1.0), "Away from the text nothing changes"
    print("  ✓ Text blended onto the buffer")


def test_composite_image():
    print("Testing composite_image...")
    buf = _white(100)
    image = Image.new("RGB", (40, 20), (0, 0, 0))
    w, h = composite_image(buf, image, 100)
    assert (w, h) == (100, 50), f"Long side should fit: {(w, h)}"
    assert np.all(buf[:50, :, :3] == 0.0), "Image blitted at the origin"
    assert np.all(buf[50:, :, :3] == 1.0), "Below the image is untouched"

    gray = _white(100, channels=1)
    composite_image(gray, Image.new("RGB", (20, 40), (255, 255, 255)).convert("L"))
    assert np.all(gray == 1.0)
    print("  ✓ Uniform scale, origin blit")


def test_controls():
    print("Testing overlay controls...")
    c = OverlayControls(600)
    assert c.cursor_radius == 50, "Cursor diameter is size / 6"
    assert c.border_thickness == 25
    assert c.text_size == 250 and c.outline_weight == 15
    assert c.text_content == "文字"
    assert (c.random_point_count, c.random_point_size) == (20, 50)
    assert c.transparency_threshold == 255 and not c.transparent_background

    small = OverlayControls(300)
    assert small.text_size == 125 and small.outline_weight == 7.5

    c.toggle_cursor_color()
    assert color_name(c.cursor_color) == "White"
    c.toggle_border_color()
    assert color_name(c.border_color) == "Black"
    c.toggle_text_colors()
    assert c.text_fill_color == WHITE and c.text_stroke_color == BLACK
    c.toggle_font()
    assert c.font_name == "Gothic"
    c.toggle_font()
    assert c.font_name == "Mincho"

    c.set_params(random_point_count=5)
    assert c.get_params()["random_point_count"] == 5
    try:
        c.set_params(unknown=1)
        assert False, "Unknown controls should raise"
    except AttributeError:
        pass
    print("  ✓ Defaults scale with size, toggles flip")


if __name__ == "__main__":
    print("\n=== Testing Overlay Compositor ===\n")

    test_paint_circle()
    test_scatter_points()
    test_stroke_border()
    test_text_layer_passes()
    test_composite_text()
    test_composite_image()
    test_controls()

    print("\n✓ All tests passed!\n")
