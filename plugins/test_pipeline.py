#!/usr/bin/env python3
"""
Tests for the blur / unsharp pipeline.

Verifies:
1. Pass descriptors never alias source and destination
2. Edge clamping of the separable blur on all four borders
3. Row / column blur order agreement and clamp vs wrap addressing
4. Brightness preservation with amount 0 on a field flat near the border
5. Flat start stays uniform, a seeded disc bands outward deterministically
"""

import numpy as np
from reaction_diffusion.frame_store import FrameStore
from reaction_diffusion.kernels import blur_taps
from reaction_diffusion.overlay import paint_circle, BLACK
from reaction_diffusion.pipeline import (
    PipelineParameters, PipelineExecutor, PassDescriptor, SeparableBlur, run_pass,
)


def _blur(source, axis, spread=1.0):
    dest = np.empty_like(source)
    SeparableBlur(axis, spread)(source, dest)
    return dest


def _seeded_store(size, radius, channels=1, quantize=True):
    store = FrameStore(size, channels=channels, quantize=quantize)
    paint_circle(store.current, (size / 2.0, size / 2.0), radius, BLACK)
    return store


def test_run_pass_rejects_aliasing():
    print("Testing pass aliasing guard...")
    buf = np.ones((8, 8, 1), dtype=np.float32)
    blur = SeparableBlur(1, 1.0)
    try:
        run_pass(PassDescriptor("blur_h", blur, buf, buf))
        assert False, "Same source and dest should raise"
    except ValueError:
        pass
    try:
        run_pass(PassDescriptor("blur_h", blur, buf, buf[:, :, :]))
        assert False, "Views of the same memory should raise"
    except ValueError:
        pass
    print("  ✓ A pass never reads and writes the same buffer")


def test_pass_layout():
    print("Testing pass layout...")
    store = FrameStore(16, channels=1)
    executor = PipelineExecutor()
    passes = executor.build_passes(store, PipelineParameters())
    assert [p.name for p in passes] == ["blur_h", "blur_v", "unsharp"]
    current, a, b = store.current, store.scratch(0), store.scratch(1)
    assert passes[0].source is current and passes[0].dest is a
    assert passes[1].source is a and passes[1].dest is b
    assert passes[2].source is b and passes[2].dest is a
    for buf in executor._work:
        assert buf is not a and buf is not b, "Unsharp blur uses its own buffers"

    old = store.current
    executor.run(store, PipelineParameters())
    assert store.current is a and store.current is not old
    assert executor.runs == 1
    assert store.owner is None
    print("  ✓ current -> A -> B -> A, A promoted")


def test_edge_clamp_all_borders():
    print("Testing edge clamping on all four borders...")
    size = 16
    left = np.ones((size, size, 1), dtype=np.float32)
    left[:, 0] = 0.0

    # Taps two texels apart: x = 0 reads -6..0 black (1 + 6 + 15 + 20),
    # x = 1 reads -5..-1 black (1 + 6 + 15) and 1..7 white (20 + 15 + 6 + 1)
    cases = [
        ("left", left, 1, (slice(None), 0), (slice(None), 1)),
        ("right", left[:, ::-1].copy(), 1, (slice(None), size - 1), (slice(None), size - 2)),
        ("top", np.transpose(left, (1, 0, 2)).copy(), 0, (0, slice(None)), (1, slice(None))),
        ("bottom", np.transpose(left, (1, 0, 2))[::-1].copy(), 0,
         (size - 1, slice(None)), (size - 2, slice(None))),
    ]
    for name, field, axis, edge, inner in cases:
        out = _blur(field, axis)
        assert np.allclose(out[edge], 22 / 64), f"{name}: edge texel {out[edge].ravel()[0]}"
        assert np.allclose(out[inner], 42 / 64), f"{name}: next texel {out[inner].ravel()[0]}"
    print("  ✓ Reads past each border return the edge texel")


def test_blur_order_and_addressing():
    print("Testing blur order and clamp vs wrap...")
    rng = np.random.default_rng(7)
    field = rng.random((32, 32, 1)).astype(np.float32)
    hv = _blur(_blur(field, 1), 0)
    vh = _blur(_blur(field, 0), 1)
    assert np.allclose(hv, vh, atol=1e-6), "Row and column blurs act on independent axes"

    # Wrap-around reference for the horizontal pass
    offsets, weights = blur_taps(1.0)
    split = np.ones((32, 32, 1), dtype=np.float32)
    split[:, :16] = 0.0
    wrapped = sum(w * np.roll(split, -int(o), axis=1) for o, w in zip(offsets, weights))
    clamped = _blur(split, 1)
    assert np.allclose(clamped[:, 6:26], wrapped[:, 6:26]), "Interior agrees"
    assert not np.allclose(clamped[:, :6], wrapped[:, :6]), "Left edge must not wrap"
    assert not np.allclose(clamped[:, 26:], wrapped[:, 26:]), "Right edge must not wrap"
    assert np.allclose(clamped[:, 0], 0.0), "Clamped edge stays black"
    print("  ✓ Orders agree, edges clamp instead of wrapping")


def test_brightness_preserved_without_sharpening():
    print("Testing brightness preservation (amount 0)...")
    store = _seeded_store(64, 5, quantize=False)
    params = PipelineParameters(unsharp_amount=0.0)
    before = float(store.current.astype(np.float64).mean())
    PipelineExecutor().run_n(store, params, 3)
    after = float(store.current.astype(np.float64).mean())
    assert abs(after - before) < 1e-5, f"Mean drifted: {before} -> {after}"
    assert store.current.min() > 0.0, "The seed has been blurred"
    print("  ✓ Mean preserved while the field is flat at the border")


def test_flat_start_stays_uniform():
    print("Testing flat start...")
    store = FrameStore(200, channels=1)
    PipelineExecutor().run_n(store, PipelineParameters(), 50)
    assert np.all(store.current == 1.0), "A uniform white field stays uniform white"
    print("  ✓ 50 iterations of white stay white")


def test_seeded_diffusion_spreads():
    print("Testing seeded diffusion (200 iterations)...")
    frames = []
    for _ in range(2):
        store = _seeded_store(200, 10)
        seed_dark = int(np.count_nonzero(store.current < 0.5))
        PipelineExecutor().run_n(store, PipelineParameters(), 200)
        frames.append(store.snapshot())

    assert np.array_equal(frames[0], frames[1]), "Runs must be bit-identical"
    gray = frames[0][:, :, 0]
    assert gray.min() < 0.5 < gray.max(), "Pattern is not uniform"
    assert gray.var() > 0.001, f"Pattern variance too low: {gray.var()}"

    # The seed covers x, y in [90, 110)
    ys, xs = np.nonzero(gray < 0.5)
    assert xs.min() < 80 or xs.max() > 120, f"No bands left the seed: x in [{xs.min()}, {xs.max()}]"
    assert ys.min() < 80 or ys.max() > 120, f"No bands left the seed: y in [{ys.min()}, {ys.max()}]"
    assert len(xs) > 4 * seed_dark, f"Dark area {len(xs)} did not grow from {seed_dark}"
    print("  ✓ Bands spread outward from the seed, deterministically")


if __name__ == "__main__":
    print("\n=== Testing Pipeline ===\n")

    test_run_pass_rejects_aliasing()
    test_pass_layout()
    test_edge_clamp_all_borders()
    test_blur_order_and_addressing()
    test_brightness_preserved_without_sharpening()
    test_flat_start_stays_uniform()
    test_seeded_diffusion_spreads()

    print("\n✓ All tests passed!\n")
