#!/usr/bin/env python3
"""
Tests for the filter kernel library.

Verifies:
1. Blur weights are the normalized binomial row and sum to exactly 1
2. Blur / unsharp tap offsets
3. blur_tap weighted sums
4. unsharp identity at amount 0 and clamping after combination
"""

import numpy as np
from reaction_diffusion.kernels import (
    BLUR_RADIUS, BLUR_TAP_SPACING, blur_weights, blur_taps, unsharp_taps, blur_tap, unsharp,
)


def test_blur_weights():
    print("Testing blur weights...")
    w = blur_weights()
    assert len(w) == 2 * BLUR_RADIUS + 1 == 7
    expected = np.array([1, 6, 15, 20, 15, 6, 1]) / 64.0
    assert np.array_equal(w, expected), f"Unexpected weights: {w}"
    assert w.sum() == 1.0, "Weights must sum to exactly 1"
    assert np.array_equal(w, w[::-1]), "Weights must be symmetric"
    assert np.argmax(w) == BLUR_RADIUS, "Center tap carries the largest weight"
    print("  ✓ Blur weights normalized and symmetric")


def test_blur_taps_spread():
    print("Testing blur tap offsets...")
    assert BLUR_TAP_SPACING == 2.0
    offsets, weights = blur_taps(1.0)
    assert np.array_equal(offsets, [-6, -4, -2, 0, 2, 4, 6]), f"Spread 1 offsets: {offsets}"
    assert float(np.sum(weights * offsets ** 2)) == 6.0, "Variance 6 texels^2 at spread 1"
    offsets, _ = blur_taps(0.5)
    assert np.array_equal(offsets, np.arange(-3, 4)), "Spread 0.5 samples neighbouring texels"
    offsets, _ = blur_taps(2.5)
    assert np.allclose(offsets, np.arange(-3, 4) * 5.0)
    offsets, _ = blur_taps(0.0)
    assert np.all(offsets == 0), "Spread 0 samples the center only"

    offsets, weights = unsharp_taps(3.5)
    assert np.array_equal(offsets, [-3.5, 0.0, 3.5])
    assert np.array_equal(weights, [0.25, 0.5, 0.25])
    print("  ✓ Tap offsets scale with spread / radius")


def test_blur_tap():
    print("Testing blur_tap...")
    a = np.full((4, 4), 0.2, dtype=np.float32)
    b = np.full((4, 4), 0.6, dtype=np.float32)
    result = blur_tap([a, b], [0.25, 0.75])
    assert np.allclose(result, 0.2 * 0.25 + 0.6 * 0.75)

    out = np.empty((4, 4), dtype=np.float32)
    returned = blur_tap([a, b], [0.5, 0.5], out=out)
    assert returned is out, "Result should be written into out"
    assert np.allclose(out, 0.4)

    assert blur_tap([1.0, 3.0, 5.0], [0.25, 0.5, 0.25]) == 3.0

    try:
        blur_tap([], [])
        assert False, "Empty sample list should raise"
    except ValueError:
        pass
    print("  ✓ blur_tap computes weighted sums")


def test_unsharp_identity():
    print("Testing unsharp with amount 0...")
    rng = np.random.default_rng(1)
    center = rng.random((8, 8, 4)).astype(np.float32)
    blurred = rng.random((8, 8, 4)).astype(np.float32)
    result = unsharp(center, blurred, 0.0)
    assert np.array_equal(result, center), "unsharp(c, b, 0) must equal c exactly"
    print("  ✓ Amount 0 returns the center unchanged")


def test_unsharp_clamps_after_combination():
    print("Testing unsharp clamping...")
    center = np.array([0.6, 0.4, 0.5], dtype=np.float32)
    blurred = np.array([0.5, 0.5, 0.5], dtype=np.float32)
    result = unsharp(center, blurred, 64.0)
    assert result[0] == 1.0, "Bright residual saturates to white"
    assert result[1] == 0.0, "Dark residual saturates to black"
    assert result[2] == 0.5, "No residual, no change"

    small = unsharp(np.float32(0.52), np.float32(0.5), 1.0)
    assert abs(float(small) - 0.54) < 1e-6, f"Unclamped combination: {small}"
    print("  ✓ Combination then clamp to [0, 1]")


if __name__ == "__main__":
    print("\n=== Testing Filter Kernels ===\n")

    test_blur_weights()
    test_blur_taps_spread()
    test_blur_tap()
    test_unsharp_identity()
    test_unsharp_clamps_after_combination()

    print("\n✓ All tests passed!\n")
