"""
Filter Kernels for the Blur / Unsharp Feedback Loop

Pure numeric helpers, no state:

1. Blur taps   - binomial (Gaussian-like) 1-D kernel, radius 3 = 7 taps,
                 two texels apart per unit of spread
2. blur_tap    - weighted sum of N sampled buffers
3. Unsharp     - center + amount * (center - blurred), clamped to [0, 1]

Offsets are in texel units. At spread 1.0 the taps sit on every other texel,
out to 6 texels each side, the footprint of a 13-texel linear-sampled GPU
blur. Fractional offsets land between texels and are resolved by bilinear
sampling in the frame store.

NaN / Inf inputs are not guarded against and propagate through every
function here.
"""

from math import comb

import numpy as np


BLUR_RADIUS = 3          # Taps on each side of the center (7-tap kernel)
BLUR_TAP_SPACING = 2.0   # Texels between neighbouring taps at spread 1.0
UNSHARP_WEIGHTS = (0.25, 0.5, 0.25)


def blur_weights(radius=BLUR_RADIUS):
    """Binomial weights C(2r, k) / 4^r for k in [0, 2r].

    Dyadic fractions, so they sum to exactly 1.0 in floating point and a
    flat field stays bit-identical through a blur pass.
    """
    n = 2 * radius
    return np.array([comb(n, k) for k in range(n + 1)], dtype=np.float64) / (2.0 ** n)


def blur_taps(spread, radius=BLUR_RADIUS):
    """Return (offsets, weights) for one axis of the separable blur.

    Args:
        spread: Blur spread multiplier (>= 0). Offsets are
            k * spread * BLUR_TAP_SPACING texels.
        radius: Kernel radius in taps
    """
    offsets = np.arange(-radius, radius + 1, dtype=np.float64) * (spread * BLUR_TAP_SPACING)
    return offsets, blur_weights(radius)


def unsharp_taps(radius):
    """Return (offsets, weights) of the unsharp mask's local blur.

    Three taps at -radius, 0, +radius along each axis, applied on both axes
    this gives a 9-sample neighbourhood weighted 1-2-1 / 2-4-2 / 1-2-1.
    """
    offsets = np.array([-radius, 0.0, radius], dtype=np.float64)
    return offsets, np.array(UNSHARP_WEIGHTS, dtype=np.float64)


def blur_tap(samples, weights, out=None):
    """Weighted sum of an ordered sequence of samples.

    Args:
        samples: Iterable of arrays (or scalars), one per tap
        weights: Sequence of floats, same length as samples
        out: Optional pre-allocated output array

    Returns:
        sum(w_i * s_i)
    """
    acc = None
    for sample, weight in zip(samples, weights):
        if acc is None:
            if out is None:
                acc = np.multiply(sample, weight)
            else:
                acc = np.multiply(sample, weight, out=out)
        else:
            acc += np.multiply(sample, weight)
    if acc is None:
        raise ValueError("blur_tap needs at least one sample")
    return acc


def unsharp(center, blurred, amount, out=None):
    """Add back `amount` times the high-frequency residual.

    Computes center + amount * (center - blurred), then clamps each channel
    to [0, 1]. Clamping happens after the combination, which is what
    saturates the pattern into black/white bands at high amounts.
    """
    residual = np.subtract(center, blurred)
    residual *= amount
    result = np.add(center, residual, out=out)
    return np.clip(result, 0.0, 1.0, out=result if isinstance(result, np.ndarray) else None)
