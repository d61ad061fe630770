"""
Blur / Unsharp Pipeline Executor

One iteration of the feedback loop is three full-buffer passes:

  1. Horizontal blur   current   -> scratch A
  2. Vertical blur     scratch A -> scratch B
  3. Unsharp mask      scratch B -> scratch A, then A becomes current

Each pass is described by a PassDescriptor {name, kernel, source, dest}
and executed by run_pass(). No pass reads and writes the same buffer, and
current is only replaced (pointer move) once the last pass has finished.

Sharpening works on the already-blurred field, which is what produces
the diffusion-like bands instead of amplified noise.
"""

import numpy as np

from .frame_store import sample_offset
from .kernels import blur_taps, unsharp_taps, blur_tap, unsharp


class PipelineParameters:
    """Tunable numeric controls read by the executor.

    Mutated only between frames. No validation here; ranges are enforced
    by the control surface.
    """

    def __init__(self, blur_spread=1.0, unsharp_radius=3.5, unsharp_amount=64.0):
        self.blur_spread = blur_spread
        self.unsharp_radius = unsharp_radius
        self.unsharp_amount = unsharp_amount

    def set_params(self, blur_spread=None, unsharp_radius=None,
                   unsharp_amount=None, **kwargs):
        if blur_spread is not None:
            self.blur_spread = blur_spread
        if unsharp_radius is not None:
            self.unsharp_radius = unsharp_radius
        if unsharp_amount is not None:
            self.unsharp_amount = unsharp_amount

    def get_params(self):
        return {
            "blur_spread": self.blur_spread,
            "unsharp_radius": self.unsharp_radius,
            "unsharp_amount": self.unsharp_amount,
        }

    def __repr__(self):
        return (f"PipelineParameters(blur_spread={self.blur_spread}, "
                f"unsharp_radius={self.unsharp_radius}, "
                f"unsharp_amount={self.unsharp_amount})")


# ---------------------------------------------------------------------------
# Pass kernels
# ---------------------------------------------------------------------------

class SeparableBlur:
    """1-D blur along one axis: weighted sum of offset samples."""

    def __init__(self, axis, spread):
        self.axis = axis  # 1 = horizontal (x), 0 = vertical (y)
        self.offsets, self.weights = blur_taps(spread)

    def __call__(self, source, dest):
        if self.axis == 1:
            samples = (sample_offset(source, dx=o) for o in self.offsets)
        else:
            samples = (sample_offset(source, dy=o) for o in self.offsets)
        blur_tap(samples, self.weights, out=dest)


class UnsharpMask:
    """Sharpen `source` against its own local blur at `radius`.

    The local blur is computed in its own work buffers, independent of the
    executor's scratch pair.
    """

    def __init__(self, radius, amount, work):
        self.offsets, self.weights = unsharp_taps(radius)
        self.amount = amount
        self.work = work

    def __call__(self, source, dest):
        rows, blurred = self.work
        blur_tap((sample_offset(source, dx=o) for o in self.offsets),
                 self.weights, out=rows)
        blur_tap((sample_offset(rows, dy=o) for o in self.offsets),
                 self.weights, out=blurred)
        unsharp(source, blurred, self.amount, out=dest)


class PassDescriptor:
    """Everything one pass needs: no hidden state between passes."""

    __slots__ = ("name", "kernel", "source", "dest")

    def __init__(self, name, kernel, source, dest):
        self.name = name
        self.kernel = kernel
        self.source = source
        self.dest = dest

    def __repr__(self):
        return f"PassDescriptor({self.name!r})"


def run_pass(descriptor, quantize=None):
    """Execute one full-buffer pass.

    Args:
        descriptor: PassDescriptor
        quantize: Optional callable applied to dest after the pass
            (8-bit framebuffer emulation)
    """
    if descriptor.source is descriptor.dest or np.shares_memory(descriptor.source, descriptor.dest):
        raise ValueError(f"pass {descriptor.name!r} would read and write the same buffer")
    descriptor.kernel(descriptor.source, descriptor.dest)
    if quantize is not None:
        quantize(descriptor.dest)
    return descriptor.dest


# ---------------------------------------------------------------------------
# Executor
# ---------------------------------------------------------------------------

class PipelineExecutor:
    """Runs blur (H, V) then unsharp on a FrameStore's current buffer."""

    def __init__(self):
        self._work = None
        self.runs = 0

    def _work_buffers(self, like):
        if self._work is None or self._work[0].shape != like.shape:
            self._work = (np.empty_like(like), np.empty_like(like))
        return self._work

    def build_passes(self, store, params):
        """Pass descriptors for one iteration, in execution order."""
        current = store.current
        scratch_a = store.scratch(0)
        scratch_b = store.scratch(1)
        work = self._work_buffers(current)
        return [
            PassDescriptor("blur_h", SeparableBlur(1, params.blur_spread),
                           current, scratch_a),
            PassDescriptor("blur_v", SeparableBlur(0, params.blur_spread),
                           scratch_a, scratch_b),
            PassDescriptor("unsharp",
                           UnsharpMask(params.unsharp_radius, params.unsharp_amount, work),
                           scratch_b, scratch_a),
        ]

    def run(self, store, params):
        """One pipeline iteration. The result becomes store.current."""
        with store.claim("pipeline"):
            quantize = store.quantize_inplace if store.quantize else None
            passes = self.build_passes(store, params)
            for descriptor in passes:
                run_pass(descriptor, quantize=quantize)
            store.promote(passes[-1].dest)
        self.runs += 1
        return store.current

    def run_n(self, store, params, n):
        """Run n iterations back to back. Returns the final frame."""
        for _ in range(n):
            self.run(store, params)
        return store.current
