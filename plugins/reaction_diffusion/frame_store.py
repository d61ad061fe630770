"""
Frame Store - square pixel buffers with clamp-to-edge sampling

Owns a ring of equally sized float32 buffers, shape (size, size, channels),
values in [0, 1]. One index is "current" (the authoritative frame); the
others are scratch space for the pipeline passes. Passes write scratch
buffers only and the result is promoted by moving the current pointer, so
current never holds a half-processed frame.

Addressing is clamp-to-edge with bilinear filtering: reads past a border
return the edge texel, never the opposite side.
"""

from contextlib import contextmanager

import numpy as np

from scipy.ndimage import shift as _scipy_shift
from scipy.ndimage import map_coordinates as _map_coordinates


BACKGROUND = 1.0    # Cleared buffers are white
RING_SIZE = 3       # current + scratch A + scratch B


class BufferBusyError(RuntimeError):
    """Raised when the buffers are claimed by another operation."""


class FrameStore:
    """Ring of pixel buffers with a movable "current" pointer."""

    def __init__(self, size=200, channels=4, quantize=True, background=BACKGROUND):
        """
        Args:
            size: Buffer side in pixels (buffers are always square)
            channels: 4 for RGBA, 1 for a single gray channel
            quantize: Round every pass output to 8-bit levels (k / 255)
            background: Clear value for all channels
        """
        self.channels = channels
        self.quantize = quantize
        self.background = background
        self._owner = None
        self.size = 0
        self.buffers = []
        self.index = 0
        self.reset(size)

    # -- lifecycle ---------------------------------------------------------

    def reset(self, size=None):
        """Reallocate every buffer (full reset) and clear to background."""
        if self._owner is not None:
            raise BufferBusyError(f"cannot reset while claimed by {self._owner}")
        if size is not None:
            self.size = int(size)
        if self.size <= 0:
            raise ValueError(f"buffer size must be positive, got {self.size}")
        shape = (self.size, self.size, self.channels)
        self.buffers = [np.empty(shape, dtype=np.float32) for _ in range(RING_SIZE)]
        self.index = 0
        self.clear()

    def release(self):
        """Drop the buffers (end of session)."""
        if self._owner is not None:
            raise BufferBusyError(f"cannot release while claimed by {self._owner}")
        self.buffers = []
        self.size = 0

    @contextmanager
    def claim(self, owner):
        """Exclusive ownership of the buffers for one pipeline run or draw."""
        if self._owner is not None:
            raise BufferBusyError(f"{owner} blocked: buffers claimed by {self._owner}")
        self._owner = owner
        try:
            yield self
        finally:
            self._owner = None

    @property
    def owner(self):
        return self._owner

    # -- buffer access -----------------------------------------------------

    @property
    def current(self):
        return self.buffers[self.index]

    def scratch(self, k):
        """k-th scratch buffer (0 or 1), never the current one."""
        return self.buffers[(self.index + 1 + k) % RING_SIZE]

    def promote(self, buffer):
        """Make `buffer` (one of the ring) the new current frame."""
        for i, b in enumerate(self.buffers):
            if b is buffer:
                self.index = i
                return
        raise ValueError("buffer does not belong to this frame store")

    @property
    def texel_size(self):
        return (1.0 / self.size, 1.0 / self.size)

    def clear(self, value=None):
        value = self.background if value is None else value
        for b in self.buffers:
            b[:] = value

    def snapshot(self):
        """Copy of the current frame."""
        return self.current.copy()

    def load(self, frame):
        """Overwrite current with `frame` (gray 2-D or matching 3-D array)."""
        frame = np.asarray(frame, dtype=np.float32)
        if frame.ndim == 2:
            frame = frame[:, :, None]
        blit(self.current, np.broadcast_to(frame, self.current.shape))

    def quantize_inplace(self, buffer):
        """Round to the nearest 8-bit level, as an RGBA8 framebuffer would."""
        np.multiply(buffer, 255.0, out=buffer)
        np.rint(buffer, out=buffer)
        np.divide(buffer, 255.0, out=buffer)
        return buffer

    def to_uint8(self, buffer=None):
        """(H, W, 4) uint8 RGBA copy of a buffer (default: current)."""
        buf = self.current if buffer is None else buffer
        data = np.clip(np.rint(buf * 255.0), 0, 255).astype(np.uint8)
        if data.shape[2] == 4:
            return data
        rgba = np.empty(data.shape[:2] + (4,), dtype=np.uint8)
        rgba[:, :, :3] = data[:, :, :1]
        rgba[:, :, 3] = 255
        return rgba

    @property
    def stats(self):
        gray = self.current[:, :, 0]
        return {
            "size": self.size,
            "mean": float(gray.mean()),
            "min": float(gray.min()),
            "max": float(gray.max()),
            "dark_pct": float((gray < 0.5).sum()) / gray.size * 100,
        }


def blit(dst, src):
    """Full-buffer copy."""
    np.copyto(dst, src)
    return dst


def sample(buffer, u, v):
    """Bilinear fetch at normalized coordinates (u, v), clamp-to-edge.

    Texel i covers [i/W, (i+1)/W); its center is (i + 0.5) / W. Coordinates
    outside [0, 1] return the nearest edge value. u and v may be scalars or
    arrays of equal shape; the result has a trailing channel axis.
    """
    h, w = buffer.shape[:2]
    u = np.asarray(u, dtype=np.float64)
    v = np.asarray(v, dtype=np.float64)
    coords = [np.ravel(v * h - 0.5), np.ravel(u * w - 0.5)]
    out = np.stack([
        _map_coordinates(buffer[:, :, c], coords, order=1, mode="nearest")
        for c in range(buffer.shape[2])
    ], axis=-1)
    return out.reshape(u.shape + (buffer.shape[2],))


def sample_offset(buffer, dx=0.0, dy=0.0, out=None):
    """Sample every texel at a constant offset (dx, dy) in texels.

    out[y, x] = buffer sampled at (x + dx, y + dy), bilinear, clamp-to-edge.
    """
    return _scipy_shift(buffer, (-dy, -dx, 0.0), output=out, order=1,
                        mode="nearest", prefilter=False)
