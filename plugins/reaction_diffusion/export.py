"""
Image Export and Import

Saving writes a timestamped PNG of the current frame. With the transparent
background option, every pixel whose R, G and B are all >= threshold gets
alpha 0 (background keying); otherwise the export is fully opaque.

Loading accepts JPEG and PNG only.
"""

import os
import time

import numpy as np
from PIL import Image, UnidentifiedImageError


ACCEPTED_EXTENSIONS = (".jpg", ".jpeg", ".png")
ACCEPTED_FORMATS = ("JPEG", "PNG")
FILENAME_PREFIX = "reaction-diffusion"


class UnsupportedImageError(ValueError):
    """The file is not a JPEG or PNG image."""


def key_background(rgba, threshold):
    """Copy of an (H, W, 4) uint8 image with bright pixels made transparent."""
    out = np.array(rgba, dtype=np.uint8, copy=True)
    out[:, :, 3] = 255
    mask = np.all(out[:, :, :3] >= threshold, axis=2)
    out[mask, 3] = 0
    return out


def export_filename(now=None):
    stamp = time.strftime("%Y-%m-%d_%H-%M-%S", time.localtime(now))
    return f"{FILENAME_PREFIX}_{stamp}.png"


def export_image(rgba, transparent=False, threshold=255):
    """Pillow image ready to save (RGBA when keyed, RGB otherwise)."""
    if transparent:
        return Image.fromarray(key_background(rgba, threshold))
    return Image.fromarray(np.ascontiguousarray(rgba[:, :, :3]))


def save_png(rgba, directory, transparent=False, threshold=255, now=None):
    """Write a timestamped PNG into `directory`. Returns the file path."""
    os.makedirs(directory, exist_ok=True)
    path = os.path.join(directory, export_filename(now))
    export_image(rgba, transparent, threshold).save(path, format="PNG")
    return path


def load_image(path):
    """Open a JPEG/PNG file fully decoded, or raise UnsupportedImageError."""
    ext = os.path.splitext(path)[1].lower()
    if ext not in ACCEPTED_EXTENSIONS:
        raise UnsupportedImageError(f"{os.path.basename(path)}: please choose a JPEG or PNG image")
    try:
        with Image.open(path) as img:
            if img.format not in ACCEPTED_FORMATS:
                raise UnsupportedImageError(
                    f"{os.path.basename(path)}: decoded as {img.format}, not JPEG/PNG")
            img.load()
            return img.copy()
    except UnidentifiedImageError:
        raise UnsupportedImageError(f"{os.path.basename(path)}: not a readable image")
    except OSError as e:
        raise UnsupportedImageError(f"{os.path.basename(path)}: could not be read ({e})")
