# -*- coding: utf-8 -*-
# Copyright (c) 2024-2026 Vasile Lucian Borbeleac / FRAGMERGENT TECHNOLOGY S.R.L.
# Cluj-Napoca, Romania

"""Synthetic RGB test images for PheroSeg validation.

Small images with known regions: flat colour fields, area shapes on
a contrasting background, and a textured case. All generators return
``uint8`` arrays of shape (size, size, 3).
"""

import numpy as np
from scipy.ndimage import gaussian_filter

BACKGROUND_RGB = (30, 30, 40)
FOREGROUND_RGB = (220, 180, 40)
ACCENT_RGB = (40, 160, 220)


# ============================================================
# PRIMITIVES
# ============================================================

def _make_canvas(size: int = 32, color=BACKGROUND_RGB) -> np.ndarray:
    """Create a canvas filled with ``color``."""
    img = np.empty((size, size, 3), dtype=np.uint8)
    img[:] = color
    return img


def _add_circle(img: np.ndarray, cx: int, cy: int, r: int, color) -> None:
    """Draw a filled circle."""
    yy, xx = np.indices(img.shape[:2])
    img[(xx - cx) ** 2 + (yy - cy) ** 2 <= r * r] = color


def _add_rect(img: np.ndarray, x0: int, y0: int, x1: int, y1: int, color) -> None:
    """Draw a filled rectangle."""
    img[y0:y1, x0:x1] = color


# ============================================================
# SHAPE GENERATORS
# ============================================================

def make_solid(s: int = 32) -> np.ndarray:
    """Single flat colour: no structure at all."""
    return _make_canvas(s)


def make_split(s: int = 32) -> np.ndarray:
    """Left/right halves in contrasting colours: one straight boundary."""
    img = _make_canvas(s)
    _add_rect(img, s // 2, 0, s, s, FOREGROUND_RGB)
    return img


def make_circle_square(s: int = 32) -> np.ndarray:
    """Circle + square: curved and straight boundaries."""
    img = _make_canvas(s)
    _add_rect(img, s // 8, s // 8, s // 2, s // 2, FOREGROUND_RGB)
    _add_circle(img, (5 * s) // 8, (5 * s) // 8, s // 4, ACCENT_RGB)
    return img


def make_checker(s: int = 32, cell: int = 8) -> np.ndarray:
    """Checkerboard: many short boundaries."""
    img = _make_canvas(s)
    for y in range(0, s, cell):
        for x in range(0, s, cell):
            if ((x // cell) + (y // cell)) % 2 == 0:
                _add_rect(img, x, y, min(s, x + cell), min(s, y + cell), FOREGROUND_RGB)
    return img


def make_textured_object(s: int = 32) -> np.ndarray:
    """Circle on a noisy background: boundary under clutter."""
    rng = np.random.default_rng(0)
    noise = gaussian_filter(rng.normal(0.0, 1.0, (s, s)), 1.5)
    noise = (noise - noise.min()) / (noise.max() - noise.min() + 1e-12)
    img = _make_canvas(s).astype(np.float64)
    img += (noise * 40.0)[..., None]
    img = np.clip(img, 0, 255).astype(np.uint8)
    _add_circle(img, s // 2, s // 2, s // 4, FOREGROUND_RGB)
    return img


# ============================================================
# REGISTRY
# ============================================================

SHAPES: dict = {
    "solid": make_solid,
    "split": make_split,
    "circle_square": make_circle_square,
    "checker": make_checker,
    "textured_object": make_textured_object,
}
