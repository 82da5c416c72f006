"""
Utility functions for game mechanics
"""

from __future__ import annotations
import math
import random
from typing import Optional
import numpy as np

# Per-frame constants are expressed against a nominal 60 Hz display refresh
FRAME_MS = 1000.0 / 60.0


def clamp(x: float, lo: float, hi: float) -> float:
    """Clamp value between low and high bounds"""
    return lo if x < lo else hi if x > hi else x


def frames(elapsed_ms: float) -> float:
    """Convert elapsed milliseconds into a (fractional) count of nominal frames"""
    return elapsed_ms / FRAME_MS


def sanitize_elapsed(elapsed_ms) -> float:
    """Negative, NaN or infinite elapsed time counts as a stalled frame (0 ms)"""
    value = float(elapsed_ms)
    if not math.isfinite(value) or value < 0:
        return 0.0
    return value


def circle_collide(x1, y1, r1, x2, y2, r2) -> bool:
    """Check if two circles overlap (touching edges do not count)"""
    dx = x1 - x2
    dy = y1 - y2
    return math.hypot(dx, dy) < r1 + r2


def is_colliding(a, b) -> bool:
    """Circle overlap test for anything exposing x, y and size"""
    return circle_collide(a.x, a.y, a.size, b.x, b.y, b.size)


def seed_everything(py_seed: Optional[int]):
    """Seed all random number generators"""
    if py_seed is None:
        return
    random.seed(py_seed)
    np.random.seed(py_seed)
