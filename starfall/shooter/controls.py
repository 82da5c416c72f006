"""
Abstract input consumed by the simulation, plus the touch-gesture translator
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class InputState:
    """Movement intent and trigger state for one tick"""
    left: bool = False
    right: bool = False
    up: bool = False
    down: bool = False
    fire: bool = False


class ControlMode(Enum):
    DIRECT = "direct"      # steer toward the finger
    RELATIVE = "relative"  # steer by how far the finger is dragged


DIRECT_CONTROL_DISTANCE = 100.0
DIRECT_DEAD_ZONE = 5.0
RELATIVE_THRESHOLD = 1.0


class TouchGesture:
    """
    Turns one touch gesture into per-tick InputState values.

    The control mode is decided once when the touch begins: touching more than
    100 px away from the ship steers it toward the finger, touching close to it
    drags it along. Holding a touch always fires.

    Pointer events only record where the finger is. ``intent`` is asked once
    per tick: DIRECT compares the last pointer position with where the ship is
    now, so the ship settles under a finger that holds still. RELATIVE consumes
    the drag accumulated since the previous tick, so the ship stops as soon as
    the finger does.
    """

    def __init__(self):
        self.mode: Optional[ControlMode] = None
        self.pointer_x = 0.0
        self.pointer_y = 0.0
        self._drag_x = 0.0
        self._drag_y = 0.0

    @property
    def active(self) -> bool:
        return self.mode is not None

    def begin(self, x: float, y: float, player_x: float, player_y: float):
        distance = math.hypot(x - player_x, y - player_y)
        self.mode = ControlMode.DIRECT if distance > DIRECT_CONTROL_DISTANCE else ControlMode.RELATIVE
        self.pointer_x = x
        self.pointer_y = y
        self._drag_x = 0.0
        self._drag_y = 0.0

    def move(self, x: float, y: float):
        if self.mode is None:
            return
        self._drag_x += x - self.pointer_x
        self._drag_y += y - self.pointer_y
        self.pointer_x = x
        self.pointer_y = y

    def intent(self, player_x: float, player_y: float) -> InputState:
        """Input for the coming tick, given where the ship is right now"""
        if self.mode is None:
            return InputState()

        if self.mode is ControlMode.DIRECT:
            dx = self.pointer_x - player_x
            dy = self.pointer_y - player_y
            threshold = DIRECT_DEAD_ZONE
        else:
            dx = self._drag_x
            dy = self._drag_y
            threshold = RELATIVE_THRESHOLD
            # Spend each axis that produced movement; slow drags keep accumulating
            if abs(dx) > threshold:
                self._drag_x = 0.0
            if abs(dy) > threshold:
                self._drag_y = 0.0

        return InputState(
            left=dx < -threshold,
            right=dx > threshold,
            up=dy < -threshold,
            down=dy > threshold,
            fire=True,
        )

    def end(self):
        self.mode = None
        self._drag_x = 0.0
        self._drag_y = 0.0
