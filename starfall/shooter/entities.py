"""
Game entity dataclasses

Positions are in pixels with y growing downward. Speeds are in pixels per
nominal 60 Hz frame and every update scales them by the elapsed milliseconds,
so the simulation does not depend on the display refresh rate.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Tuple, Union

from .utils import frames

Color = Tuple[int, int, int]

EFFECT_DURATION_MS = 8000.0
RAPID_FIRE_FACTOR = 0.3
MULTI_SHOT_OFFSETS = (-10.0, 0.0, 10.0)


class EffectType(str, Enum):
    """Timed modifiers the player can carry"""
    RAPID_FIRE = "rapid_fire"
    SHIELD = "shield"
    MULTI_SHOT = "multi_shot"
    SPEED_BOOST = "speed_boost"

    @property
    def color(self) -> Color:
        return POWER_UP_STYLES[self][0]

    @property
    def symbol(self) -> str:
        return POWER_UP_STYLES[self][1]


POWER_UP_STYLES: Dict[EffectType, Tuple[Color, str]] = {
    EffectType.RAPID_FIRE: ((255, 0, 0), "R"),
    EffectType.SHIELD: ((0, 255, 0), "S"),
    EffectType.MULTI_SHOT: ((255, 0, 255), "M"),
    EffectType.SPEED_BOOST: ((255, 255, 0), "B"),
}


@dataclass
class Star:
    """Background star, animated in every game state"""
    x: float
    y: float
    size: float = field(default_factory=lambda: random.random() * 2)
    speed: float = field(default_factory=lambda: random.random() * 0.5 + 0.1)
    opacity: float = field(default_factory=lambda: random.random() * 0.8 + 0.2)

    def update(self, elapsed_ms: float, width: float, height: float):
        self.y += self.speed * frames(elapsed_ms)
        if self.y > height:
            self.y = 0.0
            self.x = random.random() * width


@dataclass
class Particle:
    """Cosmetic debris left behind by explosions, pickups and level-ups"""
    x: float
    y: float
    color: Color
    vx: float = field(default_factory=lambda: (random.random() - 0.5) * 8)
    vy: float = field(default_factory=lambda: (random.random() - 0.5) * 8)
    life: float = 1.0
    decay: float = 0.02
    friction: float = 0.98
    size: float = field(default_factory=lambda: random.random() * 4 + 2)

    def update(self, elapsed_ms: float):
        n = frames(elapsed_ms)
        self.x += self.vx * n
        self.y += self.vy * n
        self.life -= self.decay * n
        damping = self.friction ** n
        self.vx *= damping
        self.vy *= damping

    @property
    def alive(self) -> bool:
        return self.life > 0


@dataclass
class Bullet:
    """Player projectile travelling straight up"""
    x: float
    y: float
    size: float = 3.0
    speed: float = 8.0

    def update(self, elapsed_ms: float):
        self.y -= self.speed * frames(elapsed_ms)


@dataclass
class Enemy:
    """Descending hostile ship"""
    x: float
    y: float
    size: float = 12.0
    speed: float = field(default_factory=lambda: 2 + random.random() * 2)
    rotation: float = 0.0
    spin: float = 0.02

    def update(self, elapsed_ms: float):
        n = frames(elapsed_ms)
        self.y += self.speed * n
        self.rotation += self.spin * n


@dataclass
class PowerUp:
    """Descending collectible carrying one effect"""
    x: float
    y: float
    effect: EffectType
    size: float = 12.0
    speed: float = 2.0
    rotation: float = 0.0
    pulse_timer: float = 0.0

    def update(self, elapsed_ms: float):
        n = frames(elapsed_ms)
        self.y += self.speed * n
        self.rotation += 0.05 * n
        self.pulse_timer += elapsed_ms * 0.005

    @property
    def color(self) -> Color:
        return self.effect.color

    @property
    def symbol(self) -> str:
        return self.effect.symbol

    @property
    def pulse(self) -> float:
        """Glow intensity in [0.4, 1.0]"""
        return math.sin(self.pulse_timer) * 0.3 + 0.7


@dataclass
class Player:
    """The controlled ship: cooldown-gated firing plus independently timed effects"""
    x: float
    y: float
    size: float = 18.0
    shoot_cooldown_ms: float = 0.0
    shoot_rate_ms: float = 150.0
    effects: Dict[EffectType, float] = field(default_factory=dict)

    def update(self, elapsed_ms: float):
        self.shoot_cooldown_ms = max(0.0, self.shoot_cooldown_ms - elapsed_ms)

        for effect in list(self.effects):
            self.effects[effect] -= elapsed_ms
            if self.effects[effect] <= 0:
                self.remove_power_up(effect)

    def shoot(self, bullets: List[Bullet]) -> int:
        """Fire into ``bullets`` if the cooldown allows; returns bullets fired"""
        if self.shoot_cooldown_ms > 0:
            return 0

        offsets = MULTI_SHOT_OFFSETS if self.has_multi_shot else (0.0,)
        for dx in offsets:
            bullets.append(Bullet(x=self.x + dx, y=self.y - self.size))

        if self.has_rapid_fire:
            self.shoot_cooldown_ms = self.shoot_rate_ms * RAPID_FIRE_FACTOR
        else:
            self.shoot_cooldown_ms = self.shoot_rate_ms
        return len(offsets)

    def apply_power_up(self, effect: Union[EffectType, str]):
        # Refreshes rather than extends an effect that is still running
        self.effects[EffectType(effect)] = EFFECT_DURATION_MS

    def remove_power_up(self, effect: Union[EffectType, str]):
        self.effects.pop(EffectType(effect), None)

    def has_effect(self, effect: EffectType) -> bool:
        return self.effects.get(effect, 0.0) > 0

    def effect_fraction(self, effect: EffectType) -> float:
        """Remaining share of the effect window, 0 when inactive"""
        return max(0.0, self.effects.get(effect, 0.0)) / EFFECT_DURATION_MS

    @property
    def has_rapid_fire(self) -> bool:
        return self.has_effect(EffectType.RAPID_FIRE)

    @property
    def has_shield(self) -> bool:
        return self.has_effect(EffectType.SHIELD)

    @property
    def has_multi_shot(self) -> bool:
        return self.has_effect(EffectType.MULTI_SHOT)

    @property
    def has_speed_boost(self) -> bool:
        return self.has_effect(EffectType.SPEED_BOOST)
