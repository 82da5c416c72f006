"""
Game - the simulation controller
--------------------------------
- Owns the player and every entity collection
- Advances everything once per tick using the real elapsed time
- Timer-driven enemy and power-up spawning
- Circle-overlap collision resolution
- Lifecycle state machine and level progression with milestone rewards

The controller never draws anything. Presentation layers read the public
collections and `hud()`, or register a listener with `add_listener`.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Dict, List, Optional

from .controls import InputState
from .entities import (
    Bullet,
    EffectType,
    Enemy,
    Particle,
    Player,
    PowerUp,
    Star,
)
from .utils import clamp, frames, is_colliding, sanitize_elapsed

logger = logging.getLogger(__name__)

# Scoring
ENEMY_KILL_SCORE = 100
POWER_UP_SCORE = 50
LEVEL_UP_BONUS = 200
POINTS_PER_LEVEL = 1000

# Movement (px per nominal frame)
PLAYER_SPEED = 5.0
PLAYER_BOOSTED_SPEED = 8.0

# Spawning
ENEMY_SPAWN_INTERVAL_MS = 2000.0
ENEMY_SPAWN_FLOOR_MS = 400.0
ENEMY_SPAWN_MILESTONE_FLOOR_MS = 300.0
ENEMY_SPAWN_STEP_MS = 150.0
ENEMY_SPAWN_MILESTONE_STEP_MS = 100.0
POWER_UP_SPAWN_INTERVAL_MS = 15000.0
POWER_UP_RESPAWN_RANGE_MS = (10000.0, 20000.0)
POWER_UP_SPAWN_STEP_MS = 1000.0
POWER_UP_SPAWN_CAP_MS = 25000.0
SPAWN_Y = -30.0
CULL_MARGIN = 50.0

# Effects
EXPLOSION_PARTICLES = 15
CELEBRATION_PARTICLES = 30
ENEMY_KILL_COLOR = (255, 68, 68)
PLAYER_HIT_COLOR = (255, 255, 0)
CELEBRATION_COLOR = (255, 170, 0)

STARTING_LIVES = 3
STAR_COUNT = 100
LEVEL_UP_DURATION_MS = 3000.0


class GameState(str, Enum):
    START = "start"
    PLAYING = "playing"
    PAUSED = "paused"
    GAME_OVER = "game_over"


@dataclass(frozen=True)
class HudState:
    """Everything the presentation layer shows outside the playfield"""
    state: GameState
    score: int
    lives: int
    level: int
    level_up_message: Optional[str]
    level_up_subtitle: Optional[str]
    level_up_progress: float
    final_score: Optional[int]


HudListener = Callable[[HudState], None]


def _new_events() -> Dict[str, int]:
    return {"shots": 0, "kills": 0, "pickups": 0, "hits": 0, "shielded_hits": 0, "level_ups": 0}


class Game:
    """Single-player shooter simulation"""

    def __init__(
        self,
        width: float = 800,
        height: float = 600,
        starting_lives: int = STARTING_LIVES,
        enemy_spawn_interval_ms: float = ENEMY_SPAWN_INTERVAL_MS,
        power_up_spawn_interval_ms: float = POWER_UP_SPAWN_INTERVAL_MS,
        star_count: int = STAR_COUNT,
    ):
        self.width = float(width)
        self.height = float(height)

        self.starting_lives = starting_lives
        self.initial_enemy_spawn_interval_ms = enemy_spawn_interval_ms
        self.initial_power_up_spawn_interval_ms = power_up_spawn_interval_ms

        self.state = GameState.START
        self.stars: List[Star] = [
            Star(x=random.random() * self.width, y=random.random() * self.height)
            for _ in range(star_count)
        ]

        self._listeners: List[HudListener] = []
        self._last_hud: Optional[HudState] = None

        self._reset()

    # ----------------------------
    # Lifecycle commands
    # ----------------------------

    def start(self):
        self._transition({GameState.START}, GameState.PLAYING, reset=True, command="start")

    def pause(self):
        self._transition({GameState.PLAYING}, GameState.PAUSED, command="pause")

    def resume(self):
        self._transition({GameState.PAUSED}, GameState.PLAYING, command="resume")

    def toggle_pause(self):
        if self.state is GameState.PLAYING:
            self.pause()
        elif self.state is GameState.PAUSED:
            self.resume()

    def restart_from_pause(self):
        self._transition({GameState.PAUSED}, GameState.PLAYING, reset=True, command="restart_from_pause")

    def restart(self):
        self._transition({GameState.GAME_OVER}, GameState.PLAYING, reset=True, command="restart")

    def go_to_main_menu(self):
        self._transition({GameState.PAUSED, GameState.GAME_OVER}, GameState.START, command="go_to_main_menu")

    def _transition(self, allowed, target: GameState, reset: bool = False, command: str = ""):
        if self.state not in allowed:
            logger.debug("Ignoring %s while %s", command, self.state.value)
            return
        logger.debug("%s: %s -> %s", command, self.state.value, target.value)
        self.state = target
        if reset:
            self._reset()
        self._notify()

    def _reset(self):
        self.score = 0
        self.lives = self.starting_lives
        self.level = 1
        self.final_score: Optional[int] = None

        self.player = Player(x=self.width / 2, y=self.height - 60)
        self.bullets: List[Bullet] = []
        self.enemies: List[Enemy] = []
        self.power_ups: List[PowerUp] = []
        self.particles: List[Particle] = []

        self.enemy_spawn_timer = 0.0
        self.enemy_spawn_interval_ms = self.initial_enemy_spawn_interval_ms
        self.power_up_spawn_timer = 0.0
        self.power_up_spawn_interval_ms = self.initial_power_up_spawn_interval_ms

        self.level_up_message: Optional[str] = None
        self.level_up_timer_ms = 0.0

        self.events: Dict[str, int] = _new_events()
        self.stats: Dict[str, int] = {"kills": 0, "pickups": 0, "hits": 0}

    # ----------------------------
    # Per-frame step
    # ----------------------------

    def tick(
        self,
        elapsed_ms: float,
        inputs: Optional[InputState] = None,
        width: Optional[float] = None,
        height: Optional[float] = None,
    ):
        """Advance the simulation by ``elapsed_ms`` of real time"""
        elapsed_ms = sanitize_elapsed(elapsed_ms)
        self.set_bounds(width, height)

        for star in self.stars:
            star.update(elapsed_ms, self.width, self.height)

        if self.state is not GameState.PLAYING:
            return

        self.events = _new_events()

        self._apply_input(inputs or InputState(), elapsed_ms)
        self.player.update(elapsed_ms)

        self._update_bullets(elapsed_ms)
        self._spawn_enemies(elapsed_ms)
        self._update_enemies(elapsed_ms)
        self._spawn_power_ups(elapsed_ms)
        self._update_power_ups(elapsed_ms)
        self._update_particles(elapsed_ms)

        self._handle_collisions()
        if self.state is GameState.GAME_OVER:
            self._notify()
            return

        if self._should_level_up():
            self.level_up()

        if self.level_up_message is not None:
            self.level_up_timer_ms -= elapsed_ms
            if self.level_up_timer_ms <= 0:
                self.level_up_message = None

        self._notify()

    def set_bounds(self, width: Optional[float], height: Optional[float]):
        if width is not None and math.isfinite(width) and width > 0:
            self.width = float(width)
        if height is not None and math.isfinite(height) and height > 0:
            self.height = float(height)

    def _apply_input(self, inputs: InputState, elapsed_ms: float):
        p = self.player
        speed = PLAYER_BOOSTED_SPEED if p.has_speed_boost else PLAYER_SPEED
        step = speed * frames(elapsed_ms)

        if inputs.left:
            p.x -= step
        if inputs.right:
            p.x += step
        if inputs.up:
            p.y -= step
        if inputs.down:
            p.y += step

        # Clamp every tick: the playfield may have been resized
        p.x = clamp(p.x, p.size, self.width - p.size)
        p.y = clamp(p.y, p.size, self.height - p.size)

        if inputs.fire:
            self.events["shots"] += p.shoot(self.bullets)

    def _update_bullets(self, elapsed_ms: float):
        for b in self.bullets:
            b.update(elapsed_ms)
        self.bullets = [b for b in self.bullets if b.y >= 0]

    def _update_enemies(self, elapsed_ms: float):
        for e in self.enemies:
            e.update(elapsed_ms)
        limit = self.height + CULL_MARGIN
        self.enemies = [e for e in self.enemies if e.y <= limit]

    def _update_power_ups(self, elapsed_ms: float):
        for p in self.power_ups:
            p.update(elapsed_ms)
        limit = self.height + CULL_MARGIN
        self.power_ups = [p for p in self.power_ups if p.y <= limit]

    def _update_particles(self, elapsed_ms: float):
        for p in self.particles:
            p.update(elapsed_ms)
        self.particles = [p for p in self.particles if p.alive]

    # ----------------------------
    # Spawning
    # ----------------------------

    def _spawn_enemies(self, elapsed_ms: float):
        self.enemy_spawn_timer += elapsed_ms
        if self.enemy_spawn_timer > self.enemy_spawn_interval_ms:
            self.spawn_enemy()
            self.enemy_spawn_timer = 0.0

    def _spawn_power_ups(self, elapsed_ms: float):
        self.power_up_spawn_timer += elapsed_ms
        if self.power_up_spawn_timer > self.power_up_spawn_interval_ms:
            self.spawn_power_up()
            self.power_up_spawn_timer = 0.0
            self.power_up_spawn_interval_ms = random.uniform(*POWER_UP_RESPAWN_RANGE_MS)

    def _spawn_x(self, size: float) -> float:
        # Keep the whole sprite on screen, even on a playfield narrower than it
        hi = max(size, self.width - size)
        return random.uniform(size, hi)

    def spawn_enemy(self) -> Enemy:
        enemy = Enemy(x=0.0, y=SPAWN_Y)
        enemy.x = self._spawn_x(enemy.size)
        self.enemies.append(enemy)
        return enemy

    def spawn_power_up(self, effect: Optional[EffectType] = None) -> PowerUp:
        if effect is None:
            effect = random.choice(list(EffectType))
        power_up = PowerUp(x=0.0, y=SPAWN_Y, effect=effect)
        power_up.x = self._spawn_x(power_up.size)
        self.power_ups.append(power_up)
        return power_up

    def create_explosion(self, x: float, y: float, color, count: int = EXPLOSION_PARTICLES):
        for _ in range(count):
            self.particles.append(Particle(x=x, y=y, color=color))

    # ----------------------------
    # Collisions
    # ----------------------------

    def _handle_collisions(self):
        self._bullets_vs_enemies()
        self._player_vs_enemies()
        if self.state is GameState.GAME_OVER:
            return
        self._player_vs_power_ups()

    def _bullets_vs_enemies(self):
        dead_bullets = set()
        dead_enemies = set()

        for bi, b in enumerate(self.bullets):
            for ei, e in enumerate(self.enemies):
                if ei in dead_enemies:
                    continue
                if is_colliding(b, e):
                    self.create_explosion(e.x, e.y, ENEMY_KILL_COLOR)
                    dead_bullets.add(bi)
                    dead_enemies.add(ei)
                    self.score += ENEMY_KILL_SCORE
                    self.events["kills"] += 1
                    self.stats["kills"] += 1
                    # One bullet destroys at most one enemy
                    break

        if dead_bullets:
            self.bullets = [b for i, b in enumerate(self.bullets) if i not in dead_bullets]
            self.enemies = [e for i, e in enumerate(self.enemies) if i not in dead_enemies]

    def _player_vs_enemies(self):
        survivors = []
        for ei, e in enumerate(self.enemies):
            if not is_colliding(self.player, e):
                survivors.append(e)
                continue

            self.create_explosion(e.x, e.y, PLAYER_HIT_COLOR)
            if self.player.has_shield:
                self.events["shielded_hits"] += 1
                continue

            self.lives -= 1
            self.events["hits"] += 1
            self.stats["hits"] += 1
            if self.lives <= 0:
                # Nothing else changes once the ship is lost
                survivors.extend(self.enemies[ei + 1:])
                self._game_over()
                break

        self.enemies = survivors

    def _player_vs_power_ups(self):
        remaining = []
        for p in self.power_ups:
            if is_colliding(self.player, p):
                self.create_explosion(p.x, p.y, p.color)
                self.player.apply_power_up(p.effect)
                self.score += POWER_UP_SCORE
                self.events["pickups"] += 1
                self.stats["pickups"] += 1
            else:
                remaining.append(p)
        self.power_ups = remaining

    def _game_over(self):
        self.state = GameState.GAME_OVER
        self.final_score = self.score
        logger.info("Game over at level %d with score %d", self.level, self.score)

    # ----------------------------
    # Level progression
    # ----------------------------

    def _should_level_up(self) -> bool:
        return (
            self.score > 0
            and self.score % POINTS_PER_LEVEL == 0
            and self.score // POINTS_PER_LEVEL > self.level - 1
        )

    def level_up(self):
        self.level += 1
        self.events["level_ups"] += 1

        self.enemy_spawn_interval_ms = max(
            ENEMY_SPAWN_FLOOR_MS, self.enemy_spawn_interval_ms - ENEMY_SPAWN_STEP_MS
        )
        self.level_up_message = f"LEVEL {self.level}!"
        self.level_up_timer_ms = LEVEL_UP_DURATION_MS

        if self.level % 2 == 0:
            # Power-ups get rarer as the game gets harder
            self.power_up_spawn_interval_ms = min(
                POWER_UP_SPAWN_CAP_MS, self.power_up_spawn_interval_ms + POWER_UP_SPAWN_STEP_MS
            )
        if self.level % 10 == 0:
            self.enemy_spawn_interval_ms = max(
                ENEMY_SPAWN_MILESTONE_FLOOR_MS,
                self.enemy_spawn_interval_ms - ENEMY_SPAWN_MILESTONE_STEP_MS,
            )
            self.level_up_message = f"LEVEL {self.level}! INTENSE MODE!"

        self.player.apply_power_up(random.choice(list(EffectType)))
        self.score += LEVEL_UP_BONUS

        if self.level % 5 == 0:
            self.lives += 1
            self.level_up_message = f"LEVEL {self.level}! BONUS LIFE!"
        elif self.level % 3 == 0:
            self.player.apply_power_up(random.choice(list(EffectType)))
            self.level_up_message = f"LEVEL {self.level}! DOUBLE POWER!"

        self._celebrate()
        logger.info("Level %d reached (score %d, enemy interval %.0f ms)",
                    self.level, self.score, self.enemy_spawn_interval_ms)

    def _celebrate(self):
        for i in range(CELEBRATION_PARTICLES):
            angle = (i / CELEBRATION_PARTICLES) * math.pi * 2
            distance = 50 + random.random() * 50
            self.particles.append(Particle(
                x=self.player.x + math.cos(angle) * distance,
                y=self.player.y + math.sin(angle) * distance,
                color=CELEBRATION_COLOR,
            ))

    # ----------------------------
    # Outputs
    # ----------------------------

    @property
    def level_up_subtitle(self) -> Optional[str]:
        if self.level_up_message is None:
            return None
        if self.level % 5 == 0:
            return "+1 LIFE AWARDED!"
        if self.level % 3 == 0:
            return "DOUBLE POWER-UP!"
        return None

    @property
    def level_up_progress(self) -> float:
        """0 when the banner appears, 1 when it expires"""
        if self.level_up_message is None:
            return 0.0
        return clamp(1 - self.level_up_timer_ms / LEVEL_UP_DURATION_MS, 0.0, 1.0)

    def hud(self) -> HudState:
        return HudState(
            state=self.state,
            score=self.score,
            lives=self.lives,
            level=self.level,
            level_up_message=self.level_up_message,
            level_up_subtitle=self.level_up_subtitle,
            level_up_progress=self.level_up_progress,
            final_score=self.final_score,
        )

    def add_listener(self, listener: HudListener):
        # Flush pending changes first so the snapshot below becomes the baseline
        self._notify()
        self._listeners.append(listener)
        listener(self._last_hud)

    def remove_listener(self, listener: HudListener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self):
        hud = self.hud()
        last = self._last_hud
        # Banner progress alone is animation, not a change worth announcing
        if last is not None and replace(hud, level_up_progress=last.level_up_progress) == last:
            return
        self._last_hud = hud
        for listener in list(self._listeners):
            listener(hud)
