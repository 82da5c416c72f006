"""
ShooterEnv - the Starfall simulation as an RL environment
---------------------------------------------------------
- Wraps the same Game the arcade window plays, already in the playing state
- Gymnasium API
- MultiDiscrete action space: [horizontal(3), vertical(3), fire(2)]
- Vector observation: player state + top-K nearest enemies + top-M nearest power-ups
- Reward follows the in-game score, with penalties for lost lives and death

Quick test:
    python -m starfall.shooter.shooter_env
"""

from __future__ import annotations

import time
from typing import Any, Dict, List, Optional

import numpy as np
import gymnasium as gym
from gymnasium import spaces

from .controls import InputState
from .entities import EffectType
from .game import Game, GameState
from .utils import clamp, seed_everything

DEFAULT_REWARD_CONFIG = {
    "R_SCORE": 0.01,   # per point of in-game score
    "R_HIT": 1.0,      # per life lost
    "R_TIME": 0.001,   # per step
    "R_DEATH": 5.0,
}


class ShooterEnv(gym.Env):
    """Vertical shooter environment driven by the Starfall simulation"""

    metadata = {"render_modes": ["human"], "render_fps": 30}

    def __init__(
        self,
        render_mode: Optional[str] = None,
        width: int = 480,
        height: int = 640,
        dt_ms: float = 1000 / 30,
        max_steps: int = 3600,  # 2 minutes at 30 FPS
        k_enemies: int = 5,
        m_power_ups: int = 2,
        reward_config: Optional[Dict[str, float]] = None,
    ):
        super().__init__()

        assert render_mode is None or render_mode in self.metadata["render_modes"]
        self.render_mode = render_mode

        self.width = width
        self.height = height
        self.dt_ms = dt_ms
        self.max_steps = max_steps

        self.k_enemies = k_enemies
        self.m_power_ups = m_power_ups
        self.reward_config = dict(DEFAULT_REWARD_CONFIG)
        if reward_config:
            self.reward_config.update(
                {k: v for k, v in reward_config.items() if k.startswith("R_")}
            )

        # horizontal: 0 none, 1 left, 2 right
        # vertical:   0 none, 1 up, 2 down
        # fire:       0/1
        self.action_space = spaces.MultiDiscrete([3, 3, 2])

        # Player: pos(2) effects(4) cooldown(1) lives(1) level(1)
        # Each enemy: rel pos(2) speed(1)
        # Each power-up: rel pos(2)
        obs_dim = 2 + len(EffectType) + 1 + 1 + 1 + (self.k_enemies * 3) + (self.m_power_ups * 2)
        self.observation_space = spaces.Box(
            low=-1.0, high=1.0, shape=(obs_dim,), dtype=np.float32
        )

        self._window = None
        self.game: Game = None  # type: ignore
        self._step_count = 0

    # ----------------------------
    # Gym API
    # ----------------------------

    def reset(self, seed: Optional[int] = None, options: Optional[dict] = None):
        super().reset(seed=seed)
        seed_everything(seed)

        self._step_count = 0
        self.game = Game(width=self.width, height=self.height)
        self.game.start()
        if self._window is not None:
            self._window.game = self.game

        return self._get_obs(), self._get_info()

    def step(self, action):
        horizontal, vertical, fire = int(action[0]), int(action[1]), int(action[2])
        inputs = InputState(
            left=horizontal == 1,
            right=horizontal == 2,
            up=vertical == 1,
            down=vertical == 2,
            fire=fire == 1,
        )

        score_before = self.game.score
        self.game.tick(self.dt_ms, inputs)

        reward = self._compute_reward(self.game.score - score_before)

        terminated = self.game.state is GameState.GAME_OVER
        self._step_count += 1
        truncated = self._step_count >= self.max_steps

        obs = self._get_obs()
        info = self._get_info()

        if self.render_mode == "human":
            self.render()

        return obs, reward, terminated, truncated, info

    # ----------------------------
    # Observation / reward / info
    # ----------------------------

    def _get_obs(self) -> np.ndarray:
        g = self.game
        p = g.player

        obs_parts: List[float] = [
            (p.x / g.width) * 2 - 1,
            (p.y / g.height) * 2 - 1,
        ]
        obs_parts += [p.effect_fraction(effect) * 2 - 1 for effect in EffectType]
        obs_parts.append(clamp(p.shoot_cooldown_ms / max(1e-6, p.shoot_rate_ms), 0, 1) * 2 - 1)
        obs_parts.append(clamp(g.lives / 10.0, 0, 1) * 2 - 1)
        obs_parts.append(clamp(g.level / 20.0, 0, 1) * 2 - 1)

        enemies_sorted = sorted(
            g.enemies, key=lambda e: (e.x - p.x) ** 2 + (e.y - p.y) ** 2
        )
        for i in range(self.k_enemies):
            if i < len(enemies_sorted):
                e = enemies_sorted[i]
                obs_parts += [
                    clamp((e.x - p.x) / g.width, -1, 1),
                    clamp((e.y - p.y) / g.height, -1, 1),
                    clamp(e.speed / 4.0, 0, 1),
                ]
            else:
                obs_parts += [0.0, 0.0, 0.0]

        power_ups_sorted = sorted(
            g.power_ups, key=lambda u: (u.x - p.x) ** 2 + (u.y - p.y) ** 2
        )
        for i in range(self.m_power_ups):
            if i < len(power_ups_sorted):
                u = power_ups_sorted[i]
                obs_parts += [
                    clamp((u.x - p.x) / g.width, -1, 1),
                    clamp((u.y - p.y) / g.height, -1, 1),
                ]
            else:
                obs_parts += [0.0, 0.0]

        return np.array(obs_parts, dtype=np.float32)

    def _compute_reward(self, score_delta: int) -> float:
        rc = self.reward_config
        events = self.game.events

        reward = rc["R_SCORE"] * score_delta
        reward -= rc["R_HIT"] * events.get("hits", 0)
        reward -= rc["R_TIME"]

        if self.game.state is GameState.GAME_OVER:
            reward -= rc["R_DEATH"]

        return float(reward)

    def _get_info(self) -> Dict[str, Any]:
        g = self.game
        return {
            "score": g.score,
            "lives": g.lives,
            "level": g.level,
            "enemies_killed": g.stats["kills"],
            "power_ups_collected": g.stats["pickups"],
            "hits_taken": g.stats["hits"],
            "num_enemies": len(g.enemies),
            "num_bullets": len(g.bullets),
            "step": self._step_count,
        }

    # ----------------------------
    # Rendering with Arcade
    # ----------------------------

    def render(self):
        if self.render_mode is None:
            return None

        if self._window is None:
            # Imported lazily so headless training never opens a GL context
            from .window import ShooterWindow
            self._window = ShooterWindow(self.game, interactive=False)

        self._window.dispatch_events()
        self._window.on_draw()
        self._window.flip()
        return None

    def close(self):
        if self._window is not None:
            self._window.close()
            self._window = None


# ----------------------------
# Quick sanity test
# ----------------------------

def run_random_episode(render: bool = True, seed: Optional[int] = 42) -> float:
    """Run a random episode for testing; returns the episode return"""
    env = ShooterEnv(render_mode="human" if render else None)
    obs, info = env.reset(seed=seed)

    terminated = False
    truncated = False
    total = 0.0

    while not (terminated or truncated):
        action = env.action_space.sample()
        obs, reward, terminated, truncated, info = env.step(action)
        total += reward
        if render:
            time.sleep(env.dt_ms / 1000)

    print(f"Random episode return: {total:.2f} "
          f"(score {info['score']}, level {info['level']}, step {info['step']})")

    env.close()
    return total


if __name__ == "__main__":
    run_random_episode(render=True)
