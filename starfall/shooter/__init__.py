"""Shooter module - simulation core, gym environment and arcade front end"""

from .controls import ControlMode, InputState, TouchGesture
from .entities import Bullet, EffectType, Enemy, Particle, Player, PowerUp, Star
from .game import Game, GameState, HudState
from .shooter_env import ShooterEnv, run_random_episode

__all__ = [
    'Game', 'GameState', 'HudState',
    'InputState', 'ControlMode', 'TouchGesture',
    'Player', 'Bullet', 'Enemy', 'PowerUp', 'Particle', 'Star', 'EffectType',
    'ShooterEnv', 'run_random_episode',
]
