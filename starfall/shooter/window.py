"""
Arcade front end for Starfall

The window is a thin adapter: it turns key presses and mouse/touch drags into
InputState values, feeds the Game the real frame time and draws whatever the
Game exposes. Simulation y grows downward, arcade's grows upward, so every
y coordinate is flipped on the way to the screen.
"""

from __future__ import annotations

import argparse
import logging
import math
from typing import Iterable, List, Set, Tuple

import arcade

from .controls import InputState, TouchGesture
from .entities import Enemy, Player, PowerUp
from .game import Game, GameState
from .utils import seed_everything

BG = (5, 5, 18)
BULLET_C = (255, 255, 0)
ENEMY_C = (255, 68, 68)
HUD_C = (220, 220, 220)
BANNER_C = (255, 170, 0)
SUBTITLE_C = (0, 255, 255)
SHIP_BODY_C = (204, 204, 204)
SHIP_NOSE_C = (255, 255, 255)
SHIP_FIN_C = (136, 136, 136)
FLAME_C = (255, 68, 0)
SHIELD_C = (0, 255, 0)

LEFT_KEYS = {arcade.key.LEFT, arcade.key.A}
RIGHT_KEYS = {arcade.key.RIGHT, arcade.key.D}
UP_KEYS = {arcade.key.UP, arcade.key.W}
DOWN_KEYS = {arcade.key.DOWN, arcade.key.S}


class ShooterWindow(arcade.Window):
    """Arcade window that plays (or merely displays) a Game"""

    def __init__(self, game: Game, interactive: bool = True, title: str = "Starfall"):
        super().__init__(int(game.width), int(game.height), title, resizable=interactive)
        self.game = game
        self.interactive = interactive
        self.keys: Set[int] = set()
        self.touch = TouchGesture()

    # ----------------------------
    # Input
    # ----------------------------

    def _held(self, keys: Iterable[int]) -> bool:
        return any(k in self.keys for k in keys)

    def current_input(self) -> InputState:
        p = self.game.player
        t = self.touch.intent(p.x, p.y)
        return InputState(
            left=self._held(LEFT_KEYS) or t.left,
            right=self._held(RIGHT_KEYS) or t.right,
            up=self._held(UP_KEYS) or t.up,
            down=self._held(DOWN_KEYS) or t.down,
            fire=arcade.key.SPACE in self.keys or t.fire,
        )

    def on_key_press(self, symbol: int, modifiers: int):
        self.keys.add(symbol)
        if not self.interactive:
            return

        state = self.game.state
        if symbol == arcade.key.ESCAPE:
            self.game.toggle_pause()
        elif symbol == arcade.key.ENTER:
            if state is GameState.START:
                self.game.start()
            elif state is GameState.GAME_OVER:
                self.game.restart()
            elif state is GameState.PAUSED:
                self.game.resume()
        elif symbol == arcade.key.R and state is GameState.PAUSED:
            self.game.restart_from_pause()
        elif symbol == arcade.key.M:
            self.game.go_to_main_menu()

    def on_key_release(self, symbol: int, modifiers: int):
        self.keys.discard(symbol)

    def on_mouse_press(self, x: float, y: float, button: int, modifiers: int):
        if self.game.state is not GameState.PLAYING:
            return
        p = self.game.player
        self.touch.begin(x, self.height - y, p.x, p.y)

    def on_mouse_drag(self, x: float, y: float, dx: float, dy: float, buttons: int, modifiers: int):
        if not self.touch.active or self.game.state is not GameState.PLAYING:
            return
        self.touch.move(x, self.height - y)

    def on_mouse_release(self, x: float, y: float, button: int, modifiers: int):
        self.touch.end()

    # ----------------------------
    # Simulation
    # ----------------------------

    def on_update(self, delta_time: float):
        if not self.interactive:
            return
        self.game.tick(delta_time * 1000.0, self.current_input(), self.width, self.height)

    # ----------------------------
    # Drawing
    # ----------------------------

    def _sy(self, y: float) -> float:
        return self.height - y

    def _shape(self, cx: float, cy: float, points: List[Tuple[float, float]], angle: float = 0.0):
        """Rotate a local outline about (cx, cy) and convert it to screen space"""
        c, s = math.cos(angle), math.sin(angle)
        return [(cx + px * c - py * s, self._sy(cy + px * s + py * c)) for px, py in points]

    def on_draw(self):
        self.clear(color=BG)

        for star in self.game.stars:
            alpha = int(255 * star.opacity)
            arcade.draw_lrbt_rectangle_filled(
                star.x, star.x + max(star.size, 0.5),
                self._sy(star.y) - max(star.size, 0.5), self._sy(star.y),
                (255, 255, 255, alpha),
            )

        state = self.game.state
        if state in (GameState.PLAYING, GameState.PAUSED):
            self._draw_world()
            self._draw_hud()
            if state is GameState.PLAYING and self.game.level_up_message:
                self._draw_level_up()

        if state is GameState.START:
            self._draw_overlay("STARFALL", "Press ENTER to start")
        elif state is GameState.PAUSED:
            arcade.draw_lrbt_rectangle_filled(0, self.width, 0, self.height, (0, 0, 0, 128))
            self._draw_overlay("PAUSED", "ENTER resume   R restart   M menu")
        elif state is GameState.GAME_OVER:
            self._draw_overlay("GAME OVER", f"Final score {self.game.final_score}   ENTER restart   M menu")

    def _draw_world(self):
        g = self.game
        self._draw_player(g.player)

        for b in g.bullets:
            arcade.draw_lrbt_rectangle_filled(
                b.x - b.size / 2, b.x + b.size / 2,
                self._sy(b.y + b.size * 1.5), self._sy(b.y - b.size / 2),
                BULLET_C,
            )

        for e in g.enemies:
            self._draw_enemy(e)

        for u in g.power_ups:
            self._draw_power_up(u)

        for p in g.particles:
            alpha = int(255 * max(0.0, min(1.0, p.life)))
            half = p.size / 2
            arcade.draw_lrbt_rectangle_filled(
                p.x - half, p.x + half, self._sy(p.y + half), self._sy(p.y - half),
                (*p.color, alpha),
            )

    def _draw_player(self, p: Player):
        s = p.size
        flame = [(-s * 0.3, s * 0.8), (0, s * 1.5), (s * 0.3, s * 0.8)]
        body = [(-s * 0.4, -s * 0.2), (s * 0.4, -s * 0.2), (s * 0.4, s), (-s * 0.4, s)]
        nose = [(0, -s), (-s * 0.4, -s * 0.2), (s * 0.4, -s * 0.2)]
        left_fin = [(-s * 0.4, s * 0.6), (-s * 0.8, s), (-s * 0.4, s)]
        right_fin = [(s * 0.4, s * 0.6), (s * 0.8, s), (s * 0.4, s)]

        arcade.draw_polygon_filled(self._shape(p.x, p.y, flame), FLAME_C)
        arcade.draw_polygon_filled(self._shape(p.x, p.y, body), SHIP_BODY_C)
        arcade.draw_polygon_filled(self._shape(p.x, p.y, nose), SHIP_NOSE_C)
        arcade.draw_polygon_filled(self._shape(p.x, p.y, left_fin), SHIP_FIN_C)
        arcade.draw_polygon_filled(self._shape(p.x, p.y, right_fin), SHIP_FIN_C)

        if p.has_shield:
            arcade.draw_circle_outline(p.x, self._sy(p.y), s * 1.5, SHIELD_C, 3)
        if p.has_rapid_fire:
            arcade.draw_lrbt_rectangle_filled(
                p.x - s * 0.1, p.x + s * 0.1, self._sy(p.y - s * 0.9), self._sy(p.y - s * 1.2), (255, 0, 0)
            )
        if p.has_speed_boost:
            for i in range(3):
                arcade.draw_circle_outline(p.x, self._sy(p.y), s * (1.2 + i * 0.2), (255, 255, 0, 150), 1)

    def _draw_enemy(self, e: Enemy):
        s = e.size
        outline = [(0, -s), (-s, s), (0, s * 0.5), (s, s)]
        arcade.draw_polygon_filled(self._shape(e.x, e.y, outline, e.rotation), ENEMY_C)

    def _draw_power_up(self, u: PowerUp):
        pulse = u.pulse
        hexagon = [
            (math.cos(i * math.pi / 3) * u.size, math.sin(i * math.pi / 3) * u.size)
            for i in range(6)
        ]
        arcade.draw_polygon_filled(
            self._shape(u.x, u.y, hexagon, u.rotation), (*u.color, int(255 * 0.4 * pulse))
        )
        arcade.draw_circle_filled(u.x, self._sy(u.y), u.size * 0.4, (255, 255, 255))
        arcade.draw_text(
            u.symbol, u.x, self._sy(u.y), u.color, u.size * 0.8,
            anchor_x="center", anchor_y="center", bold=True,
        )

    def _draw_hud(self):
        hud = self.game.hud()
        arcade.draw_text(
            f"Score: {hud.score}   Lives: {hud.lives}   Level: {hud.level}",
            12, self.height - 24, HUD_C, 14,
        )

    def _draw_level_up(self):
        g = self.game
        progress = g.level_up_progress
        remaining = g.level_up_timer_ms
        fade = remaining / 500 if remaining < 500 else 1.0
        scale = 0.5 + progress * 0.5
        y = self._sy(self.height * 0.3 + (1 - progress) * 50)
        alpha = int(255 * max(0.0, min(1.0, fade)))

        arcade.draw_text(
            g.level_up_message, self.width / 2, y, (*BANNER_C, alpha), int(48 * scale),
            anchor_x="center", anchor_y="center", bold=True,
        )
        subtitle = g.level_up_subtitle
        if subtitle:
            arcade.draw_text(
                subtitle, self.width / 2, y - 60 * scale, (*SUBTITLE_C, alpha), int(24 * scale),
                anchor_x="center", anchor_y="center", bold=True,
            )

    def _draw_overlay(self, title: str, hint: str):
        arcade.draw_text(
            title, self.width / 2, self.height / 2 + 30, HUD_C, 36,
            anchor_x="center", anchor_y="center", bold=True,
        )
        arcade.draw_text(
            hint, self.width / 2, self.height / 2 - 20, HUD_C, 14,
            anchor_x="center", anchor_y="center",
        )


def main():
    parser = argparse.ArgumentParser(description="Play Starfall")
    parser.add_argument("--width", type=int, default=800, help="Window width (default: 800)")
    parser.add_argument("--height", type=int, default=600, help="Window height (default: 600)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--verbose", action="store_true", help="Log state transitions")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    seed_everything(args.seed)

    ShooterWindow(Game(width=args.width, height=args.height))
    arcade.run()


if __name__ == "__main__":
    main()
