import pytest

from starfall.shooter import game as game_module
from starfall.shooter.controls import InputState
from starfall.shooter.entities import Bullet, EffectType, Enemy, PowerUp
from starfall.shooter.game import Game, GameState
from starfall.shooter.utils import FRAME_MS, seed_everything


@pytest.fixture
def game():
    seed_everything(1234)
    g = Game(width=800, height=600)
    g.start()
    return g


@pytest.fixture
def quiet_game():
    """A playing game whose spawn timers never fire on their own"""
    seed_everything(1234)
    g = Game(width=800, height=600, enemy_spawn_interval_ms=1e9, power_up_spawn_interval_ms=1e9)
    g.start()
    return g


def kill_enemy_at(g, x, y):
    g.enemies.append(Enemy(x=x, y=y, speed=2.0))
    g.bullets.append(Bullet(x=x, y=y))


@pytest.fixture
def fixed_choice(monkeypatch):
    """Replace random.choice with a scripted sequence; returns the call log"""
    calls = []
    script = [EffectType.RAPID_FIRE, EffectType.MULTI_SHOT, EffectType.SHIELD, EffectType.SPEED_BOOST]

    def choice(seq):
        value = script[len(calls) % len(script)]
        calls.append(value)
        return value

    monkeypatch.setattr(game_module.random, "choice", choice)
    return calls


# ----------------------------
# Lifecycle
# ----------------------------

def test_initial_state():
    g = Game()
    assert g.state is GameState.START
    assert (g.score, g.lives, g.level) == (0, 3, 1)
    assert len(g.stars) == 100


def test_start_resets_counters(game):
    assert game.state is GameState.PLAYING
    assert (game.score, game.lives, game.level) == (0, 3, 1)
    assert game.player.x == 400
    assert game.player.y == 540


def test_pause_resume_cycle(game):
    game.pause()
    assert game.state is GameState.PAUSED
    game.resume()
    assert game.state is GameState.PLAYING
    game.toggle_pause()
    assert game.state is GameState.PAUSED
    game.toggle_pause()
    assert game.state is GameState.PLAYING


def test_illegal_commands_are_noops():
    g = Game()
    g.pause()
    g.resume()
    g.restart()
    g.go_to_main_menu()
    assert g.state is GameState.START

    g.start()
    g.start()
    g.restart()
    g.go_to_main_menu()
    assert g.state is GameState.PLAYING


def test_restart_from_pause_resets(game):
    game.score = 700
    game.enemies.append(Enemy(x=10, y=10))
    game.pause()
    game.restart_from_pause()
    assert game.state is GameState.PLAYING
    assert game.score == 0
    assert game.enemies == []


def test_restart_after_game_over_resets_difficulty(game):
    game.enemy_spawn_interval_ms = 500
    game.lives = 1
    game.enemies.append(Enemy(x=game.player.x, y=game.player.y))
    game.tick(0)
    assert game.state is GameState.GAME_OVER

    game.restart()
    assert game.state is GameState.PLAYING
    assert game.enemy_spawn_interval_ms == 2000
    assert game.final_score is None


def test_main_menu_from_pause(game):
    game.pause()
    game.go_to_main_menu()
    assert game.state is GameState.START
    game.start()
    assert game.state is GameState.PLAYING


# ----------------------------
# Tick contract
# ----------------------------

@pytest.mark.parametrize("state", ["start", "paused", "game_over"])
def test_entities_frozen_outside_play_but_stars_move(game, state):
    game.enemies.append(Enemy(x=100, y=100, speed=3.0))
    game.bullets.append(Bullet(x=300, y=300))
    game.particles.append(game_module.Particle(x=5, y=5, color=(1, 1, 1)))
    game.state = GameState(state)

    stars_before = [(s.x, s.y) for s in game.stars]
    entities_before = (
        [(e.x, e.y) for e in game.enemies],
        [(b.x, b.y) for b in game.bullets],
        [p.life for p in game.particles],
    )
    game.tick(100, InputState(left=True, fire=True))

    assert (
        [(e.x, e.y) for e in game.enemies],
        [(b.x, b.y) for b in game.bullets],
        [p.life for p in game.particles],
    ) == entities_before
    assert [(s.x, s.y) for s in game.stars] != stars_before
    assert game.player.x == 400


def test_negative_elapsed_treated_as_zero(quiet_game):
    quiet_game.enemies.append(Enemy(x=100, y=100, speed=3.0))
    quiet_game.tick(-50, InputState(right=True))
    assert quiet_game.enemies[0].y == 100
    assert quiet_game.player.x == 400


def test_movement_scales_with_elapsed(quiet_game):
    quiet_game.tick(FRAME_MS, InputState(right=True, up=True))
    assert quiet_game.player.x == pytest.approx(405)
    assert quiet_game.player.y == pytest.approx(535)


def test_speed_boost_moves_faster(quiet_game):
    quiet_game.player.apply_power_up(EffectType.SPEED_BOOST)
    quiet_game.tick(FRAME_MS, InputState(left=True))
    assert quiet_game.player.x == pytest.approx(392)


def test_player_clamped_to_playfield(quiet_game):
    quiet_game.player.x = 795
    quiet_game.tick(FRAME_MS, InputState(right=True))
    assert quiet_game.player.x == 800 - quiet_game.player.size


def test_clamp_uses_current_bounds(quiet_game):
    quiet_game.tick(0, InputState(), width=300, height=400)
    assert quiet_game.width == 300
    assert quiet_game.player.x == 300 - quiet_game.player.size
    assert quiet_game.player.y == 400 - quiet_game.player.size


def test_invalid_bounds_ignored(quiet_game):
    quiet_game.tick(0, width=-10, height=float("nan"))
    assert (quiet_game.width, quiet_game.height) == (800, 600)


def test_fire_respects_cooldown(quiet_game):
    quiet_game.tick(0, InputState(fire=True))
    assert len(quiet_game.bullets) == 1
    assert quiet_game.events["shots"] == 1
    quiet_game.tick(0, InputState(fire=True))
    assert len(quiet_game.bullets) == 1


def test_bullets_culled_above_top(quiet_game):
    quiet_game.bullets.append(Bullet(x=100, y=1))
    quiet_game.tick(FRAME_MS)
    assert quiet_game.bullets == []


def test_enemies_escape_without_penalty(quiet_game):
    quiet_game.enemies.append(Enemy(x=100, y=649, speed=2.0))
    quiet_game.tick(FRAME_MS)
    assert quiet_game.enemies == []
    assert quiet_game.lives == 3
    assert quiet_game.score == 0


def test_power_ups_culled_below_bottom(quiet_game):
    quiet_game.power_ups.append(PowerUp(x=100, y=649, effect=EffectType.SHIELD))
    quiet_game.tick(FRAME_MS)
    assert quiet_game.power_ups == []


def test_dead_particles_culled(quiet_game):
    quiet_game.particles.append(game_module.Particle(x=5, y=5, color=(1, 1, 1), life=0.01))
    quiet_game.tick(FRAME_MS)
    assert quiet_game.particles == []


# ----------------------------
# Spawning
# ----------------------------

def test_enemy_spawns_only_after_interval(game):
    game.tick(2000)
    assert game.enemies == []
    assert game.enemy_spawn_timer == 2000

    game.tick(1)
    assert len(game.enemies) == 1
    assert game.enemy_spawn_timer == 0
    e = game.enemies[0]
    assert e.size <= e.x <= game.width - e.size


def test_power_up_spawn_rerolls_interval(game):
    game.power_up_spawn_timer = 15000
    game.tick(1)
    assert len(game.power_ups) == 1
    assert game.power_up_spawn_timer == 0
    assert 10000 <= game.power_up_spawn_interval_ms < 20000
    assert isinstance(game.power_ups[0].effect, EffectType)


def test_spawn_x_within_margin(game):
    for _ in range(200):
        e = game.spawn_enemy()
        assert e.size <= e.x <= game.width - e.size


# ----------------------------
# Collisions
# ----------------------------

def test_bullet_kills_enemy(quiet_game):
    kill_enemy_at(quiet_game, 100, 100)
    quiet_game.tick(0)
    assert quiet_game.score == 100
    assert quiet_game.enemies == []
    assert quiet_game.bullets == []
    assert len(quiet_game.particles) == 15
    assert all(p.color == game_module.ENEMY_KILL_COLOR for p in quiet_game.particles)
    assert quiet_game.events["kills"] == 1


def test_one_bullet_kills_one_enemy(quiet_game):
    quiet_game.enemies.append(Enemy(x=100, y=100, speed=2.0))
    quiet_game.enemies.append(Enemy(x=102, y=100, speed=2.0))
    quiet_game.bullets.append(Bullet(x=101, y=100))
    quiet_game.tick(0)
    assert quiet_game.score == 100
    assert len(quiet_game.enemies) == 1


def test_adjacent_hits_are_all_resolved(quiet_game):
    # Neighbouring pairs must not be skipped when earlier entries are removed
    for x in (100, 200, 300, 400):
        kill_enemy_at(quiet_game, x, 100)
    quiet_game.tick(0)
    assert quiet_game.score == 400
    assert quiet_game.enemies == []
    assert quiet_game.bullets == []


def test_enemy_collision_costs_a_life(quiet_game):
    p = quiet_game.player
    quiet_game.enemies.append(Enemy(x=p.x, y=p.y))
    quiet_game.tick(0)
    assert quiet_game.lives == 2
    assert quiet_game.enemies == []
    assert all(q.color == game_module.PLAYER_HIT_COLOR for q in quiet_game.particles)


def test_shield_absorbs_collision(quiet_game):
    p = quiet_game.player
    p.apply_power_up(EffectType.SHIELD)
    quiet_game.enemies.append(Enemy(x=p.x, y=p.y))
    quiet_game.tick(0)
    assert quiet_game.lives == 3
    assert quiet_game.enemies == []
    assert quiet_game.events["shielded_hits"] == 1


def test_last_life_ends_game_immediately(quiet_game):
    p = quiet_game.player
    quiet_game.lives = 1
    quiet_game.score = 1000
    quiet_game.enemies.append(Enemy(x=p.x, y=p.y))
    quiet_game.enemies.append(Enemy(x=p.x + 1, y=p.y))
    quiet_game.power_ups.append(PowerUp(x=p.x, y=p.y, effect=EffectType.SHIELD))

    quiet_game.tick(0)

    assert quiet_game.state is GameState.GAME_OVER
    assert quiet_game.lives == 0
    assert quiet_game.final_score == 1000
    # Nothing after the fatal hit is processed
    assert len(quiet_game.enemies) == 1
    assert len(quiet_game.power_ups) == 1
    assert not p.has_shield
    assert quiet_game.level == 1
    assert quiet_game.score == 1000


def test_power_up_pickup(quiet_game):
    p = quiet_game.player
    quiet_game.power_ups.append(PowerUp(x=p.x, y=p.y, effect=EffectType.MULTI_SHOT))
    quiet_game.tick(0)
    assert quiet_game.score == 50
    assert p.effects[EffectType.MULTI_SHOT] == 8000
    assert quiet_game.power_ups == []
    assert all(q.color == (255, 0, 255) for q in quiet_game.particles)


# ----------------------------
# Level progression
# ----------------------------

def test_scenario_first_level(quiet_game):
    g = quiet_game
    assert (g.score, g.lives, g.level) == (0, 3, 1)

    kill_enemy_at(g, 100, 100)
    g.tick(0)
    assert g.score == 100

    g.power_ups.append(PowerUp(x=g.player.x, y=g.player.y, effect=EffectType.RAPID_FIRE))
    g.tick(0)
    assert g.score == 150
    assert g.player.effects[EffectType.RAPID_FIRE] == pytest.approx(8000)

    g.score = 900
    kill_enemy_at(g, 100, 100)
    g.tick(0)
    assert g.level == 2
    assert g.score == 1200
    assert g.enemy_spawn_interval_ms == 1e9 - 150
    assert g.level_up_message == "LEVEL 2!"


def test_first_level_up_shortens_default_spawn_interval(game):
    game.score = 900
    kill_enemy_at(game, 100, 100)
    game.tick(0)
    assert game.level == 2
    assert game.enemy_spawn_interval_ms == 1850
    assert game.power_up_spawn_interval_ms == 16000


def test_level_up_fires_once_per_threshold(quiet_game):
    g = quiet_game
    g.score = 800
    kill_enemy_at(g, 100, 100)
    kill_enemy_at(g, 300, 100)
    g.tick(0)
    assert g.level == 2
    assert g.events["level_ups"] == 1
    g.tick(0)
    g.tick(0)
    assert g.level == 2
    assert g.score == 1200


def test_level_up_celebration_particles(quiet_game):
    quiet_game.level_up()
    golden = [p for p in quiet_game.particles if p.color == game_module.CELEBRATION_COLOR]
    assert len(golden) == 30


def test_level_up_grants_effect_and_bonus(quiet_game, fixed_choice):
    quiet_game.level_up()
    assert quiet_game.score == 200
    assert quiet_game.player.has_rapid_fire
    assert len(fixed_choice) == 1


def test_level_three_double_power(quiet_game, fixed_choice):
    quiet_game.level = 2
    quiet_game.level_up()
    assert quiet_game.level == 3
    assert quiet_game.level_up_message == "LEVEL 3! DOUBLE POWER!"
    assert quiet_game.level_up_subtitle == "DOUBLE POWER-UP!"
    assert quiet_game.player.has_rapid_fire
    assert quiet_game.player.has_multi_shot
    assert quiet_game.lives == 3


def test_level_five_bonus_life(quiet_game):
    g = quiet_game
    g.level = 4
    g.score = 3900
    kill_enemy_at(g, 100, 100)
    g.tick(0)
    assert g.level == 5
    assert g.lives == 4
    assert g.level_up_message == "LEVEL 5! BONUS LIFE!"
    assert g.level_up_subtitle == "+1 LIFE AWARDED!"


def test_level_ten_double_decrement(quiet_game):
    g = quiet_game
    g.level = 9
    g.enemy_spawn_interval_ms = 1000
    g.level_up()
    assert g.level == 10
    assert g.enemy_spawn_interval_ms == 750
    assert g.lives == 4
    assert g.level_up_message == "LEVEL 10! BONUS LIFE!"


def test_level_ten_respects_floors(quiet_game):
    g = quiet_game
    g.level = 9
    g.enemy_spawn_interval_ms = 450
    g.level_up()
    assert g.enemy_spawn_interval_ms == 300

    g.enemy_spawn_interval_ms = 450
    g.level_up()
    assert g.level == 11
    assert g.enemy_spawn_interval_ms == 400


def test_level_fifteen_bonus_life_only(quiet_game, fixed_choice):
    g = quiet_game
    g.level = 14
    g.level_up()
    assert g.lives == 4
    assert g.level_up_message == "LEVEL 15! BONUS LIFE!"
    assert len(fixed_choice) == 1


def test_power_up_interval_capped(quiet_game):
    g = quiet_game
    g.power_up_spawn_interval_ms = 24500
    g.level = 1
    g.level_up()
    assert g.power_up_spawn_interval_ms == 25000
    g.level = 3
    g.level_up()
    assert g.power_up_spawn_interval_ms == 25000


def test_level_up_message_expires(quiet_game):
    g = quiet_game
    g.level_up()
    g.tick(1500)
    assert g.level_up_message is not None
    assert g.level_up_progress == pytest.approx(0.5)
    g.tick(1500)
    assert g.level_up_message is None
    assert g.level_up_progress == 0


def test_score_never_decreases_during_play(game):
    seed_everything(99)
    last = game.score
    for i in range(600):
        fire = InputState(left=(i // 60) % 2 == 0, right=(i // 60) % 2 == 1, fire=True)
        game.tick(FRAME_MS, fire)
        assert game.score >= last
        last = game.score
        if game.state is not GameState.PLAYING:
            break


# ----------------------------
# Outputs
# ----------------------------

def test_hud_snapshot(quiet_game):
    hud = quiet_game.hud()
    assert hud.state is GameState.PLAYING
    assert (hud.score, hud.lives, hud.level) == (0, 3, 1)
    assert hud.level_up_message is None
    assert hud.final_score is None


def test_listeners_notified_on_change_only():
    g = Game(enemy_spawn_interval_ms=1e9, power_up_spawn_interval_ms=1e9)
    seen = []
    g.add_listener(seen.append)
    assert seen[-1].state is GameState.START

    g.start()
    assert seen[-1].state is GameState.PLAYING
    count = len(seen)

    g.tick(0)
    g.tick(10)
    assert len(seen) == count

    kill_enemy_at(g, 100, 100)
    g.tick(0)
    assert len(seen) == count + 1
    assert seen[-1].score == 100

    g.remove_listener(seen.append)
    kill_enemy_at(g, 100, 100)
    g.tick(0)
    assert len(seen) == count + 1


def test_listener_snapshot_is_not_repeated(quiet_game):
    quiet_game.score = 500
    seen = []
    quiet_game.add_listener(seen.append)
    assert seen[-1].score == 500

    quiet_game.tick(0)
    assert len(seen) == 1


def test_late_listener_does_not_hide_changes_from_earlier_ones(quiet_game):
    first, second = [], []
    quiet_game.add_listener(first.append)
    quiet_game.score = 500
    quiet_game.add_listener(second.append)
    assert first[-1].score == 500
    assert second == [first[-1]]


def test_stats_accumulate(quiet_game):
    kill_enemy_at(quiet_game, 100, 100)
    quiet_game.tick(0)
    kill_enemy_at(quiet_game, 100, 100)
    quiet_game.tick(0)
    assert quiet_game.stats["kills"] == 2
    assert quiet_game.events["kills"] == 1


def test_random_module_is_shared():
    # Game draws from the module-level generator so seed_everything reproduces runs
    seed_everything(5)
    a = Game()
    seed_everything(5)
    b = Game()
    assert [(s.x, s.y) for s in a.stars] == [(s.x, s.y) for s in b.stars]
