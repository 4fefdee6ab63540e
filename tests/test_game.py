"""Tests for the turn state machine, turn-end rules and level progression."""

import json
import math

import pytest

from ball_blaster.config import GameConfig
from ball_blaster.game import BallBlasterGame, FrameInput, advance, new_simulation
from ball_blaster.levels import DataLevelSource, ProceduralLevelSource
from ball_blaster.models import BrickDescriptor, BrickLayout, GameStatus, TurnPhase

from conftest import DT, StubLevelSource, play_turn


class TestTurnController:
    """Phase transitions and input gating."""

    def test_aim_enters_aiming_and_clamps(self, cfg, stub_source):
        game = BallBlasterGame(cfg, stub_source)
        assert game.phase == TurnPhase.IDLE
        assert game.aim(-0.5)
        assert game.phase == TurnPhase.AIMING
        assert game.aim_angle == pytest.approx(cfg.min_angle)

    def test_release_without_aim_is_ignored(self, cfg, stub_source):
        game = BallBlasterGame(cfg, stub_source)
        assert not game.release()
        assert game.phase == TurnPhase.IDLE

    def test_inputs_ignored_while_turn_active(self, cfg, stub_source):
        game = BallBlasterGame(cfg, stub_source)
        game.aim(math.pi / 2)
        assert game.release()
        game.advance(DT)
        assert game.phase == TurnPhase.RESOLVING
        assert not game.aim(1.0)
        assert not game.release()
        assert game.aim_angle == pytest.approx(math.pi / 2)

    def test_launching_phase_while_queue_drains(self, stub_source):
        game = BallBlasterGame(GameConfig(brick_cols=1, initial_ball_count=3), stub_source)
        game.aim(math.pi / 2)
        game.release()
        game.advance(DT)
        assert game.phase == TurnPhase.LAUNCHING
        assert sum(b.launched for b in game.balls) == 1

    def test_cancel_aim_returns_to_idle(self, cfg, stub_source):
        game = BallBlasterGame(cfg, stub_source)
        game.aim(1.0)
        game.cancel_aim()
        assert game.phase == TurnPhase.IDLE

    def test_recall_before_release_never_descends(self, cfg, stub_source):
        game = BallBlasterGame(cfg, stub_source)
        y0 = game.bricks[0].y
        game.recall()
        game.aim(math.pi / 2)
        game.recall()
        for _ in range(30):
            game.advance(DT)
        assert game.sim.brick_field.descents == 0
        assert game.bricks[0].y == y0
        assert game.phase == TurnPhase.IDLE

    def test_recall_mid_turn_parks_and_skips_turn_end(self):
        layout = BrickLayout(rows=[[BrickDescriptor(hits=50, points=1)]])
        game = BallBlasterGame(GameConfig(brick_cols=1, initial_ball_count=4), StubLevelSource({1: layout}))
        game.aim(math.pi / 3)
        game.release()
        for _ in range(20):
            game.advance(DT)
        assert game.phase in (TurnPhase.LAUNCHING, TurnPhase.RESOLVING)
        game.recall()
        assert game.phase == TurnPhase.IDLE
        assert all(not b.launched for b in game.balls)
        assert game.sim.fleet.queue is None
        game.advance(DT)
        assert game.sim.brick_field.descents == 0
        # a fresh turn can start right away
        assert game.aim(math.pi / 2) and game.release()


class TestTurnEnd:
    """Win, loss and descent."""

    def test_single_brick_destroyed_wins_without_descent(self, cfg, stub_source):
        game = BallBlasterGame(cfg, stub_source)
        play_turn(game)
        assert game.state.status == GameStatus.WON
        assert game.state.score == 5
        assert game.sim.brick_field.descents == 0
        assert not game.state.levels_exhausted

    def test_surviving_bricks_descend_one_step(self, cfg):
        layout = BrickLayout(rows=[[BrickDescriptor(hits=3, points=1)]])
        game = BallBlasterGame(cfg, StubLevelSource({1: layout}))
        y0 = game.bricks[0].y
        play_turn(game)
        assert game.state.status == GameStatus.PLAYING
        assert game.bricks[0].hits == 2
        assert game.bricks[0].y == pytest.approx(y0 + cfg.descent)

    def test_bricks_on_the_loss_line_lose_after_descent(self, cfg):
        layout = BrickLayout(rows=[[BrickDescriptor(hits=99, points=1)]])
        game = BallBlasterGame(cfg, StubLevelSource({1: layout}))
        game.bricks[0].y = cfg.loss_y
        play_turn(game)
        assert game.sim.brick_field.descents == 1
        assert game.sim.scores.turn_destroyed == 0
        assert game.state.status == GameStatus.LOST

    def test_balls_gather_on_the_last_returned_ball(self, stub_source):
        game = BallBlasterGame(GameConfig(brick_cols=1, initial_ball_count=3), stub_source)
        play_turn(game, angle=math.pi / 3)
        xs = {b.x for b in game.balls}
        assert len(xs) == 1
        assert xs.pop() == game.sim.fleet.anchor_x

    def test_bonus_brick_grants_a_ball(self, cfg):
        layout = BrickLayout(rows=[[BrickDescriptor(hits=1, points=3, bonus=True)]])
        game = BallBlasterGame(cfg, StubLevelSource({1: layout}))
        play_turn(game)
        assert game.state.ball_count == 2
        assert len(game.balls) == 2
        assert all(not b.launched for b in game.balls)

    def test_game_over_freezes_the_simulation(self, cfg):
        layout = BrickLayout(rows=[[BrickDescriptor(hits=99, points=1)]])
        game = BallBlasterGame(cfg, StubLevelSource({1: layout}))
        game.bricks[0].y = cfg.loss_y
        play_turn(game)
        assert not game.aim(math.pi / 2)
        assert not game.release()
        clock = game.sim.clock
        game.advance(DT)
        assert game.sim.clock == pytest.approx(clock + DT)
        assert game.state.status == GameStatus.LOST


class TestLevelProgression:
    """Next level, restart and running out of levels."""

    def test_missing_first_level_is_an_immediate_win(self, cfg):
        game = BallBlasterGame(cfg, DataLevelSource([]))
        assert game.state.status == GameStatus.WON
        assert game.state.levels_exhausted
        assert game.bricks == []

    def test_next_level_keeps_score_and_ball_count(self, cfg, one_brick_layout):
        source = StubLevelSource({1: one_brick_layout, 2: BrickLayout(rows=[[BrickDescriptor(hits=2, points=1)]])})
        game = BallBlasterGame(cfg, source)
        play_turn(game)
        game.start_next_level()
        assert source.requested == [1, 2]
        assert game.state.level == 2
        assert game.state.status == GameStatus.PLAYING
        assert game.state.score == 5
        assert game.bricks[0].hits == 2
        assert all((b.x, b.y) == (cfg.launch_x, cfg.launch_y) for b in game.balls)

    def test_running_out_of_levels_wins_the_game(self, cfg, one_brick_layout):
        game = BallBlasterGame(cfg, DataLevelSource([one_brick_layout]))
        play_turn(game)
        game.start_next_level()
        assert game.state.status == GameStatus.WON
        assert game.state.levels_exhausted
        assert game.state.level == 2

    def test_restart_resets_level_score_and_balls(self, cfg):
        layout = BrickLayout(rows=[[BrickDescriptor(hits=1, points=3, bonus=True)]])
        game = BallBlasterGame(cfg, StubLevelSource({1: layout, 2: layout}))
        play_turn(game)
        game.start_next_level()
        game.restart_game()
        assert game.state.level == 1
        assert game.state.score == 0
        assert game.state.ball_count == cfg.initial_ball_count
        assert len(game.balls) == cfg.initial_ball_count
        assert game.bricks[0].visible


class TestPureAdvance:
    """State threaded through advance()."""

    def test_advance_leaves_the_input_state_untouched(self, cfg, stub_source):
        s0 = new_simulation(cfg, stub_source)
        s1 = advance(s0, FrameInput(aim=math.pi / 2, release=True), DT)
        assert s0.clock == 0.0
        assert s0.turn.phase == TurnPhase.IDLE
        assert s0.fleet.all_parked()
        assert s1.turn.phase == TurnPhase.RESOLVING
        assert s1.fleet.balls[0].launched
        assert [e.kind for e in s1.events] == ["release", "launch"]

    def test_recall_input_lands_in_idle(self, cfg, stub_source):
        s = new_simulation(cfg, stub_source)
        s = advance(s, FrameInput(aim=1.0, release=True), DT)
        s = advance(s, FrameInput(recall=True), DT)
        assert s.turn.phase == TurnPhase.IDLE
        assert s.fleet.all_parked()
        assert s.brick_field.descents == 0

    def test_negative_dt_is_rejected(self, cfg, stub_source):
        s = new_simulation(cfg, stub_source)
        with pytest.raises(ValueError):
            advance(s, None, -0.1)


class TestSimulationProperties:
    """Invariants over a full procedural game."""

    def test_balls_stay_in_bounds_and_hits_only_decrease(self):
        cfg = GameConfig(initial_ball_count=6, seed=11)
        game = BallBlasterGame(cfg, ProceduralLevelSource.from_config(cfg))
        r = cfg.ball_r
        for angle in (0.3, 1.2, math.pi / 2, 2.0, 2.8):
            if game.state.status != GameStatus.PLAYING:
                break
            game.aim(angle)
            game.release()
            frames = 0
            while game.phase != TurnPhase.IDLE and frames < 20000:
                before = {b.id: b.hits for b in game.bricks}
                events = game.advance(DT)
                frames += 1
                for ball in game.balls:
                    if ball.launched:
                        assert r - 1e-9 <= ball.x <= cfg.field_width - r + 1e-9
                        assert ball.y + r < cfg.return_y
                        assert ball.y >= cfg.header_height + r - 1e-9
                hit_counts = {}
                for ev in events:
                    if ev.kind == "hit":
                        hit_counts[ev.data["brick"]] = hit_counts.get(ev.data["brick"], 0) + 1
                for brick in game.bricks:
                    assert brick.hits >= 0
                    assert before[brick.id] - brick.hits == hit_counts.get(brick.id, 0)
                    assert brick.visible == (brick.hits > 0)
            assert game.phase == TurnPhase.IDLE

    def test_event_log_records_turns(self, tmp_path, stub_source):
        path = tmp_path / "events.jsonl"
        cfg = GameConfig(brick_cols=1, initial_ball_count=1, log_data=True, log_path=str(path))
        game = BallBlasterGame(cfg, stub_source)
        play_turn(game)
        game.close()
        kinds = [json.loads(line)["event"] for line in path.read_text(encoding="utf-8").splitlines()]
        assert kinds[0] == "log_start"
        assert kinds[-1] == "log_stop"
        assert "level_start" in kinds and "turn_end" in kinds and "won" in kinds

    def test_snapshot_is_json_serialisable(self, cfg, stub_source):
        game = BallBlasterGame(cfg, stub_source)
        snap = json.loads(json.dumps(game.snapshot()))
        assert snap["state"]["status"] == "playing"
        assert snap["phase"] == "idle"
        assert len(snap["balls"]) == 1 and len(snap["bricks"]) == 1

    def test_invalid_config_is_rejected(self, stub_source):
        with pytest.raises(ValueError):
            BallBlasterGame(GameConfig(ball_speed=0.0), stub_source)
