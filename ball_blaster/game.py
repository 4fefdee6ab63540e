from __future__ import annotations
import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .bricks import BrickField
from .config import GameConfig
from .fleet import BallFleet
from .levels import LevelSource, ProceduralLevelSource
from .models import Ball, Brick, GameState, GameStatus, SimEvent, TurnPhase
from .physics import Bounds, step_ball
from .scoring import ScoreTracker
from .telemetry import EventLog
from .turns import TurnController, finish_turn


@dataclass
class FrameInput:
    aim: Optional[float] = None
    release: bool = False
    recall: bool = False


@dataclass
class SimulationState:
    cfg: GameConfig
    bounds: Bounds
    brick_field: BrickField
    fleet: BallFleet
    turn: TurnController
    scores: ScoreTracker
    game: GameState
    clock: float = 0.0
    events: List[SimEvent] = field(default_factory=list)

    def emit(self, kind: str, **data: Any) -> None:
        self.events.append(SimEvent(kind=kind, clock=self.clock, data=data))

    def drain_events(self) -> List[SimEvent]:
        events, self.events = self.events, []
        return events


# ----- construction & levels
def new_simulation(cfg: GameConfig, source: LevelSource, level: int = 1) -> SimulationState:
    cfg.validate()
    state = SimulationState(
        cfg=cfg,
        bounds=Bounds.from_config(cfg),
        brick_field=BrickField(cfg),
        fleet=BallFleet(cfg),
        turn=TurnController(cfg.min_angle),
        scores=ScoreTracker(),
        game=GameState(level=level, ball_count=cfg.initial_ball_count),
    )
    load_level(state, source, level)
    return state


def load_level(state: SimulationState, source: LevelSource, level: int) -> None:
    """Regenerate bricks and balls for ``level``; score and ball count carry over."""
    cfg = state.cfg
    state.game.level = int(level)
    state.turn = TurnController(cfg.min_angle)
    state.scores.begin_turn()
    state.fleet.reset(state.game.ball_count, (cfg.launch_x, cfg.launch_y))

    layout = source.generate(level)
    if layout is None:
        # running out of levels ends the game as a win
        state.brick_field.clear()
        state.game.status = GameStatus.WON
        state.game.levels_exhausted = True
        state.emit("levels_exhausted", level=level)
        return

    state.brick_field.initialize(layout)
    state.game.status = GameStatus.PLAYING
    state.game.levels_exhausted = False
    state.emit("level_start", level=level, bricks=state.brick_field.initial_count, balls=len(state.fleet.balls))


# ----- inbound operations
def aim(state: SimulationState, angle: float) -> bool:
    if state.game.status != GameStatus.PLAYING:
        return False
    return state.turn.aim(angle, state.fleet)


def release(state: SimulationState) -> bool:
    if state.game.status != GameStatus.PLAYING:
        return False
    if not state.turn.release(state.fleet, state.clock, state.cfg.ball_speed):
        return False
    state.scores.begin_turn()
    state.emit("release", angle=state.turn.aim_angle, balls=len(state.fleet.queue or ()))
    return True


def recall(state: SimulationState) -> None:
    was_active = state.turn.active
    state.turn.recall(state.fleet)
    if was_active:
        state.emit("recall", anchor_x=state.fleet.anchor_x)


def apply_inputs(state: SimulationState, inputs: FrameInput) -> None:
    if inputs.aim is not None:
        aim(state, inputs.aim)
    if inputs.release:
        release(state)
    if inputs.recall:
        recall(state)


# ----- per-tick simulation
def _step_balls(state: SimulationState, dt: float) -> None:
    fleet, bricks = state.fleet, state.brick_field
    for i, ball in enumerate(list(fleet.balls)):
        if not ball.launched:
            continue
        res = step_ball(ball, dt, bricks.bricks, state.bounds)
        if res.brick_index is not None:
            hit = bricks.apply_hit(res.brick_index)
            state.emit("hit", ball=ball.id, brick=hit.brick_id, destroyed=hit.destroyed)
            if hit.destroyed:
                state.emit("destroyed", brick=hit.brick_id, points=hit.points)
            if state.scores.record(state.game, hit):
                extra = fleet.add_ball()
                state.emit("bonus", brick=hit.brick_id, ball=extra.id)
        if res.returned:
            parked = fleet.on_ball_returned(res.ball)
            state.emit("returned", ball=parked.id, x=parked.x)
        else:
            fleet.balls[i] = res.ball


def _end_turn(state: SimulationState) -> None:
    cfg = state.cfg
    outcome = finish_turn(state.brick_field, state.game, cfg.descent, cfg.loss_y)
    state.fleet.gather()
    state.emit(
        "turn_end",
        outcome=outcome,
        visible=state.brick_field.visible_count(),
        score=state.game.score,
        **state.scores.turn_summary(),
    )
    if outcome == "descended":
        state.emit("descent", amount=cfg.descent, descents=state.brick_field.descents)
    elif outcome == "won":
        state.emit("won", level=state.game.level, score=state.game.score)
    elif outcome == "lost":
        state.emit("lost", level=state.game.level, score=state.game.score)


def advance_in_place(state: SimulationState, inputs: Optional[FrameInput], dt: float) -> SimulationState:
    if dt < 0:
        raise ValueError(f"dt must be non-negative, got {dt}")
    if inputs is not None:
        apply_inputs(state, inputs)
    state.clock += dt
    if state.game.status != GameStatus.PLAYING:
        return state

    launched = state.fleet.tick(state.clock)
    if launched is not None:
        state.emit("launch", ball=launched.id, remaining=len(state.fleet.queue or ()))

    _step_balls(state, dt)

    if state.turn.update(state.fleet):
        _end_turn(state)
    return state


def advance(state: SimulationState, inputs: Optional[FrameInput], dt: float) -> SimulationState:
    """
    Pure frame step: returns the next state and leaves ``state`` untouched.
    ``events`` on the result holds only what happened during this call.
    """
    nxt = copy.deepcopy(state)
    nxt.events = []
    return advance_in_place(nxt, inputs, dt)


class BallBlasterGame:
    """
    Frame-driver facade. Holds one ``SimulationState`` and mutates it in place;
    presentation code reads ``balls``, ``bricks``, ``state`` and ``aim_angle``
    or a JSON-ready ``snapshot()``.
    """

    def __init__(self, cfg: GameConfig, level_source: Optional[LevelSource] = None):
        self.cfg = cfg.validate()
        self.level_source: LevelSource = level_source if level_source is not None \
            else ProceduralLevelSource.from_config(cfg)
        self.event_log: Optional[EventLog] = None
        if cfg.log_data:
            self.event_log = EventLog(cfg.log_path)
            self.event_log.start()
        self.sim = new_simulation(cfg, self.level_source)
        self._dispatch()

    # ----- outbound views
    @property
    def balls(self) -> List[Ball]:
        return self.sim.fleet.balls

    @property
    def bricks(self) -> List[Brick]:
        return self.sim.brick_field.bricks

    @property
    def state(self) -> GameState:
        return self.sim.game

    @property
    def aim_angle(self) -> float:
        return self.sim.turn.aim_angle

    @property
    def phase(self) -> TurnPhase:
        return self.sim.turn.phase

    # ----- inbound
    def aim(self, angle: float) -> bool:
        ok = aim(self.sim, angle)
        self._dispatch()
        return ok

    def cancel_aim(self) -> None:
        self.sim.turn.cancel_aim()

    def release(self) -> bool:
        ok = release(self.sim)
        self._dispatch()
        return ok

    def recall(self) -> None:
        recall(self.sim)
        self._dispatch()

    def advance(self, dt: float) -> List[SimEvent]:
        advance_in_place(self.sim, None, dt)
        return self._dispatch()

    # ----- level progression
    def start_next_level(self) -> None:
        load_level(self.sim, self.level_source, self.sim.game.level + 1)
        self._dispatch()

    def restart_game(self) -> None:
        self.sim.game = GameState(level=1, ball_count=self.cfg.initial_ball_count)
        load_level(self.sim, self.level_source, 1)
        self._dispatch()

    def close(self) -> None:
        if self.event_log is not None:
            self.event_log.stop()

    # ----- diagnostics
    def _dispatch(self) -> List[SimEvent]:
        events = self.sim.drain_events()
        if self.event_log is not None and events:
            self.event_log.write_events(events)
        if self.cfg.verbose:
            for ev in events:
                self._announce(ev)
        return events

    @staticmethod
    def _announce(ev: SimEvent) -> None:
        d = ev.data
        if ev.kind == "level_start":
            print(f"[level] Level {d['level']} started with {d['bricks']} bricks and {d['balls']} balls")
        elif ev.kind == "levels_exhausted":
            print(f"[level] No layout for level {d['level']}; all levels complete")
        elif ev.kind == "turn_end":
            print(f"[turn] {d['outcome']}: destroyed={d['destroyed']} points={d['points']} "
                  f"visible={d['visible']} score={d['score']}")
        elif ev.kind == "won":
            print(f"[info] Level {d['level']} cleared (score {d['score']})")
        elif ev.kind == "lost":
            print(f"[info] Bricks crossed the loss line on level {d['level']} (score {d['score']})")

    def snapshot(self) -> Dict[str, Any]:
        g = self.sim.game
        return {
            "clock": self.sim.clock,
            "phase": self.phase.value,
            "aim_angle": self.aim_angle,
            "state": {
                "level": g.level,
                "status": g.status.value,
                "score": g.score,
                "ball_count": g.ball_count,
                "levels_exhausted": g.levels_exhausted,
            },
            "balls": [
                {"id": b.id, "x": b.x, "y": b.y, "launched": b.launched}
                for b in self.balls
            ],
            "bricks": [
                {
                    "id": k.id, "x": k.x, "y": k.y, "width": k.width, "height": k.height,
                    "hits": k.hits, "visible": k.visible, "color": k.color,
                    "shape": k.shape, "bonus": k.bonus,
                }
                for k in self.bricks
            ],
        }
