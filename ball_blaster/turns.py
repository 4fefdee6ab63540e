from __future__ import annotations
import math

from .bricks import BrickField
from .fleet import BallFleet
from .models import GameState, GameStatus, TurnPhase
from .physics import clamp_aim_angle


class TurnController:
    """
    Aiming / launching / resolving state machine.

    IDLE -> AIMING on the first accepted aim, AIMING -> LAUNCHING on release,
    LAUNCHING <-> RESOLVING while the queue drains and balls fly, and back to
    IDLE once the queue is empty and every ball is parked. ``recall`` returns
    to IDLE from anywhere without running turn-end processing.
    """

    def __init__(self, min_angle: float):
        self.min_angle = float(min_angle)
        self.phase = TurnPhase.IDLE
        self.had_launch = False
        self.aim_angle = math.pi / 2

    @property
    def active(self) -> bool:
        return self.phase in (TurnPhase.LAUNCHING, TurnPhase.RESOLVING)

    def aim(self, angle: float, fleet: BallFleet) -> bool:
        if self.phase not in (TurnPhase.IDLE, TurnPhase.AIMING):
            return False
        if fleet.queue_active() or not fleet.all_parked():
            return False
        self.aim_angle = clamp_aim_angle(angle, self.min_angle)
        self.phase = TurnPhase.AIMING
        return True

    def cancel_aim(self) -> None:
        if self.phase == TurnPhase.AIMING:
            self.phase = TurnPhase.IDLE

    def release(self, fleet: BallFleet, now: float, speed: float) -> bool:
        if self.phase != TurnPhase.AIMING:
            return False
        if not fleet.begin_launch(self.aim_angle, speed, now):
            return False
        self.phase = TurnPhase.LAUNCHING
        self.had_launch = True
        return True

    def update(self, fleet: BallFleet) -> bool:
        """Re-derive the phase from the fleet; True when a turn with a launch just finished."""
        if not self.active:
            return False
        if fleet.queue_active():
            self.phase = TurnPhase.LAUNCHING
            return False
        if not fleet.all_parked():
            self.phase = TurnPhase.RESOLVING
            return False
        self.phase = TurnPhase.IDLE
        completed = self.had_launch
        self.had_launch = False
        return completed

    def recall(self, fleet: BallFleet) -> None:
        fleet.recall()
        self.phase = TurnPhase.IDLE
        self.had_launch = False


def finish_turn(field: BrickField, state: GameState, descent: float, loss_y: float) -> str:
    """
    Turn-end rules, applied once per completed turn that launched at least one ball.

    Returns the outcome: "won", "lost", "descended" or "none".
    """
    if field.is_cleared():
        if field.started_with_bricks:
            state.status = GameStatus.WON
            return "won"
        return "none"
    field.descend(descent)
    if field.has_crossed_loss_line(loss_y):
        state.status = GameStatus.LOST
        return "lost"
    return "descended"
