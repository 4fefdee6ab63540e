from __future__ import annotations

from .models import GameState, HitResult


class ScoreTracker:
    def __init__(self):
        self.turn_points = 0
        self.turn_destroyed = 0
        self.turn_bonus_balls = 0

    def begin_turn(self) -> None:
        self.turn_points = 0
        self.turn_destroyed = 0
        self.turn_bonus_balls = 0

    def record(self, state: GameState, hit: HitResult) -> bool:
        """Credit a destroyed brick; returns True when it grants a bonus ball."""
        if not hit.destroyed:
            return False
        state.score += hit.points
        self.turn_points += hit.points
        self.turn_destroyed += 1
        if hit.grants_bonus:
            state.ball_count += 1
            self.turn_bonus_balls += 1
            return True
        return False

    def turn_summary(self) -> dict:
        return {
            "points": self.turn_points,
            "destroyed": self.turn_destroyed,
            "bonus_balls": self.turn_bonus_balls,
        }
