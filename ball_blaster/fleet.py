from __future__ import annotations
from collections import deque
from dataclasses import dataclass, field, replace
from typing import Deque, List, Optional, Tuple

from .config import GameConfig
from .models import Ball
from .physics import launch_velocity

_TIME_EPS = 1e-9


@dataclass
class LaunchQueue:
    ball_ids: Deque[int] = field(default_factory=deque)
    dx: float = 0.0
    dy: float = 0.0

    def __len__(self) -> int:
        return len(self.ball_ids)


class BallFleet:
    """
    Owns every ball, the shared launch anchor and the launch queue that
    releases parked balls one at a time.
    """

    def __init__(self, cfg: GameConfig):
        self.cfg = cfg
        self.balls: List[Ball] = []
        self.anchor_x: float = cfg.launch_x
        self.queue: Optional[LaunchQueue] = None
        self.last_release: float = 0.0
        self._next_id = 0

    # ----- lifecycle
    def reset(self, count: int, launch_point: Optional[Tuple[float, float]] = None) -> None:
        if launch_point is None:
            launch_point = (self.cfg.launch_x, self.cfg.launch_y)
        x, y = float(launch_point[0]), float(launch_point[1])
        self.balls = [Ball(id=i, x=x, y=y) for i in range(max(0, int(count)))]
        self._next_id = len(self.balls)
        self.anchor_x = x
        self.queue = None
        self.last_release = 0.0

    def add_ball(self) -> Ball:
        ball = Ball(id=self._next_id, x=self.anchor_x, y=self.cfg.launch_y)
        self._next_id += 1
        self.balls.append(ball)
        return ball

    # ----- queries
    def all_parked(self) -> bool:
        return not any(b.launched for b in self.balls)

    def in_flight(self) -> int:
        return sum(1 for b in self.balls if b.launched)

    def queue_active(self) -> bool:
        return self.queue is not None and len(self.queue) > 0

    def index_of(self, ball_id: int) -> int:
        for i, b in enumerate(self.balls):
            if b.id == ball_id:
                return i
        raise KeyError(ball_id)

    # ----- launching
    def begin_launch(self, angle: float, speed: float, now: float) -> bool:
        if self.queue_active() or not self.all_parked():
            return False
        parked = sorted((b for b in self.balls if not b.launched), key=lambda b: b.id)
        if not parked:
            return False
        dx, dy = launch_velocity(angle, speed)
        self.queue = LaunchQueue(ball_ids=deque(b.id for b in parked), dx=dx, dy=dy)
        # first ball is due on the next tick
        self.last_release = now - self.cfg.launch_delay
        return True

    def tick(self, now: float) -> Optional[Ball]:
        """Release at most one queued ball once the launch delay has elapsed."""
        queue = self.queue
        if queue is None or not queue.ball_ids:
            return None
        if now - self.last_release < self.cfg.launch_delay - _TIME_EPS:
            return None
        ball_id = queue.ball_ids.popleft()
        idx = self.index_of(ball_id)
        ball = self.balls[idx]
        ball = replace(ball, x=self.anchor_x, y=self.cfg.launch_y, dx=queue.dx, dy=queue.dy, launched=True)
        self.balls[idx] = ball
        self.last_release = now
        if not queue.ball_ids:
            self.queue = None
        return ball

    # ----- returns & recall
    def on_ball_returned(self, ball: Ball) -> Ball:
        r = self.cfg.ball_r
        x = float(min(max(ball.x, r), self.cfg.field_width - r))
        parked = replace(ball, x=x, y=self.cfg.launch_y, dx=0.0, dy=0.0, launched=False)
        self.balls[self.index_of(ball.id)] = parked
        self.anchor_x = x
        return parked

    def gather(self) -> None:
        self.balls = [
            replace(b, x=self.anchor_x, y=self.cfg.launch_y) if not b.launched else b
            for b in self.balls
        ]

    def recall(self) -> None:
        self.queue = None
        self.balls = [
            replace(b, x=self.anchor_x, y=self.cfg.launch_y, dx=0.0, dy=0.0, launched=False)
            for b in self.balls
        ]
