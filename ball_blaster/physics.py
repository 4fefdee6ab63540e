from __future__ import annotations
import math
from dataclasses import dataclass, replace
from typing import Optional, Sequence

from .config import GameConfig
from .models import Ball, Brick


@dataclass(frozen=True)
class Bounds:
    left: float
    right: float
    top: float
    return_y: float
    launch_y: float
    ball_r: float

    @classmethod
    def from_config(cls, cfg: GameConfig) -> "Bounds":
        return cls(
            left=0.0,
            right=float(cfg.field_width),
            top=float(cfg.header_height),
            return_y=float(cfg.return_y),
            launch_y=float(cfg.launch_y),
            ball_r=float(cfg.ball_r),
        )

    def clamp_x(self, x: float) -> float:
        r = self.ball_r
        return float(min(max(x, self.left + r), self.right - r))


@dataclass(frozen=True)
class StepResult:
    ball: Ball
    brick_index: Optional[int] = None
    returned: bool = False


def clamp_aim_angle(angle: float, min_angle: float) -> float:
    """
    Keep an aim angle inside the upward launch arc [min_angle, pi - min_angle].

    Angles are measured from the +x axis with "up" positive. Anything pointing
    at or below the horizon snaps to the nearer end of the arc.
    """
    max_angle = math.pi - min_angle
    a = math.atan2(math.sin(angle), math.cos(angle))  # (-pi, pi]
    if a < 0.0:
        return max_angle if a < -math.pi / 2 else min_angle
    return float(min(max(a, min_angle), max_angle))


def launch_velocity(angle: float, speed: float) -> tuple[float, float]:
    # screen y grows downward, so an upward angle means negative dy
    return math.cos(angle) * speed, -math.sin(angle) * speed


def overlaps(x: float, y: float, r: float, brick: Brick) -> bool:
    return (
        x + r > brick.x
        and x - r < brick.right
        and y + r > brick.y
        and y - r < brick.bottom
    )


def collision_side(x: float, y: float, r: float, brick: Brick) -> str:
    """
    Side of ``brick`` the ball most likely came through: the smallest of the
    four edge distances, ties resolved in left, right, top, bottom order.
    """
    depths = (
        ("left", abs((x + r) - brick.x)),
        ("right", abs((x - r) - brick.right)),
        ("top", abs((y + r) - brick.y)),
        ("bottom", abs((y - r) - brick.bottom)),
    )
    side, best = depths[0]
    for name, d in depths[1:]:
        if d < best:
            side, best = name, d
    return side


def step_ball(ball: Ball, dt: float, bricks: Sequence[Brick], bounds: Bounds) -> StepResult:
    """
    Advance one launched ball by ``dt`` seconds.

    Walls and the ceiling reflect once per step; crossing the return line parks
    the ball instead. At most one brick, the first visible overlap in iteration
    order, is resolved per step and only one velocity axis is flipped for it.
    Fast balls at low frame rates can pass through a brick between two steps.
    The inputs are left untouched; the caller applies the hit.
    """
    if not ball.launched:
        return StepResult(ball=ball)

    r = bounds.ball_r
    x, y = ball.x, ball.y
    dx, dy = ball.dx, ball.dy
    nx = x + dx * dt
    ny = y + dy * dt

    if nx - r <= bounds.left or nx + r >= bounds.right:
        dx = -dx
        nx = x + dx * dt

    if ny - r <= bounds.top:
        dy = -dy
        ny = y + dy * dt

    if ny + r >= bounds.return_y:
        parked = replace(ball, x=bounds.clamp_x(nx), y=bounds.launch_y, dx=0.0, dy=0.0, launched=False)
        return StepResult(ball=parked, returned=True)

    hit_index: Optional[int] = None
    for i, brick in enumerate(bricks):
        if not brick.visible:
            continue
        if not overlaps(nx, ny, r, brick):
            continue
        side = collision_side(nx, ny, r, brick)
        if side in ("left", "right"):
            dx = -dx
            nx = x + dx * dt
        else:
            dy = -dy
            ny = y + dy * dt
        hit_index = i
        break

    nx = bounds.clamp_x(nx)
    ny = max(ny, bounds.top + r)
    if ny + r >= bounds.return_y:
        # pushed down through the return line by the brick bounce
        parked = replace(ball, x=nx, y=bounds.launch_y, dx=0.0, dy=0.0, launched=False)
        return StepResult(ball=parked, brick_index=hit_index, returned=True)
    return StepResult(ball=replace(ball, x=nx, y=ny, dx=dx, dy=dy), brick_index=hit_index)
