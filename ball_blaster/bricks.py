from __future__ import annotations
from typing import List

from .config import GameConfig
from .models import Brick, BrickLayout, HitResult


class BrickField:
    """
    Builds and owns the bricks of the current level: grid placement with fixed
    margins, hit bookkeeping, the per-turn descent and the cleared / loss-line
    queries used at turn end.
    """

    def __init__(self, cfg: GameConfig):
        self.cfg = cfg
        self.bricks: List[Brick] = []
        self.initial_count = 0
        self.descents = 0

    def initialize(self, layout: BrickLayout) -> None:
        cfg = self.cfg
        columns = max(cfg.brick_cols, layout.columns)
        w = cfg.brick_width(columns)
        h = cfg.brick_height
        m = cfg.brick_margin
        top = cfg.header_height + m

        bricks: List[Brick] = []
        for row, cells in enumerate(layout.rows):
            for col, desc in enumerate(cells):
                if desc is None:
                    continue
                bricks.append(Brick(
                    id=row * columns + col,
                    x=col * (w + m) + m,
                    y=top + row * (h + m),
                    width=w,
                    height=h,
                    hits=int(desc.hits),
                    points=int(desc.points),
                    color=desc.color,
                    shape=desc.shape,
                    visible=True,
                    bonus=bool(desc.bonus),
                ))
        self.bricks = bricks
        self.initial_count = len(bricks)
        self.descents = 0

    def clear(self) -> None:
        self.bricks = []
        self.initial_count = 0
        self.descents = 0

    @property
    def started_with_bricks(self) -> bool:
        return self.initial_count > 0

    def apply_hit(self, index: int) -> HitResult:
        brick = self.bricks[index]
        if not brick.visible or brick.hits <= 0:
            return HitResult(brick_id=brick.id, destroyed=False, points=0, grants_bonus=False)
        brick.hits -= 1
        if brick.hits == 0:
            brick.visible = False
            return HitResult(brick_id=brick.id, destroyed=True, points=brick.points, grants_bonus=brick.bonus)
        return HitResult(brick_id=brick.id, destroyed=False, points=0, grants_bonus=False)

    def descend(self, amount: float) -> None:
        # invisible bricks move too; they no longer collide so the shift is harmless
        for brick in self.bricks:
            brick.y += amount
        self.descents += 1

    def visible_bricks(self) -> List[Brick]:
        return [b for b in self.bricks if b.visible]

    def visible_count(self) -> int:
        return sum(1 for b in self.bricks if b.visible)

    def is_cleared(self) -> bool:
        return not any(b.visible for b in self.bricks)

    def has_crossed_loss_line(self, loss_y: float) -> bool:
        return any(b.visible and b.y > loss_y for b in self.bricks)
