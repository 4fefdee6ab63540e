from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


@dataclass
class Ball:
    id: int
    x: float
    y: float
    dx: float = 0.0
    dy: float = 0.0
    launched: bool = False


@dataclass
class Brick:
    """
    Axis-aligned brick rectangle. Board coordinates follow image-style
    orientation: origin top-left, y increases downward.
    """

    id: int
    x: float
    y: float
    width: float
    height: float
    hits: int
    points: int
    color: str = "#4CAF50"
    shape: str = "rect"  # rendering only
    visible: bool = True
    bonus: bool = False

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height


@dataclass(frozen=True)
class BrickDescriptor:
    hits: int
    points: int
    color: str = "#4CAF50"
    shape: str = "rect"
    bonus: bool = False


@dataclass
class BrickLayout:
    # None marks a gap in the grid
    rows: List[List[Optional[BrickDescriptor]]] = field(default_factory=list)

    def count(self) -> int:
        return sum(1 for row in self.rows for cell in row if cell is not None)

    @property
    def columns(self) -> int:
        return max((len(row) for row in self.rows), default=0)


@dataclass(frozen=True)
class HitResult:
    brick_id: int
    destroyed: bool
    points: int
    grants_bonus: bool


class TurnPhase(str, Enum):
    IDLE = "idle"
    AIMING = "aiming"
    LAUNCHING = "launching"
    RESOLVING = "resolving"


class GameStatus(str, Enum):
    PLAYING = "playing"
    WON = "won"
    LOST = "lost"


@dataclass
class GameState:
    level: int = 1
    status: GameStatus = GameStatus.PLAYING
    score: int = 0
    ball_count: int = 10
    levels_exhausted: bool = False


@dataclass(frozen=True)
class SimEvent:
    kind: str
    clock: float
    data: Dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        return {"event": self.kind, "clock": round(float(self.clock), 6), **self.data}
