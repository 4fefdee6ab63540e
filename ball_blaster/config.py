from __future__ import annotations
import math
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class BrickType:
    color: str
    points: int
    hits: int
    probability: float
    bonus: bool = False
    shape: str = "rect"


def default_brick_types() -> List[BrickType]:
    return [
        BrickType(color="#4CAF50", points=1, hits=1, probability=0.60),              # common green
        BrickType(color="#2196F3", points=2, hits=2, probability=0.25),              # blue
        BrickType(color="#FFC107", points=3, hits=1, probability=0.10, bonus=True),  # gold, grants a ball
        BrickType(color="#9C27B0", points=5, hits=3, probability=0.05),              # rare purple
    ]


@dataclass
class ProceduralRules:
    base_rows: int = 4
    columns: int = 12
    min_gap_probability: float = 0.1
    base_gap_probability: float = 0.3
    gap_probability_step: float = 0.05

    # Difficulty scaling (harder variant)
    difficulty_scaling: bool = False
    difficulty_step: int = 3       # levels per +1 hit bonus
    reweight: float = 0.5          # how strongly multi-hit types gain weight per bonus
    max_hits: int = 9

    def rows_for(self, level: int) -> int:
        return max(0, int(self.base_rows + level // 2))

    def gap_probability(self, level: int) -> float:
        return max(self.min_gap_probability, self.base_gap_probability - level * self.gap_probability_step)


@dataclass
class GameConfig:
    # Play field (y grows downward)
    field_width: float = 400.0
    field_height: float = 800.0
    header_height: float = 80.0
    bottom_controls_height: float = 80.0
    launch_offset: float = 100.0   # launch line sits this far above the return line

    # Balls
    ball_r: float = 8.0
    ball_speed: float = 720.0      # distance per second
    launch_delay: float = 0.150    # seconds between consecutive releases
    initial_ball_count: int = 10

    # Aim arc: [min_angle, pi - min_angle], measured from the +x axis, upward positive
    min_angle: float = math.pi / 90

    # Bricks
    brick_cols: int = 12
    brick_height: float = 25.0
    brick_margin: float = 3.0
    descent: float = 28.0          # one row: brick_height + brick_margin
    loss_line: Optional[float] = None  # None -> derived from the launch line

    # Level generation
    seed: int = 0
    procedural: ProceduralRules = field(default_factory=ProceduralRules)
    brick_types: List[BrickType] = field(default_factory=default_brick_types)

    # Diagnostics
    verbose: bool = False
    log_data: bool = False
    log_path: str = "ball_blaster_events.jsonl"

    @property
    def return_y(self) -> float:
        return self.field_height - self.bottom_controls_height

    @property
    def launch_y(self) -> float:
        return self.return_y - self.launch_offset

    @property
    def launch_x(self) -> float:
        return self.field_width / 2.0

    @property
    def loss_y(self) -> float:
        if self.loss_line is not None:
            return float(self.loss_line)
        return self.launch_y - self.brick_height

    @property
    def max_angle(self) -> float:
        return math.pi - self.min_angle

    def brick_width(self, columns: Optional[int] = None) -> float:
        cols = max(1, int(columns if columns is not None else self.brick_cols))
        return (self.field_width - (cols + 1) * self.brick_margin) / cols

    def validate(self) -> "GameConfig":
        if self.field_width <= 0 or self.field_height <= 0:
            raise ValueError("Field dimensions must be positive")
        if self.ball_r <= 0:
            raise ValueError(f"Ball radius must be positive, got {self.ball_r}")
        if 2 * self.ball_r >= self.field_width:
            raise ValueError("Ball does not fit between the side walls")
        if self.ball_speed <= 0:
            raise ValueError(f"Ball speed must be positive, got {self.ball_speed}")
        if self.launch_delay < 0:
            raise ValueError(f"Launch delay must be non-negative, got {self.launch_delay}")
        if self.initial_ball_count < 0:
            raise ValueError("Initial ball count must be non-negative")
        if not (0.0 < self.min_angle < math.pi / 2):
            raise ValueError(f"min_angle must lie in (0, pi/2), got {self.min_angle}")
        if self.brick_cols < 1 or self.brick_height <= 0 or self.brick_margin < 0:
            raise ValueError("Invalid brick grid geometry")
        if self.brick_width() <= 0:
            raise ValueError("Brick margins leave no room for bricks")
        if self.descent < 0:
            raise ValueError(f"Descent must be non-negative, got {self.descent}")
        if not (self.header_height + self.ball_r < self.launch_y < self.return_y):
            raise ValueError("Launch line must sit between the header and the return line")
        if not self.brick_types:
            raise ValueError("Brick-type table is empty")
        for bt in self.brick_types:
            if bt.hits < 1 or bt.probability < 0:
                raise ValueError(f"Invalid brick type: {bt}")
        return self
