"""Pytest configuration and shared fixtures."""

import math
import sys
from pathlib import Path

import pytest

# Add the project root to the path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from ball_blaster.config import GameConfig  # noqa: E402
from ball_blaster.models import BrickDescriptor, BrickLayout, TurnPhase  # noqa: E402

DT = 1.0 / 60.0


class StubLevelSource:
    """Fixed layouts per level; records every requested index."""

    def __init__(self, layouts):
        self.layouts = dict(layouts)
        self.requested = []

    def generate(self, level):
        self.requested.append(level)
        return self.layouts.get(level)


def play_turn(game, angle=math.pi / 2, dt=DT, max_frames=5000):
    """Aim, release and advance until every ball is parked again. Returns frames used."""
    game.aim(angle)
    assert game.release()
    frames = 0
    while game.phase != TurnPhase.IDLE:
        game.advance(dt)
        frames += 1
        assert frames < max_frames, "turn did not finish"
    return frames


@pytest.fixture
def cfg():
    """Single-column grid so one brick spans the field; one ball."""
    return GameConfig(brick_cols=1, initial_ball_count=1)


@pytest.fixture
def one_brick_layout():
    return BrickLayout(rows=[[BrickDescriptor(hits=1, points=5)]])


@pytest.fixture
def stub_source(one_brick_layout):
    return StubLevelSource({1: one_brick_layout})
