from .game import BallBlasterGame, FrameInput, SimulationState, advance, new_simulation
from .config import BrickType, GameConfig, ProceduralRules
from .levels import DataLevelSource, LevelSource, ProceduralLevelSource, weighted_choice
from .models import Ball, Brick, BrickDescriptor, BrickLayout, GameState, GameStatus, TurnPhase

__all__ = [
    "BallBlasterGame",
    "FrameInput",
    "SimulationState",
    "advance",
    "new_simulation",
    "GameConfig",
    "BrickType",
    "ProceduralRules",
    "LevelSource",
    "DataLevelSource",
    "ProceduralLevelSource",
    "weighted_choice",
    "Ball",
    "Brick",
    "BrickDescriptor",
    "BrickLayout",
    "GameState",
    "GameStatus",
    "TurnPhase",
]
