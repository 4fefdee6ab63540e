
import argparse
import json
import math
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Optional

import numpy as np

from ball_blaster.config import GameConfig, ProceduralRules
from ball_blaster.game import BallBlasterGame
from ball_blaster.levels import DataLevelSource, LevelSource, ProceduralLevelSource
from ball_blaster.models import GameStatus, TurnPhase


def build_config(args):
    rules = ProceduralRules()
    if args.base_rows is not None:
        rules.base_rows = max(0, int(args.base_rows))
    if args.columns is not None:
        rules.columns = max(1, int(args.columns))
    if args.difficulty_scaling:
        rules.difficulty_scaling = True

    cfg = GameConfig(procedural=rules)
    cfg.brick_cols = rules.columns

    if args.width is not None:
        cfg.field_width = float(args.width)
    if args.height is not None:
        cfg.field_height = float(args.height)
    if args.balls is not None:
        cfg.initial_ball_count = max(0, int(args.balls))
    if args.speed is not None:
        cfg.ball_speed = float(args.speed)
    if args.launch_delay is not None:
        cfg.launch_delay = max(0.0, float(args.launch_delay) / 1000.0)
    if args.descent is not None:
        cfg.descent = float(args.descent)
    if args.seed is not None:
        cfg.seed = int(args.seed)
    if args.verbose:
        cfg.verbose = True
    if args.log_data:
        cfg.log_data = True
    if args.log_path:
        cfg.log_path = str(Path(args.log_path).expanduser())
    return cfg


def build_level_source(cfg: GameConfig, levels_path: Optional[str]) -> LevelSource:
    if levels_path:
        source = DataLevelSource.load(Path(levels_path).expanduser())
        print(f"[info] Loaded {len(source)} level(s) from {levels_path}")
        return source
    return ProceduralLevelSource.from_config(cfg)


def run_autopilot(
    game: BallBlasterGame,
    *,
    turns: int,
    dt: float,
    aim_deg: Optional[float] = None,
    max_frames_per_turn: int = 20000,
    advance_levels: bool = True,
) -> int:
    """
    Drive the simulation without a player: aim, release, then advance fixed
    frames until every ball is parked again. Returns the number of turns played.
    """
    cfg = game.cfg
    sweep = np.linspace(cfg.min_angle + 0.25, cfg.max_angle - 0.25, 7)
    played = 0
    for turn_idx in range(max(0, turns)):
        state = game.state
        if state.status == GameStatus.WON and advance_levels and not state.levels_exhausted:
            game.start_next_level()
            state = game.state
        if state.status != GameStatus.PLAYING:
            break

        angle = math.radians(aim_deg) if aim_deg is not None else float(sweep[turn_idx % len(sweep)])
        game.aim(angle)
        if not game.release():
            print("[warn] Nothing to launch; stopping autopilot.")
            break

        frames = 0
        while game.phase != TurnPhase.IDLE:
            game.advance(dt)
            frames += 1
            if frames >= max_frames_per_turn:
                print(f"[warn] Turn {turn_idx + 1} exceeded {max_frames_per_turn} frames; recalling balls.")
                game.recall()
                break
        played += 1
    return played


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Run the Ball Blaster simulation headless with an autopilot player.")

    # Levels
    parser.add_argument('--levels', type=str, help='JSON file with hand-authored levels (default: procedural)')
    parser.add_argument('--seed', type=int, help='Seed for procedural level generation')
    parser.add_argument('--base-rows', type=int, help='Procedural rows at level 0 (rows grow every second level)')
    parser.add_argument('--columns', type=int, help='Brick columns')
    parser.add_argument('--difficulty-scaling', action='store_true', help='Scale brick hits and weights with the level')

    # Simulation tuning
    parser.add_argument('--width', type=float, help='Play-field width')
    parser.add_argument('--height', type=float, help='Play-field height')
    parser.add_argument('--balls', type=int, help='Initial ball count')
    parser.add_argument('--speed', type=float, help='Ball speed (distance per second)')
    parser.add_argument('--launch-delay', type=float, help='Delay between ball releases in milliseconds')
    parser.add_argument('--descent', type=float, help='Brick descent per turn')

    # Autopilot
    parser.add_argument('--fps', type=float, default=60.0, help='Simulated frame rate')
    parser.add_argument('--aim-deg', type=float, help='Fixed aim angle in degrees (default: sweep the arc)')
    parser.add_argument('--turns', type=int, default=50, help='Maximum number of turns to play')
    parser.add_argument('--max-frames-per-turn', type=int, default=20000, help='Recall balls after this many frames')
    parser.add_argument('--single-level', action='store_true', help='Stop after the first level instead of advancing')

    # Diagnostics
    parser.add_argument('--verbose', action='store_true', help='Print level and turn events')
    parser.add_argument('--log-data', action='store_true', help='Record simulation events as JSON lines')
    parser.add_argument('--log-path', type=str, help='Output file for --log-data')
    parser.add_argument('--dump-config', action='store_true', help='Print the resolved configuration before running')
    parser.add_argument('--dump-state', action='store_true', help='Print the final simulation snapshot as JSON')
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    cfg = build_config(args)

    if args.dump_config:
        print(json.dumps(asdict(cfg), indent=2, default=str))

    if args.fps <= 0:
        print(f"[error] --fps must be positive, got {args.fps}")
        return 1

    try:
        cfg.validate()
        source = build_level_source(cfg, args.levels)
    except (OSError, ValueError) as exc:
        print(f"[error] {exc}")
        return 1

    game = BallBlasterGame(cfg, source)
    try:
        played = run_autopilot(
            game,
            turns=args.turns,
            dt=1.0 / args.fps,
            aim_deg=args.aim_deg,
            max_frames_per_turn=max(1, args.max_frames_per_turn),
            advance_levels=not args.single_level,
        )
    finally:
        game.close()

    state = game.state
    print(
        f"[info] Played {played} turn(s): level={state.level} status={state.status.value} "
        f"score={state.score} balls={state.ball_count}"
        + (" (all levels complete)" if state.levels_exhausted else "")
    )
    if args.dump_state:
        print(json.dumps(game.snapshot(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
