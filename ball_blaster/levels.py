from __future__ import annotations
import json
from pathlib import Path
from typing import Any, List, Mapping, Optional, Protocol, Sequence, Tuple, TypeVar

import numpy as np

from .config import BrickType, GameConfig, ProceduralRules
from .models import BrickDescriptor, BrickLayout

T = TypeVar("T")


class LevelSource(Protocol):
    def generate(self, level: int) -> Optional[BrickLayout]:
        """Return the layout for ``level`` (1-based) or None when no such level exists."""
        ...


def weighted_choice(table: Sequence[Tuple[float, T]], r: float) -> T:
    """
    Pick a value from ``(weight, value)`` pairs using a single draw ``r`` in [0, 1).

    The cumulative weights are walked in table order and the first entry whose
    cumulative sum exceeds ``r`` wins. Float accumulation can leave the total a
    hair below 1.0, so a draw that no entry matches selects the last entry
    instead of nothing.
    """
    if not table:
        raise ValueError("weighted_choice needs at least one entry")
    cdf = np.cumsum(np.asarray([w for w, _ in table], dtype=np.float64))
    idx = int(np.searchsorted(cdf, float(r), side='right'))
    if idx >= len(table):
        idx = len(table) - 1
    return table[idx][1]


class ProceduralLevelSource:
    """
    Rule-based layouts: ``base_rows + level // 2`` rows, random gaps whose
    probability shrinks with the level, and brick types drawn from a weighted
    table. Each call seeds its own generator from ``(seed, level)`` so a layout
    can be regenerated exactly.
    """

    def __init__(self, brick_types: Sequence[BrickType], rules: Optional[ProceduralRules] = None, seed: int = 0):
        if not brick_types:
            raise ValueError("Procedural generation needs a non-empty brick-type table")
        self.brick_types = list(brick_types)
        self.rules = rules if rules is not None else ProceduralRules()
        self.seed = int(seed)

    @classmethod
    def from_config(cls, cfg: GameConfig) -> "ProceduralLevelSource":
        return cls(cfg.brick_types, cfg.procedural, seed=cfg.seed)

    def _rng(self, level: int) -> np.random.Generator:
        return np.random.default_rng([self.seed & 0xFFFFFFFF, max(0, int(level))])

    def type_table(self, level: int) -> List[Tuple[float, BrickDescriptor]]:
        rules = self.rules
        bonus = 0
        if rules.difficulty_scaling and rules.difficulty_step > 0:
            bonus = max(0, int(level)) // rules.difficulty_step

        weights = np.asarray([bt.probability for bt in self.brick_types], dtype=np.float64)
        if bonus > 0:
            base_hits = np.asarray([bt.hits for bt in self.brick_types], dtype=np.float64)
            weights = weights * (1.0 + bonus * (base_hits - 1.0) * rules.reweight)
            total = float(weights.sum())
            if total > 0.0:
                weights = weights / total

        table = []
        for w, bt in zip(weights, self.brick_types):
            hits = min(rules.max_hits, bt.hits + bonus)
            desc = BrickDescriptor(hits=int(hits), points=bt.points, color=bt.color, shape=bt.shape, bonus=bt.bonus)
            table.append((float(w), desc))
        return table

    def generate(self, level: int) -> BrickLayout:
        rng = self._rng(level)
        rules = self.rules
        table = self.type_table(level)
        gap_p = rules.gap_probability(level)

        rows: List[List[Optional[BrickDescriptor]]] = []
        for _ in range(rules.rows_for(level)):
            row: List[Optional[BrickDescriptor]] = []
            for _ in range(rules.columns):
                if rng.random() < gap_p:
                    row.append(None)
                else:
                    row.append(weighted_choice(table, rng.random()))
            rows.append(row)
        return BrickLayout(rows=rows)


def _descriptor_from_dict(cell: Any, where: str) -> Optional[BrickDescriptor]:
    if cell is None:
        return None
    if not isinstance(cell, Mapping):
        raise ValueError(f"{where}: expected an object or null, got {type(cell).__name__}")
    try:
        hits = int(cell["hits"])
        points = int(cell.get("points", hits))
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError(f"{where}: invalid brick descriptor {cell!r}") from exc
    if hits < 1:
        raise ValueError(f"{where}: hits must be >= 1, got {hits}")
    return BrickDescriptor(
        hits=hits,
        points=points,
        color=str(cell.get("color", "#4CAF50")),
        shape=str(cell.get("shape", "rect")),
        bonus=bool(cell.get("bonus", False)),
    )


def _descriptor_as_dict(desc: Optional[BrickDescriptor]) -> Optional[dict]:
    if desc is None:
        return None
    return {
        "hits": desc.hits,
        "points": desc.points,
        "color": desc.color,
        "shape": desc.shape,
        "bonus": desc.bonus,
    }


class DataLevelSource:
    """
    Explicit, hand-authored layouts. Level ``n`` is ``layouts[n - 1]``; any index
    past the end yields None, which the game treats as "no more levels".
    """

    def __init__(self, layouts: Sequence[BrickLayout]):
        self.layouts = list(layouts)

    def __len__(self) -> int:
        return len(self.layouts)

    def generate(self, level: int) -> Optional[BrickLayout]:
        if 1 <= level <= len(self.layouts):
            return self.layouts[level - 1]
        return None

    def as_dict(self) -> dict:
        return {
            "levels": [
                {"rows": [[_descriptor_as_dict(c) for c in row] for row in layout.rows]}
                for layout in self.layouts
            ]
        }

    def save(self, path: Path | str) -> None:
        path_obj = Path(path)
        path_obj.parent.mkdir(parents=True, exist_ok=True)
        path_obj.write_text(json.dumps(self.as_dict(), indent=2), encoding="utf-8")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DataLevelSource":
        levels = data.get("levels") if isinstance(data, Mapping) else None
        if not isinstance(levels, list):
            raise ValueError("Level data must contain a 'levels' list")
        layouts: List[BrickLayout] = []
        for li, level in enumerate(levels, start=1):
            # a level is either {"rows": [...]} or the bare list of rows
            rows = level.get("rows") if isinstance(level, Mapping) else level
            if not isinstance(rows, list):
                raise ValueError(f"level {li}: expected a list of rows")
            parsed: List[List[Optional[BrickDescriptor]]] = []
            for ri, row in enumerate(rows):
                if not isinstance(row, list):
                    raise ValueError(f"level {li} row {ri}: expected a list")
                parsed.append([_descriptor_from_dict(c, f"level {li} row {ri} col {ci}") for ci, c in enumerate(row)])
            layouts.append(BrickLayout(rows=parsed))
        return cls(layouts)

    @classmethod
    def load(cls, path: Path | str) -> "DataLevelSource":
        path_obj = Path(path)
        try:
            payload = json.loads(path_obj.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ValueError(f"{path_obj}: not valid JSON ({exc})") from exc
        return cls.from_dict(payload)
