"""
Points -> level mapping.

Levels come from a single ordered threshold table. Each entry is the
exclusive upper bound of a tier and its name; points at or above the last
bound fall into the top tier.
"""
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from hub.config import LEVEL_THRESHOLDS, TOP_LEVEL_NAME


@dataclass(frozen=True)
class Level:
    number: int
    name: str
    lower: int
    upper: Optional[int]
    progress_percent: float

    @property
    def is_top(self) -> bool:
        return self.upper is None


class LevelPolicy:
    """Ordered threshold table mapping total points to a tier."""

    def __init__(self, thresholds: Sequence[Tuple[int, str]], top_name: str):
        bounds = [bound for bound, _ in thresholds]
        if bounds != sorted(bounds) or len(set(bounds)) != len(bounds):
            raise ValueError("Level thresholds must be strictly ascending")
        self.thresholds: List[Tuple[int, str]] = list(thresholds)
        self.top_name = top_name

    def level_for(self, points: int) -> Level:
        lower = 0
        for number, (upper, name) in enumerate(self.thresholds, start=1):
            if points < upper:
                ratio = (points - lower) / (upper - lower) * 100
                return Level(number, name, lower, upper, max(0.0, min(100.0, ratio)))
            lower = upper
        return Level(len(self.thresholds) + 1, self.top_name, lower, None, 100.0)


DEFAULT_LEVEL_POLICY = LevelPolicy(LEVEL_THRESHOLDS, TOP_LEVEL_NAME)
