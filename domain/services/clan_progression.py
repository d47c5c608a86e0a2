"""
Clan level progression.
"""

from dataclasses import dataclass

DEFAULT_LEVEL_THRESHOLDS = [0, 500, 2000, 5000, 15000]
LEVEL_NAMES = ["Rookie", "Rising", "Veteran", "Elite", "Legendary"]


@dataclass(frozen=True)
class ClanLevel:
    level: int
    name: str
    min_xp: int
    next_level_xp: int | None  # None at max level


class ClanProgression:
    """Maps accumulated clan XP to a level."""

    def __init__(self, thresholds: list[int] | None = None):
        thresholds = sorted(thresholds or DEFAULT_LEVEL_THRESHOLDS)
        if not thresholds or thresholds[0] != 0:
            raise ValueError("Level thresholds must start at 0")
        self.thresholds = thresholds

    def level_for_xp(self, xp: int) -> int:
        level = 1
        for i, threshold in enumerate(self.thresholds):
            if xp >= threshold:
                level = i + 1
        return level

    def describe(self, xp: int) -> ClanLevel:
        level = self.level_for_xp(xp)
        name = LEVEL_NAMES[level - 1] if level <= len(LEVEL_NAMES) else f"Level {level}"
        next_xp = self.thresholds[level] if level < len(self.thresholds) else None
        return ClanLevel(
            level=level,
            name=name,
            min_xp=self.thresholds[level - 1],
            next_level_xp=next_xp,
        )
