from enum import Enum


class Difficulty(str, Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


class SolutionTier(str, Enum):
    """Solution approach, ordered from first attempt to best known."""

    BRUTE = "brute"
    OPTIMIZED = "optimized"
    BEST = "best"

    @property
    def rank(self) -> int:
        return _TIER_RANK[self]


_TIER_RANK = {
    SolutionTier.BRUTE: 1,
    SolutionTier.OPTIMIZED: 2,
    SolutionTier.BEST: 3,
}


class Rating(str, Enum):
    """Self-assessed recall rating submitted after revealing a card."""

    AGAIN = "again"
    HARD = "hard"
    GOOD = "good"
    EASY = "easy"
