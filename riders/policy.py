"""
Purpose: Central configuration for rider ratings.
What it does:

Stores the accepted score range for rider ratings:

RATING_MIN_SCORE = 1
RATING_MAX_SCORE = 5

default_rating_policy() reads overrides from the environment (.env is loaded
on import); a value that is not a number fails there, not at import.

Rule: Only parameters and range checks live here; the directory applies them.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _env_score(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


@dataclass(frozen=True)
class RatingPolicy:
    """
    Inclusive bounds for a rating score. Scores outside are rejected, not clamped.
    """
    min_score: float = 1
    max_score: float = 5

    def validate(self) -> None:
        """
        Basic sanity checks.
        """
        if not all(math.isfinite(v) for v in (self.min_score, self.max_score)):
            raise ValueError("score bounds must be finite numbers")
        if self.min_score > self.max_score:
            raise ValueError("min_score must be <= max_score")

    def accepts(self, score: float) -> bool:
        return self.min_score <= score <= self.max_score


def default_rating_policy() -> RatingPolicy:
    """
    Convenience factory for the default policy.
    """
    p = RatingPolicy(
        min_score=_env_score("RATING_MIN_SCORE", 1),
        max_score=_env_score("RATING_MAX_SCORE", 5),
    )
    p.validate()
    return p
