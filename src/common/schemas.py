# ABOUTME: Defines the data units exchanged between games and difficulty estimators.
# ABOUTME: Centralizes performance samples, prediction contexts, and difficulty bounds.

from __future__ import annotations

import math
from dataclasses import dataclass, replace

MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 5
DEFAULT_DIFFICULTY = 3
DEFAULT_REACTION_MS = 2000.0
REACTION_CAP_MS = 3000.0
FAST_REACTION_MS = 1200.0
GENERAL_FOCUS = "general"


def clamp_difficulty(value: float) -> float:
    """Clamp a difficulty scalar into [1, 5]."""
    return min(float(MAX_DIFFICULTY), max(float(MIN_DIFFICULTY), float(value)))


def round_difficulty(value: float) -> int:
    """
    Round a difficulty scalar half-up to the integer exposed to games.

    Internal scalars keep full precision; rounding happens only here.
    """
    if not math.isfinite(value):
        return DEFAULT_DIFFICULTY
    return int(math.floor(clamp_difficulty(value) + 0.5))


def _finite_reaction(reaction_ms: float) -> float:
    try:
        reaction = float(reaction_ms)
    except (TypeError, ValueError):
        return REACTION_CAP_MS
    if not math.isfinite(reaction):
        return REACTION_CAP_MS
    return max(0.0, reaction)


def _binary_outcome(value: object) -> int:
    """Coerce a correctness flag to 0 or 1; numeric strings are read as numbers."""
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ("true", "yes"):
            return 1
        try:
            value = float(text)
        except ValueError:
            return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 1 if value else 0
    if math.isnan(number):
        return 0
    return 1 if number != 0 else 0


@dataclass(frozen=True)
class PerformanceSample:
    """One answered question as reported by a game."""

    category: str
    difficulty: float
    is_correct: int  # 0 or 1
    reaction_ms: float

    @property
    def is_fast(self) -> bool:
        return self.reaction_ms < FAST_REACTION_MS

    def sanitized(self) -> "PerformanceSample":
        """Return a copy that satisfies the sample invariants."""

        category = self.category.strip() if isinstance(self.category, str) else ""
        try:
            difficulty = float(self.difficulty)
        except (TypeError, ValueError):
            difficulty = float(DEFAULT_DIFFICULTY)
        if not math.isfinite(difficulty):
            difficulty = float(DEFAULT_DIFFICULTY)
        return replace(
            self,
            category=category or GENERAL_FOCUS,
            difficulty=clamp_difficulty(difficulty),
            is_correct=_binary_outcome(self.is_correct),
            reaction_ms=_finite_reaction(self.reaction_ms),
        )


@dataclass(frozen=True)
class PredictionContext:
    """Next-step query features used by the online-model estimator."""

    recent_correct: int
    reaction_ms: float

    def sanitized(self) -> "PredictionContext":
        return PredictionContext(
            recent_correct=_binary_outcome(self.recent_correct),
            reaction_ms=_finite_reaction(self.reaction_ms),
        )


@dataclass(frozen=True)
class Prediction:
    """Recommended difficulty and focus area for the next question."""

    difficulty: int
    focus: str = GENERAL_FOCUS

    @property
    def label(self) -> str:
        from .categories import difficulty_to_label

        return difficulty_to_label(self.difficulty)


DEFAULT_PREDICTION = Prediction(difficulty=DEFAULT_DIFFICULTY, focus=GENERAL_FOCUS)
