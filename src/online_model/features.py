# ABOUTME: Builds feature vectors and training targets for the online regressor.
# ABOUTME: Normalizes reaction time against a 3000ms cap and difficulty against 5.

from typing import List

from src.common.schemas import (
    FAST_REACTION_MS,
    MAX_DIFFICULTY,
    MIN_DIFFICULTY,
    REACTION_CAP_MS,
    PerformanceSample,
    PredictionContext,
)

TARGET_STEP_UP = 0.4
TARGET_STEP_DOWN = 0.6


def _normalized_reaction(reaction_ms: float) -> float:
    return min(reaction_ms, REACTION_CAP_MS) / REACTION_CAP_MS


def sample_features(sample: PerformanceSample) -> List[float]:
    return [
        float(sample.is_correct),
        _normalized_reaction(sample.reaction_ms),
        sample.difficulty / MAX_DIFFICULTY,
    ]


def context_features(context: PredictionContext, current_difficulty: float) -> List[float]:
    return [
        float(context.recent_correct),
        _normalized_reaction(context.reaction_ms),
        current_difficulty / MAX_DIFFICULTY,
    ]


def training_target(sample: PerformanceSample) -> float:
    """Wrong answers pull the target down 0.6; fast correct answers push it up 0.4."""
    if sample.is_correct:
        if sample.reaction_ms < FAST_REACTION_MS:
            return min(sample.difficulty + TARGET_STEP_UP, float(MAX_DIFFICULTY))
        return float(sample.difficulty)
    return max(sample.difficulty - TARGET_STEP_DOWN, float(MIN_DIFFICULTY))


def training_delta(sample: PerformanceSample) -> float:
    """Target expressed as a nudge relative to the posed difficulty."""
    return training_target(sample) - float(sample.difficulty)
