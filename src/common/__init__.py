# ABOUTME: Makes the shared adaptive-engine package importable across estimators.
# ABOUTME: Re-exports sample schemas, category helpers, and the estimator contract.

from .categories import classify_game_category, difficulty_to_label
from .error_memory import ErrorMemory
from .estimator import DifficultyEstimator
from .schemas import PerformanceSample, Prediction, PredictionContext

__all__ = [
    "DifficultyEstimator",
    "ErrorMemory",
    "PerformanceSample",
    "Prediction",
    "PredictionContext",
    "classify_game_category",
    "difficulty_to_label",
]
