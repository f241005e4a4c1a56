# ABOUTME: Groups the torch-backed online-model difficulty estimator.
# ABOUTME: Re-exports the estimator, regressor, and feature builders.

from .estimator import OnlineModelEstimator, directed_nudge, fallback_difficulty
from .features import context_features, sample_features, training_delta, training_target
from .model import DifficultyRegressor, RegressorConfig, build_regressor

__all__ = [
    "OnlineModelEstimator",
    "directed_nudge",
    "fallback_difficulty",
    "context_features",
    "sample_features",
    "training_delta",
    "training_target",
    "DifficultyRegressor",
    "RegressorConfig",
    "build_regressor",
]
