# ABOUTME: Groups the rule-based adaptive difficulty estimator.
# ABOUTME: Re-exports the estimator, its policy function, and tuning config.

from .estimator import RuleBasedConfig, RuleBasedEstimator, adjust_difficulty

__all__ = [
    "RuleBasedConfig",
    "RuleBasedEstimator",
    "adjust_difficulty",
]
