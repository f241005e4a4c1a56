# ABOUTME: Wraps one estimator for a learner session the way games consume it.
# ABOUTME: Builds the configured variant and guarantees no exception reaches gameplay.

from __future__ import annotations

from typing import Optional

from loguru import logger

from src.online_model.estimator import OnlineModelEstimator
from src.rule_based.estimator import RuleBasedEstimator

from .categories import classify_game_category, difficulty_to_label
from .config import AdaptiveConfig
from .estimator import DifficultyEstimator
from .schemas import DEFAULT_PREDICTION, PerformanceSample, Prediction, PredictionContext
from .storage import JsonFileStore, StateStore


def build_estimator(
    config: AdaptiveConfig,
    learner_id: str = "default",
    store: Optional[StateStore] = None,
) -> DifficultyEstimator:
    """Instantiate the configured estimator variant for ``learner_id``."""

    store = store if store is not None else JsonFileStore(config.state_dir)
    if config.estimator == "online-model":
        return OnlineModelEstimator(
            learner_id=learner_id,
            store=store,
            config=config.online_model,
            focus_threshold=config.online_focus_threshold,
        )
    return RuleBasedEstimator(learner_id=learner_id, store=store, config=config.rule_based)


class AdaptiveSession:
    """
    Per-learner facade used by game components.

    Games call ``record_game_result`` (or ``record_performance``) after each
    scored question and ``next_recommendation`` before presenting the next
    one. The last good prediction is kept so failures never change what
    the learner sees.
    """

    def __init__(self, estimator: DifficultyEstimator) -> None:
        self.estimator = estimator
        self.is_initialized = False
        self._last = DEFAULT_PREDICTION

    def open(self) -> "AdaptiveSession":
        self.estimator.load_or_init()
        self.is_initialized = True
        self._last = Prediction(difficulty=self.estimator.difficulty, focus=self.estimator.focus)
        return self

    @property
    def current_difficulty(self) -> int:
        return self._last.difficulty

    @property
    def focus_area(self) -> str:
        return self._last.focus

    @property
    def difficulty_label(self) -> str:
        return difficulty_to_label(self._last.difficulty)

    def record_performance(self, sample: PerformanceSample) -> Prediction:
        try:
            self.estimator.record_performance(sample)
        except Exception:
            logger.opt(exception=True).warning(f"[session] failed to record sample for {self.estimator.storage_key}")
            return self._last
        if isinstance(self.estimator, OnlineModelEstimator):
            context = PredictionContext(sample.is_correct, sample.reaction_ms)
        else:
            context = None
        self._last = self._safe_recommendation(context)
        return self._last

    def record_game_result(
        self,
        game_type: str,
        difficulty: float,
        is_correct: bool,
        reaction_ms: float,
    ) -> Prediction:
        sample = PerformanceSample(
            category=classify_game_category(game_type),
            difficulty=difficulty,
            is_correct=int(bool(is_correct)),
            reaction_ms=reaction_ms,
        )
        return self.record_performance(sample)

    def next_recommendation(self, context: Optional[PredictionContext] = None) -> Prediction:
        self._last = self._safe_recommendation(context)
        return self._last

    def reset(self) -> None:
        try:
            self.estimator.reset()
        except Exception:
            logger.opt(exception=True).warning(f"[session] reset failed for {self.estimator.storage_key}")
        self._last = DEFAULT_PREDICTION

    def _safe_recommendation(self, context: Optional[PredictionContext]) -> Prediction:
        try:
            return self.estimator.get_recommendation(context)
        except Exception:
            logger.opt(exception=True).warning(
                f"[session] recommendation failed for {self.estimator.storage_key}; keeping last prediction"
            )
            return self._last


def open_session(
    config: AdaptiveConfig,
    learner_id: str = "default",
    store: Optional[StateStore] = None,
) -> AdaptiveSession:
    return AdaptiveSession(build_estimator(config, learner_id=learner_id, store=store)).open()
