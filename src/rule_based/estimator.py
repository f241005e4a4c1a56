# ABOUTME: Implements the rule-based estimator over a rolling window of outcomes.
# ABOUTME: Applies deterministic threshold rules to nudge a full-precision difficulty scalar.

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Deque, Optional

from loguru import logger

from src.common.documents import SCHEMA_VERSION, RuleBasedDocument, decode_document
from src.common.error_memory import ErrorMemory
from src.common.estimator import DifficultyEstimator
from src.common.schemas import (
    FAST_REACTION_MS,
    MAX_DIFFICULTY,
    MIN_DIFFICULTY,
    REACTION_CAP_MS,
    PerformanceSample,
    Prediction,
    PredictionContext,
    clamp_difficulty,
    round_difficulty,
)
from src.common.storage import StateStore


@dataclass(frozen=True)
class RuleBasedConfig:
    """Tunable constants of the rule-based policy."""

    window: int = 10
    focus_threshold: float = 1.5
    reaction_smoothing: float = 0.7  # weight of the previous average
    step_up_fast: float = 0.5
    step_down: float = 0.7
    step_up_accurate: float = 0.3
    fast_rate: float = 0.7
    accurate_rate: float = 0.8


def adjust_difficulty(
    current: float,
    is_correct: int,
    reaction_ms: float,
    correct_rate: float,
    config: RuleBasedConfig = RuleBasedConfig(),
) -> float:
    """
    Apply the first matching rule to the difficulty scalar.

    1. correct, fast and rate > 0.7: step up 0.5
    2. incorrect or slower than 3000ms: step down 0.7
    3. rate > 0.8: step up 0.3
    4. otherwise unchanged
    """
    is_fast = reaction_ms < FAST_REACTION_MS
    if is_correct and is_fast and correct_rate > config.fast_rate:
        return min(float(MAX_DIFFICULTY), current + config.step_up_fast)
    if not is_correct or reaction_ms > REACTION_CAP_MS:
        return max(float(MIN_DIFFICULTY), current - config.step_down)
    if correct_rate > config.accurate_rate:
        return min(float(MAX_DIFFICULTY), current + config.step_up_accurate)
    return current


class RuleBasedEstimator(DifficultyEstimator):
    """Rolling-window estimator; needs no numeric backend."""

    variant = "rule-based"

    def __init__(
        self,
        learner_id: str = "default",
        store: Optional[StateStore] = None,
        config: RuleBasedConfig = RuleBasedConfig(),
    ) -> None:
        super().__init__(learner_id=learner_id, store=store, focus_threshold=config.focus_threshold)
        self.config = config
        self.recent_correct: Deque[int] = deque(maxlen=config.window)

    @property
    def correct_rate(self) -> float:
        if not self.recent_correct:
            return 0.0
        return sum(self.recent_correct) / len(self.recent_correct)

    def record_performance(self, sample: PerformanceSample) -> None:
        sample = sample.sanitized()
        smoothing = self.config.reaction_smoothing

        self.recent_correct.append(sample.is_correct)
        self.error_memory.record(sample.category, sample.is_correct)
        self.average_reaction_ms = self.average_reaction_ms * smoothing + sample.reaction_ms * (1 - smoothing)
        self.current_difficulty = adjust_difficulty(
            self.current_difficulty,
            sample.is_correct,
            sample.reaction_ms,
            self.correct_rate,
            self.config,
        )
        logger.debug(
            f"[rule-based] {sample.category} correct={sample.is_correct} "
            f"rate={self.correct_rate:.2f} difficulty={self.current_difficulty:.2f}"
        )
        self.persist()

    def get_recommendation(self, context: Optional[PredictionContext] = None) -> Prediction:
        return Prediction(difficulty=round_difficulty(self.current_difficulty), focus=self.focus)

    def serialize(self) -> str:
        document = RuleBasedDocument(
            schema_version=SCHEMA_VERSION,
            recent_correct=list(self.recent_correct),
            category_errors=[tuple(pair) for pair in self.error_memory.to_pairs()],
            average_reaction_time=self.average_reaction_ms,
            current_difficulty=self.current_difficulty,
        )
        return document.to_json()

    def load_state(self, payload: str) -> None:
        document = decode_document(RuleBasedDocument, payload, self.variant)
        self.recent_correct = deque(document.recent_correct, maxlen=self.config.window)
        self.error_memory = ErrorMemory.from_pairs(document.category_errors)
        self.average_reaction_ms = max(0.0, document.average_reaction_time)
        self.current_difficulty = clamp_difficulty(document.current_difficulty)

    def _reset_state(self) -> None:
        self._reset_common()
        self.recent_correct = deque(maxlen=self.config.window)
