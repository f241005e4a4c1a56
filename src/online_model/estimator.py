# ABOUTME: Implements the online-model estimator backed by an incrementally trained regressor.
# ABOUTME: Nudges the model on every sample and degrades to fixed steps when torch fails.

from __future__ import annotations

import math
import threading
from typing import List, Literal, Optional

import torch
from loguru import logger
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from torch import nn

from src.common.documents import SCHEMA_VERSION, StateDecodeError, StateDocument, decode_document
from src.common.error_memory import ErrorMemory
from src.common.estimator import DifficultyEstimator
from src.common.schemas import (
    FAST_REACTION_MS,
    MAX_DIFFICULTY,
    MIN_DIFFICULTY,
    PerformanceSample,
    Prediction,
    PredictionContext,
    clamp_difficulty,
    round_difficulty,
)
from src.common.storage import StateStore

from .features import context_features, sample_features, training_delta
from .model import RegressorConfig, build_regressor, flatten_weights, restore_weights

DEFAULT_FOCUS_THRESHOLD = 1.2
FALLBACK_STEP = 1.0
REACTION_SMOOTHING = 0.7


class ArchitectureSpec(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    input_dim: int
    hidden_units: int
    activation: str
    output_dim: int
    learning_rate: float
    epochs: int
    seed: int


class WeightArray(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    name: str
    shape: List[int]
    values: List[float]


class OnlineModelDocument(StateDocument):
    variant: str = "online-model"
    architecture: ArchitectureSpec
    weights: List[WeightArray]
    last_correct: Literal[0, 1] = 1


def fallback_difficulty(current: float, sample: PerformanceSample) -> float:
    """Fixed-step rule used when the regressor cannot train or predict."""
    if not sample.is_correct:
        return max(float(MIN_DIFFICULTY), current - FALLBACK_STEP)
    if sample.is_fast:
        return min(float(MAX_DIFFICULTY), current + FALLBACK_STEP)
    return current


def directed_nudge(nudge: float, is_correct: int, reaction_ms: float) -> float:
    """Wrong answers never raise difficulty and fast correct answers never lower it."""
    if not is_correct:
        return min(nudge, 0.0)
    if reaction_ms < FAST_REACTION_MS:
        return max(nudge, 0.0)
    return nudge


class OnlineModelEstimator(DifficultyEstimator):
    """
    Estimator that retrains a tiny MLP on each answered question.

    The regressor predicts a nudge that is added to the current difficulty.
    Each sample runs ``config.epochs`` Adam steps (batch size 1) towards a
    nudge of +0.4 for fast correct answers and -0.6 for wrong answers,
    bounded so the posed difficulty plus the nudge stays in [1, 5]. The
    outcome fixes the sign of the applied nudge; the model sets its size.
    The torch module is built once per instance from ``config``; training
    and inference share ``_model_lock``.
    """

    variant = "online-model"

    def __init__(
        self,
        learner_id: str = "default",
        store: Optional[StateStore] = None,
        config: RegressorConfig = RegressorConfig(),
        focus_threshold: float = DEFAULT_FOCUS_THRESHOLD,
    ) -> None:
        super().__init__(learner_id=learner_id, store=store, focus_threshold=focus_threshold)
        self.config = config
        self.criterion = nn.MSELoss()
        self._model_lock = threading.Lock()
        self.last_correct = 1
        self._build_model(config)

    def _build_model(self, config: RegressorConfig) -> None:
        self.config = config
        self.model = build_regressor(config)
        self.model.eval()
        self.optimizer = torch.optim.Adam(self.model.parameters(), lr=config.learning_rate)

    def fit_sample(self, sample: PerformanceSample) -> float:
        """Run the per-sample training nudge and return the final loss."""

        x = torch.tensor([sample_features(sample)], dtype=torch.float32)
        y = torch.tensor([[training_delta(sample)]], dtype=torch.float32)
        loss_value = float("nan")
        with self._model_lock:
            self.model.train()
            try:
                for _ in range(self.config.epochs):
                    self.optimizer.zero_grad()
                    loss = self.criterion(self.model(x), y)
                    loss.backward()
                    self.optimizer.step()
                    loss_value = float(loss.item())
            finally:
                self.model.eval()
        return loss_value

    def predict_nudge(self, context: PredictionContext) -> float:
        """Signed difficulty change for ``context`` at the current difficulty, before the outcome guard."""

        x = torch.tensor([context_features(context, self.current_difficulty)], dtype=torch.float32)
        with self._model_lock, torch.no_grad():
            value = float(self.model(x).item())
        if not math.isfinite(value):
            raise ValueError("regressor produced a non-finite nudge")
        return value

    def predict_difficulty(self, context: PredictionContext) -> float:
        """Current difficulty moved by the guarded nudge for ``context``, clamped to [1, 5]."""

        nudge = directed_nudge(self.predict_nudge(context), context.recent_correct, context.reaction_ms)
        return clamp_difficulty(self.current_difficulty + nudge)

    def record_performance(self, sample: PerformanceSample) -> None:
        sample = sample.sanitized()

        self.error_memory.record(sample.category, sample.is_correct)
        self.average_reaction_ms = (
            self.average_reaction_ms * REACTION_SMOOTHING + sample.reaction_ms * (1 - REACTION_SMOOTHING)
        )
        self.last_correct = sample.is_correct

        try:
            self.fit_sample(sample)
            self.current_difficulty = self.predict_difficulty(PredictionContext(sample.is_correct, sample.reaction_ms))
        except Exception:
            logger.opt(exception=True).warning(
                f"[online-model] training failed for {self.storage_key}; using fixed-step fallback"
            )
            self.current_difficulty = fallback_difficulty(self.current_difficulty, sample)
            self._rebuild_if_corrupt()

        self.persist()

    def get_recommendation(self, context: Optional[PredictionContext] = None) -> Prediction:
        if context is None:
            context = PredictionContext(self.last_correct, self.average_reaction_ms)
        context = context.sanitized()
        try:
            difficulty = round_difficulty(self.predict_difficulty(context))
        except Exception:
            logger.opt(exception=True).warning(
                f"[online-model] inference failed for {self.storage_key}; keeping difficulty {self.difficulty}"
            )
            difficulty = self.difficulty
        return Prediction(difficulty=difficulty, focus=self.focus)

    def serialize(self) -> str:
        with self._model_lock:
            weights = flatten_weights(self.model)
        document = OnlineModelDocument(
            schema_version=SCHEMA_VERSION,
            architecture=ArchitectureSpec(**self.config.to_dict()),
            weights=[WeightArray(**entry) for entry in weights],
            last_correct=self.last_correct,
            category_errors=[tuple(pair) for pair in self.error_memory.to_pairs()],
            average_reaction_time=self.average_reaction_ms,
            current_difficulty=self.current_difficulty,
        )
        return document.to_json()

    def load_state(self, payload: str) -> None:
        document = decode_document(OnlineModelDocument, payload, self.variant)
        try:
            config = RegressorConfig(**document.architecture.model_dump())
            model = build_regressor(config)
            restore_weights(model, [entry.model_dump() for entry in document.weights])
            optimizer = torch.optim.Adam(model.parameters(), lr=config.learning_rate)
        except (TypeError, ValueError, RuntimeError) as exc:
            raise StateDecodeError(f"online-model weights could not be restored: {exc}") from exc

        with self._model_lock:
            self.config = config
            self.model = model
            self.model.eval()
            self.optimizer = optimizer
        self.error_memory = ErrorMemory.from_pairs(document.category_errors)
        self.average_reaction_ms = max(0.0, document.average_reaction_time)
        self.current_difficulty = clamp_difficulty(document.current_difficulty)
        self.last_correct = document.last_correct

    def _reset_state(self) -> None:
        self._reset_common()
        self.last_correct = 1
        with self._model_lock:
            self._build_model(self.config)

    def _rebuild_if_corrupt(self) -> None:
        with self._model_lock:
            healthy = all(torch.isfinite(p).all() for p in self.model.parameters())
            if not healthy:
                logger.warning(f"[online-model] regressor weights diverged for {self.storage_key}; reinitializing")
                self._build_model(self.config)
