# ABOUTME: Declares the contract every adaptive difficulty estimator implements.
# ABOUTME: Owns learner-scoped persistence so variants only define state transitions.

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Optional

from loguru import logger

from .documents import StateDecodeError
from .error_memory import ErrorMemory
from .schemas import (
    DEFAULT_DIFFICULTY,
    DEFAULT_REACTION_MS,
    PerformanceSample,
    Prediction,
    PredictionContext,
    round_difficulty,
)
from .storage import MemoryStore, StateStore


class DifficultyEstimator(ABC):
    """
    Recommends the next question's difficulty and focus from answered samples.

    Implementations hold all state in memory and mutate it synchronously;
    writes to the store are best-effort and serialized by ``_persist_lock``.
    None of the public operations raise into the calling game.
    """

    variant: str = ""

    def __init__(
        self,
        learner_id: str = "default",
        store: Optional[StateStore] = None,
        focus_threshold: float = 1.5,
    ) -> None:
        self.learner_id = learner_id
        self.store = store if store is not None else MemoryStore()
        self.focus_threshold = focus_threshold
        self.error_memory = ErrorMemory()
        self.average_reaction_ms = DEFAULT_REACTION_MS
        self.current_difficulty = float(DEFAULT_DIFFICULTY)
        self._persist_lock = threading.Lock()

    @property
    def storage_key(self) -> str:
        return f"{self.learner_id}:{self.variant}"

    @property
    def difficulty(self) -> int:
        """Current difficulty as exposed to games (rounded half-up)."""
        return round_difficulty(self.current_difficulty)

    @property
    def focus(self) -> str:
        return self.error_memory.focus(self.focus_threshold)

    @abstractmethod
    def record_performance(self, sample: PerformanceSample) -> None:
        """Fold one answered question into the state and persist it."""

    @abstractmethod
    def get_recommendation(self, context: Optional[PredictionContext] = None) -> Prediction:
        ...

    @abstractmethod
    def serialize(self) -> str:
        """Return the JSON document describing the current state."""

    @abstractmethod
    def load_state(self, payload: str) -> None:
        """Replace in-memory state from a document; raises StateDecodeError."""

    @abstractmethod
    def _reset_state(self) -> None:
        ...

    def reset(self) -> None:
        """Forget everything learned and delete the stored document."""

        self._reset_state()
        with self._persist_lock:
            try:
                self.store.delete(self.storage_key)
            except Exception:
                logger.opt(exception=True).warning(f"[{self.variant}] could not delete stored state for {self.storage_key}")

    def load_or_init(self) -> None:
        """Load stored state for this learner, or start fresh when absent or unreadable."""

        try:
            payload = self.store.get(self.storage_key)
        except Exception:
            logger.opt(exception=True).warning(f"[{self.variant}] could not read stored state for {self.storage_key}")
            payload = None

        if payload is None:
            self._reset_state()
            return

        try:
            self.load_state(payload)
        except StateDecodeError as exc:
            logger.warning(f"[{self.variant}] discarding stored state for {self.storage_key}: {exc}")
            self._reset_state()
        except Exception:
            logger.opt(exception=True).warning(
                f"[{self.variant}] stored state for {self.storage_key} could not be applied; starting fresh"
            )
            self._reset_state()
        else:
            logger.debug(f"[{self.variant}] restored state for {self.storage_key} at difficulty {self.current_difficulty:.2f}")

    def persist(self) -> bool:
        """Write the current state to the store. Returns False when the write failed."""

        with self._persist_lock:
            try:
                self.store.put(self.storage_key, self.serialize())
            except Exception:
                logger.opt(exception=True).warning(f"[{self.variant}] failed to persist state for {self.storage_key}")
                return False
        return True

    def _reset_common(self) -> None:
        self.error_memory = ErrorMemory()
        self.average_reaction_ms = DEFAULT_REACTION_MS
        self.current_difficulty = float(DEFAULT_DIFFICULTY)
