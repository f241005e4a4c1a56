# ABOUTME: Tracks a running per-category error score for remedial focus selection.
# ABOUTME: Shared by both estimators; serializes to an ordered list of pairs.

from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Sequence, Tuple

from .schemas import GENERAL_FOCUS

INCORRECT_PENALTY = 1.0
CORRECT_CREDIT = 0.5


class ErrorMemory:
    """
    Insertion-ordered mapping of category -> error score.

    Incorrect answers add 1.0, correct answers subtract 0.5. Entries are
    created on first observation and are unbounded below zero.
    """

    def __init__(self, scores: Iterable[Tuple[str, float]] = ()) -> None:
        self._scores: Dict[str, float] = {}
        for category, score in scores:
            self._scores[str(category)] = float(score)

    def record(self, category: str, is_correct: int) -> float:
        current = self._scores.get(category, 0.0)
        updated = current - CORRECT_CREDIT if is_correct else current + INCORRECT_PENALTY
        self._scores[category] = updated
        return updated

    def score(self, category: str) -> float:
        return self._scores.get(category, 0.0)

    def items(self) -> List[Tuple[str, float]]:
        return list(self._scores.items())

    def focus(self, threshold: float) -> str:
        """
        Return the worst category whose score strictly exceeds ``threshold``.

        Ties keep the first-seen category; no qualifying entry gives 'general'.
        """
        focus = GENERAL_FOCUS
        worst = threshold
        for category, score in self._scores.items():
            if score > worst:
                worst = score
                focus = category
        return focus

    def copy(self) -> "ErrorMemory":
        return ErrorMemory(self._scores.items())

    def to_pairs(self) -> List[List]:
        return [[category, score] for category, score in self._scores.items()]

    @classmethod
    def from_pairs(cls, pairs: Sequence[Sequence]) -> "ErrorMemory":
        return cls((pair[0], pair[1]) for pair in pairs)

    def __contains__(self, category: object) -> bool:
        return category in self._scores

    def __iter__(self) -> Iterator[str]:
        return iter(self._scores)

    def __len__(self) -> int:
        return len(self._scores)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ErrorMemory):
            return NotImplemented
        return self.items() == other.items()

    def __repr__(self) -> str:
        return f"ErrorMemory({self._scores!r})"
