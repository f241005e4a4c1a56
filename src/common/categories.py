# ABOUTME: Maps game-type identifiers to skill categories and difficulties to labels.
# ABOUTME: Pure lookup helpers games use to translate recommendations into content choices.

from __future__ import annotations

from typing import Dict

from .schemas import GENERAL_FOCUS

GAME_CATEGORIES: Dict[str, str] = {
    "baseline": "phonics",
    "rhyme": "rhyming",
    "phonics-pop": "phonics",
    "word-catch": "word-recognition",
    "letter-jump": "letter-recognition",
    "phonics-runner": "phonics",
}

KNOWN_CATEGORIES = tuple(dict.fromkeys(GAME_CATEGORIES.values())) + (GENERAL_FOCUS,)


def classify_game_category(game_type_id: object) -> str:
    """Return the skill category for a game type; unknown games map to 'general'."""
    if not isinstance(game_type_id, str):
        return GENERAL_FOCUS
    return GAME_CATEGORIES.get(game_type_id, GENERAL_FOCUS)


def difficulty_to_label(difficulty: float) -> str:
    if difficulty <= 2:
        return "easy"
    if difficulty <= 3:
        return "medium"
    return "hard"
