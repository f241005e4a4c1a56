# ABOUTME: Tests per-category error accumulation and focus selection.
# ABOUTME: Covers lazy creation, threshold strictness, tie-breaks, and pair serialization.

from src.common.error_memory import ErrorMemory
from src.common.schemas import PerformanceSample, PredictionContext, clamp_difficulty, round_difficulty


def test_accumulates_incorrect_and_correct():
    memory = ErrorMemory()
    memory.record("phonics", 0)
    memory.record("phonics", 0)
    memory.record("phonics", 1)
    assert memory.score("phonics") == 1.5


def test_entries_created_lazily():
    memory = ErrorMemory()
    assert "rhyming" not in memory
    assert len(memory) == 0
    memory.record("rhyming", 1)
    assert "rhyming" in memory
    assert memory.score("rhyming") == -0.5


def test_scores_unbounded_below_zero():
    memory = ErrorMemory()
    for _ in range(10):
        memory.record("phonics", 1)
    assert memory.score("phonics") == -5.0


def test_focus_requires_strictly_exceeding_threshold():
    assert ErrorMemory([("phonics", 1.5)]).focus(1.5) == "general"
    assert ErrorMemory([("phonics", 2.0)]).focus(1.5) == "phonics"
    assert ErrorMemory([("rhyming", 1.2)]).focus(1.2) == "general"
    assert ErrorMemory([("rhyming", 1.25)]).focus(1.2) == "rhyming"


def test_focus_picks_worst_and_first_seen_on_ties():
    memory = ErrorMemory([("a", 2.0), ("b", 3.0), ("c", 3.0)])
    assert memory.focus(1.5) == "b"
    assert ErrorMemory([("x", 2.0), ("y", 2.0)]).focus(1.5) == "x"


def test_pairs_preserve_order():
    memory = ErrorMemory()
    memory.record("word-recognition", 0)
    memory.record("phonics", 1)
    pairs = memory.to_pairs()
    assert pairs == [["word-recognition", 1.0], ["phonics", -0.5]]
    assert ErrorMemory.from_pairs(pairs) == memory


def test_sample_sanitizing_clamps_values():
    sample = PerformanceSample(category="  ", difficulty=9, is_correct=7, reaction_ms=-40).sanitized()
    assert sample.category == "general"
    assert sample.difficulty == 5.0
    assert sample.is_correct == 1
    assert sample.reaction_ms == 0.0

    nan_sample = PerformanceSample(category="phonics", difficulty=float("nan"), is_correct=0, reaction_ms=float("nan"))
    clean = nan_sample.sanitized()
    assert clean.difficulty == 3.0
    assert clean.reaction_ms == 3000.0


def test_round_difficulty_is_half_up_and_bounded():
    assert round_difficulty(4.5) == 5
    assert round_difficulty(3.5) == 4
    assert round_difficulty(2.49) == 2
    assert round_difficulty(0.2) == 1
    assert round_difficulty(7.0) == 5
    assert clamp_difficulty(-3) == 1.0


def test_sample_sanitizing_caps_infinite_reaction_times():
    assert PerformanceSample("phonics", 3, 1, float("inf")).sanitized().reaction_ms == 3000.0
    assert PerformanceSample("phonics", 3, 1, float("-inf")).sanitized().reaction_ms == 3000.0
    assert PredictionContext(1, float("inf")).sanitized().reaction_ms == 3000.0


def test_correctness_flags_are_read_numerically():
    assert PerformanceSample("phonics", 3, "0", 500).sanitized().is_correct == 0
    assert PerformanceSample("phonics", 3, "1", 500).sanitized().is_correct == 1
    assert PerformanceSample("phonics", 3, float("nan"), 500).sanitized().is_correct == 0
    assert PerformanceSample("phonics", 3, True, 500).sanitized().is_correct == 1
    assert PredictionContext("0", 500).sanitized().recent_correct == 0
