# ABOUTME: Tests loading sample files and replaying them through estimators.
# ABOUTME: Checks per-step traces match the rule-based difficulty policy.

import pandas as pd
import pytest

from src.common.replay import TRACE_COLUMNS, load_samples, replay_samples
from src.online_model import OnlineModelEstimator
from src.rule_based import RuleBasedEstimator


def _samples_df():
    return pd.DataFrame(
        {
            "game_type": ["phonics-pop", "phonics-runner", "baseline", "mystery"],
            "difficulty": [3, 3, 3, 3],
            "is_correct": [1, 1, 1, 0],
            "reaction_ms": [400, 300, 250, 1800],
        }
    )


def test_load_samples_classifies_game_types(tmp_path):
    path = tmp_path / "samples.csv"
    _samples_df().to_csv(path, index=False)

    df = load_samples(path)

    assert df["category"].tolist() == ["phonics", "phonics", "phonics", "general"]


def test_load_samples_keeps_explicit_category(tmp_path):
    path = tmp_path / "samples.csv"
    pd.DataFrame(
        {"category": ["rhyming"], "difficulty": [2], "is_correct": [0], "reaction_ms": [900]}
    ).to_csv(path, index=False)

    assert load_samples(path)["category"].tolist() == ["rhyming"]


def test_load_samples_requires_columns(tmp_path):
    path = tmp_path / "bad.csv"
    pd.DataFrame({"category": ["phonics"], "difficulty": [3]}).to_csv(path, index=False)
    with pytest.raises(ValueError):
        load_samples(path)


def test_replay_rule_based_trace(tmp_path):
    path = tmp_path / "samples.csv"
    _samples_df().to_csv(path, index=False)

    trace = replay_samples(RuleBasedEstimator(), load_samples(path))

    assert list(trace.columns) == TRACE_COLUMNS
    assert trace["step"].tolist() == [1, 2, 3, 4]
    assert trace["difficulty_scalar"].tolist()[:3] == [3.5, 4.0, 4.5]
    assert trace["difficulty_scalar"].iloc[3] == pytest.approx(3.8)
    assert trace["difficulty"].tolist() == [4, 4, 5, 4]
    assert trace["label"].tolist() == ["hard", "hard", "hard", "hard"]
    assert set(trace["focus"]) == {"general"}


def test_replay_online_model_trace_is_bounded():
    samples = _samples_df().assign(category="phonics")
    trace = replay_samples(OnlineModelEstimator(), samples)
    assert len(trace) == 4
    assert trace["difficulty"].between(1, 5).all()


def test_load_samples_drops_rows_without_outcome(tmp_path):
    path = tmp_path / "gappy.csv"
    path.write_text(
        "category,difficulty,is_correct,reaction_ms\n"
        "phonics,3,1,400\n"
        "phonics,3,,500\n"
        "rhyming,,0,\n"
    )

    df = load_samples(path)
    assert df["category"].tolist() == ["phonics", "rhyming"]

    trace = replay_samples(RuleBasedEstimator(), df)
    assert trace["is_correct"].tolist() == [1, 0]
    assert trace["reaction_ms"].tolist() == [400.0, 3000.0]
    assert trace["difficulty_scalar"].tolist() == pytest.approx([3.5, 2.8])


def test_replay_reads_string_outcomes_numerically():
    samples = pd.DataFrame(
        {"category": ["phonics", "phonics"], "difficulty": [3, 3], "is_correct": ["1", "0"], "reaction_ms": [400, 900]}
    )
    estimator = RuleBasedEstimator()

    trace = replay_samples(estimator, samples)

    assert trace["is_correct"].tolist() == [1, 0]
    assert estimator.error_memory.score("phonics") == 0.5
