# ABOUTME: Replays recorded performance samples through an estimator.
# ABOUTME: Produces per-step difficulty and focus traces as DataFrames for inspection.

from __future__ import annotations

from pathlib import Path

import pandas as pd
from loguru import logger

from .categories import classify_game_category, difficulty_to_label
from .estimator import DifficultyEstimator
from .schemas import GENERAL_FOCUS, PerformanceSample, PredictionContext

REQUIRED_COLUMNS = ("difficulty", "is_correct", "reaction_ms")
TRACE_COLUMNS = [
    "step",
    "category",
    "is_correct",
    "reaction_ms",
    "difficulty_scalar",
    "difficulty",
    "label",
    "focus",
]


def load_samples(path: Path) -> pd.DataFrame:
    """
    Read samples from CSV or parquet.

    Expects ``difficulty``, ``is_correct``, ``reaction_ms`` and either a
    ``category`` or a ``game_type`` column (classified into categories).
    """

    path = Path(path)
    if path.suffix == ".parquet":
        df = pd.read_parquet(path)
    else:
        df = pd.read_csv(path)

    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise ValueError(f"Samples file {path} is missing columns: {', '.join(missing)}")

    if "category" not in df.columns:
        if "game_type" in df.columns:
            df["category"] = df["game_type"].map(classify_game_category)
        else:
            df["category"] = GENERAL_FOCUS
    df["category"] = df["category"].fillna(GENERAL_FOCUS).astype(str)

    for col in REQUIRED_COLUMNS:
        df[col] = pd.to_numeric(df[col], errors="coerce")
    unusable = df["is_correct"].isna()
    if unusable.any():
        logger.warning(f"[replay] dropping {int(unusable.sum())} samples without a numeric is_correct from {path}")
        df = df.loc[~unusable].reset_index(drop=True)
    return df


def replay_samples(estimator: DifficultyEstimator, samples: pd.DataFrame) -> pd.DataFrame:
    """Feed samples in row order and record the recommendation after each one."""

    rows = []
    for step, row in enumerate(samples.itertuples(index=False), start=1):
        sample = PerformanceSample(
            category=str(row.category),
            difficulty=row.difficulty,
            is_correct=row.is_correct,
            reaction_ms=row.reaction_ms,
        ).sanitized()
        estimator.record_performance(sample)
        prediction = estimator.get_recommendation(PredictionContext(sample.is_correct, sample.reaction_ms))
        rows.append(
            {
                "step": step,
                "category": sample.category,
                "is_correct": sample.is_correct,
                "reaction_ms": sample.reaction_ms,
                "difficulty_scalar": estimator.current_difficulty,
                "difficulty": prediction.difficulty,
                "label": difficulty_to_label(prediction.difficulty),
                "focus": prediction.focus,
            }
        )
    return pd.DataFrame(rows, columns=TRACE_COLUMNS)
