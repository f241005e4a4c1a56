# ABOUTME: Loads the adaptive engine configuration from YAML with environment overrides.
# ABOUTME: Produces typed configs for the rule-based and online-model estimators.

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from src.online_model.model import RegressorConfig
from src.rule_based.estimator import RuleBasedConfig

ESTIMATOR_VARIANTS = ("rule-based", "online-model")
DEFAULT_CONFIG_PATH = Path("configs/adaptive.yaml")
DEFAULT_STATE_DIR = Path(".adaptive_state")


@dataclass(frozen=True)
class AdaptiveConfig:
    """Top-level engine settings."""

    estimator: str = "rule-based"
    state_dir: Path = DEFAULT_STATE_DIR
    log_level: str = "INFO"
    rule_based: RuleBasedConfig = field(default_factory=RuleBasedConfig)
    online_model: RegressorConfig = field(default_factory=RegressorConfig)
    online_focus_threshold: float = 1.2

    def __post_init__(self) -> None:
        if self.estimator not in ESTIMATOR_VARIANTS:
            raise ValueError(
                f"Unsupported estimator '{self.estimator}'. Expected one of {', '.join(ESTIMATOR_VARIANTS)}."
            )


def _known(cls: type, section: Mapping[str, Any]) -> dict:
    names = {f.name for f in fields(cls)}
    unknown = set(section) - names
    if unknown:
        raise ValueError(f"Unknown {cls.__name__} keys: {', '.join(sorted(unknown))}")
    return dict(section)


def config_from_dict(cfg: Mapping[str, Any]) -> AdaptiveConfig:
    online_cfg = dict(cfg.get("online_model") or {})
    focus_threshold = float(online_cfg.pop("focus_threshold", 1.2))
    return AdaptiveConfig(
        estimator=os.environ.get("ADAPTIVE_ESTIMATOR", cfg.get("estimator", "rule-based")),
        state_dir=Path(os.environ.get("ADAPTIVE_STATE_DIR", cfg.get("state_dir", DEFAULT_STATE_DIR))),
        log_level=str(cfg.get("log_level", "INFO")),
        rule_based=RuleBasedConfig(**_known(RuleBasedConfig, cfg.get("rule_based") or {})),
        online_model=RegressorConfig(**_known(RegressorConfig, online_cfg)),
        online_focus_threshold=focus_threshold,
    )


def load_config(config_path: Optional[Path] = None) -> AdaptiveConfig:
    """Read YAML config; a missing default file yields built-in defaults."""

    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    if not path.exists():
        if config_path is not None:
            raise FileNotFoundError(f"Config not found at {path}")
        return config_from_dict({})

    with open(path) as f:
        cfg = yaml.safe_load(f) or {}
    return config_from_dict(cfg)
