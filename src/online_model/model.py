# ABOUTME: Declares the small torch regressor that predicts a nudge to the current difficulty.
# ABOUTME: Provides flatten/restore helpers so weights survive a JSON round-trip.

from dataclasses import asdict, dataclass
from typing import Dict, List, Mapping

import numpy as np
import torch
from torch import nn

ACTIVATIONS = {
    "relu": nn.ReLU,
    "tanh": nn.Tanh,
    "sigmoid": nn.Sigmoid,
}


@dataclass(frozen=True)
class RegressorConfig:
    """Architecture and optimization settings for the online regressor."""

    input_dim: int = 3
    hidden_units: int = 8
    activation: str = "relu"
    output_dim: int = 1
    learning_rate: float = 0.01
    epochs: int = 6
    seed: int = 42

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


class DifficultyRegressor(nn.Module):
    """Single-hidden-layer MLP: [correct, reaction, difficulty] -> difficulty nudge."""

    def __init__(self, config: RegressorConfig) -> None:
        super().__init__()
        if config.activation not in ACTIVATIONS:
            raise ValueError(f"Unsupported activation '{config.activation}'.")
        self.config = config
        self.layers = nn.Sequential(
            nn.Linear(config.input_dim, config.hidden_units),
            ACTIVATIONS[config.activation](),
            nn.Linear(config.hidden_units, config.output_dim),
        )
        # A fresh regressor nudges by exactly zero.
        nn.init.zeros_(self.layers[-1].weight)
        nn.init.zeros_(self.layers[-1].bias)

    def forward(self, features: torch.Tensor) -> torch.Tensor:
        return self.layers(features)


def build_regressor(config: RegressorConfig) -> DifficultyRegressor:
    """Build a regressor with seeded initial weights without touching the global RNG."""

    with torch.random.fork_rng(devices=[]):
        torch.manual_seed(config.seed)
        return DifficultyRegressor(config)


def flatten_weights(model: nn.Module) -> List[Dict[str, object]]:
    """Extract each parameter tensor as a named, shaped, flat float list."""

    weights = []
    for name, tensor in model.state_dict().items():
        array = tensor.detach().cpu().numpy()
        weights.append(
            {
                "name": name,
                "shape": list(array.shape),
                "values": array.astype(np.float64).ravel().tolist(),
            }
        )
    return weights


def restore_weights(model: nn.Module, weights: List[Mapping[str, object]]) -> None:
    """Load flattened weights back into ``model``; raises ValueError on any mismatch."""

    expected = model.state_dict()
    if len(weights) != len(expected):
        raise ValueError(f"expected {len(expected)} weight arrays, got {len(weights)}")

    restored = {}
    for entry in weights:
        name = str(entry["name"])
        if name not in expected:
            raise ValueError(f"unknown weight '{name}'")
        shape = tuple(int(dim) for dim in entry["shape"])
        if shape != tuple(expected[name].shape):
            raise ValueError(f"weight '{name}' has shape {shape}, expected {tuple(expected[name].shape)}")
        values = np.asarray(entry["values"], dtype=np.float32)
        if values.size != int(np.prod(shape)) or not np.all(np.isfinite(values)):
            raise ValueError(f"weight '{name}' has invalid values")
        restored[name] = torch.from_numpy(values.reshape(shape)).to(expected[name].dtype)
    model.load_state_dict(restored)
