from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict


def load_json(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


@dataclass
class SolverCfg:
    """Hyper-parameters shared by the dynamic-programming agents.

    Attributes:
        gamma: Discount factor in (0, 1].
        delta: Convergence threshold for policy evaluation sweeps (> 0).
        iterations: Number of value-iteration sweeps (K >= 1).
        rng_seed: Seed for the random initial policy of policy iteration.
    """
    gamma: float = 0.9
    delta: float = 0.1
    iterations: int = 50
    rng_seed: int = 0

    def __post_init__(self) -> None:
        validate_gamma(self.gamma)
        validate_delta(self.delta)
        validate_iterations(self.iterations)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "SolverCfg":
        return SolverCfg(
            gamma=float(data.get("gamma", 0.9)),
            delta=float(data.get("delta", 0.1)),
            iterations=int(data.get("iterations", 50)),
            rng_seed=int(data.get("rng_seed", 0)),
        )


def validate_gamma(gamma: float) -> float:
    if not 0.0 < gamma <= 1.0:
        raise ValueError(f"Discount factor must be in (0, 1], got: {gamma}")
    return float(gamma)


def validate_delta(delta: float) -> float:
    if not delta > 0.0:
        raise ValueError(f"Convergence threshold must be positive, got: {delta}")
    return float(delta)


def validate_iterations(iterations: int) -> int:
    if iterations < 1:
        raise ValueError(f"Iteration budget must be at least 1, got: {iterations}")
    return int(iterations)
