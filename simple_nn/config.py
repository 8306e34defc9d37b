"""
Experiment configuration.

PARAMETER_RANGES records the ranges the interactive walk-through offers for each
hyperparameter as (low, high, step, default). They are guidance for the CLI help
and defaults; ExperimentConfig only enforces what the code needs to run.
"""
from dataclasses import asdict, dataclass, replace
from typing import Any, Dict

from .errors import InvalidArgument, require_positive

PARAMETER_RANGES: Dict[str, tuple] = {
    "nx": (2, 20, 2, 4),
    "ny": (2, 20, 2, 4),
    "num_samples": (100, 2000, 100, 1000),
    "batch_size": (10, 200, 10, 100),
    "num_epochs": (2, 50, 2, 20),
    "nonlinear_epochs": (20, 2000, 20, 20),
}

EXPERIMENTS = ("linear", "noisy", "nonlinear")


def default(name: str):
    return PARAMETER_RANGES[name][3]


def describe_ranges() -> str:
    return "\n".join(
        f"  {name}: {low}..{high} step {step} (default {dflt})"
        for name, (low, high, step, dflt) in PARAMETER_RANGES.items()
    )


@dataclass(frozen=True)
class ExperimentConfig:
    """Hyperparameters for one generate -> split -> train run."""

    # Data
    nx: int = default("nx")
    ny: int = default("ny")
    num_samples: int = default("num_samples")
    input_scale: float = 100.0
    seed: int = 1

    # Data splitting
    f_train: float = 0.7
    f_dev: float = 0.15

    # Training loop
    batch_size: int = default("batch_size")
    num_epochs: int = default("num_epochs")
    nonlinear_epochs: int = default("nonlinear_epochs")
    learning_rate: float = 1e-4
    optimizer: str = "descent"
    nonlinear_optimizer: str = "radam"

    # Model
    bias: bool = False
    hidden_layers: int = 4
    activation: str = "leaky_relu"

    def __post_init__(self):
        for name in ("nx", "ny", "num_samples", "batch_size", "num_epochs", "nonlinear_epochs",
                     "learning_rate", "input_scale"):
            require_positive(name, getattr(self, name))
        if self.hidden_layers < 0:
            raise InvalidArgument(f"hidden_layers must be >= 0, got {self.hidden_layers}")
        if not (0 < self.f_train < 1 and 0 < self.f_dev < 1):
            raise InvalidArgument(f"split fractions must lie in (0, 1), got {self.f_train}, {self.f_dev}")
        if self.f_train + self.f_dev >= 1:
            raise InvalidArgument(f"f_train + f_dev must be < 1, got {self.f_train + self.f_dev}")

    def with_overrides(self, **overrides) -> "ExperimentConfig":
        return replace(self, **overrides)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
