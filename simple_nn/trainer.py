"""
Epoch-bounded training loop, evaluation helpers and the TrainingContext that
bundles everything one experiment needs.
"""
from dataclasses import dataclass
from typing import NamedTuple

import numpy as np
from tqdm.auto import tqdm

from .config import EXPERIMENTS, ExperimentConfig
from .data import (Dataset, Split, gaussian_noise, generate, iterate_batches, nonlinear_map,
                   random_linear_map, split)
from .errors import InvalidArgument, require_positive
from .models import Model, deep_model, linear_model
from .nodes import LossNode, MSELoss
from .optimizers import Optimizer, get_optimizer

# RAdam(1e-4, (0.9, 0.8)) is what the nonlinear walk-through trains with.
NONLINEAR_OPTIMIZER_KWARGS = {
    "adam": {"betas": (0.9, 0.8)},
    "radam": {"betas": (0.9, 0.8)},
}


class LossHistory(NamedTuple):
    """Per-step training loss and dev loss, one entry each per batch."""
    train: list
    dev: list

    def epochs(self, n_train: int, batch_size: int) -> np.ndarray:
        """x-values in units of epochs for plotting: step / (n_train / batch_size)."""
        return np.arange(1, len(self.train) + 1) / (n_train / batch_size)


def evaluate(model: Model, loss_fn: LossNode, dataset: Dataset) -> float:
    """Loss over the whole dataset with the current parameters."""
    return loss_fn.forward(model.forward(dataset.inputs), dataset.targets)


def weight_error(learned, reference: np.ndarray) -> float:
    """Frobenius norm ||W - M||. `learned` is a matrix or a single-layer model."""
    if isinstance(learned, Model):
        layers = learned.layers
        if len(layers) != 1:
            raise InvalidArgument(f"weight_error needs a single-layer model, got {len(layers)} layers")
        learned = layers[0].W
    return float(np.linalg.norm(np.asarray(learned) - np.asarray(reference)))


def train(num_epochs: int, optimizer: Optimizer, model: Model, loss_fn: LossNode,
          train_split: Dataset, dev_split: Dataset, batch_size: int,
          rng: np.random.Generator | int | None = None, progress: bool = False) -> LossHistory:
    """Run num_epochs * ceil(n_train / batch_size) gradient steps.

    Each step records the batch loss before the update and the loss on the full
    dev split after it. `rng` drives the per-epoch shuffles.
    """
    require_positive("num_epochs", num_epochs)
    require_positive("batch_size", batch_size)
    rng = np.random.default_rng(rng)
    history = LossHistory([], [])

    pbar = tqdm(range(num_epochs), desc="[Train]", unit="ep", disable=not progress)
    for _ in pbar:
        for batch in iterate_batches(train_split, batch_size, shuffle=True, rng=rng):
            # Forward, then loss
            prediction = model.forward(batch.inputs)
            batch_loss = loss_fn.forward(prediction, batch.targets)

            # Backward (upstream = 1 for loss), then through the layers in reverse
            model.backward(loss_fn.backward(1.0))

            optimizer.update(model.parameters(), model.gradients())

            history.train.append(batch_loss)
            history.dev.append(evaluate(model, loss_fn, dev_split))
        pbar.set_postfix({"loss": f"{history.train[-1]:.6f}", "dev": f"{history.dev[-1]:.6f}"})
    return history


# -----------------------------------------------------------------------------
# Experiments
# -----------------------------------------------------------------------------

@dataclass
class TrainingContext:
    """Everything one experiment owns. Build a new one per run instead of sharing state."""
    name: str
    config: ExperimentConfig
    dataset: Dataset
    split: Split
    model: Model
    optimizer: Optimizer
    loss_fn: LossNode
    num_epochs: int
    ground_truth: np.ndarray | None = None


def build_context(config: ExperimentConfig, experiment: str = "linear") -> TrainingContext:
    """Generate data, split it and build model + optimizer for one of EXPERIMENTS.

    linear:    y = M x, bias-free dense layer.
    noisy:     y = M x + N(0.5, 1), dense layer with bias.
    nonlinear: y = cos(2 x1) + cos(x2)^2 + x3 + sin(x4), stack of leaky-ReLU layers.
    """
    c = config
    if experiment in ("linear", "noisy"):
        ground_truth = random_linear_map(c.nx, c.ny, seed=c.seed)
        noisy = experiment == "noisy"
        dataset = generate(c.seed, c.nx, c.ny, c.num_samples, c.input_scale, ground_truth,
                           gaussian_noise() if noisy else None)
        model = linear_model(c.nx, c.ny, bias=c.bias or noisy, seed=c.seed)
        optimizer = get_optimizer(c.optimizer, lr=c.learning_rate)
        num_epochs = c.num_epochs
        matrix = ground_truth.matrix
    elif experiment == "nonlinear":
        if c.nx < 4:
            raise InvalidArgument(f"the nonlinear experiment needs nx >= 4, got {c.nx}")
        dataset = generate(c.seed, c.nx, 1, c.num_samples, c.input_scale, nonlinear_map)
        model = deep_model([c.nx] * (c.hidden_layers + 1) + [1], activation=c.activation,
                           seed=c.seed)
        name = c.nonlinear_optimizer
        optimizer = get_optimizer(name, lr=c.learning_rate, **NONLINEAR_OPTIMIZER_KWARGS.get(name, {}))
        num_epochs = c.nonlinear_epochs
        matrix = None
    else:
        raise InvalidArgument(f"unknown experiment {experiment!r}; choose from {EXPERIMENTS}")

    return TrainingContext(
        name=experiment,
        config=c,
        dataset=dataset,
        split=split(dataset, c.f_train, c.f_dev),
        model=model,
        optimizer=optimizer,
        loss_fn=MSELoss(),
        num_epochs=num_epochs,
        ground_truth=matrix,
    )


def run(context: TrainingContext, progress: bool = False) -> LossHistory:
    """Train the context's model on its train split, tracking dev loss; shuffles are seeded from config.seed."""
    return train(
        context.num_epochs,
        context.optimizer,
        context.model,
        context.loss_fn,
        context.split.train,
        context.split.dev,
        context.config.batch_size,
        rng=context.config.seed,
        progress=progress,
    )
