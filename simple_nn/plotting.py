"""Loss curves and weight comparisons. Read-only consumers of training results."""
import os
from datetime import datetime

import matplotlib.pyplot as plt
import numpy as np
import petname

# Run identifier for saved plots: [timestamp]_[RUN_NAME]_[plot_type].png
RUN_NAME = petname.Generate(2, "_")
OUTPUT_DIR = "outputs"
_RUN_TS = datetime.now().strftime("%m_%d_%Y_%H_%M_%S")


def plot_path(plot_type: str, output_dir: str = OUTPUT_DIR) -> str:
    os.makedirs(output_dir, exist_ok=True)
    return os.path.join(output_dir, f"{_RUN_TS}_{RUN_NAME}_{plot_type}.png")


def _finish(fig, plot_type: str, save: bool, show: bool, output_dir: str):
    fig.tight_layout()
    if save:
        fig.savefig(plot_path(plot_type, output_dir), dpi=150, bbox_inches="tight")
    if show:
        plt.show()
    return fig


def plot_loss(n_train: int, batch_size: int, train_loss, dev_loss, title: str = "Train and dev loss",
              plot_type: str = "loss", save: bool = True, show: bool = False,
              output_dir: str = OUTPUT_DIR):
    """Per-step losses against epochs, where one epoch is n_train / batch_size steps."""
    scale_epoch = n_train / batch_size
    fig, ax = plt.subplots(figsize=(8, 4))
    ax.plot(np.arange(1, len(train_loss) + 1) / scale_epoch, np.asarray(train_loss, dtype=np.float32),
            label="Train loss (batch)")
    ax.plot(np.arange(1, len(dev_loss) + 1) / scale_epoch, np.asarray(dev_loss, dtype=np.float32),
            label="Dev loss")
    ax.set_xlabel("epochs")
    ax.set_ylabel("loss")
    ax.set_yscale("log")
    ax.set_title(title)
    ax.minorticks_on()
    ax.grid(True, alpha=0.3)
    ax.grid(True, which="minor", axis="x", alpha=0.1)
    ax.legend()
    return _finish(fig, plot_type, save, show, output_dir)


def plot_weights(learned: np.ndarray, reference: np.ndarray, plot_type: str = "weights",
                 save: bool = True, show: bool = False, output_dir: str = OUTPUT_DIR):
    """Learned W, ground-truth M and the residual M - W side by side."""
    learned = np.asarray(learned)
    reference = np.asarray(reference)
    residual = reference - learned
    vmax = max(np.abs(learned).max(), np.abs(reference).max())

    fig, axes = plt.subplots(1, 3, figsize=(12, 4))
    panels = [
        (learned, "Learned W", vmax),
        (reference, "Ground truth M", vmax),
        (residual, f"Residual M - W\n||M - W|| = {np.linalg.norm(residual):.3g}",
         max(np.abs(residual).max(), 1e-12)),
    ]
    for ax, (matrix, title, lim) in zip(axes, panels):
        im = ax.imshow(matrix, cmap="bwr", vmin=-lim, vmax=lim)
        ax.set_title(title)
        ax.set_xlabel("input index")
        ax.set_ylabel("output index")
        fig.colorbar(im, ax=ax, fraction=0.046)
    return _finish(fig, plot_type, save, show, output_dir)


def plot_iterations(losses, title: str = "Loss vs iteration", plot_type: str = "iterations",
                    save: bool = True, show: bool = False, output_dir: str = OUTPUT_DIR):
    fig, ax = plt.subplots(figsize=(8, 5))
    ax.plot(range(len(losses)), losses)
    ax.set_xlabel("Iteration")
    ax.set_ylabel("Loss")
    ax.set_title(title)
    ax.grid(True, alpha=0.3)
    return _finish(fig, plot_type, save, show, output_dir)
