"""
Synthetic ground truth, train/dev/test splitting and batching.

Samples are rows: a Dataset holds `inputs` of shape (N, nx) and `targets` of
shape (N, ny).
"""
import math
from collections.abc import Callable, Iterator
from dataclasses import dataclass

import numpy as np

from .errors import InvalidArgument, ShapeMismatch, require_positive

MappingFn = Callable[[np.ndarray], np.ndarray]
NoiseFn = Callable[[np.random.Generator, int], np.ndarray]


# -----------------------------------------------------------------------------
# Dataset
# -----------------------------------------------------------------------------

class Dataset:
    """Ordered (input, target) pairs. Arrays are copied and frozen on construction."""

    def __init__(self, inputs, targets):
        inputs = np.array(inputs, dtype=float)
        targets = np.array(targets, dtype=float)
        if inputs.ndim != 2 or targets.ndim != 2:
            raise ShapeMismatch(
                f"inputs and targets must be (samples, features), got {inputs.shape} and {targets.shape}"
            )
        if len(inputs) != len(targets):
            raise ShapeMismatch(f"{len(inputs)} inputs but {len(targets)} targets")
        inputs.setflags(write=False)
        targets.setflags(write=False)
        self.inputs = inputs
        self.targets = targets

    @property
    def nx(self) -> int:
        return self.inputs.shape[1]

    @property
    def ny(self) -> int:
        return self.targets.shape[1]

    def __len__(self) -> int:
        return len(self.inputs)

    def subset(self, start: int, stop: int) -> "Dataset":
        """Positional slice [start, stop)."""
        return Dataset(self.inputs[start:stop], self.targets[start:stop])

    def __repr__(self) -> str:
        return f"Dataset(n={len(self)}, nx={self.nx}, ny={self.ny})"


# -----------------------------------------------------------------------------
# Ground-truth mappings
# -----------------------------------------------------------------------------

class LinearMap:
    """y = M x (+ p). Called on a single input vector."""

    def __init__(self, matrix: np.ndarray, bias: np.ndarray | None = None):
        self.matrix = np.asarray(matrix, dtype=float)
        self.bias = None if bias is None else np.asarray(bias, dtype=float)

    def __call__(self, x: np.ndarray) -> np.ndarray:
        y = self.matrix @ np.asarray(x, dtype=float)
        return y if self.bias is None else y + self.bias


def random_linear_map(nx: int, ny: int, seed: int = 1, bias: bool = False) -> LinearMap:
    """Reproducible M (and p) with entries in [-1, 1) rounded to two digits."""
    require_positive("nx", nx)
    require_positive("ny", ny)
    matrix = np.round(2 * (np.random.default_rng(seed).random((ny, nx)) - 0.5), 2)
    p = None
    if bias:
        p = np.round(2 * (np.random.default_rng(seed).random(ny) - 0.5), 2)
    return LinearMap(matrix, p)


def gaussian_noise(mean: float = 0.5, std: float = 1.0) -> NoiseFn:
    """White noise nu ~ N(mean, std^2) added to every target."""

    def noise(rng: np.random.Generator, ny: int) -> np.ndarray:
        return mean + std * rng.standard_normal(ny)

    return noise


def nonlinear_map(x: np.ndarray) -> np.ndarray:
    """f(x) = cos(2 x1) + cos(x2)^2 + x3 + sin(x4); needs at least 4 inputs."""
    if len(x) < 4:
        raise ShapeMismatch(f"nonlinear_map needs at least 4 inputs, got {len(x)}")
    return np.array([np.cos(2 * x[0]) + np.cos(x[1]) ** 2 + x[2] + np.sin(x[3])])


def random_exponents(nx: int, seed: int = 1) -> np.ndarray:
    require_positive("nx", nx)
    return np.random.default_rng(seed).random(nx)


def power_sum_map(exponents: np.ndarray) -> MappingFn:
    """f(x) = sum_i x_i ** e_i."""
    exponents = np.asarray(exponents, dtype=float)

    def mapping(x: np.ndarray) -> np.ndarray:
        x = np.asarray(x, dtype=float)
        if x.shape != exponents.shape:
            raise ShapeMismatch(f"expected input of shape {exponents.shape}, got {x.shape}")
        return np.array([np.sum(x ** exponents)])

    return mapping


# -----------------------------------------------------------------------------
# Generator
# -----------------------------------------------------------------------------

def generate(seed: int, nx: int, ny: int, num_samples: int, input_scale: float,
             mapping_fn: MappingFn, noise_fn: NoiseFn | None = None) -> Dataset:
    """Draw inputs input_scale * U[0, 1)^nx and map them (plus noise) to targets.

    All randomness, noise included, comes from one generator seeded with `seed`,
    so identical arguments give identical datasets.
    """
    require_positive("nx", nx)
    require_positive("ny", ny)
    require_positive("num_samples", num_samples)
    rng = np.random.default_rng(seed)
    inputs = input_scale * rng.random((num_samples, nx))

    targets = np.empty((num_samples, ny))
    for i, x in enumerate(inputs):
        y = np.ravel(mapping_fn(x))
        if y.shape != (ny,):
            raise ShapeMismatch(f"mapping returned {y.size} values, expected ny={ny}")
        if noise_fn is not None:
            y = y + np.ravel(noise_fn(rng, ny))
        targets[i] = y
    return Dataset(inputs, targets)


# -----------------------------------------------------------------------------
# Data splitting
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class Split:
    train: Dataset
    dev: Dataset
    test: Dataset

    @property
    def sizes(self) -> tuple[int, int, int]:
        return len(self.train), len(self.dev), len(self.test)


def split(dataset: Dataset, f_train: float, f_dev: float) -> Split:
    """Contiguous cuts train = [0, n_train), dev = [n_train, n_dev_end), test = [n_dev_end, N)."""
    if not (0 < f_train < 1 and 0 < f_dev < 1):
        raise InvalidArgument(f"fractions must lie in (0, 1), got f_train={f_train}, f_dev={f_dev}")
    if f_train + f_dev >= 1:
        raise InvalidArgument(f"f_train + f_dev must be < 1 to leave a test set, got {f_train + f_dev}")
    n = len(dataset)
    n_train = round(f_train * n)
    n_dev_end = round((f_train + f_dev) * n)
    if n_train == 0 or n_dev_end == n_train or n_dev_end >= n:
        raise InvalidArgument(
            f"split of {n} samples with f_train={f_train}, f_dev={f_dev} leaves an empty partition"
        )
    return Split(
        train=dataset.subset(0, n_train),
        dev=dataset.subset(n_train, n_dev_end),
        test=dataset.subset(n_dev_end, n),
    )


# -----------------------------------------------------------------------------
# Batching
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class Batch:
    inputs: np.ndarray
    targets: np.ndarray
    indices: np.ndarray

    def __len__(self) -> int:
        return len(self.indices)


def iterate_batches(dataset: Dataset, batch_size: int, shuffle: bool = True,
                    rng: np.random.Generator | int | None = None) -> Iterator[Batch]:
    """Yield ceil(n / batch_size) batches covering every index of `dataset` exactly once.

    A fresh permutation is drawn from `rng` on every call; pass the same Generator
    across epochs to get a different but reproducible order each epoch.
    """
    require_positive("batch_size", batch_size)
    n = len(dataset)
    if shuffle:
        order = np.random.default_rng(rng).permutation(n)
    else:
        order = np.arange(n)
    return _batches(dataset, batch_size, order)


def _batches(dataset: Dataset, batch_size: int, order: np.ndarray) -> Iterator[Batch]:
    for start in range(0, len(order), batch_size):
        idx = order[start:start + batch_size]
        yield Batch(dataset.inputs[idx], dataset.targets[idx], idx)


def num_batches(n: int, batch_size: int) -> int:
    require_positive("batch_size", batch_size)
    return math.ceil(n / batch_size)


class DataLoader:
    """Restartable batch iterable: every iter() is one epoch with a fresh shuffle."""

    def __init__(self, dataset: Dataset, batch_size: int, shuffle: bool = True, seed: int | None = None):
        require_positive("batch_size", batch_size)
        self.dataset = dataset
        self.batch_size = batch_size
        self.shuffle = shuffle
        self._rng = np.random.default_rng(seed)

    def __iter__(self) -> Iterator[Batch]:
        return iterate_batches(self.dataset, self.batch_size, self.shuffle, self._rng)

    def __len__(self) -> int:
        return num_batches(len(self.dataset), self.batch_size)
