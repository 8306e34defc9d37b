import os

os.environ.setdefault("MPLBACKEND", "Agg")

import numpy as np
import pytest

from simple_nn.data import generate, random_linear_map, split


@pytest.fixture
def linear_map():
    return random_linear_map(4, 4, seed=1)


@pytest.fixture
def linear_dataset(linear_map):
    """100 clean samples of a 4x4 linear map with inputs in [0, 1)."""
    return generate(seed=1, nx=4, ny=4, num_samples=100, input_scale=1.0, mapping_fn=linear_map)


@pytest.fixture
def linear_split(linear_dataset):
    return split(linear_dataset, 0.7, 0.15)


@pytest.fixture
def rng():
    return np.random.default_rng(0)
