"""
Tests for data generation, splitting and batching.
"""
import math

import numpy as np
import pytest

from simple_nn.data import (DataLoader, Dataset, gaussian_noise, generate, iterate_batches,
                            nonlinear_map, power_sum_map, random_exponents, random_linear_map,
                            split)
from simple_nn.errors import InvalidArgument, ShapeMismatch


class TestGenerate:
    """generate and the ground-truth maps"""

    def test_same_seed_gives_identical_dataset(self, linear_map):
        a = generate(7, 4, 4, 50, 100.0, linear_map, gaussian_noise())
        b = generate(7, 4, 4, 50, 100.0, linear_map, gaussian_noise())
        np.testing.assert_array_equal(a.inputs, b.inputs)
        np.testing.assert_array_equal(a.targets, b.targets)

    def test_different_seed_gives_different_inputs(self, linear_map):
        a = generate(1, 4, 4, 50, 1.0, linear_map)
        b = generate(2, 4, 4, 50, 1.0, linear_map)
        assert not np.array_equal(a.inputs, b.inputs)

    def test_inputs_are_scaled_uniform(self, linear_map):
        data = generate(1, 4, 4, 500, 100.0, linear_map)
        assert data.inputs.shape == (500, 4)
        assert data.inputs.min() >= 0.0
        assert data.inputs.max() < 100.0

    def test_targets_follow_mapping(self, linear_dataset, linear_map):
        expected = linear_dataset.inputs @ linear_map.matrix.T
        np.testing.assert_allclose(linear_dataset.targets, expected)

    def test_noise_is_added(self, linear_map):
        clean = generate(3, 4, 4, 2000, 1.0, linear_map)
        noisy = generate(3, 4, 4, 2000, 1.0, linear_map, gaussian_noise(mean=0.5, std=1.0))
        np.testing.assert_array_equal(clean.inputs, noisy.inputs)
        residual = noisy.targets - clean.targets
        assert abs(residual.mean() - 0.5) < 0.1
        assert abs(residual.std() - 1.0) < 0.1

    @pytest.mark.parametrize("nx,ny,n", [(0, 4, 10), (4, 0, 10), (4, 4, 0), (-1, 4, 10)])
    def test_invalid_dimensions(self, nx, ny, n):
        with pytest.raises(InvalidArgument):
            generate(1, nx, ny, n, 1.0, lambda x: x)

    def test_mapping_with_wrong_output_size(self, linear_map):
        with pytest.raises(ShapeMismatch):
            generate(1, 4, 2, 10, 1.0, linear_map)

    def test_random_linear_map_is_reproducible_and_rounded(self):
        a = random_linear_map(3, 2, seed=1)
        b = random_linear_map(3, 2, seed=1)
        np.testing.assert_array_equal(a.matrix, b.matrix)
        assert a.matrix.shape == (2, 3)
        assert np.all(np.abs(a.matrix) <= 1.0)
        np.testing.assert_array_equal(a.matrix, np.round(a.matrix, 2))
        assert a.bias is None

    def test_random_linear_map_with_bias(self):
        m = random_linear_map(3, 2, seed=1, bias=True)
        x = np.array([1.0, 2.0, 3.0])
        np.testing.assert_allclose(m(x), m.matrix @ x + m.bias)

    def test_nonlinear_map(self):
        x = np.array([0.0, 0.0, 2.0, 0.0])
        # cos(0) + cos(0)^2 + 2 + sin(0)
        np.testing.assert_allclose(nonlinear_map(x), [4.0])
        with pytest.raises(ShapeMismatch):
            nonlinear_map(np.zeros(3))

    def test_power_sum_map(self):
        exponents = random_exponents(3, seed=1)
        assert np.all((exponents >= 0) & (exponents < 1))
        f = power_sum_map(np.array([1.0, 2.0, 0.5]))
        np.testing.assert_allclose(f(np.array([2.0, 3.0, 4.0])), [2.0 + 9.0 + 2.0])


class TestDataset:
    """Dataset invariants"""

    def test_mismatched_lengths(self):
        with pytest.raises(ShapeMismatch):
            Dataset(np.zeros((3, 2)), np.zeros((4, 1)))

    def test_arrays_are_read_only_copies(self):
        inputs = np.zeros((3, 2))
        data = Dataset(inputs, np.zeros((3, 1)))
        inputs[0, 0] = 1.0
        assert data.inputs[0, 0] == 0.0
        with pytest.raises(ValueError):
            data.inputs[0, 0] = 1.0

    def test_subset(self, linear_dataset):
        sub = linear_dataset.subset(10, 20)
        assert len(sub) == 10
        np.testing.assert_array_equal(sub.inputs, linear_dataset.inputs[10:20])


class TestSplit:
    """split"""

    def test_sizes_70_15_15(self, linear_dataset):
        parts = split(linear_dataset, 0.7, 0.15)
        assert parts.sizes == (70, 15, 15)

    @pytest.mark.parametrize("n", [20, 99, 100, 101, 1000, 1337])
    @pytest.mark.parametrize("f_train,f_dev", [(0.7, 0.15), (0.5, 0.25), (0.8, 0.1), (0.33, 0.33)])
    def test_partitions_are_disjoint_and_cover(self, n, f_train, f_dev):
        data = Dataset(np.arange(n, dtype=float).reshape(-1, 1), np.zeros((n, 1)))
        parts = split(data, f_train, f_dev)
        assert sum(parts.sizes) == n
        indices = np.concatenate([parts.train.inputs, parts.dev.inputs, parts.test.inputs]).ravel()
        np.testing.assert_array_equal(indices, np.arange(n))
        assert len(parts.train) == round(f_train * n)

    @pytest.mark.parametrize("f_train,f_dev", [(0.0, 0.2), (0.7, 0.0), (1.0, 0.1), (0.7, 0.4), (0.9, 0.2), (-0.1, 0.5)])
    def test_invalid_fractions(self, linear_dataset, f_train, f_dev):
        with pytest.raises(InvalidArgument):
            split(linear_dataset, f_train, f_dev)

    def test_empty_partition(self):
        data = Dataset(np.zeros((4, 1)), np.zeros((4, 1)))
        with pytest.raises(InvalidArgument):
            split(data, 0.7, 0.1)


class TestBatching:
    """iterate_batches and DataLoader"""

    @pytest.mark.parametrize("batch_size", [1, 7, 10, 33, 70])
    def test_each_index_exactly_once(self, linear_split, batch_size):
        train = linear_split.train
        batches = list(iterate_batches(train, batch_size, rng=0))
        assert len(batches) == math.ceil(len(train) / batch_size)
        assert all(len(b) == batch_size for b in batches[:-1])
        assert 0 < len(batches[-1]) <= batch_size
        seen = np.concatenate([b.indices for b in batches])
        assert sorted(seen.tolist()) == list(range(len(train)))

    def test_batch_contents_match_indices(self, linear_split):
        train = linear_split.train
        for batch in iterate_batches(train, 16, rng=3):
            np.testing.assert_array_equal(batch.inputs, train.inputs[batch.indices])
            np.testing.assert_array_equal(batch.targets, train.targets[batch.indices])

    def test_no_shuffle_keeps_order(self, linear_split):
        batches = list(iterate_batches(linear_split.train, 25, shuffle=False))
        np.testing.assert_array_equal(np.concatenate([b.indices for b in batches]), np.arange(70))

    def test_batch_larger_than_split(self, linear_split):
        batches = list(iterate_batches(linear_split.train, 200, rng=0))
        assert len(batches) == 1
        assert len(batches[0]) == 70

    def test_invalid_batch_size_raises_immediately(self, linear_split):
        with pytest.raises(InvalidArgument):
            iterate_batches(linear_split.train, 0)

    def test_loader_reshuffles_each_epoch(self, linear_split):
        loader = DataLoader(linear_split.train, 10, seed=5)
        assert len(loader) == 7
        first = np.concatenate([b.indices for b in loader])
        second = np.concatenate([b.indices for b in loader])
        assert not np.array_equal(first, second)

    def test_loader_is_reproducible_from_seed(self, linear_split):
        a = DataLoader(linear_split.train, 10, seed=5)
        b = DataLoader(linear_split.train, 10, seed=5)
        for _ in range(3):
            np.testing.assert_array_equal(
                np.concatenate([x.indices for x in a]), np.concatenate([x.indices for x in b])
            )
