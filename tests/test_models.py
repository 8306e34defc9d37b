"""
Tests for model chains and backprop against finite differences.
"""
import numpy as np
import pytest

from simple_nn.errors import InvalidArgument, ShapeMismatch
from simple_nn.models import Model, deep_model, linear_model, numerical_gradients
from simple_nn.nodes import Identity, LeakyReLU, LinearLayer, MSELoss


class TestBuilders:
    """linear_model and deep_model"""

    def test_linear_model(self):
        model = linear_model(4, 3, seed=0)
        assert len(model.nodes) == 1
        assert [p.shape for p in model.parameters()] == [(3, 4)]
        assert model.forward(np.zeros((5, 4))).shape == (5, 3)

    def test_linear_model_with_bias(self):
        model = linear_model(4, 3, bias=True, seed=0)
        assert [p.shape for p in model.parameters()] == [(3, 4), (3,)]

    def test_deep_model_structure(self):
        model = deep_model([4, 4, 4, 4, 4, 1], seed=0)
        assert len(model.layers) == 5
        assert sum(isinstance(n, LeakyReLU) for n in model.nodes) == 4
        assert isinstance(model.nodes[-1], Identity)
        assert len(model.parameters()) == 10
        assert model(np.ones((7, 4))).shape == (7, 1)

    def test_seeded_initialisation(self):
        a = deep_model([3, 5, 2], seed=11)
        b = deep_model([3, 5, 2], seed=11)
        for p, q in zip(a.parameters(), b.parameters()):
            np.testing.assert_array_equal(p, q)

    def test_invalid(self):
        with pytest.raises(InvalidArgument):
            deep_model([4])
        with pytest.raises(InvalidArgument):
            Model([])

    def test_forward_shape_mismatch(self):
        with pytest.raises(ShapeMismatch):
            deep_model([3, 2, 1], seed=0).forward(np.zeros((2, 4)))

    def test_equations(self):
        assert linear_model(2, 1, seed=0).equations == ["LinearLayer: y = W @ x"]


class TestBackprop:
    """Analytic gradients agree with central differences"""

    @pytest.mark.parametrize("activation", ["tanh", "sigmoid", "identity"])
    def test_deep_model_gradients(self, rng, activation):
        model = deep_model([3, 5, 4, 2], activation=activation, seed=2)
        loss_fn = MSELoss()
        x = rng.normal(size=(6, 3))
        y = rng.normal(size=(6, 2))

        loss_fn.forward(model.forward(x), y)
        model.backward(loss_fn.backward())
        analytic = [g.copy() for g in model.gradients()]

        numeric = numerical_gradients(model, loss_fn, x, y)
        for a, n in zip(analytic, numeric):
            np.testing.assert_allclose(a, n, rtol=1e-4, atol=1e-7)

    def test_numerical_gradients_restore_parameters(self, rng):
        model = linear_model(3, 2, bias=True, seed=0)
        before = [p.copy() for p in model.parameters()]
        numerical_gradients(model, MSELoss(), rng.random((4, 3)), rng.random((4, 2)))
        for p, q in zip(model.parameters(), before):
            np.testing.assert_array_equal(p, q)

    def test_linear_gradient_is_outer_product(self):
        # nx=2, ny=1, W=[[1, 1]], x=[1, 2], target=[5]: dL/dW = (y - t) x = -2 * [1, 2]
        model = Model([LinearLayer(2, 1, bias=False)])
        model.layers[0].W[...] = [[1.0, 1.0]]
        loss_fn = MSELoss()
        assert loss_fn.forward(model.forward(np.array([[1.0, 2.0]])), np.array([[5.0]])) == pytest.approx(2.0)
        model.backward(loss_fn.backward())
        np.testing.assert_allclose(model.gradients()[0], [[-2.0, -4.0]])
