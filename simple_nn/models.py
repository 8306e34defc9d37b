"""Chains of nodes: the linear model and the deep (stacked) model."""
from collections.abc import Sequence

import numpy as np

from .errors import InvalidArgument
from .nodes import Identity, LinearLayer, LossNode, Node, get_activation


class Model:
    """Ordered chain of nodes. Owns the parameters; holds no training logic."""

    def __init__(self, nodes: Sequence[Node]):
        if not nodes:
            raise InvalidArgument("a model needs at least one node")
        self.nodes = list(nodes)

    def forward(self, x: np.ndarray) -> np.ndarray:
        h = x
        for node in self.nodes:
            h = node.forward(h)
        return h

    __call__ = forward

    def backward(self, upstream: np.ndarray) -> np.ndarray:
        """Backprop dL/d(output) through the chain in reverse; returns dL/d(input)."""
        for node in reversed(self.nodes):
            upstream = node.backward(upstream)
        return upstream

    def parameters(self) -> list[np.ndarray]:
        """Live parameter arrays in layer order (W1, b1, W2, ...). Optimizers update them in place."""
        return [p for node in self.nodes for p in node.parameters()]

    def gradients(self) -> list[np.ndarray]:
        return [g for node in self.nodes for g in node.gradients()]

    @property
    def layers(self) -> list[LinearLayer]:
        return [node for node in self.nodes if isinstance(node, LinearLayer)]

    @property
    def equations(self) -> list[str]:
        return [f"{node.__class__.__name__}: {node.equation}" for node in self.nodes]

    def __repr__(self) -> str:
        inner = ", ".join(node.__class__.__name__ for node in self.nodes)
        return f"Model({inner})"


def linear_model(nx: int, ny: int, bias: bool = False, seed: int | None = None) -> Model:
    """Single dense layer y = W x (+ b)."""
    rng = np.random.default_rng(seed)
    return Model([LinearLayer(nx, ny, bias=bias, rng=rng)])


def deep_model(layer_sizes: Sequence[int], activation: str = "leaky_relu", bias: bool = True,
               seed: int | None = None) -> Model:
    """Dense layers between consecutive sizes, each followed by `activation` except the last (identity).

    deep_model([4, 4, 4, 4, 4, 1]) is four hidden leaky-ReLU layers of width 4 and a scalar output.
    """
    if len(layer_sizes) < 2:
        raise InvalidArgument(f"need at least input and output sizes, got {list(layer_sizes)}")
    rng = np.random.default_rng(seed)
    nodes: list[Node] = []
    pairs = list(zip(layer_sizes[:-1], layer_sizes[1:]))
    for i, (n_in, n_out) in enumerate(pairs):
        nodes.append(LinearLayer(n_in, n_out, bias=bias, rng=rng))
        nodes.append(get_activation(activation) if i < len(pairs) - 1 else Identity())
    return Model(nodes)


def numerical_gradients(model: Model, loss_fn: LossNode, x: np.ndarray, y: np.ndarray,
                        eps: float = 1e-6) -> list[np.ndarray]:
    """Central-difference gradients of loss_fn(model(x), y) for every parameter, for checking backprop."""
    grads = []
    for param in model.parameters():
        grad = np.zeros_like(param)
        for idx in np.ndindex(param.shape):
            original = param[idx]
            param[idx] = original + eps
            plus = loss_fn.forward(model.forward(x), y)
            param[idx] = original - eps
            minus = loss_fn.forward(model.forward(x), y)
            param[idx] = original
            grad[idx] = (plus - minus) / (2 * eps)
        grads.append(grad)
    return grads
