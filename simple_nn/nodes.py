"""
Dense layers, activations and the MSE loss built from node classes. Each node
caches what its backward pass needs, has a forward equation and a layer-specific
backprop. Chaining the backward calls in reverse order gives reverse-mode
differentiation of the whole model.

All nodes work on row-major batches of shape (batch, features). A 1-D input is
treated as a batch of one and the output keeps the 1-D shape.
"""
from abc import ABC, abstractmethod

import numpy as np

from .errors import InvalidArgument, ShapeMismatch, require_positive

# -----------------------------------------------------------------------------
# Abstract base: all nodes define forward + backward
# -----------------------------------------------------------------------------


def _as_batch(x) -> tuple[np.ndarray, bool]:
    x = np.asarray(x, dtype=float)
    if x.ndim == 1:
        return x[np.newaxis, :], True
    if x.ndim != 2:
        raise ShapeMismatch(f"expected a vector or a (batch, features) array, got shape {x.shape}")
    return x, False


class Node(ABC):
    """Abstract base for model nodes."""

    @property
    @abstractmethod
    def equation(self) -> str:
        """Human-readable equation for this node, e.g. 'y = W @ x + b'."""

    @abstractmethod
    def forward(self, x: np.ndarray) -> np.ndarray:
        """Compute output; must cache whatever backward needs."""

    @abstractmethod
    def backward(self, upstream: np.ndarray) -> np.ndarray:
        """Given dL/d(output), return dL/d(input) and store parameter gradients."""

    def parameters(self) -> list[np.ndarray]:
        """Live parameter arrays. Empty for nodes without parameters."""
        return []

    def gradients(self) -> list[np.ndarray]:
        """Gradients from the last backward call, aligned with parameters()."""
        return []

    def __call__(self, x: np.ndarray) -> np.ndarray:
        return self.forward(x)


# -----------------------------------------------------------------------------
# Linear layer: y = W x + b
# -----------------------------------------------------------------------------

class LinearLayer(Node):
    """Layer equation: y = W @ x + b, applied row-wise as x @ W.T + b."""

    def __init__(self, in_features: int, out_features: int, bias: bool = True,
                 rng: np.random.Generator | None = None):
        require_positive("in_features", in_features)
        require_positive("out_features", out_features)
        rng = rng or np.random.default_rng()
        self.in_features = in_features
        self.out_features = out_features
        # Xavier (Glorot) initialization: scale by sqrt(2 / (fan_in + fan_out))
        scale = np.sqrt(2.0 / (in_features + out_features))
        self.W = rng.standard_normal((out_features, in_features)) * scale
        self.b = np.zeros(out_features) if bias else None
        self.dLdW = np.zeros_like(self.W)
        self.dLdb = np.zeros_like(self.b) if bias else None
        self._last_x = None
        self._was_vector = False

    @property
    def equation(self) -> str:
        return "y = W @ x + b" if self.b is not None else "y = W @ x"

    def forward(self, x: np.ndarray) -> np.ndarray:
        x, self._was_vector = _as_batch(x)
        if x.shape[1] != self.in_features:
            raise ShapeMismatch(
                f"LinearLayer expects {self.in_features} input features, got {x.shape[1]}"
            )
        self._last_x = x
        y = x @ self.W.T
        if self.b is not None:
            y = y + self.b
        return y[0] if self._was_vector else y

    def backward(self, upstream: np.ndarray) -> np.ndarray:
        if self._last_x is None:
            raise RuntimeError("backward called before forward")
        # upstream = dL/dy, shape (batch, out_features)
        upstream, _ = _as_batch(upstream)
        x = self._last_x
        if upstream.shape != (x.shape[0], self.out_features):
            raise ShapeMismatch(
                f"upstream gradient has shape {upstream.shape}, "
                f"expected {(x.shape[0], self.out_features)}"
            )

        # dL/dW_ij = sum over the batch of (dL/dy_i) * x_j  -> (out, in)
        self.dLdW = upstream.T @ x
        if self.b is not None:
            # dy/db = I
            self.dLdb = upstream.sum(axis=0)

        # dL/dx = dL/dy @ W
        dx = upstream @ self.W
        return dx[0] if self._was_vector else dx

    def parameters(self) -> list[np.ndarray]:
        return [self.W] if self.b is None else [self.W, self.b]

    def gradients(self) -> list[np.ndarray]:
        return [self.dLdW] if self.b is None else [self.dLdW, self.dLdb]


# -----------------------------------------------------------------------------
# Non-linear activations (abstract activation + concrete element-wise maps)
# -----------------------------------------------------------------------------

class Activation(Node, ABC):
    """Base for element-wise activation layers. Equation is subclass-specific."""

    def __init__(self):
        self._last_input = None
        self._last_output = None  # often needed for backward (e.g. sigmoid'(y)=y*(1-y))

    @abstractmethod
    def _f(self, x: np.ndarray) -> np.ndarray:
        """Element-wise activation."""

    @abstractmethod
    def _f_prime(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        """Derivative w.r.t. input; may use stored output y = f(x)."""

    def forward(self, x: np.ndarray) -> np.ndarray:
        x = np.asarray(x, dtype=float)
        y = self._f(x)
        self._last_input = x
        self._last_output = y
        return y

    def backward(self, upstream: np.ndarray) -> np.ndarray:
        if self._last_input is None:
            raise RuntimeError("backward called before forward")
        upstream = np.asarray(upstream, dtype=float)
        if upstream.shape != self._last_input.shape:
            raise ShapeMismatch(
                f"upstream gradient has shape {upstream.shape}, expected {self._last_input.shape}"
            )
        return upstream * self._f_prime(self._last_input, self._last_output)


class Identity(Activation):
    @property
    def equation(self) -> str:
        return "y = x"

    def _f(self, x: np.ndarray) -> np.ndarray:
        return x

    def _f_prime(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        return np.ones_like(x)


class ReLU(Activation):
    """ReLU: y = max(0, x). Backprop: pass upstream where x > 0."""

    @property
    def equation(self) -> str:
        return "y = max(0, x)"

    def _f(self, x: np.ndarray) -> np.ndarray:
        return np.maximum(0, x)

    def _f_prime(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        return (x > 0).astype(float)


class LeakyReLU(Activation):
    """Leaky ReLU: y = x for x > 0, slope * x otherwise."""

    def __init__(self, slope: float = 0.01):
        super().__init__()
        self.slope = slope

    @property
    def equation(self) -> str:
        return f"y = max({self.slope} * x, x)"

    def _f(self, x: np.ndarray) -> np.ndarray:
        return np.where(x > 0, x, self.slope * x)

    def _f_prime(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        return np.where(x > 0, 1.0, self.slope)


class Sigmoid(Activation):
    """Sigmoid: y = 1 / (1 + exp(-x)). Backprop: dy/dx = y * (1 - y)."""

    @property
    def equation(self) -> str:
        return "y = 1 / (1 + exp(-x))"

    def _f(self, x: np.ndarray) -> np.ndarray:
        return 1.0 / (1.0 + np.exp(-np.clip(x, -500, 500)))

    def _f_prime(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        return y * (1.0 - y)


class Tanh(Activation):
    """Tanh: dy/dx = 1 - y^2."""

    @property
    def equation(self) -> str:
        return "y = tanh(x)"

    def _f(self, x: np.ndarray) -> np.ndarray:
        return np.tanh(x)

    def _f_prime(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        return 1.0 - y ** 2


ACTIVATIONS = {
    "identity": Identity,
    "relu": ReLU,
    "leaky_relu": LeakyReLU,
    "sigmoid": Sigmoid,
    "tanh": Tanh,
}


def get_activation(name: str) -> Activation:
    try:
        return ACTIVATIONS[name.lower()]()
    except KeyError:
        raise InvalidArgument(
            f"unknown activation {name!r}; choose from {sorted(ACTIVATIONS)}"
        ) from None


# -----------------------------------------------------------------------------
# Loss node: takes (prediction, target), returns scalar; backward gives dL/d(pred)
# -----------------------------------------------------------------------------

class LossNode(Node, ABC):
    """Abstract loss. Forward returns scalar loss; backward returns gradient dL/d(prediction)."""

    def __init__(self):
        self._last_pred = None
        self._last_target = None
        self._pred_shape = None

    def forward(self, prediction: np.ndarray, target: np.ndarray) -> float:
        prediction = np.asarray(prediction, dtype=float)
        target = np.asarray(target, dtype=float)
        if prediction.shape != target.shape:
            raise ShapeMismatch(
                f"prediction shape {prediction.shape} does not match target shape {target.shape}"
            )
        self._pred_shape = prediction.shape
        self._last_pred, _ = _as_batch(prediction)
        self._last_target, _ = _as_batch(target)
        return self._loss_value(self._last_pred, self._last_target)

    def backward(self, upstream: float = 1.0) -> np.ndarray:
        """Upstream is dL/d(loss) = 1 when loss is the final scalar. Returns dL/d(prediction)."""
        if self._last_pred is None:
            raise RuntimeError("backward called before forward")
        grad = self._loss_gradient(self._last_pred, self._last_target) * upstream
        return grad.reshape(self._pred_shape)

    def __call__(self, prediction: np.ndarray, target: np.ndarray) -> float:
        return self.forward(prediction, target)

    @abstractmethod
    def _loss_value(self, pred: np.ndarray, target: np.ndarray) -> float:
        pass

    @abstractmethod
    def _loss_gradient(self, pred: np.ndarray, target: np.ndarray) -> np.ndarray:
        pass


class MSELoss(LossNode):
    """L = mean over the batch of 0.5 * sum((pred - target)^2). dL/d(pred) = (pred - target) / B."""

    @property
    def equation(self) -> str:
        return "L = 1/B * sum_i 0.5 * (y_i - t_i)^T (y_i - t_i)"

    def _loss_value(self, pred: np.ndarray, target: np.ndarray) -> float:
        return float(0.5 * np.sum((pred - target) ** 2) / pred.shape[0])

    def _loss_gradient(self, pred: np.ndarray, target: np.ndarray) -> np.ndarray:
        return (pred - target) / pred.shape[0]


def mse_loss(prediction: np.ndarray, target: np.ndarray) -> float:
    """Stateless form of MSELoss."""
    return MSELoss().forward(prediction, target)
