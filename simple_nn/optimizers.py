"""
Update rules mapping (parameters, gradients) to updated parameters.

Every optimizer mutates the parameter arrays in place so the model sees the new
values immediately. Per-parameter state (velocities, moments) is keyed by the
parameter's position in the list, so always pass parameters in the same order.
"""
from abc import ABC, abstractmethod

import numpy as np

from .errors import InvalidArgument, ShapeMismatch, require_positive


class Optimizer(ABC):
    def __init__(self, lr: float):
        require_positive("learning rate", lr)
        self.lr = lr
        self.t = 0  # number of update() calls

    def update(self, params: list[np.ndarray], grads: list[np.ndarray]) -> None:
        if len(params) != len(grads):
            raise InvalidArgument(f"got {len(params)} parameters but {len(grads)} gradients")
        for p, g in zip(params, grads):
            if p.shape != g.shape:
                raise ShapeMismatch(f"parameter shape {p.shape} does not match gradient shape {g.shape}")
        self.t += 1
        for i, (p, g) in enumerate(zip(params, grads)):
            self._step(i, p, np.asarray(g, dtype=float))

    @abstractmethod
    def _step(self, i: int, param: np.ndarray, grad: np.ndarray) -> None:
        """Apply the rule to parameter number i in place."""

    def reset(self) -> None:
        self.t = 0


class Descent(Optimizer):
    """Plain gradient descent: p -= lr * g."""

    def __init__(self, lr: float = 0.1):
        super().__init__(lr)

    def _step(self, i, param, grad):
        param -= self.lr * grad

    def __repr__(self):
        return f"Descent({self.lr})"


class Momentum(Optimizer):
    """v = rho * v - lr * g; p += v."""

    def __init__(self, lr: float = 0.01, rho: float = 0.9):
        super().__init__(lr)
        self.rho = rho
        self._velocity: dict[int, np.ndarray] = {}

    def _step(self, i, param, grad):
        v = self._velocity.get(i)
        if v is None:
            v = np.zeros_like(param)
        v = self.rho * v - self.lr * grad
        self._velocity[i] = v
        param += v

    def reset(self):
        super().reset()
        self._velocity.clear()

    def __repr__(self):
        return f"Momentum({self.lr}, {self.rho})"


class Adam(Optimizer):
    """Adaptive moment estimation with bias-corrected first and second moments."""

    def __init__(self, lr: float = 1e-3, betas: tuple[float, float] = (0.9, 0.999), eps: float = 1e-8):
        super().__init__(lr)
        self.betas = betas
        self.eps = eps
        self._m: dict[int, np.ndarray] = {}
        self._v: dict[int, np.ndarray] = {}

    def _moments(self, i, param, grad):
        b1, b2 = self.betas
        m = b1 * self._m.get(i, np.zeros_like(param)) + (1 - b1) * grad
        v = b2 * self._v.get(i, np.zeros_like(param)) + (1 - b2) * grad ** 2
        self._m[i], self._v[i] = m, v
        return m, v

    def _step(self, i, param, grad):
        b1, b2 = self.betas
        m, v = self._moments(i, param, grad)
        m_hat = m / (1 - b1 ** self.t)
        v_hat = v / (1 - b2 ** self.t)
        param -= self.lr * m_hat / (np.sqrt(v_hat) + self.eps)

    def reset(self):
        super().reset()
        self._m.clear()
        self._v.clear()

    def __repr__(self):
        return f"{self.__class__.__name__}({self.lr}, {self.betas})"


class RAdam(Adam):
    """Rectified Adam: plain momentum steps until the variance estimate is trustworthy (rho_t > 4)."""

    def _step(self, i, param, grad):
        b1, b2 = self.betas
        m, v = self._moments(i, param, grad)
        rho_inf = 2 / (1 - b2) - 1
        rho_t = rho_inf - 2 * self.t * b2 ** self.t / (1 - b2 ** self.t)
        m_hat = m / (1 - b1 ** self.t)
        if rho_t > 4:
            r = np.sqrt((rho_t - 4) * (rho_t - 2) * rho_inf / ((rho_inf - 4) * (rho_inf - 2) * rho_t))
            v_hat = np.sqrt(v / (1 - b2 ** self.t))
            param -= self.lr * r * m_hat / (v_hat + self.eps)
        else:
            param -= self.lr * m_hat


OPTIMIZERS = {
    "descent": Descent,
    "momentum": Momentum,
    "adam": Adam,
    "radam": RAdam,
}


def get_optimizer(name: str, **kwargs) -> Optimizer:
    try:
        cls = OPTIMIZERS[name.lower()]
    except KeyError:
        raise InvalidArgument(f"unknown optimizer {name!r}; choose from {sorted(OPTIMIZERS)}") from None
    return cls(**kwargs)
