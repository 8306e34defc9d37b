import numpy as np

from .errors import ShapeMismatch
from .plotting import plot_iterations

# -----------------------------------------------------------------------------
# Forward pass: y = W @ x (+ b), then loss
# -----------------------------------------------------------------------------


def forward_pass(x, W, target, bias=None):
    """y = W @ x (+ bias); compute diff and loss 0.5 * ||y - target||^2."""
    x = np.asarray(x, dtype=float)
    W = np.asarray(W, dtype=float)
    target = np.asarray(target, dtype=float)
    if W.ndim != 2 or W.shape[1] != x.shape[0]:
        raise ShapeMismatch(f"W with shape {W.shape} cannot multiply x with shape {x.shape}")
    y = W @ x
    if bias is not None:
        y = y + bias
    if y.shape != target.shape:
        raise ShapeMismatch(f"output shape {y.shape} does not match target shape {target.shape}")
    diff = y - target
    loss = 0.5 * float(diff @ diff)
    return y, diff, loss


# -----------------------------------------------------------------------------
# Backward pass: gradients for W and bias
# -----------------------------------------------------------------------------

def backward_pass(x, y, target):
    """Compute dL/dW and dL/db from the forward quantities."""
    dLdy = np.asarray(y, dtype=float) - np.asarray(target, dtype=float)
    # chain rule: dL/dW_ij = (dL/dy_i) * (dy_i/dW_ij) = (dL/dy_i) * x_j, i.e. (y - target) outer x
    dLdW = np.outer(dLdy, x)
    # dy/db = I
    dLdb = dLdy.copy()
    return dLdW, dLdb


def gradient_step(x, W, target, lr, bias=None):
    """One gradient-descent step on a single sample. Returns new (W, bias); inputs are left untouched."""
    y, _, _ = forward_pass(x, W, target, bias)
    dLdW, dLdb = backward_pass(x, y, target)
    W_new = np.asarray(W, dtype=float) - lr * dLdW
    bias_new = None if bias is None else np.asarray(bias, dtype=float) - lr * dLdb
    return W_new, bias_new


def main(num_iters=100, learning_rate=0.1, plot=True):
    # The hand-derived example: y = W x with W = [[1, 1]], x = [1, 2], target = [5]
    x = np.asarray([1.0, 2.0])
    W = np.asarray([[1.0, 1.0]])
    target = np.asarray([5.0])
    losses = []

    for _ in range(num_iters):
        _, _, loss = forward_pass(x, W, target)
        losses.append(loss)
        W, _ = gradient_step(x, W, target, learning_rate)

    y, diff, loss = forward_pass(x, W, target)
    print("===After manual gradient descent===")
    print(f"learned W: {W}")
    print(f"predicted: {y}")
    print(f"ground truth: {target}")
    print(f"difference {diff}")
    print(f"final loss: {loss}")

    if plot:
        plot_iterations(losses, title="Manual gradient descent", plot_type="manual")
    return W, losses
