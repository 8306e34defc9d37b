"""Exceptions raised by simple_nn."""


class SimpleNNError(Exception):
    """Base class for every error raised by this package."""


class InvalidArgument(SimpleNNError, ValueError):
    """Bad dimensions, bad split fractions or non-positive counts."""


class ShapeMismatch(SimpleNNError, ValueError):
    """Arrays with incompatible shapes met in a forward, backward or loss call."""


def require_positive(name: str, value) -> None:
    if value is None or value <= 0:
        raise InvalidArgument(f"{name} must be positive, got {value!r}")
