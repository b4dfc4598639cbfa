"""
Test Objective Functions
========================

Closed-form objectives with hand-derived gradients, used to check the
autograd engine against known answers.

The Rosenbrock function

    f(x, y) = (a - x)^2 + b * (y - x^2)^2

has its global minimum f = 0 at (a, a^2) inside a long curved valley.
"""

from __future__ import annotations
from typing import Sequence, Tuple

import numpy as np

from .node import Node, Numeric


def rosenbrock(x: Sequence[float], a: float = 1.0, b: float = 100.0) -> float:
    """Rosenbrock value at the point ``x = (x0, x1)``."""
    x0, x1 = x
    return (a - x0) ** 2 + b * (x1 - x0 ** 2) ** 2


def rosenbrock_grad(
    x: Sequence[float], a: float = 1.0, b: float = 100.0
) -> np.ndarray:
    """
    Closed-form gradient of ``rosenbrock``.

    Returns:
        Array of shape (2,): [df/dx0, df/dx1].
    """
    x0, x1 = x
    g0 = 4.0 * b * x0 ** 3 + (2.0 - 4.0 * b * x1) * x0 - 2.0 * a
    g1 = 2.0 * b * (x1 - x0 ** 2)
    return np.array([g0, g1], dtype=float)


def rosenbrock_node(
    x0: Node, x1: Node, a: Numeric = 1.0, b: Numeric = 100.0
) -> Node:
    """Build the Rosenbrock function as a computation graph."""
    u = a - x0
    v = x1 - x0 * x0
    return u * u + b * (v * v)


def rosenbrock_autograd(
    x: Sequence[float], a: float = 1.0, b: float = 100.0
) -> Tuple[float, np.ndarray]:
    """
    Value and gradient of the Rosenbrock function via the backward pass.

    Returns:
        (value, gradient) with the gradient ordered like ``x``.
    """
    x0 = Node.start(x[0], label='x0')
    x1 = Node.start(x[1], label='x1')
    y = rosenbrock_node(x0, x1, a, b)
    grads = {pair.node.id: pair.grad for pair in Node.auto_grad(y)}
    return y.value, np.array([grads[x0.id], grads[x1.id]], dtype=float)
