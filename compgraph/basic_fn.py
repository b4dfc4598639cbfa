"""
Operation Registry
==================

A ``BasicFn`` is the smallest differentiable building block of a computation
graph: a scalar function of N inputs paired with the function returning its N
partial derivatives.

    forward:  (x_1, ..., x_N) -> f(x_1, ..., x_N)
    gradient: (x_1, ..., x_N) -> (df/dx_1, ..., df/dx_N)

Applying a ``BasicFn`` to a mix of nodes and plain numbers produces a new
``Node``. The numbers take part in the forward value but are not parents:
there is nothing to differentiate with respect to a literal.

    >>> x = Node.start(2.0)
    >>> y = BasicFn.product()(x, 3.0)
    >>> y.value
    6.0
    >>> y.parents == (x,)
    True

Operations hold no state, so one instance is shared by every node built from
it. The built-in operations below are module-level singletons.
"""

from __future__ import annotations
import math
from typing import Callable, List, Optional, Sequence, Tuple, Union

from .node import NUMERIC_TYPES, ArityError, Node, Numeric


# Evaluator signatures
ValueFn = Callable[[Sequence[float]], float]
GradFn = Callable[[Sequence[float]], Sequence[float]]

FnInput = Union[Node, Numeric]


class BasicFn:
    """
    An immutable scalar operation with its gradient.

    Attributes:
        info: Human-readable label used in ``repr`` and graph drawings.
        arity: Exact number of inputs, or None for variable arity.
        min_arity: Smallest accepted number of inputs when ``arity`` is None.

    Example:
        >>> square = BasicFn(lambda v: v[0] ** 2, lambda v: [2 * v[0]],
        ...                  info='square', arity=1)
        >>> square(Node.start(3.0)).value
        9.0
    """

    __slots__ = ('_func', '_grad', 'info', 'arity', 'min_arity')

    def __init__(
        self,
        func: ValueFn,
        grad: GradFn,
        info: Optional[str] = None,
        arity: Optional[int] = None,
        min_arity: int = 1
    ) -> None:
        if not callable(func) or not callable(grad):
            raise TypeError("BasicFn evaluators must be callable")
        if arity is not None and arity < 1:
            raise ValueError(f"arity must be positive, got {arity}")

        object.__setattr__(self, '_func', func)
        object.__setattr__(self, '_grad', grad)
        object.__setattr__(self, 'info', info)
        object.__setattr__(self, 'arity', arity)
        object.__setattr__(self, 'min_arity', min_arity)

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __repr__(self) -> str:
        if self.info:
            return self.info
        return "BasicFn(<unnamed>)"

    def with_info(self, info: str) -> BasicFn:
        """Return a copy of this operation carrying a new label."""
        return BasicFn(self._func, self._grad, info, self.arity, self.min_arity)

    def value_fn(self) -> ValueFn:
        """Return the forward evaluator."""
        return self._func

    def grad_fn(self) -> GradFn:
        """Return the gradient evaluator."""
        return self._grad

    # =========================================================================
    # Evaluation
    # =========================================================================

    def check_arity(self, count: int) -> None:
        """
        Verify that ``count`` inputs are acceptable for this operation.

        Raises:
            ArityError: If the count violates the declared arity.
        """
        if self.arity is not None:
            if count != self.arity:
                raise ArityError(
                    f"{self!r} takes exactly {self.arity} input(s), got {count}"
                )
        elif count < self.min_arity:
            raise ArityError(
                f"{self!r} takes at least {self.min_arity} input(s), got {count}"
            )

    def evaluate(self, values: Sequence[float]) -> float:
        """Apply the forward evaluator to resolved input values."""
        self.check_arity(len(values))
        return float(self._func(values))

    def gradient(self, values: Sequence[float]) -> Tuple[float, ...]:
        """
        Apply the gradient evaluator to resolved input values.

        Returns:
            One partial derivative per input.

        Raises:
            ArityError: If the evaluator returns the wrong number of partials.
        """
        self.check_arity(len(values))
        partials = tuple(float(p) for p in self._grad(values))
        if len(partials) != len(values):
            raise ArityError(
                f"{self!r} gradient returned {len(partials)} partial(s) "
                f"for {len(values)} input(s)"
            )
        return partials

    # =========================================================================
    # Node-producing application
    # =========================================================================

    def apply(self, inputs: Sequence[FnInput], label: str = '') -> Node:
        """
        Build a new node by applying this operation to ``inputs``.

        Args:
            inputs: Nodes or plain numbers, in argument order.
            label: Optional name for the new node.

        Returns:
            A node whose value is computed now and whose parents are the
            node-typed inputs in their original order.

        Raises:
            TypeError: If an input is neither a Node nor a number.
            ArityError: If the input count violates the declared arity.
        """
        args = tuple(_as_operand(x) for x in inputs)
        values = [a.value if isinstance(a, Node) else a for a in args]
        value = self.evaluate(values)
        parents = tuple(a for a in args if isinstance(a, Node))
        return Node(value, parents, self, label=label, _args=args)

    def __call__(self, *inputs: FnInput) -> Node:
        return self.apply(inputs)

    def to_gen_node_fn(self) -> Callable[[Sequence[FnInput]], Node]:
        """Return a function mapping an input sequence to a new node."""
        return self.apply

    # =========================================================================
    # Built-in operations
    # =========================================================================

    @classmethod
    def exp(cls) -> BasicFn:
        return EXP

    @classmethod
    def ln(cls) -> BasicFn:
        return LN

    @classmethod
    def sin(cls) -> BasicFn:
        return SIN

    @classmethod
    def cos(cls) -> BasicFn:
        return COS

    @classmethod
    def neg(cls) -> BasicFn:
        return NEG

    @classmethod
    def sum(cls) -> BasicFn:
        return SUM

    @classmethod
    def sub(cls) -> BasicFn:
        return SUB

    @classmethod
    def product(cls) -> BasicFn:
        return PRODUCT

    @classmethod
    def div(cls) -> BasicFn:
        return DIV


def _as_operand(x: object) -> Union[Node, float]:
    if isinstance(x, Node):
        return x
    if isinstance(x, NUMERIC_TYPES):
        return float(x)
    raise TypeError(
        f"operation inputs must be Node or numeric, got {type(x).__name__}"
    )


def _product_grad(values: Sequence[float]) -> List[float]:
    # d/dx_i prod(x) = product of every other input; no division so zeros work
    grads = []
    for i in range(len(values)):
        p = 1.0
        for j, v in enumerate(values):
            if j != i:
                p *= v
        grads.append(p)
    return grads


EXP = BasicFn(
    lambda v: math.exp(v[0]),
    lambda v: [math.exp(v[0])],
    info='exp', arity=1
)

LN = BasicFn(
    lambda v: math.log(v[0]),
    lambda v: [1.0 / v[0]],
    info='ln', arity=1
)

SIN = BasicFn(
    lambda v: math.sin(v[0]),
    lambda v: [math.cos(v[0])],
    info='sin', arity=1
)

COS = BasicFn(
    lambda v: math.cos(v[0]),
    lambda v: [-math.sin(v[0])],
    info='cos', arity=1
)

NEG = BasicFn(
    lambda v: -v[0],
    lambda v: [-1.0],
    info='neg', arity=1
)

SUM = BasicFn(
    lambda v: sum(v),
    lambda v: [1.0] * len(v),
    info='sum', min_arity=2
)

SUB = BasicFn(
    lambda v: v[0] - v[1],
    lambda v: [1.0, -1.0],
    info='sub', arity=2
)

PRODUCT = BasicFn(
    lambda v: math.prod(v),
    _product_grad,
    info='product', min_arity=2
)

DIV = BasicFn(
    lambda v: v[0] / v[1],
    lambda v: [1.0 / v[1], -v[0] / v[1] ** 2],
    info='div', arity=2
)
