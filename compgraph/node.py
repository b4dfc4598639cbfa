"""
Computation Graph
=================

Reverse-mode automatic differentiation over an immutable graph of scalars.

Every arithmetic expression on ``Node`` objects allocates a new node holding
its value (computed immediately), the operation that produced it, and the
nodes it was computed from. Nothing is ever written back into a node: the
gradients of a root with respect to its leaves are computed by a separate
backward pass and returned to the caller.

    >>> a = Node.start(2.0, label='a')
    >>> b = Node.start(3.0, label='b')
    >>> c = a * b + a
    >>> [(p.node.label, p.grad) for p in Node.auto_grad(c)]
    [('a', 4.0), ('b', 2.0)]

The backward pass visits the graph once in reverse topological order. A node
is processed only after every node that depends on it has pushed its
contribution, so a leaf reached through several paths receives the sum of the
per-path products (the multivariate chain rule).
"""

from __future__ import annotations
import itertools
import logging
from typing import Dict, List, Optional, Sequence, Set, Tuple, Union, TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from .basic_fn import BasicFn


logger = logging.getLogger(__name__)

# Type alias for numeric inputs
Numeric = Union[int, float, np.floating]
NUMERIC_TYPES = (int, float, np.floating, np.integer)

_node_ids = itertools.count()


class GraphError(ValueError):
    """A node was built in violation of the graph's structural invariants."""


class ArityError(GraphError):
    """An operation received or produced the wrong number of values."""


class Node:
    """
    A scalar vertex of the computation graph.

    A node is either a leaf ("start" node: no operation, no parents) or the
    result of an operation applied to its parents. Identity is an integer
    drawn from a process-wide counter, so two nodes with equal values are
    still distinct graph positions.

    Attributes:
        value: The scalar stored in this node (read-only).
        func: The operation that produced this node, None for leaves.
        parents: Node-typed inputs of ``func``, in argument order.
        id: Unique identity of this node.
        label: Optional name for debugging and visualization.
    """

    __slots__ = ('_value', '_func', '_parents', '_args', '_id', 'label')

    def __init__(
        self,
        value: Numeric,
        parents: Sequence[Node] = (),
        func: Optional[BasicFn] = None,
        label: str = '',
        _args: Optional[Tuple[Union[Node, float], ...]] = None
    ) -> None:
        """
        Initialize a node.

        Args:
            value: The scalar value to store.
            parents: Nodes this one was computed from (internal use).
            func: The operation that produced this node (internal use).
            label: Optional name for debugging.
            _args: Full operand list including constants (internal use).

        Raises:
            TypeError: If value is not numeric.
            GraphError: If exactly one of parents/func is given.
        """
        if not isinstance(value, NUMERIC_TYPES):
            raise TypeError(
                f"Node value must be numeric, got {type(value).__name__}"
            )
        parents = tuple(parents)
        if bool(parents) != (func is not None):
            raise GraphError(
                "a node has parents if and only if it has an operation "
                f"(parents={len(parents)}, func={func!r})"
            )
        if _args is None:
            _args = parents
        elif tuple(a for a in _args if isinstance(a, Node)) != parents:
            raise GraphError("parents must be the node-typed operands in order")

        self._value: float = float(value)
        self._func = func
        self._parents: Tuple[Node, ...] = parents
        self._args = _args
        self._id: int = next(_node_ids)
        self.label: str = label

    @classmethod
    def start(cls, value: Numeric, label: str = '') -> Node:
        """Create a leaf node."""
        return cls(value, label=label)

    def __repr__(self) -> str:
        op = repr(self._func) if self._func is not None else 'none'
        name = f"{self.label}=" if self.label else ''
        # Parents by label or id only
        parents = ', '.join(p.label or f'#{p.id}' for p in self._parents)
        return f"Node({op}, {name}{self._value:.3f}, parents=[{parents}])"

    # =========================================================================
    # Read-only state
    # =========================================================================

    @property
    def value(self) -> float:
        """The scalar stored in this node."""
        return self._value

    @property
    def func(self) -> Optional[BasicFn]:
        """The operation that produced this node, None for leaves."""
        return self._func

    @property
    def parents(self) -> Tuple[Node, ...]:
        """Node-typed inputs of the operation, in argument order."""
        return self._parents

    @property
    def id(self) -> int:
        """Unique identity of this node."""
        return self._id

    def item(self) -> float:
        """Return the scalar value."""
        return self._value

    def is_start(self) -> bool:
        """True for leaf nodes."""
        return not self._parents and self._func is None

    def grad_value(self) -> Optional[Tuple[float, ...]]:
        """
        Local partials of this node with respect to each of its parents.

        The operation's gradient is evaluated at the full operand list, then
        the partials at constant positions are dropped.

        Returns:
            One partial per parent, or None for a leaf.

        Raises:
            ArityError: If the partial count does not match the parent count.
        """
        if self._func is None:
            return None
        values = [a.value if isinstance(a, Node) else a for a in self._args]
        partials = self._func.gradient(values)
        grads = tuple(
            g for a, g in zip(self._args, partials) if isinstance(a, Node)
        )
        if len(grads) != len(self._parents):
            raise ArityError(
                f"{self._func!r} produced {len(grads)} partial(s) "
                f"for {len(self._parents)} parent(s)"
            )
        return grads

    # =========================================================================
    # Arithmetic Operations
    # =========================================================================

    def __add__(self, other: Union[Node, Numeric]) -> Node:
        return _fns.SUM.apply((self, other))

    def __radd__(self, other: Numeric) -> Node:
        return _fns.SUM.apply((other, self))

    def __sub__(self, other: Union[Node, Numeric]) -> Node:
        return _fns.SUB.apply((self, other))

    def __rsub__(self, other: Numeric) -> Node:
        return _fns.SUB.apply((other, self))

    def __mul__(self, other: Union[Node, Numeric]) -> Node:
        return _fns.PRODUCT.apply((self, other))

    def __rmul__(self, other: Numeric) -> Node:
        return _fns.PRODUCT.apply((other, self))

    def __truediv__(self, other: Union[Node, Numeric]) -> Node:
        return _fns.DIV.apply((self, other))

    def __rtruediv__(self, other: Numeric) -> Node:
        return _fns.DIV.apply((other, self))

    def __neg__(self) -> Node:
        return _fns.NEG.apply((self,))

    # =========================================================================
    # Elementary Functions
    # =========================================================================

    def exp(self) -> Node:
        """Exponential: e^self."""
        return _fns.EXP.apply((self,))

    def ln(self) -> Node:
        """
        Natural logarithm: ln(self)

        Raises:
            ValueError: If self.value <= 0 (math domain error).
        """
        return _fns.LN.apply((self,))

    log = ln

    def sin(self) -> Node:
        return _fns.SIN.apply((self,))

    def cos(self) -> Node:
        return _fns.COS.apply((self,))

    # =========================================================================
    # Backpropagation
    # =========================================================================

    @staticmethod
    def auto_grad(root: Node) -> List[NodeGradPair]:
        """
        Gradient of ``root`` with respect to every leaf it depends on.

        The algorithm:
        1. Order the graph topologically (root last)
        2. Seed d(root)/d(root) = 1
        3. Walk the order backward; each non-leaf multiplies its local
           partials by its accumulated gradient and adds the products to
           its parents' accumulators
        4. Report the leaves, sorted by node id

        The graph is only read, so repeated calls return identical results.

        Args:
            root: The output node.

        Returns:
            One NodeGradPair per distinct reachable leaf.

        Example:
            >>> x = Node.start(3.0)
            >>> y = x * x + 2 * x
            >>> Node.auto_grad(y)[0].grad  # dy/dx = 2x + 2
            8.0
        """
        topo = topological_sort(root)
        grads: Dict[int, float] = {root.id: 1.0}

        for node in reversed(topo):
            if node.is_start():
                continue
            upstream = grads[node.id]
            for parent, local in zip(node.parents, node.grad_value()):
                grads[parent.id] = grads.get(parent.id, 0.0) + local * upstream

        leaves = [NodeGradPair(n, grads[n.id]) for n in topo if n.is_start()]
        leaves.sort(key=lambda pair: pair.node.id)
        logger.debug(
            "auto_grad: visited %d node(s), reporting %d leaf gradient(s)",
            len(topo), len(leaves)
        )
        return leaves


class NodeGradPair:
    """A leaf node and the accumulated gradient of the root with respect to it."""

    __slots__ = ('node', 'grad')

    def __init__(self, node: Node, grad: float) -> None:
        self.node = node
        self.grad = grad

    def __repr__(self) -> str:
        return f"NodeGradPair(node={self.node.id}, grad={self.grad:.6f})"

    def __iter__(self):
        # Allows `for node, grad in auto_grad(y)`
        yield self.node
        yield self.grad


def auto_grad(root: Node) -> List[NodeGradPair]:
    """Module-level alias for ``Node.auto_grad``."""
    return Node.auto_grad(root)


def grad_map(root: Node) -> Dict[int, float]:
    """
    Leaf gradients of ``root`` keyed by node id.

    Example:
        >>> x = Node.start(2.0)
        >>> grad_map(x * 5.0)[x.id]
        5.0
    """
    return {pair.node.id: pair.grad for pair in Node.auto_grad(root)}


def topological_sort(root: Node) -> List[Node]:
    """
    Compute topological ordering of the computation graph rooted at `root`.

    Every node appears once, after all of its parents; the root is last.
    Uses an explicit stack so deep expression chains do not hit the
    recursion limit.

    Args:
        root: The root node of the computation graph.

    Returns:
        List of Nodes in topological order.
    """
    topo: List[Node] = []
    visited: Set[int] = set()
    stack: List[Tuple[Node, bool]] = [(root, False)]

    while stack:
        node, expanded = stack.pop()
        if expanded:
            topo.append(node)
            continue
        if node.id in visited:
            continue
        visited.add(node.id)
        stack.append((node, True))
        for parent in reversed(node.parents):
            if parent.id not in visited:
                stack.append((parent, False))

    return topo


def draw_graph(root: Node, format: str = 'text') -> str:
    """
    Generate a visualization of the computation graph.

    Args:
        root: Root node of the graph to visualize.
        format: 'text' for a listing, 'dot' for Graphviz DOT format.

    Returns:
        String representation of the graph.

    Raises:
        ValueError: If format is not 'text' or 'dot'.
    """
    if format not in ('text', 'dot'):
        raise ValueError(f"unknown graph format: {format!r}")

    nodes = topological_sort(root)
    index = {n.id: i for i, n in enumerate(nodes)}

    def name(n: Node) -> str:
        return n.label if n.label else f'v{index[n.id]}'

    if format == 'dot':
        lines = ['digraph G {', '  rankdir=LR;']
        for node in nodes:
            nid = index[node.id]
            lines.append(
                f'  n{nid} [label="{name(node)}\\n'
                f'value={node.value:.4f}", shape=box];'
            )
            if node.func is not None:
                op_id = f'op{nid}'
                lines.append(f'  {op_id} [label="{node.func!r}", shape=circle];')
                lines.append(f'  {op_id} -> n{nid};')
                for parent in node.parents:
                    lines.append(f'  n{index[parent.id]} -> {op_id};')
        lines.append('}')
        return '\n'.join(lines)

    lines = ['Computation Graph:', '=' * 50]
    for node in reversed(nodes):
        op_str = ''
        if node.func is not None:
            op_str = f' = {node.func!r}(' + ', '.join(name(p) for p in node.parents) + ')'
        lines.append(f'{name(node):>10}: value={node.value:>10.4f}{op_str}')
    return '\n'.join(lines)


# Operation singletons live in basic_fn, which imports Node from here.
from . import basic_fn as _fns  # noqa: E402
