"""compgraph: reverse-mode autograd over an immutable scalar computation graph."""

from .node import (
    Node,
    NodeGradPair,
    GraphError,
    ArityError,
    auto_grad,
    grad_map,
    topological_sort,
    draw_graph,
)
from .basic_fn import BasicFn
from .objectives import rosenbrock, rosenbrock_grad, rosenbrock_node, rosenbrock_autograd

__all__ = [
    "Node",
    "NodeGradPair",
    "GraphError",
    "ArityError",
    "BasicFn",
    "auto_grad",
    "grad_map",
    "topological_sort",
    "draw_graph",
    "rosenbrock",
    "rosenbrock_grad",
    "rosenbrock_node",
    "rosenbrock_autograd",
]
