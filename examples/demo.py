#!/usr/bin/env python3
"""
compgraph Demo: Gradients from a Computation Graph
==================================================

This demo shows the complete workflow:
1. Build expressions from leaf nodes; values are computed immediately
2. Run one backward pass to get the gradient at every leaf
3. Plug in a custom operation
4. Render the computation graph

Run: python examples/demo.py
"""

import logging
import math

from compgraph import BasicFn, Node, draw_graph, rosenbrock_autograd, rosenbrock_grad


def demo_gradient_computation():
    """
    Demonstrate basic gradient computation.

    Shows how the backward pass reports d(root)/d(leaf) for every leaf.
    """
    print("=" * 60)
    print("DEMO 1: Automatic Gradient Computation")
    print("=" * 60)
    print()

    print("Computing gradients for y = x * sin(x) at x = pi/3")
    print()

    x0 = math.pi / 3
    x = Node.start(x0, label='x')
    y = x * x.sin()
    (pair,) = Node.auto_grad(y)

    print(f"y(pi/3)     = {y.value:.6f}")
    print(f"dy/dx       = {pair.grad:.6f}")
    print(f"(Analytical: sin(x) + x cos(x) = {math.sin(x0) + x0 * math.cos(x0):.6f})")
    print()

    print("Computing gradients for g(x, y, z) = exp(sin(x+y) + cos(yz) ln(x^2 - z^2))")
    print()

    x = Node.start(1.2, label='x')
    y = Node.start(3.0, label='y')
    z = Node.start(0.5, label='z')
    g = ((x + y).sin() + (y * z).cos() * (x * x - z * z).ln()).exp()

    print(f"g(1.2, 3.0, 0.5) = {g.value:.6f}")
    for leaf, grad in Node.auto_grad(g):
        print(f"dg/d{leaf.label} = {grad:.6f}")
    print()


def demo_custom_operation():
    """
    Extend the registry with a user-defined operation.
    """
    print("=" * 60)
    print("DEMO 2: Custom Operation")
    print("=" * 60)
    print()

    max_fn = BasicFn(
        lambda v: max(v[0], v[1]),
        lambda v: [1.0, 0.0] if v[0] > v[1] else [0.0, 1.0],
        arity=2,
    ).with_info('max')

    a = Node.start(3.0, label='a')
    b = Node.start(2.0, label='b')
    y = (a * b + max_fn(a, 2.0)).ln()

    print("Expression: y = ln(a*b + max(a, 2))")
    print(f"At a=3, b=2: y = ln(9) = {y.value:.6f}")
    for leaf, grad in Node.auto_grad(y):
        print(f"  dy/d{leaf.label} = {grad:.6f}")
    print("The constant 2 is not a leaf, so it gets no gradient.")
    print()


def demo_objective():
    """
    Compare autograd with the hand-derived Rosenbrock gradient.
    """
    print("=" * 60)
    print("DEMO 3: Rosenbrock Gradient")
    print("=" * 60)
    print()

    point = (-2.0, -1.0)
    value, grad = rosenbrock_autograd(point, a=1.0, b=5.0)
    print(f"f{point} = {value:.4f}")
    print(f"autograd gradient:    {grad}")
    print(f"closed-form gradient: {rosenbrock_grad(point, a=1.0, b=5.0)}")
    print()


def demo_graph_visualization():
    """
    Show the computation graph.
    """
    print("=" * 60)
    print("DEMO 4: Computation Graph Visualization")
    print("=" * 60)
    print()

    x = Node.start(2.0, label='x')
    y = Node.start(3.0, label='y')
    z = x * y
    z.label = 'z=x*y'
    w = z + x
    w.label = 'w=z+x'
    out = w.exp()
    out.label = 'out=exp(w)'

    print("Computation Graph (text format):")
    print(draw_graph(out, format='text'))
    print()
    print("Computation Graph (dot format):")
    print(draw_graph(out, format='dot'))
    print()


def main():
    """Run all demos."""
    logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    demo_gradient_computation()
    demo_custom_operation()
    demo_objective()
    demo_graph_visualization()

    print("=" * 60)
    print("ALL DEMOS COMPLETE")
    print("=" * 60)


if __name__ == "__main__":
    main()
