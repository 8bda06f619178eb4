"""Mathematical primitives for the StableSwap engine.

- compute_d / compute_y: Newton solvers for the StableSwap invariant
- dynamic_fee: off-peg fee scaling
"""

from stableswap.math.invariant import MAX_ITERATIONS, compute_d, compute_y, dynamic_fee

__all__ = ["MAX_ITERATIONS", "compute_d", "compute_y", "dynamic_fee"]
