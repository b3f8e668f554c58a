from typing import Callable, Sequence

import jax
import jax.numpy as jnp
import numpy as np
import sympy as sp

from hybridocp.results import RelaxationResults


def value_function_callable(expr: sp.Expr, t: sp.Symbol, x: Sequence[sp.Symbol]) -> Callable:
    """Compile a solved value function into a batched JAX function.

    Args:
        expr: Polynomial in ``t`` and ``x`` with numeric coefficients.
        t: Time indeterminate.
        x: State indeterminates of the mode.

    Returns:
        callable: ``fn(t, X)`` with ``t`` of shape ``(N,)`` and ``X`` of shape
        ``(N, n)``, returning an array of shape ``(N,)``.
    """
    n = len(x)
    fn = sp.lambdify((t, *x), expr, modules=[jnp])

    def single(ti, xi):
        # zeros_like keeps constant value functions batched
        return fn(ti, *[xi[k] for k in range(n)]) + jnp.zeros_like(ti)

    return jax.jit(jax.vmap(single, in_axes=(0, 0)))


def evaluate_value_function(results: RelaxationResults, mode: int, t, x) -> np.ndarray:
    """Evaluate ``v_mode`` on a batch of ``(t, x)`` points.

    Args:
        results: Output of ``HybridOCPProblem.solve``.
        mode: Mode index.
        t: Times, scalar or shape ``(N,)``.
        x: States, shape ``(N, n)``. A flat array is read as ``(N, 1)`` for
            one-dimensional modes and as a single state otherwise.

    Returns:
        np.ndarray: Values of shape ``(N,)``.
    """
    states = results.states[mode]
    X = jnp.asarray(x, dtype=jnp.float32)
    if X.ndim < 2:
        # a flat array is a batch of scalar states for 1-D modes, a single state otherwise
        X = X.reshape(-1, 1) if len(states) == 1 else X.reshape(1, -1)
    if X.shape[1] != len(states):
        raise ValueError(f"Expected states of dimension {len(states)}, got {X.shape[1]}")
    T = jnp.broadcast_to(jnp.asarray(t, dtype=jnp.float32), (X.shape[0],))

    fn = value_function_callable(results.value_functions[mode], results.t, states)
    return np.asarray(fn(T, X))


def lower_bound(results: RelaxationResults) -> float:
    """Certified lower bound on the optimal cost of the hybrid OCP."""
    return float(results.pval)
