"""Lie (directional) derivatives of scalar polynomials along vector fields.

For a control-affine mode ``xdot = f(x) + g(x) u`` and a value function
candidate ``v(t, x)`` the relaxation needs::

    Lf v = dv/dt + (dv/dx) f        drift part, scalar
    Lg v = (dv/dx) g                input part, 1 x m row
    L v  = Lf v + (Lg v) u          derivative along the controlled flow
"""

from typing import Sequence

import sympy as sp


def gradient(v, x: Sequence[sp.Symbol]) -> sp.Matrix:
    """Row vector ``[dv/dx_1, ..., dv/dx_n]``."""
    return sp.Matrix([[sp.diff(v, xk) for xk in x]]) if len(x) else sp.zeros(1, 0)


def lie_derivative(v, x: Sequence[sp.Symbol], field: sp.Matrix):
    """Directional derivative of ``v`` along ``field``.

    A column ``field`` (n x 1) gives a scalar; a matrix ``field`` (n x m) gives
    the 1 x m row of derivatives along each of its columns.
    """
    field = sp.Matrix(field)
    result = gradient(v, x) * field
    if field.shape[1] == 1:
        return sp.expand(result[0, 0])
    return result.applyfunc(sp.expand)


def time_lie_derivative(v, t: sp.Symbol, x: Sequence[sp.Symbol], f: sp.Matrix):
    """``dv/dt + (dv/dx) f`` for the time-varying candidate ``v(t, x)``."""
    return sp.expand(sp.diff(v, t) + lie_derivative(v, x, sp.Matrix(f)))
