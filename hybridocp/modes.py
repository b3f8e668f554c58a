"""Per-mode setup: indeterminates, value function template and its derivatives."""

from dataclasses import dataclass
from typing import List, Tuple

import sympy as sp

from hybridocp.hybrid_system import Mode
from hybridocp.sos.program import SOSProgram
from hybridocp.symbolic.lie import gradient, lie_derivative, time_lie_derivative
from hybridocp.symbolic.polynomial import monomials


@dataclass
class ModeVariables:
    """Symbolic objects derived for one mode.

    Attributes:
        index: Mode index.
        x: State indeterminates.
        u: Control indeterminates.
        v: Value function template ``v_i(t, x)``, free polynomial of degree ``d``.
        v_coefficients: Decision symbols of ``v``.
        v_basis: Monomials of ``(t, x)`` that ``v`` is built on.
        vT: ``v`` at the final time ``t = T``.
        dvdt: ``dv/dt``.
        dvdx: ``dv/dx`` as a ``1 x n`` row.
        Lfv: ``dv/dt + (dv/dx) f``.
        Lgv: ``(dv/dx) g`` as a ``1 x m`` row.
        Lv: ``Lfv + Lgv u``.
    """

    index: int
    x: Tuple[sp.Symbol, ...]
    u: Tuple[sp.Symbol, ...]
    v: sp.Expr
    v_coefficients: List[sp.Symbol]
    v_basis: List[sp.Expr]
    vT: sp.Expr
    dvdt: sp.Expr
    dvdx: sp.Matrix
    Lfv: sp.Expr
    Lgv: sp.Matrix
    Lv: sp.Expr


def setup_mode(
    program: SOSProgram,
    t: sp.Symbol,
    mode: Mode,
    index: int,
    degree: int,
    horizon: float,
) -> ModeVariables:
    """Register mode ``index`` in ``program`` and derive its Lie derivative terms.

    Args:
        program: SOS program receiving the indeterminates and the template coefficients.
        t: Time indeterminate (already registered).
        mode: Mode data.
        index: Mode index, used to name the template coefficients.
        degree: Relaxation degree ``d``.
        horizon: Final time ``T``.
    """
    program.with_indeterminate(mode.x)
    program.with_indeterminate(mode.u)

    basis = monomials([t, *mode.x], degree)
    v, coeffs = program.new_free_poly(basis, f"v{index}")

    vT = sp.expand(v.subs(t, horizon))
    dvdt = sp.diff(v, t)
    dvdx = gradient(v, mode.x)
    Lfv = time_lie_derivative(v, t, mode.x, mode.f)
    Lgv = lie_derivative(v, mode.x, mode.g) if mode.m else sp.zeros(1, 0)
    if mode.m == 1:
        Lgv = sp.Matrix([[Lgv]])
    Lv = sp.expand(Lfv + (Lgv * sp.Matrix(mode.u))[0, 0]) if mode.m else Lfv

    return ModeVariables(
        index=index,
        x=mode.x,
        u=mode.u,
        v=v,
        v_coefficients=coeffs,
        v_basis=basis,
        vT=vT,
        dvdt=dvdt,
        dvdx=dvdx,
        Lfv=Lfv,
        Lgv=Lgv,
        Lv=Lv,
    )
