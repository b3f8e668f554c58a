"""Conic backends for sum-of-squares programs.

An ``SOSProgram`` is backend agnostic: it holds the polynomial certificates and
their monomial bases. A solver turns every SOS expression into a symmetric Gram
matrix constrained to the PSD cone plus one coefficient-matching equality, adds
the linear objective in the free template coefficients, and solves once.

Current Implementations:
    CVXPy Solver: The default backend, built with CVXPy's modeling language and
        solved by any installed SDP-capable solver (CLARABEL, SCS, MOSEK, ...).

The duals of the coefficient-matching equalities are returned per SOS
expression, indexed by the monomials of its matching rows; for the dynamics
constraint of a mode they are the moments of its occupation measure.
"""

from .base import ConicSOSSolver, SOSSolution
from .cvxpy import CVXPySolver

__all__ = ["ConicSOSSolver", "SOSSolution", "CVXPySolver"]
