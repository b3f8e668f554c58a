"""Symbolic polynomial layer (sympy based).

``polynomial`` enumerates monomial bases and extracts coefficients and linear
forms; ``lie`` builds the directional derivatives used by the dynamics
constraint.
"""

from .lie import gradient, lie_derivative, time_lie_derivative
from .polynomial import (
    coefficients,
    exponents,
    indeterminates,
    is_polynomial,
    linear_form,
    monomial_from_exponent,
    monomials,
    total_degree,
)

__all__ = [
    "indeterminates",
    "monomials",
    "exponents",
    "monomial_from_exponent",
    "coefficients",
    "total_degree",
    "is_polynomial",
    "linear_form",
    "gradient",
    "lie_derivative",
    "time_lie_derivative",
]
