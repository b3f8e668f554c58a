"""Polynomial helpers on top of sympy.

Polynomials are plain sympy expressions. Indeterminates (time, state, control)
are sympy symbols; the unknown coefficients of templates such as the value
functions are also sympy symbols (decision symbols), so every polynomial the
relaxation manipulates is affine in its decision symbols. The helpers here
enumerate monomial bases, split an expression into per-monomial coefficients
and turn an affine coefficient into a sparse linear form that a conic solver
can consume.
"""

import itertools
from collections import defaultdict
from typing import Dict, List, Mapping, Sequence, Tuple

import sympy as sp

Exponent = Tuple[int, ...]


def indeterminates(name: str, n: int) -> List[sp.Symbol]:
    """Create ``n`` real symbols ``name_1 .. name_n``."""
    if n == 0:
        return []
    return list(sp.symbols(f"{name}_1:{n + 1}", real=True))


def exponents(n_vars: int, degree: int, min_degree: int = 0) -> List[Exponent]:
    """All exponent tuples of ``n_vars`` variables with total degree in ``[min_degree, degree]``.

    Ordered by total degree, then descending lexicographically, so that for
    ``(t, x)`` the degree-two block reads ``t**2, t*x, x**2``.
    """
    result = []
    for deg in range(max(min_degree, 0), degree + 1):
        for combo in itertools.combinations_with_replacement(range(n_vars), deg):
            exponent = [0] * n_vars
            for k in combo:
                exponent[k] += 1
            result.append(tuple(exponent))
    return result


def monomial_from_exponent(variables: Sequence[sp.Symbol], exponent: Exponent) -> sp.Expr:
    return sp.Mul(*[v**e for v, e in zip(variables, exponent)])


def monomials(variables: Sequence[sp.Symbol], degree: int, min_degree: int = 0) -> List[sp.Expr]:
    """Monomial basis of ``variables`` truncated to total degree ``degree``."""
    variables = list(variables)
    return [
        monomial_from_exponent(variables, e)
        for e in exponents(len(variables), degree, min_degree)
    ]


def coefficients(expr, variables: Sequence[sp.Symbol]) -> Dict[Exponent, sp.Expr]:
    """Split ``expr`` into ``{exponent: coefficient}`` with respect to ``variables``.

    Coefficients are whatever does not depend on ``variables`` (numbers and
    decision symbols). Terms whose coefficient cancels are dropped.

    Raises:
        ValueError: If ``expr`` is not polynomial in ``variables``.
    """
    variables = list(variables)
    position = {v: k for k, v in enumerate(variables)}
    collected = defaultdict(lambda: sp.S.Zero)
    for term in sp.Add.make_args(sp.expand(sp.sympify(expr))):
        if term.is_zero:
            continue
        coeff, monomial = term.as_independent(*variables, as_Add=False)
        exponent = [0] * len(variables)
        if monomial != 1:
            for base, power in monomial.as_powers_dict().items():
                if base not in position or not (power.is_Integer and power >= 0):
                    raise ValueError(f"Term '{term}' is not polynomial in {variables}")
                exponent[position[base]] += int(power)
        collected[tuple(exponent)] += coeff
    return {e: c for e, c in collected.items() if not c.is_zero}


def total_degree(expr, variables: Sequence[sp.Symbol]) -> int:
    """Total degree of ``expr`` in ``variables`` (0 for constants and for zero)."""
    coeffs = coefficients(expr, variables)
    return max((sum(e) for e in coeffs), default=0)


def is_polynomial(expr, variables: Sequence[sp.Symbol]) -> bool:
    try:
        coefficients(expr, variables)
    except ValueError:
        return False
    return True


def linear_form(expr, index: Mapping[sp.Symbol, int]) -> Tuple[Dict[int, float], float]:
    """Decompose an expression affine in the decision symbols of ``index``.

    Args:
        expr: Expression of the form ``c0 + sum_k a_k * s_k``.
        index: Maps each decision symbol ``s_k`` to its column position.

    Returns:
        ``(row, c0)`` where ``row`` maps column positions to ``a_k``.

    Raises:
        ValueError: If a term is nonlinear or involves an unregistered symbol.
    """
    row: Dict[int, float] = defaultdict(float)
    constant = 0.0
    for term in sp.Add.make_args(sp.expand(sp.sympify(expr))):
        number, rest = term.as_coeff_Mul()
        if rest == 1:
            constant += float(number)
            continue
        symbols = rest.free_symbols
        if len(symbols) != 1:
            raise ValueError(f"Term '{term}' is not affine in the decision variables")
        symbol = symbols.pop()
        factor = rest / symbol
        if symbol not in index or not factor.is_number:
            raise ValueError(f"Term '{term}' is not affine in the decision variables")
        row[index[symbol]] += float(number * factor)
    return dict(row), constant
