"""Sum-of-squares program container.

An ``SOSProgram`` accumulates, for one relaxation, the indeterminates, the free
polynomial coefficients (decision symbols) and an ordered list of
``SOSExpression`` entries, each stating "this polynomial is a sum of squares in
these variables". It is purely symbolic: turning the entries into a
semidefinite program is the job of a ``ConicSOSSolver`` backend.

Every SOS expression ``p`` is paired with its own Gram matrix ``G`` over a
monomial basis ``z`` and certified by matching coefficients of
``p - z' G z`` to zero together with ``G >> 0``. The order of
``sos_expressions`` is the order in which Gram matrices and dual multipliers
come back from the solver.

Example:
    Certify ``x**2 - 2*x + 3 - gamma >= 0`` and maximize ``gamma``::

        prog = SOSProgram()
        prog.with_indeterminate(x)
        gamma, _ = prog.new_free_poly([sp.S.One], "gamma")
        prog.with_sos(x**2 - 2 * x + 3 - gamma, [x])
        solution = CVXPySolver().solve(prog, -gamma, settings)
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import scipy.sparse as sparse
import sympy as sp

from hybridocp.symbolic.polynomial import (
    Exponent,
    coefficients,
    exponents,
    linear_form,
    monomial_from_exponent,
    monomials,
    total_degree,
)


@dataclass
class CoefficientMatching:
    """Sparse rows of ``A_free @ free - A_gram @ triu(G) == b`` for one SOS expression.

    Attributes:
        rows: Exponent of the monomial each row matches, graded order.
        A_free: (n_rows, n_free) coefficients of the free decision variables.
        A_gram: (n_rows, n_tri) coefficients of the upper-triangular Gram entries.
        b: (n_rows,) right-hand side, the negated constant part of the expression.
        tri_rows, tri_cols: Upper-triangular index pairs, in ``A_gram`` column order.
    """

    rows: List[Exponent]
    A_free: sparse.csr_matrix
    A_gram: sparse.csr_matrix
    b: np.ndarray
    tri_rows: np.ndarray
    tri_cols: np.ndarray


@dataclass
class SOSExpression:
    """One "``expr`` is SOS in ``variables``" statement with its Gram basis."""

    expr: sp.Expr
    variables: Tuple[sp.Symbol, ...]
    basis: List[Exponent]
    name: str = ""
    _coefficients: Dict[Exponent, sp.Expr] = field(default=None, repr=False)

    def __post_init__(self):
        if self._coefficients is None:
            self._coefficients = coefficients(self.expr, self.variables)

    @property
    def coefficients(self) -> Dict[Exponent, sp.Expr]:
        return self._coefficients

    @property
    def gram_size(self) -> int:
        return len(self.basis)

    @property
    def monomial_basis(self) -> List[sp.Expr]:
        return [monomial_from_exponent(self.variables, e) for e in self.basis]

    def gram_form(self, gram: np.ndarray) -> sp.Expr:
        """Quadratic form ``z' G z`` over the monomial basis, as a polynomial."""
        z = sp.Matrix(self.monomial_basis)
        return sp.expand((z.T * sp.Matrix(gram) * z)[0, 0])

    def coefficient_matching(
        self, index: Mapping[sp.Symbol, int], n_free: int
    ) -> CoefficientMatching:
        tri_rows, tri_cols = np.triu_indices(self.gram_size)
        gram_terms: Dict[Exponent, List[Tuple[int, float]]] = {}
        for k, (a, b) in enumerate(zip(tri_rows, tri_cols)):
            exponent = tuple(ea + eb for ea, eb in zip(self.basis[a], self.basis[b]))
            gram_terms.setdefault(exponent, []).append((k, 1.0 if a == b else 2.0))

        rows = sorted(
            set(self._coefficients) | set(gram_terms),
            key=lambda e: (sum(e), tuple(-ek for ek in e)),
        )
        free_i, free_j, free_v = [], [], []
        gram_i, gram_j, gram_v = [], [], []
        b = np.zeros(len(rows))
        for r, exponent in enumerate(rows):
            if exponent in self._coefficients:
                row, constant = linear_form(self._coefficients[exponent], index)
                for j, value in row.items():
                    free_i.append(r)
                    free_j.append(j)
                    free_v.append(value)
                b[r] = -constant
            for j, weight in gram_terms.get(exponent, []):
                gram_i.append(r)
                gram_j.append(j)
                gram_v.append(weight)

        A_free = sparse.coo_matrix((free_v, (free_i, free_j)), shape=(len(rows), n_free)).tocsr()
        A_gram = sparse.coo_matrix(
            (gram_v, (gram_i, gram_j)), shape=(len(rows), len(tri_rows))
        ).tocsr()
        return CoefficientMatching(rows, A_free, A_gram, b, tri_rows, tri_cols)


class SOSProgram:
    """Call-scoped accumulator of decision polynomials and SOS statements."""

    def __init__(self):
        self.indeterminates: List[sp.Symbol] = []
        self.decision_variables: List[sp.Symbol] = []
        self.sos_expressions: List[SOSExpression] = []
        self._index: Dict[sp.Symbol, int] = {}

    @property
    def index(self) -> Dict[sp.Symbol, int]:
        """Position of each decision symbol in the free coefficient vector."""
        return self._index

    @property
    def n_free(self) -> int:
        return len(self.decision_variables)

    def with_indeterminate(self, *symbols) -> "SOSProgram":
        for group in symbols:
            items = list(group) if isinstance(group, (list, tuple, sp.MatrixBase)) else [group]
            for symbol in items:
                if symbol not in self.indeterminates:
                    self.indeterminates.append(symbol)
        return self

    def new_free_poly(self, basis: Sequence[sp.Expr], name: str = "c"):
        """Free polynomial ``sum_k c_k * basis[k]`` with fresh decision coefficients.

        Returns:
            ``(poly, coefficients)``, the polynomial and its coefficient symbols.
        """
        start = len(self.decision_variables)
        coeffs = [sp.Dummy(f"{name}_{start + k}") for k in range(len(basis))]
        for k, c in enumerate(coeffs):
            self._index[c] = start + k
        self.decision_variables.extend(coeffs)
        poly = sp.Add(*[c * m for c, m in zip(coeffs, basis)])
        return poly, coeffs

    def with_sos(
        self,
        expr,
        variables: Sequence[sp.Symbol],
        half_degree: Optional[int] = None,
        name: str = "",
    ) -> int:
        """Require ``expr`` to be a sum of squares in ``variables``.

        Args:
            expr: Polynomial in ``variables`` whose coefficients are affine in the
                decision variables.
            variables: Indeterminates the certificate ranges over.
            half_degree: Gram basis truncation; defaults to ``ceil(deg(expr) / 2)``.
            name: Label used in diagnostics.

        Returns:
            Position of the new entry in ``sos_expressions``.
        """
        variables = tuple(variables)
        coeffs = coefficients(expr, variables)
        if half_degree is None:
            half_degree = math.ceil(max((sum(e) for e in coeffs), default=0) / 2)
        basis = exponents(len(variables), half_degree)
        self.sos_expressions.append(
            SOSExpression(sp.sympify(expr), variables, basis, name, _coefficients=coeffs)
        )
        return len(self.sos_expressions) - 1

    def new_sos_poly(self, variables: Sequence[sp.Symbol], half_degree: int, name: str = "s"):
        """Fresh SOS polynomial of degree ``2 * half_degree`` in ``variables``."""
        poly, _ = self.new_free_poly(monomials(variables, 2 * half_degree), name)
        self.with_sos(poly, variables, half_degree, name)
        return poly

    def sos_on_k(self, p, variables: Sequence[sp.Symbol], inequalities: Sequence, degree: int,
                 name: str = "s") -> List[sp.Expr]:
        """Certify ``p >= 0`` on ``{x : g_k(x) >= 0 for all k}``.

        Builds ``p = s_0 + sum_k s_k g_k`` with SOS multipliers ``s_k`` of degree at
        most ``degree - deg(g_k)`` (rounded down to even, at least constant) and a
        SOS base ``s_0``. The multipliers are registered first, in the order of
        ``inequalities``, followed by the base.

        Returns:
            The multiplier polynomials ``[s_1, ..., s_K]``.
        """
        variables = tuple(variables)
        multipliers = []
        rest = sp.sympify(p)
        for k, g in enumerate(inequalities):
            half = max(0, (degree - total_degree(g, variables)) // 2)
            s = self.new_sos_poly(variables, half, f"{name}{k + 1}")
            multipliers.append(s)
            rest = rest - s * g
        self.with_sos(rest, variables, name=f"{name}0")
        return multipliers

    def evaluate(self, expr, values: Mapping[sp.Symbol, float]) -> sp.Expr:
        """Substitute numeric decision values into ``expr``."""
        return sp.expand(sp.sympify(expr).xreplace({s: sp.Float(v) for s, v in values.items()}))
