"""Post-solve consistency checks of the SOS certificates.

Three numbers quantify how far the solver output is from an exact certificate:

- the minimum eigenvalue of every Gram matrix (negative means the multiplier is
  not actually a sum of squares),
- per constraint, the coefficients of ``P - (s_0 + sum_k s_k g_k)`` with every
  SOS expression evaluated at the solved coefficients,
- per SOS expression, the coefficients of ``s - z' G z``, the mismatch between
  the solver's coefficient vector and its Gram matrix for the same multiplier.

None of these are errors; they are reported so the caller can threshold them.
"""

from typing import List

import numpy as np
import sympy as sp

from hybridocp.assembler import ConstraintRecord
from hybridocp.solvers.base import SOSSolution
from hybridocp.sos.program import SOSProgram
from hybridocp.symbolic.polynomial import coefficients


def gram_min_eigenvalues(solution: SOSSolution) -> np.ndarray:
    """Minimum eigenvalue of each solved Gram matrix, in SOS expression order."""
    return np.array(
        [np.min(np.linalg.eigvalsh(0.5 * (G + G.T))) for G in solution.gram_matrices]
    )


def invalid_gram_indices(min_eigenvalues: np.ndarray) -> np.ndarray:
    """Indices of Gram matrices that are not positive semidefinite."""
    return np.flatnonzero(np.asarray(min_eigenvalues) < 0)


def sos_approximations(program: SOSProgram, solution: SOSSolution) -> List[sp.Expr]:
    """``z' G z`` for every SOS expression, from the solved Gram matrices."""
    return [
        sos.gram_form(G) for sos, G in zip(program.sos_expressions, solution.gram_matrices)
    ]


def _coefficient_norms(expr, variables):
    values = np.array([float(c) for c in coefficients(expr, variables).values()])
    if values.size == 0:
        return 0.0, 0.0
    return float(np.max(np.abs(values))), float(np.sum(np.abs(values)))


def compute_residuals(
    records: List[ConstraintRecord],
    program: SOSProgram,
    solution: SOSSolution,
    min_eigenvalues: np.ndarray = None,
) -> List[ConstraintRecord]:
    """Fill the diagnostics of every record, walking the SOS expressions in emission order.

    Each record owns ``n_sos`` multiplier expressions followed by its base
    expression; the running offset ``c`` advances by ``n_sos + 1`` per record.

    Returns:
        The same records, updated in place.
    """
    if min_eigenvalues is None:
        min_eigenvalues = gram_min_eigenvalues(solution)
    sos_solution = [solution.evaluate(sos.expr) for sos in program.sos_expressions]
    sos_approx = sos_approximations(program, solution)

    c = 0
    for record in records:
        nb = record.n_sos
        tmpsos = sos_solution[c:c + nb]
        s0 = sos_solution[c + nb]
        reconstruction = s0 + sp.Add(*[s * g for s, g in zip(tmpsos, record.constraints)])
        residual = solution.evaluate(record.dual_constraint) - reconstruction
        record.residual_max, record.residual_sum = _coefficient_norms(residual, record.variables)

        subresidual = np.zeros(nb + 1)
        for j in range(nb + 1):
            subresidual[j], _ = _coefficient_norms(
                sos_solution[c + j] - sos_approx[c + j], record.variables
            )
        record.subresidual_max = subresidual
        record.min_eigenvalues = np.asarray(min_eigenvalues[c:c + nb + 1])

        c += nb + 1
    return records
