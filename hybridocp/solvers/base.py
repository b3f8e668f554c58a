"""Base class for conic SOS solvers.

This module defines the interface a backend must implement to turn an
``SOSProgram`` plus a linear objective into a numerical solution, and the
``SOSSolution`` record every backend returns.

A backend is expected to:

1. Create one vector of free coefficients and one symmetric PSD matrix per
   registered SOS expression (in ``program.sos_expressions`` order).
2. Add the coefficient matching equalities of every SOS expression.
3. Minimize the objective and report primal values, Gram matrices and the
   dual multipliers of the matching equalities.

Solver failures (infeasible, unbounded, backend errors) must surface as
``SolveFailed`` carrying the raw status.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List

import numpy as np
import sympy as sp

if TYPE_CHECKING:
    from hybridocp.config import Config
    from hybridocp.sos.program import SOSProgram


@dataclass
class SOSSolution:
    """Numerical solution of an SOS program.

    Attributes:
        status: Raw solver status string.
        value: Optimal value of the minimized objective.
        free_values: Values of ``program.decision_variables``, in order.
        gram_matrices: One symmetric matrix per SOS expression, in registration order.
        duals: Dual multipliers of each SOS expression's coefficient matching,
            aligned with ``dual_basis``.
        dual_basis: Monomials indexing ``duals`` for each SOS expression.
        program: The program that was solved.
        problem: Raw backend problem handle (``cvxpy.Problem`` for the CVXPy backend).
        solve_time: Wall time spent inside the backend solve call, in seconds.
    """

    status: str
    value: float
    free_values: np.ndarray
    gram_matrices: List[np.ndarray]
    duals: List[np.ndarray]
    dual_basis: List[List[sp.Expr]]
    program: "SOSProgram"
    problem: Any = None
    solve_time: float = 0.0
    values: Dict[sp.Symbol, float] = field(init=False, repr=False)

    def __post_init__(self):
        self.values = dict(zip(self.program.decision_variables, np.asarray(self.free_values)))

    def evaluate(self, expr) -> sp.Expr:
        """Substitute the solved decision values into ``expr``."""
        return self.program.evaluate(expr, self.values)


class ConicSOSSolver(ABC):
    """Abstract base class for conic SOS backends.

    Example:
        Implementing a custom backend::

            class MySolver(ConicSOSSolver):
                def solve(self, program, objective, settings):
                    ...
                    return SOSSolution(...)

                def citation(self):
                    return []
    """

    @abstractmethod
    def solve(self, program: "SOSProgram", objective, settings: "Config") -> SOSSolution:
        """Minimize ``objective`` subject to every SOS statement in ``program``.

        Args:
            program: Assembled SOS program.
            objective: Sympy expression affine in ``program.decision_variables``.
            settings: Configuration object with solver settings (``settings.cvx``).

        Returns:
            The solution record.

        Raises:
            SolveFailed: If the backend does not report an optimal solution.
        """
        ...

    @abstractmethod
    def citation(self) -> List[str]:
        """Return BibTeX citations for this solver."""
        ...
