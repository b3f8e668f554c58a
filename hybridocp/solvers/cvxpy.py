"""CVXPy-based conic SOS solver.

This module provides the default backend. Each SOS expression becomes a
symmetric PSD variable and one vector equality matching its coefficients, so
the dual value of that equality is the moment vector of the corresponding
certificate.
"""

import time
from typing import TYPE_CHECKING, List

import cvxpy as cp
import numpy as np

from hybridocp.errors import SolveFailed
from hybridocp.symbolic.polynomial import linear_form, monomial_from_exponent

from .base import ConicSOSSolver, SOSSolution

if TYPE_CHECKING:
    from hybridocp.config import Config
    from hybridocp.sos.program import SOSProgram

_SUCCESS = (cp.OPTIMAL, cp.OPTIMAL_INACCURATE)


class CVXPySolver(ConicSOSSolver):
    """CVXPy-based SOS solver.

    Builds a fresh ``cvxpy.Problem`` for every call to ``solve()``; nothing is
    cached between calls.

    Example:
        Solving an assembled program::

            solver = CVXPySolver()
            solution = solver.solve(program, -objective, settings)
            print(solution.status, solution.value)

    Attributes:
        problem: The CVXPy Problem from the last call (None before the first solve).
    """

    def __init__(self):
        self._problem: cp.Problem = None

    @property
    def problem(self) -> cp.Problem:
        return self._problem

    def build(self, program: "SOSProgram", objective):
        """Translate ``program`` into a CVXPy problem without solving it.

        Returns:
            ``(problem, free, grams, equalities, matchings)``.
        """
        if program.n_free == 0:
            raise ValueError("SOS program has no decision variables")

        free = cp.Variable(program.n_free, name="free")
        grams, equalities, matchings = [], [], []
        constr = []
        for k, sos in enumerate(program.sos_expressions):
            G = cp.Variable((sos.gram_size, sos.gram_size), symmetric=True, name=f"G{k}")
            match = sos.coefficient_matching(program.index, program.n_free)
            lhs = cp.Constant(match.A_free) @ free - cp.Constant(match.A_gram) @ G[
                match.tri_rows, match.tri_cols
            ]
            equality = lhs == match.b
            constr += [G >> 0, equality]
            grams.append(G)
            equalities.append(equality)
            matchings.append(match)

        row, constant = linear_form(objective, program.index)
        c = np.zeros(program.n_free)
        for j, value in row.items():
            c[j] = value
        prob = cp.Problem(cp.Minimize(c @ free + constant), constr)
        return prob, free, grams, equalities, matchings

    def solve(self, program: "SOSProgram", objective, settings: "Config") -> SOSSolution:
        """Build and solve the SDP for ``program``.

        Args:
            program: Assembled SOS program.
            objective: Expression to minimize, affine in the decision variables.
            settings: Configuration; uses ``settings.cvx.solver``,
                ``settings.cvx.verbose`` and ``settings.cvx.solver_args``.

        Returns:
            The solution record. Access the raw problem via ``solution.problem``.

        Raises:
            SolveFailed: On a non-optimal status or a ``cvxpy.error.SolverError``.
        """
        prob, free, grams, equalities, matchings = self.build(program, objective)
        self._problem = prob

        t0 = time.time()
        try:
            prob.solve(
                solver=settings.cvx.solver,
                verbose=settings.cvx.verbose,
                **settings.cvx.solver_args,
            )
        except cp.error.SolverError as e:
            raise SolveFailed("solver_error", e) from e
        solve_time = time.time() - t0

        if prob.status not in _SUCCESS:
            raise SolveFailed(prob.status, prob.solver_stats)

        dual_basis = [
            [monomial_from_exponent(sos.variables, e) for e in match.rows]
            for sos, match in zip(program.sos_expressions, matchings)
        ]
        return SOSSolution(
            status=prob.status,
            value=float(prob.value),
            free_values=np.asarray(free.value, dtype=float),
            gram_matrices=[np.asarray(G.value, dtype=float) for G in grams],
            duals=[np.atleast_1d(np.asarray(eq.dual_value, dtype=float)) for eq in equalities],
            dual_basis=dual_basis,
            program=program,
            problem=prob,
            solve_time=solve_time,
        )

    def citation(self) -> List[str]:
        """Return BibTeX citations for CVXPy.

        Returns:
            List containing BibTeX entries for CVXPy papers.
        """
        return [
            r"""@article{diamond2016cvxpy,
  title={CVXPY: A Python-embedded modeling language for convex optimization},
  author={Diamond, Steven and Boyd, Stephen},
  journal={Journal of Machine Learning Research},
  volume={17},
  number={83},
  pages={1--5},
  year={2016}
}""",
            r"""@article{agrawal2018rewriting,
  title={A rewriting system for convex optimization problems},
  author={Agrawal, Akshay and Verschueren, Robin and Diamond, Steven and Boyd, Stephen},
  journal={Journal of Control and Decision},
  volume={5},
  number={1},
  pages={42--60},
  year={2018},
  publisher={Taylor \& Francis}
}""",
        ]
