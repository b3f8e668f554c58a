import cvxpy as cp
import numpy as np
import pytest
import sympy as sp

from hybridocp.config import Config
from hybridocp.errors import SolveFailed
from hybridocp.solvers import ConicSOSSolver, CVXPySolver
from hybridocp.sos.program import SOSProgram

x = sp.Symbol("x", real=True)


@pytest.fixture
def settings():
    config = Config.default()
    config.cvx.verbose = False
    config.dev.printing = False
    return config


def lower_bound_program():
    """max gamma  s.t.  x^2 - 2x + 3 - gamma is SOS  (optimum gamma = 2 at x = 1)."""
    prog = SOSProgram()
    prog.with_indeterminate(x)
    gamma, _ = prog.new_free_poly([sp.S.One], "gamma")
    prog.with_sos(x**2 - 2 * x + 3 - gamma, [x])
    return prog, gamma


class TestCVXPySolver:
    def test_is_conic_sos_solver(self):
        assert isinstance(CVXPySolver(), ConicSOSSolver)

    def test_univariate_lower_bound(self, settings):
        prog, gamma = lower_bound_program()
        solution = CVXPySolver().solve(prog, -gamma, settings)

        assert solution.status == cp.OPTIMAL
        assert float(solution.evaluate(gamma)) == pytest.approx(2.0, abs=1e-5)
        assert solution.value == pytest.approx(-2.0, abs=1e-5)

    def test_gram_matrix(self, settings):
        prog, gamma = lower_bound_program()
        solution = CVXPySolver().solve(prog, -gamma, settings)

        (G,) = solution.gram_matrices
        # (x - 1)^2 over the basis [1, x]
        np.testing.assert_allclose(G, [[1.0, -1.0], [-1.0, 1.0]], atol=1e-4)
        assert np.min(np.linalg.eigvalsh(G)) > -1e-6

    def test_duals_are_moments(self, settings):
        prog, gamma = lower_bound_program()
        solution = CVXPySolver().solve(prog, -gamma, settings)

        (basis,) = solution.dual_basis
        (y,) = solution.duals
        assert basis == [1, x, x**2]
        assert len(y) == 3
        assert abs(y[0]) == pytest.approx(1.0, abs=1e-4)
        # atomic measure at the minimizer x = 1
        assert y[1] / y[0] == pytest.approx(1.0, abs=1e-3)
        assert y[2] / y[0] == pytest.approx(1.0, abs=1e-3)

    def test_values_keyed_by_decision_symbol(self, settings):
        prog, gamma = lower_bound_program()
        solution = CVXPySolver().solve(prog, -gamma, settings)
        assert set(solution.values) == set(prog.decision_variables)
        assert isinstance(solution.problem, cp.Problem)

    def test_infeasible_raises(self, settings):
        prog = SOSProgram()
        prog.with_indeterminate(x)
        prog.new_free_poly([sp.S.One], "c")
        prog.with_sos(-1 - x**2, [x])

        with pytest.raises(SolveFailed) as excinfo:
            CVXPySolver().solve(prog, sp.S.Zero, settings)
        assert excinfo.value.status not in (cp.OPTIMAL, cp.OPTIMAL_INACCURATE)

    def test_unknown_solver_raises(self, settings):
        prog, gamma = lower_bound_program()
        settings.cvx.solver = "NOT_A_SOLVER"
        with pytest.raises(SolveFailed) as excinfo:
            CVXPySolver().solve(prog, -gamma, settings)
        assert excinfo.value.status == "solver_error"
        assert isinstance(excinfo.value.payload, cp.error.SolverError)

    def test_build_without_decision_variables(self):
        prog = SOSProgram()
        prog.with_sos(x**2, [x])
        with pytest.raises(ValueError):
            CVXPySolver().build(prog, sp.S.Zero)

    def test_build_shapes(self):
        prog, gamma = lower_bound_program()
        problem, free, grams, equalities, matchings = CVXPySolver().build(prog, -gamma)
        assert free.shape == (1,)
        assert grams[0].shape == (2, 2)
        assert len(equalities) == len(matchings) == 1
        assert len(problem.constraints) == 2

    def test_citation(self):
        citations = CVXPySolver().citation()
        assert len(citations) == 2
        assert all("@article" in c for c in citations)
