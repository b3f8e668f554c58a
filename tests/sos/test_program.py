import numpy as np
import pytest
import sympy as sp

from hybridocp.sos.program import SOSExpression, SOSProgram
from hybridocp.symbolic.polynomial import monomials

x, y = sp.symbols("x y", real=True)


class TestFreePolynomials:
    def test_new_free_poly_registers_coefficients(self):
        prog = SOSProgram()
        poly, coeffs = prog.new_free_poly(monomials([x], 2), "v0")
        assert len(coeffs) == 3
        assert prog.decision_variables == coeffs
        assert [prog.index[c] for c in coeffs] == [0, 1, 2]
        assert sp.expand(poly - (coeffs[0] + coeffs[1] * x + coeffs[2] * x**2)) == 0

    def test_coefficients_are_unique_across_calls(self):
        prog = SOSProgram()
        _, a = prog.new_free_poly([sp.S.One], "c")
        _, b = prog.new_free_poly([sp.S.One], "c")
        assert a[0] != b[0]
        assert prog.n_free == 2

    def test_with_indeterminate_dedups(self):
        prog = SOSProgram()
        prog.with_indeterminate(x).with_indeterminate([x, y], (y,))
        assert prog.indeterminates == [x, y]


class TestWithSOS:
    def test_default_half_degree(self):
        prog = SOSProgram()
        k = prog.with_sos(x**4 + y**2, [x, y])
        sos = prog.sos_expressions[k]
        assert sos.gram_size == len(monomials([x, y], 2))

    def test_odd_degree_rounds_up(self):
        prog = SOSProgram()
        prog.with_sos(x**3 + 1, [x])
        assert prog.sos_expressions[0].gram_size == 3

    def test_returns_registration_index(self):
        prog = SOSProgram()
        assert prog.with_sos(x**2, [x]) == 0
        assert prog.with_sos(y**2, [y]) == 1


class TestCoefficientMatching:
    def test_gram_weights(self):
        # 1 + 2x + x^2 over basis [1, x]: rows 1, x, x^2
        sos = SOSExpression(1 + 2 * x + x**2, (x,), [(0,), (1,)])
        match = sos.coefficient_matching({}, 0)
        assert match.rows == [(0,), (1,), (2,)]
        np.testing.assert_allclose(match.b, [-1.0, -2.0, -1.0])
        # triu order: (0,0), (0,1), (1,1)
        np.testing.assert_allclose(
            match.A_gram.toarray(), [[1, 0, 0], [0, 2, 0], [0, 0, 1]]
        )

    def test_exact_gram_satisfies_matching(self):
        sos = SOSExpression(1 + 2 * x + x**2, (x,), [(0,), (1,)])
        match = sos.coefficient_matching({}, 0)
        G = np.array([[1.0, 1.0], [1.0, 1.0]])
        g = G[match.tri_rows, match.tri_cols]
        np.testing.assert_allclose(-match.A_gram @ g, match.b)

    def test_free_columns(self):
        prog = SOSProgram()
        gamma, (c,) = prog.new_free_poly([sp.S.One], "gamma")
        k = prog.with_sos(x**2 - gamma, [x])
        match = prog.sos_expressions[k].coefficient_matching(prog.index, prog.n_free)
        row = match.rows.index((0,))
        assert match.A_free.toarray()[row, 0] == -1.0
        assert match.b[row] == 0.0

    def test_gram_form(self):
        sos = SOSExpression(x**2, (x,), [(0,), (1,)])
        G = np.array([[0.0, 0.0], [0.0, 1.0]])
        assert sp.expand(sos.gram_form(G) - x**2) == 0


class TestSOSOnK:
    def test_multipliers_then_base(self):
        prog = SOSProgram()
        multipliers = prog.sos_on_k(1 - x**2, [x], [1 - x**2, x], 2, name="l0")
        assert len(multipliers) == 2
        names = [s.name for s in prog.sos_expressions]
        assert names == ["l01", "l02", "l00"]

    def test_multiplier_degrees(self):
        prog = SOSProgram()
        prog.sos_on_k(sp.S.One, [x, y], [1 - x**2, x], 4)
        gram_sizes = [s.gram_size for s in prog.sos_expressions]
        # deg g = 2 -> half degree 1 (3 monomials); deg g = 1 -> half degree 1
        assert gram_sizes[:2] == [3, 3]

    def test_high_degree_inequality_gives_constant_multiplier(self):
        prog = SOSProgram()
        prog.sos_on_k(sp.S.One, [x], [1 - x**4], 2)
        assert prog.sos_expressions[0].gram_size == 1

    def test_no_inequalities(self):
        prog = SOSProgram()
        assert prog.sos_on_k(x**2, [x], [], 2) == []
        assert len(prog.sos_expressions) == 1

    def test_zero_target_and_inequality(self):
        prog = SOSProgram()
        multipliers = prog.sos_on_k(sp.S.Zero, [x], [sp.S.Zero], 2)
        assert len(multipliers) == 1
        # zero inequality has degree 0, so the multiplier gets half degree 1
        assert [s.gram_size for s in prog.sos_expressions] == [2, 1]


def test_evaluate_substitutes_floats():
    prog = SOSProgram()
    poly, coeffs = prog.new_free_poly([sp.S.One, x], "c")
    value = prog.evaluate(poly, {coeffs[0]: 1.5, coeffs[1]: -2})
    assert sp.expand(value - (1.5 - 2.0 * x)) == 0
