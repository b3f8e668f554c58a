import sympy as sp

from hybridocp.symbolic.lie import gradient, lie_derivative, time_lie_derivative

t, x1, x2 = sp.symbols("t x1 x2", real=True)


def test_gradient_row():
    v = x1**2 * x2 + 3 * x2
    assert gradient(v, [x1, x2]) == sp.Matrix([[2 * x1 * x2, x1**2 + 3]])


def test_gradient_no_states():
    assert gradient(t**2, []).shape == (1, 0)


def test_lie_derivative_scalar():
    v = x1**2 + x2**2
    f = sp.Matrix([x2, -x1])
    # rotation field leaves the squared norm invariant
    assert lie_derivative(v, [x1, x2], f) == 0


def test_lie_derivative_matrix_field():
    v = x1 * x2
    g = sp.Matrix([[1, 0], [0, 2]])
    assert lie_derivative(v, [x1, x2], g) == sp.Matrix([[x2, 2 * x1]])


def test_time_lie_derivative():
    v = t * x1**2
    f = sp.Matrix([-x1])
    assert sp.expand(time_lie_derivative(v, t, [x1], f) - (x1**2 - 2 * t * x1**2)) == 0
