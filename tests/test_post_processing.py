import numpy as np
import pytest
import sympy as sp

from hybridocp.post_processing import evaluate_value_function, lower_bound, value_function_callable
from hybridocp.results import RelaxationResults

t = sp.Symbol("t", real=True)
x1, x2 = sp.symbols("x1 x2", real=True)


def make_results(value_functions, states, pval=0.0):
    return RelaxationResults(
        time=0.0,
        pval=pval,
        sol=None,
        infos=[],
        degree=2,
        value_functions=value_functions,
        t=t,
        states=states,
    )


class TestValueFunctionCallable:
    def test_batched_evaluation(self):
        fn = value_function_callable(t * x1 + x2**2, t, [x1, x2])
        T = np.array([0.0, 0.5, 1.0])
        X = np.array([[1.0, 0.0], [2.0, 1.0], [-1.0, 2.0]])
        np.testing.assert_allclose(np.asarray(fn(T, X)), [0.0, 2.0, 3.0], rtol=1e-6)

    def test_constant_function_is_batched(self):
        fn = value_function_callable(sp.Float(3.0), t, [x1])
        out = np.asarray(fn(np.zeros(4), np.zeros((4, 1))))
        assert out.shape == (4,)
        np.testing.assert_allclose(out, 3.0)


class TestEvaluateValueFunction:
    def test_scalar_time_broadcast(self):
        results = make_results([1 - t + x1**2], [(x1,)])
        values = evaluate_value_function(results, 0, 0.0, np.array([0.0, 0.5, 1.0]))
        np.testing.assert_allclose(values, [1.0, 1.25, 2.0], rtol=1e-6)

    def test_single_state_vector(self):
        results = make_results([x1 * x2 + t], [(x1, x2)])
        values = evaluate_value_function(results, 0, 1.0, [2.0, 3.0])
        np.testing.assert_allclose(values, [7.0], rtol=1e-6)

    def test_selects_mode(self):
        results = make_results([sp.Float(1.0) + 0 * t, 2 * x2], [(x1,), (x2,)])
        np.testing.assert_allclose(evaluate_value_function(results, 1, [0.0], [[4.0]]), [8.0])

    def test_dimension_mismatch(self):
        results = make_results([x1 * x2], [(x1, x2)])
        with pytest.raises(ValueError):
            evaluate_value_function(results, 0, [0.0], [[1.0, 2.0, 3.0]])


def test_lower_bound():
    assert lower_bound(make_results([], [], pval=1.25)) == 1.25
