import numpy as np
import pytest
import sympy as sp

from hybridocp.errors import ConfigurationError
from hybridocp.hybrid_system import HybridSystem, Mode, Transition

t = sp.Symbol("t", real=True)
x1, x2, y1, u1 = sp.symbols("x1 x2 y1 u1", real=True)


def integrator(x, u, **kwargs):
    return Mode(x=[x], u=[u], f=[0], g=[[1]], domain=[1 - x**2], control_set=[1 - u**2], **kwargs)


class TestMode:
    def test_dimensions(self):
        mode = integrator(x1, u1)
        assert mode.n == 1
        assert mode.m == 1
        assert mode.f.shape == (1, 1)
        assert mode.g.shape == (1, 1)

    def test_autonomous_mode(self):
        mode = Mode(x=[x1, x2], f=[x2, -x1])
        assert mode.m == 0
        assert mode.g.shape == (2, 0)

    def test_empty_g_matrix(self):
        mode = Mode(x=[x1], f=[0], g=[])
        assert mode.g.shape == (1, 0)

    def test_empty_initial_state_is_none(self):
        assert integrator(x1, u1, initial_state=[]).initial_state is None
        np.testing.assert_array_equal(integrator(x1, u1, initial_state=0.5).initial_state, [0.5])

    def test_transition_keeps_reset(self):
        tr = Transition(0, 1, [x1], reset=[2 * x1])
        assert tr.reset == sp.Matrix([2 * x1])
        assert Transition(0, 1, x1).reset is None


class TestValidate:
    def test_valid_system(self):
        system = HybridSystem(t, [integrator(x1, u1), integrator(y1, u1)], [Transition(0, 1, [1 - x1**2])])
        system.validate()

    def test_zero_drift_and_terminal_cost(self):
        mode = Mode(x=[x1], u=[u1], f=[0], g=[[1]], terminal_cost=0, target_set=[1 - x1**2])
        HybridSystem(t, [mode]).validate()

    def test_no_modes(self):
        with pytest.raises(ConfigurationError):
            HybridSystem(t, []).validate()

    def test_f_length_mismatch(self):
        mode = Mode(x=[x1, x2], f=[0])
        with pytest.raises(ConfigurationError, match="Inconsistent matrix size"):
            HybridSystem(t, [mode]).validate()

    def test_g_rows_mismatch(self):
        mode = Mode(x=[x1, x2], u=[u1], f=[0, 0], g=[[1]])
        with pytest.raises(ConfigurationError, match="Inconsistent matrix size"):
            HybridSystem(t, [mode]).validate()

    def test_g_columns_mismatch(self):
        mode = Mode(x=[x1], u=[u1], f=[0], g=[[1, 0]])
        with pytest.raises(ConfigurationError, match="cols"):
            HybridSystem(t, [mode]).validate()

    def test_initial_state_length(self):
        mode = integrator(x1, u1, initial_state=[0.0, 0.0])
        with pytest.raises(ConfigurationError, match="Initial state"):
            HybridSystem(t, [mode]).validate()

    def test_non_polynomial_dynamics(self):
        mode = Mode(x=[x1], f=[sp.sin(x1)])
        with pytest.raises(ConfigurationError, match="not polynomial"):
            HybridSystem(t, [mode]).validate()

    def test_foreign_symbol_in_domain(self):
        mode = Mode(x=[x1], f=[0], domain=[1 - y1**2])
        with pytest.raises(ConfigurationError, match="depends on"):
            HybridSystem(t, [mode]).validate()

    def test_running_cost_may_depend_on_time(self):
        mode = integrator(x1, u1, running_cost=t * x1**2 + u1**2)
        HybridSystem(t, [mode]).validate()

    def test_transition_to_missing_mode(self):
        system = HybridSystem(t, [integrator(x1, u1)], [Transition(0, 3, [1 - x1**2])])
        with pytest.raises(ConfigurationError, match="does not exist"):
            system.validate()

    def test_duplicate_transition(self):
        guard = [1 - x1**2]
        system = HybridSystem(
            t, [integrator(x1, u1), integrator(y1, u1)], [Transition(0, 1, guard), Transition(0, 1, guard)]
        )
        with pytest.raises(ConfigurationError, match="Duplicate"):
            system.validate()

    def test_identity_reset_dimension_mismatch(self):
        system = HybridSystem(
            t, [integrator(x1, u1), Mode(x=[y1, x2], f=[0, 0])], [Transition(0, 1, [1 - x1**2])]
        )
        with pytest.raises(ConfigurationError, match="Identity reset"):
            system.validate()

    def test_reset_length_mismatch(self):
        system = HybridSystem(
            t,
            [integrator(x1, u1), Mode(x=[y1, x2], f=[0, 0])],
            [Transition(0, 1, [1 - x1**2], reset=[x1])],
        )
        with pytest.raises(ConfigurationError, match="Reset map"):
            system.validate()

    def test_reset_in_target_variables_rejected(self):
        system = HybridSystem(
            t, [integrator(x1, u1), integrator(y1, u1)], [Transition(0, 1, [1 - x1**2], reset=[y1])]
        )
        with pytest.raises(ConfigurationError):
            system.validate()


class TestLookup:
    def test_empty_guard_dropped(self):
        system = HybridSystem(t, [integrator(x1, u1), integrator(y1, u1)], [Transition(0, 1, [])])
        assert system.transitions == []
        assert system.guard(0, 1) == ()

    def test_identity_reset(self):
        system = HybridSystem(t, [integrator(x1, u1), integrator(y1, u1)], [Transition(0, 1, [1 - x1**2])])
        assert system.reset(0, 1) == sp.Matrix([x1])

    def test_reset_without_transition(self):
        system = HybridSystem(t, [integrator(x1, u1)])
        with pytest.raises(KeyError):
            system.reset(0, 0)

    def test_max_controls(self):
        system = HybridSystem(t, [Mode(x=[x1], f=[0]), Mode(x=[y1], u=[u1, x2], f=[0], g=[[1, 1]])])
        assert system.max_controls == 2


class TestFromArrays:
    def arrays(self):
        x = [[x1], [y1]]
        u = [[u1], [u1]]
        return dict(
            t=t, x=x, u=u,
            f=[[0], [0]], g=[[[1]], [[1]]],
            hX=[[1 - x1**2], [1 - y1**2]], hU=[[1 - u1**2], [1 - u1**2]],
            sX=[[[], [1 - x1**2]], [[], []]],
            R=None,
            x0=[[0.0], []],
            hXT=[[], [1 - y1**2]],
            h=[2, 1], H=[0, 0],
        )

    def test_builds_modes_and_transitions(self):
        system = HybridSystem.from_arrays(**self.arrays())
        system.validate()
        assert system.n_modes == 2
        assert [(tr.source, tr.target) for tr in system.transitions] == [(0, 1)]
        assert system.modes[1].initial_state is None
        assert system.modes[0].target_set == ()

    def test_per_mode_length_mismatch(self):
        arrays = self.arrays()
        arrays["h"] = [1]
        with pytest.raises(ConfigurationError, match="'h'"):
            HybridSystem.from_arrays(**arrays)

    def test_sX_shape(self):
        arrays = self.arrays()
        arrays["sX"] = [[[], []]]
        with pytest.raises(ConfigurationError, match="sX"):
            HybridSystem.from_arrays(**arrays)

    def test_partial_reset_table(self):
        arrays = self.arrays()
        arrays["R"] = [[[], []], [[], []]]
        with pytest.raises(ConfigurationError, match="Missing reset"):
            HybridSystem.from_arrays(**arrays)

    def test_explicit_reset(self):
        arrays = self.arrays()
        arrays["R"] = [[[], [-x1]], [[], []]]
        system = HybridSystem.from_arrays(**arrays)
        assert system.reset(0, 1) == sp.Matrix([-x1])
