"""Hybrid system description: modes, guards and reset maps.

A hybrid optimal control problem over the fixed horizon ``[0, T]`` reads::

    inf   sum over visited modes of  int h_i(t, x, u) dt  +  H_i(x(T))
    s.t.  xdot_i = f_i(x_i) + g_i(x_i) u_i          inside mode i
          x_j(t+) = R_ij(x_i(t-))  when x_i(t-) in S_ij
          x(0) = x0,  x(t) in X,  x(T) in XT,  u(t) in U

with the semialgebraic sets::

    X_i  = {x | hX_i(x)  >= 0}      domain of mode i
    U_i  = {u | hU_i(u)  >= 0}      control set of mode i
    S_ij = {x | sX_ij(x) >= 0}      guard from mode i into mode j
    XT_i = {x | hXT_i(x) >= 0}      target set of mode i

All data are sympy expressions in the mode's own indeterminates. Mode indices
are 0-based.
"""

from typing import List, Optional, Sequence, Tuple

import numpy as np
import sympy as sp

from hybridocp.errors import ConfigurationError
from hybridocp.symbolic.polynomial import is_polynomial


def _as_tuple(exprs) -> Tuple[sp.Expr, ...]:
    """Normalize a scalar, sequence or Matrix of expressions to a flat tuple."""
    if exprs is None:
        return ()
    if isinstance(exprs, sp.MatrixBase):
        return tuple(exprs)
    if isinstance(exprs, (list, tuple, np.ndarray)):
        return tuple(sp.sympify(e) for e in np.asarray(exprs, dtype=object).ravel())
    return (sp.sympify(exprs),)


def _check_polynomial(expr, variables, what: str):
    variables = list(variables)
    extra = sp.sympify(expr).free_symbols - set(variables)
    if extra:
        raise ConfigurationError(
            f"{what} depends on {sorted(map(str, extra))}, expected only {variables}"
        )
    if not is_polynomial(expr, variables):
        raise ConfigurationError(f"{what} is not polynomial in {variables}: {expr}")


class Mode:
    """One discrete mode of a hybrid system.

    Attributes:
        x (tuple): State indeterminates, length ``n``.
        u (tuple): Control indeterminates, length ``m`` (may be empty).
        f (sp.Matrix): Drift, ``n x 1``.
        g (sp.Matrix): Input matrix, ``n x m``.
        domain (tuple): ``hX`` inequalities in ``x``.
        control_set (tuple): ``hU`` inequalities in ``u``.
        target_set (tuple): ``hXT`` inequalities in ``x``; empty means no terminal constraint.
        running_cost: ``h(t, x, u)``.
        terminal_cost: ``H(x)``.
        initial_state (np.ndarray or None): ``x0``; None means the mode does not enter the objective.
        name (str): Label used in printed output.

    Example:
        ```python
        x = sp.symbols("x", real=True)
        u = sp.symbols("u", real=True)
        mode = Mode(
            x=[x], u=[u], f=[0], g=[[1]],
            domain=[1 - x**2], control_set=[1 - u**2], target_set=[1 - x**2],
            running_cost=1, terminal_cost=0, initial_state=[0.5],
        )
        ```
    """

    def __init__(
        self,
        x: Sequence[sp.Symbol],
        u: Sequence[sp.Symbol] = (),
        f=None,
        g=None,
        domain=(),
        control_set=(),
        target_set=(),
        running_cost=0,
        terminal_cost=0,
        initial_state=None,
        name: Optional[str] = None,
    ):
        self.x = _as_tuple(x)
        self.u = _as_tuple(u)
        self.f = sp.Matrix(_as_tuple(f)) if f is not None else sp.zeros(len(self.x), 1)
        if g is None:
            self.g = sp.zeros(len(self.x), len(self.u))
        else:
            self.g = sp.Matrix(g)
            if self.g.shape == (0, 0):
                self.g = sp.zeros(len(self.x), 0)
        self.domain = _as_tuple(domain)
        self.control_set = _as_tuple(control_set)
        self.target_set = _as_tuple(target_set)
        self.running_cost = sp.sympify(running_cost)
        self.terminal_cost = sp.sympify(terminal_cost)
        x0 = None if initial_state is None else np.atleast_1d(np.asarray(initial_state, dtype=float))
        self.initial_state = x0.ravel() if x0 is not None and x0.size > 0 else None
        self.name = name

    @property
    def n(self) -> int:
        return len(self.x)

    @property
    def m(self) -> int:
        return len(self.u)

    def __repr__(self):
        return f"Mode({self.name or ''}, n={self.n}, m={self.m})"


class Transition:
    """Guarded jump from mode ``source`` into mode ``target``.

    Args:
        source (int): Pre-jump mode index.
        target (int): Post-jump mode index.
        guard: ``sX`` inequalities in the source state; the jump is enabled where all hold.
        reset: Reset map ``R(x_source)`` with one entry per target state. None means the
            identity map, which requires both modes to have the same state dimension.
    """

    def __init__(self, source: int, target: int, guard, reset=None):
        self.source = source
        self.target = target
        self.guard = _as_tuple(guard)
        self.reset = sp.Matrix(_as_tuple(reset)) if reset is not None else None

    def __repr__(self):
        return f"Transition({self.source} -> {self.target})"


class HybridSystem:
    """A set of modes coupled by guarded transitions.

    Args:
        t (sp.Symbol): Time indeterminate shared by all modes.
        modes (List[Mode]): Modes, indexed from 0.
        transitions (List[Transition]): Guarded jumps. Transitions with an empty guard
            are dropped, since they can never fire.
    """

    def __init__(self, t: sp.Symbol, modes: List[Mode], transitions: Sequence[Transition] = ()):
        self.t = t
        self.modes = list(modes)
        self.transitions = [tr for tr in transitions if len(tr.guard) > 0]

    @classmethod
    def from_arrays(cls, t, x, u, f, g, hX, hU, sX, R, x0, hXT, h, H, names=None):
        """Build a system from per-mode lists and per-pair ``I x I`` guard/reset tables.

        ``sX[i][j]`` empty (or None) means no transition from ``i`` to ``j``. ``R=None``
        means identity resets on every guarded pair; otherwise ``R[i][j]`` must be
        given for every guarded pair.

        Raises:
            ConfigurationError: If per-mode lists disagree in length or a reset is missing.
        """
        n_modes = len(x)
        per_mode = dict(u=u, f=f, g=g, hX=hX, hU=hU, x0=x0, hXT=hXT, h=h, H=H)
        for key, value in per_mode.items():
            if len(value) != n_modes:
                raise ConfigurationError(f"'{key}' has {len(value)} entries, expected {n_modes}")
        if len(sX) != n_modes or any(len(row) != n_modes for row in sX):
            raise ConfigurationError(f"'sX' must be a {n_modes} x {n_modes} table")

        modes = [
            Mode(
                x=x[i], u=u[i], f=f[i], g=g[i],
                domain=hX[i], control_set=hU[i], target_set=hXT[i],
                running_cost=h[i], terminal_cost=H[i], initial_state=x0[i],
                name=names[i] if names is not None else None,
            )
            for i in range(n_modes)
        ]
        transitions = []
        for i in range(n_modes):
            for j in range(n_modes):
                guard = _as_tuple(sX[i][j])
                if not guard:
                    continue
                reset = None
                if R is not None:
                    reset = R[i][j]
                    if reset is None or len(_as_tuple(reset)) == 0:
                        raise ConfigurationError(f"Missing reset map for guarded pair ({i}, {j})")
                transitions.append(Transition(i, j, guard, reset))
        return cls(t, modes, transitions)

    @property
    def n_modes(self) -> int:
        return len(self.modes)

    @property
    def max_controls(self) -> int:
        return max((mode.m for mode in self.modes), default=0)

    def transition(self, i: int, j: int) -> Optional[Transition]:
        for tr in self.transitions:
            if tr.source == i and tr.target == j:
                return tr
        return None

    def guard(self, i: int, j: int) -> Tuple[sp.Expr, ...]:
        tr = self.transition(i, j)
        return tr.guard if tr is not None else ()

    def reset(self, i: int, j: int) -> sp.Matrix:
        """Reset map of ``(i, j)``; identity when none was given."""
        tr = self.transition(i, j)
        if tr is None:
            raise KeyError(f"No transition from mode {i} to mode {j}")
        if tr.reset is None:
            return sp.Matrix(self.modes[i].x)
        return tr.reset

    def validate(self) -> None:
        """Check dimensions and polynomial structure of every mode and transition.

        Raises:
            ConfigurationError: On the first inconsistency found.
        """
        t = self.t
        if not self.modes:
            raise ConfigurationError("A hybrid system needs at least one mode")

        for i, mode in enumerate(self.modes):
            if mode.n == 0:
                raise ConfigurationError(f"Mode {i} has no state indeterminates")
            if mode.f.shape[0] != mode.n or mode.g.shape[0] != mode.n:
                raise ConfigurationError(
                    f"Inconsistent matrix size in mode {i}: len(f)={mode.f.shape[0]}, "
                    f"rows(g)={mode.g.shape[0]}, len(x)={mode.n}"
                )
            if mode.g.shape[1] != mode.m:
                raise ConfigurationError(
                    f"Inconsistent matrix size in mode {i}: cols(g)={mode.g.shape[1]}, "
                    f"len(u)={mode.m}"
                )
            if mode.initial_state is not None and mode.initial_state.shape[0] != mode.n:
                raise ConfigurationError(
                    f"Initial state of mode {i} has {mode.initial_state.shape[0]} entries, "
                    f"expected {mode.n}"
                )

            for k, expr in enumerate(mode.f):
                _check_polynomial(expr, mode.x, f"f[{k}] of mode {i}")
            for expr in mode.g:
                _check_polynomial(expr, mode.x, f"g of mode {i}")
            for expr in mode.domain:
                _check_polynomial(expr, mode.x, f"domain of mode {i}")
            for expr in mode.control_set:
                _check_polynomial(expr, mode.u, f"control set of mode {i}")
            for expr in mode.target_set:
                _check_polynomial(expr, mode.x, f"target set of mode {i}")
            _check_polynomial(mode.running_cost, (t, *mode.x, *mode.u), f"running cost of mode {i}")
            _check_polynomial(mode.terminal_cost, mode.x, f"terminal cost of mode {i}")

        seen = set()
        for tr in self.transitions:
            i, j = tr.source, tr.target
            for k in (i, j):
                if not (isinstance(k, (int, np.integer)) and 0 <= k < self.n_modes):
                    raise ConfigurationError(
                        f"Transition ({i}, {j}) refers to mode {k}, which does not exist"
                    )
            if (i, j) in seen:
                raise ConfigurationError(f"Duplicate transition ({i}, {j})")
            seen.add((i, j))

            source, target = self.modes[i], self.modes[j]
            for expr in tr.guard:
                _check_polynomial(expr, source.x, f"guard ({i}, {j})")
            if tr.reset is None:
                if source.n != target.n:
                    raise ConfigurationError(
                        f"Identity reset on ({i}, {j}) needs equal state dimensions, "
                        f"got {source.n} and {target.n}"
                    )
            else:
                if tr.reset.shape[0] != target.n:
                    raise ConfigurationError(
                        f"Reset map ({i}, {j}) has {tr.reset.shape[0]} entries, "
                        f"expected {target.n}"
                    )
                for expr in tr.reset:
                    _check_polynomial(expr, source.x, f"reset map ({i}, {j})")
