"""Constraint assembly for the dual (SOS) relaxation of a hybrid OCP.

For each mode ``i`` the relaxation searches a polynomial ``v_i(t, x)`` with::

    sup   sum_i v_i(0, x0_i)
    s.t.  L v_i + h_i >= 0              on [0, T] x X_i x U_i      (Liouville)
          H_i - v_i(T, .) >= 0          on XT_i                    (terminal)
          v_j(t, R_ij(x)) - v_i >= 0    on [0, T] x S_ij           (transition)

Each inequality is certified through ``SOSProgram.sos_on_k``. Constraints are
emitted mode by mode, in the order Liouville, terminal, transitions by
ascending target; the SOS expressions (and therefore Gram matrices and dual
multipliers) land in the program in exactly that order, which
``ConstraintRecord.sos_offset`` records.
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

import numpy as np
import sympy as sp

from hybridocp.config import HORIZON, RelaxationConfig
from hybridocp.errors import UnsupportedConfiguration
from hybridocp.hybrid_system import HybridSystem
from hybridocp.modes import ModeVariables
from hybridocp.sos.program import SOSProgram

LIOUVILLE = "liouville"
TERMINAL = "terminal"
TRANSITION = "transition"


@dataclass
class ConstraintRecord:
    """Bookkeeping for one emitted positivity constraint.

    Created at assembly time with zeroed diagnostics; ``compute_residuals`` fills
    the diagnostics exactly once after solving.

    Attributes:
        kind: ``"liouville"``, ``"terminal"`` or ``"transition"``.
        mode: Mode the constraint belongs to.
        target: Post-jump mode for transition constraints, None otherwise.
        variables: Indeterminates the certificate ranges over.
        constraints: Inequalities ``g_k >= 0`` describing the set.
        n_sos: Number of SOS multipliers (one per inequality), excluding the base.
        dual_constraint: The polynomial certified nonnegative on the set.
        test_function_degree: Relaxation degree used for the multipliers.
        sos_offset: Position of the first multiplier in ``program.sos_expressions``;
            the base SOS expression sits at ``sos_offset + n_sos``.
        residual_max: Max absolute coefficient of the reconstructed identity residual.
        residual_sum: Sum of absolute coefficients of that residual.
        subresidual_max: Per SOS expression (multipliers then base), max absolute
            coefficient of ``sos_expr - z' G z``.
        min_eigenvalues: Per SOS expression, minimum eigenvalue of its Gram matrix.
    """

    kind: str
    mode: int
    target: Optional[int]
    variables: Tuple[sp.Symbol, ...]
    constraints: Tuple[sp.Expr, ...]
    n_sos: int
    dual_constraint: sp.Expr
    test_function_degree: int
    sos_offset: int
    residual_max: float = 0.0
    residual_sum: float = 0.0
    subresidual_max: np.ndarray = field(default_factory=lambda: np.zeros(0))
    min_eigenvalues: np.ndarray = field(default_factory=lambda: np.zeros(0))

    @property
    def base_index(self) -> int:
        return self.sos_offset + self.n_sos

    @property
    def sos_slice(self) -> slice:
        return slice(self.sos_offset, self.sos_offset + self.n_sos + 1)


class ConstraintAssembler:
    """Builds every constraint family of the relaxation into an ``SOSProgram``.

    A fresh assembler is created per solve; it owns the record list and the
    objective accumulator for that call only.

    Args:
        program: Program receiving the SOS certificates.
        system: Validated hybrid system.
        modes: Output of ``setup_mode`` for every mode, in mode order.
        degree: Even relaxation degree.
        horizon: Final time ``T``.
        config: Relaxation options; only ``free_final_time`` is read here.
        emit: Optional callback ``emit(kind, mode, target)`` called before each
            constraint is added (used for console output).
    """

    def __init__(
        self,
        program: SOSProgram,
        system: HybridSystem,
        modes: List[ModeVariables],
        degree: int,
        horizon: float = HORIZON,
        config: Optional[RelaxationConfig] = None,
        emit: Optional[Callable] = None,
    ):
        self.program = program
        self.system = system
        self.modes = modes
        self.degree = degree
        self.horizon = horizon
        self.config = config if config is not None else RelaxationConfig()
        self._emit_fn = emit if emit is not None else (lambda kind, mode, target=None: None)

        self.records: List[ConstraintRecord] = []
        self.objective = sp.S.Zero
        self.mu_idx: List[int] = []

    def assemble(self):
        """Emit all constraints and accumulate the objective.

        Returns:
            ``(records, objective)``; the objective is to be maximized.

        Raises:
            UnsupportedConfiguration: If a terminal constraint is requested with
                ``free_final_time``.
        """
        t = self.system.t
        hT = t * (self.horizon - t)

        for i, mode in enumerate(self.system.modes):
            mv = self.modes[i]

            # L v_i + h_i >= 0                  Dual: mu
            self._add(
                LIOUVILLE, i, None,
                mv.Lv + mode.running_cost,
                (t, *mode.x, *mode.u),
                (hT, *mode.domain, *mode.control_set),
            )
            self.mu_idx.append(self.records[-1].base_index)

            # v_i(T, x) <= H_i(x)               Dual: muT
            if mode.target_set:
                if self.config.free_final_time:
                    raise UnsupportedConfiguration(
                        "Free final time terminal constraints are not supported"
                    )
                self._add(
                    TERMINAL, i, None,
                    mode.terminal_cost - mv.vT,
                    tuple(mode.x),
                    tuple(mode.target_set),
                )

            # v_i(t, x) <= v_j(t, R_ij(x))      Dual: muS
            for j in range(self.system.n_modes):
                guard = self.system.guard(i, j)
                if not guard:
                    continue
                target = self.modes[j]
                reset = self.system.reset(i, j)
                vj_helper = sp.expand(target.v.xreplace(dict(zip(target.x, reset))))
                self._add(
                    TRANSITION, i, j,
                    vj_helper - mv.v,
                    (t, *mode.x),
                    (hT, *guard),
                )

            if mode.initial_state is not None:
                point = {t: sp.S.Zero}
                point.update({xk: sp.Float(v) for xk, v in zip(mode.x, mode.initial_state)})
                self.objective = self.objective + sp.expand(mv.v.xreplace(point))

        return self.records, self.objective

    def _add(self, kind, mode, target, poly, variables, constraints):
        self._emit_fn(kind, mode, target)
        offset = len(self.program.sos_expressions)
        name = f"{kind[0]}{mode}" if target is None else f"{kind[0]}{mode}_{target}"
        self.program.sos_on_k(poly, variables, constraints, self.degree, name=name)
        self.records.append(
            ConstraintRecord(
                kind=kind,
                mode=mode,
                target=target,
                variables=tuple(variables),
                constraints=tuple(constraints),
                n_sos=len(constraints),
                dual_constraint=poly,
                test_function_degree=self.degree,
                sos_offset=offset,
            )
        )
