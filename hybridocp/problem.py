import time
import warnings
from dataclasses import dataclass
from typing import List, Optional

import numpy as np
import sympy as sp

from hybridocp import io
from hybridocp.assembler import ConstraintAssembler, ConstraintRecord
from hybridocp.config import HORIZON, Config
from hybridocp.diagnostics import compute_residuals, gram_min_eigenvalues, invalid_gram_indices
from hybridocp.errors import ConfigurationError, NumericalWarning, UnsupportedConfiguration
from hybridocp.hybrid_system import HybridSystem
from hybridocp.modes import ModeVariables, setup_mode
from hybridocp.results import ControlSynthesisData, RelaxationResults
from hybridocp.solvers.base import ConicSOSSolver
from hybridocp.solvers.cvxpy import CVXPySolver
from hybridocp.sos.program import SOSProgram
from hybridocp.utils import profiling_end, profiling_start


def effective_degree(d) -> int:
    """Validate the relaxation degree, bumping odd values up by one.

    Raises:
        ConfigurationError: If ``d`` is not a positive integer.
    """
    if isinstance(d, bool) or not isinstance(d, (int, np.integer)) or d <= 0:
        raise ConfigurationError(f"Relaxation degree must be a positive integer, got {d!r}")
    d = int(d)
    if d % 2 != 0:
        warnings.warn(f"d is not even. Using d+1 = {d + 1} instead.", NumericalWarning)
        d += 1
    return d


@dataclass
class AssembledRelaxation:
    """Everything produced by assembly, before any solver call.

    Attributes:
        program: SOS program holding all certificates.
        modes: Per-mode templates and Lie derivative terms.
        records: Constraint records in emission order.
        objective: ``sum_i v_i(0, x0_i)``, to be maximized.
        mu_idx: Per mode, index of the Liouville base SOS expression.
    """

    program: SOSProgram
    modes: List[ModeVariables]
    records: List[ConstraintRecord]
    objective: sp.Expr
    mu_idx: List[int]


class HybridOCPProblem:
    def __init__(
        self,
        system: HybridSystem,
        degree: int,
        config: Optional[Config] = None,
        solver: Optional[ConicSOSSolver] = None,
    ):
        """
        The primary class in charge of assembling and solving the SOS relaxation
        of a hybrid optimal control problem.

        Args:
            system (HybridSystem): Modes, guards and reset maps. Validated here, before
                any indeterminate or template is created.
            degree (int): Relaxation degree ``d``. Odd values are replaced by ``d + 1``
                with a `NumericalWarning`.
            config (Config, optional): Relaxation, solver and dev settings. Defaults to
                `Config.default()`.
            solver (ConicSOSSolver, optional): Conic backend. Defaults to `CVXPySolver()`.

        Raises:
            ConfigurationError: On inconsistent system data or an invalid degree.
            UnsupportedConfiguration: If free final time is requested and any mode has a
                target set.

        Note:
            The horizon is fixed at ``T = 1``. To solve over another horizon, scale the
            dynamics and the running costs.
        """
        self.settings = config if config is not None else Config.default()

        system.validate()
        self.degree = effective_degree(degree)
        if self.settings.relax.free_final_time and any(m.target_set for m in system.modes):
            raise UnsupportedConfiguration(
                "Free final time terminal constraints are not supported"
            )

        self.system = system
        self.solver = solver if solver is not None else CVXPySolver()
        self.horizon = HORIZON

        self.timing_build = None
        self.timing_solve = None

    def build(self) -> AssembledRelaxation:
        """Set up every mode and assemble all constraints, without solving.

        Assembly is deterministic: identical inputs give identical scopes, domain
        lists and emission order.
        """
        t = self.system.t
        program = SOSProgram()
        program.with_indeterminate(t)

        modes = [
            setup_mode(program, t, mode, i, self.degree, self.horizon)
            for i, mode in enumerate(self.system.modes)
        ]
        assembler = ConstraintAssembler(
            program,
            self.system,
            modes,
            self.degree,
            horizon=self.horizon,
            config=self.settings.relax,
            emit=io.constraint_added if self.settings.dev.printing else None,
        )
        records, objective = assembler.assemble()
        return AssembledRelaxation(program, modes, records, objective, list(assembler.mu_idx))

    def solve(self) -> RelaxationResults:
        """Assemble, solve once, and run the certificate diagnostics.

        Returns:
            RelaxationResults with the lower bound ``pval``, per-constraint diagnostics
            and, when ``settings.relax.with_inputs`` is set, the control synthesis data.

        Raises:
            SolveFailed: If the conic solver does not report an optimal solution.
        """
        printing = self.settings.dev.printing
        if printing:
            io.intro()
            io.print_problem_summary(self.system, self.degree, self.settings)

        pr = profiling_start(self.settings.dev.profiling)
        try:
            t_0 = time.time()
            relaxation = self.build()
            self.timing_build = time.time() - t_0

            t_0 = time.time()
            solution = self.solver.solve(relaxation.program, -relaxation.objective, self.settings)
            min_eigenvalues = gram_min_eigenvalues(solution)
            invalid = invalid_gram_indices(min_eigenvalues)
            compute_residuals(relaxation.records, relaxation.program, solution, min_eigenvalues)
            self.timing_solve = time.time() - t_0
        finally:
            profiling_end(pr, "solve")

        results = RelaxationResults(
            time=self.timing_solve,
            pval=float(solution.evaluate(relaxation.objective)),
            sol=solution,
            infos=relaxation.records,
            degree=self.degree,
            min_eigenvalues=min_eigenvalues,
            invalid_grams=invalid,
            value_functions=[solution.evaluate(mv.v) for mv in relaxation.modes],
            t=self.system.t,
            states=[tuple(mv.x) for mv in relaxation.modes],
        )
        if self.settings.relax.with_inputs:
            results.u_infos = self._control_synthesis_data(relaxation, solution)

        if printing:
            io.print_diagnostics(results.infos, results.invalid_grams)
            io.footer(results.time, results.pval)
        return results

    def _control_synthesis_data(self, relaxation, solution) -> ControlSynthesisData:
        n_modes = self.system.n_modes
        max_m = self.system.max_controls
        return ControlSynthesisData(
            n_modes=n_modes,
            max_m=max_m,
            u_out=[[None] * max_m for _ in range(n_modes)],
            u_real_basis=[None] * n_modes,
            mu_idx=relaxation.mu_idx,
            svd_eps=self.settings.relax.svd_eps,
            dual_basis=solution.dual_basis,
            y=solution.duals,
        )


def solve_hybrid_ocp(t, x, u, f, g, hX, hU, sX, R, x0, hXT, h, H, d, options=None, solver=None):
    """Solve the SOS relaxation of a hybrid OCP given as per-mode arrays.

    Args:
        t: Time indeterminate.
        x, u: Per-mode lists of state / control indeterminates.
        f, g: Per-mode drift vectors and input matrices.
        hX, hU: Per-mode domain and control set inequalities.
        sX: ``I x I`` table of guard inequalities (empty entry: no transition).
        R: ``I x I`` table of reset maps, or None for identity resets.
        x0: Per-mode initial points (empty entry: mode not in the objective).
        hXT: Per-mode target set inequalities (empty entry: no terminal constraint).
        h, H: Per-mode running and terminal costs.
        d: Relaxation degree.
        options: Flat options dict, see `Config.from_options`.
        solver: Optional conic backend.

    Returns:
        RelaxationResults
    """
    config = Config.from_options(options)
    system = HybridSystem.from_arrays(t, x, u, f, g, hX, hU, sX, R, x0, hXT, h, H)
    return HybridOCPProblem(system, d, config=config, solver=solver).solve()
