from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import sympy as sp

from hybridocp.assembler import ConstraintRecord
from hybridocp.solvers.base import SOSSolution


@dataclass
class ControlSynthesisData:
    """Data handed to a downstream control synthesis stage.

    Attributes:
        n_modes: Number of modes.
        max_m: Largest control dimension over all modes.
        u_out: ``n_modes x max_m`` slots for synthesized control laws (left empty).
        u_real_basis: Per-mode slots for the real monomial basis of the laws (left empty).
        mu_idx: Per mode, index of the Liouville base SOS expression; ``y[mu_idx[i]]``
            holds the moments of that mode's occupation measure.
        svd_eps: Singular value threshold for moment matrix truncation.
        dual_basis: Per SOS expression, the monomials indexing its dual multipliers.
        y: Per SOS expression, the dual multipliers of its coefficient matching.
    """

    n_modes: int
    max_m: int
    u_out: List[List[Any]]
    u_real_basis: List[Any]
    mu_idx: List[int]
    svd_eps: float
    dual_basis: List[List[sp.Expr]]
    y: List[np.ndarray]

    @property
    def dual_vector(self) -> np.ndarray:
        """All dual multipliers concatenated in SOS expression order."""
        if not self.y:
            return np.zeros(0)
        return np.concatenate(self.y)

    def liouville_moments(self, mode: int) -> Tuple[List[sp.Expr], np.ndarray]:
        """``(monomials, moments)`` of the Liouville dual measure of ``mode``."""
        k = self.mu_idx[mode]
        return self.dual_basis[k], self.y[k]


@dataclass
class RelaxationResults:
    """Results of one SOS relaxation solve.

    Attributes:
        time: Total wall time of the solve call, in seconds.
        pval: Optimal objective, a lower bound on the hybrid OCP's optimal cost.
        sol: Raw solver solution.
        infos: Per-constraint diagnostic records, in emission order.
        degree: Relaxation degree actually used.
        min_eigenvalues: Minimum eigenvalue of each Gram matrix.
        invalid_grams: Indices of Gram matrices with a negative minimum eigenvalue.
        value_functions: Solved ``v_i(t, x)`` for each mode.
        t: Time indeterminate the value functions are expressed in.
        states: Per mode, the state indeterminates of its value function.
        u_infos: Control synthesis bundle, only when requested.
    """

    time: float
    pval: float
    sol: SOSSolution
    infos: List[ConstraintRecord]
    degree: int
    min_eigenvalues: np.ndarray = field(default_factory=lambda: np.zeros(0))
    invalid_grams: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=int))
    value_functions: List[sp.Expr] = field(default_factory=list)
    t: Optional[sp.Symbol] = None
    states: List[Tuple[sp.Symbol, ...]] = field(default_factory=list)
    u_infos: Optional[ControlSynthesisData] = None

    # Dictionary-like access for backwards compatibility
    def __getitem__(self, key: str) -> Any:
        if hasattr(self, key):
            return getattr(self, key)
        raise KeyError(key)

    def get(self, key: str, default: Any = None) -> Any:
        return getattr(self, key, default)

    @property
    def status(self) -> str:
        return self.sol.status

    @property
    def max_residual(self) -> float:
        return max((rec.residual_max for rec in self.infos), default=0.0)

    @property
    def max_subresidual(self) -> float:
        return max(
            (float(np.max(rec.subresidual_max)) for rec in self.infos if len(rec.subresidual_max)),
            default=0.0,
        )

    def summary(self) -> Dict[str, Any]:
        return {
            "pval": self.pval,
            "status": self.status,
            "degree": self.degree,
            "time": self.time,
            "n_constraints": len(self.infos),
            "n_gram": len(self.min_eigenvalues),
            "invalid_grams": list(map(int, self.invalid_grams)),
            "max_residual": self.max_residual,
            "max_subresidual": self.max_subresidual,
        }
