"""Lower bounds for hybrid optimal control problems via SOS relaxations."""

from hybridocp.config import HORIZON, Config, ConvexSolverConfig, DevConfig, RelaxationConfig
from hybridocp.errors import (
    ConfigurationError,
    HybridOCPError,
    NumericalWarning,
    SolveFailed,
    UnsupportedConfiguration,
)
from hybridocp.hybrid_system import HybridSystem, Mode, Transition
from hybridocp.post_processing import evaluate_value_function, lower_bound
from hybridocp.problem import HybridOCPProblem, solve_hybrid_ocp
from hybridocp.results import ControlSynthesisData, RelaxationResults
from hybridocp.symbolic import indeterminates

__all__ = [
    "HORIZON",
    "Config",
    "ConvexSolverConfig",
    "DevConfig",
    "RelaxationConfig",
    "HybridOCPError",
    "ConfigurationError",
    "UnsupportedConfiguration",
    "SolveFailed",
    "NumericalWarning",
    "Mode",
    "Transition",
    "HybridSystem",
    "HybridOCPProblem",
    "solve_hybrid_ocp",
    "RelaxationResults",
    "ControlSynthesisData",
    "evaluate_value_function",
    "lower_bound",
    "indeterminates",
]
