from dataclasses import dataclass
from typing import Any, Dict, Optional

import numpy as np

from hybridocp.errors import ConfigurationError

# Fixed final time. Rescale dynamics and costs to solve over other horizons.
HORIZON = 1.0


@dataclass
class RelaxationConfig:

    def __init__(
        self,
        free_final_time: bool = False,
        with_inputs: bool = False,
        svd_eps: float = 1e3,
    ):
        """
        Configuration class for the SOS relaxation itself.

        Main arguments:
        These are the arguments most commonly used day-to-day.

        Args:
            free_final_time (bool): Use the free-final-time terminal constraint
                (v_i(t, x) <= H_i(x) on [0, T] x XT_i). This path is not supported and
                requesting it on a problem with a target set raises
                `UnsupportedConfiguration`. Defaults to False.
            with_inputs (bool): Package the dual solution data needed by a downstream
                control synthesis stage into `RelaxationResults.u_infos`. Defaults to False.

        Other arguments:
        These arguments are less frequently used, and for most purposes you shouldn't need to understand these.

        Args:
            svd_eps (float): Singular value threshold handed to control synthesis when
                truncating moment matrices. Defaults to 1e3.
        """
        self.free_final_time = free_final_time
        self.with_inputs = with_inputs
        self.svd_eps = svd_eps


@dataclass
class ConvexSolverConfig:
    def __init__(
        self,
        solver: str = "CLARABEL",
        solver_args: Optional[dict] = None,
        verbose: bool = True,
    ):
        """
        Configuration class for the conic (SDP) solver.

        The relaxation is a semidefinite program, so the chosen CVXPY solver must
        support PSD cones. [CLARABEL](https://clarabel.org/stable/) ships with CVXPY and
        is the default; SCS and MOSEK also work.

        Args:
            solver (str): The name of the CVXPY solver to use. A list of options can be found
                        [here](https://www.cvxpy.org/tutorial/solvers/index.html). Defaults to "CLARABEL".
            solver_args (dict, optional): Passed through untouched to `cvxpy.Problem.solve`.
                                        Ensure you are using the correct arguments for your solver
                                        as they are not all common. Defaults to an empty dictionary.
            verbose (bool): Solver verbosity. Defaults to True.
        """
        self.solver = solver
        self.solver_args = solver_args if solver_args is not None else {}
        self.verbose = verbose


@dataclass
class DevConfig:

    def __init__(self, profiling: bool = False, printing: bool = True):
        """
        Configuration class for development settings.

        Args:
            profiling (bool): Whether to enable profiling for performance analysis. Defaults to False.
            printing (bool): Whether to print progress and diagnostics. Defaults to True.
        """
        self.profiling = profiling
        self.printing = printing


# Option names accepted by `Config.from_options`, mapped to (section, attribute).
_OPTION_KEYS = {
    "freeFinalTime": ("relax", "free_final_time"),
    "free_final_time": ("relax", "free_final_time"),
    "withInputs": ("relax", "with_inputs"),
    "with_inputs": ("relax", "with_inputs"),
    "svd_eps": ("relax", "svd_eps"),
    "solver_options": ("cvx", "solver_args"),
    "solver": ("cvx", "solver"),
    "verbose": ("cvx", "verbose"),
    "printing": ("dev", "printing"),
    "profiling": ("dev", "profiling"),
}


@dataclass
class Config:
    relax: RelaxationConfig
    cvx: ConvexSolverConfig
    dev: DevConfig

    @classmethod
    def default(cls) -> "Config":
        return cls(relax=RelaxationConfig(), cvx=ConvexSolverConfig(), dev=DevConfig())

    @classmethod
    def from_options(cls, options: Optional[Dict[str, Any]] = None) -> "Config":
        """Build a Config from a flat options dictionary.

        Accepts the classic option names (``freeFinalTime``, ``withInputs``,
        ``solver_options``, ``svd_eps``) as well as their snake_case spellings and
        the solver/dev switches. Unset options keep their defaults.

        Raises:
            ConfigurationError: If an option name is not recognized, or a flag is not
                a boolean or 0/1.
        """
        config = cls.default()
        for key, value in (options or {}).items():
            if key not in _OPTION_KEYS:
                raise ConfigurationError(
                    f"Unknown option '{key}'. Recognized options: {sorted(_OPTION_KEYS)}"
                )
            section, attr = _OPTION_KEYS[key]
            if attr == "solver_args" and value is None:
                value = {}
            elif attr in ("free_final_time", "with_inputs", "verbose", "printing", "profiling"):
                if isinstance(value, (bool, np.bool_)):
                    value = bool(value)
                elif isinstance(value, (int, np.integer)) and value in (0, 1):
                    value = bool(value)
                else:
                    raise ConfigurationError(
                        f"Option '{key}' must be a boolean or 0/1, got {value!r}"
                    )
            elif attr == "svd_eps":
                value = float(value)
            setattr(getattr(config, section), attr, value)
        return config
