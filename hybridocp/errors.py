"""Exception and warning types raised while building or solving a relaxation.

The taxonomy separates problems detected before any solver work
(``ConfigurationError``, ``UnsupportedConfiguration``) from failures reported
by the conic backend (``SolveFailed``). Residuals and Gram eigenvalues are never
raised; they are returned as data on the results object.
"""


class HybridOCPError(Exception):
    """Base class for all errors raised by hybridocp."""


class ConfigurationError(HybridOCPError, ValueError):
    """Inconsistent problem data (dimensions, modes, resets, options).

    Raised eagerly, before any indeterminate or constraint is created.
    """


class UnsupportedConfiguration(HybridOCPError, NotImplementedError):
    """A requested formulation exists on paper but is not supported.

    Currently only raised for the free-final-time terminal constraint.
    """


class SolveFailed(HybridOCPError, RuntimeError):
    """The conic solver did not return an optimal solution.

    Attributes:
        status: Raw status string reported by the solver backend.
        payload: Backend-specific diagnostic data (solver stats, exception, ...).
    """

    def __init__(self, status: str, payload=None):
        self.status = status
        self.payload = payload
        super().__init__(f"SOS relaxation solve failed with status '{status}'")


class NumericalWarning(UserWarning):
    """Non-fatal numerical adjustment, e.g. an odd relaxation degree bumped by one."""
