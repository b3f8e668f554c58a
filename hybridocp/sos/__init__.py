"""Sum-of-squares program container (symbolic side of the relaxation)."""

from .program import CoefficientMatching, SOSExpression, SOSProgram

__all__ = ["SOSProgram", "SOSExpression", "CoefficientMatching"]
