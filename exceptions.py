"""Error types raised by the VaR pipeline."""


class GarchVarError(Exception):
    """Base class for pipeline errors"""


class InvalidInputError(GarchVarError):
    """Price series is malformed (too short, non-positive, unordered)"""


class InvalidParameterError(GarchVarError):
    """Confidence level, position size, horizon or grid is out of range"""


class ConvergenceFailureError(GarchVarError):
    """A single model fit did not converge"""

    def __init__(self, message: str, spec=None):
        super().__init__(message)
        self.spec = spec


class NoConvergedModelError(GarchVarError):
    """Every candidate in the search space failed to converge"""
