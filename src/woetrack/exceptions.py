"""Errors raised while binning and computing WOE/IV statistics."""
from typing import Optional


class WOEError(Exception):
    """
    Base class for woetrack errors.

    Parameters
    ----------
    message : str
        Description of the failure.
    variable : str, optional
        Name of the predictor whose pipeline failed, when known.
    """

    def __init__(self, message: str, variable: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.variable = variable

    def __reduce__(self):
        return (self.__class__, (self.message, self.variable))

    def __str__(self):
        if self.variable is None:
            return self.message
        return f"[{self.variable}] {self.message}"


class InvalidInputError(WOEError, ValueError):
    """Input is not tabular, a column is missing or has mixed types."""


class InvalidOutcomeError(WOEError, ValueError):
    """Outcome column is not a supported two-valued encoding."""


class MalformedRuleError(WOEError):
    """A tree leaf path cannot be turned into a numeric interval."""


class BinAssignmentError(WOEError):
    """An observation could not be matched to any fitted bin."""


class DegenerateBinWarning(UserWarning):
    """A bin has zero observations of one outcome class."""
