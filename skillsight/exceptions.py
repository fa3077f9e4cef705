"""
Engine Errors
=============

Error taxonomy shared by the regression and clustering engines.

All errors derive from ``ValueError`` so callers that already guard model
calls with ``except ValueError`` keep working.
"""


class EngineError(ValueError):
    """Base class for analytics engine failures."""


class NotTrainedError(EngineError):
    """Raised when inference is requested before the model was fitted."""


class EmptyDatasetError(EngineError):
    """Raised when there are not enough records to fit a model."""


class SingularMatrixError(EngineError):
    """Raised when a matrix cannot be inverted (degenerate or collinear input)."""
