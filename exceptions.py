"""Errors raised while loading SSVEP datasets and fitting TRCA models."""


class TRCAError(Exception):
    """Base class for errors raised by this package."""


class DatasetShapeError(TRCAError, ValueError):
    """Raised when an EEG array does not have the (targets, channels, samples, blocks) layout."""

    def __init__(self, message, shape=None):
        if shape is not None:
            message = f"{message} (got shape {tuple(shape)})"
        super().__init__(message)
        self.shape = None if shape is None else tuple(shape)


class ConvergenceError(TRCAError):
    """Raised when the TRCA eigenvalue problem cannot be solved."""
