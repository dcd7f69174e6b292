"""Exceptions raised by the reconstruction stage."""


class ReconstructionError(Exception):
    """Base class for errors raised while rebuilding file state."""


class InputValidationError(ReconstructionError, ValueError):
    """A change record in a batch is malformed."""

    def __init__(self, message: str, index: int = -1):
        super().__init__(message)
        self.index = index


class DataIntegrityError(ReconstructionError):
    """Integrity problem promoted to a hard failure in strict mode."""


class GitHistoryError(RuntimeError):
    """The git history could not be read."""
