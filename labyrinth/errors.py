"""Exception types raised by the Labyrinth engine."""

from typing import Optional


class LabyrinthError(Exception):
    """Base class for engine errors."""
    pass


class LossLogValidationError(LabyrinthError):
    """A submission is missing required fields.

    Raised before any I/O, so no state has been mutated when it surfaces.
    The message is meant to be shown to the user as-is.
    """

    def __init__(self, message: str, field_name: Optional[str] = None):
        super().__init__(message)
        self.field_name = field_name


class RecordStoreError(LabyrinthError):
    """Error raised when the record store fails to create, read or modify a record."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class RecordParseError(LabyrinthError):
    """A stored record's metadata could not be interpreted as a loss log."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Could not parse record '{path}': {reason}")
        self.path = path
        self.reason = reason


class BountyError(LabyrinthError):
    """Error raised for invalid bounty operations (e.g. starting a second one)."""
    pass
