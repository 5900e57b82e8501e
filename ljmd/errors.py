"""Exception hierarchy for ljmd."""

from __future__ import annotations


class LJMDError(Exception):
    """Base class for all ljmd errors."""


class InputError(LJMDError, ValueError):
    """Malformed or truncated input script."""


class RestartError(LJMDError, OSError):
    """Restart file missing, unreadable, or too short."""


class OutputError(LJMDError, OSError):
    """Trajectory or energy log file cannot be created or written."""


class DeviceError(LJMDError, RuntimeError):
    """
    A compute device operation failed.

    Every device call is checked as soon as it returns, so the error names
    the single operation that failed.

    Attributes:
        operation: Name of the failing device operation.
    """

    def __init__(self, operation: str, message: str) -> None:
        self.operation = operation
        super().__init__(f"{operation}: {message}")


class StagingError(LJMDError, RuntimeError):
    """A staging slot was captured twice or consumed while empty."""
