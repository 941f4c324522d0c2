"""Exception types raised by the navigation solver."""

from __future__ import annotations


class SpaceNavError(Exception):
    """Base class for navigation solver errors."""


class NotConfiguredError(SpaceNavError, RuntimeError):
    """Raised when grids or value fields are queried before an environment is set."""

    def __init__(self, message: str = "Navigation environment is not configured") -> None:
        super().__init__(message)
