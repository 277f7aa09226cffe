"""Exception types shared across Tempus Ring."""

from __future__ import annotations


class TempusError(Exception):
    """Base class for every error the backend surfaces to a front end."""


class IllegalTransition(TempusError):
    """``start()`` or ``pause()`` was called in a phase that forbids it.

    Raised before any state is touched, so the engine is unchanged.
    """


class InternalLockFailure(TempusError):
    """The engine state guard could not be used.

    Raised for every call after an unexpected exception escaped a critical
    section and left the state in an unknown condition.
    """


class StorageError(TempusError):
    """Reading or writing a preferences/statistics file failed."""


class InvalidConfig(TempusError):
    """A timer configuration failed validation."""


class InvalidArgument(TempusError):
    """A command argument could not be interpreted, such as a malformed date."""
