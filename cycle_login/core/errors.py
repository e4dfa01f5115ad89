"""Exceptions that cross layer boundaries.

Negative lookups (unknown user, duplicate username, bad cycle) are returned
as values by the services; only the two failure kinds below are raised.
"""


class CycleLoginError(Exception):
    """Base class for errors raised by this package."""


class BackendFailure(CycleLoginError):
    """A record store could not be read or written (disk, database, network)."""

    def __init__(self, message: str, *, backend: str | None = None):
        super().__init__(message)
        self.backend = backend


class AdminRequired(CycleLoginError):
    """An administrative operation was called without a valid admin claim."""
