"""Central error types used across the package."""

from __future__ import annotations


class TrackMatchError(RuntimeError):
    """Base error for trajectory matching failures."""


class ConfigurationError(TrackMatchError):
    """Raised when a provider is constructed without its credential."""


class ProviderError(TrackMatchError):
    """Raised inside a provider when the remote service cannot be used.

    Providers recover from this locally by returning the input unchanged, so
    it never crosses the ``match`` boundary.
    """


class MatchCancelledError(TrackMatchError):
    """Raised when a newer request supersedes an in-flight match."""


__all__ = [
    "TrackMatchError",
    "ConfigurationError",
    "ProviderError",
    "MatchCancelledError",
]
