"""
crossing/errors.py
==================
Exception hierarchy for the intersection core.
"""


class CrossingError(Exception):
    """Base class for every error raised by :mod:`crossing`."""


class ConfigError(CrossingError, ValueError):
    """A :class:`~crossing.signal_policy.SignalPolicy` value is out of range."""


class InvariantError(CrossingError, RuntimeError):
    """The controller was asked to publish a table that breaks a safety invariant."""
