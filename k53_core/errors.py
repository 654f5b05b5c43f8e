"""Exception types raised by the practice engine.

All of them are local, synchronous logic errors: nothing here is transient,
so callers should discard the session (or fix the bank/config) rather than
retry.
"""
from __future__ import annotations


class EngineError(Exception):
    """Base class for engine failures."""


class ConfigurationError(EngineError, ValueError):
    """Session-type configuration cannot be satisfied (quota, threshold, type name)."""


class StateError(EngineError, RuntimeError):
    """An operation was called in the wrong session state or with invalid input."""


class DataIntegrityError(EngineError, ValueError):
    """A bank record is malformed; raised while the pool is being loaded."""


class QuotaShortfallWarning(UserWarning):
    """A quota was capped at the available pool size."""


__all__ = [
    "EngineError",
    "ConfigurationError",
    "StateError",
    "DataIntegrityError",
    "QuotaShortfallWarning",
]
