"""
Exception types for hdemix.

The inference core has no recoverable-error path: broken preconditions are
integration or configuration defects and surface as `PreconditionError`.
"""


class HDemixError(Exception):
    """Base class for all hdemix errors."""


class PreconditionError(HDemixError, AssertionError):
    """A fatal precondition of the inference pipeline was violated."""


class ConfigError(HDemixError, ValueError):
    """An inference configuration could not be loaded or is inconsistent."""


def require(condition: bool, message: str) -> None:
    """Raise `PreconditionError` with `message` unless `condition` holds."""
    if not condition:
        raise PreconditionError(message)
