"""Exception taxonomy for the dice engine.

All errors derive from :class:`DiceError`, itself a ``ValueError``, so callers
that only care about "bad input" can catch a single type. Every error carries
the expression being rolled and, where it can be pinned down, the offending
fragment of it.
"""

from __future__ import annotations


class DiceError(ValueError):
    """Base class for every error raised while parsing or rolling dice."""

    def __init__(self, message: str, *, expression: str = "", fragment: str | None = None) -> None:
        super().__init__(message)
        self.expression = expression
        self.fragment = fragment


class ParseError(DiceError):
    """Raised when no recognizable dice or flat term exists in the expression."""


class EmptyExpressionError(DiceError):
    """Raised when an expression parses to zero terms."""


class ExplosionLimitExceededError(DiceError):
    """Raised when a single dice group explodes more times than allowed."""


class RandomSourceContractError(DiceError):
    """Raised when the random source returns a non-integer or out-of-range value.

    This signals a bug in the injected dependency, not bad user input.
    """


class UnknownCommandError(DiceError):
    """Raised when a slash command is not registered."""
