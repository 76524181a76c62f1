"""
Input-rejection errors for the Ride the Bus solver.

Every error is a ``ValueError`` so callers that only care about "bad input"
can catch that.  Validation happens once at the public solver boundary; the
memoized recursion itself never raises.
"""

from __future__ import annotations


class SolverInputError(ValueError):
    """Base class for all rejected solver inputs."""


class InvalidPot(SolverInputError):
    """The pot is not a positive, finite number."""


class InvalidHistory(SolverInputError):
    """The history repeats a card, names a non-card, or exhausts the deck."""


class InsufficientHistory(SolverInputError):
    """The history is too short for the scoring rule of the decision."""


class UnknownChoice(SolverInputError):
    """The choice is not offered at the decision."""


class InvalidCardError(SolverInputError):
    """A card string could not be parsed."""
