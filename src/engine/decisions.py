"""
The fixed four-decision chain of Ride the Bus and each decision's choices.

    PICK_COLOR -> PICK_LATITUDE -> PICK_BOUNDS -> PICK_SUIT -> (terminal)

Choices are declared in a fixed order; that order is also the solver's
tie-break order after CASHOUT.  CASHOUT is a member of :class:`Choice` so the
solver can return it, but no decision offers it as a guess.
"""

from __future__ import annotations

from enum import Enum

from .errors import UnknownChoice


class Decision(Enum):
    """One stage of the decision chain."""

    PICK_COLOR = "PICK_COLOR"
    PICK_LATITUDE = "PICK_LATITUDE"
    PICK_BOUNDS = "PICK_BOUNDS"
    PICK_SUIT = "PICK_SUIT"


class Choice(Enum):
    """A selectable option at some decision, or CASHOUT."""

    RED = "RED"
    BLACK = "BLACK"
    HIGHER = "HIGHER"
    LOWER = "LOWER"
    INSIDE = "INSIDE"
    OUTSIDE = "OUTSIDE"
    HEARTS = "HEARTS"
    DIAMONDS = "DIAMONDS"
    SPADES = "SPADES"
    CLUBS = "CLUBS"
    CASHOUT = "CASHOUT"


_CHOICES: dict[Decision, tuple[Choice, ...]] = {
    Decision.PICK_COLOR: (Choice.RED, Choice.BLACK),
    Decision.PICK_LATITUDE: (Choice.HIGHER, Choice.LOWER),
    Decision.PICK_BOUNDS: (Choice.INSIDE, Choice.OUTSIDE),
    Decision.PICK_SUIT: (Choice.HEARTS, Choice.DIAMONDS, Choice.SPADES, Choice.CLUBS),
}

_NEXT: dict[Decision, Decision | None] = {
    Decision.PICK_COLOR: Decision.PICK_LATITUDE,
    Decision.PICK_LATITUDE: Decision.PICK_BOUNDS,
    Decision.PICK_BOUNDS: Decision.PICK_SUIT,
    Decision.PICK_SUIT: None,
}

# Prior cards (before the newly revealed one) each decision's rule reads.
_REQUIRED_HISTORY: dict[Decision, int] = {
    Decision.PICK_COLOR: 0,
    Decision.PICK_LATITUDE: 1,
    Decision.PICK_BOUNDS: 2,
    Decision.PICK_SUIT: 0,
}

_DECISION_OF: dict[Choice, Decision] = {
    choice: decision for decision, choices in _CHOICES.items() for choice in choices
}

FIRST_DECISION: Decision = Decision.PICK_COLOR


def choices_for(decision: Decision) -> tuple[Choice, ...]:
    """Return the guesses offered at *decision*, in declaration order.

    Examples:
        >>> choices_for(Decision.PICK_BOUNDS)
        (<Choice.INSIDE: 'INSIDE'>, <Choice.OUTSIDE: 'OUTSIDE'>)
    """
    return _CHOICES[decision]


def next_decision(decision: Decision) -> Decision | None:
    """Return the decision following *decision*, or None after PICK_SUIT."""
    return _NEXT[decision]


def decision_for(choice: Choice) -> Decision:
    """Return the decision that offers *choice*.

    Raises:
        UnknownChoice: For CASHOUT, which belongs to no decision.
    """
    try:
        return _DECISION_OF[choice]
    except KeyError:
        raise UnknownChoice(f"{choice.name} is not a guess at any decision.") from None


def check_choice(decision: Decision, choice: Choice) -> None:
    """Raise UnknownChoice unless *decision* offers *choice*."""
    if choice not in _CHOICES[decision]:
        raise UnknownChoice(f"{choice.name} is not offered at {decision.name}.")


def required_history(decision: Decision) -> int:
    """Return how many previously revealed cards *decision*'s rule reads."""
    return _REQUIRED_HISTORY[decision]


def relevant_ranks(decision: Decision, ranks: tuple[int, ...]) -> tuple[int, ...]:
    """Reduce most-recent-first *ranks* to the features *decision* reads.

    PICK_LATITUDE reads one rank and PICK_BOUNDS reads an unordered pair
    (only its min and max matter), so the canonical form is the leading
    ``required_history`` ranks, sorted.

    Examples:
        >>> relevant_ranks(Decision.PICK_BOUNDS, (13, 5, 9))
        (5, 13)
        >>> relevant_ranks(Decision.PICK_SUIT, (13, 5, 9))
        ()
    """
    return tuple(sorted(ranks[:_REQUIRED_HISTORY[decision]]))


def decisions_after(decision: Decision) -> int:
    """Return how many cards are still to be drawn, including this decision's.

    Examples:
        >>> decisions_after(Decision.PICK_COLOR)
        4
        >>> decisions_after(Decision.PICK_SUIT)
        1
    """
    count = 0
    current: Decision | None = decision
    while current is not None:
        count += 1
        current = _NEXT[current]
    return count
