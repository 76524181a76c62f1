"""
Scoring: the pot multiplier earned by a guess once the next card is revealed.

Rules (first match wins, anything else busts to 0):
    1. RED / BLACK          → 2     newest card has that color
    2. HIGHER               → 3/2   newest rank ≥ previous rank (tie is higher)
       LOWER                → 3/2   newest rank <  previous rank
    3. INSIDE               → 4/3   min(r1, r2) ≤ newest rank ≤ max(r1, r2)
       OUTSIDE              → 4/3   newest rank < min or > max
    4. HEARTS … CLUBS       → 10/4  newest card has that suit
    5. otherwise            → 0

History convention: ``extended_history[0]`` is the card just revealed,
``extended_history[1]`` the card shown before it, and so on.  For the bounds
rule r1 and r2 are the ranks of ``extended_history[1]`` and
``extended_history[2]``.

Multipliers turn the running pot 1x → 2x → 3x → 4x → 10x.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from .cards import (
    COLOR_BLACK,
    COLOR_RED,
    DECK_SIZE,
    LOWEST_RANK,
    NUM_SUITS,
    SUIT_CLUBS,
    SUIT_DIAMONDS,
    SUIT_HEARTS,
    SUIT_SPADES,
    card_color,
    card_rank,
    card_suit,
)
from .decisions import Choice, Decision, decision_for, required_history
from .errors import InsufficientHistory, InvalidHistory, UnknownChoice

COLOR_PAYOUT: float = 2.0
LATITUDE_PAYOUT: float = 3.0 / 2.0
BOUNDS_PAYOUT: float = 4.0 / 3.0
SUIT_PAYOUT: float = 10.0 / 4.0

BUST: float = 0.0

_COLOR_OF: dict[Choice, int] = {Choice.RED: COLOR_RED, Choice.BLACK: COLOR_BLACK}

SUIT_OF: dict[Choice, int] = {
    Choice.HEARTS: SUIT_HEARTS,
    Choice.DIAMONDS: SUIT_DIAMONDS,
    Choice.SPADES: SUIT_SPADES,
    Choice.CLUBS: SUIT_CLUBS,
}


# ─── Scalar rule ──────────────────────────────────────────────────────────────


def score(choice: Choice, extended_history: Sequence[int]) -> float:
    """Return the pot multiplier for *choice* given the revealed card.

    Args:
        choice:           A guess offered by some decision (not CASHOUT).
        extended_history: Cards most-recent-first, the revealed card at index 0.

    Returns:
        One of 2, 3/2, 4/3, 10/4 on a win, or 0.0 on a bust.

    Raises:
        UnknownChoice:       If *choice* is CASHOUT.
        InsufficientHistory: If the rule needs more prior cards than given.
        InvalidHistory:      If a card the rule reads is not in the deck.

    Examples:
        >>> score(Choice.RED, (0,))           # 2H
        2.0
        >>> score(Choice.LOWER, (0, 49))      # 2H after AD
        1.5
        >>> score(Choice.HIGHER, (1, 0))      # 2D after 2H: tie counts as higher
        1.5
    """
    decision = decision_for(choice)
    needed = 1 + required_history(decision)
    if len(extended_history) < needed:
        raise InsufficientHistory(
            f"{decision.name} needs {needed} cards including the revealed one, "
            f"got {len(extended_history)}."
        )
    for read in extended_history[:needed]:
        if not 0 <= read < DECK_SIZE:
            raise InvalidHistory(f"Card {read} is not in the deck.")

    card = extended_history[0]

    if choice in _COLOR_OF:
        if card_color(card) == _COLOR_OF[choice]:
            return COLOR_PAYOUT
        return BUST

    if decision is Decision.PICK_LATITUDE:
        cur, prev = card_rank(card), card_rank(extended_history[1])
        if choice is Choice.HIGHER and cur >= prev:
            return LATITUDE_PAYOUT
        if choice is Choice.LOWER and cur < prev:
            return LATITUDE_PAYOUT
        return BUST

    if decision is Decision.PICK_BOUNDS:
        cur = card_rank(card)
        r1, r2 = card_rank(extended_history[1]), card_rank(extended_history[2])
        low, high = min(r1, r2), max(r1, r2)
        if choice is Choice.INSIDE and low <= cur <= high:
            return BOUNDS_PAYOUT
        if choice is Choice.OUTSIDE and (cur < low or cur > high):
            return BOUNDS_PAYOUT
        return BUST

    if card_suit(card) == SUIT_OF[choice]:
        return SUIT_PAYOUT
    return BUST


# ─── Vectorized rule ──────────────────────────────────────────────────────────


def score_cards(
    choice: Choice,
    cards: np.ndarray,
    prior_ranks: tuple[int, ...] = (),
) -> np.ndarray:
    """Score *choice* against every candidate revealed card at once.

    Hot-path twin of :func:`score` used by the solver.  The caller supplies
    only the prior ranks the rule reads (see ``decisions.relevant_ranks``),
    so it is not re-validated here.

    Args:
        choice:      A guess (not CASHOUT).
        cards:       int array of candidate revealed cards.
        prior_ranks: Ranks of the previously shown cards the rule compares to:
                     one for HIGHER/LOWER, two (any order) for INSIDE/OUTSIDE.

    Returns:
        float64 array, same length as *cards*, holding the multiplier or 0.0.

    Examples:
        >>> score_cards(Choice.INSIDE, np.array([0, 20, 48]), (5, 9)).tolist()
        [0.0, 1.3333333333333333, 0.0]
    """
    suits = cards % NUM_SUITS

    if choice in _COLOR_OF:
        wins = (suits >> 1) == _COLOR_OF[choice]
        payout = COLOR_PAYOUT
    elif choice in SUIT_OF:
        wins = suits == SUIT_OF[choice]
        payout = SUIT_PAYOUT
    else:
        ranks = cards // NUM_SUITS + LOWEST_RANK
        if choice is Choice.HIGHER:
            wins = ranks >= prior_ranks[0]
            payout = LATITUDE_PAYOUT
        elif choice is Choice.LOWER:
            wins = ranks < prior_ranks[0]
            payout = LATITUDE_PAYOUT
        elif choice is Choice.INSIDE or choice is Choice.OUTSIDE:
            low, high = min(prior_ranks[:2]), max(prior_ranks[:2])
            inside = (ranks >= low) & (ranks <= high)
            wins = inside if choice is Choice.INSIDE else ~inside
            payout = BOUNDS_PAYOUT
        else:
            raise UnknownChoice(f"{choice.name} is not a guess at any decision.")

    return np.where(wins, payout, BUST)
