"""
Deck creation and set subtraction against a card history.

The deck is a numpy int8 array of length 52.
    1 = card is still available
    0 = card has been revealed (is in the history)

Inside the memoized solver the same information travels as a 52-bit integer
"dealt" mask (bit ``card`` set = card revealed), which is hashable and makes
a cheap cache key.  Both forms give O(52) subtraction, never a list scan per
history card.

Integer encoding: card // 4 = rank index, card % 4 = suit index.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from .cards import DECK_SIZE, card_to_str
from .errors import InvalidHistory

_CARD_INDICES: np.ndarray = np.arange(DECK_SIZE, dtype=np.int64)


def create_deck() -> np.ndarray:
    """Create a fresh, full 52-card deck.

    Returns:
        np.ndarray: int8 array of shape (52,), all 1s (all cards available).

    Examples:
        >>> deck = create_deck()
        >>> deck.sum()
        52
        >>> deck.dtype
        dtype('int8')
    """
    return np.ones(DECK_SIZE, dtype=np.int8)


def available_cards(deck: np.ndarray) -> np.ndarray:
    """Return the indices of cards still available in the deck, ascending.

    Examples:
        >>> deck = create_deck()
        >>> len(available_cards(deck))
        52
    """
    return np.flatnonzero(deck == 1)


def cards_remaining(deck: np.ndarray) -> int:
    """Return the count of cards still available in the deck.

    Examples:
        >>> deck = create_deck()
        >>> cards_remaining(deck)
        52
    """
    return int(deck.sum())


def build_deck_from_history(history: Sequence[int]) -> np.ndarray:
    """Create a deck with every card of *history* marked as revealed.

    Args:
        history: Revealed cards (any order).

    Returns:
        np.ndarray: deck mask with those cards set to 0.

    Raises:
        InvalidHistory: If a card is out of range or appears twice.

    Examples:
        >>> deck = build_deck_from_history((49, 0))   # AD, 2H
        >>> cards_remaining(deck)
        50
    """
    deck = create_deck()
    for card in history:
        if not 0 <= card < DECK_SIZE:
            raise InvalidHistory(f"Card {card} is not in the deck.")
        if deck[card] == 0:
            raise InvalidHistory(f"Card {card_to_str(card)} appears twice in the history.")
        deck[card] = 0
    return deck


def remaining_cards(history: Sequence[int]) -> np.ndarray:
    """Return the deck minus *history*, as ascending card integers.

    The result always has ``52 - len(history)`` elements.

    Raises:
        InvalidHistory: If the history repeats or misnames a card.
    """
    return available_cards(build_deck_from_history(history))


def dealt_mask(history: Sequence[int]) -> int:
    """Encode a history as a bitmask with bit ``card`` set for each card.

    Duplicates collapse; callers validate with :func:`build_deck_from_history`
    first.

    Examples:
        >>> dealt_mask((0, 3))
        9
    """
    mask = 0
    for card in history:
        mask |= 1 << card
    return mask


def cards_from_mask(mask: int) -> np.ndarray:
    """Return the cards *not* set in a dealt bitmask, ascending.

    Examples:
        >>> len(cards_from_mask(0))
        52
        >>> 0 in cards_from_mask(1)
        False
    """
    return _CARD_INDICES[(np.int64(mask) >> _CARD_INDICES) & 1 == 0]
