"""
Card constants, encoding, and human-readable I/O helpers.

Card encoding (integer 0–51):
    rank_index = card // 4  ->  0=2, 1=3, ..., 8=10, 9=J, 10=Q, 11=K, 12=A
    suit_index = card % 4   ->  0=H, 1=D, 2=S, 3=C

Rank *values* run 2–14 (Jack=11, Queen=12, King=13, Ace=14) and are what the
higher/lower and inside/outside rules compare.  Suits 0–1 are red, 2–3 black,
so the color of a card is simply ``suit_index >> 1``.

String representations are used exclusively at I/O boundaries.
"""

from __future__ import annotations

import re

from .errors import InvalidCardError

RANK_NAMES: list[str] = ['2', '3', '4', '5', '6', '7', '8', '9', '10', 'J', 'Q', 'K', 'A']
SUIT_NAMES: list[str] = ['H', 'D', 'S', 'C']
SUIT_LONG_NAMES: list[str] = ['hearts', 'diamonds', 'spades', 'clubs']

NUM_RANKS: int = 13
NUM_SUITS: int = 4
DECK_SIZE: int = NUM_RANKS * NUM_SUITS

# Rank value of rank_index 0.
LOWEST_RANK: int = 2
RANK_JACK: int = 11
RANK_QUEEN: int = 12
RANK_KING: int = 13
RANK_ACE: int = 14

SUIT_HEARTS: int = 0
SUIT_DIAMONDS: int = 1
SUIT_SPADES: int = 2
SUIT_CLUBS: int = 3

COLOR_RED: int = 0
COLOR_BLACK: int = 1

_HISTORY_SPLIT = re.compile(r"[\s,]+")


def make_card(rank: int, suit: int) -> int:
    """Build a card integer from a rank value (2–14) and suit index (0–3).

    Examples:
        >>> make_card(2, 0)    # 2 of Hearts
        0
        >>> make_card(14, 3)   # Ace of Clubs
        51
    """
    return (rank - LOWEST_RANK) * NUM_SUITS + suit


def card_rank(card: int) -> int:
    """Return the rank value (2–14) of a card.

    Examples:
        >>> card_rank(0)   # 2 of Hearts
        2
        >>> card_rank(49)  # Ace of Diamonds
        14
    """
    return card // NUM_SUITS + LOWEST_RANK


def card_suit(card: int) -> int:
    """Return the suit index (0–3) of a card.

    Examples:
        >>> card_suit(0)   # 2 of Hearts
        0
        >>> card_suit(51)  # Ace of Clubs
        3
    """
    return card % NUM_SUITS


def card_color(card: int) -> int:
    """Return 0 for a red card (hearts, diamonds) and 1 for a black one."""
    return (card % NUM_SUITS) >> 1


def full_deck() -> frozenset[int]:
    """Return every card in the 52-card deck."""
    return frozenset(range(DECK_SIZE))


def card_to_str(card: int) -> str:
    """Convert a card integer to its human-readable string representation.

    Examples:
        >>> card_to_str(0)    # 2 of Hearts
        '2H'
        >>> card_to_str(49)   # Ace of Diamonds
        'AD'
        >>> card_to_str(35)   # 10 of Clubs
        '10C'
    """
    return RANK_NAMES[card // NUM_SUITS] + SUIT_NAMES[card % NUM_SUITS]


def str_to_card(s: str) -> int:
    """Parse a human-readable card string to its integer encoding.

    The format is <rank><suit> where suit is the last character, matched
    case-insensitively.  Rank can be '2'-'9', '10', 'J', 'Q', 'K', or 'A'.
    Suit can be 'H', 'D', 'S', or 'C'.

    Raises:
        InvalidCardError: If the string does not name a card.

    Examples:
        >>> str_to_card('2H')
        0
        >>> str_to_card('ad')
        49
        >>> str_to_card('10C')
        35
    """
    text = s.strip().upper()
    rank_str, suit_char = text[:-1], text[-1:]
    if rank_str not in RANK_NAMES or suit_char not in SUIT_NAMES:
        raise InvalidCardError(f"Not a card: {s!r}")
    return RANK_NAMES.index(rank_str) * NUM_SUITS + SUIT_NAMES.index(suit_char)


def history_to_str(history: tuple[int, ...]) -> str:
    """Convert a history (most-recent-first) to a human-readable string.

    Examples:
        >>> history_to_str((49, 0))
        'AD 2H'
    """
    return ' '.join(card_to_str(c) for c in history)


def parse_history(text: str) -> tuple[int, ...]:
    """Parse whitespace- or comma-separated card strings, most-recent-first.

    Examples:
        >>> parse_history('KC, 5H')
        (47, 12)
        >>> parse_history('')
        ()
    """
    return tuple(str_to_card(tok) for tok in _HISTORY_SPLIT.split(text.strip()) if tok)
