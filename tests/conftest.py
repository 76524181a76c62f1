"""
Shared pytest fixtures for Ride the Bus solver tests.

Provides convenience wrappers around str_to_card for building known histories.
"""

from __future__ import annotations

import numpy as np
import pytest

from src.engine.cards import str_to_card
from src.engine.deck import create_deck


def cards(*card_strs: str) -> tuple[int, ...]:
    """Build a history tuple (most-recent-first) from human-readable strings.

    Examples:
        >>> cards('AD')          # Ace of Diamonds
        (49,)
        >>> cards('5H', 'KC')    # 5 of Hearts shown after King of Clubs
        (12, 47)
    """
    return tuple(str_to_card(s) for s in card_strs)


@pytest.fixture
def fresh_deck() -> np.ndarray:
    """Return a full 52-card deck."""
    return create_deck()


@pytest.fixture
def h():
    """Expose the cards() helper as a fixture for convenience."""
    return cards
