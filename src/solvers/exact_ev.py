"""
Exact EV solver for Ride the Bus by exhaustive backward induction.

Decision node: best of cashing out (EV = pot) and every guess the decision
offers.  Chance node: for a fixed guess, the unweighted mean over every card
still in the deck of that card's outcome: the next decision's best EV at the
scaled pot, or simply the scaled pot when the chain is exhausted or the guess
busted.

EV is linear in pot, so the recursion runs per unit pot and is scaled at the
public boundary.  State is abstracted as ``(decision, dealt_mask, ranks)``:
the bitmask fixes the exact remaining-deck composition and ``ranks`` holds
only the prior ranks the decision's rule reads (``relevant_ranks``).  That
collapses the full-history tree to a few tens of thousands of cached states.

Tie-break: candidates within ``TIE_TOLERANCE`` of the best EV are tied;
CASHOUT wins a tie, otherwise the earliest declared guess does.
"""

from __future__ import annotations

import functools
import logging
import math
import operator
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from src.engine.cards import card_rank, history_to_str
from src.engine.deck import build_deck_from_history, cards_from_mask, dealt_mask
from src.engine.decisions import (
    FIRST_DECISION,
    Choice,
    Decision,
    check_choice,
    choices_for,
    decisions_after,
    next_decision,
    relevant_ranks,
    required_history,
)
from src.engine.errors import InsufficientHistory, InvalidHistory, InvalidPot
from src.engine.rules import score, score_cards

logger = logging.getLogger(__name__)

# ─── Constants ────────────────────────────────────────────────────────────────

TIE_TOLERANCE: float = 1e-12
"""Relative and absolute tolerance under which two EVs count as tied."""

CASHOUT_UNIT_EV: float = 1.0
"""Cashing out keeps the pot unchanged."""


# ─── Result types ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ChoiceEvaluation:
    """EV of one candidate action at a decision node."""

    choice: Choice
    expected_value: float


@dataclass(frozen=True)
class DecisionResult:
    """Fully evaluated decision node.

    Attributes:
        decision:    The decision that was evaluated.
        pot:         Pot carried into the decision.
        history:     Cards revealed so far, most-recent-first.
        evaluations: Every guess in declaration order, then CASHOUT last.
        best_choice: The optimal action after tie-breaking.
        best_ev:     EV of ``best_choice``.
        outcome_count: Leaves of the game tree below this node: one per
                     busted or final card, over every guess.
    """

    decision: Decision
    pot: float
    history: tuple[int, ...]
    evaluations: tuple[ChoiceEvaluation, ...]
    best_choice: Choice
    best_ev: float
    outcome_count: int

    def ev_of(self, choice: Choice) -> float:
        """Return the EV of *choice* at this node."""
        for evaluation in self.evaluations:
            if evaluation.choice is choice:
                return evaluation.expected_value
        raise KeyError(choice)


# ─── Boundary validation ──────────────────────────────────────────────────────


def _check_pot(pot: float) -> float:
    """Return *pot* as a float, rejecting non-positive or non-finite values."""
    try:
        value = float(pot)
    except (TypeError, ValueError):
        raise InvalidPot(f"Pot must be a number, got {pot!r}.") from None
    if not math.isfinite(value) or value <= 0.0:
        raise InvalidPot(f"Pot must be positive and finite, got {pot!r}.")
    return value


def _check_state(history: Sequence[int], decision: Decision) -> tuple[int, ...]:
    """Validate *history* for *decision* and return it as a tuple.

    Raises:
        InvalidHistory:      Duplicate/out-of-range card, or the deck would run
                             out before the decision chain ends.
        InsufficientHistory: Fewer prior cards than the decision's rule reads.
    """
    try:
        history = tuple(operator.index(c) for c in history)
    except TypeError:
        raise InvalidHistory(f"History cards must be integers, got {history!r}.") from None
    deck = build_deck_from_history(history)
    needed = required_history(decision)
    if len(history) < needed:
        raise InsufficientHistory(
            f"{decision.name} needs at least {needed} revealed cards, got {len(history)}."
        )
    draws = decisions_after(decision)
    if int(deck.sum()) < draws:
        raise InvalidHistory(
            f"{len(history)} revealed cards leave too few for {draws} more draws."
        )
    return history


def _state_key(history: tuple[int, ...], decision: Decision) -> tuple[int, tuple[int, ...]]:
    """Return the ``(dealt_mask, ranks)`` cache key for a validated state."""
    ranks = tuple(card_rank(c) for c in history[:required_history(decision)])
    return dealt_mask(history), relevant_ranks(decision, ranks)


# ─── Memoized per-unit-pot recursion ──────────────────────────────────────────


def _pick_best(candidates: Sequence[tuple[Choice, float]]) -> tuple[Choice, float]:
    """Apply the tie-break rule to ``(choice, ev)`` candidates.

    *candidates* must list guesses in declaration order; CASHOUT may appear
    anywhere.
    """
    best_ev = max(ev for _, ev in candidates)
    tied = [
        (choice, ev)
        for choice, ev in candidates
        if math.isclose(ev, best_ev, rel_tol=TIE_TOLERANCE, abs_tol=TIE_TOLERANCE)
    ]
    for choice, ev in tied:
        if choice is Choice.CASHOUT:
            return choice, ev
    return tied[0]


@functools.cache
def _unit_choice_ev(
    decision: Decision,
    choice: Choice,
    mask: int,
    ranks: tuple[int, ...],
) -> float:
    """Chance node per unit pot: mean outcome over every remaining card."""
    cards = cards_from_mask(mask)
    scores = score_cards(choice, cards, ranks)
    following = next_decision(decision)
    if following is None:
        return float(scores.mean())

    # Busted cards keep their 0.0; winners continue into the next decision.
    values = scores.copy()
    for i in np.flatnonzero(scores > 0.0):
        card = int(cards[i])
        next_ranks = relevant_ranks(following, (card_rank(card),) + ranks)
        _, unit_best = _unit_best(following, mask | (1 << card), next_ranks)
        values[i] = scores[i] * unit_best
    return float(values.mean())


@functools.cache
def _unit_best(
    decision: Decision,
    mask: int,
    ranks: tuple[int, ...],
) -> tuple[Choice, float]:
    """Decision node per unit pot: best of cashout and every guess."""
    candidates = [
        (choice, _unit_choice_ev(decision, choice, mask, ranks))
        for choice in choices_for(decision)
    ]
    candidates.append((Choice.CASHOUT, CASHOUT_UNIT_EV))
    return _pick_best(candidates)


@functools.cache
def _leaf_count(
    decision: Decision,
    mask: int,
    ranks: tuple[int, ...],
) -> int:
    """Count game-tree leaves below a decision: busts and final wins."""
    cards = cards_from_mask(mask)
    following = next_decision(decision)
    total = 0
    for choice in choices_for(decision):
        wins = score_cards(choice, cards, ranks) > 0.0
        total += int(np.count_nonzero(~wins))
        if following is None:
            total += int(np.count_nonzero(wins))
            continue
        for card in cards[wins].tolist():
            next_ranks = relevant_ranks(following, (card_rank(card),) + ranks)
            total += _leaf_count(following, mask | (1 << card), next_ranks)
    return total


def clear_cache() -> None:
    """Drop every memoized state (mainly for tests and benchmarks)."""
    _unit_choice_ev.cache_clear()
    _unit_best.cache_clear()
    _leaf_count.cache_clear()


def cache_info() -> dict:
    """Return ``functools`` cache statistics for every memo table."""
    return {
        "choice": _unit_choice_ev.cache_info(),
        "decision": _unit_best.cache_info(),
        "outcomes": _leaf_count.cache_info(),
    }


# ─── Chance node ──────────────────────────────────────────────────────────────


def evaluate_choice(
    pot: float,
    history: Sequence[int],
    decision: Decision,
    choice: Choice,
) -> float:
    """Return the EV of making *choice* at *decision*.

    The EV is the arithmetic mean, one equal weight per remaining card, of the
    outcome of revealing that card.

    Args:
        pot:      Pot carried into the decision (> 0).
        history:  Revealed cards, most-recent-first.
        decision: The decision being made.
        choice:   A guess offered at *decision*.

    Raises:
        InvalidPot, InvalidHistory, InsufficientHistory, UnknownChoice.
    """
    pot = _check_pot(pot)
    history = _check_state(history, decision)
    check_choice(decision, choice)
    mask, ranks = _state_key(history, decision)
    return pot * _unit_choice_ev(decision, choice, mask, ranks)


def choice_outcomes(
    pot: float,
    history: Sequence[int],
    decision: Decision,
    choice: Choice,
) -> dict[int, float]:
    """Return the outcome value of every card that could be revealed next.

    Each value is ``score * pot`` when the chain ends there or the guess
    busts, otherwise the next decision's best EV at ``score * pot``.
    :func:`evaluate_choice` is the unweighted mean of these values.

    Returns:
        Dict mapping card → outcome value, one entry per remaining card.
    """
    pot = _check_pot(pot)
    history = _check_state(history, decision)
    check_choice(decision, choice)
    following = next_decision(decision)
    mask = dealt_mask(history)

    outcomes: dict[int, float] = {}
    for card in cards_from_mask(mask):
        card = int(card)
        extended = (card,) + history
        new_pot = score(choice, extended) * pot
        if following is not None and new_pot > 0.0:
            _, next_ranks = _state_key(extended, following)
            _, unit_best = _unit_best(following, mask | (1 << card), next_ranks)
            outcomes[card] = new_pot * unit_best
        else:
            outcomes[card] = new_pot
    return outcomes


# ─── Decision node ────────────────────────────────────────────────────────────


def evaluate_decision(
    pot: float,
    history: Sequence[int],
    decision: Decision,
) -> DecisionResult:
    """Evaluate every candidate at *decision* and pick the best.

    Returns:
        DecisionResult with one ChoiceEvaluation per guess plus CASHOUT.

    Raises:
        InvalidPot, InvalidHistory, InsufficientHistory.
    """
    pot = _check_pot(pot)
    history = _check_state(history, decision)
    mask, ranks = _state_key(history, decision)

    evaluations = [
        ChoiceEvaluation(choice, pot * _unit_choice_ev(decision, choice, mask, ranks))
        for choice in choices_for(decision)
    ]
    evaluations.append(ChoiceEvaluation(Choice.CASHOUT, pot * CASHOUT_UNIT_EV))
    best_choice, best_ev = _pick_best([(e.choice, e.expected_value) for e in evaluations])

    return DecisionResult(
        decision=decision,
        pot=pot,
        history=history,
        evaluations=tuple(evaluations),
        best_choice=best_choice,
        best_ev=best_ev,
        outcome_count=_leaf_count(decision, mask, ranks),
    )


def best_choice_ev(
    pot: float,
    history: Sequence[int],
    decision: Decision,
) -> tuple[Choice, float]:
    """Return ``(best_choice, best_ev)`` at *decision*, cashout included."""
    result = evaluate_decision(pot, history, decision)
    return result.best_choice, result.best_ev


def solve(
    initial_pot: float = 1.0,
    decision: Decision = FIRST_DECISION,
    history: Sequence[int] = (),
) -> tuple[Choice, float]:
    """Solve Ride the Bus from any reachable state.

    Args:
        initial_pot: Pot carried into *decision* (> 0).  1.0 yields EV per
                     unit wagered.
        decision:    Decision to start from (default: the first, PICK_COLOR).
        history:     Revealed cards, most-recent-first (default: none).

    Returns:
        ``(best_choice, best_ev)``.

    Examples:
        >>> choice, ev = solve(1.0)
        >>> round(ev, 6)
        1.224977
    """
    result = evaluate_decision(initial_pot, history, decision)
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "Solved %s pot=%s history=[%s]: %s (EV %.10f); %s",
            decision.name,
            result.pot,
            history_to_str(result.history),
            result.best_choice.name,
            result.best_ev,
            cache_info()["decision"],
        )
    return result.best_choice, result.best_ev


# ─── __main__ ─────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    import time

    print("Ride the Bus exact solver (52-card deck, optimal cashout)")
    t0 = time.time()
    root = evaluate_decision(1.0, (), FIRST_DECISION)
    elapsed = time.time() - t0

    print(f"Solved in {elapsed:.2f}s  ({cache_info()['decision'].currsize} decision states)")
    for evaluation in root.evaluations:
        marker = "  <----" if evaluation.choice is root.best_choice else ""
        print(f"  {evaluation.choice.name:<8} = {evaluation.expected_value:.10f}{marker}")
