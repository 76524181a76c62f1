"""
Tests for src/solvers/exact_ev.py — chance node, decision node, and solve().

The reference game value is the published optimum for a unit bet from an empty
history.  A module-scoped fixture solves the root once; every later call reuses
the memo table.
"""

from __future__ import annotations

import logging
import math

import numpy as np
import pytest

from src.engine.cards import card_suit, SUIT_HEARTS
from src.engine.decisions import Choice, Decision, choices_for
from src.engine.deck import remaining_cards
from src.engine.errors import (
    InsufficientHistory,
    InvalidHistory,
    InvalidPot,
    SolverInputError,
    UnknownChoice,
)
from src.engine.rules import SUIT_PAYOUT
from src.solvers.exact_ev import (
    CASHOUT_UNIT_EV,
    TIE_TOLERANCE,
    ChoiceEvaluation,
    DecisionResult,
    _pick_best,
    best_choice_ev,
    cache_info,
    choice_outcomes,
    clear_cache,
    evaluate_choice,
    evaluate_decision,
    solve,
)
from tests.conftest import cards

REFERENCE_EV: float = 1.2249773755656113
TOL: float = 1e-9


@pytest.fixture(scope="module")
def root() -> DecisionResult:
    return evaluate_decision(1.0, (), Decision.PICK_COLOR)


# ─── Reference value & determinism ────────────────────────────────────────────


class TestReferenceValue:
    def test_game_value(self, root):
        assert abs(root.best_ev - REFERENCE_EV) < TOL

    def test_solve_matches(self):
        _, ev = solve(1.0)
        assert abs(ev - REFERENCE_EV) < TOL

    def test_default_arguments(self):
        assert solve() == solve(1.0, Decision.PICK_COLOR, ())

    def test_playing_beats_cashing_out(self, root):
        assert root.best_choice is not Choice.CASHOUT
        assert root.best_ev > 1.0

    def test_determinism(self):
        first = solve(1.0)
        clear_cache()
        second = solve(1.0)
        assert cache_info()["decision"].currsize > 0
        assert first[0] is second[0]
        assert abs(first[1] - second[1]) < TOL


class TestLinearityInPot:
    @pytest.mark.parametrize("k", [0.5, 2.0, 7.25, 1000.0])
    @pytest.mark.parametrize(
        "history,decision",
        [
            ((), Decision.PICK_COLOR),
            (cards("AD"), Decision.PICK_LATITUDE),
            (cards("9S", "4H"), Decision.PICK_BOUNDS),
            (cards("5H", "KC"), Decision.PICK_SUIT),
        ],
    )
    def test_scales(self, k, history, decision):
        base_choice, base_ev = best_choice_ev(1.5, history, decision)
        scaled_choice, scaled_ev = best_choice_ev(k * 1.5, history, decision)
        assert scaled_choice is base_choice
        assert math.isclose(scaled_ev, k * base_ev, rel_tol=1e-12)


# ─── Chance node ──────────────────────────────────────────────────────────────


class TestEvaluateChoice:
    def test_color_symmetry(self):
        red = evaluate_choice(1.0, (), Decision.PICK_COLOR, Choice.RED)
        black = evaluate_choice(1.0, (), Decision.PICK_COLOR, Choice.BLACK)
        assert math.isclose(red, black, rel_tol=1e-12)

    @pytest.mark.parametrize(
        "history,decision,choice",
        [
            ((), Decision.PICK_COLOR, Choice.BLACK),
            (cards("AD"), Decision.PICK_LATITUDE, Choice.LOWER),
            (cards("QS", "3H"), Decision.PICK_BOUNDS, Choice.INSIDE),
            (cards("QS", "3H"), Decision.PICK_BOUNDS, Choice.OUTSIDE),
            (cards("5H", "KC", "2D"), Decision.PICK_SUIT, Choice.DIAMONDS),
        ],
    )
    def test_unweighted_mean_of_outcomes(self, history, decision, choice):
        outcomes = choice_outcomes(2.0, history, decision, choice)
        assert len(outcomes) == 52 - len(history)
        assert set(outcomes) == set(remaining_cards(history).tolist())
        ev = evaluate_choice(2.0, history, decision, choice)
        assert math.isclose(ev, float(np.mean(list(outcomes.values()))), rel_tol=1e-12)

    def test_terminal_decision_scenario(self):
        history = cards("5H", "KC")
        outcomes = choice_outcomes(4.0, history, Decision.PICK_SUIT, Choice.HEARTS)
        for card, value in outcomes.items():
            expected = SUIT_PAYOUT * 4.0 if card_suit(card) == SUIT_HEARTS else 0.0
            assert value == expected
        ev = evaluate_choice(4.0, history, Decision.PICK_SUIT, Choice.HEARTS)
        assert ev == pytest.approx(sum(outcomes.values()) / 50)
        # 12 hearts left out of 50 cards.
        assert ev == pytest.approx(12 / 50 * 10.0)

    def test_bust_outcomes_are_zero(self):
        outcomes = choice_outcomes(2.0, cards("AD"), Decision.PICK_LATITUDE, Choice.HIGHER)
        losers = [v for c, v in outcomes.items() if c // 4 + 2 < 14]
        assert losers and all(v == 0.0 for v in losers)

    def test_winning_outcomes_include_continuation(self):
        # A winning color card leads to a pot-2 decision worth at least 2.
        outcomes = choice_outcomes(1.0, (), Decision.PICK_COLOR, Choice.RED)
        winners = [v for c, v in outcomes.items() if card_suit(c) < 2]
        assert len(winners) == 26
        assert all(v >= 2.0 for v in winners)


# ─── Decision node ────────────────────────────────────────────────────────────


class TestEvaluateDecision:
    def test_candidates_in_declaration_order_then_cashout(self):
        result = evaluate_decision(3.0, cards("9S", "4H"), Decision.PICK_BOUNDS)
        assert [e.choice for e in result.evaluations] == [
            Choice.INSIDE,
            Choice.OUTSIDE,
            Choice.CASHOUT,
        ]

    def test_cashout_ev_is_pot(self):
        result = evaluate_decision(3.0, cards("9S", "4H"), Decision.PICK_BOUNDS)
        assert result.ev_of(Choice.CASHOUT) == 3.0 * CASHOUT_UNIT_EV

    def test_best_is_maximum(self):
        result = evaluate_decision(2.0, cards("7C"), Decision.PICK_LATITUDE)
        assert result.best_ev == max(e.expected_value for e in result.evaluations)
        assert result.ev_of(result.best_choice) == result.best_ev

    def test_ev_matches_evaluate_choice(self):
        history = cards("QS", "3H")
        result = evaluate_decision(3.0, history, Decision.PICK_BOUNDS)
        for choice in choices_for(Decision.PICK_BOUNDS):
            assert result.ev_of(choice) == pytest.approx(
                evaluate_choice(3.0, history, Decision.PICK_BOUNDS, choice)
            )

    def test_ev_of_unknown_choice(self):
        result = evaluate_decision(3.0, cards("9S", "4H"), Decision.PICK_BOUNDS)
        with pytest.raises(KeyError):
            result.ev_of(Choice.HEARTS)

    def test_history_normalised_to_tuple(self):
        result = evaluate_decision(2.0, [49], Decision.PICK_LATITUDE)
        assert result.history == (49,)

    def test_best_choice_ev_agrees_with_evaluate_decision(self):
        result = evaluate_decision(2.0, cards("7C"), Decision.PICK_LATITUDE)
        assert best_choice_ev(2.0, cards("7C"), Decision.PICK_LATITUDE) == (
            result.best_choice,
            result.best_ev,
        )


class TestAceOfDiamondsScenario:
    def test_lower_beats_higher(self):
        history = cards("AD")
        higher = evaluate_choice(2.0, history, Decision.PICK_LATITUDE, Choice.HIGHER)
        lower = evaluate_choice(2.0, history, Decision.PICK_LATITUDE, Choice.LOWER)
        assert lower > higher

    def test_best_is_lower_or_cashout(self):
        choice, ev = solve(2.0, Decision.PICK_LATITUDE, cards("AD"))
        assert choice in (Choice.LOWER, Choice.CASHOUT)
        assert ev >= 2.0


class TestPickSuitDominance:
    """10/4 on a ≤13/49 chance never beats keeping the pot."""

    @pytest.mark.parametrize(
        "history",
        [
            cards("2H", "3S", "4C"),
            cards("2S", "3S", "4S"),
            cards("AC", "KC"),
            cards("5H", "KC", "9D", "JS", "7H"),
        ],
    )
    def test_cashout_never_worse(self, history):
        result = evaluate_decision(4.0, history, Decision.PICK_SUIT)
        for choice in choices_for(Decision.PICK_SUIT):
            assert result.ev_of(Choice.CASHOUT) >= result.ev_of(choice)
        assert result.best_choice is Choice.CASHOUT

    def test_every_three_card_suit_mix(self):
        # Suit counts are all that matter at PICK_SUIT; cover every mix.
        for suits in [(a, b, c) for a in range(4) for b in range(4) for c in range(4)]:
            history = tuple(rank * 4 + suit for rank, suit in zip((0, 1, 2), suits))
            choice, _ = best_choice_ev(1.0, history, Decision.PICK_SUIT)
            assert choice is Choice.CASHOUT


class TestOutcomeCount:
    """Leaves of the game tree: every guess, every card, busts included.

    Each decision's guesses partition the deck, so with n cards left every
    card wins exactly one guess and busts the rest.
    """

    def test_suit_every_card_is_a_leaf(self):
        result = evaluate_decision(4.0, cards("5H", "KC", "9D"), Decision.PICK_SUIT)
        assert result.outcome_count == 4 * 49

    def test_bounds(self):
        result = evaluate_decision(3.0, cards("9S", "4H"), Decision.PICK_BOUNDS)
        assert result.outcome_count == 50 * (4 * 49 + 1)

    def test_latitude(self):
        result = evaluate_decision(2.0, cards("AD"), Decision.PICK_LATITUDE)
        assert result.outcome_count == 51 * (50 * (4 * 49 + 1) + 1)

    def test_whole_game(self, root):
        assert root.outcome_count == 26_124_904

    def test_independent_of_pot_and_shown_ranks(self):
        a = evaluate_decision(3.0, cards("9S", "4H"), Decision.PICK_BOUNDS)
        b = evaluate_decision(30.0, cards("2S", "2H"), Decision.PICK_BOUNDS)
        assert a.outcome_count == b.outcome_count


# ─── Tie-break ────────────────────────────────────────────────────────────────


class TestTieBreak:
    def test_cashout_wins_exact_tie(self):
        candidates = [(Choice.RED, 2.0), (Choice.BLACK, 2.0), (Choice.CASHOUT, 2.0)]
        assert _pick_best(candidates) == (Choice.CASHOUT, 2.0)

    def test_earliest_declared_wins_without_cashout_tie(self):
        candidates = [(Choice.RED, 2.0), (Choice.BLACK, 2.0), (Choice.CASHOUT, 1.0)]
        assert _pick_best(candidates)[0] is Choice.RED

    def test_rounding_noise_counts_as_tie(self):
        candidates = [(Choice.HIGHER, 1.0 + 1e-15), (Choice.LOWER, 1.0), (Choice.CASHOUT, 1.0)]
        assert _pick_best(candidates)[0] is Choice.CASHOUT

    def test_real_difference_is_not_a_tie(self):
        candidates = [(Choice.HIGHER, 1.0 + 1e-9), (Choice.CASHOUT, 1.0)]
        assert _pick_best(candidates)[0] is Choice.HIGHER
        assert 1e-9 > TIE_TOLERANCE

    def test_root_red_black_tie_resolves_to_red(self, root):
        assert root.best_choice is Choice.RED
        assert solve(1.0)[0] is Choice.RED


# ─── Validation ───────────────────────────────────────────────────────────────


class TestValidation:
    @pytest.mark.parametrize("pot", [0.0, -1.0, float("nan"), float("inf"), "abc", None])
    def test_invalid_pot(self, pot):
        with pytest.raises(InvalidPot):
            solve(pot)

    def test_duplicate_history(self):
        with pytest.raises(InvalidHistory):
            solve(1.0, Decision.PICK_LATITUDE, cards("AD", "AD"))

    def test_out_of_range_card(self):
        with pytest.raises(InvalidHistory):
            solve(1.0, Decision.PICK_COLOR, (60,))

    def test_string_cards_rejected(self):
        with pytest.raises(InvalidHistory):
            solve(2.0, Decision.PICK_LATITUDE, ("AD",))

    def test_float_cards_rejected(self):
        with pytest.raises(InvalidHistory):
            solve(2.0, Decision.PICK_LATITUDE, (49.7,))
        with pytest.raises(InvalidHistory):
            evaluate_decision(2.0, (49.0,), Decision.PICK_LATITUDE)

    def test_numpy_integer_cards_accepted(self):
        result = evaluate_decision(2.0, (np.int64(49),), Decision.PICK_LATITUDE)
        assert result.history == (49,)
        assert all(type(c) is int for c in result.history)

    def test_debug_logging_uses_checked_history(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="src.solvers.exact_ev"):
            solve(2.0, Decision.PICK_LATITUDE, (np.int64(49),))
        assert "history=[AD]" in caplog.text

    def test_deck_too_small_for_remaining_draws(self):
        with pytest.raises(InvalidHistory):
            solve(1.0, Decision.PICK_COLOR, tuple(range(49)))

    def test_deck_just_large_enough(self):
        choice, _ = solve(1.0, Decision.PICK_SUIT, tuple(range(51)))
        assert choice in (Choice.CASHOUT, *choices_for(Decision.PICK_SUIT))

    def test_insufficient_history_latitude(self):
        with pytest.raises(InsufficientHistory):
            solve(2.0, Decision.PICK_LATITUDE, ())

    def test_insufficient_history_bounds(self):
        with pytest.raises(InsufficientHistory):
            evaluate_decision(3.0, cards("AD"), Decision.PICK_BOUNDS)

    def test_unknown_choice(self):
        with pytest.raises(UnknownChoice):
            evaluate_choice(1.0, (), Decision.PICK_COLOR, Choice.HIGHER)

    def test_cashout_is_not_a_chance_node(self):
        with pytest.raises(UnknownChoice):
            choice_outcomes(1.0, (), Decision.PICK_COLOR, Choice.CASHOUT)

    def test_all_errors_are_value_errors(self):
        for exc in (InvalidPot, InvalidHistory, InsufficientHistory, UnknownChoice):
            assert issubclass(exc, SolverInputError)
            assert issubclass(exc, ValueError)


# ─── Cache ────────────────────────────────────────────────────────────────────


class TestCache:
    def test_clear_and_refill(self):
        history = cards("5H", "KC", "9D")
        before = evaluate_decision(4.0, history, Decision.PICK_SUIT)
        clear_cache()
        info = cache_info()
        assert info["choice"].currsize == 0
        assert info["decision"].currsize == 0
        assert info["outcomes"].currsize == 0
        after = evaluate_decision(4.0, history, Decision.PICK_SUIT)
        assert after == before
        assert cache_info()["choice"].currsize == len(choices_for(Decision.PICK_SUIT))

    def test_equivalent_histories_share_a_state(self):
        # Same revealed set, bounds references in either order → one cache entry.
        a = evaluate_decision(3.0, cards("9S", "4H"), Decision.PICK_BOUNDS)
        b = evaluate_decision(3.0, cards("4H", "9S"), Decision.PICK_BOUNDS)
        assert a.best_ev == b.best_ev
        assert a.best_choice is b.best_choice


class TestResultTypes:
    def test_choice_evaluation_is_frozen(self):
        evaluation = ChoiceEvaluation(Choice.RED, 1.0)
        with pytest.raises(AttributeError):
            evaluation.expected_value = 2.0
