"""Cheat-sheet report for the Ride the Bus exact solver.

Builders evaluate representative states and return plain dicts of
DecisionResult; printers format them as terminal tables.

    build_latitude_table(pot)   — one shown card of each rank
    build_bounds_table(pot)     — every ordered pair of shown ranks
    build_suit_table(pot)       — a representative three-card history
    print_root_summary(bet)     — first-decision EVs, game EV and tree size
    print_latitude_table(...)   — higher/lower/cashout by shown rank
    print_bounds_table(...)     — 13×13 inside/outside/cashout grid
    print_suit_table(...)       — suit EVs vs cashout
    print_cheat_sheet(bet)      — all of the above, pots scaled by bet
"""

from __future__ import annotations

from src.engine.cards import (
    RANK_NAMES,
    SUIT_HEARTS,
    SUIT_SPADES,
    history_to_str,
    make_card,
    parse_history,
)
from src.engine.decisions import Choice, Decision
from src.solvers.exact_ev import DecisionResult, evaluate_decision

# ─── Representative states ────────────────────────────────────────────────────

# Pots after winning each earlier decision from a unit bet.
LATITUDE_POT: float = 2.0
BOUNDS_POT: float = 3.0
SUIT_POT: float = 4.0

# Suits of the shown cards.  The older bounds card is a heart, the newer a
# spade, so equal ranks are still distinct cards.
LATITUDE_SUIT: int = SUIT_HEARTS
BOUNDS_OLDER_SUIT: int = SUIT_HEARTS
BOUNDS_NEWER_SUIT: int = SUIT_SPADES

SUIT_HISTORY: tuple[int, ...] = parse_history("4C 3S 2H")

RANKS: list[int] = list(range(2, 15))

_SHORT: dict[Choice, str] = {
    Choice.RED: "R",
    Choice.BLACK: "B",
    Choice.HIGHER: "H",
    Choice.LOWER: "L",
    Choice.INSIDE: "I",
    Choice.OUTSIDE: "O",
    Choice.HEARTS: "♥",
    Choice.DIAMONDS: "♦",
    Choice.SPADES: "♠",
    Choice.CLUBS: "♣",
    Choice.CASHOUT: "$",
}


def rank_label(rank: int) -> str:
    """Return the display name of a rank value (2–14)."""
    return RANK_NAMES[rank - 2]


def short_label(choice: Choice) -> str:
    """Return the one-character grid label of *choice*."""
    return _SHORT[choice]


# ─── Builders ─────────────────────────────────────────────────────────────────


def build_latitude_table(pot: float = LATITUDE_POT) -> dict[int, DecisionResult]:
    """Evaluate PICK_LATITUDE with a single shown card of each rank.

    Returns:
        Dict mapping shown rank (2–14) → DecisionResult.
    """
    return {
        rank: evaluate_decision(pot, (make_card(rank, LATITUDE_SUIT),), Decision.PICK_LATITUDE)
        for rank in RANKS
    }


def build_bounds_table(pot: float = BOUNDS_POT) -> dict[tuple[int, int], DecisionResult]:
    """Evaluate PICK_BOUNDS for every pair of shown ranks.

    Key ``(older, newer)``: the older card was revealed at PICK_COLOR, the
    newer at PICK_LATITUDE, so the history is ``(newer, older)``.

    Returns:
        Dict mapping ``(older_rank, newer_rank)`` → DecisionResult.
    """
    table: dict[tuple[int, int], DecisionResult] = {}
    for older in RANKS:
        for newer in RANKS:
            history = (make_card(newer, BOUNDS_NEWER_SUIT), make_card(older, BOUNDS_OLDER_SUIT))
            table[(older, newer)] = evaluate_decision(pot, history, Decision.PICK_BOUNDS)
    return table


def build_suit_table(
    pot: float = SUIT_POT,
    history: tuple[int, ...] = SUIT_HISTORY,
) -> DecisionResult:
    """Evaluate PICK_SUIT for a representative three-card history."""
    return evaluate_decision(pot, history, Decision.PICK_SUIT)


# ─── Printers ─────────────────────────────────────────────────────────────────


def _print_evaluations(result: DecisionResult) -> None:
    for evaluation in result.evaluations:
        marker = "  <----" if evaluation.choice is result.best_choice else ""
        print(f"    {evaluation.choice.name:<8} {evaluation.expected_value:>10.4f}{marker}")


def print_root_summary(bet: float = 1.0) -> None:
    """Print the first decision's EVs and the value of the whole game."""
    root = evaluate_decision(bet, (), Decision.PICK_COLOR)
    edge = (root.best_ev / root.pot - 1.0) * 100

    print("=" * 56)
    print(f"Ride the Bus — optimal play from a {root.pot:g}-unit bet")
    print("=" * 56)
    _print_evaluations(root)
    print()
    print(f"  Game EV:  {root.best_ev:.6f} units  ({edge:+.2f}% edge)")
    print(f"  Game tree: {root.outcome_count:,} outcomes")


def print_latitude_table(table: dict[int, DecisionResult] | None = None) -> None:
    """Print higher/lower/cashout EVs for each shown rank."""
    if table is None:
        table = build_latitude_table()

    pot = next(iter(table.values())).pot
    print(f"\nHigher / Lower  (pot {pot:g}, one card shown)")
    print(f"{'Shown':>6} {'HIGHER':>9} {'LOWER':>9} {'CASHOUT':>9}  Best")
    print("─" * 44)
    for rank, result in table.items():
        print(
            f"{rank_label(rank):>6} "
            f"{result.ev_of(Choice.HIGHER):>9.4f} "
            f"{result.ev_of(Choice.LOWER):>9.4f} "
            f"{result.ev_of(Choice.CASHOUT):>9.4f}  "
            f"{result.best_choice.name}"
        )


def print_bounds_table(table: dict[tuple[int, int], DecisionResult] | None = None) -> None:
    """Print the inside/outside/cashout grid.

    Rows: older shown rank.  Cols: newer shown rank.  Cells: 'I' (INSIDE),
    'O' (OUTSIDE), '$' (CASHOUT).
    """
    if table is None:
        table = build_bounds_table()

    col_w = 4
    header = "".join(f"{rank_label(r):>{col_w}}" for r in RANKS)
    pot = next(iter(table.values())).pot
    print(f"\nInside / Outside  (pot {pot:g}; I=inside O=outside $=cashout)")
    print(f"{'older/newer':<12}{header}")
    print("─" * (12 + col_w * len(RANKS)))
    for older in RANKS:
        cells = "".join(
            f"{short_label(table[(older, newer)].best_choice):>{col_w}}" for newer in RANKS
        )
        print(f"{rank_label(older):<12}{cells}")


def print_suit_table(result: DecisionResult | None = None) -> None:
    """Print suit EVs against cashout for a representative history."""
    if result is None:
        result = build_suit_table()

    print(f"\nSuit  (pot {result.pot:g}, shown {history_to_str(result.history)})")
    _print_evaluations(result)


def print_cheat_sheet(bet: float = 1.0) -> None:
    """Print every table of the cheat sheet, pots scaled by *bet*."""
    print_root_summary(bet)
    print_latitude_table(build_latitude_table(bet * LATITUDE_POT))
    print_bounds_table(build_bounds_table(bet * BOUNDS_POT))
    print_suit_table(build_suit_table(bet * SUIT_POT))


# ─── __main__ ─────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    print_cheat_sheet()
