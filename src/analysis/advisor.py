"""Interactive terminal advisor for playing Ride the Bus live.

Shows the EV of every option at the current decision, then follows the game
as the user types in each revealed card.  Because each decision's guesses
partition the deck, the revealed card identifies the guess it won for, so the
session advances without asking which guess was made.

Commands:
    help                      — usage and card format
    exit                      — quit
    list                      — choices and their EVs at the current decision
    list <choice|optimal>     — winning cards for a guess and their EVs
    reset                     — start a new game
    back                      — undo the last card
    <card>                    — record a revealed card, e.g. 10C, QD, as

Run:
    PYTHONPATH=. python -m src.analysis.advisor
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum, auto

from src.engine.cards import card_to_str, history_to_str, str_to_card
from src.engine.decisions import FIRST_DECISION, Choice, Decision, choices_for, next_decision
from src.engine.errors import InvalidCardError
from src.engine.rules import score
from src.solvers.exact_ev import DecisionResult, choice_outcomes, evaluate_decision

logger = logging.getLogger(__name__)

STARTING_POT: float = 1.0

# Tolerance for marking near-best choices and hiding losing cards.
DISPLAY_EPSILON: float = 1e-6

HELP_TEXT: str = """
[Commands]
help = This command
exit = Quit the program
list = Prints the choices and the expected values
list {choice_name|'optimal'} = Prints the winning cards of a choice
reset = Start over (new game)
back = Go back to previous choice (useful if you input the wrong card)
{card} = Input a card (your choice is interpreted from it)

[Card Format]
The value (or letter) of the card, plus the suit, case insensitive
2H  = 2 of hearts
10C = 10 of clubs
QD  = Queen of diamonds
AS  = Ace of spades

[How to use]
1. Pick the option with the highest expected value (marked <----)
2. Type in the card the dealer reveals
3. Your choice is interpreted from the card and the next choices are shown
4. Repeat until you lose or cash out, then start over with 'reset'"""


# ─── Commands ─────────────────────────────────────────────────────────────────


class CommandKind(Enum):
    HELP = auto()
    EXIT = auto()
    LIST_CHOICES = auto()
    LIST_EVENTS = auto()
    RESET = auto()
    BACK = auto()
    CARD = auto()


class InvalidCommandError(ValueError):
    """The input line is not a command or a card."""


@dataclass(frozen=True)
class Command:
    kind: CommandKind
    target: str | None = None
    card: int | None = None


_KEYWORDS: dict[str, CommandKind] = {
    "help": CommandKind.HELP,
    "exit": CommandKind.EXIT,
    "reset": CommandKind.RESET,
    "back": CommandKind.BACK,
}


def parse_command(line: str) -> Command:
    """Parse one input line.

    Raises:
        InvalidCommandError: If the line is empty, unknown, or a bad card.

    Examples:
        >>> parse_command("list optimal")
        Command(kind=<CommandKind.LIST_EVENTS: 4>, target='optimal', card=None)
        >>> parse_command(" qd ").card
        41
    """
    words = line.split()
    if not words:
        raise InvalidCommandError("empty command")

    head = words[0].lower()
    if head in _KEYWORDS:
        return Command(_KEYWORDS[head])
    if head == "list":
        if len(words) > 1:
            return Command(CommandKind.LIST_EVENTS, target=words[1])
        return Command(CommandKind.LIST_CHOICES)
    try:
        return Command(CommandKind.CARD, card=str_to_card(words[0]))
    except InvalidCardError:
        raise InvalidCommandError(f"invalid command: {line.strip()!r}") from None


# ─── Session ──────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class AdvisorState:
    """One point in a game: the pot and cards carried into a decision."""

    pot: float
    history: tuple[int, ...]
    decision: Decision


class AdvisorSession:
    """Stack of game states followed card by card.

    Every public method returns the lines to show the user.
    """

    def __init__(self, pot: float = STARTING_POT) -> None:
        self._starting_pot = pot
        self._states: list[AdvisorState] = []
        self.reset()

    @property
    def state(self) -> AdvisorState:
        return self._states[-1]

    @property
    def depth(self) -> int:
        """Number of cards recorded in the current game."""
        return len(self._states) - 1

    def evaluate(self) -> DecisionResult:
        state = self.state
        return evaluate_decision(state.pot, state.history, state.decision)

    def reset(self) -> list[str]:
        self._states = [AdvisorState(self._starting_pot, (), FIRST_DECISION)]
        logger.debug("New game at pot %s", self._starting_pot)
        return self.list_choices()

    def back(self) -> list[str]:
        if len(self._states) == 1:
            return ["nothing to undo"]
        undone = self._states.pop()
        logger.debug("Undid card %s", card_to_str(undone.history[0]))
        return self.list_choices()

    def list_choices(self) -> list[str]:
        result = self.evaluate()
        state = self.state
        lines = [
            f"[Choices] {state.decision.name}  pot={state.pot:g}  "
            f"shown=[{history_to_str(state.history)}]",
            "# Choice = Expected Value",
        ]
        for evaluation in result.evaluations:
            line = f"{evaluation.choice.name} = {evaluation.expected_value:.4f}"
            if evaluation.expected_value >= result.best_ev - DISPLAY_EPSILON:
                line += " <----"
            lines.append(line)
        return lines

    def list_events(self, target: str) -> list[str]:
        """List the cards that win for *target* ('optimal' or a choice name)."""
        state = self.state
        if target.lower() == "optimal":
            choice = self.evaluate().best_choice
        else:
            by_name = {c.name: c for c in choices_for(state.decision)}
            by_name[Choice.CASHOUT.name] = Choice.CASHOUT
            choice = by_name.get(target.upper())
            if choice is None:
                return ["invalid list target"]

        if choice is Choice.CASHOUT:
            return [f"[{choice.name}]", f"Cashing out ends the game at {state.pot:g}"]

        outcomes = choice_outcomes(state.pot, state.history, state.decision, choice)
        lines = [f"[{choice.name}]", "# Card = Expected Value"]
        for card, value in sorted(outcomes.items()):
            if value > DISPLAY_EPSILON:
                lines.append(f"{card_to_str(card)} = {value:.4f}")
        return lines

    def play_card(self, card: int) -> list[str]:
        """Record a revealed card and advance to the next decision."""
        state = self.state
        if card in state.history:
            return ["!!! INVALID CARD PROVIDED !!!"]

        extended = (card,) + state.history
        choice = next(c for c in choices_for(state.decision) if score(c, extended) > 0.0)
        multiplier = score(choice, extended)
        lines = [f"??? So you chose {choice.name} ???"]
        logger.debug(
            "%s at %s: %s wins x%g", card_to_str(card), state.decision.name, choice.name, multiplier
        )

        following = next_decision(state.decision)
        if following is None:
            lines.append(f"won {state.pot * multiplier:g}; no more decisions, resetting")
            return lines + [""] + self.reset()

        self._states.append(AdvisorState(state.pot * multiplier, extended, following))
        return lines + self.list_choices()

    def handle(self, command: Command) -> list[str]:
        """Dispatch *command* (except EXIT, which the caller handles)."""
        if command.kind is CommandKind.HELP:
            return HELP_TEXT.splitlines()
        if command.kind is CommandKind.LIST_CHOICES:
            return self.list_choices()
        if command.kind is CommandKind.LIST_EVENTS:
            return self.list_events(command.target or "")
        if command.kind is CommandKind.RESET:
            return self.reset()
        if command.kind is CommandKind.BACK:
            return self.back()
        if command.kind is CommandKind.CARD:
            return self.play_card(command.card)
        raise ValueError(f"Cannot handle {command.kind.name}")


# ─── Loop ─────────────────────────────────────────────────────────────────────


def run_advisor(
    read: Callable[[str], str] = input,
    write: Callable[[str], None] = print,
) -> None:
    """Run the advisor until 'exit' or end of input."""
    write("solving ride the bus")
    session = AdvisorSession()
    write("all games considered, done!")
    for line in HELP_TEXT.splitlines():
        write(line)
    write("")
    for line in session.list_choices():
        write(line)

    while True:
        try:
            raw = read("? ")
        except EOFError:
            return
        try:
            command = parse_command(raw)
        except InvalidCommandError:
            write("invalid command")
            continue
        if command.kind is CommandKind.EXIT:
            return
        write("")
        for line in session.handle(command):
            write(line)


if __name__ == "__main__":
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")
    run_advisor()
