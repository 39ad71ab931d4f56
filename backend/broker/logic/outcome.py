"""Move vocabulary and round outcome rules."""

from enum import StrEnum


class Move(StrEnum):
    ROCK = "rock"
    PAPER = "paper"
    SCISSORS = "scissors"


class Outcome(StrEnum):
    DRAW = "Draw"
    PLAYER_1_WINS = "Player 1 Wins"
    PLAYER_2_WINS = "Player 2 Wins"


# each move maps to the move it defeats
BEATS: dict[Move, Move] = {
    Move.ROCK: Move.SCISSORS,
    Move.SCISSORS: Move.PAPER,
    Move.PAPER: Move.ROCK,
}


def decide_outcome(first: object, second: object) -> Outcome:
    """Decide a round between slot 1 and slot 2.

    Identical moves draw. Otherwise slot 1 wins when its move beats slot 2's
    move under the cyclic rule, and slot 2 wins in every remaining case.
    Only defined over the closed move set; any other value (including
    non-strings) that is not an exact tie counts as a slot 2 win.
    """
    # true and 1 are different moves
    if first == second and isinstance(first, bool) == isinstance(second, bool):
        return Outcome.DRAW
    if isinstance(first, str) and first in BEATS and BEATS[Move(first)] == second:
        return Outcome.PLAYER_1_WINS
    return Outcome.PLAYER_2_WINS
