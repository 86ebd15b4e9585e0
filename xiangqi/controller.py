"""Turn orchestration for human-vs-human and human-vs-computer games."""

import logging
from enum import Enum
from typing import Optional

from .board import Move, Side
from .engine import Engine
from .exceptions import IllegalMoveError, NoMoveFoundError
from .game import GameState

logger = logging.getLogger(__name__)


class GameMode(Enum):
    """Who plays the two sides."""

    HUMAN_VS_HUMAN = "pvp"
    HUMAN_VS_COMPUTER = "pve"


class GameController:
    """Owns a ``GameState`` and drives it turn by turn.

    In computer mode every successful human move is answered by exactly one
    engine move, and undo takes back moves until the human is to move again.
    """

    def __init__(
        self,
        mode: GameMode = GameMode.HUMAN_VS_HUMAN,
        computer_side: Side = Side.BLACK,
        engine: Optional[Engine] = None,
    ):
        self.mode = mode
        self.computer_side = computer_side
        self.engine = engine or Engine()
        self.state = GameState()

    @property
    def vs_computer(self) -> bool:
        return self.mode == GameMode.HUMAN_VS_COMPUTER

    @property
    def human_side(self) -> Side:
        return self.computer_side.opponent

    @property
    def computer_to_move(self) -> bool:
        """True when it is the engine's turn in a game that is still going."""
        return (
            self.vs_computer
            and not self.state.game_over
            and self.state.side_to_move == self.computer_side
        )

    def new_game(self) -> GameState:
        self.state.reset()
        return self.state

    def play(
        self, from_row: int, from_col: int, to_row: int, to_col: int, reply: bool = True
    ) -> bool:
        """Apply a human move. False means the move was rejected.

        With ``reply`` set, computer mode answers the move straight away;
        callers that want to pause before the answer pass ``reply=False``
        and call ``computer_move`` themselves.
        """
        if self.computer_to_move:
            return False
        if not self.state.attempt_move(from_row, from_col, to_row, to_col):
            return False
        if reply and self.computer_to_move:
            self.computer_move()
        return True

    def computer_move(self) -> Move:
        """Let the engine move for the side to move and apply its choice."""
        move = self.engine.best_move(self.state)
        if move is None:
            # Terminal status is checked on every commit, so this is a bug
            raise NoMoveFoundError(
                f"Engine found no move for {self.state.side_to_move.value} in a game that is not over"
            )
        if not self.state.make_move(move):
            raise IllegalMoveError(move, "rejected by the rules engine")
        if self.state.game_over:
            logger.info(
                "Computer move %s by %s ended the game", move, self.state.side_to_move.opponent.value
            )
        return move

    def undo(self) -> int:
        """Undo one ply, or in computer mode back to the human's turn.

        Returns the number of plies taken back.
        """
        if not self.state.can_undo():
            return 0

        self.state.undo()
        undone = 1
        if self.vs_computer:
            while self.state.can_undo() and self.state.side_to_move == self.computer_side:
                self.state.undo()
                undone += 1
        return undone
