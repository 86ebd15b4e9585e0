"""Game state: the board, the side to move, move history and result."""

import logging
from typing import List, Optional

from .board import Board, Move, Side
from .exceptions import InvalidPositionError
from . import rules

logger = logging.getLogger(__name__)


class GameState:
    """A Xiangqi game in progress (or finished).

    The state only changes through ``attempt_move``, ``undo`` and ``reset``.
    A side with no legal move loses, whether or not it is in check.
    """

    def __init__(self, board: Optional[Board] = None, side_to_move: Side = Side.RED):
        self.board = board if board is not None else Board()
        self.side_to_move = side_to_move
        self.history: List[Move] = []
        self.game_over = False
        self.winner: Optional[Side] = None

    def reset(self) -> None:
        """Back to the standard starting position."""
        self.board = Board()
        self.side_to_move = Side.RED
        self.history = []
        self.game_over = False
        self.winner = None

    def attempt_move(self, from_row: int, from_col: int, to_row: int, to_col: int) -> bool:
        """Make a move. Returns True if legal, False otherwise.

        A rejected move leaves the state untouched.
        """
        if self.game_over:
            return False
        if not (self.board.is_on_board(from_row, from_col) and self.board.is_on_board(to_row, to_col)):
            return False

        piece = self.board.get_piece(from_row, from_col)
        if piece is None or piece.side != self.side_to_move:
            return False
        if not rules.is_pseudo_legal(self.board, from_row, from_col, to_row, to_col):
            return False

        move = Move(from_row, from_col, to_row, to_col)
        rules.apply_move(self.board, move)

        # Own king attacked or kings facing: put everything back
        if not rules.is_king_safe(self.board, self.side_to_move):
            rules.revert_move(self.board, move)
            return False

        self.history.append(move)
        self.side_to_move = self.side_to_move.opponent
        self._update_result()
        return True

    def make_move(self, move: Move) -> bool:
        """``attempt_move`` for a ``Move`` object."""
        return self.attempt_move(move.from_row, move.from_col, move.to_row, move.to_col)

    def _update_result(self) -> None:
        if rules.has_any_legal_move(self.board, self.side_to_move):
            return
        self.game_over = True
        self.winner = self.side_to_move.opponent
        logger.info(
            "Game over after %d plies: %s has no legal move, %s wins",
            len(self.history), self.side_to_move.value, self.winner.value,
        )

    def undo(self) -> Optional[Move]:
        """Take back the last ply. Returns the undone move, or None if there is none."""
        if not self.history:
            return None
        move = self.history.pop()
        rules.revert_move(self.board, move)
        self.side_to_move = self.side_to_move.opponent
        self.game_over = False
        self.winner = None
        return move

    def can_undo(self) -> bool:
        return len(self.history) > 0

    def in_check(self) -> bool:
        return rules.is_in_check(self.board, self.side_to_move)

    def legal_moves(self) -> List[Move]:
        return rules.legal_moves(self.board, self.side_to_move)

    def legal_moves_from(self, row: int, col: int) -> List[Move]:
        """Legal destinations for a piece of the side to move (move hints)."""
        piece = self.board.get_piece(row, col)
        if self.game_over or piece is None or piece.side != self.side_to_move:
            return []
        return rules.legal_moves_from(self.board, row, col)

    def to_fen(self) -> str:
        side_char = "w" if self.side_to_move == Side.RED else "b"
        return f"{self.board.to_fen()} {side_char}"

    @classmethod
    def from_fen(cls, fen: str) -> "GameState":
        """Start a game from a FEN position (no history).

        The result is computed straight away, so a position where the side
        to move is already stuck comes back as a finished game.
        """
        board = Board.from_fen(fen)
        fields = fen.split()
        side = Side.RED
        if len(fields) > 1:
            if fields[1] in ("w", "r"):
                side = Side.RED
            elif fields[1] == "b":
                side = Side.BLACK
            else:
                raise InvalidPositionError(f"Invalid side to move: {fields[1]!r}")
        check_position(board, side)
        state = cls(board, side)
        state._update_result()
        return state

    def to_snapshot(self):
        from .snapshot import snapshot_from_state

        return snapshot_from_state(self)

    @classmethod
    def from_snapshot(cls, snapshot) -> "GameState":
        from .snapshot import state_from_snapshot

        return state_from_snapshot(snapshot)


def check_position(board: Board, side_to_move: Side) -> None:
    """Reject positions no legal game can reach.

    Both kings must be present, and the side that just moved can neither
    be in check nor have left the kings facing each other.

    Raises:
        KingNotFoundError: If a king is missing
        InvalidPositionError: If the side not to move is exposed
    """
    for side in Side:
        board.find_king(side)
    if rules.kings_facing(board):
        raise InvalidPositionError("Kings face each other on an open file")
    if rules.is_in_check(board, side_to_move.opponent):
        raise InvalidPositionError(
            f"{side_to_move.opponent.value} is in check but it is {side_to_move.value}'s turn"
        )


def new_game() -> GameState:
    """Fresh game from the standard starting position, Red to move."""
    return GameState()
