"""Plain snapshots of a game for storage by the surrounding application.

A snapshot holds the board, the side to move, the result and the full move
history (with captured pieces), which is enough to rebuild a ``GameState``
that can still undo every move.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from .board import Board, Move, Piece, Side
from .exceptions import InvalidPositionError
from .game import GameState, check_position
from . import rules


class MoveRecord(BaseModel):
    """One ply of history."""

    move: str  # ICCS notation, e.g. "h2e2"
    captured: Optional[str] = None  # FEN letter of the captured piece


class GameSnapshot(BaseModel):
    """Serializable game state."""

    board: str  # FEN placement field
    side_to_move: Side
    game_over: bool = False
    winner: Optional[Side] = None
    history: List[MoveRecord] = Field(default_factory=list)


def snapshot_from_state(state: GameState) -> GameSnapshot:
    return GameSnapshot(
        board=state.board.to_fen(),
        side_to_move=state.side_to_move,
        game_over=state.game_over,
        winner=state.winner,
        history=[
            MoveRecord(
                move=move.to_iccs(),
                captured=move.captured_piece.fen_char if move.captured_piece else None,
            )
            for move in state.history
        ],
    )


def _check_history(board: Board, side_to_move: Side, history: List[Move]) -> None:
    """Unwind the history on a scratch board to make sure it fits the position."""
    scratch = board.copy()
    mover = side_to_move
    for move in reversed(history):
        mover = mover.opponent
        piece = scratch.get_piece(move.to_row, move.to_col)
        if piece is None or piece.side != mover:
            raise InvalidPositionError(f"History move {move} does not match the board")
        if scratch.get_piece(move.from_row, move.from_col) is not None:
            raise InvalidPositionError(f"History move {move} starts on an occupied square")
        if move.captured_piece is not None and move.captured_piece.side == mover:
            raise InvalidPositionError(f"History move {move} captures its own piece")
        rules.revert_move(scratch, move)


def state_from_snapshot(snapshot: GameSnapshot) -> GameState:
    if snapshot.game_over != (snapshot.winner is not None):
        raise InvalidPositionError("A finished game needs a winner and only a finished game has one")

    board = Board.from_fen(snapshot.board)
    side = snapshot.side_to_move
    check_position(board, side)

    finished = not rules.has_any_legal_move(board, side)
    if finished != snapshot.game_over:
        raise InvalidPositionError(
            f"Snapshot says game_over={snapshot.game_over} but {side.value} "
            f"{'has no' if finished else 'has a'} legal move"
        )
    if finished and snapshot.winner != side.opponent:
        raise InvalidPositionError(
            f"The winner must be {side.opponent.value}, the side that made the last move"
        )

    history = []
    for record in snapshot.history:
        move = Move.from_iccs(record.move)
        if record.captured is not None:
            move.captured_piece = Piece.from_fen_char(record.captured)
        history.append(move)
    _check_history(board, snapshot.side_to_move, history)

    state = GameState(board, snapshot.side_to_move)
    state.history = history
    state.game_over = snapshot.game_over
    state.winner = snapshot.winner
    return state
