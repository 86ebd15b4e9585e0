"""Chinese Chess (Xiangqi) game engine."""

from .board import Board, Move, Side, PieceType, Piece, coords_to_square, square_to_coords
from .game import GameState, new_game
from .controller import GameController, GameMode
from .engine import Engine, best_move
from .evaluation import Evaluator, LOSS_SCORE
from .snapshot import GameSnapshot, MoveRecord
from .exceptions import (
    XiangqiError, InvalidPositionError, KingNotFoundError,
    IllegalMoveError, NoMoveFoundError,
)
from . import rules

__all__ = [
    # Board and game
    'Board', 'Move', 'Side', 'PieceType', 'Piece',
    'coords_to_square', 'square_to_coords',
    'GameState', 'new_game',
    'GameController', 'GameMode',
    'rules',
    # Search
    'Engine', 'best_move',
    'Evaluator', 'LOSS_SCORE',
    # Snapshots
    'GameSnapshot', 'MoveRecord',
    # Errors
    'XiangqiError', 'InvalidPositionError', 'KingNotFoundError',
    'IllegalMoveError', 'NoMoveFoundError',
]
