"""Static position evaluation."""

from .board import Board, PieceType, Side
from .rules import has_crossed_river

# Far outside anything material can add up to, so a forced loss always
# sorts below every other line.
LOSS_SCORE = 1_000_000


class Evaluator:
    """Material evaluator with a bonus for soldiers across the river."""

    PIECE_VALUES = {
        PieceType.KING: 10000,
        PieceType.CHARIOT: 1000,
        PieceType.CANNON: 450,
        PieceType.HORSE: 400,
        PieceType.ELEPHANT: 20,
        PieceType.ADVISOR: 20,
        PieceType.SOLDIER: 30,
    }

    CROSSED_SOLDIER_BONUS = 20

    def piece_value(self, piece_type: PieceType) -> int:
        return self.PIECE_VALUES[piece_type]

    def evaluate(self, board: Board, side: Side) -> int:
        """Score from ``side``'s point of view: own material minus the opponent's."""
        score = 0
        for row in range(board.ROWS):
            for piece in board.grid[row]:
                if piece is None:
                    continue

                value = self.PIECE_VALUES[piece.piece_type]
                if piece.piece_type == PieceType.SOLDIER and has_crossed_river(row, piece.side):
                    value += self.CROSSED_SOLDIER_BONUS

                if piece.side == side:
                    score += value
                else:
                    score -= value
        return score
