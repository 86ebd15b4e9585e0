"""Xiangqi AI engine: negamax search with alpha-beta pruning."""

import logging
from time import monotonic
from typing import List, Optional

from .board import Board, Move, Side
from .evaluation import Evaluator, LOSS_SCORE
from .game import GameState
from . import rules

logger = logging.getLogger(__name__)

DEFAULT_DEPTH = 3
DEFAULT_TIME_LIMIT = 3.0  # seconds, checked between root moves

INFINITY = 10 * LOSS_SCORE


class Engine:
    """Fixed-depth searcher for the side to move.

    The search works directly on the game's board, applying and reverting
    moves in place, so nothing else may read or write that board until
    ``best_move`` returns.
    """

    def __init__(
        self,
        depth: int = DEFAULT_DEPTH,
        time_limit: Optional[float] = DEFAULT_TIME_LIMIT,
        evaluator: Optional[Evaluator] = None,
    ):
        """Initialize engine.

        Args:
            depth: Search depth in plies
            time_limit: Wall-clock budget in seconds, None for no limit. Once it
                runs out the best root move found so far is returned.
            evaluator: Static evaluator (material evaluator by default)
        """
        if depth < 1:
            raise ValueError(f"Search depth must be at least 1, got {depth}")
        self.depth = depth
        self.time_limit = time_limit
        self.evaluator = evaluator or Evaluator()
        self.nodes_searched = 0
        self.timed_out = False
        self.last_score: Optional[int] = None

    def best_move(self, state: GameState, depth: Optional[int] = None) -> Optional[Move]:
        """Best move for ``state.side_to_move``, or None if it has no legal move."""
        depth = depth if depth is not None else self.depth
        if depth < 1:
            raise ValueError(f"Search depth must be at least 1, got {depth}")

        self.nodes_searched = 0
        self.timed_out = False
        self.last_score = None

        board = state.board
        side = state.side_to_move
        moves = self.order_moves(rules.legal_moves(board, side))
        if not moves:
            return None

        start = monotonic()
        best_move = None
        best_value = -INFINITY
        alpha = -INFINITY
        beta = INFINITY

        for examined, move in enumerate(moves, start=1):
            rules.apply_move(board, move)
            value = -self.search(board, depth - 1, -beta, -alpha, side.opponent)
            rules.revert_move(board, move)

            if value > best_value:
                best_value = value
                best_move = move

            alpha = max(alpha, value)
            if alpha >= beta:
                break

            if (
                examined < len(moves)
                and self.time_limit is not None
                and monotonic() - start > self.time_limit
            ):
                self.timed_out = True
                logger.info(
                    "Search stopped after %.2fs with %d of %d root moves examined",
                    monotonic() - start, examined, len(moves),
                )
                break

        self.last_score = best_value
        logger.debug(
            "%s plays %s (depth %d, score %d, %d nodes)",
            side.value, best_move, depth, best_value, self.nodes_searched,
        )
        return best_move

    def search(self, board: Board, depth: int, alpha: int, beta: int, side: Side) -> int:
        """Negamax score of ``board`` for ``side`` (higher is better for ``side``)."""
        self.nodes_searched += 1

        if depth == 0:
            return self.evaluator.evaluate(board, side)

        moves = rules.legal_moves(board, side)
        if not moves:
            # Checkmate and stalemate are both a loss
            return -LOSS_SCORE

        best_value = -INFINITY
        for move in self.order_moves(moves):
            rules.apply_move(board, move)
            value = -self.search(board, depth - 1, -beta, -alpha, side.opponent)
            rules.revert_move(board, move)

            best_value = max(best_value, value)
            alpha = max(alpha, value)
            if alpha >= beta:
                break
        return best_value

    def order_moves(self, moves: List[Move]) -> List[Move]:
        """Captures first, most valuable victim first; quiet moves keep their order."""
        return sorted(moves, key=self._capture_key)

    def _capture_key(self, move: Move) -> int:
        if move.captured_piece is None:
            return 0
        return -self.evaluator.piece_value(move.captured_piece.piece_type)


def best_move(
    state: GameState,
    depth: int = DEFAULT_DEPTH,
    time_limit: Optional[float] = DEFAULT_TIME_LIMIT,
) -> Optional[Move]:
    """One-off search with a fresh engine."""
    return Engine(depth=depth, time_limit=time_limit).best_move(state)
