"""Xiangqi move rules.

Every function works on a ``Board`` passed in by the caller, so the same
primitives serve the game state and the search, which mutates one board in
place and reverts each move before returning.

Two levels of legality are used throughout:

- pseudo-legal: the move matches the piece's geometry and is not blocked.
- legal: pseudo-legal, and afterwards the mover's king is not attacked and
  the two kings do not face each other on an open column.
"""

from typing import Iterator, List, Tuple

from .board import Board, Move, Piece, PieceType, Side

ORTHOGONAL_STEPS = ((1, 0), (-1, 0), (0, 1), (0, -1))
DIAGONAL_STEPS = ((1, 1), (1, -1), (-1, 1), (-1, -1))
ELEPHANT_STEPS = ((2, 2), (2, -2), (-2, 2), (-2, -2))
HORSE_STEPS = ((2, 1), (2, -1), (-2, 1), (-2, -1), (1, 2), (1, -2), (-1, 2), (-1, -2))


def is_in_palace(row: int, col: int, side: Side) -> bool:
    """Check if a square is in the palace for the given side."""
    if not 3 <= col <= 5:
        return False
    if side == Side.RED:
        return 7 <= row <= 9
    return 0 <= row <= 2


def has_crossed_river(row: int, side: Side) -> bool:
    """Red crosses into rows 0-4, Black into rows 5-9."""
    if side == Side.RED:
        return row <= 4
    return row >= 5


def forward_step(side: Side) -> int:
    return -1 if side == Side.RED else 1


def count_obstacles(
    board: Board, from_row: int, from_col: int, to_row: int, to_col: int
) -> int:
    """Count pieces strictly between two squares on the same row or column."""
    count = 0
    if from_row == to_row:
        for col in range(min(from_col, to_col) + 1, max(from_col, to_col)):
            if board.grid[from_row][col] is not None:
                count += 1
    elif from_col == to_col:
        for row in range(min(from_row, to_row) + 1, max(from_row, to_row)):
            if board.grid[row][from_col] is not None:
                count += 1
    return count


def is_pseudo_legal(
    board: Board, from_row: int, from_col: int, to_row: int, to_col: int
) -> bool:
    """Check piece geometry and obstruction for a move, ignoring king safety.

    Does not look at whose turn it is, so it also answers "could this piece
    reach that square" for attack detection.
    """
    if not (board.is_on_board(from_row, from_col) and board.is_on_board(to_row, to_col)):
        return False
    if from_row == to_row and from_col == to_col:
        return False

    piece = board.grid[from_row][from_col]
    if piece is None:
        return False
    target = board.grid[to_row][to_col]
    if target is not None and target.side == piece.side:
        return False

    row_diff = to_row - from_row
    col_diff = to_col - from_col
    abs_row = abs(row_diff)
    abs_col = abs(col_diff)
    side = piece.side
    piece_type = piece.piece_type

    if piece_type == PieceType.KING:
        return abs_row + abs_col == 1 and is_in_palace(to_row, to_col, side)

    elif piece_type == PieceType.ADVISOR:
        return abs_row == 1 and abs_col == 1 and is_in_palace(to_row, to_col, side)

    elif piece_type == PieceType.ELEPHANT:
        if abs_row != 2 or abs_col != 2:
            return False
        if has_crossed_river(to_row, side):
            return False
        # The eye is the diagonal midpoint
        return board.grid[from_row + row_diff // 2][from_col + col_diff // 2] is None

    elif piece_type == PieceType.HORSE:
        if abs_row == 2 and abs_col == 1:
            leg_row, leg_col = from_row + row_diff // 2, from_col
        elif abs_row == 1 and abs_col == 2:
            leg_row, leg_col = from_row, from_col + col_diff // 2
        else:
            return False
        return board.grid[leg_row][leg_col] is None

    elif piece_type == PieceType.CHARIOT:
        if row_diff != 0 and col_diff != 0:
            return False
        return count_obstacles(board, from_row, from_col, to_row, to_col) == 0

    elif piece_type == PieceType.CANNON:
        if row_diff != 0 and col_diff != 0:
            return False
        obstacles = count_obstacles(board, from_row, from_col, to_row, to_col)
        # Capturing needs exactly one screen, a quiet move needs a clear path
        if target is not None:
            return obstacles == 1
        return obstacles == 0

    elif piece_type == PieceType.SOLDIER:
        forward = forward_step(side)
        if not has_crossed_river(from_row, side):
            return col_diff == 0 and row_diff == forward
        if abs_row + abs_col != 1:
            return False
        return row_diff in (0, forward)

    raise ValueError(f"Unknown piece type: {piece_type}")


def kings_facing(board: Board) -> bool:
    """Flying general: both kings on one column with nothing between them."""
    red_row, red_col = board.find_king(Side.RED)
    black_row, black_col = board.find_king(Side.BLACK)
    if red_col != black_col:
        return False
    return count_obstacles(board, black_row, black_col, red_row, red_col) == 0


def is_square_attacked(board: Board, row: int, col: int, side: Side) -> bool:
    """Check if any piece of ``side``'s opponent can reach (row, col).

    Uses movement geometry only; king safety of the attacker is not
    considered, which keeps this from recursing.
    """
    for from_row, from_col, _ in board.pieces(side.opponent):
        if is_pseudo_legal(board, from_row, from_col, row, col):
            return True
    return False


def is_in_check(board: Board, side: Side) -> bool:
    """Check if the given side's king is attacked."""
    king_row, king_col = board.find_king(side)
    return is_square_attacked(board, king_row, king_col, side)


def is_king_safe(board: Board, side: Side) -> bool:
    """Both safety conditions a move has to leave behind."""
    return not is_in_check(board, side) and not kings_facing(board)


def apply_move(board: Board, move: Move) -> None:
    """Move a piece in place, recording whatever it captured on the move."""
    piece = board.grid[move.from_row][move.from_col]
    move.captured_piece = board.grid[move.to_row][move.to_col]
    board.grid[move.to_row][move.to_col] = piece
    board.grid[move.from_row][move.from_col] = None


def revert_move(board: Board, move: Move) -> None:
    """Exact inverse of ``apply_move``, restoring any captured piece."""
    board.grid[move.from_row][move.from_col] = board.grid[move.to_row][move.to_col]
    board.grid[move.to_row][move.to_col] = move.captured_piece


def leaves_king_safe(board: Board, side: Side, move: Move) -> bool:
    """Try a pseudo-legal move and report whether ``side`` stays safe."""
    apply_move(board, move)
    try:
        return is_king_safe(board, side)
    finally:
        revert_move(board, move)


def _candidate_targets(
    board: Board, row: int, col: int, piece: Piece
) -> Iterator[Tuple[int, int]]:
    """Squares a piece could possibly reach, before obstruction checks."""
    piece_type = piece.piece_type

    if piece_type == PieceType.KING:
        steps = ORTHOGONAL_STEPS
    elif piece_type == PieceType.ADVISOR:
        steps = DIAGONAL_STEPS
    elif piece_type == PieceType.ELEPHANT:
        steps = ELEPHANT_STEPS
    elif piece_type == PieceType.HORSE:
        steps = HORSE_STEPS
    elif piece_type == PieceType.SOLDIER:
        forward = forward_step(piece.side)
        steps = ((forward, 0), (0, 1), (0, -1))
    elif piece_type in (PieceType.CHARIOT, PieceType.CANNON):
        for d_row, d_col in ORTHOGONAL_STEPS:
            to_row, to_col = row + d_row, col + d_col
            while board.is_on_board(to_row, to_col):
                yield to_row, to_col
                to_row += d_row
                to_col += d_col
        return
    else:
        raise ValueError(f"Unknown piece type: {piece_type}")

    for d_row, d_col in steps:
        if board.is_on_board(row + d_row, col + d_col):
            yield row + d_row, col + d_col


def pseudo_legal_moves_from(board: Board, row: int, col: int) -> List[Move]:
    """Pseudo-legal moves of the piece on (row, col)."""
    piece = board.get_piece(row, col)
    if piece is None:
        return []
    moves = []
    for to_row, to_col in _candidate_targets(board, row, col, piece):
        if is_pseudo_legal(board, row, col, to_row, to_col):
            moves.append(Move(row, col, to_row, to_col, board.grid[to_row][to_col]))
    return moves


def legal_moves_from(board: Board, row: int, col: int) -> List[Move]:
    """Legal moves of the piece on (row, col)."""
    piece = board.get_piece(row, col)
    if piece is None:
        return []
    return [
        move
        for move in pseudo_legal_moves_from(board, row, col)
        if leaves_king_safe(board, piece.side, move)
    ]


def iter_legal_moves(board: Board, side: Side) -> Iterator[Move]:
    for row, col, _ in list(board.pieces(side)):
        for move in pseudo_legal_moves_from(board, row, col):
            if leaves_king_safe(board, side, move):
                yield move


def legal_moves(board: Board, side: Side) -> List[Move]:
    """Generate all legal moves for a side."""
    return list(iter_legal_moves(board, side))


def has_any_legal_move(board: Board, side: Side) -> bool:
    """Stops at the first legal move found."""
    return any(True for _ in iter_legal_moves(board, side))


def is_legal_move(board: Board, side: Side, move: Move) -> bool:
    """Full legality of a move for ``side``, without changing the board."""
    piece = board.get_piece(move.from_row, move.from_col)
    if piece is None or piece.side != side:
        return False
    if not is_pseudo_legal(board, move.from_row, move.from_col, move.to_row, move.to_col):
        return False
    return leaves_king_safe(board, side, Move(move.from_row, move.from_col, move.to_row, move.to_col))
