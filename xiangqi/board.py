"""Xiangqi board representation."""

from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple
from dataclasses import dataclass

from .exceptions import InvalidPositionError, KingNotFoundError


class Side(Enum):
    """Player sides."""

    RED = "RED"  # Bottom side (rows 7-9 palace), moves first
    BLACK = "BLACK"  # Top side (rows 0-2 palace)

    @property
    def opponent(self) -> "Side":
        return Side.BLACK if self is Side.RED else Side.RED


class PieceType(Enum):
    """Piece types."""

    KING = "KING"
    ADVISOR = "ADVISOR"
    ELEPHANT = "ELEPHANT"
    HORSE = "HORSE"
    CHARIOT = "CHARIOT"
    CANNON = "CANNON"
    SOLDIER = "SOLDIER"


# Standard FEN letters. The parser also takes the alternative E/H/S letters.
FEN_LETTERS = {
    PieceType.KING: "k",
    PieceType.ADVISOR: "a",
    PieceType.ELEPHANT: "b",
    PieceType.HORSE: "n",
    PieceType.CHARIOT: "r",
    PieceType.CANNON: "c",
    PieceType.SOLDIER: "p",
}

LETTER_TO_TYPE = {letter: piece_type for piece_type, letter in FEN_LETTERS.items()}
LETTER_TO_TYPE.update({"e": PieceType.ELEPHANT, "h": PieceType.HORSE, "s": PieceType.SOLDIER})

FILES = "abcdefghi"


@dataclass(frozen=True)
class Piece:
    """A piece on the board. Pieces never change type or side."""

    side: Side
    piece_type: PieceType

    @property
    def fen_char(self) -> str:
        letter = FEN_LETTERS[self.piece_type]
        return letter.upper() if self.side == Side.RED else letter

    @classmethod
    def from_fen_char(cls, char: str) -> "Piece":
        piece_type = LETTER_TO_TYPE.get(char.lower())
        if piece_type is None:
            raise InvalidPositionError(f"Unknown piece letter: {char!r}")
        side = Side.RED if char.isupper() else Side.BLACK
        return cls(side, piece_type)

    def __str__(self) -> str:
        return f"{self.side.value}_{self.piece_type.value}"


def coords_to_square(row: int, col: int) -> str:
    """Convert (row, col) to square notation, e.g. (9, 4) -> 'e0'."""
    return f"{FILES[col]}{Board.ROWS - 1 - row}"


def square_to_coords(square: str) -> Tuple[int, int]:
    """Convert square notation (e.g. 'e0') to (row, col)."""
    if len(square) != 2 or square[0] not in FILES or not square[1].isdigit():
        raise InvalidPositionError(f"Invalid square: {square!r}")
    return Board.ROWS - 1 - int(square[1]), FILES.index(square[0])


@dataclass
class Move:
    """A move, with the captured piece kept so it can be undone."""

    from_row: int
    from_col: int
    to_row: int
    to_col: int
    captured_piece: Optional[Piece] = None

    @property
    def is_capture(self) -> bool:
        return self.captured_piece is not None

    def same_squares(self, other: "Move") -> bool:
        return (
            self.from_row == other.from_row
            and self.from_col == other.from_col
            and self.to_row == other.to_row
            and self.to_col == other.to_col
        )

    def __str__(self) -> str:
        return self.to_iccs()

    def to_iccs(self) -> str:
        """Convert to ICCS notation (e.g. 'h2e2')."""
        return coords_to_square(self.from_row, self.from_col) + coords_to_square(
            self.to_row, self.to_col
        )

    @classmethod
    def from_iccs(cls, iccs: str) -> "Move":
        """Parse ICCS notation."""
        if len(iccs) != 4:
            raise InvalidPositionError(f"Invalid move notation: {iccs!r}")
        from_row, from_col = square_to_coords(iccs[:2])
        to_row, to_col = square_to_coords(iccs[2:])
        return cls(from_row, from_col, to_row, to_col)


class Board:
    """10x9 grid of optional pieces. Row 0 is Black's back rank."""

    ROWS = 10
    COLS = 9

    START_FEN = "rnbakabnr/9/1c5c1/p1p1p1p1p/9/9/P1P1P1P1P/1C5C1/9/RNBAKABNR"

    BACK_RANK = [
        PieceType.CHARIOT,
        PieceType.HORSE,
        PieceType.ELEPHANT,
        PieceType.ADVISOR,
        PieceType.KING,
        PieceType.ADVISOR,
        PieceType.ELEPHANT,
        PieceType.HORSE,
        PieceType.CHARIOT,
    ]

    def __init__(self, custom_setup: Optional[Dict[str, str]] = None):
        """Initialize the board.

        Args:
            custom_setup: Optional mapping of squares (e.g. "e0") to piece codes
                made of a side letter and a piece letter (e.g. "rK" for the Red
                King, "bC" for a Black Cannon). An empty mapping gives an empty
                board. Without it the standard starting position is set up.
        """
        self.grid: List[List[Optional[Piece]]] = [
            [None for _ in range(self.COLS)] for _ in range(self.ROWS)
        ]
        if custom_setup is not None:
            self._initialize_custom_position(custom_setup)
        else:
            self._initialize_starting_position()

    def _initialize_starting_position(self):
        """Set up the standard 32-piece position."""
        for col, piece_type in enumerate(self.BACK_RANK):
            self.grid[0][col] = Piece(Side.BLACK, piece_type)
            self.grid[9][col] = Piece(Side.RED, piece_type)

        for col in (1, 7):
            self.grid[2][col] = Piece(Side.BLACK, PieceType.CANNON)
            self.grid[7][col] = Piece(Side.RED, PieceType.CANNON)

        for col in range(0, self.COLS, 2):
            self.grid[3][col] = Piece(Side.BLACK, PieceType.SOLDIER)
            self.grid[6][col] = Piece(Side.RED, PieceType.SOLDIER)

    def _initialize_custom_position(self, custom_setup: Dict[str, str]):
        sides = {"r": Side.RED, "b": Side.BLACK}
        for square, code in custom_setup.items():
            row, col = square_to_coords(square)
            if len(code) != 2 or code[0] not in sides:
                raise InvalidPositionError(f"Invalid piece code: {code!r}")
            piece_type = LETTER_TO_TYPE.get(code[1].lower())
            if piece_type is None:
                raise InvalidPositionError(f"Invalid piece code: {code!r}")
            self.grid[row][col] = Piece(sides[code[0]], piece_type)

    @classmethod
    def empty(cls) -> "Board":
        return cls(custom_setup={})

    @classmethod
    def from_fen(cls, fen: str) -> "Board":
        """Build a board from the placement field of a FEN string.

        Any fields after the placement (side to move etc.) are ignored.
        """
        fields = fen.split()
        if not fields:
            raise InvalidPositionError("Empty FEN")
        rows = fields[0].split("/")
        if len(rows) != cls.ROWS:
            raise InvalidPositionError(f"FEN needs {cls.ROWS} rows, got {len(rows)}")

        board = cls.empty()
        for row, row_str in enumerate(rows):
            col = 0
            for char in row_str:
                if char.isdigit():
                    col += int(char)
                    continue
                if col >= cls.COLS:
                    raise InvalidPositionError(f"FEN row {row} is too long: {row_str!r}")
                board.grid[row][col] = Piece.from_fen_char(char)
                col += 1
            if col != cls.COLS:
                raise InvalidPositionError(f"FEN row {row} has {col} columns: {row_str!r}")
        return board

    def to_fen(self) -> str:
        """Placement field of the FEN string, starting at row 0."""
        fen_rows = []
        for row in range(self.ROWS):
            row_str = ""
            empty_count = 0
            for col in range(self.COLS):
                piece = self.grid[row][col]
                if piece is None:
                    empty_count += 1
                    continue
                if empty_count > 0:
                    row_str += str(empty_count)
                    empty_count = 0
                row_str += piece.fen_char
            if empty_count > 0:
                row_str += str(empty_count)
            fen_rows.append(row_str)
        return "/".join(fen_rows)

    def is_on_board(self, row: int, col: int) -> bool:
        return 0 <= row < self.ROWS and 0 <= col < self.COLS

    def get_piece(self, row: int, col: int) -> Optional[Piece]:
        """Get piece at given coordinates (None when empty or off the board)."""
        if 0 <= row < self.ROWS and 0 <= col < self.COLS:
            return self.grid[row][col]
        return None

    def set_piece(self, row: int, col: int, piece: Optional[Piece]) -> None:
        self.grid[row][col] = piece

    def pieces(self, side: Side) -> Iterator[Tuple[int, int, Piece]]:
        """Yield (row, col, piece) for every piece of a side."""
        for row in range(self.ROWS):
            for col in range(self.COLS):
                piece = self.grid[row][col]
                if piece is not None and piece.side == side:
                    yield row, col, piece

    def find_king(self, side: Side) -> Tuple[int, int]:
        """Locate a side's king. A missing king means a corrupted board."""
        for row, col, piece in self.pieces(side):
            if piece.piece_type == PieceType.KING:
                return row, col
        raise KingNotFoundError(side)

    def copy(self) -> "Board":
        board = Board.empty()
        board.grid = [list(row) for row in self.grid]
        return board

    def mirrored(self) -> "Board":
        """Rows reflected top-to-bottom with every piece's side swapped."""
        board = Board.empty()
        for row in range(self.ROWS):
            for col in range(self.COLS):
                piece = self.grid[row][col]
                if piece is not None:
                    board.grid[self.ROWS - 1 - row][col] = Piece(
                        piece.side.opponent, piece.piece_type
                    )
        return board

    def __eq__(self, other) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return self.grid == other.grid

    def __str__(self) -> str:
        lines = []
        for row in range(self.ROWS):
            cells = [
                piece.fen_char if piece is not None else "."
                for piece in self.grid[row]
            ]
            lines.append(f"{self.ROWS - 1 - row} " + " ".join(cells))
        lines.append("  " + " ".join(FILES))
        return "\n".join(lines)
