"""Exceptions raised by the Xiangqi engine.

Illegal moves are not exceptions: ``GameState.attempt_move`` simply returns
False. These classes cover corrupted input and broken invariants.
"""


class XiangqiError(Exception):
    """Base class for all engine errors."""


class InvalidPositionError(XiangqiError):
    """Raised for malformed FEN strings, square notation or snapshots."""


class KingNotFoundError(XiangqiError):
    """Raised when a side has no king on the board.

    Kings can never be captured by a legal move, so this means the board
    was corrupted or built by hand without both kings.
    """

    def __init__(self, side):
        super().__init__(f"No {side.value} king on the board")
        self.side = side


class IllegalMoveError(XiangqiError):
    """Raised when the engine hands back a move the rules reject."""

    def __init__(self, move, reason: str = ""):
        message = f"Illegal move: {move}"
        if reason:
            message += f" - {reason}"
        super().__init__(message)
        self.move = move
        self.reason = reason


class NoMoveFoundError(XiangqiError):
    """Raised when the engine finds no move in a game that is not over."""
