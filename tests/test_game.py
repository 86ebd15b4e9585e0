"""Unit tests for GameState: move application, results and undo."""

import pytest
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from xiangqi import (
    Board, Move, Side, PieceType, Piece, GameState, new_game,
    InvalidPositionError, KingNotFoundError,
)

# Red to move; i4i9 mates (two chariots, Red king covering the d-file)
MATE_IN_ONE_FEN = "4k4/R8/9/9/9/8R/9/9/9/3K5 w"
# Red to move; g4f4 leaves Black without a move while not in check
STALEMATE_IN_ONE_FEN = "4k4/R8/9/9/9/6R2/9/9/9/3K5 w"


def play(state, *iccs_moves):
    for iccs in iccs_moves:
        move = Move.from_iccs(iccs)
        assert state.make_move(move), f"{iccs} should be legal"


def state_tuple(state):
    return (
        state.board.to_fen(),
        state.side_to_move,
        len(state.history),
        state.game_over,
        state.winner,
    )


class TestNewGame:
    """Test the starting state."""

    def test_new_game(self):
        """Test the starting state."""
        state = new_game()

        assert state.board == Board()
        assert state.side_to_move == Side.RED
        assert state.history == []
        assert not state.game_over
        assert state.winner is None

    def test_reset(self):
        """Test reset returns to the starting state."""
        state = new_game()
        play(state, "h2e2", "h7e7")
        state.reset()

        assert state_tuple(state) == state_tuple(new_game())


class TestAttemptMove:
    """Test move application."""

    def test_legal_move(self):
        """Test a legal move is applied."""
        state = new_game()

        assert state.attempt_move(7, 7, 7, 4)
        assert state.board.get_piece(7, 4) == Piece(Side.RED, PieceType.CANNON)
        assert state.board.get_piece(7, 7) is None
        assert state.side_to_move == Side.BLACK
        assert len(state.history) == 1

    def test_capture_recorded(self):
        """Test a capture is kept in the history."""
        state = new_game()

        assert state.attempt_move(7, 1, 0, 1)  # Cannon takes the horse over the screen
        assert state.history[-1].captured_piece == Piece(Side.BLACK, PieceType.HORSE)

    @pytest.mark.parametrize("move", [
        (5, 4, 4, 4),    # empty square
        (0, 0, 1, 0),    # opponent's piece
        (9, 0, 9, 1),    # onto own piece
        (9, 1, 8, 3),    # hobbled horse
        (6, 4, 6, 3),    # soldier sideways before the river
        (9, 0, 10, 0),   # off the board
        (-1, 0, 0, 0),   # off the board
    ])
    def test_illegal_move_leaves_state_unchanged(self, move):
        """Test a rejected move changes nothing."""
        state = new_game()
        play(state, "h2e2", "h7e7")
        before = state_tuple(state)
        history_before = list(state.history)

        assert not state.attempt_move(*move)
        assert state_tuple(state) == before
        assert state.history == history_before

    def test_alternating_turns(self):
        """Test sides move in turn."""
        state = new_game()
        assert state.attempt_move(6, 4, 5, 4)
        # Red may not move twice
        assert not state.attempt_move(5, 4, 4, 4)
        assert state.attempt_move(3, 4, 4, 4)
        assert state.side_to_move == Side.RED

    def test_must_escape_check(self):
        """Test a move that ignores check is rejected."""
        state = GameState.from_fen("3k5/9/9/9/4r4/9/P8/9/9/4K4 w")
        assert state.in_check()

        before = state_tuple(state)
        assert not state.attempt_move(6, 0, 5, 0)  # ignores the check
        assert state_tuple(state) == before
        assert not state.attempt_move(9, 4, 9, 3)  # would face the black king
        assert state.attempt_move(9, 4, 9, 5)  # king steps aside

    def test_flying_general_rejected(self):
        """Kings may not face each other even when nothing else attacks."""
        state = GameState.from_fen("4k4/9/9/9/9/9/9/9/9/3K5 w")

        assert not state.attempt_move(9, 3, 9, 4)
        assert state.attempt_move(9, 3, 8, 3)

    def test_screen_cannot_leave_file(self):
        """Test the only piece between the kings is pinned."""
        state = GameState.from_fen("4k4/9/9/9/9/4C4/9/9/9/4K4 w")

        assert not state.attempt_move(5, 4, 5, 0)
        assert state.attempt_move(5, 4, 4, 4)

    def test_no_moves_after_game_over(self):
        """Test no move is accepted once the game is over."""
        state = GameState.from_fen(MATE_IN_ONE_FEN)
        play(state, "i4i9")

        assert state.game_over
        assert not state.attempt_move(0, 4, 0, 5)


class TestGameResult:
    """A side without legal moves loses."""

    def test_checkmate(self):
        """Test checkmate ends the game."""
        state = GameState.from_fen(MATE_IN_ONE_FEN)
        play(state, "i4i9")

        assert state.game_over
        assert state.winner == Side.RED
        assert state.in_check()
        assert state.legal_moves() == []

    def test_stalemate_is_a_loss(self):
        """Test a side without moves loses even when not in check."""
        state = GameState.from_fen(STALEMATE_IN_ONE_FEN)
        play(state, "g4f4")

        assert state.game_over
        assert state.winner == Side.RED
        assert not state.in_check()

    def test_non_mating_check(self):
        """Test a check with an escape does not end the game."""
        state = GameState.from_fen(MATE_IN_ONE_FEN)
        play(state, "a8a9")  # check, but the king can step down

        assert state.in_check()
        assert not state.game_over

    def test_from_fen_detects_finished_position(self):
        """Test a finished position loads as game over."""
        state = GameState.from_fen("4k4/R8/9/9/9/5R3/9/9/9/3K5 b")

        assert state.game_over
        assert state.winner == Side.RED

    def test_from_fen_side(self):
        """Test the side to move field."""
        assert GameState.from_fen(Board.START_FEN + " b").side_to_move == Side.BLACK
        assert GameState.from_fen(Board.START_FEN + " r").side_to_move == Side.RED
        assert GameState.from_fen(Board.START_FEN).side_to_move == Side.RED
        with pytest.raises(InvalidPositionError):
            GameState.from_fen(Board.START_FEN + " x")

    def test_to_fen(self):
        """Test FEN output includes the side to move."""
        state = new_game()
        play(state, "h2e2")
        assert state.to_fen() == "rnbakabnr/9/1c5c1/p1p1p1p1p/9/9/P1P1P1P1P/1C2C4/9/RNBAKABNR b"

    def test_missing_king_is_fatal(self):
        """Test a position without a king raises."""
        with pytest.raises(KingNotFoundError):
            GameState.from_fen("9/9/9/9/9/9/9/9/9/4K4 w")

    def test_from_fen_rejects_exposed_king_of_side_not_to_move(self):
        """Black to move while the Red king already stands in check."""
        with pytest.raises(InvalidPositionError):
            GameState.from_fen("3k5/9/9/9/9/9/9/9/4r4/4K4 b")

    def test_from_fen_rejects_facing_kings(self):
        """An open file between the kings cannot arise in play."""
        with pytest.raises(InvalidPositionError):
            GameState.from_fen("4k4/9/9/9/9/9/9/9/9/4K4 w")

    def test_from_fen_accepts_side_to_move_in_check(self):
        """Only the side to move may start out in check."""
        state = GameState.from_fen("3k5/9/9/9/9/9/9/9/4r4/4K4 w")

        assert state.in_check()
        assert not state.game_over
        assert state.legal_moves()


class TestUndo:
    """Undo restores the exact previous state."""

    def test_undo_empty_history(self):
        """Test undo with no history."""
        state = new_game()
        assert state.undo() is None
        assert not state.can_undo()

    def test_undo_quiet_move(self):
        """Test undo of a quiet move."""
        state = new_game()
        before = state_tuple(state)
        play(state, "h2e2")

        undone = state.undo()

        assert undone.to_iccs() == "h2e2"
        assert state_tuple(state) == before

    def test_undo_capture_restores_piece(self):
        """Test undo puts a captured piece back."""
        state = new_game()
        play(state, "h2e2", "h7e7")
        before = state_tuple(state)
        play(state, "e2e6")  # cannon takes the central soldier

        state.undo()

        assert state_tuple(state) == before
        assert state.board.get_piece(3, 4) == Piece(Side.BLACK, PieceType.SOLDIER)

    def test_undo_clears_result(self):
        """Test undo of a mating move reopens the game."""
        state = GameState.from_fen(MATE_IN_ONE_FEN)
        before = state_tuple(state)
        play(state, "i4i9")
        assert state.game_over

        state.undo()

        assert state_tuple(state) == before
        assert not state.game_over
        assert state.winner is None

    def test_undo_whole_game(self):
        """Test undoing every move returns to the start."""
        state = new_game()
        play(state, "h2e2", "h7e7", "e2e6", "d9e8", "b0c2", "b9c7")

        while state.undo() is not None:
            pass

        assert state_tuple(state) == state_tuple(new_game())


class TestMoveHints:
    """Legal destinations for a selected piece."""

    def test_hints_for_own_piece(self):
        """Test move hints for a piece of the side to move."""
        state = new_game()
        destinations = {(m.to_row, m.to_col) for m in state.legal_moves_from(9, 1)}
        assert destinations == {(7, 0), (7, 2)}

    def test_no_hints_for_opponent_piece(self):
        """Test no hints for the opponent's pieces."""
        state = new_game()
        assert state.legal_moves_from(0, 1) == []


class TestKingInvariant:
    """Both kings stay on the board through any legal sequence."""

    def test_kings_survive_random_play(self):
        """Test both kings stay on the board in random play."""
        import random

        rng = random.Random(1234)
        state = new_game()
        for _ in range(60):
            if state.game_over:
                break
            move = rng.choice(state.legal_moves())
            assert state.make_move(move)
            assert state.board.find_king(Side.RED)
            assert state.board.find_king(Side.BLACK)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
