"""FastAPI backend for Xiangqi games."""

import os
import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel
from typing import Optional, List, Dict, Any
from time import time

from xiangqi.board import Board, Move, Side, Piece, coords_to_square, square_to_coords
from xiangqi.controller import GameController, GameMode
from xiangqi.engine import Engine, DEFAULT_DEPTH, DEFAULT_TIME_LIMIT
from xiangqi.exceptions import InvalidPositionError, XiangqiError
from xiangqi.game import GameState
from xiangqi.snapshot import GameSnapshot

logger = logging.getLogger(__name__)

# Thread pool for CPU-intensive AI operations
executor = ThreadPoolExecutor(max_workers=4)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    yield
    executor.shutdown(wait=True)


app = FastAPI(title="Xiangqi AI Engine", lifespan=lifespan)


def _env_number(name: str, default, cast):
    """Read a numeric setting from the environment, falling back on bad values."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return cast(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %r", name, raw, default)
        return default


SEARCH_DEPTH = _env_number("XIANGQI_SEARCH_DEPTH", DEFAULT_DEPTH, int)
TIME_LIMIT = _env_number("XIANGQI_TIME_LIMIT", DEFAULT_TIME_LIMIT, float)
# Pause before the computer answers, so the reply does not land instantly
THINK_DELAY = _env_number("XIANGQI_THINK_DELAY", 0.5, float)
MAX_IDLE_TIME = 3600  # seconds


class GameSession:
    """One game plus the locking needed to share it between requests."""

    def __init__(self, controller: GameController):
        self.controller = controller
        self.lock = asyncio.Lock()
        self.last_access = time()
        self.is_processing = False  # engine search running


games: Dict[str, GameSession] = {}
games_lock = asyncio.Lock()


async def get_session(game_id: str) -> GameSession:
    """Get a game session or answer 404."""
    async with games_lock:
        if game_id not in games:
            raise HTTPException(status_code=404, detail="Game not found")
        session = games[game_id]
        session.last_access = time()
        return session


async def cleanup_old_games():
    """Drop games that have not been touched for a long time."""
    current_time = time()
    async with games_lock:
        to_remove = [
            game_id
            for game_id, session in games.items()
            if current_time - session.last_access > MAX_IDLE_TIME
        ]
        for game_id in to_remove:
            del games[game_id]
    if to_remove:
        logger.info("Removed %d idle games", len(to_remove))


class NewGameRequest(BaseModel):
    """Request model for creating a new game."""

    game_id: str
    mode: GameMode = GameMode.HUMAN_VS_COMPUTER
    computer_side: Side = Side.BLACK
    depth: Optional[int] = None
    fen: Optional[str] = None  # start from a custom position


class MoveRequest(BaseModel):
    """Request model for making a move."""

    game_id: str
    from_square: str  # e.g., "h2"
    to_square: str  # e.g., "e2"


class RestoreRequest(BaseModel):
    """Request model for restoring a saved game."""

    game_id: str
    snapshot: GameSnapshot
    mode: GameMode = GameMode.HUMAN_VS_COMPUTER
    computer_side: Side = Side.BLACK
    depth: Optional[int] = None


class BoardResponse(BaseModel):
    """Response model for board state."""

    board: List[List[Optional[str]]]
    fen: str
    side_to_move: str
    game_over: bool
    winner: Optional[str]
    in_check: bool
    legal_moves: List[Dict[str, str]]
    move_history: List[Dict[str, Any]]
    can_undo: bool = False


def piece_to_string(piece: Optional[Piece]) -> Optional[str]:
    """Convert piece to a side letter plus FEN letter, e.g. 'rK'."""
    if piece is None:
        return None
    side_char = "r" if piece.side == Side.RED else "b"
    return f"{side_char}{piece.fen_char.upper()}"


def move_to_dict(move: Move) -> Dict[str, str]:
    return {
        "from": coords_to_square(move.from_row, move.from_col),
        "to": coords_to_square(move.to_row, move.to_col),
    }


def _make_controller(mode: GameMode, computer_side: Side, depth: Optional[int]) -> GameController:
    try:
        engine = Engine(
            depth=depth if depth is not None else SEARCH_DEPTH, time_limit=TIME_LIMIT
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return GameController(mode=mode, computer_side=computer_side, engine=engine)


async def _register(game_id: str, controller: GameController) -> None:
    async with games_lock:
        games[game_id] = GameSession(controller)
    asyncio.create_task(cleanup_old_games())


def _board_response(state: GameState) -> BoardResponse:
    board_array = [
        [piece_to_string(state.board.get_piece(row, col)) for col in range(Board.COLS)]
        for row in range(Board.ROWS)
    ]
    history = []
    for number, move in enumerate(state.history, start=1):
        record: Dict[str, Any] = {"move_number": number, **move_to_dict(move)}
        record["captured"] = piece_to_string(move.captured_piece)
        history.append(record)

    return BoardResponse(
        board=board_array,
        fen=state.to_fen(),
        side_to_move=state.side_to_move.value,
        game_over=state.game_over,
        winner=state.winner.value if state.winner else None,
        in_check=state.in_check(),
        legal_moves=[] if state.game_over else [move_to_dict(m) for m in state.legal_moves()],
        move_history=history,
        can_undo=state.can_undo(),
    )


async def _run_computer_move(session: GameSession) -> Move:
    """Run the engine in the thread pool; the board is off limits meanwhile."""
    loop = asyncio.get_running_loop()
    try:
        return await loop.run_in_executor(executor, session.controller.computer_move)
    except XiangqiError as e:
        logger.error("Engine failure: %s", e)
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/api/new-game")
async def new_game(request: NewGameRequest):
    """Create a new game."""
    controller = _make_controller(request.mode, request.computer_side, request.depth)
    if request.fen:
        try:
            controller.state = GameState.from_fen(request.fen)
        except XiangqiError as e:
            raise HTTPException(status_code=400, detail=str(e))

    await _register(request.game_id, controller)
    return {"status": "ok", "game_id": request.game_id, "mode": request.mode.value}


@app.get("/api/board/{game_id}")
async def get_board(game_id: str):
    """Get current board state."""
    session = await get_session(game_id)
    async with session.lock:
        if session.is_processing:
            raise HTTPException(status_code=409, detail="AI is thinking. Please wait.")
        return _board_response(session.controller.state)


@app.post("/api/move")
async def make_move(request: MoveRequest):
    """Make a human move; in computer mode the engine answers it."""
    session = await get_session(request.game_id)
    try:
        from_row, from_col = square_to_coords(request.from_square)
        to_row, to_col = square_to_coords(request.to_square)
    except InvalidPositionError as e:
        raise HTTPException(status_code=400, detail=f"Invalid square notation: {e}")

    async with session.lock:
        if session.is_processing:
            raise HTTPException(status_code=409, detail="AI is thinking. Please wait.")
        controller = session.controller
        if not controller.play(from_row, from_col, to_row, to_col, reply=False):
            raise HTTPException(status_code=400, detail="Illegal move")
        result: Dict[str, Any] = {
            "status": "ok",
            "move": f"{request.from_square}{request.to_square}",
        }
        if not controller.computer_to_move:
            result["game_over"] = controller.state.game_over
            return result
        session.is_processing = True

    try:
        await asyncio.sleep(THINK_DELAY)
        reply = await _run_computer_move(session)
        result["reply"] = move_to_dict(reply)
        result["game_over"] = session.controller.state.game_over
        return result
    finally:
        async with session.lock:
            session.is_processing = False


@app.post("/api/ai-move/{game_id}")
async def ai_move(game_id: str):
    """Let the engine move for the side to move."""
    session = await get_session(game_id)

    async with session.lock:
        if session.is_processing:
            raise HTTPException(
                status_code=409, detail="AI is already processing a move. Please wait."
            )
        if session.controller.state.game_over:
            raise HTTPException(status_code=400, detail="Game is over")
        session.is_processing = True

    try:
        move = await _run_computer_move(session)
        return {
            "status": "ok",
            "move": move_to_dict(move),
            "nodes_searched": session.controller.engine.nodes_searched,
            "timed_out": session.controller.engine.timed_out,
            "game_over": session.controller.state.game_over,
        }
    finally:
        async with session.lock:
            session.is_processing = False


@app.post("/api/undo/{game_id}")
async def undo_move(game_id: str):
    """Undo the last move (back to the human's turn in computer mode)."""
    session = await get_session(game_id)

    async with session.lock:
        if session.is_processing:
            raise HTTPException(status_code=409, detail="AI is thinking. Please wait.")
        undone = session.controller.undo()
        if undone == 0:
            raise HTTPException(status_code=400, detail="No moves to undo")

    return {"status": "ok", "undone": undone}


@app.get("/api/snapshot/{game_id}")
async def get_snapshot(game_id: str):
    """Plain snapshot of the game for external storage."""
    session = await get_session(game_id)
    async with session.lock:
        if session.is_processing:
            raise HTTPException(status_code=409, detail="AI is thinking. Please wait.")
        return session.controller.state.to_snapshot()


@app.post("/api/restore")
async def restore_game(request: RestoreRequest):
    """Rebuild a game from a snapshot."""
    controller = _make_controller(request.mode, request.computer_side, request.depth)
    try:
        controller.state = GameState.from_snapshot(request.snapshot)
    except XiangqiError as e:
        raise HTTPException(status_code=400, detail=str(e))

    await _register(request.game_id, controller)
    return {"status": "ok", "game_id": request.game_id}
