"""FastAPI backend for Janggi game."""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional, Union

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from janggi.board import Position, Side
from janggi.config import depth_for_difficulty, get_default_depth
from janggi.engine import Engine
from janggi.errors import (
    GameAlreadyOver,
    IllegalMove,
    InvalidSearchState,
    InvalidSelection,
    InvalidSetup,
    JanggiError,
    NothingToUndo,
)
from janggi.game import Game, MoveResult, Outcome

logger = logging.getLogger(__name__)

# Thread pool for CPU-intensive AI operations
executor = ThreadPoolExecutor(max_workers=4)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    yield
    # Cleanup: shutdown thread pool on app shutdown
    executor.shutdown(wait=True)


app = FastAPI(title="Janggi AI Engine", lifespan=lifespan)


class GameSession:
    """A game plus its engine settings and concurrency guards."""

    def __init__(self, game: Game, depth: int):
        self.game = game
        self.depth = depth
        self.lock = asyncio.Lock()
        self.is_processing = False  # AI search in flight


# Global game sessions with proper locking
games: Dict[str, GameSession] = {}
games_lock = asyncio.Lock()


async def get_session(game_id: str) -> GameSession:
    """Get game session with proper error handling."""
    async with games_lock:
        if game_id not in games:
            raise HTTPException(status_code=404, detail="Game not found")
        return games[game_id]


class NewGameRequest(BaseModel):
    """Request model for creating a new game."""

    game_id: str
    depth: Optional[int] = None  # Uses JANGGI_AI_DEPTH / default if neither is set
    difficulty: Optional[int] = None  # Level 1-9, mapped to a depth
    custom_setup: Optional[Dict[str, str]] = None  # e.g., {"e2": "hK", "e9": "cK"}
    cho_formation: Optional[Union[int, str]] = None  # 0-3 or "마상상마", "마상마상", "상마마상", "상마상마"
    han_formation: Optional[Union[int, str]] = None


class MoveRequest(BaseModel):
    """Request model for making a move."""

    game_id: str
    from_square: str  # e.g., "a7"
    to_square: str  # e.g., "a6"


class BoardResponse(BaseModel):
    """Response model for board state."""

    board: List[List[Optional[str]]]  # [rank][file] piece codes
    side_to_move: str
    move_count: int
    passed: Dict[str, bool]
    in_check: bool
    is_stalemate: bool  # No legal move, not in check: the side must pass
    scores: Dict[str, float]  # HAN includes komi
    game_over: bool
    outcome: Optional[Dict[str, Any]] = None
    can_undo: bool = False


def square_to_position(square: str) -> Position:
    """Convert square notation (e.g., 'a1') to a Position, or HTTP 400."""
    try:
        return Position.from_square(square)
    except InvalidSetup as e:
        raise HTTPException(status_code=400, detail=str(e))


def outcome_to_dict(outcome: Optional[Outcome]) -> Optional[Dict[str, Any]]:
    if outcome is None:
        return None
    return {
        "winner": outcome.winner.value if outcome.winner else None,
        "reason": outcome.reason.value,
        "cho_score": outcome.cho_score,
        "han_score": outcome.han_score,
    }


def move_result_to_dict(result: MoveResult) -> Dict[str, Any]:
    return {
        "captured": result.captured.value if result.captured else None,
        "check": result.check,
        "game_over": outcome_to_dict(result.game_over),
    }


def rule_error(e: JanggiError) -> HTTPException:
    """Map a rule error to an HTTP 400."""
    kind = {
        InvalidSelection: "invalid_selection",
        IllegalMove: "illegal_move",
        GameAlreadyOver: "game_over",
        NothingToUndo: "nothing_to_undo",
        InvalidSearchState: "invalid_search_state",
        InvalidSetup: "invalid_setup",
    }.get(type(e), "rule_error")
    return HTTPException(status_code=400, detail={"error": kind, "message": str(e)})


def _ensure_idle(session: GameSession) -> None:
    if session.is_processing:
        raise HTTPException(
            status_code=409, detail="AI is already processing a move. Please wait."
        )


@app.post("/api/new-game")
async def new_game(request: NewGameRequest):
    """Create a new game."""
    if request.depth is not None:
        depth = request.depth
    elif request.difficulty is not None:
        depth = depth_for_difficulty(request.difficulty)
    else:
        depth = get_default_depth()
    if depth <= 0:
        raise HTTPException(status_code=400, detail="Depth must be positive")

    try:
        game = Game(
            cho_formation=request.cho_formation,
            han_formation=request.han_formation,
            custom_setup=request.custom_setup,
        )
    except JanggiError as e:
        raise rule_error(e)

    async with games_lock:
        games[request.game_id] = GameSession(game, depth)

    logger.info("New game %s (depth %d)", request.game_id, depth)
    return {"status": "ok", "game_id": request.game_id, "depth": depth}


@app.get("/api/board/{game_id}", response_model=BoardResponse)
async def get_board(game_id: str):
    """Get current board state."""
    session = await get_session(game_id)
    async with session.lock:
        _ensure_idle(session)
        game = session.game
        cho_score, han_score = game.material_scores()
        return BoardResponse(
            board=game.board.to_codes(),
            side_to_move=game.side_to_move.value,
            move_count=game.move_count,
            passed={side.value: flag for side, flag in game.state.passed.items()},
            in_check=game.is_in_check(),
            is_stalemate=game.is_stalemate(),
            scores={Side.CHO.value: cho_score, Side.HAN.value: han_score},
            game_over=game.game_over,
            outcome=outcome_to_dict(game.outcome),
            can_undo=game.can_undo,
        )


@app.get("/api/legal-moves/{game_id}/{square}")
async def get_legal_moves(game_id: str, square: str):
    """Legal destinations of the piece on a square (for move hints)."""
    session = await get_session(game_id)
    pos = square_to_position(square)
    async with session.lock:
        _ensure_idle(session)
        try:
            targets = session.game.legal_moves(pos)
        except JanggiError as e:
            raise rule_error(e)
    return {"from": pos.square, "moves": [target.square for target in targets]}


@app.post("/api/move")
async def make_move(request: MoveRequest):
    """Make a move."""
    session = await get_session(request.game_id)
    from_pos = square_to_position(request.from_square)
    to_pos = square_to_position(request.to_square)

    # Lock으로 동시 수정 방지
    async with session.lock:
        _ensure_idle(session)
        try:
            result = session.game.apply_move(from_pos, to_pos)
        except JanggiError as e:
            raise rule_error(e)

    return {
        "status": "ok",
        "move": from_pos.square + to_pos.square,
        **move_result_to_dict(result),
    }


@app.post("/api/pass/{game_id}")
async def pass_turn(game_id: str):
    """Pass the turn."""
    session = await get_session(game_id)
    async with session.lock:
        _ensure_idle(session)
        try:
            result = session.game.apply_pass()
        except JanggiError as e:
            raise rule_error(e)
    return {"status": "ok", **move_result_to_dict(result)}


@app.post("/api/undo/{game_id}")
async def undo_move(game_id: str):
    """Undo the last move or pass."""
    session = await get_session(game_id)
    async with session.lock:
        _ensure_idle(session)
        try:
            session.game.undo_last()
        except JanggiError as e:
            raise rule_error(e)
    return {"status": "ok", "message": "Move undone successfully"}


@app.post("/api/undo-pair/{game_id}")
async def undo_move_pair(game_id: str):
    """Undo the last two actions (player's move and AI's move)."""
    session = await get_session(game_id)
    async with session.lock:
        _ensure_idle(session)
        game = session.game
        if len(game.history) < 2:
            raise HTTPException(status_code=400, detail="Not enough moves to undo")
        try:
            game.undo_last()  # AI's move
            game.undo_last()  # Player's move
        except JanggiError as e:
            raise rule_error(e)
    return {"status": "ok", "message": "Two moves undone successfully"}


def _run_ai_search(engine: Engine, game: Game):
    """CPU 집약적인 AI 검색을 별도 스레드에서 실행."""
    return engine.search(game.state)


@app.post("/api/ai-move/{game_id}")
async def ai_move(game_id: str):
    """Let the engine play one move for the side to move."""
    session = await get_session(game_id)

    # The search mutates the board in place, so every other request on this
    # game gets a 409 until it finishes
    async with session.lock:
        _ensure_idle(session)
        session.is_processing = True

    try:
        engine = Engine(depth=session.depth)
        loop = asyncio.get_running_loop()
        try:
            best_move = await loop.run_in_executor(
                executor, _run_ai_search, engine, session.game
            )
        except JanggiError as e:
            raise rule_error(e)

        if best_move is None:
            raise HTTPException(status_code=400, detail="No legal moves available; the side to move must pass")

        async with session.lock:
            try:
                result = session.game.apply_move(best_move.from_pos, best_move.to_pos)
            except IllegalMove:
                logger.exception("AI generated illegal move %s", best_move)
                raise HTTPException(status_code=500, detail="AI generated illegal move")

        return {
            "status": "ok",
            "move": {
                "from": best_move.from_pos.square,
                "to": best_move.to_pos.square,
            },
            "nodes_searched": engine.nodes_searched,
            **move_result_to_dict(result),
        }
    finally:
        session.is_processing = False
