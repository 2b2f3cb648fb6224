"""
FastAPI web application for the chess app.

Exposes a small REST API used by the browser board, and serves the page
itself from web/static:

    POST /api/move          computer reply for a position and difficulty
    POST /api/play          validate and apply a human move
    POST /api/status        check / game-over / winner for a position
    GET  /api/moves         legal targets of the piece on one square
    GET  /api/difficulties  available tiers and their search depths
    POST /api/timeout       result when a clock runs out
    GET  /api/time-controls minutes per side offered in the menu

Player-vs-player games only use /api/play. Player-vs-computer games call
/api/play for the human move, then /api/move for the reply.

Architecture notes:
- Sync endpoints (not async): FastAPI runs sync handlers in a thread pool,
  which is the correct pattern for CPU-bound blocking calls like the search.
  The browser delays its /api/move call briefly so the board repaints first.
- Static files mounted LAST: route registration is first-match, so API routes
  must be registered before the StaticFiles catch-all.
- Stateless per request: the client sends the full FEN each time; no server-
  side board state is maintained between requests.

Run with: uvicorn web.app:app --reload
"""

import logging
from pathlib import Path

import chess
from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, field_validator

from opponent.constants import DEFAULT_DIFFICULTY, Difficulty, search_depth
from opponent.search import search
from web.game import (
    DEFAULT_TIME_CONTROL,
    TIME_CONTROLS,
    GameStatus,
    MoveOption,
    Side,
    apply_move,
    game_status,
    move_options,
    parse_board,
    timeout_status,
)

# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------

logging.basicConfig(level=logging.INFO)
_log = logging.getLogger(__name__)

# Absolute path resolved at import time: immune to working-directory changes.
_STATIC_DIR = Path(__file__).parent / "static"

app = FastAPI(title="Chess Duel", version="1.0.0")


# ---------------------------------------------------------------------------
# Request / response models
# ---------------------------------------------------------------------------


class PositionRequest(BaseModel):
    """A bare position."""

    fen: str


class MoveRequest(BaseModel):
    """
    Client request for the computer's move.

    Fields:
        fen: Full FEN string representing the current board position.
        difficulty: "easy", "medium" or "hard" (any case).
    """

    fen: str
    difficulty: Difficulty = DEFAULT_DIFFICULTY

    @field_validator("difficulty", mode="before")
    @classmethod
    def normalise_difficulty(cls, v):
        """Accept tier names regardless of case ("Hard", "HARD", "hard")."""
        return v.strip().lower() if isinstance(v, str) else v


class MoveResponse(BaseModel):
    """
    Computer's reply.

    Fields:
        move: Move in UCI notation (e.g. "e7e5", "a2a1q").
        san: The same move in SAN, for the move list.
        score: Minimax value (White-positive material), None for random moves.
        depth: Search depth used; 0 for the random mover.
        nodes: Positions visited by the search.
        fallback: True if the search failed and a random move was played.
        status: Position after the move.
    """

    move: str
    san: str
    score: int | None
    depth: int
    nodes: int
    fallback: bool
    status: GameStatus


class PlayRequest(BaseModel):
    """A human move to validate and apply."""

    fen: str
    move: str

    @field_validator("move")
    @classmethod
    def normalise_move(cls, v: str) -> str:
        """UCI moves are lower case; tolerate "E2E4" and stray whitespace."""
        return v.strip().lower()


class PlayResponse(BaseModel):
    move: str
    san: str
    status: GameStatus


class MoveOptionsResponse(BaseModel):
    square: str
    moves: list[MoveOption]


class DifficultyInfo(BaseModel):
    name: Difficulty
    depth: int | None


class DifficultiesResponse(BaseModel):
    difficulties: list[DifficultyInfo]
    default: Difficulty


class TimeoutRequest(BaseModel):
    """A position and the side whose clock ran out."""

    fen: str
    flagged: Side


class TimeControlsResponse(BaseModel):
    minutes: list[int]
    default: int


def _board_or_400(fen: str) -> chess.Board:
    try:
        return parse_board(fen)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid FEN: {exc}") from exc


def _ensure_not_over(board: chess.Board) -> None:
    if board.is_game_over():
        raise HTTPException(
            status_code=400,
            detail=f"Game is already over: {board.result()}",
        )


# ---------------------------------------------------------------------------
# API routes (registered BEFORE StaticFiles mount)
# ---------------------------------------------------------------------------


@app.post("/api/move", response_model=MoveResponse)
def api_move(request: MoveRequest) -> MoveResponse:
    """
    Compute the computer's move for the given position.

    Validates the FEN, confirms the game is not over, runs the search at the
    requested difficulty, applies the move, and returns it with the new
    position's status.

    Raises:
        HTTPException 400: Malformed FEN or game already over.
        HTTPException 500: The search produced no move (should not happen in
                           non-terminal positions).
    """
    board = _board_or_400(request.fen)
    _ensure_not_over(board)

    result = search(board, request.difficulty)
    if result.move is None:
        raise HTTPException(status_code=500, detail="Engine returned no move")

    if result.fallback:
        _log.warning("Fallback move %s for FEN=%s: %s", result.move.uci(), request.fen, result.error)

    _log.info(
        "Move=%s difficulty=%s score=%s depth=%d nodes=%d time=%dms fen=%s",
        result.move.uci(),
        request.difficulty.value,
        result.score,
        result.depth,
        result.nodes,
        result.elapsed_ms,
        request.fen[:40],
    )

    # --- Apply the move and return ---
    san = board.san(result.move)
    board.push(result.move)
    return MoveResponse(
        move=result.move.uci(),
        san=san,
        score=result.score,
        depth=result.depth,
        nodes=result.nodes,
        fallback=result.fallback,
        status=game_status(board),
    )


@app.post("/api/play", response_model=PlayResponse)
def api_play(request: PlayRequest) -> PlayResponse:
    """
    Validate a human move and return the resulting position.

    Raises:
        HTTPException 400: Malformed FEN, game already over, or the move is
                           malformed, illegal or missing its promotion piece.
    """
    board = _board_or_400(request.fen)
    _ensure_not_over(board)

    try:
        move, san = apply_move(board, request.move)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return PlayResponse(move=move.uci(), san=san, status=game_status(board))


@app.post("/api/status", response_model=GameStatus)
def api_status(request: PositionRequest) -> GameStatus:
    """Report side to move, check, and the result of a finished game."""
    return game_status(_board_or_400(request.fen))


@app.get("/api/moves", response_model=MoveOptionsResponse)
def api_moves(fen: str = Query(...), square: str = Query(..., min_length=2, max_length=2)) -> MoveOptionsResponse:
    """List the legal moves of the piece on one square (empty if none)."""
    board = _board_or_400(fen)
    try:
        options = move_options(board, square.lower())
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid square: {square}") from exc
    return MoveOptionsResponse(square=square.lower(), moves=options)


@app.get("/api/difficulties", response_model=DifficultiesResponse)
def api_difficulties() -> DifficultiesResponse:
    """Tiers offered in the new-game menu."""
    return DifficultiesResponse(
        difficulties=[DifficultyInfo(name=d, depth=search_depth(d)) for d in Difficulty],
        default=DEFAULT_DIFFICULTY,
    )


@app.post("/api/timeout", response_model=GameStatus)
def api_timeout(request: TimeoutRequest) -> GameStatus:
    """
    Decide the game when the browser's clock for one side reaches zero.

    Raises:
        HTTPException 400: Malformed FEN.
    """
    status = timeout_status(_board_or_400(request.fen), request.flagged)
    _log.info("Flag fell for %s: winner=%s reason=%s", request.flagged, status.winner, status.reason)
    return status


@app.get("/api/time-controls", response_model=TimeControlsResponse)
def api_time_controls() -> TimeControlsResponse:
    """Minutes per side offered in the new-game menu."""
    return TimeControlsResponse(minutes=list(TIME_CONTROLS), default=DEFAULT_TIME_CONTROL)


@app.get("/", include_in_schema=False)
def serve_root() -> FileResponse:
    """Serve the main chessboard UI."""
    return FileResponse(_STATIC_DIR / "index.html")


# ---------------------------------------------------------------------------
# Static file mount: MUST be last (catch-all for /static/* assets)
# ---------------------------------------------------------------------------

app.mount("/static", StaticFiles(directory=_STATIC_DIR), name="static")
