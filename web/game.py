"""
Game bookkeeping for the browser board.

The browser keeps no rules of its own: it sends the current FEN and gets back
everything it needs to draw the next frame, including the highlighted target
squares for a selected piece, whether the side to move is in check, and
whether the game is over and who won. All rules questions go to python-chess.
"""

from typing import Literal

import chess
from pydantic import BaseModel

Winner = Literal["white", "black", "draw"]
Side = Literal["white", "black"]

# Minutes per side offered in the new-game menu. Clocks run in the browser.
TIME_CONTROLS: tuple[int, ...] = (5, 10, 30)
DEFAULT_TIME_CONTROL: int = 10


class GameStatus(BaseModel):
    """
    Snapshot of a position as the UI needs it.

    Fields:
        fen:       The position.
        turn:      Side to move.
        in_check:  True if the side to move is in check.
        game_over: True on checkmate, stalemate or any automatic draw.
        winner:    "white"/"black" on checkmate, "draw" on any other finish,
                   None while the game is running.
        reason:    Lower-case termination name (e.g. "checkmate",
                   "stalemate", "insufficient_material"), or None.
    """

    fen: str
    turn: Literal["white", "black"]
    in_check: bool
    game_over: bool
    winner: Winner | None = None
    reason: str | None = None


class MoveOption(BaseModel):
    """One legal move from a selected square."""

    to: str
    uci: str
    san: str
    capture: bool
    promotion: bool


def color_name(color: chess.Color) -> Literal["white", "black"]:
    return "white" if color == chess.WHITE else "black"


def parse_board(fen: str) -> chess.Board:
    """
    Build a board from a FEN string.

    Raises:
        ValueError: The FEN is malformed (raised by python-chess).
    """
    return chess.Board(fen)


def game_status(board: chess.Board) -> GameStatus:
    """Describe the position: side to move, check, and the result if finished."""
    outcome = board.outcome()
    winner: Winner | None = None
    reason = None
    if outcome is not None:
        # Checkmate is the only decisive automatic outcome; everything else is a draw.
        winner = color_name(outcome.winner) if outcome.winner is not None else "draw"
        reason = outcome.termination.name.lower()

    return GameStatus(
        fen=board.fen(),
        turn=color_name(board.turn),
        in_check=board.is_check(),
        game_over=outcome is not None,
        winner=winner,
        reason=reason,
    )


def timeout_status(board: chess.Board, flagged: Side) -> GameStatus:
    """
    Result of a game where one side's clock ran out.

    The other side wins, unless it has too little material to ever mate,
    in which case the game is drawn. A game that already finished on the
    board keeps its board result.

    Args:
        board:   Position when the flag fell.
        flagged: Side whose time expired.
    """
    status = game_status(board)
    if status.game_over:
        return status

    flagged_color = chess.WHITE if flagged == "white" else chess.BLACK
    if board.has_insufficient_material(not flagged_color):
        winner: Winner = "draw"
        reason = "timeout_vs_insufficient_material"
    else:
        winner = color_name(not flagged_color)
        reason = "timeout"
    return status.model_copy(update={"game_over": True, "winner": winner, "reason": reason})


def move_options(board: chess.Board, square_name: str) -> list[MoveOption]:
    """
    Legal moves of the piece on a square, for click-to-move highlighting.

    A pawn reaching the last rank appears once per promotion piece; the
    client collapses them by destination and asks which piece to take.

    Raises:
        ValueError: square_name is not a square like "e2".
    """
    square = chess.parse_square(square_name)
    return [
        MoveOption(
            to=chess.square_name(move.to_square),
            uci=move.uci(),
            san=board.san(move),
            capture=board.is_capture(move),
            promotion=move.promotion is not None,
        )
        for move in board.legal_moves
        if move.from_square == square
    ]


def apply_move(board: chess.Board, uci: str) -> tuple[chess.Move, str]:
    """
    Play a move given in UCI notation on the board.

    Args:
        board: Position to update in place.
        uci:   Move like "e2e4" or "e7e8q".

    Returns:
        (move, san) with SAN computed before the move was pushed.

    Raises:
        ValueError: The move is malformed, illegal, or a promotion without
                    a promotion piece.
    """
    try:
        move = chess.Move.from_uci(uci)
    except ValueError as exc:
        raise ValueError(f"Malformed move: {uci!r}") from exc

    if move not in board.legal_moves:
        # e7e8 on its own is never legal; tell the client a piece is missing.
        if move.promotion is None and chess.Move(move.from_square, move.to_square, chess.QUEEN) in board.legal_moves:
            raise ValueError(f"Promotion piece required for {uci}")
        raise ValueError(f"Illegal move: {uci}")

    san = board.san(move)
    board.push(move)
    return move, san
