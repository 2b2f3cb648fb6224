"""
Search entry point: fixed-depth minimax with alpha-beta pruning.

This module defines the public interface that web/app.py and interface/uci.py
depend on. select_move() is the consumer-facing call; search() is the same
computation returning a SearchResult with score and node counts for callers
that report them.

Strength is set by a Difficulty tier:

    EASY    a uniformly random legal move, no search at all
    MEDIUM  minimax to depth 2
    HARD    minimax to depth 3

Scores come from evaluate(), which is White-positive. Rather than negamax,
the search keeps an explicit maximizing flag: White's nodes maximize and
Black's nodes minimize. The side to move at the root decides the orientation,
so the opponent plays either colour correctly.

Board handling:
    The board passed in is borrowed. Every move is applied with board.push()
    and undone with board.pop() before the next sibling is tried, so the
    caller gets the position back exactly as it was. Callers that search on
    another thread hand over their own copy (board.copy()).

Failure handling:
    Nothing raised during the search reaches the caller. Any exception is
    logged and the result degrades to a random legal move with
    SearchResult.fallback set. select_move() therefore never raises and
    returns None only when the side to move has no legal moves.
"""

import logging
import math
import random
import time
from dataclasses import dataclass

import chess

from opponent.constants import DEFAULT_DIFFICULTY, Difficulty, search_depth
from opponent.evaluate import evaluate

_log = logging.getLogger(__name__)


@dataclass
class SearchState:
    """
    Counters for a single search call.

    A fresh SearchState is created for every call; nothing carries over
    between moves.

    Attributes:
        node_count: Number of positions visited, including leaves.
        cutoffs:    Number of alpha-beta cutoffs taken. Useful for checking
                    that pruning actually happens (see tools/bench.py).
    """

    node_count: int = 0
    cutoffs: int = 0


@dataclass
class SearchResult:
    """
    Outcome of one search call.

    Attributes:
        move:     The chosen move, or None if there are no legal moves.
        score:    Minimax value of the chosen move (White-positive), or None
                  when no search was run (EASY tier, fallback, no moves).
        depth:    Search depth used; 0 for the random mover.
        nodes:    Positions visited.
        cutoffs:  Alpha-beta cutoffs taken.
        fallback: True if the search failed and the move is a random
                  replacement.
        error:    Description of the failure when fallback is True.
        elapsed_ms: Wall-clock time spent in the call.
    """

    move: chess.Move | None
    score: int | None = None
    depth: int = 0
    nodes: int = 0
    cutoffs: int = 0
    fallback: bool = False
    error: str | None = None
    elapsed_ms: int = 0


def minimax(
    board: chess.Board,
    depth: int,
    alpha: float,
    beta: float,
    maximizing: bool,
    state: SearchState,
) -> float:
    """
    Minimax value of the position with alpha-beta pruning.

    Args:
        board:      Current position. Modified in place via push/pop and
                    always restored before returning, even on error.
        depth:      Remaining plies. At 0 the position is scored statically.
        alpha:      Best score the maximizer can already guarantee.
        beta:       Best score the minimizer can already guarantee.
        maximizing: True if the side to move at this node maximizes (White).
        state:      Counters for this search call.

    Returns:
        The White-positive value of the position. Finished games are scored
        by material like any other leaf; a mate gets no bonus.
    """
    state.node_count += 1

    if depth == 0 or board.is_game_over():
        return evaluate(board)

    if maximizing:
        best = -math.inf
        for move in board.legal_moves:
            board.push(move)
            try:
                score = minimax(board, depth - 1, alpha, beta, False, state)
            finally:
                board.pop()
            best = max(best, score)
            alpha = max(alpha, score)
            if beta <= alpha:
                state.cutoffs += 1
                break
        return best

    best = math.inf
    for move in board.legal_moves:
        board.push(move)
        try:
            score = minimax(board, depth - 1, alpha, beta, True, state)
        finally:
            board.pop()
        best = min(best, score)
        beta = min(beta, score)
        if beta <= alpha:
            state.cutoffs += 1
            break
    return best


def _search_root(
    board: chess.Board,
    moves: list[chess.Move],
    depth: int,
    rng: random.Random,
    state: SearchState,
) -> tuple[chess.Move, float]:
    """
    Pick the best root move by searching each one independently.

    The moves are shuffled first. Only a strict improvement replaces the
    current best, so among equally scored moves the shuffle decides.
    Each root move gets its own (-inf, +inf) window.
    """
    maximizing = board.turn == chess.WHITE
    best_move = None
    best_score = -math.inf if maximizing else math.inf

    ordered = list(moves)
    rng.shuffle(ordered)

    for move in ordered:
        board.push(move)
        try:
            score = minimax(board, depth - 1, -math.inf, math.inf, not maximizing, state)
        finally:
            board.pop()

        if maximizing and score > best_score:
            best_move, best_score = move, score
        elif not maximizing and score < best_score:
            best_move, best_score = move, score

    if best_move is None:
        return ordered[0], best_score
    return best_move, best_score


def search(
    board: chess.Board,
    difficulty: Difficulty = DEFAULT_DIFFICULTY,
    rng: random.Random | None = None,
) -> SearchResult:
    """
    Choose a move for the side to move and report how it was found.

    Args:
        board:      The current position. Borrowed: modified during the
                    search and restored before returning.
        difficulty: Strength tier (see module docstring).
        rng:        Random source for the EASY move, the root shuffle and the
                    fallback move. Pass a seeded random.Random for
                    reproducible play.

    Returns:
        SearchResult. move is None only when there are no legal moves.
    """
    rng = rng if rng is not None else random.Random()
    start = time.monotonic()
    state = SearchState()

    try:
        moves = list(board.legal_moves)
        if not moves:
            return SearchResult(move=None)

        depth = search_depth(difficulty)
        if depth is None:
            return SearchResult(move=rng.choice(moves), elapsed_ms=_elapsed_ms(start))

        move, score = _search_root(board, moves, depth, rng, state)
        return SearchResult(
            move=move,
            score=None if math.isinf(score) else int(score),
            depth=depth,
            nodes=state.node_count,
            cutoffs=state.cutoffs,
            elapsed_ms=_elapsed_ms(start),
        )
    except Exception as exc:
        _log.warning("Search failed for FEN=%s; playing a random move", board.fen(), exc_info=True)
        return _fallback(board, rng, state, exc, start)


def select_move(
    board: chess.Board,
    difficulty: Difficulty = DEFAULT_DIFFICULTY,
    rng: random.Random | None = None,
) -> chess.Move | None:
    """
    Return the move the computer plays, or None if there are no legal moves.

    Never raises. See search() for the arguments.
    """
    return search(board, difficulty, rng).move


def _fallback(
    board: chess.Board,
    rng: random.Random,
    state: SearchState,
    exc: Exception,
    start: float,
) -> SearchResult:
    try:
        moves = list(board.legal_moves)
    except Exception:
        _log.exception("Could not list legal moves for fallback")
        moves = []
    return SearchResult(
        move=rng.choice(moves) if moves else None,
        nodes=state.node_count,
        cutoffs=state.cutoffs,
        fallback=True,
        error=f"{type(exc).__name__}: {exc}",
        elapsed_ms=_elapsed_ms(start),
    )


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
