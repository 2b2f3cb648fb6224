import random

import chess
import pytest

from opponent.constants import Difficulty
from opponent.evaluate import evaluate
from opponent.search import SearchState, minimax, search, select_move

FOOLS_MATE = "rnb1kbnr/pppp1ppp/8/4p3/6Pq/5P2/PPPPP2P/RNBQKBNR w KQkq - 1 3"
STALEMATE = "7k/5Q2/6K1/8/8/8/8/8 b - - 0 1"
HANGING_QUEEN = "6k1/1p3ppp/2p5/3Q4/8/8/5PPP/6K1 w - - 0 1"
ROOK_ENDING = "8/5pk1/6p1/7p/7P/6P1/5PK1/8 w - - 0 1"
COMPLEX_MID = "r2q1rk1/ppp2ppp/2np1n2/2b1p1B1/2B1P1b1/2NP1N2/PPP2PPP/R2Q1RK1 w - - 0 8"


def exhaustive(board, depth):
    """Plain minimax without pruning, used as the reference value."""
    if depth == 0 or board.is_game_over():
        return evaluate(board)
    scores = []
    for move in list(board.legal_moves):
        board.push(move)
        scores.append(exhaustive(board, depth - 1))
        board.pop()
    return max(scores) if board.turn == chess.WHITE else min(scores)


def root_values(board, depth):
    values = {}
    for move in list(board.legal_moves):
        board.push(move)
        values[move] = exhaustive(board, depth - 1)
        board.pop()
    return values


def snapshot(board):
    return board.fen(), list(board.move_stack), set(board.legal_moves), board.turn


class FlakyBoard(chess.Board):
    """Board whose push starts rejecting moves after a number of calls."""

    def __init__(self, fen=chess.STARTING_FEN, *, chess960=False, fail_after=5):
        super().__init__(fen, chess960=chess960)
        self.fail_after = fail_after
        self.pushes = 0

    def push(self, move):
        self.pushes += 1
        if self.pushes > self.fail_after:
            raise RuntimeError("move rejected")
        super().push(move)


@pytest.mark.parametrize("difficulty", list(Difficulty))
def test_returns_legal_move(difficulty):
    board = chess.Board()
    move = select_move(board, difficulty, random.Random(1))
    assert move in board.legal_moves


@pytest.mark.parametrize("difficulty", list(Difficulty))
def test_returns_legal_move_in_endgame(difficulty):
    board = chess.Board(ROOK_ENDING)
    move = select_move(board, difficulty, random.Random(2))
    assert move in board.legal_moves


@pytest.mark.parametrize("fen", [FOOLS_MATE, STALEMATE])
@pytest.mark.parametrize("difficulty", list(Difficulty))
def test_no_move_when_game_over(fen, difficulty):
    board = chess.Board(fen)
    assert board.is_game_over()
    result = search(board, difficulty)
    assert result.move is None
    assert not result.fallback


@pytest.mark.parametrize("difficulty", list(Difficulty))
def test_board_is_restored(difficulty):
    board = chess.Board()
    board.push_uci("e2e4")
    board.push_uci("e7e5")
    before = snapshot(board)
    select_move(board, difficulty, random.Random(3))
    assert snapshot(board) == before


def test_drawn_position_with_legal_moves_still_gets_a_move():
    # Bare kings: python-chess calls the game over, but moves remain legal
    board = chess.Board("8/8/8/4k3/8/8/8/4K3 w - - 0 1")
    assert board.is_game_over()
    for difficulty in Difficulty:
        assert select_move(board, difficulty, random.Random(9)) in board.legal_moves


def test_easy_plays_varied_openings():
    board = chess.Board()
    rng = random.Random(4)
    moves = {select_move(board, Difficulty.EASY, rng) for _ in range(50)}
    assert len(moves) > 1
    assert moves <= set(board.legal_moves)


def test_seeded_search_is_reproducible():
    board = chess.Board(COMPLEX_MID)
    first = select_move(board, Difficulty.MEDIUM, random.Random(42))
    second = select_move(board, Difficulty.MEDIUM, random.Random(42))
    assert first == second


@pytest.mark.parametrize("seed", range(5))
def test_medium_does_not_hang_the_queen(seed):
    # The queen on d5 is attacked by the c6 pawn; Qxc6 is met by bxc6.
    board = chess.Board(HANGING_QUEEN)
    move = select_move(board, Difficulty.MEDIUM, random.Random(seed))
    board.push(move)
    queen_square = board.pieces(chess.QUEEN, chess.WHITE).pop()
    assert not board.is_attacked_by(chess.BLACK, queen_square)


def test_black_captures_the_queen():
    board = chess.Board("4k3/8/8/3q4/3Q4/8/8/4K3 b - - 0 1")
    assert select_move(board, Difficulty.MEDIUM, random.Random(0)) == chess.Move.from_uci("d5d4")


@pytest.mark.parametrize(
    "fen, difficulty",
    [
        (COMPLEX_MID, Difficulty.MEDIUM),
        (HANGING_QUEEN, Difficulty.MEDIUM),
        (ROOK_ENDING, Difficulty.HARD),
        (HANGING_QUEEN, Difficulty.HARD),
    ],
)
def test_pruned_search_matches_exhaustive_minimax(fen, difficulty):
    board = chess.Board(fen)
    depth = 2 if difficulty == Difficulty.MEDIUM else 3
    values = root_values(board, depth)
    best = max(values.values()) if board.turn == chess.WHITE else min(values.values())

    result = search(board, difficulty, random.Random(5))

    assert result.depth == depth
    assert result.score == best
    assert values[result.move] == best


def test_minimax_matches_exhaustive_at_inner_nodes():
    board = chess.Board(ROOK_ENDING)
    state = SearchState()
    value = minimax(board, 3, float("-inf"), float("inf"), True, state)
    assert value == exhaustive(board, 3)
    assert state.node_count > 0


def test_hard_search_prunes():
    result = search(chess.Board(ROOK_ENDING), Difficulty.HARD, random.Random(6))
    assert result.cutoffs > 0
    assert result.nodes > 0


def test_fallback_on_rejected_move():
    board = FlakyBoard(fail_after=5)
    before = snapshot(board)

    result = search(board, Difficulty.HARD, random.Random(7))

    assert result.fallback
    assert "move rejected" in result.error
    assert result.move in board.legal_moves
    assert snapshot(board) == before
    assert board.pushes > 5
    assert FlakyBoard().pushes == 0


def test_fallback_on_evaluation_error(monkeypatch):
    def broken(board):
        raise ValueError("boom")

    monkeypatch.setattr("opponent.search.evaluate", broken)
    board = chess.Board()

    move = select_move(board, Difficulty.MEDIUM, random.Random(8))

    assert move in board.legal_moves
    assert board.fen() == chess.STARTING_FEN
