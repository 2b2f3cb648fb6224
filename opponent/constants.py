"""
Opponent constants: piece weights, difficulty tiers, and search depths.

All numeric constants used by the evaluator and the search are defined here
so that tuning the opponent never means hunting for magic numbers.

Piece weights use a coarse "pawn = 10" scale rather than centipawns. The
king weight is large enough to dominate any realistic material imbalance,
but the search never uses it to detect checkmate: terminal positions are
recognised by python-chess, not inferred from the score.
"""

import enum

import chess

# ---------------------------------------------------------------------------
# Piece weights
# ---------------------------------------------------------------------------

PAWN_VALUE: int = 10
KNIGHT_VALUE: int = 30
BISHOP_VALUE: int = 30
ROOK_VALUE: int = 50
QUEEN_VALUE: int = 90
KING_VALUE: int = 900

# Mapping from python-chess piece type constants to weights.
# Lookups use .get(piece_type, 0): a piece type missing here scores nothing.
PIECE_VALUES: dict[int, int] = {
    chess.PAWN:   PAWN_VALUE,
    chess.KNIGHT: KNIGHT_VALUE,
    chess.BISHOP: BISHOP_VALUE,
    chess.ROOK:   ROOK_VALUE,
    chess.QUEEN:  QUEEN_VALUE,
    chess.KING:   KING_VALUE,
}

# ---------------------------------------------------------------------------
# Difficulty tiers
# ---------------------------------------------------------------------------


class Difficulty(str, enum.Enum):
    """Strength setting chosen by the player before a game against the computer."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


# Plies of look-ahead per tier. None means "no search": play a random legal move.
# Depth 3 is the ceiling for a synchronous request; every extra ply multiplies
# the node count by roughly the branching factor.
SEARCH_DEPTHS: dict[Difficulty, int | None] = {
    Difficulty.EASY:   None,
    Difficulty.MEDIUM: 2,
    Difficulty.HARD:   3,
}

DEFAULT_DIFFICULTY: Difficulty = Difficulty.MEDIUM


def search_depth(difficulty: Difficulty) -> int | None:
    """Return the fixed search depth for a tier, or None for the random mover."""
    return SEARCH_DEPTHS[Difficulty(difficulty)]
