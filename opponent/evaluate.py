"""
Material evaluation: the leaf heuristic of the minimax search.

The score is a plain material balance from White's point of view. White
pieces add their weight, Black pieces subtract it. There is no positional
term and no special score for checkmate or stalemate; the search treats a
finished game like any other leaf and scores whatever material is left.

Unlike a negamax evaluator, the score does NOT flip with the side to move.
The search decides whether to maximize or minimize it instead.
"""

import chess

from opponent.constants import PIECE_VALUES


def evaluate(board: chess.Board) -> int:
    """
    Material balance of the position, White-positive.

    Args:
        board: The position to score. Not modified.

    Returns:
        Sum of White piece weights minus sum of Black piece weights.
        The starting position scores 0.

    Example:
        >>> import chess
        >>> evaluate(chess.Board("4k3/8/8/8/8/8/8/3QK3 w - - 0 1"))
        90
    """
    score = 0
    for piece in board.piece_map().values():
        value = PIECE_VALUES.get(piece.piece_type, 0)
        score += value if piece.color == chess.WHITE else -value
    return score
