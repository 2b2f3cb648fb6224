"""
Computer opponent package.

This package implements the chess "AI" of the app: a fixed-depth minimax
search with alpha-beta pruning over a material-only evaluation. Legality,
check and game-over detection come from python-chess.

Modules:
    constants  Piece weights, difficulty tiers, and search depths
    evaluate   Static material evaluation (White-positive)
    search     Minimax search, root move selection, random fallback
"""
