#!/usr/bin/env python3
"""
Benchmark: nodes visited, cutoffs and time per move for each difficulty.

Shows how quickly the fixed-depth search grows with depth (MEDIUM = 2 ply,
HARD = 3 ply) and how much alpha-beta prunes. A lower node count at the same
depth means more effective pruning. The RNG is seeded so that the root
shuffle, and therefore the node counts, are identical between runs.

Usage: python3 tools/bench.py [--seed N]
"""
import argparse
import os
import random
import sys

REPO = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if REPO not in sys.path:
    sys.path.insert(0, REPO)

import chess
from opponent.constants import Difficulty
from opponent.search import search

# Positions spanning opening, middlegame, and endgame.
# Fixed so that numbers stay comparable between changes.
POSITIONS = [
    ("Start",        chess.STARTING_FEN),
    ("After 1.e4",   "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq - 0 1"),
    ("Italian",      "r1bqkbnr/pppp1ppp/2n5/4p3/2B1P3/5N2/PPPP1PPP/RNBQK2R b KQkq - 3 3"),
    ("Mid-open",     "r1bqkb1r/pppp1ppp/2n2n2/4p3/2B1P3/5N2/PPPP1PPP/RNBQK2R w KQkq - 4 4"),
    ("Complex mid",  "r2q1rk1/ppp2ppp/2np1n2/2b1p1B1/2B1P1b1/2NP1N2/PPP2PPP/R2Q1RK1 w - - 0 8"),
    ("Hanging Q",    "6k1/1p3ppp/2p5/3Q4/8/8/5PPP/6K1 w - - 0 1"),
    ("Rook ending",  "8/5pk1/6p1/7p/7P/6P1/5PK1/8 w - - 0 1"),
    ("Pawn race",    "8/1p4k1/p7/P1K5/8/8/8/8 w - - 0 1"),
]


def run_position(label: str, fen: str, difficulty: Difficulty, seed: int) -> dict:
    """Search one position at one tier and return the metrics."""
    board = chess.Board(fen)
    result = search(board, difficulty, random.Random(seed))
    return {
        "label": label,
        "move": result.move.uci() if result.move else "(none)",
        "depth": result.depth,
        "score": result.score if result.score is not None else 0,
        "nodes": result.nodes,
        "cutoffs": result.cutoffs,
        "time_ms": result.elapsed_ms,
    }


def main() -> None:
    """Run all benchmark positions at MEDIUM and HARD and print a summary table."""
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--seed", type=int, default=0, help="seed for the root move shuffle")
    args = parser.parse_args()

    for difficulty in (Difficulty.MEDIUM, Difficulty.HARD):
        print(f"Difficulty: {difficulty.value}")
        print(
            f"{'Position':<14} {'Move':<7} {'Depth':>5} {'Score':>6} "
            f"{'Nodes':>9} {'Cutoffs':>8} {'Time(ms)':>9}"
        )
        print("-" * 64)

        results = []
        for label, fen in POSITIONS:
            r = run_position(label, fen, difficulty, args.seed)
            results.append(r)
            print(
                f"{r['label']:<14} {r['move']:<7} {r['depth']:>5} {r['score']:>6} "
                f"{r['nodes']:>9,} {r['cutoffs']:>8,} {r['time_ms']:>9,}"
            )

        avg_nodes = sum(r["nodes"] for r in results) // len(results)
        avg_time = sum(r["time_ms"] for r in results) // len(results)
        print("-" * 64)
        print(f"{'AVERAGE':<14} {'':<7} {'':<5} {'':<6} {avg_nodes:>9,} {'':>8} {avg_time:>9,}")
        print()


if __name__ == "__main__":
    main()
