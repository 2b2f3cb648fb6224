"""
UCI (Universal Chess Interface) protocol handler.

UCI lets chess GUIs and testing tools (like cutechess-cli) play against the
computer opponent outside the browser. The handler reads commands from stdin
and writes responses to stdout. All output lines are flushed immediately.

Protocol overview:
    GUI → Engine: uci, isready, setoption, ucinewgame, position, go, stop, quit
    Engine → GUI: id name, id author, option, uciok, readyok, info, bestmove

Strength is chosen with a combo option instead of time control:

    setoption name Difficulty value Hard

The search is fixed-depth and cannot be interrupted, so the clock
parameters of "go" are accepted and ignored, and "stop" simply waits for the
running search to finish and report its bestmove.

Threading model:
    The UCI loop runs on the main thread. "go" starts the search on a daemon
    thread with its own copy of the board, so the main thread can keep
    reading stdin while the search runs.

Critical rule: NEVER print to stdout except for valid UCI responses.
Debug output must go to stderr.
"""

import sys
import os
import threading

# ---------------------------------------------------------------------------
# Path setup: make 'opponent' importable when this script is run directly
# as `python interface/uci.py` from the repo root.
# ---------------------------------------------------------------------------
_REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _REPO_ROOT not in sys.path:
    sys.path.insert(0, _REPO_ROOT)

import chess
from opponent.constants import DEFAULT_DIFFICULTY, Difficulty
from opponent.search import search

ENGINE_NAME = "ChessDuel"


def _send(line: str) -> None:
    """Write a UCI response line to stdout and flush it."""
    print(line, flush=True)


def _log(message: str) -> None:
    """Write a diagnostic line to stderr (stdout is reserved for the protocol)."""
    print(message, file=sys.stderr, flush=True)


class UciHandler:
    """
    Stateful handler for the UCI protocol.

    Holds the current board position, the selected difficulty and the search
    thread. The main UCI loop creates one instance and dispatches commands
    to it.

    Attributes:
        board:         The current board position, updated by "position".
        difficulty:    Tier used by "go", set by "setoption".
        search_thread: The active search thread, or None.
    """

    def __init__(self) -> None:
        self.board: chess.Board = chess.Board()
        self.difficulty: Difficulty = DEFAULT_DIFFICULTY
        self.search_thread: threading.Thread | None = None

    # -----------------------------------------------------------------------
    # Command handlers
    # -----------------------------------------------------------------------

    def handle_uci(self) -> None:
        """Identify the engine and advertise the Difficulty option."""
        _send(f"id name {ENGINE_NAME}")
        _send("id author Chess Duel Project")
        choices = " ".join(f"var {d.value.capitalize()}" for d in Difficulty)
        _send(
            f"option name Difficulty type combo "
            f"default {DEFAULT_DIFFICULTY.value.capitalize()} {choices}"
        )
        _send("uciok")

    def handle_isready(self) -> None:
        """
        Respond to "isready".

        Used by GUIs as a synchronization barrier, so wait for any running
        search to finish first.
        """
        self._wait_for_search()
        _send("readyok")

    def handle_setoption(self, tokens: list[str]) -> None:
        """
        Apply "setoption name <name> value <value>".

        Only Difficulty is recognised; other options are ignored with a log
        line, as the protocol requires.
        """
        if "name" not in tokens:
            return
        name_idx = tokens.index("name")
        value_idx = tokens.index("value") if "value" in tokens else len(tokens)
        name = " ".join(tokens[name_idx + 1:value_idx]).lower()
        value = " ".join(tokens[value_idx + 1:]).strip().lower()

        if name != "difficulty":
            _log(f"uci: ignoring unknown option: {name!r}")
            return
        try:
            self.difficulty = Difficulty(value)
        except ValueError:
            _log(f"uci: invalid difficulty: {value!r}")

    def handle_ucinewgame(self) -> None:
        """Reset the board for a new game."""
        self._wait_for_search()
        self.board = chess.Board()

    def handle_position(self, tokens: list[str]) -> None:
        """
        Parse and apply a "position" command.

        Command formats:
            position startpos [moves e2e4 e7e5 ...]
            position fen <FEN> [moves e2e4 e7e5 ...]

        Args:
            tokens: The command tokens with "position" already stripped.
        """
        if not tokens:
            return

        if "moves" in tokens:
            moves_idx = tokens.index("moves")
            move_tokens = tokens[moves_idx + 1:]
        else:
            moves_idx = len(tokens)
            move_tokens = []

        if tokens[0] == "startpos":
            board = chess.Board()
        elif tokens[0] == "fen":
            try:
                board = chess.Board(" ".join(tokens[1:moves_idx]))
            except ValueError as e:
                _log(f"uci: invalid FEN in position command: {e}")
                return
        else:
            _log(f"uci: unknown position type: {tokens[0]}")
            return

        # Replay the move list; stop at the first move that does not parse or is illegal.
        for uci_move in move_tokens:
            try:
                move = chess.Move.from_uci(uci_move)
            except ValueError:
                _log(f"uci: malformed move in position command: {uci_move}")
                break
            if move not in board.legal_moves:
                _log(f"uci: illegal move in position command: {uci_move}")
                break
            board.push(move)

        self.board = board

    def handle_go(self, tokens: list[str]) -> None:
        """
        Start a search on a background thread.

        Time control tokens (movetime, wtime, btime, ...) are ignored: the
        depth comes from the Difficulty option.

        Args:
            tokens: The command tokens with "go" already stripped.
        """
        if tokens:
            _log(f"uci: fixed-depth search, ignoring go parameters: {' '.join(tokens)}")

        self._wait_for_search()

        board_copy = self.board.copy()
        difficulty = self.difficulty

        self.search_thread = threading.Thread(
            target=self._search_and_reply,
            args=(board_copy, difficulty),
            daemon=True,
        )
        self.search_thread.start()

    def handle_stop(self) -> None:
        """The search cannot be interrupted; wait for its bestmove."""
        self._wait_for_search()

    def handle_quit(self) -> None:
        """Finish any running search and exit."""
        self._wait_for_search()
        sys.exit(0)

    # -----------------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------------

    @staticmethod
    def _search_and_reply(board: chess.Board, difficulty: Difficulty) -> None:
        """
        Run the search and emit the info + bestmove lines.

        search() never raises; the outer except only guards the reply itself
        so the GUI always receives a bestmove.
        """
        try:
            result = search(board, difficulty)
            if result.fallback:
                _log(f"search fell back to a random move: {result.error}")

            if result.move is None:
                # No legal moves: checkmate or stalemate.
                _send("bestmove (none)")
                return

            info = f"info depth {result.depth}"
            if result.score is not None:
                # UCI scores are from the engine's point of view; ours are White-positive.
                cp = result.score if board.turn == chess.WHITE else -result.score
                info += f" score cp {cp}"
            info += f" nodes {result.nodes} time {result.elapsed_ms}"
            _send(info)
            _send(f"bestmove {result.move.uci()}")

        except Exception as e:
            _log(f"search error: {e}")
            _send("bestmove (none)")

    def _wait_for_search(self) -> None:
        """Block until the current search thread (if any) has replied."""
        if self.search_thread is not None and self.search_thread.is_alive():
            self.search_thread.join()
        self.search_thread = None


def run_uci_loop(stream=None) -> None:
    """
    Main UCI protocol loop.

    Reads lines from stdin (or the given stream) and dispatches each command
    to a UciHandler until "quit" is received or the input is closed.

    Each command is wrapped in a try/except so that a bug in one command
    handler does not crash the engine; errors are logged to stderr.
    """
    handler = UciHandler()
    stream = stream if stream is not None else sys.stdin

    for raw_line in stream:
        line = raw_line.strip()
        if not line:
            continue

        tokens = line.split()
        command = tokens[0]
        args = tokens[1:]

        try:
            if command == "uci":
                handler.handle_uci()
            elif command == "isready":
                handler.handle_isready()
            elif command == "setoption":
                handler.handle_setoption(args)
            elif command == "ucinewgame":
                handler.handle_ucinewgame()
            elif command == "position":
                handler.handle_position(args)
            elif command == "go":
                handler.handle_go(args)
            elif command == "stop":
                handler.handle_stop()
            elif command == "quit":
                handler.handle_quit()
            else:
                # Unknown commands are ignored per the UCI specification.
                _log(f"uci: ignoring unknown command: {command!r}")

        except Exception as e:
            _log(f"uci: unhandled error for command {command!r}: {e}")

    # Input closed without "quit": let a pending search reply before exiting.
    handler._wait_for_search()


if __name__ == "__main__":
    run_uci_loop()
