import io

import chess
import pytest

from interface.uci import UciHandler, run_uci_loop
from opponent.constants import Difficulty

FOOLS_MATE = "rnb1kbnr/pppp1ppp/8/4p3/6Pq/5P2/PPPPP2P/RNBQKBNR w KQkq - 1 3"


def bestmove(output):
    lines = [line for line in output.splitlines() if line.startswith("bestmove")]
    assert len(lines) == 1
    return lines[0].split()[1]


def test_uci_advertises_difficulty(capsys):
    UciHandler().handle_uci()
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "id name ChessDuel"
    assert "option name Difficulty type combo default Medium var Easy var Medium var Hard" in lines
    assert lines[-1] == "uciok"


def test_setoption_difficulty():
    handler = UciHandler()
    handler.handle_setoption("name Difficulty value Hard".split())
    assert handler.difficulty == Difficulty.HARD
    handler.handle_setoption("name Difficulty value Impossible".split())
    assert handler.difficulty == Difficulty.HARD
    handler.handle_setoption("name Hash value 64".split())
    assert handler.difficulty == Difficulty.HARD


def test_position_startpos_with_moves():
    handler = UciHandler()
    handler.handle_position("startpos moves e2e4 e7e5".split())
    expected = chess.Board()
    expected.push_uci("e2e4")
    expected.push_uci("e7e5")
    assert handler.board.fen() == expected.fen()


def test_position_fen_stops_at_illegal_move():
    handler = UciHandler()
    handler.handle_position(f"fen {chess.STARTING_FEN} moves e2e4 e2e4".split())
    assert handler.board.move_stack == [chess.Move.from_uci("e2e4")]


def test_position_bad_fen_keeps_board():
    handler = UciHandler()
    handler.handle_position("startpos moves d2d4".split())
    handler.handle_position("fen not/a/fen w - - 0 1".split())
    assert handler.board.move_stack == [chess.Move.from_uci("d2d4")]


def test_go_replies_with_legal_move(capsys):
    handler = UciHandler()
    handler.handle_setoption("name Difficulty value Easy".split())
    handler.handle_position(["startpos"])
    handler.handle_go(["movetime", "1000"])
    handler.handle_stop()
    move = chess.Move.from_uci(bestmove(capsys.readouterr().out))
    assert move in chess.Board().legal_moves


def test_go_reports_score_from_engine_side(capsys):
    # Black to move can win the white queen: the score is positive for Black
    handler = UciHandler()
    handler.handle_position("fen 4k3/8/8/3q4/3Q4/8/8/4K3 b - - 0 1".split())
    handler.handle_go([])
    handler.handle_stop()
    out = capsys.readouterr().out
    assert "info depth 2 score cp 90" in out
    assert bestmove(out) == "d5d4"


def test_go_on_finished_game(capsys):
    handler = UciHandler()
    handler.handle_position(f"fen {FOOLS_MATE}".split())
    handler.handle_go([])
    handler.handle_stop()
    assert bestmove(capsys.readouterr().out) == "(none)"


def test_loop_plays_until_quit(capsys):
    commands = io.StringIO(
        "uci\n"
        "setoption name Difficulty value medium\n"
        "isready\n"
        "position startpos moves e2e4\n"
        "go wtime 60000 btime 60000\n"
        "bogus\n"
        "quit\n"
    )
    with pytest.raises(SystemExit):
        run_uci_loop(commands)
    captured = capsys.readouterr()
    assert "readyok" in captured.out
    board = chess.Board()
    board.push_uci("e2e4")
    assert chess.Move.from_uci(bestmove(captured.out)) in board.legal_moves
    assert "ignoring unknown command" in captured.err
