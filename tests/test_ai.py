"""Tests for the tic-tac-toe minimax AI."""

import math
import random
from collections import Counter

import pytest

from tictactoe.ai import (
    Difficulty,
    MinimaxAI,
    SearchStats,
    best_move,
    minimax,
    score_moves,
    select_move,
)
from tictactoe.game import O, X, available_moves, evaluate

_ = None

# O has 3 and 4 and can complete the middle row at 5.
O_WINS_AT_5 = [X, X, _, O, O, _, _, _, _]


class ScriptedRandom:
    """Random source returning a fixed draw and the last choice."""

    def __init__(self, value):
        self.value = value
        self.draws = 0

    def random(self):
        self.draws += 1
        return self.value

    def choice(self, seq):
        return seq[-1]


class NoRandom:
    def random(self):
        raise AssertionError("hard difficulty must not draw a random value")

    def choice(self, seq):
        raise AssertionError("hard difficulty must not pick a random move")


@pytest.fixture(scope="module")
def reachable_positions():
    """Every position reachable in a legal game, X moving first."""

    seen = set()
    frontier = [tuple([_] * 9)]
    while frontier:
        board = frontier.pop()
        if board in seen:
            continue
        seen.add(board)
        if evaluate(board).finished:
            continue
        mark = X if board.count(X) == board.count(O) else O
        for i in available_moves(board):
            child = list(board)
            child[i] = mark
            frontier.append(tuple(child))
    return seen


def _o_to_move(board):
    return board.count(X) > board.count(O)


# ---- search ----


def test_side_to_move_with_immediate_win_scores_positive():
    board = [O, O, _, X, X, _, _, _, _]
    assert minimax(board, 0, True, -math.inf, math.inf, player=O) == 9


def test_opponent_with_immediate_win_scores_negative():
    board = [O, O, _, X, X, _, _, _, _]
    assert minimax(board, 0, False, -math.inf, math.inf, player=O) == -9


def test_terminal_board_returns_without_searching():
    stats = SearchStats()
    board = [X, X, X, O, O, _, _, _, _]
    assert minimax(board, 3, True, -math.inf, math.inf, player=X, stats=stats) == 7
    assert minimax(board, 3, True, -math.inf, math.inf, player=O, stats=stats) == -7
    assert stats.nodes == 2


def test_draw_scores_zero():
    board = [X, O, X, X, O, O, O, X, X]
    assert minimax(board, 0, True, -math.inf, math.inf) == 0


def test_search_restores_board():
    board = [X, _, _, _, O, _, _, _, X]
    snapshot = list(board)
    minimax(board, 0, True, -math.inf, math.inf)
    assert board == snapshot


def test_pruning_never_changes_score(reachable_positions):
    pruned_stats, full_stats = SearchStats(), SearchStats()
    for position in reachable_positions:
        if position.count(_) > 5 or evaluate(position).finished:
            continue
        board = list(position)
        maximizing = _o_to_move(position)
        pruned = minimax(board, 0, maximizing, -math.inf, math.inf, stats=pruned_stats)
        full = minimax(
            board, 0, maximizing, -math.inf, math.inf, prune=False, stats=full_stats
        )
        assert pruned == full, position
        assert board == list(position)
    assert pruned_stats.nodes < full_stats.nodes


def test_empty_board_is_a_draw_with_perfect_play():
    scores = score_moves([_] * 9)
    assert [index for index, _score in scores] == list(range(9))
    assert max(score for _index, score in scores) == 0


# ---- move selection ----


def test_ai_takes_immediate_win():
    assert select_move([O, O, _, X, X, _, _, _, _], Difficulty.HARD) == 2


def test_ai_completes_own_line_before_blocking():
    assert select_move(O_WINS_AT_5, Difficulty.HARD) == 5


def test_ai_blocks_opponent_line():
    assert select_move([X, X, _, _, O, _, _, _, _], Difficulty.HARD) == 2


def test_ai_can_play_as_x():
    board = [X, X, _, O, O, _, _, _, _]
    assert select_move(board, "hard", player=X) == 2


def test_ties_resolve_to_lowest_index():
    # Every opening draws, so the first cell is kept.
    assert best_move([_] * 9, player=X) == 0


def test_hard_move_on_empty_board_is_a_cell():
    assert select_move([_] * 9, Difficulty.HARD, player=X) in range(9)


def test_select_move_leaves_board_untouched():
    board = [X, _, _, _, O, _, _, X, _]
    snapshot = list(board)
    for difficulty in Difficulty:
        select_move(board, difficulty, rng=random.Random(7))
    assert board == snapshot


@pytest.mark.parametrize(
    "difficulty, draw, expected",
    [
        (Difficulty.EASY, 0.69, 8),
        (Difficulty.EASY, 0.70, 5),
        (Difficulty.MEDIUM, 0.29, 8),
        (Difficulty.MEDIUM, 0.30, 5),
    ],
)
def test_random_gate_threshold(difficulty, draw, expected):
    rng = ScriptedRandom(draw)
    assert select_move(O_WINS_AT_5, difficulty, rng=rng) == expected
    assert rng.draws == 1


def test_hard_never_draws_random_value():
    assert select_move(O_WINS_AT_5, Difficulty.HARD, rng=NoRandom()) == 5


def test_easy_distribution_mixes_random_and_search():
    rng = random.Random(2024)
    counts = Counter(select_move(O_WINS_AT_5, Difficulty.EASY, rng=rng) for _i in range(1000))

    assert set(counts) <= {2, 5, 6, 7, 8}
    # 30% search plus a fifth of the 70% random moves.
    assert abs(counts[5] / 1000 - (0.3 + 0.7 / 5)) < 0.06
    for index in (2, 6, 7, 8):
        assert abs(counts[index] / 1000 - 0.7 / 5) < 0.05


def test_hard_never_gives_up_a_forced_win(reachable_positions):
    for position in reachable_positions:
        if position.count(_) > 6 or evaluate(position).finished:
            continue
        if not _o_to_move(position):
            continue
        scores = dict(score_moves(position))
        chosen = select_move(position, Difficulty.HARD)
        assert scores[chosen] == max(scores.values())
        if max(scores.values()) >= 0:
            assert scores[chosen] >= 0, position


def test_hard_ai_never_loses_against_any_opponent():
    def explore(board):
        for move in available_moves(board):
            board[move] = X
            outcome = evaluate(board)
            assert outcome.winner != X, board
            if not outcome.finished:
                reply = select_move(board, Difficulty.HARD)
                board[reply] = O
                if not evaluate(board).finished:
                    explore(board)
                board[reply] = _
            board[move] = _

    explore([_] * 9)


@pytest.mark.parametrize(
    "board",
    [
        [X, O, X, X, O, O, O, X, X],  # full
        [X, X, X, O, O, _, _, _, _],  # already won
        [_] * 8,
    ],
)
def test_select_move_rejects_unplayable_board(board):
    with pytest.raises(ValueError):
        select_move(board, Difficulty.HARD)


def test_select_move_rejects_unknown_settings():
    with pytest.raises(ValueError):
        select_move([_] * 9, "impossible")
    with pytest.raises(ValueError):
        select_move([_] * 9, Difficulty.HARD, player="Z")


def test_minimax_ai_uses_its_settings():
    ai = MinimaxAI(player=O, difficulty=Difficulty.HARD)
    assert ai.choose(O_WINS_AT_5) == 5

    ai = MinimaxAI(player=O, difficulty=Difficulty.EASY, rng=random.Random(3))
    assert ai.choose(O_WINS_AT_5) in (2, 5, 6, 7, 8)
