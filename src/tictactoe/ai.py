"""Alpha-beta minimax and difficulty-scaled move selection for tic-tac-toe."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, MutableSequence, Optional, Protocol, Sequence, Tuple
import logging
import math
import random

from .game import (
    BOARD_SIZE,
    EMPTY,
    O,
    Cell,
    Player,
    available_moves,
    find_outcome,
    opponent,
    validate_board,
)

logger = logging.getLogger(__name__)

WIN_SCORE = 10


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


# Chance of skipping the search and playing a uniformly random legal move.
RANDOM_MOVE_PROBABILITY: Dict[Difficulty, float] = {
    Difficulty.EASY: 0.7,
    Difficulty.MEDIUM: 0.3,
    Difficulty.HARD: 0.0,
}


class RandomSource(Protocol):
    def random(self) -> float: ...

    def choice(self, seq: Sequence[int]) -> int: ...


@dataclass
class SearchStats:
    nodes: int = 0


# ---- search ----


def minimax(
    board: MutableSequence[Cell],
    depth: int,
    maximizing: bool,
    alpha: float,
    beta: float,
    player: Player = O,
    prune: bool = True,
    stats: Optional[SearchStats] = None,
) -> int:
    """Score ``board`` from ``player``'s point of view.

    ``player`` is the maximizing mark. Wins score ``10 - depth``, losses
    ``depth - 10`` and draws ``0``. Trial marks are written into ``board`` and
    removed again before returning, so ``board`` must be a list the caller
    is happy to lend out. The board is not validated here.
    """

    if stats is not None:
        stats.nodes += 1

    result = find_outcome(board)
    if result.winner == player:
        return WIN_SCORE - depth
    if result.winner is not None:
        return depth - WIN_SCORE
    if result.drawn:
        return 0

    mark = player if maximizing else opponent(player)

    if maximizing:
        value = -math.inf
        for i in range(BOARD_SIZE):
            if board[i] is not EMPTY:
                continue
            board[i] = mark
            try:
                score = minimax(board, depth + 1, False, alpha, beta, player, prune, stats)
            finally:
                board[i] = EMPTY
            value = max(value, score)
            alpha = max(alpha, value)
            if prune and beta <= alpha:
                break
    else:
        value = math.inf
        for i in range(BOARD_SIZE):
            if board[i] is not EMPTY:
                continue
            board[i] = mark
            try:
                score = minimax(board, depth + 1, True, alpha, beta, player, prune, stats)
            finally:
                board[i] = EMPTY
            value = min(value, score)
            beta = min(beta, value)
            if prune and beta <= alpha:
                break
    return int(value)


# ---- move selection ----


def _playable_copy(board: Sequence[Cell], player: Player) -> List[Cell]:
    cells = list(board)
    validate_board(cells)
    opponent(player)
    if find_outcome(cells).finished:
        raise ValueError("Cannot choose a move on a finished board")
    return cells


def score_moves(board: Sequence[Cell], player: Player = O) -> List[Tuple[int, int]]:
    """Root score of every empty cell for ``player``, in ascending index order."""

    cells = _playable_copy(board, player)
    scores: List[Tuple[int, int]] = []
    for i in available_moves(cells):
        cells[i] = player
        score = minimax(cells, 0, False, -math.inf, math.inf, player)
        cells[i] = EMPTY
        scores.append((i, score))
    return scores


def best_move(board: Sequence[Cell], player: Player = O) -> int:
    """Optimal move for ``player``; the lowest index wins ties."""

    best_index: Optional[int] = None
    best_score = -math.inf
    for index, score in score_moves(board, player):
        if score > best_score:
            best_index, best_score = index, score
    assert best_index is not None
    logger.debug("Search picked cell %d for %s (score %d)", best_index, player, best_score)
    return best_index


def select_move(
    board: Sequence[Cell],
    difficulty: Difficulty | str,
    player: Player = O,
    rng: Optional[RandomSource] = None,
) -> int:
    """Pick the cell ``player`` plays next at the given difficulty.

    With probability ``RANDOM_MOVE_PROBABILITY[difficulty]`` a uniformly random
    empty cell is returned without searching; otherwise the best move. The
    board passed in is never modified.
    """

    level = Difficulty(difficulty)
    cells = _playable_copy(board, player)
    source: RandomSource = rng if rng is not None else random

    probability = RANDOM_MOVE_PROBABILITY[level]
    if probability > 0 and source.random() < probability:
        move = source.choice(available_moves(cells))
        logger.debug("Random move %d for %s at %s difficulty", move, player, level.value)
        return move
    return best_move(cells, player)


@dataclass
class MinimaxAI:
    """Automated player used by the web layer.

      - MinimaxAI(player="O", difficulty=Difficulty.HARD)
      - choose(board) -> cell index
    """

    player: Player = O
    difficulty: Difficulty = Difficulty.MEDIUM
    rng: random.Random = field(default_factory=random.Random, repr=False)

    def choose(self, board: Sequence[Cell]) -> int:
        return select_move(board, self.difficulty, self.player, self.rng)
