"""Board rules and outcome evaluation for 3×3 tic-tac-toe."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

Player = str  # "X" or "O"
Cell = Optional[Player]
Line = Tuple[int, int, int]

X: Player = "X"
O: Player = "O"
EMPTY: Cell = None
MARKS: Tuple[Player, Player] = (X, O)
BOARD_SIZE = 9

WINNING_LINES: Tuple[Line, ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


@dataclass(frozen=True)
class Outcome:
    """Result of evaluating a board.

    ``winner``/``line`` are set when a line is complete, ``drawn`` when the
    board is full without one; all empty means the game is still running.
    """

    winner: Optional[Player] = None
    line: Optional[Line] = None
    drawn: bool = False

    @property
    def finished(self) -> bool:
        return self.winner is not None or self.drawn


ONGOING = Outcome()
DRAW = Outcome(drawn=True)


def opponent(player: Player) -> Player:
    if player not in MARKS:
        raise ValueError(f"Unknown mark {player!r}")
    return O if player == X else X


def validate_board(board: Sequence[Cell]) -> None:
    if len(board) != BOARD_SIZE:
        raise ValueError(f"Board must have {BOARD_SIZE} cells, got {len(board)}")
    for index, cell in enumerate(board):
        if cell is not EMPTY and cell not in MARKS:
            raise ValueError(f"Invalid mark {cell!r} at cell {index}")


def available_moves(board: Sequence[Cell]) -> List[int]:
    return [i for i, c in enumerate(board) if c is EMPTY]


def find_outcome(board: Sequence[Cell]) -> Outcome:
    """Like :func:`evaluate` without validation; the search calls it per node."""
    for a, b, c in WINNING_LINES:
        v = board[a]
        if v is not EMPTY and v == board[b] == board[c]:
            return Outcome(winner=v, line=(a, b, c))
    if all(c is not EMPTY for c in board):
        return DRAW
    return ONGOING


def evaluate(board: Sequence[Cell]) -> Outcome:
    """Return the outcome of ``board``.

    The first completed line in ``WINNING_LINES`` order is reported.
    """

    validate_board(board)
    return find_outcome(board)


@dataclass
class TicTacToeGame:
    cells: List[Cell] = field(default_factory=lambda: [EMPTY] * BOARD_SIZE)
    current_player: Player = X
    winner: Optional[Player] = None
    winning_line: Optional[Line] = None
    drawn: bool = False

    def __post_init__(self) -> None:
        validate_board(self.cells)
        self._update_state()

    @property
    def finished(self) -> bool:
        return self.winner is not None or self.drawn

    def available_moves(self) -> List[int]:
        if self.finished:
            return []
        return available_moves(self.cells)

    def outcome(self) -> Outcome:
        return Outcome(winner=self.winner, line=self.winning_line, drawn=self.drawn)

    def play_move(self, index: int) -> None:
        """Place the current player's mark and pass the turn."""
        if self.finished:
            raise ValueError("Game already finished")
        if not 0 <= index < BOARD_SIZE:
            raise ValueError(f"Cell index {index} out of range")
        if self.cells[index] is not EMPTY:
            raise ValueError("Cell already occupied")

        self.cells[index] = self.current_player
        self._update_state()
        self.current_player = opponent(self.current_player)

    def reset(self) -> None:
        self.cells = [EMPTY] * BOARD_SIZE
        self.current_player = X
        self._update_state()

    # ---- helpers ----

    def _update_state(self) -> None:
        result = evaluate(self.cells)
        self.winner = result.winner
        self.winning_line = result.line
        self.drawn = result.drawn
