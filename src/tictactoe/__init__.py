"""Tic-tac-toe package exposing the rules, the minimax AI, and the web application."""

from .ai import Difficulty, MinimaxAI, minimax, select_move
from .game import WINNING_LINES, Outcome, TicTacToeGame, evaluate
from .ui import app

__all__ = [
    "Difficulty",
    "MinimaxAI",
    "Outcome",
    "TicTacToeGame",
    "WINNING_LINES",
    "app",
    "evaluate",
    "minimax",
    "select_move",
]
