"""FastAPI-powered web UI for playing tic-tac-toe in the browser."""

from __future__ import annotations

import logging
import random
import threading
import time
import uuid
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from fastapi import BackgroundTasks, FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, ConfigDict, Field

from .ai import Difficulty, MinimaxAI
from .game import O, X, TicTacToeGame

logger = logging.getLogger(__name__)


class GameMode(str, Enum):
    AI = "ai"
    LOCAL = "local"


@dataclass
class Score:
    """Session tallies; X wins go to ``player``, O wins to ``ai``."""

    player: int = 0
    ai: int = 0
    draws: int = 0


@dataclass
class GameSession:
    """Container for an active game, its optional AI opponent and scores."""

    game: TicTacToeGame
    mode: GameMode
    difficulty: Difficulty
    ai: Optional[MinimaxAI]
    scores: Score = field(default_factory=Score)
    move_log: List[Dict[str, int | str]] = field(default_factory=list)
    ai_pending: bool = False
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


SESSIONS: Dict[str, GameSession] = {}
app = FastAPI(title="Tic Tac Toe", description="Tic-tac-toe against a minimax AI")


DEFAULT_DIFFICULTY = Difficulty.MEDIUM
DEFAULT_MODE = GameMode.AI
AI_THINK_DELAY: Tuple[float, float] = (0.4, 0.4)


class NewGameRequest(BaseModel):
    """Request payload for starting a new game."""

    difficulty: Difficulty = Field(
        default=DEFAULT_DIFFICULTY,
        description="How often the AI skips the search for a random move",
    )
    mode: GameMode = Field(default=DEFAULT_MODE, description="vs AI or 2 players")


class ResetRequest(BaseModel):
    """Request payload for clearing the board, optionally switching settings."""

    difficulty: Optional[Difficulty] = None
    mode: Optional[GameMode] = None


class MoveRequest(BaseModel):
    """Request payload for submitting a move on an existing game."""

    model_config = ConfigDict(populate_by_name=True)

    cell_index: int = Field(alias="cellIndex", ge=0, le=8)


def _make_ai(mode: GameMode, difficulty: Difficulty) -> Optional[MinimaxAI]:
    if mode is GameMode.LOCAL:
        return None
    return MinimaxAI(player=O, difficulty=difficulty)


def _create_session(mode: GameMode, difficulty: Difficulty) -> Tuple[str, GameSession]:
    """Create a new game session and register it for later access."""

    session = GameSession(
        game=TicTacToeGame(),
        mode=mode,
        difficulty=difficulty,
        ai=_make_ai(mode, difficulty),
    )
    session_id = uuid.uuid4().hex
    SESSIONS[session_id] = session
    logger.info(
        "Created game %s (mode=%s, difficulty=%s)", session_id, mode.value, difficulty.value
    )
    return session_id, session


def _get_session(game_id: str) -> GameSession:
    try:
        return SESSIONS[game_id]
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Game not found") from exc


def _record_move(session: GameSession, player: str, cell_index: int) -> None:
    """Append to the move log and tally the result if the game just ended."""

    session.move_log.append({"player": player, "cellIndex": cell_index})
    game = session.game
    if game.winner == X:
        session.scores.player += 1
    elif game.winner == O:
        session.scores.ai += 1
    elif game.drawn:
        session.scores.draws += 1
    else:
        return
    logger.info(
        "Game finished: winner=%s drawn=%s scores=%s",
        game.winner,
        game.drawn,
        asdict(session.scores),
    )


def _run_ai_turn(game_id: str) -> None:
    session = SESSIONS.get(game_id)
    if not session:
        return

    time.sleep(max(0.0, random.uniform(*AI_THINK_DELAY)))

    with session.lock:
        try:
            if not session.ai or not session.ai_pending:
                return
            game = session.game
            if game.finished:
                return
            if game.current_player != session.ai.player:
                return
            cell_index = session.ai.choose(game.cells)
            game.play_move(cell_index)
            _record_move(session, session.ai.player, cell_index)
        finally:
            session.ai_pending = False


def _status_text(session: GameSession) -> str:
    game = session.game
    vs_ai = session.mode is GameMode.AI
    if game.winner == X:
        return "You win!" if vs_ai else "Player 1 wins!"
    if game.winner == O:
        return "AI wins!" if vs_ai else "Player 2 wins!"
    if game.drawn:
        return "It's a draw!"
    if vs_ai:
        return "Your turn (X)" if game.current_player == X else "AI thinking..."
    return "Player 1 (X)" if game.current_player == X else "Player 2 (O)"


def _serialize_session(game_id: str, session: GameSession) -> Dict[str, object]:
    with session.lock:
        game = session.game
        state: Dict[str, object] = {
            "id": game_id,
            "mode": session.mode.value,
            "difficulty": session.difficulty.value,
            "cells": [c if c in (X, O) else "" for c in game.cells],
            "currentPlayer": game.current_player,
            "winner": game.winner,
            "winningLine": list(game.winning_line) if game.winning_line else [],
            "drawn": game.drawn,
            "status": _status_text(session),
            "scores": asdict(session.scores),
            "availableMoves": game.available_moves(),
            "moveLog": list(session.move_log),
            "aiPending": session.ai_pending,
        }
        if session.move_log:
            state["lastMove"] = session.move_log[-1]
        return state


def _apply_player_move(
    game_id: str,
    session: GameSession,
    cell_index: int,
    background_tasks: Optional[BackgroundTasks] = None,
) -> None:
    should_schedule_ai = False
    with session.lock:
        game = session.game
        if game.finished:
            raise HTTPException(status_code=400, detail="Game already finished")

        if session.ai_pending:
            raise HTTPException(status_code=400, detail="AI is completing its move")

        if session.ai and game.current_player == session.ai.player:
            raise HTTPException(status_code=400, detail="It is the AI's turn")

        player = game.current_player
        try:
            game.play_move(cell_index)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        _record_move(session, player, cell_index)

        should_schedule_ai = bool(
            session.ai
            and not game.finished
            and game.current_player == session.ai.player
        )
        if should_schedule_ai:
            session.ai_pending = True

    if should_schedule_ai and background_tasks is not None:
        background_tasks.add_task(_run_ai_turn, game_id)


def _reset_session(
    session: GameSession,
    mode: Optional[GameMode] = None,
    difficulty: Optional[Difficulty] = None,
    clear_scores: bool = False,
) -> None:
    with session.lock:
        if mode is not None:
            session.mode = mode
        if difficulty is not None:
            session.difficulty = difficulty
        session.ai = _make_ai(session.mode, session.difficulty)
        session.game.reset()
        session.move_log.clear()
        # Any AI turn still sleeping sees this and gives up.
        session.ai_pending = False
        if clear_scores:
            session.scores = Score()


@app.post("/api/game")
def create_game(request: NewGameRequest) -> Dict[str, object]:
    game_id, session = _create_session(request.mode, request.difficulty)
    return _serialize_session(game_id, session)


@app.get("/api/game/{game_id}")
def get_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/move")
def make_move(
    game_id: str, request: MoveRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    session = _get_session(game_id)
    _apply_player_move(game_id, session, request.cell_index, background_tasks)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/reset")
def reset_game(game_id: str, request: Optional[ResetRequest] = None) -> Dict[str, object]:
    session = _get_session(game_id)
    request = request or ResetRequest()
    _reset_session(session, mode=request.mode, difficulty=request.difficulty)
    logger.info("Reset game %s", game_id)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/scores/reset")
def reset_scores(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    _reset_session(session, clear_scores=True)
    logger.info("Reset scores for game %s", game_id)
    return _serialize_session(game_id, session)


@app.get("/", response_class=HTMLResponse)
def index() -> str:
    return HTML_PAGE


HTML_PAGE = """<!DOCTYPE html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <title>Tic Tac Toe</title>
    <style>
      body {
        margin: 0;
        min-height: 100vh;
        display: flex;
        flex-direction: column;
        align-items: center;
        justify-content: center;
        background: #0f172a;
        color: #f8fafc;
        font-family: system-ui, sans-serif;
      }
      h1 { font-size: 2.4rem; margin-bottom: 1.5rem; }
      .controls { display: flex; gap: 0.5rem; margin-bottom: 1.5rem; }
      button, select {
        padding: 0.5rem 1rem;
        border: none;
        border-radius: 0.5rem;
        background: #334155;
        color: inherit;
        cursor: pointer;
      }
      button.active { background: #0284c7; }
      .scores { display: flex; gap: 2rem; margin-bottom: 1.5rem; text-align: center; }
      .scores .value { font-size: 1.5rem; }
      .x { color: #38bdf8; }
      .o { color: #fb7185; }
      .muted { color: #94a3b8; }
      #status { height: 2rem; font-size: 1.25rem; margin-bottom: 1rem; }
      #board {
        display: grid;
        grid-template-columns: repeat(3, 6rem);
        gap: 0.25rem;
        padding: 0.25rem;
        background: #475569;
        border-radius: 0.5rem;
        margin-bottom: 1.5rem;
      }
      .cell {
        width: 6rem;
        height: 6rem;
        font-size: 3rem;
        font-weight: bold;
        border-radius: 0;
        background: #1e293b;
      }
      .cell.winning { background: rgba(6, 78, 59, 0.6); }
      .cell:disabled { cursor: default; }
      #again { display: none; margin-bottom: 1rem; }
      #reset-scores { background: none; font-size: 0.85rem; }
    </style>
  </head>
  <body>
    <h1>Tic Tac Toe</h1>
    <div class=\"controls\">
      <button id=\"mode-ai\" data-mode=\"ai\">vs AI</button>
      <button id=\"mode-local\" data-mode=\"local\">2 Players</button>
      <select id=\"difficulty\">
        <option value=\"easy\">Easy</option>
        <option value=\"medium\" selected>Medium</option>
        <option value=\"hard\">Impossible</option>
      </select>
    </div>
    <div class=\"scores\">
      <div><div class=\"x\" id=\"label-player\">You</div><div class=\"value\" id=\"score-player\">0</div></div>
      <div><div class=\"muted\">Draws</div><div class=\"value\" id=\"score-draws\">0</div></div>
      <div><div class=\"o\" id=\"label-ai\">AI</div><div class=\"value\" id=\"score-ai\">0</div></div>
    </div>
    <div id=\"status\"></div>
    <div id=\"board\"></div>
    <button id=\"again\">Play Again</button>
    <button id=\"reset-scores\" class=\"muted\">Reset Scores</button>
    <script>
      const boardEl = document.getElementById("board");
      const statusEl = document.getElementById("status");
      const difficultyEl = document.getElementById("difficulty");
      const againEl = document.getElementById("again");
      let state = null;
      let pollTimer = null;

      for (let i = 0; i < 9; i++) {
        const cell = document.createElement("button");
        cell.className = "cell";
        cell.addEventListener("click", () => play(i));
        boardEl.appendChild(cell);
      }

      async function request(path, body) {
        const response = await fetch(path, {
          method: body === undefined ? "GET" : "POST",
          headers: { "Content-Type": "application/json" },
          body: body === undefined ? undefined : JSON.stringify(body),
        });
        if (!response.ok) {
          const payload = await response.json().catch(() => ({}));
          throw new Error(payload.detail || response.statusText);
        }
        return response.json();
      }

      function render(next) {
        state = next;
        const finished = state.winner !== null || state.drawn;
        const vsAi = state.mode === "ai";
        [...boardEl.children].forEach((cell, index) => {
          const value = state.cells[index];
          cell.textContent = value;
          cell.className = "cell" + (value === "X" ? " x" : value === "O" ? " o" : "");
          if (state.winningLine.includes(index)) cell.classList.add("winning");
          cell.disabled = finished || value !== "" || state.aiPending;
        });
        statusEl.textContent = state.status;
        statusEl.className = state.currentPlayer === "X" ? "x" : "o";
        if (state.drawn) statusEl.className = "muted";
        document.getElementById("score-player").textContent = state.scores.player;
        document.getElementById("score-ai").textContent = state.scores.ai;
        document.getElementById("score-draws").textContent = state.scores.draws;
        document.getElementById("label-player").textContent = vsAi ? "You" : "Player 1";
        document.getElementById("label-ai").textContent = vsAi ? "AI" : "Player 2";
        document.getElementById("mode-ai").classList.toggle("active", vsAi);
        document.getElementById("mode-local").classList.toggle("active", !vsAi);
        difficultyEl.style.display = vsAi ? "" : "none";
        difficultyEl.value = state.difficulty;
        againEl.style.display = finished ? "block" : "none";
        clearTimeout(pollTimer);
        if (state.aiPending) {
          pollTimer = setTimeout(async () => render(await request(`/api/game/${state.id}`)), 150);
        }
      }

      async function play(index) {
        try {
          render(await request(`/api/game/${state.id}/move`, { cellIndex: index }));
        } catch (error) {
          statusEl.textContent = error.message;
        }
      }

      async function reset(body) {
        render(await request(`/api/game/${state.id}/reset`, body || {}));
      }

      document.getElementById("mode-ai").addEventListener("click", () => reset({ mode: "ai" }));
      document.getElementById("mode-local").addEventListener("click", () => reset({ mode: "local" }));
      difficultyEl.addEventListener("change", () => reset({ difficulty: difficultyEl.value }));
      againEl.addEventListener("click", () => reset());
      document.getElementById("reset-scores").addEventListener("click", async () => {
        render(await request(`/api/game/${state.id}/scores/reset`, {}));
      });

      request("/api/game", { difficulty: difficultyEl.value, mode: "ai" }).then(render);
    </script>
  </body>
</html>
"""
