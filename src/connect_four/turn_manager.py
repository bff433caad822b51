"""
The TurnManager runs the voting window of a single room:
open a window with a deadline -> collect votes -> close the window exactly once -> play the chosen column.

It does not own the GameState or the roster: both are handed in by the Service layer on every call.
What it does own is the window bookkeeping (generation number, pending deadline timer, completion callback).
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

from src.connect_four.board import next_team
from src.connect_four.cell import COLUMNS, LastMove
from src.connect_four.clock import Clock
from src.connect_four.decider import TurnDecider
from src.connect_four.game_state import GameResult, GameState
from src.core.exceptions import GameStateError, InvalidMoveError
from src.core.models import Player, PlayerId, RoomCode
from src.core.shared_types import Team, VoteRejection

logger = logging.getLogger(__name__)


@dataclass
class VoteResult:
    success: bool
    rejection: Optional[VoteRejection] = None

    @property
    def error(self) -> Optional[str]:
        return self.rejection.message if self.rejection else None


@dataclass
class TurnResult:
    move_applied: bool
    game_ended: bool
    chosen_column: Optional[int] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class TimeoutSignal:
    """Handed to the completion callback when the deadline of window `generation` passed."""

    room_code: RoomCode
    generation: int


CompletionCallback = Callable[[RoomCode, TimeoutSignal], None]


@dataclass
class VotingWindow:
    generation: int = 0
    is_open: bool = False
    timer_handle: Any = None
    timeout_signalled: bool = False


class TurnManager:
    """One instance per room."""

    def __init__(self, decider: TurnDecider, clock: Clock) -> None:
        self.decider = decider
        self.clock = clock
        self._window = VotingWindow()
        # guards every transition of the window (timer threads race against votes / quorum)
        self._lock = threading.Lock()
        self._room_code: Optional[RoomCode] = None
        self._completion_callback: Optional[CompletionCallback] = None

    def set_completion_callback(self, room_code: RoomCode, callback: CompletionCallback) -> None:
        with self._lock:
            self._room_code = room_code
            self._completion_callback = callback

    @property
    def generation(self) -> int:
        return self._window.generation

    @property
    def is_window_open(self) -> bool:
        return self._window.is_open

    # --- WINDOW LIFECYCLE ---
    def start_voting(self, game_state: GameState, players: Sequence[Player], timer_sec: int) -> int:
        """
        Open a new voting window that closes `timer_sec` seconds from now.
        ---
        Any deadline still pending for this room is cancelled first, so an old timer can never fire into the new window.
        Returns the generation number identifying the new window.
        """
        if game_state.is_over:
            raise GameStateError("Cannot open a voting window: the game already has a result.")
        if game_state.votes:
            raise GameStateError(
                f"Cannot open a voting window while {len(game_state.votes)} vote(s) of a previous window are still recorded."
            )

        delay_ms = timer_sec * 1000
        with self._lock:
            self._cancel_timer()
            self._window.generation += 1
            self._window.is_open = True
            self._window.timeout_signalled = False
            generation = self._window.generation

            game_state.ends_at = self.clock.now() + delay_ms
            self._window.timer_handle = self.clock.set_timeout(
                lambda: self._on_deadline(generation), delay_ms
            )

        logger.info(
            "Voting window %s opened for room %s: team=%s round=%s ends_at=%s",
            generation,
            self._room_code,
            game_state.current_team,
            game_state.round,
            game_state.ends_at,
        )
        return generation

    def cancel(self) -> None:
        """Close the window without resolving it (room deleted / game abandoned)."""
        with self._lock:
            self._cancel_timer()
            self._window.is_open = False

    def _on_deadline(self, generation: int) -> None:
        """Runs when the timer of window `generation` fires. Only signals, the callback decides how to resolve."""
        with self._lock:
            window = self._window
            if not window.is_open or window.generation != generation or window.timeout_signalled:
                logger.debug(
                    "Ignoring deadline of window %s (current window %s, open=%s)",
                    generation,
                    window.generation,
                    window.is_open,
                )
                return
            window.timeout_signalled = True
            window.timer_handle = None
            callback = self._completion_callback
            room_code = self._room_code

        if callback is None or room_code is None:
            logger.warning("Deadline of window %s passed, but no completion callback is registered.", generation)
            return
        callback(room_code, TimeoutSignal(room_code, generation))

    def _close_window(self, generation: Optional[int]) -> bool:
        """
        Compare-and-swap: open -> closed. Succeeds for exactly one caller per window.
        A caller passing a generation only succeeds if that is still the open window.
        """
        with self._lock:
            window = self._window
            if not window.is_open:
                return False
            if generation is not None and generation != window.generation:
                return False
            window.is_open = False
            self._cancel_timer()
            return True

    def _cancel_timer(self) -> None:
        """Must be called while holding the lock."""
        if self._window.timer_handle is not None:
            self.clock.clear_timeout(self._window.timer_handle)
            self._window.timer_handle = None

    # --- VOTES ---
    def cast_vote(
        self,
        game_state: GameState,
        players: Sequence[Player],
        player_id: PlayerId,
        column: int,
    ) -> VoteResult:
        """
        Record (or overwrite) a player's vote. Rejections are returned, nothing is raised.
        ---
        Casting a vote never resolves the window, even if the whole team has voted. That is up to the caller (see `has_all_team_voted`).
        """
        if not self._accepts_votes(game_state):
            return VoteResult(False, VoteRejection.WINDOW_CLOSED)

        player = next((p for p in players if p.id == player_id), None)
        if player is None:
            return VoteResult(False, VoteRejection.PLAYER_NOT_FOUND)

        if player.team != game_state.current_team:
            return VoteResult(False, VoteRejection.WRONG_TEAM)

        if not isinstance(column, int) or not 0 <= column < COLUMNS:
            return VoteResult(False, VoteRejection.INVALID_COLUMN)

        if not game_state.board.is_valid_move(column):
            return VoteResult(False, VoteRejection.COLUMN_FULL)

        game_state.votes[player_id] = column
        return VoteResult(True)

    def _accepts_votes(self, game_state: GameState) -> bool:
        if game_state.ends_at is None or game_state.is_over:
            return False
        if self.clock.now() >= game_state.ends_at:
            return False
        return self._window.is_open and not self._window.timeout_signalled

    def has_all_team_voted(self, game_state: GameState, players: Sequence[Player]) -> bool:
        """Every connected player of the active team has a recorded vote."""
        return all(
            player.id in game_state.votes
            for player in players
            if player.team == game_state.current_team and player.connected
        )

    def get_team_vote_counts(self, game_state: GameState, players: Sequence[Player], team: Team) -> list[int]:
        """Live per-column counts of one team's votes (progress display only)."""
        team_ids = {player.id for player in players if player.team == team}
        team_votes = {
            player_id: column
            for player_id, column in game_state.votes.items()
            if player_id in team_ids
        }
        return self.decider.tally_votes(team_votes, game_state.board.playable_columns())

    # --- RESOLUTION ---
    def finish_voting(
        self,
        game_state: GameState,
        players: Sequence[Player],
        generation: Optional[int] = None,
    ) -> Optional[TurnResult]:
        """
        Close the window and play the column the team chose.

        Returns None (and changes nothing) when the window was already closed, or when `generation` names an older window.
        This is what makes a quorum resolution and a deadline resolution of the same window mutually exclusive.
        ---
        1. no playable column left -> draw, no move
        2. clear the votes, tally + decide column
        3. drop the piece (votes earn no credit if this fails)
        4. credit matching votes, then check win / full board / next round
        """
        if not self._close_window(generation):
            logger.warning(
                "Ignoring resolution request for room %s: window %s is not open (current window %s).",
                self._room_code,
                generation if generation is not None else "<any>",
                self._window.generation,
            )
            return None

        game_state.ends_at = None
        votes = dict(game_state.votes)
        game_state.votes = {}

        valid_columns = game_state.board.playable_columns()
        if not valid_columns:
            game_state.result = GameResult(draw=True)
            logger.info("Room %s: no playable column left, game ends in a draw.", self._room_code)
            return TurnResult(move_applied=False, game_ended=True)

        counts = self.decider.tally_votes(votes, valid_columns)
        game_state.per_column_counts = counts
        chosen_column = self.decider.decide_column(counts, valid_columns)

        team = game_state.current_team
        try:
            board, row = game_state.board.apply_move(chosen_column, team)
        except InvalidMoveError as exc:
            logger.error(
                "Room %s: chosen column %s could not be played (round %s): %s",
                self._room_code,
                chosen_column,
                game_state.round,
                exc,
            )
            return TurnResult(move_applied=False, game_ended=False, chosen_column=chosen_column, error=str(exc))

        for player in players:
            if player.team == team and votes.get(player.id) == chosen_column:
                player.matching_votes += 1

        game_state.board = board
        game_state.last_move = LastMove(chosen_column, row, team)

        win = board.check_win(game_state.last_move)
        if win.winner is not None:
            game_state.result = GameResult(winner=win.winner, winning_line=win.winning_line)
            logger.info("Room %s: team %s wins in round %s.", self._room_code, win.winner, game_state.round)
            return TurnResult(move_applied=True, game_ended=True, chosen_column=chosen_column)

        if board.is_full():
            game_state.result = GameResult(draw=True)
            logger.info("Room %s: board is full, game ends in a draw.", self._room_code)
            return TurnResult(move_applied=True, game_ended=True, chosen_column=chosen_column)

        game_state.current_team = next_team(team)
        game_state.round += 1
        return TurnResult(move_applied=True, game_ended=False, chosen_column=chosen_column)
