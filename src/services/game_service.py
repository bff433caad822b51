"""Orchestration of rooms: roster, game lifecycle, and the bridge between voting windows and the transport layer."""

import logging
import secrets
import threading
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from src.api.models import (
    CellResponse,
    CreateRoomRequest,
    CreateRoomResponse,
    GameEndedEvent,
    GameEvent,
    GameStateResponse,
    JoinRoomRequest,
    JoinRoomResponse,
    PlayerResponse,
    RoomResponse,
    TurnResolvedEvent,
    TurnResultResponse,
    VoteRequest,
    VoteResponse,
    VoteUpdateEvent,
)
from src.connect_four.clock import Clock, SystemClock
from src.connect_four.decider import MajorityTurnDecider, TurnDecider
from src.connect_four.game_state import GameState
from src.connect_four.turn_manager import TimeoutSignal, TurnManager, TurnResult
from src.core.config import GameSettings
from src.core.exceptions import RepositoryError, RoomServiceError
from src.core.models import Player, PlayerId, Room, RoomCode, RoomSettings
from src.core.shared_types import RoomState, Team
from src.store.repository import RoomRepository

logger = logging.getLogger(__name__)

ROOM_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"  # no 0/O, 1/I
ROOM_CODE_LENGTH = 6
MAX_CODE_ATTEMPTS = 20

EventPublisher = Callable[[RoomCode, GameEvent], None]


def generate_room_code() -> RoomCode:
    return "".join(secrets.choice(ROOM_CODE_ALPHABET) for _ in range(ROOM_CODE_LENGTH))


class GameService:
    """
    Orchestration of layers for team Connect Four.
    ---
    Every room gets its own TurnManager and its own lock. All operations on a room (votes, resolutions, roster changes)
    run while holding that room's lock; different rooms never wait on each other.
    """

    def __init__(
        self,
        repository: RoomRepository,
        clock: Optional[Clock] = None,
        settings: Optional[GameSettings] = None,
        decider_factory: Callable[[], TurnDecider] = MajorityTurnDecider,
        publisher: Optional[EventPublisher] = None,
        code_generator: Callable[[], RoomCode] = generate_room_code,
    ) -> None:
        self.repo = repository
        self.clock = clock if clock is not None else SystemClock()
        self.settings = settings if settings is not None else GameSettings.from_env()
        self._decider_factory = decider_factory
        self._publisher = publisher
        self._code_generator = code_generator
        self._turn_managers: dict[RoomCode, TurnManager] = {}
        self._room_locks: dict[RoomCode, threading.RLock] = {}
        self._registry_lock = threading.Lock()

    # -- Room lifecycle --
    def create_room(self, request: CreateRoomRequest) -> CreateRoomResponse:
        """Open a new (empty) room in the lobby state."""
        settings = RoomSettings(
            timer_sec=request.timer_sec or self.settings.timer_sec,
            max_players=self.settings.max_players,
        )
        for _ in range(MAX_CODE_ATTEMPTS):
            room = Room(code=self._code_generator(), settings=settings, created_at=self.clock.now())
            try:
                self.repo.create_room(room)
                break
            except RepositoryError:
                continue
        else:
            raise RoomServiceError("ROOM_CODE_EXHAUSTED", "Could not find a free room code")

        manager = TurnManager(self._decider_factory(), self.clock)
        manager.set_completion_callback(room.code, self._handle_timeout)
        with self._registry_lock:
            self._turn_managers[room.code] = manager
            self._room_locks[room.code] = threading.RLock()

        logger.info("Room %s created (timer=%ss)", room.code, settings.timer_sec)
        return CreateRoomResponse(
            room_code=room.code,
            timer_sec=settings.timer_sec,
            max_players=settings.max_players,
        )

    def join_room(self, player_id: PlayerId, request: JoinRoomRequest) -> JoinRoomResponse:
        """A player takes a seat. Teams are kept balanced; the first player becomes admin."""
        with self._locked_room(request.room_code) as room:
            existing = next(
                (p for p in room.players if p.nickname.lower() == request.nickname.lower()),
                None,
            )
            if existing is not None:
                if existing.id != player_id:
                    raise RoomServiceError("NICKNAME_TAKEN", "Nickname already taken")
                # same connection coming back
                existing.connected = True
                self._ensure_admin(room)
                self.repo.update_room(room)
                return JoinRoomResponse(
                    room=RoomResponse.from_room(room),
                    player=PlayerResponse.from_player(existing),
                )

            if len(room.players) >= room.settings.max_players:
                raise RoomServiceError("ROOM_FULL", "Room is full")

            red_count = sum(1 for p in room.players if p.team == Team.RED)
            yellow_count = sum(1 for p in room.players if p.team == Team.YELLOW)
            player = Player(
                id=player_id,
                nickname=request.nickname,
                team=Team.RED if red_count <= yellow_count else Team.YELLOW,
                is_admin=len(room.players) == 0,
            )
            room.players.append(player)
            self._ensure_admin(room)
            self.repo.update_room(room)
            logger.info("Player %s joined room %s on team %s", player.nickname, room.code, player.team)
            return JoinRoomResponse(
                room=RoomResponse.from_room(room),
                player=PlayerResponse.from_player(player),
            )

    def leave_room(self, player_id: PlayerId, room_code: RoomCode) -> None:
        """
        Mark the player disconnected. Their seat is kept for the grace period, after which they are removed
        (unless they came back in the meantime).
        """
        room = self.repo.get_room(room_code)
        if room is None:
            return

        lock = self._room_lock(room.code)
        if lock is None:
            return

        with lock:
            player = room.find_player(player_id)
            if player is None:
                return
            player.connected = False
            self._ensure_admin(room)

            self.repo.update_room(room)
            self.clock.set_timeout(
                lambda: self._remove_if_disconnected(room.code, player_id),
                self.settings.reconnect_grace_sec * 1000,
            )
            # the player who left may have been the last one the team was waiting for
            self._resolve_on_quorum(room)

    def _remove_if_disconnected(self, room_code: RoomCode, player_id: PlayerId) -> None:
        room = self.repo.get_room(room_code)
        if room is None:
            return

        lock = self._room_lock(room.code)
        if lock is None:
            return

        with lock:
            player = room.find_player(player_id)
            if player is None or player.connected:
                return
            room.players.remove(player)
            logger.info("Player %s removed from room %s after grace period", player.nickname, room.code)

            if not room.players:
                self._delete_room(room.code)
                return
            self._ensure_admin(room)
            self.repo.update_room(room)

    def _delete_room(self, room_code: RoomCode) -> None:
        with self._registry_lock:
            manager = self._turn_managers.pop(room_code, None)
            self._room_locks.pop(room_code, None)
        if manager is not None:
            manager.cancel()
        self.repo.delete_room(room_code)
        logger.info("Room %s deleted", room_code)

    # -- Game lifecycle --
    def start_game(self, room_code: RoomCode, admin_id: PlayerId) -> RoomResponse:
        """Admin starts the first game of the room."""
        with self._locked_room(room_code) as room:
            self._assert_admin(room, admin_id, "start the game")
            if room.state != RoomState.LOBBY:
                raise RoomServiceError("INVALID_STATE", "Game is not in lobby state")
            self._assert_enough_players(room)
            self._begin_game(room)
            return RoomResponse.from_room(room)

    def rematch(self, room_code: RoomCode, admin_id: PlayerId) -> RoomResponse:
        """Same roster, same teams, fresh board and zeroed matching-vote counters."""
        with self._locked_room(room_code) as room:
            self._assert_admin(room, admin_id, "start a rematch")
            if room.state != RoomState.ENDED:
                raise RoomServiceError("INVALID_STATE", "Can only rematch after game has ended")
            self._assert_enough_players(room)
            for player in room.players:
                player.matching_votes = 0
            self._begin_game(room)
            return RoomResponse.from_room(room)

    def _begin_game(self, room: Room) -> None:
        room.game = GameState.new_game()
        room.state = RoomState.ACTIVE
        # opening the window also cancels a timer left over from the previous game
        self._manager(room.code).start_voting(room.game, room.players, room.settings.timer_sec)
        self.repo.update_room(room)
        logger.info("Game started in room %s with %s players", room.code, len(room.players))

    # -- Voting --
    def cast_vote(self, player_id: PlayerId, request: VoteRequest) -> VoteResponse:
        """Record a vote. If the whole (connected) team has voted, the turn is resolved straight away."""
        with self._locked_room(request.room_code) as room:
            if room.game is None:
                raise RoomServiceError("INVALID_STATE", "No game in progress")

            manager = self._manager(room.code)
            result = manager.cast_vote(room.game, room.players, player_id, request.column)
            if not result.success:
                logger.debug("Vote of %s in room %s rejected: %s", player_id, room.code, result.rejection)
                return VoteResponse.from_result(result)

            team = room.game.current_team
            self._publish(
                room.code,
                VoteUpdateEvent(team=team, counts=manager.get_team_vote_counts(room.game, room.players, team)),
            )
            self._resolve_on_quorum(room)
            return VoteResponse.from_result(result)

    def team_vote_counts(self, room_code: RoomCode, team: Team) -> list[int]:
        with self._locked_room(room_code) as room:
            if room.game is None:
                raise RoomServiceError("INVALID_STATE", "No game in progress")
            return self._manager(room.code).get_team_vote_counts(room.game, room.players, team)

    def get_room(self, room_code: RoomCode) -> RoomResponse:
        with self._locked_room(room_code) as room:
            return RoomResponse.from_room(room)

    def _resolve_on_quorum(self, room: Room) -> None:
        """Must be called while holding the room lock."""
        if room.state != RoomState.ACTIVE or room.game is None or not room.game.votes:
            return
        manager = self._manager(room.code)
        if manager.is_window_open and manager.has_all_team_voted(room.game, room.players):
            self._resolve(room, manager, manager.generation, "quorum")

    def _handle_timeout(self, room_code: RoomCode, signal: TimeoutSignal) -> None:
        """Completion callback of the room's TurnManager: the deadline of window `signal.generation` passed."""
        room = self.repo.get_room(room_code)
        if room is None:
            logger.debug("Timeout for unknown room %s ignored", room_code)
            return
        lock = self._room_lock(room.code)
        if lock is None:
            return
        with lock:
            if room.state != RoomState.ACTIVE or room.game is None:
                return
            self._resolve(room, self._manager(room.code), signal.generation, "timeout")

    def _resolve(self, room: Room, manager: TurnManager, generation: int, trigger: str) -> Optional[TurnResult]:
        """Close window `generation` and move the game on. A no-op if that window was already resolved."""
        game = room.game
        assert game is not None
        result = manager.finish_voting(game, room.players, generation=generation)
        if result is None:
            return None

        logger.info(
            "Room %s resolved by %s: column=%s move_applied=%s game_ended=%s",
            room.code,
            trigger,
            result.chosen_column,
            result.move_applied,
            result.game_ended,
        )

        if result.game_ended:
            room.state = RoomState.ENDED
        else:
            # next round, or a retry of the same round if the move could not be applied
            manager.start_voting(game, room.players, room.settings.timer_sec)
        self.repo.update_room(room)

        self._publish(
            room.code,
            TurnResolvedEvent(
                trigger=trigger,
                result=TurnResultResponse.from_result(result),
                game=GameStateResponse.from_state(game),
            ),
        )
        if result.game_ended:
            self._publish(room.code, self._game_ended_event(room))
        return result

    def _game_ended_event(self, room: Room) -> GameEndedEvent:
        game_result = room.game.result if room.game else None
        if game_result is None or game_result.draw or game_result.winner is None:
            outcome, line = "draw", None
        else:
            outcome = game_result.winner.value
            line = [CellResponse.from_cell(c) for c in game_result.winning_line] if game_result.winning_line else None
        scoreboard = sorted(room.players, key=lambda p: p.matching_votes, reverse=True)
        return GameEndedEvent(
            outcome=outcome,
            winning_line=line,
            scoreboard=[PlayerResponse.from_player(p) for p in scoreboard],
        )

    # -- Internal helpers --
    def _publish(self, room_code: RoomCode, event: GameEvent) -> None:
        if self._publisher is not None:
            self._publisher(room_code, event)

    def _fetch_room(self, room_code: RoomCode) -> Room:
        """Attempt to find the room in the repository and raise error if it fails."""
        room = self.repo.get_room(room_code)
        if room is None:
            raise RoomServiceError("ROOM_NOT_FOUND", "Room not found")
        return room

    @contextmanager
    def _locked_room(self, room_code: RoomCode) -> Iterator[Room]:
        room = self._fetch_room(room_code)
        lock = self._room_lock(room.code)
        if lock is None:
            raise RoomServiceError("ROOM_NOT_FOUND", "Room not found")
        with lock:
            yield room

    def _room_lock(self, room_code: RoomCode) -> Optional[threading.RLock]:
        """Locks are registered by `create_room` and dropped with the room; unknown codes get None."""
        with self._registry_lock:
            return self._room_locks.get(room_code)

    def _manager(self, room_code: RoomCode) -> TurnManager:
        with self._registry_lock:
            manager = self._turn_managers.get(room_code)
        if manager is None:
            raise RoomServiceError("ROOM_NOT_FOUND", "Room not found")
        return manager

    @staticmethod
    def _ensure_admin(room: Room) -> None:
        """
        Keep exactly one admin, preferably a connected one.
        The role moves to the first connected player when the admin is gone or disconnected;
        with nobody connected, a seated admin keeps it, otherwise the first seat gets it.
        """
        if not room.players or any(p.is_admin and p.connected for p in room.players):
            return
        successor = next((p for p in room.players if p.connected), None)
        if successor is None:
            successor = next((p for p in room.players if p.is_admin), room.players[0])
        if successor.is_admin:
            return
        for player in room.players:
            player.is_admin = player is successor
        logger.debug("Player %s is now admin of room %s", successor.nickname, room.code)

    @staticmethod
    def _assert_admin(room: Room, player_id: PlayerId, action: str) -> None:
        player = room.find_player(player_id)
        if player is None or not player.is_admin:
            raise RoomServiceError("UNAUTHORIZED", f"Only admin can {action}")

    def _assert_enough_players(self, room: Room) -> None:
        if len(room.players) < self.settings.min_players:
            raise RoomServiceError(
                "NOT_ENOUGH_PLAYERS",
                f"Need at least {self.settings.min_players} players to start",
            )
