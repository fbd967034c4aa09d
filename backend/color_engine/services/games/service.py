import logging
import random
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from color_engine.models import CardDefinition, TableSnapshot, snapshot
from . import engine
from .effects import EffectMessage
from .engine import ActionRejected
from .registry import GameAlreadyActive, Room, RoomNotFound, RoomRegistry, normalize_code
from .settings import GameSettings

logger = logging.getLogger(__name__)


@dataclass
class ActivationOutcome:
    snapshot: TableSnapshot
    messages: List[EffectMessage] = field(default_factory=list)
    game_over: bool = False
    winner: Optional[str] = None


class GameService:
    """Room operations exposed to the HTTP and Socket.IO layers.

    Each call runs under the room's lock and returns a fresh snapshot built
    while still holding it; broadcasting is left to the caller. Every change
    bumps the state's version so clients can drop tables that arrive late.
    """

    def __init__(self, settings: GameSettings, catalog: Sequence[CardDefinition], registry: Optional[RoomRegistry] = None):
        self.settings = settings
        self.catalog = list(catalog)
        self.registry = registry or RoomRegistry(max_players=settings.max_players_count)

    # ---- lobby ----

    def create_room(self, code: Optional[str] = None) -> str:
        code = normalize_code(code) or self.registry.generate_room_code()
        if not self.registry.create_room(code):
            raise ActionRejected('room_exists', f'Room {code} already exists')
        return code

    def join_room(self, code: str, name: str) -> List[str]:
        room = self.registry.room_of(code)
        name = str(name).strip() if name is not None else ''
        if not name:
            raise ActionRejected('join_rejected', 'A player name is required')
        if not self.registry.add_pending_player(room.code, name):
            if room.started:
                message = 'The game has already started'
            elif room.has_player(name):
                message = f'The name {name} is already taken'
            else:
                message = 'The room is full'
            logger.info(f"[join-reject] room={room.code} player={name} reason={message}")
            raise ActionRejected('join_rejected', message)
        return self.registry.list_players(room.code)

    def leave_room(self, code: str, name: str) -> List[str]:
        self.registry.remove_pending_player(code, name)
        return self.registry.list_players(code)

    def list_players(self, code: str) -> List[str]:
        return self.registry.room_of(code).pending[:]

    def is_host(self, code: str, name: Optional[str]) -> bool:
        players = self.registry.list_players(code)
        return bool(players and name and players[0].lower() == name.lower())

    def has_player(self, code: str, name: str) -> bool:
        try:
            return self.registry.room_of(code).has_player(name)
        except RoomNotFound:
            return False

    def start_game(self, code: str, requested_by: Optional[str] = None, rng: Optional[random.Random] = None) -> TableSnapshot:
        with self.registry.room_lock(code) as room:
            if room.started:
                logger.warning(f"[start-reject] room={room.code} already active")
                raise GameAlreadyActive(room.code)
            if len(room.pending) < self.settings.min_players_count:
                raise ActionRejected(
                    'not_enough_players',
                    f'At least {self.settings.min_players_count} players are required to start',
                )
            if requested_by is not None and room.pending[0].lower() != requested_by.lower():
                raise ActionRejected('not_host', 'Only the first player to join may start the game')
            state = self.registry.start_game_locked(room, self.settings, self.catalog, rng)
            return self._commit(state)

    # ---- game ----

    @staticmethod
    def _state(room: Room):
        if room.state is None:
            raise ActionRejected('game_not_found', f'No game is running in room {room.code}')
        return room.state

    @staticmethod
    def _commit(state) -> TableSnapshot:
        state.version += 1
        return snapshot(state)

    def get_table_snapshot(self, code: str) -> Optional[TableSnapshot]:
        try:
            with self.registry.room_lock(code) as room:
                return snapshot(room.state) if room.state is not None else None
        except RoomNotFound:
            return None

    def buy_card(self, code: str, card_id: str, actor: Optional[str] = None) -> TableSnapshot:
        with self.registry.room_lock(code) as room:
            state = self._state(room)
            engine.buy_card(state, card_id, actor)
            return self._commit(state)

    def activate_card(self, code: str, card_id: str, actor: Optional[str] = None) -> ActivationOutcome:
        with self.registry.room_lock(code) as room:
            state = self._state(room)
            result = engine.activate_card(state, card_id, actor)
            return ActivationOutcome(
                snapshot=self._commit(state),
                messages=result.messages,
                game_over=result.game_over,
                winner=result.winner,
            )

    def end_turn(self, code: str, actor: Optional[str] = None) -> TableSnapshot:
        with self.registry.room_lock(code) as room:
            state = self._state(room)
            engine.end_turn(state, actor)
            return self._commit(state)

    def close_room(self, code: str) -> bool:
        return self.registry.close_room(code)
