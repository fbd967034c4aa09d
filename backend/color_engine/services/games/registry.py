import logging
import random
import string
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from color_engine.models import CardDefinition, GameState
from .engine import ActionRejected, initialize_game
from .settings import GameSettings

logger = logging.getLogger(__name__)


class RoomNotFound(ActionRejected):
    def __init__(self, code: str):
        super().__init__('room_not_found', f'Room {code} not found')


class GameAlreadyActive(ActionRejected):
    def __init__(self, code: str):
        super().__init__('game_already_active', f'Game in room {code} has already started')


def normalize_code(code: Optional[str]) -> str:
    return (code or '').strip().upper()


@dataclass
class Room:
    code: str
    max_players: int
    pending: List[str] = field(default_factory=list)
    state: Optional[GameState] = None
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def started(self) -> bool:
        return self.state is not None

    def has_player(self, name: str) -> bool:
        lowered = name.lower()
        return any(p.lower() == lowered for p in self.pending)


class RoomRegistry:
    """Owns every room in the process: pending rosters, game states and locks.

    The registry lock only guards the room map. Work on one room is
    serialized with that room's own lock (see room_lock), so rooms never
    block each other. Player-to-connection links live here too, apart from
    the Player objects, so a reconnect only rebinds a socket id.
    """

    def __init__(self, max_players: int = 4):
        self.max_players = max_players
        self._rooms: Dict[str, Room] = {}
        self._connections: Dict[str, Tuple[str, str]] = {}
        self._lock = threading.Lock()

    # ---- rooms ----

    def create_room(self, code: str) -> bool:
        code = normalize_code(code)
        if not code:
            return False
        with self._lock:
            if code in self._rooms:
                return False
            self._rooms[code] = Room(code=code, max_players=self.max_players)
        logger.info(f"[room-create] room={code}")
        return True

    def generate_room_code(self, length: int = 4) -> str:
        """Generate a short code not used by any open room."""
        while True:
            code = ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))
            if not self.room_exists(code):
                return code

    def room_exists(self, code: str) -> bool:
        with self._lock:
            return normalize_code(code) in self._rooms

    def room_of(self, code: str) -> Room:
        with self._lock:
            room = self._rooms.get(normalize_code(code))
        if room is None:
            raise RoomNotFound(normalize_code(code))
        return room

    @contextmanager
    def room_lock(self, code: str):
        room = self.room_of(code)
        with room.lock:
            yield room

    def close_room(self, code: str) -> bool:
        code = normalize_code(code)
        with self._lock:
            room = self._rooms.pop(code, None)
            for sid in [s for s, (c, _) in self._connections.items() if c == code]:
                del self._connections[sid]
        if room is not None:
            logger.info(f"[room-close] room={code}")
        return room is not None

    # ---- lobby ----

    def add_pending_player(self, code: str, name: str) -> bool:
        name = (name or '').strip()
        if not name:
            return False
        try:
            room = self.room_of(code)
        except RoomNotFound:
            return False
        with room.lock:
            if room.started or len(room.pending) >= room.max_players or room.has_player(name):
                return False
            room.pending.append(name)
        logger.info(f"[join] room={room.code} player={name} count={len(room.pending)}")
        return True

    def remove_pending_player(self, code: str, name: str) -> bool:
        try:
            room = self.room_of(code)
        except RoomNotFound:
            return False
        with room.lock:
            if room.started:
                return False
            lowered = (name or '').lower()
            before = len(room.pending)
            room.pending = [p for p in room.pending if p.lower() != lowered]
            return len(room.pending) != before

    def list_players(self, code: str) -> List[str]:
        try:
            room = self.room_of(code)
        except RoomNotFound:
            return []
        return list(room.pending)

    def is_joinable(self, code: str) -> bool:
        try:
            room = self.room_of(code)
        except RoomNotFound:
            return False
        return not room.started and len(room.pending) < room.max_players

    # ---- games ----

    def start_game(self, code: str, settings: GameSettings, catalog: Sequence[CardDefinition],
                   rng: Optional[random.Random] = None) -> GameState:
        """Freeze the roster into a new GameState.

        Takes the room lock itself; use start_game_locked when already holding it.
        """
        with self.room_lock(code) as room:
            return self.start_game_locked(room, settings, catalog, rng)

    def start_game_locked(self, room: Room, settings: GameSettings, catalog: Sequence[CardDefinition],
                          rng: Optional[random.Random] = None) -> GameState:
        if room.started:
            raise GameAlreadyActive(room.code)
        room.state = initialize_game(room.code, list(room.pending), settings, catalog, rng)
        return room.state

    def get_game_state(self, code: str) -> Optional[GameState]:
        try:
            return self.room_of(code).state
        except RoomNotFound:
            return None

    # ---- connections ----

    def bind_connection(self, sid: str, code: str, name: str) -> None:
        with self._lock:
            self._connections[sid] = (normalize_code(code), name)

    def unbind_connection(self, sid: str) -> Optional[Tuple[str, str]]:
        with self._lock:
            return self._connections.pop(sid, None)

    def connection_of(self, sid: str) -> Optional[Tuple[str, str]]:
        with self._lock:
            return self._connections.get(sid)

    def connections_for(self, code: str) -> Dict[str, str]:
        code = normalize_code(code)
        with self._lock:
            return {sid: name for sid, (c, name) in self._connections.items() if c == code}
