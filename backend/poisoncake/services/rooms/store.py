import random
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional, Set

from poisoncake.models import GameState, Player, Room, generate_room_code
from .errors import AlreadyInRoom, MatchAlreadyStarted, RoomFull, RoomNotFound
from .rules import MAX_PLAYERS, next_active_index


@dataclass
class Departure:
    """What removing a connection did to its room."""
    room: Room
    player: Player
    destroyed: bool = False
    new_host: Optional[Player] = None


class RoomStore:
    """In-memory rooms keyed by code, plus the identity -> room index.

    Callers hold ``lock`` for the whole of any read-modify-write on a room.
    """

    def __init__(self, code_length: int = 6, max_players: int = MAX_PLAYERS, rng=None):
        self.code_length = code_length
        self.max_players = max_players
        self.lock = threading.RLock()
        self._rng = rng or random.Random()
        self._rooms: Dict[str, Room] = {}
        self._membership: Dict[str, str] = {}
        self._connected: Set[str] = set()

    def __len__(self) -> int:
        return len(self._rooms)

    def __contains__(self, code) -> bool:
        return code in self._rooms

    def get(self, code: Optional[str]) -> Optional[Room]:
        if not code:
            return None
        return self._rooms.get(code.strip().upper())

    def rooms(self) -> List[Room]:
        return list(self._rooms.values())

    def add_connection(self, identity: str) -> None:
        with self.lock:
            self._connected.add(identity)

    def drop_connection(self, identity: str) -> None:
        with self.lock:
            self._connected.discard(identity)

    def connection_count(self) -> int:
        """Live connections, seated or not."""
        return len(self._connected)

    def seated_count(self) -> int:
        return len(self._membership)

    def find_room_by_identity(self, identity: str) -> Optional[Room]:
        code = self._membership.get(identity)
        return self._rooms.get(code) if code else None

    def create_room(self, identity: str, name: str) -> Room:
        with self.lock:
            if identity in self._membership:
                raise AlreadyInRoom()
            code = generate_room_code(lambda c: c in self._rooms, self.code_length, self._rng)
            room = Room(code=code)
            room.players.append(Player(identity=identity, name=name, is_host=True))
            self._rooms[code] = room
            self._membership[identity] = code
            return room

    def join_room(self, code: Optional[str], identity: str, name: str) -> Room:
        with self.lock:
            room = self.get(code)
            if room is None:
                raise RoomNotFound()
            if room.state != GameState.LOBBY:
                raise MatchAlreadyStarted()
            if len(room.players) >= self.max_players:
                raise RoomFull()
            if identity in self._membership:
                raise AlreadyInRoom()
            room.players.append(Player(identity=identity, name=name))
            self._membership[identity] = room.code
            return room

    def destroy(self, code: str) -> Optional[Room]:
        with self.lock:
            room = self._rooms.pop(code, None)
            if room is None:
                return None
            for p in room.players:
                self._membership.pop(p.identity, None)
            # invalidates any reveal still scheduled for this room
            room.pending_roll = None
            return room

    def remove_connection(self, identity: str) -> Optional[Departure]:
        with self.lock:
            code = self._membership.pop(identity, None)
            room = self._rooms.get(code) if code else None
            if room is None:
                return None
            idx = room.index_of(identity)
            if idx is None:
                return None
            player = room.players.pop(idx)

            if room.is_empty():
                self.destroy(room.code)
                return Departure(room, player, destroyed=True)

            departure = Departure(room, player)
            if room.host is None:
                room.players[0].is_host = True
                departure.new_host = room.players[0]

            if room.state != GameState.LOBBY:
                # Keeps the index valid, not necessarily fair.
                if room.current_player_index >= len(room.players):
                    room.current_player_index = 0
                if room.state == GameState.TURN_BASED and not room.players[room.current_player_index].is_active:
                    nxt = next_active_index(room, room.current_player_index)
                    if nxt is not None:
                        room.current_player_index = nxt
            return departure
