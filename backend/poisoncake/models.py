from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Set
import random
import string
import time

ROOM_CODE_ALPHABET = string.ascii_uppercase + string.digits


class GameState(str, Enum):
    LOBBY = 'LOBBY'
    SETUP_POISON = 'SETUP_POISON'
    ROLL_DICE = 'ROLL_DICE'
    TURN_BASED = 'TURN_BASED'
    GAME_OVER = 'GAME_OVER'


@dataclass
class Player:
    identity: str
    name: str
    is_host: bool = False
    is_active: bool = True
    poison: Optional[int] = None
    last_roll: int = 0

    def reset(self) -> None:
        self.poison = None
        self.last_roll = 0
        self.is_active = True

    def to_dict(self, reveal_poison: bool = True):
        return {
            'id': self.identity,
            'name': self.name,
            'isHost': self.is_host,
            'isActive': self.is_active,
            'poison': self.poison if reveal_poison else None,
            'diceRoll': self.last_roll,
        }


def generate_room_code(is_taken: Callable[[str], bool], length: int = 6, rng=random) -> str:
    """Generate a short room code that no live room is using."""
    while True:
        code = ''.join(rng.choices(ROOM_CODE_ALPHABET, k=length))
        if not is_taken(code):
            return code


@dataclass
class Room:
    code: str
    players: List[Player] = field(default_factory=list)
    grid_size: int = 5
    state: GameState = GameState.LOBBY
    current_player_index: int = 0
    eaten_cakes: Set[int] = field(default_factory=set)
    winners: List[str] = field(default_factory=list)
    # identity of the player whose dice reveal is still pending
    pending_roll: Optional[str] = None
    created_at: float = field(default_factory=time.time)

    @property
    def cell_count(self) -> int:
        return self.grid_size * self.grid_size

    @property
    def host(self) -> Optional[Player]:
        return next((p for p in self.players if p.is_host), None)

    @property
    def current_player(self) -> Optional[Player]:
        if 0 <= self.current_player_index < len(self.players):
            return self.players[self.current_player_index]
        return None

    def find_player(self, identity: str) -> Optional[Player]:
        return next((p for p in self.players if p.identity == identity), None)

    def index_of(self, identity: str) -> Optional[int]:
        for idx, p in enumerate(self.players):
            if p.identity == identity:
                return idx
        return None

    def active_players(self) -> List[Player]:
        return [p for p in self.players if p.is_active]

    def is_empty(self) -> bool:
        return not self.players

    def player_names(self, players=None) -> List[str]:
        return [p.name for p in (self.players if players is None else players)]

    def to_dict(self, viewer: Optional[str] = None):
        """Serialize the room as seen by ``viewer``.

        Poisons stay hidden from everyone but their owner until the match is
        over; a snapshot without a viewer hides them all.
        """
        game_over = self.state == GameState.GAME_OVER
        return {
            'id': self.code,
            'players': [
                p.to_dict(reveal_poison=game_over or p.identity == viewer)
                for p in self.players
            ],
            'gridSize': self.grid_size,
            'gameState': self.state.value,
            'currentPlayerIndex': self.current_player_index,
            'eatenCakes': sorted(self.eaten_cakes),
            'winners': list(self.winners),
        }

    def players_dict(self, viewer: Optional[str] = None):
        return self.to_dict(viewer)['players']
