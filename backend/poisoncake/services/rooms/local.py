import random

from poisoncake.models import GameState, Player, Room
from . import rules
from .errors import InvalidConfiguration


class LocalMatch:
    """A single-device match: every seat plays from the same screen.

    The acting identity is always whoever holds the current seat, and dice
    reveals complete immediately.
    """

    def __init__(self, creator_name: str, player_count: int, grid_size: int, rng=None):
        if isinstance(player_count, bool) or not isinstance(player_count, int) \
                or not rules.MIN_PLAYERS <= player_count <= rules.MAX_PLAYERS:
            raise InvalidConfiguration(
                f'Player count must be {rules.MIN_PLAYERS} or {rules.MAX_PLAYERS}!'
            )
        self.rng = rng or random.Random()
        self.room = Room(code='LOCAL')
        self.room.players.append(Player(identity='local-1', name=creator_name, is_host=True))
        for seat in range(2, player_count + 1):
            self.room.players.append(Player(identity=f'local-{seat}', name=f'Player {seat}'))
        rules.start_match(self.room, grid_size)

    @property
    def state(self) -> GameState:
        return self.room.state

    @property
    def current_player(self) -> Player:
        return self.room.current_player

    def _seat(self) -> str:
        return self.room.current_player.identity

    def choose_poison(self, cell) -> GameState:
        return rules.choose_poison(self.room, self._seat(), cell)

    def roll_dice(self) -> int:
        roll = rules.roll_dice(self.room, self._seat(), self.rng)
        rules.finish_roll(self.room)
        return roll

    def eat_cake(self, cell) -> rules.EatResult:
        return rules.eat_cake(self.room, self._seat(), cell)

    def turn_order(self):
        return self.room.player_names(self.room.active_players())
