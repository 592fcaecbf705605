import random
from dataclasses import dataclass, field
from typing import List, Optional

from poisoncake.models import GameState, Player, Room
from .errors import (
    CakeAlreadyEaten,
    InsufficientPlayers,
    InvalidCake,
    InvalidConfiguration,
    NotYourTurn,
    RollPending,
    WrongPhase,
)

MIN_PLAYERS = 2
MAX_PLAYERS = 3
MIN_GRID_SIZE = 3
MAX_GRID_SIZE = 10

SAFE = 'safe'
ELIMINATED = 'eliminated'
GAME_OVER = 'game_over'


@dataclass
class EatResult:
    outcome: str
    cake_id: int
    eater: Player
    next_player: Optional[Player] = None
    winners: List[Player] = field(default_factory=list)
    message: str = ''

    @property
    def is_over(self) -> bool:
        return self.outcome == GAME_OVER


def _join_names(players) -> str:
    return ' and '.join(p.name for p in players)


def _require_state(room: Room, state: GameState) -> None:
    if room.state != state:
        raise WrongPhase(f"room {room.code} is {room.state.value}, expected {state.value}")


def _require_turn(room: Room, identity: str) -> Player:
    player = room.current_player
    if player is None or player.identity != identity:
        raise NotYourTurn(f"{identity} is not the current player in room {room.code}")
    return player


def _require_cell(room: Room, cell) -> int:
    # bool is an int subclass; a client sending true/false is not naming a cell
    if isinstance(cell, bool) or not isinstance(cell, int):
        raise InvalidCake(f"cake id {cell!r} is not an integer")
    if not 0 <= cell < room.cell_count:
        raise InvalidCake(f"cake id {cell} outside board of {room.cell_count}")
    return cell


def validate_grid_size(grid_size, min_size: int = MIN_GRID_SIZE, max_size: int = MAX_GRID_SIZE) -> int:
    if isinstance(grid_size, bool) or not isinstance(grid_size, int):
        raise InvalidConfiguration(f'Board size must be a whole number between {min_size} and {max_size}.')
    if not min_size <= grid_size <= max_size:
        raise InvalidConfiguration(f'Board size must be between {min_size}x{min_size} and {max_size}x{max_size}!')
    return grid_size


def next_active_index(room: Room, start: int) -> Optional[int]:
    """Index of the next active player after ``start``, wrapping around.

    ``start`` itself is the last seat checked. Returns None when nobody is
    active.
    """
    count = len(room.players)
    for step in range(1, count + 1):
        idx = (start + step) % count
        if room.players[idx].is_active:
            return idx
    return None


def start_match(room: Room, grid_size, min_players: int = MIN_PLAYERS, max_players: int = MAX_PLAYERS,
                min_grid_size: int = MIN_GRID_SIZE, max_grid_size: int = MAX_GRID_SIZE) -> None:
    _require_state(room, GameState.LOBBY)
    if len(room.players) < min_players:
        raise InsufficientPlayers(f'At least {min_players} players are needed to start the game.')
    if len(room.players) > max_players:
        raise InvalidConfiguration(f'At most {max_players} players can play.')
    room.grid_size = validate_grid_size(grid_size, min_grid_size, max_grid_size)
    room.eaten_cakes = set()
    room.winners = []
    room.pending_roll = None
    room.state = GameState.SETUP_POISON
    room.current_player_index = 0


def choose_poison(room: Room, identity: str, cell) -> GameState:
    _require_state(room, GameState.SETUP_POISON)
    player = _require_turn(room, identity)
    # Several players may hide poison under the same cake.
    player.poison = _require_cell(room, cell)
    room.current_player_index += 1
    if room.current_player_index >= len(room.players):
        room.state = GameState.ROLL_DICE
        room.current_player_index = 0
    return room.state


def roll_dice(room: Room, identity: str, rng=random) -> int:
    """Record a roll for the current player and mark the reveal pending.

    The turn does not move until :func:`finish_roll` runs.
    """
    _require_state(room, GameState.ROLL_DICE)
    if room.pending_roll is not None:
        raise RollPending(f"room {room.code} is still revealing a roll by {room.pending_roll}")
    player = _require_turn(room, identity)
    player.last_roll = rng.randint(1, 6)
    room.pending_roll = player.identity
    return player.last_roll


def finish_roll(room: Room) -> GameState:
    if room.pending_roll is None:
        raise WrongPhase(f"room {room.code} has no pending roll")
    roller = room.pending_roll
    room.pending_roll = None
    if room.state != GameState.ROLL_DICE:
        return room.state

    seat = room.index_of(roller)
    if seat is not None:
        room.current_player_index = seat + 1
    else:
        # The roller left and the index was shifted or clamped under us.
        # Rolls go in seat order, so the next roller is the first seat without one.
        waiting = [i for i, p in enumerate(room.players) if p.last_roll == 0]
        room.current_player_index = waiting[0] if waiting else len(room.players)
    if room.current_player_index >= len(room.players):
        # list.sort is stable: equal rolls keep their seating order
        room.players.sort(key=lambda p: p.last_roll, reverse=True)
        room.current_player_index = 0
        room.state = GameState.TURN_BASED
    return room.state


def _end(room: Room, result: EatResult) -> EatResult:
    room.state = GameState.GAME_OVER
    room.winners = [p.identity for p in result.winners]
    return result


def eat_cake(room: Room, identity: str, cell) -> EatResult:
    _require_state(room, GameState.TURN_BASED)
    eater = _require_turn(room, identity)
    cake_id = _require_cell(room, cell)
    if cake_id in room.eaten_cakes:
        raise CakeAlreadyEaten(f"cake {cake_id} in room {room.code} is already eaten")
    room.eaten_cakes.add(cake_id)

    owners = [p for p in room.players if p.poison == cake_id]

    if not owners:
        nxt = next_active_index(room, room.current_player_index)
        if nxt is None:
            return _end(room, EatResult(GAME_OVER, cake_id, eater, message='No players left standing! It\'s a draw!'))
        room.current_player_index = nxt
        return EatResult(SAFE, cake_id, eater, next_player=room.players[nxt])

    if not any(p is eater for p in owners):
        names = _join_names(owners)
        return _end(room, EatResult(
            GAME_OVER, cake_id, eater, winners=owners,
            message=f"{eater.name} ate {names}'s poison! Congratulations {names}, you win!",
        ))

    eater.is_active = False
    others = [p for p in owners if p is not eater]
    if others:
        names = _join_names(others)
        return _end(room, EatResult(
            GAME_OVER, cake_id, eater, winners=others,
            message=(f"{eater.name} ate their own poison and is out, but {names} hid poison here too! "
                     f"Congratulations {names}, you win!"),
        ))

    remaining = room.active_players()
    if len(remaining) == 1:
        return _end(room, EatResult(
            GAME_OVER, cake_id, eater, winners=remaining,
            message=f"{eater.name} ate their own poison and is out! The last survivor is {remaining[0].name}!",
        ))
    if len(remaining) > 1:
        room.current_player_index = next_active_index(room, room.current_player_index)
        return EatResult(ELIMINATED, cake_id, eater, next_player=room.current_player)
    return _end(room, EatResult(GAME_OVER, cake_id, eater, message='Everyone is out! It\'s a draw!'))


def return_to_lobby(room: Room) -> None:
    if room.state not in (GameState.TURN_BASED, GameState.GAME_OVER):
        raise WrongPhase(f"room {room.code} cannot return to lobby from {room.state.value}")
    room.state = GameState.LOBBY
    room.current_player_index = 0
    room.eaten_cakes = set()
    room.winners = []
    room.pending_roll = None
    for p in room.players:
        p.reset()
