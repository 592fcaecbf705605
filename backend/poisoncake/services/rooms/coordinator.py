import random
from typing import Any, Dict, Optional

from poisoncake.models import GameState
from . import rules
from .errors import IgnoredIntent, InvalidRequest, NotYourTurn, RoomError
from .store import Departure

MAX_NAME_LENGTH = 24


def _clean_name(data: Dict[str, Any]) -> str:
    name = data.get('playerName')
    name = name.strip() if isinstance(name, str) else ''
    if not name:
        raise InvalidRequest('Player name is required.')
    return name[:MAX_NAME_LENGTH]


class RoomCoordinator:
    """Turns client intents into rule calls and broadcasts.

    Every handler runs under the store lock and looks the caller's room and
    seat up again, so stale or replayed intents fail the turn check instead of
    acting on an old view.
    """

    def __init__(self, store, gateway, scheduler, config, logger, rng=None):
        self.store = store
        self.gateway = gateway
        self.scheduler = scheduler
        self.config = config
        self.logger = logger
        self.rng = rng or random.Random()

    # ---- helpers ----

    def _reject(self, sid: str, exc: RoomError) -> None:
        self.logger.info(f"[room-error] sid={sid} {type(exc).__name__}: {exc.message}")
        self.gateway.to_connection(sid, 'roomError', {'message': exc.message})

    def _ignore(self, sid: str, intent: str, exc: IgnoredIntent) -> None:
        self.logger.debug(f"[intent-ignored] sid={sid} intent={intent} {type(exc).__name__}: {exc}")

    def _payload(self, data) -> Dict[str, Any]:
        return data if isinstance(data, dict) else {}

    # ---- lobby ----

    def create_room(self, sid: str, data=None) -> None:
        data = self._payload(data)
        with self.store.lock:
            try:
                name = _clean_name(data)
                room = self.store.create_room(sid, name)
            except RoomError as exc:
                self._reject(sid, exc)
                return
            self.gateway.enter(sid, room.code)
            self.logger.info(f"[room-created] room={room.code} host={sid} name={name}")
            self.gateway.to_connection(sid, 'roomCreated', {'roomId': room.code, 'players': room.players_dict(sid)})

    def join_room(self, sid: str, data=None) -> None:
        data = self._payload(data)
        code = data.get('roomId')
        code = code.strip().upper() if isinstance(code, str) else None
        with self.store.lock:
            try:
                name = _clean_name(data)
                room = self.store.join_room(code, sid, name)
            except RoomError as exc:
                self._reject(sid, exc)
                return
            self.gateway.enter(sid, room.code)
            self.logger.info(f"[room-joined] room={room.code} sid={sid} name={name} players={len(room.players)}")
            self.gateway.to_connection(sid, 'joinSuccess', {'roomId': room.code, 'players': room.players_dict(sid)})
            self.gateway.to_room(room.code, 'playerListUpdate', {'players': room.players_dict()}, skip_sid=sid)

    def leave_room(self, sid: str, data=None) -> None:
        with self.store.lock:
            room = self.store.find_room_by_identity(sid)
            if room is None:
                return
            code = room.code
            departure = self.store.remove_connection(sid)
            self.gateway.leave(sid, code)
            self.gateway.to_connection(sid, 'leftRoom', {'roomId': code})
            self._after_departure(departure)

    def connect(self, sid: str) -> None:
        self.store.add_connection(sid)

    def disconnect(self, sid: str) -> None:
        with self.store.lock:
            self.store.drop_connection(sid)
            departure = self.store.remove_connection(sid)
            if departure is None:
                return
            self._after_departure(departure)

    def _after_departure(self, departure: Optional[Departure]) -> None:
        if departure is None:
            return
        room = departure.room
        if departure.destroyed:
            self.scheduler.cancel(room.code)
            self.logger.info(f"[room-closed] room={room.code}")
            return
        self.logger.info(
            f"[player-left] room={room.code} name={departure.player.name} players={len(room.players)} "
            f"state={room.state.value} index={room.current_player_index}"
        )
        if departure.new_host is not None:
            self.logger.info(f"[host-promoted] room={room.code} name={departure.new_host.name}")
        if room.state != GameState.LOBBY:
            self.gateway.snapshot(room, 'gameStateUpdate')
        self.gateway.to_room(room.code, 'playerListUpdate', {
            'players': room.players_dict(),
            'disconnectedPlayer': departure.player.name,
        })

    # ---- match ----

    def start_game(self, sid: str, data=None) -> None:
        data = self._payload(data)
        cfg = self.config
        with self.store.lock:
            room = self.store.find_room_by_identity(sid)
            if room is None:
                return
            player = room.find_player(sid)
            if not player.is_host:
                self._ignore(sid, 'startGame', NotYourTurn(f"{sid} is not host of {room.code}"))
                return
            grid_size = data.get('gridSize', cfg.get('DEFAULT_GRID_SIZE', 5))
            try:
                rules.start_match(
                    room, grid_size,
                    min_players=cfg.get('MIN_PLAYERS', rules.MIN_PLAYERS),
                    max_players=cfg.get('MAX_PLAYERS', rules.MAX_PLAYERS),
                    min_grid_size=cfg.get('MIN_GRID_SIZE', rules.MIN_GRID_SIZE),
                    max_grid_size=cfg.get('MAX_GRID_SIZE', rules.MAX_GRID_SIZE),
                )
            except RoomError as exc:
                self._reject(sid, exc)
                return
            except IgnoredIntent as exc:
                self._ignore(sid, 'startGame', exc)
                return
            self.logger.info(f"[game-started] room={room.code} grid={room.grid_size} players={len(room.players)}")
            self.gateway.snapshot(room, 'gameStarted')

    def choose_poison(self, sid: str, data=None) -> None:
        data = self._payload(data)
        with self.store.lock:
            room = self.store.find_room_by_identity(sid)
            if room is None:
                return
            try:
                state = rules.choose_poison(room, sid, data.get('cakeId'))
            except IgnoredIntent as exc:
                self._ignore(sid, 'choosePoison', exc)
                return
            self.logger.info(f"[poison-chosen] room={room.code} sid={sid} state={state.value}")
            self.gateway.snapshot(room, 'gameStateUpdate')

    def roll_dice(self, sid: str, data=None) -> None:
        with self.store.lock:
            room = self.store.find_room_by_identity(sid)
            if room is None:
                return
            try:
                roll = rules.roll_dice(room, sid, self.rng)
            except IgnoredIntent as exc:
                self._ignore(sid, 'rollDice', exc)
                return
            player = room.find_player(sid)
            self.logger.info(f"[dice-rolled] room={room.code} name={player.name} roll={roll}")
            self.gateway.to_room(room.code, 'diceRolled', {'playerName': player.name, 'roll': roll})
            self.scheduler.schedule(room.code, sid)

    def eat_cake(self, sid: str, data=None) -> None:
        data = self._payload(data)
        with self.store.lock:
            room = self.store.find_room_by_identity(sid)
            if room is None:
                return
            try:
                result = rules.eat_cake(room, sid, data.get('cakeId'))
            except IgnoredIntent as exc:
                self._ignore(sid, 'eatCake', exc)
                return
            self.logger.info(
                f"[cake-eaten] room={room.code} name={result.eater.name} cake={result.cake_id} outcome={result.outcome}"
            )
            if result.outcome == rules.SAFE:
                self.gateway.to_room(room.code, 'cakeEaten', {
                    'cakeId': result.cake_id,
                    'nextPlayerName': result.next_player.name,
                })
            elif result.outcome == rules.ELIMINATED:
                self.gateway.to_room(room.code, 'playerEliminated', {
                    'playerName': result.eater.name,
                    'cakeId': result.cake_id,
                })
            else:
                self.logger.info(f"[game-over] room={room.code} winners={[p.name for p in result.winners]}")
                self.gateway.to_room(room.code, 'gameOver', {
                    'cakeId': result.cake_id,
                    'message': result.message,
                    'winners': room.player_names(result.winners),
                })
            self.gateway.snapshot(room, 'gameStateUpdate')

    def return_to_lobby(self, sid: str, data=None) -> None:
        with self.store.lock:
            room = self.store.find_room_by_identity(sid)
            if room is None:
                return
            try:
                rules.return_to_lobby(room)
            except IgnoredIntent as exc:
                self._ignore(sid, 'returnToLobby', exc)
                return
            self.scheduler.cancel(room.code)
            self.logger.info(f"[back-to-lobby] room={room.code}")
            self.gateway.snapshot(room, 'backToLobby')
