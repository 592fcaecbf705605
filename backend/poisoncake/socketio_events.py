from flask import current_app, request
from poisoncake import socketio


def _coordinator():
    return current_app.extensions['poisoncake']


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def handle_connect():
    current_app.logger.info(f"[connect] sid={_get_sid()}")
    _coordinator().connect(_get_sid())


def handle_disconnect(reason=None):
    current_app.logger.info(f"[disconnect] sid={_get_sid()} reason={reason}")
    _coordinator().disconnect(_get_sid())


def handle_create_room(data=None):
    _coordinator().create_room(_get_sid(), data)


def handle_join_room(data=None):
    _coordinator().join_room(_get_sid(), data)


def handle_leave_room(data=None):
    _coordinator().leave_room(_get_sid(), data)


def handle_start_game(data=None):
    _coordinator().start_game(_get_sid(), data)


def handle_choose_poison(data=None):
    _coordinator().choose_poison(_get_sid(), data)


def handle_roll_dice(data=None):
    _coordinator().roll_dice(_get_sid(), data)


def handle_eat_cake(data=None):
    _coordinator().eat_cake(_get_sid(), data)


def handle_return_to_lobby(data=None):
    _coordinator().return_to_lobby(_get_sid(), data)


HANDLERS = {
    'connect': handle_connect,
    'disconnect': handle_disconnect,
    'createRoom': handle_create_room,
    'joinRoom': handle_join_room,
    'leaveRoom': handle_leave_room,
    'startGame': handle_start_game,
    'choosePoison': handle_choose_poison,
    'rollDice': handle_roll_dice,
    'eatCake': handle_eat_cake,
    'returnToLobby': handle_return_to_lobby,
}


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register every intent handler once, on the given namespace."""
    for event, handler in HANDLERS.items():
        socketio.on_event(event, handler, namespace=namespace)
