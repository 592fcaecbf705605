from typing import Optional

from flask_socketio import join_room, leave_room

from poisoncake.models import Room


def group_name(code: str) -> str:
    return f"room:{code}"


class BroadcastGateway:
    """Delivers coordinator events over Socket.IO.

    Uses the server-level ``socketio.emit`` so it works both inside an event
    handler and from a background task.
    """

    def __init__(self, socketio, namespace: str = '/'):
        self.socketio = socketio
        self.namespace = namespace

    def enter(self, sid: str, code: str) -> None:
        join_room(group_name(code), sid=sid, namespace=self.namespace)

    def leave(self, sid: str, code: str) -> None:
        leave_room(group_name(code), sid=sid, namespace=self.namespace)

    def to_connection(self, sid: str, event: str, payload) -> None:
        self.socketio.emit(event, payload, to=sid, namespace=self.namespace)

    def to_room(self, code: str, event: str, payload, skip_sid: Optional[str] = None) -> None:
        self.socketio.emit(event, payload, to=group_name(code), skip_sid=skip_sid, namespace=self.namespace)

    def snapshot(self, room: Room, event: str = 'gameStateUpdate') -> None:
        # One emit per member: each sees only its own poison.
        for p in room.players:
            self.to_connection(p.identity, event, room.to_dict(viewer=p.identity))
