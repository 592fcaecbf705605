from flask import Blueprint, current_app, jsonify

rooms = Blueprint('rooms', __name__)


def _store():
    return current_app.extensions['poisoncake'].store


@rooms.route('', methods=['GET'])
def list_rooms():
    store = _store()
    with store.lock:
        payload = [
            {
                'roomId': room.code,
                'playerCount': len(room.players),
                'gameState': room.state.value,
            }
            for room in sorted(store.rooms(), key=lambda r: r.created_at)
        ]
    return jsonify(payload)


@rooms.route('/<string:room_code>/state', methods=['GET'])
def get_room_state(room_code):
    store = _store()
    with store.lock:
        room = store.get(room_code)
        if room is None:
            return jsonify({'error': 'Room not found'}), 404
        # No viewer: poisons stay hidden until the match is over
        return jsonify(room.to_dict())
