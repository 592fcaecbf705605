import itertools
from typing import Dict

from .errors import IgnoredIntent
from .rules import finish_roll


_tokens = itertools.count(1)


class RevealScheduler:
    """Runs the deferred turn advance that follows a dice roll.

    At most one reveal is live per room. A scheduled reveal dies quietly if its
    room was destroyed, sent back to the lobby, or rescheduled in the
    meantime, and fires at most once.
    """

    def __init__(self, app, socketio, store, gateway):
        self.app = app
        self.socketio = socketio
        self.store = store
        self.gateway = gateway
        self._scheduled: Dict[str, int] = {}

    def schedule(self, code: str, roller: str) -> None:
        delay = float(self.app.config.get('DICE_REVEAL_DELAY_SEC', 1.5))
        token = next(_tokens)
        with self.store.lock:
            self._scheduled[code] = token
        self.app.logger.info(f"[reveal-set] room={code} roller={roller} delay={delay}s token={token}")

        if self.app.config.get('TESTING'):
            self._fire(code, roller, token)
        else:
            self.socketio.start_background_task(self._worker, code, roller, token, delay)

    def cancel(self, code: str) -> None:
        with self.store.lock:
            if self._scheduled.pop(code, None) is not None:
                self.app.logger.info(f"[reveal-cancel] room={code}")

    def pending(self, code: str) -> bool:
        return code in self._scheduled

    def _worker(self, code: str, roller: str, token: int, delay: float) -> None:
        self.socketio.sleep(delay)
        self._fire(code, roller, token)

    def _fire(self, code: str, roller: str, token: int) -> None:
        with self.store.lock:
            if self._scheduled.get(code) != token:
                self.app.logger.info(f"[reveal-abort] room={code} token={token} superseded or cancelled")
                return
            del self._scheduled[code]

            room = self.store.get(code)
            if room is None or room.pending_roll != roller:
                self.app.logger.info(f"[reveal-abort] room={code} token={token} room gone or reset")
                return
            try:
                state = finish_roll(room)
            except IgnoredIntent as exc:
                self.app.logger.info(f"[reveal-abort] room={code} token={token} {exc}")
                return
            self.app.logger.info(
                f"[reveal-fire] room={code} roller={roller} state={state.value} index={room.current_player_index}"
            )
            self.gateway.snapshot(room, 'gameStateUpdate')


def start_status_heartbeat(app, socketio, store) -> None:
    """Log the number of live rooms, connections and seated players at a fixed interval."""
    try:
        interval = int(app.config.get('STATUS_LOG_INTERVAL_SEC', 0))
    except (TypeError, ValueError):
        interval = 0
    if interval <= 0:
        return

    def _beat():
        while True:
            socketio.sleep(interval)
            with store.lock:
                rooms, connections, seated = len(store), store.connection_count(), store.seated_count()
            app.logger.info(f"[status] rooms={rooms} connections={connections} seated={seated}")

    socketio.start_background_task(_beat)
