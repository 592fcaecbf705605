from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from config import Config

socketio = SocketIO(async_mode=None)


def _origins(flask_app):
    origins = flask_app.config.get('CORS_ORIGINS') or ['*']
    return '*' if '*' in origins else origins


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = _origins(flask_app)
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Room state lives on the app, not in module globals
    from poisoncake.services.rooms.coordinator import RoomCoordinator
    from poisoncake.services.rooms.gateway import BroadcastGateway
    from poisoncake.services.rooms.scheduler import RevealScheduler
    from poisoncake.services.rooms.store import RoomStore

    namespace = flask_app.config.get('SOCKETIO_NAMESPACE', '/')
    store = RoomStore(
        code_length=int(flask_app.config.get('ROOM_CODE_LENGTH', 6)),
        max_players=int(flask_app.config.get('MAX_PLAYERS', 3)),
    )
    gateway = BroadcastGateway(socketio, namespace=namespace)
    scheduler = RevealScheduler(flask_app, socketio, store, gateway)
    flask_app.extensions['poisoncake'] = RoomCoordinator(
        store, gateway, scheduler, flask_app.config, flask_app.logger,
    )

    from poisoncake.main import main
    flask_app.register_blueprint(main)

    from poisoncake.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api/rooms')

    from poisoncake.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace=namespace)

    @click.command('play-local')
    @click.option('--name', prompt='Your name', help='Name of the first seat.')
    @click.option('--players', default=2, show_default=True, type=int, help='Number of seats (2 or 3).')
    @click.option('--grid-size', default=5, show_default=True, type=int, help='Board edge length (3-10).')
    def play_local_command(name, players, grid_size):
        """Play a single-device match in the terminal."""
        from poisoncake.cli import play_local
        play_local(name, players, grid_size)

    flask_app.cli.add_command(play_local_command)

    return flask_app
