from poisoncake import create_app, socketio
from poisoncake.services.rooms.scheduler import start_status_heartbeat

app = create_app()

if __name__ == '__main__':
    start_status_heartbeat(app, socketio, app.extensions['poisoncake'].store)
    # Use SocketIO server to enable websockets
    socketio.run(app, host=app.config['HOST'], port=app.config['PORT'], allow_unsafe_werkzeug=True)
