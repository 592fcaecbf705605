import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Comma separated list of origins allowed to open a socket
    CORS_ORIGINS = [o.strip() for o in os.environ.get('CORS_ORIGINS', '*').split(',') if o.strip()]
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    HOST = os.environ.get('HOST', '0.0.0.0')
    PORT = int(os.environ.get('PORT', '4000'))
    # Room codes are drawn from A-Z0-9
    ROOM_CODE_LENGTH = int(os.environ.get('ROOM_CODE_LENGTH', '6'))
    # Table limits
    MIN_PLAYERS = int(os.environ.get('MIN_PLAYERS', '2'))
    MAX_PLAYERS = int(os.environ.get('MAX_PLAYERS', '3'))
    MIN_GRID_SIZE = int(os.environ.get('MIN_GRID_SIZE', '3'))
    MAX_GRID_SIZE = int(os.environ.get('MAX_GRID_SIZE', '10'))
    DEFAULT_GRID_SIZE = int(os.environ.get('DEFAULT_GRID_SIZE', '5'))
    # Pause between a dice roll announcement and the turn advance (seconds)
    DICE_REVEAL_DELAY_SEC = float(os.environ.get('DICE_REVEAL_DELAY_SEC', '1.5'))
    # Online status log interval (sec). 0 disables.
    STATUS_LOG_INTERVAL_SEC = int(os.environ.get('STATUS_LOG_INTERVAL_SEC', '10'))
