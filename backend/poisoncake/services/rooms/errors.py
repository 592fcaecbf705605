"""Rejections raised by the room store and the rules engine.

``RoomError`` subclasses are shown to the requesting connection as a
``roomError`` message. ``IgnoredIntent`` subclasses mark stale or duplicate
client actions; the coordinator drops them without answering.
"""


class RoomError(Exception):
    message = 'Room error'

    def __init__(self, message=None):
        super().__init__(message or self.message)
        self.message = message or self.message


class RoomNotFound(RoomError):
    message = 'Room does not exist!'


class RoomFull(RoomError):
    message = 'Room is full!'


class MatchAlreadyStarted(RoomError):
    message = 'The game has already started, you cannot join!'


class InvalidConfiguration(RoomError):
    message = 'Invalid game settings.'


class InsufficientPlayers(RoomError):
    message = 'At least 2 players are needed to start the game.'


class AlreadyInRoom(RoomError):
    message = 'You are already in a room.'


class InvalidRequest(RoomError):
    message = 'Invalid request.'


class IgnoredIntent(Exception):
    pass


class NotYourTurn(IgnoredIntent):
    pass


class WrongPhase(IgnoredIntent):
    pass


class InvalidCake(IgnoredIntent):
    pass


class CakeAlreadyEaten(IgnoredIntent):
    pass


class RollPending(IgnoredIntent):
    pass
