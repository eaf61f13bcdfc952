# intercom/domain/common/errors.py
from __future__ import annotations


class IntercomError(Exception):
    """
    Recoverable, caller-local failure.
    The dispatcher turns it into an `error` reply to the offending connection;
    nothing is broadcast and the socket stays open.
    """
    code = "ERROR"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)
        self.message = message or self.code


class DuplicateSession(IntercomError):
    code = "DUPLICATE_SESSION"


class AlreadyJoined(IntercomError):
    code = "ALREADY_JOINED"


class NotJoined(IntercomError):
    code = "NOT_JOINED"


class NotAuthorized(IntercomError):
    code = "NOT_AUTHORIZED"


class AlreadyActive(IntercomError):
    code = "ALREADY_ACTIVE"


class NoActivePoll(IntercomError):
    code = "NO_ACTIVE_POLL"


class NoActiveGame(IntercomError):
    code = "NO_ACTIVE_GAME"


class InvalidOption(IntercomError):
    code = "INVALID_OPTION"


class RoomNotFound(IntercomError):
    code = "ROOM_NOT_FOUND"


class MalformedFrame(IntercomError):
    code = "MALFORMED_FRAME"
