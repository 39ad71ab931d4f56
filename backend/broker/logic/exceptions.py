"""Typed domain exceptions for room admission and round handling.

Session errors carry the error code and client-facing message that the
broker reports back to the requesting connection. They never mutate shared
state: every check runs before the first write.
"""

from typing import ClassVar

from broker.logic.enums import SessionErrorCode


class BrokerError(Exception):
    """Base exception for broker rule violations."""


class SessionError(BrokerError):
    """Recoverable request error reported only to the requesting connection."""

    code: ClassVar[SessionErrorCode]
    message: str = "Invalid request"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class RoomNotFoundError(SessionError):
    code = SessionErrorCode.ROOM_NOT_FOUND
    message = "Room not found"


class RoomFullError(SessionError):
    code = SessionErrorCode.ROOM_FULL
    message = "Room is full"


class InvalidInviteCodeError(SessionError):
    code = SessionErrorCode.INVALID_INVITE_CODE
    message = "Invalid invite code"


class AlreadyInRoomError(SessionError):
    code = SessionErrorCode.ALREADY_IN_ROOM
    message = "You must leave your current room first"


class ServerAtCapacityError(SessionError):
    code = SessionErrorCode.SERVER_AT_CAPACITY
    message = "Server at capacity"


class RoomIdExhaustedError(SessionError):
    code = SessionErrorCode.ROOM_ID_EXHAUSTED
    message = "Could not allocate a room id"


class RoundNotReadyError(BrokerError):
    """Raised when a round is resolved before both slots have submitted a move."""
