from enum import StrEnum


class SessionErrorCode(StrEnum):
    ROOM_NOT_FOUND = "room_not_found"
    ROOM_FULL = "room_full"
    INVALID_INVITE_CODE = "invalid_invite_code"
    ALREADY_IN_ROOM = "already_in_room"
    SERVER_AT_CAPACITY = "server_at_capacity"
    ROOM_ID_EXHAUSTED = "room_id_exhausted"
