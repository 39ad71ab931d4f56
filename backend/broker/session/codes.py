"""Room id and invite code generation."""

import secrets
import string

CODE_ALPHABET = string.ascii_uppercase + string.digits
ROOM_ID_LENGTH = 6
INVITE_CODE_LENGTH = 4


def generate_code(length: int) -> str:
    """Return a random uppercase alphanumeric code of the given length."""
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def generate_room_id(length: int = ROOM_ID_LENGTH) -> str:
    return generate_code(length)


def generate_invite_code(length: int = INVITE_CODE_LENGTH) -> str:
    return generate_code(length)


def format_invite_link(room_id: str, invite_code: str) -> str:
    """Combine a room id and its invite code into one shareable token."""
    return f"{room_id}:{invite_code}"
