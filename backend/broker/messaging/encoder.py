"""
JSON encoder/decoder for wire format communication.

Messages travel as WebSocket text frames, one JSON object per frame.
"""

import json
from typing import Any


class DecodeError(Exception):
    """Error raised when an inbound frame cannot be decoded."""


# Size limit to prevent resource exhaustion from oversized frames.
MAX_MESSAGE_BYTES = 4096


def encode(data: dict[str, Any]) -> str:
    """
    Encode a dict to a compact JSON string.

    Integer dict keys (slot numbers in round results) become strings.
    """
    return json.dumps(data, separators=(",", ":"))


def decode(raw: str) -> dict[str, Any]:
    """
    Decode a JSON text frame to a dict.

    Raises DecodeError if the frame is too large, is not valid JSON,
    or does not hold a JSON object.
    """
    byte_len = len(raw.encode("utf-8"))
    if byte_len > MAX_MESSAGE_BYTES:
        raise DecodeError(f"payload too large: {byte_len} bytes (max {MAX_MESSAGE_BYTES})")
    try:
        result = json.loads(raw)
    except (json.JSONDecodeError, ValueError) as e:
        raise DecodeError(f"failed to decode JSON data: {e}") from e

    if not isinstance(result, dict):
        raise DecodeError(f"expected object, got {type(result).__name__}")

    return result
