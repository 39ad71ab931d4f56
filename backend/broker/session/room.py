"""Room model for a two-player match."""

from dataclasses import dataclass, field
from enum import StrEnum

from pydantic import JsonValue

from broker.logic.exceptions import RoomFullError, RoundNotReadyError
from broker.logic.outcome import Outcome, decide_outcome
from broker.session.types import RoomInfo

TOTAL_SLOTS = 2


class RoomStatus(StrEnum):
    WAITING = "waiting"
    ACTIVE = "active"


@dataclass(frozen=True)
class RoundResult:
    """A resolved round: the move each slot played and the outcome."""

    choices: dict[int, JsonValue]
    outcome: Outcome


@dataclass
class Room:
    """Isolated two-player match context.

    Uses a fixed two-element slot array indexed by slot number (1 and 2),
    so a player's slot never shifts when the opponent leaves. A later
    joiner takes whichever slot is free.
    """

    room_id: str
    invite_code: str
    name: str = ""
    slots: list[str | None] = field(default_factory=lambda: [None] * TOTAL_SLOTS)
    pending_choices: dict[int, JsonValue] = field(default_factory=dict)  # slot -> move
    status: RoomStatus = RoomStatus.WAITING

    def __post_init__(self) -> None:
        if not self.name:
            self.name = f"Room {self.room_id}"

    @property
    def player_count(self) -> int:
        return sum(1 for conn_id in self.slots if conn_id is not None)

    @property
    def is_full(self) -> bool:
        return None not in self.slots

    @property
    def is_empty(self) -> bool:
        return self.player_count == 0

    @property
    def occupants(self) -> dict[int, str]:
        """Occupied slots in slot order: slot -> connection_id."""
        return {slot: conn_id for slot, conn_id in enumerate(self.slots, start=1) if conn_id is not None}

    def slot_of(self, connection_id: str) -> int | None:
        """Return the slot number for a connection, or None if not seated."""
        for slot, conn_id in self.occupants.items():
            if conn_id == connection_id:
                return slot
        return None

    def join(self, connection_id: str) -> int:
        """Seat a connection in the first free slot and return its slot number."""
        for index, conn_id in enumerate(self.slots):
            if conn_id is None:
                self.slots[index] = connection_id
                if self.is_full:
                    self.status = RoomStatus.ACTIVE
                return index + 1
        raise RoomFullError

    def leave(self, connection_id: str) -> int:
        """Free the connection's slot, discarding its pending move.

        Returns the remaining occupancy so the caller can decide whether
        to destroy the room.
        """
        slot = self.slot_of(connection_id)
        if slot is not None:
            self.slots[slot - 1] = None
            self.pending_choices.pop(slot, None)
        if not self.is_full:
            self.status = RoomStatus.WAITING
        return self.player_count

    def submit_choice(self, slot: int, move: JsonValue) -> bool:
        """Record a move for a slot, replacing any earlier pending move.

        Returns True when the round is complete: both slots are occupied
        and each has a pending move.
        """
        self.pending_choices[slot] = move
        return self.is_full and all(s in self.pending_choices for s in self.occupants)

    def resolve(self) -> RoundResult:
        """Decide the round and clear pending moves in one step."""
        if not (self.is_full and len(self.pending_choices) == TOTAL_SLOTS):
            raise RoundNotReadyError(f"room {self.room_id} has no complete round to resolve")
        choices, self.pending_choices = self.pending_choices, {}
        return RoundResult(
            choices={1: choices[1], 2: choices[2]},
            outcome=decide_outcome(choices[1], choices[2]),
        )

    def to_info(self) -> RoomInfo:
        return RoomInfo(id=self.room_id, name=self.name, player_count=self.player_count)
