"""Helpers for bracket slots and match addressing."""

from __future__ import annotations

import enum
import math
from typing import TYPE_CHECKING, Any, Optional

from esportshub.core.constants import BYE, MATCH_SCHEDULED, SLOT_A, SLOT_B, TBD

if TYPE_CHECKING:
    from .models import Slot


class SlotState(enum.Enum):
    """What a match slot currently holds."""

    PARTICIPANT = "participant"
    BYE = "bye"
    TBD = "tbd"
    EMPTY = "empty"


def bye_slot() -> Slot:
    """Return the slot for a missing opponent."""
    return {"id": BYE, "name": BYE, "logo": ""}


def tbd_slot() -> Slot:
    """Return the slot awaiting a lower round's winner."""
    return {"id": TBD, "name": TBD, "logo": ""}


def slot_state(slot: Optional[dict[str, Any]]) -> SlotState:
    """Classify a slot stored on a match document."""
    if not slot or not slot.get("id"):
        return SlotState.EMPTY
    if slot["id"] == BYE:
        return SlotState.BYE
    if slot["id"] == TBD:
        return SlotState.TBD
    return SlotState.PARTICIPANT


def is_playable(match: dict[str, Any]) -> bool:
    """Whether a match is scheduled and both of its sides are known."""
    return (
        match.get("status") == MATCH_SCHEDULED
        and slot_state(match.get("teamA")) is SlotState.PARTICIPANT
        and slot_state(match.get("teamB")) is SlotState.PARTICIPANT
    )


def match_document_id(tournament_id: str, round_number: int, match_number: int) -> str:
    """Deterministic match id; ``(round, matchNumber)`` is unique per tournament."""
    return f"{tournament_id}_r{round_number}_m{match_number}"


def next_match_number(match_number: int) -> int:
    """Position in the next round that this match's winner moves into."""
    return math.ceil(match_number / 2)


def next_slot(match_number: int) -> str:
    """Odd-numbered matches feed side A, even-numbered feed side B."""
    return SLOT_A if match_number % 2 == 1 else SLOT_B


def get_round_name(round_number: int, total_rounds: int) -> str:
    """Get the display name of a round."""
    teams_in_round = 2 ** (total_rounds - round_number + 1)
    if teams_in_round == 2:
        return "Final"
    elif teams_in_round == 4:
        return "Semifinal"
    elif teams_in_round == 8:
        return "Quarterfinal"
    else:
        return f"Round of {teams_in_round}"
