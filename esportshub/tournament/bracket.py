"""
Single elimination bracket planning.

Everything here is pure: a list of participants goes in, a ``BracketPlan``
describing every match of every round comes out. Persisting the plan is the
job of ``BracketService``.
"""

from __future__ import annotations

import random
from collections import defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

from esportshub.core.constants import (
    MATCH_COMPLETED,
    MATCH_SCHEDULED,
    MATCH_TYPE_ELIMINATION,
    MIN_PARTICIPANTS,
    SLOT_A,
    SLOT_B,
    SYSTEM_USER,
)
from esportshub.errors import (
    InsufficientParticipantsError,
    InvalidTransitionError,
    ValidationError,
)
from esportshub.match.models import ResultSubmission
from esportshub.match.utils import (
    SlotState,
    bye_slot,
    match_document_id,
    next_match_number,
    next_slot,
    slot_state,
    tbd_slot,
)

if TYPE_CHECKING:
    from esportshub.match.models import MatchResultData, Slot

    from .participants import Participant


def calculate_bracket_size(num_participants: int) -> int:
    """Calculate the bracket size (next power of 2)."""
    if num_participants <= 0:
        return 0
    return 1 << (num_participants - 1).bit_length()


def calculate_byes(num_participants: int) -> int:
    """Calculate number of byes needed."""
    return calculate_bracket_size(num_participants) - num_participants


def calculate_total_rounds(bracket_size: int) -> int:
    """Number of rounds from the first round to the final."""
    return max(bracket_size.bit_length() - 1, 0)


def seed_participants(
    participants: list[Participant], rng: Optional[random.Random] = None
) -> list[Participant]:
    """Return a uniformly shuffled copy of the participants."""
    seeded = list(participants)
    (rng or random.Random()).shuffle(seeded)
    return seeded


def fill_slots(seeded: list[Participant], bracket_size: int) -> list[Slot]:
    """Lay participants out over ``bracket_size`` slots, padding with byes.

    Participants are paired in order. The leading pairings are full; each of
    the trailing ``byes`` pairings is one participant against a bye, so no
    pairing ever holds two byes.
    """
    byes = bracket_size - len(seeded)
    if byes < 0:
        raise ValueError("Bracket size is smaller than the number of participants.")

    full_pairings = bracket_size // 2 - byes
    slots: list[Slot] = [p.to_slot() for p in seeded[: full_pairings * 2]]
    for participant in seeded[full_pairings * 2 :]:
        slots.append(participant.to_slot())
        slots.append(bye_slot())
    return slots


@dataclass
class PlannedMatch:
    """A match position in the bracket before it is persisted."""

    round: int
    match_number: int
    team_a: Slot
    team_b: Slot
    is_final: bool = False
    status: str = MATCH_SCHEDULED
    result: Optional[MatchResultData] = None
    note: str = ""

    @property
    def next_match_number(self) -> Optional[int]:
        """Position of the next-round match fed by this one."""
        return None if self.is_final else next_match_number(self.match_number)

    @property
    def next_slot(self) -> Optional[str]:
        """Side of the next-round match the winner fills."""
        return None if self.is_final else next_slot(self.match_number)

    def set_slot(self, side: str, slot: Slot) -> None:
        """Fill one side of the match."""
        if side == SLOT_A:
            self.team_a = slot
        else:
            self.team_b = slot

    def winner_slot(self) -> Optional[Slot]:
        """The advancing participant, once the match is completed."""
        if self.result is None:
            return None
        return self.team_a if self.result["winner"] == SLOT_A else self.team_b


@dataclass
class BracketPlan:
    """Every match of a single elimination bracket."""

    participants: list[Participant]
    size: int
    byes: int
    total_rounds: int
    matches: list[PlannedMatch] = field(default_factory=list)

    def match(self, round_number: int, match_number: int) -> PlannedMatch:
        """Look up a match by its position."""
        for m in self.matches:
            if m.round == round_number and m.match_number == match_number:
                return m
        raise KeyError((round_number, match_number))

    def rounds(self) -> dict[int, list[PlannedMatch]]:
        """Matches grouped by round, each round ordered by match number."""
        grouped: dict[int, list[PlannedMatch]] = defaultdict(list)
        for m in sorted(self.matches, key=lambda m: (m.round, m.match_number)):
            grouped[m.round].append(m)
        return dict(grouped)

    def to_documents(
        self,
        tournament_id: str,
        tournament: dict[str, Any],
        timestamp: Any,
        created_by: str = SYSTEM_USER,
    ) -> list[tuple[str, dict[str, Any]]]:
        """Build ``(document_id, data)`` pairs for every planned match."""
        documents = []
        for m in self.matches:
            doc_id = match_document_id(tournament_id, m.round, m.match_number)
            next_match_id = (
                None
                if m.is_final
                else match_document_id(tournament_id, m.round + 1, m.next_match_number)
            )
            result = None
            if m.result is not None:
                result = {**m.result, "approvedAt": timestamp}
            documents.append(
                (
                    doc_id,
                    {
                        "id": doc_id,
                        "tournamentId": tournament_id,
                        "tournamentName": tournament.get("title") or "Tournament",
                        "game": tournament.get("game") or "",
                        "type": MATCH_TYPE_ELIMINATION,
                        "round": m.round,
                        "matchNumber": m.match_number,
                        "totalRounds": self.total_rounds,
                        "teamA": m.team_a,
                        "teamB": m.team_b,
                        "status": m.status,
                        "result": result,
                        "nextMatchId": next_match_id,
                        "nextSlot": m.next_slot,
                        "note": m.note,
                        "scheduledAt": tournament.get("startDate"),
                        "createdBy": created_by,
                        "createdAt": timestamp,
                        "updatedAt": timestamp,
                    },
                )
            )
        return documents


def _first_round_match(
    match_number: int, team_a: Slot, team_b: Slot, is_final: bool
) -> PlannedMatch:
    """Create a round 1 match, resolving it at once when one side is a bye."""
    state_a = slot_state(team_a)
    state_b = slot_state(team_b)
    match = PlannedMatch(1, match_number, team_a, team_b, is_final=is_final)

    if state_a is SlotState.BYE and state_b is SlotState.BYE:
        raise InvalidTransitionError(
            f"Round 1 match {match_number} would pair two byes."
        )
    if state_b is SlotState.BYE or state_a is SlotState.BYE:
        side = SLOT_A if state_b is SlotState.BYE else SLOT_B
        winner = team_a if side == SLOT_A else team_b
        match.status = MATCH_COMPLETED
        match.result = ResultSubmission(winner=side).to_result(winner, SYSTEM_USER)
        match.note = "Bye"
    return match


def plan_bracket(
    participants: list[Participant], rng: Optional[random.Random] = None
) -> BracketPlan:
    """Plan a complete single elimination bracket.

    Round 1 is populated from a random seeding, later rounds start as TBD
    placeholders. Participants given a bye are already written into their
    round 2 slot.

    Raises:
        InsufficientParticipantsError: If fewer than two participants are given.
        ValidationError: If a participant appears more than once.
    """
    count = len(participants)
    if count < MIN_PARTICIPANTS:
        raise InsufficientParticipantsError(count)

    ids = [(p.kind, p.id) for p in participants]
    if len(set(ids)) != count:
        raise ValidationError("A participant cannot enter the bracket twice.")

    size = calculate_bracket_size(count)
    total_rounds = calculate_total_rounds(size)
    plan = BracketPlan(
        participants=list(participants),
        size=size,
        byes=size - count,
        total_rounds=total_rounds,
    )

    slots = fill_slots(seed_participants(participants, rng), size)
    for k in range(size // 2):
        plan.matches.append(
            _first_round_match(
                k + 1, slots[2 * k], slots[2 * k + 1], is_final=total_rounds == 1
            )
        )

    for round_number in range(2, total_rounds + 1):
        for k in range(size >> round_number):
            plan.matches.append(
                PlannedMatch(
                    round_number,
                    k + 1,
                    tbd_slot(),
                    tbd_slot(),
                    is_final=round_number == total_rounds,
                )
            )

    # Byes are already decided, so their winners move up straight away
    for m in plan.rounds()[1]:
        winner = m.winner_slot()
        if winner is not None and not m.is_final:
            plan.match(2, m.next_match_number).set_slot(m.next_slot, winner)

    return plan
