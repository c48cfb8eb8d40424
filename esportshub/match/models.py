"""Data models for the match blueprint."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, TypedDict

from esportshub.core.constants import SLOT_A, SLOT_B
from esportshub.core.types import FirestoreDocument


class Slot(TypedDict, total=False):
    """One side of a match: a participant, or the BYE/TBD sentinel."""

    id: str
    name: str
    logo: str
    captainId: str
    kind: str  # team/solo, absent on sentinels


class TeamStats(TypedDict, total=False):
    """Per-side stats recorded with a result."""

    totalPoints: int


class MatchResultData(TypedDict, total=False):
    """The ``result`` map stored on a completed match."""

    winner: str  # teamA/teamB
    winnerId: str
    winnerName: str
    scoreA: Optional[int]
    scoreB: Optional[int]
    teamAStats: TeamStats | dict[str, Any]
    teamBStats: TeamStats | dict[str, Any]
    proofUrl: str
    submittedBy: str
    approvedBy: str
    adminNotes: str
    approvedAt: Any


class SubmissionData(TypedDict, total=False):
    """A captain's reported result, stored until an admin rules on it."""

    winner: str  # teamA/teamB
    scoreA: Optional[int]
    scoreB: Optional[int]
    teamAStats: dict[str, Any]
    teamBStats: dict[str, Any]
    proofUrl: str
    notes: str
    submittedBy: str
    submittedAt: Any


class RejectionData(TypedDict, total=False):
    """The last submission an admin turned down."""

    reason: str
    rejectedBy: str
    rejectedAt: Any
    submittedBy: str


class Match(FirestoreDocument, total=False):
    """A bracket match document in Firestore."""

    tournamentId: str
    tournamentName: str
    game: str
    type: str
    round: int
    matchNumber: int
    totalRounds: int
    teamA: Slot
    teamB: Slot
    status: str
    result: Optional[MatchResultData]
    submission: Optional[SubmissionData]
    lastRejection: RejectionData
    nextMatchId: Optional[str]
    nextSlot: Optional[str]
    note: str
    scheduledAt: Any
    createdBy: str

    # UI and calculated fields
    playable: bool
    roundName: str


class AuditLog(FirestoreDocument, total=False):
    """An entry in the match audit trail."""

    matchId: str
    tournamentId: str
    action: str  # created/submitted/approved/rejected/rescheduled
    performedBy: str
    performedAt: Any
    details: dict[str, Any]


@dataclass
class ResultSubmission:
    """A reported result for one match.

    Captains submit one with a proof link; admins approve either the stored
    submission or one they enter directly.
    """

    winner: str
    score_a: Optional[int] = None
    score_b: Optional[int] = None
    team_a_stats: dict[str, Any] = field(default_factory=dict)
    team_b_stats: dict[str, Any] = field(default_factory=dict)
    admin_notes: str = ""
    proof_url: str = ""
    submitted_by: str = ""

    @classmethod
    def from_submission(cls, data: SubmissionData) -> ResultSubmission:
        """Rebuild a submission stored on a match document."""
        return cls(
            winner=data.get("winner", ""),
            score_a=data.get("scoreA"),
            score_b=data.get("scoreB"),
            team_a_stats=dict(data.get("teamAStats") or {}),
            team_b_stats=dict(data.get("teamBStats") or {}),
            admin_notes=data.get("notes", ""),
            proof_url=data.get("proofUrl", ""),
            submitted_by=data.get("submittedBy", ""),
        )

    def validate(self) -> None:
        """Validate the submission for obvious errors."""
        if self.winner not in (SLOT_A, SLOT_B):
            raise ValueError(f"Winner must be '{SLOT_A}' or '{SLOT_B}'.")

        for score in (self.score_a, self.score_b):
            if score is not None and score < 0:
                raise ValueError("Scores cannot be negative.")

        if self.score_a is not None and self.score_b is not None:
            if self.score_a == self.score_b:
                raise ValueError("An elimination match cannot end in a draw.")
            score_winner = SLOT_A if self.score_a > self.score_b else SLOT_B
            if score_winner != self.winner:
                raise ValueError("The scores do not match the selected winner.")

        for stats in (self.team_a_stats, self.team_b_stats):
            for key, value in stats.items():
                if isinstance(value, (int, float)) and value < 0:
                    raise ValueError(f"Stat '{key}' cannot be negative.")

    def to_submission(self, submitted_by: str) -> SubmissionData:
        """Build the ``submission`` map stored while awaiting approval."""
        return {
            "winner": self.winner,
            "scoreA": self.score_a,
            "scoreB": self.score_b,
            "teamAStats": self.team_a_stats,
            "teamBStats": self.team_b_stats,
            "proofUrl": self.proof_url,
            "notes": self.admin_notes,
            "submittedBy": submitted_by,
        }

    def to_result(self, winner_slot: Slot, approved_by: str) -> MatchResultData:
        """Build the ``result`` map persisted on the match."""
        result: MatchResultData = {
            "winner": self.winner,
            "winnerId": winner_slot.get("id", ""),
            "winnerName": winner_slot.get("name", ""),
            "scoreA": self.score_a,
            "scoreB": self.score_b,
            "teamAStats": self.team_a_stats or {"totalPoints": self.score_a or 0},
            "teamBStats": self.team_b_stats or {"totalPoints": self.score_b or 0},
            "approvedBy": approved_by,
            "adminNotes": self.admin_notes,
        }
        if self.proof_url:
            result["proofUrl"] = self.proof_url
        if self.submitted_by:
            result["submittedBy"] = self.submitted_by
        return result


@dataclass
class AdvanceOutcome:
    """What happened when a result was applied."""

    match_id: str
    winner: Slot
    next_match_id: Optional[str] = None
    next_slot: Optional[str] = None
    champion: Optional[Slot] = None

    @property
    def message(self) -> str:
        """Human-readable summary for the admin surface."""
        name = self.winner.get("name", "Winner")
        if self.champion is not None:
            return f"{name} won the final and is the tournament champion."
        return f"{name} advances to match {self.next_match_id}."
