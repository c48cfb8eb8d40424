"""Data models for the tournament blueprint."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypedDict

from esportshub.core.types import FirestoreDocument

if TYPE_CHECKING:
    from esportshub.match.models import Slot


class Registration(FirestoreDocument, total=False):
    """A tournament registration; ``teamId`` is absent for solo entries."""

    tournamentId: str
    teamId: str
    userId: str
    status: str  # pending/approved/rejected


class Team(TypedDict, total=False):
    """The parts of a team document used for display."""

    name: str
    logo: str
    captainId: str


class Tournament(FirestoreDocument, total=False):
    """A tournament document in Firestore."""

    title: str
    game: str
    type: str
    format: str
    status: str  # upcoming/ongoing/completed
    startDate: Any
    registrationEnd: Any

    # Written when the bracket is generated
    bracketSize: int
    byes: int
    totalRounds: int

    # Written when the final resolves
    champion: Slot
    completedAt: Any


@dataclass
class BracketSummary:
    """Result of a successful bracket generation."""

    tournament_id: str
    participant_count: int
    size: int
    byes: int
    total_rounds: int
    match_count: int

    @property
    def message(self) -> str:
        """Human-readable summary for the admin surface."""
        return (
            f"Generated {self.match_count} matches for "
            f"{self.participant_count} participants"
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON responses."""
        return {
            "tournamentId": self.tournament_id,
            "participantCount": self.participant_count,
            "bracketSize": self.size,
            "byes": self.byes,
            "totalRounds": self.total_rounds,
            "matchCount": self.match_count,
        }
