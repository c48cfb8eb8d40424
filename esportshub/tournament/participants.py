"""Resolve approved registrations into bracket participants."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional, Union, cast

from firebase_admin import firestore
from flask import current_app
from google.api_core import exceptions as google_exceptions

from esportshub.core.constants import (
    REGISTRATION_APPROVED,
    REGISTRATIONS_COLLECTION,
    TEAMS_COLLECTION,
    UNKNOWN_PLAYER_NAME,
    UNKNOWN_TEAM_NAME,
    USERS_COLLECTION,
)

from .utils import fetch_tournament

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.transaction import Transaction

    from esportshub.match.models import Slot


@dataclass(frozen=True)
class TeamParticipant:
    """A registered team, led by its captain."""

    id: str
    name: str
    logo: str = ""
    captain_id: str = ""

    kind = "team"

    def to_slot(self) -> Slot:
        """Serialize into a match slot."""
        return {
            "id": self.id,
            "name": self.name,
            "logo": self.logo,
            "captainId": self.captain_id or self.id,
            "kind": self.kind,
        }


@dataclass(frozen=True)
class SoloParticipant:
    """An individual player entered without a team."""

    id: str
    name: str
    logo: str = ""

    kind = "solo"

    def to_slot(self) -> Slot:
        """Serialize into a match slot; a solo player captains themselves."""
        return {
            "id": self.id,
            "name": self.name,
            "logo": self.logo,
            "captainId": self.id,
            "kind": self.kind,
        }


Participant = Union[TeamParticipant, SoloParticipant]


def user_display_name(user_data: dict[str, Any]) -> str:
    """Pick the best available display name for a user document."""
    return (
        user_data.get("displayName")
        or user_data.get("name")
        or user_data.get("username")
        or UNKNOWN_PLAYER_NAME
    )


class ParticipantLookupCache:
    """Read-through cache of team and user documents.

    Create one per bracket generation so lookups are never shared between
    requests. Failed or missing lookups are cached as ``None``.
    """

    def __init__(self, db: Client) -> None:
        """Initialize an empty cache bound to a Firestore client."""
        self.db = db
        self._docs: dict[tuple[str, str], Optional[dict[str, Any]]] = {}

    def _fetch(self, collection: str, doc_id: str) -> Optional[dict[str, Any]]:
        key = (collection, doc_id)
        if key in self._docs:
            return self._docs[key]

        data = None
        try:
            snap = cast(
                "DocumentSnapshot", self.db.collection(collection).document(doc_id).get()
            )
            if snap.exists:
                data = snap.to_dict() or {}
        except google_exceptions.GoogleAPICallError as e:
            current_app.logger.warning(f"Error fetching {collection}/{doc_id}: {e}")

        self._docs[key] = data
        return data

    def team(self, team_id: str) -> TeamParticipant:
        """Resolve a team id, falling back to a placeholder name."""
        t_data = self._fetch(TEAMS_COLLECTION, team_id)
        if t_data is None:
            current_app.logger.warning(
                f"Team {team_id} could not be resolved, using placeholder name."
            )
            return TeamParticipant(id=team_id, name=UNKNOWN_TEAM_NAME)
        return TeamParticipant(
            id=team_id,
            name=t_data.get("name") or UNKNOWN_TEAM_NAME,
            logo=t_data.get("logo") or "",
            captain_id=t_data.get("captainId") or "",
        )

    def solo(self, user_id: str) -> SoloParticipant:
        """Resolve a solo player's user id, falling back to a placeholder name."""
        u_data = self._fetch(USERS_COLLECTION, user_id)
        if u_data is None:
            current_app.logger.warning(
                f"User {user_id} could not be resolved, using placeholder name."
            )
            return SoloParticipant(id=user_id, name=UNKNOWN_PLAYER_NAME)
        return SoloParticipant(
            id=user_id,
            name=user_display_name(u_data),
            logo=u_data.get("photoURL") or u_data.get("avatar") or "",
        )


def fetch_approved_registrations(
    db: Client, tournament_id: str, transaction: Transaction | None = None
) -> list[dict[str, Any]]:
    """Fetch the approved registrations of a tournament in stored order."""
    # Status is filtered here rather than in the query to avoid a composite index
    docs = (
        db.collection(REGISTRATIONS_COLLECTION)
        .where(filter=firestore.FieldFilter("tournamentId", "==", tournament_id))
        .stream(transaction=transaction)
    )
    registrations = []
    for doc in docs:
        data = doc.to_dict()
        if data and data.get("status") == REGISTRATION_APPROVED:
            data["id"] = doc.id
            registrations.append(data)
    return registrations


def resolve_registrations(
    registrations: list[dict[str, Any]], cache: ParticipantLookupCache
) -> list[Participant]:
    """Turn registrations into unique participants, keeping first-seen order."""
    participants: list[Participant] = []
    seen: set[tuple[str, str]] = set()

    for reg in registrations:
        team_id = reg.get("teamId")
        user_id = reg.get("userId")

        if team_id:
            key = ("team", team_id)
        elif user_id:
            key = ("solo", user_id)
        else:
            current_app.logger.warning(
                f"Registration {reg.get('id')} has no team or user, skipping."
            )
            continue

        if key in seen:
            continue
        seen.add(key)

        if team_id:
            participants.append(cache.team(team_id))
        else:
            participants.append(cache.solo(user_id))

    return participants


def collect_participants(
    db: Client,
    tournament_id: str,
    cache: ParticipantLookupCache | None = None,
    transaction: Transaction | None = None,
) -> list[Participant]:
    """Return the participants eligible for a tournament's bracket.

    Raises:
        NotFoundError: If the tournament does not exist.
    """
    fetch_tournament(db, tournament_id, transaction=transaction)
    if cache is None:
        cache = ParticipantLookupCache(db)
    registrations = fetch_approved_registrations(db, tournament_id, transaction)
    return resolve_registrations(registrations, cache)
