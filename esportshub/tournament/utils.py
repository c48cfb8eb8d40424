"""Utility functions for tournament management."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore

from esportshub.core.constants import MATCHES_COLLECTION, TOURNAMENTS_COLLECTION
from esportshub.errors import NotFoundError

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.transaction import Transaction


def fetch_tournament(
    db: Client, tournament_id: str, transaction: Transaction | None = None
) -> dict[str, Any]:
    """Fetch a tournament document or raise ``NotFoundError``."""
    if not tournament_id:
        raise NotFoundError("Tournament not found.")
    doc = cast(
        "DocumentSnapshot",
        db.collection(TOURNAMENTS_COLLECTION)
        .document(tournament_id)
        .get(transaction=transaction),
    )
    if not doc.exists:
        raise NotFoundError("Tournament not found.")
    data = doc.to_dict() or {}
    data["id"] = doc.id
    return data


def fetch_tournament_matches(
    db: Client, tournament_id: str, transaction: Transaction | None = None
) -> Any:
    """Fetch all match documents associated with the tournament_id."""
    return (
        db.collection(MATCHES_COLLECTION)
        .where(filter=firestore.FieldFilter("tournamentId", "==", tournament_id))
        .stream(transaction=transaction)
    )


def bracket_exists(
    db: Client, tournament_id: str, transaction: Transaction | None = None
) -> bool:
    """Whether any match has already been stored for the tournament."""
    existing = (
        db.collection(MATCHES_COLLECTION)
        .where(filter=firestore.FieldFilter("tournamentId", "==", tournament_id))
        .limit(1)
        .stream(transaction=transaction)
    )
    return any(True for _ in existing)


def sort_matches(matches: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Order matches by round, then by position within the round."""
    return sorted(matches, key=lambda m: (m.get("round", 0), m.get("matchNumber", 0)))
