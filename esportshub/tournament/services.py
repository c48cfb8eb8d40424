"""Service layer for tournament bracket generation."""

from __future__ import annotations

import random
from typing import TYPE_CHECKING, Any, Optional

from firebase_admin import firestore
from flask import current_app
from google.api_core import exceptions as google_exceptions

from esportshub.core.constants import (
    AUDIT_LOGS_COLLECTION,
    MATCHES_COLLECTION,
    SYSTEM_USER,
    TOURNAMENT_ONGOING,
    TOURNAMENTS_COLLECTION,
)
from esportshub.errors import BracketAlreadyExistsError, PersistenceError
from esportshub.match.utils import get_round_name, is_playable

from .bracket import plan_bracket
from .models import BracketSummary
from .participants import (
    ParticipantLookupCache,
    fetch_approved_registrations,
    resolve_registrations,
)
from .utils import bracket_exists, fetch_tournament, fetch_tournament_matches, sort_matches

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.transaction import Transaction


class BracketService:
    """Handles generation and retrieval of single elimination brackets."""

    @staticmethod
    def _generate_in_transaction(  # noqa: PLR0913
        transaction: Transaction,
        db: Client,
        tournament_id: str,
        cache: ParticipantLookupCache,
        rng: Optional[random.Random],
        created_by: str,
    ) -> BracketSummary:
        """Check for an existing bracket and write a new one atomically."""
        # 1. Reads (Firestore requires all reads before any write)
        tournament = fetch_tournament(db, tournament_id, transaction=transaction)
        if bracket_exists(db, tournament_id, transaction=transaction):
            raise BracketAlreadyExistsError()

        registrations = fetch_approved_registrations(db, tournament_id, transaction)
        participants = resolve_registrations(registrations, cache)

        # 2. Plan
        plan = plan_bracket(participants, rng)
        documents = plan.to_documents(
            tournament_id, tournament, firestore.SERVER_TIMESTAMP, created_by
        )

        # 3. Queue Writes
        matches_ref = db.collection(MATCHES_COLLECTION)
        audit_ref = db.collection(AUDIT_LOGS_COLLECTION)
        for doc_id, data in documents:
            transaction.set(matches_ref.document(doc_id), data)
            if data["round"] == 1:
                transaction.set(
                    audit_ref.document(),
                    {
                        "matchId": doc_id,
                        "tournamentId": tournament_id,
                        "action": "created",
                        "performedBy": created_by,
                        "performedAt": firestore.SERVER_TIMESTAMP,
                        "details": {"newStatus": data["status"], "note": data["note"]},
                    },
                )

        transaction.update(
            db.collection(TOURNAMENTS_COLLECTION).document(tournament_id),
            {
                "status": TOURNAMENT_ONGOING,
                "registrationEnd": firestore.SERVER_TIMESTAMP,
                "bracketSize": plan.size,
                "byes": plan.byes,
                "totalRounds": plan.total_rounds,
                "updatedAt": firestore.SERVER_TIMESTAMP,
            },
        )

        return BracketSummary(
            tournament_id=tournament_id,
            participant_count=len(participants),
            size=plan.size,
            byes=plan.byes,
            total_rounds=plan.total_rounds,
            match_count=len(documents),
        )

    @staticmethod
    def generate_bracket(
        db: Client,
        tournament_id: str,
        rng: Optional[random.Random] = None,
        created_by: str = SYSTEM_USER,
    ) -> BracketSummary:
        """Generate and commit the full bracket of a tournament.

        Either every match and the tournament status change are committed, or
        nothing is.

        Raises:
            NotFoundError: If the tournament does not exist.
            BracketAlreadyExistsError: If matches already exist for it.
            InsufficientParticipantsError: If fewer than two are approved.
            PersistenceError: If Firestore fails.
        """
        cache = ParticipantLookupCache(db)
        transaction = db.transaction()
        generate = firestore.transactional(BracketService._generate_in_transaction)
        try:
            summary = generate(transaction, db, tournament_id, cache, rng, created_by)
        except google_exceptions.GoogleAPICallError as e:
            current_app.logger.error(
                f"Error committing bracket for tournament {tournament_id}: {e}"
            )
            raise PersistenceError() from e

        current_app.logger.info(
            f"Bracket generated for tournament {tournament_id}: "
            f"{summary.participant_count} participants, size {summary.size}, "
            f"{summary.byes} byes, {summary.total_rounds} rounds."
        )
        return summary

    @staticmethod
    def get_bracket(db: Client, tournament_id: str) -> dict[str, Any]:
        """Fetch a tournament with its matches grouped by round."""
        tournament = fetch_tournament(db, tournament_id)

        matches = []
        for doc in fetch_tournament_matches(db, tournament_id):
            data = doc.to_dict()
            if data:
                data["id"] = doc.id
                data["playable"] = is_playable(data)
                matches.append(data)

        total_rounds = tournament.get("totalRounds") or max(
            (m.get("totalRounds", 0) for m in matches), default=0
        )
        rounds: dict[int, list[dict[str, Any]]] = {}
        for m in sort_matches(matches):
            rounds.setdefault(m["round"], []).append(m)

        return {
            "tournament": tournament,
            "totalRounds": total_rounds,
            "champion": tournament.get("champion"),
            "rounds": [
                {
                    "round": round_number,
                    "name": get_round_name(round_number, total_rounds),
                    "matches": round_matches,
                }
                for round_number, round_matches in rounds.items()
            ],
        }
